"""Terminal output for the command-line interface."""

from .formatter import (
    format_allocation,
    format_balances,
    format_pairs,
    format_results,
)

__all__ = [
    "format_allocation",
    "format_balances",
    "format_pairs",
    "format_results",
]
