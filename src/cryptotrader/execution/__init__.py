"""Single trades and multi-leg diversification."""

from .executor import (
    ExecutionSummary,
    buy_rate,
    execute,
    execute_leg,
    find_pair,
    plan_leg,
    sell_rate,
    summarize,
    trade,
    validate_amount,
    validate_request,
)

__all__ = [
    "ExecutionSummary",
    "buy_rate",
    "execute",
    "execute_leg",
    "find_pair",
    "plan_leg",
    "sell_rate",
    "summarize",
    "trade",
    "validate_amount",
    "validate_request",
]
