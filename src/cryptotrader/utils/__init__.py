"""Utility modules and helper exports."""

from .symbols import (
    PAIR_SEPARATOR,
    from_ccxt_symbol,
    make_pair,
    normalize_currency,
    pair_involves,
    split_pair,
    to_ccxt_symbol,
)
from .throttle import RateLimiter

__all__ = [
    "PAIR_SEPARATOR",
    "RateLimiter",
    "from_ccxt_symbol",
    "make_pair",
    "normalize_currency",
    "pair_involves",
    "split_pair",
    "to_ccxt_symbol",
]
