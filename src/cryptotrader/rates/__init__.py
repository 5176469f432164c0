"""Rate graph, estimator and balance valuation."""

from .balances import (
    DEFAULT_PIVOT,
    DEFAULT_USD_CURRENCY,
    convert,
    non_zero_balances,
    to_fiat,
    to_usd,
    total,
)
from .estimator import conversion_rate, estimate
from .graph import ConversionPath, RateGraph, find_path, tickers_to_graph

__all__ = [
    "ConversionPath",
    "DEFAULT_PIVOT",
    "DEFAULT_USD_CURRENCY",
    "RateGraph",
    "conversion_rate",
    "convert",
    "estimate",
    "find_path",
    "non_zero_balances",
    "tickers_to_graph",
    "to_fiat",
    "to_usd",
    "total",
]
