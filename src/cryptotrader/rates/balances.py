"""Balance valuation in USD or a fiat currency through a pivot coin."""

from __future__ import annotations

import logging
import math
from typing import Dict, Mapping, Optional

from cryptotrader.errors import ConfigurationError, UnconvertiblePairError
from cryptotrader.models import Balances, Tickers
from cryptotrader.rates.estimator import conversion_rate
from cryptotrader.rates.graph import tickers_to_graph

logger = logging.getLogger(__name__)

DEFAULT_PIVOT = "BTC"
DEFAULT_USD_CURRENCY = "USDT"


def non_zero_balances(balances: Mapping[str, float]) -> Balances:
    return {currency: amount for currency, amount in balances.items() if amount > 0}


def convert(
    balances: Mapping[str, float],
    tickers: Tickers,
    usd_per_fiat: Optional[float] = None,
    *,
    pivot: str = DEFAULT_PIVOT,
    usd_currency: str = DEFAULT_USD_CURRENCY,
    skip_unpriceable: bool = False,
) -> Dict[str, float]:
    """Value every non-zero balance in USD, or in a fiat currency.

    Each currency is routed ``currency -> pivot -> usd_currency`` over a
    single graph built from ``tickers``. When ``usd_per_fiat`` (USD for one
    unit of the fiat currency) is given, USD values are divided by it.

    Args:
        balances: Currency -> amount held. Left untouched.
        tickers: Ticker snapshot used for every conversion.
        usd_per_fiat: Optional fiat rate, e.g. 0.73 USD per CAD.
        pivot: Intermediate coin every balance is routed through.
        usd_currency: Coin standing in for USD on the exchange.
        skip_unpriceable: Drop balances without a path (with a warning)
            instead of raising.

    Raises:
        UnconvertiblePairError: A balance, or the pivot itself, cannot be priced.
        ConfigurationError: ``usd_per_fiat`` is not a positive number.
    """

    if usd_per_fiat is not None and not (math.isfinite(usd_per_fiat) and usd_per_fiat > 0):
        raise ConfigurationError(f"fiat rate must be positive, got {usd_per_fiat}")

    held = non_zero_balances(balances)
    if not held:
        return {}

    graph = tickers_to_graph(tickers)
    pivot_to_usd = conversion_rate(graph, pivot, usd_currency)

    converted: Dict[str, float] = {}
    for currency, amount in held.items():
        try:
            to_pivot = conversion_rate(graph, currency, pivot)
        except UnconvertiblePairError:
            if not skip_unpriceable:
                raise
            logger.warning("Dropping %s %s: no conversion path to %s", amount, currency, pivot)
            continue
        value = amount * to_pivot * pivot_to_usd
        if usd_per_fiat is not None:
            value /= usd_per_fiat
        converted[currency] = value
    return converted


def to_usd(balances: Mapping[str, float], tickers: Tickers, **kwargs) -> Dict[str, float]:
    return convert(balances, tickers, None, **kwargs)


def to_fiat(
    balances: Mapping[str, float],
    tickers: Tickers,
    usd_per_fiat: float,
    **kwargs,
) -> Dict[str, float]:
    return convert(balances, tickers, usd_per_fiat, **kwargs)


def total(converted: Mapping[str, float]) -> float:
    return math.fsum(converted.values())


__all__ = [
    "DEFAULT_PIVOT",
    "DEFAULT_USD_CURRENCY",
    "non_zero_balances",
    "convert",
    "to_usd",
    "to_fiat",
    "total",
]
