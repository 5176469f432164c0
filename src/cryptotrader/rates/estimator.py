"""Implied exchange rates composed from direct pair quotes."""

from __future__ import annotations

import logging

from cryptotrader.errors import UnconvertiblePairError
from cryptotrader.models import Tickers
from cryptotrader.rates.graph import RateGraph, find_path, tickers_to_graph

logger = logging.getLogger(__name__)


def conversion_rate(graph: RateGraph, from_currency: str, to_currency: str) -> float:
    """Rate turning one unit of ``from_currency`` into ``to_currency``.

    Raises:
        UnconvertiblePairError: If no path joins the two currencies.
    """

    path = find_path(graph, from_currency, to_currency)
    if path is None:
        raise UnconvertiblePairError(from_currency, to_currency)
    logger.debug("%s -> %s via %s (%d hops, rate %.10g)", from_currency, to_currency, path, path.hops, path.rate)
    return path.rate


def estimate(amount: float, from_currency: str, to_currency: str, tickers: Tickers) -> float:
    """Estimate what ``amount`` of ``from_currency`` is worth in ``to_currency``.

    The shortest path by hop count is used, not the one with the best rate.
    Pure function of ``tickers``: no network access and no mutation.

    Raises:
        UnconvertiblePairError: If no path joins the two currencies.
    """

    if from_currency == to_currency:
        return amount
    graph = tickers_to_graph(tickers)
    return amount * conversion_rate(graph, from_currency, to_currency)


__all__ = ["conversion_rate", "estimate"]
