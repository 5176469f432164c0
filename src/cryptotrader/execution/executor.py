"""Sequential multi-leg trade execution with per-leg failure capture."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from cryptotrader.errors import ConfigurationError, ExchangeError, UnconvertiblePairError
from cryptotrader.exchanges.base import Exchange
from cryptotrader.models import LegStatus, Tickers, TradeDirection, TradeLeg, TradeResult
from cryptotrader.rates.estimator import estimate
from cryptotrader.runtime.metrics import metrics
from cryptotrader.strategy.resolver import NamedListStrategy, Strategy, resolve_strategy
from cryptotrader.utils.symbols import make_pair, split_pair

logger = logging.getLogger(__name__)


@dataclass
class ExecutionSummary:
    filled: int
    simulated: int
    failed: int
    source_spent: float

    @property
    def total(self) -> int:
        return self.filled + self.simulated + self.failed

    @property
    def ok(self) -> bool:
        return self.failed == 0


def find_pair(source_currency: str, target_currency: str, tickers: Tickers) -> Tuple[str, TradeDirection]:
    """Return the direct pair joining two currencies and the side to trade.

    Spending the pair's base currency buys the quote currency; spending the
    quote currency sells it.

    Raises:
        UnconvertiblePairError: If the exchange lists no direct pair.
    """

    buy_pair = make_pair(source_currency, target_currency)
    if buy_pair in tickers:
        return buy_pair, TradeDirection.BUY
    sell_pair = make_pair(target_currency, source_currency)
    if sell_pair in tickers:
        return sell_pair, TradeDirection.SELL
    raise UnconvertiblePairError(source_currency, target_currency)


def buy_rate(currency_pair: str, tickers: Tickers) -> float:
    ticker = tickers[currency_pair]
    return ticker.lowest_ask if ticker.lowest_ask > 0 else ticker.last


def sell_rate(currency_pair: str, tickers: Tickers) -> float:
    ticker = tickers[currency_pair]
    return ticker.highest_bid if ticker.highest_bid > 0 else ticker.last


def plan_leg(
    source_currency: str,
    target_currency: str,
    amount: float,
    tickers: Tickers,
    currency_pair: Optional[str] = None,
) -> TradeLeg:
    """Build the :class:`TradeLeg` converting ``amount`` of source into target.

    Raises:
        ConfigurationError: Non-positive amount, same source and target, or
            a pair that does not join them.
        UnconvertiblePairError: No direct pair is listed.
    """

    validate_amount(amount)
    if source_currency == target_currency:
        raise ConfigurationError(f"cannot trade {source_currency} into itself")

    if currency_pair:
        try:
            base, quote = split_pair(currency_pair)
        except ValueError as exc:
            raise ConfigurationError(f"malformed currency pair {currency_pair!r}") from exc
        if (base, quote) == (source_currency, target_currency):
            direction = TradeDirection.BUY
        elif (base, quote) == (target_currency, source_currency):
            direction = TradeDirection.SELL
        else:
            raise ConfigurationError(
                f"pair {currency_pair} does not trade {source_currency} for {target_currency}"
            )
        if currency_pair not in tickers:
            raise UnconvertiblePairError(source_currency, target_currency)
    else:
        currency_pair, direction = find_pair(source_currency, target_currency, tickers)

    if direction is TradeDirection.BUY:
        rate = buy_rate(currency_pair, tickers)
    else:
        rate = sell_rate(currency_pair, tickers)

    return TradeLeg(
        source_currency=source_currency,
        source_amount=amount,
        target_currency=target_currency,
        currency_pair=currency_pair,
        direction=direction,
        rate=rate,
        estimated_amount=estimate(amount, source_currency, target_currency, tickers),
    )


async def execute_leg(api: Exchange, leg: TradeLeg, dry_run: bool = False) -> TradeResult:
    """Run one leg; exchange failures become a failed :class:`TradeResult`."""

    await metrics.incr("legs_attempted")
    if dry_run:
        logger.info(
            "DRY RUN: %s %.8f %s on %s @ %.8f, expecting ~%.8f %s",
            leg.direction.value,
            leg.order_amount,
            leg.currency_pair,
            api.name,
            leg.rate,
            leg.estimated_amount,
            leg.target_currency,
        )
        await metrics.incr("legs_simulated")
        return TradeResult.simulation(leg)

    logger.info(
        "%s %.8f %s on %s @ %.8f",
        leg.direction.value,
        leg.order_amount,
        leg.currency_pair,
        api.name,
        leg.rate,
    )
    started = time.perf_counter()
    try:
        settled = await api.place_trade(
            leg.direction,
            leg.currency_pair,
            leg.order_amount,
            leg.rate,
            fill_or_kill=True,
            immediate_or_cancel=True,
        )
    except ExchangeError as exc:
        await metrics.incr("legs_failed")
        logger.warning("Leg %s -> %s failed: %s", leg.source_currency, leg.target_currency, exc)
        return TradeResult.failure(
            leg.source_currency,
            leg.target_currency,
            leg.source_amount,
            str(exc) or type(exc).__name__,
            leg=leg,
        )
    finally:
        await metrics.observe_latency(time.perf_counter() - started)

    await metrics.incr("legs_filled")
    logger.info("Got %.8f %s from %.8f %s", settled, leg.target_currency, leg.source_amount, leg.source_currency)
    return TradeResult.filled(leg, settled)


def validate_amount(amount: float) -> None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ConfigurationError(f"amount must be a number, got {amount!r}")
    if not math.isfinite(amount) or amount <= 0:
        raise ConfigurationError(f"amount must be positive, got {amount}")


def validate_request(source_amount: float, strategy: Strategy, source_currency: str) -> None:
    """Reject an invalid diversification before any network call.

    Raises:
        ConfigurationError: Non-positive amount, unknown strategy type, or a
            named list containing the source currency.
    """

    validate_amount(source_amount)
    if not isinstance(strategy, Strategy):
        raise ConfigurationError(f"unsupported strategy {strategy!r}")
    if isinstance(strategy, NamedListStrategy) and source_currency in strategy.currencies:
        raise ConfigurationError(f"cannot split {source_currency} into itself")


async def execute(
    api: Exchange,
    source_amount: float,
    strategy: Strategy,
    source_currency: str,
    dry_run: bool = False,
    tickers: Optional[Tickers] = None,
) -> List[TradeResult]:
    """Split ``source_amount`` of ``source_currency`` across a strategy's targets.

    Tickers are fetched once, unless a snapshot is passed in, and the
    strategy is resolved against them with the source currency excluded. Legs then run one after another; a failed
    leg is recorded and the remaining legs still run. Nothing is retried.

    Returns:
        One :class:`TradeResult` per allocation entry, in allocation order.

    Raises:
        ConfigurationError: Invalid amount or strategy, detected before any
            network call.
        ExchangeUnavailableError: Tickers could not be fetched.
    """

    validate_request(source_amount, strategy, source_currency)

    if tickers is None:
        tickers = await api.fetch_tickers()
    allocation = resolve_strategy(strategy, tickers, exclude={source_currency})
    logger.info(
        "Splitting %s %s into %d coins on %s%s",
        source_amount,
        source_currency,
        len(allocation),
        api.name,
        " (dry run)" if dry_run else "",
    )

    results: List[TradeResult] = []
    for target_currency, weight in allocation.items():
        leg_amount = source_amount * weight
        try:
            leg = plan_leg(source_currency, target_currency, leg_amount, tickers)
        except UnconvertiblePairError as exc:
            await metrics.incr("legs_failed")
            logger.warning("Skipping %s: %s", target_currency, exc)
            results.append(TradeResult.failure(source_currency, target_currency, leg_amount, str(exc)))
            continue
        results.append(await execute_leg(api, leg, dry_run=dry_run))

    summary = summarize(results)
    logger.info(
        "Diversification finished: %d filled, %d simulated, %d failed",
        summary.filled,
        summary.simulated,
        summary.failed,
    )
    return results


async def trade(
    api: Exchange,
    amount: float,
    from_currency: str,
    to_currency: str,
    currency_pair: Optional[str] = None,
    dry_run: bool = False,
    tickers: Optional[Tickers] = None,
) -> TradeResult:
    """Convert ``amount`` of one currency into another over a single pair.

    Raises:
        ConfigurationError: Invalid amount, identical currencies or a pair
            that does not join them.
        UnconvertiblePairError: No direct pair is listed.
        ExchangeUnavailableError: Tickers could not be fetched.
    """

    validate_amount(amount)
    if from_currency == to_currency:
        raise ConfigurationError(f"cannot trade {from_currency} into itself")

    if tickers is None:
        tickers = await api.fetch_tickers()
    leg = plan_leg(from_currency, to_currency, amount, tickers, currency_pair=currency_pair)
    return await execute_leg(api, leg, dry_run=dry_run)


def summarize(results: Sequence[TradeResult]) -> ExecutionSummary:
    counts = {status: 0 for status in LegStatus}
    spent = 0.0
    for result in results:
        counts[result.status] += 1
        if result.ok:
            spent += result.source_amount
    return ExecutionSummary(
        filled=counts[LegStatus.FILLED],
        simulated=counts[LegStatus.SIMULATED],
        failed=counts[LegStatus.FAILED],
        source_spent=spent,
    )


__all__ = [
    "ExecutionSummary",
    "find_pair",
    "buy_rate",
    "sell_rate",
    "plan_leg",
    "validate_amount",
    "validate_request",
    "execute_leg",
    "execute",
    "trade",
    "summarize",
]
