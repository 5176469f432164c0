"""CCXT-backed exchange clients with hardened error handling."""

from __future__ import annotations

import asyncio
import logging
import math
import random
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

import ccxt
import ccxt.async_support as ccxt_async
from pydantic import ValidationError

from cryptotrader.errors import (
    ConfigurationError,
    ExchangeError,
    ExchangeUnavailableError,
    InsufficientFundsError,
    OrderRejectedError,
    RateLimitError,
)
from cryptotrader.models import Ticker, TradeDirection
from cryptotrader.utils.symbols import from_ccxt_symbol, to_ccxt_symbol
from cryptotrader.utils.throttle import RateLimiter

LOG = logging.getLogger(__name__)

DEFAULT_EXCHANGE = "poloniex"
DEFAULT_TICKER_INTERVAL = 1.0


class CcxtExchangeClient:
    """Implementation of the :class:`~cryptotrader.exchanges.base.Exchange` protocol on ccxt."""

    exchange_id = DEFAULT_EXCHANGE
    aliases: Tuple[str, ...] = ()

    _DEFAULT_BACKOFF_BASE = 0.5
    _BACKOFF_CAP = 10.0

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        exchange_id: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        max_retries: int = 3,
        backoff_base: float = _DEFAULT_BACKOFF_BASE,
    ) -> None:
        self.exchange_id = (exchange_id or self.exchange_id).lower()
        self._config = dict(config or {})
        self._rate_limiter = rate_limiter or RateLimiter(DEFAULT_TICKER_INTERVAL)
        self._max_retries = max(1, max_retries)
        self._backoff_base = max(0.1, backoff_base)

        exchange_cls = getattr(ccxt_async, self.exchange_id)
        self._client = exchange_cls(self._config)

    @property
    def name(self) -> str:
        return self.exchange_id

    # ------------------------------------------------------------------
    # Protocol implementation
    # ------------------------------------------------------------------
    async def fetch_tickers(self) -> Dict[str, Ticker]:
        await self._rate_limiter.wait()
        raw_tickers: Mapping[str, Mapping[str, Any]] = await self._request_with_retries(
            self._client.fetch_tickers
        )

        tickers: Dict[str, Ticker] = {}
        for symbol, data in raw_tickers.items():
            pair = from_ccxt_symbol(symbol)
            if pair is None:
                continue
            try:
                ticker = _to_ticker(pair, data)
            except ValidationError as exc:
                LOG.debug("Skipping %s: invalid ticker data (%s)", symbol, exc)
                continue
            if ticker is None:
                LOG.debug("Skipping %s: no usable last price", symbol)
                continue
            tickers[pair] = ticker
        return tickers

    async def fetch_balances(self) -> Dict[str, float]:
        raw_balance: Mapping[str, Any] = await self._request_with_retries(self._client.fetch_balance)

        balances: Dict[str, float] = {}
        for currency, amount in (raw_balance.get("total") or {}).items():
            if amount is None:
                continue
            try:
                balances[currency.upper()] = float(amount)
            except (TypeError, ValueError):
                LOG.debug("Skipping malformed balance for %s: %r", currency, amount)
        return balances

    async def place_trade(
        self,
        direction: Union[TradeDirection, str],
        pair: str,
        amount: float,
        rate: float,
        *,
        fill_or_kill: bool = True,
        immediate_or_cancel: bool = True,
    ) -> float:
        side = TradeDirection(direction)
        symbol = to_ccxt_symbol(pair)
        params = self.order_params(fill_or_kill=fill_or_kill, immediate_or_cancel=immediate_or_cancel)
        LOG.info("API CALL: %s %s amount=%s rate=%s params=%s", side.value, symbol, amount, rate, params)

        # Orders are never retried.
        try:
            order = await self._client.create_order(symbol, "limit", side.value, amount, rate, params)
        except Exception as exc:  # noqa: BLE001 - classified below
            _, error = self._classify_exception(exc, placing_order=True)
            raise error from exc

        settled = _settled_amount(order, side)
        if settled <= 0:
            raise OrderRejectedError(
                f"order {order.get('id', '?')} on {pair} was not filled (status {order.get('status', 'unknown')})"
            )
        return settled

    def order_params(self, *, fill_or_kill: bool, immediate_or_cancel: bool) -> Dict[str, Any]:
        """Time-in-force parameters for ``create_order``."""

        if fill_or_kill:
            return {"timeInForce": "FOK"}
        if immediate_or_cancel:
            return {"timeInForce": "IOC"}
        return {}

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> "CcxtExchangeClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.close()
        return False

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    async def _request_with_retries(self, func, *args, **kwargs):
        attempt = 0
        while True:
            try:
                return await func(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001 - we handle classification below
                attempt += 1
                should_retry, error = self._classify_exception(exc)
                if not should_retry or attempt >= self._max_retries:
                    raise error from exc

                delay = min(self._backoff_base * (2 ** (attempt - 1)), self._BACKOFF_CAP)
                sleep_for = delay * random.uniform(0.5, 1.5)
                LOG.debug(
                    "Retrying %s after %.2fs due to %s (attempt %s/%s)",
                    getattr(func, "__name__", func),
                    sleep_for,
                    error,
                    attempt,
                    self._max_retries,
                )
                await asyncio.sleep(sleep_for)

    def _classify_exception(self, exc: Exception, *, placing_order: bool = False) -> Tuple[bool, ExchangeError]:
        if isinstance(exc, ExchangeError):
            return isinstance(exc, ExchangeUnavailableError), exc

        if isinstance(exc, ccxt.RateLimitExceeded):
            return True, RateLimitError(str(exc))

        message = str(exc)
        if isinstance(exc, ccxt.InsufficientFunds):
            return False, InsufficientFundsError(message)

        if isinstance(exc, ccxt.InvalidOrder):
            return False, OrderRejectedError(message)

        if isinstance(exc, ccxt.AuthenticationError):
            return False, ExchangeUnavailableError(message)

        http_status = getattr(exc, "http_status", None) or getattr(exc, "status", None)
        if http_status == 429:
            return True, RateLimitError(message)

        if isinstance(exc, ccxt.NetworkError):
            return True, ExchangeUnavailableError(message)

        if isinstance(exc, ccxt.BaseError):
            if placing_order:
                return False, OrderRejectedError(message)
            return False, ExchangeUnavailableError(message)

        if "429" in message or "rate limit" in message.lower():
            return True, RateLimitError(message)
        return True, ExchangeUnavailableError(message)


class PoloniexClient(CcxtExchangeClient):
    exchange_id = "poloniex"
    aliases = ("pn", "pl", "polo")


class CoinbaseClient(CcxtExchangeClient):
    exchange_id = "coinbase"
    aliases = ("cb",)


class BinanceClient(CcxtExchangeClient):
    exchange_id = "binance"
    aliases = ("bn",)


class KrakenClient(CcxtExchangeClient):
    exchange_id = "kraken"
    aliases = ("kr",)

    def order_params(self, *, fill_or_kill: bool, immediate_or_cancel: bool) -> Dict[str, Any]:
        # Kraken spot has no fill-or-kill order type.
        if fill_or_kill or immediate_or_cancel:
            return {"timeInForce": "IOC"}
        return {}


EXCHANGES: Dict[str, Type[CcxtExchangeClient]] = {
    cls.exchange_id: cls for cls in (PoloniexClient, CoinbaseClient, BinanceClient, KrakenClient)
}
SUPPORTED_EXCHANGES = tuple(EXCHANGES)


def resolve_exchange_name(name: Optional[str]) -> str:
    """Map an exchange name or alias (``pn``, ``cb``...) to its canonical id."""

    wanted = (name or DEFAULT_EXCHANGE).strip().lower()
    for exchange_id, cls in EXCHANGES.items():
        if wanted == exchange_id or wanted in cls.aliases:
            return exchange_id
    raise ConfigurationError(
        f"Unsupported exchange: {name} (choose from {', '.join(SUPPORTED_EXCHANGES)})"
    )


def create_exchange(
    exchange_id: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> CcxtExchangeClient:
    """Factory returning the client variant registered for ``exchange_id``."""

    resolved_id = resolve_exchange_name(exchange_id)
    return EXCHANGES[resolved_id](config, **kwargs)


def _to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _is_frozen(info: Any) -> bool:
    if not isinstance(info, Mapping):
        return False
    flag = info.get("isFrozen")
    if flag is None:
        return str(info.get("state", "")).upper() in {"FROZEN", "OFFLINE", "HALT"}
    return str(flag).strip().lower() in {"1", "true"}


def _to_ticker(pair: str, data: Mapping[str, Any]) -> Optional[Ticker]:
    last = _to_float(data.get("last") if data.get("last") is not None else data.get("close"))
    if last <= 0:
        return None

    # ccxt volumes are named after its own base/quote, which are swapped here.
    high = data.get("high")
    low = data.get("low")
    return Ticker(
        currency_pair=pair,
        last=last,
        lowest_ask=max(_to_float(data.get("ask")), 0.0),
        highest_bid=max(_to_float(data.get("bid")), 0.0),
        percent_change=_to_float(data.get("percentage")) / 100,
        base_volume=max(_to_float(data.get("quoteVolume")), 0.0),
        quote_volume=max(_to_float(data.get("baseVolume")), 0.0),
        is_frozen=_is_frozen(data.get("info")),
        high_24h=_to_float(high, None),
        low_24h=_to_float(low, None),
    )


def _settled_amount(order: Mapping[str, Any], side: TradeDirection) -> float:
    """Amount received: quote currency for buys, base currency for sells."""

    trades = order.get("trades") or []
    if side is TradeDirection.BUY:
        if trades:
            return sum(_to_float(trade.get("amount")) for trade in trades)
        return _to_float(order.get("filled"))

    if trades:
        return sum(
            _to_float(trade.get("cost"))
            or _to_float(trade.get("amount")) * _to_float(trade.get("price"))
            for trade in trades
        )
    if order.get("cost") is not None:
        return _to_float(order.get("cost"))
    price = order.get("average") if order.get("average") is not None else order.get("price")
    return _to_float(order.get("filled")) * _to_float(price)


__all__ = [
    "CcxtExchangeClient",
    "PoloniexClient",
    "CoinbaseClient",
    "BinanceClient",
    "KrakenClient",
    "EXCHANGES",
    "SUPPORTED_EXCHANGES",
    "DEFAULT_EXCHANGE",
    "resolve_exchange_name",
    "create_exchange",
]
