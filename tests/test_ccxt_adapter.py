"""Unit tests for the CCXT exchange clients."""

import ccxt
import ccxt.async_support as ccxt_async
import pytest

from cryptotrader.errors import (
    ConfigurationError,
    ExchangeUnavailableError,
    InsufficientFundsError,
    OrderRejectedError,
    RateLimitError,
)
from cryptotrader.exchanges import (
    Exchange,
    KrakenClient,
    PoloniexClient,
    create_exchange,
    resolve_exchange_name,
)
from cryptotrader.exchanges import ccxt_adapter
from cryptotrader.models import Ticker, TradeDirection
from cryptotrader.utils.throttle import RateLimiter


class _DummyBase:
    def __init__(self, config=None):
        self.config = config
        self.calls = []
        self.closed = False

    async def close(self):
        self.closed = True


@pytest.fixture
def no_sleep(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("asyncio.sleep", fake_sleep)
    return delays


def _client(monkeypatch, dummy_cls, exchange_id="poloniex", **kwargs):
    monkeypatch.setattr(ccxt_async, exchange_id, dummy_cls)
    kwargs.setdefault("rate_limiter", RateLimiter(0))
    return create_exchange(exchange_id, {"enableRateLimit": True}, **kwargs)


@pytest.mark.asyncio
async def test_fetch_tickers_converts_symbols_and_volumes(monkeypatch):
    """ccxt ``ETH/BTC`` becomes ``BTC_ETH`` with volumes named from the pair's side."""

    class DummyExchange(_DummyBase):
        async def fetch_tickers(self):
            return {
                "ETH/BTC": {
                    "last": 0.05,
                    "ask": 0.051,
                    "bid": 0.049,
                    "baseVolume": 1000.0,
                    "quoteVolume": 50.0,
                    "percentage": 2.5,
                    "high": 0.052,
                    "low": None,
                    "info": {"isFrozen": "0"},
                },
                "BTC/USDT:USDT": {"last": 9000.0},
                "XRP/BTC": {"last": None, "close": None},
                "LTC/BTC": {"last": "0.01", "info": {"isFrozen": "1"}},
            }

    client = _client(monkeypatch, DummyExchange)

    tickers = await client.fetch_tickers()

    assert set(tickers) == {"BTC_ETH", "BTC_LTC"}
    eth = tickers["BTC_ETH"]
    assert eth.last == pytest.approx(0.05)
    assert eth.lowest_ask == pytest.approx(0.051)
    assert eth.highest_bid == pytest.approx(0.049)
    assert eth.quote_volume == pytest.approx(1000.0)
    assert eth.base_volume == pytest.approx(50.0)
    assert eth.percent_change == pytest.approx(0.025)
    assert eth.high_24h == pytest.approx(0.052)
    assert eth.low_24h is None
    assert not eth.is_frozen
    assert tickers["BTC_LTC"].is_frozen


@pytest.mark.asyncio
async def test_non_finite_ticker_fields_are_not_trusted(monkeypatch):
    class DummyExchange(_DummyBase):
        async def fetch_tickers(self):
            return {
                "ETH/BTC": {"last": 0.05, "ask": float("nan"), "bid": float("inf"), "high": float("nan")},
                "LTC/BTC": {"last": float("inf")},
                "XMR/BTC": {"last": float("nan"), "close": 0.004},
            }

    client = _client(monkeypatch, DummyExchange)

    tickers = await client.fetch_tickers()

    assert set(tickers) == {"BTC_ETH"}
    eth = tickers["BTC_ETH"]
    assert eth.last == pytest.approx(0.05)
    assert eth.lowest_ask == 0.0
    assert eth.highest_bid == 0.0
    assert eth.high_24h is None


@pytest.mark.asyncio
async def test_ticker_failing_validation_is_skipped(monkeypatch):
    class DummyExchange(_DummyBase):
        async def fetch_tickers(self):
            return {"ETH/BTC": {"last": 0.05}, "LTC/BTC": {"last": 0.01}}

    def strict_ticker(**fields):
        if fields["currency_pair"] == "BTC_LTC":
            fields["lowest_ask"] = -1.0
        return Ticker(**fields)

    monkeypatch.setattr(ccxt_adapter, "Ticker", strict_ticker)
    client = _client(monkeypatch, DummyExchange)

    tickers = await client.fetch_tickers()

    assert set(tickers) == {"BTC_ETH"}


@pytest.mark.asyncio
async def test_rate_limit_retries_with_backoff(monkeypatch, no_sleep):
    """Rate limit errors should trigger retries with exponential backoff."""

    attempts = {"count": 0}

    class RateLimitedExchange(_DummyBase):
        async def fetch_tickers(self):
            attempts["count"] += 1
            if attempts["count"] < 3:
                raise ccxt.RateLimitExceeded("Too many requests")
            return {"ETH/BTC": {"last": 0.05}}

    client = _client(monkeypatch, RateLimitedExchange, max_retries=3, backoff_base=0.25)

    tickers = await client.fetch_tickers()

    assert attempts["count"] == 3
    assert list(tickers) == ["BTC_ETH"]
    assert len(no_sleep) == 2
    assert 0.125 <= no_sleep[0] <= 0.375
    assert 0.25 <= no_sleep[1] <= 0.75


@pytest.mark.asyncio
async def test_network_error_is_raised_after_retries(monkeypatch, no_sleep):
    """Network errors surface as ExchangeUnavailableError once retries run out."""

    attempts = {"count": 0}

    class FailingExchange(_DummyBase):
        async def fetch_tickers(self):
            attempts["count"] += 1
            raise ccxt.NetworkError("Connection down")

    client = _client(monkeypatch, FailingExchange, max_retries=2)

    with pytest.raises(ExchangeUnavailableError) as excinfo:
        await client.fetch_tickers()

    assert attempts["count"] == 2
    assert isinstance(excinfo.value.__cause__, ccxt.NetworkError)


@pytest.mark.asyncio
async def test_exhausted_rate_limit_is_reported_as_such(monkeypatch, no_sleep):
    class AlwaysLimited(_DummyBase):
        async def fetch_balance(self):
            raise ccxt.RateLimitExceeded("429 Too Many Requests")

    client = _client(monkeypatch, AlwaysLimited, max_retries=2)

    with pytest.raises(RateLimitError):
        await client.fetch_balances()


@pytest.mark.asyncio
async def test_authentication_error_is_not_retried(monkeypatch, no_sleep):
    attempts = {"count": 0}

    class LockedExchange(_DummyBase):
        async def fetch_balance(self):
            attempts["count"] += 1
            raise ccxt.AuthenticationError("invalid key")

    client = _client(monkeypatch, LockedExchange, max_retries=3)

    with pytest.raises(ExchangeUnavailableError):
        await client.fetch_balances()

    assert attempts["count"] == 1
    assert no_sleep == []


@pytest.mark.asyncio
async def test_fetch_balances_reads_totals(monkeypatch):
    class DummyExchange(_DummyBase):
        async def fetch_balance(self):
            return {
                "total": {"BTC": 2.0, "eth": "0.5", "XMR": None, "LTC": "n/a"},
                "free": {"BTC": 1.0},
            }

    client = _client(monkeypatch, DummyExchange)

    assert await client.fetch_balances() == {"BTC": 2.0, "ETH": 0.5}


@pytest.mark.asyncio
async def test_buy_places_fill_or_kill_limit_order(monkeypatch):
    class DummyExchange(_DummyBase):
        async def create_order(self, symbol, order_type, side, amount, price, params):
            self.calls.append((symbol, order_type, side, amount, price, params))
            return {"id": "1", "status": "closed", "filled": 100.0, "trades": []}

    client = _client(monkeypatch, DummyExchange)

    received = await client.place_trade(TradeDirection.BUY, "BTC_ETH", 100.0, 0.05)

    assert received == pytest.approx(100.0)
    assert client._client.calls == [("ETH/BTC", "limit", "buy", 100.0, 0.05, {"timeInForce": "FOK"})]


@pytest.mark.asyncio
async def test_sell_reports_base_currency_received(monkeypatch):
    class DummyExchange(_DummyBase):
        async def create_order(self, symbol, order_type, side, amount, price, params):
            return {
                "id": "2",
                "status": "closed",
                "trades": [{"cost": 0.06}, {"amount": 1.0, "price": 0.04}],
            }

    client = _client(monkeypatch, DummyExchange)

    received = await client.place_trade("sell", "BTC_ETH", 2.0, 0.05, fill_or_kill=False)

    assert received == pytest.approx(0.1)


@pytest.mark.asyncio
async def test_sell_without_trades_uses_filled_times_average(monkeypatch):
    class DummyExchange(_DummyBase):
        async def create_order(self, symbol, order_type, side, amount, price, params):
            return {"id": "3", "status": "closed", "filled": 2.0, "average": 0.05, "trades": None}

    client = _client(monkeypatch, DummyExchange)

    assert await client.place_trade("sell", "BTC_ETH", 2.0, 0.05) == pytest.approx(0.1)


@pytest.mark.asyncio
async def test_killed_order_is_rejected(monkeypatch):
    class DummyExchange(_DummyBase):
        async def create_order(self, symbol, order_type, side, amount, price, params):
            return {"id": "4", "status": "canceled", "filled": 0.0}

    client = _client(monkeypatch, DummyExchange)

    with pytest.raises(OrderRejectedError, match="not filled"):
        await client.place_trade("buy", "BTC_ETH", 1.0, 0.05)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raised, expected",
    [
        (ccxt.InsufficientFunds("Not enough BTC."), InsufficientFundsError),
        (ccxt.InvalidOrder("Total must be at least 0.0001."), OrderRejectedError),
        (ccxt.NetworkError("Connection reset"), ExchangeUnavailableError),
        (ccxt.ExchangeError("Unable to fill order completely."), OrderRejectedError),
    ],
)
async def test_order_errors_are_mapped_and_never_retried(monkeypatch, no_sleep, raised, expected):
    class DummyExchange(_DummyBase):
        async def create_order(self, *args):
            self.calls.append(args)
            raise raised

    client = _client(monkeypatch, DummyExchange, max_retries=3)

    with pytest.raises(expected) as excinfo:
        await client.place_trade("buy", "BTC_ETH", 1.0, 0.05)

    assert str(excinfo.value) == str(raised)
    assert len(client._client.calls) == 1
    assert no_sleep == []


@pytest.mark.asyncio
async def test_kraken_uses_immediate_or_cancel(monkeypatch):
    class DummyExchange(_DummyBase):
        async def create_order(self, symbol, order_type, side, amount, price, params):
            self.calls.append(params)
            return {"filled": 1.0}

    client = _client(monkeypatch, DummyExchange, exchange_id="kraken")

    await client.place_trade("buy", "USD_XBT", 1.0, 30000.0)

    assert isinstance(client, KrakenClient)
    assert client._client.calls == [{"timeInForce": "IOC"}]


@pytest.mark.asyncio
async def test_close_closes_the_ccxt_client(monkeypatch):
    client = _client(monkeypatch, _DummyBase)

    async with client:
        pass

    assert client._client.closed
    assert isinstance(client, Exchange)


def test_aliases_resolve_to_registered_clients(monkeypatch):
    monkeypatch.setattr(ccxt_async, "poloniex", _DummyBase)

    for alias in ("poloniex", "pn", "pl", "POLO"):
        assert resolve_exchange_name(alias) == "poloniex"
    assert resolve_exchange_name(None) == "poloniex"
    assert resolve_exchange_name("cb") == "coinbase"
    assert resolve_exchange_name("bn") == "binance"
    assert isinstance(create_exchange("pn"), PoloniexClient)


def test_unsupported_exchange_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="Unsupported exchange"):
        create_exchange("bittrex")
