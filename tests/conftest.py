import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from cryptotrader.errors import ExchangeError  # noqa: E402
from cryptotrader.models import Ticker, TradeDirection  # noqa: E402
from cryptotrader.runtime.metrics import metrics  # noqa: E402


def make_ticker(pair: str, last: float, **overrides) -> Ticker:
    fields = {
        "currency_pair": pair,
        "last": last,
        "lowest_ask": last,
        "highest_bid": last,
        "quote_volume": 0.0,
    }
    fields.update(overrides)
    return Ticker(**fields)


class StubExchange:
    """In-memory exchange that fills every order at the quoted rate."""

    name = "stub"

    def __init__(
        self,
        tickers: Optional[Dict[str, Ticker]] = None,
        balances: Optional[Dict[str, float]] = None,
        failures: Optional[Dict[str, ExchangeError]] = None,
    ) -> None:
        self.tickers = dict(tickers or {})
        self.balances = dict(balances or {})
        self.failures = dict(failures or {})
        self.ticker_calls = 0
        self.trades: List[dict] = []
        self.closed = False

    async def fetch_tickers(self) -> Dict[str, Ticker]:
        self.ticker_calls += 1
        return dict(self.tickers)

    async def fetch_balances(self) -> Dict[str, float]:
        return dict(self.balances)

    async def place_trade(
        self,
        direction,
        pair,
        amount,
        rate,
        *,
        fill_or_kill=True,
        immediate_or_cancel=True,
    ) -> float:
        direction = TradeDirection(direction)
        self.trades.append(
            {
                "direction": direction,
                "pair": pair,
                "amount": amount,
                "rate": rate,
                "fill_or_kill": fill_or_kill,
                "immediate_or_cancel": immediate_or_cancel,
            }
        )
        base, quote = pair.split("_")
        target = quote if direction is TradeDirection.BUY else base
        if target in self.failures:
            raise self.failures[target]
        return amount if direction is TradeDirection.BUY else amount * rate

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def sample_tickers() -> Dict[str, Ticker]:
    return {
        "BTC_ETH": make_ticker("BTC_ETH", 0.05, quote_volume=900.0),
        "BTC_LTC": make_ticker("BTC_LTC", 0.01, quote_volume=400.0),
        "USDT_BTC": make_ticker("USDT_BTC", 9000.0, quote_volume=2500.0),
        "ETH_GNT": make_ticker("ETH_GNT", 0.002, quote_volume=150.0),
    }


@pytest.fixture
def stub_exchange(sample_tickers):
    return StubExchange(tickers=sample_tickers, balances={"BTC": 2.0, "ETH": 0.0})


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
