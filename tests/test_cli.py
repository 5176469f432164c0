"""Tests for the command line interface."""

import asyncio
import json

import pytest

from cryptotrader import cli
from cryptotrader.cli import common
from cryptotrader.errors import InsufficientFundsError, RateUnavailableError

from conftest import StubExchange


class StubFiat:
    def __init__(self, rates):
        self.rates = rates
        self.closed = False

    async def usd_per(self, currency):
        return self.rates[currency]

    async def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("EXCHANGE", "LOG_LEVEL", "FIAT_CURRENCY", "MAX_RETRIES", "DIVERSIFY_DEFAULT_N"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fiat(monkeypatch):
    client = StubFiat({"CAD": 0.75, "EUR": 1.08, "USD": 1.0})
    monkeypatch.setattr(common, "make_fiat_client", lambda cfg: client)
    return client


@pytest.fixture
def exchange(monkeypatch, sample_tickers):
    stub = StubExchange(
        tickers=sample_tickers,
        balances={"BTC": 2.0, "ETH": 10.0, "DOGE": 3.0, "LTC": 0.0},
    )
    monkeypatch.setattr(common, "make_exchange", lambda cfg: stub)
    return stub


def test_balances_shows_fiat_and_usd_values(exchange, fiat, capsys):
    assert cli.main(["balances"]) == 0

    out = capsys.readouterr().out
    assert "CAD" in out and "USD" in out
    assert "24,000.00" in out
    assert "6,000.00" in out
    assert "30,000.00" in out
    assert "DOGE" in out
    assert "LTC" not in out
    assert exchange.closed and fiat.closed


def test_balances_can_be_restricted_to_coins(exchange, fiat, capsys):
    assert cli.main(["balances", "eth", "--fiat", "eur"]) == 0

    out = capsys.readouterr().out
    lines = [line for line in out.splitlines() if line.startswith(("BTC", "ETH"))]
    assert [line.split()[0] for line in lines] == ["ETH"]
    assert "EUR" in out


def test_balances_fail_cleanly_when_the_fiat_rate_is_down(exchange, fiat, monkeypatch, capsys):
    async def unavailable(currency):
        raise RateUnavailableError(f"no rate for {currency}")

    monkeypatch.setattr(fiat, "usd_per", unavailable)

    assert cli.main(["balances"]) == 1

    assert "FAILURE: no rate for CAD" in capsys.readouterr().out
    assert exchange.ticker_calls == 1
    assert exchange.closed and fiat.closed


@pytest.mark.asyncio
async def test_gather_all_waits_for_siblings_before_raising():
    finished = []

    async def slow():
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        finished.append("slow")
        return 1

    async def failing():
        raise RateUnavailableError("down")

    with pytest.raises(RateUnavailableError):
        await common.gather_all(slow(), failing())

    assert finished == ["slow"]
    assert await common.gather_all(slow()) == [1]


def test_pairs_filters_by_currency(exchange, capsys):
    assert cli.main(["pairs", "ltc"]) == 0

    out = capsys.readouterr().out
    assert "BTC_LTC" in out
    assert "BTC_ETH" not in out


def test_quote_for_a_coin(exchange, fiat, capsys):
    assert cli.main(["quote", "eth"]) == 0

    out = capsys.readouterr().out
    assert "1 ETH = 450.00000 USD" in out
    assert "1 ETH = 600.00000 CAD" in out


def test_quote_for_fiat_skips_the_exchange(monkeypatch, fiat, capsys):
    def no_exchange(cfg):
        raise AssertionError("exchange should not be created")

    monkeypatch.setattr(common, "make_exchange", no_exchange)

    assert cli.main(["quote", "EUR"]) == 0
    assert "1 EUR = 1.08 USD" in capsys.readouterr().out


def test_split_dry_run_places_no_orders(exchange, capsys):
    assert cli.main(["split", "10", "btc", "eth", "ltc", "--dry-run", "--yes"]) == 0

    out = capsys.readouterr().out
    assert out.count("SIMULATED") == 2
    assert "50.00%" in out
    assert exchange.trades == []


def test_split_can_be_declined(exchange, monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    assert cli.main(["split", "10", "BTC", "ETH"]) == 0

    assert "Not doing it" in capsys.readouterr().out
    assert exchange.trades == []


def test_split_reports_failed_legs(exchange, monkeypatch, capsys):
    exchange.failures["ETH"] = InsufficientFundsError("Not enough BTC.")
    monkeypatch.setattr("builtins.input", lambda prompt: "y")

    assert cli.main(["split", "10", "BTC", "ETH", "LTC"]) == 1

    out = capsys.readouterr().out
    assert "FAILED" in out
    assert "Not enough BTC." in out
    assert "1 filled, 0 simulated, 1 failed" in out
    assert len(exchange.trades) == 2


def test_split_into_the_source_coin_fails_before_fetching(exchange, capsys):
    assert cli.main(["split", "1", "BTC", "ETH", "BTC", "-y"]) == 1

    assert capsys.readouterr().out.startswith("FAILURE:")
    assert exchange.ticker_calls == 0


def test_blank_coin_is_a_failure_not_a_traceback(exchange, capsys):
    assert cli.main(["split", "1", " ", "ETH", "-y"]) == 1
    assert capsys.readouterr().out.startswith("FAILURE:")

    assert cli.main(["trade", "1", "BTC", " ", "-y"]) == 1
    assert capsys.readouterr().out.startswith("FAILURE:")
    assert exchange.ticker_calls == 0


def test_diversify_uses_top_coins(exchange, capsys):
    assert cli.main(["diversify", "1", "BTC", "-n", "2", "-d", "-y"]) == 0

    out = capsys.readouterr().out
    assert "ETH" in out and "LTC" in out
    assert "GNT" not in out


def test_diversify_rejects_zero_coins(exchange, capsys):
    assert cli.main(["diversify", "1", "BTC", "-n", "0", "-y"]) == 1
    assert "FAILURE:" in capsys.readouterr().out


def test_trade_sells_on_the_pair(exchange, capsys):
    assert cli.main(["trade", "2", "eth", "btc", "BTC_ETH", "-y"]) == 0

    out = capsys.readouterr().out
    assert "SUCCESS: GOT" in out
    assert "BTC FROM 2.0 ETH" in out
    assert exchange.trades[0]["pair"] == "BTC_ETH"


def test_trade_without_a_market_fails(exchange, capsys):
    assert cli.main(["trade", "1", "BTC", "XMR", "-y"]) == 1

    assert "FAILURE: Cannot convert BTC to XMR." in capsys.readouterr().out
    assert exchange.closed


def test_trade_failure_is_reported(exchange, capsys):
    exchange.failures["BTC"] = InsufficientFundsError("Not enough ETH.")

    assert cli.main(["trade", "2", "ETH", "BTC", "-y"]) == 1

    assert "FAILURE: COULD NOT TRADE: Not enough ETH." in capsys.readouterr().out


def test_init_writes_default_config(tmp_path, capsys):
    path = tmp_path / "config.json"

    assert cli.main(["init", "--output", str(path)]) == 0

    assert json.loads(path.read_text())["exchange"] == "poloniex"
    assert "Default configuration saved" in capsys.readouterr().out


def test_unsupported_exchange_stops_before_running(capsys):
    assert cli.main(["pairs", "-x", "bittrex"]) == 1

    assert "Unsupported exchange" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0

    assert "usage:" in capsys.readouterr().out
