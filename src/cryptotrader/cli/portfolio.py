"""Read-only commands: ``balances``, ``pairs`` and ``quote``."""

from __future__ import annotations

import argparse
import asyncio
from typing import Any, Dict, Mapping

from cryptotrader.fiat import is_fiat
from cryptotrader.outputs import formatter
from cryptotrader.rates.balances import non_zero_balances, to_fiat, to_usd

from . import common


def add_balances_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``balances`` sub-command."""

    p = subparsers.add_parser(
        "balances",
        aliases=["balance", "b"],
        help="Display your current balances",
        description="Show non-zero balances with their fiat and USD value.",
    )
    p.add_argument("coins", nargs="*", help="Only show these coins")
    p.add_argument("--fiat", type=str, default=None, help="Fiat currency for valuation (default = CAD)")
    common.add_exchange_option(p)
    p.set_defaults(func=run_balances_cmd)


def add_pairs_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``pairs`` sub-command."""

    p = subparsers.add_parser(
        "pairs",
        help="List all the currency pairs on the exchange",
        description="List pairs with last price, 24h change and volume.",
    )
    p.add_argument("currencies", nargs="*", help="Only list pairs involving these currencies")
    common.add_exchange_option(p)
    p.set_defaults(func=run_pairs_cmd)


def add_quote_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``quote`` sub-command."""

    p = subparsers.add_parser(
        "quote",
        help="Get a quote for a currency in USD",
        description="Fiat currencies show their USD rate; coins show the value of one unit.",
    )
    p.add_argument("currency", type=str, help="Currency to quote, e.g. ETH or EUR")
    common.add_exchange_option(p)
    p.set_defaults(func=run_quote_cmd)


def _valuation_options(cfg: Mapping[str, Any], **overrides: Any) -> Dict[str, Any]:
    options = {
        "pivot": cfg.get("pivot_currency", "BTC"),
        "usd_currency": cfg.get("usd_currency", "USDT"),
        "skip_unpriceable": cfg.get("skip_unpriceable", True),
    }
    options.update(overrides)
    return options


async def _balances(args: argparse.Namespace, cfg: Mapping[str, Any]) -> int:
    fiat_currency = (args.fiat or cfg.get("fiat_currency", "CAD")).upper()
    exchange = common.make_exchange(cfg)
    fiat_client = common.make_fiat_client(cfg)
    try:
        tickers, balances, usd_per_fiat = await common.gather_all(
            exchange.fetch_tickers(),
            exchange.fetch_balances(),
            fiat_client.usd_per(fiat_currency),
        )
    finally:
        await exchange.close()
        await fiat_client.close()

    held = non_zero_balances(balances)
    if args.coins:
        wanted = {coin.upper() for coin in args.coins}
        held = {currency: amount for currency, amount in held.items() if currency in wanted}

    valuation = _valuation_options(cfg)
    usd_values = to_usd(held, tickers, **valuation)
    fiat_values = to_fiat(held, tickers, usd_per_fiat, **valuation)
    print(formatter.format_balances(held, fiat_values, fiat_currency, usd_values))
    return 0


async def _pairs(args: argparse.Namespace, cfg: Mapping[str, Any]) -> int:
    exchange = common.make_exchange(cfg)
    try:
        tickers = await exchange.fetch_tickers()
    finally:
        await exchange.close()

    print(formatter.format_pairs(tickers, args.currencies))
    return 0


async def _quote(args: argparse.Namespace, cfg: Mapping[str, Any]) -> int:
    currency = args.currency.upper()
    fiat_currency = cfg.get("fiat_currency", "CAD").upper()
    fiat_client = common.make_fiat_client(cfg)

    if is_fiat(currency):
        try:
            rate = await fiat_client.usd_per(currency)
        finally:
            await fiat_client.close()
        print(f"1 {currency} = {rate} USD")
        return 0

    exchange = common.make_exchange(cfg)
    try:
        tickers, usd_per_fiat = await common.gather_all(
            exchange.fetch_tickers(),
            fiat_client.usd_per(fiat_currency),
        )
    finally:
        await exchange.close()
        await fiat_client.close()

    valuation = _valuation_options(cfg, skip_unpriceable=False)
    usd = to_usd({currency: 1.0}, tickers, **valuation)[currency]
    fiat = to_fiat({currency: 1.0}, tickers, usd_per_fiat, **valuation)[currency]
    print(f"1 {currency} = {usd:.5f} USD")
    print(f"1 {currency} = {fiat:.5f} {fiat_currency}")
    return 0


def run_balances_cmd(args: argparse.Namespace, cfg: Any) -> int:
    return asyncio.run(_balances(args, common.to_dict(cfg)))


def run_pairs_cmd(args: argparse.Namespace, cfg: Any) -> int:
    return asyncio.run(_pairs(args, common.to_dict(cfg)))


def run_quote_cmd(args: argparse.Namespace, cfg: Any) -> int:
    return asyncio.run(_quote(args, common.to_dict(cfg)))
