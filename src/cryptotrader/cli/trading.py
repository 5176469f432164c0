"""Order-placing commands: ``split``, ``diversify`` and ``trade``."""

from __future__ import annotations

import argparse
import asyncio
from typing import Any, Mapping

from cryptotrader.execution import (
    buy_rate,
    execute,
    plan_leg,
    sell_rate,
    summarize,
    trade,
    validate_amount,
    validate_request,
)
from cryptotrader.outputs import formatter
from cryptotrader.strategy import NamedListStrategy, Strategy, TopByVolumeStrategy
from cryptotrader.utils.symbols import split_pair

from . import common


def add_split_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``split`` sub-command."""

    p = subparsers.add_parser(
        "split",
        help="Split your coin into coins",
        description="Convert an amount of one coin into equal parts of the listed coins.",
    )
    p.add_argument("amount", type=float, help="Amount of the source coin to spend")
    p.add_argument("from_coin", type=str, help="Coin to spend")
    p.add_argument("coins", nargs="+", help="Coins to buy")
    common.add_exchange_option(p)
    common.add_execution_options(p)
    p.set_defaults(func=run_split_cmd)


def add_diversify_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``diversify`` sub-command."""

    p = subparsers.add_parser(
        "diversify",
        help="Split your coin into n top coins by volume",
        description="Convert an amount of one coin into equal parts of the busiest coins.",
    )
    p.add_argument("amount", type=float, help="Amount of the source coin to spend")
    p.add_argument("from_coin", type=str, help="Coin to spend")
    p.add_argument(
        "-n",
        "--into",
        type=int,
        default=None,
        help="Amount of top coins to diversify into (default = 30)",
    )
    common.add_exchange_option(p)
    common.add_execution_options(p)
    p.set_defaults(func=run_diversify_cmd)


def add_trade_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``trade`` sub-command."""

    p = subparsers.add_parser(
        "trade",
        help="Trade from_coin to_coin, optionally on a given currency pair",
        description="Convert an amount of one coin into another over a single pair.",
    )
    p.add_argument("amount", type=float, help="Amount of the source coin to spend")
    p.add_argument("from_coin", type=str, help="Coin to spend")
    p.add_argument("to_coin", type=str, help="Coin to buy")
    p.add_argument("pair", nargs="?", default=None, help="Currency pair, e.g. BTC_ETH")
    common.add_exchange_option(p)
    common.add_execution_options(p)
    p.set_defaults(func=run_trade_cmd)


async def _diversify(
    args: argparse.Namespace,
    cfg: Mapping[str, Any],
    strategy: Strategy,
) -> int:
    source_currency = common.parse_currency(args.from_coin)
    validate_request(args.amount, strategy, source_currency)

    exchange = common.make_exchange(cfg)
    try:
        tickers = await exchange.fetch_tickers()
        allocation = strategy.resolve(tickers, exclude={source_currency})
        print(formatter.format_allocation(allocation, args.amount, source_currency))
        question = (
            f"Are you sure you want to turn {args.amount} {source_currency} into "
            f"{strategy.describe()} on {exchange.name}?"
        )
        if not common.confirm(question, args.yes):
            print("Ok! Not doing it.")
            return 0

        results = await execute(
            exchange,
            args.amount,
            strategy,
            source_currency,
            dry_run=args.dry_run,
            tickers=tickers,
        )
    finally:
        await exchange.close()

    print(formatter.format_results(results))
    summary = summarize(results)
    print(
        f"{summary.filled} filled, {summary.simulated} simulated, {summary.failed} failed; "
        f"spent {summary.source_spent} {source_currency}"
    )
    return 0 if summary.ok else 1


async def _trade(args: argparse.Namespace, cfg: Mapping[str, Any]) -> int:
    from_currency = common.parse_currency(args.from_coin)
    to_currency = common.parse_currency(args.to_coin)
    pair = args.pair.upper() if args.pair else None
    validate_amount(args.amount)

    exchange = common.make_exchange(cfg)
    try:
        tickers = await exchange.fetch_tickers()
        leg = plan_leg(from_currency, to_currency, args.amount, tickers, currency_pair=pair)
        base, quote = split_pair(leg.currency_pair)
        question = (
            f"Are you sure you want to trade {args.amount} {from_currency} into {to_currency} "
            f"on {exchange.name}?\n"
            f"Current sell rate is {sell_rate(leg.currency_pair, tickers)} {base}/{quote}\n"
            f"Current buy rate is {buy_rate(leg.currency_pair, tickers)} {base}/{quote}"
        )
        if not common.confirm(question, args.yes):
            print("OK! Not doing it!")
            return 0

        result = await trade(
            exchange,
            args.amount,
            from_currency,
            to_currency,
            currency_pair=leg.currency_pair,
            dry_run=args.dry_run,
            tickers=tickers,
        )
    finally:
        await exchange.close()

    if not result.ok:
        print(f"FAILURE: COULD NOT TRADE: {result.error}")
        return 1
    if result.simulated:
        print(f"DRY RUN: WOULD GET ~{result.amount} {to_currency} FROM {args.amount} {from_currency}")
    else:
        print(f"SUCCESS: GOT {result.amount} {to_currency} FROM {args.amount} {from_currency}")
    return 0


def run_split_cmd(args: argparse.Namespace, cfg: Any) -> int:
    strategy = NamedListStrategy(tuple(args.coins))
    return asyncio.run(_diversify(args, common.to_dict(cfg), strategy))


def run_diversify_cmd(args: argparse.Namespace, cfg: Any) -> int:
    cfg_dict = common.to_dict(cfg)
    n = args.into if args.into is not None else cfg_dict.get("diversify_default_n", 30)
    strategy = TopByVolumeStrategy(n)
    return asyncio.run(_diversify(args, cfg_dict, strategy))


def run_trade_cmd(args: argparse.Namespace, cfg: Any) -> int:
    return asyncio.run(_trade(args, common.to_dict(cfg)))
