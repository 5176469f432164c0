"""Command line interface package for cryptotrader."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Optional, Sequence

from cryptotrader import __version__
from cryptotrader.config import LOG_LEVELS, Config, create_default_config
from cryptotrader.errors import TraderError

from .portfolio import add_balances_subparser, add_pairs_subparser, add_quote_subparser
from .trading import add_diversify_subparser, add_split_subparser, add_trade_subparser

logger = logging.getLogger(__name__)


def add_init_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``init`` sub-command."""

    p = subparsers.add_parser("init", help="Initialize default configuration")
    p.add_argument(
        "--output",
        "-o",
        type=str,
        default="config/default.json",
        help="Output path for configuration file",
    )
    p.set_defaults(func=run_init_cmd, needs_exchange=False)


def run_init_cmd(args: argparse.Namespace, cfg: Any) -> int:
    create_default_config(args.output)
    print(f"Default configuration saved to: {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the root argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="cryptotrader",
        description="cryptotrader - manage and diversify crypto holdings",
    )
    parser.add_argument("--version", action="version", version=f"cryptotrader {__version__}")
    parser.add_argument("--config", "-c", type=str, default=None, help="Path to configuration file")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default = INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    add_balances_subparser(subparsers)
    add_split_subparser(subparsers)
    add_diversify_subparser(subparsers)
    add_trade_subparser(subparsers)
    add_pairs_subparser(subparsers)
    add_quote_subparser(subparsers)
    add_init_subparser(subparsers)
    return parser


def _report_issues(issues: Sequence[str]) -> bool:
    """Log configuration issues; return ``True`` when any is fatal."""

    fatal = False
    for issue in issues:
        if issue.startswith("WARNING"):
            logger.debug("Configuration: %s", issue)
        else:
            print(f"Configuration error: {issue}")
            fatal = True
    return fatal


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    cfg = Config(
        config_file=args.config,
        overrides={
            "exchange": getattr(args, "exchange", None),
            "log_level": args.log_level,
        },
    )
    logging.basicConfig(
        level=getattr(logging, cfg.get("log_level"), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if getattr(args, "needs_exchange", True) and _report_issues(cfg.validate()):
        return 1

    try:
        result = args.func(args, cfg)
    except TraderError as exc:
        print(f"FAILURE: {exc}")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130

    if isinstance(result, int):
        return result

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point guard
    sys.exit(main())
