"""Helpers shared by the command implementations."""

from __future__ import annotations

import argparse
import asyncio
from typing import Any, Awaitable, Dict, List, Mapping, Optional

from cryptotrader.errors import ConfigurationError
from cryptotrader.exchanges import DEFAULT_EXCHANGE, SUPPORTED_EXCHANGES, Exchange, create_exchange
from cryptotrader.fiat import DEFAULT_FIAT_API_URL, FiatRateClient
from cryptotrader.utils.symbols import normalize_currency
from cryptotrader.utils.throttle import RateLimiter

EXCHANGE_HELP = (
    f"The name of the exchange to query: {', '.join(SUPPORTED_EXCHANGES)} "
    f"or an alias (default = {DEFAULT_EXCHANGE})"
)


def add_exchange_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-x", "--exchange", type=str, default=None, help=EXCHANGE_HELP)


def add_execution_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Don't actually perform the trade, make a dry run to see what it would look like",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Skip the confirmation prompt")


def parse_currency(value: str) -> str:
    try:
        return normalize_currency(value)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def to_dict(cfg: Any) -> Dict[str, Any]:
    if hasattr(cfg, "to_dict"):
        return cfg.to_dict()
    if isinstance(cfg, Mapping):
        return dict(cfg)
    raise TypeError("Unsupported config type")


def make_exchange(cfg: Mapping[str, Any], *, override: Optional[Exchange] = None) -> Exchange:
    if override is not None:
        return override
    return create_exchange(
        cfg.get("exchange", DEFAULT_EXCHANGE),
        cfg.get("exchange_config") or {},
        rate_limiter=RateLimiter(cfg.get("ticker_min_interval_sec", 1.0)),
        max_retries=cfg.get("max_retries", 3),
        backoff_base=cfg.get("backoff_base", 0.5),
    )


def make_fiat_client(cfg: Mapping[str, Any]) -> FiatRateClient:
    return FiatRateClient(
        cfg.get("fiat_api_url") or DEFAULT_FIAT_API_URL,
        timeout=cfg.get("fiat_timeout_sec", 10.0),
    )


async def gather_all(*aws: Awaitable[Any]) -> List[Any]:
    """Run ``aws`` concurrently and wait for all of them before raising the first error."""

    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


def confirm(question: str, assume_yes: bool = False) -> bool:
    """Ask a y/n question on stdin; ``assume_yes`` answers for the user."""

    if assume_yes:
        return True
    try:
        answer = input(f"{question} [y/n] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}
