"""Currency and currency-pair helpers shared by the core and exchange clients."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

__all__ = [
    "PAIR_SEPARATOR",
    "normalize_currency",
    "split_pair",
    "make_pair",
    "pair_involves",
    "from_ccxt_symbol",
    "to_ccxt_symbol",
]

PAIR_SEPARATOR = "_"


def normalize_currency(symbol: str) -> str:
    """Normalize a ticker symbol (e.g. ``" eth "`` -> ``"ETH"``).

    Raises:
        ValueError: If the provided symbol is empty or not a string.
    """

    if not isinstance(symbol, str):
        raise ValueError("Currency must be provided as a string")

    cleaned = symbol.strip().upper()
    if not cleaned:
        raise ValueError("Currency cannot be empty")
    return cleaned


def split_pair(pair: str) -> Tuple[str, str]:
    """Split a ``BASE_QUOTE`` pair into ``(base, quote)``.

    The quote currency is priced in units of the base currency, so
    ``BTC_ETH`` with ``last=0.05`` means one ETH costs 0.05 BTC.
    """

    base, quote = pair.split(PAIR_SEPARATOR)
    return base, quote


def make_pair(base: str, quote: str) -> str:
    return f"{base}{PAIR_SEPARATOR}{quote}"


def pair_involves(pair: str, currencies: Iterable[str]) -> bool:
    wanted = {currency.upper() for currency in currencies}
    return any(side in wanted for side in split_pair(pair))


def from_ccxt_symbol(symbol: str) -> Optional[str]:
    """Convert a ccxt unified spot symbol into a ``BASE_QUOTE`` pair.

    ccxt names markets ``COIN/PRICING`` (``ETH/BTC``) while pairs here lead
    with the pricing currency (``BTC_ETH``). Derivative symbols such as
    ``BTC/USDT:USDT`` and malformed entries return ``None``.
    """

    if not symbol or ":" in symbol or "/" not in symbol:
        return None
    coin, pricing = symbol.upper().split("/", 1)
    if not coin or not pricing:
        return None
    return make_pair(pricing, coin)


def to_ccxt_symbol(pair: str) -> str:
    base, quote = split_pair(pair)
    return f"{quote}/{base}"
