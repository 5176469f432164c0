"""Diversification strategies resolved into equal-weight allocations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, List, Tuple

from cryptotrader.errors import ConfigurationError
from cryptotrader.models import Allocation, Tickers
from cryptotrader.utils.symbols import normalize_currency, split_pair


class Strategy:
    """Base class for target-currency selection strategies."""

    def candidates(self, tickers: Tickers, exclude: AbstractSet[str]) -> List[str]:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def resolve(self, tickers: Tickers, exclude: Iterable[str] = ()) -> Allocation:
        """Return an equal-weight :class:`Allocation` over the selected currencies.

        Raises:
            ConfigurationError: If no target currency is left to allocate to.
        """

        excluded = frozenset(exclude)
        targets = [currency for currency in self.candidates(tickers, excluded) if currency not in excluded]
        if not targets:
            raise ConfigurationError(f"{self.describe()} resolved to no target currencies")
        return Allocation.equal(targets)


@dataclass(frozen=True)
class NamedListStrategy(Strategy):
    """An explicit list of target currencies, split equally."""

    currencies: Tuple[str, ...]

    def __post_init__(self) -> None:
        currencies = (self.currencies,) if isinstance(self.currencies, str) else self.currencies
        try:
            normalized = [normalize_currency(currency) for currency in currencies]
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        unique = tuple(dict.fromkeys(normalized))
        if not unique:
            raise ConfigurationError("a named-list strategy needs at least one currency")
        object.__setattr__(self, "currencies", unique)

    def candidates(self, tickers: Tickers, exclude: AbstractSet[str]) -> List[str]:
        return list(self.currencies)

    def describe(self) -> str:
        return ", ".join(self.currencies)


@dataclass(frozen=True)
class TopByVolumeStrategy(Strategy):
    """The ``n`` currencies with the highest quote volume, split equally."""

    n: int

    def __post_init__(self) -> None:
        if isinstance(self.n, bool) or not isinstance(self.n, int) or self.n < 1:
            raise ConfigurationError(f"top-by-volume needs a positive number of coins, got {self.n!r}")

    def candidates(self, tickers: Tickers, exclude: AbstractSet[str]) -> List[str]:
        # A currency quoted on several pairs is ranked by its busiest one.
        best: Dict[str, float] = {}
        for currency_pair, ticker in tickers.items():
            _, quote = split_pair(currency_pair)
            if quote in exclude:
                continue
            if quote not in best or ticker.quote_volume > best[quote]:
                best[quote] = ticker.quote_volume

        ranked = sorted(best.items(), key=lambda item: (-item[1], item[0]))
        return [currency for currency, _ in ranked[: self.n]]

    def describe(self) -> str:
        return f"top {self.n} coins by volume"


def resolve_strategy(strategy: Strategy, tickers: Tickers, exclude: Iterable[str] = ()) -> Allocation:
    """Resolve ``strategy`` against a ticker snapshot, skipping ``exclude``."""

    return strategy.resolve(tickers, exclude)


__all__ = ["Strategy", "NamedListStrategy", "TopByVolumeStrategy", "resolve_strategy"]
