"""Exchange client interface consumed by the conversion and execution engine"""

from typing import Dict, Protocol, Union, runtime_checkable

from cryptotrader.errors import (
    ExchangeError,
    ExchangeUnavailableError,
    InsufficientFundsError,
    OrderRejectedError,
    RateLimitError,
)
from cryptotrader.models import Ticker, TradeDirection


@runtime_checkable
class Exchange(Protocol):
    """Method set every exchange client implements.

    Pairs are ``BASE_QUOTE`` strings where ``QUOTE`` is priced in ``BASE``.
    Clients raise the errors from :mod:`cryptotrader.errors`, never the
    underlying library's exceptions.
    """

    @property
    def name(self) -> str:
        ...

    async def fetch_tickers(self) -> Dict[str, Ticker]:
        """Return a fresh ticker snapshot keyed by pair.

        Raises:
            ExchangeUnavailableError: On network or authentication failure.
        """
        ...

    async def fetch_balances(self) -> Dict[str, float]:
        """Return currency -> total amount held."""
        ...

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
        """Place a limit order for ``amount`` of the pair's quote currency at ``rate``.

        Returns:
            The amount actually received: quote currency for a buy, base
            currency for a sell.

        Raises:
            InsufficientFundsError: The account cannot cover the order.
            OrderRejectedError: The exchange refused or killed the order.
            ExchangeUnavailableError: On network or authentication failure.
        """
        ...

    async def close(self) -> None:
        ...


__all__ = [
    "Exchange",
    "ExchangeError",
    "ExchangeUnavailableError",
    "InsufficientFundsError",
    "OrderRejectedError",
    "RateLimitError",
]
