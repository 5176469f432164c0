"""Exchange connectors behind a single async protocol."""

from .base import (
    Exchange,
    ExchangeError,
    ExchangeUnavailableError,
    InsufficientFundsError,
    OrderRejectedError,
    RateLimitError,
)
from .ccxt_adapter import (
    DEFAULT_EXCHANGE,
    EXCHANGES,
    SUPPORTED_EXCHANGES,
    BinanceClient,
    CcxtExchangeClient,
    CoinbaseClient,
    KrakenClient,
    PoloniexClient,
    create_exchange,
    resolve_exchange_name,
)

__all__ = [
    "Exchange",
    "ExchangeError",
    "ExchangeUnavailableError",
    "InsufficientFundsError",
    "OrderRejectedError",
    "RateLimitError",
    "CcxtExchangeClient",
    "PoloniexClient",
    "CoinbaseClient",
    "BinanceClient",
    "KrakenClient",
    "EXCHANGES",
    "SUPPORTED_EXCHANGES",
    "DEFAULT_EXCHANGE",
    "create_exchange",
    "resolve_exchange_name",
]
