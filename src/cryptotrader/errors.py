"""Error taxonomy for the conversion and trade-execution engine"""


class TraderError(Exception):
    """Base class for every error raised by cryptotrader"""


class ConfigurationError(TraderError):
    """Invalid input or configuration detected before any network call"""


class UnconvertiblePairError(TraderError):
    """No conversion path exists between two currencies"""

    def __init__(self, from_currency: str, to_currency: str):
        super().__init__(f"Cannot convert {from_currency} to {to_currency}.")
        self.from_currency = from_currency
        self.to_currency = to_currency


class ExchangeError(TraderError):
    """Base class for failures reported by an exchange client"""


class ExchangeUnavailableError(ExchangeError):
    """Network, authentication or availability failure talking to an exchange"""


class RateLimitError(ExchangeUnavailableError):
    """The exchange refused a request because of its request-rate policy"""


class InsufficientFundsError(ExchangeError):
    """The account does not hold enough of the currency being spent"""


class OrderRejectedError(ExchangeError):
    """The exchange refused or killed an order"""


class RateUnavailableError(TraderError):
    """A fiat exchange rate could not be fetched"""


__all__ = [
    "TraderError",
    "ConfigurationError",
    "UnconvertiblePairError",
    "ExchangeError",
    "ExchangeUnavailableError",
    "RateLimitError",
    "InsufficientFundsError",
    "OrderRejectedError",
    "RateUnavailableError",
]
