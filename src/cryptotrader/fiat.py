"""Async fiat exchange-rate lookup.

Rates come from a Frankfurter-compatible endpoint::

    GET {base_url}/latest?from=CAD&to=USD
    {"amount": 1.0, "base": "CAD", "date": "...", "rates": {"USD": 0.73}}
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from cryptotrader.errors import RateUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_FIAT_API_URL = "https://api.frankfurter.app"
DEFAULT_TIMEOUT_SEC = 10.0
USD = "USD"

# Currencies ``quote`` treats as fiat rather than exchange-listed coins
FIAT_CURRENCIES = frozenset({"CAD", "EUR", "USD", "GBP", "JPY", "AUD", "CHF"})


class FiatRateClient:
    """Fetches fiat conversion rates over HTTP."""

    def __init__(
        self,
        base_url: str = DEFAULT_FIAT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def fetch_fiat_rate(self, from_currency: str, to_currency: str) -> float:
        """Return how many ``to_currency`` one ``from_currency`` buys.

        Raises:
            RateUnavailableError: On HTTP or transport failure, or when the
                response carries no positive rate for ``to_currency``.
        """

        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        if from_currency == to_currency:
            return 1.0

        try:
            response = await self._client.get(
                f"{self.base_url}/latest",
                params={"from": from_currency, "to": to_currency},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RateUnavailableError(
                f"could not fetch {from_currency}/{to_currency} rate: {exc}"
            ) from exc

        rate = _extract_rate(payload, to_currency)
        if rate is None:
            raise RateUnavailableError(
                f"no {to_currency} rate for {from_currency} in response: {payload!r}"
            )
        logger.debug("1 %s = %s %s", from_currency, rate, to_currency)
        return rate

    async def usd_per(self, currency: str) -> float:
        """USD value of one unit of the fiat ``currency``."""
        return await self.fetch_fiat_rate(currency, USD)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "FiatRateClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.close()
        return False


def _extract_rate(payload: Any, currency: str) -> Optional[float]:
    if not isinstance(payload, dict):
        return None
    rates = payload.get("rates")
    if not isinstance(rates, dict):
        return None
    try:
        rate = float(rates[currency])
    except (KeyError, TypeError, ValueError):
        return None
    return rate if rate > 0 else None


def is_fiat(currency: str) -> bool:
    return currency.upper() in FIAT_CURRENCIES


__all__ = [
    "DEFAULT_FIAT_API_URL",
    "FIAT_CURRENCIES",
    "FiatRateClient",
    "is_fiat",
]
