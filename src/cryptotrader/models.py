"""Data models for the conversion and trade-execution engine"""

import math
from typing import Dict, Iterable, ItemsView, List, Mapping, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cryptotrader.utils.symbols import split_pair

# Allocation weights must sum to 1 within this tolerance
WEIGHT_TOLERANCE = 1e-9


class TradeDirection(str, Enum):
    """Order side on a ``BASE_QUOTE`` pair (buy or sell the quote currency)"""
    BUY = "buy"
    SELL = "sell"


class LegStatus(str, Enum):
    """Outcome of a single trade leg"""
    FILLED = "filled"
    SIMULATED = "simulated"
    FAILED = "failed"


class Ticker(BaseModel):
    """Market snapshot for one currency pair"""

    model_config = ConfigDict(frozen=True)

    currency_pair: str
    last: float = Field(gt=0.0)
    lowest_ask: float = Field(default=0.0, ge=0.0)
    highest_bid: float = Field(default=0.0, ge=0.0)
    percent_change: float = 0.0  # fraction, 0.05 == +5%
    base_volume: float = Field(default=0.0, ge=0.0)
    quote_volume: float = Field(default=0.0, ge=0.0)
    is_frozen: bool = False
    high_24h: Optional[float] = None
    low_24h: Optional[float] = None

    @property
    def base(self) -> str:
        return split_pair(self.currency_pair)[0]

    @property
    def quote(self) -> str:
        return split_pair(self.currency_pair)[1]


# Pair string (``BTC_ETH``) -> Ticker
Tickers = Mapping[str, Ticker]
# Currency -> amount held
Balances = Dict[str, float]


class Allocation(BaseModel):
    """Resolved target currencies and their fractional weights"""

    model_config = ConfigDict(frozen=True)

    weights: Dict[str, float] = Field(min_length=1)

    @model_validator(mode="after")
    def validate_weights(self) -> "Allocation":
        for currency, weight in self.weights.items():
            if not 0.0 <= weight <= 1.0:
                raise ValueError(f"weight for {currency} must be within [0, 1]")
        total = math.fsum(self.weights.values())
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"weights must sum to 1 (got {total})")
        return self

    @classmethod
    def equal(cls, currencies: Iterable[str]) -> "Allocation":
        targets = list(currencies)
        if not targets:
            raise ValueError("an allocation needs at least one currency")
        weight = 1.0 / len(targets)
        return cls(weights={currency: weight for currency in targets})

    @property
    def currencies(self) -> List[str]:
        return list(self.weights)

    def items(self) -> ItemsView[str, float]:
        return self.weights.items()

    def __len__(self) -> int:
        return len(self.weights)


class TradeLeg(BaseModel):
    """One conversion instruction within a diversification"""

    model_config = ConfigDict(frozen=True)

    source_currency: str
    source_amount: float = Field(gt=0.0)
    target_currency: str
    currency_pair: str
    direction: TradeDirection
    rate: float = Field(gt=0.0)
    estimated_amount: float = Field(ge=0.0)

    @property
    def order_amount(self) -> float:
        """Order size in the pair's quote currency"""
        if self.direction is TradeDirection.BUY:
            return self.source_amount / self.rate
        return self.source_amount


class TradeResult(BaseModel):
    """Outcome of one leg: settled or simulated amount, or a failure reason"""

    source_currency: str
    target_currency: str
    source_amount: float
    status: LegStatus
    amount: Optional[float] = None
    error: Optional[str] = None
    leg: Optional[TradeLeg] = None

    @model_validator(mode="after")
    def validate_outcome(self) -> "TradeResult":
        if self.status is LegStatus.FAILED:
            if not self.error:
                raise ValueError("failed results must carry an error")
        elif self.amount is None:
            raise ValueError(f"{self.status.value} results must carry an amount")
        return self

    @property
    def ok(self) -> bool:
        return self.status is not LegStatus.FAILED

    @property
    def simulated(self) -> bool:
        return self.status is LegStatus.SIMULATED

    @classmethod
    def filled(cls, leg: TradeLeg, amount: float) -> "TradeResult":
        return cls._from_leg(leg, status=LegStatus.FILLED, amount=amount)

    @classmethod
    def simulation(cls, leg: TradeLeg) -> "TradeResult":
        return cls._from_leg(leg, status=LegStatus.SIMULATED, amount=leg.estimated_amount)

    @classmethod
    def failure(
        cls,
        source_currency: str,
        target_currency: str,
        source_amount: float,
        error: str,
        leg: Optional[TradeLeg] = None,
    ) -> "TradeResult":
        return cls(
            source_currency=source_currency,
            target_currency=target_currency,
            source_amount=source_amount,
            status=LegStatus.FAILED,
            error=error,
            leg=leg,
        )

    @classmethod
    def _from_leg(cls, leg: TradeLeg, **kwargs) -> "TradeResult":
        return cls(
            source_currency=leg.source_currency,
            target_currency=leg.target_currency,
            source_amount=leg.source_amount,
            leg=leg,
            **kwargs,
        )
