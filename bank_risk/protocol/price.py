"""Oracle price inputs, price bias and margin requirement types."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from bank_risk.protocol.fixed_point import fixed_point_context, to_decimal


class PriceBias(Enum):
    """Which end of the confidence interval a valuation uses."""

    LOWEST = 0
    NONE = 1
    HIGHEST = 2


class MarginRequirementType(Enum):
    """Risk posture a valuation is computed under."""

    INITIAL = 0
    MAINTENANCE = 1
    EQUITY = 2


def is_weighted_price(margin_requirement_type: MarginRequirementType) -> bool:
    """Initial and maintenance checks value with the weighted price; equity uses realtime."""
    return margin_requirement_type in (
        MarginRequirementType.INITIAL,
        MarginRequirementType.MAINTENANCE,
    )


@dataclass(frozen=True)
class PriceWithConfidence:
    """A price with its confidence-adjusted bounds, USD per whole token."""

    price: Decimal
    confidence: Decimal
    lowest_price: Decimal
    highest_price: Decimal

    def __post_init__(self) -> None:
        for name in ("price", "confidence", "lowest_price", "highest_price"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @classmethod
    def from_confidence(
        cls, price: int | float | str | Decimal, confidence: int | float | str | Decimal
    ) -> PriceWithConfidence:
        """Build bounds as ``price -/+ confidence``."""
        p = to_decimal(price)
        c = to_decimal(confidence)
        with fixed_point_context():
            return cls(price=p, confidence=c, lowest_price=p - c, highest_price=p + c)


@dataclass(frozen=True)
class OraclePrice:
    """Resolved oracle price for one asset.

    Produced by the price-oracle collaborator. ``price_weighted`` is the
    time-weighted side (e.g. a Pyth EMA), ``price_realtime`` the latest.
    """

    price_realtime: PriceWithConfidence
    price_weighted: PriceWithConfidence
    timestamp: int = 0

    @classmethod
    def fixed(cls, price: int | float | str | Decimal, timestamp: int = 0) -> OraclePrice:
        """A price with zero confidence on both sides."""
        side = PriceWithConfidence.from_confidence(price, 0)
        return cls(price_realtime=side, price_weighted=side, timestamp=timestamp)


def get_price_with_confidence(oracle_price: OraclePrice, weighted: bool) -> PriceWithConfidence:
    return oracle_price.price_weighted if weighted else oracle_price.price_realtime
