"""Kinked interest rate curve for a lending bank.

Below the optimal utilization the base rate climbs linearly from 0 to the
plateau rate; above it, linearly from the plateau to the max rate at 100%.
Borrowers additionally pay the insurance and protocol fees (a proportional
part and a fixed APR part); lenders earn the base rate scaled by
utilization.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import numpy as np
import pandas as pd

from bank_risk.data.interfaces import InterestRateConfigRaw
from bank_risk.protocol.fixed_point import ONE, ZERO, fixed_point_context, to_decimal


@dataclass(frozen=True)
class InterestRateConfig:
    """Curve parameters and fee add-ons, all annualized fractions."""

    optimal_utilization_rate: Decimal
    plateau_interest_rate: Decimal
    max_interest_rate: Decimal
    insurance_fee_fixed_apr: Decimal
    insurance_ir_fee: Decimal
    protocol_fixed_fee_apr: Decimal
    protocol_ir_fee: Decimal
    protocol_origination_fee: Decimal = ZERO

    @classmethod
    def from_raw(cls, raw: InterestRateConfigRaw) -> InterestRateConfig:
        return cls(
            optimal_utilization_rate=raw.optimal_utilization_rate.to_decimal(),
            plateau_interest_rate=raw.plateau_interest_rate.to_decimal(),
            max_interest_rate=raw.max_interest_rate.to_decimal(),
            insurance_fee_fixed_apr=raw.insurance_fee_fixed_apr.to_decimal(),
            insurance_ir_fee=raw.insurance_ir_fee.to_decimal(),
            protocol_fixed_fee_apr=raw.protocol_fixed_fee_apr.to_decimal(),
            protocol_ir_fee=raw.protocol_ir_fee.to_decimal(),
            protocol_origination_fee=raw.protocol_origination_fee.to_decimal(),
        )


@dataclass(frozen=True)
class InterestRates:
    lending_rate: Decimal
    borrowing_rate: Decimal


class InterestRateModel:
    """Evaluates the bank's rate curve at a given utilization."""

    def __init__(self, config: InterestRateConfig) -> None:
        self.config = config

    def base_interest_rate(self, utilization: Decimal | float) -> Decimal:
        """Base rate before fees.

        Args:
            utilization: Liabilities over assets; may exceed 1.

        Returns:
            Annual rate as a Decimal fraction (e.g. 0.05 = 5%).
        """
        c = self.config
        u = to_decimal(utilization)
        with fixed_point_context():
            if u <= c.optimal_utilization_rate:
                if c.optimal_utilization_rate == 0:
                    # u <= 0 here; the below-kink line is pinned at 0
                    return ZERO
                return u * c.plateau_interest_rate / c.optimal_utilization_rate
            if c.optimal_utilization_rate == ONE:
                # u > 1 with no room above the kink: the curve tops out
                return c.max_interest_rate
            excess = (u - c.optimal_utilization_rate) / (ONE - c.optimal_utilization_rate)
            return excess * (c.max_interest_rate - c.plateau_interest_rate) + c.plateau_interest_rate

    def interest_rates(self, utilization: Decimal | float) -> InterestRates:
        """Lending and borrowing APRs at *utilization*.

        lending   = base * u
        borrowing = base * (1 + insurance_ir_fee + protocol_ir_fee)
                    + insurance_fee_fixed_apr + protocol_fixed_fee_apr
        """
        c = self.config
        u = to_decimal(utilization)
        base = self.base_interest_rate(u)
        with fixed_point_context():
            fixed_fee = c.insurance_fee_fixed_apr + c.protocol_fixed_fee_apr
            rate_fee = c.insurance_ir_fee + c.protocol_ir_fee
            return InterestRates(
                lending_rate=base * u,
                borrowing_rate=base * (ONE + rate_fee) + fixed_fee,
            )

    def rate_curve(self, n_points: int = 200) -> pd.DataFrame:
        """Generate the full rate curve for plotting.

        Returns:
            DataFrame with columns: utilization, base_rate, lending_rate,
            borrowing_rate (floats).
        """
        utilizations = np.linspace(0, 1, n_points)
        base_rates = []
        lending_rates = []
        borrowing_rates = []
        for u in utilizations:
            rates = self.interest_rates(float(u))
            base_rates.append(float(self.base_interest_rate(float(u))))
            lending_rates.append(float(rates.lending_rate))
            borrowing_rates.append(float(rates.borrowing_rate))

        return pd.DataFrame(
            {
                "utilization": utilizations,
                "base_rate": base_rates,
                "lending_rate": lending_rates,
                "borrowing_rate": borrowing_rates,
            }
        )
