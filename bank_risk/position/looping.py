"""Leveraged looping across a deposit bank and a borrow bank.

A loop deposits the principal, borrows against it, swaps the borrow into
the deposit asset and deposits again. The steady state is a total deposit
of ``principal * leverage`` funded by a single borrow.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import numpy as np
import pandas as pd

from bank_risk.protocol.bank import Bank
from bank_risk.protocol.errors import InvalidLeverageError
from bank_risk.protocol.fixed_point import fixed_point_context, to_decimal
from bank_risk.protocol.price import OraclePrice


@dataclass(frozen=True)
class MaxLeverage:
    max_leverage: float
    ltv: float


@dataclass(frozen=True)
class LoopingParams:
    """Amounts to reach a target leverage, in the deposit / borrow token units of the inputs."""

    borrow_amount: Decimal
    total_deposit_amount: Decimal
    principal: Decimal

    @property
    def additional_deposit_amount(self) -> Decimal:
        with fixed_point_context():
            return self.total_deposit_amount - self.principal


def compute_max_leverage(deposit_bank: Bank, borrow_bank: Bank) -> MaxLeverage:
    """Highest leverage the two banks' initial weights allow.

    ltv = deposit asset_weight_init / borrow liability_weight_init and
    max_leverage = 1 / (1 - ltv). Results are plain floats: an ltv of
    exactly 1 gives ``inf`` and an ltv above 1 gives a negative leverage.
    A zero liability weight gives an ltv of ``inf`` and a max leverage of
    ``-0.0``; when the asset weight is zero too, both are ``nan``.
    """
    asset_weight = deposit_bank.config.asset_weight_init
    liability_weight = borrow_bank.config.liability_weight_init
    with np.errstate(divide="ignore", invalid="ignore"):
        if liability_weight == 0:
            ltv = float(np.float64(float(asset_weight)) / np.float64(0.0))
        else:
            with fixed_point_context():
                ltv = float(asset_weight / liability_weight)
        max_leverage = np.float64(1.0) / (np.float64(1.0) - np.float64(ltv))
    return MaxLeverage(max_leverage=float(max_leverage), ltv=ltv)


def compute_looping_params(
    principal: Decimal | int | float | str,
    target_leverage: float,
    deposit_bank: Bank,
    borrow_bank: Bank,
    deposit_oracle_price: OraclePrice,
    borrow_oracle_price: OraclePrice,
) -> LoopingParams:
    """Borrow and total deposit needed to loop *principal* to *target_leverage*.

    The borrow is sized conservatively: the extra deposit is valued at the
    deposit asset's lowest weighted price and paid for at the borrow
    asset's highest weighted price.

    Raises:
        InvalidLeverageError: if the target is below 1 or above the banks'
            max leverage, or if the max leverage is undefined.
    """
    max_leverage = compute_max_leverage(deposit_bank, borrow_bank).max_leverage

    if target_leverage < 1:
        raise InvalidLeverageError(f"Target leverage {target_leverage} needs to be greater than 1")
    if np.isnan(max_leverage) or target_leverage > max_leverage:
        raise InvalidLeverageError(
            f"Target leverage {target_leverage} exceeds max leverage for banks {max_leverage}"
        )

    initial_collateral = to_decimal(principal)
    with fixed_point_context():
        total_deposit_amount = initial_collateral * to_decimal(target_leverage)
        additional_deposit_amount = total_deposit_amount - initial_collateral
        borrow_amount = (
            additional_deposit_amount
            * deposit_oracle_price.price_weighted.lowest_price
            / borrow_oracle_price.price_weighted.highest_price
        )

    return LoopingParams(
        borrow_amount=borrow_amount,
        total_deposit_amount=total_deposit_amount,
        principal=initial_collateral,
    )


def looping_table(
    principal: Decimal | int | float | str,
    deposit_bank: Bank,
    borrow_bank: Bank,
    deposit_oracle_price: OraclePrice,
    borrow_oracle_price: OraclePrice,
    n_points: int = 50,
    leverage_cap: float = 10.0,
) -> pd.DataFrame:
    """Looping amounts from 1x up to the max leverage.

    An unbounded max leverage (ltv >= 1) is capped at *leverage_cap*. When
    the max is below 1 or undefined no leverage is reachable and the table
    is empty.

    Returns:
        DataFrame with columns: target_leverage, total_deposit_amount,
        borrow_amount (floats).
    """
    max_leverage = compute_max_leverage(deposit_bank, borrow_bank).max_leverage
    if np.isinf(max_leverage):
        max_leverage = leverage_cap
    if np.isnan(max_leverage) or max_leverage < 1:
        return pd.DataFrame(columns=["target_leverage", "total_deposit_amount", "borrow_amount"])

    leverages = np.linspace(1.0, min(max_leverage, leverage_cap), n_points)
    totals = []
    borrows = []
    for leverage in leverages:
        params = compute_looping_params(
            principal,
            float(leverage),
            deposit_bank,
            borrow_bank,
            deposit_oracle_price,
            borrow_oracle_price,
        )
        totals.append(float(params.total_deposit_amount))
        borrows.append(float(params.borrow_amount))

    return pd.DataFrame(
        {
            "target_leverage": leverages,
            "total_deposit_amount": totals,
            "borrow_amount": borrows,
        }
    )
