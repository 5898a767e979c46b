"""Bank state and the derived quantities computed from it.

A Bank is one lending pool. Depositors and borrowers hold shares; share
values convert shares to native token quantities and grow as interest
accrues on chain. Everything here is a read-time projection of a decoded
snapshot: a Bank never changes after construction, a new snapshot means a
new Bank.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Mapping

import pandas as pd
from solders.pubkey import Pubkey

from bank_risk.data.constants import (
    EMISSIONS_FLAG_BORROW_ACTIVE,
    EMISSIONS_FLAG_LENDING_ACTIVE,
    SECONDS_PER_YEAR,
)
from bank_risk.data.interfaces import BankRaw
from bank_risk.data.oracle_keys import find_oracle_key
from bank_risk.protocol.bank_config import BankConfig
from bank_risk.protocol.errors import InvalidMarginRequirementTypeError
from bank_risk.protocol.fixed_point import (
    ONE,
    ZERO,
    fixed_point_context,
    native_to_ui,
    to_decimal,
)
from bank_risk.protocol.interest_rate import InterestRateModel, InterestRates
from bank_risk.protocol.price import (
    MarginRequirementType,
    OraclePrice,
    PriceBias,
    get_price_with_confidence,
    is_weighted_price,
)

logger = logging.getLogger(__name__)

OracleKeyResolver = Callable[[BankConfig, Mapping[str, Pubkey]], Pubkey]


@dataclass(frozen=True)
class RemainingCapacity:
    """Native quantities that can still be deposited / borrowed. May be negative."""

    deposit_capacity: Decimal
    borrow_capacity: Decimal


def _format_ltv(liability_weight: Decimal) -> str:
    """Percent LTV implied by a liability weight; a zero weight is unbounded."""
    if liability_weight == 0:
        return "inf"
    with fixed_point_context():
        return f"{ONE / liability_weight * 100:.2f}"


def _check_margin_type(margin_requirement_type: MarginRequirementType) -> None:
    if not isinstance(margin_requirement_type, MarginRequirementType):
        raise InvalidMarginRequirementTypeError(
            f"Invalid margin requirement type {margin_requirement_type!r}"
        )


@dataclass(frozen=True)
class Bank:
    address: Pubkey
    mint: Pubkey
    mint_decimals: int
    group: Pubkey

    asset_share_value: Decimal
    liability_share_value: Decimal

    liquidity_vault: Pubkey
    liquidity_vault_bump: int
    liquidity_vault_authority_bump: int

    insurance_vault: Pubkey
    insurance_vault_bump: int
    insurance_vault_authority_bump: int
    collected_insurance_fees_outstanding: Decimal

    fee_vault: Pubkey
    fee_vault_bump: int
    fee_vault_authority_bump: int
    collected_group_fees_outstanding: Decimal

    last_update: int

    config: BankConfig

    total_asset_shares: Decimal
    total_liability_shares: Decimal

    emissions_active_borrowing: bool
    emissions_active_lending: bool
    emissions_rate: int
    emissions_mint: Pubkey
    emissions_remaining: Decimal

    oracle_key: Pubkey
    token_symbol: str | None = None
    oracle_key_resolver: OracleKeyResolver = field(
        default=find_oracle_key, repr=False, compare=False
    )

    @classmethod
    def from_raw(
        cls,
        address: Pubkey,
        raw: BankRaw,
        feed_id_map: Mapping[str, Pubkey] | None = None,
        token_symbol: str | None = None,
        oracle_key_resolver: OracleKeyResolver = find_oracle_key,
    ) -> Bank:
        """Build a Bank from a decoded account.

        Args:
            address: The bank account address.
            raw: Decoded account.
            feed_id_map: Pyth push feed id to price account, used to resolve
                the oracle key of push-oracle banks.
            token_symbol: Optional display symbol for the mint.
            oracle_key_resolver: Strategy mapping the config's oracle binding
                to the price account. Called once, here.
        """
        config = BankConfig.from_raw(raw.config)
        oracle_key = oracle_key_resolver(config, feed_id_map or {})

        bank = cls(
            address=address,
            mint=raw.mint,
            mint_decimals=raw.mint_decimals,
            group=raw.group,
            asset_share_value=raw.asset_share_value.to_decimal(),
            liability_share_value=raw.liability_share_value.to_decimal(),
            liquidity_vault=raw.liquidity_vault,
            liquidity_vault_bump=raw.liquidity_vault_bump,
            liquidity_vault_authority_bump=raw.liquidity_vault_authority_bump,
            insurance_vault=raw.insurance_vault,
            insurance_vault_bump=raw.insurance_vault_bump,
            insurance_vault_authority_bump=raw.insurance_vault_authority_bump,
            collected_insurance_fees_outstanding=raw.collected_insurance_fees_outstanding.to_decimal(),
            fee_vault=raw.fee_vault,
            fee_vault_bump=raw.fee_vault_bump,
            fee_vault_authority_bump=raw.fee_vault_authority_bump,
            collected_group_fees_outstanding=raw.collected_group_fees_outstanding.to_decimal(),
            last_update=int(raw.last_update),
            config=config,
            total_asset_shares=raw.total_asset_shares.to_decimal(),
            total_liability_shares=raw.total_liability_shares.to_decimal(),
            emissions_active_borrowing=bool(raw.flags & EMISSIONS_FLAG_BORROW_ACTIVE),
            emissions_active_lending=bool(raw.flags & EMISSIONS_FLAG_LENDING_ACTIVE),
            emissions_rate=raw.emissions_rate,
            emissions_mint=raw.emissions_mint,
            emissions_remaining=(
                ZERO if raw.emissions_remaining is None else raw.emissions_remaining.to_decimal()
            ),
            oracle_key=oracle_key,
            token_symbol=token_symbol,
            oracle_key_resolver=oracle_key_resolver,
        )
        logger.debug("Loaded bank %s (mint %s)", address, raw.mint)
        return bank

    def refresh(self, raw: BankRaw, feed_id_map: Mapping[str, Pubkey] | None = None) -> Bank:
        """Return a new Bank for a newer snapshot of the same account."""
        return Bank.from_raw(
            self.address,
            raw,
            feed_id_map,
            token_symbol=self.token_symbol,
            oracle_key_resolver=self.oracle_key_resolver,
        )

    # ------------------------------------------------------------------
    # Shares and quantities
    # ------------------------------------------------------------------

    def get_total_asset_quantity(self) -> Decimal:
        with fixed_point_context():
            return self.total_asset_shares * self.asset_share_value

    def get_total_liability_quantity(self) -> Decimal:
        with fixed_point_context():
            return self.total_liability_shares * self.liability_share_value

    def get_asset_quantity(self, asset_shares: Decimal) -> Decimal:
        with fixed_point_context():
            return to_decimal(asset_shares) * self.asset_share_value

    def get_liability_quantity(self, liability_shares: Decimal) -> Decimal:
        with fixed_point_context():
            return to_decimal(liability_shares) * self.liability_share_value

    def get_asset_shares(self, asset_quantity: Decimal) -> Decimal:
        """Shares for a quantity.

        Multiplies by the share value like :meth:`get_asset_quantity` does,
        rather than dividing. Existing callers pass pre-scaled amounts and
        rely on this.
        """
        with fixed_point_context():
            return to_decimal(asset_quantity) * self.asset_share_value

    def get_liability_shares(self, liability_quantity: Decimal) -> Decimal:
        """Shares for a quantity; multiplies, see :meth:`get_asset_shares`."""
        with fixed_point_context():
            return to_decimal(liability_quantity) * self.liability_share_value

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def get_price(
        self,
        oracle_price: OraclePrice,
        price_bias: PriceBias = PriceBias.NONE,
        weighted_price: bool = False,
    ) -> Decimal:
        price = get_price_with_confidence(oracle_price, weighted_price)
        if price_bias is PriceBias.LOWEST:
            return price.lowest_price
        if price_bias is PriceBias.HIGHEST:
            return price.highest_price
        if price_bias is PriceBias.NONE:
            return price.price
        raise ValueError(f"Invalid price bias {price_bias!r}")

    def compute_usd_value(
        self,
        oracle_price: OraclePrice,
        quantity: Decimal,
        price_bias: PriceBias,
        weighted_price: bool,
        weight: int | float | str | Decimal | None = None,
        scale_to_base: bool = True,
    ) -> Decimal:
        """USD value of a native quantity.

        value = quantity * price * weight / 10^decimals, where the scaling
        is skipped when *scale_to_base* is False and a missing weight is 1.
        """
        price = self.get_price(oracle_price, price_bias, weighted_price)
        with fixed_point_context():
            value = to_decimal(quantity) * price * (ONE if weight is None else to_decimal(weight))
            if scale_to_base:
                value = value / (Decimal(10) ** self.mint_decimals)
            return value

    def compute_quantity_from_usd_value(
        self,
        oracle_price: OraclePrice,
        usd_value: Decimal,
        price_bias: PriceBias,
        weighted_price: bool,
    ) -> Decimal:
        price = self.get_price(oracle_price, price_bias, weighted_price)
        with fixed_point_context():
            return to_decimal(usd_value) / price

    def compute_asset_usd_value(
        self,
        oracle_price: OraclePrice,
        asset_shares: Decimal,
        margin_requirement_type: MarginRequirementType,
        price_bias: PriceBias,
    ) -> Decimal:
        asset_quantity = self.get_asset_quantity(asset_shares)
        asset_weight = self.get_asset_weight(margin_requirement_type, oracle_price)
        is_weighted = is_weighted_price(margin_requirement_type)
        return self.compute_usd_value(oracle_price, asset_quantity, price_bias, is_weighted, asset_weight)

    def compute_liability_usd_value(
        self,
        oracle_price: OraclePrice,
        liability_shares: Decimal,
        margin_requirement_type: MarginRequirementType,
        price_bias: PriceBias,
    ) -> Decimal:
        liability_quantity = self.get_liability_quantity(liability_shares)
        liability_weight = self.get_liability_weight(margin_requirement_type)
        is_weighted = is_weighted_price(margin_requirement_type)
        return self.compute_usd_value(
            oracle_price, liability_quantity, price_bias, is_weighted, liability_weight
        )

    def compute_tvl(self, oracle_price: OraclePrice) -> Decimal:
        """Total deposits minus total borrows, in USD at the midpoint price."""
        assets = self.compute_asset_usd_value(
            oracle_price, self.total_asset_shares, MarginRequirementType.EQUITY, PriceBias.NONE
        )
        liabilities = self.compute_liability_usd_value(
            oracle_price, self.total_liability_shares, MarginRequirementType.EQUITY, PriceBias.NONE
        )
        with fixed_point_context():
            return assets - liabilities

    # ------------------------------------------------------------------
    # Risk weights
    # ------------------------------------------------------------------

    def get_asset_weight(
        self,
        margin_requirement_type: MarginRequirementType,
        oracle_price: OraclePrice,
        ignore_soft_limits: bool = False,
    ) -> Decimal:
        """Asset weight for a margin requirement type.

        Initial weight is scaled down by limit / total once the bank's whole
        collateral (equity value at the lowest price) exceeds
        ``total_asset_value_init_limit``. Maintenance weight is never scaled.
        """
        _check_margin_type(margin_requirement_type)

        if margin_requirement_type is MarginRequirementType.INITIAL:
            if ignore_soft_limits or self.config.is_soft_limit_disabled:
                return self.config.asset_weight_init
            total_bank_collateral_value = self.compute_asset_usd_value(
                oracle_price,
                self.total_asset_shares,
                MarginRequirementType.EQUITY,
                PriceBias.LOWEST,
            )
            if total_bank_collateral_value > self.config.total_asset_value_init_limit:
                with fixed_point_context():
                    return (
                        self.config.total_asset_value_init_limit
                        / total_bank_collateral_value
                        * self.config.asset_weight_init
                    )
            return self.config.asset_weight_init
        if margin_requirement_type is MarginRequirementType.MAINTENANCE:
            return self.config.asset_weight_maint
        return ONE

    def get_liability_weight(self, margin_requirement_type: MarginRequirementType) -> Decimal:
        _check_margin_type(margin_requirement_type)

        if margin_requirement_type is MarginRequirementType.INITIAL:
            return self.config.liability_weight_init
        if margin_requirement_type is MarginRequirementType.MAINTENANCE:
            return self.config.liability_weight_maint
        return ONE

    # ------------------------------------------------------------------
    # Interest rates
    # ------------------------------------------------------------------

    @property
    def interest_rate_model(self) -> InterestRateModel:
        return InterestRateModel(self.config.interest_rate_config)

    def compute_utilization_rate(self) -> Decimal:
        assets = self.get_total_asset_quantity()
        liabilities = self.get_total_liability_quantity()
        if assets == 0:
            return ZERO
        with fixed_point_context():
            return liabilities / assets

    def compute_base_interest_rate(self) -> Decimal:
        return self.interest_rate_model.base_interest_rate(self.compute_utilization_rate())

    def compute_interest_rates(self) -> InterestRates:
        return self.interest_rate_model.interest_rates(self.compute_utilization_rate())

    def rate_curve(self, n_points: int = 200) -> pd.DataFrame:
        return self.interest_rate_model.rate_curve(n_points)

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------

    def compute_remaining_capacity(self, now: float | None = None) -> RemainingCapacity:
        """Deposit and borrow headroom under the bank's limits.

        Interest accrued since ``last_update`` is not yet reflected in the
        share values, so twice the projected interest is held back from each
        side.

        Args:
            now: Unix seconds to project interest to. Defaults to the
                current time.
        """
        if now is None:
            now = time.time()

        total_deposits = self.get_total_asset_quantity()
        total_borrows = self.get_total_liability_quantity()
        rates = self.compute_interest_rates()

        with fixed_point_context():
            remaining_deposit = max(ZERO, self.config.deposit_limit - total_deposits)
            remaining_borrow = max(ZERO, self.config.borrow_limit - total_borrows)

            elapsed = to_decimal(now) - self.last_update
            seconds_per_year = to_decimal(SECONDS_PER_YEAR)

            outstanding_lending_interest = (
                rates.lending_rate * elapsed / seconds_per_year * total_deposits
            )
            outstanding_borrow_interest = (
                rates.borrowing_rate * elapsed / seconds_per_year * total_borrows
            )

            return RemainingCapacity(
                deposit_capacity=remaining_deposit - outstanding_lending_interest * 2,
                borrow_capacity=remaining_borrow - outstanding_borrow_interest * 2,
            )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def describe(self, oracle_price: OraclePrice) -> str:
        """Human-readable summary of the bank at *oracle_price*."""
        c = self.config
        total_assets_usd = self.compute_asset_usd_value(
            oracle_price, self.total_asset_shares, MarginRequirementType.EQUITY, PriceBias.NONE
        )
        total_liabilities_usd = self.compute_liability_usd_value(
            oracle_price, self.total_liability_shares, MarginRequirementType.EQUITY, PriceBias.NONE
        )
        ltv_init = _format_ltv(c.liability_weight_init)
        ltv_maint = _format_ltv(c.liability_weight_maint)

        return f"""
Bank address: {self.address}
Mint: {self.mint}, decimals: {self.mint_decimals}

Total deposits: {native_to_ui(self.get_total_asset_quantity(), self.mint_decimals)}
Total borrows: {native_to_ui(self.get_total_liability_quantity(), self.mint_decimals)}

Total assets (USD value): {total_assets_usd}
Total liabilities (USD value): {total_liabilities_usd}

Asset price (USD): {self.get_price(oracle_price, PriceBias.NONE, False)}
Asset price Weighted (USD): {self.get_price(oracle_price, PriceBias.NONE, True)}

Config:
- Asset weight init: {c.asset_weight_init:.2f}
- Asset weight maint: {c.asset_weight_maint:.2f}
- Liability weight init: {c.liability_weight_init:.2f}
- Liability weight maint: {c.liability_weight_maint:.2f}

- Deposit limit: {c.deposit_limit}
- Borrow limit: {c.borrow_limit}

LTVs:
- Initial: {ltv_init}%
- Maintenance: {ltv_maint}%
"""
