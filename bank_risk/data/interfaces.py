"""Raw bank records and the abstract data provider interface.

The raw records mirror the on-chain Bank account layout after decoding.
Decoding the account bytes is left to an account codec; these dataclasses
are what it is expected to produce (or what :meth:`BankRaw.from_json` reads
from a snapshot file).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from solders.pubkey import Pubkey

from bank_risk.protocol.fixed_point import WrappedI80F48
from bank_risk.protocol.price import OraclePrice

if TYPE_CHECKING:
    from bank_risk.protocol.bank import Bank

# Anchor-style enum value, e.g. {"collateral": {}}
EnumTag = Mapping[str, Any]


def _wrapped_from_json(obj: Any) -> WrappedI80F48:
    if isinstance(obj, Mapping):
        obj = obj["value"]
    return WrappedI80F48(int(obj))


def _pubkey_from_json(obj: Any) -> Pubkey:
    return obj if isinstance(obj, Pubkey) else Pubkey.from_string(obj)


@dataclass(frozen=True)
class InterestRateConfigRaw:
    """Interest rate curve and fee parameters, all I80F48."""

    optimal_utilization_rate: WrappedI80F48
    plateau_interest_rate: WrappedI80F48
    max_interest_rate: WrappedI80F48
    insurance_fee_fixed_apr: WrappedI80F48
    insurance_ir_fee: WrappedI80F48
    protocol_fixed_fee_apr: WrappedI80F48
    protocol_ir_fee: WrappedI80F48
    protocol_origination_fee: WrappedI80F48 = WrappedI80F48(0)

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> InterestRateConfigRaw:
        return cls(
            optimal_utilization_rate=_wrapped_from_json(obj["optimal_utilization_rate"]),
            plateau_interest_rate=_wrapped_from_json(obj["plateau_interest_rate"]),
            max_interest_rate=_wrapped_from_json(obj["max_interest_rate"]),
            insurance_fee_fixed_apr=_wrapped_from_json(obj["insurance_fee_fixed_apr"]),
            insurance_ir_fee=_wrapped_from_json(obj["insurance_ir_fee"]),
            protocol_fixed_fee_apr=_wrapped_from_json(obj["protocol_fixed_fee_apr"]),
            protocol_ir_fee=_wrapped_from_json(obj["protocol_ir_fee"]),
            protocol_origination_fee=_wrapped_from_json(obj.get("protocol_origination_fee", 0)),
        )


@dataclass(frozen=True)
class BankConfigRaw:
    """Decoded bank risk and operational configuration."""

    asset_weight_init: WrappedI80F48
    asset_weight_maint: WrappedI80F48
    liability_weight_init: WrappedI80F48
    liability_weight_maint: WrappedI80F48
    deposit_limit: int
    borrow_limit: int
    risk_tier: EnumTag
    total_asset_value_init_limit: int
    oracle_max_age: int
    asset_tag: int
    interest_rate_config: InterestRateConfigRaw
    operational_state: EnumTag
    oracle_setup: EnumTag
    oracle_keys: tuple[Pubkey, ...]
    permissionless_bad_debt_settlement: bool = False
    freeze_settings: bool = False

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> BankConfigRaw:
        return cls(
            asset_weight_init=_wrapped_from_json(obj["asset_weight_init"]),
            asset_weight_maint=_wrapped_from_json(obj["asset_weight_maint"]),
            liability_weight_init=_wrapped_from_json(obj["liability_weight_init"]),
            liability_weight_maint=_wrapped_from_json(obj["liability_weight_maint"]),
            deposit_limit=int(obj["deposit_limit"]),
            borrow_limit=int(obj["borrow_limit"]),
            risk_tier=obj["risk_tier"],
            total_asset_value_init_limit=int(obj.get("total_asset_value_init_limit", 0)),
            oracle_max_age=int(obj.get("oracle_max_age", 0)),
            asset_tag=int(obj.get("asset_tag", 0)),
            interest_rate_config=InterestRateConfigRaw.from_json(obj["interest_rate_config"]),
            operational_state=obj["operational_state"],
            oracle_setup=obj["oracle_setup"],
            oracle_keys=tuple(_pubkey_from_json(k) for k in obj.get("oracle_keys", [])),
            permissionless_bad_debt_settlement=bool(
                obj.get("permissionless_bad_debt_settlement", False)
            ),
            freeze_settings=bool(obj.get("freeze_settings", False)),
        )


@dataclass(frozen=True)
class BankRaw:
    """Decoded Bank account."""

    mint: Pubkey
    mint_decimals: int
    group: Pubkey
    asset_share_value: WrappedI80F48
    liability_share_value: WrappedI80F48
    total_asset_shares: WrappedI80F48
    total_liability_shares: WrappedI80F48
    last_update: int
    config: BankConfigRaw
    liquidity_vault: Pubkey = field(default_factory=Pubkey.default)
    liquidity_vault_bump: int = 0
    liquidity_vault_authority_bump: int = 0
    insurance_vault: Pubkey = field(default_factory=Pubkey.default)
    insurance_vault_bump: int = 0
    insurance_vault_authority_bump: int = 0
    collected_insurance_fees_outstanding: WrappedI80F48 = WrappedI80F48(0)
    fee_vault: Pubkey = field(default_factory=Pubkey.default)
    fee_vault_bump: int = 0
    fee_vault_authority_bump: int = 0
    collected_group_fees_outstanding: WrappedI80F48 = WrappedI80F48(0)
    flags: int = 0
    emissions_rate: int = 0
    emissions_mint: Pubkey = field(default_factory=Pubkey.default)
    # Older accounts predate emissions and decode without this field
    emissions_remaining: WrappedI80F48 | None = None

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> BankRaw:
        default_key = str(Pubkey.default())
        remaining = obj.get("emissions_remaining")
        return cls(
            mint=_pubkey_from_json(obj["mint"]),
            mint_decimals=int(obj["mint_decimals"]),
            group=_pubkey_from_json(obj["group"]),
            asset_share_value=_wrapped_from_json(obj["asset_share_value"]),
            liability_share_value=_wrapped_from_json(obj["liability_share_value"]),
            total_asset_shares=_wrapped_from_json(obj["total_asset_shares"]),
            total_liability_shares=_wrapped_from_json(obj["total_liability_shares"]),
            last_update=int(obj["last_update"]),
            config=BankConfigRaw.from_json(obj["config"]),
            liquidity_vault=_pubkey_from_json(obj.get("liquidity_vault", default_key)),
            liquidity_vault_bump=int(obj.get("liquidity_vault_bump", 0)),
            liquidity_vault_authority_bump=int(obj.get("liquidity_vault_authority_bump", 0)),
            insurance_vault=_pubkey_from_json(obj.get("insurance_vault", default_key)),
            insurance_vault_bump=int(obj.get("insurance_vault_bump", 0)),
            insurance_vault_authority_bump=int(obj.get("insurance_vault_authority_bump", 0)),
            collected_insurance_fees_outstanding=_wrapped_from_json(
                obj.get("collected_insurance_fees_outstanding", 0)
            ),
            fee_vault=_pubkey_from_json(obj.get("fee_vault", default_key)),
            fee_vault_bump=int(obj.get("fee_vault_bump", 0)),
            fee_vault_authority_bump=int(obj.get("fee_vault_authority_bump", 0)),
            collected_group_fees_outstanding=_wrapped_from_json(
                obj.get("collected_group_fees_outstanding", 0)
            ),
            flags=int(obj.get("flags", 0)),
            emissions_rate=int(obj.get("emissions_rate", 0)),
            emissions_mint=_pubkey_from_json(obj.get("emissions_mint", default_key)),
            emissions_remaining=None if remaining is None else _wrapped_from_json(remaining),
        )


class BankDataProvider(ABC):
    """Abstract source of decoded bank records and resolved oracle prices."""

    @abstractmethod
    def list_bank_addresses(self) -> list[Pubkey]:
        """Addresses of every bank this provider knows about."""

    @abstractmethod
    def get_bank_raw(self, address: Pubkey) -> BankRaw:
        """Get the decoded Bank account at *address*."""

    @abstractmethod
    def get_oracle_price(self, address: Pubkey) -> OraclePrice:
        """Get the resolved oracle price for the bank at *address*."""

    def get_token_symbol(self, address: Pubkey) -> str | None:
        """Display symbol for the bank's mint, if known."""
        return None

    def get_feed_id_map(self) -> dict[str, Pubkey]:
        """Pyth push feed id (base58) to price-update account mapping."""
        return {}

    def get_bank(self, address: Pubkey) -> Bank:
        """Build a :class:`Bank` from this provider's current snapshot."""
        from bank_risk.protocol.bank import Bank

        return Bank.from_raw(
            address,
            self.get_bank_raw(address),
            feed_id_map=self.get_feed_id_map(),
            token_symbol=self.get_token_symbol(address),
        )
