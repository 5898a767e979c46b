"""Partial bank configuration updates.

A ``BankConfigOpt`` names only the fields an admin wants to change; every
``None`` field is left unchanged on chain. ``BankConfigOptRaw`` is the same
delta in wire form (I80F48 weights, integer limits, Anchor enum tags).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from solders.pubkey import Pubkey

from bank_risk.data.interfaces import EnumTag, _pubkey_from_json, _wrapped_from_json
from bank_risk.protocol.bank_config import (
    AssetTag,
    OperationalState,
    OracleSetup,
    RiskTier,
    parse_asset_tag,
    parse_operational_state,
    parse_oracle_setup,
    parse_risk_tier,
    serialize_operational_state,
    serialize_oracle_setup,
    serialize_risk_tier,
)
from bank_risk.protocol.fixed_point import WrappedI80F48

_RATE_FIELDS = (
    "optimal_utilization_rate",
    "plateau_interest_rate",
    "max_interest_rate",
    "insurance_fee_fixed_apr",
    "insurance_ir_fee",
    "protocol_fixed_fee_apr",
    "protocol_ir_fee",
    "protocol_origination_fee",
)
_WEIGHT_FIELDS = (
    "asset_weight_init",
    "asset_weight_maint",
    "liability_weight_init",
    "liability_weight_maint",
)
_LIMIT_FIELDS = ("deposit_limit", "borrow_limit", "total_asset_value_init_limit")


# ----------------------------------------------------------------------
# Domain form
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class InterestRateConfigOpt:
    optimal_utilization_rate: Decimal | None = None
    plateau_interest_rate: Decimal | None = None
    max_interest_rate: Decimal | None = None
    insurance_fee_fixed_apr: Decimal | None = None
    insurance_ir_fee: Decimal | None = None
    protocol_fixed_fee_apr: Decimal | None = None
    protocol_ir_fee: Decimal | None = None
    protocol_origination_fee: Decimal | None = None


@dataclass(frozen=True)
class OracleConfigOpt:
    setup: OracleSetup
    keys: tuple[Pubkey, ...]


@dataclass(frozen=True)
class BankConfigOpt:
    asset_weight_init: Decimal | None = None
    asset_weight_maint: Decimal | None = None
    liability_weight_init: Decimal | None = None
    liability_weight_maint: Decimal | None = None
    deposit_limit: Decimal | None = None
    borrow_limit: Decimal | None = None
    risk_tier: RiskTier | None = None
    total_asset_value_init_limit: Decimal | None = None
    asset_tag: AssetTag | None = None
    interest_rate_config: InterestRateConfigOpt | None = None
    operational_state: OperationalState | None = None
    oracle: OracleConfigOpt | None = None
    oracle_max_age: int | None = None
    permissionless_bad_debt_settlement: bool | None = None
    freeze_settings: bool | None = None


# ----------------------------------------------------------------------
# Wire form
# ----------------------------------------------------------------------


def _wrapped_to_json(value: WrappedI80F48 | None) -> int | None:
    return None if value is None else value.value


def _optional_wrapped(obj: Any) -> WrappedI80F48 | None:
    return None if obj is None else _wrapped_from_json(obj)


def _optional_int(obj: Any) -> int | None:
    return None if obj is None else int(obj)


@dataclass(frozen=True)
class InterestRateConfigOptRaw:
    optimal_utilization_rate: WrappedI80F48 | None = None
    plateau_interest_rate: WrappedI80F48 | None = None
    max_interest_rate: WrappedI80F48 | None = None
    insurance_fee_fixed_apr: WrappedI80F48 | None = None
    insurance_ir_fee: WrappedI80F48 | None = None
    protocol_fixed_fee_apr: WrappedI80F48 | None = None
    protocol_ir_fee: WrappedI80F48 | None = None
    protocol_origination_fee: WrappedI80F48 | None = None

    def to_json(self) -> dict[str, Any]:
        return {name: _wrapped_to_json(getattr(self, name)) for name in _RATE_FIELDS}

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> InterestRateConfigOptRaw:
        return cls(**{name: _optional_wrapped(obj.get(name)) for name in _RATE_FIELDS})


@dataclass(frozen=True)
class OracleConfigOptRaw:
    setup: EnumTag
    keys: tuple[Pubkey, ...]

    def to_json(self) -> dict[str, Any]:
        return {"setup": dict(self.setup), "keys": [str(k) for k in self.keys]}

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> OracleConfigOptRaw:
        return cls(setup=obj["setup"], keys=tuple(_pubkey_from_json(k) for k in obj["keys"]))


@dataclass(frozen=True)
class BankConfigOptRaw:
    """Wire form of :class:`BankConfigOpt`.

    ``asset_tag`` is never null on the wire: 0 stands for both "unchanged"
    and ``AssetTag.DEFAULT``.
    """

    asset_weight_init: WrappedI80F48 | None = None
    asset_weight_maint: WrappedI80F48 | None = None
    liability_weight_init: WrappedI80F48 | None = None
    liability_weight_maint: WrappedI80F48 | None = None
    deposit_limit: int | None = None
    borrow_limit: int | None = None
    risk_tier: EnumTag | None = None
    total_asset_value_init_limit: int | None = None
    asset_tag: int = 0
    interest_rate_config: InterestRateConfigOptRaw | None = None
    operational_state: EnumTag | None = None
    oracle: OracleConfigOptRaw | None = None
    oracle_max_age: int | None = None
    permissionless_bad_debt_settlement: bool | None = None
    freeze_settings: bool | None = None

    def to_json(self) -> dict[str, Any]:
        """JSON-compatible dict: I80F48 as raw integers, keys as base58."""
        out: dict[str, Any] = {name: _wrapped_to_json(getattr(self, name)) for name in _WEIGHT_FIELDS}
        for name in _LIMIT_FIELDS:
            out[name] = getattr(self, name)
        out["risk_tier"] = None if self.risk_tier is None else dict(self.risk_tier)
        out["asset_tag"] = self.asset_tag
        out["interest_rate_config"] = (
            None if self.interest_rate_config is None else self.interest_rate_config.to_json()
        )
        out["operational_state"] = (
            None if self.operational_state is None else dict(self.operational_state)
        )
        out["oracle"] = None if self.oracle is None else self.oracle.to_json()
        out["oracle_max_age"] = self.oracle_max_age
        out["permissionless_bad_debt_settlement"] = self.permissionless_bad_debt_settlement
        out["freeze_settings"] = self.freeze_settings
        return out

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> BankConfigOptRaw:
        irc = obj.get("interest_rate_config")
        oracle = obj.get("oracle")
        return cls(
            **{name: _optional_wrapped(obj.get(name)) for name in _WEIGHT_FIELDS},
            **{name: _optional_int(obj.get(name)) for name in _LIMIT_FIELDS},
            risk_tier=obj.get("risk_tier"),
            asset_tag=int(obj.get("asset_tag") or 0),
            interest_rate_config=None if irc is None else InterestRateConfigOptRaw.from_json(irc),
            operational_state=obj.get("operational_state"),
            oracle=None if oracle is None else OracleConfigOptRaw.from_json(oracle),
            oracle_max_age=_optional_int(obj.get("oracle_max_age")),
            permissionless_bad_debt_settlement=obj.get("permissionless_bad_debt_settlement"),
            freeze_settings=obj.get("freeze_settings"),
        )


# ----------------------------------------------------------------------
# Conversion
# ----------------------------------------------------------------------


def _to_wrapped(value: Decimal | None) -> WrappedI80F48 | None:
    return None if value is None else WrappedI80F48.from_decimal(value)


def _to_int(value: Decimal | int | None) -> int | None:
    return None if value is None else int(value)


def _from_wrapped(value: WrappedI80F48 | None) -> Decimal | None:
    return None if value is None else value.to_decimal()


def _from_int(value: int | None) -> Decimal | None:
    return None if value is None else Decimal(value)


def serialize_bank_config_opt(opt: BankConfigOpt) -> BankConfigOptRaw:
    """Convert a config delta to wire form.

    ``None`` fields stay ``None``; zero values are sent as zero. An absent
    asset tag is sent as 0.

    Raises:
        OverflowError: if a weight or rate does not fit in I80F48.
    """
    irc = opt.interest_rate_config
    return BankConfigOptRaw(
        **{name: _to_wrapped(getattr(opt, name)) for name in _WEIGHT_FIELDS},
        **{name: _to_int(getattr(opt, name)) for name in _LIMIT_FIELDS},
        risk_tier=None if opt.risk_tier is None else serialize_risk_tier(opt.risk_tier),
        asset_tag=AssetTag.DEFAULT.value if opt.asset_tag is None else int(opt.asset_tag),
        interest_rate_config=(
            None
            if irc is None
            else InterestRateConfigOptRaw(
                **{name: _to_wrapped(getattr(irc, name)) for name in _RATE_FIELDS}
            )
        ),
        operational_state=(
            None
            if opt.operational_state is None
            else serialize_operational_state(opt.operational_state)
        ),
        oracle=(
            None
            if opt.oracle is None
            else OracleConfigOptRaw(
                setup=serialize_oracle_setup(opt.oracle.setup), keys=tuple(opt.oracle.keys)
            )
        ),
        oracle_max_age=opt.oracle_max_age,
        permissionless_bad_debt_settlement=opt.permissionless_bad_debt_settlement,
        freeze_settings=opt.freeze_settings,
    )


def deserialize_bank_config_opt(raw: BankConfigOptRaw) -> BankConfigOpt:
    """Inverse of :func:`serialize_bank_config_opt`.

    A wire asset tag of 0 reads back as ``None``.

    Raises:
        InvalidEnumTagError: on an unknown risk tier, operational state or
            asset tag.
    """
    irc = raw.interest_rate_config
    return BankConfigOpt(
        **{name: _from_wrapped(getattr(raw, name)) for name in _WEIGHT_FIELDS},
        **{name: _from_int(getattr(raw, name)) for name in _LIMIT_FIELDS},
        risk_tier=None if raw.risk_tier is None else parse_risk_tier(raw.risk_tier),
        asset_tag=None if raw.asset_tag == AssetTag.DEFAULT else parse_asset_tag(raw.asset_tag),
        interest_rate_config=(
            None
            if irc is None
            else InterestRateConfigOpt(
                **{name: _from_wrapped(getattr(irc, name)) for name in _RATE_FIELDS}
            )
        ),
        operational_state=(
            None if raw.operational_state is None else parse_operational_state(raw.operational_state)
        ),
        oracle=(
            None
            if raw.oracle is None
            else OracleConfigOpt(setup=parse_oracle_setup(raw.oracle.setup), keys=tuple(raw.oracle.keys))
        ),
        oracle_max_age=raw.oracle_max_age,
        permissionless_bad_debt_settlement=raw.permissionless_bad_debt_settlement,
        freeze_settings=raw.freeze_settings,
    )
