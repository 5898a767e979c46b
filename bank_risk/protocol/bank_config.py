"""Bank risk and operational configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Mapping

from solders.pubkey import Pubkey

from bank_risk.data.constants import DEFAULT_ORACLE_MAX_AGE
from bank_risk.data.interfaces import BankConfigRaw
from bank_risk.protocol.errors import InvalidEnumTagError
from bank_risk.protocol.interest_rate import InterestRateConfig

logger = logging.getLogger(__name__)


class RiskTier(str, Enum):
    COLLATERAL = "Collateral"
    # Isolated assets can be borrowed but never count as cross-collateral
    ISOLATED = "Isolated"


class OperationalState(str, Enum):
    PAUSED = "Paused"
    OPERATIONAL = "Operational"
    REDUCE_ONLY = "ReduceOnly"


class OracleSetup(str, Enum):
    NONE = "None"
    PYTH_LEGACY = "PythLegacy"
    SWITCHBOARD_V2 = "SwitchboardV2"
    PYTH_PUSH_ORACLE = "PythPushOracle"
    SWITCHBOARD_PULL = "SwitchboardPull"
    STAKED_WITH_PYTH_PUSH = "StakedWithPythPush"


class AssetTag(IntEnum):
    DEFAULT = 0
    SOL = 1
    STAKED = 2


# Anchor tag names (camelCase) per variant
_RISK_TIER_TAGS = {
    RiskTier.COLLATERAL: "collateral",
    RiskTier.ISOLATED: "isolated",
}
_OPERATIONAL_STATE_TAGS = {
    OperationalState.PAUSED: "paused",
    OperationalState.OPERATIONAL: "operational",
    OperationalState.REDUCE_ONLY: "reduceOnly",
}
_ORACLE_SETUP_TAGS = {
    OracleSetup.NONE: "none",
    OracleSetup.PYTH_LEGACY: "pythLegacy",
    OracleSetup.SWITCHBOARD_V2: "switchboardV2",
    OracleSetup.PYTH_PUSH_ORACLE: "pythPushOracle",
    OracleSetup.SWITCHBOARD_PULL: "switchboardPull",
    OracleSetup.STAKED_WITH_PYTH_PUSH: "stakedWithPythPush",
}


def _tag_name(raw: Mapping[str, Any] | str) -> str:
    """Lowercased variant name of an Anchor enum value or bare tag string."""
    if isinstance(raw, str):
        return raw.lower()
    if isinstance(raw, Mapping) and len(raw) == 1:
        return next(iter(raw)).lower()
    return ""


def parse_risk_tier(raw: Mapping[str, Any] | str) -> RiskTier:
    name = _tag_name(raw)
    for tier, tag in _RISK_TIER_TAGS.items():
        if name == tag.lower():
            return tier
    raise InvalidEnumTagError(f"Invalid risk tier {raw!r}")


def serialize_risk_tier(risk_tier: RiskTier) -> dict[str, dict]:
    if risk_tier not in _RISK_TIER_TAGS:
        raise InvalidEnumTagError(f"Invalid risk tier {risk_tier!r}")
    return {_RISK_TIER_TAGS[risk_tier]: {}}


def parse_operational_state(raw: Mapping[str, Any] | str) -> OperationalState:
    name = _tag_name(raw)
    for state, tag in _OPERATIONAL_STATE_TAGS.items():
        if name == tag.lower():
            return state
    raise InvalidEnumTagError(f"Invalid operational state {raw!r}")


def serialize_operational_state(operational_state: OperationalState) -> dict[str, dict]:
    if operational_state not in _OPERATIONAL_STATE_TAGS:
        raise InvalidEnumTagError(f"Invalid operational state {operational_state!r}")
    return {_OPERATIONAL_STATE_TAGS[operational_state]: {}}


def parse_oracle_setup(raw: Mapping[str, Any] | str) -> OracleSetup:
    """Normalize an oracle setup tag.

    Unknown tags map to ``OracleSetup.NONE`` so that banks configured with a
    newer oracle type still load.
    """
    name = _tag_name(raw)
    for setup, tag in _ORACLE_SETUP_TAGS.items():
        if name == tag.lower():
            return setup
    logger.warning("Unknown oracle setup %r, treating as None", raw)
    return OracleSetup.NONE


def serialize_oracle_setup(oracle_setup: OracleSetup) -> dict[str, dict]:
    if oracle_setup not in _ORACLE_SETUP_TAGS:
        raise InvalidEnumTagError(f"Invalid oracle setup {oracle_setup!r}")
    return {_ORACLE_SETUP_TAGS[oracle_setup]: {}}


def parse_asset_tag(raw: int) -> AssetTag:
    try:
        return AssetTag(raw)
    except ValueError:
        raise InvalidEnumTagError(f"Invalid asset tag {raw!r}") from None


@dataclass(frozen=True)
class BankConfig:
    """Immutable risk parameters of one bank.

    Weights are dimensionless multipliers (assets <= 1, liabilities >= 1 in
    practice). Limits are native token quantities. A
    ``total_asset_value_init_limit`` of 0 disables soft-limit dampening.
    """

    asset_weight_init: Decimal
    asset_weight_maint: Decimal
    liability_weight_init: Decimal
    liability_weight_maint: Decimal
    deposit_limit: Decimal
    borrow_limit: Decimal
    risk_tier: RiskTier
    total_asset_value_init_limit: Decimal
    asset_tag: AssetTag
    interest_rate_config: InterestRateConfig
    operational_state: OperationalState
    oracle_setup: OracleSetup
    oracle_keys: tuple[Pubkey, ...]
    oracle_max_age: int
    permissionless_bad_debt_settlement: bool = False
    freeze_settings: bool = False

    @property
    def is_soft_limit_disabled(self) -> bool:
        return self.total_asset_value_init_limit == 0

    @classmethod
    def from_raw(cls, raw: BankConfigRaw) -> BankConfig:
        """Normalize a decoded config.

        Raises:
            InvalidEnumTagError: on an unknown risk tier, operational state
                or asset tag.
        """
        oracle_max_age = raw.oracle_max_age
        if oracle_max_age == 0:
            logger.debug("Oracle max age is 0, using default of %ds", DEFAULT_ORACLE_MAX_AGE)
            oracle_max_age = DEFAULT_ORACLE_MAX_AGE

        return cls(
            asset_weight_init=raw.asset_weight_init.to_decimal(),
            asset_weight_maint=raw.asset_weight_maint.to_decimal(),
            liability_weight_init=raw.liability_weight_init.to_decimal(),
            liability_weight_maint=raw.liability_weight_maint.to_decimal(),
            deposit_limit=Decimal(raw.deposit_limit),
            borrow_limit=Decimal(raw.borrow_limit),
            risk_tier=parse_risk_tier(raw.risk_tier),
            total_asset_value_init_limit=Decimal(raw.total_asset_value_init_limit),
            asset_tag=parse_asset_tag(raw.asset_tag),
            interest_rate_config=InterestRateConfig.from_raw(raw.interest_rate_config),
            operational_state=parse_operational_state(raw.operational_state),
            oracle_setup=parse_oracle_setup(raw.oracle_setup),
            oracle_keys=tuple(raw.oracle_keys),
            oracle_max_age=oracle_max_age,
            permissionless_bad_debt_settlement=raw.permissionless_bad_debt_settlement,
            freeze_settings=raw.freeze_settings,
        )
