"""Shared factories for raw bank records."""

from typing import Any, Callable

import pytest
from solders.pubkey import Pubkey

from bank_risk.data.interfaces import BankConfigRaw, BankRaw, InterestRateConfigRaw
from bank_risk.protocol.bank import Bank
from bank_risk.protocol.fixed_point import WrappedI80F48

BANK_ADDRESS = Pubkey.from_string("2s37akK2eyBbp8DZgCm7RtsaEz8eJP3Nxd4urLHQv7yB")
MINT = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")
GROUP = Pubkey.from_string("4qp6Fx6tnZkY5Wropq9wUYgtFxXKwE6viZxFHg3rdAG8")
ORACLE = Pubkey.from_string("Gnt27xtC473ZT2Mw5u8wZ68Z3gULkSTb5DuxJy7eJotD")


def w(value: Any) -> WrappedI80F48:
    return WrappedI80F48.from_decimal(str(value))


def make_rate_config_raw(
    optimal: str = "0.75",
    plateau: str = "0.125",
    max_rate: str = "1",
    insurance_fee_fixed_apr: str = "0",
    insurance_ir_fee: str = "0",
    protocol_fixed_fee_apr: str = "0",
    protocol_ir_fee: str = "0",
) -> InterestRateConfigRaw:
    return InterestRateConfigRaw(
        optimal_utilization_rate=w(optimal),
        plateau_interest_rate=w(plateau),
        max_interest_rate=w(max_rate),
        insurance_fee_fixed_apr=w(insurance_fee_fixed_apr),
        insurance_ir_fee=w(insurance_ir_fee),
        protocol_fixed_fee_apr=w(protocol_fixed_fee_apr),
        protocol_ir_fee=w(protocol_ir_fee),
    )


def make_config_raw(**overrides: Any) -> BankConfigRaw:
    fields: dict[str, Any] = {
        "asset_weight_init": w("0.75"),
        "asset_weight_maint": w("0.875"),
        "liability_weight_init": w("1.25"),
        "liability_weight_maint": w("1.125"),
        "deposit_limit": 1_000_000_000,
        "borrow_limit": 1_000_000_000,
        "risk_tier": {"collateral": {}},
        "total_asset_value_init_limit": 0,
        "oracle_max_age": 60,
        "asset_tag": 0,
        "interest_rate_config": make_rate_config_raw(),
        "operational_state": {"operational": {}},
        "oracle_setup": {"pythLegacy": {}},
        "oracle_keys": (ORACLE,),
    }
    fields.update(overrides)
    return BankConfigRaw(**fields)


def make_bank_raw(**overrides: Any) -> BankRaw:
    fields: dict[str, Any] = {
        "mint": MINT,
        "mint_decimals": 6,
        "group": GROUP,
        "asset_share_value": w(1),
        "liability_share_value": w(1),
        "total_asset_shares": w(1000),
        "total_liability_shares": w(500),
        "last_update": 0,
        "config": make_config_raw(),
    }
    fields.update(overrides)
    return BankRaw(**fields)


@pytest.fixture
def bank_factory() -> Callable[..., Bank]:
    """Build a Bank from raw-field overrides; ``config`` may be a dict of config overrides."""

    def _make(**overrides: Any) -> Bank:
        config = overrides.pop("config", None)
        if isinstance(config, dict):
            overrides["config"] = make_config_raw(**config)
        elif config is not None:
            overrides["config"] = config
        return Bank.from_raw(BANK_ADDRESS, make_bank_raw(**overrides))

    return _make


@pytest.fixture
def bank_raw_factory() -> Callable[..., BankRaw]:
    return make_bank_raw


@pytest.fixture
def config_raw_factory() -> Callable[..., BankConfigRaw]:
    return make_config_raw
