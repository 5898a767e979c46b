"""Tests for bank config delta serialization."""

import json
from decimal import Decimal

import pytest
from solders.pubkey import Pubkey

from bank_risk.protocol.bank_config import AssetTag, OperationalState, OracleSetup, RiskTier
from bank_risk.protocol.config_opt import (
    BankConfigOpt,
    BankConfigOptRaw,
    InterestRateConfigOpt,
    OracleConfigOpt,
    OracleConfigOptRaw,
    deserialize_bank_config_opt,
    serialize_bank_config_opt,
)
from bank_risk.protocol.errors import InvalidEnumTagError
from bank_risk.protocol.fixed_point import WrappedI80F48

D = Decimal
ORACLE = Pubkey.from_string("H6ARHf6YXhGYeQfUzQNGk6rDNnLBQKrenN712K4AQJEG")


@pytest.fixture
def full_opt() -> BankConfigOpt:
    return BankConfigOpt(
        asset_weight_init=D("0.75"),
        asset_weight_maint=D("0.875"),
        liability_weight_init=D("1.25"),
        liability_weight_maint=D("1.125"),
        deposit_limit=D(1_000_000),
        borrow_limit=D(500_000),
        risk_tier=RiskTier.ISOLATED,
        total_asset_value_init_limit=D(250_000),
        asset_tag=AssetTag.STAKED,
        interest_rate_config=InterestRateConfigOpt(
            optimal_utilization_rate=D("0.75"),
            plateau_interest_rate=D("0.125"),
        ),
        operational_state=OperationalState.REDUCE_ONLY,
        oracle=OracleConfigOpt(setup=OracleSetup.SWITCHBOARD_PULL, keys=(ORACLE,)),
        oracle_max_age=120,
        permissionless_bad_debt_settlement=True,
        freeze_settings=False,
    )


class TestSerialize:
    def test_empty_delta(self) -> None:
        raw = serialize_bank_config_opt(BankConfigOpt())
        assert raw.asset_weight_init is None
        assert raw.deposit_limit is None
        assert raw.risk_tier is None
        assert raw.interest_rate_config is None
        assert raw.oracle is None
        assert raw.asset_tag == 0

    def test_weights_become_i80f48(self) -> None:
        raw = serialize_bank_config_opt(BankConfigOpt(asset_weight_init=D("0.75")))
        assert raw.asset_weight_init == WrappedI80F48(3 * 2**46)

    def test_zero_stays_zero(self) -> None:
        raw = serialize_bank_config_opt(
            BankConfigOpt(asset_weight_init=D(0), deposit_limit=D(0), oracle_max_age=0)
        )
        assert raw.asset_weight_init == WrappedI80F48(0)
        assert raw.deposit_limit == 0
        assert raw.oracle_max_age == 0

    def test_enum_tags(self, full_opt: BankConfigOpt) -> None:
        raw = serialize_bank_config_opt(full_opt)
        assert raw.risk_tier == {"isolated": {}}
        assert raw.operational_state == {"reduceOnly": {}}
        assert raw.oracle is not None
        assert raw.oracle.setup == {"switchboardPull": {}}
        assert raw.oracle.keys == (ORACLE,)
        assert raw.asset_tag == 2

    def test_partial_interest_rate_config(self, full_opt: BankConfigOpt) -> None:
        raw = serialize_bank_config_opt(full_opt)
        assert raw.interest_rate_config is not None
        assert raw.interest_rate_config.optimal_utilization_rate == WrappedI80F48(3 * 2**46)
        assert raw.interest_rate_config.max_interest_rate is None

    def test_weight_overflow(self) -> None:
        with pytest.raises(OverflowError):
            serialize_bank_config_opt(BankConfigOpt(asset_weight_init=D(2) ** 90))


class TestDeserialize:
    def test_full_delta_round_trips(self, full_opt: BankConfigOpt) -> None:
        assert deserialize_bank_config_opt(serialize_bank_config_opt(full_opt)) == full_opt

    def test_deposit_limit_only_round_trips(self) -> None:
        opt = BankConfigOpt(deposit_limit=D(5_000_000))
        raw = serialize_bank_config_opt(opt)
        assert raw.deposit_limit == 5_000_000
        assert raw.borrow_limit is None
        restored = deserialize_bank_config_opt(raw)
        assert restored.deposit_limit == D(5_000_000)
        assert restored == opt

    def test_absent_and_default_asset_tag_collapse(self) -> None:
        absent = serialize_bank_config_opt(BankConfigOpt())
        explicit_default = serialize_bank_config_opt(BankConfigOpt(asset_tag=AssetTag.DEFAULT))
        assert absent.asset_tag == explicit_default.asset_tag == 0
        assert deserialize_bank_config_opt(explicit_default).asset_tag is None

    def test_unknown_risk_tier(self) -> None:
        with pytest.raises(InvalidEnumTagError):
            deserialize_bank_config_opt(BankConfigOptRaw(risk_tier={"junior": {}}))

    def test_absent_oracle(self) -> None:
        assert deserialize_bank_config_opt(BankConfigOptRaw(oracle=None)).oracle is None

    def test_unknown_oracle_setup_reads_as_none(self) -> None:
        raw = BankConfigOptRaw(oracle=OracleConfigOptRaw(setup={"chainlinkV9": {}}, keys=(ORACLE,)))
        opt = deserialize_bank_config_opt(raw)
        assert opt.oracle == OracleConfigOpt(setup=OracleSetup.NONE, keys=(ORACLE,))


class TestJson:
    def test_json_form(self, full_opt: BankConfigOpt) -> None:
        obj = serialize_bank_config_opt(full_opt).to_json()
        assert obj["asset_weight_init"] == 3 * 2**46
        assert obj["deposit_limit"] == 1_000_000
        assert obj["oracle"] == {"setup": {"switchboardPull": {}}, "keys": [str(ORACLE)]}
        assert obj["interest_rate_config"]["max_interest_rate"] is None
        # must be plain JSON
        json.dumps(obj)

    def test_json_round_trip(self, full_opt: BankConfigOpt) -> None:
        raw = serialize_bank_config_opt(full_opt)
        assert BankConfigOptRaw.from_json(json.loads(json.dumps(raw.to_json()))) == raw

    def test_from_json_accepts_wrapped_objects(self) -> None:
        raw = BankConfigOptRaw.from_json({"asset_weight_init": {"value": 2**48}})
        assert raw.asset_weight_init == WrappedI80F48(2**48)
        assert raw.asset_tag == 0
