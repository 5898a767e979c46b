"""Tests for the JSON snapshot provider."""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest
from solders.pubkey import Pubkey

from bank_risk.data.snapshot_provider import SnapshotDataProvider, oracle_price_from_json
from bank_risk.data.static_params import USDC_BANK, StaticDataProvider
from bank_risk.protocol.bank_config import OracleSetup

ONE = 2**48

BANK = Pubkey.from_string("3vxLXJqLqF3JG5TCbYycbKWRBbCJQLxQmBGCkyqEEefL")
MINT = Pubkey.from_string("bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1")
GROUP = Pubkey.from_string("4qp6Fx6tnZkY5Wropq9wUYgtFxXKwE6viZxFHg3rdAG8")
FEED_ID = Pubkey.from_string("J83w4HKfqxwcq3BEMMkPFSppX3gqekLyLJBexebFVkix")
PRICE_UPDATE = Pubkey.from_string("7yyaeuJ1GGtVBLT2z2xub5ZWYKaNhF28mj1RdV4VDFVk")


def snapshot() -> dict[str, Any]:
    rate = {
        "optimal_utilization_rate": 3 * ONE // 4,
        "plateau_interest_rate": ONE // 8,
        "max_interest_rate": ONE,
        "insurance_fee_fixed_apr": 0,
        "insurance_ir_fee": 0,
        "protocol_fixed_fee_apr": 0,
        "protocol_ir_fee": 0,
    }
    config = {
        "asset_weight_init": {"value": 3 * ONE // 4},
        "asset_weight_maint": {"value": 7 * ONE // 8},
        "liability_weight_init": {"value": 5 * ONE // 4},
        "liability_weight_maint": {"value": 9 * ONE // 8},
        "deposit_limit": 10_000_000_000_000,
        "borrow_limit": 1_000_000_000_000,
        "risk_tier": {"collateral": {}},
        "interest_rate_config": rate,
        "operational_state": {"operational": {}},
        "oracle_setup": {"pythPushOracle": {}},
        "oracle_keys": [str(FEED_ID)],
    }
    return {
        "banks": {
            str(BANK): {
                "symbol": "bSOL",
                "mint": str(MINT),
                "mint_decimals": 9,
                "group": str(GROUP),
                "asset_share_value": ONE,
                "liability_share_value": ONE,
                "total_asset_shares": 1000 * ONE,
                "total_liability_shares": 250 * ONE,
                "last_update": 1_735_689_600,
                "flags": 1,
                "config": config,
            }
        },
        "prices": {
            str(BANK): {
                "price_realtime": {"price": "200", "confidence": "0.5"},
                "price_weighted": {"price": "199", "confidence": "0.25"},
                "timestamp": 1_735_689_600,
            }
        },
        "feed_id_map": {str(FEED_ID): str(PRICE_UPDATE)},
    }


@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    path = tmp_path / "banks.json"
    path.write_text(json.dumps(snapshot()))
    return path


class TestSnapshotDataProvider:
    def test_loads_bank(self, snapshot_path: Path) -> None:
        provider = SnapshotDataProvider(snapshot_path)
        assert provider.list_bank_addresses() == [BANK]
        bank = provider.get_bank(BANK)
        assert bank.mint == MINT
        assert bank.token_symbol == "bSOL"
        assert bank.get_total_asset_quantity() == Decimal(1000)
        assert bank.compute_utilization_rate() == Decimal("0.25")
        assert bank.emissions_active_borrowing

    def test_resolves_push_oracle_through_feed_map(self, snapshot_path: Path) -> None:
        bank = SnapshotDataProvider(snapshot_path).get_bank(BANK)
        assert bank.config.oracle_setup is OracleSetup.PYTH_PUSH_ORACLE
        assert bank.oracle_key == PRICE_UPDATE

    def test_oracle_price(self, snapshot_path: Path) -> None:
        price = SnapshotDataProvider(snapshot_path).get_oracle_price(BANK)
        assert price.price_realtime.lowest_price == Decimal("199.5")
        assert price.price_weighted.highest_price == Decimal("199.25")
        assert price.timestamp == 1_735_689_600

    def test_missing_weighted_side_reuses_realtime(self) -> None:
        price = oracle_price_from_json({"price_realtime": {"price": "3"}})
        assert price.price_weighted == price.price_realtime

    def test_unknown_bank_without_fallback(self, snapshot_path: Path) -> None:
        with pytest.raises(KeyError):
            SnapshotDataProvider(snapshot_path).get_bank_raw(USDC_BANK)

    def test_fallback_for_missing_banks(self, snapshot_path: Path) -> None:
        provider = SnapshotDataProvider(snapshot_path, fallback=StaticDataProvider())
        assert USDC_BANK in provider.list_bank_addresses()
        assert provider.get_bank(USDC_BANK).token_symbol == "USDC"

    def test_logs_load(self, snapshot_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="bank_risk.data.snapshot_provider"):
            SnapshotDataProvider(snapshot_path)
        assert "Loaded 1 banks" in caplog.text

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            SnapshotDataProvider(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            SnapshotDataProvider(path)

    def test_malformed_record(self, tmp_path: Path) -> None:
        data = snapshot()
        del data["banks"][str(BANK)]["config"]
        path = tmp_path / "malformed.json"
        path.write_text(json.dumps(data))
        with pytest.raises(ValueError, match="Malformed"):
            SnapshotDataProvider(path)

    def test_out_of_range_fixed_point(self, tmp_path: Path) -> None:
        data = snapshot()
        data["banks"][str(BANK)]["asset_share_value"] = 2**200
        path = tmp_path / "overflow.json"
        path.write_text(json.dumps(data))
        with pytest.raises(ValueError, match="Malformed"):
            SnapshotDataProvider(path)
