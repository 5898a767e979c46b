"""Tests for provider selection."""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from bank_risk.data.provider_factory import create_provider
from bank_risk.data.snapshot_provider import SnapshotDataProvider
from bank_risk.data.static_params import StaticDataProvider


@pytest.fixture
def empty_snapshot(tmp_path: Path) -> Path:
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"banks": {}, "prices": {}}))
    return path


class TestCreateProvider:
    def test_static_by_default(self) -> None:
        assert isinstance(create_provider(), StaticDataProvider)

    def test_snapshot_from_argument(self, empty_snapshot: Path) -> None:
        provider = create_provider(use_snapshot=True, snapshot_path=str(empty_snapshot))
        assert isinstance(provider, SnapshotDataProvider)

    def test_snapshot_from_environment(self, empty_snapshot: Path) -> None:
        with patch.dict("os.environ", {"BANK_SNAPSHOT_PATH": str(empty_snapshot)}):
            provider = create_provider(use_snapshot=True)
        assert isinstance(provider, SnapshotDataProvider)

    def test_snapshot_falls_back_to_static_banks(self, empty_snapshot: Path) -> None:
        provider = create_provider(use_snapshot=True, snapshot_path=str(empty_snapshot))
        static_banks = StaticDataProvider().list_bank_addresses()
        assert provider.list_bank_addresses() == static_banks

    def test_no_path_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        with patch.dict("os.environ", {}, clear=True):
            with caplog.at_level(logging.WARNING):
                provider = create_provider(use_snapshot=True)
        assert isinstance(provider, StaticDataProvider)
        assert "no snapshot path" in caplog.text

    def test_missing_file_falls_back(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            provider = create_provider(use_snapshot=True, snapshot_path=str(tmp_path / "nope.json"))
        assert isinstance(provider, StaticDataProvider)
        assert "Could not read snapshot" in caplog.text

    def test_malformed_file_falls_back(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        path = tmp_path / "bad.json"
        path.write_text("[1, 2")
        with caplog.at_level(logging.WARNING):
            provider = create_provider(use_snapshot=True, snapshot_path=str(path))
        assert isinstance(provider, StaticDataProvider)
        assert "Malformed snapshot" in caplog.text

    def test_argument_overrides_environment(self, empty_snapshot: Path, tmp_path: Path) -> None:
        with patch.dict("os.environ", {"BANK_SNAPSHOT_PATH": str(tmp_path / "nope.json")}):
            provider = create_provider(use_snapshot=True, snapshot_path=str(empty_snapshot))
        assert isinstance(provider, SnapshotDataProvider)

    def test_out_of_range_snapshot_falls_back(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        bank = {
            "mint": "bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1",
            "mint_decimals": 9,
            "group": "4qp6Fx6tnZkY5Wropq9wUYgtFxXKwE6viZxFHg3rdAG8",
            "asset_share_value": 2**200,
        }
        path = tmp_path / "overflow.json"
        address = "3vxLXJqLqF3JG5TCbYycbKWRBbCJQLxQmBGCkyqEEefL"
        path.write_text(json.dumps({"banks": {address: bank}}))
        with caplog.at_level(logging.WARNING):
            provider = create_provider(use_snapshot=True, snapshot_path=str(path))
        assert isinstance(provider, StaticDataProvider)
        assert "Malformed snapshot" in caplog.text
