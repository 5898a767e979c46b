"""Data provider reading decoded bank records from a JSON snapshot file.

Snapshot layout::

    {
      "banks": {
        "<bank address>": {"symbol": "SOL", ...BankRaw fields...}
      },
      "prices": {
        "<bank address>": {
          "price_realtime": {"price": "185.0", "confidence": "0.2"},
          "price_weighted": {"price": "184.5", "confidence": "0.1"},
          "timestamp": 1735689600
        }
      },
      "feed_id_map": {"<pyth feed id>": "<price update account>"}
    }

I80F48 fields are raw integers (or ``{"value": int}``); keys are base58.
"""

from __future__ import annotations

import json
import logging
from decimal import InvalidOperation
from pathlib import Path
from typing import Any, Mapping

from solders.pubkey import Pubkey

from bank_risk.data.interfaces import BankDataProvider, BankRaw
from bank_risk.protocol.price import OraclePrice, PriceWithConfidence

logger = logging.getLogger(__name__)


def _price_side_from_json(obj: Mapping[str, Any]) -> PriceWithConfidence:
    return PriceWithConfidence.from_confidence(str(obj["price"]), str(obj.get("confidence", "0")))


def oracle_price_from_json(obj: Mapping[str, Any]) -> OraclePrice:
    """Parse one ``prices`` entry; a missing weighted side reuses the realtime one."""
    realtime = _price_side_from_json(obj["price_realtime"])
    weighted_obj = obj.get("price_weighted")
    weighted = realtime if weighted_obj is None else _price_side_from_json(weighted_obj)
    return OraclePrice(
        price_realtime=realtime,
        price_weighted=weighted,
        timestamp=int(obj.get("timestamp", 0)),
    )


class SnapshotDataProvider(BankDataProvider):
    """Bank records and prices loaded once from a JSON snapshot.

    Parameters
    ----------
    path : str | Path
        Snapshot file.
    fallback : BankDataProvider | None
        Optional provider consulted for banks missing from the snapshot.

    Raises
    ------
    OSError
        If the file cannot be read.
    ValueError
        If the file is not valid JSON or a record is malformed.
    """

    def __init__(self, path: str | Path, fallback: BankDataProvider | None = None) -> None:
        self._path = Path(path)
        self._fallback = fallback

        with self._path.open(encoding="utf-8") as fh:
            data = json.load(fh)

        try:
            self._banks: dict[Pubkey, BankRaw] = {}
            self._symbols: dict[Pubkey, str] = {}
            for address, record in data.get("banks", {}).items():
                key = Pubkey.from_string(address)
                self._banks[key] = BankRaw.from_json(record)
                if record.get("symbol"):
                    self._symbols[key] = record["symbol"]

            self._prices: dict[Pubkey, OraclePrice] = {
                Pubkey.from_string(address): oracle_price_from_json(record)
                for address, record in data.get("prices", {}).items()
            }
            self._feed_id_map: dict[str, Pubkey] = {
                feed_id: Pubkey.from_string(account)
                for feed_id, account in data.get("feed_id_map", {}).items()
            }
        except (KeyError, TypeError, AttributeError, InvalidOperation, OverflowError) as exc:
            raise ValueError(f"Malformed bank snapshot {self._path}: {exc!r}") from exc

        logger.info(
            "Loaded %d banks and %d prices from %s",
            len(self._banks),
            len(self._prices),
            self._path,
        )

    def list_bank_addresses(self) -> list[Pubkey]:
        addresses = list(self._banks)
        if self._fallback is not None:
            addresses += [a for a in self._fallback.list_bank_addresses() if a not in self._banks]
        return addresses

    def get_bank_raw(self, address: Pubkey) -> BankRaw:
        raw = self._banks.get(address)
        if raw is not None:
            return raw
        if self._fallback is not None:
            logger.debug("Bank %s not in snapshot, using fallback", address)
            return self._fallback.get_bank_raw(address)
        raise KeyError(address)

    def get_oracle_price(self, address: Pubkey) -> OraclePrice:
        price = self._prices.get(address)
        if price is not None:
            return price
        if self._fallback is not None:
            return self._fallback.get_oracle_price(address)
        raise KeyError(address)

    def get_token_symbol(self, address: Pubkey) -> str | None:
        if address in self._symbols:
            return self._symbols[address]
        if self._fallback is not None:
            return self._fallback.get_token_symbol(address)
        return None

    def get_feed_id_map(self) -> dict[str, Pubkey]:
        return dict(self._feed_id_map)
