"""Default resolver from a bank's oracle binding to its price account."""

from __future__ import annotations

from typing import Mapping

from solders.pubkey import Pubkey

from bank_risk.protocol.bank_config import BankConfig, OracleSetup
from bank_risk.protocol.errors import OracleKeyNotFoundError

# Setups whose first oracle key is a Pyth feed id rather than an account
_FEED_ID_SETUPS = (OracleSetup.PYTH_PUSH_ORACLE, OracleSetup.STAKED_WITH_PYTH_PUSH)


def find_oracle_key(
    config: BankConfig,
    feed_id_map: Mapping[str, Pubkey] | None = None,
) -> Pubkey:
    """Resolve the primary oracle account for a bank.

    For Pyth push setups the first key is a feed id and is looked up in
    *feed_id_map* (keyed by base58 feed id). Every other setup uses the
    first oracle key directly; a bank without keys resolves to the default
    (all-zero) key.

    Raises:
        OracleKeyNotFoundError: if a Pyth push feed id has no mapping.
    """
    if not config.oracle_keys:
        return Pubkey.default()

    first_key = config.oracle_keys[0]
    if config.oracle_setup in _FEED_ID_SETUPS:
        oracle_key = (feed_id_map or {}).get(str(first_key))
        if oracle_key is None:
            raise OracleKeyNotFoundError(f"No oracle key found for feed id {first_key}")
        return oracle_key
    return first_key
