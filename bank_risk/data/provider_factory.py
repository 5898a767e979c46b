"""Factory for creating the appropriate BankDataProvider."""

from __future__ import annotations

import logging
import os

from bank_risk.data.constants import BANK_SNAPSHOT_PATH_ENV
from bank_risk.data.interfaces import BankDataProvider
from bank_risk.data.static_params import StaticDataProvider

logger = logging.getLogger(__name__)


def create_provider(
    use_snapshot: bool = False,
    snapshot_path: str | None = None,
) -> BankDataProvider:
    """Create a data provider, selecting static or snapshot data.

    Parameters
    ----------
    use_snapshot : bool
        If True, attempt to create a ``SnapshotDataProvider``.
    snapshot_path : str | None
        JSON snapshot file.  Falls back to the ``BANK_SNAPSHOT_PATH``
        environment variable when not supplied.

    Returns
    -------
    BankDataProvider
        ``SnapshotDataProvider`` (with the static provider as fallback for
        banks it lacks) when requested and loadable, otherwise
        ``StaticDataProvider``.
    """
    if not use_snapshot:
        return StaticDataProvider()

    resolved_path = snapshot_path or os.environ.get(BANK_SNAPSHOT_PATH_ENV)
    if not resolved_path:
        logger.warning("Snapshot data requested but no snapshot path provided; using static data")
        return StaticDataProvider()

    from bank_risk.data.snapshot_provider import SnapshotDataProvider

    try:
        provider = SnapshotDataProvider(resolved_path, fallback=StaticDataProvider())
    except OSError:
        logger.warning("Could not read snapshot %s; using static data", resolved_path, exc_info=True)
        return StaticDataProvider()
    except ValueError:
        logger.warning("Malformed snapshot %s; using static data", resolved_path, exc_info=True)
        return StaticDataProvider()

    logger.info("Using bank snapshot %s", resolved_path)
    return provider
