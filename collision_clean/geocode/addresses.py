"""Cross-street address consolidation and the address file sent for geocoding."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from collision_clean.common.constants import CROSS_STREET_SEPARATOR, MISSING_ADDRESS
from collision_clean.common.fs import write_csv_frame

ADDRESS_EXPORT_COLUMNS = ["case_id", "cross_street", "city", "state"]


def _join_roads(primary: str | None, secondary: str | None) -> str | None:
    parts = [road for road in (primary, secondary) if isinstance(road, str) and road.strip()]
    if not parts:
        return None
    return CROSS_STREET_SEPARATOR.join(part.strip() for part in parts)


def consolidate_addresses(frame: pd.DataFrame, *, city: str, state: str) -> pd.DataFrame:
    """Add ``cross_street``, ``city``, ``state`` and ``address_status`` columns.

    Records with neither road are kept and flagged ``MISSING_ADDRESS``; they
    have no ``cross_street`` and are left out of geocoding requests.
    """
    out = frame.copy()
    out["cross_street"] = [
        _join_roads(primary, secondary)
        for primary, secondary in zip(out["primary_road"], out["secondary_road"])
    ]
    out["city"] = city
    out["state"] = state
    out["address_status"] = out["cross_street"].isna().map({True: MISSING_ADDRESS, False: "OK"})
    return out


def geocodable(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.loc[frame["address_status"] != MISSING_ADDRESS, ADDRESS_EXPORT_COLUMNS]


def flagged(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.loc[frame["address_status"] == MISSING_ADDRESS]


def export_geocode_addresses(
    frame: pd.DataFrame,
    *,
    addresses_path: Path,
    flagged_path: Path,
    logger: logging.Logger,
) -> dict:
    addresses = geocodable(frame).sort_values("case_id", kind="mergesort")
    missing = flagged(frame).sort_values("case_id", kind="mergesort")
    write_csv_frame(addresses_path, addresses)
    write_csv_frame(flagged_path, missing)
    if len(missing):
        logger.warning(
            f"{len(missing)} records have no road names and cannot be geocoded; see {flagged_path}",
            extra={"stage": "addresses", "event": "ADDRESS_MISSING", "status": "warn", "dropped": len(missing)},
        )
    return {
        "addresses_path": str(addresses_path),
        "flagged_path": str(flagged_path),
        "addresses": len(addresses),
        "flagged": len(missing),
    }
