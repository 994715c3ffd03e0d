"""Expand categorical codes into labels by left-joining the code appendix tables."""

from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from collision_clean.common.errors import JoinCardinalityError
from collision_clean.common.lookups import LOOKUP_TABLES, LookupTable
from collision_clean.common.models import StageCounts


def join_lookup(frame: pd.DataFrame, table: LookupTable) -> pd.DataFrame:
    """Left join one lookup table; codes missing from it get a null label."""
    left = frame.copy()
    left[table.code_column] = left[table.code_column].astype(object)
    try:
        joined = left.merge(table.to_frame(), how="left", on=table.code_column, validate="many_to_one")
    except pd.errors.MergeError as exc:
        raise JoinCardinalityError(f"{table.label_column}: {exc}") from exc
    if len(joined) != len(frame):
        raise JoinCardinalityError(f"{table.label_column} join changed row count {len(frame)} -> {len(joined)}")
    return joined


def expand_codes(
    frame: pd.DataFrame,
    *,
    logger: logging.Logger,
    tables: Iterable[LookupTable] = LOOKUP_TABLES,
) -> tuple[pd.DataFrame, StageCounts]:
    out = frame
    unmatched: dict[str, int] = {}
    for table in tables:
        out = join_lookup(out, table)
        missing = int((out[table.label_column].isna() & out[table.code_column].notna()).sum())
        unmatched[table.label_column] = missing
        if missing:
            logger.info(
                f"{missing} {table.code_column} codes have no label",
                extra={"stage": "expand", "event": "UNMATCHED_CODES", "status": "ok", "rows_in": len(out)},
            )
    # Unmatched codes are reported here and removed by the descriptive filter.
    return out, StageCounts(stage="expand", rows_in=len(frame), rows_out=len(out), dropped_by_reason={})
