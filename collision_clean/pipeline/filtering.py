"""Drop records whose categorical fields carry no descriptive value."""

from __future__ import annotations

import logging
from types import MappingProxyType

import pandas as pd

from collision_clean.common.logging import log_drop
from collision_clean.common.lookups import LOOKUP_TABLES, NOT_STATED
from collision_clean.common.models import StageCounts

SENTINEL_VALUES = MappingProxyType(
    {
        "type_of_collision_label": frozenset({NOT_STATED, "Other"}),
        "pcf_violation_label": frozenset(
            {
                NOT_STATED,
                "Unknown",
                "Other Equipment",
                "Other Than Driver (or Pedestrian)",
                "Other Hazardous Violation",
                "Other Improper Driving",
            }
        ),
        "lighting_label": frozenset({NOT_STATED}),
        "pedestrian_action_label": frozenset({NOT_STATED}),
        "road_surface_label": frozenset({NOT_STATED}),
        "intersection_flag": frozenset({"-"}),
    }
)

LABEL_COLUMNS = tuple(table.label_column for table in LOOKUP_TABLES)


def sentinel_mask(frame: pd.DataFrame) -> dict[str, pd.Series]:
    return {column: frame[column].isin(sorted(values)) for column, values in SENTINEL_VALUES.items()}


def filter_descriptive(frame: pd.DataFrame, *, logger: logging.Logger) -> tuple[pd.DataFrame, StageCounts]:
    """Keep a record only if every field avoids its sentinel values and every label resolved.

    ``dropped_by_reason`` counts each predicate a record fails, so a record failing
    several is counted under each of them and the reasons can sum to more than
    ``dropped``.
    """
    masks = sentinel_mask(frame)
    masks["missing_label"] = frame[list(LABEL_COLUMNS)].isna().any(axis=1)

    drop = pd.Series(False, index=frame.index)
    for mask in masks.values():
        drop |= mask
    out = frame.loc[~drop].reset_index(drop=True)

    reasons = {column: int(mask.sum()) for column, mask in masks.items()}
    for column, count in reasons.items():
        log_drop(logger, "filter", f"{column} not descriptive", count, len(frame))
    return out, StageCounts(stage="filter", rows_in=len(frame), rows_out=len(out), dropped_by_reason=reasons)
