"""Filter geocoding results and left-merge them onto the collision table."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Callable, Iterable

import pandas as pd

from collision_clean.common.columns import GEOCODE_COLUMNS, GEOCODIO_CSV_COLUMNS
from collision_clean.common.errors import JoinCardinalityError, StageError
from collision_clean.common.fs import read_csv_frame
from collision_clean.common.logging import log_drop
from collision_clean.common.models import GeocodeResult, StageCounts
from collision_clean.geocode.addresses import geocodable
from collision_clean.geocode.geocodio import format_address, results_to_frame
from collision_clean.pipeline.projection import normalise_case_ids

RESULT_COLUMNS = ["case_id", "accuracy_score", "zip", "county", "latitude", "longitude"]

Geocoder = Callable[[Iterable[tuple[str, str]]], list[GeocodeResult]]


def _is_given(value) -> bool:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return False
    return str(value).strip() != ""


def _to_float(value) -> float:
    if not _is_given(value):
        return math.nan
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.nan
    return number if math.isfinite(number) else math.nan


def normalise_geocode_frame(raw: pd.DataFrame) -> tuple[pd.DataFrame, int]:
    """Coerce a geocode result table to typed columns.

    Rows whose accuracy or coordinates are present but unreadable are skipped;
    the second value is how many.
    """
    frame = raw.rename(columns=dict(GEOCODIO_CSV_COLUMNS))
    if "case_id" not in frame.columns or "accuracy_score" not in frame.columns:
        raise StageError("Geocode results need case_id and accuracy score columns")
    for column in RESULT_COLUMNS:
        if column not in frame.columns:
            frame[column] = None
    frame = frame[RESULT_COLUMNS].copy()
    frame["case_id"] = normalise_case_ids(frame["case_id"])

    malformed = pd.Series(False, index=frame.index)
    for column in ("accuracy_score", "latitude", "longitude"):
        numeric = frame[column].map(_to_float)
        malformed |= frame[column].map(_is_given) & numeric.isna()
        frame[column] = numeric.astype(float)
    malformed |= frame["accuracy_score"].notna() & ~frame["accuracy_score"].between(0.0, 1.0)
    malformed |= frame["case_id"].isna()

    return frame.loc[~malformed].reset_index(drop=True), int(malformed.sum())


def load_geocode_results(path: Path) -> tuple[pd.DataFrame, int]:
    if not path.exists():
        raise StageError(f"Missing geocode results: {path}; run the geocode stage or upload the address file")
    return normalise_geocode_frame(read_csv_frame(path))


def collect_geocode_results(frame: pd.DataFrame, geocoder: Geocoder) -> tuple[pd.DataFrame, int]:
    queries = [(row["case_id"], format_address(row)) for row in geocodable(frame).to_dict(orient="records")]
    return normalise_geocode_frame(results_to_frame(geocoder(queries)))


def filter_geocode_results(
    results: pd.DataFrame,
    *,
    min_accuracy: float,
    excluded_counties: Iterable[str],
) -> tuple[pd.DataFrame, dict[str, int]]:
    """Keep results that are deliverable, above the accuracy floor, and in jurisdiction."""
    excluded = {county.strip().lower() for county in excluded_counties}
    accuracy = results["accuracy_score"]

    no_match = accuracy.isna() | (accuracy == 0)
    below = ~no_match & (accuracy < min_accuracy)
    county = results["county"].map(lambda value: value.strip().lower() if isinstance(value, str) else None)
    out_of_area = ~no_match & ~below & county.isin(excluded)

    kept = results.loc[~(no_match | below | out_of_area)].reset_index(drop=True)
    counts = {
        "no_match": int(no_match.sum()),
        "below_min_accuracy": int(below.sum()),
        "excluded_county": int(out_of_area.sum()),
    }
    return kept, counts


def merge_geocode_results(frame: pd.DataFrame, results: pd.DataFrame) -> pd.DataFrame:
    """Left join on ``case_id``; unmatched records carry a null ``accuracy_score``."""
    duplicated = results["case_id"][results["case_id"].duplicated()]
    if len(duplicated):
        raise JoinCardinalityError(f"Duplicate case_id in geocode results: {', '.join(sorted(set(duplicated))[:5])}")
    right = results[["case_id", *GEOCODE_COLUMNS]]
    base = frame.drop(columns=[c for c in GEOCODE_COLUMNS if c in frame.columns])
    try:
        merged = base.merge(right, how="left", on="case_id", validate="many_to_one")
    except pd.errors.MergeError as exc:
        raise JoinCardinalityError(str(exc)) from exc
    if len(merged) != len(frame):
        raise JoinCardinalityError(f"Geocode join changed row count {len(frame)} -> {len(merged)}")
    return merged


def apply_geocode(
    frame: pd.DataFrame,
    results: pd.DataFrame,
    *,
    min_accuracy: float,
    excluded_counties: Iterable[str],
    logger: logging.Logger,
    malformed: int = 0,
) -> tuple[pd.DataFrame, StageCounts]:
    kept, result_counts = filter_geocode_results(
        results, min_accuracy=min_accuracy, excluded_counties=excluded_counties
    )
    merged = merge_geocode_results(frame, kept)
    located = merged.loc[merged["accuracy_score"].notna()].reset_index(drop=True)

    dropped = len(merged) - len(located)
    log_drop(logger, "geocode_merge", "no reliable in-jurisdiction geocode", dropped, len(merged))
    logger.info(
        "geocode results filtered",
        extra={
            "stage": "geocode_merge",
            "event": "GEOCODE_FILTER",
            "status": "ok",
            "rows_in": len(results) + malformed,
            "rows_out": len(kept),
            "dropped": sum(result_counts.values()) + malformed,
        },
    )
    reasons = {"unlocated": dropped, "results_malformed": malformed}
    reasons.update({f"results_{key}": value for key, value in result_counts.items()})
    return located, StageCounts(
        stage="geocode_merge",
        rows_in=len(frame),
        rows_out=len(located),
        dropped_by_reason=reasons,
    )
