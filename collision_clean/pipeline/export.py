"""Cleaned dataset CSV export."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from collision_clean.common.columns import OUTPUT_COLUMNS
from collision_clean.common.errors import ContractError
from collision_clean.common.fs import write_csv_frame


def prepare_output(frame: pd.DataFrame) -> pd.DataFrame:
    missing = [column for column in OUTPUT_COLUMNS if column not in frame.columns]
    if missing:
        raise ContractError(f"Cleaned table is missing output columns: {', '.join(missing)}")
    if frame["case_id"].duplicated().any():
        raise ContractError("Cleaned table has duplicate case_id values")
    return frame.sort_values("case_id", kind="mergesort")[list(OUTPUT_COLUMNS)].reset_index(drop=True)


def write_clean_csv(frame: pd.DataFrame, out_path: Path) -> Path:
    write_csv_frame(out_path, prepare_output(frame))
    return out_path
