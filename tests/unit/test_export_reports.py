import json
from pathlib import Path

import pandas as pd
import pytest

from collision_clean.common.columns import OUTPUT_COLUMNS
from collision_clean.common.errors import ContractError
from collision_clean.common.models import StageCounts
from collision_clean.pipeline.export import prepare_output, write_clean_csv
from collision_clean.pipeline.reports import write_clean_report


def _output_frame(case_ids: list[str]) -> pd.DataFrame:
    return pd.DataFrame({column: [f"{column}-{case_id}" for case_id in case_ids] for column in OUTPUT_COLUMNS}).assign(
        case_id=case_ids, extra="dropped"
    )


def test_prepare_output_sorts_and_fixes_column_order():
    out = prepare_output(_output_frame(["3", "1", "2"]))

    assert list(out.columns) == list(OUTPUT_COLUMNS)
    assert out["case_id"].tolist() == ["1", "2", "3"]


def test_prepare_output_rejects_duplicate_case_ids():
    with pytest.raises(ContractError):
        prepare_output(_output_frame(["1", "1"]))


def test_prepare_output_rejects_missing_columns():
    with pytest.raises(ContractError):
        prepare_output(_output_frame(["1"]).drop(columns=["fatal"]))


def test_write_clean_csv_writes_header(tmp_path: Path):
    path = write_clean_csv(_output_frame(["1"]), tmp_path / "out" / "clean.csv")
    assert path.read_text(encoding="utf-8").splitlines()[0] == ",".join(OUTPUT_COLUMNS)


def test_write_clean_report_summarises_stage_counts(tmp_path: Path):
    stages = [
        StageCounts("projection", 10, 10, {}),
        StageCounts("geocode_merge", 10, 6, {"unlocated": 4}),
        StageCounts("filter", 6, 3, {"pcf_violation_label": 3}),
    ]

    path = write_clean_report(
        tmp_path / "report.json",
        run_id="run-1",
        run_date="2026-02-17",
        raw_rows=10,
        stages=stages,
        flagged_addresses=1,
        warnings=["ADDRESS_MISSING"],
    )

    report = json.loads(path.read_text(encoding="utf-8"))
    assert report["status"] == "partial"
    assert report["counts"] == {
        "raw_rows": 10,
        "clean_rows": 3,
        "dropped": 7,
        "retained_percent": 30.0,
        "flagged_addresses": 1,
    }
    assert report["stages"][1]["dropped_by_reason"] == {"unlocated": 4}
