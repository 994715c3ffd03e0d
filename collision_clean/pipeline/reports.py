"""Run report with per-stage row counts and drop reasons."""

from __future__ import annotations

from pathlib import Path

from collision_clean.common.fs import write_json
from collision_clean.common.models import StageCounts


def write_clean_report(
    report_path: Path,
    *,
    run_id: str,
    run_date: str,
    raw_rows: int,
    stages: list[StageCounts],
    flagged_addresses: int,
    warnings: list[str],
) -> Path:
    final_rows = stages[-1].rows_out if stages else raw_rows
    retained = 0.0 if raw_rows == 0 else round((final_rows / raw_rows) * 100, 2)
    payload = {
        "run_id": run_id,
        "run_date": run_date,
        "status": "partial" if warnings else "success",
        "counts": {
            "raw_rows": raw_rows,
            "clean_rows": final_rows,
            "dropped": raw_rows - final_rows,
            "retained_percent": retained,
            "flagged_addresses": flagged_addresses,
        },
        "stages": [stage.to_dict() for stage in stages],
        "warnings": warnings,
    }
    write_json(report_path, payload)
    return report_path
