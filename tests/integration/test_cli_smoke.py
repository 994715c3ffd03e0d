import csv
import json
import shutil
from pathlib import Path

import pytest
import requests

from collision_clean.cli import main, parse_args, run_command
from collision_clean.common.constants import EXIT_HARD_FAIL, EXIT_SUCCESS

FIXTURE_DATA = Path("tests/fixtures/data")


def _args(command: str, data_dir: Path, *extra: str):
    return parse_args(
        [
            command,
            "--config-dir",
            "config",
            "--data-dir",
            str(data_dir),
            "--run-date",
            "2026-02-17",
            "--run-id",
            "run-test",
            *extra,
        ]
    )


@pytest.mark.integration
def test_cli_all_with_uploaded_geocode_results(tmp_path: Path):
    data_dir = tmp_path / "data"
    shutil.copytree(FIXTURE_DATA, data_dir)

    assert run_command(_args("all", data_dir)) == EXIT_SUCCESS

    assert (data_dir / "intermediate" / "addresses_for_geocoding.csv").exists()
    flagged = (data_dir / "intermediate" / "flagged_addresses.csv").read_text(encoding="utf-8")
    assert "0081715006" in flagged

    actual = (data_dir / "out" / "collisions_clean.csv").read_text(encoding="utf-8")
    expected = Path("tests/fixtures/expected/collisions_clean.csv").read_text(encoding="utf-8")
    assert actual == expected

    report = json.loads((data_dir / "out" / "reports" / "clean_report.json").read_text(encoding="utf-8"))
    assert report["counts"]["raw_rows"] == 10
    assert report["counts"]["clean_rows"] == 3
    assert report["counts"]["flagged_addresses"] == 1
    stages = {stage["stage"]: stage for stage in report["stages"]}
    assert stages["geocode_merge"]["dropped_by_reason"]["unlocated"] == 3
    assert stages["geocode_merge"]["dropped_by_reason"]["results_excluded_county"] == 1
    assert stages["fatality"]["dropped_by_reason"]["severity_out_of_domain"] == 1
    assert stages["filter"]["dropped_by_reason"]["pcf_violation_label"] == 1
    assert stages["filter"]["dropped_by_reason"]["intersection_flag"] == 1
    assert stages["filter"]["dropped_by_reason"]["lighting_label"] == 1

    log_lines = (data_dir / "run_meta" / "run-test.log.jsonl").read_text(encoding="utf-8").splitlines()
    assert any(json.loads(line)["event"] == "ROWS_DROPPED" for line in log_lines)


@pytest.mark.integration
def test_cli_strict_clean_fails_on_out_of_domain_severity(tmp_path: Path):
    data_dir = tmp_path / "data"
    shutil.copytree(FIXTURE_DATA, data_dir)

    assert run_command(_args("clean", data_dir, "--strict")) == EXIT_HARD_FAIL
    assert not (data_dir / "out" / "collisions_clean.csv").exists()


@pytest.mark.integration
def test_cli_schema_mismatch_writes_no_output(tmp_path: Path):
    data_dir = tmp_path / "data"
    shutil.copytree(FIXTURE_DATA, data_dir)
    raw_path = data_dir / "raw" / "collisions_raw.csv"
    raw_path.write_text(raw_path.read_text(encoding="utf-8").replace("PED_ACTION", "PEDESTRIAN"), encoding="utf-8")

    assert run_command(_args("clean", data_dir)) == EXIT_HARD_FAIL
    assert not (data_dir / "out" / "collisions_clean.csv").exists()


@pytest.mark.integration
def test_cli_geocode_outage_after_retries_is_hard_fail(tmp_path: Path, monkeypatch):
    def unreachable(self, **_kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests.Session, "request", unreachable)
    monkeypatch.setenv("GEOCODIO_API_KEY", "test-key")
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "pipeline.yml").write_text("geocode:\n  api:\n    max_attempts: 2\n", encoding="utf-8")
    data_dir = tmp_path / "data"
    shutil.copytree(FIXTURE_DATA, data_dir)
    (data_dir / "intermediate" / "coordinates_geocodio.csv").unlink()

    assert run_command(_args("all", data_dir, "--overlay-config-dir", str(overlay))) == EXIT_HARD_FAIL
    assert not (data_dir / "out" / "collisions_clean.csv").exists()

    events = [
        json.loads(line)
        for line in (data_dir / "run_meta" / "run-test.log.jsonl").read_text(encoding="utf-8").splitlines()
    ]
    failed = [event for event in events if event["event"] == "STAGE_FAIL"]
    assert [(event["stage"], event["error_code"]) for event in failed] == [("geocode", "EXTERNAL_SERVICE_RETRYABLE")]


class FakeGeocodioResponse:
    status_code = 200

    def __init__(self, payload):
        self._payload = payload

    def json(self):
        return self._payload


def _geocodio_batch_from_fixture(queries: dict) -> dict:
    lines = (FIXTURE_DATA / "intermediate" / "coordinates_geocodio.csv").read_text(encoding="utf-8").splitlines()
    known = {row["case_id"]: row for row in csv.DictReader(lines)}
    results = {}
    for case_id, address in queries.items():
        row = known.get(case_id)
        matches = []
        if row is not None:
            matches.append(
                {
                    "accuracy": float(row["Accuracy Score"]),
                    "location": {"lat": float(row["Latitude"]), "lng": float(row["Longitude"])},
                    "address_components": {"zip": row["Zip"], "county": row["County"]},
                }
            )
        results[case_id] = {"query": address, "response": {"results": matches}}
    return {"results": results}


@pytest.mark.integration
def test_cli_clean_geocodes_in_process_without_result_file(tmp_path: Path, monkeypatch):
    requests_seen = []

    def geocodio(self, **kwargs):
        requests_seen.append(kwargs)
        return FakeGeocodioResponse(_geocodio_batch_from_fixture(kwargs["json"]))

    monkeypatch.setattr(requests.Session, "request", geocodio)
    monkeypatch.setenv("GEOCODIO_API_KEY", "test-key")
    data_dir = tmp_path / "data"
    shutil.copytree(FIXTURE_DATA, data_dir)
    (data_dir / "intermediate" / "coordinates_geocodio.csv").unlink()

    assert run_command(_args("clean", data_dir)) == EXIT_SUCCESS

    assert len(requests_seen) == 1
    assert requests_seen[0]["params"] == {"api_key": "test-key"}
    assert "0081715006" not in requests_seen[0]["json"]
    actual = (data_dir / "out" / "collisions_clean.csv").read_text(encoding="utf-8")
    expected = Path("tests/fixtures/expected/collisions_clean.csv").read_text(encoding="utf-8")
    assert actual == expected
    assert not (data_dir / "intermediate" / "coordinates_geocodio.csv").exists()


@pytest.mark.integration
def test_cli_clean_without_result_file_needs_api_key(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("GEOCODIO_API_KEY", raising=False)
    data_dir = tmp_path / "data"
    shutil.copytree(FIXTURE_DATA, data_dir)
    (data_dir / "intermediate" / "coordinates_geocodio.csv").unlink()

    assert run_command(_args("clean", data_dir)) == EXIT_HARD_FAIL
    assert not (data_dir / "out" / "collisions_clean.csv").exists()


def test_main_returns_hard_fail_for_missing_config(tmp_path: Path):
    assert main(["clean", "--config-dir", str(tmp_path), "--data-dir", str(tmp_path / "data")]) == EXIT_HARD_FAIL
