import shutil
from pathlib import Path

import pytest

from collision_clean.cli import parse_args, run_command


def _run_once(data_dir: Path, run_id: str) -> None:
    shutil.copytree(Path("tests/fixtures/data"), data_dir)
    args = parse_args(
        [
            "clean",
            "--config-dir",
            "config",
            "--data-dir",
            str(data_dir),
            "--run-date",
            "2026-02-17",
            "--run-id",
            run_id,
        ]
    )
    assert run_command(args) == 0


@pytest.mark.regression
def test_clean_output_is_byte_stable_for_same_inputs(tmp_path: Path):
    first = tmp_path / "first"
    second = tmp_path / "second"

    _run_once(first, "run-a")
    _run_once(second, "run-b")

    first_bytes = (first / "out" / "collisions_clean.csv").read_bytes()
    second_bytes = (second / "out" / "collisions_clean.csv").read_bytes()
    assert first_bytes == second_bytes


@pytest.mark.regression
def test_rerun_overwrites_previous_output(tmp_path: Path):
    data_dir = tmp_path / "data"
    _run_once(data_dir, "run-a")
    before = (data_dir / "out" / "collisions_clean.csv").read_bytes()

    args = parse_args(["clean", "--config-dir", "config", "--data-dir", str(data_dir), "--run-id", "run-b"])
    assert run_command(args) == 0

    assert (data_dir / "out" / "collisions_clean.csv").read_bytes() == before
