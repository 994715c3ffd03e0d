"""Filesystem helpers."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pandas as pd


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_json(path: Path, payload) -> None:
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, sort_keys=True)
        f.write("\n")


def read_csv_frame(path: Path) -> pd.DataFrame:
    # Codes such as "03" must keep their leading zero.
    return pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])


def write_csv_frame(path: Path, frame: pd.DataFrame) -> None:
    """Write ``frame`` via a sibling temp file so readers never see a partial CSV."""
    ensure_dir(path.parent)
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        frame.to_csv(tmp_path, index=False, encoding="utf-8", lineterminator="\n")
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
