"""UTC helpers for run metadata."""

from __future__ import annotations

from datetime import date, datetime, timezone


def parse_run_date(value: str | None) -> str:
    if not value:
        return datetime.now(tz=timezone.utc).date().isoformat()
    return date.fromisoformat(value).isoformat()


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")
