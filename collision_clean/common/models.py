"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class GeocodeResult:
    case_id: str
    accuracy_score: float
    zip: str | None
    county: str | None
    latitude: float | None
    longitude: float | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StageCounts:
    stage: str
    rows_in: int
    rows_out: int
    dropped_by_reason: dict[str, int]

    @property
    def dropped(self) -> int:
        return self.rows_in - self.rows_out

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["dropped"] = self.dropped
        return payload
