"""Geocodio batch geocoding of cross-street addresses."""

from __future__ import annotations

import logging
import math
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator

import pandas as pd

from collision_clean.common.columns import GEOCODIO_CSV_COLUMNS
from collision_clean.common.errors import ConfigError, ExternalServiceError
from collision_clean.common.fs import read_csv_frame, write_csv_frame
from collision_clean.common.http import HttpClient, RetryConfig, TimeoutConfig
from collision_clean.common.models import GeocodeResult

RESULT_CSV_HEADERS = ["case_id", *GEOCODIO_CSV_COLUMNS.keys()]


def _batched(items: list[tuple[str, str]], size: int) -> Iterator[list[tuple[str, str]]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _finite_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"non-finite number: {value!r}")
    return number


def parse_geocodio_match(case_id: str, payload: Any) -> GeocodeResult | None:
    """Best match for one query, ``None`` when the service found nothing.

    Raises ``ValueError`` for a payload whose accuracy or coordinates cannot be read.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"unexpected payload type for case {case_id}")
    response = payload.get("response", payload)
    matches = response.get("results") or []
    if not matches:
        return None
    best = matches[0]
    accuracy = _finite_float(best.get("accuracy"))
    if accuracy is None or not 0.0 <= accuracy <= 1.0:
        raise ValueError(f"accuracy out of range for case {case_id}: {best.get('accuracy')!r}")
    location = best.get("location") or {}
    components = best.get("address_components") or {}
    return GeocodeResult(
        case_id=case_id,
        accuracy_score=accuracy,
        zip=components.get("zip"),
        county=components.get("county"),
        latitude=_finite_float(location.get("lat")),
        longitude=_finite_float(location.get("lng")),
    )


class GeocodioClient:
    def __init__(self, http: HttpClient, *, endpoint: str, api_key: str, batch_size: int = 1000) -> None:
        self.http = http
        self.endpoint = endpoint
        self.api_key = api_key
        self.batch_size = batch_size
        self.skipped: list[str] = []

    def geocode(self, queries: Iterable[tuple[str, str]]) -> list[GeocodeResult]:
        """Geocode ``(case_id, address)`` pairs; cases without a usable match are omitted."""
        results: list[GeocodeResult] = []
        for batch in _batched(list(queries), self.batch_size):
            payload = self.http.post_json(
                self.endpoint,
                payload={case_id: address for case_id, address in batch},
                params={"api_key": self.api_key},
            )
            keyed = payload.get("results") if isinstance(payload, dict) else None
            if not isinstance(keyed, dict):
                raise ExternalServiceError("Geocodio batch response has no keyed results")
            for case_id, _address in batch:
                item = keyed.get(case_id)
                if item is None:
                    continue
                try:
                    match = parse_geocodio_match(case_id, item)
                except (TypeError, ValueError, AttributeError):
                    self.skipped.append(case_id)
                    continue
                if match is not None:
                    results.append(match)
        return results


def format_address(row: dict) -> str:
    return f"{row['cross_street']}, {row['city']}, {row['state']}"


def results_to_frame(results: list[GeocodeResult]) -> pd.DataFrame:
    rows = [
        {
            "case_id": result.case_id,
            "Accuracy Score": result.accuracy_score,
            "Zip": result.zip,
            "County": result.county,
            "Latitude": result.latitude,
            "Longitude": result.longitude,
        }
        for result in sorted(results, key=lambda item: item.case_id)
    ]
    return pd.DataFrame(rows, columns=RESULT_CSV_HEADERS)


@contextmanager
def open_geocodio_client(geocode_cfg: dict, *, http: HttpClient | None = None) -> Iterator[GeocodioClient]:
    """Yield a client configured from the ``geocode`` config section.

    The API key is read from the environment variable named in ``api.api_key_env``.
    """
    api_cfg = geocode_cfg["api"]
    api_key = os.environ.get(api_cfg["api_key_env"])
    if not api_key:
        raise ConfigError(f"Geocodio API key not set in ${api_cfg['api_key_env']}")

    client_http = http or HttpClient(
        timeout=TimeoutConfig(read=float(api_cfg["timeout_seconds"])),
        retry=RetryConfig(max_attempts=int(api_cfg["max_attempts"])),
        rate_per_sec=float(api_cfg["requests_per_second"]),
    )
    with client_http:
        yield GeocodioClient(
            client_http,
            endpoint=api_cfg["endpoint"],
            api_key=api_key,
            batch_size=int(api_cfg["batch_size"]),
        )


def log_skipped_payloads(client: GeocodioClient, logger: logging.Logger, stage: str) -> None:
    if client.skipped:
        logger.warning(
            f"skipped {len(client.skipped)} malformed geocode payloads",
            extra={"stage": stage, "event": "MALFORMED_PAYLOAD", "status": "warn", "dropped": len(client.skipped)},
        )


def run_geocode(
    bundle_cfg: dict,
    data_dir: Path,
    logger: logging.Logger,
    *,
    http: HttpClient | None = None,
) -> dict:
    geocode_cfg = bundle_cfg["geocode"]
    with open_geocodio_client(geocode_cfg, http=http) as client:
        addresses_path = data_dir / "intermediate" / geocode_cfg["addresses_filename"]
        if not addresses_path.exists():
            raise ConfigError(f"Missing address file {addresses_path}; run the addresses stage first")
        addresses = read_csv_frame(addresses_path)
        queries = [(row["case_id"], format_address(row)) for row in addresses.to_dict(orient="records")]
        results = client.geocode(queries)
    log_skipped_payloads(client, logger, "geocode")

    results_path = data_dir / "intermediate" / geocode_cfg["results_filename"]
    write_csv_frame(results_path, results_to_frame(results))
    return {
        "results_path": str(results_path),
        "queried": len(queries),
        "matched": len(results),
        "skipped": len(client.skipped),
    }
