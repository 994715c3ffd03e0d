"""End-to-end cleaning of the raw collision export."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from collision_clean.common.errors import StageError
from collision_clean.common.fs import read_csv_frame
from collision_clean.common.http import HttpClient
from collision_clean.common.logging import log_event
from collision_clean.common.models import StageCounts
from collision_clean.geocode.addresses import consolidate_addresses, export_geocode_addresses, flagged
from collision_clean.geocode.geocodio import log_skipped_payloads, open_geocodio_client
from collision_clean.pipeline.expand import expand_codes
from collision_clean.pipeline.export import write_clean_csv
from collision_clean.pipeline.fatality import derive_fatality
from collision_clean.pipeline.filtering import filter_descriptive
from collision_clean.pipeline.geocode_merge import Geocoder, apply_geocode, collect_geocode_results, load_geocode_results
from collision_clean.pipeline.projection import project_columns
from collision_clean.pipeline.reports import write_clean_report


@dataclass(frozen=True)
class CleanResult:
    frame: pd.DataFrame
    stages: list[StageCounts]
    raw_rows: int
    flagged_addresses: int
    warnings: list[str]


def _record_stage(logger: logging.Logger, counts: StageCounts, run_id: str | None) -> None:
    log_event(
        logger,
        f"{counts.stage} complete",
        run_id=run_id,
        stage=counts.stage,
        event="STAGE_END",
        status="ok",
        rows_in=counts.rows_in,
        rows_out=counts.rows_out,
        dropped=counts.dropped,
    )


def clean_frame(
    raw: pd.DataFrame,
    geocode_results: pd.DataFrame | None,
    cfg: dict,
    logger: logging.Logger,
    *,
    geocoder: Geocoder | None = None,
    malformed_results: int = 0,
    strict: bool = False,
    run_id: str | None = None,
) -> CleanResult:
    """Run every transformation stage on in-memory tables.

    Geocode results come either from a result table (the re-imported Geocodio
    file) or from calling ``geocoder`` on the consolidated addresses.
    """
    if geocode_results is None and geocoder is None:
        raise ValueError("clean_frame needs geocode_results or a geocoder")

    stages: list[StageCounts] = []
    warnings: list[str] = []

    projected = project_columns(raw, cfg["dataset"]["schema_version"])
    stages.append(StageCounts("projection", len(raw), len(projected), {}))
    _record_stage(logger, stages[-1], run_id)

    addressed = consolidate_addresses(projected, city=cfg["location"]["city"], state=cfg["location"]["state"])
    flagged_count = len(flagged(addressed))
    if flagged_count:
        warnings.append("ADDRESS_MISSING")

    if geocode_results is None:
        geocode_results, malformed_results = collect_geocode_results(addressed, geocoder)
    if malformed_results:
        warnings.append("MALFORMED_GEOCODE_RESULTS")

    located, counts = apply_geocode(
        addressed,
        geocode_results,
        min_accuracy=float(cfg["geocode"]["min_accuracy"]),
        excluded_counties=cfg["geocode"]["excluded_counties"],
        logger=logger,
        malformed=malformed_results,
    )
    stages.append(counts)
    _record_stage(logger, counts, run_id)

    policy = "fail" if strict else cfg["validation"]["on_domain_error"]
    labelled, counts = derive_fatality(located, on_domain_error=policy, logger=logger)
    stages.append(counts)
    _record_stage(logger, counts, run_id)
    if counts.dropped:
        warnings.append("SEVERITY_OUT_OF_DOMAIN")

    expanded, counts = expand_codes(labelled, logger=logger)
    stages.append(counts)
    _record_stage(logger, counts, run_id)

    filtered, counts = filter_descriptive(expanded, logger=logger)
    stages.append(counts)
    _record_stage(logger, counts, run_id)

    return CleanResult(
        frame=filtered,
        stages=stages,
        raw_rows=len(raw),
        flagged_addresses=flagged_count,
        warnings=warnings,
    )


def _read_raw(cfg: dict, data_dir: Path) -> pd.DataFrame:
    path = data_dir / "raw" / cfg["dataset"]["raw_filename"]
    if not path.exists():
        raise StageError(f"Missing raw collision export: {path}")
    return read_csv_frame(path)


def run_addresses(cfg: dict, data_dir: Path, logger: logging.Logger) -> dict:
    raw = _read_raw(cfg, data_dir)
    projected = project_columns(raw, cfg["dataset"]["schema_version"])
    addressed = consolidate_addresses(projected, city=cfg["location"]["city"], state=cfg["location"]["state"])
    intermediate = data_dir / "intermediate"
    return export_geocode_addresses(
        addressed,
        addresses_path=intermediate / cfg["geocode"]["addresses_filename"],
        flagged_path=intermediate / cfg["geocode"]["flagged_filename"],
        logger=logger,
    )


def run_clean(
    cfg: dict,
    data_dir: Path,
    logger: logging.Logger,
    *,
    run_id: str,
    run_date: str,
    strict: bool = False,
    http: HttpClient | None = None,
) -> Path:
    """Clean the raw export and write the dataset and run report.

    Geocode results are read from the intermediate result file when it exists;
    otherwise the addresses are geocoded through the Geocodio API in-process.
    """
    raw = _read_raw(cfg, data_dir)
    results_path = data_dir / "intermediate" / cfg["geocode"]["results_filename"]
    if results_path.exists():
        results, malformed = load_geocode_results(results_path)
        result = clean_frame(raw, results, cfg, logger, malformed_results=malformed, strict=strict, run_id=run_id)
    else:
        log_event(
            logger,
            f"no geocode result file at {results_path}; geocoding through the API",
            run_id=run_id,
            stage="geocode_merge",
            event="GEOCODE_IN_PROCESS",
            status="ok",
        )
        with open_geocodio_client(cfg["geocode"], http=http) as client:
            result = clean_frame(raw, None, cfg, logger, geocoder=client.geocode, strict=strict, run_id=run_id)
        log_skipped_payloads(client, logger, "geocode_merge")

    out_path = write_clean_csv(result.frame, data_dir / "out" / cfg["output"]["cleaned_filename"])
    write_clean_report(
        data_dir / "out" / "reports" / cfg["output"]["report_filename"],
        run_id=run_id,
        run_date=run_date,
        raw_rows=result.raw_rows,
        stages=result.stages,
        flagged_addresses=result.flagged_addresses,
        warnings=result.warnings,
    )
    return out_path
