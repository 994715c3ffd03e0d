"""CLI entrypoint for the collision cleaning pipeline."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from collision_clean.common.config_loader import load_all_configs
from collision_clean.common.constants import EXIT_HARD_FAIL, EXIT_SUCCESS, STAGES
from collision_clean.common.errors import PipelineError
from collision_clean.common.ids import generate_run_id
from collision_clean.common.logging import build_logger, log_event
from collision_clean.common.time_utils import parse_run_date
from collision_clean.geocode.geocodio import run_geocode
from collision_clean.pipeline.clean import run_addresses, run_clean


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=[*STAGES, "all"])
    parser.add_argument("--run-date", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--strict", action="store_true")
    return parser.parse_args(argv)


def execute_stage(stage: str, cfg: dict, data_dir: Path, logger: logging.Logger, args: argparse.Namespace, run_id: str, run_date: str):
    if stage == "addresses":
        return run_addresses(cfg, data_dir, logger)
    if stage == "geocode":
        results_path = data_dir / "intermediate" / cfg["geocode"]["results_filename"]
        if args.command == "all" and results_path.exists():
            # Keep an existing (possibly hand-uploaded) result file.
            log_event(logger, f"reusing geocode results {results_path}", run_id=run_id, stage=stage, event="STAGE_SKIP", status="ok")
            return None
        return run_geocode(cfg, data_dir, logger)
    if stage == "clean":
        return run_clean(cfg, data_dir, logger, run_id=run_id, run_date=run_date, strict=args.strict)
    raise ValueError(f"Unknown stage: {stage}")


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    run_date = parse_run_date(args.run_date)
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    data_dir = Path(args.data_dir)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    bundle = load_all_configs(config_dir, overlay_config_dir=overlay_config_dir)
    stages = STAGES if args.command == "all" else (args.command,)

    for stage in stages:
        log_event(logger, "stage start", run_id=run_id, stage=stage, event="STAGE_START", status="ok")
        try:
            execute_stage(stage, bundle.pipeline, data_dir, logger, args, run_id, run_date)
        except PipelineError as exc:
            log_event(
                logger,
                f"stage failed: {exc}",
                run_id=run_id,
                stage=stage,
                event="STAGE_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            return EXIT_HARD_FAIL
        log_event(logger, "stage end", run_id=run_id, stage=stage, event="STAGE_END", status="ok")

    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
