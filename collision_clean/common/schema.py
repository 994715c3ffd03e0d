"""Minimal strict schema for the YAML pipeline config."""

from __future__ import annotations

from collision_clean.common.errors import ConfigError

DOMAIN_ERROR_POLICIES = ("drop", "fail")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str) -> None:
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def validate_pipeline_config(cfg: dict) -> dict:
    top_required = {"dataset", "location", "geocode", "validation", "output"}
    _assert_required_keys(cfg, top_required, "pipeline config")
    _assert_no_unknown_keys(cfg, top_required, "pipeline config")

    _assert_required_keys(cfg["dataset"], {"schema_version", "raw_filename"}, "dataset")
    _assert_required_keys(cfg["location"], {"city", "state"}, "location")
    _assert_required_keys(
        cfg["geocode"],
        {
            "min_accuracy",
            "excluded_counties",
            "addresses_filename",
            "results_filename",
            "flagged_filename",
            "api",
        },
        "geocode",
    )
    _assert_required_keys(
        cfg["geocode"]["api"],
        {"endpoint", "api_key_env", "batch_size", "timeout_seconds", "requests_per_second", "max_attempts"},
        "geocode.api",
    )
    _assert_required_keys(cfg["validation"], {"on_domain_error"}, "validation")
    _assert_required_keys(cfg["output"], {"cleaned_filename", "report_filename"}, "output")

    min_accuracy = cfg["geocode"]["min_accuracy"]
    if not isinstance(min_accuracy, (int, float)) or not 0 < min_accuracy <= 1:
        raise ConfigError("geocode.min_accuracy must be a number in (0, 1]")
    if not isinstance(cfg["geocode"]["excluded_counties"], list):
        raise ConfigError("geocode.excluded_counties must be a list")
    if int(cfg["geocode"]["api"]["batch_size"]) < 1:
        raise ConfigError("geocode.api.batch_size must be positive")
    if cfg["validation"]["on_domain_error"] not in DOMAIN_ERROR_POLICIES:
        raise ConfigError(f"validation.on_domain_error must be one of {', '.join(DOMAIN_ERROR_POLICIES)}")

    return cfg
