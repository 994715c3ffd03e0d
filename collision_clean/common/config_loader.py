"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from collision_clean.common.errors import ConfigError
from collision_clean.common.fs import read_yaml
from collision_clean.common.schema import validate_pipeline_config

PIPELINE_CONFIG_FILENAME = "pipeline.yml"


@dataclass(frozen=True)
class ConfigBundle:
    pipeline: dict


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    return _deep_merge(base, overlay)


def load_all_configs(
    config_dir: Path,
    *,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / PIPELINE_CONFIG_FILENAME
    cfg = _load_yaml_with_overlay(config_dir / PIPELINE_CONFIG_FILENAME, overlay_path)
    return ConfigBundle(pipeline=validate_pipeline_config(cfg))
