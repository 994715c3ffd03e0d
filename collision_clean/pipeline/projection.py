"""Select the analysis columns from the raw collision export by name."""

from __future__ import annotations

import pandas as pd

from collision_clean.common.columns import DEFAULT_SCHEMA_VERSION, PROJECTED_COLUMNS, RAW_SCHEMAS
from collision_clean.common.errors import ConfigError, SchemaMismatchError


def _clean_cell(value):
    if isinstance(value, str):
        return value.strip() or None
    return value


def normalise_case_ids(series: pd.Series) -> pd.Series:
    """Render join keys as text so raw and geocode tables always agree on type."""

    def _render(value):
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value).strip() or None

    # Built from a list so missing keys stay None rather than NaN.
    return pd.Series([_render(value) for value in series], index=series.index, name=series.name, dtype=object)


def resolve_columns(header: list[str], schema_version: str = DEFAULT_SCHEMA_VERSION) -> dict[str, str]:
    """Map each projected column to the header it is read from.

    A column is found under its canonical name or its raw alias for the schema
    version; every missing column is reported at once.
    """
    if schema_version not in RAW_SCHEMAS:
        raise ConfigError(f"Unknown raw schema version: {schema_version}")
    aliases = RAW_SCHEMAS[schema_version]
    present = set(header)

    resolved: dict[str, str] = {}
    missing: list[str] = []
    for column in PROJECTED_COLUMNS:
        if column in present:
            resolved[column] = column
        elif aliases.get(column) in present:
            resolved[column] = aliases[column]
        else:
            missing.append(aliases.get(column, column))
    if missing:
        raise SchemaMismatchError(
            f"Raw export ({schema_version}) is missing columns: {', '.join(missing)}"
        )
    return resolved


def project_columns(frame: pd.DataFrame, schema_version: str = DEFAULT_SCHEMA_VERSION) -> pd.DataFrame:
    resolved = resolve_columns(list(frame.columns), schema_version)
    out = frame[list(resolved.values())].copy()
    out.columns = list(resolved.keys())
    for column in out.columns:
        out[column] = out[column].map(_clean_cell)
    out["case_id"] = normalise_case_ids(out["case_id"])

    if out["case_id"].isna().any():
        raise SchemaMismatchError(f"{int(out['case_id'].isna().sum())} records have no case_id")
    duplicated = out["case_id"][out["case_id"].duplicated()]
    if len(duplicated):
        sample = ", ".join(sorted(set(duplicated))[:5])
        raise SchemaMismatchError(f"case_id is not unique in the raw export: {sample}")
    return out.reset_index(drop=True)
