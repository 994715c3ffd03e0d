"""Collision severity recoding and the binary fatality label."""

from __future__ import annotations

import logging

import pandas as pd

from collision_clean.common.errors import DomainError
from collision_clean.common.logging import log_drop
from collision_clean.common.models import StageCounts

PROPERTY_DAMAGE_ONLY_RAW = 0
PROPERTY_DAMAGE_ONLY = 5

SEVERITY_LABELS = {
    1: "Fatal",
    2: "Injury (Severe)",
    3: "Injury (Moderate)",
    4: "Injury (Minor)",
    5: "Property Damage Only",
}
# Least to most severe.
SEVERITY_LEVELS = [SEVERITY_LABELS[code] for code in sorted(SEVERITY_LABELS, reverse=True)]

FATAL = "Fatal"
NON_FATAL = "Non-Fatal"
FATAL_LEVELS = [NON_FATAL, FATAL]


def recode_severity(severity: pd.Series) -> pd.Series:
    """Numeric severity with raw 0 (property damage only) folded into 5."""
    numeric = pd.to_numeric(severity, errors="coerce")
    return numeric.mask(numeric == PROPERTY_DAMAGE_ONLY_RAW, PROPERTY_DAMAGE_ONLY)


def derive_fatality(
    frame: pd.DataFrame,
    *,
    on_domain_error: str = "drop",
    logger: logging.Logger,
) -> tuple[pd.DataFrame, StageCounts]:
    severity = recode_severity(frame["collision_severity"])
    in_domain = severity.isin(list(SEVERITY_LABELS))

    invalid = int((~in_domain).sum())
    if invalid and on_domain_error == "fail":
        sample = frame.loc[~in_domain, "collision_severity"].astype(str).unique()[:5]
        raise DomainError(f"{invalid} records have collision_severity outside 0-5: {', '.join(sample)}")

    out = frame.loc[in_domain].copy()
    codes = severity[in_domain].astype(int)
    out["collision_severity"] = codes
    out["collision_severity_label"] = pd.Categorical(
        codes.map(SEVERITY_LABELS), categories=SEVERITY_LEVELS, ordered=True
    )
    out["fatal"] = pd.Categorical(
        codes.map(lambda code: FATAL if code == 1 else NON_FATAL), categories=FATAL_LEVELS, ordered=True
    )
    out = out.reset_index(drop=True)

    log_drop(logger, "fatality", "collision_severity outside domain", invalid, len(frame))
    return out, StageCounts(
        stage="fatality",
        rows_in=len(frame),
        rows_out=len(out),
        dropped_by_reason={"severity_out_of_domain": invalid},
    )
