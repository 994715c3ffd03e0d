from __future__ import annotations

import copy
import logging

import pandas as pd
import pytest

BASE_RAW_ROW = {
    "CASE_ID": "1",
    "ACCIDENT_YEAR": "2019",
    "PRIMARY_RD": "SHATTUCK AV",
    "SECONDARY_RD": "UNIVERSITY AV",
    "INTERSECTION": "Y",
    "WEATHER_1": "A",
    "COLLISION_SEVERITY": "0",
    "PCF_VIOL_CATEGORY": "03",
    "LIGHTING": "A",
    "ROAD_SURFACE": "A",
    "PED_ACTION": "A",
    "TYPE_OF_COLLISION": "C",
    "COUNTY": "ALAMEDA",
}

PIPELINE_CFG = {
    "dataset": {"schema_version": "switrs_tims", "raw_filename": "collisions_raw.csv"},
    "location": {"city": "Berkeley", "state": "CA"},
    "geocode": {
        "min_accuracy": 0.52,
        "excluded_counties": ["Contra Costa County"],
        "addresses_filename": "addresses_for_geocoding.csv",
        "results_filename": "coordinates_geocodio.csv",
        "flagged_filename": "flagged_addresses.csv",
        "api": {
            "endpoint": "https://api.geocod.io/v1.7/geocode",
            "api_key_env": "GEOCODIO_API_KEY",
            "batch_size": 2,
            "timeout_seconds": 5,
            "requests_per_second": 100.0,
            "max_attempts": 1,
        },
    },
    "validation": {"on_domain_error": "drop"},
    "output": {"cleaned_filename": "collisions_clean.csv", "report_filename": "clean_report.json"},
}


def _raw_row(**overrides) -> dict:
    row = dict(BASE_RAW_ROW)
    row.update(overrides)
    return row


def _raw_frame(*rows: dict) -> pd.DataFrame:
    return pd.DataFrame(list(rows), dtype=object)


def _geocode_row(case_id: str, accuracy: float = 0.9, county: str = "Alameda County", zip_code: str = "94704") -> dict:
    return {
        "case_id": case_id,
        "Accuracy Score": accuracy,
        "Zip": zip_code,
        "County": county,
        "Latitude": 37.8716,
        "Longitude": -122.2681,
    }


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("collision_clean.tests")


@pytest.fixture
def pipeline_cfg() -> dict:
    return copy.deepcopy(PIPELINE_CFG)


@pytest.fixture
def raw_row():
    return _raw_row


@pytest.fixture
def raw_frame():
    return _raw_frame


@pytest.fixture
def geocode_row():
    return _geocode_row


@pytest.fixture
def geocode_frame():
    def _build(*rows: dict) -> pd.DataFrame:
        return pd.DataFrame(list(rows), columns=["case_id", "Accuracy Score", "Zip", "County", "Latitude", "Longitude"])

    return _build
