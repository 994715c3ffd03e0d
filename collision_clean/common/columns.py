"""Column names of the working table and the raw export aliases they are read from."""

from __future__ import annotations

from types import MappingProxyType

# Canonical column -> raw header, per export schema version.
RAW_SCHEMAS = MappingProxyType(
    {
        "switrs_tims": MappingProxyType(
            {
                "case_id": "CASE_ID",
                "accident_year": "ACCIDENT_YEAR",
                "primary_road": "PRIMARY_RD",
                "secondary_road": "SECONDARY_RD",
                "intersection_flag": "INTERSECTION",
                "weather": "WEATHER_1",
                "collision_severity": "COLLISION_SEVERITY",
                "pcf_violation_category": "PCF_VIOL_CATEGORY",
                "lighting": "LIGHTING",
                "road_surface": "ROAD_SURFACE",
                "pedestrian_action": "PED_ACTION",
                "type_of_collision": "TYPE_OF_COLLISION",
            }
        ),
        "canonical": MappingProxyType({}),
    }
)
DEFAULT_SCHEMA_VERSION = "switrs_tims"

PROJECTED_COLUMNS = (
    "case_id",
    "accident_year",
    "primary_road",
    "secondary_road",
    "intersection_flag",
    "weather",
    "collision_severity",
    "pcf_violation_category",
    "lighting",
    "road_surface",
    "pedestrian_action",
    "type_of_collision",
)

GEOCODE_COLUMNS = ("accuracy_score", "zip", "latitude", "longitude")

# Geocodio spreadsheet output header -> working table column.
GEOCODIO_CSV_COLUMNS = MappingProxyType(
    {
        "Accuracy Score": "accuracy_score",
        "Zip": "zip",
        "County": "county",
        "Latitude": "latitude",
        "Longitude": "longitude",
    }
)

OUTPUT_COLUMNS = (
    "case_id",
    "accident_year",
    "primary_road",
    "secondary_road",
    "cross_street",
    "city",
    "state",
    "zip",
    "latitude",
    "longitude",
    "accuracy_score",
    "intersection_flag",
    "weather",
    "collision_severity",
    "collision_severity_label",
    "fatal",
    "pcf_violation_category",
    "pcf_violation_label",
    "lighting",
    "lighting_label",
    "road_surface",
    "road_surface_label",
    "pedestrian_action",
    "pedestrian_action_label",
    "type_of_collision",
    "type_of_collision_label",
)
