"""SWITRS code appendix tables for the categorical collision fields."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

import pandas as pd

NOT_STATED = "Not Stated"


@dataclass(frozen=True)
class LookupTable:
    """Immutable code -> label mapping joined onto one categorical column."""

    code_column: str
    label_column: str
    entries: Mapping[str, str] = field(repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                self.code_column: list(self.entries.keys()),
                self.label_column: list(self.entries.values()),
            },
            dtype=object,
        )


PCF_VIOLATION = LookupTable(
    code_column="pcf_violation_category",
    label_column="pcf_violation_label",
    entries={
        "01": "Driving or Bicycling Under the Influence of Alcohol or Drug",
        "02": "Impeding Traffic",
        "03": "Unsafe Speed",
        "04": "Following Too Closely",
        "05": "Wrong Side of Road",
        "06": "Improper Passing",
        "07": "Unsafe Lane Change",
        "08": "Improper Turning",
        "09": "Automobile Right of Way",
        "10": "Pedestrian Right of Way",
        "11": "Pedestrian Violation",
        "12": "Traffic Signals and Signs",
        "13": "Hazardous Parking",
        "14": "Lights",
        "15": "Brakes",
        "16": "Other Equipment",
        "17": "Other Hazardous Violation",
        "18": "Other Than Driver (or Pedestrian)",
        "21": "Unsafe Starting or Backing",
        "22": "Unknown",
        "23": "Pedestrian or Other Under the Influence of Alcohol or Drug",
        "24": "Driver Fell Asleep",
        "00": "Other Improper Driving",
        "-": NOT_STATED,
    },
)

LIGHTING = LookupTable(
    code_column="lighting",
    label_column="lighting_label",
    entries={
        "A": "Daylight",
        "B": "Dusk - Dawn",
        "C": "Dark - Street Lights",
        "D": "Dark - No Street Lights",
        "E": "Dark - Street Lights Not Functioning",
        "-": NOT_STATED,
    },
)

ROAD_SURFACE = LookupTable(
    code_column="road_surface",
    label_column="road_surface_label",
    entries={
        "A": "Dry",
        "B": "Wet",
        "C": "Snowy or Icy",
        "D": "Slippery (Muddy, Oily, etc.)",
        "-": NOT_STATED,
    },
)

PEDESTRIAN_ACTION = LookupTable(
    code_column="pedestrian_action",
    label_column="pedestrian_action_label",
    entries={
        "A": "No Pedestrian Involved",
        "B": "Crossing in Crosswalk at Intersection",
        "C": "Crossing in Crosswalk Not at Intersection",
        "D": "Crossing Not in Crosswalk",
        "E": "In Road, Including Shoulder",
        "F": "Not in Road",
        "G": "Approaching/Leaving School Bus",
        "-": NOT_STATED,
    },
)

TYPE_OF_COLLISION = LookupTable(
    code_column="type_of_collision",
    label_column="type_of_collision_label",
    entries={
        "A": "Head-On",
        "B": "Sideswipe",
        "C": "Rear End",
        "D": "Broadside",
        "E": "Hit Object",
        "F": "Overturned",
        "G": "Vehicle/Pedestrian",
        "H": "Other",
        "-": NOT_STATED,
    },
)

LOOKUP_TABLES: tuple[LookupTable, ...] = (
    PCF_VIOLATION,
    LIGHTING,
    ROAD_SURFACE,
    PEDESTRIAN_ACTION,
    TYPE_OF_COLLISION,
)
