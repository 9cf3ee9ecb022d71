"""
Dataset loader (GeoJSON -> AccidentRecord list)
===============================================

Reads the accident feature collection and converts each feature into an
`AccidentRecord`. When the file cannot be read we fall back to a
generated set of accidents so the map always has something to show.

Key ideas:
- Properties are loosely typed in the source file; every field gets a
  default here so the rest of the app only sees the fixed record shape.
- A failed load is not an error for the caller: `load_accidents` always
  returns a `LoadResult`, with a diagnostic message explaining what happened.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import geopandas as gpd
import numpy as np
import pandas as pd
import requests
import streamlit as st
from shapely.geometry import LineString

from .models import (
    CATEGORIES,
    AccidentRecord,
    BikeLaneSegment,
    normalize_category,
)
from .time_index import UNITS_PER_MONTH, UNITS_PER_YEAR, date_to_index

logger = logging.getLogger(__name__)

# -----------------------------
# Data source
# -----------------------------
GEOJSON_PATH = os.environ.get("BIKEMAP_GEOJSON", "data/graph3.geojson")
REQUEST_TIMEOUT = 10

# -----------------------------
# Synthetic fallback settings
# -----------------------------
SYNTHETIC_COUNT = 200
CENTER_LAT = 40.70
CENTER_LON = -74.00
SPREAD_DEG = 0.08  # full width of the box, centered on CENTER_LAT/CENTER_LON

STREETS = [
    "Broadway", "5th Avenue", "Park Avenue", "Madison Avenue",
    "Lexington Avenue", "3rd Avenue", "2nd Avenue", "1st Avenue",
    "West Side Highway", "FDR Drive", "Queens Boulevard", "Atlantic Avenue",
]
LANE_STREETS = STREETS[:8]
SEVERITIES = ["minor", "moderate", "severe"]

PROTECTED_PROBABILITY = 0.4
LANE_PROTECTED_PROBABILITY = 0.5
LANE_LENGTH_DEG = 0.015
LANE_SPACING_DEG = 0.008
LANE_LAT_SPREAD_DEG = 0.04

RECORD_COLUMNS = [f for f in AccidentRecord.__dataclass_fields__]

_TRUE_STRINGS = {"true", "yes", "1", "y", "t"}


class DataSourceUnavailable(Exception):
    """The accident feature collection could not be fetched or parsed."""


@dataclass
class LoadResult:
    records: List[AccidentRecord]
    bike_lanes: List[BikeLaneSegment]
    source: str  # "file" or "synthetic"
    diagnostic: str
    frame: pd.DataFrame = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.frame = accident_frame(self.records)

    @property
    def is_fallback(self) -> bool:
        return self.source == "synthetic"


# -----------------------------
# Conversion helpers
# -----------------------------

def _is_missing(x) -> bool:
    if x is None:
        return True
    try:
        return bool(pd.isna(x))
    except (TypeError, ValueError):
        return False


def _to_str(x) -> str:
    if _is_missing(x):
        return ""
    return str(x).strip()


def _to_bool(x) -> bool:
    if _is_missing(x):
        return False
    if isinstance(x, str):
        return x.strip().lower() in _TRUE_STRINGS
    return bool(x)


def _to_id(x, fallback: int):
    """Keep integer-looking ids as ints, other ids as strings."""
    if _is_missing(x) or x == "":
        return fallback
    if isinstance(x, (bool, np.bool_)):
        return fallback
    if isinstance(x, (int, np.integer)):
        return int(x)
    if isinstance(x, (float, np.floating)):
        return int(x) if float(x).is_integer() else str(x)
    return str(x)


def _point(feature: Dict[str, Any]):
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict):
        return None
    coords = geometry.get("coordinates")
    if geometry.get("type", "Point") != "Point" or not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    try:
        return float(coords[0]), float(coords[1])
    except (TypeError, ValueError):
        return None


# -----------------------------
# Fetch + normalise
# -----------------------------

def fetch_feature_collection(source: str) -> List[Dict[str, Any]]:
    """Return the raw feature list of a GeoJSON file or URL.

    Raises DataSourceUnavailable for any network, IO or format problem.
    """
    try:
        if str(source).startswith(("http://", "https://")):
            resp = requests.get(source, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
            data = resp.json()
        else:
            with open(source, "r", encoding="utf-8") as f:
                data = json.load(f)
    except (requests.RequestException, OSError, ValueError) as e:
        raise DataSourceUnavailable(f"Could not read {source}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        raise DataSourceUnavailable(f"{source} is not a GeoJSON FeatureCollection")
    return data["features"]


def normalize_features(features: List[Dict[str, Any]], rng: Optional[np.random.Generator] = None) -> List[AccidentRecord]:
    """Convert raw GeoJSON features into AccidentRecords, keeping input order."""
    records: List[AccidentRecord] = []
    skipped = 0
    for i, feature in enumerate(features):
        if not isinstance(feature, dict):
            skipped += 1
            continue
        point = _point(feature)
        if point is None:
            skipped += 1
            continue
        props = feature.get("properties")
        props = props if isinstance(props, dict) else {}
        date = _to_str(props.get("date"))
        records.append(AccidentRecord(
            id=_to_id(props.get("id"), i),
            longitude=point[0],
            latitude=point[1],
            category=normalize_category(props.get("type")),
            street=_to_str(props.get("street")),
            date=date,
            severity=_to_str(props.get("severity")),
            description=_to_str(props.get("description")),
            time_index=date_to_index(date, rng=rng),
            on_protected_lane=_to_bool(props.get("onProtectedLane")),
        ))
    if skipped:
        logger.warning("Skipped %d features without point coordinates", skipped)
    return records


def accident_frame(records: List[AccidentRecord]) -> pd.DataFrame:
    """One row per record, in record order."""
    if not records:
        return pd.DataFrame(columns=RECORD_COLUMNS).astype({
            "longitude": float, "latitude": float, "time_index": int, "on_protected_lane": bool,
        })
    return pd.DataFrame([asdict(r) for r in records], columns=RECORD_COLUMNS)


# -----------------------------
# Synthetic data
# -----------------------------

def generate_synthetic_accidents(count: int = SYNTHETIC_COUNT, rng: Optional[np.random.Generator] = None) -> List[AccidentRecord]:
    """Random accidents scattered over lower Manhattan / Brooklyn."""
    rng = rng if rng is not None else np.random.default_rng()
    records: List[AccidentRecord] = []
    for i in range(count):
        # 0..99, as the generated dates only cover 2020-2023
        time_index = int(rng.integers(0, 100))
        year = 2020 + time_index // UNITS_PER_YEAR
        month = min((time_index % UNITS_PER_YEAR) // UNITS_PER_MONTH + 1, 12)
        day = int(rng.integers(1, 29))
        records.append(AccidentRecord(
            id=i,
            longitude=CENTER_LON + (rng.random() - 0.5) * SPREAD_DEG,
            latitude=CENTER_LAT + (rng.random() - 0.5) * SPREAD_DEG,
            category=CATEGORIES[int(rng.integers(0, len(CATEGORIES)))],
            street=STREETS[int(rng.integers(0, len(STREETS)))],
            date=f"{year}-{month:02d}-{day:02d}",
            severity=SEVERITIES[int(rng.integers(0, len(SEVERITIES)))],
            description="",
            time_index=time_index,
            on_protected_lane=bool(rng.random() < PROTECTED_PROBABILITY),
        ))
    return records


def generate_bike_lanes(rng: Optional[np.random.Generator] = None) -> List[BikeLaneSegment]:
    """One straight east-west lane per street in LANE_STREETS."""
    rng = rng if rng is not None else np.random.default_rng()
    lanes: List[BikeLaneSegment] = []
    for i, street in enumerate(LANE_STREETS):
        is_protected = bool(rng.random() < LANE_PROTECTED_PROBABILITY)
        start_lon = CENTER_LON + i * LANE_SPACING_DEG
        end_lon = start_lon + LANE_LENGTH_DEG
        lat = CENTER_LAT + (rng.random() - 0.5) * LANE_LAT_SPREAD_DEG
        lanes.append(BikeLaneSegment(
            name=street,
            is_protected=is_protected,
            path=((start_lon, lat), (end_lon, lat)),
        ))
    return lanes


def bike_lane_frame(lanes: List[BikeLaneSegment]) -> gpd.GeoDataFrame:
    """GeoDataFrame of lanes (LineString geometry) plus a pydeck-ready `path` column."""
    return gpd.GeoDataFrame(
        {
            "name": [lane.name for lane in lanes],
            "is_protected": [lane.is_protected for lane in lanes],
            "path": [[list(p) for p in lane.path] for lane in lanes],
        },
        geometry=[LineString(lane.path) for lane in lanes],
        crs="EPSG:4326",
    )


# -----------------------------
# Entry points
# -----------------------------

def load_accidents(source: str = GEOJSON_PATH, rng: Optional[np.random.Generator] = None) -> LoadResult:
    """Load accidents from `source`, falling back to synthetic data on failure."""
    rng = rng if rng is not None else np.random.default_rng()
    bike_lanes = generate_bike_lanes(rng)
    try:
        features = fetch_feature_collection(source)
        records = normalize_features(features, rng=rng)
    except DataSourceUnavailable as e:
        logger.warning("Accident data unavailable, using synthetic data: %s", e)
        records = generate_synthetic_accidents(rng=rng)
        return LoadResult(
            records=records,
            bike_lanes=bike_lanes,
            source="synthetic",
            diagnostic=f"Could not load {source} ({e}); showing {len(records)} generated accidents.",
        )

    logger.info("Loaded %d accidents from %s", len(records), source)
    return LoadResult(
        records=records,
        bike_lanes=bike_lanes,
        source="file",
        diagnostic=f"Loaded {len(records)} accidents from {source}.",
    )


@st.cache_data
def load_accident_data(source: str = GEOJSON_PATH) -> LoadResult:
    """Cached for the app so random fallbacks stay put between reruns."""
    return load_accidents(source)

