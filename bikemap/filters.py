"""
Filtering and statistics
========================

Everything in here is a pure function of its inputs: the full accident
frame is never modified, callers get a new (sliced) frame back.

The map shows, for one category filter and one time cursor, every
accident whose time index is at or before the cursor. Moving the cursor
forward can only add points, never remove them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List

import pandas as pd

from .models import ALL_CATEGORIES, CATEGORIES, BikeLaneSegment
from .time_index import AXIS_MIN, clamp_index, index_to_label

HIGH_RISK_THRESHOLD = 3


@dataclass(frozen=True)
class AccidentStats:
    total: int
    high_risk_areas: int
    protected_rate: int  # percent, 0-100


@dataclass(frozen=True)
class AppState:
    """What the user currently looks at."""
    category: str = ALL_CATEGORIES
    cursor: int = AXIS_MIN

    def with_category(self, category: str) -> "AppState":
        return replace(self, category=category)

    def with_cursor(self, cursor: int) -> "AppState":
        return replace(self, cursor=clamp_index(cursor))


@dataclass(frozen=True)
class MapView:
    visible: pd.DataFrame
    bike_lanes: List[BikeLaneSegment]
    stats: AccidentStats
    time_label: str


def filter_accidents(df: pd.DataFrame, category: str, cursor: int) -> pd.DataFrame:
    """Accidents matching `category` ("all" for any) with time_index <= cursor."""
    mask = df["time_index"] <= cursor
    if category != ALL_CATEGORIES:
        mask &= df["category"] == category
    return df[mask]


def area_key(street: str) -> str:
    """First word of the street name; empty streets share the "" area."""
    parts = str(street).split()
    return parts[0] if parts else ""


def _round_half_up_percent(part: int, total: int) -> int:
    # integer arithmetic, so 12.5% -> 13 like the stats panel always showed
    return (200 * part + total) // (2 * total)


def aggregate_stats(df: pd.DataFrame) -> AccidentStats:
    total = len(df)
    if total == 0:
        return AccidentStats(total=0, high_risk_areas=0, protected_rate=0)

    area_counts = df["street"].fillna("").map(area_key).value_counts()
    high_risk = int((area_counts >= HIGH_RISK_THRESHOLD).sum())

    protected = int(df["on_protected_lane"].astype(bool).sum())
    return AccidentStats(
        total=total,
        high_risk_areas=high_risk,
        protected_rate=_round_half_up_percent(protected, total),
    )


def category_counts(df: pd.DataFrame) -> pd.DataFrame:
    """Visible accidents per category, every category present (zero-filled)."""
    counts = (
        df["category"]
        .value_counts()
        .reindex(list(CATEGORIES), fill_value=0)
    )
    return pd.DataFrame({
        "category": list(CATEGORIES),
        "count": [int(c) for c in counts.values],
    })


def build_view(df: pd.DataFrame, bike_lanes: List[BikeLaneSegment], state: AppState) -> MapView:
    """Run filter + stats for one frame of the map."""
    visible = filter_accidents(df, state.category, state.cursor)
    return MapView(
        visible=visible,
        bike_lanes=bike_lanes,
        stats=aggregate_stats(visible),
        time_label=index_to_label(state.cursor),
    )
