"""
Time axis helpers
=================

Accidents are placed on an integer axis 0..100 that spans four calendar
years. `date_to_index` goes from a date to the axis, `index_to_label`
goes from the axis back to a "YYYY-MM" label for the slider.

Dates that are missing or cannot be parsed get a *random* position on the
axis. This mirrors how the map has always treated undated records; pass a
seeded `numpy.random.Generator` when you need repeatable results.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
import pandas as pd

RANGE_START = pd.Timestamp("2020-01-01")
RANGE_END = pd.Timestamp("2023-12-31")

AXIS_MIN = 0
AXIS_MAX = 100

# 4 years over 100 units -> 25 units per year, 2 units per month
UNITS_PER_YEAR = 25
UNITS_PER_MONTH = 2


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def clamp_index(value) -> int:
    return max(AXIS_MIN, min(AXIS_MAX, int(value)))


def random_index(rng: Optional[np.random.Generator] = None) -> int:
    rng = rng if rng is not None else np.random.default_rng()
    return int(rng.integers(AXIS_MIN, AXIS_MAX + 1))


def date_to_index(value, rng: Optional[np.random.Generator] = None) -> int:
    """Linear position of `value` between RANGE_START and RANGE_END, clamped to 0..100."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return random_index(rng)

    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return random_index(rng)
    if getattr(ts, "tzinfo", None) is not None:
        ts = ts.tz_localize(None)

    total_days = (RANGE_END - RANGE_START) / pd.Timedelta(days=1)
    current_days = (ts - RANGE_START) / pd.Timedelta(days=1)
    return clamp_index(round_half_up(current_days / total_days * AXIS_MAX))


def index_to_label(index) -> str:
    """Return the "YYYY-MM" label shown for a cursor position."""
    index = clamp_index(index)
    if index == AXIS_MAX:
        # end of the axis is the last month of the range, not January of the next year
        return f"{RANGE_END.year}-{RANGE_END.month:02d}"

    year = RANGE_START.year + index // UNITS_PER_YEAR
    month = (index % UNITS_PER_YEAR) // UNITS_PER_MONTH + 1
    # the 25th unit of a year would be month 13
    month = min(month, 12)
    return f"{year}-{month:02d}"
