"""
Data model (AccidentRecord, BikeLaneSegment)
============================================

Every feature of the accident GeoJSON becomes one `AccidentRecord`.
Records are frozen: filters select rows, they never edit them.
"""

from dataclasses import dataclass
from typing import Tuple, Union

FATAL = "fatal"
INJURY = "injury"
PROPERTY_DAMAGE = "property-damage"

CATEGORIES = (FATAL, INJURY, PROPERTY_DAMAGE)

# spellings found in source files -> canonical category
CATEGORY_ALIASES = {
    "fatal": FATAL,
    "injury": INJURY,
    "property": PROPERTY_DAMAGE,
    "property-damage": PROPERTY_DAMAGE,
    "property_damage": PROPERTY_DAMAGE,
}

ALL_CATEGORIES = "all"


def normalize_category(value) -> str:
    """Map a raw `type` value onto the fixed category set."""
    if value is None:
        return PROPERTY_DAMAGE
    key = str(value).strip().lower()
    return CATEGORY_ALIASES.get(key, PROPERTY_DAMAGE)


@dataclass(frozen=True)
class AccidentRecord:
    """One bicycle accident."""
    id: Union[int, str]
    longitude: float
    latitude: float
    category: str
    street: str
    date: str
    severity: str
    description: str
    # position on the 0-100 playback axis
    time_index: int
    on_protected_lane: bool


@dataclass(frozen=True)
class BikeLaneSegment:
    """A drawn bike lane; `path` is a tuple of (lon, lat) points."""
    name: str
    is_protected: bool
    path: Tuple[Tuple[float, float], ...]

    def __post_init__(self) -> None:
        if len(self.path) < 2:
            raise ValueError(f"Bike lane {self.name!r} needs at least 2 points, got {len(self.path)}")
