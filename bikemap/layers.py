"""
pydeck layers for the accident map.

Colours, sizes and labels per accident category live here so the page
script only wires widgets to data.
"""

from typing import List

import pandas as pd
import pydeck as pdk

from .models import FATAL, INJURY, PROPERTY_DAMAGE, BikeLaneSegment

# NYC city centre
MAP_CENTER_LON = -74.006
MAP_CENTER_LAT = 40.7128

CATEGORY_COLORS = {
    FATAL: (211, 47, 47),
    INJURY: (255, 152, 0),
    PROPERTY_DAMAGE: (33, 150, 243),
}
UNKNOWN_COLOR = (102, 102, 102)

# pixel radius of a marker at the default zoom
CATEGORY_SIZES = {
    FATAL: 10,
    INJURY: 7,
    PROPERTY_DAMAGE: 5,
}

CATEGORY_NAMES = {
    FATAL: "Fatal",
    INJURY: "Injury",
    PROPERTY_DAMAGE: "Property damage",
}

PROTECTED_LANE_COLOR = (76, 175, 80)
UNPROTECTED_LANE_COLOR = (33, 150, 243)

TOOLTIP = {
    "html": (
        "<b>Type:</b> {type_name}<br/>"
        "<b>Location:</b> {street}<br/>"
        "<b>Date:</b> {date}<br/>"
        "<b>Severity:</b> {severity}<br/>"
        "<b>Description:</b> {description}"
    ),
    "style": {"backgroundColor": "rgba(0,0,0,0.8)", "color": "white", "fontSize": "12px"},
}


def accident_color(category):
    return CATEGORY_COLORS.get(category, UNKNOWN_COLOR)


def accident_size(category):
    return CATEGORY_SIZES.get(category, 5)


def category_name(category):
    return CATEGORY_NAMES.get(category, "Unknown")


def accident_points(visible: pd.DataFrame) -> pd.DataFrame:
    """Visible accidents plus the colour/size/label columns the layers read."""
    df = visible.copy()
    colors = df["category"].map(accident_color)
    df["col_r"] = [c[0] for c in colors]
    df["col_g"] = [c[1] for c in colors]
    df["col_b"] = [c[2] for c in colors]
    df["radius"] = df["category"].map(accident_size)
    df["type_name"] = df["category"].map(category_name)
    return df


def accident_layer(visible: pd.DataFrame) -> pdk.Layer:
    return pdk.Layer(
        "ScatterplotLayer",
        data=accident_points(visible),
        get_position="[longitude, latitude]",
        get_radius="radius",
        radius_units="pixels",
        get_fill_color="[col_r, col_g, col_b, 204]",
        stroked=True,
        get_line_color=[255, 255, 255],
        line_width_min_pixels=2,
        pickable=True,
    )


def bike_lane_layer(lanes: List[BikeLaneSegment]) -> pdk.Layer:
    lane_df = pd.DataFrame({
        "name": [lane.name for lane in lanes],
        "is_protected": [lane.is_protected for lane in lanes],
        "path": [[list(p) for p in lane.path] for lane in lanes],
    })
    colors = [PROTECTED_LANE_COLOR if p else UNPROTECTED_LANE_COLOR for p in lane_df["is_protected"]]
    lane_df["col_r"] = [c[0] for c in colors]
    lane_df["col_g"] = [c[1] for c in colors]
    lane_df["col_b"] = [c[2] for c in colors]
    return pdk.Layer(
        "PathLayer",
        data=lane_df,
        get_path="path",
        get_color="[col_r, col_g, col_b, 178]",
        get_width=3,
        width_units="pixels",
    )


def build_deck(visible: pd.DataFrame, lanes: List[BikeLaneSegment]) -> pdk.Deck:
    view = pdk.ViewState(
        longitude=MAP_CENTER_LON,
        latitude=MAP_CENTER_LAT,
        zoom=12,
        min_zoom=9,
        max_zoom=16,
        pitch=0,
    )
    return pdk.Deck(
        map_provider="carto",
        map_style=pdk.map_styles.LIGHT,
        initial_view_state=view,
        layers=[bike_lane_layer(lanes), accident_layer(visible)],
        tooltip=TOOLTIP,
    )
