"""
Generate a sample accident GeoJSON for the playback map.
Writes the generated accidents in the same shape as the real data file
(`type`, `street`, `date`, `severity`, `description`, `onProtectedLane`),
plus the bike lanes as a separate GeoJSON for inspection in a GIS tool.
Run once, then start the app with `streamlit run app.py`.
"""

from pathlib import Path

import geopandas as gpd
import numpy as np

from bikemap.load_data import bike_lane_frame, generate_bike_lanes, generate_synthetic_accidents
from bikemap.models import PROPERTY_DAMAGE

# ============================================
# Configuration
# ============================================
OUTPUT_PATH = "data/graph3.geojson"
LANES_OUTPUT_PATH = "data/bike_lanes.geojson"
SEED = 42
COUNT = 200

# ============================================
# Generate
# ============================================
rng = np.random.default_rng(SEED)

print(f"Generating {COUNT} accidents (seed={SEED})...")
records = generate_synthetic_accidents(count=COUNT, rng=rng)
lanes = generate_bike_lanes(rng)

accidents_gdf = gpd.GeoDataFrame(
    {
        "id": [r.id for r in records],
        # the source files spell property damage as "property"
        "type": ["property" if r.category == PROPERTY_DAMAGE else r.category for r in records],
        "street": [r.street for r in records],
        "date": [r.date for r in records],
        "severity": [r.severity for r in records],
        "description": [r.description for r in records],
        "onProtectedLane": [r.on_protected_lane for r in records],
    },
    geometry=gpd.points_from_xy([r.longitude for r in records], [r.latitude for r in records]),
    crs="EPSG:4326",
)

lanes_gdf = bike_lane_frame(lanes).drop(columns="path")

# ============================================
# Save
# ============================================
Path(OUTPUT_PATH).parent.mkdir(parents=True, exist_ok=True)

accidents_gdf.to_file(OUTPUT_PATH, driver="GeoJSON")
print(f"Saved {len(accidents_gdf)} accidents to: {OUTPUT_PATH}")

lanes_gdf.to_file(LANES_OUTPUT_PATH, driver="GeoJSON")
print(f"Saved {len(lanes_gdf)} bike lanes to: {LANES_OUTPUT_PATH}")
