"""
bikemap package
===============

Data and playback logic behind the bicycle accident map dashboard.

- Loading and normalising the accident GeoJSON is in `bikemap/load_data.py`.
- Filtering and statistics are in `bikemap/filters.py`.
- The play/pause/reset timeline is in `bikemap/animation.py`.
- pydeck layer construction is in `bikemap/layers.py`.
"""

__version__ = "0.1.0"
