import streamlit as st

st.set_page_config(page_title='Bicycle Accident Risk Map', layout='wide')
st.sidebar.success('Choose a page')
st.title('Bicycle Accident Risk Map')

st.markdown("""
### Project Overview

This dashboard replays bicycle accidents in New York City over a four-year timeline (2020-2023).
Accidents are drawn on a city basemap together with the main bike lanes, so it is easy to see
where accidents cluster and whether they happen on protected or painted-only lanes.

### How to use it

1. Open **Accident Playback** in the sidebar.
2. Pick an accident type (fatal, injury, property damage) or keep all types.
3. Drag the time slider, or press **Play** to animate the timeline month by month.
   **Reset** jumps back to the start of 2020.

### Statistics

- **Accidents shown** – accidents of the selected type up to the current month
- **High-risk areas** – street areas with three or more of those accidents
- **On protected lanes** – share of those accidents that happened on a protected bike lane

### Data

Accidents are read from `data/graph3.geojson` (set `BIKEMAP_GEOJSON` to use another file or URL).
If the file cannot be loaded, the map falls back to generated sample accidents and says so at the top of the page.
Run `python data/generate_sample_data.py` to write a sample file.
""")
