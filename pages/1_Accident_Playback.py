import logging
import time

import altair as alt
import streamlit as st

# import data functions from bikemap
from bikemap.animation import AnimationController, DeferredScheduler
from bikemap.filters import AppState, build_view, category_counts
from bikemap.layers import CATEGORY_NAMES, build_deck, category_name
from bikemap.load_data import GEOJSON_PATH, load_accident_data
from bikemap.models import ALL_CATEGORIES, CATEGORIES
from bikemap.time_index import AXIS_MAX, AXIS_MIN

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Page title
st.title("Bicycle Accident Playback")


# ============================================
# Session state
# ============================================
def _sync_cursor_from_slider():
    st.session_state.animation.set_cursor(st.session_state.cursor_slider)


if "scheduler" not in st.session_state:
    st.session_state.scheduler = DeferredScheduler()

if "animation" not in st.session_state:
    st.session_state.animation = AnimationController(scheduler=st.session_state.scheduler)

if "category_filter" not in st.session_state:
    st.session_state.category_filter = ALL_CATEGORIES

controller = st.session_state.animation
scheduler = st.session_state.scheduler


# ============================================
# Load Data
# ============================================
result = load_accident_data(GEOJSON_PATH)

if result.is_fallback:
    st.warning(result.diagnostic)
else:
    st.caption(result.diagnostic)


# ============================================
# Sidebar Controls
# ============================================
st.sidebar.header("Filters")

category_options = [ALL_CATEGORIES] + list(CATEGORIES)
st.sidebar.selectbox(
    "Accident type",
    options=category_options,
    format_func=lambda c: "All types" if c == ALL_CATEGORIES else CATEGORY_NAMES[c],
    key="category_filter",
)

# keep the slider on the controller's cursor before it is drawn
st.session_state.cursor_slider = controller.cursor
st.sidebar.slider(
    "Time",
    min_value=AXIS_MIN,
    max_value=AXIS_MAX,
    step=1,
    key="cursor_slider",
    on_change=_sync_cursor_from_slider,
)

col_play, col_reset = st.sidebar.columns(2)
col_play.button(
    "Pause" if controller.is_playing else "Play",
    on_click=controller.toggle,
    use_container_width=True,
)
col_reset.button("Reset", on_click=controller.reset, use_container_width=True)


# ============================================
# Map + statistics
# ============================================
state = AppState(category=st.session_state.category_filter, cursor=controller.cursor)
view = build_view(result.frame, result.bike_lanes, state)

st.subheader(f"Accidents up to {view.time_label}")
st.pydeck_chart(build_deck(view.visible, view.bike_lanes), use_container_width=True)
st.caption("Green lanes are protected, blue lanes are painted only.")

c1, c2, c3 = st.columns(3)
c1.metric("Accidents shown", view.stats.total)
c2.metric("High-risk areas", view.stats.high_risk_areas)
c3.metric("On protected lanes", f"{view.stats.protected_rate}%")

counts_df = category_counts(view.visible)
counts_df["type"] = counts_df["category"].map(category_name)

type_chart = (
    alt.Chart(counts_df)
    .mark_bar()
    .encode(
        x=alt.X("type:N", sort=[CATEGORY_NAMES[c] for c in CATEGORIES], title=None),
        y=alt.Y("count:Q", title="number of accidents"),
        color=alt.Color(
            "type:N",
            scale=alt.Scale(
                domain=[CATEGORY_NAMES[c] for c in CATEGORIES],
                range=["#d32f2f", "#ff9800", "#2196f3"],
            ),
            legend=None,
        ),
        tooltip=["type", "count"],
    )
)
st.altair_chart(type_chart, use_container_width=True)

st.caption(f"Rendering {view.stats.total} accident points ({controller.status}).")


# ============================================
# Playback: advance one tick, then rerun
# ============================================
if controller.is_playing:
    time.sleep(controller.tick_delay_ms / 1000.0)
    if scheduler.run_pending():
        st.rerun()
