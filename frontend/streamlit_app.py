# streamlit_app.py
# ---------------------------------------------------------------------
# Epidemic Surveillance: Forecast Time Chart
#
# Frontend for the BACKEND time chart API. The backend owns the chart
# engine (scales, markers, cursor); this page only:
#   - uploads a season dataset (actual, history, baseline, models)
#   - keeps the selected week / confidence interval / legend toggles
#     in the session
#   - posts them to /v1/timechart/render and /v1/timechart/tooltip
#   - draws the returned scene (pixel space) with Altair
# ---------------------------------------------------------------------

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st
import altair as alt

from api_client import post_render, post_tooltip

# ---------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------

CHART_WIDTH: int = 860
CHART_HEIGHT: int = 420
MARGIN = {"top": 10, "right": 50, "bottom": 70, "left": 40}

DEFAULT_INTERVALS = ["90%", "50%"]

# Colours of shapes that do not carry their own stroke/fill
CLASS_COLORS = {
    "line-actual": "#66d600",
    "point-actual": "#66d600",
    "line-observed": "#18817f",
    "point-observed": "#18817f",
    "line-history": "#cccccc",
    "baseline": "#999999",
    "timerect": "#eeeeee",
    "hover-line": "#444444",
}


# ---------------------------------------------------------------------
# Helpers (scene -> Altair layers)
# ---------------------------------------------------------------------
def _color(shape: Dict[str, Any]) -> str:
    attrs = shape["attrs"]
    for key in ("stroke", "fill"):
        if attrs.get(key):
            return attrs[key]
    for cls in shape["cls"].split():
        if cls in CLASS_COLORS:
            return CLASS_COLORS[cls]
    return "#333333"


def _x():
    return alt.X(
        "x:Q",
        scale=alt.Scale(domain=[-MARGIN["left"], CHART_WIDTH + MARGIN["right"]], nice=False, zero=False),
        axis=None,
    )


def _y():
    # Pixel y grows downwards
    return alt.Y(
        "y:Q",
        scale=alt.Scale(domain=[CHART_HEIGHT + MARGIN["bottom"], -MARGIN["top"]], nice=False, zero=False),
        axis=None,
    )


def _visible_shapes(group: Dict[str, Any]):
    if not group["visible"]:
        return
    for child in group.get("children", []):
        if child["kind"] == "g":
            yield from _visible_shapes(child)
        elif child["visible"]:
            yield child


def shape_layers(scene: Dict[str, Any]) -> List[alt.Chart]:
    layers = []
    circles = []

    for shape in _visible_shapes(scene["canvas"]["root"]):
        kind, attrs, color = shape["kind"], shape["attrs"], _color(shape)

        if kind == "path" and len(attrs.get("points", [])) > 1:
            df = pd.DataFrame(attrs["points"], columns=["x", "y"])
            df["order"] = range(len(df))
            layers.append(
                alt.Chart(df).mark_line(color=color, strokeWidth=2)
                .encode(x=_x(), y=_y(), order="order:Q")
            )
        elif kind == "area" and len(attrs.get("points", [])) > 1:
            df = pd.DataFrame(attrs["points"], columns=["x", "y", "y2"])
            layers.append(
                alt.Chart(df).mark_area(color=color, opacity=0.25)
                .encode(x=_x(), y=_y(), y2="y2:Q")
            )
        elif kind == "circle" and "cx" in attrs and "cy" in attrs:
            circles.append({"x": attrs["cx"], "y": attrs["cy"],
                            "size": 12 * attrs.get("r", 2) ** 2, "color": color})
        elif kind == "line" and all(k in attrs for k in ("x1", "x2", "y1", "y2")):
            df = pd.DataFrame([{"x": attrs["x1"], "y": attrs["y1"],
                                "x2": attrs["x2"], "y2": attrs["y2"]}])
            layers.append(
                alt.Chart(df).mark_rule(color=color)
                .encode(x=_x(), y=_y(), x2="x2:Q", y2="y2:Q")
            )
        elif kind == "rect" and attrs.get("width", 0) > 0:
            df = pd.DataFrame([{"x": attrs["x"], "y": attrs["y"],
                                "x2": attrs["x"] + attrs["width"],
                                "y2": attrs["y"] + attrs["height"]}])
            layers.append(
                alt.Chart(df).mark_rect(color=color, opacity=0.5)
                .encode(x=_x(), y=_y(), x2="x2:Q", y2="y2:Q")
            )
        elif kind == "text":
            df = pd.DataFrame([{"x": attrs["x"], "y": attrs.get("dy", 0),
                                "text": " ".join(attrs.get("lines", []))}])
            layers.append(
                alt.Chart(df).mark_text(align="left", fontSize=10)
                .encode(x=_x(), y=_y(), text="text:N")
            )

    if circles:
        df = pd.DataFrame(circles)
        layers.append(
            alt.Chart(df).mark_circle(opacity=0.9)
            .encode(x=_x(), y=_y(), size=alt.Size("size:Q", legend=None),
                    color=alt.Color("color:N", scale=None))
        )
    return layers


def axis_layers(scene: Dict[str, Any]) -> List[alt.Chart]:
    x_ticks = pd.DataFrame(scene["x_ticks"])
    date_ticks = pd.DataFrame(scene["date_ticks"])
    y_ticks = pd.DataFrame(scene["y_ticks"])
    layers = []
    if not x_ticks.empty:
        x_ticks["y"] = CHART_HEIGHT + 15
        layers.append(alt.Chart(x_ticks).mark_text(fontSize=10)
                      .encode(x=_x(), y=_y(), text="label:N"))
    if not date_ticks.empty:
        date_ticks["y"] = CHART_HEIGHT + 40
        layers.append(alt.Chart(date_ticks).mark_text(fontSize=10, color="#777")
                      .encode(x=_x(), y=_y(), text="label:N"))
    if not y_ticks.empty:
        y_ticks["x"] = -20
        layers.append(alt.Chart(y_ticks).mark_text(fontSize=10)
                      .encode(x=_x(), y=_y(), text="label:N"))

    titles = pd.DataFrame([
        {"x": CHART_WIDTH / 2, "y": CHART_HEIGHT + 60, "text": scene.get("x_title", "")},
        {"x": 0, "y": -MARGIN["top"] / 2, "text": scene.get("y_title", "")},
    ])
    layers.append(alt.Chart(titles).mark_text(fontSize=11, fontWeight="bold")
                  .encode(x=_x(), y=_y(), text="text:N"))
    return layers


def build_payload(dataset: Dict[str, Any], **extra) -> Dict[str, Any]:
    payload = {
        "dataset": dataset,
        "week_idx": st.session_state.get("week_idx"),
        "cid": st.session_state.get("cid", 0),
        "hidden": sorted(st.session_state.get("hidden", set())),
        "history_shown": st.session_state.get("history_shown", True),
        "width": CHART_WIDTH,
        "height": CHART_HEIGHT,
    }
    payload.update(extra)
    return payload


# ---------------------------------------------------------------------
# Streamlit layout
# ---------------------------------------------------------------------
st.set_page_config(
    page_title="Epidemic Forecast Time Chart",
    page_icon="📈",
    layout="wide",
)

st.title("📈 Weighted ILI: Observed Data and Model Forecasts")

st.markdown("""
Upload a season dataset (actual, historical seasons, baseline and model
forecasts). Page through the weeks to see each model's **1–4 week ahead**
trajectory, **season onset** and **peak** forecasts as of that week.
""")

# ---------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------
st.sidebar.header("Data")

uploaded = st.sidebar.file_uploader("Season dataset (JSON)", type=["json"])
if uploaded is None:
    st.info("Upload a dataset to start.")
    st.stop()

dataset = json.loads(uploaded.getvalue().decode("utf-8"))

# New file -> cursor back to the most recent week
if st.session_state.get("dataset_name") != uploaded.name:
    st.session_state["dataset_name"] = uploaded.name
    st.session_state["week_idx"] = None
    st.session_state["hidden"] = set()

st.sidebar.header("Display")

intervals = st.session_state.get("intervals", DEFAULT_INTERVALS)
ci_label = st.sidebar.radio("Confidence interval", intervals, horizontal=True)
st.session_state["cid"] = intervals.index(ci_label)

st.session_state["history_shown"] = st.sidebar.checkbox(
    "Show historical seasons", value=st.session_state.get("history_shown", True)
)

model_ids = [m["id"] for m in dataset.get("models", [])]
hidden = set()
for model_id in model_ids:
    shown = st.sidebar.checkbox(
        model_id,
        value=model_id not in st.session_state.get("hidden", set()),
        key=f"legend-{model_id}",
    )
    if not shown:
        hidden.add(model_id)
st.session_state["hidden"] = hidden

# ---------------------------------------------------------------------
# 1. Chart
# ---------------------------------------------------------------------
with st.spinner("Contacting backend..."):
    try:
        response = post_render(build_payload(dataset))
    except Exception as e:
        st.error(f"Backend call failed: {e}")
        st.stop()

st.session_state["intervals"] = response["confidence_intervals"]
cursor = response["cursor"]
weeks = response["weeks"]

c1, c2, c3 = st.columns([1, 6, 1])
with c1:
    if st.button("◀ Previous", disabled=cursor["idx"] == response["previous"]["idx"]):
        st.session_state["week_idx"] = response["previous"]["idx"]
        st.rerun()
with c2:
    picked = st.select_slider(
        "Epidemic week",
        options=list(range(len(weeks))),
        value=cursor["idx"],
        format_func=lambda i: str(weeks[i]),
    )
    if picked != cursor["idx"]:
        st.session_state["week_idx"] = picked
        st.rerun()
with c3:
    if st.button("Next ▶", disabled=cursor["idx"] == response["next"]["idx"]):
        st.session_state["week_idx"] = response["next"]["idx"]
        st.rerun()

scene = response["scene"]
layers = shape_layers(scene) + axis_layers(scene)
if layers:
    chart = alt.layer(*layers).properties(
        width=CHART_WIDTH + MARGIN["left"] + MARGIN["right"],
        height=CHART_HEIGHT + MARGIN["top"] + MARGIN["bottom"],
    )
    st.altair_chart(chart, use_container_width=False)

# ---------------------------------------------------------------------
# 2. Readout at the cursor
# ---------------------------------------------------------------------
st.markdown(f"### Week {cursor['name']}")

legend = pd.DataFrame(response["legend"])
if not legend.empty:
    legend["available"] = legend["available"].map({True: "", False: "no forecast"})
    st.dataframe(
        legend[["name", "shown", "available", "description"]],
        use_container_width=True,
    )
    with st.expander("Models"):
        for entry in response["legend"]:
            if entry.get("tooltip"):
                st.markdown(entry["tooltip"], unsafe_allow_html=True)

marks = response.get("marks", {})
if marks:
    st.markdown("#### Onset and peak")
    for model_id, tips in marks.items():
        st.markdown(tips["onset"] + tips["peak"], unsafe_allow_html=True)

# ---------------------------------------------------------------------
# 3. Inspect any week
# ---------------------------------------------------------------------
st.markdown("---")
st.markdown("### Inspect a week")

inspect_idx: Optional[int] = st.selectbox(
    "Week",
    options=list(range(len(weeks))),
    index=cursor["idx"],
    format_func=lambda i: str(weeks[i]),
)

try:
    tip = post_tooltip(build_payload(dataset, idx=inspect_idx))
except Exception as e:
    st.error(f"Backend call failed: {e}")
    st.stop()

if tip["rows"]:
    st.dataframe(pd.DataFrame(tip["rows"])[["key", "value"]], use_container_width=True)
else:
    st.info("No marker has a value at this week.")


# ---------------------------------------------------------------------
# Footer
# ---------------------------------------------------------------------
st.markdown("---")
st.caption("""
Actual: latest data for the week. Observed: data as available when the
forecasts were made. Bands: selected confidence interval.
""")
