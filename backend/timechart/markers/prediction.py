"""
Forecast marker, one instance per model.

Three groups are driven by the prediction record issued at the cursor
week:

- onset group: season onset week point with its low/high range,
- peak group: peak week x peak percent point with an x range bar and a
  y range bar,
- prediction group: 1-4 weeks ahead trajectory (points, line and shaded
  band) anchored at the actual value of the issuing week.

All interval bounds are read at the confidence selector `cid` handed in
by the engine. The central trajectory values are cached per week index
so that query() does not recompute anything.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from timechart.canvas import Canvas, Shape
from timechart.config import (
    HORIZON_TARGETS,
    ONSET_POINT_RADIUS,
    PEAK_POINT_RADIUS,
    PEAK_STOPPER_SIZE,
    PREDICTION_POINT_RADIUS,
    STOPPER_SIZE,
    TRANSITION_MS,
)
from timechart.errors import DataShapeError, ScaleResolutionError
from timechart.markers.base import Marker
from timechart.scales import ScaleContext
from timechart.schemas import (
    Interval,
    ModelForecasts,
    Observation,
    PredictionRecord,
)
from timechart.tooltip import hex_to_rgba

logger = logging.getLogger(__name__)


def _place(shape: Shape, compute: Callable[[], Dict[str, Any]]) -> bool:
    """Set attrs from `compute`; hide the shape when they cannot be mapped."""
    try:
        attrs = compute()
    except ScaleResolutionError as exc:
        logger.debug("Hiding %s: %s", shape.cls, exc)
        shape.hide()
        return False
    shape.show()
    shape.set(duration=TRANSITION_MS, **attrs)
    return True


class Prediction(Marker):
    tracks_cursor = True

    def __init__(self, canvas: Canvas, model: ModelForecasts, color: str, onset_y: float):
        range_color = hex_to_rgba(color, 0.6)
        mark_color = hex_to_rgba(color, 0.8)

        self.id = model.id
        self.meta = model.meta
        self.color = color

        # Trajectory (the base group)
        super().__init__(canvas, "prediction-group", id=f"{self.id}-marker")
        self.prediction_group = self.group
        self.prediction_group.append("area", "area-prediction", fill=color, points=[])
        self.prediction_group.append("path", "line-prediction", stroke=color, points=[])

        # Onset
        self.onset_group = canvas.group("onset-group", id=f"{self.id}-marker")
        g = self.onset_group
        g.append("line", "range onset-range", y1=onset_y, y2=onset_y, stroke=range_color)
        for cls in ("onset-low", "onset-high"):
            g.append(
                "line",
                f"stopper onset-stopper {cls}",
                y1=onset_y - STOPPER_SIZE / 2,
                y2=onset_y + STOPPER_SIZE / 2,
                stroke=range_color,
            )
        g.append("circle", "onset-mark", r=ONSET_POINT_RADIUS, cy=onset_y, fill=mark_color)

        # Peak
        self.peak_group = canvas.group("peak-group", id=f"{self.id}-marker")
        g = self.peak_group
        for cls in ("peak-range-x", "peak-range-y"):
            g.append("line", f"range peak-range {cls}", stroke=range_color)
        for cls in ("peak-low-x", "peak-high-x", "peak-low-y", "peak-high-y"):
            g.append("line", f"stopper peak-stopper {cls}", stroke=range_color)
        g.append("circle", "peak-mark", r=PEAK_POINT_RADIUS, fill=mark_color)

        self.data: List[PredictionRecord] = []
        self._by_week: Dict[int, PredictionRecord] = {}
        self._actual: Dict[int, Observation] = {}
        self.hidden = False          # no forecast at the cursor
        self.legend_hidden = False   # toggled off in the legend
        self.displayed_data: List[Optional[float]] = []
        self.displayed_points: Dict[str, float] = {}

    @property
    def groups(self):
        return (self.onset_group, self.peak_group, self.prediction_group)

    @property
    def available(self) -> bool:
        return not self.hidden

    def plot(
        self,
        scales: ScaleContext,
        data: Sequence[PredictionRecord],
        actual: Sequence[Observation] = (),
        legend_hidden: bool = False,
    ) -> None:
        self.scales = scales
        self.data = list(data)
        self._by_week = {}
        for record in self.data:
            self._by_week.setdefault(record.local_week, record)
        self._actual = {obs.week: obs for obs in actual}
        self.legend_hidden = legend_hidden
        self.hidden = False
        self.displayed_data = [None] * len(scales.weeks)
        self.displayed_points = {}
        self._sync_visibility()

    # -----------------------------------------------------------------
    # Visibility
    # -----------------------------------------------------------------

    def _sync_visibility(self) -> None:
        visible = not (self.hidden or self.legend_hidden)
        for group in self.groups:
            group.visible = visible

    def show(self) -> None:
        self.legend_hidden = False
        self._sync_visibility()

    def hide(self) -> None:
        self.legend_hidden = True
        self._sync_visibility()

    def degrade(self) -> None:
        self.hidden = True
        self.displayed_data = [None] * len(self.displayed_data)
        self.displayed_points = {}
        self._sync_visibility()

    def clear(self) -> None:
        for group in self.groups:
            self.canvas.release(group)

    # -----------------------------------------------------------------
    # Cursor
    # -----------------------------------------------------------------

    def update(self, idx: int, cid: int) -> None:
        week = self.scales.weeks[idx]
        record = self._by_week.get(week)
        self.displayed_data = [None] * len(self.scales.weeks)
        self.displayed_points = {}

        if record is None:
            self.hidden = True
            self._sync_visibility()
            return

        self.hidden = False
        self._sync_visibility()

        try:
            self._move_onset(record.onset_week, cid)
            self._move_peak(record.peak_week, record.peak_percent, cid)
            self._move_trajectory(record, idx, cid)
        except DataShapeError as exc:
            logger.warning("Model %s week %s: %s", self.id, record.week, exc)
            self.degrade()

    def _move_onset(self, onset: Interval, cid: int) -> None:
        x = self.scales.week_to_x
        low, high = onset.bounds(cid)
        g = self.onset_group
        self.displayed_points["onset"] = onset.point

        _place(g.select("onset-mark"), lambda: {"cx": x(onset.point)})
        _place(g.select("onset-range"), lambda: {"x1": x(low), "x2": x(high)})
        _place(g.select("onset-low"), lambda: {"x1": x(low), "x2": x(low)})
        _place(g.select("onset-high"), lambda: {"x1": x(high), "x2": x(high)})

    def _move_peak(self, pw: Interval, pp: Interval, cid: int) -> None:
        x = self.scales.week_to_x
        y = self.scales.value_to_y
        w_low, w_high = pw.bounds(cid)
        p_low, p_high = pp.bounds(cid)
        g = self.peak_group
        half = PEAK_STOPPER_SIZE / 2
        self.displayed_points["peak_week"] = pw.point
        self.displayed_points["peak_percent"] = pp.point

        _place(g.select("peak-mark"), lambda: {"cx": x(pw.point), "cy": y(pp.point)})
        _place(g.select("peak-range-x"), lambda: {
            "x1": x(w_low), "x2": x(w_high), "y1": y(pp.point), "y2": y(pp.point),
        })
        _place(g.select("peak-range-y"), lambda: {
            "x1": x(pw.point), "x2": x(pw.point), "y1": y(p_low), "y2": y(p_high),
        })
        for cls, week in (("peak-low-x", w_low), ("peak-high-x", w_high)):
            _place(g.select(cls), lambda week=week: {
                "x1": x(week), "x2": x(week),
                "y1": y(pp.point) - half, "y2": y(pp.point) + half,
            })
        for cls, value in (("peak-low-y", p_low), ("peak-high-y", p_high)):
            _place(g.select(cls), lambda value=value: {
                "x1": x(pw.point) - half, "x2": x(pw.point) + half,
                "y1": y(value), "y2": y(value),
            })

    def _trajectory(self, record: PredictionRecord, idx: int, cid: int) -> List[Dict[str, Any]]:
        weeks = self.scales.weeks
        data = []

        anchor = self._actual.get(record.week)
        if anchor is None or anchor.is_sentinel:
            logger.debug("Model %s: no actual value at issuing week %s", self.id, record.week)
        else:
            data.append({
                "idx": idx, "week": weeks[idx], "data": anchor.data,
                "low": anchor.data, "high": anchor.data, "horizon": 0,
            })

        # Horizon weeks past the end of the season are not plotted
        for k, name in enumerate(HORIZON_TARGETS, start=1):
            pos = idx + k
            if pos >= len(weeks):
                break
            interval = record.target(name)
            low, high = interval.bounds(cid)
            data.append({
                "idx": pos, "week": weeks[pos], "data": interval.point,
                "low": low, "high": high, "horizon": k,
            })
        return data

    def _move_trajectory(self, record: PredictionRecord, idx: int, cid: int) -> None:
        data = self._trajectory(record, idx, cid)

        for d in data:
            if d["horizon"] > 0:
                self.displayed_data[d["idx"]] = d["data"]

        x = self.scales.week_to_x
        y = self.scales.value_to_y
        projected = []
        for d in data:
            try:
                projected.append({
                    "horizon": d["horizon"],
                    "x": x(d["week"]),
                    "y": y(d["data"]),
                    "y0": y(d["high"]),
                    "y1": y(d["low"]),
                })
            except ScaleResolutionError as exc:
                logger.debug("Model %s: dropping horizon %s: %s", self.id, d["horizon"], exc)

        g = self.prediction_group
        horizon_points = [p for p in projected if p["horizon"] > 0]
        circles = g.join("point-prediction", "circle", len(horizon_points))
        for circle, p in zip(circles, horizon_points):
            circle.set(
                duration=TRANSITION_MS, cx=p["x"], cy=p["y"],
                r=PREDICTION_POINT_RADIUS, stroke=self.color,
            )
        g.select("line-prediction").set(
            duration=TRANSITION_MS, points=[(p["x"], p["y"]) for p in projected]
        )
        g.select("area-prediction").set(
            duration=TRANSITION_MS,
            points=[(p["x"], p["y0"], p["y1"]) for p in projected],
        )

    def query(self, idx: int) -> Optional[float]:
        if self.hidden or self.legend_hidden:
            return None
        if not 0 <= idx < len(self.displayed_data):
            return None
        return self.displayed_data[idx]
