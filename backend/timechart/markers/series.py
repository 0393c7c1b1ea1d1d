"""
Markers for observed data: actual and observed lines, baseline,
historical seasons, and the cursor indicators (time rect, hover line).
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from timechart.canvas import Canvas
from timechart.config import (
    ACTUAL_POINT_RADIUS,
    BASELINE_TRANSITION_MS,
    HOVER_TRANSITION_MS,
    TRANSITION_MS,
)
from timechart.markers.base import Marker, project_points
from timechart.scales import ScaleContext
from timechart.schemas import HistorySeason, Observation, ObservedRevision

logger = logging.getLogger(__name__)


class TimeRect(Marker):
    """Shaded extent from the origin up to the cursor week."""

    id = "timerect"
    tracks_cursor = True

    def __init__(self, canvas: Canvas, height: float):
        super().__init__(canvas, "timerect-group")
        self.rect = self.group.append("rect", "timerect", x=0, y=0, width=0, height=height)

    def plot(self, scales: ScaleContext, data: Sequence[Observation]) -> None:
        self.scales = scales

    def update(self, idx: int, cid: int) -> None:
        width = self.scales.week_to_x(self.scales.weeks[idx])
        self.rect.set(duration=TRANSITION_MS, width=width)


class HoverLine(Marker):
    """Vertical rule snapped to the hovered week."""

    id = "hover"

    def __init__(self, canvas: Canvas, height: float):
        super().__init__(canvas, "hover-group")
        self.line = self.group.append("line", "hover-line", x1=0, y1=0, x2=0, y2=height)
        self.hide()

    def plot(self, scales: ScaleContext, data=None) -> None:
        self.scales = scales

    def move(self, idx: int) -> None:
        x = self.scales.index_to_x(idx)
        self.show()
        self.line.set(duration=HOVER_TRANSITION_MS, x1=x, x2=x)


class Baseline(Marker):
    id = "baseline"

    def __init__(self, canvas: Canvas, width: float, height: float):
        super().__init__(canvas, "baseline-group")
        self.line = self.group.append(
            "line", "baseline", x1=0, y1=height, x2=width, y2=height
        )
        self.title = self.group.append(
            "text", "title", x=width + 10, dy=0, lines=["CDC", "Baseline"]
        )
        self.value: Optional[float] = None

    def plot(self, scales: ScaleContext, data: Optional[float]) -> None:
        self.scales = scales
        self.value = data
        if data is None:
            self.hide()
            return
        self.show()
        y = scales.value_to_y(data)
        self.line.set(duration=BASELINE_TRANSITION_MS, y1=y, y2=y)
        self.title.set(duration=BASELINE_TRANSITION_MS, dy=y)


class Actual(Marker):
    id = "actual"

    def __init__(self, canvas: Canvas):
        super().__init__(canvas, "actual-group")
        self.line = self.group.append("path", "line-actual", points=[])
        self.data: List[Observation] = []

    def plot(self, scales: ScaleContext, data: Sequence[Observation]) -> None:
        self.scales = scales
        self.data = list(data)

        # Sentinel weeks keep their slot but are not drawn
        points = project_points(
            scales, ((d.local_week, d.data) for d in self.data if not d.is_sentinel)
        )
        self.line.set(duration=TRANSITION_MS, points=points)
        circles = self.group.join("point-actual", "circle", len(points))
        for circle, (x, y) in zip(circles, points):
            circle.set(duration=TRANSITION_MS, cx=x, cy=y, r=ACTUAL_POINT_RADIUS)

    def query(self, idx: int) -> float:
        # Sentinel is returned as is; callers check for it
        return self.data[idx].data


class Observed(Marker):
    """
    Values as they were known at the time of the cursor week.

    At cursor idx the value of week idx - i is its revision with lag i,
    so the whole line changes shape on every cursor move.
    """

    id = "observed"
    tracks_cursor = True

    def __init__(self, canvas: Canvas):
        super().__init__(canvas, "observed-group")
        self.line = self.group.append("path", "line-observed", points=[])
        self.data: List[ObservedRevision] = []
        self.filtered: Optional[List[Optional[float]]] = None

    def plot(self, scales: ScaleContext, data: Sequence[ObservedRevision]) -> None:
        self.scales = scales
        self.data = list(data)
        self.filtered = None

    def update(self, idx: int, cid: int) -> None:
        filtered = []
        for i in range(idx + 1):
            pos = idx - i
            if pos >= len(self.data):
                filtered.append((self.scales.weeks[pos], None))
                continue
            revision = self.data[pos]
            value = revision.at_lag(i)
            if value is None:
                logger.debug("Week %s has no revision with lag %s", revision.week, i)
            filtered.append((revision.week % 100, value))

        points = project_points(
            self.scales, ((week, value) for week, value in filtered if value is not None)
        )
        circles = self.group.join("point-observed", "circle", len(points))
        for circle, (x, y) in zip(circles, points):
            circle.set(duration=TRANSITION_MS, cx=x, cy=y, r=ACTUAL_POINT_RADIUS)
        self.line.set(duration=TRANSITION_MS, points=points)

        filtered.reverse()
        self.filtered = [value for _, value in filtered]

    def query(self, idx: int) -> Optional[float]:
        if self.filtered is None or not 0 <= idx < len(self.filtered):
            return None
        return self.filtered[idx]


class HistoricalLines(Marker):
    id = "history"

    def __init__(self, canvas: Canvas):
        super().__init__(canvas, "history-group")
        self.seasons: List[HistorySeason] = []

    def plot(
        self,
        scales: ScaleContext,
        data: Sequence[HistorySeason],
        shown: bool = True,
    ) -> None:
        self.scales = scales
        self.seasons = list(data)
        self.group.clear()
        if shown:
            self.show()
        else:
            self.hide()

        for season in self.seasons:
            points = project_points(
                scales,
                ((d.local_week, d.data) for d in season.actual if not d.is_sentinel),
            )
            path = self.group.append("path", "line-history", id=f"{season.id}-history")
            path.set(duration=TRANSITION_MS, points=points)
