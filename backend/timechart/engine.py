"""
Chart engine: owns the scale context, the marker collection and the
cursor of one chart mount.

    plot(dataset)    refit scales, rebuild markers, reset cursor to the last week
    update(idx)      move the cursor, reproject cursor-driven markers
    query(idx)       composite readout of every marker at idx
    set_confidence   refit the y domain to the selected interval, replot

Markers are driven in a fixed order (cursor indicator, baseline, actual,
observed, history, predictions). The order only sets z-stacking; markers
never read each other. A marker failing a pass is hidden and the pass
goes on with the others.

The confidence selector `cid` and the cursor are plain fields of the
engine handed into every marker call, so the engine runs headlessly on
the in-memory SceneCanvas.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from timechart.canvas import Canvas, SceneCanvas
from timechart.config import (
    ACTUAL_COLOR,
    CHART_HEIGHT,
    CHART_WIDTH,
    CONFIDENCE_INTERVALS,
    DEFAULT_CID,
    HISTORY_COLOR,
    HISTORY_ID,
    OBSERVED_COLOR,
    ONSET_OFFSET,
    PALETTE,
    X_TITLE,
    Y_TITLE,
)
from timechart.errors import ChartError, CursorRangeError
from timechart.markers import (
    Actual,
    Baseline,
    HistoricalLines,
    HoverLine,
    Marker,
    Observed,
    Prediction,
    TimeRect,
)
from timechart.scales import ScaleContext
from timechart.schemas import Dataset
from timechart.tooltip import hex_to_rgba, legend_tooltip, point_tooltip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cursor:
    idx: int
    name: int

    def to_dict(self) -> Dict[str, int]:
        return {"idx": self.idx, "name": self.name}


WeekHook = Callable[[Cursor], None]


class ChartEngine:
    def __init__(
        self,
        width: float = CHART_WIDTH,
        height: float = CHART_HEIGHT,
        canvas: Optional[Canvas] = None,
        week_hook: Optional[WeekHook] = None,
        confidence_intervals: Optional[Sequence[str]] = None,
        cid: int = DEFAULT_CID,
        palette: Optional[Sequence[str]] = None,
        history_shown: bool = True,
        hidden_models: Iterable[str] = (),
    ):
        self.width = width
        self.height = height
        self.canvas = canvas if canvas is not None else SceneCanvas(width, height)
        self.week_hook = week_hook
        self.confidence_intervals = list(confidence_intervals or CONFIDENCE_INTERVALS)
        self.cid = self._checked_cid(cid)
        self.palette = list(palette or PALETTE)
        for color in self.palette:
            # Raises ValueError on a non-hex colour before anything is drawn
            hex_to_rgba(color, 1.0)
        self.history_shown = history_shown
        self.hidden_models = set(hidden_models)

        self.scales = ScaleContext(width, height)
        self.dataset: Optional[Dataset] = None
        self.weeks: tuple = ()
        self.week_idx: Optional[int] = None

        # Creation order is drawing order
        self.timerect = TimeRect(self.canvas, height)
        self.hover_line = HoverLine(self.canvas, height)
        self.baseline = Baseline(self.canvas, width, height)
        self.actual = Actual(self.canvas)
        self.observed: Optional[Observed] = None
        self.history: Optional[HistoricalLines] = None
        self.predictions: List[Prediction] = []

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _checked_cid(self, cid: int) -> int:
        if not 0 <= cid < len(self.confidence_intervals):
            raise ValueError(
                f"Confidence selector {cid} out of range for intervals "
                f"{self.confidence_intervals}"
            )
        return cid

    def _check_index(self, idx: int) -> None:
        if not self.weeks:
            raise ChartError("No dataset plotted yet; call plot() first.")
        if not 0 <= idx < len(self.weeks):
            raise CursorRangeError(idx, len(self.weeks))

    def _cursor_at(self, idx: int) -> Cursor:
        return Cursor(idx=idx, name=self.weeks[idx])

    def _emit(self, cursor: Cursor) -> None:
        if self.week_hook is not None:
            self.week_hook(cursor)

    def _guarded(self, marker: Marker, step: str, fn: Callable, *args) -> None:
        try:
            fn(*args)
        except ChartError as exc:
            logger.warning("Marker %s failed to %s %s: %s", marker.id, step, args, exc)
            marker.degrade()

    @property
    def markers(self) -> List[Marker]:
        """Every marker, in drawing order."""
        markers: List[Marker] = [self.timerect, self.baseline, self.actual]
        if self.observed is not None:
            markers.append(self.observed)
        if self.history is not None:
            markers.append(self.history)
        markers.extend(self.predictions)
        return markers

    def cursor(self) -> Optional[Cursor]:
        if self.week_idx is None:
            return None
        return self._cursor_at(self.week_idx)

    # -----------------------------------------------------------------
    # Plot / update / query
    # -----------------------------------------------------------------

    def _fit(self, dataset: Dataset, cid: int) -> ScaleContext:
        # Fresh context per fit, markers never see a half-refitted one
        scales = ScaleContext(self.width, self.height)
        scales.set_y_domain(dataset, cid)
        scales.set_x_domain([obs.local_week for obs in dataset.actual])
        scales.set_date_domain(dataset.actual)
        return scales

    def _plot_markers(self) -> None:
        scales, dataset = self.scales, self.dataset
        self._guarded(self.timerect, "plot", self.timerect.plot, scales, dataset.actual)
        self.hover_line.plot(scales)
        self._guarded(self.baseline, "plot", self.baseline.plot, scales, dataset.baseline)
        self._guarded(self.actual, "plot", self.actual.plot, scales, dataset.actual)
        if self.observed is not None:
            self._guarded(self.observed, "plot", self.observed.plot, scales, dataset.observed)
        self._guarded(
            self.history, "plot", self.history.plot,
            scales, dataset.history, self.history_shown,
        )
        for marker, model in zip(self.predictions, dataset.models):
            self._guarded(
                marker, "plot", marker.plot,
                scales, model.predictions, dataset.actual, model.id in self.hidden_models,
            )

    def plot(self, dataset: Union[Dataset, Dict[str, Any]]) -> Cursor:
        if not isinstance(dataset, Dataset):
            dataset = Dataset.model_validate(dataset)
        scales = self._fit(dataset, self.cid)

        # Build the replacements before touching the current chart
        observed = Observed(self.canvas) if dataset.observed is not None else None
        history = HistoricalLines(self.canvas)
        predictions = [
            Prediction(
                self.canvas,
                model,
                self.palette[i % len(self.palette)],
                onset_y=self.height - ONSET_OFFSET * (i + 1),
            )
            for i, model in enumerate(dataset.models)
        ]

        for old in [self.observed, self.history, *self.predictions]:
            if old is not None:
                old.clear()
        self.observed = observed
        self.history = history
        self.predictions = predictions
        self.scales = scales
        self.dataset = dataset
        self.weeks = tuple(scales.weeks)
        logger.debug(
            "Plotting %d weeks, %d models, y domain %s",
            len(self.weeks), len(dataset.models), scales.y.domain,
        )
        self._plot_markers()

        # Start with the most recent week
        self.week_idx = len(self.weeks) - 1
        self._update_markers(self.week_idx)
        cursor = self._cursor_at(self.week_idx)
        self._emit(cursor)
        return cursor

    def _update_markers(self, idx: int) -> None:
        for marker in self.markers:
            if marker.tracks_cursor:
                self._guarded(marker, "update", marker.update, idx, self.cid)

    def update(self, idx: int) -> Cursor:
        """Move the cursor. Out of range is a caller bug and raises."""
        self._check_index(idx)
        changed = idx != self.week_idx
        self.week_idx = idx
        self._update_markers(idx)
        cursor = self._cursor_at(idx)
        if changed:
            self._emit(cursor)
        return cursor

    def query(self, idx: int) -> Dict[str, float]:
        """Values shown at idx by every marker, absent ones left out."""
        self._check_index(idx)
        readout: Dict[str, float] = {}
        for marker in self.markers:
            try:
                value = marker.query(idx)
            except ChartError as exc:
                logger.warning("Marker %s failed to query %s: %s", marker.id, idx, exc)
                continue
            if value is not None:
                readout[marker.id] = value
        return readout

    # -----------------------------------------------------------------
    # Navigation and pointer
    # -----------------------------------------------------------------

    def next_cursor(self) -> Cursor:
        self._check_index(self.week_idx)
        return self._cursor_at(min(len(self.weeks) - 1, self.week_idx + 1))

    def previous_cursor(self) -> Cursor:
        self._check_index(self.week_idx)
        return self._cursor_at(max(0, self.week_idx - 1))

    def resolve_index(self, pixel_x: float) -> int:
        return self.scales.x_to_index(pixel_x)

    def hover(self, pixel_x: float):
        """Snap the hover line to the nearest week; return (idx, readout)."""
        idx = self.resolve_index(pixel_x)
        self.hover_line.move(idx)
        return idx, self.query(idx)

    def leave(self) -> None:
        self.hover_line.hide()

    def click(self, pixel_x: float) -> Cursor:
        """Report the clicked week; the collaborator decides to update()."""
        cursor = self._cursor_at(self.resolve_index(pixel_x))
        self._emit(cursor)
        return cursor

    # -----------------------------------------------------------------
    # External hooks
    # -----------------------------------------------------------------

    def set_confidence(self, cid: int) -> None:
        self.cid = self._checked_cid(cid)
        if self.dataset is None:
            return
        # The y domain is fitted to the bounds of the selected interval
        self.scales = self._fit(self.dataset, self.cid)
        self._plot_markers()
        self._update_markers(self.week_idx)

    def toggle(self, marker_id: str, hidden: bool) -> None:
        if marker_id == HISTORY_ID:
            self.history_shown = not hidden
            if self.history is not None:
                if hidden:
                    self.history.hide()
                else:
                    self.history.show()
            return

        for p in self.predictions:
            if p.id == marker_id:
                if hidden:
                    self.hidden_models.add(marker_id)
                    p.hide()
                else:
                    self.hidden_models.discard(marker_id)
                    p.show()
                return
        raise KeyError(marker_id)

    def legend(self) -> List[Dict[str, Any]]:
        entries = [
            {"id": "actual", "name": "Actual", "color": ACTUAL_COLOR,
             "description": "Latest data available for the week",
             "shown": True, "available": True, "toggle": False},
        ]
        if self.observed is not None:
            entries.append(
                {"id": "observed", "name": "Observed", "color": OBSERVED_COLOR,
                 "description": "Data available for weeks when the predictions were made",
                 "shown": True, "available": True, "toggle": False}
            )
        entries.append(
            {"id": HISTORY_ID, "name": "History", "color": HISTORY_COLOR,
             "description": "Toggle historical data lines",
             "shown": self.history_shown, "available": True, "toggle": True}
        )
        for p in self.predictions:
            entries.append({
                "id": p.id,
                "name": p.meta.name or p.id,
                "color": p.color,
                "description": p.meta.description,
                "url": p.meta.url,
                "tooltip": legend_tooltip(p.meta, p.id),
                "shown": not p.legend_hidden,
                "available": p.available,
                "toggle": True,
            })
        return entries

    def mark_tooltips(self) -> Dict[str, Dict[str, str]]:
        """Onset and peak mark tooltips of every model with a forecast."""
        tips = {}
        for p in self.predictions:
            pts = p.displayed_points
            if not pts:
                continue
            tips[p.id] = {
                "onset": point_tooltip(p.id, [
                    {"key": "Season Onset", "value": pts["onset"]},
                ], p.color),
                "peak": point_tooltip(p.id, [
                    {"key": "Peak Percent", "value": pts["peak_percent"]},
                    {"key": "Peak Week", "value": pts["peak_week"]},
                ], p.color),
            }
        return tips

    def scene(self) -> Dict[str, Any]:
        return {
            "canvas": self.canvas.to_dict(),
            "x_ticks": self.scales.ticks(),
            "date_ticks": self.scales.date_ticks(),
            "y_ticks": self.scales.y_ticks(),
            "y_domain": list(self.scales.y.domain),
            "x_title": X_TITLE,
            "y_title": Y_TITLE,
        }

    def clear(self) -> None:
        for marker in self.markers:
            marker.clear()
        self.hover_line.clear()
        self.observed = None
        self.history = None
        self.predictions = []
        self.dataset = None
        self.weeks = ()
        self.week_idx = None
