"""
Scale context shared by every marker of a chart.

Maps
- a (possibly fractional) local week to an x pixel, through the ordinal
  index space [0, len(weeks) - 1],
- a value to a y pixel (range is inverted, 0 sits on the x axis),
- a global week (year*100 + week) to a calendar date and then to x.

The context only owns domain/range state. It is refitted by the engine on
every plot() and handed to markers; markers never mutate it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from timechart.config import Y_TARGETS
from timechart.errors import DataShapeError, ScaleResolutionError
from timechart.schemas import Dataset, Observation

logger = logging.getLogger(__name__)


@dataclass
class LinearScale:
    domain: Tuple[float, float] = (0.0, 1.0)
    range: Tuple[float, float] = (0.0, 1.0)

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2.0
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r1 == r0:
            return d0
        return d0 + (pixel - r0) / (r1 - r0) * (d1 - d0)


def _finite(value: float, what: str) -> float:
    if value is None or not math.isfinite(value):
        raise ScaleResolutionError(f"Cannot map non-finite {what}: {value!r}")
    return float(value)


def _y_values(dataset: Dataset, cid: int) -> Iterable[float]:
    for obs in dataset.actual:
        yield obs.data
    for season in dataset.history:
        for obs in season.actual:
            yield obs.data
    for rev in dataset.observed or []:
        for entry in rev.data:
            yield entry.value
    if dataset.baseline is not None:
        yield dataset.baseline
    # Every model contributes, whatever its legend state. Only y-valued
    # targets count: onset and peak week intervals hold week numbers,
    # which are x positions.
    for model in dataset.models:
        for record in model.predictions:
            for name in Y_TARGETS:
                interval = record.target(name)
                yield interval.point
                try:
                    yield from interval.bounds(cid)
                except DataShapeError:
                    logger.debug(
                        "Model %s week %s: no %s bounds at cid=%s",
                        model.id, record.week, name, cid,
                    )


class ScaleContext:
    def __init__(self, width: float, height: float):
        self.width = float(width)
        self.height = float(height)
        self.x = LinearScale(range=(0.0, self.width))
        self.y = LinearScale(range=(self.height, 0.0))
        self.x_date = LinearScale(range=(0.0, self.width))
        self.weeks: List[int] = []
        self._week_index: Dict[int, int] = {}
        self._date_extent: Optional[Tuple[date, date]] = None

    # -----------------------------------------------------------------
    # Domains
    # -----------------------------------------------------------------

    def set_x_domain(self, weeks: Sequence[int]) -> Tuple[float, float]:
        self.weeks = list(weeks)
        self._week_index = {}
        for idx, week in enumerate(self.weeks):
            self._week_index.setdefault(week, idx)
        self.x.domain = (0.0, float(max(len(self.weeks) - 1, 0)))
        return self.x.domain

    def set_y_domain(self, dataset: Dataset, cid: int) -> Tuple[float, float]:
        """
        Fit the y domain to [0, max] over every series that is plotted
        simultaneously: actual, history, observed revisions, baseline and
        the y-valued intervals of every model (hidden ones included, so a
        legend toggle never changes the domain).
        """
        values = np.fromiter(_y_values(dataset, cid), dtype=float)
        values = values[np.isfinite(values)]
        y_max = float(values.max()) if values.size else 0.0
        if y_max <= 0:
            y_max = 1.0
        self.y.domain = (0.0, y_max)
        return self.y.domain

    def set_date_domain(self, actual: Sequence[Observation]) -> Optional[Tuple[date, date]]:
        dates = []
        for obs in actual:
            try:
                dates.append(self.week_to_date(obs.week))
            except ScaleResolutionError:
                logger.debug("Week %s has no calendar date", obs.week)
        if not dates:
            self._date_extent = None
            return None
        self._date_extent = (min(dates), max(dates))
        self.x_date.domain = (
            float(self._date_extent[0].toordinal()),
            float(self._date_extent[1].toordinal()),
        )
        return self._date_extent

    # -----------------------------------------------------------------
    # Mappings
    # -----------------------------------------------------------------

    def index_to_x(self, idx: float) -> float:
        return self.x(idx)

    def week_to_x(self, local_week: float) -> float:
        """
        Map a local week (week % 100) to x. The integer part is located in
        `weeks`, the fractional part is interpolated in index space.
        """
        value = _finite(local_week, "week")
        base = math.floor(value)
        idx = self._week_index.get(int(base))
        if idx is None:
            raise ScaleResolutionError(f"Week {local_week!r} is not in the x domain")
        return self.x(idx + (value - base))

    def value_to_y(self, value: float) -> float:
        return self.y(_finite(value, "value"))

    def x_to_index(self, pixel_x: float) -> int:
        """Nearest week index for a pixel, clamped to the weeks."""
        if not self.weeks:
            raise ScaleResolutionError("Scale has no weeks; plot() first")
        idx = int(round(self.x.invert(_finite(pixel_x, "pixel"))))
        return min(max(idx, 0), len(self.weeks) - 1)

    @staticmethod
    def week_to_date(global_week: int) -> date:
        """Monday of the ISO week encoded as year*100 + week."""
        year, week = divmod(int(global_week), 100)
        try:
            return date.fromisocalendar(year, week, 1)
        except ValueError as exc:
            raise ScaleResolutionError(f"Week {global_week} is not an ISO week: {exc}") from None

    def date_to_x(self, value: date) -> float:
        if self._date_extent is None:
            raise ScaleResolutionError("Date domain is not set")
        return self.x_date(float(value.toordinal()))

    # -----------------------------------------------------------------
    # Ticks
    # -----------------------------------------------------------------

    def ticks(self) -> List[Dict[str, float]]:
        """Week label ticks (every other week) on the point scale."""
        return [
            {"label": str(week), "x": self.index_to_x(i)}
            for i, week in enumerate(self.weeks)
            if not i % 2
        ]

    def y_ticks(self, count: int = 5) -> List[Dict[str, float]]:
        values = np.linspace(self.y.domain[0], self.y.domain[1], count + 1)
        return [{"label": f"{v:.1f}", "y": self.y(float(v))} for v in values]

    def date_ticks(self) -> List[Dict[str, float]]:
        """First-of-month ticks labelled like 'Oct 17'."""
        if self._date_extent is None:
            return []
        start, end = self._date_extent
        months = pd.date_range(start, end, freq="MS")
        return [
            {"label": m.strftime("%b %y"), "x": self.date_to_x(m.date())}
            for m in months
        ]
