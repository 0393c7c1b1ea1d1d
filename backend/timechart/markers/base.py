"""
Common marker contract.

Every marker owns one or more groups on the injected canvas and exposes

    plot(scales, data)   bind data and the scale context of this plot
    update(idx, cid)     reproject to a cursor (cursor-driven markers only)
    query(idx)           read-only lookup, None when absent
    show() / hide()      visibility, bound data is kept
    clear()              release the groups

Markers never read each other's state. A marker may own extra groups
besides `group` (Prediction has three); it then overrides show, hide,
degrade and clear to cover all of them.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from timechart.canvas import Canvas, Group
from timechart.errors import ScaleResolutionError
from timechart.scales import ScaleContext

logger = logging.getLogger(__name__)


def project_points(
    scales: ScaleContext,
    pairs: Iterable[Tuple[float, float]],
) -> List[Tuple[float, float]]:
    """Map (local week, value) pairs to pixels, dropping unplottable ones."""
    points = []
    for week, value in pairs:
        try:
            points.append((scales.week_to_x(week), scales.value_to_y(value)))
        except ScaleResolutionError:
            logger.debug("Skipping unplottable point week=%s value=%s", week, value)
    return points


class Marker:
    id: str = ""
    tracks_cursor: bool = False

    def __init__(self, canvas: Canvas, cls: str, **attrs):
        self.canvas = canvas
        self.group: Group = canvas.group(cls, **attrs)
        self.scales: Optional[ScaleContext] = None

    def plot(self, scales: ScaleContext, data) -> None:
        raise NotImplementedError

    def update(self, idx: int, cid: int) -> None:
        pass

    def query(self, idx: int):
        return None

    def show(self) -> None:
        self.group.show()

    def hide(self) -> None:
        self.group.hide()

    def degrade(self) -> None:
        """Called by the engine when this marker failed a pass."""
        self.group.hide()

    def clear(self) -> None:
        self.canvas.release(self.group)
