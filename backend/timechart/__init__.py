"""Epidemic surveillance time chart: scales, markers and cursor engine."""

from timechart.engine import ChartEngine, Cursor
from timechart.scales import ScaleContext

__all__ = ["ChartEngine", "Cursor", "ScaleContext"]
