from timechart.markers.base import Marker, project_points
from timechart.markers.prediction import Prediction
from timechart.markers.series import (
    Actual,
    Baseline,
    HistoricalLines,
    HoverLine,
    Observed,
    TimeRect,
)

__all__ = [
    "Actual",
    "Baseline",
    "HistoricalLines",
    "HoverLine",
    "Marker",
    "Observed",
    "Prediction",
    "TimeRect",
    "project_points",
]
