import os

# Chart geometry (inner plotting area, in pixels)
CHART_WIDTH = 860
CHART_HEIGHT = 420

# Transition durations (ms); recorded on shapes, never awaited
TRANSITION_MS = 200
BASELINE_TRANSITION_MS = 300
HOVER_TRANSITION_MS = 50

# Confidence interval labels; the selector `cid` indexes Interval.low/high
CONFIDENCE_INTERVALS = ["90%", "50%"]
DEFAULT_CID = 0

# Horizon targets of a prediction record, 1..4 weeks ahead
HORIZON_TARGETS = ["oneWk", "twoWk", "threeWk", "fourWk"]

# Targets plotted against the y axis (onset/peak weeks are x valued)
Y_TARGETS = ["peakPercent"] + HORIZON_TARGETS

# "No observation yet" marker in actual data
SENTINEL = -1

# d3 schemeCategory10
PALETTE = [
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
]

# Marker geometry
STOPPER_SIZE = 6        # onset range stopper height
PEAK_STOPPER_SIZE = 10  # peak range stopper length
ONSET_OFFSET = 15       # onset row distance above the x axis
ACTUAL_POINT_RADIUS = 2
PREDICTION_POINT_RADIUS = 3
ONSET_POINT_RADIUS = 3
PEAK_POINT_RADIUS = 5

# Axis titles
X_TITLE = "Epidemic Week"
Y_TITLE = "Weighted ILI (%)"

# HTTP surface
API_PREFIX = "/v1"

LOG_LEVEL = os.getenv("TIMECHART_LOG_LEVEL", "INFO").upper()

# Fixed series colours
ACTUAL_COLOR = "#66d600"
OBSERVED_COLOR = "#18817f"
HISTORY_COLOR = "#cccccc"

# Legend id of the historical seasons toggle
HISTORY_ID = "history"
