"""
Error taxonomy of the time chart.

Only CursorRangeError is meant to escape the engine; the other two are
raised by scales and markers and contained at the marker boundary, where
they turn into an omitted point or an absent query result.
"""


class ChartError(Exception):
    """Base class for every time chart error."""


class DataShapeError(ChartError, LookupError):
    """A week/index has no entry in an array assumed to be total."""


class CursorRangeError(ChartError, IndexError):
    """Cursor index outside [0, len(weeks) - 1]."""

    def __init__(self, idx: int, n_weeks: int):
        super().__init__(f"Cursor index {idx} out of range [0, {n_weeks - 1}]")
        self.idx = idx
        self.n_weeks = n_weeks


class ScaleResolutionError(ChartError, ValueError):
    """A value cannot be mapped to pixel space (outside the domain)."""
