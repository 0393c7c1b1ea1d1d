"""Small season datasets shared by the tests."""

from __future__ import annotations

import copy
from typing import Any, Dict, List

# Local weeks 50, 51, 52, 1, 2, 3; last week not reported yet
ACTUAL = [
    (201950, 1.0),
    (201951, 1.5),
    (201952, 2.0),
    (202001, 2.5),
    (202002, 3.0),
    (202003, -1),
]

HISTORY = [
    (201850, 0.5),
    (201851, 0.7),
    (201852, 0.9),
    (201901, 1.1),
    (201902, 1.0),
    (201903, 0.8),
]

HORIZONS = ["oneWk", "twoWk", "threeWk", "fourWk"]


def interval(point: float, wide: float = 1.0, narrow: float = 0.5) -> Dict[str, Any]:
    """cid 0 is the wide interval, cid 1 the narrow one."""
    return {
        "point": point,
        "low": [point - wide, point - narrow],
        "high": [point + wide, point + narrow],
    }


def horizon_value(base: float, k: int) -> float:
    return base + k / 10


def record(week: int, base: float) -> Dict[str, Any]:
    rec = {
        "week": week,
        "onsetWeek": interval(51),
        "peakWeek": interval(2),
        "peakPercent": interval(3.0),
    }
    for k, name in enumerate(HORIZONS, start=1):
        rec[name] = interval(horizon_value(base, k))
    return rec


def observations(pairs) -> List[Dict[str, Any]]:
    return [{"week": w, "data": d} for w, d in pairs]


def season(**overrides) -> Dict[str, Any]:
    """
    alpha forecasts every week but the last one, beta only at 201952.
    """
    data = {
        "actual": observations(ACTUAL),
        "history": [{"id": "2018-2019", "actual": observations(HISTORY)}],
        "baseline": 2.2,
        "models": [
            {
                "id": "alpha",
                "meta": {"name": "Alpha", "description": "Alpha model", "url": "http://alpha"},
                "predictions": [record(w, d) for w, d in ACTUAL[:-1]],
            },
            {
                "id": "beta",
                "predictions": [record(201952, 2.0)],
            },
        ],
    }
    data.update(copy.deepcopy(overrides))
    return data


def revisions_dataset() -> Dict[str, Any]:
    """Weeks 100, 101, 102 with one revision per elapsed week."""
    return {
        "actual": observations([(100, 10.0), (101, 20.0), (102, 30.0)]),
        "history": [],
        "baseline": None,
        "models": [],
        "observed": [
            {"week": 100, "data": [
                {"lag": 0, "value": 10.0},
                {"lag": 1, "value": 10.1},
                {"lag": 2, "value": 10.2},
            ]},
            {"week": 101, "data": [
                {"lag": 1, "value": 20.1},
                {"lag": 0, "value": 20.0},
            ]},
            {"week": 102, "data": [
                {"lag": 0, "value": 30.0},
            ]},
        ],
    }
