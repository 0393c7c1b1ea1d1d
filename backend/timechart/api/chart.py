"""
Time chart endpoints.

This module exposes:

    POST /v1/timechart/render
    POST /v1/timechart/tooltip
    GET  /v1/timechart/health

Each request mounts a fresh ChartEngine on the in-memory canvas:
- plots the dataset (cursor resets to the most recent week),
- applies the legend toggles and the confidence selector,
- moves the cursor to `week_idx` when one is given,
- returns the scene and the readouts the frontend draws from.

NOTE:
    - week_idx / idx are positions in `weeks`, not week numbers.
    - An out-of-range week_idx or cid is a client bug and answers 422;
      it is never clamped here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, status

from timechart.engine import ChartEngine
from timechart.errors import ChartError, CursorRangeError
from timechart.schemas import RenderRequest, TooltipRequest
from timechart.tooltip import tooltip_rows, tooltip_text

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------


def _unprocessable(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=detail,
    )


def _mount(req: RenderRequest) -> ChartEngine:
    """Build an engine for the request and bring it to the requested cursor."""
    try:
        engine = ChartEngine(
            width=req.width,
            height=req.height,
            cid=req.cid,
            history_shown=req.history_shown,
            hidden_models=req.hidden,
        )
    except ValueError as exc:
        raise _unprocessable(str(exc))

    engine.plot(req.dataset)

    if req.week_idx is not None:
        try:
            engine.update(req.week_idx)
        except CursorRangeError as exc:
            raise _unprocessable(str(exc))
    return engine


# ---------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------


@router.get("/timechart/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.post("/timechart/render")
def render(req: RenderRequest) -> Dict[str, Any]:
    """
    Plot a dataset and return the scene at the cursor.

    Response:
        {
          "cursor": {"idx": ..., "name": ...},
          "weeks": [...],                 # local weeks, x order
          "confidence_intervals": [...],
          "cid": ...,
          "legend": [...],
          "readout": {marker_id: value},  # query() at the cursor
          "marks": {model_id: {"onset": html, "peak": html}},
          "scene": {...},                 # canvas + ticks
        }
    """
    engine = _mount(req)
    cursor = engine.cursor()
    logger.info(
        "Rendered %d weeks, %d models at idx=%d",
        len(engine.weeks), len(engine.predictions), cursor.idx,
    )
    return {
        "cursor": cursor.to_dict(),
        "next": engine.next_cursor().to_dict(),
        "previous": engine.previous_cursor().to_dict(),
        "weeks": list(engine.weeks),
        "confidence_intervals": engine.confidence_intervals,
        "cid": engine.cid,
        "legend": engine.legend(),
        "readout": engine.query(cursor.idx),
        "marks": engine.mark_tooltips(),
        "scene": engine.scene(),
    }


@router.post("/timechart/tooltip")
def tooltip(req: TooltipRequest) -> Dict[str, Any]:
    """
    Tooltip rows at an index, a hovered pixel, or the cursor (in that
    order of precedence).
    """
    engine = _mount(req)

    try:
        if req.idx is not None:
            idx = req.idx
        elif req.pixel_x is not None:
            idx, _ = engine.hover(req.pixel_x)
        else:
            idx = engine.week_idx
        rows = tooltip_rows(engine, idx)
    except ChartError as exc:
        raise _unprocessable(str(exc))

    return {
        "idx": idx,
        "name": engine.weeks[idx],
        "rows": rows,
        "html": tooltip_text(engine, idx),
    }
