"""
Tooltip assembly on top of ChartEngine.query().

The engine answers "which markers have a value at this index"; this module
turns that readout into labelled rows and the small html snippets the
chart shows on hover.
"""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from timechart.config import ACTUAL_COLOR, OBSERVED_COLOR, SENTINEL

if TYPE_CHECKING:
    from timechart.engine import ChartEngine
    from timechart.schemas import ModelMeta


def hex_to_rgba(hex_color: str, alpha: float) -> str:
    """'#1f77b4', 0.6 -> 'rgba(31, 119, 180, 0.6)'"""
    h = hex_color.lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    if len(h) != 6:
        raise ValueError(f"Not a hex colour: {hex_color!r}")
    r, g, b = (int(h[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha})"


def tooltip_rows(engine: "ChartEngine", idx: int) -> List[Dict[str, Any]]:
    readout = engine.query(idx)
    rows = []

    actual = readout.pop("actual", None)
    if actual is not None and actual != SENTINEL:
        rows.append({"id": "actual", "key": "Actual", "value": actual, "color": ACTUAL_COLOR})

    observed = readout.pop("observed", None)
    if observed is not None:
        rows.append({"id": "observed", "key": "Observed", "value": observed, "color": OBSERVED_COLOR})

    colors = {p.id: p.color for p in engine.predictions}
    for marker_id, value in readout.items():
        rows.append({"id": marker_id, "key": marker_id, "value": value, "color": colors.get(marker_id)})
    return rows


def _row_html(key: str, value: float, color: Optional[str]) -> str:
    style = f' style="color:{color}"' if color else ""
    return (
        f'<div class="point"{style}>{escape(str(key))}</div>'
        f'<div class="value">{value:.2f}</div>'
    )


def tooltip_text(engine: "ChartEngine", idx: int) -> str:
    rows = tooltip_rows(engine, idx)
    html = f'<div class="week">Week {engine.weeks[idx]}</div>'
    return html + "".join(_row_html(r["key"], r["value"], r["color"]) for r in rows)


def point_tooltip(marker_id: str, items: List[Dict[str, Any]], color: str) -> str:
    """Tooltip of a single onset/peak mark."""
    html = f'<div class="id" style="color:{color}">{escape(marker_id)}</div>'
    for item in items:
        html += _row_html(item["key"], item["value"], None)
    return html


def legend_tooltip(meta: "ModelMeta", fallback_name: str = "") -> str:
    name = meta.name or fallback_name
    html = f'<div class="name">{escape(name)}</div>'
    if meta.description:
        html += f'<div class="description">{escape(meta.description)}</div>'
    if meta.url:
        html += f'<a class="url" href="{escape(meta.url)}" target="_blank">Source</a>'
    return html
