from __future__ import annotations

import math
from typing import Any, List, Optional, Tuple

try:
    import cv2
except ImportError:  # pragma: no cover
    cv2 = None

from usage_hud.runtime.usage_tracker import UsageSnapshot

MIB = 1024 * 1024

# BGR
PHASE_COLORS: List[Tuple[str, Tuple[int, int, int]]] = [
    ("render", (80, 200, 80)),
    ("input", (200, 160, 40)),
    ("update", (40, 140, 230)),
    ("system", (150, 150, 150)),
]


def _pct(value: float) -> str:
    return "n/a" if not math.isfinite(value) else f"{value * 100.0:5.1f}%"


def format_usage_lines(snapshot: UsageSnapshot, fps: Optional[float] = None) -> List[str]:
    lines = []
    if fps is not None:
        lines.append(f"FPS: {fps:5.1f}")
    lines.extend(
        [
            f"render: {_pct(snapshot.render_pct)}",
            f"input:  {_pct(snapshot.input_pct)}",
            f"update: {_pct(snapshot.update_pct)}",
            f"system: {_pct(snapshot.system_pct)}",
        ]
    )
    total = "n/a" if not math.isfinite(snapshot.total_memory) else f"{snapshot.total_memory / MIB:.1f} MiB"
    lines.append(f"mem: {_pct(snapshot.used_memory_pct)} used / {_pct(snapshot.free_memory_pct)} free of {total}")
    return lines


def draw_usage_hud(frame: Any, snapshot: UsageSnapshot, fps: Optional[float] = None, warnings: Optional[List[str]] = None) -> Any:
    """Usage text block in the top-left corner."""
    if cv2 is None:
        return frame

    render = frame.copy()
    y = 25
    for line in format_usage_lines(snapshot, fps):
        cv2.putText(render, line, (15, y), cv2.FONT_HERSHEY_SIMPLEX, 0.55, (255, 255, 255), 1)
        y += 22

    if warnings:
        y += 8
        for w in warnings[:3]:
            cv2.putText(render, w, (15, y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 255), 1)
            y += 20

    return render


def draw_usage_bars(frame: Any, snapshot: UsageSnapshot, width: int = 300, height: int = 12) -> Any:
    if cv2 is None:
        return frame

    render = frame.copy()
    x0 = 15
    y0 = render.shape[0] - 2 * height - 20

    x = x0
    for name, color in PHASE_COLORS:
        value = getattr(snapshot, f"{name}_pct")
        if not math.isfinite(value) or value <= 0:
            continue
        w = int(round(min(value, 1.0) * width))
        cv2.rectangle(render, (x, y0), (min(x + w, x0 + width), y0 + height), color, -1)
        x += w
    cv2.rectangle(render, (x0, y0), (x0 + width, y0 + height), (255, 255, 255), 1)

    y1 = y0 + height + 6
    used = snapshot.used_memory_pct
    if math.isfinite(used) and used > 0:
        cv2.rectangle(render, (x0, y1), (x0 + int(round(min(used, 1.0) * width)), y1 + height), (60, 60, 220), -1)
    cv2.rectangle(render, (x0, y1), (x0 + width, y1 + height), (255, 255, 255), 1)

    return render
