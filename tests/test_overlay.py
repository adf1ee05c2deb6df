import numpy as np

from usage_hud.runtime.usage_tracker import UsageSnapshot
from usage_hud.visualization.overlay import draw_usage_bars, draw_usage_hud, format_usage_lines


def test_format_usage_lines():
    snap = UsageSnapshot(render_pct=0.3, input_pct=0.1, update_pct=0.2, system_pct=0.4, used_memory_pct=0.6, free_memory_pct=0.4, total_memory=2 * 1024 * 1024)
    lines = format_usage_lines(snap, fps=59.94)
    assert lines[0] == "FPS:  59.9"
    assert lines[1] == "render:  30.0%"
    assert lines[-1] == "mem:  60.0% used /  40.0% free of 2.0 MiB"


def test_format_usage_lines_renders_nan_as_na():
    snap = UsageSnapshot(used_memory_pct=float("nan"), free_memory_pct=float("nan"))
    lines = format_usage_lines(snap)
    assert len(lines) == 5
    assert lines[-1] == "mem: n/a used / n/a free of 0.0 MiB"


def test_draw_functions_keep_input_frame_untouched():
    frame = np.zeros((120, 360, 3), dtype=np.uint8)
    snap = UsageSnapshot(render_pct=0.5, system_pct=0.5, used_memory_pct=0.5, free_memory_pct=0.5, total_memory=1.0)
    hud = draw_usage_hud(frame, snap, fps=30.0, warnings=["warn"])
    bars = draw_usage_bars(frame, snap)
    assert hud.shape == frame.shape
    assert bars.shape == frame.shape
    assert not frame.any()
