from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, Iterator

from usage_hud.utils.logger import get_logger

if TYPE_CHECKING:
    from usage_hud.runtime.usage_tracker import UsageTracker

logger = get_logger(__name__)


@contextmanager
def timing(label: str) -> Iterator[None]:
    start = time.perf_counter()
    yield
    duration_ms = (time.perf_counter() - start) * 1000
    logger.debug("%s took %.2f ms", label, duration_ms)


class PhaseTimer:
    """Times host-loop phases and feeds them into a UsageTracker."""

    def __init__(self, tracker: "UsageTracker"):
        self._marks: Dict[str, Callable[[int], None]] = {
            "render": tracker.mark_render,
            "input": tracker.mark_input,
            "update": tracker.mark_update,
        }
        self.last_ns: Dict[str, int] = {}

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        mark = self._marks[name]
        start = time.perf_counter_ns()
        try:
            yield
        finally:
            elapsed = time.perf_counter_ns() - start
            self.last_ns[name] = elapsed
            mark(elapsed)

    def stages_ms(self) -> Dict[str, float]:
        return {name: ns / 1e6 for name, ns in self.last_ns.items()}


@dataclass
class FrameClock:
    """Nanoseconds between consecutive ticks of the host loop."""

    _last_ns: int = field(default_factory=time.perf_counter_ns)

    def tick(self) -> int:
        now = time.perf_counter_ns()
        elapsed = now - self._last_ns
        self._last_ns = now
        return elapsed


@dataclass
class FPSMeter:
    """Exponential moving average FPS estimator."""

    smoothing: float = 0.9
    fps: float = 0.0
    _last_ts: float = field(default_factory=time.perf_counter)

    def tick(self) -> float:
        now = time.perf_counter()
        dt = max(now - self._last_ts, 1e-9)
        inst_fps = 1.0 / dt
        self.fps = inst_fps if self.fps <= 0 else (self.smoothing * self.fps + (1 - self.smoothing) * inst_fps)
        self._last_ts = now
        return self.fps
