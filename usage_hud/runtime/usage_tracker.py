from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import numpy as np

from usage_hud.runtime.memory import MemorySampler, virtual_memory_sample
from usage_hud.utils.logger import get_logger

ONE_SECOND_IN_NANOSECONDS = 1_000_000_000

logger = get_logger(__name__)


def _ratio(numerator: float, denominator: float) -> float:
    # IEEE semantics: 0/0 -> nan, x/0 -> +-inf.
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.divide(np.float64(numerator), np.float64(denominator)))


@dataclass(frozen=True)
class UsageSnapshot:
    """Published values of the last completed window."""

    render_pct: float = 0.0
    input_pct: float = 0.0
    update_pct: float = 0.0
    system_pct: float = 0.0
    used_memory_pct: float = 0.0
    free_memory_pct: float = 0.0
    total_memory: float = 0.0
    window_count: int = 0
    sample_count: int = 0

    @property
    def tracked_pct(self) -> float:
        return self.render_pct + self.input_pct + self.update_pct

    def as_dict(self, finite_only: bool = False) -> Dict[str, Any]:
        data = asdict(self)
        if finite_only:
            data = {k: (None if isinstance(v, float) and not math.isfinite(v) else v) for k, v in data.items()}
        return data


class UsageTracker:
    """
    Accumulates render/input/update time and memory samples, and once per
    second of accumulated tick time publishes them as fractions.

    Time accumulators restart every window. Memory accumulators and the
    sample count cover the tracker's whole lifetime, so the memory figures
    are lifetime averages.

    All durations are integer nanoseconds. The tracker is not thread-safe;
    callers on more than one thread must serialize access themselves.
    """

    def __init__(self, memory_sampler: Optional[MemorySampler] = None):
        self._sample_memory = memory_sampler or virtual_memory_sample

        self._elapsed_ns = 0
        self._render_ns = 0
        self._input_ns = 0
        self._update_ns = 0
        self._system_ns = 0

        self._total_memory_accum = 0
        self._free_memory_accum = 0
        self._sample_count = 0
        self._window_count = 0

        self._render_pct = 0.0
        self._input_pct = 0.0
        self._update_pct = 0.0
        self._system_pct = 0.0
        self._used_memory_pct = 0.0
        self._free_memory_pct = 0.0
        self._total_memory = 0.0

    def mark_render(self, duration_ns: int) -> None:
        self._render_ns += duration_ns

    def mark_input(self, duration_ns: int) -> None:
        self._input_ns += duration_ns

    def mark_update(self, duration_ns: int) -> None:
        self._update_ns += duration_ns

    def advance(self, tick_elapsed_ns: int) -> None:
        """
        Account one host tick and recompute the published values when at
        least one second has accumulated.

        The window is measured in accumulated tick time, not wall-clock time.
        Overshoot past one second is not carried into the next window.
        """
        self._elapsed_ns += tick_elapsed_ns

        sample = self._sample_memory()
        self._total_memory_accum += sample.total
        self._free_memory_accum += sample.free
        self._sample_count += 1

        if self._elapsed_ns < ONE_SECOND_IN_NANOSECONDS:
            return

        elapsed = self._elapsed_ns
        self._system_ns = elapsed - (self._render_ns + self._input_ns + self._update_ns)

        self._render_pct = _ratio(self._render_ns, elapsed)
        self._update_pct = _ratio(self._update_ns, elapsed)
        self._input_pct = _ratio(self._input_ns, elapsed)
        # Overlapping or double-counted phases never show up as negative system time.
        self._system_pct = _ratio(self._system_ns, elapsed) if self._system_ns > 0 else 0.0

        self._total_memory = _ratio(self._total_memory_accum, self._sample_count)
        avg_free = _ratio(self._free_memory_accum, self._sample_count)
        avg_used = self._total_memory - avg_free
        self._free_memory_pct = _ratio(avg_free, self._total_memory)
        self._used_memory_pct = _ratio(avg_used, self._total_memory)

        self._elapsed_ns = 0
        self._render_ns = 0
        self._update_ns = 0
        self._input_ns = 0
        self._window_count += 1

        logger.debug(
            "window %d: render=%.3f input=%.3f update=%.3f system=%.3f mem_used=%.3f samples=%d",
            self._window_count,
            self._render_pct,
            self._input_pct,
            self._update_pct,
            self._system_pct,
            self._used_memory_pct,
            self._sample_count,
        )

    def snapshot(self) -> UsageSnapshot:
        return UsageSnapshot(
            render_pct=self._render_pct,
            input_pct=self._input_pct,
            update_pct=self._update_pct,
            system_pct=self._system_pct,
            used_memory_pct=self._used_memory_pct,
            free_memory_pct=self._free_memory_pct,
            total_memory=self._total_memory,
            window_count=self._window_count,
            sample_count=self._sample_count,
        )

    # Published values

    @property
    def render_pct(self) -> float:
        return self._render_pct

    @property
    def input_pct(self) -> float:
        return self._input_pct

    @property
    def update_pct(self) -> float:
        return self._update_pct

    @property
    def system_pct(self) -> float:
        return self._system_pct

    @property
    def used_memory_pct(self) -> float:
        return self._used_memory_pct

    @property
    def free_memory_pct(self) -> float:
        return self._free_memory_pct

    @property
    def total_memory(self) -> float:
        """Average total memory over every sample taken so far."""
        return self._total_memory

    # Accumulators

    @property
    def elapsed_ns(self) -> int:
        return self._elapsed_ns

    @property
    def render_ns(self) -> int:
        return self._render_ns

    @property
    def input_ns(self) -> int:
        return self._input_ns

    @property
    def update_ns(self) -> int:
        return self._update_ns

    @property
    def system_ns(self) -> int:
        return self._system_ns

    @property
    def total_memory_accum(self) -> int:
        return self._total_memory_accum

    @property
    def free_memory_accum(self) -> int:
        return self._free_memory_accum

    @property
    def sample_count(self) -> int:
        return self._sample_count

    @property
    def window_count(self) -> int:
        return self._window_count
