from __future__ import annotations

from typing import Callable, Dict, NamedTuple

import psutil


class MemorySample(NamedTuple):
    total: int
    free: int


MemorySampler = Callable[[], MemorySample]


def virtual_memory_sample() -> MemorySample:
    mem = psutil.virtual_memory()
    return MemorySample(total=int(mem.total), free=int(mem.available))


def swap_memory_sample() -> MemorySample:
    # Hosts without swap report total=0; the tracker then publishes NaN fractions.
    swap = psutil.swap_memory()
    return MemorySample(total=int(swap.total), free=int(swap.free))


def process_memory_sample() -> MemorySample:
    """System memory seen from this process: everything except our own RSS is free."""
    total = int(psutil.virtual_memory().total)
    rss = int(psutil.Process().memory_info().rss)
    return MemorySample(total=total, free=total - rss)


def fixed_memory_sampler(total: int, free: int) -> MemorySampler:
    sample = MemorySample(total=int(total), free=int(free))

    def _sample() -> MemorySample:
        return sample

    return _sample


SAMPLERS: Dict[str, MemorySampler] = {
    "virtual": virtual_memory_sample,
    "swap": swap_memory_sample,
    "process": process_memory_sample,
}


def make_memory_sampler(source: str = "virtual") -> MemorySampler:
    try:
        return SAMPLERS[str(source).lower()]
    except KeyError:
        raise ValueError(f"Unknown memory source '{source}', expected one of {sorted(SAMPLERS)}") from None
