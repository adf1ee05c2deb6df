import math

import pytest

from usage_hud.runtime.memory import MemorySample, fixed_memory_sampler
from usage_hud.runtime.usage_tracker import ONE_SECOND_IN_NANOSECONDS, UsageSnapshot, UsageTracker


def sequence_sampler(*samples):
    it = iter(samples)
    last = [samples[-1]]

    def _sample():
        last[0] = next(it, last[0])
        return MemorySample(*last[0])

    return _sample


def test_single_window_scenario():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(1000, 400))
    tracker.mark_render(300_000_000)
    tracker.mark_input(100_000_000)
    tracker.mark_update(200_000_000)
    tracker.advance(1_000_000_000)

    assert tracker.render_pct == 0.3
    assert tracker.input_pct == 0.1
    assert tracker.update_pct == 0.2
    assert tracker.system_pct == 0.4
    assert tracker.used_memory_pct == 0.6
    assert tracker.free_memory_pct == 0.4
    assert tracker.total_memory == 1000
    assert tracker.render_pct + tracker.input_pct + tracker.update_pct + tracker.system_pct == pytest.approx(1.0)


def test_defaults_before_first_window():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(1000, 400))
    assert tracker.snapshot() == UsageSnapshot()
    tracker.mark_render(10)
    tracker.advance(500_000_000)
    assert tracker.render_pct == 0.0
    assert tracker.total_memory == 0.0
    assert tracker.window_count == 0
    assert tracker.sample_count == 1


def test_sub_second_ticks_wait_for_full_second():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(1000, 500))
    tracker.mark_update(100_000_000)
    for _ in range(9):
        tracker.advance(100_000_000)
        assert tracker.window_count == 0
        assert tracker.update_pct == 0.0
    assert tracker.elapsed_ns == 900_000_000

    tracker.advance(100_000_000)
    assert tracker.window_count == 1
    assert tracker.update_pct == pytest.approx(0.1)


def test_overshoot_is_not_carried_forward():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(1000, 500))
    tracker.mark_render(600_000_000)
    tracker.advance(1_500_000_000)
    assert tracker.render_pct == pytest.approx(0.4)
    assert tracker.elapsed_ns == 0

    tracker.advance(999_999_999)
    assert tracker.window_count == 1


def test_reset_clears_time_but_keeps_memory_accumulators():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(1000, 400))
    tracker.mark_render(1)
    tracker.mark_input(2)
    tracker.mark_update(3)
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)

    assert (tracker.elapsed_ns, tracker.render_ns, tracker.input_ns, tracker.update_ns) == (0, 0, 0, 0)
    assert tracker.sample_count == 1
    assert tracker.total_memory_accum == 1000
    assert tracker.free_memory_accum == 400
    assert tracker.system_ns == ONE_SECOND_IN_NANOSECONDS - 6


def test_memory_averages_span_windows():
    tracker = UsageTracker(memory_sampler=sequence_sampler((1000, 500), (2000, 1000)))
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)
    assert tracker.total_memory == 1000
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)

    assert tracker.sample_count == 2
    assert tracker.total_memory == 1500
    assert tracker.free_memory_pct == 0.5
    assert tracker.used_memory_pct + tracker.free_memory_pct == 1.0


def test_overcommitted_phases_clamp_system_to_zero():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(1000, 400))
    tracker.mark_render(700_000_000)
    tracker.mark_update(600_000_000)
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)

    assert tracker.system_pct == 0.0
    assert tracker.system_ns == -300_000_000
    assert tracker.render_pct == pytest.approx(0.7)
    assert tracker.update_pct == pytest.approx(0.6)


def test_exact_fit_leaves_no_system_time():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(1000, 400))
    tracker.mark_render(ONE_SECOND_IN_NANOSECONDS)
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)
    assert tracker.system_pct == 0.0
    assert tracker.render_pct == 1.0


def test_zero_total_memory_propagates_nan():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(0, 0))
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)
    assert math.isnan(tracker.used_memory_pct)
    assert math.isnan(tracker.free_memory_pct)
    assert tracker.total_memory == 0.0


def test_negative_marks_are_accepted():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(1000, 400))
    tracker.mark_input(-100_000_000)
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)
    assert tracker.input_pct == pytest.approx(-0.1)
    assert tracker.system_pct == pytest.approx(1.1)


def test_memory_sampled_once_per_advance():
    calls = []

    def sampler():
        calls.append(1)
        return MemorySample(100, 50)

    tracker = UsageTracker(memory_sampler=sampler)
    tracker.mark_render(5)
    for _ in range(3):
        tracker.advance(1)
    assert len(calls) == 3
    assert tracker.sample_count == 3


def test_snapshot_copies_published_values():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(1000, 400))
    tracker.mark_render(250_000_000)
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)
    snap = tracker.snapshot()

    assert snap.render_pct == 0.25
    assert snap.window_count == 1
    assert snap.sample_count == 1
    assert snap.tracked_pct == 0.25
    tracker.mark_render(ONE_SECOND_IN_NANOSECONDS)
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)
    assert snap.render_pct == 0.25


def test_snapshot_as_dict_finite_only():
    tracker = UsageTracker(memory_sampler=fixed_memory_sampler(0, 0))
    tracker.advance(ONE_SECOND_IN_NANOSECONDS)
    data = tracker.snapshot().as_dict(finite_only=True)
    assert data["used_memory_pct"] is None
    assert data["system_pct"] == 1.0
