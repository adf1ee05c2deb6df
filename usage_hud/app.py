from __future__ import annotations

import argparse
import json
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

try:
    import cv2
except ImportError:  # pragma: no cover
    cv2 = None

from rich.console import Console
from tqdm import tqdm

from usage_hud.runtime.health_monitor import HealthMonitor
from usage_hud.runtime.memory import MemorySampler, make_memory_sampler
from usage_hud.runtime.usage_logger import UsageLogger
from usage_hud.runtime.usage_tracker import UsageTracker
from usage_hud.utils.config import get, load_config
from usage_hud.utils.logger import setup_logger
from usage_hud.utils.timing import FPSMeter, FrameClock, PhaseTimer, timing
from usage_hud.visualization.overlay import draw_usage_bars, draw_usage_hud


def make_run_dir(base_dir: str | Path) -> Path:
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(base_dir) / f"run_{ts}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def _spend(ms: float) -> None:
    if ms > 0:
        time.sleep(ms / 1000.0)


def run(
    cfg: Dict[str, Any],
    run_dir: Path,
    seconds: Optional[float] = None,
    max_frames: Optional[int] = None,
    memory_sampler: Optional[MemorySampler] = None,
) -> Dict[str, Any]:
    """Drive a simulated frame loop through the usage tracker and write run artifacts."""
    logger = setup_logger(log_dir=run_dir, level=get(cfg, "runtime.log_level", "INFO"))

    duration_s = float(seconds if seconds is not None else get(cfg, "loop.duration_s", 5.0))
    frame_limit = int(max_frames if max_frames is not None else get(cfg, "loop.max_frames", 0))
    target_fps = float(get(cfg, "loop.target_fps", 60))
    frame_period_s = 1.0 / target_fps if target_fps > 0 else 0.0
    width = int(get(cfg, "loop.width", 640))
    height = int(get(cfg, "loop.height", 360))
    input_ms = float(get(cfg, "loop.input_ms", 0.0))
    update_ms = float(get(cfg, "loop.update_ms", 0.0))
    render_ms = float(get(cfg, "loop.render_ms", 0.0))
    overlay_enabled = bool(get(cfg, "overlay.enabled", True))
    bars_enabled = bool(get(cfg, "overlay.bars", True))
    save_video = bool(get(cfg, "runtime.save_video", False))
    save_metrics = bool(get(cfg, "runtime.save_metrics", True))
    snapshot_every = int(get(cfg, "runtime.snapshot_every_windows", 0))

    sampler = memory_sampler or make_memory_sampler(get(cfg, "memory.source", "virtual"))
    tracker = UsageTracker(memory_sampler=sampler)
    phases = PhaseTimer(tracker)
    clock = FrameClock()
    fps_meter = FPSMeter()
    monitor = HealthMonitor(get(cfg, "health", {}) or {})
    usage_logger = UsageLogger(run_dir)

    writer = None
    out_video_path = run_dir / "output.mp4"
    if save_video:
        if cv2 is None:
            raise ImportError("opencv-python is required to save video output")
        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        writer = cv2.VideoWriter(str(out_video_path), fourcc, target_fps or 30, (width, height))
        if not writer.isOpened():
            raise RuntimeError("Could not open VideoWriter (mp4v). Try a different codec/container.")

    logger.info(
        "Loop: target_fps=%.1f duration=%.1fs max_frames=%d size=%dx%d",
        target_fps,
        duration_s,
        frame_limit,
        width,
        height,
    )

    metrics: Dict[str, Any] = {
        "project": cfg.get("project", {}),
        "loop": cfg.get("loop", {}),
        "memory": cfg.get("memory", {}),
        "frames": 0,
        "windows": [],
    }

    snapshot = tracker.snapshot()
    warnings = []

    def draw_canvas() -> np.ndarray:
        canvas = np.zeros((height, width, 3), dtype=np.uint8)
        if overlay_enabled:
            canvas = draw_usage_hud(canvas, snapshot, fps_meter.fps, warnings)
            if bars_enabled:
                canvas = draw_usage_bars(canvas, snapshot)
        return canvas

    started = time.perf_counter()
    frame_id = 0
    progress = tqdm(total=frame_limit or None, desc="Frames", unit="frame")
    try:
        while True:
            elapsed_s = time.perf_counter() - started
            if frame_limit and frame_id >= frame_limit:
                break
            if not frame_limit and elapsed_s >= duration_s:
                break
            frame_id += 1
            frame_start = time.perf_counter()

            with phases.phase("input"):
                _spend(input_ms)

            with phases.phase("update"):
                _spend(update_ms)

            with phases.phase("render"):
                canvas = draw_canvas()
                _spend(render_ms)

            if writer is not None:
                writer.write(canvas)

            # Idle until the frame period is used up; this shows up as system time.
            remaining = frame_period_s - (time.perf_counter() - frame_start)
            if remaining > 0:
                time.sleep(remaining)

            fps_meter.tick()
            tracker.advance(clock.tick())
            progress.update(1)

            if tracker.window_count != snapshot.window_count:
                snapshot = tracker.snapshot()
                warnings = monitor.evaluate(snapshot)
                usage_logger.log(frame_id, time.perf_counter() - started, snapshot)
                logger.info(
                    "Window %d: render=%.1f%% input=%.1f%% update=%.1f%% system=%.1f%% mem_used=%.1f%%",
                    snapshot.window_count,
                    snapshot.render_pct * 100,
                    snapshot.input_pct * 100,
                    snapshot.update_pct * 100,
                    snapshot.system_pct * 100,
                    snapshot.used_memory_pct * 100,
                )
                if save_metrics:
                    metrics["windows"].append(
                        {
                            "frame": frame_id,
                            "fps": fps_meter.fps,
                            "stages_ms": phases.stages_ms(),
                            **snapshot.as_dict(finite_only=True),
                        }
                    )
                if snapshot_every and cv2 is not None and snapshot.window_count % snapshot_every == 0:
                    # The frame's canvas still shows the previous window.
                    cv2.imwrite(str(run_dir / f"hud_{snapshot.window_count:04d}.png"), draw_canvas())
    finally:
        progress.close()
        if writer is not None:
            writer.release()

    metrics["frames"] = frame_id
    if save_metrics:
        metrics_path = run_dir / "metrics.json"
        with timing("metrics dump"):
            metrics_path.write_text(json.dumps(metrics, indent=2), encoding="utf-8")
        logger.info("Saved metrics: %s", metrics_path)
    if writer is not None:
        logger.info("Saved video: %s", out_video_path)

    logger.info("Done. frames=%d windows=%d", frame_id, tracker.window_count)
    return metrics


def main():
    parser = argparse.ArgumentParser(description="usage-hud - frame usage sampler demo loop")
    parser.add_argument("--config", default="configs/usage.yaml", help="Path to YAML config")
    parser.add_argument("--seconds", type=float, default=None, help="Override loop.duration_s")
    parser.add_argument("--frames", type=int, default=None, help="Stop after this many frames")
    args = parser.parse_args()

    cfg = load_config(args.config)
    run_dir = make_run_dir(get(cfg, "runtime.output_dir", "results"))

    console = Console()
    console.print(f"[bold]usage-hud[/bold] run dir: {run_dir}")

    run(cfg, run_dir, seconds=args.seconds, max_frames=args.frames)


if __name__ == "__main__":
    main()
