#!/usr/bin/env python3
import json
import sys
from pathlib import Path
from statistics import mean

FIELDS = ["render_pct", "input_pct", "update_pct", "system_pct", "used_memory_pct", "free_memory_pct"]


def load_windows(path: Path):
    windows = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line:
            windows.append(json.loads(line))
    return windows


def stats(xs):
    xs = [x for x in xs if x is not None]
    if not xs:
        return None
    return mean(xs), min(xs), max(xs)


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/summarize_run.py results/run_YYYYMMDD_HHMMSS")
        sys.exit(1)

    run_dir = Path(sys.argv[1])
    windows_path = run_dir / "usage_windows.jsonl"
    if not windows_path.exists():
        raise FileNotFoundError(f"Missing: {windows_path}")

    windows = load_windows(windows_path)
    n = len(windows)
    if n == 0:
        print("No windows found in usage_windows.jsonl")
        return

    print("\n================ USAGE RUN SUMMARY ================")
    print(f"Run dir: {run_dir}")
    print(f"Windows: {n}  (last frame {windows[-1].get('frame')}, samples {windows[-1].get('sample_count')})")

    print("\nFractions (avg / min / max):")
    for name in FIELDS:
        s = stats([w.get(name) for w in windows])
        label = name.replace("_pct", "")
        if s is None:
            print(f"  {label:12s} (missing)")
        else:
            print(f"  {label:12s} {s[0] * 100:6.1f}% {s[1] * 100:6.1f}% {s[2] * 100:6.1f}%")

    total = windows[-1].get("total_memory")
    if total is not None:
        print(f"\nAverage total memory: {total / (1024 * 1024):.1f} MiB")
    print("===================================================\n")


if __name__ == "__main__":
    main()
