import json
from pathlib import Path

from usage_hud.runtime.usage_tracker import UsageSnapshot


class UsageLogger:
    def __init__(self, run_dir: Path):
        self.log_path = Path(run_dir) / "usage_windows.jsonl"
        self.last_window = 0
        self.log_path.touch(exist_ok=True)

    def log(self, frame_idx: int, timestamp_s: float, snapshot: UsageSnapshot) -> bool:
        """Append a record only when a new window has been published."""
        if snapshot.window_count == self.last_window:
            return False
        event = {
            "window": snapshot.window_count,
            "frame": frame_idx,
            "time_s": round(timestamp_s, 3),
            **snapshot.as_dict(finite_only=True),
        }
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(event) + "\n")
        self.last_window = snapshot.window_count
        return True
