from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULTS: Dict[str, Any] = {
    "project": {"name": "usage-hud"},
    "runtime": {
        "output_dir": "results",
        "log_level": "INFO",
        "save_video": False,
        "save_metrics": True,
        "snapshot_every_windows": 0,
    },
    "loop": {
        "target_fps": 60,
        "duration_s": 5.0,
        "max_frames": 0,
        "width": 640,
        "height": 360,
        "input_ms": 0.5,
        "update_ms": 4.0,
        "render_ms": 2.0,
    },
    "memory": {"source": "virtual"},
    "health": {"memory_warn_pct": 0.9},
    "overlay": {"enabled": True, "bars": True},
}


def load_yaml(path: str | Path) -> Dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path.resolve()}")
    with config_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay `override` onto a copy of `base`."""
    out = deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(path: str | Path | None = None) -> Dict[str, Any]:
    if path is None:
        return deepcopy(DEFAULTS)
    return merge(DEFAULTS, load_yaml(path))


def get(cfg: Dict[str, Any], key: str, default: Any = None) -> Any:
    """
    Dot-access helper:
      get(cfg, "runtime.output_dir", "results")
    """
    cur: Any = cfg
    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur
