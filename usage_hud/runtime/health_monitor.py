import math
from typing import Any, Dict, List

from usage_hud.runtime.usage_tracker import UsageSnapshot
from usage_hud.utils.logger import get_logger


class HealthMonitor:
    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.logger = get_logger(__name__)
        self.warnings: List[str] = []

    def _warn(self, message: str) -> bool:
        self.logger.warning(message)
        self.warnings.append(message)
        return False

    def check_memory(self, snapshot: UsageSnapshot) -> bool:
        budget = float(self.config.get("memory_warn_pct", 0.9))
        if snapshot.used_memory_pct > budget:
            return self._warn(f"Memory pressure: {snapshot.used_memory_pct:.1%} used (budget {budget:.0%})")
        return True

    def check_overcommit(self, snapshot: UsageSnapshot) -> bool:
        tracked = snapshot.tracked_pct
        if tracked > 1.0:
            return self._warn(f"Phase time exceeds tick time ({tracked:.1%}); system time clamped to 0")
        return True

    def check_finite(self, snapshot: UsageSnapshot) -> bool:
        bad = [name for name, value in snapshot.as_dict().items() if isinstance(value, float) and not math.isfinite(value)]
        if bad:
            return self._warn(f"Non-finite usage values: {', '.join(bad)}")
        return True

    def evaluate(self, snapshot: UsageSnapshot) -> List[str]:
        self.warnings = []
        self.check_finite(snapshot)
        self.check_overcommit(snapshot)
        self.check_memory(snapshot)
        return list(self.warnings)
