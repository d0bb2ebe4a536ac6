"""Example m2perf inspector plugin."""
from __future__ import annotations

from m2perf.core.collector import Collector
from m2perf.core.context import RunContext
from m2perf.core.models import Priority

LOG_SIZE_LIMIT = 100 * 1024 * 1024


class LargeLogInspector:
    """Flags oversized files under var/log."""

    name = "example-large-logs"
    area = "logs"

    def __init__(self, limit: int = LOG_SIZE_LIMIT) -> None:
        self.limit = limit

    def run(self, collector: Collector, context: RunContext) -> None:
        log_dir = context.magento_root / "var" / "log"
        if not log_dir.is_dir():
            return
        oversized = sorted(
            (path for path in log_dir.glob("*.log") if path.stat().st_size > self.limit),
            key=lambda path: path.name,
        )
        if not oversized:
            return
        total = sum(path.stat().st_size for path in oversized)
        collector.submit(
            self.area,
            "Configure log rotation for var/log",
            Priority.MEDIUM,
            f"{len(oversized)} log files exceed {self.limit // (1024 * 1024)} MB.\n"
            "Add a logrotate rule for var/log/*.log or truncate the files after review.",
            explanation="Large log files slow down writes and fill the disk unnoticed.",
            affected_paths=[str(path) for path in oversized],
            metadata={"total_bytes": total, "limit_bytes": self.limit},
        )


def get_inspector() -> LargeLogInspector:
    return LargeLogInspector()


inspector = LargeLogInspector()

__all__ = ["inspector", "get_inspector", "LargeLogInspector"]
