"""Host uptime, load and memory checks."""
from __future__ import annotations

import os

from ..core.collector import Collector
from ..core.context import RunContext
from ..core.models import Priority

RECENT_RESTART_SECONDS = 3600
LONG_UPTIME_SECONDS = 365 * 86400
LOAD_RATIO = 0.8


def _meminfo(raw: str) -> dict[str, int]:
    values: dict[str, int] = {}
    for line in raw.splitlines():
        key, _, rest = line.partition(":")
        parts = rest.split()
        if parts and parts[0].isdigit():
            values[key.strip()] = int(parts[0])
    return values


class SystemInspector:
    name = "system"
    area = "system"

    def run(self, collector: Collector, context: RunContext) -> None:
        self._check_uptime(collector, context)
        self._check_load(collector, context)
        self._check_memory(collector, context)

    def _check_uptime(self, collector: Collector, context: RunContext) -> None:
        raw = context.read_proc("uptime")
        if not raw:
            return
        uptime = float(raw.split()[0])
        if uptime < RECENT_RESTART_SECONDS:
            collector.submit(
                self.area,
                "Review recent server restart",
                Priority.HIGH,
                f"Server uptime is only {uptime / 60:.1f} minutes. Check for unexpected restarts.",
                metadata={"uptime_seconds": uptime},
            )
        elif uptime > LONG_UPTIME_SECONDS:
            collector.submit(
                self.area,
                "Consider planned system maintenance",
                Priority.LOW,
                f"Server has been running for {int(uptime // 86400)} days. "
                "Schedule maintenance to apply kernel security updates.",
                metadata={"uptime_seconds": uptime},
            )

    def _check_load(self, collector: Collector, context: RunContext) -> None:
        raw = context.read_proc("loadavg")
        cpus = os.cpu_count()
        if not raw or not cpus:
            return
        load = float(raw.split()[0])
        if load > cpus * LOAD_RATIO:
            collector.submit(
                self.area,
                "Review high server load",
                Priority.HIGH,
                f"1-minute load average ({load:.2f}) is high for {cpus} CPU cores. "
                "Profile PHP-FPM and database usage or scale out.",
                metadata={"load": load, "cpus": cpus},
            )

    def _check_memory(self, collector: Collector, context: RunContext) -> None:
        raw = context.read_proc("meminfo")
        if not raw:
            return
        info = _meminfo(raw)
        total = info.get("MemTotal")
        available = info.get("MemAvailable")
        if not total or available is None:
            return
        used = (total - available) / total * 100
        if used > 90:
            collector.submit(
                self.area,
                "Review high memory usage",
                Priority.HIGH,
                f"Memory usage is {used:.1f}%. Add RAM or reduce PHP-FPM pm.max_children.",
                metadata={"used_percent": round(used, 1)},
            )
        elif used > 80:
            collector.submit(
                self.area,
                "Monitor memory usage",
                Priority.MEDIUM,
                f"Memory usage is {used:.1f}%. Monitor closely and consider optimization.",
                metadata={"used_percent": round(used, 1)},
            )


__all__ = ["SystemInspector"]
