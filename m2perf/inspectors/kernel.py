"""Kernel network and memory parameter checks."""
from __future__ import annotations

from typing import List, Mapping

from ..core.collector import Collector
from ..core.context import RunContext
from ..core.models import Priority

SYSCTL_RECOMMENDATIONS: Mapping[str, str] = {
    "net.core.somaxconn": "1024",
    "net.core.netdev_max_backlog": "5000",
    "net.ipv4.tcp_congestion_control": "bbr",
    "net.ipv4.tcp_notsent_lowat": "16384",
    "net.ipv4.tcp_tw_reuse": "1",
    "net.ipv4.ip_local_port_range": "1024 65535",
    "net.ipv4.tcp_fin_timeout": "15",
    "net.ipv4.tcp_keepalive_time": "300",
    "vm.swappiness": "10",
}

# Values that should be at least the recommendation rather than equal to it.
_MINIMUMS = {"net.core.somaxconn", "net.core.netdev_max_backlog", "net.ipv4.tcp_notsent_lowat"}
_MAXIMUMS = {"net.ipv4.tcp_fin_timeout", "net.ipv4.tcp_keepalive_time", "vm.swappiness"}


def _needs_change(name: str, current: str, wanted: str) -> bool:
    if name in _MINIMUMS or name in _MAXIMUMS:
        try:
            value = int(current)
        except ValueError:
            return True
        return value < int(wanted) if name in _MINIMUMS else value > int(wanted)
    return current != wanted


class KernelInspector:
    name = "kernel"
    area = "system"

    def run(self, collector: Collector, context: RunContext) -> None:
        lines: List[str] = []
        commands: List[str] = []
        for name, wanted in SYSCTL_RECOMMENDATIONS.items():
            current = context.read_sysctl(name)
            if current is None:
                continue
            if _needs_change(name, current, wanted):
                lines.append(f"{name}: current={current}, recommended={wanted}")
                commands.append(f"sysctl -w {name}=\"{wanted}\"")
        if not lines:
            return
        collector.submit(
            self.area,
            "Optimize kernel network parameters",
            Priority.MEDIUM if len(lines) > 3 else Priority.LOW,
            "Kernel parameters differ from recommended values:\n"
            + "\n".join(lines)
            + "\n\nApply with:\n"
            + "\n".join(commands)
            + "\nPersist the values in /etc/sysctl.d/99-magento.conf",
            metadata={"parameters": len(lines)},
        )


__all__ = ["KernelInspector", "SYSCTL_RECOMMENDATIONS"]
