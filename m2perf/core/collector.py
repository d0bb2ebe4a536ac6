"""Order-preserving store for findings produced during one analysis run."""
from __future__ import annotations

import threading
from typing import Iterable, Iterator, List, Mapping, Sequence

from .models import Finding, Priority


class Collector:
    """Accumulates findings in discovery order.

    Writes are serialized with a lock so inspectors running on worker
    threads may submit directly. Reads return copies.
    """

    def __init__(self) -> None:
        self._findings: List[Finding] = []
        self._lock = threading.Lock()

    def submit(
        self,
        area: str,
        title: str,
        priority: int,
        details: str,
        explanation: str | None = None,
        affected_paths: Sequence[str] = (),
        metadata: Mapping[str, object] | None = None,
    ) -> None:
        """Record a finding. Raises FindingError for invalid values."""

        finding = Finding(
            area=area,
            title=title,
            priority=priority,
            details=details,
            explanation=explanation,
            affected_paths=tuple(affected_paths),
            metadata=dict(metadata or {}),
        )
        self.add(finding)

    def add(self, finding: Finding) -> None:
        if not isinstance(finding, Finding):
            raise TypeError(f"Expected Finding, got {type(finding).__name__}")
        with self._lock:
            self._findings.append(finding)

    def extend(self, findings: Iterable[Finding]) -> None:
        batch = list(findings)
        for finding in batch:
            if not isinstance(finding, Finding):
                raise TypeError(f"Expected Finding, got {type(finding).__name__}")
        with self._lock:
            self._findings.extend(batch)

    def all(self) -> List[Finding]:
        with self._lock:
            return list(self._findings)

    def by_area(self, area: str) -> List[Finding]:
        return [finding for finding in self.all() if finding.area == area]

    def by_priority(self, priority: int) -> List[Finding]:
        level = Priority.parse(priority)
        return [finding for finding in self.all() if finding.priority == level]

    def at_least(self, priority: int | str) -> List[Finding]:
        level = Priority.parse(priority)
        return [finding for finding in self.all() if finding.priority >= level]

    def areas(self) -> List[str]:
        seen: dict[str, None] = {}
        for finding in self.all():
            seen.setdefault(finding.area, None)
        return list(seen)

    def count(self) -> int:
        with self._lock:
            return len(self._findings)

    def clear(self) -> None:
        with self._lock:
            self._findings.clear()

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Finding]:
        return iter(self.all())


__all__ = ["Collector"]
