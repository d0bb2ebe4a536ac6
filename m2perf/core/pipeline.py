"""Pipeline utilities for running inspectors."""
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .collector import Collector
from .context import RunContext
from .registry import Inspector
from .utils import get_logger

logger = get_logger(__name__)


@dataclass
class RunReport:
    """Bookkeeping for one pass over the inspectors."""

    timings: Dict[str, float] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)
    executed: List[str] = field(default_factory=list)

    @property
    def total_seconds(self) -> float:
        return sum(self.timings.values())


def _run_one(inspector: Inspector, collector: Collector, context: RunContext, report: RunReport) -> None:
    start = time.perf_counter()
    try:
        inspector.run(collector, context)
    except Exception as exc:  # noqa: BLE001 - one broken inspector must not end the run
        logger.warning("Inspector %s failed: %s", inspector.name, exc)
        report.failures[inspector.name] = str(exc)
    finally:
        report.timings[inspector.name] = time.perf_counter() - start


def run_inspectors(
    inspectors: Sequence[Inspector],
    collector: Collector,
    context: RunContext,
    *,
    workers: int = 1,
) -> RunReport:
    """Execute inspectors and collect their findings.

    With ``workers > 1`` each inspector fills a private buffer on a worker
    thread; buffers are merged in inspector order once every worker has
    finished. Findings from one inspector always keep their own order.
    """

    report = RunReport()
    if workers <= 1 or len(inspectors) <= 1:
        for inspector in inspectors:
            logger.debug("Running inspector %s", inspector.name)
            _run_one(inspector, collector, context, report)
            report.executed.append(inspector.name)
        return report

    buffers = [Collector() for _ in inspectors]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(_run_one, inspector, buffer, context, report)
            for inspector, buffer in zip(inspectors, buffers)
        ]
        for future in futures:
            future.result()
    for inspector, buffer in zip(inspectors, buffers):
        collector.extend(buffer.all())
        report.executed.append(inspector.name)
    return report


__all__ = ["RunReport", "run_inspectors"]
