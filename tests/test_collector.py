import threading

import pytest

from m2perf.core.collector import Collector
from m2perf.core.models import FindingError, Priority


def test_submit_keeps_discovery_order(collector: Collector) -> None:
    collector.submit("redis", "Configure Redis for session storage", 3, "a")
    collector.submit("opcache", "Review OPcache Configuration for Production", 2, "b")
    collector.submit("redis", "Switch to LZ4 compression", 1, "c")

    titles = [finding.title for finding in collector.all()]
    assert titles == [
        "Configure Redis for session storage",
        "Review OPcache Configuration for Production",
        "Switch to LZ4 compression",
    ]
    assert len(collector) == 3
    assert collector.areas() == ["redis", "opcache"]


def test_filters(collector: Collector) -> None:
    collector.submit("redis", "High", 3, "")
    collector.submit("redis", "Medium", 2, "")
    collector.submit("cache", "Low", 1, "")

    assert [f.title for f in collector.by_area("redis")] == ["High", "Medium"]
    assert [f.title for f in collector.by_priority(Priority.LOW)] == ["Low"]
    assert [f.title for f in collector.at_least("medium")] == ["High", "Medium"]
    assert collector.by_area("missing") == []


def test_all_returns_a_copy(collector: Collector) -> None:
    collector.submit("cache", "Enable cache", 2, "")
    snapshot = collector.all()
    snapshot.clear()
    assert collector.count() == 1


def test_invalid_submission_is_not_recorded(collector: Collector) -> None:
    with pytest.raises(FindingError):
        collector.submit("cache", "Enable cache", 5, "")
    with pytest.raises(TypeError):
        collector.add("not a finding")  # type: ignore[arg-type]
    assert len(collector) == 0


def test_clear(collector: Collector) -> None:
    collector.submit("cache", "Enable cache", 2, "")
    collector.clear()
    assert list(collector) == []


def test_concurrent_submissions_are_all_kept(collector: Collector) -> None:
    def worker(index: int) -> None:
        for n in range(50):
            collector.submit("system", f"Finding {index}-{n}", 1, "")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert collector.count() == 400
    for index in range(8):
        own = [f.title for f in collector.all() if f.title.startswith(f"Finding {index}-")]
        assert own == [f"Finding {index}-{n}" for n in range(50)]
