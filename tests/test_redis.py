from m2perf.core.collector import Collector
from m2perf.core.models import Priority
from m2perf.inspectors.redis import RedisInspector

TUNED_SESSION = {
    "host": "127.0.0.1",
    "disable_locking": "1",
    "compression_lib": "lz4",
    "timeout": "5",
    "persistent_identifier": "sess-db0",
    "max_concurrency": "20",
    "database": "2",
}
REDIS_CACHE = {
    "frontend": {
        "default": {
            "backend": "Magento\\Framework\\Cache\\Backend\\Redis",
            "backend_options": {"server": "127.0.0.1", "database": "0", "preload_keys": ["EAV_ENTITY_TYPES"]},
        }
    }
}


def test_tuned_configuration_is_clean(make_context, collector: Collector) -> None:
    context = make_context(
        env={"session": {"save": "redis", "redis": TUNED_SESSION}, "cache": REDIS_CACHE},
        extensions={"redis": True},
    )
    RedisInspector().run(collector, context)
    assert collector.all() == []


def test_missing_redis_storage(make_context, collector: Collector) -> None:
    context = make_context(env={"session": {"save": "files"}, "cache": {"frontend": []}}, extensions={"redis": False})
    RedisInspector().run(collector, context)

    findings = collector.all()
    assert [f.title for f in findings] == [
        "Configure Redis for session storage",
        "Configure Redis for cache storage",
        "Install phpredis extension",
    ]
    assert all(f.priority is Priority.HIGH for f in findings)
    assert all(f.area == "redis" for f in findings)


def test_session_tuning_findings(make_context, collector: Collector) -> None:
    session = dict(
        TUNED_SESSION,
        disable_locking="0",
        compression_lib="gzip",
        timeout="1",
        max_concurrency="2",
        database="0",
    )
    del session["persistent_identifier"]
    cache = {"frontend": {"default": dict(REDIS_CACHE["frontend"]["default"])}}
    cache["frontend"]["default"]["backend_options"] = {"database": "0"}
    context = make_context(env={"session": {"redis": session}, "cache": cache}, extensions={"redis": True})

    RedisInspector().run(collector, context)

    assert [(f.title, f.priority) for f in collector.all()] == [
        ("Disable Redis session locking", Priority.HIGH),
        ("Switch to LZ4 compression", Priority.LOW),
        ("Increase Redis timeout", Priority.MEDIUM),
        ("Enable Redis persistent connections", Priority.MEDIUM),
        ("Increase Redis max_concurrency", Priority.LOW),
        ("Use separate Redis databases", Priority.MEDIUM),
        ("Configure Redis cache preloading", Priority.LOW),
    ]
    timeout = collector.by_area("redis")[2]
    assert timeout.metadata["current"] == 1.0


def test_uncompressed_sessions(make_context, collector: Collector) -> None:
    session = dict(TUNED_SESSION, compression_lib="none")
    context = make_context(env={"session": {"redis": session}, "cache": REDIS_CACHE}, extensions={"redis": True})
    RedisInspector().run(collector, context)
    assert [f.title for f in collector.all()] == ["Enable Redis session compression"]


def test_unreadable_env_php_skips_checks(make_context, collector: Collector) -> None:
    RedisInspector().run(collector, make_context())
    assert len(collector) == 0


def test_extension_lookup_failure_is_ignored(make_context, collector: Collector) -> None:
    context = make_context(env={"session": {"redis": TUNED_SESSION}, "cache": REDIS_CACHE})
    RedisInspector().run(collector, context)
    assert collector.all() == []
