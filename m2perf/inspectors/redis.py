"""Redis session and cache storage checks against app/etc/env.php."""
from __future__ import annotations

from typing import Any, Mapping

from ..core.collector import Collector
from ..core.context import RunContext, SourceError, section
from ..core.models import Priority
from ..core.utils import get_logger

logger = get_logger(__name__)

MIN_TIMEOUT = 2.5
MIN_CONCURRENCY = 6


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class RedisInspector:
    name = "redis"
    area = "redis"

    def run(self, collector: Collector, context: RunContext) -> None:
        try:
            env = context.env_config()
        except SourceError as exc:
            logger.info("Skipping Redis checks: %s", exc)
            return
        self._check_session(collector, env)
        self._check_cache(collector, env)
        self._check_extension(collector, context)

    def _check_session(self, collector: Collector, env: Mapping[str, Any]) -> None:
        config = section(env, "session", "redis")
        if not config:
            collector.submit(
                self.area,
                "Configure Redis for session storage",
                Priority.HIGH,
                "Redis session storage is not configured. This significantly improves "
                "session handling performance.\n"
                "bin/magento setup:config:set --session-save=redis --session-save-redis-host=127.0.0.1",
            )
            return

        if str(config.get("disable_locking", "")) != "1":
            collector.submit(
                self.area,
                "Disable Redis session locking",
                Priority.HIGH,
                "Session locking is enabled which causes blocking on concurrent requests. "
                "Set disable_locking=1 for a major performance improvement.\n"
                "bin/magento setup:config:set --session-save-redis-disable-locking=1",
            )

        compression = str(config.get("compression_lib", "none") or "none")
        if compression == "none":
            collector.submit(
                self.area,
                "Enable Redis session compression",
                Priority.MEDIUM,
                "Session compression is disabled. Use lz4 for best performance: compression_lib=lz4",
            )
        elif compression == "gzip":
            collector.submit(
                self.area,
                "Switch to LZ4 compression",
                Priority.LOW,
                "Currently using gzip compression. LZ4 is faster: compression_lib=lz4",
            )

        timeout = _as_float(config.get("timeout"))
        if timeout is not None and timeout < MIN_TIMEOUT:
            collector.submit(
                self.area,
                "Increase Redis timeout",
                Priority.MEDIUM,
                f"Redis timeout is too low: {config.get('timeout')}s. Set to at least {MIN_TIMEOUT}s",
                metadata={"current": timeout, "minimum": MIN_TIMEOUT},
            )

        if "persistent_identifier" not in config:
            collector.submit(
                self.area,
                "Enable Redis persistent connections",
                Priority.MEDIUM,
                "Persistent connections reduce connection overhead. Add the persistent_identifier parameter.",
            )

        concurrency = _as_float(config.get("max_concurrency"))
        if concurrency is None or concurrency < MIN_CONCURRENCY:
            collector.submit(
                self.area,
                "Increase Redis max_concurrency",
                Priority.LOW,
                f"Set max_concurrency to at least {MIN_CONCURRENCY} for better concurrent request handling",
            )

    def _check_cache(self, collector: Collector, env: Mapping[str, Any]) -> None:
        frontend = section(env, "cache", "frontend", "default")
        options = section(frontend, "backend_options")
        backend = str(frontend.get("backend", ""))
        if not options or "redis" not in backend.lower():
            collector.submit(
                self.area,
                "Configure Redis for cache storage",
                Priority.HIGH,
                "Redis cache storage is not configured. This provides a significant performance "
                "improvement over the file-based cache.\n"
                "bin/magento setup:config:set --cache-backend=redis --cache-backend-redis-db=0",
            )
            return

        session = section(env, "session", "redis")
        if session and str(session.get("database", 0)) == str(options.get("database", 0)):
            collector.submit(
                self.area,
                "Use separate Redis databases",
                Priority.MEDIUM,
                "Sessions and cache share the same Redis database. Use different database "
                "numbers for better isolation.",
            )

        if not options.get("preload_keys"):
            collector.submit(
                self.area,
                "Configure Redis cache preloading",
                Priority.LOW,
                "Consider preloading frequently used cache keys for better performance.",
            )

    def _check_extension(self, collector: Collector, context: RunContext) -> None:
        try:
            loaded = context.php_extension_loaded("redis")
        except SourceError as exc:
            logger.debug("Cannot check phpredis: %s", exc)
            return
        if not loaded:
            collector.submit(
                self.area,
                "Install phpredis extension",
                Priority.HIGH,
                "The phpredis extension is not installed. It provides better performance than predis.\n"
                "pecl install redis",
            )


__all__ = ["RedisInspector"]
