"""Full-page cache and cache-type checks."""
from __future__ import annotations

from ..core.collector import Collector
from ..core.context import RunContext, SourceError, section
from ..core.models import Priority
from ..core.utils import get_logger

logger = get_logger(__name__)

VARNISH_APPLICATION = 2
PRODUCTION_CACHE_TYPES = (
    "config",
    "layout",
    "block_html",
    "collections",
    "reflection",
    "db_ddl",
    "eav",
    "full_page",
    "translate",
    "config_integration",
    "config_webservice",
)


class CacheInspector:
    name = "cache"
    area = "caching"

    def run(self, collector: Collector, context: RunContext) -> None:
        try:
            env = context.env_config()
        except SourceError as exc:
            logger.info("Skipping cache checks: %s", exc)
            return
        self._check_page_cache(collector, context, env)
        self._check_cache_types(collector, context, env)

    def _check_page_cache(self, collector: Collector, context: RunContext, env: dict) -> None:
        system = section(env, "system", "default", "system", "full_page_cache")
        application = system.get("caching_application")
        if str(application) == str(VARNISH_APPLICATION):
            return
        if context.in_developer_mode:
            return
        collector.submit(
            self.area,
            "Configure Varnish for full page cache",
            Priority.HIGH,
            "The built-in full page cache is in use. Varnish serves cached pages without PHP.\n"
            "bin/magento config:set system/full_page_cache/caching_application 2\n"
            "bin/magento varnish:vcl:generate --export-version=6 > default.vcl",
            explanation="Varnish typically answers cached requests in milliseconds and removes "
            "most PHP-FPM load for anonymous traffic.",
        )

    def _check_cache_types(self, collector: Collector, context: RunContext, env: dict) -> None:
        cache_types = env.get("cache_types")
        if not isinstance(cache_types, dict):
            return
        disabled = [name for name in PRODUCTION_CACHE_TYPES if str(cache_types.get(name, 0)) != "1"]
        if not disabled:
            return
        if context.in_developer_mode:
            # full_page and block_html are commonly off while developing
            disabled = [name for name in disabled if name not in {"full_page", "block_html", "layout"}]
            if not disabled:
                return
        collector.submit(
            self.area,
            "Enable disabled cache types",
            Priority.HIGH if "full_page" in disabled or "config" in disabled else Priority.MEDIUM,
            "The following cache types are disabled: " + ", ".join(disabled) + "\n"
            "bin/magento cache:enable " + " ".join(disabled),
            metadata={"disabled": disabled},
        )


__all__ = ["CacheInspector"]
