"""OPcache directive checks."""
from __future__ import annotations

import re
from typing import Dict, List, Mapping

from ..core.collector import Collector
from ..core.context import RunContext, SourceError
from ..core.models import Priority
from ..core.utils import get_logger

logger = get_logger(__name__)

INI_PATH = "/etc/php/*/fpm/conf.d/10-opcache.ini"
MAX_LISTED_COMMANDS = 5

PRODUCTION_SETTINGS: Mapping[str, str] = {
    "opcache.enable": "1",
    "opcache.enable_cli": "0",
    "opcache.validate_timestamps": "0",
    "opcache.revalidate_freq": "0",
    "opcache.memory_consumption": "1024",
    "opcache.interned_strings_buffer": "64",
    "opcache.max_wasted_percentage": "10",
    "opcache.consistency_checks": "0",
    "opcache.save_comments": "1",
    "opcache.file_update_protection": "2",
}

DEVELOPER_OVERRIDES: Mapping[str, str] = {
    "opcache.enable_cli": "1",
    "opcache.validate_timestamps": "1",
    "opcache.revalidate_freq": "0",
    "opcache.file_update_protection": "0",
    "opcache.memory_consumption": "512",
    "opcache.interned_strings_buffer": "32",
}

_MEMORY_DIRECTIVES = {"opcache.memory_consumption", "opcache.interned_strings_buffer"}


def recommended_settings(developer: bool) -> Dict[str, str]:
    settings = dict(PRODUCTION_SETTINGS)
    if developer:
        settings.update(DEVELOPER_OVERRIDES)
    return settings


def _normalize(key: str, value: str) -> str:
    if key in _MEMORY_DIRECTIVES:
        return re.sub(r"\D+", "", value)
    return value


class OpcacheInspector:
    name = "opcache"
    area = "opcache"

    def run(self, collector: Collector, context: RunContext) -> None:
        try:
            directives = context.php_ini("zend opcache")
        except SourceError as exc:
            logger.info("Skipping OPcache checks: %s", exc)
            return
        if not directives or directives.get("opcache.enable") in {"0", ""}:
            collector.submit(
                self.area,
                "Enable OPcache",
                Priority.HIGH,
                "OPcache is disabled or unavailable. Enabling it can significantly improve PHP performance.\n"
                f"echo 'opcache.enable=1' >> {INI_PATH}",
                explanation="OPcache keeps compiled bytecode in shared memory, removing the compile "
                "step from every request.",
            )
            return
        self._check_directives(collector, context, directives)
        self._check_accelerated_files(collector, context, directives)

    def _check_directives(self, collector: Collector, context: RunContext, directives: Mapping[str, str]) -> None:
        developer = context.in_developer_mode
        mismatches: List[str] = []
        commands: List[str] = []
        for key, wanted in recommended_settings(developer).items():
            if key not in directives:
                continue
            current = _normalize(key, directives[key])
            if current != wanted:
                mismatches.append(f"{key}: current={current}, recommended={wanted}")
                commands.append(f"echo '{key}={wanted}' >> {INI_PATH}")
        if not mismatches:
            return

        mode = "Development" if developer else "Production"
        detail = f"OPcache settings not optimal for {mode} mode:\n" + "\n".join(mismatches)
        detail += "\n\nTo fix, run these commands:\n" + "\n".join(commands[:MAX_LISTED_COMMANDS])
        if len(commands) > MAX_LISTED_COMMANDS:
            detail += f"\n... and {len(commands) - MAX_LISTED_COMMANDS} more"
        collector.submit(
            self.area,
            f"Review OPcache Configuration for {mode}",
            Priority.LOW if developer else Priority.MEDIUM,
            detail,
            metadata={"mismatches": len(mismatches)},
        )

    def _check_accelerated_files(
        self, collector: Collector, context: RunContext, directives: Mapping[str, str]
    ) -> None:
        try:
            limit = int(directives.get("opcache.max_accelerated_files", "0") or 0)
        except ValueError:
            return
        if limit <= 0 or limit >= 100000:
            return
        php_files = context.lookups.get_or_compute(
            "php-file-count",
            lambda: sum(1 for _ in context.magento_root.rglob("*.php")),
        )
        if php_files > limit:
            collector.submit(
                self.area,
                "Adjust opcache.max_accelerated_files",
                Priority.HIGH,
                f"Detected {php_files} PHP files but opcache.max_accelerated_files is set to {limit}.\n"
                f"echo 'opcache.max_accelerated_files=100000' >> {INI_PATH}",
                explanation="Once the limit is reached OPcache silently stops caching new scripts.",
                metadata={"php_files": php_files, "limit": limit},
            )


__all__ = ["OpcacheInspector", "recommended_settings"]
