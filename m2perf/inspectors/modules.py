"""Module inventory checks driven by app/etc/config.php."""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, List, Mapping

from ..core.collector import Collector
from ..core.context import RunContext, SourceError
from ..core.models import Priority
from ..core.utils import get_logger

logger = get_logger(__name__)

DISABLED_MODULE_LIMIT = 5
PROBLEMATIC_MODULE_LIMIT = 3
DEV_MODULE_MARKERS = ("sampledata", "developmenttools", "testmodule", "debug", "demo")

PROBLEMATIC_MODULES: Mapping[str, str] = {
    "Magento_AdminAnalytics": "Sends usage data to Adobe, can be disabled for privacy/performance",
    "Magento_NewRelicReporting": "Only needed if using New Relic APM",
    "Magento_GoogleAnalytics": "Legacy module, use Google Tag Manager instead",
    "Magento_GoogleAdwords": "Legacy module, use Google Tag Manager instead",
    "Magento_Marketplace": "Only needed for Marketplace vendors",
    "Magento_AdminNotification": "Can be disabled if not using admin notifications",
    "Magento_ProductVideo": "Heavy module, only keep if using video features",
    "Magento_Swagger": "API documentation, not needed in production",
    "Magento_SwaggerWebapi": "API documentation, not needed in production",
    "Magento_SwaggerWebapiAsync": "API documentation, not needed in production",
    "Magento_Version": "Exposes version information, security risk",
}

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")


def composer_package_name(module: str) -> str | None:
    """Magento_CatalogSearch -> magento/module-catalog-search; None for third-party modules."""

    if not module.startswith("Magento_"):
        return None
    name = _CAMEL_BOUNDARY.sub(r"\1-\2", module[len("Magento_"):]).lower()
    return f"magento/module-{name}"


def is_dev_module(module: str) -> bool:
    lowered = module.lower()
    return any(marker in lowered for marker in DEV_MODULE_MARKERS)


def _composer_requirements(magento_root: Path) -> Mapping[str, str]:
    path = magento_root / "composer.json"
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.info("Ignoring unreadable composer.json: %s", exc)
        return {}
    require = data.get("require") if isinstance(data, dict) else None
    return require if isinstance(require, dict) else {}


class ModulesInspector:
    """Flags disabled, development-only and rarely needed modules."""

    name = "modules"
    area = "modules"

    def run(self, collector: Collector, context: RunContext) -> None:
        try:
            modules = context.modules()
        except SourceError as exc:
            logger.info("Skipping module inventory: %s", exc)
            return
        if not modules:
            return

        disabled = [name for name, enabled in modules.items() if enabled == 0]
        requirements = _composer_requirements(context.magento_root)
        removable: Dict[str, str] = {}
        for module in disabled:
            package = composer_package_name(module)
            if package and package in requirements:
                removable[module] = package

        self._report_disabled(collector, disabled, removable)
        self._report_dev_modules(collector, [name for name in disabled if is_dev_module(name)])
        self._report_problematic(collector, modules)

    def _report_disabled(self, collector: Collector, disabled: List[str], removable: Dict[str, str]) -> None:
        if len(disabled) <= DISABLED_MODULE_LIMIT:
            return
        details = (
            f"You have {len(disabled)} disabled modules. Remove them completely; they slow down "
            "deployment and composer operations."
        )
        if removable:
            listed = list(removable.items())
            lines = [f"  - {module}" for module, _ in listed[:5]]
            if len(listed) > 5:
                lines.append(f"  - ... and {len(listed) - 5} more")
            commands = [f"composer remove {package}" for _, package in listed]
            run_line = "Run: " + " ".join(commands[:3])
            if len(commands) > 3:
                run_line += " ..."
            details += "\n\nModules to remove with composer:\n" + "\n".join(lines) + "\n\n" + run_line
        collector.submit(
            self.area,
            "Remove disabled modules completely",
            Priority.HIGH,
            details,
            explanation="Disabled modules still live in vendor/ and slow composer operations, "
            "static content deployment and DI compilation.",
            affected_paths=disabled,
            metadata={
                "total_disabled": len(disabled),
                "removable_via_composer": dict(removable),
                "composer_commands": [f"composer remove {package}" for package in removable.values()],
            },
        )

    def _report_dev_modules(self, collector: Collector, dev_modules: List[str]) -> None:
        if not dev_modules:
            return
        listing = "\n".join(f"  - {module}" for module in dev_modules)
        collector.submit(
            self.area,
            "Remove development modules",
            Priority.HIGH,
            f"Found development/sample modules that should not be in production:\n{listing}",
            explanation="Development and sample data modules increase attack surface and can "
            "expose sensitive information.",
        )

    def _report_problematic(self, collector: Collector, modules: Mapping[str, int]) -> None:
        found = [(name, reason) for name, reason in PROBLEMATIC_MODULES.items() if modules.get(name) == 1]
        if len(found) <= PROBLEMATIC_MODULE_LIMIT:
            return
        lines = [f"  - {name}\n    {reason}" for name, reason in found[:5]]
        if len(found) > 5:
            lines.append(f"... and {len(found) - 5} more modules to review")
        collector.submit(
            self.area,
            "Review potentially unnecessary modules",
            Priority.MEDIUM,
            "Found modules that may impact performance or security:\n\n" + "\n".join(lines),
            explanation="Each active module adds overhead to deployment, compilation and runtime.",
            metadata={"modules": [name for name, _ in found]},
        )


__all__ = ["ModulesInspector", "composer_package_name", "is_dev_module"]
