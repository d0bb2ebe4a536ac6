"""Filesystem and admin hardening checks for the Magento installation."""
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Sequence

from ..core.collector import Collector
from ..core.context import RunContext, SourceError
from ..core.models import Priority
from ..core.utils import get_logger

logger = get_logger(__name__)

DEFAULT_ADMIN_PATHS = ("admin", "backend", "administrator")
WRITABLE_PATHS = ("var", "generated", "pub/static", "pub/media")
BACKUP_PATTERNS = ("*.sql", "*.sql.gz", "*.tar", "*.tar.gz", "*.zip", "*.bak")
SENSITIVE_PUBLIC_FILES = (
    "info.php",
    "phpinfo.php",
    ".git",
    ".gitignore",
    ".env",
    "composer.json",
    "composer.lock",
    ".user.ini",
)
MAX_LISTED_FILES = 5


def _writable(path: Path) -> bool:
    return os.access(path, os.W_OK)


def _listing(paths: Sequence[str]) -> str:
    lines = [f"  - {Path(path).name}" for path in paths[:MAX_LISTED_FILES]]
    if len(paths) > MAX_LISTED_FILES:
        lines.append(f"  - ... and {len(paths) - MAX_LISTED_FILES} more")
    return "\n".join(lines)


class SecurityChecklistInspector:
    """Checks that need only the files on disk, env.php and config.php."""

    name = "security"
    area = "security"

    def run(self, collector: Collector, context: RunContext) -> None:
        self._check_permissions(collector, context.magento_root)
        self._check_two_factor(collector, context)
        self._check_admin_url(collector, context)
        self._check_public_backups(collector, context.magento_root)
        self._check_public_files(collector, context.magento_root)

    def _check_permissions(self, collector: Collector, root: Path) -> None:
        env_php = root / "app" / "etc" / "env.php"
        if env_php.is_file() and _writable(env_php):
            collector.submit(
                self.area,
                "Fix file permissions - too permissive",
                Priority.HIGH,
                "app/etc/env.php contains credentials and should not be writable by the PHP process.\n"
                "chmod 440 app/etc/env.php",
                affected_paths=[str(env_php)],
            )
        stuck = [
            relative
            for relative in WRITABLE_PATHS
            if (root / relative).is_dir() and not _writable(root / relative)
        ]
        if stuck:
            collector.submit(
                self.area,
                "Fix file permissions - not writable",
                Priority.HIGH,
                "These directories must be writable by the PHP process: " + ", ".join(stuck),
                affected_paths=[str(root / relative) for relative in stuck],
            )

    def _check_two_factor(self, collector: Collector, context: RunContext) -> None:
        try:
            modules = context.modules()
        except SourceError as exc:
            logger.info("Skipping module checks: %s", exc)
            return
        if modules.get("Magento_TwoFactorAuth", 1) == 0:
            collector.submit(
                self.area,
                "Enable Two-Factor Authentication",
                Priority.HIGH,
                "Two-Factor Authentication module is disabled. This is a critical security feature.\n"
                "bin/magento module:enable Magento_TwoFactorAuth",
            )

    def _check_admin_url(self, collector: Collector, context: RunContext) -> None:
        try:
            front_name = context.env_value("backend", "frontName", default="admin")
        except SourceError as exc:
            logger.info("Skipping admin URL check: %s", exc)
            return
        if str(front_name) in DEFAULT_ADMIN_PATHS:
            collector.submit(
                self.area,
                "Change default admin URL",
                Priority.HIGH,
                f'Admin URL "{front_name}" is predictable. Use a unique, hard-to-guess URL.\n'
                "bin/magento setup:config:set --backend-frontname=<unique-name>",
            )

    def _check_public_backups(self, collector: Collector, root: Path) -> None:
        pub = root / "pub"
        if not pub.is_dir():
            return
        found: List[str] = []
        for pattern in BACKUP_PATTERNS:
            for path in sorted(pub.glob(pattern)):
                if str(path) not in found:
                    found.append(str(path))
        if not found:
            return
        collector.submit(
            self.area,
            "Remove backup files from public directory",
            Priority.HIGH,
            f"Found {len(found)} backup/database files in the public directory:\n{_listing(found)}",
            explanation="Backups under pub/ can be downloaded by anyone and expose database "
            "credentials, customer data and source code.",
            affected_paths=found,
            metadata={"total_files": len(found)},
        )

    def _check_public_files(self, collector: Collector, root: Path) -> None:
        pub = root / "pub"
        found = [str(pub / name) for name in SENSITIVE_PUBLIC_FILES if (pub / name).exists()]
        if not found:
            return
        collector.submit(
            self.area,
            "Remove sensitive files from public access",
            Priority.HIGH,
            f"Found {len(found)} sensitive files in pub/:\n{_listing(found)}\n"
            "Remove them or block access in the web server configuration.",
            explanation="phpinfo output, VCS metadata and dependency manifests help attackers "
            "map the installation.",
            affected_paths=found,
            metadata={"total_files": len(found)},
        )


__all__ = ["SecurityChecklistInspector"]
