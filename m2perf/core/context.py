"""Per-run state shared by inspectors.

Expensive lookups (asking the PHP CLI for ``env.php`` or ini values,
reading ``/proc``) are memoized in a :class:`LookupCache` that lives exactly
as long as one analysis run. Nothing here is process-global.
"""
from __future__ import annotations

import json
import os
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, TypeVar

from .utils import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

PHP_BINARY_ENV = "M2PERF_PHP_BINARY"
PROC_ROOT = Path("/proc")
_PHP_TIMEOUT = 15


class SourceError(RuntimeError):
    """Raised when a lookup cannot read its data source."""


class LookupCache:
    """Memoizes lookup results for the lifetime of one run."""

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        with self._lock:
            if key not in self._values:
                self._values[key] = compute()
            return self._values[key]


def _php_binary() -> str:
    return os.getenv(PHP_BINARY_ENV, "php")


def run_php(code: str, *args: str) -> Any:
    """Evaluate ``code`` with the PHP CLI and decode its JSON output."""

    command = [_php_binary(), "-r", code, *args]
    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=_PHP_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise SourceError(f"Could not run PHP CLI: {exc}") from exc
    if completed.returncode != 0:
        raise SourceError(f"PHP CLI exited with {completed.returncode}: {completed.stderr.strip()}")
    try:
        return json.loads(completed.stdout or "null")
    except json.JSONDecodeError as exc:
        raise SourceError("PHP CLI returned invalid JSON") from exc


def _load_etc_file(magento_root: Path, name: str) -> Dict[str, Any]:
    path = magento_root / "app" / "etc" / name
    if not path.is_file():
        raise SourceError(f"Cannot find {name} at: {path}")
    data = run_php("echo json_encode(include $argv[1]);", str(path))
    if not isinstance(data, dict):
        raise SourceError(f"Invalid {name} at: {path}")
    return data


def load_env_php(magento_root: Path) -> Dict[str, Any]:
    return _load_etc_file(magento_root, "env.php")


def load_config_php(magento_root: Path) -> Dict[str, Any]:
    """Deployment configuration, including the module enable map."""

    return _load_etc_file(magento_root, "config.php")


def section(data: Any, *keys: str) -> Dict[str, Any]:
    """Nested dict lookup. PHP encodes empty arrays as lists; those count as empty."""

    for key in keys:
        if not isinstance(data, dict):
            return {}
        data = data.get(key)
    return data if isinstance(data, dict) else {}


def detect_mode(magento_root: Path, env_config: Dict[str, Any] | None = None) -> str:
    """Magento deploy mode: MAGE_MODE env var, then env.php, then 'default'."""

    mode = os.getenv("MAGE_MODE")
    if mode:
        return mode
    if env_config is None:
        try:
            env_config = load_env_php(magento_root)
        except SourceError as exc:
            logger.debug("Deploy mode unknown: %s", exc)
            return "default"
    value = env_config.get("MAGE_MODE")
    return str(value) if value else "default"


@dataclass
class RunContext:
    """Everything an inspector may consult about the target installation."""

    magento_root: Path
    mode: str = "default"
    dev_mode_aware: bool = False
    base_url: str | None = None
    lookups: LookupCache = field(default_factory=LookupCache)

    @property
    def in_developer_mode(self) -> bool:
        return self.dev_mode_aware and self.mode == "developer"

    def env_config(self) -> Dict[str, Any]:
        return self.lookups.get_or_compute("env.php", lambda: load_env_php(self.magento_root))

    def config_php(self) -> Dict[str, Any]:
        return self.lookups.get_or_compute("config.php", lambda: load_config_php(self.magento_root))

    def modules(self) -> Dict[str, int]:
        """Module name to enabled flag from config.php."""

        modules = section(self.config_php(), "modules")
        flags: Dict[str, int] = {}
        for name, enabled in modules.items():
            try:
                flags[str(name)] = int(enabled)
            except (TypeError, ValueError):
                flags[str(name)] = 0
        return flags

    def env_value(self, *path: str, default: Any = None) -> Any:
        node: Any = self.env_config()
        for key in path:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def php_ini(self, extension: str) -> Dict[str, str] | None:
        """Directives of a PHP extension, or None when it is not loaded."""

        def _lookup() -> Dict[str, str] | None:
            data = run_php("echo json_encode(@ini_get_all($argv[1], false));", extension)
            if not isinstance(data, dict):
                return None
            return {str(k): "" if v is None else str(v) for k, v in data.items()}

        return self.lookups.get_or_compute(f"ini:{extension}", _lookup)

    def php_extension_loaded(self, extension: str) -> bool:
        return bool(
            self.lookups.get_or_compute(
                f"ext:{extension}",
                lambda: run_php("echo json_encode(extension_loaded($argv[1]));", extension),
            )
        )

    def read_proc(self, relative: str) -> str | None:
        def _read() -> str | None:
            path = PROC_ROOT / relative
            try:
                return path.read_text(encoding="utf-8").strip()
            except OSError:
                return None

        return self.lookups.get_or_compute(f"proc:{relative}", _read)

    def read_sysctl(self, name: str) -> str | None:
        value = self.read_proc("sys/" + name.replace(".", "/"))
        if value is None:
            return None
        return " ".join(value.split())


__all__ = [
    "LookupCache",
    "RunContext",
    "SourceError",
    "detect_mode",
    "load_config_php",
    "load_env_php",
    "run_php",
    "section",
]
