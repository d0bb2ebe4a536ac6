"""Configuration loading for m2perf."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional, Set

from .synthesis import PlanSettings
from .utils import env_bool

try:  # pragma: no cover - Python >=3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    import tomli as tomllib  # type: ignore[no-redef]


CONFIG_PATH = Path.home() / ".config" / "m2perf" / "config.toml"
PROFILES = ("basic", "security", "full")
DEFAULT_MODEL = "gpt-4"


class ConfigError(ValueError):
    """Raised for configuration values that cannot be used."""


@dataclass(frozen=True)
class RuntimeConfig:
    """Computed runtime configuration values."""

    magento_root: Path
    profile: str = "full"
    verbose: bool = False
    workers: int = 1
    disabled_inspectors: Set[str] = field(default_factory=set)
    base_url: str | None = None
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_MODEL
    plan_settings: PlanSettings = field(default_factory=PlanSettings)


def _load_file_config(path: Path | None = None) -> dict[str, object]:
    if path is not None and not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")
    path = path or CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc
    section = data.get("m2perf")
    if not isinstance(section, dict):
        return {}
    return section


def _env_list(name: str) -> Set[str]:
    value = os.getenv(name, "")
    return {item.strip() for item in value.split(",") if item.strip()}


def _as_int(value: object, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer")
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _plan_settings(section: object) -> PlanSettings:
    if not isinstance(section, Mapping):
        return PlanSettings()
    defaults = PlanSettings()
    try:
        return PlanSettings(
            quick_win_max_effort=_as_int(
                section.get("quick_win_max_effort", defaults.quick_win_max_effort),
                "plan.quick_win_max_effort",
            ),
            strategic_max_effort=_as_int(
                section.get("strategic_max_effort", defaults.strategic_max_effort),
                "plan.strategic_max_effort",
            ),
            bucket_size=_as_int(section.get("bucket_size", defaults.bucket_size), "plan.bucket_size"),
        )
    except ValueError as exc:
        if isinstance(exc, ConfigError):
            raise
        raise ConfigError(str(exc)) from exc


def load_config(
    *,
    cli_magento_root: Optional[Path] = None,
    cli_profile: Optional[str] = None,
    cli_verbose: Optional[bool] = None,
    cli_workers: Optional[int] = None,
    cli_disabled: Optional[Iterable[str]] = None,
    cli_base_url: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> RuntimeConfig:
    """Compose runtime configuration respecting precedence.

    Defaults < config file < environment < command line.
    """

    file_config = _load_file_config(config_path)

    root: object = file_config.get("magento_root") or os.getcwd()
    root = os.getenv("M2PERF_MAGENTO_ROOT") or root
    if cli_magento_root is not None:
        root = cli_magento_root
    magento_root = Path(str(root)).expanduser()

    profile = str(file_config.get("profile", "full"))
    profile = os.getenv("M2PERF_PROFILE") or profile
    if cli_profile:
        profile = cli_profile
    if profile not in PROFILES:
        raise ConfigError(f"Unknown profile '{profile}', expected one of {', '.join(PROFILES)}")

    file_verbose = bool(file_config.get("verbose", False))
    env_verbose = env_bool("M2PERF_VERBOSE", file_verbose)
    verbose = cli_verbose if cli_verbose is not None else env_verbose

    workers = _as_int(file_config.get("workers", 1), "workers")
    if os.getenv("M2PERF_WORKERS"):
        workers = _as_int(os.getenv("M2PERF_WORKERS"), "M2PERF_WORKERS")
    if cli_workers is not None:
        workers = cli_workers
    if workers < 1:
        raise ConfigError("workers must be at least 1")

    disabled = {
        name
        for name in file_config.get("disabled_inspectors", [])  # type: ignore[union-attr]
        if isinstance(name, str) and name
    }
    disabled.update(_env_list("M2PERF_DISABLED_INSPECTORS"))
    if cli_disabled:
        disabled.update(cli_disabled)

    base_url = file_config.get("base_url")
    base_url = os.getenv("M2PERF_BASE_URL") or base_url
    if cli_base_url:
        base_url = cli_base_url

    api_key = file_config.get("openai_api_key")
    api_key = os.getenv("M2PERF_OPENAI_API_KEY") or os.getenv("OPENAI_API_KEY") or api_key
    model = str(file_config.get("openai_model", DEFAULT_MODEL))
    model = os.getenv("M2PERF_OPENAI_MODEL") or model

    return RuntimeConfig(
        magento_root=magento_root,
        profile=profile,
        verbose=verbose,
        workers=workers,
        disabled_inspectors=disabled,
        base_url=str(base_url) if base_url else None,
        openai_api_key=str(api_key) if api_key else None,
        openai_model=model,
        plan_settings=_plan_settings(file_config.get("plan")),
    )


__all__ = ["CONFIG_PATH", "ConfigError", "PROFILES", "RuntimeConfig", "load_config"]
