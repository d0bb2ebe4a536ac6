"""Inspector discovery and registry support."""
from __future__ import annotations

from dataclasses import dataclass
from importlib import import_module
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Callable, Iterable, List, Mapping, Protocol, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from .collector import Collector
    from .context import RunContext

ENTRY_POINT_GROUP = "m2perf.inspectors"

PROFILE_INSPECTORS: Mapping[str, Sequence[str] | None] = {
    "basic": ("cache", "redis", "opcache", "kernel", "system", "modules"),
    "security": ("headers", "security", "system"),
    "full": None,
}

# Area names accepted by --areas, mapped to the inspectors that cover them.
AREA_ALIASES: Mapping[str, Sequence[str]] = {
    "cache": ("cache",),
    "caching": ("cache",),
    "varnish": ("cache",),
    "redis": ("redis",),
    "opcache": ("opcache",),
    "php": ("opcache",),
    "kernel": ("kernel",),
    "system": ("system", "kernel"),
    "security": ("headers", "security"),
    "modules": ("modules",),
    "headers": ("headers",),
}


class Inspector(Protocol):
    """Inspectors examine one aspect of an installation and report findings."""

    name: str
    area: str

    def run(self, collector: "Collector", context: "RunContext") -> None:  # pragma: no cover - protocol
        ...


@dataclass
class InspectorRecord:
    """Metadata about a discovered inspector."""

    name: str
    load: Callable[[], object]
    source: str


def builtin_inspectors() -> List[Inspector]:
    from ..inspectors import BUILTIN_INSPECTORS

    return [factory() for factory in BUILTIN_INSPECTORS]


def discover_inspectors() -> Mapping[str, InspectorRecord]:
    """Discover inspectors registered via entry points."""

    discovered: dict[str, InspectorRecord] = {}
    eps = entry_points().select(group=ENTRY_POINT_GROUP)
    for ep in eps:
        discovered[ep.name] = InspectorRecord(
            name=ep.name,
            load=ep.load,
            source=ep.module or "unknown",
        )
    return discovered


def _instantiate(name: str, loaded: object) -> Inspector:
    inspector = loaded() if isinstance(loaded, type) else loaded
    if not hasattr(inspector, "run"):
        raise TypeError(f"Inspector '{name}' is missing a run() method")
    return inspector  # type: ignore[return-value]


def load_inspector(name: str) -> Inspector:
    records = discover_inspectors()
    if name not in records:
        raise KeyError(f"Inspector '{name}' not found")
    return _instantiate(name, records[name].load())


def load_example_inspector() -> Inspector:
    module = import_module("plugins.example_plugin")
    inspector = getattr(module, "inspector", None)
    if inspector is None:
        raise RuntimeError("Example plugin missing 'inspector' attribute")
    return _instantiate("example", inspector)


def select_inspectors(
    profile: str = "full",
    areas: Iterable[str] | None = None,
    disabled: Iterable[str] = (),
    *,
    available: Sequence[Inspector] | None = None,
) -> List[Inspector]:
    """Filter inspectors by profile, requested areas and the disabled list."""

    if profile not in PROFILE_INSPECTORS:
        raise ValueError(f"Unknown profile '{profile}'")
    inspectors = list(available) if available is not None else builtin_inspectors()
    wanted = PROFILE_INSPECTORS[profile]
    if wanted is not None:
        inspectors = [inspector for inspector in inspectors if inspector.name in wanted]

    requested = [area.strip() for area in (areas or ()) if area.strip()]
    if requested:
        names: set[str] = set()
        for area in requested:
            if area not in AREA_ALIASES:
                raise ValueError(f"Unknown area '{area}'")
            names.update(AREA_ALIASES[area])
        inspectors = [inspector for inspector in inspectors if inspector.name in names]

    skip = set(disabled)
    return [inspector for inspector in inspectors if inspector.name not in skip]


__all__ = [
    "AREA_ALIASES",
    "ENTRY_POINT_GROUP",
    "Inspector",
    "InspectorRecord",
    "PROFILE_INSPECTORS",
    "builtin_inspectors",
    "discover_inspectors",
    "load_example_inspector",
    "load_inspector",
    "select_inspectors",
]
