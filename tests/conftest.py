import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from m2perf.core import config as config_module
from m2perf.core import context as context_module
from m2perf.core.collector import Collector
from m2perf.core.context import RunContext
from m2perf.core.models import Finding


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith("M2PERF_"):
            monkeypatch.delenv(name)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("MAGE_MODE", raising=False)
    monkeypatch.setenv(context_module.PHP_BINARY_ENV, str(tmp_path / "no-php"))
    monkeypatch.setattr(context_module, "PROC_ROOT", tmp_path / "proc")
    monkeypatch.setattr(config_module, "CONFIG_PATH", tmp_path / "config.toml")
    yield
    logger = logging.getLogger("m2perf")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    root = tmp_path / "proc"
    root.mkdir(exist_ok=True)
    return root


@pytest.fixture
def collector() -> Collector:
    return Collector()


@pytest.fixture
def make_context(tmp_path: Path):
    def _make(
        *,
        env: dict | None = None,
        config: dict | None = None,
        ini: dict | None = None,
        extensions: dict | None = None,
        mode: str = "default",
        dev_mode_aware: bool = False,
        base_url: str | None = None,
    ) -> RunContext:
        context = RunContext(
            magento_root=tmp_path,
            mode=mode,
            dev_mode_aware=dev_mode_aware,
            base_url=base_url,
        )
        if env is not None:
            context.lookups.get_or_compute("env.php", lambda: env)
        if config is not None:
            context.lookups.get_or_compute("config.php", lambda: config)
        for name, directives in (ini or {}).items():
            context.lookups.get_or_compute(f"ini:{name}", lambda value=directives: value)
        for name, loaded in (extensions or {}).items():
            context.lookups.get_or_compute(f"ext:{name}", lambda value=loaded: value)
        return context

    return _make


def make_finding(
    title: str = "Enable something",
    area: str = "general",
    priority: int = 3,
    details: str = "Details",
    **kwargs,
) -> Finding:
    return Finding(area=area, title=title, priority=priority, details=details, **kwargs)
