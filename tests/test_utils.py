import json
import logging
from datetime import datetime, timezone
from types import MappingProxyType

import pytest

from m2perf.core.models import Priority
from m2perf.core.utils import configure_logging, env_bool, get_logger, json_dump


def test_get_logger_namespaces() -> None:
    assert get_logger("cli").name == "m2perf.cli"
    assert get_logger("m2perf.core.pipeline").name == "m2perf.core.pipeline"


def test_configure_logging_levels(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger("m2perf")
    configure_logging()
    assert root.level == logging.WARNING
    configure_logging(verbose=True)
    assert root.level == logging.DEBUG
    configure_logging(quiet=True)
    assert root.level == logging.ERROR
    monkeypatch.setenv("M2PERF_LOG_LEVEL", "info")
    configure_logging()
    assert root.level == logging.INFO
    assert len(root.handlers) == 1


def test_env_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    assert env_bool("M2PERF_FLAG", True) is True
    monkeypatch.setenv("M2PERF_FLAG", "off")
    assert env_bool("M2PERF_FLAG", True) is False
    monkeypatch.setenv("M2PERF_FLAG", "On")
    assert env_bool("M2PERF_FLAG") is True


def test_json_dump_handles_special_values() -> None:
    payload = {
        "when": datetime(2024, 1, 2, tzinfo=timezone.utc),
        "priority": Priority.HIGH,
        "meta": MappingProxyType({"a": 1}),
    }
    data = json.loads(json_dump(payload))
    assert data == {"when": "2024-01-02T00:00:00+00:00", "priority": 3, "meta": {"a": 1}}
