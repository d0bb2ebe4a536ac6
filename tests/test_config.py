from pathlib import Path

import pytest

from m2perf.core.config import ConfigError, load_config

CONFIG = """
[m2perf]
magento_root = "/var/www/magento"
profile = "basic"
workers = 2
disabled_inspectors = ["kernel"]
base_url = "https://file.example.com"

[m2perf.plan]
bucket_size = 3
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    config = load_config()
    assert config.magento_root == tmp_path
    assert config.profile == "full"
    assert config.workers == 1
    assert config.disabled_inspectors == set()
    assert config.openai_api_key is None
    assert config.plan_settings.bucket_size == 5


def test_file_values(tmp_path: Path) -> None:
    config = load_config(config_path=_write(tmp_path, CONFIG))
    assert config.magento_root == Path("/var/www/magento")
    assert config.profile == "basic"
    assert config.workers == 2
    assert config.disabled_inspectors == {"kernel"}
    assert config.base_url == "https://file.example.com"
    assert config.plan_settings.bucket_size == 3
    assert config.plan_settings.quick_win_max_effort == 2


def test_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("M2PERF_PROFILE", "security")
    monkeypatch.setenv("M2PERF_WORKERS", "4")
    monkeypatch.setenv("M2PERF_DISABLED_INSPECTORS", "redis, opcache")
    monkeypatch.setenv("M2PERF_VERBOSE", "yes")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

    config = load_config(config_path=_write(tmp_path, CONFIG))

    assert config.profile == "security"
    assert config.workers == 4
    assert config.disabled_inspectors == {"kernel", "redis", "opcache"}
    assert config.verbose is True
    assert config.openai_api_key == "sk-env"


def test_cli_overrides_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("M2PERF_PROFILE", "security")
    monkeypatch.setenv("M2PERF_MAGENTO_ROOT", "/srv/env")
    monkeypatch.setenv("M2PERF_VERBOSE", "1")

    config = load_config(
        cli_magento_root=tmp_path,
        cli_profile="full",
        cli_verbose=False,
        cli_workers=3,
        cli_base_url="https://cli.example.com",
        config_path=_write(tmp_path, CONFIG),
    )

    assert config.magento_root == tmp_path
    assert config.profile == "full"
    assert config.verbose is False
    assert config.workers == 3
    assert config.base_url == "https://cli.example.com"


@pytest.mark.parametrize(
    "text",
    [
        "[m2perf]\nprofile = \"everything\"\n",
        "[m2perf]\nworkers = 0\n",
        "[m2perf]\nworkers = \"many\"\n",
        "[m2perf.plan]\nbucket_size = 0\n",
        "[m2perf\nbroken",
    ],
)
def test_invalid_configuration(tmp_path: Path, text: str) -> None:
    with pytest.raises(ConfigError):
        load_config(config_path=_write(tmp_path, text))


def test_missing_explicit_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Configuration file not found"):
        load_config(config_path=tmp_path / "typo.toml")
