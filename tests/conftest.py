"""Pytest fixtures for layerconf tests."""

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Provide a temporary layered config directory."""
    config = tmp_path / "config"
    config.mkdir()
    return config


@pytest.fixture
def write_config(config_dir: Path) -> Callable[[str, str], Path]:
    """Write a file into the temporary config directory."""

    def write(name: str, content: str) -> Path:
        path = config_dir / name
        path.write_text(content)
        return path

    return write


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove layerconf-related environment variables."""
    env_vars = [
        "LAYERCONF_CONFIG_DIR",
        "LAYERCONF_ENVIRONMENT",
        "LAYERCONF_EXPAND_ENV",
        "LAYERCONF_LOG_LEVEL",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def lookup() -> Callable[[str], str | None]:
    """Provide a fixed placeholder lookup."""
    values = {"HOST": "db.internal", "PORT": "5432", "EMPTY": ""}
    return values.get
