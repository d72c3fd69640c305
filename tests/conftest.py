"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest

from herald.config import HeraldConfig
from tests.helpers.pipeline import Pipeline
from tests.helpers.webhook_mocks import SECRET

if typ.TYPE_CHECKING:
    from pathlib import Path

_HERALD_ENV_VARS = (
    "HERALD_WEBHOOK_SECRET",
    "WEBHOOK_SECRET",
    "HERALD_MAX_BODY_BYTES",
    "HERALD_ACCEPT_FORM_PAYLOADS",
    "HERALD_SCRIPT_DIRECTORY",
    "HERALD_HOST",
    "HERALD_PORT",
    "HERALD_LOG_LEVEL",
    "HERALD_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_herald_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test without Herald configuration in the environment."""
    for name in _HERALD_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def pipeline() -> Pipeline:
    """Return an open-mode pipeline with no subscribers."""
    return Pipeline.build()


@pytest.fixture
def script_dir(tmp_path: Path) -> Path:
    """Return an empty directory for subscriber modules and scripts."""
    directory = tmp_path / "notifier.d"
    directory.mkdir()
    return directory


@pytest.fixture
def secure_config() -> HeraldConfig:
    """Return a configuration with the fixture webhook secret."""
    return HeraldConfig(webhook_secret=SECRET)
