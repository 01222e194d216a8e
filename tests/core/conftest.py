# tests/core/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """Deterministic clock: every call advances one second."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        value = self.now
        self.now = self.now + timedelta(seconds=1)
        return value


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def registry(tmp_path, monkeypatch):
    """
    An empty ProjectRegistry backed by a temp store file, with the working
    directory pinned to .../my-app so the default project name is stable.
    """
    settings = tmp_path / "settings.yaml"
    settings.write_text("history:\n  default_limit: 20\n", encoding="utf-8")
    monkeypatch.setenv("PROJCTX_SETTINGS_FILE", str(settings))
    monkeypatch.setenv("PROJCTX_STORE_FILE", str(tmp_path / "store.json"))

    from projctx.projects.registry import ProjectRegistry
    from projctx.store.store import ProjectStore

    store = ProjectStore(tmp_path / "store.json")
    return ProjectRegistry.open(store, cwd=lambda: str(tmp_path / "my-app"))


@pytest.fixture
def strict_registry(tmp_path, monkeypatch):
    """
    A ProjectRegistry whose strict store cannot be written: the store's
    parent "directory" is a regular file, so every commit raises
    PersistenceError.
    """
    settings = tmp_path / "settings.yaml"
    settings.write_text("store:\n  strict: true\n", encoding="utf-8")
    monkeypatch.setenv("PROJCTX_SETTINGS_FILE", str(settings))

    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    from projctx.projects.registry import ProjectRegistry
    from projctx.store.store import ProjectStore

    store = ProjectStore(blocker / "store.json", strict=True)
    return ProjectRegistry(store, cwd=lambda: str(tmp_path / "my-app"))
