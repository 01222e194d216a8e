# tests/store/conftest.py
from __future__ import annotations

import pytest


@pytest.fixture
def store_env(tmp_path, monkeypatch):
    """
    Per-test sandbox for the JSON store.

    - sets PROJCTX_SETTINGS_FILE to a temp settings.yaml (best-effort policy)
    - sets PROJCTX_STORE_FILE to a temp path that does not exist yet
    so we never touch the real ~/.mcp-project-context.json.
    """
    settings = tmp_path / "settings.yaml"
    settings.write_text(
        """store:
  strict: false
history:
  default_limit: 20
""",
        encoding="utf-8",
    )
    store_file = tmp_path / "ctx" / "store.json"

    monkeypatch.setenv("PROJCTX_SETTINGS_FILE", str(settings))
    monkeypatch.setenv("PROJCTX_STORE_FILE", str(store_file))

    yield {
        "tmp_path": tmp_path,
        "settings": settings,
        "store_file": store_file,
    }
