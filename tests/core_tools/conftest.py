# tests/core_tools/conftest.py
from __future__ import annotations

import pytest


@pytest.fixture
def context_env(tmp_path, monkeypatch):
    """
    Sandbox for ContextTools: temp settings + temp store file, cwd pinned to a
    directory named "my-app".
    """
    settings = tmp_path / "settings.yaml"
    settings.write_text(
        """history:
  default_limit: 20
database:
  default_port: 5432
  connect_timeout_seconds: 3
""",
        encoding="utf-8",
    )
    store_file = tmp_path / "store.json"
    project_dir = tmp_path / "my-app"
    project_dir.mkdir()

    monkeypatch.setenv("PROJCTX_SETTINGS_FILE", str(settings))
    monkeypatch.setenv("PROJCTX_STORE_FILE", str(store_file))
    monkeypatch.chdir(project_dir)

    yield {
        "settings": settings,
        "store_file": store_file,
        "project_dir": project_dir,
    }


@pytest.fixture
def tools(context_env):
    from projctx.core_tools.context_tools import ContextTools

    return ContextTools.from_config()
