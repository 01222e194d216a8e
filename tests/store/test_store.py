# tests/store/test_store.py
from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest


def _sample_projects():
    from projctx.store.schema import (
        Category,
        DatabaseConfig,
        LogEntry,
        LogType,
        ProjectDocument,
        Task,
        TaskPriority,
    )

    ts = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    doc = ProjectDocument.new()
    doc.context.rules(Category.PROTECTED_FILES).append("config/secrets.yml")
    doc.context.rules(Category.BUSINESS_RULES).append("Invoices are immutable")
    doc.tasks.append(
        Task(id=0, title="Write tests", priority=TaskPriority.HIGH, created_at=ts, updated_at=ts)
    )
    doc.logs.append(LogEntry(timestamp=ts, type=LogType.NOTE, message="kickoff"))
    doc.database = DatabaseConfig(host="localhost", database="app", user="dev", password="pw")
    return {"my-app": doc, "other": ProjectDocument.new()}


def test_missing_file_loads_empty(store_env):
    from projctx.store.store import ProjectStore

    store = ProjectStore()
    assert store.path == store_env["store_file"]
    assert store.load() == {}
    # loading never creates the file
    assert not store_env["store_file"].exists()


def test_save_then_load_roundtrip(store_env):
    from projctx.store.schema import Category, TaskPriority
    from projctx.store.store import ProjectStore

    store = ProjectStore()
    assert store.save(_sample_projects()) is True
    assert store_env["store_file"].exists()

    loaded = ProjectStore().load()
    assert list(loaded) == ["my-app", "other"]
    doc = loaded["my-app"]
    assert doc.context.rules(Category.PROTECTED_FILES) == ["config/secrets.yml"]
    assert doc.tasks[0].title == "Write tests"
    assert doc.tasks[0].priority == TaskPriority.HIGH
    assert doc.tasks[0].created_at == datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    assert doc.logs[0].message == "kickoff"
    assert doc.database.port == 5432
    assert loaded["other"].database is None


def test_saved_file_is_readable_json(store_env):
    from projctx.store.store import ProjectStore

    ProjectStore().save(_sample_projects())
    raw = json.loads(store_env["store_file"].read_text(encoding="utf-8"))

    assert set(raw["my-app"]["context"]) == {
        "business_rules",
        "protected_files",
        "code_standards",
        "architecture",
        "context",
        "server_config",
        "deploy_rules",
    }
    assert raw["my-app"]["tasks"][0]["status"] == "pending"
    # absent optional fields are omitted, not written as null
    assert "database" not in raw["other"]
    assert "details" not in raw["my-app"]["logs"][0]


def test_corrupt_file_is_quarantined_and_loads_empty(store_env):
    from projctx.store.store import ProjectStore

    path = store_env["store_file"]
    path.parent.mkdir(parents=True)
    path.write_text("{not json", encoding="utf-8")

    assert ProjectStore().load() == {}

    backups = list(path.parent.glob("store.json.corrupt-*"))
    assert len(backups) == 1
    assert backups[0].read_text(encoding="utf-8") == "{not json"
    # original left in place until the next successful save
    assert path.exists()


def test_document_missing_a_category_is_corrupt(store_env):
    from projctx.store.store import ProjectStore

    path = store_env["store_file"]
    path.parent.mkdir(parents=True)
    path.write_text(
        json.dumps({"p": {"context": {"business_rules": []}, "tasks": [], "logs": []}}),
        encoding="utf-8",
    )

    assert ProjectStore().load() == {}


def test_strict_mode_raises_on_corrupt_file(store_env):
    from projctx.errors import PersistenceError
    from projctx.store.store import ProjectStore

    path = store_env["store_file"]
    path.parent.mkdir(parents=True)
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(PersistenceError):
        ProjectStore(strict=True).load()


def test_strict_setting_comes_from_yaml(store_env):
    from projctx.store.store import ProjectStore

    store_env["settings"].write_text("store:\n  strict: true\n", encoding="utf-8")
    assert ProjectStore().strict is True


def test_save_failure_is_reported(store_env):
    from projctx.errors import PersistenceError
    from projctx.store.store import ProjectStore

    # parent "directory" is a regular file -> mkdir/write fails
    blocker = store_env["tmp_path"] / "blocker"
    blocker.write_text("x", encoding="utf-8")
    target = blocker / "store.json"

    assert ProjectStore(target).save(_sample_projects()) is False
    with pytest.raises(PersistenceError):
        ProjectStore(target, strict=True).save(_sample_projects())
