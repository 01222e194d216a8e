# tests/core/test_strict_rollback.py
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from projctx.errors import PersistenceError


def _seed(registry):
    """Populate a project in memory only (ensure() never writes)."""
    from projctx.store.schema import Category, Task

    ts = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    doc = registry.ensure("p")
    doc.context.rules(Category.CONTEXT).append("existing rule")
    doc.tasks.append(Task(id=0, title="existing task", created_at=ts, updated_at=ts))
    return doc


def test_refused_add_rule_leaves_no_project(strict_registry):
    from projctx.rules.catalog import RuleCatalog

    catalog = RuleCatalog(strict_registry)
    with pytest.raises(PersistenceError):
        catalog.add_rule("p", "context", "refused rule")

    assert catalog.get_context("p") is None
    assert "p" not in strict_registry


def test_refused_add_rule_keeps_existing_rules(strict_registry):
    from projctx.rules.catalog import RuleCatalog
    from projctx.store.schema import Category

    _seed(strict_registry)
    catalog = RuleCatalog(strict_registry)
    with pytest.raises(PersistenceError):
        catalog.add_rule("p", "context", "refused rule")

    assert catalog.get_context("p") == {Category.CONTEXT: ["existing rule"]}


def test_refused_remove_rule_keeps_the_rule(strict_registry):
    from projctx.rules.catalog import RuleCatalog
    from projctx.store.schema import Category

    _seed(strict_registry)
    catalog = RuleCatalog(strict_registry)
    with pytest.raises(PersistenceError):
        catalog.remove_rule("p", "context", 0)

    assert catalog.get_context("p") == {Category.CONTEXT: ["existing rule"]}


def test_refused_task_changes_are_undone(strict_registry):
    from projctx.store.schema import TaskStatus
    from projctx.tasks.ledger import TaskLedger

    _seed(strict_registry)
    ledger = TaskLedger(strict_registry)

    with pytest.raises(PersistenceError):
        ledger.add_task("p", "refused task")
    with pytest.raises(PersistenceError):
        ledger.complete_task("p", 0)

    tasks = strict_registry.get("p").tasks
    assert [t.title for t in tasks] == ["existing task"]
    assert tasks[0].status == TaskStatus.PENDING


def test_refused_log_event_is_not_recorded(strict_registry):
    from projctx.events.log import EventLog

    log = EventLog(strict_registry)
    with pytest.raises(PersistenceError):
        log.record("p", "note", "refused")

    assert log.history("p") == []
    assert "p" not in strict_registry


def test_refused_db_config_keeps_no_descriptor(strict_registry):
    from projctx.core_tools.context_tools import ContextTools
    from projctx.errors import DatabaseNotConfiguredError

    tools = ContextTools(strict_registry)
    with pytest.raises(PersistenceError):
        tools.db_config("db", "app", "dev", "pw", project="p")

    with pytest.raises(DatabaseNotConfiguredError):
        tools.database_config("p")
    assert "p" not in strict_registry
