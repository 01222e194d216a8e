# tests/core/test_tasks.py
from __future__ import annotations

import pytest


def test_task_ids_are_creation_positions(registry, clock):
    from projctx.store.schema import TaskPriority, TaskStatus
    from projctx.tasks.ledger import TaskLedger

    ledger = TaskLedger(registry, clock=clock)
    first = ledger.add_task("p", "First")
    second = ledger.add_task("p", "Second", description="details", priority="urgent")

    assert (first.id, second.id) == (0, 1)
    assert first.priority == TaskPriority.MEDIUM
    assert second.priority == TaskPriority.URGENT
    assert first.status == TaskStatus.PENDING
    assert first.created_at == first.updated_at


def test_add_task_rejects_bad_priority(registry):
    from projctx.errors import InvalidArgumentError
    from projctx.tasks.ledger import TaskLedger

    with pytest.raises(InvalidArgumentError, match="Invalid priority"):
        TaskLedger(registry).add_task("p", "t", priority="critical")
    with pytest.raises(InvalidArgumentError, match="title"):
        TaskLedger(registry).add_task("p", "")


def test_complete_task_only_touches_that_task(registry, clock):
    from projctx.store.schema import TaskStatus
    from projctx.tasks.ledger import TaskLedger

    ledger = TaskLedger(registry, clock=clock)
    for title in ["a", "b", "c"]:
        ledger.add_task("p", title)

    done = ledger.complete_task("p", 1)
    assert done.title == "b"
    assert done.status == TaskStatus.DONE
    assert done.updated_at > done.created_at

    statuses = [t.status for t in registry.get("p").tasks]
    assert statuses == [TaskStatus.PENDING, TaskStatus.DONE, TaskStatus.PENDING]


def test_complete_unknown_task_or_project(registry):
    from projctx.errors import NotFoundError
    from projctx.tasks.ledger import TaskLedger

    ledger = TaskLedger(registry)
    ledger.add_task("p", "only")

    with pytest.raises(NotFoundError, match="Task with ID 5 not found"):
        ledger.complete_task("p", 5)
    with pytest.raises(NotFoundError, match='Project "ghost" not found'):
        ledger.complete_task("ghost", 0)


def test_set_status_accepts_any_status(registry, clock):
    from projctx.store.schema import TaskStatus
    from projctx.tasks.ledger import TaskLedger

    ledger = TaskLedger(registry, clock=clock)
    ledger.add_task("p", "a")

    assert ledger.set_status("p", 0, "in_progress").status == TaskStatus.IN_PROGRESS
    assert ledger.set_status("p", "0", "cancelled").status == TaskStatus.CANCELLED


def test_list_tasks_groups_in_status_order(registry, clock):
    from projctx.store.schema import TaskStatus
    from projctx.tasks.ledger import TaskLedger

    ledger = TaskLedger(registry, clock=clock)
    for title in ["a", "b", "c", "d"]:
        ledger.add_task("p", title)
    ledger.complete_task("p", 0)
    ledger.set_status("p", 3, "in_progress")

    grouped = ledger.list_tasks("p")
    assert list(grouped) == [TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.DONE]
    assert [t.title for t in grouped[TaskStatus.PENDING]] == ["b", "c"]

    assert list(ledger.list_tasks("p", "done")) == [TaskStatus.DONE]
    assert ledger.list_tasks("p", "cancelled") == {}


def test_list_tasks_without_tasks_is_none(registry):
    from projctx.tasks.ledger import TaskLedger

    ledger = TaskLedger(registry)
    assert ledger.list_tasks("ghost") is None
    registry.ensure("empty")
    assert ledger.list_tasks("empty") is None
    assert "ghost" not in registry
