# src/projctx/core_tools/context_tools.py
"""
Project-context tool functions.

ContextTools is the one object the MCP server owns. Each method is one tool
call: resolve the project name, run one operation against the rule catalog /
task ledger / event log / validation engine, and return the rendered text.
Mutations persist the whole store before returning.

Methods raise projctx.errors.ProjectContextError subclasses when they have
to refuse; the server turns those into "Error: ..." responses.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from projctx.config import loader as config_loader
from projctx.core_tools import render
from projctx.errors import DatabaseNotConfiguredError, InvalidArgumentError
from projctx.events.log import EventLog
from projctx.projects.registry import ProjectRegistry
from projctx.rules.catalog import RuleCatalog
from projctx.store.schema import (
    Category,
    DatabaseConfig,
    LogType,
    TaskStatus,
    coerce_int,
    require_text,
)
from projctx.store.store import ProjectStore
from projctx.tasks.ledger import TaskLedger
from projctx.validation.engine import ValidationEngine

logger = logging.getLogger(__name__)


class ContextTools:
    def __init__(
        self,
        registry: ProjectRegistry,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        history_limit: Optional[int] = None,
        default_db_port: Optional[int] = None,
    ) -> None:
        self.registry = registry
        self.rules = RuleCatalog(registry)
        self.tasks = TaskLedger(registry, clock=clock)
        self.events = EventLog(registry, clock=clock, default_limit=history_limit)
        self.validation = ValidationEngine(registry)
        self.default_db_port = default_db_port or config_loader.get_database_defaults()["port"]

    @classmethod
    def from_config(cls, store_path: Optional[Path] = None, **kwargs) -> "ContextTools":
        """Open the configured store (or `store_path`) and load every project."""
        store = ProjectStore(store_path)
        return cls(ProjectRegistry.open(store), **kwargs)

    # ------------------------------------------------------------------
    # rules
    # ------------------------------------------------------------------
    def add_rule(self, category: str, rule: str, project: Optional[str] = None) -> str:
        name = self.registry.resolve(project)
        cat = Category.parse(category, field="category")
        count = self.rules.add_rule(name, cat, rule)
        return render.render_rule_added(name, cat, rule, count)

    def get_context(self, project: Optional[str] = None, category: Optional[str] = None) -> str:
        name = self.registry.resolve(project)
        return render.render_context(name, self.rules.get_context(name, category or None))

    def list_projects(self, detailed: Optional[bool] = True) -> str:
        return render.render_projects(self.rules.list_projects(), detailed=detailed is not False)

    def remove_rule(self, category: str, index: int, project: Optional[str] = None) -> str:
        name = self.registry.resolve(project)
        cat = Category.parse(category, field="category")
        idx = coerce_int(index, field="index")
        removed = self.rules.remove_rule(name, cat, idx)
        return render.render_rule_removed(name, cat, idx, removed)

    def validate_changes(
        self,
        changes_description: str,
        files_affected: Optional[List[str]] = None,
        project: Optional[str] = None,
    ) -> str:
        name = self.registry.resolve(project)
        report = self.validation.validate(name, changes_description, files_affected)
        return render.render_validation(name, report)

    # ------------------------------------------------------------------
    # tasks
    # ------------------------------------------------------------------
    def add_task(
        self,
        title: str,
        description: Optional[str] = None,
        priority: Optional[str] = None,
        project: Optional[str] = None,
    ) -> str:
        name = self.registry.resolve(project)
        task = self.tasks.add_task(name, title, description=description, priority=priority)
        return render.render_task_added(name, task)

    def list_tasks(self, status: Optional[str] = None, project: Optional[str] = None) -> str:
        name = self.registry.resolve(project)
        st = TaskStatus.parse(status, field="status") if status else None
        return render.render_tasks(name, self.tasks.list_tasks(name, st), st)

    def complete_task(self, task_id: int, project: Optional[str] = None) -> str:
        name = self.registry.resolve(project)
        return render.render_task_updated(self.tasks.complete_task(name, task_id))

    def set_task_status(self, task_id: int, status: str, project: Optional[str] = None) -> str:
        name = self.registry.resolve(project)
        return render.render_task_updated(self.tasks.set_status(name, task_id, status))

    # ------------------------------------------------------------------
    # event log
    # ------------------------------------------------------------------
    def log_event(
        self,
        type: str,
        message: str,
        details: Optional[str] = None,
        project: Optional[str] = None,
    ) -> str:
        name = self.registry.resolve(project)
        entry = self.events.record(name, type, message, details=details)
        return render.render_log_added(name, entry)

    def get_history(
        self,
        type: Optional[str] = None,
        limit: Optional[int] = None,
        project: Optional[str] = None,
    ) -> str:
        name = self.registry.resolve(project)
        log_type = LogType.parse(type, field="type") if type else None
        entries = self.events.history(name, log_type, limit)
        return render.render_history(name, entries, log_type)

    # ------------------------------------------------------------------
    # database descriptor
    # ------------------------------------------------------------------
    def db_config(
        self,
        host: str,
        database: str,
        user: str,
        password: str,
        port: Optional[int] = None,
        project: Optional[str] = None,
    ) -> str:
        """Store (or replace, in full) the project's PostgreSQL descriptor."""
        name = self.registry.resolve(project)
        port = self.default_db_port if port is None else coerce_int(port, field="port")
        if not 0 < port < 65536:
            raise InvalidArgumentError(f"Invalid port: {port}")
        config = DatabaseConfig(
            host=require_text(host, field="host"),
            port=port,
            database=require_text(database, field="database"),
            user=require_text(user, field="user"),
            password=require_text(password, field="password"),
        )

        with self.registry.editing(name) as doc:
            doc.database = config
        logger.info("database descriptor set for %r (%s:%d)", name, config.host, config.port)
        return render.render_db_configured(name, config)

    def database_config(self, project: Optional[str] = None) -> DatabaseConfig:
        name = self.registry.resolve(project)
        doc = self.registry.get(name)
        if doc is None or doc.database is None:
            raise DatabaseNotConfiguredError(name)
        return doc.database
