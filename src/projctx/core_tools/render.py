# src/projctx/core_tools/render.py
"""
Render store data into the Markdown-like text blocks the tools return.

This is the view layer:
- persistence:  projctx.store.store
- structure:    projctx.store.schema
- operations:   projctx.rules / projctx.tasks / projctx.events / projctx.validation

Every function here is pure: same input, same text. Rule indices are printed
0-based ("[0] ...") so they can be passed straight back to remove_rule.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from projctx.rules.catalog import ProjectSummary
from projctx.store.schema import (
    Category,
    DatabaseConfig,
    LogEntry,
    LogType,
    Task,
    TaskStatus,
)
from projctx.validation.engine import ValidationReport


STATUS_EMOJI = {
    TaskStatus.PENDING: "⏳",
    TaskStatus.IN_PROGRESS: "🔄",
    TaskStatus.DONE: "✅",
    TaskStatus.CANCELLED: "❌",
}

LOG_EMOJI = {
    LogType.SUCCESS: "✅",
    LogType.ERROR: "❌",
    LogType.UPDATE: "🔄",
    LogType.NOTE: "📝",
    LogType.WARNING: "⚠️",
}

WARNINGS_TAIL = "⚠️ Warnings present: review the items above before proceeding."
CLEAN_TAIL = "✓ No protected-file conflicts detected."


# ---------------------------------------------------------------------------
# formatting helpers
# ---------------------------------------------------------------------------

def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    return _as_utc(ts).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_date(ts: datetime) -> str:
    return _as_utc(ts).strftime("%Y-%m-%d")


def _format_rule(idx: int, rule: str) -> str:
    """
    Standard line format for rules:

        [0] Never edit generated files by hand
    """
    return f"[{idx}] {rule}"


# ---------------------------------------------------------------------------
# rules / projects
# ---------------------------------------------------------------------------

def render_rule_added(project: str, category: Category, rule: str, count: int) -> str:
    return (
        f'✓ Rule added to project "{project}" in category "{category.value}":\n'
        f"{rule}\n\n"
        f"Total rules in this category: {count}"
    )


def render_rule_removed(project: str, category: Category, index: int, rule: str) -> str:
    return (
        f'✓ Rule [{index}] removed from project "{project}" in category "{category.value}":\n'
        f"{rule}"
    )


def render_context(project: str, context: Optional[Dict[Category, List[str]]]) -> str:
    """
    Render the rule categories of a project.

        # Project Context: app
        ## Protected Files (2)
        [0] config/secrets.yml
        [1] ^db/.*\\.sql$
    """
    if context is None:
        return (
            f'No context found for project "{project}".\n\n'
            'Use the "add_rule" tool to add business rules, code standards, '
            "protected files, etc."
        )

    out: List[str] = [f"# Project Context: {project}", ""]
    if not context:
        out.append("No rules defined yet.")
        return "\n".join(out)

    for category, rules in context.items():
        out.append(f"## {category.label} ({len(rules)})")
        for idx, rule in enumerate(rules):
            out.append(_format_rule(idx, rule))
        out.append("")
    return "\n".join(out).rstrip() + "\n"


def render_projects(summaries: List[ProjectSummary], detailed: bool = True) -> str:
    if not summaries:
        return "No projects with stored context."

    out: List[str] = ["# Projects with Stored Context", ""]
    for s in summaries:
        out.append(f"## {s.name}")
        out.append(f"Total rules: {s.total_rules}")
        out.append(f"Tasks: {s.task_count}")
        out.append(f"Logs: {s.log_count}")
        out.append(f"Database: {'Configured' if s.database_configured else 'Not configured'}")
        if detailed:
            out.append("")
            out.append("### Rule Breakdown")
            for category in Category:
                out.append(f"- {category.label}: {s.per_category.get(category, 0)}")
        out.append("")
    return "\n".join(out).rstrip() + "\n"


# ---------------------------------------------------------------------------
# tasks
# ---------------------------------------------------------------------------

def render_task_added(project: str, task: Task) -> str:
    return (
        f'✓ Task added to project "{project}":\n\n'
        f"ID: {task.id}\n"
        f"Title: {task.title}\n"
        f"Priority: {task.priority.value}\n"
        f"Status: {task.status.value}"
    )


def render_task_updated(task: Task) -> str:
    if task.status == TaskStatus.DONE:
        return f'✓ Task [{task.id}] "{task.title}" marked as done!'
    return f'✓ Task [{task.id}] "{task.title}" status set to {task.status.value}.'


def render_tasks(
    project: str,
    grouped: Optional[Dict[TaskStatus, List[Task]]],
    status: Optional[TaskStatus] = None,
) -> str:
    if grouped is None:
        return f'No tasks found for project "{project}".'
    if not grouped:
        label = status.value if status is not None else "any"
        return f'No tasks with status "{label}" found for project "{project}".'

    out: List[str] = [f"# Tasks for Project: {project}", ""]
    for st, tasks in grouped.items():
        out.append(f"## {STATUS_EMOJI[st]} {st.value.upper()} ({len(tasks)})")
        out.append("")
        for task in tasks:
            out.append(f"### [{task.id}] {task.title}")
            if task.description:
                out.append(task.description)
            out.append(f"Priority: {task.priority.value} | Created: {format_date(task.created_at)}")
            out.append("")
    return "\n".join(out).rstrip() + "\n"


# ---------------------------------------------------------------------------
# event log
# ---------------------------------------------------------------------------

def render_log_added(project: str, entry: LogEntry) -> str:
    return (
        f'{LOG_EMOJI[entry.type]} Entry added to the history of project "{project}":\n'
        f"{entry.message}"
    )


def render_history(
    project: str,
    entries: List[LogEntry],
    type: Optional[LogType] = None,
) -> str:
    if not entries:
        if type is not None:
            return f'No "{type.value}" entries in the history of project "{project}".'
        return f'No entries in the history of project "{project}".'

    out: List[str] = [
        f"# History for Project: {project}",
        "",
        f"Showing {len(entries)} most recent entr{'y' if len(entries) == 1 else 'ies'}",
        "",
    ]
    for entry in entries:
        out.append(
            f"## {LOG_EMOJI[entry.type]} {entry.type.value.upper()} - {format_timestamp(entry.timestamp)}"
        )
        out.append(entry.message)
        if entry.details:
            out.append("")
            out.append(f"Details: {entry.details}")
        out.append("")
    return "\n".join(out).rstrip() + "\n"


# ---------------------------------------------------------------------------
# validation
# ---------------------------------------------------------------------------

def render_validation(project: str, report: Optional[ValidationReport]) -> str:
    if report is None:
        return f'No context defined for "{project}". There are no rules to validate against.'

    out: List[str] = [f"# Change Validation - {project}", ""]
    out.append("## Described Changes")
    out.append(report.description)
    out.append("")

    if report.files:
        out.append("## Affected Files")
        out.extend(f"- {f}" for f in report.files)
        out.append("")

    if report.hits:
        out.append("## ⚠️ Warnings")
        for hit in report.hits:
            out.append(f"⚠️ Protected file will be modified: {hit.file} (pattern: {hit.pattern})")
        out.append("")

    if report.invalid_patterns:
        out.append("## Pattern Notes")
        for pattern in report.invalid_patterns:
            out.append(f"- {pattern!r} is not a valid regular expression; matched as literal text only")
        out.append("")

    out.append("## Rules to Consider")
    out.append("")
    if report.digest:
        out.extend(f"- [{tag}] {rule}" for tag, rule in report.digest)
    else:
        out.append("No specific rules defined.")
    out.append("")

    out.append(WARNINGS_TAIL if report.has_warnings else CLEAN_TAIL)
    return "\n".join(out)


# ---------------------------------------------------------------------------
# database descriptor
# ---------------------------------------------------------------------------

def render_db_configured(project: str, config: DatabaseConfig) -> str:
    # password is stored but never echoed
    return (
        f'✓ Database configuration saved for "{project}":\n'
        f"- Host: {config.host}:{config.port}\n"
        f"- Database: {config.database}\n"
        f"- User: {config.user}"
    )
