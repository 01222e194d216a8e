"""
MCP server: project-context

Persistent per-project context for coding assistants: rules in seven
categories, a task list, an event history, protected-file validation, an
optional PostgreSQL descriptor, and a couple of local process helpers.

The lifespan opens the JSON store once and yields a ContextTools instance;
every tool reaches it through the request context. Tool docstrings are what
the client model sees, so keep them accurate.
"""

import argparse
import functools
import inspect
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from projctx.config import loader as config_loader
from projctx.core_tools import database, processes
from projctx.core_tools.context_tools import ContextTools
from projctx.errors import ProjectContextError

logger = logging.getLogger(__name__)
tool_logger = logging.getLogger("projctx.tools")


@dataclass
class AppContext:
    tools: ContextTools


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    tools = ContextTools.from_config()
    logger.info(
        "project-context ready: %d project(s) loaded from %s",
        len(tools.registry),
        tools.registry.store.path,
    )
    yield AppContext(tools=tools)


mcp = FastMCP("project-context", lifespan=app_lifespan)


def _tools() -> ContextTools:
    ctx = mcp.get_context()
    return ctx.request_context.lifespan_context.tools


def _connect_timeout() -> int:
    return config_loader.get_database_defaults()["connect_timeout"]


def _logged(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Wrap a tool with start/end logging and turn exceptions into an
    "Error: ..." text result. Name, docstring and signature are preserved so
    FastMCP builds the same input schema as for the bare function.
    """
    name = fn.__name__

    def _failed(exc: Exception) -> str:
        if isinstance(exc, ProjectContextError):
            tool_logger.warning("tool_call refused: %s: %s", name, exc)
        else:
            tool_logger.exception("tool_call error: %s", name)
        return f"Error: {exc}"

    if inspect.iscoroutinefunction(fn):
        @functools.wraps(fn)
        async def _wrapped(*args, **kwargs):
            tool_logger.info("tool_call start: %s kwargs=%r", name, kwargs)
            try:
                result = await fn(*args, **kwargs)
            except Exception as exc:
                return _failed(exc)
            tool_logger.info("tool_call end: %s (%d chars)", name, len(result))
            return result
    else:
        @functools.wraps(fn)
        def _wrapped(*args, **kwargs):
            tool_logger.info("tool_call start: %s kwargs=%r", name, kwargs)
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                return _failed(exc)
            tool_logger.info("tool_call end: %s (%d chars)", name, len(result))
            return result

    _wrapped.__signature__ = inspect.signature(fn)  # type: ignore[attr-defined]
    return _wrapped


# ---------------------------------------------------------------------------
# rules
# ---------------------------------------------------------------------------

@mcp.tool()
@_logged
def add_rule(category: str, rule: str, project: Optional[str] = None) -> str:
    """
    Add a rule to a project's context. Use this whenever the user states
    something that should hold for all future work on the project.

    Args:
        category: One of "business_rules", "protected_files", "code_standards",
            "architecture", "context", "server_config", "deploy_rules".
            For "protected_files" the rule is a path fragment or a regular
            expression (e.g. "config/secrets.yml" or "^db/.*\\.sql$").
        rule: The rule text.
        project: Project name. OPTIONAL; defaults to the name of the server's
            working directory.

    Returns:
        A confirmation with the new number of rules in that category.
    """
    return _tools().add_rule(category, rule, project)


@mcp.tool()
@_logged
def get_context(project: Optional[str] = None, category: Optional[str] = None) -> str:
    """
    Show the stored rules of a project, grouped by category. Call this at the
    start of any work on a project.

    Args:
        project: Project name. OPTIONAL; defaults to the working directory name.
        category: Restrict the output to one category. OPTIONAL.

    Returns:
        The rules, each prefixed with the [index] that remove_rule expects.
    """
    return _tools().get_context(project, category)


@mcp.tool()
@_logged
def list_projects(detailed: Optional[bool] = True) -> str:
    """
    List every project that has stored context, with rule/task/log counts.

    Args:
        detailed: Include the per-category rule breakdown. Defaults to true.
    """
    return _tools().list_projects(detailed)


@mcp.tool()
@_logged
def remove_rule(category: str, index: int, project: Optional[str] = None) -> str:
    """
    Remove one rule by its index within a category (the [index] shown by
    get_context, starting at 0).

    Args:
        category: The rule's category.
        index: Position of the rule inside that category.
        project: Project name. OPTIONAL.
    """
    return _tools().remove_rule(category, index, project)


@mcp.tool()
@_logged
def validate_changes(
    changes_description: str,
    files_affected: Optional[List[str]] = None,
    project: Optional[str] = None,
) -> str:
    """
    Check a planned change against the project's rules BEFORE making it.
    Every affected file is compared with each protected_files pattern (as a
    literal substring and as a regular expression); matches are reported as
    warnings. Business, code-standard, architecture and deploy rules are
    listed for review.

    Args:
        changes_description: What you are about to change.
        files_affected: Paths you expect to touch. OPTIONAL.
        project: Project name. OPTIONAL.
    """
    return _tools().validate_changes(changes_description, files_affected, project)


# ---------------------------------------------------------------------------
# tasks
# ---------------------------------------------------------------------------

@mcp.tool()
@_logged
def add_task(
    title: str,
    description: Optional[str] = None,
    priority: Optional[str] = None,
    project: Optional[str] = None,
) -> str:
    """
    Add a task to the project's task list. New tasks start as "pending".

    Args:
        title: Short task title.
        description: Longer description. OPTIONAL.
        priority: One of "low", "medium", "high", "urgent". Defaults to "medium".
        project: Project name. OPTIONAL.

    Returns:
        A confirmation including the task ID used by complete_task.
    """
    return _tools().add_task(title, description, priority, project)


@mcp.tool()
@_logged
def list_tasks(status: Optional[str] = None, project: Optional[str] = None) -> str:
    """
    List the project's tasks grouped by status.

    Args:
        status: Only show tasks with this status ("pending", "in_progress",
            "done", "cancelled"). OPTIONAL.
        project: Project name. OPTIONAL.
    """
    return _tools().list_tasks(status, project)


@mcp.tool()
@_logged
def complete_task(task_id: int, project: Optional[str] = None) -> str:
    """
    Mark a task as done.

    Args:
        task_id: The task ID shown by add_task / list_tasks.
        project: Project name. OPTIONAL.
    """
    return _tools().complete_task(task_id, project)


@mcp.tool()
@_logged
def set_task_status(task_id: int, status: str, project: Optional[str] = None) -> str:
    """
    Move a task to any status, e.g. "in_progress" when you start on it or
    "cancelled" when it is dropped.

    Args:
        task_id: The task ID shown by add_task / list_tasks.
        status: One of "pending", "in_progress", "done", "cancelled".
        project: Project name. OPTIONAL.
    """
    return _tools().set_task_status(task_id, status, project)


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------

@mcp.tool()
@_logged
def log_event(
    type: str,
    message: str,
    details: Optional[str] = None,
    project: Optional[str] = None,
) -> str:
    """
    Record an entry in the project's history: what was done, what failed,
    what to remember. Entries are never edited or removed.

    Args:
        type: One of "success", "error", "update", "note", "warning".
        message: One-line summary.
        details: Longer free text. OPTIONAL.
        project: Project name. OPTIONAL.
    """
    return _tools().log_event(type, message, details, project)


@mcp.tool()
@_logged
def get_history(
    type: Optional[str] = None,
    limit: Optional[int] = None,
    project: Optional[str] = None,
) -> str:
    """
    Show the most recent history entries, newest first.

    Args:
        type: Only entries of this type. OPTIONAL.
        limit: Maximum number of entries (default 20).
        project: Project name. OPTIONAL.
    """
    return _tools().get_history(type, limit, project)


# ---------------------------------------------------------------------------
# database
# ---------------------------------------------------------------------------

@mcp.tool()
@_logged
def db_config(
    host: str,
    database: str,
    user: str,
    password: str,
    port: Optional[int] = None,
    project: Optional[str] = None,
) -> str:
    """
    Save the PostgreSQL connection for a project. Replaces any previous
    configuration in full. The password is stored in the context file in
    plain text.

    Args:
        host: Database host.
        database: Database name.
        user: Database user.
        password: Database password.
        port: Port. Defaults to 5432.
        project: Project name. OPTIONAL.
    """
    return _tools().db_config(host, database, user, password, port, project)


@mcp.tool()
@_logged
async def db_query(query: str, project: Optional[str] = None) -> str:
    """
    Run one SQL statement against the project's configured database and
    return the rows (SELECT) or the affected row count. Statements run with
    autocommit; there is no dry run.

    Args:
        query: The SQL statement.
        project: Project name. OPTIONAL.
    """
    config = _tools().database_config(project)
    return await database.run_query(config, query, connect_timeout=_connect_timeout())


@mcp.tool()
@_logged
async def db_list_tables(project: Optional[str] = None) -> str:
    """
    List the tables and views in the "public" schema of the project's database.

    Args:
        project: Project name. OPTIONAL.
    """
    config = _tools().database_config(project)
    return await database.list_tables(config, connect_timeout=_connect_timeout())


@mcp.tool()
@_logged
async def db_describe_table(table_name: str, project: Optional[str] = None) -> str:
    """
    Show the columns of one table: type, length, nullability and default.

    Args:
        table_name: Table to describe.
        project: Project name. OPTIONAL.
    """
    config = _tools().database_config(project)
    return await database.describe_table(config, table_name, connect_timeout=_connect_timeout())


# ---------------------------------------------------------------------------
# local processes
# ---------------------------------------------------------------------------

@mcp.tool()
@_logged
async def list_processes() -> str:
    """
    List local processes listening on TCP ports (e.g. dev servers).
    """
    return await processes.list_processes()


@mcp.tool()
@_logged
async def kill_process(port: int) -> str:
    """
    Force-stop whatever process is listening on a local TCP port. Use only
    when the user asked for it.

    Args:
        port: The TCP port.
    """
    return await processes.kill_process(port)


# ---------------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Run the project-context MCP server (stdio).")
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Path of the JSON context file (default: ~/.mcp-project-context.json).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: logging.level from settings.yaml).",
    )
    args = parser.parse_args(argv)

    # stdout carries the protocol; logging goes to stderr
    logging.basicConfig(
        level=(args.log_level or config_loader.get_log_level()).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.store:
        os.environ[config_loader.STORE_ENV_VAR] = os.path.expanduser(args.store)

    logger.info("starting project-context server (store=%s)", config_loader.get_store_path())
    mcp.run()


if __name__ == "__main__":
    main()
