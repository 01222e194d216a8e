# src/projctx/core_tools/database.py
"""
PostgreSQL pass-through for a project's configured database (psycopg 3).

One short-lived async connection per call, autocommit on, closed on exit.
Driver and network failures are caught here and rendered as a message; they
never touch the project store.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

import psycopg
from psycopg.rows import dict_row

from projctx.store.schema import DatabaseConfig, require_text

logger = logging.getLogger(__name__)

LIST_TABLES_SQL = """
    SELECT table_name, table_type
    FROM information_schema.tables
    WHERE table_schema = 'public'
    ORDER BY table_name
"""

DESCRIBE_TABLE_SQL = """
    SELECT
        column_name,
        data_type,
        character_maximum_length,
        is_nullable,
        column_default
    FROM information_schema.columns
    WHERE table_name = %s
    ORDER BY ordinal_position
"""


async def _connect(config: DatabaseConfig, connect_timeout: int) -> psycopg.AsyncConnection:
    return await psycopg.AsyncConnection.connect(
        host=config.host,
        port=config.port,
        dbname=config.database,
        user=config.user,
        password=config.password,
        connect_timeout=connect_timeout,
        autocommit=True,
        row_factory=dict_row,
    )


async def _execute(
    config: DatabaseConfig,
    query: str,
    params: Any = None,
    *,
    connect_timeout: int,
) -> Dict[str, Any]:
    """Run one statement; return rows (if any), the command tag and rowcount."""
    async with await _connect(config, connect_timeout) as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            rows: List[Dict[str, Any]] = await cur.fetchall() if cur.description is not None else []
            status = cur.statusmessage or ""
            return {
                "command": status.split(" ", 1)[0].upper(),
                "rows": rows,
                "rowcount": cur.rowcount,
            }


# ---------------------------------------------------------------------------
# rendering
# ---------------------------------------------------------------------------

def render_query_result(query: str, command: str, rows: List[Dict[str, Any]], rowcount: int) -> str:
    out: List[str] = ["# Query Result", "", "```sql", query.strip(), "```", ""]
    if rows:
        out.append(f"## Results ({len(rows)} row{'s' if len(rows) != 1 else ''})")
        out.append("")
        out.append("```json")
        out.append(json.dumps(rows, indent=2, default=str, ensure_ascii=False))
        out.append("```")
    elif command == "SELECT":
        out.append("Query returned no rows.")
    elif command == "INSERT":
        out.append(f"✓ {rowcount} row(s) inserted")
    elif command == "UPDATE":
        out.append(f"✓ {rowcount} row(s) updated")
    elif command == "DELETE":
        out.append(f"✓ {rowcount} row(s) deleted")
    else:
        out.append("✓ Query executed successfully")
        if rowcount and rowcount > 0:
            out.append(f"Rows affected: {rowcount}")
    return "\n".join(out) + "\n"


def render_tables(rows: List[Dict[str, Any]]) -> str:
    out = ["# Database Tables", "", f"Total: {len(rows)} table(s)", ""]
    out.extend(f"- {r['table_name']} ({r['table_type']})" for r in rows)
    return "\n".join(out).rstrip() + "\n"


def render_table_description(table_name: str, rows: List[Dict[str, Any]]) -> str:
    if not rows:
        return f'Table "{table_name}" not found.'
    out = [
        f"# Table Structure: {table_name}",
        "",
        "| Column | Type | Length | Nullable | Default |",
        "|--------|------|--------|----------|---------|",
    ]
    for r in rows:
        length = r.get("character_maximum_length") or "-"
        nullable = "Yes" if r.get("is_nullable") == "YES" else "No"
        default = r.get("column_default") or "-"
        out.append(f"| {r['column_name']} | {r['data_type']} | {length} | {nullable} | {default} |")
    return "\n".join(out) + "\n"


# ---------------------------------------------------------------------------
# public tool helpers (each returns text, never raises driver errors)
# ---------------------------------------------------------------------------

async def run_query(config: DatabaseConfig, query: str, *, connect_timeout: int = 10) -> str:
    query = require_text(query, field="query")
    try:
        result = await _execute(config, query, connect_timeout=connect_timeout)
    except (psycopg.Error, OSError) as exc:
        logger.warning("query failed on %s/%s: %s", config.host, config.database, exc)
        return f"Error executing query: {exc}"
    return render_query_result(query, result["command"], result["rows"], result["rowcount"])


async def list_tables(config: DatabaseConfig, *, connect_timeout: int = 10) -> str:
    try:
        result = await _execute(config, LIST_TABLES_SQL, connect_timeout=connect_timeout)
    except (psycopg.Error, OSError) as exc:
        logger.warning("listing tables failed on %s/%s: %s", config.host, config.database, exc)
        return f"Error listing tables: {exc}"
    return render_tables(result["rows"])


async def describe_table(config: DatabaseConfig, table_name: str, *, connect_timeout: int = 10) -> str:
    table_name = require_text(table_name, field="table_name")
    try:
        result = await _execute(
            config, DESCRIBE_TABLE_SQL, (table_name,), connect_timeout=connect_timeout
        )
    except (psycopg.Error, OSError) as exc:
        logger.warning("describe %s failed on %s/%s: %s", table_name, config.host, config.database, exc)
        return f"Error describing table: {exc}"
    return render_table_description(table_name, result["rows"])
