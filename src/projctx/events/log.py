# src/projctx/events/log.py
"""
Per-project event log. Append-only: entries are frozen and never removed,
so insertion order is also timestamp order.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from projctx.config import loader as config_loader
from projctx.errors import InvalidArgumentError
from projctx.projects.registry import ProjectRegistry
from projctx.store.schema import LogEntry, LogType, coerce_int, require_text, utcnow

logger = logging.getLogger(__name__)


class EventLog:
    def __init__(
        self,
        registry: ProjectRegistry,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        default_limit: Optional[int] = None,
    ) -> None:
        self.registry = registry
        self._now = clock or utcnow
        self.default_limit = default_limit or config_loader.get_history_default_limit()

    def record(
        self,
        project: str,
        type: LogType | str,
        message: str,
        details: Optional[str] = None,
    ) -> LogEntry:
        type = LogType.parse(type, field="type")
        message = require_text(message, field="message")

        entry = LogEntry(
            timestamp=self._now(),
            type=type,
            message=message,
            details=details or None,
        )
        with self.registry.editing(project) as doc:
            doc.logs.append(entry)
        logger.info("recorded %s event for %r", type.value, project)
        return entry

    def history(
        self,
        project: str,
        type: LogType | str | None = None,
        limit: Optional[int] = None,
    ) -> List[LogEntry]:
        """
        Most recent entries first: filter by type, keep the last `limit` in
        insertion order, then reverse. Empty list when there is nothing to show.
        """
        if type is not None and type != "":
            type = LogType.parse(type, field="type")
        else:
            type = None

        if limit is None:
            limit = self.default_limit
        else:
            limit = coerce_int(limit, field="limit")
            if limit < 1:
                raise InvalidArgumentError(f"Invalid limit: {limit} (must be a positive integer)")

        doc = self.registry.get(project)
        if doc is None:
            return []

        entries = [e for e in doc.logs if type is None or e.type == type]
        return list(reversed(entries[-limit:]))
