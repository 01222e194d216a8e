# src/projctx/store/store.py
"""
Project store persistence (single JSON file).

The whole project mapping lives in one human-readable JSON document, by
default ~/.mcp-project-context.json. There are no partial writes: every
mutation rewrites the full file.

Failure policy
--------------
The server must never refuse to start or block a caller over storage I/O, so
by default:
- load() on a missing file returns {}.
- load() on an unreadable/corrupt file logs the error, copies the file aside
  (<store>.corrupt-<timestamp>) and returns {}.
- save() failures are logged and otherwise ignored.

With strict=True both cases raise PersistenceError instead.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Optional

import pydantic

from projctx.config import loader as config_loader
from projctx.errors import PersistenceError
from projctx.store.schema import PROJECT_MAP_ADAPTER, ProjectMap, utcnow

logger = logging.getLogger(__name__)


class ProjectStore:
    """Load/save the full project mapping to a JSON file."""

    def __init__(self, path: Optional[Path] = None, *, strict: Optional[bool] = None) -> None:
        self.path = Path(path) if path is not None else config_loader.get_store_path()
        self.strict = config_loader.is_strict_persistence() if strict is None else strict

    # ------------------------------------------------------------------
    # load
    # ------------------------------------------------------------------
    def load(self) -> ProjectMap:
        """
        Return the mapping from the last successful save, or {} if there is
        none (or it cannot be parsed, in best-effort mode).
        """
        if not self.path.exists():
            logger.info("no store file at %s, starting empty", self.path)
            return {}

        try:
            raw = self.path.read_text(encoding="utf-8")
            projects = PROJECT_MAP_ADAPTER.validate_json(raw)
        except (OSError, UnicodeDecodeError, pydantic.ValidationError) as exc:
            logger.error("failed to load project store %s: %s", self.path, exc)
            if self.strict:
                raise PersistenceError(f"Could not load project store {self.path}: {exc}") from exc
            self._quarantine()
            return {}

        logger.info("loaded %d project(s) from %s", len(projects), self.path)
        return projects

    def _quarantine(self) -> Optional[Path]:
        """Copy an unreadable store file aside so the next save cannot clobber it."""
        stamp = utcnow().strftime("%Y%m%dT%H%M%SZ")
        backup = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            shutil.copy2(self.path, backup)
        except OSError as exc:
            logger.error("could not back up corrupt store %s: %s", self.path, exc)
            return None
        logger.warning("corrupt store copied to %s", backup)
        return backup

    # ------------------------------------------------------------------
    # save
    # ------------------------------------------------------------------
    def save(self, projects: ProjectMap) -> bool:
        """
        Serialize the entire mapping and overwrite the store file.

        Returns True on success. In best-effort mode a failed write returns
        False; in strict mode it raises PersistenceError.
        """
        payload = PROJECT_MAP_ADAPTER.dump_python(projects, mode="json", exclude_none=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(payload, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as exc:
            logger.error("failed to save project store %s: %s", self.path, exc)
            if self.strict:
                raise PersistenceError(f"Could not save project store {self.path}: {exc}") from exc
            return False
        logger.debug("saved %d project(s) to %s", len(projects), self.path)
        return True
