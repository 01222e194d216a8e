# src/projctx/projects/registry.py
"""
In-memory project registry.

Holds the one live copy of the project mapping for the running server. It is
loaded from a ProjectStore once, mutated in place by the rule/task/log
components, and handed back to the store with commit() after every mutation.
Mutations go through editing(), which restores the document when the save
raises so that a refused call leaves nothing behind.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, Tuple

from projctx.store.schema import ProjectDocument, ProjectMap
from projctx.store.store import ProjectStore

logger = logging.getLogger(__name__)


def detect_project_name(cwd: Optional[str] = None) -> str:
    """
    Default project name: the final segment of the working directory.
    """
    path = Path(cwd or os.getcwd())
    return path.name or str(path)


class ProjectRegistry:
    """
    Mapping of project name -> ProjectDocument, with lazy creation.

    - get() never creates (read operations use it)
    - ensure() creates an empty document on first reference (mutations use it)
    - commit() persists the whole mapping through the store
    - editing() wraps one mutation: commit on success, restore on failure
    """

    def __init__(
        self,
        store: ProjectStore,
        projects: Optional[ProjectMap] = None,
        *,
        cwd: Optional[Callable[[], str]] = None,
    ) -> None:
        self.store = store
        self._projects: ProjectMap = projects if projects is not None else {}
        self._cwd = cwd or os.getcwd

    @classmethod
    def open(cls, store: ProjectStore, **kwargs) -> "ProjectRegistry":
        return cls(store, store.load(), **kwargs)

    # ------------------------------------------------------------------
    # lookup
    # ------------------------------------------------------------------
    def resolve(self, explicit: Optional[str] = None) -> str:
        """
        Return `explicit` if given and non-blank, else derive a name from
        the current working directory.
        """
        if explicit is not None and str(explicit).strip():
            return str(explicit).strip()
        return detect_project_name(self._cwd())

    def get(self, name: str) -> Optional[ProjectDocument]:
        return self._projects.get(name)

    def ensure(self, name: str) -> ProjectDocument:
        doc = self._projects.get(name)
        if doc is None:
            logger.info("creating project document %r", name)
            doc = ProjectDocument.new()
            self._projects[name] = doc
        return doc

    def __contains__(self, name: object) -> bool:
        return name in self._projects

    def __len__(self) -> int:
        return len(self._projects)

    def items(self) -> Iterator[Tuple[str, ProjectDocument]]:
        """(name, document) pairs in insertion order."""
        return iter(list(self._projects.items()))

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------
    def commit(self) -> bool:
        return self.store.save(self._projects)

    @contextmanager
    def editing(self, name: str, *, create: bool = True) -> Iterator[ProjectDocument]:
        """
        Yield the document for `name` to mutate, then commit.

        If the body or the commit raises (e.g. PersistenceError under the
        strict policy), the document is put back as it was before the call,
        and a document created by this call is dropped again.
        """
        existed = name in self._projects
        if create:
            doc = self.ensure(name)
        elif existed:
            doc = self._projects[name]
        else:
            raise KeyError(name)
        backup = doc.model_copy(deep=True)
        try:
            yield doc
            self.commit()
        except Exception:
            if existed:
                self._projects[name] = backup
            else:
                self._projects.pop(name, None)
            logger.warning("rolled back change to project %r", name)
            raise
