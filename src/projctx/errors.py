# src/projctx/errors.py
"""
Exception types raised by the project-context core.

Read operations never raise for absent data; they hand back None / empty and
the renderer turns that into a "nothing found" message. These exceptions are
for operations that have to *refuse*:

- InvalidArgumentError       a required argument is missing or malformed
- NotFoundError              a mutation could not locate its target
- DatabaseNotConfiguredError no descriptor stored for the project
- PersistenceError           load/save failed under the strict policy

The MCP boundary renders all of them as "Error: <message>".
"""

from __future__ import annotations


class ProjectContextError(Exception):
    """Base class for every failure the tools report back to the caller."""


class InvalidArgumentError(ProjectContextError, ValueError):
    pass


class NotFoundError(ProjectContextError, LookupError):
    pass


class DatabaseNotConfiguredError(NotFoundError):
    def __init__(self, project_name: str) -> None:
        super().__init__(
            f'Database not configured for project "{project_name}". '
            f'Use the "db_config" tool first.'
        )
        self.project_name = project_name


class PersistenceError(ProjectContextError):
    pass
