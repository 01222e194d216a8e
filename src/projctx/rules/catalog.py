# src/projctx/rules/catalog.py
"""
Rule catalog: per-project categorized lists of free-text rules.

Rules are addressed by (category, display index). Index is 0-based and is
the same index the renderer prints next to each rule, so "remove
protected_files index 2" always refers to what the caller just saw.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from projctx.errors import NotFoundError
from projctx.projects.registry import ProjectRegistry
from projctx.store.schema import Category, coerce_int, require_text

logger = logging.getLogger(__name__)


@dataclass
class ProjectSummary:
    """Counts reported by list_projects() for one project."""
    name: str
    total_rules: int
    task_count: int
    log_count: int
    database_configured: bool
    per_category: Dict[Category, int] = field(default_factory=dict)


class RuleCatalog:
    def __init__(self, registry: ProjectRegistry) -> None:
        self.registry = registry

    def add_rule(self, project: str, category: Category | str, text: str) -> int:
        """
        Append `text` to the category and persist. Returns the new count for
        that category.
        """
        category = Category.parse(category, field="category")
        text = require_text(text, field="rule")

        with self.registry.editing(project) as doc:
            rules = doc.context.rules(category)
            rules.append(text)
        logger.info("added %s rule to %r (now %d)", category.value, project, len(rules))
        return len(rules)

    def get_context(
        self,
        project: str,
        category: Category | str | None = None,
    ) -> Optional[Dict[Category, List[str]]]:
        """
        Return the non-empty categories of a project in canonical order, or
        None if the project has no document at all.

        An existing project with nothing stored returns {}.
        """
        if category is not None:
            category = Category.parse(category, field="category")

        doc = self.registry.get(project)
        if doc is None:
            return None

        wanted = [category] if category is not None else list(Category)
        out: Dict[Category, List[str]] = {}
        for cat in wanted:
            rules = doc.context.rules(cat)
            if rules:
                out[cat] = list(rules)
        return out

    def remove_rule(self, project: str, category: Category | str, index: int) -> str:
        """
        Remove the rule at 0-based `index` and persist. Returns the removed text.
        Nothing is mutated when the project or index does not exist.
        """
        category = Category.parse(category, field="category")
        index = coerce_int(index, field="index")

        doc = self.registry.get(project)
        if doc is None:
            raise NotFoundError(f'Project "{project}" not found')

        rules = doc.context.rules(category)
        if index < 0 or index >= len(rules):
            raise NotFoundError(f'Invalid index {index} for category "{category.value}"')

        with self.registry.editing(project, create=False) as doc:
            removed = doc.context.rules(category).pop(index)
        logger.info("removed %s[%d] from %r", category.value, index, project)
        return removed

    def list_projects(self) -> List[ProjectSummary]:
        summaries: List[ProjectSummary] = []
        for name, doc in self.registry.items():
            summaries.append(
                ProjectSummary(
                    name=name,
                    total_rules=doc.context.total(),
                    task_count=len(doc.tasks),
                    log_count=len(doc.logs),
                    database_configured=doc.database is not None,
                    per_category={c: len(doc.context.rules(c)) for c in Category},
                )
            )
        return summaries

