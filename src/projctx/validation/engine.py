# src/projctx/validation/engine.py
"""
Protected-file validation.

Given a description of a planned change and the files it touches, flag every
(file, pattern) pair where a protected_files pattern applies, and collect the
rules the change should be reviewed against.

A pattern applies when EITHER
  - it is a literal substring of the path, or
  - re.search(pattern, path) matches.

Both checks always run; stores mix literal paths ("config/secrets.yml") and
regexes ("^db/.*\\.sql$") in the same category. A literal path containing
regex metacharacters can match more than its author meant (the "." in
"secrets.yml" matches any character). Patterns that do not compile as
regexes are still checked literally and are reported back to the caller.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from projctx.projects.registry import ProjectRegistry
from projctx.store.schema import DIGEST_TAGS, Category, require_text

logger = logging.getLogger(__name__)


@dataclass
class ProtectedFileHit:
    file: str
    pattern: str
    literal: bool
    regex: bool


@dataclass
class ValidationReport:
    project: str
    description: str
    files: List[str]
    hits: List[ProtectedFileHit] = field(default_factory=list)
    # (tag, rule) in digest order
    digest: List[Tuple[str, str]] = field(default_factory=list)
    invalid_patterns: List[str] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.hits)


def _compile(pattern: str) -> Optional[re.Pattern]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        logger.warning("protected_files pattern %r is not a valid regex: %s", pattern, exc)
        return None


def match_protected(
    files: Iterable[str],
    patterns: Iterable[str],
) -> Tuple[List[ProtectedFileHit], List[str]]:
    """
    Return (hits, invalid_patterns). One hit per matching (file, pattern)
    pair, in file order then pattern order; nothing is deduplicated.
    """
    pattern_list = list(patterns)
    compiled: Dict[str, Optional[re.Pattern]] = {}
    invalid: List[str] = []
    for pattern in pattern_list:
        if pattern in compiled:
            continue
        compiled[pattern] = _compile(pattern)
        if compiled[pattern] is None:
            invalid.append(pattern)
    hits: List[ProtectedFileHit] = []
    for path in files:
        for pattern in pattern_list:
            literal = pattern in path
            rx = compiled.get(pattern)
            regex = bool(rx is not None and rx.search(path))
            if literal or regex:
                hits.append(ProtectedFileHit(file=path, pattern=pattern, literal=literal, regex=regex))
    return hits, invalid


class ValidationEngine:
    def __init__(self, registry: ProjectRegistry) -> None:
        self.registry = registry

    def validate(
        self,
        project: str,
        description: str,
        files: Optional[List[str]] = None,
    ) -> Optional[ValidationReport]:
        """
        Build a ValidationReport, or return None when the project has no
        document (nothing to validate against). Read-only: never persists.
        """
        description = require_text(description, field="changes_description")
        files = [str(f) for f in (files or [])]

        doc = self.registry.get(project)
        if doc is None:
            return None

        report = ValidationReport(project=project, description=description, files=files)
        patterns = list(doc.context.rules(Category.PROTECTED_FILES))
        if files and patterns:
            report.hits, report.invalid_patterns = match_protected(files, patterns)

        for category, tag in DIGEST_TAGS.items():
            for rule in doc.context.rules(category):
                report.digest.append((tag, rule))

        logger.info(
            "validated %d file(s) for %r: %d warning(s)", len(files), project, len(report.hits)
        )
        return report
