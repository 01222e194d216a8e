# src/projctx/store/schema.py
"""
Shape of a project document.

Everything that goes into the JSON store is declared here, so that loading
is a single validation pass and saving is a single dump. The enums are the
closed vocabularies the tools accept; anything outside them is rejected at
the boundary via `parse()`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

import pydantic

from projctx.errors import InvalidArgumentError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# argument coercion (tool callers send loosely typed JSON)
# ---------------------------------------------------------------------------

def require_text(value, *, field: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"Missing required argument: {field}")
    return str(value)


def coerce_int(value, *, field: str) -> int:
    """Accept ints, integral floats and numeric strings; reject everything else."""
    if value is None:
        raise InvalidArgumentError(f"Missing required argument: {field}")
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid {field}: {value!r}")
    if isinstance(value, int):
        return value
    try:
        as_float = float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"Invalid {field}: {value!r}") from None
    if not as_float.is_integer():
        raise InvalidArgumentError(f"Invalid {field}: {value!r}")
    return int(as_float)


class _ChoiceEnum(str, Enum):
    @classmethod
    def parse(cls, value, *, field: str):
        """Coerce a raw tool argument into a member, or raise InvalidArgumentError."""
        if isinstance(value, cls):
            return value
        if value is None:
            raise InvalidArgumentError(f"Missing required argument: {field}")
        try:
            return cls(str(value).strip())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise InvalidArgumentError(
                f'Invalid {field} "{value}". Expected one of: {allowed}'
            ) from None


class Category(_ChoiceEnum):
    BUSINESS_RULES = "business_rules"
    PROTECTED_FILES = "protected_files"
    CODE_STANDARDS = "code_standards"
    ARCHITECTURE = "architecture"
    CONTEXT = "context"
    SERVER_CONFIG = "server_config"
    DEPLOY_RULES = "deploy_rules"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


# member order above is the canonical display order
CATEGORY_LABELS: Dict[Category, str] = {
    Category.BUSINESS_RULES: "Business Rules",
    Category.PROTECTED_FILES: "Protected Files",
    Category.CODE_STANDARDS: "Code Standards",
    Category.ARCHITECTURE: "Architecture",
    Category.CONTEXT: "General Context",
    Category.SERVER_CONFIG: "Server Configuration",
    Category.DEPLOY_RULES: "Deploy Rules",
}

# categories folded into the validation digest, in digest order
DIGEST_TAGS: Dict[Category, str] = {
    Category.BUSINESS_RULES: "Business",
    Category.CODE_STANDARDS: "Standard",
    Category.ARCHITECTURE: "Architecture",
    Category.DEPLOY_RULES: "Deploy",
}


class TaskStatus(_ChoiceEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"


class TaskPriority(_ChoiceEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class LogType(_ChoiceEnum):
    SUCCESS = "success"
    ERROR = "error"
    UPDATE = "update"
    NOTE = "note"
    WARNING = "warning"


class ProjectContext(pydantic.BaseModel):
    """
    The seven rule categories. All fields are required: a stored project that
    lacks one is a corrupt document, not an older shape we silently accept.
    """
    model_config = pydantic.ConfigDict(extra="forbid")

    business_rules: List[str]
    protected_files: List[str]
    code_standards: List[str]
    architecture: List[str]
    context: List[str]
    server_config: List[str]
    deploy_rules: List[str]

    @classmethod
    def empty(cls) -> "ProjectContext":
        return cls(**{c.value: [] for c in Category})

    def rules(self, category: Category) -> List[str]:
        """The live list backing `category`; mutations go straight to the document."""
        return getattr(self, Category(category).value)

    def total(self) -> int:
        return sum(len(self.rules(c)) for c in Category)


class Task(pydantic.BaseModel):
    id: int = pydantic.Field(ge=0)
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: datetime
    updated_at: datetime

    @pydantic.model_validator(mode="after")
    def _check_timestamps(self) -> "Task":
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not precede created_at")
        return self


class LogEntry(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    timestamp: datetime
    type: LogType
    message: str
    details: Optional[str] = None


class DatabaseConfig(pydantic.BaseModel):
    host: str
    port: int = 5432
    database: str
    user: str
    password: str


class ProjectDocument(pydantic.BaseModel):
    context: ProjectContext
    tasks: List[Task] = pydantic.Field(default_factory=list)
    logs: List[LogEntry] = pydantic.Field(default_factory=list)
    database: Optional[DatabaseConfig] = None

    @classmethod
    def new(cls) -> "ProjectDocument":
        """A freshly created project: every category present and empty."""
        return cls(context=ProjectContext.empty())


# the whole store: project name -> document
ProjectMap = Dict[str, ProjectDocument]
PROJECT_MAP_ADAPTER = pydantic.TypeAdapter(ProjectMap)
