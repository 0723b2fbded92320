"""Lesson — a recorded fix or behavior pattern with outcome metrics."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from llkb.models.base import DocumentModel


class LLKBCategory(str, Enum):
    SELECTOR = "selector"
    TIMING = "timing"
    QUIRK = "quirk"             # Lessons only, never a component category
    AUTH = "auth"
    DATA = "data"
    ASSERTION = "assertion"
    NAVIGATION = "navigation"
    UI_INTERACTION = "ui-interaction"


UNIVERSAL_SCOPE = "universal"
APP_SPECIFIC_SCOPE = "app-specific"
FRAMEWORK_SCOPE_PREFIX = "framework:"


def validate_scope(scope: str) -> str:
    """Accept ``universal``, ``app-specific`` or ``framework:<name>``."""
    if scope in (UNIVERSAL_SCOPE, APP_SPECIFIC_SCOPE):
        return scope
    if scope.startswith(FRAMEWORK_SCOPE_PREFIX) and len(scope) > len(FRAMEWORK_SCOPE_PREFIX):
        return scope
    raise ValueError(
        f"Invalid scope '{scope}': expected 'universal', 'app-specific' "
        f"or 'framework:<name>'"
    )


def scope_framework(scope: str) -> Optional[str]:
    """Framework name of a framework-qualified scope, else None."""
    if scope.startswith(FRAMEWORK_SCOPE_PREFIX):
        return scope[len(FRAMEWORK_SCOPE_PREFIX):]
    return None


class ConfidenceHistoryEntry(BaseModel):
    """One confidence sample. Documents written by older tooling use date/value."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    timestamp: datetime = Field(validation_alias=AliasChoices("timestamp", "date"))
    score: float = Field(ge=0.0, le=1.0, validation_alias=AliasChoices("score", "value"))


class LessonMetrics(DocumentModel):
    """Effectiveness metrics for a lesson."""

    occurrences: int = Field(ge=0, default=0)
    success_rate: float = Field(ge=0.0, le=1.0, default=0.0)
    confidence: float = Field(ge=0.0, le=1.0, default=0.0)
    first_seen: Optional[datetime] = None
    last_success: Optional[datetime] = None
    last_applied: Optional[datetime] = None
    confidence_history: List[ConfidenceHistoryEntry] = []


class LessonValidation(DocumentModel):
    human_reviewed: bool = False
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None


class Lesson(DocumentModel):
    """A captured pattern or fix, applied to future similar situations."""

    id: str                                 # e.g., "L001"
    title: str = ""
    pattern: str                            # Regex-like matcher or representative snippet
    trigger: str                            # When to apply this lesson
    category: LLKBCategory
    scope: str = UNIVERSAL_SCOPE
    journey_ids: List[str] = []
    tags: List[str] = []
    metrics: LessonMetrics = LessonMetrics()
    validation: LessonValidation = LessonValidation()
    archived: bool = False

    @field_validator("scope")
    @classmethod
    def _check_scope(cls, v: str) -> str:
        return validate_scope(v)
