"""Component — a reusable code unit extracted from tests."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from llkb.models.base import DocumentModel
from llkb.models.lesson import UNIVERSAL_SCOPE, LLKBCategory, validate_scope


class ComponentMetrics(DocumentModel):
    total_uses: int = Field(ge=0, default=0)
    success_rate: float = Field(ge=0.0, le=1.0, default=0.0)
    last_used: Optional[datetime] = None


class ComponentSource(DocumentModel):
    """Where the component's code came from."""

    original_code: str = ""
    extracted_from: str = ""                # Journey id
    extracted_by: str = "journey-implement"  # "journey-implement" | "journey-verify"
    extracted_at: Optional[datetime] = None


class Component(DocumentModel):
    """A named, reusable code unit with usage metrics."""

    id: str                                 # e.g., "COMP001"
    name: str                               # Exported function name
    description: str = ""
    category: LLKBCategory
    scope: str = UNIVERSAL_SCOPE
    file_path: str = ""
    metrics: ComponentMetrics = ComponentMetrics()
    source: ComponentSource = ComponentSource()
    archived: bool = False

    @field_validator("category")
    @classmethod
    def _check_category(cls, v: LLKBCategory) -> LLKBCategory:
        if v == LLKBCategory.QUIRK:
            raise ValueError("'quirk' is a lesson-only category")
        return v

    @field_validator("scope")
    @classmethod
    def _check_scope(cls, v: str) -> str:
        return validate_scope(v)
