"""Step-to-component matching models."""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from llkb.models.base import DocumentModel, ResultModel
from llkb.models.component import Component
from llkb.models.journey import JourneyStep
from llkb.models.lesson import LLKBCategory


class MatchRecommendation(str, Enum):
    USE = "USE"
    SUGGEST = "SUGGEST"
    NONE = "NONE"


class MatchOptions(DocumentModel):
    use_threshold: float = Field(ge=0.0, le=1.0, default=0.7)
    suggest_threshold: float = Field(ge=0.0, le=1.0, default=0.4)
    app_framework: Optional[str] = None     # Enables framework-qualified components
    categories: Optional[List[LLKBCategory]] = None


class StepMatchResult(ResultModel):
    step: JourneyStep
    component: Optional[Component] = None   # Cleared when the recommendation is NONE
    score: float
    recommendation: MatchRecommendation
    reason: str
