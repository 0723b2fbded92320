"""Context Ranker results — what gets injected into a generation prompt."""

from typing import List

from llkb.models.base import ResultModel
from llkb.models.component import Component
from llkb.models.lesson import Lesson


class ScoredLesson(ResultModel):
    lesson: Lesson
    relevance_score: float
    match_reasons: List[str] = []


class ScoredComponent(ResultModel):
    component: Component
    relevance_score: float
    match_reasons: List[str] = []


class RelevantQuirk(ResultModel):
    """A quirk-category lesson that applies to the journey."""

    id: str
    component: str                          # Lesson title
    location: str                           # Journey ids, or the lesson scope
    quirk: str                              # Trigger text
    impact: str
    workaround: str = ""


class RelevantSelectorPattern(ResultModel):
    id: str
    name: str
    template: str
    confidence: float


class RelevantTimingPattern(ResultModel):
    id: str
    name: str
    pattern: str
    recommendation: str


class ContextSummary(ResultModel):
    total_lessons: int
    total_components: int
    total_quirks: int
    avg_lesson_confidence: float
    avg_component_success_rate: float
    top_categories: List[str]


class RelevantContext(ResultModel):
    lessons: List[ScoredLesson]
    components: List[ScoredComponent]
    quirks: List[RelevantQuirk]
    selector_patterns: List[RelevantSelectorPattern]
    timing_patterns: List[RelevantTimingPattern]
    summary: ContextSummary
