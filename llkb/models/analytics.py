"""Analytics report over a knowledge-base snapshot."""

from datetime import datetime
from typing import Dict, List

from llkb.models.base import ResultModel


class AnalyticsOverview(ResultModel):
    total_lessons: int
    active_lessons: int
    archived_lessons: int
    total_components: int
    active_components: int
    archived_components: int


class LessonStats(ResultModel):
    by_category: Dict[str, int]
    avg_confidence: float
    avg_success_rate: float


class ComponentStats(ResultModel):
    by_category: Dict[str, int]
    by_scope: Dict[str, int]
    total_reuses: int
    avg_reuses_per_component: float


class TopPerformerLesson(ResultModel):
    id: str
    title: str
    score: float                            # success_rate * occurrences


class TopPerformerComponent(ResultModel):
    id: str
    name: str
    uses: int


class TopPerformers(ResultModel):
    lessons: List[TopPerformerLesson]
    components: List[TopPerformerComponent]


class NeedsReview(ResultModel):
    low_confidence_lessons: List[str]
    low_usage_components: List[str]
    declining_confidence: List[str]

    @property
    def total(self) -> int:
        return (
            len(self.low_confidence_lessons)
            + len(self.low_usage_components)
            + len(self.declining_confidence)
        )


class AnalyticsReport(ResultModel):
    generated_at: datetime
    overview: AnalyticsOverview
    lesson_stats: LessonStats
    component_stats: ComponentStats
    top_performers: TopPerformers
    needs_review: NeedsReview
