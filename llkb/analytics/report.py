"""
Analytics — aggregate statistics over a knowledge-base snapshot.

Only active (non-archived) records count toward stats, performers and the
review lists; archived ones only show up in the overview counts.
"""

import math
from datetime import datetime
from typing import Dict, Optional, Sequence

from llkb.confidence.engine import REVIEW_THRESHOLD, as_utc, days_between, detect_declining_confidence, utcnow
from llkb.inference.categories import get_all_categories, get_component_categories
from llkb.models.analytics import (
    AnalyticsOverview,
    AnalyticsReport,
    ComponentStats,
    LessonStats,
    NeedsReview,
    TopPerformerComponent,
    TopPerformerLesson,
    TopPerformers,
)
from llkb.models.component import Component
from llkb.models.lesson import APP_SPECIFIC_SCOPE, UNIVERSAL_SCOPE, Lesson

TOP_PERFORMERS = 5
LOW_USAGE_USES = 2
LOW_USAGE_AGE_DAYS = 30


def _round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def _lesson_stats(lessons: Sequence[Lesson]) -> LessonStats:
    by_category: Dict[str, int] = {c.value: 0 for c in get_all_categories()}
    for lesson in lessons:
        by_category[lesson.category.value] += 1

    if not lessons:
        return LessonStats(by_category=by_category, avg_confidence=0.0, avg_success_rate=0.0)

    return LessonStats(
        by_category=by_category,
        avg_confidence=_round2(sum(l.metrics.confidence for l in lessons) / len(lessons)),
        avg_success_rate=_round2(sum(l.metrics.success_rate for l in lessons) / len(lessons)),
    )


def _component_stats(components: Sequence[Component]) -> ComponentStats:
    by_category: Dict[str, int] = {c.value: 0 for c in get_component_categories()}
    by_scope: Dict[str, int] = {UNIVERSAL_SCOPE: 0, APP_SPECIFIC_SCOPE: 0}
    for component in components:
        by_category[component.category.value] += 1
        by_scope[component.scope] = by_scope.get(component.scope, 0) + 1

    total_reuses = sum(c.metrics.total_uses for c in components)
    return ComponentStats(
        by_category=by_category,
        by_scope=by_scope,
        total_reuses=total_reuses,
        avg_reuses_per_component=_round2(total_reuses / len(components)) if components else 0.0,
    )


def _top_performers(lessons: Sequence[Lesson], components: Sequence[Component]) -> TopPerformers:
    top_lessons = sorted(
        (
            TopPerformerLesson(
                id=l.id,
                title=l.title,
                score=_round2(l.metrics.success_rate * l.metrics.occurrences),
            )
            for l in lessons
        ),
        key=lambda p: p.score,
        reverse=True,
    )
    top_components = sorted(
        (TopPerformerComponent(id=c.id, name=c.name, uses=c.metrics.total_uses) for c in components),
        key=lambda p: p.uses,
        reverse=True,
    )
    return TopPerformers(
        lessons=top_lessons[:TOP_PERFORMERS],
        components=top_components[:TOP_PERFORMERS],
    )


def _is_low_usage(component: Component, now: datetime) -> bool:
    extracted_at = component.source.extracted_at
    if extracted_at is None:
        return False
    return (
        component.metrics.total_uses < LOW_USAGE_USES
        and days_between(now, extracted_at) > LOW_USAGE_AGE_DAYS
    )


def build_analytics(
    lessons: Sequence[Lesson],
    components: Sequence[Component],
    archived_lessons: Sequence[Lesson] = (),
    current_time: Optional[datetime] = None,
) -> AnalyticsReport:
    """
    Build an analytics report.

    lessons may include archived records (flagged ``archived``);
    archived_lessons holds lessons already moved out of the main list.
    """
    now = as_utc(current_time) if current_time else utcnow()
    active_lessons = [l for l in lessons if not l.archived]
    active_components = [c for c in components if not c.archived]

    overview = AnalyticsOverview(
        total_lessons=len(lessons) + len(archived_lessons),
        active_lessons=len(active_lessons),
        archived_lessons=len(lessons) - len(active_lessons) + len(archived_lessons),
        total_components=len(components),
        active_components=len(active_components),
        archived_components=len(components) - len(active_components),
    )

    needs_review = NeedsReview(
        low_confidence_lessons=[
            l.id for l in active_lessons if l.metrics.confidence < REVIEW_THRESHOLD
        ],
        low_usage_components=[c.id for c in active_components if _is_low_usage(c, now)],
        declining_confidence=[l.id for l in active_lessons if detect_declining_confidence(l)],
    )

    return AnalyticsReport(
        generated_at=now,
        overview=overview,
        lesson_stats=_lesson_stats(active_lessons),
        component_stats=_component_stats(active_components),
        top_performers=_top_performers(active_lessons, active_components),
        needs_review=needs_review,
    )


def format_analytics_summary(report: AnalyticsReport) -> str:
    o = report.overview
    l = report.lesson_stats
    c = report.component_stats
    return "\n".join([
        f"LLKB Analytics ({report.generated_at.isoformat()})",
        "-" * 50,
        f"Lessons: {o.active_lessons} active, {o.archived_lessons} archived",
        f"  Avg Confidence: {l.avg_confidence}",
        f"  Avg Success Rate: {l.avg_success_rate}",
        f"Components: {o.active_components} active, {o.archived_components} archived",
        f"  Total Reuses: {c.total_reuses}",
        f"  Avg Reuses/Component: {c.avg_reuses_per_component}",
        f"Items Needing Review: {report.needs_review.total}",
    ])
