"""
Context Ranker — choose the lessons, components and patterns worth injecting
into a generation prompt for one journey.

Scoring is additive and capped at 1.0. Items scoring 0.2 or less are dropped,
at most 10 lessons and 10 components survive, and archived records never do.
"""

import logging
import math
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from llkb.confidence.engine import as_utc, utcnow
from llkb.models.component import Component
from llkb.models.config import LLKBConfig
from llkb.models.context import (
    ContextSummary,
    RelevantContext,
    RelevantQuirk,
    RelevantSelectorPattern,
    RelevantTimingPattern,
    ScoredComponent,
    ScoredLesson,
)
from llkb.models.journey import AppProfile, JourneyContext, PatternLibrary
from llkb.models.lesson import (
    APP_SPECIFIC_SCOPE,
    FRAMEWORK_SCOPE_PREFIX,
    UNIVERSAL_SCOPE,
    Lesson,
    LLKBCategory,
)
from llkb.similarity.normalizer import tokenize

logger = logging.getLogger(__name__)

MAX_LESSONS = 10
MAX_COMPONENTS = 10
MAX_QUIRKS = 5
MAX_SELECTOR_PATTERNS = 5
MAX_TIMING_PATTERNS = 5
TOP_CATEGORIES = 3

RELEVANCE_CUTOFF = 0.2                  # Strictly greater survives
HIGH_CONFIDENCE_PATTERN = 0.9


def extract_keywords(journey: JourneyContext) -> List[str]:
    """Title words over 3 chars, the scope, and route segments over 2 chars."""
    keywords = [w for w in journey.title.lower().split() if len(w) > 3]
    keywords.append(journey.scope.lower())
    for route in journey.routes or []:
        keywords.extend(part.lower() for part in route.split("/") if len(part) > 2)
    return list(dict.fromkeys(keywords))


def _days_since(value: datetime, now: datetime) -> int:
    return math.floor((now - as_utc(value)).total_seconds() / 86400)


def _keyword_hits(keywords: Iterable[str], text: str) -> List[str]:
    """Keywords contained in at least one token of text."""
    tokens = [t.lower() for t in tokenize(text)]
    return [kw for kw in keywords if any(kw.lower() in t for t in tokens)]


def _scope_framework_names(app_profile: Optional[AppProfile]) -> Tuple[Optional[str], Optional[str]]:
    if app_profile is None:
        return None, None
    grid = app_profile.data_grid if app_profile.data_grid != "none" else None
    return app_profile.framework, grid


def score_lesson(
    lesson: Lesson,
    journey: JourneyContext,
    keywords: Sequence[str],
    app_profile: Optional[AppProfile] = None,
    current_time: Optional[datetime] = None,
) -> Tuple[float, List[str]]:
    """Relevance of a lesson to the journey, with human-readable reasons."""
    now = as_utc(current_time) if current_time else utcnow()
    framework, _ = _scope_framework_names(app_profile)
    metrics = lesson.metrics
    reasons = []

    score = metrics.confidence * 0.3

    if lesson.scope == UNIVERSAL_SCOPE:
        score += 0.2
        reasons.append("universal scope")
    elif framework and lesson.scope == f"{FRAMEWORK_SCOPE_PREFIX}{framework}":
        score += 0.25
        reasons.append(f"framework match: {framework}")
    elif lesson.scope == APP_SPECIFIC_SCOPE:
        score += 0.15
        reasons.append("app-specific")

    matching_tags = [
        tag for tag in lesson.tags
        if any(kw.lower() in tag.lower() for kw in keywords)
    ]
    if matching_tags:
        score += min(len(matching_tags) * 0.1, 0.3)
        reasons.append(f"tags: {', '.join(matching_tags)}")

    if lesson.journey_ids:
        if journey.id in lesson.journey_ids:
            score += 0.25
            reasons.append("same journey")
        else:
            scope = journey.scope.lower()
            similar = [jid for jid in lesson.journey_ids if scope in jid.lower()]
            if similar:
                score += 0.15
                reasons.append(f"similar journeys: {len(similar)}")

    if journey.categories and lesson.category in journey.categories:
        score += 0.15
        reasons.append(f"category: {lesson.category.value}")

    trigger_hits = _keyword_hits(keywords, lesson.trigger)
    if trigger_hits:
        score += min(len(trigger_hits) * 0.05, 0.15)
        reasons.append(f"trigger match: {', '.join(trigger_hits[:2])}")

    if metrics.last_success is not None:
        days = _days_since(metrics.last_success, now)
        if days < 7:
            score += 0.1
            reasons.append("recently successful")
        elif days < 30:
            score += 0.05

    if metrics.success_rate >= 0.9:
        score += 0.1
        reasons.append("high success rate")

    return min(score, 1.0), reasons


def score_component(
    component: Component,
    journey: JourneyContext,
    keywords: Sequence[str],
    app_profile: Optional[AppProfile] = None,
) -> Tuple[float, List[str]]:
    """Relevance of a component to the journey, with human-readable reasons."""
    framework, grid = _scope_framework_names(app_profile)
    metrics = component.metrics
    reasons = []

    score = metrics.success_rate * 0.3

    if component.scope == UNIVERSAL_SCOPE:
        score += 0.2
        reasons.append("universal scope")
    elif framework and component.scope == f"{FRAMEWORK_SCOPE_PREFIX}{framework}":
        score += 0.25
        reasons.append(f"framework match: {framework}")
    elif grid and component.scope == f"{FRAMEWORK_SCOPE_PREFIX}{grid}":
        score += 0.25
        reasons.append(f"data grid match: {grid}")

    if journey.categories and component.category in journey.categories:
        score += 0.2
        reasons.append(f"category: {component.category.value}")

    description_hits = _keyword_hits(keywords, component.description)
    if description_hits:
        score += min(len(description_hits) * 0.05, 0.2)
        reasons.append(f"context match: {', '.join(description_hits[:3])}")

    if metrics.total_uses > 10:
        score += 0.15
        reasons.append("widely used")
    elif metrics.total_uses > 3:
        score += 0.1
        reasons.append("commonly used")

    if metrics.success_rate >= 0.95:
        score += 0.1
        reasons.append("high reliability")

    return min(score, 1.0), reasons


def _quirk_matches(lesson: Lesson, journey: JourneyContext, keywords: Sequence[str]) -> bool:
    scope = journey.scope.lower()
    journey_ids = [jid.lower() for jid in lesson.journey_ids]

    if any(jid in scope or scope in jid for jid in journey_ids):
        return True
    if _keyword_hits(keywords, lesson.trigger) or _keyword_hits(keywords, lesson.pattern):
        return True
    return any(jid in route.lower() for route in journey.routes or [] for jid in journey_ids)


def extract_relevant_quirks(
    lessons: Sequence[Lesson],
    journey: JourneyContext,
    keywords: Sequence[str],
) -> List[RelevantQuirk]:
    quirks = []
    for lesson in lessons:
        if lesson.archived or lesson.category != LLKBCategory.QUIRK:
            continue
        if not _quirk_matches(lesson, journey, keywords):
            continue
        quirks.append(RelevantQuirk(
            id=lesson.id,
            component=lesson.title,
            location=", ".join(lesson.journey_ids) or lesson.scope,
            quirk=lesson.trigger,
            impact=f"Confidence: {math.floor(lesson.metrics.confidence * 100 + 0.5)}%",
            workaround=lesson.pattern,
        ))
        if len(quirks) == MAX_QUIRKS:
            break
    return quirks


def extract_relevant_selector_patterns(
    patterns: Optional[PatternLibrary],
    keywords: Sequence[str],
    app_profile: Optional[AppProfile] = None,
) -> List[RelevantSelectorPattern]:
    if patterns is None:
        return []

    profile_names = (
        {app_profile.framework, app_profile.data_grid, app_profile.ui_library}
        if app_profile is not None else set()
    )
    relevant = []
    for pattern in patterns.selector_patterns:
        matches_app = any(app in profile_names for app in pattern.applicable_to)
        matches_keywords = any(
            kw.lower() in app.lower()
            for app in pattern.applicable_to
            for kw in keywords
        )
        if matches_app or matches_keywords or pattern.confidence >= HIGH_CONFIDENCE_PATTERN:
            relevant.append(RelevantSelectorPattern(
                id=pattern.id,
                name=pattern.name,
                template=pattern.template,
                confidence=pattern.confidence,
            ))
    return relevant[:MAX_SELECTOR_PATTERNS]


def extract_relevant_timing_patterns(
    patterns: Optional[PatternLibrary],
    keywords: Sequence[str],
) -> List[RelevantTimingPattern]:
    if patterns is None:
        return []

    relevant = [
        RelevantTimingPattern(
            id=pattern.id,
            name=pattern.name,
            pattern=pattern.pattern,
            recommendation=pattern.recommendation,
        )
        for pattern in patterns.timing_patterns
        if _keyword_hits(keywords, pattern.context)
    ]
    return relevant[:MAX_TIMING_PATTERNS]


def summarize_context(
    lessons: Sequence[ScoredLesson],
    components: Sequence[ScoredComponent],
    quirks: Sequence[RelevantQuirk],
) -> ContextSummary:
    category_counts: Dict[str, int] = {}
    for category in [s.lesson.category for s in lessons] + [s.component.category for s in components]:
        category_counts[category.value] = category_counts.get(category.value, 0) + 1

    ranked = sorted(category_counts.items(), key=lambda item: item[1], reverse=True)

    return ContextSummary(
        total_lessons=len(lessons),
        total_components=len(components),
        total_quirks=len(quirks),
        avg_lesson_confidence=(
            sum(s.lesson.metrics.confidence for s in lessons) / len(lessons) if lessons else 0.0
        ),
        avg_component_success_rate=(
            sum(s.component.metrics.success_rate for s in components) / len(components)
            if components else 0.0
        ),
        top_categories=[category for category, _ in ranked[:TOP_CATEGORIES]],
    )


def get_relevant_context(
    journey: JourneyContext,
    lessons: Sequence[Lesson],
    components: Sequence[Component],
    config: Optional[LLKBConfig] = None,
    app_profile: Optional[AppProfile] = None,
    patterns: Optional[PatternLibrary] = None,
    current_time: Optional[datetime] = None,
) -> RelevantContext:
    """
    Ranked, capped context for one journey. Inputs are not modified.

    With injection.prioritize_by_confidence, lessons sort by confidence and
    components by success rate, each with relevance as the tie-breaker.
    Otherwise both sort by relevance alone. Sorting is stable.
    """
    config = config or LLKBConfig()
    keywords = journey.keywords if journey.keywords is not None else extract_keywords(journey)
    by_confidence = config.injection.prioritize_by_confidence

    scored_lessons = []
    for lesson in lessons:
        if lesson.archived:
            continue
        score, reasons = score_lesson(lesson, journey, keywords, app_profile, current_time)
        if score > RELEVANCE_CUTOFF:
            scored_lessons.append(ScoredLesson(lesson=lesson, relevance_score=score, match_reasons=reasons))

    if by_confidence:
        scored_lessons.sort(key=lambda s: (s.lesson.metrics.confidence, s.relevance_score), reverse=True)
    else:
        scored_lessons.sort(key=lambda s: s.relevance_score, reverse=True)

    scored_components = []
    for component in components:
        if component.archived:
            continue
        score, reasons = score_component(component, journey, keywords, app_profile)
        if score > RELEVANCE_CUTOFF:
            scored_components.append(
                ScoredComponent(component=component, relevance_score=score, match_reasons=reasons)
            )

    if by_confidence:
        scored_components.sort(
            key=lambda s: (s.component.metrics.success_rate, s.relevance_score), reverse=True
        )
    else:
        scored_components.sort(key=lambda s: s.relevance_score, reverse=True)

    top_lessons = scored_lessons[:MAX_LESSONS]
    top_components = scored_components[:MAX_COMPONENTS]
    quirks = extract_relevant_quirks(lessons, journey, keywords)

    logger.debug(
        f"Context for {journey.id}: {len(top_lessons)}/{len(lessons)} lessons, "
        f"{len(top_components)}/{len(components)} components, {len(quirks)} quirks"
    )

    return RelevantContext(
        lessons=top_lessons,
        components=top_components,
        quirks=quirks,
        selector_patterns=extract_relevant_selector_patterns(patterns, keywords, app_profile),
        timing_patterns=extract_relevant_timing_patterns(patterns, keywords),
        summary=summarize_context(top_lessons, top_components, quirks),
    )


def get_relevant_scopes(app_profile: Optional[AppProfile] = None) -> List[str]:
    """Scopes whose records can apply to this application."""
    scopes = [UNIVERSAL_SCOPE, APP_SPECIFIC_SCOPE]
    if app_profile is None:
        return scopes
    if app_profile.framework != "other":
        scopes.append(f"{FRAMEWORK_SCOPE_PREFIX}{app_profile.framework}")
    if app_profile.data_grid != "none":
        scopes.append(f"{FRAMEWORK_SCOPE_PREFIX}{app_profile.data_grid}")
    if app_profile.ui_library not in ("custom", "none"):
        scopes.append(f"{FRAMEWORK_SCOPE_PREFIX}{app_profile.ui_library}")
    return scopes
