"""
Matcher — pick the best existing component for each journey step.

Step/component similarity:
- 0.3 when the step's code infers to the component's category
- 0.4 x keyword overlap ratio
- 0.3 x word overlap between names and descriptions
"""

import logging
from typing import List, Optional, Sequence

from llkb.inference.categories import ACTION_KEYWORDS, UI_ELEMENT_REGEX, infer_category
from llkb.models.component import Component
from llkb.models.journey import JourneyStep
from llkb.models.lesson import APP_SPECIFIC_SCOPE, UNIVERSAL_SCOPE, scope_framework
from llkb.models.matching import MatchOptions, MatchRecommendation, StepMatchResult

logger = logging.getLogger(__name__)

CATEGORY_WEIGHT = 0.3
KEYWORD_WEIGHT = 0.4
WORD_WEIGHT = 0.3
MIN_WORD_LENGTH = 3


def _step_text(step: JourneyStep) -> str:
    return f"{step.name} {step.description or ''}".lower()


def extract_step_keywords(step: JourneyStep) -> List[str]:
    """Action verbs, explicit keywords and UI element words, deduplicated in order."""
    text = _step_text(step)
    keywords = [keyword for keyword in ACTION_KEYWORDS if keyword in text]
    if step.keywords:
        keywords.extend(k.lower() for k in step.keywords)
    keywords.extend(m.lower() for m in UI_ELEMENT_REGEX.findall(text))
    return list(dict.fromkeys(keywords))


def _words(text: str) -> set:
    return {w for w in text.split() if len(w) >= MIN_WORD_LENGTH}


def step_component_similarity(
    step: JourneyStep,
    component: Component,
    step_keywords: Sequence[str],
) -> float:
    score = 0.0

    if step.code and infer_category(step.code) == component.category:
        score += CATEGORY_WEIGHT

    component_keywords = [
        component.category.value,
        *component.description.lower().split(),
        component.name.lower(),
    ]
    overlap = sum(
        1 for k in step_keywords
        if any(ck in k or k in ck for ck in component_keywords)
    )
    score += min(overlap / max(len(step_keywords), 1), 1.0) * KEYWORD_WEIGHT

    step_words = _words(_step_text(step))
    component_words = _words(f"{component.name} {component.description}".lower())
    score += len(step_words & component_words) / max(len(step_words), 1) * WORD_WEIGHT

    return score


def scope_matches(component_scope: str, app_framework: Optional[str] = None) -> bool:
    """Universal and app-specific always apply; framework scopes only to that framework."""
    if component_scope in (UNIVERSAL_SCOPE, APP_SPECIFIC_SCOPE):
        return True
    framework = scope_framework(component_scope)
    return framework is not None and framework == app_framework


def _match_step(
    step: JourneyStep,
    components: Sequence[Component],
    options: MatchOptions,
) -> StepMatchResult:
    step_keywords = extract_step_keywords(step)

    best_match: Optional[Component] = None
    best_score = 0.0
    for component in components:
        if not scope_matches(component.scope, options.app_framework):
            continue
        score = step_component_similarity(step, component, step_keywords)
        # Strictly greater: the earliest component wins ties
        if score > best_score:
            best_score = score
            best_match = component

    percent = f"{best_score * 100:.0f}%"
    if best_match is not None and best_score >= options.use_threshold:
        recommendation = MatchRecommendation.USE
        reason = f"High confidence match ({percent}) - use {best_match.name} component"
    elif best_match is not None and best_score >= options.suggest_threshold:
        recommendation = MatchRecommendation.SUGGEST
        reason = f"Moderate match ({percent}) - consider {best_match.name} component"
    else:
        recommendation = MatchRecommendation.NONE
        reason = (
            f"Low match score ({percent}) - write inline code"
            if best_match is not None
            else "No matching components found"
        )
        best_match = None

    return StepMatchResult(
        step=step,
        component=best_match,
        score=best_score,
        recommendation=recommendation,
        reason=reason,
    )


def match_steps_to_components(
    steps: Sequence[JourneyStep],
    components: Sequence[Component],
    options: Optional[MatchOptions] = None,
) -> List[StepMatchResult]:
    """One result per step, in step order."""
    options = options or MatchOptions()

    candidates = [
        c for c in components
        if not c.archived and (not options.categories or c.category in options.categories)
    ]

    results = [_match_step(step, candidates, options) for step in steps]
    logger.debug(
        f"Matched {len(steps)} steps against {len(candidates)} components: "
        f"{sum(1 for r in results if r.recommendation == MatchRecommendation.USE)} USE"
    )
    return results
