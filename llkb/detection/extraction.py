"""
Extraction — decide whether repeated code should become a component.

Checks, in order: too short, already covered by an existing component,
enough occurrences, predictive extraction of a common UI pattern.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from llkb.detection.detector import group_similar_fragments
from llkb.inference.categories import infer_category, match_reusable_pattern
from llkb.models.component import Component
from llkb.models.config import LLKBConfig
from llkb.models.detection import (
    CodeFragment,
    ExtractionCandidate,
    ExtractionCheckResult,
    ExtractionRecommendation,
    PatternOccurrence,
)
from llkb.models.lesson import APP_SPECIFIC_SCOPE, UNIVERSAL_SCOPE, LLKBCategory, scope_framework
from llkb.similarity.normalizer import count_lines, normalize_code
from llkb.similarity.scorer import calculate_similarity, round2

logger = logging.getLogger(__name__)

CORE_MODULE_ROOT = "@artk/core"
APP_MODULE_ROOT = "modules/foundation"

EXTRACT_NOW_SCORE = 0.7
CONSIDER_SCORE = 0.5


def suggest_module_path(category: LLKBCategory, scope: str) -> str:
    """Where a component of this category and scope would live."""
    if scope == UNIVERSAL_SCOPE:
        return f"{CORE_MODULE_ROOT}/{category.value}"
    framework = scope_framework(scope)
    if framework:
        return f"{CORE_MODULE_ROOT}/{framework}/{category.value}"
    return f"{APP_MODULE_ROOT}/{category.value}"


def _find_covering_component(
    code: str,
    components: Sequence[Component],
    threshold: float,
) -> Optional[Tuple[Component, float]]:
    for component in components:
        if component.archived:
            continue
        # Compared in normalized form, so line breaks do not count.
        similarity = calculate_similarity(
            normalize_code(code), normalize_code(component.source.original_code)
        )
        if similarity >= threshold:
            return component, similarity
    return None


def should_extract_as_component(
    code: str,
    occurrences: Sequence[PatternOccurrence],
    config: Optional[LLKBConfig] = None,
    existing_components: Sequence[Component] = (),
) -> ExtractionCheckResult:
    """Whether code seen at these occurrences should be extracted, and where to."""
    extraction = (config or LLKBConfig()).extraction

    if count_lines(code) < extraction.min_lines_for_extraction:
        return ExtractionCheckResult(
            should_extract=False,
            confidence=0.0,
            reason=f"Code too short ({count_lines(code)} lines, "
                   f"minimum {extraction.min_lines_for_extraction})",
        )

    covering = _find_covering_component(code, existing_components, extraction.similarity_threshold)
    if covering is not None:
        component, similarity = covering
        return ExtractionCheckResult(
            should_extract=False,
            confidence=1.0,
            reason=f"Similar component already exists: {component.name} "
                   f"({similarity * 100:.0f}% similar)",
        )

    pattern = match_reusable_pattern(code)
    category = pattern.category if pattern is not None else infer_category(code)
    path = suggest_module_path(category, APP_SPECIFIC_SCOPE)
    count = len(occurrences)

    if count >= extraction.min_occurrences:
        unique_journeys = len({o.journey_id for o in occurrences})
        return ExtractionCheckResult(
            should_extract=True,
            confidence=round2(min(0.7 + unique_journeys * 0.1, 0.95)),
            reason=f"Pattern appears {count} times across {unique_journeys} journey(s)",
            suggested_category=category,
            suggested_path=path,
        )

    if extraction.predictive_extraction and pattern is not None:
        return ExtractionCheckResult(
            should_extract=True,
            confidence=0.6,
            reason=f"Predictive extraction: matches common {pattern.name} pattern",
            suggested_category=category,
            suggested_path=path,
        )

    if count == 1 and pattern is None:
        return ExtractionCheckResult(
            should_extract=False,
            confidence=0.3,
            reason="Single occurrence, not a common pattern - keep inline",
            suggested_category=category,
        )

    return ExtractionCheckResult(
        should_extract=False,
        confidence=0.4,
        reason=f"Not enough occurrences ({count} < {extraction.min_occurrences}) "
               f"and no common pattern match",
        suggested_category=category,
    )


def _recommend(check: ExtractionCheckResult, score: float) -> ExtractionRecommendation:
    if check.should_extract and score >= EXTRACT_NOW_SCORE:
        return ExtractionRecommendation.EXTRACT_NOW
    if check.should_extract or score >= CONSIDER_SCORE:
        return ExtractionRecommendation.CONSIDER
    return ExtractionRecommendation.SKIP


def find_extraction_candidates(
    fragments: Sequence[CodeFragment],
    config: Optional[LLKBConfig] = None,
    existing_components: Sequence[Component] = (),
) -> List[ExtractionCandidate]:
    """
    Group fragments and rank every group as a potential component.

    score = 0.3 * occurrences + 0.4 * distinct journeys + 0.3 * extraction confidence
    """
    config = config or LLKBConfig()
    groups = group_similar_fragments(fragments, config.extraction.similarity_threshold)

    candidates = []
    for group in groups:
        first = group.fragments[0]
        occurrences = [PatternOccurrence.of(f) for f in group.fragments]
        journeys = list(dict.fromkeys(f.journey_id for f in group.fragments))

        check = should_extract_as_component(first.code, occurrences, config, existing_components)
        score = round2(len(occurrences) * 0.3 + len(journeys) * 0.4 + check.confidence * 0.3)

        candidates.append(ExtractionCandidate(
            pattern=group.normalized_code,
            original_code=first.code,
            occurrences=occurrences,
            occurrence_count=len(occurrences),
            journeys=journeys,
            files=list(dict.fromkeys(f.file for f in group.fragments)),
            category=check.suggested_category or infer_category(first.code),
            score=score,
            recommendation=_recommend(check, score),
            should_extract=check.should_extract,
            extraction_confidence=check.confidence,
            reason=check.reason,
        ))

    logger.info(
        f"Found {sum(1 for c in candidates if c.should_extract)} extractable patterns "
        f"in {len(candidates)} groups"
    )
    return sorted(candidates, key=lambda c: c.score, reverse=True)
