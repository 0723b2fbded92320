"""
Duplicate Detector — near-duplicate fragments across many sources.

scan -> normalize -> bucket -> group -> score

Grouping is greedy and order-dependent: each fragment joins the FIRST
existing group (in creation order) whose representative scores at or above
the threshold, otherwise it starts a new group. Candidate rankings depend on
this exact policy, so callers must supply fragments in a stable order and the
grouping pass must stay sequential.
"""

import logging
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from llkb.inference.categories import infer_component_category
from llkb.models.component import Component
from llkb.models.detection import (
    CodeFragment,
    ComponentOpportunity,
    DetectionOptions,
    DuplicateDetectionResult,
    DuplicateGroup,
    ExtractionCandidate,
    ExtractionRecommendation,
    OpportunityMatch,
    PatternOccurrence,
)
from llkb.detection.parser import is_test_file, parse_test_steps
from llkb.similarity.normalizer import count_lines, hash_code, normalize_code
from llkb.similarity.scorer import calculate_similarity, round2

logger = logging.getLogger(__name__)

MAX_ORIGINAL_SAMPLES = 3
DEFAULT_OPPORTUNITY_THRESHOLD = 0.6
SINGLE_FILE_MIN_LINES = 2


class FragmentGroup(NamedTuple):
    pattern_hash: str                       # Hash of the representative
    normalized_code: str                    # Representative: the first member, normalized
    fragments: Tuple[CodeFragment, ...]


def group_similar_fragments(
    fragments: Iterable[CodeFragment],
    similarity_threshold: float,
    min_lines: int = 0,
) -> List[FragmentGroup]:
    """
    Greedy first-match grouping of fragments by normalized similarity.

    Fragments shorter than min_lines are skipped. The hash only buckets:
    equal hashes with equal text short-circuit to a perfect score, but a hash
    collision never merges two fragments on its own.
    """
    groups: List[Tuple[str, str, List[CodeFragment]]] = []

    for fragment in fragments:
        if count_lines(fragment.code) < min_lines:
            continue

        normalized = normalize_code(fragment.code)
        digest = hash_code(normalized)

        for group_hash, representative, members in groups:
            if group_hash == digest and representative == normalized:
                similarity = 1.0
            else:
                similarity = calculate_similarity(normalized, representative)
            if similarity >= similarity_threshold:
                members.append(fragment)
                break
        else:
            groups.append((digest, normalized, [fragment]))

    logger.debug(f"Grouped fragments into {len(groups)} groups (threshold={similarity_threshold})")
    return [FragmentGroup(h, n, tuple(members)) for h, n, members in groups]


def internal_similarity(fragments: Sequence[CodeFragment]) -> float:
    """Mean pairwise similarity of the group's normalized fragments; 1.0 for one."""
    normalized = [normalize_code(f.code) for f in fragments]
    total = 0.0
    pairs = 0
    for i in range(len(normalized)):
        for j in range(i + 1, len(normalized)):
            total += calculate_similarity(normalized[i], normalized[j])
            pairs += 1
    return total / pairs if pairs else 1.0


def _distinct(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _build_duplicate_group(group: FragmentGroup) -> DuplicateGroup:
    first = group.fragments[0]
    return DuplicateGroup(
        pattern_hash=group.pattern_hash,
        normalized_code=group.normalized_code,
        original_samples=[f.code for f in group.fragments[:MAX_ORIGINAL_SAMPLES]],
        occurrences=[PatternOccurrence.of(f) for f in group.fragments],
        unique_journeys=len({f.journey_id for f in group.fragments}),
        unique_files=len({f.file for f in group.fragments}),
        category=infer_component_category(first.code),
        internal_similarity=internal_similarity(group.fragments),
    )


def build_duplicate_groups(
    groups: Sequence[FragmentGroup],
    min_occurrences: int,
) -> List[DuplicateGroup]:
    """Groups with enough occurrences, most frequent first."""
    duplicates = [
        _build_duplicate_group(group)
        for group in groups
        if len(group.fragments) >= min_occurrences
    ]
    return sorted(duplicates, key=lambda g: len(g.occurrences), reverse=True)


def _cross_file_candidate(group: DuplicateGroup) -> ExtractionCandidate:
    count = len(group.occurrences)
    if count >= 3:
        recommendation = ExtractionRecommendation.EXTRACT_NOW
    elif count >= 2:
        recommendation = ExtractionRecommendation.CONSIDER
    else:
        recommendation = ExtractionRecommendation.SKIP

    return ExtractionCandidate(
        pattern=group.normalized_code,
        original_code=group.original_samples[0] if group.original_samples else group.normalized_code,
        occurrences=group.occurrences,
        occurrence_count=count,
        journeys=_distinct(o.journey_id for o in group.occurrences),
        files=_distinct(o.file for o in group.occurrences),
        category=group.category,
        score=round2(count * 0.3 + group.unique_journeys * 0.4 + group.internal_similarity * 0.3),
        recommendation=recommendation,
        should_extract=recommendation != ExtractionRecommendation.SKIP,
        extraction_confidence=group.internal_similarity,
        reason=f"Pattern appears {count} times across {group.unique_journeys} journey(s)",
    )


def detect_duplicates(
    fragments: Sequence[CodeFragment],
    options: Optional[DetectionOptions] = None,
    files_analyzed: Optional[Sequence[str]] = None,
) -> DuplicateDetectionResult:
    """
    Detect near-duplicate fragments across sources.

    Fragments are processed in the order given.
    """
    options = options or DetectionOptions()

    groups = group_similar_fragments(fragments, options.similarity_threshold, options.min_lines)
    duplicate_groups = build_duplicate_groups(groups, options.min_occurrences)
    candidates = [_cross_file_candidate(g) for g in duplicate_groups]

    result = DuplicateDetectionResult(
        total_steps=len(fragments),
        unique_patterns=sum(1 for g in groups if len(g.fragments) == 1),
        duplicate_patterns=len(duplicate_groups),
        duplicate_groups=duplicate_groups,
        extraction_candidates=sorted(candidates, key=lambda c: c.score, reverse=True),
        files_analyzed=list(files_analyzed) if files_analyzed is not None
        else _distinct(f.file for f in fragments),
    )
    logger.debug(
        f"Detected {result.duplicate_patterns} duplicate patterns in "
        f"{result.total_steps} steps across {len(result.files_analyzed)} files"
    )
    return result


def detect_duplicates_across_sources(
    sources: Mapping[str, str],
    options: Optional[DetectionOptions] = None,
) -> DuplicateDetectionResult:
    """
    Parse test.step blocks out of {file path: content} and detect duplicates.

    Only test files (.spec., .test., .e2e.) are analyzed, in mapping order.
    """
    test_files = [path for path in sources if is_test_file(path)]
    fragments: List[CodeFragment] = []
    for path in test_files:
        fragments.extend(parse_test_steps(path, sources[path]))
    return detect_duplicates(fragments, options, files_analyzed=test_files)


def detect_duplicates_in_file(
    file_path: str,
    content: str,
    options: Optional[DetectionOptions] = None,
) -> DuplicateDetectionResult:
    """Duplicates within a single file. Shorter fragments count here."""
    options = options or DetectionOptions(min_lines=SINGLE_FILE_MIN_LINES)
    fragments = parse_test_steps(file_path, content)

    groups = group_similar_fragments(fragments, options.similarity_threshold, options.min_lines)
    duplicate_groups = build_duplicate_groups(groups, options.min_occurrences)

    candidates = []
    for group in duplicate_groups:
        count = len(group.occurrences)
        recommendation = (
            ExtractionRecommendation.CONSIDER if count >= 2 else ExtractionRecommendation.SKIP
        )
        candidates.append(ExtractionCandidate(
            pattern=group.normalized_code,
            original_code=group.original_samples[0] if group.original_samples else group.normalized_code,
            occurrences=group.occurrences,
            occurrence_count=count,
            journeys=[group.occurrences[0].journey_id],
            files=[file_path],
            category=group.category,
            score=round2(count * 0.5 + group.internal_similarity * 0.5),
            recommendation=recommendation,
            should_extract=recommendation != ExtractionRecommendation.SKIP,
            extraction_confidence=group.internal_similarity,
            reason=f"Pattern repeats {count} times in {file_path}",
        ))

    return DuplicateDetectionResult(
        total_steps=len(fragments),
        unique_patterns=sum(1 for g in groups if len(g.fragments) == 1),
        duplicate_patterns=len(duplicate_groups),
        duplicate_groups=duplicate_groups,
        extraction_candidates=sorted(candidates, key=lambda c: c.score, reverse=True),
        files_analyzed=[file_path],
    )


def find_unused_component_opportunities(
    fragments: Sequence[CodeFragment],
    components: Sequence[Component],
    similarity_threshold: float = DEFAULT_OPPORTUNITY_THRESHOLD,
    include_archived: bool = False,
) -> List[ComponentOpportunity]:
    """Inline fragments that look like existing components, per component."""
    candidates = [c for c in components if include_archived or not c.archived]
    normalized_sources = {c.id: normalize_code(c.source.original_code) for c in candidates}
    matches: Dict[str, List[OpportunityMatch]] = {c.id: [] for c in candidates}

    for fragment in fragments:
        normalized = normalize_code(fragment.code)
        for component in candidates:
            similarity = calculate_similarity(normalized, normalized_sources[component.id])
            if similarity >= similarity_threshold:
                matches[component.id].append(OpportunityMatch(
                    file=fragment.file,
                    step_name=fragment.step_name,
                    similarity=similarity,
                    line_start=fragment.line_start,
                    line_end=fragment.line_end,
                ))

    opportunities = [
        ComponentOpportunity(
            component=component,
            matches=sorted(matches[component.id], key=lambda m: m.similarity, reverse=True),
        )
        for component in candidates
        if matches[component.id]
    ]
    return sorted(opportunities, key=lambda o: len(o.matches), reverse=True)
