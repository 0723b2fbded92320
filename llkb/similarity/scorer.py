"""
Similarity Scorer — one score in [0, 1] for two code fragments.

score = 0.8 * jaccard(normalized tokens) + 0.2 * line-count similarity,
rounded to 2 decimals. Fragments with identical normalized text score
exactly 1.0.
"""

import logging
import math
from typing import List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel

from llkb.errors import check_threshold
from llkb.similarity.normalizer import count_lines, normalize_code, tokenize

logger = logging.getLogger(__name__)

JACCARD_WEIGHT = 0.8
LINE_WEIGHT = 0.2
DEFAULT_THRESHOLD = 0.8


class SimilarPattern(BaseModel):
    pattern: str
    similarity: float
    index: int


def round2(value: float) -> float:
    """Round half up to 2 decimals."""
    return math.floor(value * 100 + 0.5) / 100


def jaccard_similarity(set_a: Set[str], set_b: Set[str]) -> float:
    if not set_a and not set_b:
        return 1.0
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def line_count_similarity(lines_a: int, lines_b: int) -> float:
    if lines_a == 0 and lines_b == 0:
        return 1.0
    return 1 - abs(lines_a - lines_b) / max(lines_a, lines_b)


def calculate_similarity(code_a: str, code_b: str) -> float:
    """Similarity of two fragments. Symmetric; 1.0 for a fragment with itself."""
    norm_a = normalize_code(code_a)
    norm_b = normalize_code(code_b)
    if norm_a == norm_b:
        return 1.0

    jaccard = jaccard_similarity(tokenize(norm_a), tokenize(norm_b))
    # Line counts come from the raw fragments; normalization flattens newlines.
    lines = line_count_similarity(count_lines(code_a), count_lines(code_b))
    return round2(jaccard * JACCARD_WEIGHT + lines * LINE_WEIGHT)


def is_near_duplicate(code_a: str, code_b: str, threshold: float = DEFAULT_THRESHOLD) -> bool:
    check_threshold("threshold", threshold)
    return calculate_similarity(code_a, code_b) >= threshold


def _present(values: Sequence[Optional[str]]) -> List[Tuple[int, str]]:
    """(index, value) pairs, skipping missing entries."""
    present = [(i, v) for i, v in enumerate(values) if v is not None]
    if len(present) < len(values):
        logger.warning(f"Skipped {len(values) - len(present)} missing entries in similarity query")
    return present


def find_near_duplicates(
    pattern: str,
    candidates: Sequence[Optional[str]],
    threshold: float = DEFAULT_THRESHOLD,
) -> List[int]:
    """Indexes of candidates that are near-duplicates of pattern, in input order."""
    check_threshold("threshold", threshold)
    return [
        i for i, candidate in _present(candidates)
        if calculate_similarity(pattern, candidate) >= threshold
    ]


def find_similar_patterns(
    target: str,
    patterns: Sequence[Optional[str]],
    threshold: float = DEFAULT_THRESHOLD,
) -> List[SimilarPattern]:
    """
    Patterns scoring at least threshold against target, best first.

    Callers must not rely on the relative order of equal scores.
    """
    check_threshold("threshold", threshold)
    results = []
    for i, pattern in _present(patterns):
        similarity = calculate_similarity(target, pattern)
        if similarity >= threshold:
            results.append(SimilarPattern(pattern=pattern, similarity=similarity, index=i))
    return sorted(results, key=lambda r: r.similarity, reverse=True)
