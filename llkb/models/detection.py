"""Duplicate detection and extraction models."""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from llkb.models.base import DocumentModel, ResultModel
from llkb.models.component import Component
from llkb.models.lesson import LLKBCategory


class ExtractionRecommendation(str, Enum):
    EXTRACT_NOW = "EXTRACT_NOW"
    CONSIDER = "CONSIDER"
    SKIP = "SKIP"


class CodeFragment(DocumentModel):
    """A code fragment observed in a source file (usually one test.step body)."""

    file: str
    journey_id: str
    step_name: str
    code: str
    line_start: int = Field(ge=0, default=0)
    line_end: int = Field(ge=0, default=0)


class PatternOccurrence(DocumentModel):
    """Where a pattern appears."""

    file: str
    journey_id: str
    step_name: str
    line_start: int = 0
    line_end: int = 0

    @classmethod
    def of(cls, fragment: CodeFragment) -> "PatternOccurrence":
        return cls(
            file=fragment.file,
            journey_id=fragment.journey_id,
            step_name=fragment.step_name,
            line_start=fragment.line_start,
            line_end=fragment.line_end,
        )


class DetectionOptions(DocumentModel):
    similarity_threshold: float = Field(ge=0.0, le=1.0, default=0.8)
    min_occurrences: int = Field(ge=1, default=2)
    min_lines: int = Field(ge=0, default=3)


class ExtractionCheckResult(ResultModel):
    """Whether a fragment should become a reusable component, and why."""

    should_extract: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str
    suggested_category: Optional[LLKBCategory] = None
    suggested_path: Optional[str] = None


class DuplicateGroup(ResultModel):
    """Near-duplicate fragments that were merged into one group."""

    pattern_hash: str                       # Hash of the representative; bucketing only
    normalized_code: str
    original_samples: List[str]             # Up to 3 raw samples
    occurrences: List[PatternOccurrence]
    unique_journeys: int
    unique_files: int
    category: LLKBCategory
    internal_similarity: float              # Mean pairwise similarity within the group


class ExtractionCandidate(ResultModel):
    """A group of near-duplicates proposed for promotion into a component."""

    pattern: str                            # Normalized representative
    original_code: str
    occurrences: List[PatternOccurrence]
    occurrence_count: int
    journeys: List[str]                     # Distinct consumption-context ids
    files: List[str]
    category: LLKBCategory
    score: float
    recommendation: ExtractionRecommendation
    should_extract: bool = False
    extraction_confidence: float = 0.0
    reason: str = ""


class DuplicateDetectionResult(ResultModel):
    total_steps: int
    unique_patterns: int                    # Groups with a single occurrence
    duplicate_patterns: int
    duplicate_groups: List[DuplicateGroup]
    extraction_candidates: List[ExtractionCandidate]
    files_analyzed: List[str]


class OpportunityMatch(ResultModel):
    file: str
    step_name: str
    similarity: float
    line_start: int
    line_end: int


class ComponentOpportunity(ResultModel):
    """Inline code that could be replaced by an existing component."""

    component: Component
    matches: List[OpportunityMatch]
