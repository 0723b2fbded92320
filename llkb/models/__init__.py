"""LLKB data models."""

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
from llkb.models.component import Component, ComponentMetrics, ComponentSource
from llkb.models.config import (
    ExtractionConfig,
    InjectionConfig,
    LLKBConfig,
    RetentionConfig,
)
from llkb.models.context import (
    ContextSummary,
    RelevantContext,
    RelevantQuirk,
    RelevantSelectorPattern,
    RelevantTimingPattern,
    ScoredComponent,
    ScoredLesson,
)
from llkb.models.detection import (
    CodeFragment,
    ComponentOpportunity,
    DetectionOptions,
    DuplicateDetectionResult,
    DuplicateGroup,
    ExtractionCandidate,
    ExtractionCheckResult,
    ExtractionRecommendation,
    OpportunityMatch,
    PatternOccurrence,
)
from llkb.models.journey import (
    AppProfile,
    JourneyContext,
    JourneyStep,
    PatternLibrary,
    SelectorPattern,
    TimingPattern,
)
from llkb.models.lesson import (
    ConfidenceHistoryEntry,
    Lesson,
    LessonMetrics,
    LessonValidation,
    LLKBCategory,
)
from llkb.models.matching import MatchOptions, MatchRecommendation, StepMatchResult

__all__ = [
    "AnalyticsOverview",
    "AnalyticsReport",
    "AppProfile",
    "CodeFragment",
    "Component",
    "ComponentMetrics",
    "ComponentOpportunity",
    "ComponentSource",
    "ComponentStats",
    "ConfidenceHistoryEntry",
    "ContextSummary",
    "DetectionOptions",
    "DuplicateDetectionResult",
    "DuplicateGroup",
    "ExtractionCandidate",
    "ExtractionCheckResult",
    "ExtractionConfig",
    "ExtractionRecommendation",
    "InjectionConfig",
    "JourneyContext",
    "JourneyStep",
    "Lesson",
    "LessonMetrics",
    "LessonStats",
    "LessonValidation",
    "LLKBCategory",
    "LLKBConfig",
    "MatchOptions",
    "MatchRecommendation",
    "NeedsReview",
    "OpportunityMatch",
    "PatternLibrary",
    "PatternOccurrence",
    "RelevantContext",
    "RelevantQuirk",
    "RelevantSelectorPattern",
    "RelevantTimingPattern",
    "RetentionConfig",
    "ScoredComponent",
    "ScoredLesson",
    "SelectorPattern",
    "StepMatchResult",
    "TimingPattern",
    "TopPerformerComponent",
    "TopPerformerLesson",
    "TopPerformers",
]
