"""
LLKB API — FastAPI endpoints.

Exposes the engine over a knowledge-base snapshot for:
- Similarity checks
- Duplicate detection and extraction candidates
- Step-to-component matching
- Context ranking and prompt rendering
- Analytics
- Lesson outcome recording and archiving
"""

from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from llkb.analytics.report import build_analytics, format_analytics_summary
from llkb.context.formatter import format_context_for_prompt
from llkb.context.ranker import get_relevant_context
from llkb.detection.detector import detect_duplicates
from llkb.detection.extraction import find_extraction_candidates
from llkb.errors import LLKBValidationError
from llkb.matching.matcher import match_steps_to_components
from llkb.models.config import LLKBConfig
from llkb.models.detection import CodeFragment, DetectionOptions
from llkb.models.journey import AppProfile, JourneyContext, JourneyStep, PatternLibrary
from llkb.models.matching import MatchOptions
from llkb.similarity.scorer import DEFAULT_THRESHOLD, calculate_similarity
from llkb.store.knowledge_base import KnowledgeBase


# --- Request Models ---

class SimilarityRequest(BaseModel):
    code_a: str
    code_b: str
    threshold: float = Field(ge=0.0, le=1.0, default=DEFAULT_THRESHOLD)


class DetectionRequest(BaseModel):
    fragments: List[CodeFragment]
    options: Optional[DetectionOptions] = None


class MatchingRequest(BaseModel):
    steps: List[JourneyStep]
    options: Optional[MatchOptions] = None


class ContextRequest(BaseModel):
    journey: JourneyContext
    app_profile: Optional[AppProfile] = None
    patterns: Optional[PatternLibrary] = None


class LessonAppliedRequest(BaseModel):
    journey_id: Optional[str] = None
    success: bool = True


# --- Application Factory ---

def create_app(
    knowledge_base: Optional[KnowledgeBase] = None,
    config: Optional[LLKBConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="LLKB Engine API",
        description="Lessons-learned knowledge base: similarity, extraction, matching and context",
        version="0.1.0",
    )

    kb = knowledge_base or KnowledgeBase(config=config)
    cfg = config or kb.config

    app.state.knowledge_base = kb
    app.state.config = cfg

    # === SIMILARITY ===

    @app.post("/similarity")
    def similarity(req: SimilarityRequest):
        """Score two fragments."""
        score = calculate_similarity(req.code_a, req.code_b)
        return {"similarity": score, "is_near_duplicate": score >= req.threshold}

    # === DETECTION ===

    @app.post("/detection/duplicates")
    def duplicates(req: DetectionRequest):
        """Group near-duplicate fragments."""
        return detect_duplicates(req.fragments, req.options).model_dump(mode="json")

    @app.post("/detection/candidates")
    def candidates(req: DetectionRequest):
        """Rank fragment groups as extraction candidates against the catalog."""
        results = find_extraction_candidates(req.fragments, cfg, kb.active_components())
        return [c.model_dump(mode="json") for c in results]

    # === MATCHING ===

    @app.post("/matching")
    def matching(req: MatchingRequest):
        """Best component per step."""
        results = match_steps_to_components(req.steps, kb.components, req.options)
        return [r.model_dump(mode="json") for r in results]

    # === CONTEXT ===

    @app.post("/context")
    def context(req: ContextRequest):
        """Ranked context for a journey, plus the rendered prompt block."""
        relevant = get_relevant_context(
            req.journey,
            kb.lessons,
            kb.components,
            cfg,
            app_profile=req.app_profile,
            patterns=req.patterns,
        )
        return {
            "context": relevant.model_dump(mode="json"),
            "prompt": format_context_for_prompt(relevant, req.journey),
        }

    # === ANALYTICS ===

    @app.get("/analytics")
    def analytics():
        """Aggregate stats over the current snapshot."""
        report = build_analytics(kb.lessons, kb.components)
        return {
            "report": report.model_dump(mode="json"),
            "summary": format_analytics_summary(report),
        }

    # === LESSONS ===

    @app.get("/lessons")
    def list_lessons(include_archived: bool = False):
        """List lessons."""
        return [l.model_dump(mode="json") for l in kb.active_lessons(include_archived)]

    @app.post("/lessons/{lesson_id}/applied")
    def lesson_applied(lesson_id: str, req: LessonAppliedRequest):
        """Record the outcome of applying a lesson."""
        try:
            lesson = kb.record_lesson_applied(lesson_id, req.journey_id, req.success)
        except KeyError:
            raise HTTPException(404, "Lesson not found")
        return lesson.model_dump(mode="json")

    @app.post("/lessons/{lesson_id}/archive")
    def archive_lesson(lesson_id: str):
        """Archive a lesson. Archived lessons are kept but never injected."""
        try:
            lesson = kb.archive_lesson(lesson_id)
        except KeyError:
            raise HTTPException(404, "Lesson not found")
        return {"status": "archived", "lesson_id": lesson.id}

    @app.post("/lessons/archive-low-confidence")
    def archive_low_confidence(threshold: float = 0.4):
        """Archive unreviewed lessons below a confidence threshold."""
        try:
            archived = kb.archive_low_confidence(threshold)
        except LLKBValidationError as e:
            raise HTTPException(422, str(e))
        return {"archived": archived}

    return app
