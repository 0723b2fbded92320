"""
Knowledge Base — in-memory snapshot of lessons and components.

Validates documents at the boundary and records outcomes. Records are never
mutated in place: every update stores an updated copy, and archiving flags a
record rather than deleting it.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from llkb.confidence.engine import (
    REVIEW_THRESHOLD,
    as_utc,
    calculate_confidence,
    update_confidence_history,
    utcnow,
)
from llkb.errors import LLKBValidationError, check_threshold
from llkb.models.component import Component
from llkb.models.config import LLKBConfig
from llkb.models.lesson import Lesson

logger = logging.getLogger(__name__)


def _running_rate(rate: float, count: int, success: bool) -> float:
    """Fold one more outcome into a success rate over count observations."""
    updated = (rate * count + (1 if success else 0)) / (count + 1)
    return math.floor(updated * 100 + 0.5) / 100


class KnowledgeBase:
    """
    Lessons and components for one application.
    Persistence is the caller's concern; see from_documents / to_documents.
    """

    def __init__(
        self,
        lessons: Optional[List[Lesson]] = None,
        components: Optional[List[Component]] = None,
        config: Optional[LLKBConfig] = None,
    ):
        self.config = config or LLKBConfig()
        self._lessons: Dict[str, Lesson] = {l.id: l for l in lessons or []}
        self._components: Dict[str, Component] = {c.id: c for c in components or []}

    @classmethod
    def from_documents(
        cls,
        lessons_doc: Optional[Dict[str, Any]] = None,
        components_doc: Optional[Dict[str, Any]] = None,
        config: Optional[LLKBConfig] = None,
    ) -> "KnowledgeBase":
        """
        Build from lessons.json / components.json style documents.

        Lessons listed under ``archived`` are loaded flagged as archived.
        """
        lessons_doc = lessons_doc or {}
        components_doc = components_doc or {}
        try:
            lessons = [Lesson.model_validate(raw) for raw in lessons_doc.get("lessons", [])]
            lessons += [
                Lesson.model_validate(raw).model_copy(update={"archived": True})
                for raw in lessons_doc.get("archived", [])
            ]
            components = [
                Component.model_validate(raw) for raw in components_doc.get("components", [])
            ]
        except ValidationError as e:
            raise LLKBValidationError(f"Invalid LLKB document: {e}") from e

        logger.info(f"Loaded {len(lessons)} lessons and {len(components)} components")
        return cls(lessons, components, config)

    def to_documents(self) -> Dict[str, Dict[str, Any]]:
        """Serializable documents, camelCase keyed."""
        return {
            "lessons": {
                "version": self.config.version,
                "lessons": [
                    l.model_dump(mode="json", by_alias=True)
                    for l in self._lessons.values() if not l.archived
                ],
                "archived": [
                    l.model_dump(mode="json", by_alias=True)
                    for l in self._lessons.values() if l.archived
                ],
            },
            "components": {
                "version": self.config.version,
                "components": [
                    c.model_dump(mode="json", by_alias=True) for c in self._components.values()
                ],
            },
        }

    # --- Queries ---

    @property
    def lessons(self) -> List[Lesson]:
        return list(self._lessons.values())

    @property
    def components(self) -> List[Component]:
        return list(self._components.values())

    def get_lesson(self, lesson_id: str) -> Lesson:
        """Raises KeyError for an unknown id."""
        if lesson_id not in self._lessons:
            raise KeyError(f"Lesson not found: {lesson_id}")
        return self._lessons[lesson_id]

    def get_component(self, component_id: str) -> Component:
        """Raises KeyError for an unknown id."""
        if component_id not in self._components:
            raise KeyError(f"Component not found: {component_id}")
        return self._components[component_id]

    def active_lessons(self, include_archived: bool = False) -> List[Lesson]:
        return [l for l in self._lessons.values() if include_archived or not l.archived]

    def active_components(self, include_archived: bool = False) -> List[Component]:
        return [c for c in self._components.values() if include_archived or not c.archived]

    # --- Updates ---

    def upsert_lesson(self, lesson: Lesson) -> None:
        self._lessons[lesson.id] = lesson

    def upsert_component(self, component: Component) -> None:
        self._components[component.id] = component

    def archive_lesson(self, lesson_id: str) -> Lesson:
        lesson = self.get_lesson(lesson_id).model_copy(update={"archived": True})
        self._lessons[lesson_id] = lesson
        logger.info(f"Archived lesson {lesson_id}")
        return lesson

    def archive_component(self, component_id: str) -> Component:
        component = self.get_component(component_id).model_copy(update={"archived": True})
        self._components[component_id] = component
        logger.info(f"Archived component {component_id}")
        return component

    def archive_low_confidence(self, threshold: float = REVIEW_THRESHOLD) -> List[str]:
        """Archive active lessons below threshold. Returns the archived ids."""
        check_threshold("threshold", threshold)
        archived = [
            l.id for l in self.active_lessons()
            if l.metrics.confidence < threshold and not l.validation.human_reviewed
        ]
        for lesson_id in archived:
            self.archive_lesson(lesson_id)
        return archived

    def archive_unused_components(self, current_time: Optional[datetime] = None) -> List[str]:
        """
        Archive components not used within retention.archive_unused days.
        Components never used age from their extraction date.
        """
        now = as_utc(current_time) if current_time else utcnow()
        cutoff = now - timedelta(days=self.config.retention.archive_unused)

        archived = []
        for component in self.active_components():
            last_activity = component.metrics.last_used or component.source.extracted_at
            if last_activity is not None and as_utc(last_activity) < cutoff:
                archived.append(component.id)
        for component_id in archived:
            self.archive_component(component_id)
        return archived

    def record_lesson_applied(
        self,
        lesson_id: str,
        journey_id: Optional[str] = None,
        success: bool = True,
        current_time: Optional[datetime] = None,
    ) -> Lesson:
        """
        Record one application of a lesson and return the updated copy.

        Updates occurrences, the running success rate, timestamps and the
        journey list, then recalculates confidence and appends a history sample.
        """
        now = as_utc(current_time) if current_time else utcnow()
        lesson = self.get_lesson(lesson_id)
        metrics = lesson.metrics

        journey_ids = list(lesson.journey_ids)
        if journey_id and journey_id not in journey_ids:
            journey_ids.append(journey_id)

        updated = lesson.model_copy(update={
            "journey_ids": journey_ids,
            "metrics": metrics.model_copy(update={
                "occurrences": metrics.occurrences + 1,
                "success_rate": _running_rate(metrics.success_rate, metrics.occurrences, success),
                "first_seen": metrics.first_seen or now,
                "last_applied": now,
                "last_success": now if success else metrics.last_success,
            }),
        })
        confidence = calculate_confidence(updated, now)
        history = update_confidence_history(updated, now)
        updated = updated.model_copy(update={
            "metrics": updated.metrics.model_copy(update={
                "confidence": confidence,
                "confidence_history": history,
            }),
        })

        self._lessons[lesson_id] = updated
        logger.debug(
            f"Lesson {lesson_id} applied (success={success}): "
            f"confidence {metrics.confidence} -> {confidence}"
        )
        return updated

    def record_component_used(
        self,
        component_id: str,
        success: bool = True,
        current_time: Optional[datetime] = None,
    ) -> Component:
        """Record one use of a component and return the updated copy."""
        now = as_utc(current_time) if current_time else utcnow()
        component = self.get_component(component_id)
        metrics = component.metrics

        updated = component.model_copy(update={
            "metrics": metrics.model_copy(update={
                "total_uses": metrics.total_uses + 1,
                "success_rate": _running_rate(metrics.success_rate, metrics.total_uses, success),
                "last_used": now,
            }),
        })
        self._components[component_id] = updated
        return updated
