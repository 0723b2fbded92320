"""
Confidence Engine — how much a lesson can be trusted.

Confidence combines four factors:
- Occurrences: min(occurrences / 10, 1), saturating
- Recency: decays from the last success (floor 0.7), or from first sighting
  when the lesson has never succeeded (floor 0.5)
- Success: sqrt(success_rate)
- Validation: x1.2 when a human reviewed the lesson

History is bounded: at most 100 samples, none older than 90 days. Entries are
only ever appended; pruning drops whole entries from the oldest end.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from llkb.errors import check_threshold
from llkb.models.lesson import ConfidenceHistoryEntry, Lesson

MAX_CONFIDENCE_HISTORY_ENTRIES = 100
CONFIDENCE_HISTORY_RETENTION_DAYS = 90
DECLINE_WINDOW = 30                     # Samples averaged for decline detection
DECLINE_RATIO = 0.8                     # Declining when below 80% of the average
TREND_EPSILON = 0.1                     # Relative change treated as stable
REVIEW_THRESHOLD = 0.4

OCCURRENCE_SATURATION = 10
VALIDATION_BOOST = 1.2


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(date1: datetime, date2: datetime) -> float:
    """Absolute distance in (fractional) days."""
    return abs((as_utc(date1) - as_utc(date2)).total_seconds()) / 86400.0


def _recency_factor(lesson: Lesson, now: datetime) -> float:
    metrics = lesson.metrics
    if metrics.last_success is not None:
        days = days_between(now, metrics.last_success)
        return max(1 - days / 90 * 0.3, 0.7)
    if metrics.first_seen is not None:
        days = days_between(now, metrics.first_seen)
        return max(1 - days / 30 * 0.5, 0.5)
    # Never seen before now
    return 1.0


def calculate_confidence(lesson: Lesson, current_time: Optional[datetime] = None) -> float:
    """Confidence in [0, 1], rounded to 2 decimals."""
    now = as_utc(current_time) if current_time else utcnow()
    metrics = lesson.metrics

    base = min(metrics.occurrences / OCCURRENCE_SATURATION, 1.0)
    recency = _recency_factor(lesson, now)
    success = math.sqrt(metrics.success_rate)
    validation = VALIDATION_BOOST if lesson.validation.human_reviewed else 1.0

    raw = base * recency * success * validation
    confidence = min(max(raw, 0.0), 1.0)
    return math.floor(confidence * 100 + 0.5) / 100


def detect_declining_confidence(lesson: Lesson) -> bool:
    """
    True when current confidence sits at least 20% below the rolling average
    of the most recent history samples.
    """
    history = lesson.metrics.confidence_history
    if len(history) < 2:
        return False

    recent = history[-DECLINE_WINDOW:]
    average = sum(entry.score for entry in recent) / len(recent)
    return lesson.metrics.confidence < average * DECLINE_RATIO


def prune_confidence_history(
    history: Sequence[ConfidenceHistoryEntry],
    current_time: Optional[datetime] = None,
) -> List[ConfidenceHistoryEntry]:
    """Drop entries outside the retention window, then cap from the oldest end."""
    now = as_utc(current_time) if current_time else utcnow()
    cutoff = now - timedelta(days=CONFIDENCE_HISTORY_RETENTION_DAYS)
    kept = [entry for entry in history if as_utc(entry.timestamp) >= cutoff]
    return kept[-MAX_CONFIDENCE_HISTORY_ENTRIES:]


def update_confidence_history(
    lesson: Lesson,
    current_time: Optional[datetime] = None,
) -> List[ConfidenceHistoryEntry]:
    """
    Return the lesson's history with a fresh sample appended and pruned.

    The lesson itself is not modified; callers store the returned list.
    """
    now = as_utc(current_time) if current_time else utcnow()
    entry = ConfidenceHistoryEntry(timestamp=now, score=calculate_confidence(lesson, now))
    history = list(lesson.metrics.confidence_history) + [entry]
    return prune_confidence_history(history, now)


def get_confidence_trend(history: Sequence[ConfidenceHistoryEntry]) -> str:
    """Compare the latest third of the history to the earliest third."""
    if not history or len(history) < 2:
        return "unknown"

    window = max(1, len(history) // 3)
    first_avg = sum(e.score for e in history[:window]) / window
    last_avg = sum(e.score for e in history[-window:]) / window

    if first_avg == 0:
        return "increasing" if last_avg > 0 else "stable"

    change = (last_avg - first_avg) / first_avg
    if change > TREND_EPSILON:
        return "increasing"
    if change < -TREND_EPSILON:
        return "decreasing"
    return "stable"


def needs_confidence_review(lesson: Lesson, threshold: float = REVIEW_THRESHOLD) -> bool:
    check_threshold("threshold", threshold)
    return lesson.metrics.confidence < threshold
