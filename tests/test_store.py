"""Tests for the Knowledge Base store."""

from datetime import datetime, timedelta, timezone

import pytest

from llkb.errors import LLKBValidationError
from llkb.models.config import LLKBConfig, RetentionConfig
from llkb.store.knowledge_base import KnowledgeBase

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _lessons_doc():
    return {
        "version": "1.0.0",
        "lessons": [
            {
                "id": "L001",
                "title": "Wait for grid rows",
                "pattern": "await grid.locator('.row').first().waitFor()",
                "trigger": "Grid renders rows asynchronously",
                "category": "timing",
                "scope": "framework:ag-grid",
                "journeyIds": ["JRN-0001"],
                "metrics": {"occurrences": 4, "successRate": 0.75, "confidence": 0.45},
                "validation": {"humanReviewed": False},
            },
            {
                "id": "L002",
                "title": "Flaky toast",
                "pattern": "await expect(toast).toBeVisible()",
                "trigger": "Toast disappears quickly",
                "category": "quirk",
                "metrics": {"occurrences": 1, "successRate": 0.2, "confidence": 0.1},
            },
        ],
        "archived": [
            {
                "id": "L000",
                "pattern": "old",
                "trigger": "old",
                "category": "selector",
            },
        ],
    }


def _components_doc():
    return {
        "version": "1.0.0",
        "components": [
            {
                "id": "COMP001",
                "name": "waitForGrid",
                "description": "Wait for the grid to load",
                "category": "timing",
                "scope": "universal",
                "filePath": "src/modules/grid.ts",
                "metrics": {"totalUses": 3, "successRate": 1.0, "lastUsed": "2025-06-01T00:00:00Z"},
                "source": {"originalCode": "await grid.waitFor();", "extractedFrom": "JRN-0001"},
            },
        ],
    }


class TestKnowledgeBase:
    def setup_method(self):
        self.kb = KnowledgeBase.from_documents(_lessons_doc(), _components_doc())

    def test_from_documents(self):
        assert len(self.kb.lessons) == 3
        assert [l.id for l in self.kb.active_lessons()] == ["L001", "L002"]
        assert len(self.kb.active_lessons(include_archived=True)) == 3
        assert self.kb.get_lesson("L001").journey_ids == ["JRN-0001"]
        assert self.kb.get_component("COMP001").source.original_code == "await grid.waitFor();"

    def test_invalid_document_rejected(self):
        doc = {"lessons": [{"id": "L1", "pattern": "p", "trigger": "t", "category": "bogus"}]}
        with pytest.raises(LLKBValidationError):
            KnowledgeBase.from_documents(doc, {})

    def test_unknown_id(self):
        with pytest.raises(KeyError):
            self.kb.get_lesson("NOPE")
        with pytest.raises(KeyError):
            self.kb.record_lesson_applied("NOPE")

    def test_record_lesson_applied(self):
        before = self.kb.get_lesson("L001")
        updated = self.kb.record_lesson_applied("L001", "JRN-0002", success=True, current_time=NOW)

        assert updated.metrics.occurrences == 5
        assert updated.metrics.success_rate == 0.8
        assert updated.metrics.last_success == NOW
        assert updated.metrics.last_applied == NOW
        assert updated.journey_ids == ["JRN-0001", "JRN-0002"]
        # 0.5 base * 1.0 recency * sqrt(0.8)
        assert updated.metrics.confidence == 0.45
        assert [e.score for e in updated.metrics.confidence_history] == [0.45]

        # The stored record was replaced, not mutated
        assert before.metrics.occurrences == 4
        assert self.kb.get_lesson("L001") == updated

    def test_record_failure(self):
        updated = self.kb.record_lesson_applied("L001", success=False, current_time=NOW)
        assert updated.metrics.success_rate == 0.6
        assert updated.metrics.last_success is None

    def test_record_component_used(self):
        updated = self.kb.record_component_used("COMP001", success=False, current_time=NOW)
        assert updated.metrics.total_uses == 4
        assert updated.metrics.success_rate == 0.75
        assert updated.metrics.last_used == NOW

    def test_archive_lesson(self):
        self.kb.archive_lesson("L001")
        assert [l.id for l in self.kb.active_lessons()] == ["L002"]
        # Archiving never deletes
        assert self.kb.get_lesson("L001").archived

    def test_archive_low_confidence(self):
        archived = self.kb.archive_low_confidence(0.4)
        assert archived == ["L002"]
        assert not self.kb.get_lesson("L001").archived

    def test_archive_unused_components(self):
        kb = KnowledgeBase.from_documents(
            _lessons_doc(),
            _components_doc(),
            LLKBConfig(retention=RetentionConfig(archive_unused=180)),
        )
        assert kb.archive_unused_components(NOW) == ["COMP001"]
        assert kb.active_components() == []

        assert kb.archive_unused_components(NOW - timedelta(days=365)) == []

    def test_to_documents_round_trip(self):
        self.kb.archive_lesson("L002")
        docs = self.kb.to_documents()

        assert [l["id"] for l in docs["lessons"]["lessons"]] == ["L001"]
        assert sorted(l["id"] for l in docs["lessons"]["archived"]) == ["L000", "L002"]
        assert docs["components"]["components"][0]["filePath"] == "src/modules/grid.ts"

        reloaded = KnowledgeBase.from_documents(docs["lessons"], docs["components"])
        assert reloaded.get_lesson("L001") == self.kb.get_lesson("L001")
