"""Tests for the LLKB data models and configuration."""

import pytest
from pydantic import ValidationError

from llkb.errors import LLKBValidationError
from llkb.models import (
    Component,
    ConfidenceHistoryEntry,
    JourneyStep,
    Lesson,
    LLKBCategory,
    LLKBConfig,
)
from llkb.models.lesson import scope_framework, validate_scope


class TestScopes:
    @pytest.mark.parametrize("scope", ["universal", "app-specific", "framework:angular"])
    def test_valid(self, scope):
        assert validate_scope(scope) == scope

    @pytest.mark.parametrize("scope", ["global", "framework:", ""])
    def test_invalid(self, scope):
        with pytest.raises(ValueError):
            validate_scope(scope)

    def test_scope_framework(self):
        assert scope_framework("framework:ag-grid") == "ag-grid"
        assert scope_framework("universal") is None


class TestLesson:
    def test_camel_case_document(self):
        lesson = Lesson.model_validate({
            "id": "L001",
            "pattern": "p",
            "trigger": "t",
            "category": "ui-interaction",
            "journeyIds": ["JRN-0001"],
            "metrics": {"successRate": 0.5, "lastSuccess": "2026-01-01T00:00:00Z"},
            "validation": {"humanReviewed": True},
        })
        assert lesson.category == LLKBCategory.UI_INTERACTION
        assert lesson.journey_ids == ["JRN-0001"]
        assert lesson.metrics.success_rate == 0.5
        assert lesson.validation.human_reviewed

    def test_bad_scope_rejected(self):
        with pytest.raises(ValidationError):
            Lesson(id="L1", pattern="p", trigger="t", category=LLKBCategory.AUTH, scope="everywhere")

    def test_metrics_bounds(self):
        with pytest.raises(ValidationError):
            Lesson.model_validate({
                "id": "L1", "pattern": "p", "trigger": "t", "category": "auth",
                "metrics": {"confidence": 1.5},
            })

    def test_history_accepts_legacy_keys(self):
        entry = ConfidenceHistoryEntry.model_validate({"date": "2026-01-01T00:00:00Z", "value": 0.7})
        assert entry.score == 0.7
        assert entry.timestamp.year == 2026


class TestComponent:
    def test_quirk_is_not_a_component_category(self):
        with pytest.raises(ValidationError):
            Component(id="C1", name="x", category=LLKBCategory.QUIRK)

    def test_defaults(self):
        component = Component(id="C1", name="x", category=LLKBCategory.DATA)
        assert component.scope == "universal"
        assert component.metrics.total_uses == 0
        assert not component.archived


class TestJourneyStep:
    def test_optional_fields(self):
        step = JourneyStep(name="Open orders")
        assert step.code is None
        assert step.keywords is None


class TestConfig:
    def test_defaults(self):
        config = LLKBConfig()
        assert config.extraction.min_occurrences == 2
        assert config.extraction.similarity_threshold == 0.8
        assert config.injection.prioritize_by_confidence

    def test_from_dict_camel_case(self):
        config = LLKBConfig.from_dict({
            "extraction": {"minOccurrences": 3, "predictiveExtraction": False},
            "injection": {"prioritizeByConfidence": False},
        })
        assert config.extraction.min_occurrences == 3
        assert not config.extraction.predictive_extraction
        assert not config.injection.prioritize_by_confidence

    def test_from_dict_invalid(self):
        with pytest.raises(LLKBValidationError):
            LLKBConfig.from_dict({"extraction": {"similarityThreshold": 2}})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(
            "version: '1.0.0'\n"
            "extraction:\n"
            "  minOccurrences: 4\n"
            "  similarityThreshold: 0.9\n"
            "retention:\n"
            "  archiveUnused: 30\n"
        )
        config = LLKBConfig.from_yaml(path)

        assert config.extraction.min_occurrences == 4
        assert config.extraction.similarity_threshold == 0.9
        assert config.retention.archive_unused == 30

    def test_from_empty_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert LLKBConfig.from_yaml(path) == LLKBConfig()
