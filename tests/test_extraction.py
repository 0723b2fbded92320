"""Tests for extraction decisions and candidate ranking."""

import pytest

from llkb.detection.extraction import (
    find_extraction_candidates,
    should_extract_as_component,
    suggest_module_path,
)
from llkb.models.component import Component, ComponentSource
from llkb.models.config import ExtractionConfig, LLKBConfig
from llkb.models.detection import CodeFragment, ExtractionRecommendation, PatternOccurrence
from llkb.models.lesson import LLKBCategory

SAVE_ORDER = (
    "await page.goto('/orders/1');\n"
    "await page.getByRole('button', { name: 'Save' }).click();\n"
    "await expect(page.getByText('Saved')).toBeVisible();"
)

RELOAD = (
    "await page.goto(url);\n"
    "await page.waitForLoadState();\n"
    "await page.reload();"
)

OPEN_MODAL = (
    "await page.click('#open');\n"
    "await expect(page.locator('.modal')).toBeVisible();\n"
    "await page.click('#close');"
)


def _occurrences(*journey_ids: str):
    return [
        PatternOccurrence(file=f"tests/{jid}.spec.ts", journey_id=jid, step_name="step")
        for jid in journey_ids
    ]


def _make_fragment(code: str, journey_id: str) -> CodeFragment:
    return CodeFragment(
        file=f"tests/{journey_id}.spec.ts",
        journey_id=journey_id,
        step_name="step",
        code=code,
    )


class TestSuggestModulePath:
    def test_universal(self):
        assert suggest_module_path(LLKBCategory.AUTH, "universal") == "@artk/core/auth"

    def test_framework(self):
        assert suggest_module_path(LLKBCategory.DATA, "framework:angular") == "@artk/core/angular/data"

    def test_app_specific(self):
        assert suggest_module_path(LLKBCategory.UI_INTERACTION, "app-specific") == \
            "modules/foundation/ui-interaction"


class TestShouldExtract:
    def test_repeated_across_journeys(self):
        result = should_extract_as_component(
            SAVE_ORDER, _occurrences("JRN-0001", "JRN-0001", "JRN-0002"), LLKBConfig()
        )

        assert result.should_extract
        assert result.confidence > 0.7
        assert result.confidence == 0.9
        assert result.suggested_category == LLKBCategory.NAVIGATION
        assert result.suggested_path == "modules/foundation/navigation"

    def test_confidence_caps_at_095(self):
        result = should_extract_as_component(
            SAVE_ORDER, _occurrences("J1", "J2", "J3", "J4", "J5"), LLKBConfig()
        )
        assert result.confidence == 0.95

    def test_single_uncommon_occurrence(self):
        result = should_extract_as_component(RELOAD, _occurrences("JRN-0001"), LLKBConfig())

        assert not result.should_extract
        assert result.confidence == 0.3

    def test_too_short(self):
        result = should_extract_as_component("await page.reload();", _occurrences("J1", "J2"))

        assert not result.should_extract
        assert result.confidence == 0.0
        assert "too short" in result.reason

    def test_existing_component_blocks_extraction(self):
        existing = Component(
            id="COMP001",
            name="saveOrder",
            category=LLKBCategory.NAVIGATION,
            source=ComponentSource(original_code=SAVE_ORDER.replace("/orders/1", "/orders/2")),
        )
        result = should_extract_as_component(
            SAVE_ORDER, _occurrences("J1", "J2"), LLKBConfig(), [existing]
        )

        assert not result.should_extract
        assert result.confidence == 1.0
        assert result.reason.startswith("Similar component already exists: saveOrder")

    def test_archived_component_does_not_block(self):
        existing = Component(
            id="COMP001",
            name="saveOrder",
            category=LLKBCategory.NAVIGATION,
            source=ComponentSource(original_code=SAVE_ORDER),
            archived=True,
        )
        result = should_extract_as_component(
            SAVE_ORDER, _occurrences("J1", "J2"), LLKBConfig(), [existing]
        )
        assert result.should_extract

    def test_existing_component_on_fewer_lines_blocks_extraction(self):
        # Same statements joined on one line, plus one more call
        existing = Component(
            id="COMP002",
            name="reloadPage",
            category=LLKBCategory.NAVIGATION,
            source=ComponentSource(
                original_code=RELOAD.replace("\n", " ") + " await page.close();"
            ),
        )
        result = should_extract_as_component(
            RELOAD, _occurrences("J1", "J2"), LLKBConfig(), [existing]
        )

        assert not result.should_extract
        # jaccard 6/7, line term ignored: 0.8 * 6 / 7 + 0.2
        assert result.reason == "Similar component already exists: reloadPage (89% similar)"

    def test_predictive_extraction_of_common_pattern(self):
        result = should_extract_as_component(OPEN_MODAL, _occurrences("J1"), LLKBConfig())

        assert result.should_extract
        assert result.confidence == 0.6
        assert result.suggested_category == LLKBCategory.UI_INTERACTION

    def test_predictive_extraction_disabled(self):
        config = LLKBConfig(extraction=ExtractionConfig(predictive_extraction=False))
        result = should_extract_as_component(OPEN_MODAL, _occurrences("J1"), config)

        assert not result.should_extract
        assert result.confidence == 0.4


class TestFindExtractionCandidates:
    def test_ranked_candidates(self):
        fragments = [
            _make_fragment(SAVE_ORDER, "JRN-0001"),
            _make_fragment(SAVE_ORDER.replace("/orders/1", "/orders/7"), "JRN-0001"),
            _make_fragment(SAVE_ORDER.replace("Saved", "Stored"), "JRN-0002"),
            _make_fragment(RELOAD, "JRN-0003"),
        ]
        candidates = find_extraction_candidates(fragments, LLKBConfig())

        assert len(candidates) == 2
        top, other = candidates
        assert top.occurrence_count == 3
        assert top.journeys == ["JRN-0001", "JRN-0002"]
        assert top.should_extract
        assert top.recommendation == ExtractionRecommendation.EXTRACT_NOW
        # 3 * 0.3 + 2 * 0.4 + 0.9 * 0.3
        assert top.score == pytest.approx(1.97)

        assert other.occurrence_count == 1
        assert not other.should_extract
        assert other.recommendation == ExtractionRecommendation.CONSIDER
        assert top.score > other.score

    def test_existing_components_lower_the_rank(self):
        fragments = [_make_fragment(SAVE_ORDER, "JRN-0001"), _make_fragment(SAVE_ORDER, "JRN-0002")]
        existing = Component(
            id="COMP001",
            name="saveOrder",
            category=LLKBCategory.NAVIGATION,
            source=ComponentSource(original_code=SAVE_ORDER),
        )
        candidates = find_extraction_candidates(fragments, LLKBConfig(), [existing])

        assert len(candidates) == 1
        assert not candidates[0].should_extract
        assert candidates[0].reason.startswith("Similar component already exists")
