"""Tests for the step-to-component Matcher."""

import pytest

from llkb.matching.matcher import extract_step_keywords, match_steps_to_components, scope_matches
from llkb.models.component import Component
from llkb.models.journey import JourneyStep
from llkb.models.lesson import LLKBCategory
from llkb.models.matching import MatchOptions, MatchRecommendation


def _make_component(
    id: str = "COMP001",
    scope: str = "universal",
    category: LLKBCategory = LLKBCategory.NAVIGATION,
    archived: bool = False,
) -> Component:
    return Component(
        id=id,
        name="verifySidebarReady",
        description="Wait for sidebar to be ready",
        category=category,
        scope=scope,
        file_path="src/modules/navigation.ts",
        archived=archived,
    )


class TestExtractStepKeywords:
    def test_actions_explicit_then_elements(self):
        step = JourneyStep(name="Click the Save button", keywords=["Orders"])
        assert extract_step_keywords(step) == ["click", "save", "orders", "button"]

    def test_deduplicated(self):
        step = JourneyStep(name="Open menu", description="open the menu", keywords=["menu"])
        assert extract_step_keywords(step) == ["open", "menu"]


class TestScopeMatches:
    def test_universal_and_app_specific_always(self):
        assert scope_matches("universal")
        assert scope_matches("app-specific")

    def test_framework_needs_matching_app(self):
        assert scope_matches("framework:angular", "angular")
        assert not scope_matches("framework:angular", "react")
        assert not scope_matches("framework:angular")


class TestMatchStepsToComponents:
    def test_moderate_match_suggests(self):
        step = JourneyStep(name="Verify sidebar is ready")
        [result] = match_steps_to_components([step], [_make_component()])

        # keywords 2/2 * 0.4 + words 2/3 * 0.3
        assert result.recommendation == MatchRecommendation.SUGGEST
        assert result.score == pytest.approx(0.6)
        assert result.component.id == "COMP001"
        assert result.reason == "Moderate match (60%) - consider verifySidebarReady component"

    def test_code_category_lifts_to_use(self):
        step = JourneyStep(name="Verify sidebar is ready", code="await page.goto('/orders');")
        [result] = match_steps_to_components([step], [_make_component()])

        assert result.recommendation == MatchRecommendation.USE
        assert result.score == pytest.approx(0.9)
        assert result.reason.startswith("High confidence match (90%)")

    def test_no_candidates(self):
        step = JourneyStep(name="Upload the invoice PDF")
        [result] = match_steps_to_components([step], [_make_component()])

        assert result.recommendation == MatchRecommendation.NONE
        assert result.component is None
        assert result.reason == "No matching components found"

    def test_framework_scope_excluded_without_framework(self):
        step = JourneyStep(name="Verify sidebar is ready")
        components = [_make_component(scope="framework:angular")]

        [result] = match_steps_to_components([step], components)
        assert result.recommendation == MatchRecommendation.NONE

        [result] = match_steps_to_components([step], components, MatchOptions(app_framework="angular"))
        assert result.recommendation == MatchRecommendation.SUGGEST

    def test_archived_components_ignored(self):
        step = JourneyStep(name="Verify sidebar is ready")
        [result] = match_steps_to_components([step], [_make_component(archived=True)])
        assert result.component is None

    def test_category_filter(self):
        step = JourneyStep(name="Verify sidebar is ready")
        options = MatchOptions(categories=[LLKBCategory.DATA])
        [result] = match_steps_to_components([step], [_make_component()], options)
        assert result.component is None

    def test_low_score_clears_component(self):
        step = JourneyStep(name="Verify totals", description="check invoice sums")
        [result] = match_steps_to_components([step], [_make_component()])

        assert result.recommendation == MatchRecommendation.NONE
        assert result.component is None
        assert result.reason.startswith("Low match score")

    def test_one_result_per_step_in_order(self):
        steps = [JourneyStep(name="First"), JourneyStep(name="Second")]
        results = match_steps_to_components(steps, [])
        assert [r.step.name for r in results] == ["First", "Second"]
