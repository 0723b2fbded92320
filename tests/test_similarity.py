"""Tests for the Similarity Scorer."""

import logging

import pytest

from llkb.errors import LLKBValidationError
from llkb.similarity.scorer import (
    calculate_similarity,
    find_near_duplicates,
    find_similar_patterns,
    is_near_duplicate,
    jaccard_similarity,
    line_count_similarity,
)


class TestCalculateSimilarity:
    def test_self_similarity_is_one(self):
        code = "await page.goto('/orders');\nawait page.reload();"
        assert calculate_similarity(code, code) == 1.0

    def test_symmetric(self):
        a = "await page.fill('#email', user);\nawait page.click('#login');"
        b = "await page.click('#login');\nawait expect(page).toHaveURL(url);"
        assert calculate_similarity(a, b) == calculate_similarity(b, a)

    def test_literal_only_difference_is_near_duplicate(self):
        score = calculate_similarity("await page.click('#submit');", "await page.click('#cancel');")
        assert score >= 0.85
        assert score <= 1.0

    def test_weighted_jaccard_and_lines(self):
        # jaccard 2/4, equal line counts: 0.8 * 0.5 + 0.2 * 1
        assert calculate_similarity("a b c", "a b d") == 0.6

    def test_disjoint_tokens_keep_line_component(self):
        assert calculate_similarity("a b c", "x y z") == 0.2

    def test_bounded(self):
        score = calculate_similarity("x", "await page.goto(url);\nawait page.reload();\nfoo();")
        assert 0.0 <= score <= 1.0


class TestComponents:
    def test_jaccard_edge_cases(self):
        assert jaccard_similarity(set(), set()) == 1.0
        assert jaccard_similarity({"a"}, set()) == 0.0

    def test_line_count_similarity(self):
        assert line_count_similarity(0, 0) == 1.0
        assert line_count_similarity(2, 4) == 0.5


class TestThresholdQueries:
    def test_is_near_duplicate(self):
        assert is_near_duplicate("a b c", "a b c")
        assert not is_near_duplicate("a b c", "x y z")

    def test_find_near_duplicates_keeps_input_order(self):
        assert find_near_duplicates("a b c", ["a b c", "x y z", "a b d"], 0.6) == [0, 2]

    def test_find_similar_patterns_sorted_best_first(self):
        results = find_similar_patterns("a b c", ["a b d", "x y z", "a b c"], 0.6)
        assert [r.index for r in results] == [2, 0]
        assert results[0].similarity == 1.0

    def test_missing_candidates_skipped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="llkb.similarity.scorer"):
            assert find_near_duplicates("a b c", [None, "a b c"]) == [1]
        assert "Skipped 1 missing entries" in caplog.text

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_out_of_range_threshold_rejected(self, threshold):
        with pytest.raises(LLKBValidationError):
            is_near_duplicate("a", "b", threshold)
        with pytest.raises(LLKBValidationError):
            find_near_duplicates("a", ["b"], threshold)
        with pytest.raises(LLKBValidationError):
            find_similar_patterns("a", ["b"], threshold)
