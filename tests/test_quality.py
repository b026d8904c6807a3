"""Tests for the heuristic quality scorer."""

import math
from unittest.mock import patch

import pytest

from financehub.processors.quality import (
    QualityScorer,
    ScoringInput,
    clamp_score,
    count_syllables,
    score_keyword_density,
    score_length,
    score_readability,
    score_seo,
    score_structure,
)
from financehub.utils.config_loader import ConfigError


def well_formed_input() -> ScoringInput:
    """55-char title, 150-char meta, 1 h1, 5 h2, ~1.8% density, 2100 words."""
    title = "How to Build a Monthly Budget That Actually Works Today"
    meta = ("Smart Finance Hub explains how to build a monthly budget that works, "
            "with simple steps, real examples and tools to keep your spending on track.")
    meta = meta[:150].ljust(150, ".")
    body_words = ["budget" if i % 55 == 0 else "save" for i in range(2094)]
    sentences = [" ".join(body_words[i:i + 10]) + "." for i in range(0, len(body_words), 10)]
    paragraphs = ["<p>" + " ".join(sentences[i:i + 42]) + "</p>" for i in range(0, len(sentences), 42)]
    headings = ["<h2>Section</h2>"] * 5
    blocks = ["<h1>Intro</h1>"]
    for heading, paragraph in zip(headings, paragraphs):
        blocks.extend([heading, paragraph])
    content = "\n".join(blocks)
    return ScoringInput(
        title=title,
        meta_description=meta,
        content=content,
        cta="Join Smart Finance Hub today for weekly budgeting tips delivered to your inbox.",
        keywords=["budget"],
    )


class TestHelpers:
    """Syllable counting and clamping."""

    def test_short_words_have_one_syllable(self):
        assert count_syllables("the") == 1
        assert count_syllables("tax") == 1

    def test_longer_words_count_vowel_groups(self):
        assert count_syllables("budget") == 2
        assert count_syllables("investment") >= 3

    def test_clamp_bounds_and_nan(self):
        assert clamp_score(-10) == 0
        assert clamp_score(150) == 100
        assert clamp_score(float("nan")) == 50
        assert clamp_score(72.6) == 73


class TestCriteria:
    """Individual criteria stay in range and follow their thresholds."""

    def test_readability_simple_text_scores_high(self):
        assert score_readability("The cat sat. The dog ran. We save cash.") == 100

    def test_readability_empty_text_is_neutral(self):
        assert score_readability("") == 50

    def test_keyword_density_empty_text_is_neutral(self):
        assert score_keyword_density("", ["budget"]) == 50

    def test_keyword_density_missing_keywords_scores_low(self):
        assert score_keyword_density("save money every week", ["retirement"]) == 20

    def test_keyword_density_in_range_with_full_coverage(self):
        text = " ".join(["budget"] + ["word"] * 49)
        assert score_keyword_density(text, ["budget"]) == 100

    def test_seo_prefers_ideal_lengths_and_headings(self):
        content = "<h1>T</h1>" + "<h2>A</h2>" * 4
        ideal = score_seo("x" * 50, "y" * 150, content)
        poor = score_seo("x" * 90, "y" * 200, "<p>no headings</p>")
        assert ideal > poor
        assert 0 <= poor <= ideal <= 100

    def test_seo_counts_internal_and_external_links(self):
        links = (
            '<a href="/articles/a">a</a><a href="/articles/b">b</a>'
            '<a href="https://smartfinancehub.vip/c">c</a>'
            '<a href="https://irs.gov">d</a><a href="https://sec.gov">e</a>'
        )
        with_links = score_seo("x" * 50, "y" * 150, "<h1>T</h1>" + "<h2>A</h2>" * 3 + links)
        assert with_links == 100

    def test_structure_rewards_sections_and_cta(self):
        html = "<h2>a</h2>" * 5
        text = "Introduction " + "word " * 60 + "Conclusion"
        assert score_structure(html, text, "c" * 60) == 100
        assert score_structure("", "short", "") == 0

    @pytest.mark.parametrize(
        "words,expected",
        [(2000, 100), (3500, 100), (1700, 75), (1300, 50), (500, 25)],
    )
    def test_length_bands(self, words, expected):
        assert score_length(words, 2000) == expected


class TestQualityScorer:
    """Weighted overall score and failure isolation."""

    def test_invalid_weights_fail_at_construction(self):
        with pytest.raises(ConfigError):
            QualityScorer({"readability": 1.0})
        with pytest.raises(ConfigError):
            QualityScorer(
                {"readability": 0.5, "seo": 0.5, "keywordDensity": 0.5,
                 "structure": 0.0, "length": 0.0, "originality": 0.0}
            )

    def test_well_formed_article_scores_at_least_70(self):
        result = QualityScorer().score(well_formed_input())
        assert result.breakdown["length"] == 100
        assert result.breakdown["keywordDensity"] == 100
        assert result.overall >= 70

    def test_all_scores_in_range_for_empty_input(self):
        result = QualityScorer().score(ScoringInput())
        assert 0 <= result.overall <= 100
        assert all(0 <= v <= 100 for v in result.breakdown.values())
        assert set(result.breakdown) == {
            "readability", "seo", "keywordDensity", "structure", "length", "originality"
        }

    def test_missing_fields_never_raise(self):
        result = QualityScorer().score(
            ScoringInput(title=None, meta_description=None, content=None, cta=None, keywords=None)
        )
        assert 0 <= result.overall <= 100
        assert all(0 <= v <= 100 for v in result.breakdown.values())

    def test_overall_is_weighted_sum(self):
        result = QualityScorer().score(well_formed_input())
        expected = sum(result.breakdown[k] * w for k, w in result.weights.items())
        assert result.overall == round(expected)

    def test_failing_criterion_falls_back_to_neutral(self):
        with patch("financehub.processors.quality.score_seo", side_effect=RuntimeError("boom")):
            result = QualityScorer().score(well_formed_input())
        assert result.breakdown["seo"] == 50
        assert not math.isnan(result.overall)

    def test_recommendations_for_weak_criteria(self):
        result = QualityScorer().score(ScoringInput(title="t", content="<p>tiny</p>"))
        assert any("length" in r.lower() for r in result.recommendations)

    def test_score_article_uses_target_keywords(self, make_article):
        article = make_article(
            content="<p>" + "emergency fund " * 10 + "other words here " * 100 + "</p>",
            target_keywords={"primary": ["emergency fund"], "longTail": []},
            keywords=["unrelated"],
        )
        result = QualityScorer().score_article(article)
        assert result.breakdown["keywordDensity"] > 20
