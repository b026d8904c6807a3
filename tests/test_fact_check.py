"""Tests for the statistic, citation, advice and date flagger."""

from datetime import date

import pytest

from financehub.processors.fact_check import (
    FactChecker,
    classify_advice,
    classify_statistic,
    statistic_priority,
    suggest_sources,
)


@pytest.fixture
def checker():
    return FactChecker(today=lambda: date(2025, 6, 1))


class TestStatistics:

    def test_percentages_and_money_are_flagged(self, checker):
        text = "Savings accounts now pay 4.5% interest. The average household holds $8,000 in cash."
        flags = checker.flag_statistics(text)
        found = {f.statistic for f in flags}
        assert "4.5%" in found
        assert any(s.startswith("$8,000") for s in found)

    def test_interest_context_is_high_priority(self, checker):
        flags = checker.flag_statistics("High-yield accounts offer a 5% interest rate.")
        pct = next(f for f in flags if f.statistic == "5%")
        assert pct.priority == "high"
        assert pct.type == "percentage"

    def test_same_statistic_nearby_is_reported_once(self, checker):
        flags = checker.flag_statistics("Fees fell by 2%.")
        positions = [(f.statistic, f.position // 50) for f in flags]
        assert len(positions) == len(set(positions))

    @pytest.mark.parametrize(
        "statistic,expected",
        [("12%", "percentage"), ("$500", "monetary"), ("25 bps", "basis_points"), ("3 times", "multiplier"),
         ("5 years ago", "time_period"), ("1,000 investors", "population"), ("42", "numerical")],
    )
    def test_classify_statistic(self, statistic, expected):
        assert classify_statistic(statistic) == expected

    def test_plain_number_without_context_is_low(self):
        assert statistic_priority("42", "forty two apples") == "low"

    def test_source_suggestions_follow_context(self):
        assert "IRS (irs.gov)" in suggest_sources("your tax refund")
        assert suggest_sources("nothing relevant") == [
            "Government financial agencies",
            "Reputable financial institutions",
        ]


class TestCitationsAndAdvice:

    def test_studies_show_needs_citation(self, checker):
        needs = checker.identify_citation_needs("Studies show that research on budgeting helps. Nothing else here.")
        assert len(needs) == 1
        assert needs[0].priority == "high"
        assert needs[0].reason == "Specific study citation required"
        assert needs[0].statement.startswith("Studies show")

    def test_guarantee_language_is_high_severity(self, checker):
        flags = checker.mark_financial_advice("This fund is guaranteed to double your money.")
        assert flags
        assert all(f.severity == "high" for f in flags)
        assert flags[0].advice_type == "guarantee_claim"
        assert flags[0].disclaimer_needed == "required"

    def test_should_invest_is_investment_advice(self, checker):
        flags = checker.mark_financial_advice("You should invest in index funds.")
        assert flags[0].advice_type == "investment_advice"
        assert any("softer language" in r for r in flags[0].recommendations)

    @pytest.mark.parametrize(
        "sentence,expected",
        [("Buy bonds now", "transaction_advice"), ("We recommend a budget", "recommendation"),
         ("Avoid late fees", "general_advice")],
    )
    def test_classify_advice(self, sentence, expected):
        assert classify_advice(sentence) == expected


class TestDates:

    def test_past_year_reference_is_outdated(self, checker):
        issues = checker.validate_dates("The 2023 limits changed again.")
        assert [i.severity for i in issues] == ["high"]
        assert issues[0].recommendation == "Update to 2025"

    def test_current_year_reference_is_not_flagged(self, checker):
        assert checker.validate_dates("The 2025 limits are higher.") == []

    def test_current_rate_is_potentially_stale(self, checker):
        issues = checker.validate_dates("The current rate is generous.")
        assert [i.staleness for i in issues] == ["potentially_stale"]

    def test_recent_without_year_is_vague(self, checker):
        issues = checker.validate_dates("Prices moved recently.")
        assert [i.severity for i in issues] == ["low"]


class TestReport:

    def test_clean_text_has_full_confidence(self, checker):
        report = checker.check_text("Write down your goals and review them monthly.")
        assert report.confidence_score == 100
        assert report.overall_issues == []

    def test_problem_text_lowers_confidence_and_recommends(self, checker):
        text = (
            "Studies show this is risk-free. You should invest in this guaranteed fund. "
            "The 2022 rates were 7% higher."
        )
        report = checker.check_html(f"<p>{text}</p>")
        assert report.confidence_score < 70
        assert "Article requires significant fact-checking before publication" in report.recommendations
        data = report.to_dict()
        assert {"statistics", "citationNeeds", "financialAdvice", "dateValidation", "confidenceScore"} <= set(data)
        assert "suggestedSources" in data["statistics"][0]
