"""Flag statistics, uncited claims, financial advice and stale dates.

The checker only reports: it never edits an article. Each finding carries
enough context for a reviewer to locate it, and a confidence score summarises
how much manual verification the text still needs.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Pattern

from .normalize import html_to_plain

Priority = str  # "high" | "medium" | "low"

STATISTIC_PATTERNS: List[Pattern[str]] = [
    re.compile(r"(\d+(?:\.\d+)?)\s*%"),
    re.compile(r"\$[\d,]+(?:\.\d{2})?(?:\s*(?:billion|million|thousand|trillion))?", re.IGNORECASE),
    re.compile(r"(\d+(?:,\d{3})*(?:\.\d+)?)\s*(?:times|x)\b", re.IGNORECASE),
    re.compile(r"(?:increased|decreased|rose|fell|grew|dropped)\s+(?:by\s+)?(\d+(?:\.\d+)?%?)", re.IGNORECASE),
    re.compile(r"(\d+(?:,\d{3})*)\s+(?:people|Americans|households|investors|companies)", re.IGNORECASE),
    re.compile(r"(?:average|median|typical)\s+(?:of\s+)?\$?(\d+(?:,\d{3})*(?:\.\d{2})?)", re.IGNORECASE),
    re.compile(r"(\d+(?:\.\d+)?)\s*(?:basis\s*points?|bps)", re.IGNORECASE),
    re.compile(r"(\d+(?:\.\d+)?)\s*(?:years?|months?|decades?)\s*(?:ago|from\s*now)", re.IGNORECASE),
]

ADVICE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\b(?:you\s+should|we\s+recommend|best\s+choice|ideal\s+option)\b", re.IGNORECASE),
    re.compile(r"\b(?:invest\s+in|buy|sell|purchase|avoid)\b", re.IGNORECASE),
    re.compile(r"\b(?:guaranteed|promise|ensure|certain\s+to)\b", re.IGNORECASE),
    re.compile(r"\bwill\s+(?:increase|decrease|rise|fall|grow|return)\b", re.IGNORECASE),
    re.compile(r"\b(?:always|never)\s+(?:invest|buy|sell|choose)\b", re.IGNORECASE),
    re.compile(r"(?:\brisk-free|\bno\s+risk|\bsafe\s+investment)\b", re.IGNORECASE),
]

CITATION_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\b(?:studies\s+show|research\s+indicates|data\s+reveals)\b", re.IGNORECASE),
    re.compile(r"\b(?:according\s+to|based\s+on|as\s+reported\s+by)\b", re.IGNORECASE),
    re.compile(r"\bexperts\s+(?:say|believe|recommend|suggest)\b", re.IGNORECASE),
    re.compile(r"\brecent\s+(?:study|research|report|survey)\b", re.IGNORECASE),
    re.compile(r"\bfinancial\s+(?:experts|advisors|analysts)\s+(?:say|recommend)\b", re.IGNORECASE),
]

_YEAR_REFERENCE_RE = re.compile(r"\b(20\d{2})\s*(?:rates?|rules?|limits?|changes?)\b", re.IGNORECASE)
_CURRENT_RE = re.compile(r"\b(?:current|currently)\b", re.IGNORECASE)
_RECENT_RE = re.compile(r"\b(?:recent|recently)\b", re.IGNORECASE)
_ANY_YEAR_RE = re.compile(r"\b20\d{2}\b")
_SENTENCE_END_RE = re.compile(r"[.!?]")

HIGH_PRIORITY_CONTEXT = (
    "return", "profit", "loss", "rate", "fee", "cost", "tax",
    "inflation", "market", "performance", "yield", "interest",
)

SOURCE_SUGGESTIONS = [
    (("fed", "interest rate"), ["Federal Reserve (federalreserve.gov)"]),
    (("inflation", "cpi"), ["Bureau of Labor Statistics (bls.gov)"]),
    (("market", "stock"), ["SEC (sec.gov)", "Morningstar", "Yahoo Finance"]),
    (("tax", "irs"), ["IRS (irs.gov)"]),
    (("bank", "deposit"), ["FDIC (fdic.gov)"]),
]
DEFAULT_SOURCES = ["Government financial agencies", "Reputable financial institutions"]

CITATION_REASONS = {
    "studies show": "Specific study citation required",
    "research indicates": "Research source needed",
    "data reveals": "Data source must be cited",
    "experts say": "Expert identification required",
    "according to": "Source attribution needed",
}

DISCLAIMERS = {
    "investment_advice": (
        "This content is for educational purposes only and should not be considered personalized "
        "investment advice. Consult with a qualified financial advisor before making investment decisions."
    ),
    "transaction_advice": (
        "This information is general in nature and may not be suitable for your specific financial "
        "situation. Consider your individual circumstances before making financial decisions."
    ),
    "guarantee_claim": "No investment or financial strategy can guarantee returns. All investments carry risk of loss.",
    "recommendation": (
        "This recommendation may not be suitable for all individuals. Consider your personal financial "
        "situation and consult with professionals as needed."
    ),
    "general_advice": "This content is for informational purposes only and should not replace professional financial advice.",
}

_HIGH_RISK_ADVICE = {"investment_advice", "transaction_advice", "guarantee_claim"}

_DEDUCTIONS = {
    "statistics": {"high": 15, "medium": 10, "low": 5},
    "citations": {"high": 12, "medium": 8, "low": 4},
    "advice": {"high": 20, "medium": 10, "low": 5},
    "dates": {"high": 15, "medium": 8, "low": 3},
}


@dataclass(slots=True)
class StatisticFlag:
    statistic: str
    context: str
    position: int
    type: str
    priority: Priority
    suggested_sources: List[str] = field(default_factory=list)


@dataclass(slots=True)
class CitationNeed:
    statement: str
    context: str
    position: int
    trigger: str
    priority: Priority
    suggested_citation_type: str
    reason: str


@dataclass(slots=True)
class AdviceFlag:
    sentence: str
    context: str
    position: int
    trigger: str
    advice_type: str
    disclaimer_needed: str
    severity: Priority
    suggested_disclaimer: str
    recommendations: List[str] = field(default_factory=list)


@dataclass(slots=True)
class DateIssue:
    date_reference: str
    context: str
    position: int
    issue: str
    severity: Priority
    recommendation: str
    staleness: str


@dataclass(slots=True)
class FactCheckReport:
    statistics: List[StatisticFlag]
    citation_needs: List[CitationNeed]
    financial_advice: List[AdviceFlag]
    date_validation: List[DateIssue]
    confidence_score: int = 100
    overall_issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return _camelize(asdict(self))


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            head, *rest = key.split("_")
            out[head + "".join(p.capitalize() for p in rest)] = _camelize(item)
        return out
    if isinstance(value, list):
        return [_camelize(v) for v in value]
    return value


def extract_context(text: str, position: int, radius: int = 100) -> str:
    return text[max(0, position - radius): min(len(text), position + radius)].strip()


def extract_sentence(text: str, position: int) -> str:
    start = position
    while start > 0 and not _SENTENCE_END_RE.match(text[start - 1]):
        start -= 1
    end = position
    while end < len(text) and not _SENTENCE_END_RE.match(text[end]):
        end += 1
    return text[start: end + 1].strip()


def classify_statistic(statistic: str) -> str:
    if "%" in statistic:
        return "percentage"
    if "$" in statistic:
        return "monetary"
    lowered = statistic.lower()
    if "basis" in lowered or "bps" in lowered:
        return "basis_points"
    if re.search(r"\d+\s*(?:times|x)", statistic, re.IGNORECASE):
        return "multiplier"
    if re.search(r"\d+\s*(?:years?|months?|decades?)", statistic, re.IGNORECASE):
        return "time_period"
    if re.search(r"\d+(?:,\d{3})*\s+(?:people|americans|households|investors|companies)", statistic, re.IGNORECASE):
        return "population"
    return "numerical"


def statistic_priority(statistic: str, context: str) -> Priority:
    lowered = context.lower()
    if any(k in lowered for k in HIGH_PRIORITY_CONTEXT):
        return "high"
    if "$" in statistic or "%" in statistic:
        return "medium"
    return "low"


def suggest_sources(context: str) -> List[str]:
    lowered = context.lower()
    suggestions: List[str] = []
    for triggers, sources in SOURCE_SUGGESTIONS:
        if any(t in lowered for t in triggers):
            suggestions.extend(sources)
    return suggestions or list(DEFAULT_SOURCES)


def citation_priority(statement: str) -> Priority:
    lowered = statement.lower()
    if "study" in lowered or "research" in lowered or "data shows" in lowered:
        return "high"
    if "experts" in lowered or "analysts" in lowered:
        return "medium"
    return "low"


def citation_type(statement: str) -> str:
    lowered = statement.lower()
    if "study" in lowered or "research" in lowered:
        return "academic_study"
    if "survey" in lowered or "poll" in lowered:
        return "survey_data"
    if "report" in lowered or "analysis" in lowered:
        return "industry_report"
    if "expert" in lowered or "analyst" in lowered:
        return "expert_opinion"
    return "general_source"


def citation_reason(trigger: str) -> str:
    lowered = trigger.lower()
    for key, reason in CITATION_REASONS.items():
        if key in lowered:
            return reason
    return "Citation recommended for credibility"


def classify_advice(sentence: str) -> str:
    lowered = sentence.lower()
    if "invest" in lowered or "portfolio" in lowered:
        return "investment_advice"
    if "buy" in lowered or "sell" in lowered or "purchase" in lowered:
        return "transaction_advice"
    if "guaranteed" in lowered or "risk-free" in lowered:
        return "guarantee_claim"
    if "should" in lowered or "recommend" in lowered:
        return "recommendation"
    return "general_advice"


def disclaimer_level(sentence: str, advice_type: str) -> str:
    lowered = sentence.lower()
    if advice_type in _HIGH_RISK_ADVICE:
        return "required"
    if "guaranteed" in lowered or "will return" in lowered or "risk-free" in lowered:
        return "required"
    if advice_type == "recommendation":
        return "recommended"
    return "optional"


def advice_severity(sentence: str) -> Priority:
    lowered = sentence.lower()
    if any(p in lowered for p in ("guaranteed", "will definitely", "certain to", "risk-free")):
        return "high"
    if any(p in lowered for p in ("should", "must", "best choice")):
        return "medium"
    return "low"


def advice_recommendations(sentence: str, advice_type: str) -> List[str]:
    recs: List[str] = []
    if advice_type == "guarantee_claim":
        recs.append("Remove guarantee language or add risk disclosure")
        recs.append('Use conditional language (e.g., "may", "could", "potentially")')
    if advice_type == "investment_advice":
        recs.append("Add investment disclaimer")
        recs.append("Suggest consulting with financial advisor")
    if "you should" in sentence.lower():
        recs.append('Consider softer language: "you might consider" or "one option is"')
    return recs


class FactChecker:
    """Run every check over an article's text.

    ``today`` is injectable so that stale-year detection is deterministic in
    tests.
    """

    def __init__(self, *, today: Optional[Callable[[], date]] = None) -> None:
        self._today = today or date.today

    def flag_statistics(self, text: str) -> List[StatisticFlag]:
        flags: List[StatisticFlag] = []
        seen: set[tuple[str, int]] = set()
        for pattern in STATISTIC_PATTERNS:
            for match in pattern.finditer(text):
                statistic = match.group(0)
                key = (statistic, match.start() // 50)
                if key in seen:
                    continue
                seen.add(key)
                context = extract_context(text, match.start(), 100)
                flags.append(
                    StatisticFlag(
                        statistic=statistic,
                        context=context,
                        position=match.start(),
                        type=classify_statistic(statistic),
                        priority=statistic_priority(statistic, context),
                        suggested_sources=suggest_sources(context),
                    )
                )
        return flags

    def identify_citation_needs(self, text: str) -> List[CitationNeed]:
        needs: List[CitationNeed] = []
        for pattern in CITATION_PATTERNS:
            for match in pattern.finditer(text):
                statement = extract_sentence(text, match.start())
                needs.append(
                    CitationNeed(
                        statement=statement,
                        context=extract_context(text, match.start(), 150),
                        position=match.start(),
                        trigger=match.group(0),
                        priority=citation_priority(statement),
                        suggested_citation_type=citation_type(statement),
                        reason=citation_reason(match.group(0)),
                    )
                )
        return needs

    def mark_financial_advice(self, text: str) -> List[AdviceFlag]:
        flags: List[AdviceFlag] = []
        for pattern in ADVICE_PATTERNS:
            for match in pattern.finditer(text):
                sentence = extract_sentence(text, match.start())
                advice_type = classify_advice(sentence)
                flags.append(
                    AdviceFlag(
                        sentence=sentence,
                        context=extract_context(text, match.start(), 120),
                        position=match.start(),
                        trigger=match.group(0),
                        advice_type=advice_type,
                        disclaimer_needed=disclaimer_level(sentence, advice_type),
                        severity=advice_severity(sentence),
                        suggested_disclaimer=DISCLAIMERS.get(advice_type, DISCLAIMERS["general_advice"]),
                        recommendations=advice_recommendations(sentence, advice_type),
                    )
                )
        return flags

    def validate_dates(self, text: str) -> List[DateIssue]:
        current_year = self._today().year
        issues: List[DateIssue] = []

        for match in _YEAR_REFERENCE_RE.finditer(text):
            if int(match.group(1)) < current_year:
                issues.append(
                    DateIssue(
                        date_reference=match.group(0),
                        context=extract_context(text, match.start(), 80),
                        position=match.start(),
                        issue="Outdated year reference",
                        severity="high",
                        recommendation=f"Update to {current_year}",
                        staleness="outdated",
                    )
                )

        for match in _CURRENT_RE.finditer(text):
            context = extract_context(text, match.start(), 80)
            lowered = context.lower()
            if "rate" in lowered or "rule" in lowered or "law" in lowered:
                issues.append(
                    DateIssue(
                        date_reference=match.group(0),
                        context=context,
                        position=match.start(),
                        issue="Current reference may become stale",
                        severity="medium",
                        recommendation="Add specific date or update frequency note",
                        staleness="potentially_stale",
                    )
                )

        for match in _RECENT_RE.finditer(text):
            context = extract_context(text, match.start(), 80)
            if not _ANY_YEAR_RE.search(context):
                issues.append(
                    DateIssue(
                        date_reference=match.group(0),
                        context=context,
                        position=match.start(),
                        issue="Vague time reference",
                        severity="low",
                        recommendation="Add specific date or timeframe",
                        staleness="vague",
                    )
                )
        return issues

    def check_text(self, text: str) -> FactCheckReport:
        report = FactCheckReport(
            statistics=self.flag_statistics(text),
            citation_needs=self.identify_citation_needs(text),
            financial_advice=self.mark_financial_advice(text),
            date_validation=self.validate_dates(text),
        )
        report.confidence_score = confidence_score(report)
        report.overall_issues = overall_issues(report)
        report.recommendations = report_recommendations(report)
        return report

    def check_html(self, content_html: str) -> FactCheckReport:
        return self.check_text(html_to_plain(content_html))


def confidence_score(report: FactCheckReport) -> int:
    score = 100
    score -= sum(_DEDUCTIONS["statistics"][s.priority] for s in report.statistics)
    score -= sum(_DEDUCTIONS["citations"][c.priority] for c in report.citation_needs)
    score -= sum(_DEDUCTIONS["advice"][a.severity] for a in report.financial_advice)
    score -= sum(_DEDUCTIONS["dates"][d.severity] for d in report.date_validation)
    return max(score, 0)


def overall_issues(report: FactCheckReport) -> List[str]:
    issues: List[str] = []
    high_stats = sum(1 for s in report.statistics if s.priority == "high")
    high_citations = sum(1 for c in report.citation_needs if c.priority == "high")
    high_advice = sum(1 for a in report.financial_advice if a.severity == "high")
    outdated = sum(1 for d in report.date_validation if d.severity == "high")
    if high_stats > 3:
        issues.append(f"{high_stats} high-priority statistics need verification")
    if high_citations > 2:
        issues.append(f"{high_citations} statements require citations")
    if high_advice:
        issues.append(f"{high_advice} statements contain problematic financial advice")
    if outdated:
        issues.append(f"{outdated} date references are outdated")
    return issues


def report_recommendations(report: FactCheckReport) -> List[str]:
    recs: List[str] = []
    if len(report.statistics) > 5:
        recs.append("Consider reducing number of statistics or provide sources for all claims")
    if len(report.citation_needs) > 3:
        recs.append("Add citations for research claims and expert opinions")
    if any(a.severity == "high" for a in report.financial_advice):
        recs.append("Review financial advice language and add appropriate disclaimers")
    if report.date_validation:
        recs.append("Update or clarify date references for accuracy")
    if report.confidence_score < 70:
        recs.append("Article requires significant fact-checking before publication")
    return recs
