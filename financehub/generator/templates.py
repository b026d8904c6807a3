"""Deterministic local articles used when the LLM cannot be reached.

Templates are filtered by category (or ``general``) and rotate with the
wall-clock hour, so repeated failures in one run produce the same shape and
failures across the day still vary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Tuple

from ..models import KeywordSelection, Topic


@dataclass(frozen=True, slots=True)
class FallbackTemplate:
    name: str
    categories: Tuple[str, ...]
    structure: Tuple[str, ...]
    title_formats: Tuple[str, ...]


TEMPLATES: Tuple[FallbackTemplate, ...] = (
    FallbackTemplate(
        name="Complete Guide",
        categories=("general", "investing", "savings", "debt"),
        structure=(
            "introduction",
            "current_landscape",
            "core_strategies",
            "common_mistakes",
            "implementation",
            "advanced_tips",
            "conclusion",
        ),
        title_formats=(
            "The Complete Guide to {topic}: Mastering {keyword} in {year}",
            "Your Ultimate {topic} Guide: {keyword} Strategies That Work",
            "{topic} Mastery: The Complete {keyword} Handbook",
        ),
    ),
    FallbackTemplate(
        name="Step-by-Step Blueprint",
        categories=("general", "retirement", "taxes", "wealth"),
        structure=(
            "introduction",
            "assessment_phase",
            "planning_steps",
            "execution_strategy",
            "monitoring_progress",
            "optimization",
            "conclusion",
        ),
        title_formats=(
            "{topic} Blueprint: Step-by-Step {keyword} Strategy",
            "From Zero to Confident: A {topic} Action Plan for {year}",
            "Build Your {topic} Success: The {keyword} Framework",
        ),
    ),
    FallbackTemplate(
        name="Expert Analysis",
        categories=("general", "banking", "real_estate", "education"),
        structure=(
            "introduction",
            "market_analysis",
            "expert_strategies",
            "case_studies",
            "risk_management",
            "future_outlook",
            "conclusion",
        ),
        title_formats=(
            "{topic} Analysis: Expert {keyword} Insights for {year}",
            "Professional Guide to {topic}: {keyword} Tips",
            "{topic} Decoded: Expert {keyword} Strategies",
        ),
    ),
)


@dataclass(slots=True)
class _Ctx:
    topic: str
    category: str
    kw: str
    kw2: str
    year: int


def _introduction(c: _Ctx) -> str:
    return (
        f"<h1>Introduction: {c.topic} in {c.year}</h1>\n"
        f"<p>Understanding {c.kw} is one of the most useful money skills you can build. Whether you are just "
        f"getting started or refining a plan you already follow, this guide walks through what matters now "
        f"and what to do next.</p>\n"
        f"<p>We combine long-standing principles with current {c.category} conditions so that every section "
        f"ends with something you can act on. Read it straight through or jump to the part you need.</p>"
    )


def _current_landscape(c: _Ctx) -> str:
    return (
        f"<h2>The {c.year} {c.topic} Landscape</h2>\n"
        f"<p>The {c.category} world keeps shifting. New products, new rules and changing interest rates all "
        f"affect how {c.kw} works for an ordinary household. Knowing the backdrop helps you judge which advice "
        f"still applies.</p>\n"
        f"<p>Digital tools have lowered costs and raised expectations. Good {c.kw2} now means comparing options "
        f"regularly instead of setting a plan once and forgetting about it.</p>"
    )


def _core_strategies(c: _Ctx) -> str:
    return (
        f"<h2>Essential {c.kw} Strategies</h2>\n"
        f"<h3>Build a Solid Foundation</h3>\n"
        f"<p>Start by writing down where you are today: income, spending, savings and debts. A clear baseline "
        f"makes every later {c.kw} decision easier to measure.</p>\n"
        f"<h3>Spread Your Risk</h3>\n"
        f"<p>No single account, product or tactic should carry your whole plan. Balance lowers the damage any one "
        f"mistake or market move can do.</p>\n"
        f"<h3>Let Technology Do the Busywork</h3>\n"
        f"<p>Automatic transfers, alerts and tracking apps keep {c.kw2} on schedule without relying on "
        f"willpower.</p>"
    )


def _common_mistakes(c: _Ctx) -> str:
    return (
        f"<h2>Mistakes to Avoid</h2>\n"
        f"<p>Most setbacks with {c.kw} come from a short list of habits: no written plan, decisions made in a "
        f"panic, too little diversification and never revisiting old choices.</p>\n"
        f"<p>Spotting these patterns early is cheap. Fixing them after years of drift is not, so schedule a "
        f"quick review every few months.</p>"
    )


def _implementation(c: _Ctx) -> str:
    return (
        f"<h2>Putting It Into Practice</h2>\n"
        f"<p>A simple framework keeps {c.kw} manageable:</p>\n"
        "<ol>\n"
        "<li><strong>Assess:</strong> review your current position and spot opportunities</li>\n"
        "<li><strong>Plan:</strong> set specific, dated goals</li>\n"
        "<li><strong>Act:</strong> make one change at a time</li>\n"
        "<li><strong>Track:</strong> check progress monthly</li>\n"
        "<li><strong>Adjust:</strong> refine the plan as your life changes</li>\n"
        "</ol>"
    )


def _advanced_tips(c: _Ctx) -> str:
    return (
        f"<h2>Advanced Techniques</h2>\n"
        f"<p>Once the basics are running smoothly, more advanced {c.kw} tactics can add meaningful value. They "
        f"usually need more attention and sometimes a professional opinion.</p>\n"
        f"<p>Adopt them one at a time and keep notes on the results so you know which ones earn their place.</p>"
    )


def _assessment_phase(c: _Ctx) -> str:
    return (
        f"<h2>Step 1: Assess Where You Stand</h2>\n"
        f"<p>Gather statements, list balances and note every recurring cost. This picture of your {c.category} "
        f"situation is the starting line for {c.kw}.</p>\n"
        f"<p>Be honest about gaps. An uncomfortable number today is more useful than a flattering guess.</p>"
    )


def _planning_steps(c: _Ctx) -> str:
    return (
        f"<h2>Step 2: Plan Your Moves</h2>\n"
        f"<p>Turn the assessment into goals with amounts and dates. Rank them so that the most urgent "
        f"{c.kw2} gets funded first.</p>\n"
        f"<p>Write the plan down and keep it somewhere you will see it.</p>"
    )


def _execution_strategy(c: _Ctx) -> str:
    return (
        f"<h2>Step 3: Execute With Discipline</h2>\n"
        f"<p>Automate what you can and calendar the rest. Consistency matters more than perfect timing when it "
        f"comes to {c.kw}.</p>"
    )


def _monitoring_progress(c: _Ctx) -> str:
    return (
        f"<h2>Step 4: Monitor Progress</h2>\n"
        f"<p>Pick two or three numbers that tell you whether the plan is working and review them monthly. "
        f"Small course corrections beat large emergency ones.</p>"
    )


def _optimization(c: _Ctx) -> str:
    return (
        f"<h2>Step 5: Optimize Over Time</h2>\n"
        f"<p>As income, family and goals change, revisit your {c.kw} choices. Fees, rates and tax rules shift "
        f"too, so an annual check-up keeps the plan efficient.</p>"
    )


def _market_analysis(c: _Ctx) -> str:
    return (
        f"<h2>Market Analysis</h2>\n"
        f"<p>Conditions in {c.category} set the range of sensible choices. Rates, competition between providers "
        f"and regulation all shape what good {c.kw} looks like this year.</p>\n"
        f"<p>Watch the trend rather than the headline: a single month rarely changes the long-term picture.</p>"
    )


def _expert_strategies(c: _Ctx) -> str:
    return (
        f"<h2>Strategies Professionals Use</h2>\n"
        f"<p>Advisors tend to favor simple, repeatable {c.kw} rules over clever one-off moves. Clear targets, low "
        f"costs and regular rebalancing show up again and again.</p>"
    )


def _case_studies(c: _Ctx) -> str:
    return (
        f"<h2>Case Studies</h2>\n"
        f"<p>Consider a household that reviewed its {c.kw} once a year instead of never. Over a decade, small "
        f"improvements in fees and savings rates compounded into a noticeably stronger position.</p>"
    )


def _risk_management(c: _Ctx) -> str:
    return (
        f"<h2>Managing Risk</h2>\n"
        f"<p>Every {c.kw} decision carries some risk. Keep an emergency fund, avoid concentrating everything in "
        f"one place and understand what you own before you commit.</p>"
    )


def _future_outlook(c: _Ctx) -> str:
    return (
        f"<h2>Looking Ahead</h2>\n"
        f"<p>Expect continued change in {c.category}: new tools, new rules and new products. A flexible plan "
        f"built on sound {c.kw2} will adapt without starting over.</p>"
    )


def _conclusion(c: _Ctx) -> str:
    return (
        f"<h2>Conclusion: Your Path to {c.topic} Success</h2>\n"
        f"<p>Getting {c.kw} right is an ongoing process. The key takeaway is to start with a clear picture, act "
        f"consistently and review regularly.</p>\n"
        f"<p>Pick one step from this guide and do it this week. Small actions repeated over time build a "
        f"stronger financial future.</p>"
    )


SECTIONS: Dict[str, Callable[[_Ctx], str]] = {
    "introduction": _introduction,
    "current_landscape": _current_landscape,
    "core_strategies": _core_strategies,
    "common_mistakes": _common_mistakes,
    "implementation": _implementation,
    "advanced_tips": _advanced_tips,
    "assessment_phase": _assessment_phase,
    "planning_steps": _planning_steps,
    "execution_strategy": _execution_strategy,
    "monitoring_progress": _monitoring_progress,
    "optimization": _optimization,
    "market_analysis": _market_analysis,
    "expert_strategies": _expert_strategies,
    "case_studies": _case_studies,
    "risk_management": _risk_management,
    "future_outlook": _future_outlook,
    "conclusion": _conclusion,
}


@dataclass(slots=True)
class FallbackArticle:
    template: str
    title: str
    meta_description: str
    content: str
    cta: str


def templates_for(category: str) -> List[FallbackTemplate]:
    category = (category or "").lower()
    matching = [t for t in TEMPLATES if category in t.categories or "general" in t.categories]
    return matching or list(TEMPLATES)


def select_template(category: str, now: datetime) -> FallbackTemplate:
    candidates = templates_for(category)
    hour_index = int(now.timestamp() // 3600)
    return candidates[hour_index % len(candidates)]


def render_fallback(topic: Topic, keywords: KeywordSelection, now: datetime, *, site_name: str) -> FallbackArticle:
    template = select_template(topic.category, now)
    kw = keywords.primary[0] if keywords.primary else topic.title
    kw2 = keywords.primary[1] if len(keywords.primary) > 1 else "financial strategies"
    ctx = _Ctx(topic=topic.title, category=topic.category, kw=kw, kw2=kw2, year=now.year)

    title_format = template.title_formats[int(now.timestamp() // 3600) % len(template.title_formats)]
    title = title_format.format(topic=topic.title, keyword=kw, year=now.year)
    content = "\n\n".join(SECTIONS.get(name, _introduction)(ctx) for name in template.structure)
    meta = (
        f"Discover proven {kw} strategies and expert {kw2} insights from {site_name}. "
        f"A complete guide to {topic.title} with actionable tips for {now.year}."
    )
    cta = (
        f"Ready to master {kw}? Subscribe to {site_name} for weekly expert insights, proven strategies, "
        f"and actionable {kw2} tips delivered to your inbox."
    )
    return FallbackArticle(template=template.name, title=title, meta_description=meta, content=content, cta=cta)
