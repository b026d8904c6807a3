from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..models import KeywordSelection, Topic
from ..utils.config_loader import ConfigLoadError

# Cumulative draw thresholds per priority tier
TIER_THRESHOLDS: Tuple[Tuple[float, str], ...] = ((0.6, "high"), (0.9, "medium"), (1.0, "low"))
TIER_ORDER = ("high", "medium", "low")


@dataclass(frozen=True, slots=True)
class ContentType:
    name: str
    angle: str
    tone: str
    approach: str


CONTENT_TYPES: Tuple[ContentType, ...] = (
    ContentType(
        "Market News & Updates",
        "timely_analysis",
        "Urgent, authoritative, data-driven",
        "Open with the news hook, explain the impact on an average household and list the actions to take this week.",
    ),
    ContentType(
        "Opinion & Analysis",
        "contrarian_opinion",
        "Confident, thoughtful, willing to challenge conventional wisdom",
        "Question a popular piece of financial advice, present the evidence on both sides and close with a balanced verdict.",
    ),
    ContentType(
        "Practical Tips & Tools",
        "practical_tips",
        "Friendly, hands-on, encouraging",
        "Give numbered, concrete steps a reader can finish today, with the expected savings or benefit for each.",
    ),
    ContentType(
        "Product Reviews & Comparisons",
        "product_review",
        "Objective, thorough, transparent about trade-offs",
        "Compare the main options on fees, features and fit, include a comparison table and an affiliate disclosure.",
    ),
    ContentType(
        "Case Studies & Success Stories",
        "case_study",
        "Narrative, specific, realistic",
        "Follow one household through the decision with real numbers, then extract the lessons readers can reuse.",
    ),
)

# Positions in a ten-article cycle: 3 news, 3 opinion, 2 tips, 1 review, 1 case study
_ROTATION = (0, 0, 0, 1, 1, 1, 2, 2, 3, 4)


class ContentTypeRotation:
    def __init__(self, start: int = 0) -> None:
        self._index = start

    def next(self) -> ContentType:
        content_type = CONTENT_TYPES[_ROTATION[self._index % len(_ROTATION)]]
        self._index += 1
        return content_type


class TopicSelector:
    """Draw a topic with a 60/30/10 weighting over high/medium/low priority."""

    def __init__(self, topics: Sequence[Topic], *, rng: Optional[random.Random] = None) -> None:
        if not topics:
            raise ConfigLoadError("No topics configured; topics.json must list at least one topic")
        self.topics = list(topics)
        self.rng = rng or random.Random()

    def _tier_for(self, draw: float) -> str:
        for threshold, tier in TIER_THRESHOLDS:
            if draw < threshold:
                return tier
        return "low"

    def select(self) -> Topic:
        preferred = self._tier_for(self.rng.random())
        order = [preferred] + [t for t in TIER_ORDER if t != preferred]
        for tier in order:
            candidates = [t for t in self.topics if t.priority == tier]
            if candidates:
                return self.rng.choice(candidates)
        # Unreachable while topics is non-empty and priorities are validated
        return self.rng.choice(self.topics)


def select_keywords(topic: Topic, long_tail_bank: Sequence[str]) -> KeywordSelection:
    primary = list(topic.keywords[:3])
    stems = [kw.split(" ")[0].lower() for kw in topic.keywords if kw.strip()]
    long_tail: List[str] = [term for term in long_tail_bank if any(stem in term.lower() for stem in stems)][:2]
    return KeywordSelection(primary=primary, long_tail=long_tail, target=primary[0] if primary else topic.title)
