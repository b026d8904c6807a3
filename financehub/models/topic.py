from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal

TopicPriority = Literal["high", "medium", "low"]


@dataclass(slots=True)
class Topic:
    """A configured subject the generator can write about."""

    id: str
    title: str
    category: str
    keywords: List[str] = field(default_factory=list)
    priority: TopicPriority = "medium"


@dataclass(slots=True)
class KeywordSelection:
    primary: List[str] = field(default_factory=list)
    long_tail: List[str] = field(default_factory=list)
    target: str = ""

    @property
    def all(self) -> List[str]:
        return [*self.primary, *self.long_tail]

    def to_dict(self) -> Dict[str, Any]:
        return {"primary": list(self.primary), "longTail": list(self.long_tail), "target": self.target}
