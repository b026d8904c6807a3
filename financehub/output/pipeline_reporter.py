from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class BatchItem:
    article_id: Optional[str]
    ok: bool
    detail: str = ""
    title: str = ""


@dataclass(slots=True)
class BatchReport:
    """Per-item outcome of a batch operation (generation, approval, archiving)."""

    operation: str
    items: List[BatchItem] = field(default_factory=list)

    def succeeded(self, article_id: Optional[str], detail: str = "", *, title: str = "") -> None:
        self.items.append(BatchItem(article_id, True, detail, title))

    def failed(self, article_id: Optional[str], detail: str, *, title: str = "") -> None:
        self.items.append(BatchItem(article_id, False, detail, title))

    @property
    def success_count(self) -> int:
        return sum(1 for i in self.items if i.ok)

    @property
    def failure_count(self) -> int:
        return sum(1 for i in self.items if not i.ok)

    @property
    def ok(self) -> bool:
        return self.failure_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "succeeded": self.success_count,
            "failed": self.failure_count,
            "items": [
                {"id": i.article_id, "ok": i.ok, "detail": i.detail, "title": i.title} for i in self.items
            ],
        }

    def to_markdown(self) -> str:
        lines = [
            f"### {self.operation.replace('_', ' ').title()} Summary",
            "",
            f"- Succeeded: {self.success_count}",
            f"- Failed: {self.failure_count}",
        ]
        failures = [i for i in self.items if not i.ok]
        if failures:
            lines.append("")
            lines.append("#### Failures")
            for item in failures:
                lines.append(f"- {item.article_id or '(none)'}: {item.detail}")
        return "\n".join(lines) + "\n"
