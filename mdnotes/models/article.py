"""Article domain model — a markdown note with view bookkeeping."""

from __future__ import annotations

from uuid import uuid4
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


def utc_timestamp() -> str:
    """UTC ISO-8601 with milliseconds, same shape as the schema defaults."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


@dataclass
class Article:
    """A user-authored note. ``uuid`` is the only externally usable key."""

    title: str
    content: str = ""
    uuid: str = field(default_factory=lambda: str(uuid4()))
    id: Optional[int] = None
    view_count: int = 0
    created_at: str = field(default_factory=utc_timestamp)
    updated_at: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "uuid": self.uuid,
            "title": self.title,
            "content": self.content,
            "viewCount": self.view_count,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Article":
        return cls(
            id=row["id"],
            uuid=row["uuid"],
            title=row.get("title") or "",
            content=row.get("content") or "",
            view_count=row.get("view_count", 0),
            created_at=row.get("created_at", ""),
            updated_at=row.get("updated_at", ""),
        )
