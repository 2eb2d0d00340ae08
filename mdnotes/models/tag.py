"""Tag domain model — a named label shared by many articles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class Tag:
    name: str
    id: Optional[int] = None
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "createdAt": self.created_at}

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Tag":
        return cls(
            id=row["id"],
            name=row["name"],
            created_at=row.get("created_at", ""),
        )
