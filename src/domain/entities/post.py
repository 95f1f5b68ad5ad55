"""Post domain entity."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class Post:
    """Domain entity for a feed post. Immutable once created."""

    id: str
    user_id: str
    content: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Post":
        """Build a Post from a ``posts`` row."""
        created_at = record["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            id=str(record["id"]),
            user_id=str(record["user_id"]),
            content=record["content"],
            created_at=created_at,
        )
