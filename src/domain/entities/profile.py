"""Profile domain entities."""

from dataclasses import dataclass, field
from typing import Any

ANONYMOUS_DISPLAY_NAME = "Anonymous"

PROFILE_COLUMNS = ("username", "full_name", "avatar_key", "bio")
SUMMARY_COLUMNS = ("id", "username", "full_name", "avatar_key")


@dataclass
class Profile:
    """Domain entity for a user profile (one row per account)."""

    id: str | None = None
    username: str | None = None
    full_name: str | None = None
    avatar_key: str | None = None
    bio: str | None = None

    @classmethod
    def empty(cls, user_id: str | None = None) -> "Profile":
        """A profile for a user with no ``profiles`` row yet."""
        return cls(id=user_id)

    @classmethod
    def from_record(cls, record: dict[str, Any], user_id: str | None = None) -> "Profile":
        profile_id = record.get("id") or user_id
        return cls(
            id=str(profile_id) if profile_id else None,
            username=record.get("username"),
            full_name=record.get("full_name"),
            avatar_key=record.get("avatar_key"),
            bio=record.get("bio"),
        )

    @property
    def display_name(self) -> str:
        return self.username or ANONYMOUS_DISPLAY_NAME


@dataclass(frozen=True, slots=True)
class ProfileSummary:
    """Read-only display subset of a Profile, as cached for the feed."""

    id: str
    username: str | None = None
    full_name: str | None = None
    avatar_key: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ProfileSummary":
        return cls(
            id=str(record["id"]),
            username=record.get("username"),
            full_name=record.get("full_name"),
            avatar_key=record.get("avatar_key"),
        )

    @property
    def display_name(self) -> str:
        return self.username or ANONYMOUS_DISPLAY_NAME


@dataclass(frozen=True, slots=True)
class ProfileState:
    """Result of a profile load or save, as shown on the profile page."""

    profile: Profile = field(default_factory=Profile)
    error: str | None = None
    message: str | None = None
