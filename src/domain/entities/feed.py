"""Feed view entities."""

from dataclasses import dataclass

from domain.entities.post import Post
from domain.entities.profile import ANONYMOUS_DISPLAY_NAME, ProfileSummary


@dataclass(frozen=True, slots=True)
class FeedEntry:
    """A post paired with its author's summary, if one was resolved."""

    post: Post
    profile: ProfileSummary | None
    avatar_url: str

    @property
    def display_name(self) -> str:
        if self.profile is None:
            return ANONYMOUS_DISPLAY_NAME
        return self.profile.display_name


@dataclass(frozen=True, slots=True)
class FeedState:
    """Snapshot of the rendered feed. Replaced wholesale, never mutated."""

    entries: tuple[FeedEntry, ...] = ()
    error: str | None = None
    loading: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def posts(self) -> tuple[Post, ...]:
        return tuple(entry.post for entry in self.entries)
