"""Feed aggregation: posts joined client-side to their authors' profiles."""

from collections.abc import Mapping
from dataclasses import replace
from urllib.parse import urlencode

import structlog

from core.config import settings
from core.exceptions import GatewayError
from domain.entities.feed import FeedEntry, FeedState
from domain.entities.post import Post
from domain.entities.profile import ProfileSummary
from domain.repositories.gateway import POSTS_TABLE, IDataGateway, OrderBy
from domain.services.profile_directory import ProfileDirectoryCache

logger = structlog.get_logger()


class FeedAggregator:
    """Builds the global, newest-first feed with author metadata.

    Each ``load_feed`` call is a full batch refresh that replaces the feed
    state wholesale. Overlapping calls are not guarded against; the last one
    to finish wins.
    """

    def __init__(
        self,
        gateway: IDataGateway,
        directory: ProfileDirectoryCache,
        avatars_bucket: str = settings.avatars_bucket,
        placeholder_avatar_base_url: str = settings.placeholder_avatar_base_url,
    ) -> None:
        self._gateway = gateway
        self._directory = directory
        self._avatars_bucket = avatars_bucket
        self._placeholder_base_url = placeholder_avatar_base_url
        self._state = FeedState()

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def directory(self) -> ProfileDirectoryCache:
        return self._directory

    async def load_feed(self) -> FeedState:
        """Fetch posts, resolve their authors, and publish a new feed state.

        A failure fetching posts keeps the previous entries and records the
        error. A failure fetching profiles records the error but still
        publishes the freshly fetched posts.
        """
        self._state = replace(self._state, loading=True, error=None)

        try:
            records = await self._gateway.query_records(
                POSTS_TABLE, order_by=OrderBy("created_at", descending=True)
            )
        except GatewayError as e:
            logger.warning("feed_posts_fetch_failed", error=e.message, code=e.code)
            self._state = replace(self._state, loading=False, error=e.message)
            return self._state

        posts = [Post.from_record(record) for record in records]
        author_ids = list(dict.fromkeys(post.user_id for post in posts))

        if not author_ids:
            self._directory.clear()
            self._state = FeedState()
            logger.info("feed_loaded", posts=0, authors=0)
            return self._state

        error: str | None = None
        try:
            profiles = await self._directory.refresh(author_ids)
        except GatewayError as e:
            logger.warning("feed_profiles_fetch_failed", error=e.message, code=e.code)
            error = e.message
            profiles = self._directory.snapshot()

        self._state = FeedState(
            entries=tuple(self._build_entry(post, profiles) for post in posts),
            error=error,
        )
        logger.info("feed_loaded", posts=len(posts), authors=len(author_ids))
        return self._state

    def _build_entry(self, post: Post, profiles: Mapping[str, ProfileSummary]) -> FeedEntry:
        profile = profiles.get(post.user_id)
        return FeedEntry(post=post, profile=profile, avatar_url=self.avatar_url_for(profile))

    def avatar_url_for(self, profile: ProfileSummary | None) -> str:
        """Public avatar URL, or an initials placeholder when there is none."""
        if profile is not None and profile.avatar_key:
            return self._gateway.resolve_public_url(self._avatars_bucket, profile.avatar_key)
        seed = (profile.username if profile else None) or "user"
        return f"{self._placeholder_base_url}?{urlencode({'seed': seed})}"
