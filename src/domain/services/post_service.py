"""Post publishing with a feed resync after every successful write."""

from dataclasses import dataclass

import structlog

from core.config import settings
from core.exceptions import GatewayError, OperationInProgressError, PostValidationError
from domain.entities.feed import FeedState
from domain.entities.post import Post
from domain.repositories.gateway import POSTS_TABLE, IDataGateway
from domain.services.feed_service import FeedAggregator

logger = structlog.get_logger()


def validate_post_content(text: str, max_length: int = settings.post_max_length) -> str:
    """Check post text at the input boundary and return it unchanged.

    Raises:
        PostValidationError: if the text is blank or longer than ``max_length``.
    """
    if not text or not text.strip():
        raise PostValidationError("Post cannot be empty", length=len(text or ""))
    if len(text) > max_length:
        raise PostValidationError(
            f"Post cannot exceed {max_length} characters", length=len(text)
        )
    return text


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Outcome of a publish attempt."""

    success: bool
    post: Post | None = None
    error: str | None = None
    feed: FeedState | None = None


class PostPublisher:
    """Submits posts and resynchronizes the feed.

    Holds the pending draft: it is cleared only after a successful insert so a
    failed submission can be retried without retyping.
    """

    def __init__(
        self,
        gateway: IDataGateway,
        feed: FeedAggregator,
        max_length: int = settings.post_max_length,
    ) -> None:
        self._gateway = gateway
        self._feed = feed
        self._max_length = max_length
        self._draft = ""
        self._in_flight = False
        self._error: str | None = None

    @property
    def draft(self) -> str:
        return self._draft

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def can_submit(self) -> bool:
        return not self._in_flight and bool(self._draft.strip())

    def set_draft(self, text: str) -> None:
        """Replace the draft, refusing text beyond the length limit."""
        if len(text) > self._max_length:
            raise PostValidationError(
                f"Post cannot exceed {self._max_length} characters", length=len(text)
            )
        self._draft = text

    async def submit(self, author_id: str) -> PublishResult:
        """Validate the current draft and publish it.

        Raises:
            PostValidationError: if the draft is blank or too long; nothing is
                sent to the gateway.
        """
        text = validate_post_content(self._draft, self._max_length)
        return await self.publish(author_id, text)

    async def publish(self, author_id: str, text: str) -> PublishResult:
        """Insert a post and reload the feed.

        ``text`` is trusted to have passed ``validate_post_content``.
        """
        if self._in_flight:
            error = OperationInProgressError("Publishing a post")
            return PublishResult(success=False, error=error.message)

        self._in_flight = True
        self._error = None
        try:
            try:
                record = await self._gateway.insert_record(
                    POSTS_TABLE, {"user_id": author_id, "content": text}
                )
            except GatewayError as e:
                logger.warning("post_publish_failed", author_id=author_id, error=e.message)
                self._error = e.message
                return PublishResult(success=False, error=e.message)

            post = Post.from_record(record)
            self._draft = ""
            logger.info("post_published", post_id=post.id, author_id=author_id)

            feed = await self._feed.load_feed()
            return PublishResult(success=True, post=post, feed=feed)
        finally:
            self._in_flight = False
