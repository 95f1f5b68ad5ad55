"""Composition root: wires every service to one explicitly passed gateway."""

from dataclasses import dataclass
from typing import Any

import structlog

from core.config import Settings, get_settings
from core.logging import setup_logging
from domain.entities.profile import ProfileState
from domain.repositories.gateway import IDataGateway
from domain.repositories.image_renderer import IImageRenderer
from domain.services.avatar_service import AvatarLifecycleManager
from domain.services.feed_service import FeedAggregator
from domain.services.post_service import PostPublisher
from domain.services.profile_directory import ProfileDirectoryCache
from domain.services.profile_service import ProfileService
from infrastructure.auth.session import AuthSession
from infrastructure.gateway.supabase_gateway import SupabaseGateway
from infrastructure.imaging.pillow_renderer import PillowImageRenderer

logger = structlog.get_logger()


@dataclass
class FitFeedClient:
    """Services for one signed-in user, sharing a single gateway."""

    session: AuthSession
    gateway: IDataGateway
    directory: ProfileDirectoryCache
    feed: FeedAggregator
    publisher: PostPublisher
    profiles: ProfileService
    avatars: AvatarLifecycleManager

    async def load_profile(self) -> ProfileState:
        """Load the user's profile and point the avatar pipeline at its live key."""
        state = await self.profiles.get_profile(self.session.user_id)
        if state.error is None:
            self.avatars.set_current_avatar_key(state.profile.avatar_key)
        return state

    async def aclose(self) -> None:
        close = getattr(self.gateway, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "FitFeedClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


def build_client(
    session: AuthSession,
    settings: Settings | None = None,
    gateway: IDataGateway | None = None,
    renderer: IImageRenderer | None = None,
) -> FitFeedClient:
    """Create a client for ``session``.

    ``gateway`` and ``renderer`` default to the Supabase and Pillow
    implementations; tests pass fakes instead.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.is_production or settings.log_json)

    if gateway is None:
        gateway = SupabaseGateway(
            url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            access_token=session.access_token,
            timeout=settings.gateway_timeout_seconds,
        )

    directory = ProfileDirectoryCache(gateway)
    feed = FeedAggregator(
        gateway,
        directory,
        avatars_bucket=settings.avatars_bucket,
        placeholder_avatar_base_url=settings.placeholder_avatar_base_url,
    )
    publisher = PostPublisher(gateway, feed, max_length=settings.post_max_length)
    profiles = ProfileService(gateway, avatars_bucket=settings.avatars_bucket)
    avatars = AvatarLifecycleManager(
        gateway,
        renderer or PillowImageRenderer(),
        user_id=session.user_id,
        bucket=settings.avatars_bucket,
        jpeg_quality=settings.avatar_jpeg_quality,
    )

    logger.info("client_built", user_id=session.user_id, app_env=settings.app_env)
    return FitFeedClient(
        session=session,
        gateway=gateway,
        directory=directory,
        feed=feed,
        publisher=publisher,
        profiles=profiles,
        avatars=avatars,
    )
