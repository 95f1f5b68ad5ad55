"""Profile page operations: load, save, and avatar URL resolution."""

import structlog

from core.config import settings
from core.exceptions import GatewayError, ProfileValidationError, RecordNotFoundError
from domain.entities.profile import PROFILE_COLUMNS, Profile, ProfileState
from domain.repositories.gateway import PROFILES_TABLE, IDataGateway, QueryFilter

logger = structlog.get_logger()


class ProfileService:
    """Reads and upserts the signed-in user's own profile row."""

    def __init__(
        self,
        gateway: IDataGateway,
        avatars_bucket: str = settings.avatars_bucket,
    ) -> None:
        self._gateway = gateway
        self._avatars_bucket = avatars_bucket

    async def get_profile(self, user_id: str) -> ProfileState:
        """Load a profile. A missing row is an empty profile, not an error."""
        try:
            record = await self._gateway.fetch_single(
                PROFILES_TABLE,
                columns=PROFILE_COLUMNS,
                filters=[QueryFilter.eq("id", user_id)],
            )
        except RecordNotFoundError:
            logger.debug("profile_not_found", user_id=user_id)
            return ProfileState(profile=Profile.empty(user_id))
        except GatewayError as e:
            logger.warning("profile_fetch_failed", user_id=user_id, error=e.message)
            return ProfileState(profile=Profile.empty(user_id), error=e.message)

        return ProfileState(profile=Profile.from_record(record, user_id=user_id))

    async def save_profile(
        self,
        user_id: str,
        username: str,
        full_name: str | None = None,
        bio: str | None = None,
    ) -> ProfileState:
        """Insert or replace the profile's editable fields.

        The avatar key is left alone; only the avatar pipeline changes it.

        Raises:
            ProfileValidationError: if ``username`` is blank.
        """
        if not username or not username.strip():
            raise ProfileValidationError("Username is required", field="username")

        updates = {
            "id": user_id,
            "username": username,
            "full_name": full_name or "",
            "bio": bio or "",
        }
        try:
            record = await self._gateway.upsert_record(PROFILES_TABLE, updates, conflict_key="id")
        except GatewayError as e:
            logger.warning("profile_save_failed", user_id=user_id, error=e.message)
            return ProfileState(
                profile=Profile(id=user_id, username=username, full_name=full_name, bio=bio),
                error=e.message,
            )

        logger.info("profile_saved", user_id=user_id)
        return ProfileState(
            profile=Profile.from_record(record, user_id=user_id),
            message="Profile updated!",
        )

    def avatar_url(self, profile: Profile) -> str | None:
        """Public URL of the profile's live avatar, if it has one."""
        if not profile.avatar_key:
            return None
        return self._gateway.resolve_public_url(self._avatars_bucket, profile.avatar_key)
