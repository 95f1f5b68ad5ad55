"""Avatar replacement pipeline.

Select -> crop -> rasterize -> upload -> commit -> retire. Each stage runs
only if the previous one succeeded. Every upload goes to a brand-new key, so
the asset the profile currently points at is never touched until the profile
has been repointed. Nothing is rolled back: a failed commit leaves the new
upload orphaned, and a failed retire leaves the old asset orphaned.
"""

import asyncio

import structlog
from structlog.typing import FilteringBoundLogger

from core.config import settings
from core.exceptions import (
    AvatarCommitError,
    AvatarRenderError,
    AvatarSelectionError,
    AvatarUploadError,
    CropRegionError,
    GatewayError,
    OperationInProgressError,
    RecordNotFoundError,
)
from domain.entities.avatar import (
    AVATAR_CONTENT_TYPE,
    AvatarOutcome,
    AvatarStage,
    CropRegion,
    CropSession,
    new_avatar_key,
)
from domain.repositories.gateway import PROFILES_TABLE, IDataGateway, QueryFilter
from domain.repositories.image_renderer import IImageRenderer

logger = structlog.get_logger()


class AvatarLifecycleManager:
    """Replaces one user's avatar through the staged pipeline."""

    def __init__(
        self,
        gateway: IDataGateway,
        renderer: IImageRenderer,
        user_id: str,
        current_avatar_key: str | None = None,
        bucket: str = settings.avatars_bucket,
        jpeg_quality: int = settings.avatar_jpeg_quality,
    ) -> None:
        self._gateway = gateway
        self._renderer = renderer
        self._user_id = user_id
        self._current_key = current_avatar_key
        self._bucket = bucket
        self._quality = jpeg_quality
        self._stage = AvatarStage.IDLE
        self._session: CropSession | None = None
        self._in_flight = False

    @property
    def stage(self) -> AvatarStage:
        return self._stage

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def current_avatar_key(self) -> str | None:
        return self._current_key

    @property
    def session(self) -> CropSession | None:
        return self._session

    def set_current_avatar_key(self, key: str | None) -> None:
        """Sync with a freshly loaded profile."""
        self._current_key = key

    def select(self, image: bytes) -> CropSession:
        """Load a raw image into a crop session. No network I/O.

        Raises:
            AvatarSelectionError: if no image bytes were given.
            OperationInProgressError: if a confirmed crop is still running.
        """
        if self._in_flight:
            raise OperationInProgressError("Avatar upload")
        if not image:
            raise AvatarSelectionError()

        self._stage = AvatarStage.IMAGE_SELECTED
        session = CropSession(image=image)
        size = self._renderer.probe(image)
        if size is not None:
            session.width, session.height = size
            session.region = CropRegion.centered_square(*size)

        self._session = session
        self._stage = AvatarStage.CROPPING
        return session

    def update_crop(self, session: CropSession, region: CropRegion) -> None:
        """Remember the latest region chosen in the cropper. Nothing is rendered yet."""
        if (
            session.width is not None
            and session.height is not None
            and not region.fits_within(session.width, session.height)
        ):
            raise CropRegionError("Crop region extends beyond the image")
        session.region = region

    def cancel(self, session: CropSession) -> None:
        """Discard a crop session without doing any work."""
        if self._in_flight:
            raise OperationInProgressError("Avatar upload")
        if self._session is session:
            self._session = None
        self._stage = AvatarStage.IDLE

    async def confirm_crop(
        self, session: CropSession, region: CropRegion | None = None
    ) -> AvatarOutcome:
        """Run rasterize, upload, commit and retire for the chosen region."""
        if self._in_flight:
            error = OperationInProgressError("Avatar upload")
            return AvatarOutcome.failed(self._stage, error.message)

        if region is not None:
            session.region = region
        if session.region is None:
            if not session.has_preview:
                return AvatarOutcome.failed(AvatarStage.RASTERIZING, AvatarRenderError().message)
            return AvatarOutcome.failed(
                AvatarStage.CROPPING, CropRegionError("No crop region selected").message
            )

        self._in_flight = True
        log = logger.bind(user_id=self._user_id, session_id=str(session.id))
        try:
            return await self._run(session, session.region, log)
        finally:
            self._in_flight = False
            self._session = None
            self._stage = AvatarStage.IDLE

    async def _run(
        self,
        session: CropSession,
        region: CropRegion,
        log: FilteringBoundLogger,
    ) -> AvatarOutcome:
        self._stage = AvatarStage.RASTERIZING
        try:
            blob = await asyncio.to_thread(
                self._renderer.render_crop, session.image, region, self._quality
            )
        except AvatarRenderError as e:
            log.warning("avatar_render_failed", error=e.message)
            return AvatarOutcome.failed(AvatarStage.RASTERIZING, e.message)
        except Exception:
            log.exception("avatar_render_crashed")
            return AvatarOutcome.failed(AvatarStage.RASTERIZING, AvatarRenderError().message)

        self._stage = AvatarStage.UPLOADING
        key = new_avatar_key()
        try:
            await self._gateway.upload_blob(
                self._bucket, key, blob, content_type=AVATAR_CONTENT_TYPE, overwrite=False
            )
        except GatewayError as e:
            error = AvatarUploadError(e.message, key)
            log.warning("avatar_upload_failed", key=key, error=e.message)
            return AvatarOutcome.failed(AvatarStage.UPLOADING, error.message)

        self._stage = AvatarStage.COMMITTING
        previous_key = await self._live_avatar_key(log)
        try:
            await self._commit(key)
        except AvatarCommitError as e:
            log.error("avatar_commit_failed", orphaned_key=key, error=e.message)
            return AvatarOutcome.failed(AvatarStage.COMMITTING, e.message, orphaned_key=key)

        self._current_key = key
        log.info("avatar_committed", key=key, previous_key=previous_key)

        if previous_key and previous_key != key:
            self._stage = AvatarStage.RETIRING
            try:
                await self._gateway.delete_blob(self._bucket, previous_key)
                log.info("avatar_retired", key=previous_key)
            except GatewayError as e:
                log.warning("avatar_retire_failed", orphaned_key=previous_key, error=e.message)

        return AvatarOutcome.succeeded(key)

    async def _live_avatar_key(self, log: FilteringBoundLogger) -> str | None:
        """Key the profile row points at right now; the cached key if the read fails."""
        try:
            record = await self._gateway.fetch_single(
                PROFILES_TABLE,
                columns=["avatar_key"],
                filters=[QueryFilter.eq("id", self._user_id)],
            )
        except RecordNotFoundError:
            return None
        except GatewayError as e:
            log.warning("avatar_live_key_fetch_failed", error=e.message)
            return self._current_key
        return record.get("avatar_key")

    async def _commit(self, key: str) -> None:
        try:
            updated = await self._gateway.update_record(
                PROFILES_TABLE,
                QueryFilter.eq("id", self._user_id),
                {"avatar_key": key},
            )
        except GatewayError as e:
            raise AvatarCommitError(e.message, key) from e
        if not updated:
            raise AvatarCommitError("profile not found", key)
