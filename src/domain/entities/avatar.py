"""Avatar pipeline domain entities."""

from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID, uuid4

from core.exceptions import CropRegionError

AVATAR_CONTENT_TYPE = "image/jpeg"


class AvatarStage(StrEnum):
    """Stages of the avatar replacement pipeline, in execution order."""

    IDLE = "idle"
    IMAGE_SELECTED = "image_selected"
    CROPPING = "cropping"
    RASTERIZING = "rasterizing"
    UPLOADING = "uploading"
    COMMITTING = "committing"
    RETIRING = "retiring"


def new_avatar_key() -> str:
    """Generate a fresh, never-reused asset key."""
    return f"{uuid4()}.jpg"


@dataclass(frozen=True, slots=True)
class CropRegion:
    """Square pixel region of the source image."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise CropRegionError("Crop region must have a positive size")
        if self.width != self.height:
            raise CropRegionError("Crop region must be square")
        if self.x < 0 or self.y < 0:
            raise CropRegionError("Crop region must start inside the image")

    @classmethod
    def centered_square(cls, image_width: int, image_height: int) -> "CropRegion":
        """Largest square centred in an image of the given size."""
        side = min(image_width, image_height)
        return cls(
            x=(image_width - side) // 2,
            y=(image_height - side) // 2,
            width=side,
            height=side,
        )

    def fits_within(self, image_width: int, image_height: int) -> bool:
        return self.x + self.width <= image_width and self.y + self.height <= image_height


@dataclass
class CropSession:
    """An image selected for cropping, plus the latest chosen region."""

    image: bytes
    width: int | None = None
    height: int | None = None
    region: CropRegion | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def has_preview(self) -> bool:
        return self.width is not None and self.height is not None


@dataclass(frozen=True, slots=True)
class AvatarOutcome:
    """Result of a confirmed crop. Never reports partial success."""

    success: bool
    message: str
    avatar_key: str | None = None
    failed_stage: AvatarStage | None = None
    orphaned_key: str | None = None

    @classmethod
    def succeeded(cls, avatar_key: str) -> "AvatarOutcome":
        return cls(success=True, message="Profile picture updated!", avatar_key=avatar_key)

    @classmethod
    def failed(
        cls,
        stage: AvatarStage,
        message: str,
        orphaned_key: str | None = None,
    ) -> "AvatarOutcome":
        return cls(
            success=False,
            message=message,
            failed_stage=stage,
            orphaned_key=orphaned_key,
        )
