"""Image renderer protocol."""

from typing import Protocol

from domain.entities.avatar import CropRegion


class IImageRenderer(Protocol):
    """Decodes source images and rasterizes crops."""

    def probe(self, image: bytes) -> tuple[int, int] | None:
        """Return ``(width, height)`` of the image, or None if it cannot be decoded."""
        ...

    def render_crop(self, image: bytes, region: CropRegion, quality: int) -> bytes:
        """Render ``region`` of ``image`` as a compressed JPEG.

        Raises:
            AvatarRenderError: if the image is malformed or the region
                falls outside it.
        """
        ...
