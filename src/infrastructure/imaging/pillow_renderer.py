"""Pillow implementation of the image renderer."""

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from core.exceptions import AvatarRenderError
from domain.entities.avatar import CropRegion


class PillowImageRenderer:
    """Crops and encodes avatar images with Pillow."""

    def __init__(self, max_side: int | None = None) -> None:
        self._max_side = max_side

    def probe(self, image: bytes) -> tuple[int, int] | None:
        """Return ``(width, height)`` after EXIF orientation, or None if undecodable."""
        try:
            with Image.open(io.BytesIO(image)) as img:
                return ImageOps.exif_transpose(img).size
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
            return None

    def render_crop(self, image: bytes, region: CropRegion, quality: int) -> bytes:
        """Render ``region`` as a baseline RGB JPEG at ``quality``."""
        try:
            with Image.open(io.BytesIO(image)) as img:
                img = ImageOps.exif_transpose(img)
                if not region.fits_within(img.width, img.height):
                    raise AvatarRenderError("Crop region extends beyond the image")

                cropped = img.crop(
                    (region.x, region.y, region.x + region.width, region.y + region.height)
                )
                if cropped.mode != "RGB":
                    cropped = cropped.convert("RGB")
                if self._max_side and cropped.width > self._max_side:
                    cropped = cropped.resize(
                        (self._max_side, self._max_side), Image.Resampling.LANCZOS
                    )

                out = io.BytesIO()
                cropped.save(out, format="JPEG", quality=quality)
                return out.getvalue()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise AvatarRenderError() from e
