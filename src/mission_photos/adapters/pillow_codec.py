"""Pillow-backed image codec."""

import io
from dataclasses import dataclass

from PIL import Image, ImageOps

from mission_photos.domain.images import NormalizedImage
from mission_photos.services.images import ImageCodec


@dataclass
class PillowImageCodec(ImageCodec):
    """Rotate by EXIF orientation and re-encode as progressive JPEG.

    Metadata is not carried over, so the output is already upright and
    normalizing it again keeps its orientation and dimensions.
    """

    quality: int = 85

    def normalize(self, content: bytes) -> NormalizedImage:
        """Return the upright, canonical JPEG encoding of ``content``."""
        with Image.open(io.BytesIO(content)) as image:
            upright = ImageOps.exif_transpose(image)
            if upright.mode != "RGB":
                upright = upright.convert("RGB")
            output = io.BytesIO()
            upright.save(
                output,
                format="JPEG",
                quality=self.quality,
                progressive=True,
                optimize=True,
            )
            width, height = upright.size
        return NormalizedImage(
            content=output.getvalue(),
            ext="jpg",
            mime_type="image/jpeg",
            width=width,
            height=height,
        )
