"""Deterministic resize and JPEG encoding for captured images."""

import base64
import binascii
import io
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from food_capture.domain.errors import EncodeError

DEFAULT_MAX_DIMENSION = 1024
DEFAULT_QUALITY = 0.7


@dataclass(frozen=True)
class NormalizedImage:
    """JPEG payload ready to be sent for analysis."""

    data: bytes
    width: int
    height: int
    mime_type: str = "image/jpeg"

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


def normalize_image(
    source: bytes | str,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    quality: float = DEFAULT_QUALITY,
) -> NormalizedImage:
    """Resize so the larger side fits max_dimension and re-encode as JPEG.

    Camera frames and uploaded files both arrive as encoded bytes (or a data
    URL) and go through exactly the same path, so the same input always
    produces the same payload.
    """
    if max_dimension <= 0:
        raise ValueError("max_dimension must be positive")
    if not 0.0 < quality <= 1.0:
        raise ValueError("quality must be in (0, 1]")

    raw = _source_bytes(source)
    try:
        with Image.open(io.BytesIO(raw)) as opened:
            image = ImageOps.exif_transpose(opened)
            image.load()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as exc:
        raise EncodeError(f"Could not decode image: {exc}") from exc

    rgb = _to_rgb(image)
    width, height = target_size(rgb.width, rgb.height, max_dimension)
    if (width, height) != rgb.size:
        rgb = rgb.resize((width, height), Image.Resampling.LANCZOS)

    output = io.BytesIO()
    try:
        rgb.save(output, format="JPEG", quality=round(quality * 100))
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Could not encode image: {exc}") from exc
    return NormalizedImage(data=output.getvalue(), width=width, height=height)


def target_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Clamp the larger side to max_dimension, preserving aspect ratio."""
    if width <= max_dimension and height <= max_dimension:
        return width, height
    if width >= height:
        return max_dimension, max(1, round(height * max_dimension / width))
    return max(1, round(width * max_dimension / height)), max_dimension


def _source_bytes(source: bytes | str) -> bytes:
    if isinstance(source, bytes):
        return source
    encoded = source.split(",", 1)[1] if source.startswith("data:") else source
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EncodeError("Image source is not valid base64") from exc


def _to_rgb(image: Image.Image) -> Image.Image:
    """Flatten transparency onto white and convert to RGB."""
    if image.mode == "P":
        image = image.convert("RGBA")
    if image.mode in ("RGBA", "LA"):
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[-1])
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image
