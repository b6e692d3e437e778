"""Preparing artwork images: resizing, compositing and size checks."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

PREPARED_ARTWORK_MAX_WIDTH = 360
PREPARED_ARTWORK_MAX_HEIGHT = 540
EMULATOR_ARTWORK_MIN_WIDTH = 120
EMULATOR_ARTWORK_MIN_HEIGHT = 120
PORTRAIT_MIN_WIDTH = 300
PORTRAIT_MIN_HEIGHT = 450
PORTRAIT_MIN_ASPECT = 0.60
PORTRAIT_MAX_ASPECT = 0.74

_IMAGE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


@dataclass(frozen=True)
class PreparedArtwork:
    """Artwork ready for upload: two RGBA buffers of the same size."""

    width: int
    height: int
    foreground_rgba: bytes
    background_rgba: bytes


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def resize_for_prepared_artwork(
    image: Image.Image,
    max_width: int = PREPARED_ARTWORK_MAX_WIDTH,
    max_height: int = PREPARED_ARTWORK_MAX_HEIGHT,
) -> Image.Image:
    """Shrink an image to fit inside the bounds, keeping its aspect ratio."""
    width, height = image.size
    if width == 0 or height == 0 or (width <= max_width and height <= max_height):
        return image

    scale = min(max_width / width, max_height / height, 1.0)
    resized_width = max(_round_half_up(width * scale), 1)
    resized_height = max(_round_half_up(height * scale), 1)
    return image.resize((resized_width, resized_height), Image.Resampling.BILINEAR)


def composite_on_solid_background(
    image: Image.Image, background_rgb: tuple[int, int, int]
) -> Image.Image:
    """Blend an RGBA image over a solid colour, giving an opaque image."""
    rgba = image.convert("RGBA")
    back_r, back_g, back_b = background_rgb
    output = bytearray()
    channels = iter(rgba.tobytes())
    for red, green, blue, alpha_byte in zip(channels, channels, channels, channels):
        alpha = alpha_byte / 255.0
        inverse = 1.0 - alpha
        output += bytes(
            (
                min(_round_half_up(red * alpha + back_r * inverse), 255),
                min(_round_half_up(green * alpha + back_g * inverse), 255),
                min(_round_half_up(blue * alpha + back_b * inverse), 255),
                255,
            )
        )
    return Image.frombytes("RGBA", rgba.size, bytes(output))


def prepare_artwork_payload(
    image: Image.Image, blur_background_rgb: tuple[int, int, int] | None = None
) -> PreparedArtwork:
    """Resize an image and build its foreground and background buffers."""
    foreground = resize_for_prepared_artwork(image.convert("RGBA"))
    if blur_background_rgb is not None:
        background = composite_on_solid_background(foreground, blur_background_rgb)
    else:
        background = foreground
    width, height = foreground.size
    return PreparedArtwork(
        width=width,
        height=height,
        foreground_rgba=foreground.tobytes(),
        background_rgba=background.tobytes(),
    )


def prepare_artwork_payload_from_path(
    path: str | Path, blur_background_rgb: tuple[int, int, int] | None = None
) -> PreparedArtwork | None:
    """Load an image file and prepare it; None if it cannot be read."""
    try:
        with Image.open(path) as image:
            image.load()
            return prepare_artwork_payload(image, blur_background_rgb)
    except _IMAGE_ERRORS:
        return None


def _image_dimensions(path: str | Path) -> tuple[int, int] | None:
    try:
        with Image.open(path) as image:
            return image.size
    except _IMAGE_ERRORS:
        return None


def is_valid_portrait_artwork(path: str | Path) -> bool:
    """True for a large enough image with a portrait library-art aspect ratio."""
    size = _image_dimensions(path)
    if size is None:
        return False
    width, height = size
    if width < PORTRAIT_MIN_WIDTH or height < PORTRAIT_MIN_HEIGHT:
        return False
    return PORTRAIT_MIN_ASPECT <= width / height <= PORTRAIT_MAX_ASPECT


def is_valid_emulator_artwork(path: str | Path) -> bool:
    """True for an image at least the minimum emulator artwork size."""
    size = _image_dimensions(path)
    if size is None:
        return False
    width, height = size
    return width >= EMULATOR_ARTWORK_MIN_WIDTH and height >= EMULATOR_ARTWORK_MIN_HEIGHT