"""Rasterises the sparse pixel mapping for display and PNG export."""
import logging
from functools import lru_cache
from typing import Iterable, Mapping, Optional, Tuple

import numpy as np
from PIL import Image, ImageColor

from pixel_store import TRANSPARENT, Pixel

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]


@lru_cache(maxsize=256)
def color_to_rgba(color: str) -> RGBA:
    """Parses any colour Pillow understands; TRANSPARENT maps to (0, 0, 0, 0)."""
    if color == TRANSPARENT:
        return 0, 0, 0, 0
    rgb = ImageColor.getrgb(color)
    if len(rgb) == 4:
        return rgb
    return rgb[0], rgb[1], rgb[2], 255


def to_rgba_array(
    pixels: Mapping[Tuple[int, int], Pixel], size: int, visible_layers: Optional[Iterable[int]] = None
) -> np.ndarray:
    """
    Builds a (size, size, 4) uint8 buffer from the pixel mapping.

    Pixels outside the canvas are dropped. When ``visible_layers`` is given,
    pixels on any other layer are left transparent.
    """
    buffer = np.zeros((size, size, 4), dtype=np.uint8)
    visible = set(visible_layers) if visible_layers is not None else None
    for (x, y), pixel in pixels.items():
        if not (0 <= x < size and 0 <= y < size):
            continue
        if visible is not None and pixel.layer_id not in visible:
            continue
        buffer[y, x] = color_to_rgba(pixel.color)
    return buffer


def save_png(
    pixels: Mapping[Tuple[int, int], Pixel],
    size: int,
    filename: str = "sprite.png",
    scale: int = 1,
    visible_layers: Optional[Iterable[int]] = None,
) -> str:
    """Saves the canvas to a PNG file, upscaled without smoothing."""
    img = Image.fromarray(to_rgba_array(pixels, size, visible_layers))
    if scale > 1:
        img = img.resize((size * scale, size * scale), Image.Resampling.NEAREST)
    img.save(filename)
    logger.info("Exported %sx%s sprite to %s", size, size, filename)
    return filename
