"""Bleed generation: grow a card image outward by a fixed padding.

``add_bleed`` surrounds the image with mirrored copies of itself so that the
printed border continues the artwork.  ``add_bleed_solid`` is the cheaper
variant for cards whose border is a single flat colour.
"""

import logging
from dataclasses import dataclass
from typing import Tuple, Union

import cv2
from PIL import ImageColor

from .raster import RasterBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MirrorCopy:
    """Placement of one reflected copy around the original image.

    ``scale_x`` / ``scale_y`` are ``1`` or ``-1`` (flip on that axis), the
    shifts are in multiples of the source width / height, measured from the
    top-left corner of the original inside the padded canvas.
    """
    name: str
    scale_x: int
    scale_y: int
    shift_x: int
    shift_y: int

    @property
    def flip_code(self) -> int:
        # cv2.flip: 0 = vertical, 1 = horizontal, -1 = both
        if self.scale_x < 0 and self.scale_y < 0:
            return -1
        if self.scale_x < 0:
            return 1
        return 0

    def origin(self, width: int, height: int, padding: int) -> Tuple[int, int]:
        """Top-left canvas position of the flipped copy."""
        x = self.shift_x * width + padding
        y = self.shift_y * height + padding
        # a negative scale draws backwards from the translated origin
        if self.scale_x < 0:
            x -= width
        if self.scale_y < 0:
            y -= height
        return x, y


# Paint order matters: later copies overwrite earlier ones where they overlap.
MIRROR_COPIES = (
    MirrorCopy("left",         -1,  1, 0, 0),
    MirrorCopy("right",        -1,  1, 2, 0),
    MirrorCopy("top",           1, -1, 0, 0),
    MirrorCopy("bottom",        1, -1, 0, 2),
    MirrorCopy("top_left",     -1, -1, 0, 0),
    MirrorCopy("top_right",    -1, -1, 2, 0),
    MirrorCopy("bottom_left",  -1, -1, 0, 2),
    MirrorCopy("bottom_right", -1, -1, 2, 2),
)


def _check_padding(padding: int) -> None:
    if padding < 0:
        raise ValueError(f"Padding must be non-negative, got {padding}")


def parse_color(fill: Union[str, Tuple[int, ...]]) -> Tuple[int, int, int, int]:
    """Resolve a colour name / hex string / RGB(A) tuple to an RGBA tuple."""
    if isinstance(fill, str):
        return ImageColor.getcolor(fill, "RGBA")
    if len(fill) == 3:
        return int(fill[0]), int(fill[1]), int(fill[2]), 255
    if len(fill) == 4:
        return int(fill[0]), int(fill[1]), int(fill[2]), int(fill[3])
    raise ValueError(f"Expected an RGB or RGBA colour, got {fill!r}")


def add_bleed(source: RasterBuffer, padding: int) -> RasterBuffer:
    """Add ``padding`` pixels of mirrored bleed on every side of ``source``.

    Returns a new buffer of size ``(width + 2*padding, height + 2*padding)``
    with the original pasted at ``(padding, padding)``.  Border areas that no
    reflection reaches (padding larger than the image) stay transparent.
    """
    _check_padding(padding)
    width, height = source.size

    canvas = RasterBuffer.blank(width + 2 * padding, height + 2 * padding)
    canvas.paste(source, padding, padding)

    if not source.pixels.size:
        return canvas

    for copy in MIRROR_COPIES:
        flipped = RasterBuffer(cv2.flip(source.pixels, copy.flip_code))
        x, y = copy.origin(width, height, padding)
        canvas.paste(flipped, x, y)

    logger.debug("Mirrored bleed %dx%d -> %dx%d", width, height, canvas.width, canvas.height)
    return canvas


def add_bleed_solid(
    source: RasterBuffer,
    padding: int,
    fill: Union[str, Tuple[int, ...]] = (0, 0, 0, 255),
) -> RasterBuffer:
    """Add ``padding`` pixels of a uniform ``fill`` colour around ``source``."""
    _check_padding(padding)
    color = parse_color(fill)
    if not source.pixels.size:
        return RasterBuffer.blank(
            source.width + 2 * padding, source.height + 2 * padding, color
        )
    padded = cv2.copyMakeBorder(
        source.pixels,
        padding, padding, padding, padding,
        cv2.BORDER_CONSTANT,
        value=color,
    )
    logger.debug("Solid bleed %s around %dx%d", color, source.width, source.height)
    return RasterBuffer(padded)
