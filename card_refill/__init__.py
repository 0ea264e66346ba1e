"""Public interface for the card refill toolkit."""

from __future__ import annotations

from .bleed import MIRROR_COPIES, MirrorCopy, add_bleed, add_bleed_solid
from .raster import RasterBuffer, Region
from .refill import (
    ControlImageError,
    ControlSizeError,
    Direction,
    MissingCenterError,
    MissingEdgeError,
    Sample,
    extend_corners,
    extend_sides,
    refill_corner,
)

__all__ = [
    "MIRROR_COPIES",
    "ControlImageError",
    "ControlSizeError",
    "Direction",
    "MirrorCopy",
    "MissingCenterError",
    "MissingEdgeError",
    "RasterBuffer",
    "Region",
    "Sample",
    "add_bleed",
    "add_bleed_solid",
    "extend_corners",
    "extend_sides",
    "refill_corner",
]
