"""Reconstruct clipped card borders from a control image.

Two transforms live here, both driven by a *control image* whose pixel
colours say what to do with the same position of the source image.

``extend_sides`` stretches single pixels orthogonally towards the image edge:

- Red   (#F00) -> left
- Green (#0F0) -> up
- Blue  (#00F) -> right
- Black (#000) -> down (or any other non-transparent colour)
- Transparent (zero alpha) -> do nothing

``extend_corners`` splits the image into four quadrants and fills each one
radially around a centre marker:

- Green (#0F0) -> CENTER
- Pink  (#F0F) -> EDGE
- Black (#000) -> TARGET
- Transparent (zero alpha) -> ignored

Every TARGET pixel takes the angle of the ray cast to it from the CENTER and
is interpolated between the two EDGE pixels nearest to it in angle, so EDGE
colours are continued outward along lines through the centre.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .raster import Color, RasterBuffer, Region

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi

CENTER_COLOR: Color = (0, 255, 0, 255)
EDGE_COLOR: Color = (255, 0, 255, 255)
TARGET_COLOR: Color = (0, 0, 0, 255)


class ControlImageError(ValueError):
    """The control image cannot drive the requested transform."""


class MissingCenterError(ControlImageError):
    """A quadrant of the control image has no CENTER marker."""


class MissingEdgeError(ControlImageError):
    """TARGET markers exist but no EDGE marker to sample from."""


class ControlSizeError(ControlImageError):
    """The control image does not fit the source it governs."""


# ---------------------------------------------------------------------------
# Side extension
# ---------------------------------------------------------------------------


class Direction(str, Enum):
    LEFT = "left"
    UP = "up"
    RIGHT = "right"
    DOWN = "down"


def decode_direction(control_color: Sequence[int]) -> Optional[Direction]:
    """Map a control pixel to a direction, ``None`` when it is transparent.

    Channels are checked red, green, blue in that order and the first one at
    255 wins, so intermediate colours resolve deterministically.
    """
    r, g, b, a = (int(c) for c in control_color)
    if a == 0:
        return None
    if r == 255:
        return Direction.LEFT
    if g == 255:
        return Direction.UP
    if b == 255:
        return Direction.RIGHT
    return Direction.DOWN


def extend_sides(source: RasterBuffer, control: RasterBuffer) -> RasterBuffer:
    """Extend source pixels towards the image edge as directed by ``control``.

    Mutates and returns ``source``.  Only coordinates inside the control image
    are visited, column by column, so a control smaller than the source leaves
    the rest alone.  The anchor pixel itself is never overwritten.
    """
    if control.width > source.width or control.height > source.height:
        raise ControlSizeError(
            f"Control image {control.width}x{control.height} larger than "
            f"source {source.width}x{source.height}"
        )

    pixels = source.pixels
    ctrl = control.pixels

    # transposing gives column-major order: x ascending, then y
    xs, ys = np.nonzero(ctrl[:, :, 3].T)
    for x, y in zip(xs.tolist(), ys.tolist()):
        direction = decode_direction(ctrl[y, x])
        color = pixels[y, x].copy()

        if direction is Direction.LEFT:
            pixels[y, :x] = color
        elif direction is Direction.UP:
            pixels[:y, x] = color
        elif direction is Direction.RIGHT:
            pixels[y, x + 1:] = color
        else:
            pixels[y + 1:, x] = color

    logger.debug("Extended %d side pixels on %r", len(xs), source)
    return source


# ---------------------------------------------------------------------------
# Corner extension
# ---------------------------------------------------------------------------


@dataclass
class Sample:
    """Colour of one EDGE pixel and its angle around the quadrant centre."""
    angle: float
    color: Tuple[float, float, float, float]


def _marker_positions(control: RasterBuffer, color: Color) -> np.ndarray:
    """(y, x) rows of every pixel exactly matching ``color``, row-major."""
    mask = np.all(control.pixels == np.array(color, dtype=np.uint8), axis=-1)
    return np.argwhere(mask)


def find_center(control: RasterBuffer) -> Tuple[int, int]:
    """Return ``(x, y)`` of the CENTER marker.

    When several are present the last one in row-major order is used.
    """
    centers = _marker_positions(control, CENTER_COLOR)
    if len(centers) == 0:
        raise MissingCenterError(f"No center marker {CENTER_COLOR} in {control!r} control region")
    if len(centers) > 1:
        logger.warning(
            "%d center markers found, using the last one at (%d, %d)",
            len(centers), centers[-1][1], centers[-1][0],
        )
    cy, cx = centers[-1]
    return int(cx), int(cy)


def adjusted_angle(bottom_half: bool, raw_angle: float) -> float:
    """Keep angles within one continuous range for the quadrant's half.

    Bottom-half angles are folded into ``(-2pi, 0]``, top-half ones into
    ``[0, 2pi)``, so no quadrant straddles the +/-pi discontinuity.
    """
    if bottom_half:
        return raw_angle if raw_angle <= 0 else raw_angle - TWO_PI
    return raw_angle if raw_angle >= 0 else raw_angle + TWO_PI


def _angle_to(center: Tuple[int, int], x: int, y: int, bottom_half: bool) -> float:
    cx, cy = center
    return adjusted_angle(bottom_half, math.atan2(cy - y, x - cx))


def collect_samples(
    source: RasterBuffer,
    control: RasterBuffer,
    center: Tuple[int, int],
    bottom_half: bool,
) -> List[Sample]:
    """Gather EDGE samples sorted by angle (stable for equal angles)."""
    samples = []
    for y, x in _marker_positions(control, EDGE_COLOR).tolist():
        color = tuple(float(c) for c in source.pixels[y, x])
        samples.append(Sample(_angle_to(center, x, y, bottom_half), color))
    return sorted(samples, key=lambda s: s.angle)


def bracket_samples(angles: np.ndarray, angle: float) -> Tuple[int, int]:
    """Indices of the samples just before and just after ``angle``.

    Outside the sampled range both sides clamp to the extreme sample.
    """
    count = len(angles)
    before = int(np.searchsorted(angles, angle, side="right")) - 1
    after = int(np.searchsorted(angles, angle, side="left"))
    if before < 0:
        before = 0
    if after >= count:
        after = count - 1
    return before, after


def lerp_samples(before: Sample, after: Sample, angle: float) -> Tuple[float, ...]:
    """Linearly interpolate two samples by angular distance."""
    if before is after:
        return before.color
    distance = after.angle - before.angle
    if distance == 0:
        # distinct samples sharing an angle
        return before.color
    before_weight = (after.angle - angle) / distance
    after_weight = 1.0 - before_weight
    return tuple(
        before_weight * b + after_weight * a
        for b, a in zip(before.color, after.color)
    )


def _to_channels(color: Sequence[float]) -> np.ndarray:
    # round half to even, as a clamped 8-bit store does
    return np.clip(np.rint(np.asarray(color, dtype=np.float64)), 0, 255).astype(np.uint8)


def refill_corner(
    source: RasterBuffer,
    control: RasterBuffer,
    bottom_half: bool,
) -> RasterBuffer:
    """Fill TARGET pixels of one quadrant from its EDGE samples.

    ``source`` and ``control`` must have the same size.  Returns a new buffer;
    pixels not marked as TARGET are copied unchanged.
    """
    if control.size != source.size:
        raise ControlSizeError(f"Control {control!r} does not match source {source!r}")

    center = find_center(control)
    samples = collect_samples(source, control, center, bottom_half)
    targets = _marker_positions(control, TARGET_COLOR).tolist()

    result = source.copy()
    if not targets:
        return result
    if not samples:
        raise MissingEdgeError(
            f"{len(targets)} target pixels but no edge markers {EDGE_COLOR} in {control!r}"
        )

    angles = np.array([s.angle for s in samples], dtype=np.float64)
    for y, x in targets:
        angle = _angle_to(center, x, y, bottom_half)
        before, after = bracket_samples(angles, angle)
        color = lerp_samples(samples[before], samples[after], angle)
        result.pixels[y, x] = _to_channels(color)

    logger.debug(
        "Refilled %d targets from %d samples around %s", len(targets), len(samples), center,
    )
    return result


def quadrant_regions(width: int, height: int) -> List[Tuple[bool, Region]]:
    """The four corner quadrants as ``(bottom_half, region)`` pairs.

    Order: top-left, top-right, bottom-left, bottom-right.  Odd sizes give the
    extra row / column to the top / left quadrants.
    """
    cutoff_x = math.ceil(width / 2)
    cutoff_y = math.ceil(height / 2)
    return [
        (False, Region(0, 0, cutoff_x, cutoff_y)),
        (False, Region(cutoff_x, 0, width - cutoff_x, cutoff_y)),
        (True, Region(0, cutoff_y, cutoff_x, height - cutoff_y)),
        (True, Region(cutoff_x, cutoff_y, width - cutoff_x, height - cutoff_y)),
    ]


def extend_corners(source: RasterBuffer, control: RasterBuffer) -> RasterBuffer:
    """Radially refill each corner quadrant of ``source``.

    Returns a new buffer; ``source`` is left untouched.  Every quadrant of the
    control image needs its own CENTER marker, otherwise
    ``MissingCenterError`` is raised and nothing is produced.
    """
    if control.size != source.size:
        raise ControlSizeError(
            f"Control image {control.width}x{control.height} does not match "
            f"source {source.width}x{source.height}"
        )

    output = source.copy()
    for bottom_half, region in quadrant_regions(source.width, source.height):
        filled = refill_corner(source.crop(region), control.crop(region), bottom_half)
        output.paste(filled, region.x, region.y)
    return output
