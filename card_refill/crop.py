"""Region arithmetic and cropping helpers for card sheets."""

import math
from typing import List, Sequence

import cv2

from .raster import RasterBuffer, Region


def region_from_bounds(x_from: int, x_to: int, y_from: int, y_to: int) -> Region:
    """Region from top-left (inclusive) and bottom-right (exclusive) bounds."""
    return Region(x_from, y_from, x_to - x_from, y_to - y_from)


def regions_between_lines(horizontal: Sequence[int], vertical: Sequence[int]) -> List[Region]:
    """Regions between consecutive *pairs* of lines, leaving gaps in between.

    With ``horizontal=[1, 2, 3, 4]`` and ``vertical=[5, 6, 7, 8]`` the result
    spans (x 5-6, y 1-2), (x 7-8, y 1-2), (x 5-6, y 3-4), (x 7-8, y 3-4).
    """
    if len(horizontal) % 2 != 0 or len(vertical) % 2 != 0:
        raise ValueError("Length of both line lists must be even.")

    regions = []
    for h in range(len(horizontal) // 2):
        for v in range(len(vertical) // 2):
            regions.append(region_from_bounds(
                vertical[v * 2], vertical[v * 2 + 1],
                horizontal[h * 2], horizontal[h * 2 + 1],
            ))
    return regions


def regions_between_shared_lines(horizontal: Sequence[int], vertical: Sequence[int]) -> List[Region]:
    """Regions where each line is the shared border of its two neighbours.

    With ``horizontal=[1, 2, 3]`` and ``vertical=[5, 6, 7]`` the result spans
    (x 5-6, y 1-2), (x 6-7, y 1-2), (x 5-6, y 2-3), (x 6-7, y 2-3).
    """
    if len(horizontal) <= 2 or len(vertical) <= 2:
        raise ValueError("Both line lists must contain more than 2 items.")

    regions = []
    for h in range(len(horizontal) - 1):
        for v in range(len(vertical) - 1):
            regions.append(region_from_bounds(
                vertical[v], vertical[v + 1],
                horizontal[h], horizontal[h + 1],
            ))
    return regions


def pad_region(region: Region, padding: int) -> Region:
    """Grow a region by ``padding`` in every direction."""
    return Region(
        region.x - padding,
        region.y - padding,
        region.w + 2 * padding,
        region.h + 2 * padding,
    )


def merge_regions(first: Region, second: Region) -> Region:
    """Smallest region covering both inputs."""
    x_from = min(first.x, second.x)
    y_from = min(first.y, second.y)
    x_to = max(first.right, second.right)
    y_to = max(first.bottom, second.bottom)
    return region_from_bounds(x_from, x_to, y_from, y_to)


def region_grid(initial: Region, gap_x: int, gap_y: int, columns: int, rows: int) -> List[Region]:
    """Repeat ``initial`` over a grid, row by row, with the given gaps."""
    return [
        Region(
            initial.x + c * (initial.w + gap_x),
            initial.y + r * (initial.h + gap_y),
            initial.w,
            initial.h,
        )
        for r in range(rows)
        for c in range(columns)
    ]


def crop(source: RasterBuffer, region: Region) -> RasterBuffer:
    return source.crop(region)


def crop_many(source: RasterBuffer, regions: Sequence[Region]) -> List[RasterBuffer]:
    return [source.crop(r) for r in regions]


def scale_to(source: RasterBuffer, target_width: int, target_height: int) -> RasterBuffer:
    """Scale an image so it covers at least ``target_width x target_height``.

    The aspect ratio is kept, so one side may end up larger than requested.
    """
    if source.width == 0 or source.height == 0:
        raise ValueError(f"Cannot scale empty buffer {source!r}")

    factor = max(target_width / source.width, target_height / source.height)
    new_width = math.ceil(source.width * factor)
    new_height = math.ceil(source.height * factor)

    resized = cv2.resize(
        source.pixels, (new_width, new_height), interpolation=cv2.INTER_LINEAR
    )
    return RasterBuffer(resized)
