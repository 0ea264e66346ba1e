"""Tests for region helpers and scaling."""

from __future__ import annotations

import numpy as np
import pytest

from card_refill.crop import (
    crop,
    crop_many,
    merge_regions,
    pad_region,
    region_from_bounds,
    region_grid,
    regions_between_lines,
    regions_between_shared_lines,
    scale_to,
)
from card_refill.raster import RasterBuffer, Region


def _make_gradient(width: int = 8, height: int = 6) -> RasterBuffer:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    for y in range(height):
        for x in range(width):
            pixels[y, x] = (x * 10, y * 10, 0, 255)
    return RasterBuffer(pixels)


class TestRegions:
    def test_from_bounds(self):
        assert region_from_bounds(2, 5, 1, 4) == Region(2, 1, 3, 3)

    def test_between_lines(self):
        regions = regions_between_lines([1, 2, 3, 4], [5, 6, 7, 8])
        assert regions == [
            Region(5, 1, 1, 1),
            Region(7, 1, 1, 1),
            Region(5, 3, 1, 1),
            Region(7, 3, 1, 1),
        ]

    def test_between_lines_odd(self):
        with pytest.raises(ValueError):
            regions_between_lines([1, 2, 3], [5, 6])

    def test_between_shared_lines(self):
        regions = regions_between_shared_lines([1, 2, 3], [5, 6, 7])
        assert regions == [
            Region(5, 1, 1, 1),
            Region(6, 1, 1, 1),
            Region(5, 2, 1, 1),
            Region(6, 2, 1, 1),
        ]

    def test_between_shared_lines_too_few(self):
        with pytest.raises(ValueError):
            regions_between_shared_lines([1, 2], [5, 6, 7])

    def test_pad(self):
        assert pad_region(Region(10, 10, 4, 2), 3) == Region(7, 7, 10, 8)

    def test_merge(self):
        assert merge_regions(Region(0, 5, 2, 2), Region(4, 1, 3, 2)) == Region(0, 1, 7, 6)

    def test_grid(self):
        grid = region_grid(Region(1, 2, 10, 20), 5, 3, columns=2, rows=2)
        assert grid == [
            Region(1, 2, 10, 20),
            Region(16, 2, 10, 20),
            Region(1, 25, 10, 20),
            Region(16, 25, 10, 20),
        ]


class TestCrop:
    def test_crop(self):
        img = _make_gradient()
        part = crop(img, Region(3, 2, 2, 2))
        assert part.size == (2, 2)
        assert part.get_pixel(1, 1) == (40, 30, 0, 255)

    def test_crop_many(self):
        img = _make_gradient()
        parts = crop_many(img, regions_between_shared_lines([0, 3, 6], [0, 4, 8]))
        assert [p.size for p in parts] == [(4, 3)] * 4
        assert parts[3].get_pixel(0, 0) == img.get_pixel(4, 3)


class TestScaleTo:
    def test_covers_target_keeping_aspect(self):
        img = RasterBuffer.blank(10, 20, (50, 60, 70, 255))
        out = scale_to(img, 40, 40)
        assert out.size == (40, 80)
        assert out.get_pixel(20, 40) == (50, 60, 70, 255)

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            scale_to(RasterBuffer.blank(0, 3), 10, 10)
