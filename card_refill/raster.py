"""In-memory RGBA raster buffers.

A ``RasterBuffer`` wraps a ``(height, width, 4)`` ``uint8`` numpy array and is
the substrate every transform in this package reads and writes.  Decoding and
encoding image files is delegated to Pillow.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image

Color = Tuple[int, int, int, int]

CHANNELS = 4


@dataclass(frozen=True)
class Region:
    """A rectangle given by its top-left corner and its size."""
    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h


def _as_rgba(arr: np.ndarray) -> np.ndarray:
    """Normalise a grey, RGB or RGBA array to contiguous RGBA uint8."""
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Unsupported pixel array shape: {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr.astype(np.uint8), alpha], axis=2)
    return np.ascontiguousarray(arr, dtype=np.uint8)


class RasterBuffer:
    """Width/height addressed RGBA8 pixel storage.

    Pixels are addressed as ``(x, y)`` from the top-left corner.  The backing
    array is indexed ``pixels[y, x, channel]``.
    """

    def __init__(self, pixels: np.ndarray):
        self.pixels = _as_rgba(pixels)

    @classmethod
    def blank(cls, width: int, height: int, color: Color = (0, 0, 0, 0)) -> "RasterBuffer":
        if width < 0 or height < 0:
            raise ValueError(f"Invalid buffer size {width}x{height}")
        pixels = np.empty((height, width, CHANNELS), dtype=np.uint8)
        pixels[:, :] = color
        return cls(pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def __repr__(self) -> str:
        return f"RasterBuffer({self.width}x{self.height})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None  # mutable

    # ---- pixel access ----

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer"
            )

    def get_pixel(self, x: int, y: int) -> Color:
        self._check_bounds(x, y)
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def set_pixel(self, x: int, y: int, color) -> None:
        self._check_bounds(x, y)
        self.pixels[y, x] = color

    def fill(self, color) -> "RasterBuffer":
        self.pixels[:, :] = color
        return self

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(self.pixels.copy())

    # ---- windowing ----

    def crop(self, region: Region) -> "RasterBuffer":
        """Return a copy of ``region``, which must lie inside this buffer."""
        if (
            region.w < 0 or region.h < 0
            or region.x < 0 or region.y < 0
            or region.right > self.width or region.bottom > self.height
        ):
            raise ValueError(f"{region} outside {self.width}x{self.height} buffer")
        return RasterBuffer(
            self.pixels[region.y:region.bottom, region.x:region.right].copy()
        )

    def paste(self, other: "RasterBuffer", x: int, y: int) -> "RasterBuffer":
        """Copy ``other`` verbatim with its top-left corner at ``(x, y)``.

        Parts falling outside this buffer are clipped, the way a canvas clips
        drawing.  Alpha is replaced, not composited.
        """
        dst_x0 = max(x, 0)
        dst_y0 = max(y, 0)
        dst_x1 = min(x + other.width, self.width)
        dst_y1 = min(y + other.height, self.height)
        if dst_x0 >= dst_x1 or dst_y0 >= dst_y1:
            return self
        self.pixels[dst_y0:dst_y1, dst_x0:dst_x1] = other.pixels[
            dst_y0 - y:dst_y1 - y, dst_x0 - x:dst_x1 - x
        ]
        return self

    # ---- codec ----

    @classmethod
    def from_image(cls, image: Image.Image) -> "RasterBuffer":
        return cls(np.array(image.convert("RGBA")))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    @classmethod
    def from_bytes(cls, data: bytes) -> "RasterBuffer":
        with Image.open(io.BytesIO(data)) as image:
            return cls.from_image(image)

    def to_bytes(self, format: str = "PNG") -> bytes:
        out = io.BytesIO()
        self.to_image().save(out, format=format)
        return out.getvalue()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RasterBuffer":
        with Image.open(path) as image:
            return cls.from_image(image)

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_image().save(path)
        return path
