"""Processing configuration: defaults and the per-run transform settings."""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


# Bleed added around each card, in pixels (1/8" at 288 DPI)
DEFAULT_BLEED_PX = 36

DEFAULT_FILL_COLOR = "#000000"

# Processed images are always written losslessly
OUTPUT_EXT = ".png"

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff"}


class BleedMode(str, Enum):
    MIRROR = "mirror"
    SOLID = "solid"
    NONE = "none"


@dataclass
class ProcessConfig:
    """Which transforms to chain over each input image, and where to write."""
    sides_control: Optional[Path] = None     # control image for extend_sides
    corners_control: Optional[Path] = None   # control image for extend_corners
    bleed: int = DEFAULT_BLEED_PX
    bleed_mode: BleedMode = BleedMode.MIRROR
    fill_color: str = DEFAULT_FILL_COLOR     # only used by BleedMode.SOLID
    overwrite: bool = False                  # re-process files whose output exists
    output_dir: Path = Path("output")
    output_ext: str = OUTPUT_EXT

    def __post_init__(self):
        if self.sides_control is not None:
            self.sides_control = Path(self.sides_control)
        if self.corners_control is not None:
            self.corners_control = Path(self.corners_control)
        self.output_dir = Path(self.output_dir)
        self.bleed_mode = BleedMode(self.bleed_mode)
        if self.bleed < 0:
            raise ValueError(f"bleed must be non-negative, got {self.bleed}")

    def ensure_dirs(self):
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> dict:
        return {
            "sides_control": str(self.sides_control) if self.sides_control else None,
            "corners_control": str(self.corners_control) if self.corners_control else None,
            "bleed": int(self.bleed),
            "bleed_mode": self.bleed_mode.value,
            "fill_color": self.fill_color,
            "overwrite": bool(self.overwrite),
            "output_dir": str(self.output_dir),
            "output_ext": self.output_ext,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ProcessConfig":
        return cls(
            sides_control=d.get("sides_control"),
            corners_control=d.get("corners_control"),
            bleed=d.get("bleed", DEFAULT_BLEED_PX),
            bleed_mode=BleedMode(d.get("bleed_mode", "mirror")),
            fill_color=d.get("fill_color", DEFAULT_FILL_COLOR),
            overwrite=d.get("overwrite", False),
            output_dir=Path(d.get("output_dir", "output")),
            output_ext=d.get("output_ext", OUTPUT_EXT),
        )

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ProcessConfig":
        with open(path) as f:
            return cls.from_dict(json.load(f))
