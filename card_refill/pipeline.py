"""Chain the refill transforms over image files.

Each input image runs through the configured steps in a fixed order:
extend sides -> extend corners -> bleed.  Outputs that already exist are
skipped unless overwriting is requested, so an interrupted batch can be
resumed cheaply.
"""

import logging
import shutil
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import UnidentifiedImageError

from .bleed import add_bleed, add_bleed_solid
from .config import OUTPUT_EXT, BleedMode, ProcessConfig
from .raster import RasterBuffer
from .refill import extend_corners, extend_sides

logger = logging.getLogger(__name__)

Transform = Callable[[RasterBuffer], RasterBuffer]
Step = Tuple[str, Transform]


@dataclass
class ProcessedImage:
    """Outcome of running the steps over one file."""
    source_path: Path
    output_path: Path
    status: str                # "processed", "skipped", "copied" or "failed"
    width: int = 0
    height: int = 0
    error: str = ""


def build_steps(
    config: ProcessConfig,
    sides_control: Optional[RasterBuffer] = None,
    corners_control: Optional[RasterBuffer] = None,
) -> List[Step]:
    """Assemble the ordered transform steps described by ``config``.

    Control images are loaded from the paths in ``config`` unless given.
    """
    if sides_control is None and config.sides_control:
        sides_control = RasterBuffer.load(config.sides_control)
    if corners_control is None and config.corners_control:
        corners_control = RasterBuffer.load(config.corners_control)

    steps: List[Step] = []
    if sides_control is not None:
        # extend_sides works in place; the loaded source is ours to mutate
        steps.append(("extend_sides", partial(_extend_sides_with, sides_control)))
    if corners_control is not None:
        steps.append(("extend_corners", partial(_extend_corners_with, corners_control)))

    if config.bleed_mode == BleedMode.MIRROR:
        steps.append(("bleed", partial(_mirror_bleed, padding=config.bleed)))
    elif config.bleed_mode == BleedMode.SOLID:
        steps.append((
            "bleed_solid",
            partial(_solid_bleed, padding=config.bleed, fill=config.fill_color),
        ))

    logger.debug("Steps: %s", [name for name, _ in steps])
    return steps


def _extend_sides_with(control: RasterBuffer, image: RasterBuffer) -> RasterBuffer:
    return extend_sides(image, control)


def _extend_corners_with(control: RasterBuffer, image: RasterBuffer) -> RasterBuffer:
    return extend_corners(image, control)


def _mirror_bleed(image: RasterBuffer, padding: int) -> RasterBuffer:
    return add_bleed(image, padding)


def _solid_bleed(image: RasterBuffer, padding: int, fill: str) -> RasterBuffer:
    return add_bleed_solid(image, padding, fill)


def apply_steps(image: RasterBuffer, steps: Sequence[Step]) -> RasterBuffer:
    for name, transform in steps:
        image = transform(image)
        logger.debug("  %s -> %dx%d", name, image.width, image.height)
    return image


def get_out_path(in_path: Path, output_dir: Path, ext: str = OUTPUT_EXT) -> Path:
    """Output location for ``in_path``: same stem, always ``ext``."""
    return Path(output_dir) / (Path(in_path).stem + ext)


def copy_newer(source: Path, target: Path) -> bool:
    """Copy ``source`` to ``target`` unless the target already exists."""
    target = Path(target)
    if target.exists():
        return False
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)
    return True


def process_file(
    in_path: Path,
    out_path: Path,
    steps: Sequence[Step],
    overwrite: bool = False,
) -> ProcessedImage:
    """Run ``steps`` over one image and save the result to ``out_path``.

    With no steps the file is copied through untouched, keeping its own
    extension.
    """
    in_path = Path(in_path)
    out_path = Path(out_path)

    if not steps:
        out_path = out_path.with_suffix(in_path.suffix)
        if overwrite and out_path.exists():
            out_path.unlink()
        copied = copy_newer(in_path, out_path)
        return ProcessedImage(in_path, out_path, "copied" if copied else "skipped")

    if out_path.exists() and not overwrite:
        logger.debug("Skipping %s, %s exists", in_path.name, out_path)
        return ProcessedImage(in_path, out_path, "skipped")

    image = apply_steps(RasterBuffer.load(in_path), steps)
    # write beside the target, then swap in
    tmp_path = out_path.with_name(f".{out_path.stem}.tmp{out_path.suffix}")
    try:
        image.save(tmp_path)
        tmp_path.replace(out_path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise
    return ProcessedImage(in_path, out_path, "processed", image.width, image.height)


def process_all(
    paths: Sequence[Path],
    config: ProcessConfig,
    steps: Optional[Sequence[Step]] = None,
) -> List[ProcessedImage]:
    """Process every path with the steps from ``config``.

    Unreadable files are logged and reported as failed.  Control image
    errors abort the whole batch.
    """
    if steps is None:
        steps = build_steps(config)
    config.ensure_dirs()

    results = []
    for path in paths:
        out_path = get_out_path(path, config.output_dir, config.output_ext)
        try:
            result = process_file(path, out_path, steps, overwrite=config.overwrite)
        except (OSError, UnidentifiedImageError) as e:
            logger.warning("Failed to process %s: %s", path, e)
            result = ProcessedImage(Path(path), out_path, "failed", error=str(e))
        else:
            logger.info("%s %s -> %s", result.status.capitalize(), Path(path).name, result.output_path)
        results.append(result)
    return results
