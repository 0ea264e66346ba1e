"""Command line interface for the card refill transforms.

Usage:
    python -m card_refill.cli bleed          <input> -o <output>  [--padding 36] [--solid '#000']
    python -m card_refill.cli extend-sides   <input> -o <output>  --control <edges.png>
    python -m card_refill.cli extend-corners <input> -o <output>  --control <corners.png>
    python -m card_refill.cli process        <input> -o <output>  [--sides-control <png>]
                                             [--corners-control <png>] [--bleed 36]
                                             [--bleed-mode mirror|solid|none] [--config <json>]

Each subcommand writes one PNG per input image into the output directory and
skips images whose output already exists unless ``--overwrite`` is given.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from card_refill.config import (
    DEFAULT_BLEED_PX,
    DEFAULT_FILL_COLOR,
    IMAGE_EXTENSIONS,
    BleedMode,
    ProcessConfig,
)
from card_refill.pipeline import process_all
from card_refill.refill import ControlImageError

logger = logging.getLogger("card_refill")


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _gather_images(inputs: List[str], recursive: bool = False) -> List[Path]:
    """Collect image paths from file/directory arguments."""
    paths = []
    for inp in inputs:
        p = Path(inp)
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS:
            paths.append(p)
        elif p.is_dir():
            candidates = p.rglob("*") if recursive else p.glob("*")
            paths.extend(sorted(
                c for c in candidates
                if c.is_file() and c.suffix.lower() in IMAGE_EXTENSIONS
            ))
        else:
            logger.warning("Skipping %s: not an image file or directory", inp)
    return paths


def _run(args, config: ProcessConfig) -> int:
    image_paths = _gather_images(args.inputs, recursive=args.recursive)
    if not image_paths:
        logger.error("No images found in %s", args.inputs)
        return 1

    try:
        results = process_all(image_paths, config)
    except ControlImageError as e:
        logger.error("Invalid control image: %s", e)
        return 1
    except OSError as e:
        logger.error("Could not load control image: %s", e)
        return 1

    counts = {}
    for r in results:
        counts[r.status] = counts.get(r.status, 0) + 1
    logger.info(
        "Done: %s -> %s",
        ", ".join(f"{n} {status}" for status, n in sorted(counts.items())),
        config.output_dir,
    )
    return 1 if counts.get("failed") else 0


# ---- Subcommands ----

def cmd_bleed(args):
    config = ProcessConfig(
        bleed=args.padding,
        bleed_mode=BleedMode.SOLID if args.solid else BleedMode.MIRROR,
        fill_color=args.solid or DEFAULT_FILL_COLOR,
        overwrite=args.overwrite,
        output_dir=Path(args.output),
    )
    return _run(args, config)


def cmd_extend_sides(args):
    config = ProcessConfig(
        sides_control=Path(args.control),
        bleed_mode=BleedMode.NONE,
        overwrite=args.overwrite,
        output_dir=Path(args.output),
    )
    return _run(args, config)


def cmd_extend_corners(args):
    config = ProcessConfig(
        corners_control=Path(args.control),
        bleed_mode=BleedMode.NONE,
        overwrite=args.overwrite,
        output_dir=Path(args.output),
    )
    return _run(args, config)


def cmd_process(args):
    if args.config:
        config = ProcessConfig.from_json(args.config)
    else:
        config = ProcessConfig()

    # explicit flags win over the config file
    if args.sides_control:
        config.sides_control = Path(args.sides_control)
    if args.corners_control:
        config.corners_control = Path(args.corners_control)
    if args.bleed is not None:
        config.bleed = args.bleed
    if args.bleed_mode:
        config.bleed_mode = BleedMode(args.bleed_mode)
    if args.fill_color:
        config.fill_color = args.fill_color
    if args.overwrite:
        config.overwrite = True
    config.output_dir = Path(args.output)
    return _run(args, config)


# ---- Argument parser ----

def _add_common(p: argparse.ArgumentParser):
    p.add_argument("inputs", nargs="+", help="Image files or directories")
    p.add_argument("-o", "--output", required=True, help="Output directory")
    p.add_argument("--overwrite", action="store_true",
                   help="Re-process images whose output already exists")
    p.add_argument("--recursive", "-r", action="store_true")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="card-refill",
        description="Rebuild clipped card borders and add print bleed.",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # -- bleed --
    p_bleed = sub.add_parser("bleed", help="Add mirrored (or solid) bleed")
    _add_common(p_bleed)
    p_bleed.add_argument("--padding", type=_non_negative_int, default=DEFAULT_BLEED_PX,
                         help=f"Bleed size in pixels (default: {DEFAULT_BLEED_PX})")
    p_bleed.add_argument("--solid", default=None, metavar="COLOR",
                         help="Fill the bleed with this colour instead of mirroring")
    p_bleed.set_defaults(func=cmd_bleed)

    # -- extend-sides --
    p_sides = sub.add_parser("extend-sides", help="Stretch edge pixels outward")
    _add_common(p_sides)
    p_sides.add_argument("--control", required=True,
                         help="Control image (red=left, green=up, blue=right, other=down)")
    p_sides.set_defaults(func=cmd_extend_sides)

    # -- extend-corners --
    p_corners = sub.add_parser("extend-corners", help="Radially refill clipped corners")
    _add_common(p_corners)
    p_corners.add_argument("--control", required=True,
                           help="Control image (green=center, pink=edge, black=target)")
    p_corners.set_defaults(func=cmd_extend_corners)

    # -- process --
    p_process = sub.add_parser("process",
                               help="Run extend-sides -> extend-corners -> bleed")
    _add_common(p_process)
    p_process.add_argument("--config", default=None, help="Process config JSON file")
    p_process.add_argument("--sides-control", default=None)
    p_process.add_argument("--corners-control", default=None)
    p_process.add_argument("--bleed", type=_non_negative_int, default=None,
                           help=f"Bleed size in pixels (default: {DEFAULT_BLEED_PX})")
    p_process.add_argument("--bleed-mode", default=None,
                           choices=[m.value for m in BleedMode])
    p_process.add_argument("--fill-color", default=None,
                           help="Bleed colour for --bleed-mode solid")
    p_process.set_defaults(func=cmd_process)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
