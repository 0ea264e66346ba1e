"""End-to-end tests for the processing chain.

Runs the configured steps (sides -> corners -> bleed) over synthetic cards
written to disk and checks outputs, skipping and failure handling.
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from card_refill.config import BleedMode, ProcessConfig
from card_refill.pipeline import (
    apply_steps,
    build_steps,
    copy_newer,
    get_out_path,
    process_all,
    process_file,
)
from card_refill.raster import RasterBuffer
from card_refill.refill import CENTER_COLOR, MissingCenterError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_card(width: int = 8, height: int = 6) -> np.ndarray:
    rng = np.random.RandomState(42)
    pixels = rng.randint(0, 256, (height, width, 4), dtype=np.uint8)
    pixels[:, :, 3] = 255
    return pixels


def _save(path: Path, pixels: np.ndarray) -> Path:
    Image.fromarray(pixels).save(path)
    return path


def _sides_control(width: int = 8, height: int = 6) -> RasterBuffer:
    """Extend column 1 to the left on every row."""
    control = RasterBuffer.blank(width, height)
    for y in range(height):
        control.set_pixel(1, y, (255, 0, 0, 255))
    return control


def _corners_control(width: int = 8, height: int = 6) -> RasterBuffer:
    control = RasterBuffer.blank(width, height)
    for x, y in [(0, 0), (4, 0), (0, 3), (4, 3)]:
        control.set_pixel(x, y, CENTER_COLOR)
    return control


# ---------------------------------------------------------------------------
# Tests: config
# ---------------------------------------------------------------------------


class TestProcessConfig:
    def test_dict_round_trip(self):
        cfg = ProcessConfig(
            sides_control=Path("edges.png"),
            bleed=12,
            bleed_mode=BleedMode.SOLID,
            fill_color="#fff",
            output_dir=Path("out"),
        )
        again = ProcessConfig.from_dict(cfg.to_dict())
        assert again == cfg

    def test_from_json(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"bleed": 4, "bleed_mode": "none"}))
        cfg = ProcessConfig.from_json(path)
        assert cfg.bleed == 4
        assert cfg.bleed_mode is BleedMode.NONE
        assert cfg.sides_control is None

    def test_negative_bleed(self):
        with pytest.raises(ValueError):
            ProcessConfig(bleed=-1)


# ---------------------------------------------------------------------------
# Tests: steps
# ---------------------------------------------------------------------------


class TestSteps:
    def test_order(self):
        cfg = ProcessConfig(bleed=2)
        steps = build_steps(cfg, _sides_control(), _corners_control())
        assert [name for name, _ in steps] == ["extend_sides", "extend_corners", "bleed"]

    def test_loads_controls_from_paths(self, tmp_path):
        path = _sides_control().save(tmp_path / "edges.png")
        steps = build_steps(ProcessConfig(sides_control=path, bleed_mode=BleedMode.NONE))
        assert [name for name, _ in steps] == ["extend_sides"]

    def test_solid_bleed(self):
        steps = build_steps(ProcessConfig(bleed=1, bleed_mode="solid", fill_color="#00ff00"))
        out = apply_steps(RasterBuffer(_make_card()), steps)
        assert out.size == (10, 8)
        assert out.get_pixel(0, 0) == (0, 255, 0, 255)

    def test_chain(self):
        card = RasterBuffer(_make_card())
        steps = build_steps(ProcessConfig(bleed=2), _sides_control(), _corners_control())
        out = apply_steps(card.copy(), steps)
        assert out.size == (12, 10)
        # column 0 took the colour of column 1, then got mirrored into the bleed
        assert out.get_pixel(2, 2) == card.get_pixel(1, 0)
        assert out.get_pixel(1, 2) == card.get_pixel(1, 0)


# ---------------------------------------------------------------------------
# Tests: files
# ---------------------------------------------------------------------------


class TestFiles:
    def test_out_path_is_png(self, tmp_path):
        assert get_out_path(Path("in/card.jpg"), tmp_path) == tmp_path / "card.png"

    def test_copy_newer(self, tmp_path):
        src = tmp_path / "a.txt"
        dst = tmp_path / "sub" / "b.txt"
        src.write_text("first")
        assert copy_newer(src, dst) is True
        src.write_text("second")
        assert copy_newer(src, dst) is False
        assert dst.read_text() == "first"

    def test_process_file_skips_existing(self, tmp_path):
        src = _save(tmp_path / "card.png", _make_card())
        out = tmp_path / "out" / "card.png"
        steps = build_steps(ProcessConfig(bleed=1))

        first = process_file(src, out, steps)
        assert first.status == "processed"
        assert (first.width, first.height) == (10, 8)

        second = process_file(src, out, steps)
        assert second.status == "skipped"

        third = process_file(src, out, steps, overwrite=True)
        assert third.status == "processed"

    def test_no_steps_copies_through(self, tmp_path):
        src = _save(tmp_path / "card.bmp", _make_card()[:, :, :3])
        result = process_file(src, tmp_path / "out" / "card.png", [])
        assert result.status == "copied"
        assert result.output_path.suffix == ".bmp"
        assert result.output_path.read_bytes() == src.read_bytes()

    def test_process_all_reports_failures(self, tmp_path):
        good = _save(tmp_path / "good.png", _make_card())
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"not an image")
        cfg = ProcessConfig(bleed=2, output_dir=tmp_path / "out")

        results = process_all([good, bad], cfg)
        assert [r.status for r in results] == ["processed", "failed"]
        assert results[1].error
        assert RasterBuffer.load(tmp_path / "out" / "good.png").size == (12, 10)

    def test_missing_center_aborts_batch(self, tmp_path):
        good = _save(tmp_path / "good.png", _make_card())
        cfg = ProcessConfig(bleed_mode=BleedMode.NONE, output_dir=tmp_path / "out")
        steps = build_steps(cfg, corners_control=RasterBuffer.blank(8, 6))
        with pytest.raises(MissingCenterError):
            process_all([good], cfg, steps)
        assert not (tmp_path / "out" / "good.png").exists()

    def test_failed_save_leaves_no_partial_output(self, tmp_path, monkeypatch):
        src = _save(tmp_path / "card.png", _make_card())
        out_dir = tmp_path / "out"
        cfg = ProcessConfig(bleed=1, output_dir=out_dir)

        def truncated_save(self, fp, *args, **kwargs):
            Path(fp).write_bytes(b"\x89PNG\r\n")
            raise OSError("disk full")

        with monkeypatch.context() as m:
            m.setattr(Image.Image, "save", truncated_save)
            results = process_all([src], cfg)

        assert [r.status for r in results] == ["failed"]
        assert list(out_dir.iterdir()) == []

        # the rerun is not mistaken for an already processed file
        again = process_all([src], cfg)
        assert [r.status for r in again] == ["processed"]
        assert RasterBuffer.load(out_dir / "card.png").size == (10, 8)
