"""Tests for level_io save/load helpers."""

from __future__ import annotations

import json

import pytest
from PIL import Image

from pressure.compact import dehydrate_level
from pressure.generate import generate
from pressure.level_io import (
    METADATA_KEY,
    load_level,
    load_level_json,
    load_level_png,
    load_levels,
    render_preview,
    save_level,
    save_level_png,
    save_levels_json,
)
from pressure.levels import CLASSIC_LEVELS
from pressure.prng import PCG32

FIRST = CLASSIC_LEVELS[0]


def test_save_and_load_png(tmp_path):
    """Save a level in a PNG, load it back, and verify equality."""
    path = tmp_path / "first.png"
    save_level_png(FIRST, path)
    assert load_level_png(path) == FIRST
    with Image.open(path) as img:
        assert img.size == (5 * 24, 5 * 24)


def test_generated_level_keeps_solution_and_decoys(tmp_path):
    level = generate(7, 2, "hard", decoy_override=3, rng=PCG32(4))
    path = tmp_path / "gen.png"
    save_level_png(level, path)
    loaded = load_level(path)
    assert loaded == level
    assert loaded.solution == level.solution


def test_load_png_missing_chunk(tmp_path):
    """A plain PNG without metadata raises ValueError."""
    path = tmp_path / "plain.png"
    Image.new("RGB", (10, 10), "red").save(path)
    with pytest.raises(ValueError, match=METADATA_KEY):
        load_level_png(path)


def test_render_preview_colors():
    img = render_preview(FIRST, cell_px=20)
    assert img.size == (100, 100)
    # Node at (1, 2) is filled green; wall corner is grey.
    assert img.getpixel((1 * 20 + 3, 2 * 20 + 3)) == (34, 197, 94)
    assert img.getpixel((3, 3)) == (55, 60, 72)
    # Vertical pipe stub at (2, 2) runs through the center column.
    assert img.getpixel((2 * 20 + 10, 2 * 20 + 4)) == (249, 115, 22)


def test_json_single_and_batch(tmp_path):
    path = tmp_path / "first.json"
    save_level(FIRST, path)
    assert load_level_json(path) == FIRST
    assert load_levels(path) == [FIRST]

    batch = tmp_path / "classic.json"
    save_levels_json(CLASSIC_LEVELS, batch)
    assert load_levels(batch) == list(CLASSIC_LEVELS)
    with pytest.raises(ValueError):
        load_level(batch)


def test_json_wrapper_and_compact_form(tmp_path):
    path = tmp_path / "pack.json"
    path.write_text(
        json.dumps({"levels": [dehydrate_level(lv) for lv in CLASSIC_LEVELS[:3]]})
    )
    assert load_levels(path) == list(CLASSIC_LEVELS[:3])


def test_unsupported_extension(tmp_path):
    with pytest.raises(ValueError, match="Unsupported"):
        load_level(tmp_path / "level.txt")
    with pytest.raises(ValueError, match="Unsupported"):
        save_level(FIRST, tmp_path / "level.bmp")
