"""Save and load levels as JSON or as PNG previews with embedded metadata.

A PNG level file is a rendered thumbnail of the board with the full level
JSON stored in a tEXt chunk (key: ``pressure_level``), so the same file is
both a shareable picture and a loadable level. JSON files may hold a single
level, a list of levels, or ``{"levels": [...]}``. Both full and compact
(``"grid": [cols, rows]``) level dicts are accepted on load.

Used by ``cli.py`` for the ``verify``, ``solve`` and ``generate`` commands.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from PIL import Image, ImageDraw
from PIL.PngImagePlugin import PngInfo

from .compact import hydrate_level
from .types import CRUSHED, EMPTY, NODE, OFFSETS, PATH, WALL, Level

METADATA_KEY = "pressure_level"

KIND_COLORS = {
    WALL: (55, 60, 72),
    PATH: (30, 34, 44),
    NODE: (34, 197, 94),
    CRUSHED: (127, 29, 29),
    EMPTY: (18, 20, 26),
}
ROTATABLE_PIPE = (249, 115, 22)
FIXED_PIPE = (148, 163, 184)
DECOY_PIPE = (234, 179, 8)


def level_from_dict(d: dict) -> Level:
    """Build a Level from either the full or the compact dict form."""
    if "grid" in d:
        return hydrate_level(d)
    return Level.from_dict(d)


def render_preview(level: Level, cell_px: int = 24) -> Image.Image:
    """Draw one square per tile with pipe stubs toward each opening."""
    size = level.grid_size * cell_px
    img = Image.new("RGB", (size, size), KIND_COLORS[EMPTY])
    draw = ImageDraw.Draw(img)
    half = cell_px // 2
    width = max(2, cell_px // 5)
    for t in level.tiles:
        x0, y0 = t.x * cell_px, t.y * cell_px
        draw.rectangle(
            [x0 + 1, y0 + 1, x0 + cell_px - 2, y0 + cell_px - 2],
            fill=KIND_COLORS[t.kind],
        )
        if not t.connections or t.kind == NODE:
            continue
        if t.is_decoy:
            color = DECOY_PIPE
        elif t.can_rotate:
            color = ROTATABLE_PIPE
        else:
            color = FIXED_PIPE
        cx, cy = x0 + half, y0 + half
        for d in t.connections:
            dx, dy = OFFSETS[d]
            draw.line(
                [cx, cy, cx + dx * half, cy + dy * half],
                fill=color,
                width=width,
            )
    return img


def save_level_png(level: Level, path: str | Path, cell_px: int = 24) -> None:
    """Save a rendered preview with the level JSON embedded as a tEXt chunk."""
    info = PngInfo()
    info.add_text(METADATA_KEY, json.dumps(level.to_dict()))
    render_preview(level, cell_px).save(path, pnginfo=info)


def load_level_png(path: str | Path) -> Level:
    """Load a level from a PNG file's tEXt metadata.

    Raises ValueError if the PNG does not contain level metadata.
    """
    with Image.open(path) as img:
        text_data = getattr(img, "text", None)
        if not text_data or METADATA_KEY not in text_data:
            raise ValueError(
                "PNG file does not contain level metadata "
                f"(missing '{METADATA_KEY}' chunk)"
            )
        return level_from_dict(json.loads(text_data[METADATA_KEY]))


def save_level_json(level: Level, path: str | Path) -> None:
    with open(path, "w") as f:
        json.dump(level.to_dict(), f, indent=2)


def save_levels_json(levels: Sequence[Level], path: str | Path) -> None:
    with open(path, "w") as f:
        json.dump([lv.to_dict() for lv in levels], f, indent=2)


def load_levels_json(path: str | Path) -> list[Level]:
    """Load every level in a JSON file (single level, list, or wrapper)."""
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict) and "levels" in data:
        data = data["levels"]
    if isinstance(data, dict):
        data = [data]
    return [level_from_dict(d) for d in data]


def load_level_json(path: str | Path) -> Level:
    levels = load_levels_json(path)
    if len(levels) != 1:
        raise ValueError(f"{path} holds {len(levels)} levels, expected one")
    return levels[0]


def load_levels(path: str | Path) -> list[Level]:
    """Load levels from a file, dispatching by extension.

    Supports .png (one level from embedded metadata) and .json.
    Raises ValueError for unsupported extensions.
    """
    lower = str(path).lower()
    if lower.endswith(".png"):
        return [load_level_png(path)]
    elif lower.endswith(".json"):
        return load_levels_json(path)
    else:
        raise ValueError(f"Unsupported file extension: {path}")


def load_level(path: str | Path) -> Level:
    lower = str(path).lower()
    if lower.endswith(".png"):
        return load_level_png(path)
    elif lower.endswith(".json"):
        return load_level_json(path)
    else:
        raise ValueError(f"Unsupported file extension: {path}")


def save_level(level: Level, path: str | Path) -> None:
    lower = str(path).lower()
    if lower.endswith(".png"):
        save_level_png(level, path)
    elif lower.endswith(".json"):
        save_level_json(level, path)
    else:
        raise ValueError(f"Unsupported file extension: {path}")
