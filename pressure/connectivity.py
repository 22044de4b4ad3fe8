"""Tile graph and connectivity checks.

The pipe network is an implicit graph: tiles at ``p`` and ``p + d`` are
linked iff neither is a wall/crushed tile, ``tile(p)`` opens toward ``d`` and
``tile(p + d)`` opens back toward ``opposite(d)``. A one-sided opening never
forms a link.

``is_connected`` is the win test. It is called after every tap and many
thousands of times inside ``solver.py``, so the position index is built once
per call and the traversal is linear in tile count. The solver reuses the
lower-level ``goals_linked`` directly on a connection index it patches per
configuration, skipping ``Tile`` construction entirely.
"""

from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Iterable, Mapping, Sequence

from .types import (
    BLOCKING_KINDS,
    OFFSETS,
    OPPOSITE,
    Position,
    Tile,
    rotate_direction,
)

ConnectionIndex = Mapping[Position, Sequence[str]]

STRAIGHT = "straight"
CORNER = "corner"


def rotate_connections(conns: Iterable[str], steps: int) -> tuple[str, ...]:
    """Rotate every opening clockwise by ``steps`` quarter turns."""
    return tuple(rotate_direction(d, steps) for d in conns)


def shape_class(conns: Iterable[str]) -> str:
    """Name the rotation class a connection set belongs to.

    Rotation never moves a tile between classes, so two sets can be rotated
    into each other iff they share a class.
    """
    s = frozenset(conns)
    n = len(s)
    if n == 2:
        if s in (frozenset(("up", "down")), frozenset(("left", "right"))):
            return STRAIGHT
        return CORNER
    return {0: "blank", 1: "end", 3: "tee", 4: "cross"}[n]


def build_tile_index(tiles: Iterable[Tile]) -> dict[Position, Tile]:
    return {t.pos: t for t in tiles}


def connection_index(tiles: Iterable[Tile]) -> dict[Position, tuple[str, ...]]:
    """Map each linkable position to its openings.

    Wall and crushed tiles are left out, which is what makes them
    non-adjacent to everything.
    """
    return {t.pos: t.connections for t in tiles if t.kind not in BLOCKING_KINDS}


def reachable(index: ConnectionIndex, start: Position) -> set[Position]:
    """BFS over reciprocated openings from ``start``."""
    visited = {start}
    queue = deque([start])
    while queue:
        x, y = queue.popleft()
        conns = index.get((x, y))
        if not conns:
            continue
        for d in conns:
            dx, dy = OFFSETS[d]
            nxt = (x + dx, y + dy)
            if nxt in visited:
                continue
            neighbor = index.get(nxt)
            if neighbor is not None and OPPOSITE[d] in neighbor:
                visited.add(nxt)
                queue.append(nxt)
    return visited


def goals_linked(index: ConnectionIndex, goals: Sequence[Position]) -> bool:
    if len(goals) < 2:
        return True
    visited = reachable(index, tuple(goals[0]))
    return all(tuple(g) in visited for g in goals)


def is_connected(tiles: Iterable[Tile], goals: Sequence[Position]) -> bool:
    """True if every goal is reachable from the first one.

    Fewer than two goals is trivially connected.
    """
    if len(goals) < 2:
        return True
    return goals_linked(connection_index(tiles), goals)


def connected_tiles(
    tiles: Iterable[Tile], goals: Sequence[Position]
) -> set[Position]:
    """Positions in the live network grown from the first goal.

    Returns an empty set with fewer than two goals (nothing to highlight).
    """
    if len(goals) < 2:
        return set()
    return reachable(connection_index(tiles), tuple(goals[0]))


def rotate_tap(position: Position, tiles: Sequence[Tile]) -> list[Tile] | None:
    """Rotate the tile at ``position`` one step clockwise.

    Returns a new tile list, or None if nothing rotatable is there.
    """
    for i, t in enumerate(tiles):
        if t.pos == tuple(position):
            if not t.can_rotate:
                return None
            new_tiles = list(tiles)
            new_tiles[i] = replace(
                t, connections=rotate_connections(t.connections, 1)
            )
            return new_tiles
    return None
