"""Wall compression: the advancing border hazard.

Each advance pushes the wall one ring inward. Ring distance is the distance
from a cell to the nearest grid edge, ``min(x, y, n-1-x, n-1-y)``; every
live tile whose ring distance is below the new wall offset is crushed.
Crushed tiles lose their openings and can no longer rotate, so the
connectivity checker treats them exactly like walls.

When the ring sitting right on the wall line is entirely dead (wall,
crushed or missing), the board is compacted: the dead border is stripped,
surviving tiles and goals are renumbered, a fresh one-cell wall ring is
laid around the smaller grid and the offset resets to zero.
Survivors shift by ``offset + 1`` into a grid of ``n - 2 * offset``, so the
top and left survivors land on the new border ring while an empty band opens
along the bottom and right. Those top-left survivors are crushed one advance
early.

``CompressionTimer`` turns caller-supplied elapsed time into a count of
advances that are due. It owns no clock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Sequence

import numpy as np

from .types import (
    BLOCKING_KINDS,
    CRUSHED,
    Position,
    Tile,
    wall_tile,
)

logger = logging.getLogger(__name__)

IDLE = "idle"
ACTIVE = "active"
CRUSHED_PHASE = "crushed"


def ring_distance_grid(grid_size: int) -> np.ndarray:
    """Ring distance for every cell, indexed ``[y, x]``."""
    ys, xs = np.indices((grid_size, grid_size))
    edge = grid_size - 1
    return np.minimum(np.minimum(xs, ys), np.minimum(edge - xs, edge - ys))


def ring_distance(x: int, y: int, grid_size: int) -> int:
    return min(x, y, grid_size - 1 - x, grid_size - 1 - y)


def max_offset(grid_size: int) -> int:
    return grid_size // 2


def is_inside_wall(x: int, y: int, grid_size: int, wall_offset: int) -> bool:
    return ring_distance(x, y, grid_size) < wall_offset


def crushed_positions(grid_size: int, wall_offset: int) -> list[Position]:
    """Every cell the wall covers at ``wall_offset``, row by row."""
    ys, xs = np.nonzero(ring_distance_grid(grid_size) < wall_offset)
    return [(int(x), int(y)) for x, y in zip(xs, ys)]


@dataclass
class WallAdvanceResult:
    tiles: list[Tile]
    wall_offset: int
    grid_size: int
    goal_nodes: list[Position]
    crushed_goal: bool = False
    did_shrink: bool = False
    crushed: int = 0
    # Tiles crushed by this advance, as they were before any compaction.
    crushed_tiles: list[Tile] = field(default_factory=list)

    def all_goals_crushed(self) -> bool:
        """True if no goal survives, either crushed or stripped by a shrink."""
        if not self.goal_nodes:
            return self.crushed_goal
        kinds = {t.pos: t.kind for t in self.tiles}
        return all(
            kinds.get(g, CRUSHED) in BLOCKING_KINDS for g in self.goal_nodes
        )


def _crush(tile: Tile) -> Tile:
    return replace(tile, kind=CRUSHED, connections=(), can_rotate=False)


def _ring_is_dead(
    tiles: Sequence[Tile], grid: np.ndarray, ring: int
) -> bool:
    for t in tiles:
        if not (0 <= t.x < grid.shape[1] and 0 <= t.y < grid.shape[0]):
            continue
        if grid[t.y, t.x] == ring and t.kind not in BLOCKING_KINDS:
            return False
    return True


def _shrink(
    tiles: Sequence[Tile],
    goal_nodes: Sequence[Position],
    grid_size: int,
    wall_offset: int,
) -> tuple[list[Tile], list[Position], int] | None:
    new_size = grid_size - 2 * wall_offset
    if new_size < 3:
        return None
    shift = wall_offset + 1

    survivors = [
        replace(t, x=t.x - shift, y=t.y - shift)
        for t in tiles
        if t.kind not in BLOCKING_KINDS
    ]
    survivors = [
        t for t in survivors if 0 <= t.x < new_size and 0 <= t.y < new_size
    ]
    occupied = {t.pos for t in survivors}
    goals = [
        (x - shift, y - shift)
        for x, y in goal_nodes
        if 0 <= x - shift < new_size and 0 <= y - shift < new_size
    ]

    walls: list[Tile] = []
    for y in range(new_size):
        for x in range(new_size):
            on_border = x in (0, new_size - 1) or y in (0, new_size - 1)
            if on_border and (x, y) not in occupied:
                walls.append(wall_tile(x, y))
    return walls + survivors, goals, new_size


def advance_walls(
    tiles: Sequence[Tile],
    wall_offset: int,
    grid_size: int,
    goal_nodes: Sequence[Position],
) -> WallAdvanceResult:
    """Push the wall one ring inward, crushing and possibly compacting."""
    goals = [tuple(g) for g in goal_nodes]
    new_offset = wall_offset + 1
    if new_offset > max_offset(grid_size):
        return WallAdvanceResult(list(tiles), wall_offset, grid_size, goals)

    grid = ring_distance_grid(grid_size)
    goal_set = set(goals)
    crushed_tiles: list[Tile] = []
    crushed_goal = False
    out: list[Tile] = []
    for t in tiles:
        inside = 0 <= t.x < grid_size and 0 <= t.y < grid_size
        dist = grid[t.y, t.x] if inside else ring_distance(t.x, t.y, grid_size)
        if dist < new_offset and t.kind not in BLOCKING_KINDS:
            if t.is_goal_node or t.pos in goal_set:
                crushed_goal = True
            crushed_tiles.append(_crush(t))
            out.append(crushed_tiles[-1])
        else:
            out.append(t)

    result = WallAdvanceResult(
        out,
        new_offset,
        grid_size,
        goals,
        crushed_goal=crushed_goal,
        crushed=len(crushed_tiles),
        crushed_tiles=crushed_tiles,
    )
    if crushed_goal:
        logger.debug("goal crushed at wall offset %d", new_offset)

    if _ring_is_dead(out, grid, new_offset):
        shrunk = _shrink(out, goals, grid_size, new_offset)
        if shrunk is not None:
            result.tiles, result.goal_nodes, result.grid_size = shrunk
            result.wall_offset = 0
            result.did_shrink = True
            logger.debug(
                "board compacted from %d to %d", grid_size, result.grid_size
            )
    return result


@dataclass
class CompressionTimer:
    """Counts down to each wall advance from caller-supplied ticks."""

    delay_ms: int
    remaining_ms: int = 0
    phase: str = IDLE

    def __post_init__(self) -> None:
        if self.remaining_ms <= 0:
            self.remaining_ms = self.delay_ms

    def start(self) -> None:
        if self.phase == CRUSHED_PHASE:
            return
        self.phase = ACTIVE
        self.remaining_ms = self.delay_ms

    def stop(self) -> None:
        if self.phase == ACTIVE:
            self.phase = IDLE

    def tick(self, elapsed_ms: int) -> int:
        """Advance the countdown and return how many advances are due."""
        if self.phase != ACTIVE or self.delay_ms <= 0:
            return 0
        self.remaining_ms -= elapsed_ms
        due = 0
        while self.remaining_ms <= 0:
            due += 1
            self.remaining_ms += self.delay_ms
        return due

    def mark_crushed(self) -> None:
        self.phase = CRUSHED_PHASE
