"""Tests for wall advance, crushing, compaction and the compression timer."""

from __future__ import annotations

import numpy as np

from pressure.hazard import (
    ACTIVE,
    CRUSHED_PHASE,
    IDLE,
    CompressionTimer,
    advance_walls,
    crushed_positions,
    is_inside_wall,
    max_offset,
    ring_distance_grid,
)
from pressure.types import CRUSHED, PATH, WALL, Tile, border_walls, node_tile


def _path(x, y, conns=("up", "down")):
    return Tile(
        id=f"p-{x}-{y}",
        kind=PATH,
        x=x,
        y=y,
        connections=tuple(conns),
        can_rotate=True,
    )


def test_ring_distance_grid():
    grid = ring_distance_grid(5)
    expected = np.array(
        [
            [0, 0, 0, 0, 0],
            [0, 1, 1, 1, 0],
            [0, 1, 2, 1, 0],
            [0, 1, 1, 1, 0],
            [0, 0, 0, 0, 0],
        ]
    )
    assert (grid == expected).all()


def test_crushed_positions_and_bounds():
    assert max_offset(5) == 2
    assert max_offset(8) == 4
    assert len(crushed_positions(5, 1)) == 16
    assert len(crushed_positions(5, 2)) == 24
    assert is_inside_wall(1, 1, 5, 2)
    assert not is_inside_wall(2, 2, 5, 2)


class TestAdvance:
    def test_crushes_outer_ring_and_keeps_walls(self):
        tiles = [
            *border_walls(7),
            node_tile(1, 3),
            node_tile(5, 3),
            _path(3, 3),
            _path(2, 3, ("left", "right")),
        ]
        goals = [(1, 3), (5, 3)]
        result = advance_walls(tiles, 0, 7, goals)
        assert result.wall_offset == 1
        assert result.grid_size == 7
        assert not result.did_shrink
        assert not result.crushed_goal
        assert result.crushed == 0
        assert sum(1 for t in result.tiles if t.kind == WALL) == 24

        result = advance_walls(result.tiles, 1, 7, goals)
        assert result.wall_offset == 2
        assert result.crushed_goal
        assert result.crushed == 2
        by_pos = {t.pos: t for t in result.tiles}
        node = by_pos[(1, 3)]
        assert node.kind == CRUSHED
        assert node.connections == ()
        assert not node.can_rotate
        assert node.is_goal_node
        assert by_pos[(3, 3)].kind == PATH
        assert by_pos[(0, 0)].kind == WALL

    def test_noop_beyond_max_offset(self):
        tiles = [*border_walls(5), _path(2, 2)]
        result = advance_walls(tiles, 2, 5, [])
        assert result.wall_offset == 2
        assert result.tiles == tiles
        assert result.crushed == 0

    def test_shrink_five_to_three(self):
        tiles = [
            *border_walls(5),
            node_tile(1, 2),
            node_tile(3, 2),
            _path(2, 2),
        ]
        goals = [(1, 2), (3, 2)]
        # At offset 1 the border is already walls; the nodes on ring 1
        # keep the board from compacting.
        result = advance_walls(tiles, 0, 5, goals)
        assert not result.did_shrink
        assert result.wall_offset == 1

        # Kill ring 1 so the next advance finds it dead.
        dead = [
            Tile(id=t.id, kind=CRUSHED, x=t.x, y=t.y)
            if t.kind == "node"
            else t
            for t in result.tiles
        ]
        result = advance_walls(dead, 0, 5, goals)
        assert result.did_shrink
        assert result.grid_size == 3
        assert result.wall_offset == 0
        survivors = [t for t in result.tiles if t.kind == PATH]
        assert [(t.x, t.y) for t in survivors] == [(2 - 2, 2 - 2)]
        # (3,2) shifts to (1,0), which is now a wall.
        assert result.goal_nodes == [(1, 0)]
        assert result.all_goals_crushed()
        for t in result.tiles:
            assert 0 <= t.x < 3 and 0 <= t.y < 3

    def test_shrink_rebuilds_border(self):
        tiles = [*border_walls(9), _path(4, 4), node_tile(3, 4)]
        result = advance_walls(tiles, 0, 9, [(3, 4)])
        assert result.did_shrink
        assert result.grid_size == 7
        assert result.wall_offset == 0
        walls = [t for t in result.tiles if t.kind == WALL]
        assert len(walls) == 24
        by_pos = {t.pos: t for t in result.tiles}
        assert by_pos[(2, 2)].kind == PATH
        assert by_pos[(1, 2)].is_goal_node
        assert result.goal_nodes == [(1, 2)]

    def test_no_shrink_below_three(self):
        tiles = [*border_walls(5)]
        result = advance_walls(tiles, 1, 5, [])
        assert result.wall_offset == 2
        assert not result.did_shrink


class TestCompressionTimer:
    def test_idle_until_started(self):
        timer = CompressionTimer(delay_ms=1000)
        assert timer.phase == IDLE
        assert timer.tick(5000) == 0

    def test_counts_due_advances(self):
        timer = CompressionTimer(delay_ms=1000)
        timer.start()
        assert timer.phase == ACTIVE
        assert timer.tick(400) == 0
        assert timer.tick(600) == 1
        assert timer.tick(2500) == 2
        assert timer.remaining_ms == 500

    def test_stop_and_crushed(self):
        timer = CompressionTimer(delay_ms=1000)
        timer.start()
        timer.stop()
        assert timer.phase == IDLE
        timer.mark_crushed()
        timer.start()
        assert timer.phase == CRUSHED_PHASE
        assert timer.tick(10_000) == 0
