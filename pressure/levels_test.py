"""Tests for the classic level set and the level service cache."""

from __future__ import annotations

from dataclasses import replace

from pressure.connectivity import is_connected
from pressure.levels import (
    CLASSIC_LEVELS,
    LevelService,
    SolutionCache,
    verify_level,
)
from pressure.solver import replay
from pressure.types import Move, Verification

EXPECTED_MIN_MOVES = {
    "First": 1,
    "Rise": 1,
    "Corner": 1,
    "Double": 3,
    "Square": 3,
    "Zigzag": 8,
    "Triple": 1,
    "Cross": 3,
    "Spiral": 9,
    "Final": 2,
}


def test_classic_levels_shape():
    assert [lv.id for lv in CLASSIC_LEVELS] == list(range(1, 11))
    assert [lv.name for lv in CLASSIC_LEVELS] == list(EXPECTED_MIN_MOVES)
    for level in CLASSIC_LEVELS:
        assert level.grid_size == 5
        assert not level.is_generated
        assert not is_connected(level.tiles, level.goal_nodes)


def test_every_classic_level_verifies():
    service = LevelService()
    for level in CLASSIC_LEVELS:
        result = service.verify_level(level)
        assert result.solvable, level.name
        assert result.min_moves == EXPECTED_MIN_MOVES[level.name], level.name
        assert result.min_moves <= level.max_moves
        assert is_connected(replay(level.tiles, result.moves), level.goal_nodes)


def test_first_level_solution():
    service = LevelService()
    assert service.get_solution(CLASSIC_LEVELS[0]) == [Move(2, 2, 1)]


class TestSolutionCache:
    def test_hand_authored_solutions_are_cached(self):
        service = LevelService()
        level = service.get(6)
        assert level.name == "Zigzag"
        first = service.get_solution(level)
        assert 6 in service.cache
        assert len(service.cache) == 1
        assert service.get_solution(level) == first

    def test_unsolvable_result_is_cached_too(self):
        level = replace(CLASSIC_LEVELS[5], id=600, max_moves=2)
        service = LevelService([level])
        assert service.get_solution(level) is None
        assert 600 in service.cache
        assert service.verify_level(level) == Verification(False, -1)

    def test_generated_levels_never_cached(self):
        stored = (Move(2, 2, 1),)
        level = replace(CLASSIC_LEVELS[0], id=900, is_generated=True)
        service = LevelService()
        assert service.get_solution(level) == [Move(2, 2, 1)]
        assert 900 not in service.cache

        level = replace(level, solution=stored)
        assert service.get_solution(level) == list(stored)
        assert len(service.cache) == 0

    def test_clear(self):
        cache = SolutionCache()
        cache.put(1, [Move(2, 2, 1)])
        cache.put(2, None)
        assert 1 in cache and 2 in cache
        assert cache.get(1) == (Move(2, 2, 1),)
        assert cache.get(2) is None
        cache.clear()
        assert len(cache) == 0


def test_service_lookup_helpers():
    service = LevelService()
    assert [lv.name for lv in service.by_world(3)] == [
        "Cross",
        "Spiral",
        "Final",
    ]
    assert service.get(99) is None


def test_module_verify_level():
    result = verify_level(CLASSIC_LEVELS[3])
    assert result.solvable
    assert result.min_moves == 3
    assert result.to_dict() == {"solvable": True, "min_moves": 3}
