"""Tests for the procedural level generator."""

from __future__ import annotations

import logging

import pytest

from pressure.connectivity import is_connected
from pressure.generate import (
    DIFFICULTIES,
    GenerateOptions,
    _place_decoys,
    _route,
    fallback_level,
    generate,
    generate_json,
    generate_level,
    generate_world,
)
from pressure.prng import PCG32
from pressure.solver import replay
from pressure.types import WALL, Move, solution_cost


def _border(n):
    return {
        (x, y)
        for x in range(n)
        for y in range(n)
        if x in (0, n - 1) or y in (0, n - 1)
    }


def _assert_valid(level):
    assert level.is_generated
    assert level.solution is not None
    assert level.min_moves > 0
    assert level.max_moves >= level.min_moves
    assert not is_connected(level.tiles, level.goal_nodes)
    assert is_connected(replay(level.tiles, level.solution), level.goal_nodes)


# --- generate_level ---


@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
@pytest.mark.parametrize("grid_size", [5, 6, 7])
def test_generated_levels_are_solvable_and_unsolved(difficulty, grid_size):
    for seed in range(8):
        level = generate(grid_size, 2, difficulty, rng=PCG32(seed))
        assert level.grid_size == grid_size
        _assert_valid(level)


def test_three_node_levels_are_valid():
    for seed in range(5):
        level = generate(7, 3, "medium", rng=PCG32(seed))
        _assert_valid(level)


def test_easy_five_by_five_has_sixteen_border_walls():
    level = generate_level(
        GenerateOptions(grid_size=5, node_count=2, difficulty="easy"),
        PCG32(42),
    )
    walls = [t for t in level.tiles if t.kind == WALL]
    assert len(walls) == 16
    assert {t.pos for t in walls} == _border(5)
    assert level.world == 4
    assert level.compression_delay == 10000
    assert level.max_moves == level.min_moves + 4
    assert not any(t.is_decoy for t in level.tiles)


def test_same_seed_same_level():
    a = generate_level(GenerateOptions(grid_size=6, seed=123))
    b = generate_level(GenerateOptions(grid_size=6, seed=123))
    assert a.to_dict() == b.to_dict()


def test_clamps_small_inputs(caplog):
    with caplog.at_level(logging.WARNING, logger="pressure.generate"):
        level = generate(3, 1, "easy", rng=PCG32(1))
    assert level.grid_size == 5
    assert len(level.goal_nodes) == 2
    assert "grid_size" in caplog.text
    assert "node_count" in caplog.text


def test_unknown_difficulty_falls_back_to_medium():
    level = generate(5, 2, "nightmare", rng=PCG32(3))
    assert level.compression_delay == DIFFICULTIES["medium"].compression_delay
    _assert_valid(level)


def test_explicit_id_and_name():
    level = generate_level(
        GenerateOptions(id=77, name="Custom", world=9), PCG32(5)
    )
    assert level.id == 77
    assert level.name == "Custom"
    assert level.world == 9


def test_name_comes_from_difficulty_words():
    level = generate(5, 2, "hard", rng=PCG32(11))
    adjective, noun = level.name.split(" ")
    assert adjective in (
        "Brutal", "Savage", "Merciless", "Vicious", "Deadly",
        "Fierce", "Extreme", "Critical", "Lethal", "Crushing",
    )
    assert noun


# --- decoys ---


def test_decoys_disabled():
    for seed in range(5):
        level = generate(7, 2, "hard", decoy_override=False, rng=PCG32(seed))
        assert not any(t.is_decoy for t in level.tiles)


def test_decoys_are_rotatable_spare_pipes():
    for seed in range(5):
        level = generate(7, 2, "hard", decoy_override=4, rng=PCG32(seed))
        decoys = [t for t in level.tiles if t.is_decoy]
        assert len(decoys) <= 4
        for t in decoys:
            assert t.can_rotate
            assert 1 <= t.x <= 5 and 1 <= t.y <= 5
            assert t.pos not in level.goal_nodes
        _assert_valid(level)


def test_place_decoys_avoids_occupied_cells():
    occupied = {(1, 1), (2, 2), (3, 3)}
    decoys = _place_decoys(5, occupied, 3, PCG32(0))
    assert len(decoys) == 3
    assert len({t.pos for t in decoys}) == 3
    for t in decoys:
        assert t.pos not in occupied
        assert t.is_decoy
        assert len(t.connections) == 2
    assert _place_decoys(5, occupied, 0, PCG32(0)) == []


# --- routing and fallback ---


def test_route_goes_horizontal_then_vertical():
    required = _route([(1, 1), (3, 2)])
    assert required == {
        (1, 1): ["right"],
        (2, 1): ["left", "right"],
        (3, 1): ["left", "down"],
        (3, 2): ["up"],
    }


def test_fallback_level():
    opts = GenerateOptions(grid_size=7, difficulty="easy", id=1)
    level = fallback_level(opts, DIFFICULTIES["easy"], PCG32(0))
    assert level.goal_nodes == ((1, 3), (5, 3))
    assert list(level.solution) == [Move(3, 3, 1)]
    assert level.max_moves == 5
    rotatable = [t for t in level.tiles if t.can_rotate]
    assert [t.pos for t in rotatable] == [(3, 3)]
    _assert_valid(level)


def test_zero_attempts_uses_fallback(caplog):
    with caplog.at_level(logging.WARNING, logger="pressure.generate"):
        level = generate_level(GenerateOptions(max_attempts=0), PCG32(0))
    assert "fallback" in caplog.text
    assert level.goal_nodes == ((1, 2), (3, 2))
    assert solution_cost(level.solution) == 1


# --- batch and JSON wrappers ---


def test_generate_world():
    levels = generate_world(
        5,
        3,
        1001,
        GenerateOptions(grid_size=6, difficulty="easy"),
        PCG32(8),
        names=["Descent", "Ceiling"],
    )
    assert [lv.id for lv in levels] == [1001, 1002, 1003]
    assert all(lv.world == 5 for lv in levels)
    assert [lv.name for lv in levels[:2]] == ["Descent", "Ceiling"]
    for lv in levels:
        _assert_valid(lv)


def test_generate_json():
    out = generate_json(
        {"grid_size": 5, "difficulty": "easy", "seed": 7, "id": 99}
    )
    assert out["id"] == 99
    assert out["is_generated"] is True
    assert out["grid_size"] == 5
    assert out["solution"]
    assert {"x", "y"} == set(out["goal_nodes"][0])


def test_generate_options_rejects_unknown_difficulty():
    with pytest.raises(ValueError):
        GenerateOptions.from_dict({"difficulty": "nightmare"})
