"""Hand-authored classic levels and the level service.

The ten classic levels are stored in compact form and hydrated at import.
``LevelService`` answers "what is the solution to this level" and owns the
solution cache:

  * Generated levels carry their solution from construction; it is returned
    as-is and never cached.
  * Hand-authored levels are solved on first request and cached by id.
    Levels are immutable, so entries are never invalidated. ``clear()``
    exists for tests.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .compact import hydrate_level
from .solver import SolverConfig, solve
from .types import Level, Move, Verification, solution_cost

logger = logging.getLogger(__name__)

_COMPACT_CLASSIC: list[dict] = [
    # World 1: Breathe
    {
        "id": 1, "name": "First", "world": 1, "grid": [5, 5],
        "max_moves": 3, "compression_delay": 10000,
        "goals": [[1, 2], [3, 2]], "auto_walls": "border",
        "tiles": [{"p": [2, 2], "c": "ud"}],
    },
    {
        "id": 2, "name": "Rise", "world": 1, "grid": [5, 5],
        "max_moves": 3, "compression_delay": 8000,
        "goals": [[2, 1], [2, 3]], "auto_walls": "border",
        "tiles": [{"p": [2, 2], "c": "lr"}],
    },
    {
        "id": 3, "name": "Corner", "world": 1, "grid": [5, 5],
        "max_moves": 4, "compression_delay": 8000,
        "goals": [[1, 1], [2, 2]], "auto_walls": "border",
        "tiles": [{"p": [1, 2], "c": "lu"}],
    },
    {
        "id": 4, "name": "Double", "world": 1, "grid": [5, 5],
        "max_moves": 5, "compression_delay": 7000,
        "goals": [[1, 2], [3, 3]], "auto_walls": "border",
        "tiles": [{"p": [2, 2], "c": "ud"}, {"p": [3, 2], "c": "ur"}],
    },
    # World 2: Squeeze
    {
        "id": 5, "name": "Square", "world": 2, "grid": [5, 5],
        "max_moves": 8, "compression_delay": 6000,
        "goals": [[1, 1], [3, 1], [1, 3], [3, 3]], "auto_walls": "border",
        "tiles": [
            {"p": [2, 1], "c": "ud"},
            {"p": [2, 3], "c": "ud"},
            {"p": [1, 2], "c": "lr"},
            {"p": [3, 2], "c": "lr"},
        ],
    },
    {
        "id": 6, "name": "Zigzag", "world": 2, "grid": [5, 5],
        "max_moves": 10, "compression_delay": 6000,
        "goals": [[1, 1], [1, 3]], "auto_walls": "border",
        "tiles": [
            {"p": [2, 1], "c": "ud"},
            {"p": [3, 1], "c": "lu"},
            {"p": [3, 2], "c": "lr"},
            {"p": [3, 3], "c": "rd"},
            {"p": [2, 3], "c": "ud"},
        ],
    },
    {
        "id": 7, "name": "Triple", "world": 2, "grid": [5, 5],
        "max_moves": 3, "compression_delay": 5000,
        "goals": [[1, 2], [3, 2]], "auto_walls": "border",
        "tiles": [{"p": [2, 2], "c": "ud"}, {"p": [2, 3], "c": "lr"}],
    },
    # World 3: Crush
    {
        "id": 8, "name": "Cross", "world": 3, "grid": [5, 5],
        "max_moves": 6, "compression_delay": 5000,
        "goals": [[1, 1], [3, 1], [1, 3], [3, 3]], "auto_walls": "border",
        "tiles": [
            {"p": [2, 2], "c": "x", "r": False},
            {"p": [2, 1], "c": "ud"},
            {"p": [2, 3], "c": "ud"},
            {"p": [1, 2], "c": "lr"},
            {"p": [3, 2], "c": "lr"},
        ],
    },
    {
        "id": 9, "name": "Spiral", "world": 3, "grid": [5, 5],
        "max_moves": 10, "compression_delay": 4000,
        "goals": [[1, 1], [1, 3]], "auto_walls": "border",
        "tiles": [
            {"p": [2, 1], "c": "ud"},
            {"p": [3, 1], "c": "lu"},
            {"p": [3, 2], "c": "lr"},
            {"p": [3, 3], "c": "ur"},
            {"p": [2, 3], "c": "ud"},
        ],
    },
    {
        "id": 10, "name": "Final", "world": 3, "grid": [5, 5],
        "max_moves": 8, "compression_delay": 4000,
        "goals": [[1, 1], [3, 1], [2, 2], [1, 3], [3, 3]],
        "auto_walls": "border",
        "tiles": [
            {"p": [2, 1], "c": "dlu"},
            {"p": [1, 2], "c": "lur"},
            {"p": [3, 2], "c": "rdl"},
            {"p": [2, 3], "c": "urd"},
        ],
    },
]

CLASSIC_LEVELS: tuple[Level, ...] = tuple(
    hydrate_level(c) for c in _COMPACT_CLASSIC
)


class SolutionCache:
    """Solutions of hand-authored levels keyed by level id."""

    def __init__(self) -> None:
        self._solutions: dict[int, tuple[Move, ...] | None] = {}

    def __contains__(self, level_id: int) -> bool:
        return level_id in self._solutions

    def __len__(self) -> int:
        return len(self._solutions)

    def get(self, level_id: int) -> tuple[Move, ...] | None:
        return self._solutions.get(level_id)

    def put(self, level_id: int, solution: Sequence[Move] | None) -> None:
        self._solutions[level_id] = (
            tuple(solution) if solution is not None else None
        )

    def clear(self) -> None:
        self._solutions.clear()


class LevelService:
    def __init__(
        self,
        levels: Sequence[Level] = CLASSIC_LEVELS,
        solver_config: SolverConfig | None = None,
    ) -> None:
        self.levels = tuple(levels)
        self.solver_config = solver_config
        self.cache = SolutionCache()

    def get(self, level_id: int) -> Level | None:
        for level in self.levels:
            if level.id == level_id:
                return level
        return None

    def by_world(self, world: int) -> list[Level]:
        return [lv for lv in self.levels if lv.world == world]

    def get_solution(self, level: Level) -> list[Move] | None:
        if level.solution is not None:
            return list(level.solution)
        if not level.is_generated and level.id in self.cache:
            cached = self.cache.get(level.id)
            return list(cached) if cached is not None else None

        moves = solve(
            level.tiles, level.goal_nodes, level.max_moves, self.solver_config
        )
        if not level.is_generated:
            self.cache.put(level.id, moves)
        return moves

    def verify_level(self, level: Level) -> Verification:
        moves = self.get_solution(level)
        if moves is None:
            logger.debug(
                "level %s has no solution within %d turns",
                level.id,
                level.max_moves,
            )
            return Verification(False, -1)
        return Verification(True, solution_cost(moves), moves)


def verify_level(level: Level) -> Verification:
    """Uncached one-off verification."""
    return LevelService(()).verify_level(level)
