"""Minimum-rotation solver.

Finds the cheapest set of compound rotations (at most one Move per tile,
1-3 quarter turns each) that links every goal node. Cost is the total
number of quarter turns, so a Move with ``rotations=3`` costs three taps.

Two search paths, chosen by the number of rotatable tiles R:

1. **Exact** (R <= ``exact_tile_limit``): Dijkstra over configurations.
   A configuration is the tuple of the rotatable tiles' current openings;
   its key is the same tuple with each entry as a frozenset, so rotating a
   straight by two lands on the key it started from. Edges are single-tile
   rotations by 1-3 steps weighted by their cost. The goal test runs on
   pop, so the first connected configuration popped is minimum cost.
   Expansion stops after ``max_expansions`` pops; hitting the cap means
   "not found", never "proved unsolvable".

2. **Heuristic** (R > ``exact_tile_limit``): a greedy pass that turns
   every tile toward its fixed neighbours, then iterative deepening on
   cost over the tiles in a fixed order. Both are bounded and neither
   reports a proof.

The search mutates a private position->openings index in place and calls
``goals_linked`` on it, so no Tile objects are built per configuration.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, replace
from typing import Sequence

from .connectivity import (
    connection_index,
    goals_linked,
    rotate_connections,
)
from .types import (
    OFFSETS,
    OPPOSITE,
    Move,
    Position,
    Tile,
    solution_cost,
)

logger = logging.getLogger(__name__)


@dataclass
class SolverConfig:
    exact_tile_limit: int = 12
    max_expansions: int = 50_000
    heuristic_depth_cap: int = 15
    heuristic_max_nodes: int = 200_000

    @staticmethod
    def from_dict(d: dict | None) -> SolverConfig:
        if not d:
            return SolverConfig()
        return SolverConfig(
            exact_tile_limit=d.get("exact_tile_limit", 12),
            max_expansions=d.get("max_expansions", 50_000),
            heuristic_depth_cap=d.get("heuristic_depth_cap", 15),
            heuristic_max_nodes=d.get("heuristic_max_nodes", 200_000),
        )


@dataclass
class SolveResult:
    moves: list[Move] | None
    cost: int
    exact: bool
    exhausted: bool = False
    expansions: int = 0

    @property
    def solved(self) -> bool:
        return self.moves is not None


def merge_moves(moves: Sequence[Move]) -> list[Move]:
    """Collapse repeated rotations of the same tile into one Move.

    Rotations are summed mod 4; tiles that come back to where they started
    are dropped. Order follows each tile's first appearance.
    """
    totals: dict[Position, int] = {}
    for m in moves:
        totals[m.pos] = totals.get(m.pos, 0) + m.rotations
    return [
        Move(x, y, r % 4) for (x, y), r in totals.items() if r % 4 != 0
    ]


def _rotatable_positions(tiles: Sequence[Tile]) -> list[Position]:
    return sorted(t.pos for t in tiles if t.can_rotate)


def _config_key(conf: tuple) -> tuple:
    return tuple(frozenset(c) for c in conf)


def _exact_search(
    index: dict,
    goals: Sequence[Position],
    rotatable: list[Position],
    max_moves: int,
    config: SolverConfig,
) -> SolveResult:
    start = tuple(index[p] for p in rotatable)
    best: dict[tuple, int] = {_config_key(start): 0}
    counter = itertools.count()
    # (cost, tiebreak, configuration, path of (index, rotations))
    frontier: list = [(0, next(counter), start, ())]
    expansions = 0

    while frontier:
        cost, _, conf, path = heapq.heappop(frontier)
        if best.get(_config_key(conf), cost) < cost:
            continue
        if expansions >= config.max_expansions:
            logger.debug("exact search hit expansion cap (%d)", expansions)
            return SolveResult(None, 0, exact=True, expansions=expansions)
        expansions += 1

        for p, conns in zip(rotatable, conf):
            index[p] = conns
        if goals_linked(index, goals):
            moves = merge_moves(
                [Move(rotatable[i][0], rotatable[i][1], r) for i, r in path]
            )
            return SolveResult(
                moves, solution_cost(moves), exact=True, expansions=expansions
            )

        for i in range(len(rotatable)):
            for r in (1, 2, 3):
                new_cost = cost + r
                if new_cost > max_moves:
                    break
                nxt = conf[:i] + (rotate_connections(conf[i], r),) + conf[i + 1 :]
                key = _config_key(nxt)
                if new_cost < best.get(key, new_cost + 1):
                    best[key] = new_cost
                    heapq.heappush(
                        frontier,
                        (new_cost, next(counter), nxt, path + ((i, r),)),
                    )

    return SolveResult(
        None, 0, exact=True, exhausted=True, expansions=expansions
    )


def _neighbour_score(
    base: dict, pos: Position, conns: Sequence[str]
) -> int:
    """+2 per reciprocated opening, +1 per opening onto a live tile."""
    x, y = pos
    score = 0
    for d in conns:
        dx, dy = OFFSETS[d]
        neighbour = base.get((x + dx, y + dy))
        if neighbour is None:
            continue
        score += 2 if OPPOSITE[d] in neighbour else 1
    return score


def _greedy(
    index: dict,
    goals: Sequence[Position],
    rotatable: list[Position],
    max_moves: int,
) -> list[Move] | None:
    base = dict(index)
    moves: list[Move] = []
    for p in rotatable:
        best_r = 0
        best_score = _neighbour_score(base, p, base[p])
        for r in (1, 2, 3):
            score = _neighbour_score(base, p, rotate_connections(base[p], r))
            if score > best_score:
                best_r, best_score = r, score
        if best_r:
            moves.append(Move(p[0], p[1], best_r))

    trial = dict(base)
    for m in moves:
        trial[m.pos] = rotate_connections(base[m.pos], m.rotations)
    if moves and solution_cost(moves) <= max_moves and goals_linked(
        trial, goals
    ):
        return moves
    return None


class _DeepeningSearch:
    """Cost-bounded DFS over a fixed tile order, deepened one step at a time."""

    def __init__(
        self,
        index: dict,
        goals: Sequence[Position],
        rotatable: list[Position],
        max_nodes: int,
    ) -> None:
        self.index = index
        self.goals = goals
        self.rotatable = rotatable
        self.base = [index[p] for p in rotatable]
        self.chosen = [0] * len(rotatable)
        self.max_nodes = max_nodes
        self.nodes = 0

    def run(self, depth_cap: int) -> list[Move] | None:
        for limit in range(1, depth_cap + 1):
            if self._visit(0, 0, limit):
                return [
                    Move(p[0], p[1], r)
                    for p, r in zip(self.rotatable, self.chosen)
                    if r
                ]
            if self.nodes >= self.max_nodes:
                logger.debug("deepening search hit node cap at %d", limit)
                break
        return None

    def _visit(self, i: int, cost: int, limit: int) -> bool:
        if i == len(self.rotatable) or self.nodes >= self.max_nodes:
            return False
        self.nodes += 1
        if self._visit(i + 1, cost, limit):
            return True
        p = self.rotatable[i]
        for r in (1, 2, 3):
            if cost + r > limit:
                break
            self.index[p] = rotate_connections(self.base[i], r)
            self.chosen[i] = r
            if goals_linked(self.index, self.goals):
                return True
            if self._visit(i + 1, cost + r, limit):
                return True
        self.index[p] = self.base[i]
        self.chosen[i] = 0
        return False


def search(
    tiles: Sequence[Tile],
    goals: Sequence[Position],
    max_moves: int,
    config: SolverConfig | None = None,
) -> SolveResult:
    if config is None:
        config = SolverConfig()
    goals = [tuple(g) for g in goals]
    index = connection_index(tiles)
    rotatable = _rotatable_positions(tiles)
    exact = len(rotatable) <= config.exact_tile_limit

    if goals_linked(index, goals):
        return SolveResult([], 0, exact=exact)

    if exact:
        logger.debug("exact search over %d rotatable tiles", len(rotatable))
        return _exact_search(index, goals, rotatable, max_moves, config)

    logger.debug("heuristic search over %d rotatable tiles", len(rotatable))
    moves = _greedy(index, goals, rotatable, max_moves)
    if moves is None:
        depth_cap = min(max_moves, config.heuristic_depth_cap)
        dfs = _DeepeningSearch(
            dict(index), goals, rotatable, config.heuristic_max_nodes
        )
        moves = dfs.run(depth_cap)
        expansions = dfs.nodes
    else:
        expansions = 0
    if moves is None:
        return SolveResult(None, 0, exact=False, expansions=expansions)
    return SolveResult(
        moves, solution_cost(moves), exact=False, expansions=expansions
    )


def solve(
    tiles: Sequence[Tile],
    goals: Sequence[Position],
    max_moves: int,
    config: SolverConfig | None = None,
) -> list[Move] | None:
    """Cheapest move list that connects all goals, or None within budget."""
    return search(tiles, goals, max_moves, config).moves


def replay(tiles: Sequence[Tile], moves: Sequence[Move]) -> list[Tile]:
    """Apply a solution to a tile list, returning the rotated copy."""
    by_pos = {t.pos: i for i, t in enumerate(tiles)}
    out = list(tiles)
    for m in moves:
        i = by_pos.get(m.pos)
        if i is None or not out[i].can_rotate:
            raise ValueError(f"No rotatable tile at {m.pos}")
        out[i] = replace(
            out[i], connections=rotate_connections(out[i].connections, m.rotations)
        )
    return out


def hint(
    tiles: Sequence[Tile],
    goals: Sequence[Position],
    max_moves: int,
    config: SolverConfig | None = None,
) -> Move | None:
    """First move of a minimum solution, or None if solved or stuck."""
    moves = solve(tiles, goals, max_moves, config)
    if not moves:
        return None
    return moves[0]
