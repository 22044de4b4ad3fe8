"""Procedural level generator.

Builds rotation puzzles that are guaranteed solvable and never pre-solved.
Each attempt runs the same pipeline and any stage can reject it:

  1. **Placement:** goal nodes are drawn from an inset candidate area in
     shuffled order, keeping every pair at least two cells apart.
  2. **Routing:** consecutive goals are joined by L-shaped routes
     (horizontal leg first, then vertical). Every routed cell collects the
     union of openings the routes through it need.
  3. **Shapes:** each routed cell becomes a straight or corner pipe in its
     solved orientation, then is scrambled by 1-3 quarter turns. Cells where
     routes cross or branch need a tee or cross and reject the attempt.
  4. **Pre-solve rejection:** a board that is already connected is dropped.
  5. **Solve and validate:** the solver must find a solution of positive
     cost within ``3 * routed + padding`` turns. When the solver gives no
     proven optimum (heuristic path, or the exact search hit its cap),
     undoing the scramble is offered as a second candidate and the cheaper
     of the two is kept.
  6. **Decoys:** spare rotatable pipes on unused interior cells. A decoy
     set that happens to connect the board is discarded.

After ``max_attempts`` rejections a deterministic two-node fallback level is
returned, so generation never raises.

All randomness flows through a ``RandomSource`` (``PCG32`` by default), so a
seed fully determines the output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from .connectivity import (
    CORNER,
    STRAIGHT,
    is_connected,
    rotate_connections,
    shape_class,
)
from .prng import PCG32, RandomSource
from .solver import SolverConfig, replay, search
from .types import (
    PATH,
    Level,
    Move,
    Position,
    Tile,
    border_walls,
    node_tile,
    solution_cost,
)

logger = logging.getLogger(__name__)

MIN_GRID_SIZE = 5
MIN_NODE_COUNT = 2
MIN_GOAL_SEPARATION = 2
MAX_ATTEMPTS = 50
GENERATED_WORLD = 4

PIPE_SHAPES: tuple[tuple[str, ...], ...] = (
    ("up", "down"),
    ("left", "right"),
    ("up", "right"),
    ("right", "down"),
    ("down", "left"),
    ("left", "up"),
)


@dataclass(frozen=True)
class DifficultyParams:
    compression_delay: int
    move_padding: int
    decoy_count: int

    @staticmethod
    def from_dict(d: dict) -> DifficultyParams:
        return DifficultyParams(
            compression_delay=d["compression_delay"],
            move_padding=d["move_padding"],
            decoy_count=d.get("decoy_count", 0),
        )


DIFFICULTIES: dict[str, DifficultyParams] = {
    "easy": DifficultyParams(10000, 4, 0),
    "medium": DifficultyParams(6000, 2, 2),
    "hard": DifficultyParams(4000, 1, 3),
}

ADJECTIVES: dict[str, tuple[str, ...]] = {
    "easy": (
        "Calm", "Gentle", "Soft", "Slow", "Easy",
        "Mild", "Simple", "Light", "Smooth", "Basic",
    ),
    "medium": (
        "Twisted", "Warped", "Fractured", "Bent", "Coiled",
        "Tangled", "Knotted", "Looped", "Wired", "Crossed",
    ),
    "hard": (
        "Brutal", "Savage", "Merciless", "Vicious", "Deadly",
        "Fierce", "Extreme", "Critical", "Lethal", "Crushing",
    ),
}
NOUNS: tuple[str, ...] = (
    "Circuit", "Conduit", "Nexus", "Node", "Web",
    "Mesh", "Matrix", "Grid", "Array", "Path",
    "Strand", "Line", "Flow", "Pulse", "Link",
    "Chain", "Pipe", "Thread", "Wire", "Route",
)


def difficulty_params(name: str) -> DifficultyParams:
    try:
        return DIFFICULTIES[name]
    except KeyError:
        raise ValueError(f"Unknown difficulty: {name!r}") from None


@dataclass
class GenerateOptions:
    grid_size: int = 5
    node_count: int = 2
    difficulty: str = "medium"
    # None: difficulty default. bool: on/off. int: explicit count.
    decoys: bool | int | None = None
    seed: int | None = None
    id: int | None = None
    name: str | None = None
    world: int = GENERATED_WORLD
    max_attempts: int = MAX_ATTEMPTS
    solver: SolverConfig = field(default_factory=SolverConfig)

    @staticmethod
    def from_dict(d: dict) -> GenerateOptions:
        difficulty = d.get("difficulty", "medium")
        difficulty_params(difficulty)
        return GenerateOptions(
            grid_size=d.get("grid_size", 5),
            node_count=d.get("node_count", 2),
            difficulty=difficulty,
            decoys=d.get("decoys"),
            seed=d.get("seed"),
            id=d.get("id"),
            name=d.get("name"),
            world=d.get("world", GENERATED_WORLD),
            max_attempts=d.get("max_attempts", MAX_ATTEMPTS),
            solver=SolverConfig.from_dict(d.get("solver")),
        )


def level_name(difficulty: str, rng: RandomSource) -> str:
    adjectives = ADJECTIVES.get(difficulty, ADJECTIVES["medium"])
    return f"{rng.choice(adjectives)} {rng.choice(NOUNS)}"


def _decoy_count(decoys: bool | int | None, params: DifficultyParams) -> int:
    if decoys is None:
        return params.decoy_count
    if isinstance(decoys, bool):
        return params.decoy_count if decoys else 0
    return max(0, int(decoys))


def _place_goals(
    grid_size: int, node_count: int, rng: RandomSource
) -> list[Position] | None:
    margin = min(2, grid_size // 3)
    candidates = [
        (x, y)
        for y in range(margin, grid_size - margin)
        for x in range(margin, grid_size - margin)
    ]
    goals: list[Position] = []
    for x, y in rng.shuffle(candidates):
        if len(goals) >= node_count:
            break
        if all(
            abs(gx - x) + abs(gy - y) >= MIN_GOAL_SEPARATION for gx, gy in goals
        ):
            goals.append((x, y))
    if len(goals) < node_count:
        return None
    return goals


def _route(goals: list[Position]) -> dict[Position, list[str]]:
    """Openings each cell needs so that consecutive goals are joined."""
    required: dict[Position, list[str]] = {}

    def need(pos: Position, d: str) -> None:
        dirs = required.setdefault(pos, [])
        if d not in dirs:
            dirs.append(d)

    for (fx, fy), (tx, ty) in zip(goals, goals[1:]):
        cx, cy = fx, fy
        while cx != tx:
            step = 1 if tx > cx else -1
            need((cx, cy), "right" if step > 0 else "left")
            cx += step
            need((cx, cy), "left" if step > 0 else "right")
        while cy != ty:
            step = 1 if ty > cy else -1
            need((cx, cy), "down" if step > 0 else "up")
            cy += step
            need((cx, cy), "up" if step > 0 else "down")
    return required


def _turns_between(start: tuple[str, ...], target: tuple[str, ...]) -> int:
    """Fewest clockwise quarter turns taking ``start`` onto ``target``."""
    goal = frozenset(target)
    for r in range(4):
        if frozenset(rotate_connections(start, r)) == goal:
            return r
    raise ValueError(f"{start} cannot be rotated onto {target}")


def _scramble(
    required: dict[Position, list[str]],
    goal_set: set[Position],
    rng: RandomSource,
) -> tuple[list[Tile], list[Move]] | None:
    """Routed pipes in a wrong orientation, plus the moves that undo it."""
    tiles: list[Tile] = []
    undo: list[Move] = []
    for (x, y), dirs in required.items():
        if (x, y) in goal_set:
            continue
        solved = tuple(dirs)
        if len(solved) != 2 or shape_class(solved) not in (STRAIGHT, CORNER):
            return None
        steps = [
            r
            for r in (1, 2, 3)
            if frozenset(rotate_connections(solved, r)) != frozenset(solved)
        ]
        scrambled = rotate_connections(solved, rng.choice(steps))
        tiles.append(
            Tile(
                id=f"path-{x}-{y}",
                kind=PATH,
                x=x,
                y=y,
                connections=scrambled,
                can_rotate=True,
            )
        )
        undo.append(Move(x, y, _turns_between(scrambled, solved)))
    return tiles, undo


def _place_decoys(
    grid_size: int,
    occupied: set[Position],
    count: int,
    rng: RandomSource,
) -> list[Tile]:
    if count <= 0:
        return []
    free = [
        (x, y)
        for y in range(1, grid_size - 1)
        for x in range(1, grid_size - 1)
        if (x, y) not in occupied
    ]
    decoys = []
    for x, y in rng.shuffle(free)[:count]:
        decoys.append(
            Tile(
                id=f"decoy-{x}-{y}",
                kind=PATH,
                x=x,
                y=y,
                connections=rng.choice(PIPE_SHAPES),
                can_rotate=True,
                is_decoy=True,
            )
        )
    return decoys


def _attempt(
    opts: GenerateOptions,
    params: DifficultyParams,
    decoy_count: int,
    rng: RandomSource,
) -> tuple[list[Tile], list[Position], list[Move]] | None:
    n = opts.grid_size
    goals = _place_goals(n, opts.node_count, rng)
    if goals is None:
        logger.debug("rejected: could not place %d goals", opts.node_count)
        return None

    goal_set = set(goals)
    scrambled = _scramble(_route(goals), goal_set, rng)
    if scrambled is None:
        logger.debug("rejected: routes need a junction tile")
        return None
    path_tiles, undo = scrambled

    tiles = [*border_walls(n), *(node_tile(x, y) for x, y in goals), *path_tiles]
    if is_connected(tiles, goals):
        logger.debug("rejected: board is already connected")
        return None

    budget = 3 * len(path_tiles) + params.move_padding
    result = search(tiles, goals, budget, opts.solver)
    moves = result.moves
    if (moves is None or not result.exact) and solution_cost(undo) <= budget:
        if is_connected(replay(tiles, undo), goals) and (
            moves is None or solution_cost(undo) < result.cost
        ):
            moves = undo
    if not moves:
        logger.debug("rejected: no solution within %d turns", budget)
        return None

    occupied = goal_set | {t.pos for t in path_tiles}
    decoys = _place_decoys(n, occupied, decoy_count, rng)
    if decoys:
        with_decoys = tiles + decoys
        if is_connected(with_decoys, goals):
            logger.debug("decoys connected the board; dropping them")
        else:
            tiles = with_decoys
            if result.exact:
                # Decoys can open a cheaper route.
                recheck = search(
                    tiles, goals, solution_cost(moves), opts.solver
                )
                if recheck.moves and recheck.cost < solution_cost(moves):
                    moves = recheck.moves
    return tiles, goals, moves


def fallback_level(
    opts: GenerateOptions,
    params: DifficultyParams,
    rng: RandomSource,
) -> Level:
    """Two nodes on the middle row joined through one rotatable straight."""
    n = opts.grid_size
    mid = n // 2
    goals = [(1, mid), (n - 2, mid)]
    tiles = [*border_walls(n), *(node_tile(x, y) for x, y in goals)]
    for x in range(2, n - 2):
        rotatable = x == mid
        tiles.append(
            Tile(
                id=f"path-{x}-{mid}",
                kind=PATH,
                x=x,
                y=mid,
                connections=("up", "down") if rotatable else ("left", "right"),
                can_rotate=rotatable,
            )
        )
    if is_connected(tiles, goals):
        tiles = replay(tiles, [Move(mid, mid, 1)])

    budget = 3 + params.move_padding
    moves = search(tiles, goals, budget, opts.solver).moves
    if not moves:
        moves = [Move(mid, mid, 1)]
    cost = solution_cost(moves)
    return Level(
        id=opts.id if opts.id is not None else rng.next_u32(),
        name=opts.name or level_name(opts.difficulty, rng),
        world=opts.world,
        grid_size=n,
        tiles=tuple(tiles),
        goal_nodes=tuple(goals),
        max_moves=cost + params.move_padding,
        compression_delay=params.compression_delay,
        solution=tuple(moves),
        is_generated=True,
    )


def generate_level(
    opts: GenerateOptions, rng: RandomSource | None = None
) -> Level:
    """Generate one solvable, unsolved level. Never raises."""
    if rng is None:
        rng = PCG32(opts.seed) if opts.seed is not None else PCG32.from_entropy()

    if opts.grid_size < MIN_GRID_SIZE:
        logger.warning(
            "grid_size %d below minimum, using %d", opts.grid_size, MIN_GRID_SIZE
        )
        opts = replace(opts, grid_size=MIN_GRID_SIZE)
    if opts.node_count < MIN_NODE_COUNT:
        logger.warning(
            "node_count %d below minimum, using %d",
            opts.node_count,
            MIN_NODE_COUNT,
        )
        opts = replace(opts, node_count=MIN_NODE_COUNT)
    params = DIFFICULTIES.get(opts.difficulty)
    if params is None:
        logger.warning("unknown difficulty %r, using medium", opts.difficulty)
        opts = replace(opts, difficulty="medium")
        params = DIFFICULTIES["medium"]

    decoy_count = _decoy_count(opts.decoys, params)
    for attempt in range(opts.max_attempts):
        built = _attempt(opts, params, decoy_count, rng)
        if built is None:
            continue
        tiles, goals, moves = built
        cost = solution_cost(moves)
        logger.debug("accepted attempt %d, %d turns", attempt, cost)
        return Level(
            id=opts.id if opts.id is not None else rng.next_u32(),
            name=opts.name or level_name(opts.difficulty, rng),
            world=opts.world,
            grid_size=opts.grid_size,
            tiles=tuple(tiles),
            goal_nodes=tuple(goals),
            max_moves=cost + params.move_padding,
            compression_delay=params.compression_delay,
            solution=tuple(moves),
            is_generated=True,
        )

    logger.warning(
        "no valid level after %d attempts, using fallback", opts.max_attempts
    )
    return fallback_level(opts, params, rng)


def generate(
    grid_size: int,
    node_count: int,
    difficulty: str,
    decoy_override: bool | int | None = None,
    rng: RandomSource | None = None,
) -> Level:
    return generate_level(
        GenerateOptions(
            grid_size=grid_size,
            node_count=node_count,
            difficulty=difficulty,
            decoys=decoy_override,
        ),
        rng,
    )


def generate_world(
    world_id: int,
    level_count: int,
    start_id: int,
    opts: GenerateOptions | None = None,
    rng: RandomSource | None = None,
    names: list[str] | None = None,
) -> list[Level]:
    """A batch of levels with consecutive ids starting at ``start_id``."""
    if opts is None:
        opts = GenerateOptions()
    if rng is None:
        rng = PCG32(opts.seed) if opts.seed is not None else PCG32.from_entropy()
    levels = []
    for i in range(level_count):
        name = names[i] if names and i < len(names) else None
        levels.append(
            generate_level(
                replace(opts, id=start_id + i, name=name, world=world_id), rng
            )
        )
    return levels


def generate_json(params_dict: dict) -> dict:
    """JSON-dict in, JSON-dict out wrapper."""
    opts = GenerateOptions.from_dict(params_dict)
    return generate_level(opts).to_dict()
