"""Data types matching the pressure level JSON schema.

Directions and tile kinds are plain strings so they serialize unchanged.
Tiles, moves and levels are frozen: a Level never changes after it is built,
and runtime state replaces tiles instead of mutating them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

Position = tuple[int, int]

DIRECTIONS: tuple[str, ...] = ("up", "right", "down", "left")
OPPOSITE: dict[str, str] = {
    "up": "down",
    "right": "left",
    "down": "up",
    "left": "right",
}
OFFSETS: dict[str, tuple[int, int]] = {
    "up": (0, -1),
    "right": (1, 0),
    "down": (0, 1),
    "left": (-1, 0),
}

WALL = "wall"
PATH = "path"
NODE = "node"
CRUSHED = "crushed"
EMPTY = "empty"
TILE_KINDS: tuple[str, ...] = (WALL, PATH, NODE, CRUSHED, EMPTY)
# Kinds that never link to a neighbour, whatever their connections say.
BLOCKING_KINDS = frozenset((WALL, CRUSHED))

ALL_CONNECTIONS: tuple[str, ...] = ("up", "down", "left", "right")


def rotate_direction(d: str, steps: int) -> str:
    """Rotate a direction clockwise by ``steps`` quarter turns."""
    return DIRECTIONS[(DIRECTIONS.index(d) + steps) % 4]


def opposite(d: str) -> str:
    return OPPOSITE[d]


def _check_direction(d: str) -> str:
    if d not in OFFSETS:
        raise ValueError(f"Unknown direction: {d!r}")
    return d


@dataclass(frozen=True)
class Tile:
    id: str
    kind: str
    x: int
    y: int
    connections: tuple[str, ...] = ()
    is_goal_node: bool = False
    can_rotate: bool = False
    is_decoy: bool = False

    def __post_init__(self) -> None:
        if self.kind not in TILE_KINDS:
            raise ValueError(f"Unknown tile kind: {self.kind!r}")
        conns = tuple(_check_direction(d) for d in self.connections)
        if self.kind in BLOCKING_KINDS:
            conns = ()
            object.__setattr__(self, "can_rotate", False)
        object.__setattr__(self, "connections", conns)

    @property
    def pos(self) -> Position:
        return (self.x, self.y)

    @staticmethod
    def from_dict(d: dict) -> Tile:
        return Tile(
            id=d["id"],
            kind=d["kind"],
            x=d["x"],
            y=d["y"],
            connections=tuple(d.get("connections", [])),
            is_goal_node=d.get("is_goal_node", False),
            can_rotate=d.get("can_rotate", False),
            is_decoy=d.get("is_decoy", False),
        )

    def to_dict(self) -> dict:
        d: dict = {
            "id": self.id,
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "connections": list(self.connections),
            "is_goal_node": self.is_goal_node,
            "can_rotate": self.can_rotate,
        }
        if self.is_decoy:
            d["is_decoy"] = True
        return d


def wall_tile(x: int, y: int) -> Tile:
    return Tile(id=f"wall-{x}-{y}", kind=WALL, x=x, y=y)


def node_tile(x: int, y: int) -> Tile:
    return Tile(
        id=f"node-{x}-{y}",
        kind=NODE,
        x=x,
        y=y,
        connections=ALL_CONNECTIONS,
        is_goal_node=True,
    )


def border_walls(grid_size: int) -> list[Tile]:
    """One-cell wall ring around a square grid (4n - 4 tiles)."""
    walls: list[Tile] = []
    for i in range(grid_size):
        walls.append(wall_tile(i, 0))
        walls.append(wall_tile(i, grid_size - 1))
        if 0 < i < grid_size - 1:
            walls.append(wall_tile(0, i))
            walls.append(wall_tile(grid_size - 1, i))
    return walls


@dataclass(frozen=True)
class Move:
    x: int
    y: int
    rotations: int

    @property
    def pos(self) -> Position:
        return (self.x, self.y)

    @staticmethod
    def from_dict(d: dict) -> Move:
        return Move(x=d["x"], y=d["y"], rotations=d["rotations"])

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "rotations": self.rotations}


def solution_cost(moves) -> int:
    """Total quarter-turn taps needed to play a solution."""
    return sum(m.rotations for m in moves)


def _position_from_dict(d: dict) -> Position:
    return (d["x"], d["y"])


@dataclass(frozen=True)
class Level:
    id: int
    name: str
    world: int
    grid_size: int
    tiles: tuple[Tile, ...]
    goal_nodes: tuple[Position, ...]
    max_moves: int
    compression_delay: int
    solution: tuple[Move, ...] | None = None
    is_generated: bool = False
    compression_enabled: bool | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tiles", tuple(self.tiles))
        object.__setattr__(
            self, "goal_nodes", tuple(tuple(g) for g in self.goal_nodes)
        )
        if self.solution is not None:
            object.__setattr__(self, "solution", tuple(self.solution))

    @property
    def min_moves(self) -> int | None:
        if self.solution is None:
            return None
        return solution_cost(self.solution)

    def rotatable_count(self) -> int:
        return sum(1 for t in self.tiles if t.can_rotate)

    @staticmethod
    def from_dict(d: dict) -> Level:
        sol = d.get("solution")
        return Level(
            id=d["id"],
            name=d["name"],
            world=d.get("world", 1),
            grid_size=d["grid_size"],
            tiles=tuple(Tile.from_dict(t) for t in d["tiles"]),
            goal_nodes=tuple(_position_from_dict(g) for g in d["goal_nodes"]),
            max_moves=d["max_moves"],
            compression_delay=d["compression_delay"],
            solution=(
                tuple(Move.from_dict(m) for m in sol)
                if sol is not None
                else None
            ),
            is_generated=d.get("is_generated", False),
            compression_enabled=d.get("compression_enabled"),
        )

    def to_dict(self) -> dict:
        d: dict = {
            "id": self.id,
            "name": self.name,
            "world": self.world,
            "grid_size": self.grid_size,
            "tiles": [t.to_dict() for t in self.tiles],
            "goal_nodes": [{"x": x, "y": y} for x, y in self.goal_nodes],
            "max_moves": self.max_moves,
            "compression_delay": self.compression_delay,
            "is_generated": self.is_generated,
        }
        if self.solution is not None:
            d["solution"] = [m.to_dict() for m in self.solution]
        if self.compression_enabled is not None:
            d["compression_enabled"] = self.compression_enabled
        return d


@dataclass
class EngineConfig:
    tick_interval_ms: int = 1000
    default_compression_delay: int = 10000

    @staticmethod
    def from_dict(d: dict | None) -> EngineConfig:
        if not d:
            return EngineConfig()
        return EngineConfig(
            tick_interval_ms=d.get("tick_interval_ms", 1000),
            default_compression_delay=d.get(
                "default_compression_delay", 10000
            ),
        )


@dataclass
class Verification:
    solvable: bool
    min_moves: int
    moves: list[Move] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"solvable": self.solvable, "min_moves": self.min_moves}
