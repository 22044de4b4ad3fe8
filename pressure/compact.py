"""Compact level authoring format.

A compact level lists only what a designer chooses: goal positions, pipe
tiles with a short connection code and optional interior walls. Border
walls and goal node tiles are derived. ``hydrate_level`` expands it into a
full ``Level``; ``dehydrate_level`` goes the other way.

Connection codes::

    straight  ud lr
    corner    ur rd dl lu
    tee       urd rdl dlu lur
    cross     x

Compact tile entries are ``{"p": [x, y], "c": code, "t": kind, "r": bool,
"d": bool}``. An entry with neither ``c`` nor ``t`` is a wall; ``r`` defaults
to True and ``d`` marks a decoy. A stored ``solution`` is carried through
unchanged.
"""

from __future__ import annotations

from .types import (
    PATH,
    WALL,
    Level,
    Move,
    Tile,
    border_walls,
    node_tile,
    wall_tile,
)

CODE_TO_DIRS: dict[str, tuple[str, ...]] = {
    "ud": ("up", "down"),
    "lr": ("left", "right"),
    "ur": ("up", "right"),
    "rd": ("right", "down"),
    "dl": ("down", "left"),
    "lu": ("left", "up"),
    "urd": ("up", "right", "down"),
    "rdl": ("right", "down", "left"),
    "dlu": ("down", "left", "up"),
    "lur": ("left", "up", "right"),
    "x": ("up", "down", "left", "right"),
}
_DIRS_TO_CODE = {frozenset(v): k for k, v in CODE_TO_DIRS.items()}


def parse_code(code: str) -> tuple[str, ...]:
    try:
        return CODE_TO_DIRS[code]
    except KeyError:
        raise ValueError(f"Unknown connection code: {code!r}") from None


def connection_code(conns) -> str:
    try:
        return _DIRS_TO_CODE[frozenset(conns)]
    except KeyError:
        raise ValueError(f"No connection code for {tuple(conns)}") from None


def hydrate_level(compact: dict) -> Level:
    cols, rows = compact["grid"]
    if cols != rows:
        raise ValueError(f"Grid must be square, got {cols}x{rows}")
    goals = [tuple(g) for g in compact["goals"]]
    goal_set = set(goals)

    tiles: list[Tile] = []
    if compact.get("auto_walls") == "border":
        tiles.extend(border_walls(cols))
    for x, y in compact.get("interior_walls", []):
        tiles.append(wall_tile(x, y))
    tiles.extend(node_tile(x, y) for x, y in goals)

    for ct in compact.get("tiles", []):
        x, y = ct["p"]
        if (x, y) in goal_set:
            continue
        kind = ct.get("t")
        if kind == WALL or (kind is None and "c" not in ct):
            tiles.append(wall_tile(x, y))
            continue
        kind = kind or PATH
        decoy = ct.get("d", False)
        tiles.append(
            Tile(
                id=f"decoy-{x}-{y}" if decoy else f"{kind}-{x}-{y}",
                kind=kind,
                x=x,
                y=y,
                connections=parse_code(ct["c"]) if "c" in ct else (),
                can_rotate=ct.get("r", True),
                is_decoy=decoy,
            )
        )

    sol = compact.get("solution")
    return Level(
        id=compact["id"],
        name=compact["name"],
        world=compact.get("world", 1),
        grid_size=cols,
        tiles=tuple(tiles),
        goal_nodes=tuple(goals),
        max_moves=compact["max_moves"],
        compression_delay=compact["compression_delay"],
        solution=(
            tuple(Move.from_dict(m) for m in sol) if sol is not None else None
        ),
        is_generated=compact.get("is_generated", False),
        compression_enabled=compact.get("compression_enabled"),
    )


def dehydrate_level(level: Level, auto_walls: bool = True) -> dict:
    n = level.grid_size
    goal_set = set(level.goal_nodes)
    border = set()
    if auto_walls:
        border = {
            (x, y)
            for x in range(n)
            for y in range(n)
            if x in (0, n - 1) or y in (0, n - 1)
        }

    interior_walls = []
    tiles = []
    for t in level.tiles:
        if t.pos in goal_set:
            continue
        if t.kind == WALL:
            if t.pos not in border:
                interior_walls.append([t.x, t.y])
            continue
        ct: dict = {"p": [t.x, t.y]}
        if t.connections:
            ct["c"] = connection_code(t.connections)
        if not t.can_rotate:
            ct["r"] = False
        if t.kind != PATH or not t.connections:
            ct["t"] = t.kind
        if t.is_decoy:
            ct["d"] = True
        tiles.append(ct)

    d: dict = {
        "id": level.id,
        "name": level.name,
        "world": level.world,
        "grid": [n, n],
        "max_moves": level.max_moves,
        "compression_delay": level.compression_delay,
        "goals": [[x, y] for x, y in level.goal_nodes],
        "tiles": tiles,
    }
    if auto_walls:
        d["auto_walls"] = "border"
    if interior_walls:
        d["interior_walls"] = interior_walls
    if level.compression_enabled is not None:
        d["compression_enabled"] = level.compression_enabled
    if level.is_generated:
        d["is_generated"] = True
    if level.solution is not None:
        d["solution"] = [m.to_dict() for m in level.solution]
    return d
