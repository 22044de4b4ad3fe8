"""Game mode rule sets.

A mode decides what a tap does, when a board counts as won and when it is
lost, plus three capability flags (undo, move limit, wall compression
policy). The core engine only talks to the ``GameMode`` protocol; the three
concrete modes below are the complete set.

  * **Classic:** walls always advance, undo allowed, move limit enforced.
    Losing a goal node to the wall ends the game.
  * **Zen:** walls never advance, undo allowed, no move limit, no loss.
  * **Blitz:** walls always advance, no undo, no move limit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from .connectivity import is_connected, rotate_tap
from .types import CRUSHED, Level, Position, Tile

ALWAYS = "always"
NEVER = "never"
OPTIONAL = "optional"


@dataclass
class TapResult:
    tiles: list[Tile]
    valid: bool = True


@dataclass
class WinResult:
    won: bool
    reason: str | None = None


@dataclass
class LossResult:
    lost: bool
    reason: str | None = None


class GameMode(Protocol):
    id: str
    name: str
    description: str
    wall_compression: str
    supports_undo: bool
    uses_move_limit: bool

    def on_tap(
        self, x: int, y: int, tiles: Sequence[Tile]
    ) -> TapResult | None: ...

    def check_win(
        self,
        tiles: Sequence[Tile],
        goals: Sequence[Position],
        moves: int,
        max_moves: int,
    ) -> WinResult: ...

    def check_loss(
        self,
        tiles: Sequence[Tile],
        wall_offset: int,
        moves: int,
        max_moves: int,
    ) -> LossResult: ...


def _goal_crushed(tiles: Sequence[Tile]) -> bool:
    return any(t.is_goal_node and t.kind == CRUSHED for t in tiles)


def _rotate(x: int, y: int, tiles: Sequence[Tile]) -> TapResult | None:
    new_tiles = rotate_tap((x, y), tiles)
    if new_tiles is None:
        return None
    return TapResult(new_tiles)


class ClassicMode:
    id = "classic"
    name = "Pressure"
    description = "Connect all nodes before the walls close in."
    wall_compression = ALWAYS
    supports_undo = True
    uses_move_limit = True

    def on_tap(self, x, y, tiles):
        return _rotate(x, y, tiles)

    def check_win(self, tiles, goals, moves, max_moves):
        won = is_connected(tiles, goals)
        return WinResult(won, "All nodes connected!" if won else None)

    def check_loss(self, tiles, wall_offset, moves, max_moves):
        crushed = _goal_crushed(tiles)
        return LossResult(crushed, "A goal was crushed" if crushed else None)


class ZenMode:
    id = "zen"
    name = "Zen"
    description = "No walls, no pressure. Pure puzzle."
    wall_compression = NEVER
    supports_undo = True
    uses_move_limit = False

    def on_tap(self, x, y, tiles):
        return _rotate(x, y, tiles)

    def check_win(self, tiles, goals, moves, max_moves):
        won = is_connected(tiles, goals)
        return WinResult(won, "Connected!" if won else None)

    def check_loss(self, tiles, wall_offset, moves, max_moves):
        return LossResult(False)


class BlitzMode:
    id = "blitz"
    name = "Blitz"
    description = "No move limit. Walls never stop. Solve fast or die."
    wall_compression = ALWAYS
    supports_undo = False
    uses_move_limit = False

    def on_tap(self, x, y, tiles):
        return _rotate(x, y, tiles)

    def check_win(self, tiles, goals, moves, max_moves):
        won = is_connected(tiles, goals)
        return WinResult(won, "Survived!" if won else None)

    def check_loss(self, tiles, wall_offset, moves, max_moves):
        crushed = _goal_crushed(tiles)
        return LossResult(crushed, "A node was crushed!" if crushed else None)


GAME_MODES: tuple[GameMode, ...] = (ClassicMode(), ZenMode(), BlitzMode())


def get_mode_by_id(mode_id: str) -> GameMode:
    """Look up a mode; unknown ids get Classic."""
    for mode in GAME_MODES:
        if mode.id == mode_id:
            return mode
    return GAME_MODES[0]


def resolve_compression_enabled(
    level: Level | None, mode: GameMode, override: bool | None = None
) -> bool:
    """Whether walls advance for this level under this mode.

    The level's own flag wins, then the mode's fixed policy, then the
    player's override; with none of those set, compression is on.
    """
    if level is not None and level.compression_enabled is not None:
        return level.compression_enabled
    if mode.wall_compression == ALWAYS:
        return True
    if mode.wall_compression == NEVER:
        return False
    if override is not None:
        return override
    return True
