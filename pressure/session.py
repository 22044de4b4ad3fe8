"""Runtime play session.

``RuntimeState`` is the mutable copy of a Level being played. It applies
taps through the active mode, keeps an undo stack, feeds caller ticks to
the compression timer and folds wall advances back into its own tile
list, grid size and goal positions.

The session owns no clock: callers drive it with ``tick(ms)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from . import hazard
from .connectivity import connected_tiles
from .hazard import CompressionTimer, WallAdvanceResult
from .modes import GameMode, get_mode_by_id, resolve_compression_enabled
from .solver import SolverConfig
from .solver import hint as solver_hint
from .types import EngineConfig, Level, Move, Position, Tile

logger = logging.getLogger(__name__)

IDLE = "idle"
PLAYING = "playing"
WON = "won"
LOST = "lost"

ALL_GOALS_CRUSHED = "All goals crushed"


@dataclass
class RuntimeState:
    level: Level
    mode: GameMode
    tiles: list[Tile]
    grid_size: int
    goal_nodes: list[Position]
    compression_enabled: bool
    timer: CompressionTimer
    config: EngineConfig = field(default_factory=EngineConfig)
    moves: int = 0
    history: list[list[Tile]] = field(default_factory=list)
    wall_offset: int = 0
    status: str = IDLE
    win_reason: str | None = None
    loss_reason: str | None = None
    elapsed_seconds: float = 0.0

    @staticmethod
    def from_level(
        level: Level,
        mode: GameMode | str | None = None,
        compression_override: bool | None = None,
        config: EngineConfig | None = None,
    ) -> RuntimeState:
        if mode is None or isinstance(mode, str):
            mode = get_mode_by_id(mode or "classic")
        if config is None:
            config = EngineConfig()
        delay = level.compression_delay or config.default_compression_delay
        return RuntimeState(
            level=level,
            mode=mode,
            tiles=list(level.tiles),
            grid_size=level.grid_size,
            goal_nodes=list(level.goal_nodes),
            compression_enabled=resolve_compression_enabled(
                level, mode, compression_override
            ),
            timer=CompressionTimer(delay_ms=delay),
            config=config,
        )

    def restart(self) -> None:
        self.tiles = list(self.level.tiles)
        self.grid_size = self.level.grid_size
        self.goal_nodes = list(self.level.goal_nodes)
        self.moves = 0
        self.history = []
        self.wall_offset = 0
        self.status = IDLE
        self.win_reason = None
        self.loss_reason = None
        self.elapsed_seconds = 0.0
        self.timer = CompressionTimer(delay_ms=self.timer.delay_ms)

    def start(self) -> None:
        if self.status != IDLE:
            return
        self.status = PLAYING
        if self.compression_enabled:
            self.timer.start()
        self._check_win()

    def can_tap(self) -> bool:
        if self.status != PLAYING:
            return False
        if self.mode.uses_move_limit and self.moves >= self.level.max_moves:
            return False
        return True

    def tap(self, x: int, y: int) -> bool:
        """Rotate the tile at (x, y). Returns False if the tap was refused."""
        if not self.can_tap():
            return False
        result = self.mode.on_tap(x, y, self.tiles)
        if result is None or not result.valid:
            return False
        if self.mode.supports_undo:
            self.history.append(self.tiles)
        self.tiles = list(result.tiles)
        self.moves += 1
        self._check_win()
        return True

    def undo(self) -> bool:
        if (
            self.status != PLAYING
            or not self.mode.supports_undo
            or not self.history
        ):
            return False
        self.tiles = self.history.pop()
        self.moves -= 1
        return True

    def _check_win(self) -> None:
        result = self.mode.check_win(
            self.tiles, self.goal_nodes, self.moves, self.level.max_moves
        )
        if result.won:
            self.status = WON
            self.win_reason = result.reason
            self.timer.stop()

    def _lose(self, reason: str | None) -> None:
        self.status = LOST
        self.loss_reason = reason
        self.timer.mark_crushed()
        logger.debug("level %s lost: %s", self.level.id, reason)

    def advance_walls(self) -> WallAdvanceResult | None:
        if self.status != PLAYING:
            return None
        result = hazard.advance_walls(
            self.tiles, self.wall_offset, self.grid_size, self.goal_nodes
        )
        changed = (
            result.wall_offset != self.wall_offset
            or result.did_shrink
            or result.crushed
        )
        self.tiles = result.tiles
        self.wall_offset = result.wall_offset
        self.grid_size = result.grid_size
        self.goal_nodes = result.goal_nodes
        if changed:
            # Undo snapshots refer to tiles the wall has since destroyed.
            self.history.clear()

        seen = result.tiles
        if result.did_shrink:
            seen = [*result.tiles, *result.crushed_tiles]
        loss = self.mode.check_loss(
            seen, self.wall_offset, self.moves, self.level.max_moves
        )
        if loss.lost:
            self._lose(loss.reason)
        elif self.level.goal_nodes and result.all_goals_crushed():
            self._lose(ALL_GOALS_CRUSHED)
        return result

    def tick(self, elapsed_ms: int | None = None) -> int:
        """Feed elapsed time; returns the number of wall advances applied."""
        if self.status != PLAYING:
            return 0
        if elapsed_ms is None:
            elapsed_ms = self.config.tick_interval_ms
        self.elapsed_seconds += elapsed_ms / 1000
        if not self.compression_enabled:
            return 0
        applied = 0
        for _ in range(self.timer.tick(elapsed_ms)):
            if self.status != PLAYING:
                break
            self.advance_walls()
            applied += 1
        return applied

    def connected_tiles(self) -> set[Position]:
        return connected_tiles(self.tiles, self.goal_nodes)

    def hint(self, solver_config: SolverConfig | None = None) -> Move | None:
        """Next move toward a solution from the current board."""
        if self.status != PLAYING:
            return None
        budget = self.level.max_moves
        if self.mode.uses_move_limit:
            budget = max(0, budget - self.moves)
        else:
            budget = max(budget, 3 * self.level.rotatable_count())
        return solver_hint(self.tiles, self.goal_nodes, budget, solver_config)
