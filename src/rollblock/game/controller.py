"""
Run controller - level lifecycle, miss accounting and the tick-driven input gate
"""

from typing import Any, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum
import numpy as np

from rollblock.core.config import EngineConfig
from .block import BlockState
from .contact import ContactResolver
from .game_core import (
    Cell, ContactOutcome, Direction, Half, Height, Orientation,
    PivotGeometry, TransitionKind,
)
from .grid import TileGrid
from .levels import LevelCatalog, LevelSpec, default_catalog


class RunPhase(Enum):
    ENTERING = "entering"
    PLAYING = "playing"
    EXITING = "exiting"
    GAME_OVER = "game_over"


@dataclass
class RunState:
    """Counters of one run across levels."""
    moves_count: int = 0
    miss_count: int = 0
    miss_limit: int = 10
    current_level_index: int = 1
    max_level: int = 1
    game_over: bool = False
    won: bool = False
    elapsed_ticks: int = 0


@dataclass
class RunEvent:
    """Something that happened on a given tick, for the logging layer."""
    tick: int
    kind: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"tick": self.tick, "kind": self.kind, "details": dict(self.details)}


@dataclass
class RunSnapshot:
    """Read-back of the whole simulation at one tick."""
    tick: int
    level_index: int
    phase: RunPhase
    cell_a: Cell
    cell_b: Cell
    orientation: Orientation
    attached: bool
    active_half: Half
    height_a: Height
    height_b: Height
    transition_kind: TransitionKind
    direction: Optional[Direction]
    pivot: Optional[PivotGeometry]
    progress: float
    crumbling: Optional[Cell]
    tiles: np.ndarray
    moves_count: int
    miss_count: int
    miss_limit: int
    game_over: bool
    won: bool
    elapsed_seconds: float

    @property
    def footprint(self) -> Tuple[Cell, ...]:
        if self.cell_a == self.cell_b:
            return (self.cell_a,)
        return (self.cell_a, self.cell_b)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view (the tile array is left out)."""
        return {
            "tick": self.tick,
            "level": self.level_index,
            "phase": self.phase.value,
            "cell_a": list(self.cell_a.to_tuple()),
            "cell_b": list(self.cell_b.to_tuple()),
            "orientation": self.orientation.value,
            "attached": self.attached,
            "active_half": self.active_half.value,
            "heights": [self.height_a.value, self.height_b.value],
            "transition": self.transition_kind.value,
            "direction": self.direction.value if self.direction else None,
            "pivot": [self.pivot.axis, self.pivot.edge] if self.pivot else None,
            "progress": round(self.progress, 4),
            "moves": self.moves_count,
            "misses": self.miss_count,
            "miss_limit": self.miss_limit,
            "game_over": self.game_over,
            "won": self.won,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }


class RunController:
    """
    Drives one run of the puzzle.

    Nothing here measures time: the host calls ``advance_logic_tick`` at its
    own cadence and submits input in between. Inputs whose guard fails are
    dropped and reported as ``False``.
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 catalog: Optional[LevelCatalog] = None):
        self.config = config or EngineConfig()
        self.catalog = catalog or default_catalog()
        if self.config.start_level > self.catalog.max_level:
            raise ValueError(
                f"start_level {self.config.start_level} exceeds the catalog's "
                f"{self.catalog.max_level} levels"
            )

        self._tick = 0
        self._events: List[RunEvent] = []
        self._init_run()

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #
    @property
    def tick(self) -> int:
        return self._tick

    @property
    def phase(self) -> RunPhase:
        return self._phase

    @property
    def level(self) -> LevelSpec:
        return self._level

    @property
    def grid(self) -> TileGrid:
        return self._grid

    @property
    def block(self) -> BlockState:
        return self._block

    @property
    def gate_open(self) -> bool:
        return self._gate_open

    @property
    def can_move(self) -> bool:
        return (
            self._phase is RunPhase.PLAYING
            and not self.state.game_over
            and self._gate_open
            and self._block.is_idle
        )

    @property
    def is_ready(self) -> bool:
        """Idle and waiting for a move, or finished for good."""
        return self.state.game_over or self.can_move

    def snapshot(self) -> RunSnapshot:
        block = self._block
        transition = block.transition
        return RunSnapshot(
            tick=self._tick,
            level_index=self.state.current_level_index,
            phase=self._phase,
            cell_a=block.cell_a,
            cell_b=block.cell_b,
            orientation=block.orientation,
            attached=block.attached,
            active_half=block.active_half,
            height_a=block.height_a,
            height_b=block.height_b,
            transition_kind=transition.kind,
            direction=transition.direction,
            pivot=transition.pivot,
            progress=transition.progress,
            crumbling=transition.crumbling,
            tiles=self._grid.snapshot(),
            moves_count=self.state.moves_count,
            miss_count=self.state.miss_count,
            miss_limit=self.state.miss_limit,
            game_over=self.state.game_over,
            won=self.state.won,
            elapsed_seconds=self.state.elapsed_ticks * self.config.tick_ms / 1000.0,
        )

    def drain_events(self) -> List[RunEvent]:
        events, self._events = self._events, []
        return events

    # ------------------------------------------------------------------ #
    # Input
    # ------------------------------------------------------------------ #
    def submit_move(self, direction: Union[Direction, str]) -> bool:
        if not isinstance(direction, Direction):
            direction = Direction.parse(direction)
        if not self.can_move:
            return False

        origin = self._block.footprint
        self._pending_arrivals = self._block.roll(direction, self.config.roll_ticks)
        self._gate_open = False
        self.state.moves_count += 1
        self._emit("move", direction=direction.value,
                   origin=[c.to_tuple() for c in origin],
                   footprint=[c.to_tuple() for c in self._block.footprint])
        return True

    def submit_toggle_active_half(self) -> bool:
        if self._phase is not RunPhase.PLAYING or self.state.game_over:
            return False
        if self._block.attached:
            return False
        if self._block.transition.kind in (TransitionKind.FALLING, TransitionKind.COMPLETING):
            return False
        active = self._block.toggle_active_half()
        self._emit("swap", active_half=active.value)
        return True

    def submit_restart(self) -> bool:
        if not self.state.game_over:
            return False
        self._emit("restart", previous_moves=self.state.moves_count,
                   previous_misses=self.state.miss_count)
        self._init_run()
        return True

    # ------------------------------------------------------------------ #
    # Clock
    # ------------------------------------------------------------------ #
    def advance_logic_tick(self) -> None:
        self._tick += 1
        if self._phase is RunPhase.GAME_OVER:
            return

        self.state.elapsed_ticks += 1
        if self._tick % self.config.input_gate_ticks == 0:
            self._gate_open = True

        if self._phase is RunPhase.ENTERING:
            self._phase_ticks = max(0, self._phase_ticks - 1)
            if self._phase_ticks == 0:
                self._begin_play()
        elif self._phase is RunPhase.PLAYING:
            finished = self._block.tick()
            if finished is TransitionKind.ROLLING:
                self._settle(self._pending_arrivals)
            elif finished is TransitionKind.FALLING:
                self._finish_fall()
            elif finished is TransitionKind.COMPLETING:
                self._phase = RunPhase.EXITING
                self._phase_ticks = self.config.exit_ticks
        elif self._phase is RunPhase.EXITING:
            self._phase_ticks = max(0, self._phase_ticks - 1)
            if self._phase_ticks == 0:
                self._finish_exit()

    def advance_until_ready(self, max_ticks: int = 10000) -> int:
        """
        Tick until the block waits for input or the run is over.

        Returns:
            Number of ticks consumed
        """
        ticks = 0
        while ticks < max_ticks and not self.is_ready:
            self.advance_logic_tick()
            ticks += 1
        return ticks

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    def _init_run(self) -> None:
        self.state = RunState(
            miss_limit=self.config.miss_limit,
            current_level_index=self.config.start_level,
            max_level=self.catalog.max_level,
        )
        self._enter_level(self.config.start_level)

    def _enter_level(self, index: int) -> None:
        self._level = self.catalog.get(index)
        self._grid = self._level.build_grid()
        self._block = BlockState.standing_at(self._level.start)
        self._resolver = ContactResolver(self._level, self._grid)
        self._pending_arrivals: List[Cell] = []
        self._gate_open = False
        self._phase = RunPhase.ENTERING
        self._phase_ticks = self.config.enter_ticks
        self.state.current_level_index = index
        self._emit("level_enter", level=index, name=self._level.name)

    def _begin_play(self) -> None:
        self._phase = RunPhase.PLAYING
        self._reset_level_state()

    def _reset_level_state(self) -> None:
        self._grid.reset_bridges()
        self._block = BlockState.standing_at(self._level.start)
        self._settle(self._block.footprint)

    def _settle(self, arrived) -> None:
        result = self._resolver.resolve(self._block, arrived)
        if result.toggled:
            self._emit("toggle", cells=[c.to_tuple() for c in result.toggled])

        outcome = result.outcome
        if outcome is ContactOutcome.FALL:
            details = {"footprint": [c.to_tuple() for c in self._block.footprint]}
            if result.peel_onto is not None:
                details["peel_onto"] = result.peel_onto.to_tuple()
            self._begin_fall(**details)
        elif outcome is ContactOutcome.FRAGILE:
            self._begin_fall(delay=self.config.fragile_grace_ticks,
                             crumbling=result.crumbling,
                             footprint=[result.crumbling.to_tuple()])
        elif outcome is ContactOutcome.COMPLETE:
            self._block.begin_completion(self.config.complete_ticks)
            self._emit("complete", level=self.state.current_level_index,
                       moves=self.state.moves_count)
        elif outcome is ContactOutcome.SPLIT:
            self._emit("split", cell_a=self._block.cell_a.to_tuple(),
                       cell_b=self._block.cell_b.to_tuple(),
                       active_half=self._block.active_half.value)
        elif result.rejoined:
            self._emit("rejoin", footprint=[c.to_tuple() for c in self._block.footprint])

    def _begin_fall(self, delay: int = 0, crumbling: Optional[Cell] = None, **details) -> None:
        self.state.miss_count += 1
        self._block.begin_fall(self.config.fall_ticks, delay=delay, crumbling=crumbling)
        self._emit("fall", misses=self.state.miss_count, fragile=crumbling is not None, **details)

    def _finish_fall(self) -> None:
        if self.state.miss_count >= self.state.miss_limit:
            self._game_over(won=False)
            return
        self._emit("retry", level=self.state.current_level_index)
        self._reset_level_state()

    def _finish_exit(self) -> None:
        if self.state.current_level_index < self.catalog.max_level:
            self._enter_level(self.state.current_level_index + 1)
        else:
            self._game_over(won=True)

    def _game_over(self, won: bool) -> None:
        self._phase = RunPhase.GAME_OVER
        self.state.game_over = True
        self.state.won = won
        self._gate_open = False
        self._emit("game_over", won=won, moves=self.state.moves_count,
                   misses=self.state.miss_count)

    def _emit(self, kind: str, **details) -> None:
        self._events.append(RunEvent(tick=self._tick, kind=kind, details=details))
