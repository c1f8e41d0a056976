"""Shared fixtures and level builders for the rollblock tests."""

from typing import Dict, Iterable, List, Optional, Sequence

import pytest

from rollblock.core.config import EngineConfig
from rollblock.game import (
    Cell,
    LevelCatalog,
    LevelSpec,
    RunController,
    SplitterSpec,
    SwitchLink,
)


def fast_engine(**overrides) -> EngineConfig:
    """Engine config with short animations and an input gate that opens every tick."""
    params = dict(
        tick_ms=10.0,
        input_gate_ms=10.0,
        roll_ticks=2,
        fall_ticks=3,
        complete_ticks=1,
        enter_ticks=1,
        exit_ticks=1,
        fragile_grace_ticks=1,
        miss_limit=10,
        start_level=1,
    )
    params.update(overrides)
    return EngineConfig(**params)


def bordered_rows(tiles: Optional[Dict[Cell, str]] = None,
                  width: int = 15, height: int = 10) -> List[str]:
    """15x10 layout: a one-cell void border around floor, with per-cell overrides."""
    tiles = tiles or {}
    rows = []
    for j in range(height - 1, -1, -1):
        row = []
        for i in range(width):
            cell = Cell(i, j)
            if cell in tiles:
                row.append(tiles[cell])
            elif i in (0, width - 1) or j in (0, height - 1):
                row.append(".")
            else:
                row.append("#")
        rows.append("".join(row))
    return rows


def make_level(start: Cell, target: Cell = Cell(7, 3), tiles: Optional[Dict[Cell, str]] = None,
               switches: Sequence[SwitchLink] = (), splitters: Sequence[SplitterSpec] = (),
               index: int = 1) -> LevelSpec:
    overrides = dict(tiles or {})
    overrides[target] = "T"
    return LevelSpec(
        index=index,
        layout=tuple(bordered_rows(overrides)),
        start=start,
        target=target,
        switches=tuple(switches),
        splitters=tuple(splitters),
    )


def make_controller(levels: Iterable[LevelSpec], **engine_overrides) -> RunController:
    controller = RunController(fast_engine(**engine_overrides), LevelCatalog(list(levels)))
    controller.advance_until_ready()
    return controller


def play(controller: RunController, moves: str) -> None:
    """Feed a move script (L/R/U/D, S swaps), letting each input run to completion."""
    controller.advance_until_ready()
    for move in moves.replace(" ", ""):
        if move == "S":
            assert controller.submit_toggle_active_half()
        else:
            assert controller.submit_move(move), f"move {move} rejected"
        controller.advance_until_ready()


def event_kinds(controller: RunController) -> List[str]:
    return [event.kind for event in controller.drain_events()]


@pytest.fixture
def engine_config() -> EngineConfig:
    return fast_engine()
