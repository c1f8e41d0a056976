"""
Rolling-Block Puzzle Engine Package
"""

from .game_core import (
    Direction, TileKind, Orientation, Height, Half,
    TransitionKind, ContactOutcome, Cell, PivotGeometry, Transition,
    TILE_LEGEND, TILE_SYMBOLS,
)

from .grid import TileGrid, parse_rows

from .levels import (
    LevelDataError,
    SwitchLink,
    SplitterSpec,
    LevelSpec,
    LevelCatalog,
    BUILTIN_LEVELS,
    default_catalog,
)

from .block import BlockState, pivot_roll
from .contact import ContactResolver, ContactResult

from .controller import (
    RunController,
    RunPhase,
    RunState,
    RunSnapshot,
    RunEvent,
)

__all__ = [
    # Core types
    'Direction', 'TileKind', 'Orientation', 'Height', 'Half',
    'TransitionKind', 'ContactOutcome', 'Cell', 'PivotGeometry', 'Transition',
    'TILE_LEGEND', 'TILE_SYMBOLS',
    # Grid and levels
    'TileGrid', 'parse_rows',
    'LevelDataError', 'SwitchLink', 'SplitterSpec', 'LevelSpec',
    'LevelCatalog', 'BUILTIN_LEVELS', 'default_catalog',
    # Block and contact
    'BlockState', 'pivot_roll', 'ContactResolver', 'ContactResult',
    # Run lifecycle
    'RunController', 'RunPhase', 'RunState', 'RunSnapshot', 'RunEvent',
]
