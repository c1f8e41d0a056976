"""
Rolling-block puzzle - core types

Grid coordinates are ``(i, j)`` with ``i`` growing to the right and ``j``
growing upwards; ``(0, 0)`` is the bottom-left cell of the floor-plan.
"""

from typing import List, Optional, Tuple
from dataclasses import dataclass, replace
from enum import Enum, IntEnum


class Direction(Enum):
    """The four roll directions."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> Tuple[int, int]:
        return _DELTAS[self]

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @property
    def axis(self) -> str:
        """Grid axis the direction runs along ("i" or "j")."""
        return "i" if self in (Direction.LEFT, Direction.RIGHT) else "j"

    @classmethod
    def parse(cls, token: str) -> "Direction":
        """Parse ``"up"``, ``"U"``, ``"left"``, ``"l"`` ... into a Direction."""
        key = str(token).strip().lower()
        for direction in cls:
            if key == direction.value or key == direction.value[0]:
                return direction
        raise ValueError(f"Unknown direction: {token!r}")


_DELTAS = {
    Direction.UP: (0, 1),
    Direction.DOWN: (0, -1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

_OPPOSITES = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


class TileKind(IntEnum):
    """Tile kinds; the integer values are the storage codes of the grid array."""
    VOID = 0
    FLOOR = 1
    TARGET = 2
    SOFT_SWITCH = 3
    HEAVY_SWITCH = 4
    FRAGILE = 5
    SPLITTER = 6

    @property
    def supports(self) -> bool:
        return self is not TileKind.VOID


# Legend used by the level layouts
TILE_LEGEND = {
    ".": TileKind.VOID,
    "#": TileKind.FLOOR,
    "T": TileKind.TARGET,
    "o": TileKind.SOFT_SWITCH,
    "x": TileKind.HEAVY_SWITCH,
    "~": TileKind.FRAGILE,
    "%": TileKind.SPLITTER,
}

TILE_SYMBOLS = {kind: char for char, kind in TILE_LEGEND.items()}


class Orientation(Enum):
    STANDING = "standing"
    LYING = "lying"


class Height(Enum):
    """Elevation of one half: on the floor plane or stacked on the other half."""
    LOW = "low"
    HIGH = "high"


class Half(Enum):
    A = "a"
    B = "b"

    @property
    def other(self) -> "Half":
        return Half.B if self is Half.A else Half.A


class TransitionKind(Enum):
    IDLE = "idle"
    ROLLING = "rolling"
    FALLING = "falling"
    COMPLETING = "completing"


class ContactOutcome(Enum):
    """What the tiles under a settled block do to it."""
    CONTINUE = "continue"
    FALL = "fall"
    FRAGILE = "fragile"
    SPLIT = "split"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Cell:
    """Grid coordinate of one footprint cell."""
    i: int
    j: int

    def shifted(self, direction: Direction, steps: int = 1) -> "Cell":
        di, dj = direction.delta
        return Cell(self.i + di * steps, self.j + dj * steps)

    def is_adjacent(self, other: "Cell") -> bool:
        """True for 4-neighbours."""
        return abs(self.i - other.i) + abs(self.j - other.j) == 1

    def to_tuple(self) -> Tuple[int, int]:
        return (self.i, self.j)

    def __str__(self) -> str:
        return f"({self.i},{self.j})"


@dataclass(frozen=True)
class PivotGeometry:
    """Grid edge a roll pivots about.

    ``axis`` is the grid axis of travel and ``edge`` the grid line crossed on
    that axis, e.g. rolling right from cells with ``max(i) == 4`` pivots
    about the line ``i = 5``.
    """
    axis: str
    edge: int

    @staticmethod
    def for_roll(cells: List[Cell], direction: Direction) -> "PivotGeometry":
        if direction is Direction.LEFT:
            return PivotGeometry("i", min(c.i for c in cells))
        if direction is Direction.RIGHT:
            return PivotGeometry("i", max(c.i for c in cells) + 1)
        if direction is Direction.DOWN:
            return PivotGeometry("j", min(c.j for c in cells))
        return PivotGeometry("j", max(c.j for c in cells) + 1)


@dataclass(frozen=True)
class Transition:
    """The block's current transition; exactly one is active at a time."""
    kind: TransitionKind = TransitionKind.IDLE
    ticks_remaining: int = 0
    total_ticks: int = 0
    direction: Optional[Direction] = None
    pivot: Optional[PivotGeometry] = None
    origin: Tuple[Cell, ...] = ()
    delay: int = 0
    crumbling: Optional[Cell] = None

    @property
    def progress(self) -> float:
        """Fraction of the transition already played, for interpolation."""
        if self.total_ticks <= 0:
            return 1.0
        return 1.0 - self.ticks_remaining / self.total_ticks

    def advanced(self) -> "Transition":
        """The same transition one tick later."""
        if self.delay > 0:
            return replace(self, delay=self.delay - 1)
        return replace(self, ticks_remaining=max(0, self.ticks_remaining - 1))

    @property
    def finished(self) -> bool:
        return self.delay == 0 and self.ticks_remaining == 0


IDLE = Transition()
