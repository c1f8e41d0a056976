"""
Level catalog - static level records and the four built-in levels
"""

from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass

from .game_core import Cell, Half, TileKind
from .grid import TileGrid


class LevelDataError(ValueError):
    """Raised when static level data violates a construction invariant."""


@dataclass(frozen=True)
class SwitchLink:
    """A switch cell and the bridge cells it toggles."""
    switch: Cell
    bridges: Tuple[Cell, ...]


@dataclass(frozen=True)
class SplitterSpec:
    """Scripted effect of a splitter tile."""
    cell: Cell
    destination_a: Cell
    destination_b: Cell
    active_half: Half = Half.A
    rejoin_on_adjacent: bool = True


@dataclass(frozen=True)
class LevelSpec:
    """One entry of the level catalog."""
    index: int
    layout: Tuple[str, ...]
    start: Cell
    target: Cell
    switches: Tuple[SwitchLink, ...] = ()
    splitters: Tuple[SplitterSpec, ...] = ()
    name: str = ""

    @property
    def bridges(self) -> Tuple[Cell, ...]:
        cells: Dict[Cell, None] = {}
        for link in self.switches:
            for cell in link.bridges:
                cells[cell] = None
        return tuple(cells)

    @property
    def size(self) -> Tuple[int, int]:
        return (len(self.layout[0]) if self.layout else 0, len(self.layout))

    def switch_at(self, cell: Cell) -> Optional[SwitchLink]:
        for link in self.switches:
            if link.switch == cell:
                return link
        return None

    def splitter_at(self, cell: Cell) -> Optional[SplitterSpec]:
        for splitter in self.splitters:
            if splitter.cell == cell:
                return splitter
        return None

    def build_grid(self) -> TileGrid:
        """Fresh grid for this level with bridges at their defaults."""
        return TileGrid.from_rows(self.layout, self.bridges)

    def validate(self) -> None:
        """
        Check the level record, failing fast on authoring bugs.

        Raises:
            LevelDataError: If any construction invariant is violated
        """
        label = f"Level {self.index}" + (f" ({self.name})" if self.name else "")
        try:
            grid = self.build_grid()
        except ValueError as e:
            raise LevelDataError(f"{label}: {e}") from e

        targets = grid.cells_of(TileKind.TARGET)
        if len(targets) != 1:
            raise LevelDataError(f"{label}: expected exactly one target tile, found {len(targets)}")
        if targets[0] != self.target:
            raise LevelDataError(f"{label}: target {self.target} does not match target tile at {targets[0]}")

        if not grid.in_bounds(self.start):
            raise LevelDataError(f"{label}: start cell {self.start} is outside the grid")
        if not grid.is_supported(self.start):
            raise LevelDataError(f"{label}: start cell {self.start} has no floor")

        seen_switches = set()
        for link in self.switches:
            kind = grid.kind_at(link.switch)
            if kind not in (TileKind.SOFT_SWITCH, TileKind.HEAVY_SWITCH):
                raise LevelDataError(f"{label}: switch link at {link.switch} sits on a {kind.name} tile")
            if link.switch in seen_switches:
                raise LevelDataError(f"{label}: switch {link.switch} is linked twice")
            if not link.bridges:
                raise LevelDataError(f"{label}: switch {link.switch} has no bridge cells")
            seen_switches.add(link.switch)

        for splitter in self.splitters:
            if grid.kind_at(splitter.cell) is not TileKind.SPLITTER:
                raise LevelDataError(f"{label}: splitter record at {splitter.cell} is not on a splitter tile")
            for dest in (splitter.destination_a, splitter.destination_b):
                if not grid.in_bounds(dest) or not grid.is_supported(dest):
                    raise LevelDataError(f"{label}: splitter destination {dest} has no floor")
            if splitter.destination_a == splitter.destination_b:
                raise LevelDataError(f"{label}: splitter destinations must differ")

        for kind in (TileKind.SOFT_SWITCH, TileKind.HEAVY_SWITCH):
            for cell in grid.cells_of(kind):
                if cell not in seen_switches:
                    raise LevelDataError(f"{label}: {kind.name} tile at {cell} has no switch link")
        for cell in grid.cells_of(TileKind.SPLITTER):
            if self.splitter_at(cell) is None:
                raise LevelDataError(f"{label}: SPLITTER tile at {cell} has no splitter record")


class LevelCatalog:
    """Ordered, 1-based sequence of levels."""

    def __init__(self, levels: Sequence[LevelSpec]):
        if not levels:
            raise LevelDataError("Level catalog is empty")
        ordered = sorted(levels, key=lambda level: level.index)
        for expected, level in enumerate(ordered, start=1):
            if level.index != expected:
                raise LevelDataError(
                    f"Level indices must be contiguous from 1; expected {expected}, got {level.index}"
                )
            level.validate()
        self._levels: Tuple[LevelSpec, ...] = tuple(ordered)

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self):
        return iter(self._levels)

    @property
    def max_level(self) -> int:
        return len(self._levels)

    def get(self, index: int) -> LevelSpec:
        if not 1 <= index <= len(self._levels):
            raise IndexError(f"Level {index} is outside 1..{len(self._levels)}")
        return self._levels[index - 1]


BUILTIN_LEVELS: List[LevelSpec] = [
    LevelSpec(
        index=1,
        name="First steps",
        layout=(
            "...............",
            "...............",
            ".##............",
            ".###...........",
            ".###..#.#......",
            ".#########.....",
            ".....##T#......",
            "......####.....",
            "...............",
            "...............",
        ),
        start=Cell(1, 6),
        target=Cell(7, 3),
    ),
    LevelSpec(
        index=2,
        name="Switches",
        layout=(
            "...............",
            "...............",
            "......####..###",
            "####..##x#..#T#",
            "##o#..####..###",
            "####..####..###",
            "####..####..###",
            "####..####.....",
            "...............",
            "...............",
        ),
        start=Cell(1, 3),
        target=Cell(13, 6),
        switches=(
            SwitchLink(switch=Cell(2, 5), bridges=(Cell(4, 3), Cell(5, 3))),
            SwitchLink(switch=Cell(8, 6), bridges=(Cell(10, 3), Cell(11, 3))),
        ),
    ),
    LevelSpec(
        index=3,
        name="Thin ice",
        layout=(
            "...............",
            "...~~~~~~~.....",
            "...~~~~~~~.....",
            "####.....###...",
            "###.......##...",
            "###.......##...",
            "###..####~~~~~.",
            "###..####~~~~~.",
            ".....#T#..~~#~.",
            ".....###..~~~~.",
        ),
        start=Cell(1, 3),
        target=Cell(6, 1),
    ),
    LevelSpec(
        index=4,
        name="Divide",
        layout=(
            "...............",
            ".........###...",
            ".........###...",
            ".........###...",
            "######...######",
            "####%#...####T#",
            "######...######",
            ".........###...",
            ".........###...",
            ".........###...",
        ),
        start=Cell(1, 4),
        target=Cell(13, 4),
        splitters=(
            SplitterSpec(
                cell=Cell(4, 4),
                destination_a=Cell(10, 7),
                destination_b=Cell(10, 1),
                active_half=Half.A,
                rejoin_on_adjacent=True,
            ),
        ),
    ),
]

_DEFAULT_CATALOG: Optional[LevelCatalog] = None


def default_catalog() -> LevelCatalog:
    """The validated catalog of built-in levels (built once)."""
    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        _DEFAULT_CATALOG = LevelCatalog(BUILTIN_LEVELS)
    return _DEFAULT_CATALOG
