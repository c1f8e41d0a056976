"""
Tile grid - the per-level floor-plan plus its switchable bridge cells
"""

from typing import Dict, Iterable, List, Sequence, Tuple
import numpy as np

from .game_core import Cell, TileKind, TILE_LEGEND, TILE_SYMBOLS


class TileGrid:
    """
    Floor-plan of one level.

    The base layout never changes at runtime. Bridge cells are the only
    mutable tiles: switches flip them between VOID and FLOOR, and
    ``reset_bridges`` puts them back to the layout default.

    The array is indexed ``tiles[i, j]`` (column, row).
    """

    def __init__(self, base: np.ndarray, bridges: Iterable[Cell] = ()):
        if base.ndim != 2:
            raise ValueError(f"Tile array must be 2D, got shape {base.shape}")
        self._base = base.astype(np.int8, copy=True)
        self._base.setflags(write=False)
        self._tiles = self._base.copy()
        self._bridges: Tuple[Cell, ...] = tuple(dict.fromkeys(bridges))

        for cell in self._bridges:
            if not self.in_bounds(cell):
                raise ValueError(f"Bridge cell {cell} is outside the {self.width}x{self.height} grid")
            if TileKind(self._base[cell.i, cell.j]) not in (TileKind.VOID, TileKind.FLOOR):
                raise ValueError(f"Bridge cell {cell} must default to VOID or FLOOR")

    @classmethod
    def from_rows(cls, rows: Sequence[str], bridges: Iterable[Cell] = ()) -> "TileGrid":
        """
        Build a grid from legend rows.

        Args:
            rows: One string per row, top row first (highest ``j``)
            bridges: Cells that switches may toggle

        Returns:
            TileGrid
        """
        return cls(parse_rows(rows), bridges)

    @property
    def width(self) -> int:
        return self._tiles.shape[0]

    @property
    def height(self) -> int:
        return self._tiles.shape[1]

    @property
    def bridges(self) -> Tuple[Cell, ...]:
        return self._bridges

    def in_bounds(self, cell: Cell) -> bool:
        return 0 <= cell.i < self.width and 0 <= cell.j < self.height

    def kind_at(self, cell: Cell) -> TileKind:
        """Tile kind under ``cell``; anything outside the grid is VOID."""
        if not self.in_bounds(cell):
            return TileKind.VOID
        return TileKind(int(self._tiles[cell.i, cell.j]))

    def is_supported(self, cell: Cell) -> bool:
        return self.kind_at(cell).supports

    def cells_of(self, kind: TileKind) -> List[Cell]:
        """All cells currently holding ``kind``, in column-major order."""
        return [Cell(int(i), int(j)) for i, j in np.argwhere(self._tiles == int(kind))]

    def toggle(self, cells: Iterable[Cell]) -> List[Cell]:
        """Flip bridge cells between VOID and FLOOR. Returns the toggled cells."""
        toggled = []
        for cell in cells:
            if cell not in self._bridges:
                raise ValueError(f"{cell} is not a bridge cell")
            current = TileKind(int(self._tiles[cell.i, cell.j]))
            flipped = TileKind.FLOOR if current is TileKind.VOID else TileKind.VOID
            self._tiles[cell.i, cell.j] = int(flipped)
            toggled.append(cell)
        return toggled

    def reset_bridges(self) -> None:
        for cell in self._bridges:
            self._tiles[cell.i, cell.j] = self._base[cell.i, cell.j]

    def bridge_states(self) -> Dict[Cell, TileKind]:
        return {cell: self.kind_at(cell) for cell in self._bridges}

    def snapshot(self) -> np.ndarray:
        """Copy of the live tile array (bridges included)."""
        return self._tiles.copy()

    def to_rows(self) -> List[str]:
        """Inverse of ``parse_rows`` for the live state."""
        return [
            "".join(TILE_SYMBOLS[TileKind(int(self._tiles[i, j]))] for i in range(self.width))
            for j in range(self.height - 1, -1, -1)
        ]


def parse_rows(rows: Sequence[str]) -> np.ndarray:
    """
    Convert legend rows into a ``(width, height)`` array of tile codes.

    The first row is the top of the board (``j = height - 1``).
    """
    if not rows:
        raise ValueError("Layout has no rows")
    width = len(rows[0])
    if width == 0:
        raise ValueError("Layout rows are empty")
    height = len(rows)

    tiles = np.zeros((width, height), dtype=np.int8)
    for r, row in enumerate(rows):
        if len(row) != width:
            raise ValueError(f"Layout row {r} has {len(row)} cells, expected {width}")
        j = height - 1 - r
        for i, char in enumerate(row):
            if char not in TILE_LEGEND:
                raise ValueError(f"Unknown tile symbol {char!r} at ({i},{j})")
            tiles[i, j] = int(TILE_LEGEND[char])
    return tiles
