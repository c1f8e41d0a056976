"""
Top-down rendering of the puzzle board.

This module turns a ``RunSnapshot`` into a PIL image: the live tile map,
the block footprint (with the active half outlined while split) and a
status label.
"""

from typing import Dict, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from rollblock.game.controller import RunSnapshot
from rollblock.game.game_core import Cell, Half, TileKind, TransitionKind, TILE_SYMBOLS


TILE_COLORS: Dict[TileKind, Tuple[int, int, int]] = {
    TileKind.VOID: (24, 26, 33),
    TileKind.FLOOR: (176, 176, 168),
    TileKind.TARGET: (40, 40, 40),
    TileKind.SOFT_SWITCH: (120, 170, 220),
    TileKind.HEAVY_SWITCH: (60, 100, 170),
    TileKind.FRAGILE: (225, 150, 70),
    TileKind.SPLITTER: (150, 110, 190),
}

BLOCK_COLOR = (190, 60, 50)
BLOCK_FALLING_COLOR = (110, 40, 35)
BLOCK_COMPLETING_COLOR = (70, 160, 80)
ACTIVE_OUTLINE = (255, 230, 90)
GRID_LINE = (60, 62, 70)


class GridRenderer:
    """Renderer for the tile map and the block."""

    def __init__(self, width: int = 600, height: int = 400, label_height: int = 28):
        self.width = width
        self.height = height
        self.label_height = label_height

    def render(self, snapshot: RunSnapshot, title: Optional[str] = None) -> Image.Image:
        """
        Render one snapshot.

        Args:
            snapshot: Engine read-back to draw
            title: Optional label text; defaults to a level/moves/misses line

        Returns:
            RGB image of ``(width, height)``
        """
        image = Image.new("RGB", (self.width, self.height), color=TILE_COLORS[TileKind.VOID])
        draw = ImageDraw.Draw(image)

        tiles = snapshot.tiles
        cols, rows = tiles.shape
        cell_size = max(1, min(self.width // cols, (self.height - self.label_height) // rows))
        origin_x = (self.width - cell_size * cols) // 2
        origin_y = self.label_height + (self.height - self.label_height - cell_size * rows) // 2

        def box(cell: Cell, inset: int = 0):
            # j grows upwards, image rows grow downwards
            x0 = origin_x + cell.i * cell_size + inset
            y0 = origin_y + (rows - 1 - cell.j) * cell_size + inset
            return [x0, y0, x0 + cell_size - 1 - 2 * inset, y0 + cell_size - 1 - 2 * inset]

        for i, j in np.ndindex(cols, rows):
            kind = TileKind(int(tiles[i, j]))
            if kind is TileKind.VOID:
                continue
            draw.rectangle(box(Cell(i, j)), fill=TILE_COLORS[kind], outline=GRID_LINE)

        block_color = BLOCK_COLOR
        if snapshot.transition_kind is TransitionKind.FALLING:
            block_color = BLOCK_FALLING_COLOR
        elif snapshot.transition_kind is TransitionKind.COMPLETING:
            block_color = BLOCK_COMPLETING_COLOR

        inset = max(1, cell_size // 8)
        for cell in snapshot.footprint:
            draw.rectangle(box(cell, inset), fill=block_color)

        if not snapshot.attached:
            active = snapshot.cell_a if snapshot.active_half is Half.A else snapshot.cell_b
            draw.rectangle(box(active, inset), outline=ACTIVE_OUTLINE, width=max(1, inset))
        elif snapshot.cell_a == snapshot.cell_b:
            # standing: mark the top face
            x0, y0, x1, y1 = box(snapshot.cell_a, inset * 3)
            draw.rectangle([x0, y0, x1, y1], outline=(250, 250, 250))

        if title is None:
            title = (
                f"Level {snapshot.level_index}  moves {snapshot.moves_count}  "
                f"misses {snapshot.miss_count}/{snapshot.miss_limit}  {snapshot.phase.value}"
            )
            if snapshot.game_over:
                title += "  WON" if snapshot.won else "  GAME OVER"
        return self._add_label(image, title)

    def _add_label(self, image: Image.Image, label: str) -> Image.Image:
        """Add a status label to the top-left corner."""
        labeled_image = image.copy()
        draw = ImageDraw.Draw(labeled_image)

        try:
            font = ImageFont.truetype("arial.ttf", 14)
        except OSError:
            font = ImageFont.load_default()

        text_bbox = draw.textbbox((0, 0), label, font=font)
        text_width = text_bbox[2] - text_bbox[0]
        text_height = text_bbox[3] - text_bbox[1]

        padding = 4
        bg_bbox = [5, 5, 5 + text_width + 2 * padding, 5 + text_height + 2 * padding]
        draw.rectangle(bg_bbox, fill="black", outline="white")
        draw.text((5 + padding, 5 + padding), label, fill="white", font=font)

        return labeled_image


def render_ascii(snapshot: RunSnapshot) -> str:
    """
    Text board for terminals: tile legend symbols with the block drawn on top.

    ``A``/``B`` mark split halves (lower case for the inactive one) and ``@``
    an attached block.
    """
    tiles = snapshot.tiles
    cols, rows = tiles.shape
    marks: Dict[Cell, str] = {}
    if snapshot.attached:
        for cell in snapshot.footprint:
            marks[cell] = "@"
    else:
        marks[snapshot.cell_a] = "A" if snapshot.active_half is Half.A else "a"
        marks[snapshot.cell_b] = "B" if snapshot.active_half is Half.B else "b"

    lines = []
    for j in range(rows - 1, -1, -1):
        line = []
        for i in range(cols):
            cell = Cell(i, j)
            line.append(marks.get(cell) or TILE_SYMBOLS[TileKind(int(tiles[i, j]))])
        lines.append("".join(line))
    return "\n".join(lines)
