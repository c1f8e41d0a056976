"""
Contact resolution - what the tiles under a settled block do to it
"""

from typing import List, Optional, Sequence
from dataclasses import dataclass, field

from .block import BlockState
from .game_core import Cell, ContactOutcome, TileKind
from .grid import TileGrid
from .levels import LevelSpec, SplitterSpec


@dataclass
class ContactResult:
    """Outcome of one settle plus the side effects that were applied."""
    outcome: ContactOutcome
    toggled: List[Cell] = field(default_factory=list)
    peel_onto: Optional[Cell] = None
    splitter: Optional[SplitterSpec] = None
    crumbling: Optional[Cell] = None
    rejoined: bool = False

    @property
    def is_fall(self) -> bool:
        return self.outcome is ContactOutcome.FALL


class ContactResolver:
    """
    Evaluates tile contact for the block of one level.

    ``resolve`` applies grid and block side effects directly (bridge
    toggles, split, rejoin, peel) and returns the outcome for the run
    controller to act on.
    """

    def __init__(self, level: LevelSpec, grid: TileGrid):
        self.level = level
        self.grid = grid

    def resolve(self, block: BlockState, arrived: Sequence[Cell]) -> ContactResult:
        """
        Args:
            block: The settled block
            arrived: Cells entered by the last move (the whole footprint at level entry)

        Returns:
            ContactResult
        """
        if not block.attached:
            return self._resolve_detached(block, arrived)
        if block.is_standing:
            return self._resolve_standing(block)
        return self._resolve_lying(block, arrived)

    # ------------------------------------------------------------------ #
    # Per-shape rules
    # ------------------------------------------------------------------ #
    def _resolve_standing(self, block: BlockState) -> ContactResult:
        cell = block.cell_a
        if not self.grid.is_supported(cell):
            return ContactResult(ContactOutcome.FALL)

        toggled = self._press_switches([cell], standing=True)
        kind = self.grid.kind_at(cell)

        if kind is TileKind.TARGET:
            return ContactResult(ContactOutcome.COMPLETE, toggled=toggled)

        if kind is TileKind.SPLITTER:
            splitter = self.level.splitter_at(cell)
            if splitter is not None:
                block.split(
                    splitter.destination_a,
                    splitter.destination_b,
                    splitter.active_half,
                    splitter.rejoin_on_adjacent,
                )
                return ContactResult(ContactOutcome.SPLIT, toggled=toggled, splitter=splitter)

        if kind is TileKind.FRAGILE:
            return ContactResult(ContactOutcome.FRAGILE, toggled=toggled, crumbling=cell)

        return ContactResult(ContactOutcome.CONTINUE, toggled=toggled)

    def _resolve_lying(self, block: BlockState, arrived: Sequence[Cell]) -> ContactResult:
        fall = self._check_lying_support(block)
        if fall is not None:
            return fall

        toggled = self._press_switches(arrived, standing=False)
        # a toggled bridge may have been under the block
        fall = self._check_lying_support(block)
        if fall is not None:
            fall.toggled = toggled
            return fall
        return ContactResult(ContactOutcome.CONTINUE, toggled=toggled)

    def _check_lying_support(self, block: BlockState) -> Optional[ContactResult]:
        unsupported = [c for c in block.footprint if not self.grid.is_supported(c)]
        if len(unsupported) == len(block.footprint):
            return ContactResult(ContactOutcome.FALL)
        if unsupported:
            peel = unsupported[0]
            block.collapse_onto(peel)
            return ContactResult(ContactOutcome.FALL, peel_onto=peel)
        return None

    def _resolve_detached(self, block: BlockState, arrived: Sequence[Cell]) -> ContactResult:
        if not self._halves_supported(block):
            return ContactResult(ContactOutcome.FALL)

        toggled = self._press_switches(arrived, standing=False)
        if not self._halves_supported(block):
            return ContactResult(ContactOutcome.FALL, toggled=toggled)

        rejoined = False
        if block.rejoin_on_adjacent and block.cell_a.is_adjacent(block.cell_b):
            block.rejoin()
            rejoined = True
        return ContactResult(ContactOutcome.CONTINUE, toggled=toggled, rejoined=rejoined)

    def _halves_supported(self, block: BlockState) -> bool:
        return all(self.grid.is_supported(c) for c in block.cells)

    # ------------------------------------------------------------------ #
    # Switches
    # ------------------------------------------------------------------ #
    def _press_switches(self, cells: Sequence[Cell], standing: bool) -> List[Cell]:
        toggled: List[Cell] = []
        for cell in dict.fromkeys(cells):
            link = self.level.switch_at(cell)
            if link is None:
                continue
            kind = self.grid.kind_at(cell)
            if kind is TileKind.SOFT_SWITCH or (kind is TileKind.HEAVY_SWITCH and standing):
                toggled.extend(self.grid.toggle(link.bridges))
        return toggled

