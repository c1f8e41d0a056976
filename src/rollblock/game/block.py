"""
Block state - position, orientation and the pivot rules of the rolling block
"""

from typing import List, Optional, Tuple
from dataclasses import dataclass

from .game_core import (
    Cell, Direction, Half, Height, Orientation, PivotGeometry,
    Transition, TransitionKind, IDLE,
)


def _projection(cell: Cell, direction: Direction) -> int:
    """Distance travelled along ``direction``; larger means further ahead."""
    di, dj = direction.delta
    return cell.i * di + cell.j * dj


def pivot_roll(
    cell_a: Cell, cell_b: Cell,
    height_a: Height, height_b: Height,
    direction: Direction,
) -> Tuple[Cell, Cell, Height, Height]:
    """
    Apply the 90 degree pivot rule to an attached block.

    Standing: the lower half lands one cell ahead, the upper half two.
    Lying along the move axis: the block stands up one cell beyond its far
    end, with the trailing half ending on top.
    Lying across the move axis: both halves slide one cell.

    Returns:
        (cell_a, cell_b, height_a, height_b) after the roll
    """
    if cell_a == cell_b:
        if height_a is Height.HIGH and height_b is not Height.HIGH:
            return cell_a.shifted(direction, 2), cell_b.shifted(direction, 1), Height.LOW, Height.LOW
        return cell_a.shifted(direction, 1), cell_b.shifted(direction, 2), Height.LOW, Height.LOW

    same_axis = (cell_a.i == cell_b.i) if direction.axis == "j" else (cell_a.j == cell_b.j)
    if not same_axis:
        return cell_a.shifted(direction), cell_b.shifted(direction), height_a, height_b

    if _projection(cell_a, direction) > _projection(cell_b, direction):
        # a leads: it tips over its own edge, b swings over on top
        landing = cell_a.shifted(direction)
        return landing, landing, Height.LOW, Height.HIGH
    landing = cell_b.shifted(direction)
    return landing, landing, Height.HIGH, Height.LOW


@dataclass
class BlockState:
    """
    The rolling block.

    ``cell_a``/``cell_b`` stay two independent handles even when equal
    (standing), because a split block moves them separately.
    """
    cell_a: Cell
    cell_b: Cell
    height_a: Height = Height.LOW
    height_b: Height = Height.HIGH
    attached: bool = True
    active_half: Half = Half.A
    rejoin_on_adjacent: bool = False
    transition: Transition = IDLE

    @classmethod
    def standing_at(cls, cell: Cell) -> "BlockState":
        return cls(cell_a=cell, cell_b=cell, height_a=Height.LOW, height_b=Height.HIGH)

    @property
    def orientation(self) -> Orientation:
        if self.attached and self.cell_a == self.cell_b:
            return Orientation.STANDING
        return Orientation.LYING

    @property
    def is_standing(self) -> bool:
        return self.orientation is Orientation.STANDING

    @property
    def cells(self) -> Tuple[Cell, Cell]:
        return (self.cell_a, self.cell_b)

    @property
    def footprint(self) -> Tuple[Cell, ...]:
        """Distinct occupied cells."""
        if self.cell_a == self.cell_b:
            return (self.cell_a,)
        return (self.cell_a, self.cell_b)

    @property
    def is_idle(self) -> bool:
        return self.transition.kind is TransitionKind.IDLE

    def cell_of(self, half: Half) -> Cell:
        return self.cell_a if half is Half.A else self.cell_b

    # ------------------------------------------------------------------ #
    # Moves
    # ------------------------------------------------------------------ #
    def roll(self, direction: Direction, ticks: int) -> List[Cell]:
        """
        Move the block one step and start the rolling transition.

        The footprint changes immediately; ``ticks`` only sets how long the
        transition is reported as running.

        Returns:
            Cells that were arrived on by this move
        """
        origin = self.footprint
        if self.attached:
            self.cell_a, self.cell_b, self.height_a, self.height_b = pivot_roll(
                self.cell_a, self.cell_b, self.height_a, self.height_b, direction
            )
            arrived = list(self.footprint)
            pivot_cells = list(origin)
        else:
            moved = self.cell_of(self.active_half)
            pivot_cells = [moved]
            moved = moved.shifted(direction)
            if self.active_half is Half.A:
                self.cell_a = moved
            else:
                self.cell_b = moved
            arrived = [moved]

        self.transition = Transition(
            kind=TransitionKind.ROLLING,
            ticks_remaining=ticks,
            total_ticks=ticks,
            direction=direction,
            pivot=PivotGeometry.for_roll(pivot_cells, direction),
            origin=origin,
        )
        return arrived

    def toggle_active_half(self) -> Half:
        self.active_half = self.active_half.other
        return self.active_half

    # ------------------------------------------------------------------ #
    # Contact effects
    # ------------------------------------------------------------------ #
    def split(self, destination_a: Cell, destination_b: Cell,
              active_half: Half, rejoin_on_adjacent: bool) -> None:
        self.attached = False
        self.cell_a = destination_a
        self.cell_b = destination_b
        self.height_a = Height.LOW
        self.height_b = Height.LOW
        self.active_half = active_half
        self.rejoin_on_adjacent = rejoin_on_adjacent

    def rejoin(self) -> None:
        """Re-attach two adjacent halves into one lying block."""
        if not self.cell_a.is_adjacent(self.cell_b):
            raise ValueError(f"Halves at {self.cell_a} and {self.cell_b} are not adjacent")
        self.attached = True
        self.active_half = Half.A
        self.rejoin_on_adjacent = False
        self.height_a = Height.LOW
        self.height_b = Height.LOW

    def collapse_onto(self, cell: Cell) -> None:
        """Tip a half-supported lying block into its unsupported cell."""
        if cell == self.cell_a:
            self.cell_b = cell
            self.height_a, self.height_b = Height.LOW, Height.HIGH
        elif cell == self.cell_b:
            self.cell_a = cell
            self.height_a, self.height_b = Height.HIGH, Height.LOW
        else:
            raise ValueError(f"{cell} is not under the block")

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #
    def begin_fall(self, ticks: int, delay: int = 0, crumbling: Optional[Cell] = None) -> None:
        self.transition = Transition(
            kind=TransitionKind.FALLING,
            ticks_remaining=ticks,
            total_ticks=ticks,
            origin=self.footprint,
            delay=delay,
            crumbling=crumbling,
        )

    def begin_completion(self, ticks: int) -> None:
        self.transition = Transition(
            kind=TransitionKind.COMPLETING,
            ticks_remaining=ticks,
            total_ticks=ticks,
            origin=self.footprint,
        )

    def tick(self) -> Optional[TransitionKind]:
        """
        Advance the running transition by one tick.

        Returns:
            The kind of transition that finished on this tick, if any
        """
        if self.is_idle:
            return None
        self.transition = self.transition.advanced()
        if not self.transition.finished:
            return None
        finished = self.transition.kind
        self.transition = IDLE
        return finished
