"""Tests for rollblock/game/controller.py: run lifecycle driven by logic ticks."""

import pytest

from rollblock.core.config import EngineConfig
from rollblock.game import (
    Cell,
    Direction,
    Half,
    Orientation,
    RunController,
    RunPhase,
    SplitterSpec,
    SwitchLink,
    TileKind,
    TransitionKind,
)

from conftest import event_kinds, fast_engine, make_controller, make_level, play


def tick_until(controller: RunController, predicate, limit: int = 100) -> int:
    for n in range(limit):
        if predicate():
            return n
        controller.advance_logic_tick()
    raise AssertionError("condition never reached")


# ---------------------------------------------------------------------------
# Lifecycle and gating
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_starts_entering_and_ignores_input(self):
        controller = RunController(fast_engine(enter_ticks=5), None)
        assert controller.phase is RunPhase.ENTERING
        assert not controller.submit_move(Direction.RIGHT)
        assert controller.snapshot().moves_count == 0

    def test_enter_then_play(self):
        controller = RunController(fast_engine(enter_ticks=5))
        ticks = controller.advance_until_ready()
        assert ticks == 5
        assert controller.phase is RunPhase.PLAYING
        snap = controller.snapshot()
        assert snap.level_index == 1
        assert snap.orientation is Orientation.STANDING
        assert snap.cell_a == snap.cell_b == Cell(1, 6)

    def test_start_level_beyond_catalog(self):
        with pytest.raises(ValueError, match="start_level"):
            RunController(fast_engine(start_level=5))

    def test_input_gate_default_period(self):
        controller = RunController(EngineConfig(enter_ticks=0))
        assert controller.config.input_gate_ticks == 8
        controller.advance_logic_tick()
        assert controller.phase is RunPhase.PLAYING
        assert not controller.gate_open
        assert not controller.submit_move("r")
        for _ in range(7):
            controller.advance_logic_tick()
        assert controller.gate_open
        assert controller.submit_move("r")
        assert not controller.gate_open

    def test_move_rejected_while_rolling(self):
        controller = make_controller([make_level(start=Cell(1, 6))], roll_ticks=5)
        assert controller.submit_move(Direction.RIGHT)
        controller.advance_logic_tick()
        assert controller.gate_open
        assert controller.block.transition.kind is TransitionKind.ROLLING
        assert not controller.submit_move(Direction.RIGHT)
        assert controller.snapshot().moves_count == 1

    def test_move_counts_and_events(self):
        controller = make_controller([make_level(start=Cell(1, 6))])
        controller.drain_events()
        play(controller, "R")
        snap = controller.snapshot()
        assert snap.moves_count == 1
        assert snap.footprint == (Cell(2, 6), Cell(3, 6))
        assert event_kinds(controller) == ["move"]
        assert controller.drain_events() == []

    def test_snapshot_reports_roll_geometry(self):
        controller = make_controller([make_level(start=Cell(1, 6))], roll_ticks=4)
        controller.submit_move(Direction.UP)
        controller.advance_logic_tick()
        snap = controller.snapshot()
        assert snap.transition_kind is TransitionKind.ROLLING
        assert snap.direction is Direction.UP
        assert snap.pivot.axis == "j"
        assert snap.pivot.edge == 7
        assert snap.progress == pytest.approx(0.25)
        data = snap.to_dict()
        assert data["transition"] == "rolling"
        assert data["pivot"] == ["j", 7]

    def test_elapsed_time(self):
        controller = make_controller([make_level(start=Cell(1, 6))])
        before = controller.snapshot().elapsed_seconds
        for _ in range(10):
            controller.advance_logic_tick()
        assert controller.snapshot().elapsed_seconds == pytest.approx(before + 0.1)


# ---------------------------------------------------------------------------
# Falls and misses
# ---------------------------------------------------------------------------

class TestFalls:
    def test_void_border_fall_resets_block(self):
        controller = make_controller([make_level(start=Cell(1, 6))])
        controller.drain_events()
        play(controller, "L")
        snap = controller.snapshot()
        assert snap.miss_count == 1
        assert snap.phase is RunPhase.PLAYING
        assert snap.orientation is Orientation.STANDING
        assert snap.cell_a == Cell(1, 6)
        kinds = event_kinds(controller)
        assert kinds.count("fall") == 1
        assert "retry" in kinds

    def test_supported_settles_never_count_misses(self):
        controller = make_controller([make_level(start=Cell(1, 6))])
        play(controller, "RDDLU")
        assert controller.snapshot().miss_count == 0

    def test_miss_counted_when_fall_begins(self):
        controller = make_controller([make_level(start=Cell(1, 6))], fall_ticks=5)
        controller.submit_move(Direction.LEFT)
        tick_until(controller, lambda: controller.block.transition.kind is TransitionKind.FALLING)
        assert controller.state.miss_count == 1
        assert not controller.submit_move(Direction.RIGHT)

    def test_peel_collapses_onto_unsupported_cell(self):
        level = make_level(start=Cell(1, 6), tiles={Cell(3, 6): "."})
        controller = make_controller([level], fall_ticks=5)
        controller.drain_events()
        controller.submit_move(Direction.RIGHT)
        tick_until(controller, lambda: controller.block.transition.kind is TransitionKind.FALLING)
        assert controller.block.footprint == (Cell(3, 6),)
        assert controller.block.orientation is Orientation.STANDING
        fall = [e for e in controller.drain_events() if e.kind == "fall"][0]
        assert fall.details["peel_onto"] == (3, 6)

    def test_miss_limit_ends_run(self):
        controller = make_controller([make_level(start=Cell(1, 6))], miss_limit=2)
        play(controller, "L")
        assert not controller.state.game_over
        play(controller, "L")
        snap = controller.snapshot()
        assert snap.game_over
        assert not snap.won
        assert snap.phase is RunPhase.GAME_OVER
        assert snap.miss_count == 2

    def test_no_moves_after_game_over(self):
        controller = make_controller([make_level(start=Cell(1, 6))], miss_limit=1)
        play(controller, "L")
        before = controller.snapshot()
        assert not controller.submit_move(Direction.RIGHT)
        assert not controller.submit_toggle_active_half()
        for _ in range(20):
            controller.advance_logic_tick()
        after = controller.snapshot()
        assert after.cell_a == before.cell_a
        assert after.moves_count == before.moves_count
        assert after.elapsed_seconds == before.elapsed_seconds

    def test_restart_only_after_game_over(self):
        controller = make_controller([make_level(start=Cell(1, 6))], miss_limit=1)
        assert not controller.submit_restart()
        play(controller, "L")
        assert controller.submit_restart()
        assert not controller.submit_restart()
        controller.advance_until_ready()
        snap = controller.snapshot()
        assert snap.phase is RunPhase.PLAYING
        assert (snap.moves_count, snap.miss_count) == (0, 0)
        assert snap.elapsed_seconds == pytest.approx(0.01)
        assert not snap.game_over

    def test_fragile_grace_then_fall(self):
        level = make_level(start=Cell(1, 6), tiles={Cell(4, 6): "~"})
        controller = make_controller([level], roll_ticks=1, fall_ticks=2, fragile_grace_ticks=2)
        play(controller, "R")
        controller.submit_move(Direction.RIGHT)
        controller.advance_logic_tick()
        snap = controller.snapshot()
        assert snap.transition_kind is TransitionKind.FALLING
        assert snap.crumbling == Cell(4, 6)
        assert snap.miss_count == 1
        assert not controller.submit_move(Direction.RIGHT)
        # grace (2) + fall (2)
        for _ in range(3):
            controller.advance_logic_tick()
            assert controller.block.transition.kind is TransitionKind.FALLING
        controller.advance_logic_tick()
        assert controller.block.is_idle
        assert controller.block.cell_a == Cell(1, 6)


# ---------------------------------------------------------------------------
# Tiles through the controller
# ---------------------------------------------------------------------------

class TestTilesInPlay:
    def test_lying_on_target_does_not_complete(self):
        controller = make_controller([make_level(start=Cell(1, 6), target=Cell(3, 6))])
        play(controller, "R")
        assert controller.phase is RunPhase.PLAYING
        assert controller.block.is_idle

    def test_standing_on_target_completes_last_level(self):
        controller = make_controller([make_level(start=Cell(1, 6), target=Cell(4, 6))])
        controller.drain_events()
        play(controller, "RR")
        snap = controller.snapshot()
        assert snap.game_over
        assert snap.won
        kinds = event_kinds(controller)
        assert kinds.index("complete") < kinds.index("game_over")

    def test_completion_advances_level(self):
        first = make_level(start=Cell(1, 6), target=Cell(4, 6), index=1)
        second = make_level(start=Cell(2, 2), target=Cell(9, 2), index=2)
        controller = make_controller([first, second])
        play(controller, "RR")
        snap = controller.snapshot()
        assert snap.level_index == 2
        assert snap.cell_a == Cell(2, 2)
        assert snap.moves_count == 2
        assert not snap.game_over

    def test_bridges_reset_after_fall(self):
        level = make_level(
            start=Cell(1, 6),
            tiles={Cell(3, 6): "o", Cell(6, 6): "."},
            switches=[SwitchLink(switch=Cell(3, 6), bridges=(Cell(6, 6),))],
        )
        controller = make_controller([level])
        play(controller, "R")
        assert controller.grid.kind_at(Cell(6, 6)) is TileKind.FLOOR
        play(controller, "LL")
        assert controller.state.miss_count == 1
        assert controller.grid.kind_at(Cell(6, 6)) is TileKind.VOID

    def test_heavy_switch_needs_standing(self):
        level = make_level(
            start=Cell(1, 6),
            tiles={Cell(4, 6): "x", Cell(6, 6): "."},
            switches=[SwitchLink(switch=Cell(4, 6), bridges=(Cell(6, 6),))],
        )
        controller = make_controller([level])
        play(controller, "RR")
        assert controller.grid.kind_at(Cell(6, 6)) is TileKind.FLOOR
        play(controller, "R")
        # lying across (5,6) and (6,6): the bridge holds
        assert controller.state.miss_count == 0
        # standing on the switch again flips the bridge back
        play(controller, "L")
        assert controller.block.footprint == (Cell(4, 6),)
        assert controller.grid.kind_at(Cell(6, 6)) is TileKind.VOID

    def test_switch_opening_bridge_under_block_drops_it(self):
        level = make_level(
            start=Cell(1, 6),
            tiles={Cell(2, 6): "o"},
            switches=[SwitchLink(switch=Cell(2, 6), bridges=(Cell(3, 6),))],
        )
        controller = make_controller([level])
        controller.drain_events()
        assert controller.submit_move(Direction.RIGHT)
        tick_until(controller, lambda: controller.block.transition.kind is TransitionKind.FALLING)

        assert controller.grid.kind_at(Cell(3, 6)) is TileKind.VOID
        assert controller.block.footprint == (Cell(3, 6),)
        assert controller.state.miss_count == 1
        kinds = event_kinds(controller)
        assert kinds.index("toggle") < kinds.index("fall")

        controller.advance_until_ready()
        assert controller.block.footprint == (Cell(1, 6),)
        assert controller.grid.kind_at(Cell(3, 6)) is TileKind.FLOOR
        assert controller.state.miss_count == 1


# ---------------------------------------------------------------------------
# Split mode
# ---------------------------------------------------------------------------

def splitter_level(rejoin: bool = False):
    splitter = SplitterSpec(cell=Cell(13, 4), destination_a=Cell(3, 7), destination_b=Cell(3, 2),
                            active_half=Half.A, rejoin_on_adjacent=rejoin)
    return make_level(start=Cell(10, 4), target=Cell(7, 8), tiles={Cell(13, 4): "%"}, splitters=[splitter])


class TestSplitMode:
    def test_standing_on_splitter_splits(self):
        controller = make_controller([splitter_level()])
        controller.drain_events()
        play(controller, "RR")
        snap = controller.snapshot()
        assert not snap.attached
        assert (snap.cell_a, snap.cell_b) == (Cell(3, 7), Cell(3, 2))
        assert snap.active_half is Half.A
        assert "split" in event_kinds(controller)

    def test_moves_affect_only_active_half(self):
        controller = make_controller([splitter_level()])
        play(controller, "RR U")
        assert controller.block.cell_a == Cell(3, 8)
        assert controller.block.cell_b == Cell(3, 2)
        play(controller, "S D")
        assert controller.block.cell_a == Cell(3, 8)
        assert controller.block.cell_b == Cell(3, 1)

    def test_swap_rejected_while_attached(self):
        controller = make_controller([splitter_level()])
        assert not controller.submit_toggle_active_half()

    def test_halves_rejoin_when_enabled(self):
        controller = make_controller([splitter_level(rejoin=True)])
        controller.drain_events()
        play(controller, "RR S UUU")
        # B climbed (3,2) -> (3,5); not yet next to A at (3,7)
        assert not controller.block.attached
        play(controller, "U")
        assert controller.block.attached
        assert controller.block.footprint == (Cell(3, 7), Cell(3, 6))
        assert "rejoin" in event_kinds(controller)

    def test_halves_stay_apart_when_disabled(self):
        controller = make_controller([splitter_level(rejoin=False)])
        play(controller, "RR S UUUU")
        assert not controller.block.attached

    def test_split_fall_resets_attached(self):
        controller = make_controller([splitter_level()])
        play(controller, "RR UU")
        snap = controller.snapshot()
        assert snap.miss_count == 1
        assert snap.attached
        assert snap.cell_a == Cell(10, 4)

    def test_switch_opening_bridge_under_other_half(self):
        splitter = SplitterSpec(cell=Cell(13, 4), destination_a=Cell(3, 7), destination_b=Cell(3, 2),
                                active_half=Half.A, rejoin_on_adjacent=False)
        level = make_level(
            start=Cell(10, 4),
            target=Cell(7, 8),
            tiles={Cell(13, 4): "%", Cell(3, 8): "o"},
            switches=[SwitchLink(switch=Cell(3, 8), bridges=(Cell(3, 2),))],
            splitters=[splitter],
        )
        controller = make_controller([level])
        play(controller, "RR")
        assert not controller.block.attached

        assert controller.submit_move(Direction.UP)
        tick_until(controller, lambda: controller.state.miss_count == 1)
        assert controller.grid.kind_at(Cell(3, 2)) is TileKind.VOID
        assert controller.block.transition.kind is TransitionKind.FALLING


# ---------------------------------------------------------------------------
# Built-in levels
# ---------------------------------------------------------------------------

class TestBuiltinSolutions:
    def test_level_one(self):
        controller = RunController(fast_engine())
        play(controller, "RDDRRDR")
        snap = controller.snapshot()
        assert snap.level_index == 2
        assert snap.miss_count == 0
        assert snap.moves_count == 7

    def test_level_four_split_and_rejoin(self):
        controller = RunController(fast_engine(start_level=4))
        play(controller, "RR D S UUUU DRR")
        snap = controller.snapshot()
        assert snap.game_over
        assert snap.won
        assert snap.miss_count == 0

    def test_level_two_soft_switch_opens_first_bridge(self):
        controller = RunController(fast_engine(start_level=2))
        controller.advance_until_ready()
        assert controller.grid.kind_at(Cell(4, 3)) is TileKind.VOID
        # (1,3) -> lying (1,4),(1,5) -> across (2,4),(2,5) onto the soft switch
        play(controller, "UR")
        assert controller.grid.kind_at(Cell(4, 3)) is TileKind.FLOOR
        assert controller.grid.kind_at(Cell(5, 3)) is TileKind.FLOOR
