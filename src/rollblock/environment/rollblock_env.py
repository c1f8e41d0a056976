"""
Rolling-block environment for rollblock.

This environment wraps the tick-driven puzzle engine so that a scripted
player (or any tool-calling agent) can drive it through named tools. Each
accepted input is followed by ``advance_until_ready`` so that one tool call
covers one complete roll, including any fall, completion or level change it
causes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from PIL import Image

from rollblock.core import (
    EngineConfig,
    EnvironmentConfig,
    BaseEnvironment,
    register_environment,
    register_environment_config,
)
from rollblock.core.base import Action, Observation, State
from rollblock.game import Direction, LevelCatalog, RunController, RunPhase, default_catalog
from rollblock.utils.renderer import GridRenderer, render_ascii


@register_environment_config("rollblock")
@dataclass
class RollBlockEnvConfig(EnvironmentConfig):
    """Configuration for the rollblock tool environment."""

    auto_advance: bool = True
    include_board: bool = True

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.type != "rollblock":
            raise ValueError(f"RollBlockEnvConfig cannot be used for environment type '{self.type}'")


@register_environment("rollblock")
class RollBlockEnvironment(BaseEnvironment):
    """Tool-call wrapper around ``RunController``."""

    def __init__(self, config: RollBlockEnvConfig,
                 engine_config: Optional[EngineConfig] = None,
                 catalog: Optional[LevelCatalog] = None):
        if not isinstance(config, RollBlockEnvConfig):
            config = RollBlockEnvConfig(**asdict(config))
        super().__init__(config)
        self.config: RollBlockEnvConfig
        self.engine_config = engine_config or EngineConfig()
        self.catalog = catalog or default_catalog()
        self.renderer = GridRenderer(config.render_width, config.render_height)
        self.step_count: int = 0
        self.current_state: Optional[State] = None
        self.controller: Optional[RunController] = None
        self._tool_handlers = {
            "state": self._tool_state,
            "move": self._tool_move,
            "swap": self._tool_swap,
            "restart": self._tool_restart,
            "wait": self._tool_wait,
        }

    @property
    def done(self) -> bool:
        if self.controller is None:
            return False
        return self.controller.state.game_over or self.step_count >= self.config.max_steps

    # ------------------------------------------------------------------ #
    # BaseEnvironment API
    # ------------------------------------------------------------------ #
    def reset(self) -> Observation:
        """Start a fresh run and wait until the first level accepts input."""
        self.step_count = 0
        self.controller = RunController(self.engine_config, self.catalog)
        ticks = self.controller.advance_until_ready(self.config.max_ticks_per_step)
        events = [e.to_dict() for e in self.controller.drain_events()]
        self.current_state = self._get_current_state(metadata={"ticks": ticks, "events": events})
        return self._create_observation()

    def step(self, action: Action) -> Observation:
        """Execute an action (tool call) and return new observation."""
        self.step_count += 1
        tool_result = self.execute_tool_call(action.action_type, action.parameters)
        self.current_state = self._get_current_state(
            metadata={
                "tool_call": action.to_dict(),
                "tool_result": tool_result,
            }
        )
        return self._create_observation()

    def render(self) -> Image.Image:
        """Render current game state to a PIL image."""
        if self.controller is None:
            return Image.new("RGB", (self.config.render_width, self.config.render_height), color="white")
        return self.renderer.render(self.controller.snapshot())

    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        """Return JSON schemas for the tools this environment exposes."""
        def build_schema(name: str, desc: str, properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
            return {
                "type": "function",
                "function": {
                    "name": name,
                    "description": desc,
                    "parameters": {
                        "type": "object",
                        "properties": properties,
                        "required": required,
                    },
                },
            }

        return [
            build_schema(
                "state",
                "Show the current run state: level, block cells and orientation, moves, misses.",
                {},
                [],
            ),
            build_schema(
                "move",
                "Roll the block one step. While the block is split, only the active half moves. "
                "Coordinates: right is i+1, up is j+1.",
                {
                    "direction": {
                        "type": "string",
                        "enum": [d.value for d in Direction],
                        "description": "Direction to roll.",
                    },
                },
                ["direction"],
            ),
            build_schema(
                "swap",
                "Switch control to the other half while the block is split.",
                {},
                [],
            ),
            build_schema(
                "restart",
                "Start a new run after game over.",
                {},
                [],
            ),
            build_schema(
                "wait",
                "Advance the simulation by a number of ticks without input.",
                {"ticks": {"type": "integer", "minimum": 1, "description": "Ticks to advance."}},
                ["ticks"],
            ),
        ]

    def execute_tool_call(self, tool_name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Dispatch tool calls."""
        handler = self._tool_handlers.get(tool_name)
        if not handler:
            return {"status": "error", "message": f"Unknown tool '{tool_name}'"}
        if self.controller is None:
            return {"status": "error", "message": "Environment not reset"}
        try:
            return handler(**(arguments or {}))
        except (TypeError, ValueError) as exc:
            return {"status": "error", "message": f"Tool '{tool_name}' failed: {exc}"}

    def close(self) -> None:
        """Cleanup (no external resources)."""
        self.controller = None

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _get_current_state(self, metadata: Optional[Dict[str, Any]] = None) -> State:
        """Convert the engine snapshot to a State record."""
        if self.controller is None:
            return State(step=self.step_count, tick=0, metadata=metadata or {})
        meta = self.controller.snapshot().to_dict()
        if metadata:
            meta.update(metadata)
        return State(step=self.step_count, tick=self.controller.tick, metadata=meta)

    def _create_observation(self) -> Observation:
        image = self.render() if self.config.render_observations else None
        return Observation(image=image, state=self.current_state, description=self._get_state_description())

    def _get_state_description(self) -> str:
        """Textual description of the board for logs and prompts."""
        if self.controller is None or self.current_state is None:
            return "Rollblock environment not initialized."

        snap = self.controller.snapshot()
        level = self.controller.level
        desc_lines = [
            f"Level {snap.level_index}/{self.controller.state.max_level}"
            + (f" ({level.name})" if level.name else ""),
            f"Phase: {snap.phase.value}",
            f"Moves: {snap.moves_count}, Misses: {snap.miss_count}/{snap.miss_limit}",
            f"Target: {level.target}",
        ]
        if snap.attached:
            cells = ", ".join(str(c) for c in snap.footprint)
            desc_lines.append(f"Block: {snap.orientation.value} on {cells}")
        else:
            desc_lines.append(
                f"Block split: A at {snap.cell_a}, B at {snap.cell_b}, active half {snap.active_half.name}"
            )

        metadata = self.current_state.metadata
        tool_call = metadata.get("tool_call")
        tool_res = metadata.get("tool_result")
        if tool_call and tool_res:
            desc_lines.append(
                f"Last tool: {tool_call.get('action_type')} with {tool_call.get('parameters')}, "
                f"result: {tool_res.get('status')} - {tool_res.get('message')}"
            )
        if snap.game_over:
            desc_lines.append("Run complete: all levels cleared." if snap.won else "Game over: out of misses.")
        if self.config.include_board:
            desc_lines.append(render_ascii(snap))
        return "\n".join(desc_lines)

    def _advance(self) -> Dict[str, Any]:
        ticks = 0
        if self.config.auto_advance:
            ticks = self.controller.advance_until_ready(self.config.max_ticks_per_step)
        events = [e.to_dict() for e in self.controller.drain_events()]
        return {"ticks": ticks, "events": events}

    def _rejection_reason(self) -> str:
        controller = self.controller
        if controller.state.game_over:
            return "run is over; use restart"
        if controller.phase is not RunPhase.PLAYING:
            return f"level is {controller.phase.value}"
        if not controller.block.is_idle:
            return f"block is {controller.block.transition.kind.value}"
        if not controller.gate_open:
            return "input gate is closed; wait a few ticks"
        return "input not accepted"

    # ------------------------------------------------------------------ #
    # Tool implementations
    # ------------------------------------------------------------------ #
    def _tool_state(self) -> Dict[str, Any]:
        return {
            "status": "success",
            "message": "State retrieved",
            "state": self.controller.snapshot().to_dict(),
        }

    def _tool_move(self, direction: str) -> Dict[str, Any]:
        parsed = Direction.parse(direction)
        if not self.controller.submit_move(parsed):
            return {"status": "error", "message": f"Move rejected: {self._rejection_reason()}"}
        outcome = self._advance()
        return {
            "status": "success",
            "message": f"Rolled {parsed.value}",
            "state": self.controller.snapshot().to_dict(),
            **outcome,
        }

    def _tool_swap(self) -> Dict[str, Any]:
        if not self.controller.submit_toggle_active_half():
            reason = "block is not split" if self.controller.block.attached else self._rejection_reason()
            return {"status": "error", "message": f"Swap rejected: {reason}"}
        outcome = self._advance()
        return {
            "status": "success",
            "message": f"Active half is now {self.controller.block.active_half.name}",
            **outcome,
        }

    def _tool_restart(self) -> Dict[str, Any]:
        if not self.controller.submit_restart():
            return {"status": "error", "message": "Restart is only available after game over"}
        outcome = self._advance()
        return {"status": "success", "message": "Run restarted", **outcome}

    def _tool_wait(self, ticks: int) -> Dict[str, Any]:
        ticks = int(ticks)
        if ticks < 1:
            raise ValueError("ticks must be >= 1")
        for _ in range(ticks):
            self.controller.advance_logic_tick()
        events = [e.to_dict() for e in self.controller.drain_events()]
        return {"status": "success", "message": f"Advanced {ticks} ticks", "ticks": ticks, "events": events}
