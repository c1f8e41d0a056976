"""
Replay runner for rollblock.

This module drives the tool environment through a scripted sequence of
moves, logs every step and stores a one-row summary of the run.
"""

import os
import re
import time
from typing import Any, Dict, List, Optional

from rollblock.core import Config, get_environment_class
from rollblock.core.base import Action, Observation, StepRecord
from rollblock.game import Direction, LevelCatalog
from rollblock.utils.logger import ExperimentLogger
from rollblock.utils.display import StatusDisplay, LiveLogger

_LETTER_ACTIONS = {
    "L": Action("move", {"direction": "left"}),
    "R": Action("move", {"direction": "right"}),
    "U": Action("move", {"direction": "up"}),
    "D": Action("move", {"direction": "down"}),
    "S": Action("swap"),
}


def parse_move_script(script: str) -> List[Action]:
    """
    Parse a move script into environment actions.

    Tokens are separated by whitespace or commas. A token is either a full
    word (``left``, ``up``, ``swap``, ``restart``, ``wait:<ticks>``) or a run
    of the letters ``L R U D S`` (``S`` swaps the active half), e.g.
    ``"RRD S UUUU"``. Lines starting with ``#`` are ignored.

    Raises:
        ValueError: On an unknown token
    """
    actions: List[Action] = []
    lines = [line for line in script.splitlines() if not line.strip().startswith("#")]
    for token in re.split(r"[\s,]+", " ".join(lines)):
        if not token:
            continue
        word = token.lower()
        if word in ("swap", "restart"):
            actions.append(Action(word))
        elif word.startswith("wait:"):
            actions.append(Action("wait", {"ticks": int(word.split(":", 1)[1])}))
        elif word in (d.value for d in Direction):
            actions.append(Action("move", {"direction": word}))
        else:
            for char in token.upper():
                if char not in _LETTER_ACTIONS:
                    raise ValueError(f"Unknown move '{char}' in token '{token}'")
                template = _LETTER_ACTIONS[char]
                actions.append(Action(template.action_type, dict(template.parameters)))
    return actions


class ReplayRunner:
    """Runs move scripts against the registered environment."""

    def __init__(self, config: Config, catalog: Optional[LevelCatalog] = None):
        self.config = config
        self.catalog = catalog
        self.environment = None
        self.logger: Optional[ExperimentLogger] = None
        self.live_logger = LiveLogger(verbose=config.runner.verbose)
        self.history: List[StepRecord] = []

    def setup(self) -> None:
        """Create the environment and the on-disk logger."""
        # Deferred from RunnerConfig to avoid side effects on import
        os.makedirs(self.config.runner.log_dir, exist_ok=True)
        self.logger = ExperimentLogger(
            log_dir=self.config.runner.log_dir,
            experiment_name=self.config.runner.experiment_name,
        )
        env_cls = get_environment_class(self.config.environment.type)
        self.environment = env_cls(self.config.environment, self.config.engine, self.catalog)
        self.live_logger.log_info("Replay setup complete")

    def run(self, script: str, save: bool = True) -> Dict[str, Any]:
        """
        Replay one move script from a fresh run.

        Args:
            script: Move script (see ``parse_move_script``)
            save: Whether to write logs and append the results table

        Returns:
            Summary of the run
        """
        if self.environment is None:
            self.setup()

        actions = parse_move_script(script)
        verbose = self.config.runner.verbose
        if verbose:
            StatusDisplay.print_header(f"Replay: {self.config.runner.experiment_name}")

        start_time = time.time()
        self.history = []
        observation = self.environment.reset()
        self._log(0, "initial", observation)

        rejected = 0
        step = 0
        for step, action in enumerate(actions, start=1):
            if self.environment.done:
                self.live_logger.log_warning(f"Run ended before step {step}; skipping the rest of the script")
                step -= 1
                break
            self.live_logger.log_step_start(step, f"{action.action_type} {action.parameters or ''}".strip())
            observation = self.environment.step(action)
            result = observation.state.metadata.get("tool_result", {})
            ok = result.get("status") == "success"
            if not ok:
                rejected += 1
            for event in result.get("events", []):
                self.live_logger.log_event(event["kind"], event["details"])
            self.live_logger.log_step_end(step, result.get("message", ""), success=ok)
            self.history.append(StepRecord(action=action, result=result, observation=observation))
            self._log(step, "action", observation, action=action, tool_result=result)

        results = self._summarize(script, step, rejected, time.time() - start_time)
        if verbose:
            StatusDisplay.print_results(results, title="Replay Results")
        if save:
            self.logger.save_logs()
            self.logger.save_results(results, self.config.runner.results_path)
        return results

    def close(self) -> None:
        if self.environment is not None:
            self.environment.close()
            self.environment = None

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _log(self, step: int, step_type: str, observation: Observation,
             action: Optional[Action] = None, tool_result: Optional[Dict[str, Any]] = None) -> None:
        data: Dict[str, Any] = {
            "step_type": step_type,
            "observation": observation.to_dict(),
            "events": (tool_result or observation.state.metadata).get("events", []),
        }
        if action is not None:
            data["action"] = action.to_dict()
        if tool_result is not None:
            data["tool_result"] = {k: v for k, v in tool_result.items() if k != "events"}
        if self.config.runner.save_images and observation.image is not None:
            data["image"] = observation.image
        self.logger.log_step(step, data, verbose=False)

    def _summarize(self, script: str, steps: int, rejected: int, wall_time: float) -> Dict[str, Any]:
        snapshot = self.environment.controller.snapshot()
        return {
            "experiment_name": self.config.runner.experiment_name,
            "script": " ".join(script.split()),
            "steps": steps,
            "rejected_actions": rejected,
            "moves": snapshot.moves_count,
            "misses": snapshot.miss_count,
            "level_reached": snapshot.level_index,
            "game_over": snapshot.game_over,
            "won": snapshot.won,
            "ticks": snapshot.tick,
            "elapsed_seconds": snapshot.elapsed_seconds,
            "wall_time": round(wall_time, 3),
        }
