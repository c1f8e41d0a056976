"""
Configuration management for rollblock.

This module handles loading and validation of YAML configuration files and
provides typed configuration objects for the engine, the tool environment and
the replay runner.
"""

import math
import warnings
import yaml
from typing import Any, Dict, List
from dataclasses import dataclass, field, asdict
from pathlib import Path

from rollblock.core.registry import ENVIRONMENT_CONFIG_REGISTRY


@dataclass
class EngineConfig:
    """Timing and rule parameters of the simulation engine.

    All animation lengths are counted in logic ticks; ``tick_ms`` only maps
    ticks back to wall-clock time for read-back and for the input gate.
    """
    tick_ms: float = 40.0
    input_gate_ms: float = 300.0
    roll_ticks: int = 18
    fall_ticks: int = 12
    complete_ticks: int = 8
    enter_ticks: int = 25
    exit_ticks: int = 25
    fragile_grace_ticks: int = 1
    miss_limit: int = 10
    start_level: int = 1

    def __post_init__(self):
        if not isinstance(self.tick_ms, (float, int)) or self.tick_ms <= 0:
            raise ValueError("tick_ms must be a positive number")
        if not isinstance(self.input_gate_ms, (float, int)) or self.input_gate_ms <= 0:
            raise ValueError("input_gate_ms must be a positive number")
        for name in ("roll_ticks", "fall_ticks", "complete_ticks", "enter_ticks", "exit_ticks"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer")
        if not isinstance(self.fragile_grace_ticks, int) or self.fragile_grace_ticks < 0:
            raise ValueError("fragile_grace_ticks must be a non-negative integer")
        if not isinstance(self.miss_limit, int) or self.miss_limit <= 0:
            raise ValueError("miss_limit must be a positive integer")
        if not isinstance(self.start_level, int) or self.start_level < 1:
            raise ValueError("start_level must be an integer >= 1")
        if self.miss_limit > 99:
            warnings.warn(
                f"miss_limit={self.miss_limit} is very large; "
                f"the run will practically never end in a loss."
            )

    @property
    def input_gate_ticks(self) -> int:
        """Number of ticks between two openings of the input gate."""
        return max(1, int(math.floor(self.input_gate_ms / self.tick_ms + 0.5)))


@dataclass
class EnvironmentConfig:
    """Configuration for the tool environment wrapping the engine."""
    type: str = "rollblock"
    render_width: int = 600
    render_height: int = 400
    render_observations: bool = True
    max_steps: int = 200
    max_ticks_per_step: int = 2000

    def __post_init__(self):
        if not isinstance(self.render_width, int) or self.render_width <= 0:
            raise ValueError("render_width must be a positive integer")
        if not isinstance(self.render_height, int) or self.render_height <= 0:
            raise ValueError("render_height must be a positive integer")
        if not isinstance(self.max_steps, int) or self.max_steps <= 0:
            raise ValueError("max_steps must be a positive integer")
        if not isinstance(self.max_ticks_per_step, int) or self.max_ticks_per_step <= 0:
            raise ValueError("max_ticks_per_step must be a positive integer")

    @classmethod
    def from_dict(cls, env_data: Dict[str, Any]) -> "EnvironmentConfig":
        config_type = env_data.get("type", "rollblock")
        config_cls = ENVIRONMENT_CONFIG_REGISTRY.get(config_type, EnvironmentConfig)
        return config_cls(**env_data)


@dataclass
class RunnerConfig:
    """Configuration for the replay runner."""
    experiment_name: str = "rollblock_replay"
    log_dir: str = "logs"
    results_path: str = "replay_results.csv"
    save_images: bool = False
    verbose: bool = True

    def __post_init__(self):
        # Directory creation is deferred to the runner to avoid side effects on import
        if not isinstance(self.experiment_name, str) or not self.experiment_name:
            raise ValueError("experiment_name must be a non-empty string")


@dataclass
class Config:
    """Main configuration object."""
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    environment: EnvironmentConfig = field(default_factory=lambda: EnvironmentConfig.from_dict({}))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        runner = RunnerConfig(**(data.get("runner") or {}))
        engine = EngineConfig(**(data.get("engine") or {}))
        environment = EnvironmentConfig.from_dict(data.get("environment") or {})
        return cls(runner=runner, engine=engine, environment=environment)

    def to_dict(self) -> Dict[str, Any]:
        """Convert Config to dictionary."""
        return {
            "runner": asdict(self.runner),
            "engine": asdict(self.engine),
            "environment": asdict(self.environment),
        }


def load_config(config_path: str) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Config object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
        ValueError: If the file is empty or holds invalid values
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing YAML config: {e}")

    if not data:
        raise ValueError("Configuration file is empty")
    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a mapping at top level")

    try:
        return Config.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Error creating config from data: {e}")


def create_default_config(output_path: str = "config.yaml") -> Config:
    """
    Create a default configuration file.

    Args:
        output_path: Path where to save the default config

    Returns:
        Default Config object
    """
    config = Config(runner=RunnerConfig(experiment_name="default_replay"))

    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)

    return config


def validate_config(config: Config) -> List[str]:
    """
    Validate configuration and return list of warnings/errors.

    Args:
        config: Configuration to validate

    Returns:
        List of validation messages
    """
    from rollblock.game.levels import default_catalog

    issues = []
    engine = config.engine

    max_level = default_catalog().max_level
    if engine.start_level > max_level:
        issues.append(f"ERROR: start_level {engine.start_level} exceeds the {max_level} built-in levels")

    if config.environment.type not in ENVIRONMENT_CONFIG_REGISTRY and config.environment.type != "rollblock":
        issues.append(f"WARNING: Unknown environment type '{config.environment.type}'")

    if engine.input_gate_ms < engine.tick_ms:
        issues.append("WARNING: input_gate_ms is shorter than one tick; the gate opens every tick")

    if engine.roll_ticks * engine.tick_ms > engine.input_gate_ms * 4:
        issues.append("WARNING: roll animation is much longer than the input gate interval")

    if engine.fragile_grace_ticks > engine.fall_ticks:
        issues.append("WARNING: fragile_grace_ticks is longer than the fall itself")

    if config.environment.max_ticks_per_step < engine.roll_ticks + engine.fall_ticks + engine.input_gate_ticks:
        issues.append("ERROR: max_ticks_per_step is too small to finish a roll and a fall")

    return issues
