"""
Base classes and interfaces for the rollblock engine.

This module defines the records exchanged between the puzzle engine and the
collaborators that drive it (tool environments, replay runners, the CLI).
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from dataclasses import dataclass, field
from PIL import Image
from abc import ABC, abstractmethod
if TYPE_CHECKING:
    from rollblock.core.config import EnvironmentConfig


@dataclass
class Action:
    """Represents an action to be executed in the environment."""
    action_type: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert action to dictionary representation."""
        return {
            "action_type": self.action_type,
            "parameters": self.parameters,
        }


@dataclass
class State:
    """Represents the state of the environment after a step."""
    step: int
    tick: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert state to dictionary representation."""
        return {
            "step": self.step,
            "tick": self.tick,
            "metadata": self.metadata,
        }


@dataclass
class Observation:
    """Observation data handed back to whoever drives the environment."""
    image: Optional[Image.Image]
    state: State
    description: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert observation to dictionary (excluding images)."""
        return {
            "state": self.state.to_dict(),
            "description": self.description,
        }


@dataclass
class StepRecord:
    """One executed action and what came back from it."""
    action: Action
    result: Dict[str, Any]
    observation: Observation

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.to_dict(),
            "result": self.result,
            "observation": self.observation.to_dict(),
        }


class BaseEnvironment(ABC):
    """Base class for environments wrapping the puzzle engine."""

    def __init__(self, config: EnvironmentConfig):
        self.config: EnvironmentConfig = config

    @abstractmethod
    def reset(self) -> Observation:
        """Reset environment to initial state."""
        pass

    @abstractmethod
    def step(self, action: Action) -> Observation:
        """Execute action and return the new observation."""
        pass

    @abstractmethod
    def render(self) -> Image.Image:
        """Render the current environment state."""
        pass

    @abstractmethod
    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        """Get JSON schemas for the tool functions the environment exposes."""
        pass

    @abstractmethod
    def execute_tool_call(self, tool_name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a tool call by name."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Clean up environment resources."""
        pass
