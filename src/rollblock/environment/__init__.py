"""
Environment implementations for rollblock.

- RollBlockEnvironment: tool-call wrapper around the rolling-block engine
"""

# Normal imports to ensure proper environment registration
from rollblock.environment.rollblock_env import RollBlockEnvironment, RollBlockEnvConfig

__all__ = [
    "RollBlockEnvironment",
    "RollBlockEnvConfig",
]
