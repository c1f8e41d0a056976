"""
Core modules for rollblock.

This package contains the fundamental components:
- Base classes and data records for tool environments
- Configuration management
- Registry for environment discovery
"""

from rollblock.core.base import Action, State, Observation, StepRecord, BaseEnvironment

from rollblock.core.config import (
    Config, EngineConfig, EnvironmentConfig, RunnerConfig,
    load_config, create_default_config, validate_config,
)

from rollblock.core.registry import (
    register_environment, register_environment_config, get_environment_class,
    ENVIRONMENT_REGISTRY, ENVIRONMENT_CONFIG_REGISTRY,
)

__all__ = [
    "Action",
    "State",
    "Observation",
    "StepRecord",
    "BaseEnvironment",
    "Config",
    "EngineConfig",
    "EnvironmentConfig",
    "RunnerConfig",
    "load_config",
    "create_default_config",
    "validate_config",
    "register_environment",
    "register_environment_config",
    "get_environment_class",
    "ENVIRONMENT_REGISTRY",
    "ENVIRONMENT_CONFIG_REGISTRY",
]
