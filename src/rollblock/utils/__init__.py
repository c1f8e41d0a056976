"""Utility modules for rollblock."""

from rollblock.utils.logger import ExperimentLogger
from rollblock.utils.display import StatusDisplay, LiveLogger
from rollblock.utils.renderer import GridRenderer, render_ascii

__all__ = [
    "ExperimentLogger",
    "StatusDisplay",
    "LiveLogger",
    "GridRenderer",
    "render_ascii",
]
