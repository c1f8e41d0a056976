"""
Console output for the CLI and the replay runner.
"""

import time
from typing import Any, Dict, Iterable, Tuple
from datetime import datetime


STATUS_ICONS = {
    "info": "ℹ️",
    "success": "✅",
    "warning": "⚠️",
    "error": "❌",
    "processing": "🔄",
}

# Engine event kind -> status used when echoing it
EVENT_STATUS = {
    "fall": "warning",
    "retry": "warning",
    "complete": "success",
    "level_enter": "processing",
}


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return f"{STATUS_ICONS['success' if value else 'error']} {value}"
    if isinstance(value, float):
        return f"{value:.3f}"
    if isinstance(value, (list, tuple)) and value and not isinstance(value[0], (int, float)):
        return ", ".join(format_value(v) for v in value)
    return str(value)


class StatusDisplay:
    """Headers, key/value tables and timestamped status lines."""

    @staticmethod
    def print_header(title: str, width: int = 60):
        rule = "=" * width
        print(f"\n{rule}\n{title.center(width)}\n{rule}")

    @staticmethod
    def print_section(title: str, width: int = 60):
        print(f"\n📋 {title}\n{'-' * width}")

    @staticmethod
    def _print_rows(rows: Iterable[Tuple[str, Any]]):
        for key, value in rows:
            print(f"  {key:<20} : {format_value(value)}")

    @staticmethod
    def print_config(config_dict: Dict[str, Any], title: str = "Configuration"):
        StatusDisplay.print_section(title)
        StatusDisplay._print_rows(config_dict.items())

    @staticmethod
    def print_results(results: Dict[str, Any], title: str = "Results"):
        StatusDisplay.print_section(title)
        StatusDisplay._print_rows(results.items())

    @staticmethod
    def print_status(message: str, status: str = "info"):
        icon = STATUS_ICONS.get(status, STATUS_ICONS["info"])
        print(f"{icon} [{datetime.now():%H:%M:%S}] {message}")


class LiveLogger:
    """
    Status lines for a running replay or interactive session.

    Every method is silent when ``verbose`` is off.
    """

    def __init__(self, verbose: bool = True):
        self.verbose = verbose
        self.step_started: Dict[int, float] = {}

    def _print(self, message: str, status: str):
        if self.verbose:
            StatusDisplay.print_status(message, status)

    def log_step_start(self, step: int, description: str):
        self.step_started[step] = time.perf_counter()
        self._print(f"Step {step}: {description}", "processing")

    def log_step_end(self, step: int, result: str, success: bool = True):
        started = self.step_started.pop(step, time.perf_counter())
        elapsed = time.perf_counter() - started
        self._print(f"Step {step} -> {result} ({elapsed:.2f}s)", "success" if success else "error")

    def log_event(self, kind: str, details: Dict[str, Any]):
        """Echo one drained engine event."""
        detail_str = ", ".join(f"{k}={v}" for k, v in details.items())
        self._print(f"{kind}: {detail_str}" if detail_str else kind, EVENT_STATUS.get(kind, "info"))

    def log_info(self, message: str):
        self._print(message, "info")

    def log_warning(self, message: str):
        self._print(message, "warning")

    def log_error(self, message: str):
        self._print(message, "error")
