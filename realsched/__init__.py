"""
realsched - drift-correcting periodic callback scheduler

Modules:
- scheduler.py - DriftCorrectingScheduler and its statistics
- options.py - Scheduler options and runner configuration
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
- cli.py - Example runner
"""

from .exceptions import (
    SchedulerError,
    InvalidArgumentError,
    ConfigError,
)
from .options import (
    SchedulerOptions,
    RunnerConfig,
    load_runner_config,
    load_runner_config_file,
)
from .scheduler import (
    DriftCorrectingScheduler,
    SchedulerListener,
    SchedulerState,
    SchedulerStatistics,
)

__version__ = "1.0.0"

__all__ = [
    # Scheduler
    "DriftCorrectingScheduler",
    "SchedulerListener",
    "SchedulerState",
    "SchedulerStatistics",
    # Options
    "SchedulerOptions",
    "RunnerConfig",
    "load_runner_config",
    "load_runner_config_file",
    # Exceptions
    "SchedulerError",
    "InvalidArgumentError",
    "ConfigError",
]
