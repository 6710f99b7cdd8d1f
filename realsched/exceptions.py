"""
Custom Exception Classes for realsched

Hierarchical exception structure shared by the scheduler, its options
and the example runner.
"""


class SchedulerError(Exception):
    """Base exception for all realsched errors"""

    def __init__(self, message: str, recoverable: bool = False):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class InvalidArgumentError(SchedulerError, ValueError):
    """Bad argument passed to the scheduler at construction time"""

    def __init__(self, message: str, argument: str | None = None):
        self.argument = argument
        if argument:
            message = f"Invalid argument [{argument}]: {message}"
        super().__init__(message, recoverable=False)


class ConfigError(SchedulerError):
    """Runner configuration errors"""

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        prefix = f"Config Error ({source})" if source else "Config Error"
        super().__init__(f"{prefix}: {message}", recoverable=False)
