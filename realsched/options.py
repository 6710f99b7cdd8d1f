"""
Configuration Dataclasses

SchedulerOptions holds the per-instance options of a DriftCorrectingScheduler.
RunnerConfig holds the settings of the example runner and is loaded from YAML.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from collections.abc import Mapping
from typing import Any, Callable

import yaml

from .exceptions import ConfigError, InvalidArgumentError

# camelCase names accepted for compatibility with option records written
# as {"waitForTheFirstCall": ..., "onStop": ..., "onDeltaError": ...}
_OPTION_ALIASES = {
    "waitForTheFirstCall": "wait_for_the_first_call",
    "onStop": "on_stop",
    "onDeltaError": "on_delta_error",
}


@dataclass(frozen=True)
class SchedulerOptions:
    """Options resolved at scheduler construction"""
    # if False, the callback is called once synchronously before the first wait
    wait_for_the_first_call: bool = True
    # called as on_stop(scheduler) every time stop() is called
    on_stop: Callable[[Any], Any] | None = None
    # called as on_delta_error(scheduler) when |deviation| > delay on a tick
    on_delta_error: Callable[[Any], Any] | None = None

    def __post_init__(self):
        if not isinstance(self.wait_for_the_first_call, bool):
            raise InvalidArgumentError("must be boolean", "wait_for_the_first_call")
        if self.on_stop is not None and not callable(self.on_stop):
            raise InvalidArgumentError("must be callable or None", "on_stop")
        if self.on_delta_error is not None and not callable(self.on_delta_error):
            raise InvalidArgumentError("must be callable or None", "on_delta_error")

    @classmethod
    def from_value(cls, value: "SchedulerOptions | Mapping[str, Any] | None") -> "SchedulerOptions":
        """
        Resolve an options argument against the defaults.

        Accepts None, a SchedulerOptions instance, or a mapping using either
        snake_case or camelCase keys. Keys that are absent keep their default.
        """
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if not isinstance(value, Mapping):
            raise InvalidArgumentError(
                f"must be SchedulerOptions or a mapping, got {type(value).__name__}",
                "options",
            )

        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, item in value.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise InvalidArgumentError(f"unknown option '{key}'", "options")
            kwargs[name] = item
        return cls(**kwargs)


@dataclass
class RunnerConfig:
    """Example runner settings"""
    delay_ms: float = 100
    max_calls: int = 10
    wait_for_the_first_call: bool = True
    stop_on_delta_error: bool = True
    log_level: str = "INFO"
    log_format: str = "text"

    def validate(self) -> list[str]:
        """Return a list of validation errors (empty when valid)."""
        errors = []
        if isinstance(self.delay_ms, bool) or not isinstance(self.delay_ms, (int, float)):
            errors.append("delay_ms must be a number")
        elif self.delay_ms < 0:
            errors.append("delay_ms cannot be negative")
        if isinstance(self.max_calls, bool) or not isinstance(self.max_calls, int):
            errors.append("max_calls must be an integer")
        elif self.max_calls < 1:
            errors.append("max_calls must be at least 1")
        for name in ("wait_for_the_first_call", "stop_on_delta_error"):
            if not isinstance(getattr(self, name), bool):
                errors.append(f"{name} must be boolean")
        if self.log_format not in ("json", "text"):
            errors.append("log_format must be 'json' or 'text'")
        return errors


def _env_override(config: RunnerConfig) -> None:
    delay = os.environ.get("REALSCHED_DELAY_MS")
    if delay is not None and delay.strip() != "":
        try:
            config.delay_ms = float(delay)
        except ValueError:
            raise ConfigError(f"REALSCHED_DELAY_MS is not a number: {delay!r}", "env") from None
    max_calls = os.environ.get("REALSCHED_MAX_CALLS")
    if max_calls is not None and max_calls.strip() != "":
        try:
            config.max_calls = int(max_calls)
        except ValueError:
            raise ConfigError(f"REALSCHED_MAX_CALLS is not an integer: {max_calls!r}", "env") from None


def load_runner_config(data: dict) -> RunnerConfig:
    """Build a RunnerConfig from a parsed dictionary (the 'scheduler' section)."""
    known = {f.name for f in fields(RunnerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown keys: {', '.join(unknown)}")
    return RunnerConfig(**data)


def load_runner_config_file(path: str | Path | None = None, use_env: bool = True) -> RunnerConfig:
    """
    Load runner configuration from a YAML file.

    The file may hold the settings at top level or under a 'scheduler' key.
    Environment overrides are applied after the file, then the result is
    validated.

    Raises:
        ConfigError: missing file, malformed YAML or invalid values
    """
    data: dict = {}
    source = None
    if path is not None:
        source = str(path)
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError("configuration file not found", source)
        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"malformed YAML: {e}", source) from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError("top level must be a mapping", source)
        data = loaded.get("scheduler", loaded)
        if not isinstance(data, dict):
            raise ConfigError("'scheduler' section must be a mapping", source)

    config = load_runner_config(data)
    if use_env:
        _env_override(config)

    errors = config.validate()
    if errors:
        raise ConfigError("; ".join(errors), source)
    return config
