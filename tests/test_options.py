"""Options and runner configuration tests"""

from pathlib import Path

import pytest

from realsched import (
    ConfigError,
    InvalidArgumentError,
    RunnerConfig,
    SchedulerOptions,
    load_runner_config,
    load_runner_config_file,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("REALSCHED_DELAY_MS", raising=False)
    monkeypatch.delenv("REALSCHED_MAX_CALLS", raising=False)


def test_defaults():
    options = SchedulerOptions.from_value(None)
    assert options.wait_for_the_first_call is True
    assert options.on_stop is None
    assert options.on_delta_error is None


def test_from_value_accepts_both_key_styles():
    handler = lambda sch: None  # noqa: E731
    camel = SchedulerOptions.from_value({"waitForTheFirstCall": False, "onStop": handler})
    snake = SchedulerOptions.from_value({"wait_for_the_first_call": False, "on_stop": handler})
    assert camel == snake
    assert camel.on_delta_error is None


def test_from_value_returns_instance_unchanged():
    options = SchedulerOptions(wait_for_the_first_call=False)
    assert SchedulerOptions.from_value(options) is options


def test_options_are_immutable():
    options = SchedulerOptions()
    with pytest.raises(AttributeError):
        options.wait_for_the_first_call = False


def test_falsy_non_bool_is_rejected():
    with pytest.raises(InvalidArgumentError):
        SchedulerOptions(wait_for_the_first_call=0)


def test_load_runner_config_defaults():
    config = load_runner_config({})
    assert config == RunnerConfig()
    assert config.validate() == []


def test_load_runner_config_unknown_key():
    with pytest.raises(ConfigError, match="unknown keys: period"):
        load_runner_config({"period": 5})


def test_load_yaml_file_with_section(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text(
        "scheduler:\n"
        "  delay_ms: 250\n"
        "  max_calls: 4\n"
        "  wait_for_the_first_call: false\n"
    )
    config = load_runner_config_file(path)
    assert config.delay_ms == 250
    assert config.max_calls == 4
    assert config.wait_for_the_first_call is False
    assert config.stop_on_delta_error is True


def test_load_yaml_file_top_level(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text("delay_ms: 50\nlog_format: json\n")
    config = load_runner_config_file(path)
    assert config.delay_ms == 50
    assert config.log_format == "json"


def test_empty_yaml_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_runner_config_file(path) == RunnerConfig()


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "run.yaml"
    path.write_text("delay_ms: 250\nmax_calls: 4\n")
    monkeypatch.setenv("REALSCHED_DELAY_MS", "75")
    monkeypatch.setenv("REALSCHED_MAX_CALLS", "7")
    config = load_runner_config_file(path)
    assert config.delay_ms == 75.0
    assert config.max_calls == 7


def test_bad_env_value(monkeypatch):
    monkeypatch.setenv("REALSCHED_MAX_CALLS", "many")
    with pytest.raises(ConfigError, match="REALSCHED_MAX_CALLS"):
        load_runner_config_file(None)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_runner_config_file(tmp_path / "nope.yaml")


def test_malformed_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("delay_ms: [1, 2\n")
    with pytest.raises(ConfigError, match="malformed YAML"):
        load_runner_config_file(path)


def test_non_mapping_yaml(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_runner_config_file(path)


def test_validation_errors_are_collected(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text("delay_ms: -5\nmax_calls: 0\nlog_format: xml\n")
    with pytest.raises(ConfigError) as exc_info:
        load_runner_config_file(path)
    message = str(exc_info.value)
    assert "delay_ms cannot be negative" in message
    assert "max_calls must be at least 1" in message
    assert "log_format" in message


def test_shipped_example_config_loads():
    path = Path(__file__).parent.parent / "config.example.yaml"
    config = load_runner_config_file(path)
    assert config.delay_ms == 100
    assert config.max_calls == 10
    assert config.log_format == "text"
