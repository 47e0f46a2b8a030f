from datetime import datetime
from decimal import Decimal

import pytest

from stepflow.config import load_config
from stepflow.options import ExecutionOptions, parse_options
from stepflow.values import ErrorValue, coerce_value, format_value, from_jsonable, parse_literal, to_jsonable, type_name


def test_load_config_defaults():
    config = load_config({})
    assert config.backoff_seconds == 1.0
    assert config.enforce_timeouts is False
    assert config.log_level == "INFO"
    assert config.redact_logs is True
    assert config.snapshot_retention == 256


def test_load_config_env_overrides_and_bad_values():
    config = load_config(
        {
            "STEPFLOW_ENFORCE_TIMEOUTS": "yes",
            "STEPFLOW_LOG_LEVEL": "debug",
            "STEPFLOW_BACKOFF_SECONDS": "-3",
            "STEPFLOW_SNAPSHOT_RETENTION": "many",
        }
    )
    assert config.backoff_seconds == 1.0
    assert config.enforce_timeouts is True
    assert config.log_level == "DEBUG"
    assert config.snapshot_retention == 256
    assert load_config({"STEPFLOW_SNAPSHOT_RETENTION": "3"}).snapshot_retention == 3
    assert load_config({"STEPFLOW_BACKOFF_SECONDS": "soon"}).backoff_seconds == 1.0


def test_load_config_reads_process_env(monkeypatch):
    monkeypatch.setenv("STEPFLOW_LOG_REDACT", "off")
    assert load_config().redact_logs is False


@pytest.mark.parametrize(
    "text,expected",
    [('"hi"', "hi"), ("'hi'", "hi"), ("true", True), ("false", False), ("nil", None), ("42", 42), ("-1.5", -1.5), ("bare", "bare")],
)
def test_parse_literal(text, expected):
    assert parse_literal(text) == expected


def test_type_names_and_formatting():
    assert [type_name(v) for v in ("s", 1, 1.0, True, None, ErrorValue("e"))] == [
        "string",
        "int",
        "float",
        "bool",
        "nil",
        "error",
    ]
    assert format_value(None) == "nil"
    assert format_value(False) == "false"
    assert format_value(ErrorValue("boom")) == "boom"
    assert coerce_value(KeyError("k")) == ErrorValue("'k'")


def test_handler_outputs_are_reduced_to_flow_values():
    assert coerce_value(datetime(2024, 1, 1, 9, 30)) == "2024-01-01T09:30:00"
    assert coerce_value(Decimal("1.50")) == "1.50"
    assert coerce_value({"a": [1, datetime(2024, 1, 1)]}) == '{"a": [1, "2024-01-01 00:00:00"]}'
    assert coerce_value((1, "x")) == '[1, "x"]'
    for value in ("s", 3, 1.5, True, None, ErrorValue("e")):
        assert coerce_value(value) == value


def test_error_values_survive_json():
    payload = to_jsonable({"err": ErrorValue("bad"), "list": [ErrorValue("x"), 1]})
    assert payload == {"err": {"__error__": "bad"}, "list": [{"__error__": "x"}, 1]}
    assert from_jsonable(payload)["err"] == ErrorValue("bad")


def test_parse_options_defaults_and_problems():
    options, problems = parse_options({})
    assert options == ExecutionOptions()
    assert problems == []

    options, problems = parse_options({"retry_count": 4, "priority": "low", "log_level": "loud", "async": "maybe"})
    assert options.retry == 4
    assert options.priority == -1
    assert options.log_level == "info"
    assert options.is_async is False
    assert len(problems) == 2


def test_options_round_trip():
    options = ExecutionOptions(retry=2, timeout_ms=100, err_continue=True)
    assert ExecutionOptions.from_dict(options.to_dict()) == options
    assert ExecutionOptions.from_dict(None) == ExecutionOptions()
