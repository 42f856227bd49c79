from __future__ import annotations

import json
import logging

import pytest

from controller_sets.app.core.env import is_prod
from controller_sets.app.core.logging import JsonFormatter, _read_format, _read_level, setup_logging


class _Buffer:
    def __init__(self):
        self.data = ""

    def write(self, s):
        self.data += s

    def flush(self):
        pass


def _capture(name: str) -> tuple[logging.Logger, _Buffer]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    buf = _Buffer()
    handler.stream = buf
    logger.handlers[:] = [handler]
    return logger, buf


def test_json_formatter_includes_component_and_operation():
    logger, buf = _capture("test.json.component")

    logger.error("boom", extra={"component": "ControllerSet", "operation": "create"})

    payload = json.loads(buf.data)
    assert payload["message"] == "boom"
    assert payload["level"] == "ERROR"
    assert payload["component"] == "ControllerSet"
    assert payload["operation"] == "create"
    assert "error" not in payload


def test_json_formatter_truncates_stack(monkeypatch):
    monkeypatch.setenv("LOG_STACK_LIMIT", "20")
    logger, buf = _capture("test.json.exc")

    try:
        raise ValueError("bad value")
    except ValueError:
        logger.exception("failed")

    err = json.loads(buf.data)["error"]
    assert err["type"] == "ValueError"
    assert err["message"] == "bad value"
    assert err["stack"].endswith("...(truncated)")


@pytest.mark.parametrize(
    "prod,level,fmt",
    [
        (True, "INFO", "json"),
        (False, "DEBUG", "plain"),
    ],
)
def test_defaults_by_environment(prod, level, fmt):
    assert _read_level(prod) == level
    assert _read_format(prod) == fmt


def test_defaults_follow_app_env(monkeypatch):
    assert _read_level() == "DEBUG"

    monkeypatch.setenv("APP_ENV", "production")

    assert _read_level() == "INFO"
    assert _read_format() == "json"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("LOG_FORMAT", "JSON")

    assert _read_level(False) == "WARNING"
    assert _read_format(False) == "json"


def test_setup_logging_configures_root(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    monkeypatch.setenv("LOG_FORMAT", "json")
    try:
        setup_logging(prod=True)

        assert root.level == logging.INFO
        assert any(isinstance(h.formatter, JsonFormatter) for h in root.handlers)
        assert logging.getLogger("pymongo").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("prod", True),
        (" Production ", True),
        ("dev", False),
        ("staging", False),
        ("", False),
    ],
)
def test_is_prod(raw, expected):
    assert is_prod(raw) is expected


def test_is_prod_reads_app_env(monkeypatch):
    assert is_prod() is False

    monkeypatch.setenv("APP_ENV", "PROD")

    assert is_prod() is True
