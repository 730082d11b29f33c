"""Tests for options, environment configuration, contexts and logging setup."""

import io
import json
import logging

import pytest

from pyflow.core import TaskContext, WorkflowContext
from pyflow.errors import ConfigurationError, ExecutionError, TaskTimeoutError, ValidationError
from pyflow.log import ROOT_LOGGER_NAME, LogLevel, configure_logging, set_level
from pyflow.models import (
    BackoffKind,
    BackoffOptions,
    ExponentialBackoff,
    FixedBackoff,
    TaskOptions,
    WorkflowOptions,
)


class TestTaskOptions:
    def test_defaults_are_safe(self):
        options = TaskOptions()
        assert options.retry_policy().max_attempts == 0
        assert options.retry_policy().backoff == FixedBackoff(0)
        assert not options.timeout_policy().enabled

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PYFLOW_RETRY_COUNT", "4")
        monkeypatch.setenv("PYFLOW_TIMEOUT_MS", "1500")
        monkeypatch.setenv("PYFLOW_BACKOFF_STRATEGY", "Exponential")
        monkeypatch.setenv("PYFLOW_BACKOFF_DELAY_MS", "100")
        monkeypatch.setenv("PYFLOW_BACKOFF_MAX_DELAY_MS", "2000")

        options = TaskOptions.from_env()

        assert options.retry_count == 4
        assert options.timeout_ms == 1500
        assert options.backoff == BackoffOptions("exponential", 100, 2000)
        assert options.retry_policy().backoff == ExponentialBackoff(100, 2000)

    def test_from_env_with_nothing_set(self, monkeypatch):
        for suffix in ("RETRY_COUNT", "TIMEOUT_MS", "BACKOFF_STRATEGY"):
            monkeypatch.delenv(f"PYFLOW_{suffix}", raising=False)
        assert TaskOptions.from_env() == TaskOptions()

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("BILLING_RETRY_COUNT", "2")
        assert TaskOptions.from_env(prefix="BILLING_").retry_count == 2

    def test_malformed_number_raises(self, monkeypatch):
        monkeypatch.setenv("PYFLOW_RETRY_COUNT", "three")
        with pytest.raises(ConfigurationError, match="PYFLOW_RETRY_COUNT"):
            TaskOptions.from_env()

    def test_unknown_strategy_raises(self, monkeypatch):
        monkeypatch.setenv("PYFLOW_BACKOFF_STRATEGY", "random")
        with pytest.raises(ConfigurationError):
            TaskOptions.from_env()

    def test_workflow_options_provide_task_defaults(self):
        backoff = BackoffOptions(BackoffKind.LINEAR, delay_ms=10)
        options = WorkflowOptions(retry_count=2, backoff=backoff, timeout_ms=300)
        assert options.task_options() == TaskOptions(2, backoff, 300)


class TestContexts:
    def test_scratch_data(self):
        context = TaskContext("input")
        context.set("token", None)

        assert context.input == "input"
        assert "token" in context
        assert context.get("token", "default") is None
        assert context.get("missing", "default") == "default"

    def test_task_outputs(self):
        context = TaskContext()
        context.set_task_output("a", 1)
        context.set_task_output("b", 2)

        snapshot = context.all_task_outputs()
        snapshot["c"] = 3

        assert context.all_task_outputs() == {"a": 1, "b": 2}
        assert context.get_task_output("missing", "none") == "none"

    def test_workflow_runs_get_distinct_ids(self):
        first = WorkflowContext(None, "orders")
        second = WorkflowContext(None, "orders")
        assert first.run_id != second.run_id


class TestErrors:
    def test_messages_and_attributes(self):
        cause = ValueError("bad")
        error = ExecutionError("charge", 3, cause)
        assert error.attempts == 3
        assert "charge" in str(error) and "3 attempts" in str(error)

        timeout = TaskTimeoutError("fetch", 500)
        assert isinstance(timeout, TimeoutError)
        assert "500ms" in str(timeout)

        invalid = ValidationError(["a missing", "b too long"])
        assert str(invalid) == "Workflow input validation failed: a missing, b too long"


class TestLogging:
    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        level, handlers = logger.level, list(logger.handlers)
        yield
        logger.setLevel(level)
        logger.handlers[:] = handlers

    def test_levels_are_ordered(self):
        assert LogLevel.DEBUG < LogLevel.INFO < LogLevel.WARN < LogLevel.ERROR
        assert LogLevel.parse("WARNING") is LogLevel.WARN
        assert LogLevel.WARN.to_logging() == logging.WARNING

    def test_messages_below_level_are_suppressed(self):
        stream = io.StringIO()
        configure_logging("warn", stream=stream)
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.test")

        logger.info("hidden")
        logger.warning("shown")

        assert "hidden" not in stream.getvalue()
        assert "[WARNING] pyflow.test: shown" in stream.getvalue()

    def test_json_output(self):
        stream = io.StringIO()
        configure_logging(LogLevel.DEBUG, json_format=True, stream=stream)

        logging.getLogger(f"{ROOT_LOGGER_NAME}.test").debug("hello", extra={"task": "fetch"})

        record = json.loads(stream.getvalue().strip())
        assert record["level"] == "DEBUG"
        assert record["message"] == "hello"
        assert record["extra"] == {"task": "fetch"}

    def test_reconfiguring_replaces_the_handler(self):
        configure_logging(stream=io.StringIO())
        configure_logging(stream=io.StringIO())
        installed = [
            handler
            for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers
            if getattr(handler, "_pyflow_handler", False)
        ]
        assert len(installed) == 1

    def test_set_level(self):
        set_level("error")
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.ERROR
