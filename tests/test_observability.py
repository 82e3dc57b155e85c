"""
Tests for logging, tracing and metrics infrastructure.
"""

import io
import json
import logging

import pytest
from loguru import logger
from opentelemetry.trace import StatusCode

from bpmn_workflow.core.observability import (
    DURATION_HISTOGRAM,
    OPERATIONS_COUNTER,
    LogLevel,
    ObservabilityConfig,
    ObservabilityManager,
    Timer,
    record_metric,
    span,
)
from bpmn_workflow.errors import TaskValidationError
from bpmn_workflow.models.bpmn_elements import ErrorEventDefinition
from bpmn_workflow.models.tasks import DynamicUserTask
from bpmn_workflow.stages.chain_builder import ChainBuilder


@pytest.fixture
def manager():
    return ObservabilityManager.initialize(ObservabilityConfig(sink=io.StringIO()))


def outcomes(manager, operation):
    """Outcome attribute of every counted run of an operation."""
    points = manager.collected_metrics().get(OPERATIONS_COUNTER, [])
    return sorted(
        p.attributes["outcome"] for p in points if p.attributes.get("operation") == operation
    )


# ===========================
# Configuration
# ===========================


def test_initialize_is_singleton():
    first = ObservabilityManager.initialize(ObservabilityConfig(service_name="one"))
    second = ObservabilityManager.initialize(ObservabilityConfig(service_name="two"))

    assert first is second
    assert ObservabilityManager.get_instance().config.service_name == "one"


def test_config_accepts_enum_level():
    config = ObservabilityConfig(log_level=LogLevel.DEBUG)

    assert config.log_level == "DEBUG"
    assert config.sink is not None


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("BPMN_WORKFLOW_LOG_LEVEL", "debug")
    monkeypatch.setenv("BPMN_WORKFLOW_JSON_LOGS", "true")

    config = ObservabilityConfig.from_env(service_name="cli")

    assert config.log_level == "DEBUG"
    assert config.json_logs
    assert config.service_name == "cli"


def test_config_overrides_win(monkeypatch):
    monkeypatch.setenv("BPMN_WORKFLOW_LOG_LEVEL", "DEBUG")

    config = ObservabilityConfig.from_env(log_level=LogLevel.ERROR)

    assert config.log_level == "ERROR"


# ===========================
# Logging
# ===========================


def test_json_logs():
    sink = io.StringIO()
    ObservabilityManager.initialize(
        ObservabilityConfig(service_name="svc", log_level=LogLevel.INFO, json_logs=True, sink=sink)
    )

    logger.info("building {chain}")

    record = json.loads(sink.getvalue().strip().splitlines()[-1])
    assert record["level"] == "INFO"
    assert record["service"] == "svc"
    assert record["message"] == "building {chain}"


def test_stdlib_logging_is_forwarded():
    sink = io.StringIO()
    ObservabilityManager.initialize(
        ObservabilityConfig(log_level=LogLevel.DEBUG, sink=sink, capture_stdlib_logging=True)
    )

    logging.getLogger("bpmn_workflow.test").warning("forwarded message")

    assert "forwarded message" in sink.getvalue()


def test_forwarded_records_keep_caller_location():
    sink = io.StringIO()
    ObservabilityManager.initialize(
        ObservabilityConfig(
            log_level=LogLevel.DEBUG, json_logs=True, sink=sink, capture_stdlib_logging=True
        )
    )

    logging.getLogger("bpmn_workflow.test").warning("located message")

    record = json.loads(sink.getvalue().strip().splitlines()[-1])
    assert record["message"] == "located message"
    assert record["location"].startswith("test_forwarded_records_keep_caller_location:")
    assert record["logger"] == __name__


# ===========================
# Tracing
# ===========================


def test_span_sets_attributes(manager):
    with span("chain_build", {"task_count": 3}) as current:
        assert current.is_recording()
        assert current.attributes["task_count"] == 3


def test_span_marks_failure(manager):
    with pytest.raises(ValueError):
        with span("failing") as current:
            raise ValueError("boom")

    assert current.status.status_code == StatusCode.ERROR
    assert current.events[0].name == "exception"


def test_span_without_tracing():
    ObservabilityManager.initialize(ObservabilityConfig(enable_tracing=False, sink=io.StringIO()))

    with span("noop") as current:
        assert current is None


# ===========================
# Metrics
# ===========================


def test_timer_records_outcome(manager):
    with Timer("chain_build") as timer:
        pass

    assert timer.outcome == "ok"
    assert timer.elapsed >= 0
    assert outcomes(manager, "chain_build") == ["ok"]
    assert DURATION_HISTOGRAM in manager.collected_metrics()


def test_failed_build_is_counted(manager):
    error_definition = ErrorEventDefinition(error_code="errorDocRejected")
    builder = ChainBuilder()

    builder.build([DynamicUserTask.collaboration()], error_definition)
    with pytest.raises(TaskValidationError):
        builder.build([DynamicUserTask.approval()], error_definition)

    assert outcomes(manager, "chain_build") == ["error", "ok"]


def test_record_metric(manager):
    record_metric("workflow_deployments_total", 1, {"process_key": "INVOICE_finance"})

    points = manager.collected_metrics()[OPERATIONS_COUNTER]
    assert points[0].attributes["metric"] == "workflow_deployments_total"
    assert points[0].value == 1


def test_metrics_disabled():
    manager = ObservabilityManager.initialize(
        ObservabilityConfig(enable_metrics=False, sink=io.StringIO())
    )

    with Timer("chain_build"):
        pass
    record_metric("ignored_total", 1)

    assert manager.collected_metrics() == {}
