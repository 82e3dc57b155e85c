"""
Observability Infrastructure

Logging, tracing and metrics for workflow operations. Logs go through loguru;
spans and operation metrics go through the OpenTelemetry SDK. Metrics are kept
in an in-memory reader so callers (and tests) can inspect them without an
exporter.
"""

import contextlib
import inspect
import json
import logging
import os
import sys
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Union

from loguru import logger
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Span, Status, StatusCode

OPERATIONS_COUNTER = "workflow_operations_total"
DURATION_HISTOGRAM = "workflow_operation_duration_ms"


class LogLevel(str, Enum):
    """Log level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ObservabilityConfig:
    """Logging, tracing and metrics settings."""

    service_name: str = "bpmn-workflow"
    log_level: Union[str, LogLevel] = LogLevel.INFO
    json_logs: bool = False
    enable_tracing: bool = True
    enable_metrics: bool = True
    sink: Any = field(default=None, repr=False)  # stderr when unset
    capture_stdlib_logging: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.log_level, LogLevel):
            self.log_level = self.log_level.value
        if self.sink is None:
            self.sink = sys.stderr

    @classmethod
    def from_env(cls, **overrides: Any) -> "ObservabilityConfig":
        """Create config from BPMN_WORKFLOW_LOG_LEVEL / BPMN_WORKFLOW_JSON_LOGS.

        Keyword overrides win over the environment.
        """
        values: Dict[str, Any] = {
            "log_level": os.getenv("BPMN_WORKFLOW_LOG_LEVEL", LogLevel.INFO.value).upper(),
            "json_logs": os.getenv("BPMN_WORKFLOW_JSON_LOGS", "false").lower() in ("1", "true"),
        }
        values.update(overrides)
        return cls(**values)


class JSONFormatter:
    """Loguru format function emitting one JSON object per record."""

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(self, record: Dict[str, Any]) -> str:
        payload: Dict[str, Any] = {
            "timestamp": record["time"].isoformat(),
            "service": self.service_name,
            "level": record["level"].name,
            "logger": record["name"],
            "location": f"{record['function']}:{record['line']}",
            "message": record["message"],
        }
        if record["extra"]:
            payload["extra"] = record["extra"]

        exception = record["exception"]
        if exception:
            payload["error"] = {
                "type": exception.type.__name__,
                "message": str(exception.value),
                "traceback": "".join(
                    traceback.format_exception(exception.type, exception.value, exception.tb)
                ),
            }

        # loguru treats the returned string as a format template
        return json.dumps(payload, default=str).replace("{", "{{").replace("}", "}}") + "\n"


class StdlibLogBridge(logging.Handler):
    """Forwards records from stdlib loggers to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Union[str, int] = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # first frame outside the logging module is the original caller
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


class ObservabilityManager:
    """Process-wide owner of the log sink, tracer and operation metrics."""

    _instance: Optional["ObservabilityManager"] = None

    def __init__(self, config: ObservabilityConfig):
        self.config = config
        self.tracer = None
        self.metric_reader: Optional[InMemoryMetricReader] = None
        resource = Resource(attributes={SERVICE_NAME: config.service_name})

        self._configure_logging()
        if config.enable_tracing:
            self.tracer = TracerProvider(resource=resource).get_tracer("bpmn_workflow")
        if config.enable_metrics:
            self._configure_metrics(resource)

        logger.debug(
            f"Observability ready for {config.service_name} "
            f"(tracing={config.enable_tracing}, metrics={config.enable_metrics})"
        )

    def _configure_logging(self) -> None:
        logger.remove()
        if self.config.json_logs:
            logger.add(
                self.config.sink,
                format=JSONFormatter(self.config.service_name),
                level=self.config.log_level,
                colorize=False,
            )
        else:
            logger.add(
                self.config.sink,
                format=(
                    "<green>{time:HH:mm:ss}</green> <level>{level: <8}</level> "
                    "<cyan>{name}</cyan> - <level>{message}</level>"
                ),
                level=self.config.log_level,
                colorize=True,
                diagnose=False,
            )

        if self.config.capture_stdlib_logging:
            logging.basicConfig(handlers=[StdlibLogBridge()], level=0, force=True)

    def _configure_metrics(self, resource: Resource) -> None:
        self.metric_reader = InMemoryMetricReader()
        meter = MeterProvider(resource=resource, metric_readers=[self.metric_reader]).get_meter(
            "bpmn_workflow"
        )
        self.operations = meter.create_counter(
            OPERATIONS_COUNTER, unit="1", description="Workflow operations by outcome"
        )
        self.durations = meter.create_histogram(
            DURATION_HISTOGRAM, unit="ms", description="Workflow operation duration"
        )

    @property
    def metrics_enabled(self) -> bool:
        return self.metric_reader is not None

    def record_operation(self, operation: str, outcome: str, duration_ms: float) -> None:
        """Count one finished operation and record how long it took."""
        if not self.metrics_enabled:
            return
        attributes = {"operation": operation, "outcome": outcome}
        self.operations.add(1, attributes=attributes)
        self.durations.record(duration_ms, attributes=attributes)

    def collected_metrics(self) -> Dict[str, list]:
        """Data points collected so far, keyed by metric name."""
        if not self.metrics_enabled:
            return {}
        data = self.metric_reader.get_metrics_data()
        collected: Dict[str, list] = {}
        if data is None:
            return collected
        for resource_metrics in data.resource_metrics:
            for scope_metrics in resource_metrics.scope_metrics:
                for metric in scope_metrics.metrics:
                    collected.setdefault(metric.name, []).extend(metric.data.data_points)
        return collected

    @classmethod
    def initialize(cls, config: Optional[ObservabilityConfig] = None) -> "ObservabilityManager":
        """Configure the manager once; later calls return the existing one."""
        if cls._instance is None:
            cls._instance = cls(config or ObservabilityConfig())
        return cls._instance

    @classmethod
    def get_instance(cls) -> "ObservabilityManager":
        return cls.initialize()

    @classmethod
    def reset(cls) -> None:
        """Drop the manager so the next call reconfigures from scratch."""
        cls._instance = None


@contextlib.contextmanager
def span(name: str, attributes: Optional[Dict[str, Any]] = None) -> Iterator[Optional[Span]]:
    """
    Run a block inside a tracing span.

    A failing block marks the span as errored and records the exception before
    it propagates. Yields None when tracing is disabled.
    """
    manager = ObservabilityManager.get_instance()
    if manager.tracer is None:
        yield None
        return

    with manager.tracer.start_as_current_span(
        name, attributes=attributes, record_exception=False, set_status_on_exception=False
    ) as current:
        try:
            yield current
        except Exception as e:
            current.record_exception(e)
            current.set_status(Status(StatusCode.ERROR, str(e)))
            raise


def record_metric(
    metric_name: str,
    value: Union[int, float],
    attributes: Optional[Dict[str, str]] = None,
) -> None:
    """
    Record an ad-hoc metric value.

    Integers are added to the operations counter, floats are recorded in the
    duration histogram; the name is kept in the ``metric`` attribute.
    """
    manager = ObservabilityManager.get_instance()
    if manager.metrics_enabled:
        tagged = {"metric": metric_name, **(attributes or {})}
        if isinstance(value, int):
            manager.operations.add(value, attributes=tagged)
        else:
            manager.durations.record(value, attributes=tagged)
    logger.debug(f"Metric recorded: {metric_name}={value}")


class Timer:
    """Times a workflow operation and records its duration and outcome."""

    def __init__(self, operation: str, log: bool = True):
        self.operation = operation
        self.log = log
        self.outcome: Optional[str] = None
        self.elapsed: float = 0
        self._started: float = 0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, *args: Any) -> None:
        self.elapsed = time.perf_counter() - self._started
        self.outcome = "ok" if exc_type is None else "error"
        if self.log:
            logger.debug(f"{self.operation} finished ({self.outcome}) in {self.elapsed:.3f}s")
            ObservabilityManager.get_instance().record_operation(
                self.operation, self.outcome, self.elapsed * 1000
            )


__all__ = [
    "DURATION_HISTOGRAM",
    "OPERATIONS_COUNTER",
    "LogLevel",
    "ObservabilityConfig",
    "ObservabilityManager",
    "JSONFormatter",
    "StdlibLogBridge",
    "span",
    "record_metric",
    "Timer",
]
