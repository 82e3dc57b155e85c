"""
Core infrastructure module for bpmn-workflow.

Provides logging, tracing and metrics.
"""

from .observability import (
    DURATION_HISTOGRAM,
    OPERATIONS_COUNTER,
    JSONFormatter,
    LogLevel,
    ObservabilityConfig,
    ObservabilityManager,
    StdlibLogBridge,
    Timer,
    record_metric,
    span,
)

__all__ = [
    "DURATION_HISTOGRAM",
    "OPERATIONS_COUNTER",
    "JSONFormatter",
    "LogLevel",
    "ObservabilityConfig",
    "ObservabilityManager",
    "StdlibLogBridge",
    "Timer",
    "record_metric",
    "span",
]
