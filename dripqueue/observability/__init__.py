"""
Observability components for dripqueue.

Standard Metrics:
    - dripqueue.messages.enqueued: Messages admitted (tag: queue)
    - dripqueue.messages.dequeued: Messages released (tag: queue)
    - dripqueue.dispatch.errors: Handler failures (tag: queue)
    - dripqueue.queues.count: Registered queues (gauge)
"""

from dripqueue.observability.hooks import (
    METRIC_DISPATCH_ERRORS,
    METRIC_MESSAGES_DEQUEUED,
    METRIC_MESSAGES_ENQUEUED,
    METRIC_QUEUES_COUNT,
    InMemoryMetricHook,
    LoggingMetricHook,
    MetricHook,
    MetricType,
    ObservabilityHooks,
    emit_counter,
    emit_gauge,
)

__all__ = [
    "MetricType",
    "MetricHook",
    "LoggingMetricHook",
    "InMemoryMetricHook",
    "ObservabilityHooks",
    "emit_counter",
    "emit_gauge",
    "METRIC_MESSAGES_ENQUEUED",
    "METRIC_MESSAGES_DEQUEUED",
    "METRIC_DISPATCH_ERRORS",
    "METRIC_QUEUES_COUNT",
]
