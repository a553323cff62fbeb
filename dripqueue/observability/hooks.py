"""
Metrics hooks for dripqueue.

The scheduler reports what it does through a small hook registry, without
depending on any metrics backend. Plug in Prometheus, StatsD or
OpenTelemetry by registering an object implementing ``MetricHook``.

Quick Start:
    >>> from dripqueue.observability import ObservabilityHooks, InMemoryMetricHook
    >>>
    >>> hooks = ObservabilityHooks.get_instance()
    >>> memory_hook = InMemoryMetricHook()
    >>> hooks.add_metric_hook(memory_hook)
    >>>
    >>> scheduler.enqueue(queue="sms", payload="hi")
    >>> memory_hook.get_counter(METRIC_MESSAGES_ENQUEUED, {"queue": "sms"})
    1.0

Integration with Prometheus:
    >>> from prometheus_client import Counter, Gauge
    >>>
    >>> class PrometheusMetricHook:
    ...     def __init__(self):
    ...         self.dequeued = Counter(
    ...             "dripqueue_messages_dequeued_total",
    ...             "Messages released by the scheduler",
    ...             ["queue"],
    ...         )
    ...         self.queues = Gauge("dripqueue_queues", "Registered queues")
    ...
    ...     def increment(self, name, value=1.0, tags=None):
    ...         if name == METRIC_MESSAGES_DEQUEUED:
    ...             self.dequeued.labels(**(tags or {})).inc(value)
    ...
    ...     def gauge(self, name, value, tags=None):
    ...         if name == METRIC_QUEUES_COUNT:
    ...             self.queues.set(value)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class MetricType(Enum):
    """Types of metrics that can be emitted."""

    COUNTER = "counter"
    """A monotonically increasing counter."""

    GAUGE = "gauge"
    """A value that can go up or down."""


@runtime_checkable
class MetricHook(Protocol):
    """
    Protocol for metric backends.

    Example:
        >>> class MyMetricHook:
        ...     def increment(self, name, value=1.0, tags=None):
        ...         pass
        ...
        ...     def gauge(self, name, value, tags=None):
        ...         pass
    """

    def increment(self, name: str, value: float = 1.0, tags: dict[str, Any] | None = None) -> None:
        """
        Increment a counter metric.

        Args:
            name: The metric name (e.g., "dripqueue.messages.dequeued").
            value: The amount to increment by (default 1.0).
            tags: Optional tags/labels for the metric.
        """
        ...

    def gauge(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        """
        Set a gauge metric.

        Args:
            name: The metric name.
            value: The gauge value.
            tags: Optional tags/labels for the metric.
        """
        ...


class LoggingMetricHook:
    """
    Hook that writes metrics to a logger, for development and debugging.

    Example:
        >>> import logging
        >>> logging.basicConfig(level=logging.DEBUG)
        >>> hook = LoggingMetricHook()
        >>> hook.increment("dripqueue.messages.enqueued", 1.0, {"queue": "sms"})
        DEBUG:dripqueue.metrics:COUNTER dripqueue.messages.enqueued=1.0 tags={'queue': 'sms'}
    """

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG):
        self.logger = logger or logging.getLogger("dripqueue.metrics")
        self.level = level

    def increment(self, name: str, value: float = 1.0, tags: dict[str, Any] | None = None) -> None:
        """Log a counter increment."""
        self.logger.log(self.level, f"COUNTER {name}={value} tags={tags}")

    def gauge(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        """Log a gauge value."""
        self.logger.log(self.level, f"GAUGE {name}={value} tags={tags}")


class InMemoryMetricHook:
    """
    In-memory metrics for tests and simple use cases.

    Example:
        >>> hook = InMemoryMetricHook()
        >>> hook.increment("dripqueue.messages.dequeued", tags={"queue": "sms"})
        >>> hook.get_counter("dripqueue.messages.dequeued", {"queue": "sms"})
        1.0
    """

    def __init__(self):
        self.counters: dict[str, float] = defaultdict(float)
        self.gauges: dict[str, float] = {}

    def _make_key(self, name: str, tags: dict[str, Any] | None) -> str:
        """Create a unique key from metric name and tags."""
        if not tags:
            return name
        tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{name}[{tag_str}]"

    def increment(self, name: str, value: float = 1.0, tags: dict[str, Any] | None = None) -> None:
        """Increment a counter."""
        self.counters[self._make_key(name, tags)] += value

    def gauge(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        """Set a gauge value."""
        self.gauges[self._make_key(name, tags)] = value

    def get_counter(self, name: str, tags: dict[str, Any] | None = None) -> float:
        """Get the current value of a counter, or 0.0 if never incremented."""
        return self.counters.get(self._make_key(name, tags), 0.0)

    def get_gauge(self, name: str, tags: dict[str, Any] | None = None) -> float | None:
        """Get the current value of a gauge, or None if not set."""
        return self.gauges.get(self._make_key(name, tags))

    def reset(self) -> None:
        """Reset all metrics to initial state."""
        self.counters.clear()
        self.gauges.clear()


class ObservabilityHooks:
    """
    Central registry for metric hooks.

    A process-wide singleton; use ``get_instance()``.
    """

    _instance: ObservabilityHooks | None = None

    def __init__(self):
        self._metric_hooks: list[MetricHook] = []

    @classmethod
    def get_instance(cls) -> ObservabilityHooks:
        """Get the global ObservabilityHooks instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the global instance. Useful in tests."""
        cls._instance = None

    def add_metric_hook(self, hook: MetricHook) -> None:
        """Register a metric hook."""
        self._metric_hooks.append(hook)

    def remove_metric_hook(self, hook: MetricHook) -> bool:
        """
        Remove a metric hook.

        Returns:
            True if the hook was removed, False if not found.
        """
        try:
            self._metric_hooks.remove(hook)
            return True
        except ValueError:
            return False

    def clear_metric_hooks(self) -> None:
        """Remove all registered metric hooks."""
        self._metric_hooks.clear()

    @property
    def metric_hooks(self) -> list[MetricHook]:
        """Get a copy of the registered metric hooks."""
        return list(self._metric_hooks)

    def emit_metric(
        self,
        metric_type: MetricType,
        name: str,
        value: float,
        tags: dict[str, Any] | None = None,
    ) -> None:
        """Emit a metric to all registered hooks."""
        for hook in self._metric_hooks:
            if metric_type == MetricType.COUNTER:
                hook.increment(name, value, tags)
            elif metric_type == MetricType.GAUGE:
                hook.gauge(name, value, tags)

    def emit_counter(
        self, name: str, value: float = 1.0, tags: dict[str, Any] | None = None
    ) -> None:
        """Emit a counter metric."""
        self.emit_metric(MetricType.COUNTER, name, value, tags)

    def emit_gauge(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        """Emit a gauge metric."""
        self.emit_metric(MetricType.GAUGE, name, value, tags)


# Standard metric names emitted by the scheduler

METRIC_MESSAGES_ENQUEUED = "dripqueue.messages.enqueued"
"""Counter: Messages admitted, tagged by queue."""

METRIC_MESSAGES_DEQUEUED = "dripqueue.messages.dequeued"
"""Counter: Messages released by the poll loop, tagged by queue."""

METRIC_DISPATCH_ERRORS = "dripqueue.dispatch.errors"
"""Counter: Handler failures, tagged by queue."""

METRIC_QUEUES_COUNT = "dripqueue.queues.count"
"""Gauge: Number of registered queues."""


def emit_counter(name: str, value: float = 1.0, tags: dict[str, Any] | None = None) -> None:
    """
    Emit a counter metric to all registered hooks.

    Example:
        >>> emit_counter(METRIC_MESSAGES_DEQUEUED, tags={"queue": "sms"})
    """
    ObservabilityHooks.get_instance().emit_counter(name, value, tags)


def emit_gauge(name: str, value: float, tags: dict[str, Any] | None = None) -> None:
    """Emit a gauge metric to all registered hooks."""
    ObservabilityHooks.get_instance().emit_gauge(name, value, tags)
