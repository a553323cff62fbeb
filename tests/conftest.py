"""
Pytest fixtures for dripqueue tests.

Provides common fixtures used across all test modules.
"""

from __future__ import annotations

from typing import Generator

import pytest

from dripqueue.observability import InMemoryMetricHook, ObservabilityHooks
from dripqueue.scheduling import (
    MessageQueueState,
    MessageScheduler,
    QueueMessage,
    QueueRegistry,
    SchedulerConfig,
)


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


# ============================================================================
# Global State
# ============================================================================


@pytest.fixture(autouse=True)
def reset_observability_hooks() -> Generator[None, None, None]:
    """Give every test a clean metrics registry."""
    ObservabilityHooks.reset_instance()
    yield
    ObservabilityHooks.reset_instance()


@pytest.fixture
def metrics() -> InMemoryMetricHook:
    """Register an in-memory metric hook."""
    hook = InMemoryMetricHook()
    ObservabilityHooks.get_instance().add_metric_hook(hook)
    return hook


# ============================================================================
# Registry Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock well past the epoch."""
    return FakeClock()


@pytest.fixture
def registry() -> QueueRegistry:
    """Create an empty queue registry."""
    return QueueRegistry()


def make_queue(
    name: str,
    priority: int = 100,
    sent_at: int = 0,
    delay: int = 1250,
    payloads: list[tuple[str, int]] | None = None,
) -> MessageQueueState:
    """Build a queue holding (payload, priority) messages."""
    if payloads is None:
        payloads = [("WHOAMI", 1)]
    return MessageQueueState(
        name=name,
        messages=[
            QueueMessage(queue=name, message=payload, priority=prio)
            for payload, prio in payloads
        ],
        sent_at=sent_at,
        delay=delay,
        priority=priority,
    )


# ============================================================================
# Scheduler Fixtures
# ============================================================================


@pytest.fixture
def scheduler(clock: FakeClock) -> Generator[MessageScheduler, None, None]:
    """Create a stopped scheduler driven by the fake clock."""
    sched = MessageScheduler(clock=clock)
    yield sched
    sched.stop(wait=True, timeout=1.0)


@pytest.fixture
def fast_config() -> SchedulerConfig:
    """Configuration with a short polling cadence for loop tests."""
    return SchedulerConfig(polling_delay_ms=5, default_delay_ms=1)
