"""
dripqueue: in-process throttled multi-queue message scheduler.

dripqueue keeps several named queues in memory, each with its own
priority and minimum delay between two sends, and releases one message at
a time from the most eligible queue. It is meant to pace outbound work
(notifications, batched API calls) across independent channels without an
external broker.

Basic Usage:
    >>> from dripqueue import MessageScheduler
    >>>
    >>> scheduler = MessageScheduler(handler=deliver)
    >>> scheduler.set_queue(name="push", delay=500, priority=1)
    >>> scheduler.enqueue(queue="push", payload={"user": 42, "text": "hi"})
    >>> scheduler.start()
"""

__version__ = "0.1.0"

from dripqueue.exceptions import (
    ConfigurationError,
    DripQueueError,
)
from dripqueue.scheduling import (
    DEFAULT_QUEUE_DELAY_MS,
    DEFAULT_QUEUE_POLLING_MS,
    DEFAULT_QUEUE_PRIORITY,
    MessageQueueState,
    MessageScheduler,
    QueueMessage,
    QueueOptions,
    QueueRegistry,
    SchedulerConfig,
    SchedulerState,
    SchedulerStats,
)

__all__ = [
    "__version__",
    # Scheduler
    "MessageScheduler",
    "SchedulerConfig",
    "SchedulerState",
    "SchedulerStats",
    # Data model
    "QueueMessage",
    "MessageQueueState",
    "QueueOptions",
    "QueueRegistry",
    "DEFAULT_QUEUE_POLLING_MS",
    "DEFAULT_QUEUE_DELAY_MS",
    "DEFAULT_QUEUE_PRIORITY",
    # Exceptions
    "DripQueueError",
    "ConfigurationError",
]
