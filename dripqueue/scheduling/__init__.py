"""
Throttled multi-queue scheduling for dripqueue.

Messages are admitted into named queues, each with its own priority and
minimum delay between two sends. A polling loop releases one message per
tick from the most eligible queue.

Example:
    >>> from dripqueue.scheduling import MessageScheduler, SchedulerConfig
    >>>
    >>> scheduler = MessageScheduler(
    ...     SchedulerConfig(polling_delay_ms=60),
    ...     handler=lambda msg: print(msg.queue, msg.message),
    ... )
    >>> scheduler.set_queue(name="email", delay=2000, priority=2)
    >>> scheduler.set_queue(name="sms", delay=1000, priority=1)
    >>> scheduler.enqueue(queue="sms", payload="urgent", priority=0)
    >>> scheduler.enqueue(queue="email", payload="digest", priority=5)
    >>> scheduler.start()
"""

from dripqueue.scheduling.registry import (
    DEFAULT_QUEUE_DELAY_MS,
    DEFAULT_QUEUE_POLLING_MS,
    DEFAULT_QUEUE_PRIORITY,
    MessageQueueState,
    QueueMessage,
    QueueOptions,
    QueueRegistry,
)
from dripqueue.scheduling.scheduler import (
    MessageScheduler,
    SchedulerConfig,
    SchedulerState,
    SchedulerStats,
    wall_clock_ms,
)
from dripqueue.scheduling.selection import (
    is_eligible,
    order_by_priority,
    select_message,
    select_queue,
)

__all__ = [
    # Data model
    "DEFAULT_QUEUE_POLLING_MS",
    "DEFAULT_QUEUE_DELAY_MS",
    "DEFAULT_QUEUE_PRIORITY",
    "QueueMessage",
    "MessageQueueState",
    "QueueOptions",
    "QueueRegistry",
    # Selection
    "is_eligible",
    "select_queue",
    "select_message",
    "order_by_priority",
    # Scheduler
    "MessageScheduler",
    "SchedulerConfig",
    "SchedulerState",
    "SchedulerStats",
    "wall_clock_ms",
]
