"""
Polling message scheduler.

Drains at most one message per tick from a set of throttled queues and
hands it to a handler. The loop runs on a daemon thread, so a running
scheduler never keeps the interpreter alive on its own.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from dripqueue.exceptions import ConfigurationError
from dripqueue.observability.hooks import (
    METRIC_DISPATCH_ERRORS,
    METRIC_MESSAGES_DEQUEUED,
    METRIC_MESSAGES_ENQUEUED,
    METRIC_QUEUES_COUNT,
    emit_counter,
    emit_gauge,
)
from dripqueue.scheduling.registry import (
    DEFAULT_QUEUE_DELAY_MS,
    DEFAULT_QUEUE_POLLING_MS,
    DEFAULT_QUEUE_PRIORITY,
    MessageQueueState,
    QueueMessage,
    QueueOptions,
    QueueRegistry,
)
from dripqueue.scheduling.selection import select_message, select_queue

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    """Current wall-clock time in integer milliseconds since the epoch."""
    return int(time.time() * 1000)


class SchedulerState(Enum):
    """Scheduler operational states."""

    RUNNING = auto()
    STOPPED = auto()


@dataclass
class SchedulerConfig:
    """
    Configuration for the message scheduler.

    Attributes:
        polling_delay_ms: Milliseconds between two ticks.
        default_delay_ms: Delay of queues created without an explicit one.
        default_priority: Priority of queues created without an explicit one.
        track_sent_at: Stamp a queue's ``sent_at`` when a message is drained
            from it. Off by default, in which case the delay gate only moves
            when ``mark_sent`` is called.
        thread_name: Name of the polling thread.

    Example:
        >>> config = SchedulerConfig(polling_delay_ms=100, track_sent_at=True)
    """

    polling_delay_ms: int = DEFAULT_QUEUE_POLLING_MS
    default_delay_ms: int = DEFAULT_QUEUE_DELAY_MS
    default_priority: int = DEFAULT_QUEUE_PRIORITY
    track_sent_at: bool = False
    thread_name: str = "dripqueue-poller"

    def __post_init__(self) -> None:
        if self.polling_delay_ms <= 0:
            raise ConfigurationError(
                "polling_delay_ms",
                self.polling_delay_ms,
                "must be a positive number of milliseconds",
            )
        if self.default_delay_ms < 0:
            raise ConfigurationError(
                "default_delay_ms",
                self.default_delay_ms,
                "must not be negative",
            )


@dataclass
class SchedulerStats:
    """Statistics for the scheduler."""

    messages_enqueued: int = 0
    messages_dequeued: int = 0
    dispatch_failed: int = 0
    ticks: int = 0
    idle_ticks: int = 0


class MessageScheduler:
    """
    Multi-queue scheduler releasing one message per tick.

    Each tick picks the eligible queue with the lowest priority value
    (the one sent longest ago on ties), takes its lowest-priority message
    and passes it to the handler.

    Example:
        >>> def send_sms(message):
        ...     gateway.send(message.message)
        >>>
        >>> scheduler = MessageScheduler(handler=send_sms)
        >>> scheduler.set_queue(name="sms", delay=1000, priority=1)
        >>> scheduler.enqueue(queue="sms", payload="Your code is 1234")
        >>> scheduler.start()
        >>> ...
        >>> scheduler.stop()
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        handler: Callable[[QueueMessage], Any] | None = None,
        async_handler: Callable[[QueueMessage], Awaitable[Any]] | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """
        Initialize the scheduler. Call ``start()`` to begin polling.

        Args:
            config: Scheduler configuration.
            handler: Synchronous callable receiving each dequeued message.
            async_handler: Coroutine function receiving each dequeued message.
            clock: Zero-argument callable returning the time in ms.
        """
        self.config = config or SchedulerConfig()
        self.polling_delay = self.config.polling_delay_ms
        self.queues = QueueRegistry(
            default_delay=self.config.default_delay_ms,
            default_priority=self.config.default_priority,
        )

        self._handler = handler
        self._async_handler = async_handler
        self._clock = clock or wall_clock_ms

        self._state = SchedulerState.STOPPED
        self._state_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._wakeup: threading.Event | None = None
        self._tick_lock = threading.RLock()

        self._stats = SchedulerStats()
        self._stats_lock = threading.Lock()

    @property
    def state(self) -> SchedulerState:
        with self._state_lock:
            return self._state

    @property
    def enabled(self) -> bool:
        """Whether the scheduler is currently polling."""
        return self.state is SchedulerState.RUNNING

    def set_handler(self, handler: Callable[[QueueMessage], Any]) -> None:
        """Set the synchronous handler for dequeued messages."""
        self._handler = handler

    def set_async_handler(self, handler: Callable[[QueueMessage], Awaitable[Any]]) -> None:
        """Set the asynchronous handler for dequeued messages."""
        self._async_handler = handler

    # Queue operations

    def enqueue(
        self,
        message: QueueMessage | None = None,
        *,
        queue: str | None = None,
        payload: Any = None,
        priority: int = 0,
    ) -> None:
        """
        Add a message to a queue, creating the queue if it does not exist.

        Args:
            message: Pre-built message.
            queue: Queue name (if building a new message).
            payload: Message payload (if building a new message).
            priority: Priority inside the queue (if building a new message).

        Raises:
            TypeError: If neither a message nor a queue name is given.
        """
        if message is None:
            if queue is None:
                raise TypeError("enqueue() requires a message or a queue name")
            message = QueueMessage(queue=queue, message=payload, priority=priority)

        self.queues.admit(message)

        with self._stats_lock:
            self._stats.messages_enqueued += 1
        emit_counter(METRIC_MESSAGES_ENQUEUED, tags={"queue": message.queue})
        emit_gauge(METRIC_QUEUES_COUNT, len(self.queues))

    def set_queue(
        self,
        options: QueueOptions | None = None,
        *,
        name: str = "",
        delay: int | None = None,
        priority: int | None = None,
    ) -> None:
        """
        Create a queue or update its delay and priority.

        A value of 0 or None leaves the existing setting unchanged.
        """
        if options is None:
            options = QueueOptions(name=name, delay=delay, priority=priority)
        self.queues.configure(options.name, options.delay, options.priority)
        emit_gauge(METRIC_QUEUES_COUNT, len(self.queues))

    def remove_queue(self, name: str) -> bool:
        """
        Delete a queue and its pending messages.

        Returns:
            True if the queue existed.
        """
        removed = self.queues.remove(name)
        if removed:
            emit_gauge(METRIC_QUEUES_COUNT, len(self.queues))
        return removed

    def purge_queue(self, name: str) -> bool:
        """
        Drop the pending messages of a queue, keeping its settings.

        Returns:
            True if the queue existed.
        """
        return self.queues.purge(name)

    def mark_sent(self, name: str, at: int | None = None) -> bool:
        """
        Record that a queue was sent, restarting its delay window.

        Args:
            name: Queue name.
            at: Timestamp in ms, defaults to now.

        Returns:
            True if the queue existed.
        """
        return self.queues.mark_sent(name, self._clock() if at is None else at)

    def get_queue(self, name: str) -> MessageQueueState | None:
        """Get a queue by name."""
        return self.queues.get(name)

    def queue_names(self) -> list[str]:
        """Get the registered queue names in creation order."""
        return self.queues.names()

    # Selection

    def get_eligible_queue(self) -> MessageQueueState | None:
        """Get the queue the next tick would drain, without draining it."""
        return select_queue(self.queues.values(), self._clock())

    def get_eligible_message(self, queue: MessageQueueState) -> QueueMessage | None:
        """Remove and return the next message of the given queue."""
        with self.queues.lock:
            return select_message(queue)

    def dequeue(self) -> QueueMessage | None:
        """
        Run one selection and dispatch step.

        Steps never overlap, whichever thread runs them.

        Returns:
            The dispatched message, or None if no queue was eligible.
        """
        with self._tick_lock:
            return self._tick()

    def _tick(self) -> QueueMessage | None:
        now = self._clock()
        with self.queues.lock:
            queue = select_queue(self.queues.values(), now)
            message = select_message(queue) if queue is not None else None
            if message is not None and self.config.track_sent_at:
                queue.sent_at = now

        with self._stats_lock:
            self._stats.ticks += 1
            if message is None:
                self._stats.idle_ticks += 1
            else:
                self._stats.messages_dequeued += 1

        if message is None:
            return None

        logger.debug(f"Dequeued message from queue '{message.queue}'")
        emit_counter(METRIC_MESSAGES_DEQUEUED, tags={"queue": message.queue})
        self._dispatch(message)
        return message

    def _dispatch(self, message: QueueMessage) -> None:
        """Hand a message to the registered handler."""
        try:
            if self._handler:
                self._handler(message)
            elif self._async_handler:
                loop = asyncio.new_event_loop()
                try:
                    loop.run_until_complete(self._async_handler(message))
                finally:
                    loop.close()
        except Exception as e:
            logger.error(f"Handler failed for message from queue '{message.queue}': {e}")
            with self._stats_lock:
                self._stats.dispatch_failed += 1
            emit_counter(METRIC_DISPATCH_ERRORS, tags={"queue": message.queue})

    # Poll loop

    def start(self) -> None:
        """Start polling. Does nothing if already running."""
        with self._state_lock:
            if self._state is SchedulerState.RUNNING:
                return
            self._state = SchedulerState.RUNNING
            self._wakeup = threading.Event()
            self._thread = threading.Thread(
                target=self._poll_loop,
                args=(self._wakeup,),
                name=self.config.thread_name,
                daemon=True,
            )
            self._thread.start()
        logger.info(f"Scheduler started (polling every {self.polling_delay}ms)")

    def stop(self, wait: bool = False, timeout: float | None = None) -> None:
        """
        Stop polling. Does nothing if already stopped.

        A tick already in progress runs to completion; no tick follows it.

        Args:
            wait: Whether to wait for the polling thread to exit.
            timeout: Maximum seconds to wait.
        """
        with self._state_lock:
            if self._state is SchedulerState.STOPPED:
                return
            self._state = SchedulerState.STOPPED
            wakeup, thread = self._wakeup, self._thread

        if wakeup is not None:
            wakeup.set()
        logger.info("Scheduler stopped")

        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def poll(self) -> QueueMessage | None:
        """Run one tick if the scheduler is running."""
        if not self.enabled:
            return None
        return self.dequeue()

    def _poll_loop(self, wakeup: threading.Event) -> None:
        """Tick every ``polling_delay`` ms until ``wakeup`` is set."""
        while not wakeup.wait(self.polling_delay / 1000):
            with self._tick_lock:
                # a restart may have handed ticking over to a newer thread
                if wakeup.is_set():
                    return
                try:
                    self.poll()
                except Exception as e:
                    logger.error(f"Scheduler tick failed: {e}")

    # Introspection

    def get_pending_count(self) -> int:
        """Get the number of pending messages across all queues."""
        return self.queues.pending_count()

    def get_queue_stats(self) -> dict[str, Any]:
        """
        Get scheduler statistics.

        Returns:
            Dictionary with queue sizes, counters and configuration.
        """
        with self._stats_lock:
            scheduler_stats = {
                "messages_enqueued": self._stats.messages_enqueued,
                "messages_dequeued": self._stats.messages_dequeued,
                "dispatch_failed": self._stats.dispatch_failed,
                "ticks": self._stats.ticks,
                "idle_ticks": self._stats.idle_ticks,
            }

        return {
            "state": self.state.name,
            "queues": [queue.to_dict() for queue in self.queues.values()],
            "pending": self.get_pending_count(),
            "scheduler": scheduler_stats,
            "config": {
                "polling_delay_ms": self.polling_delay,
                "default_delay_ms": self.config.default_delay_ms,
                "default_priority": self.config.default_priority,
                "track_sent_at": self.config.track_sent_at,
            },
        }

    def is_running(self) -> bool:
        """Check if the scheduler is polling."""
        return self.enabled

    def __enter__(self) -> MessageScheduler:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop(wait=True)
