"""
Queue registry and data model for the message scheduler.

The registry owns every named queue. Queues are created implicitly by the
first message admitted to them or explicitly through configuration, and
live until they are removed.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_POLLING_MS = 60
"""Default duration between two polls of the scheduler, in milliseconds."""

DEFAULT_QUEUE_DELAY_MS = 1250
"""Default minimum delay between two messages of one queue, in milliseconds."""

DEFAULT_QUEUE_PRIORITY = 100
"""Default priority of implicitly created queues. Lower is better."""


@dataclass
class QueueMessage:
    """
    A message waiting inside a queue.

    Attributes:
        queue: Name of the queue the message belongs to.
        message: Opaque payload, never interpreted by the scheduler.
        priority: Ordering inside its own queue. Lower values go first.
        metadata: Free-form caller data carried along with the message.

    Example:
        >>> msg = QueueMessage(queue="sms", message="Your code is 1234", priority=1)
    """

    queue: str
    message: Any = None
    priority: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "queue": self.queue,
            "message": self.message,
            "priority": self.priority,
            "metadata": self.metadata,
        }


@dataclass
class MessageQueueState:
    """
    State of one named queue.

    A queue is not drained again until ``sent_at + delay`` has passed.

    Attributes:
        name: Registry key of the queue.
        messages: Pending messages, re-sorted before every drain.
        sent_at: Timestamp in ms of the last drain, 0 when never sent.
        delay: Minimum ms between two drains.
        priority: Ordering among queues. Lower values win.
    """

    name: str
    messages: list[QueueMessage] = field(default_factory=list)
    sent_at: int = 0
    delay: int = DEFAULT_QUEUE_DELAY_MS
    priority: int = DEFAULT_QUEUE_PRIORITY

    @property
    def size(self) -> int:
        """Number of pending messages."""
        return len(self.messages)

    @property
    def next_eligible_at(self) -> int:
        """Timestamp after which the delay gate opens."""
        return self.sent_at + self.delay

    def is_empty(self) -> bool:
        """Check if the queue has no pending messages."""
        return not self.messages

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "size": self.size,
            "sent_at": self.sent_at,
            "delay": self.delay,
            "priority": self.priority,
        }


@dataclass
class QueueOptions:
    """
    Options used to create or update a queue.

    Omitted (or falsy) fields fall back to the defaults on creation and
    leave the existing value untouched on update.
    """

    name: str
    delay: int | None = None
    priority: int | None = None


class QueueRegistry:
    """
    Thread-safe mapping of queue names to queue state.

    Iteration follows insertion order, so the earliest created queue comes
    first. The poll loop runs on its own thread, so every access goes
    through an internal lock; ``lock`` is exposed for callers that need
    several operations to happen atomically.

    Example:
        >>> registry = QueueRegistry()
        >>> state = registry.admit(QueueMessage(queue="email", message="hello"))
        >>> registry.configure("email", delay=500)
        >>> registry.get("email").delay
        500
    """

    def __init__(
        self,
        default_delay: int = DEFAULT_QUEUE_DELAY_MS,
        default_priority: int = DEFAULT_QUEUE_PRIORITY,
    ) -> None:
        """
        Initialize an empty registry.

        Args:
            default_delay: Delay given to implicitly created queues.
            default_priority: Priority given to implicitly created queues.
        """
        self.default_delay = default_delay
        self.default_priority = default_priority
        self._queues: dict[str, MessageQueueState] = {}
        self.lock = threading.RLock()

    def _create(self, name: str, delay: int, priority: int) -> MessageQueueState:
        state = MessageQueueState(name=name, delay=delay, priority=priority)
        self._queues[name] = state
        return state

    def admit(self, message: QueueMessage) -> MessageQueueState:
        """
        Append a message to its queue, creating the queue if needed.

        Admission never fails: an unknown queue is created with the
        default delay and priority, and priorities are not validated.

        Args:
            message: The message to admit.

        Returns:
            The queue the message was appended to.
        """
        with self.lock:
            state = self._queues.get(message.queue)
            if state is None:
                state = self._create(
                    message.queue, self.default_delay, self.default_priority
                )
                logger.debug(f"Created queue '{message.queue}' on first message")
            state.messages.append(message)
            return state

    def configure(
        self,
        name: str,
        delay: int | None = None,
        priority: int | None = None,
    ) -> None:
        """
        Create a queue or update its delay and priority.

        Falsy values are treated as "not provided", so neither field can be
        set to 0 through this method. Pending messages are left untouched.

        Args:
            name: Queue name.
            delay: Minimum ms between two drains.
            priority: Queue priority, lower wins.
        """
        with self.lock:
            state = self._queues.get(name)
            if state is None:
                self._create(
                    name,
                    delay or self.default_delay,
                    priority or self.default_priority,
                )
                logger.debug(f"Created queue '{name}' from configuration")
                return
            state.delay = delay or state.delay
            state.priority = priority or state.priority
            logger.debug(
                f"Updated queue '{name}': delay={state.delay}, priority={state.priority}"
            )

    def remove(self, name: str) -> bool:
        """
        Delete a queue and all of its pending messages.

        Returns:
            True if the queue existed, False otherwise.
        """
        with self.lock:
            state = self._queues.pop(name, None)
        if state is None:
            return False
        logger.debug(f"Removed queue '{name}' with {state.size} pending messages")
        return True

    def purge(self, name: str) -> bool:
        """
        Drop the pending messages of a queue, keeping its settings.

        Returns:
            True if the queue existed, False otherwise.
        """
        with self.lock:
            state = self._queues.get(name)
            if state is None:
                return False
            dropped = state.size
            state.messages = []
        logger.debug(f"Purged {dropped} messages from queue '{name}'")
        return True

    def mark_sent(self, name: str, at: int) -> bool:
        """
        Record that a queue was drained at the given timestamp.

        Returns:
            True if the queue existed, False otherwise.
        """
        with self.lock:
            state = self._queues.get(name)
            if state is None:
                return False
            state.sent_at = at
            return True

    def get(self, name: str) -> MessageQueueState | None:
        """Get a queue by name, or None if it does not exist."""
        with self.lock:
            return self._queues.get(name)

    def set(self, state: MessageQueueState) -> None:
        """Insert or replace a queue under its own name."""
        with self.lock:
            self._queues[state.name] = state

    def names(self) -> list[str]:
        """Get queue names in insertion order."""
        with self.lock:
            return list(self._queues)

    def values(self) -> list[MessageQueueState]:
        """Get a snapshot of the queues in insertion order."""
        with self.lock:
            return list(self._queues.values())

    def pending_count(self) -> int:
        """Get the total number of pending messages across all queues."""
        with self.lock:
            return sum(state.size for state in self._queues.values())

    def size_by_queue(self) -> dict[str, int]:
        """Get the number of pending messages per queue."""
        with self.lock:
            return {name: state.size for name, state in self._queues.items()}

    def clear(self) -> int:
        """
        Remove every queue.

        Returns:
            Number of queues removed.
        """
        with self.lock:
            count = len(self._queues)
            self._queues.clear()
            return count

    def __len__(self) -> int:
        with self.lock:
            return len(self._queues)

    def __contains__(self, name: object) -> bool:
        with self.lock:
            return name in self._queues

    def __iter__(self) -> Iterator[MessageQueueState]:
        return iter(self.values())
