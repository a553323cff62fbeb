"""
Queue and message selection for the poll loop.

Each tick drains at most one message: ``select_queue`` picks the most
eligible queue, then ``select_message`` releases its most urgent message.
"""

from __future__ import annotations

from collections.abc import Iterable
from operator import attrgetter
from typing import Protocol, TypeVar

from dripqueue.scheduling.registry import MessageQueueState, QueueMessage


class Prioritized(Protocol):
    """Anything carrying an integer priority. Lower values go first."""

    priority: int


P = TypeVar("P", bound=Prioritized)


def is_eligible(queue: MessageQueueState, now: int) -> bool:
    """
    Check whether a queue may be drained at ``now``.

    The delay gate is strict: a queue last sent at ``now`` with a zero
    delay still has to wait for the next millisecond.
    """
    if queue.sent_at + queue.delay >= now:
        return False
    return not queue.is_empty()


def select_queue(
    queues: Iterable[MessageQueueState],
    now: int,
) -> MessageQueueState | None:
    """
    Pick the queue to drain this tick.

    Among eligible queues the lowest priority value wins. On a priority
    tie the queue that was sent longest ago wins, and a tie on both keeps
    the first queue encountered.

    Args:
        queues: Queues in registry (insertion) order.
        now: Current timestamp in milliseconds.

    Returns:
        The selected queue, or None if no queue is eligible.
    """
    best: MessageQueueState | None = None
    for queue in queues:
        if not is_eligible(queue, now):
            continue
        if best is None or queue.priority < best.priority:
            best = queue
        elif queue.priority == best.priority and queue.sent_at < best.sent_at:
            best = queue
    return best


def order_by_priority(items: list[P]) -> list[P]:
    """Sort items in place by ascending priority, keeping ties in order."""
    items.sort(key=attrgetter("priority"))
    return items


def select_message(queue: MessageQueueState) -> QueueMessage | None:
    """
    Remove and return the most urgent message of a queue.

    The queue's own message list is re-sorted in place first.

    Returns:
        The message with the lowest priority value, or None if empty.
    """
    if not queue.messages:
        return None
    order_by_priority(queue.messages)
    return queue.messages.pop(0)
