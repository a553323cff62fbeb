"""
Tests for the queue registry and data model.
"""

import threading

from dripqueue.scheduling import (
    DEFAULT_QUEUE_DELAY_MS,
    DEFAULT_QUEUE_POLLING_MS,
    DEFAULT_QUEUE_PRIORITY,
    MessageQueueState,
    QueueMessage,
    QueueRegistry,
)


class TestDefaults:
    """Tests for the default constants."""

    def test_polling_default(self):
        assert DEFAULT_QUEUE_POLLING_MS == 60

    def test_priority_default(self):
        assert DEFAULT_QUEUE_PRIORITY == 100

    def test_delay_default(self):
        assert DEFAULT_QUEUE_DELAY_MS == 1250


class TestQueueMessage:
    """Tests for QueueMessage dataclass."""

    def test_default_creation(self):
        msg = QueueMessage(queue="sms")
        assert msg.message is None
        assert msg.priority == 0
        assert msg.metadata == {}

    def test_to_dict(self):
        msg = QueueMessage(queue="sms", message="hi", priority=3, metadata={"id": 1})
        assert msg.to_dict() == {
            "queue": "sms",
            "message": "hi",
            "priority": 3,
            "metadata": {"id": 1},
        }


class TestMessageQueueState:
    """Tests for MessageQueueState dataclass."""

    def test_defaults(self):
        state = MessageQueueState(name="a")
        assert state.messages == []
        assert state.sent_at == 0
        assert state.delay == 1250
        assert state.priority == 100
        assert state.is_empty()
        assert state.size == 0

    def test_next_eligible_at(self):
        state = MessageQueueState(name="a", sent_at=1000, delay=250)
        assert state.next_eligible_at == 1250

    def test_to_dict(self):
        state = MessageQueueState(name="a", messages=[QueueMessage(queue="a")])
        d = state.to_dict()
        assert d["name"] == "a"
        assert d["size"] == 1
        assert d["priority"] == 100


class TestAdmit:
    """Tests for message admission."""

    def test_creates_missing_queue_with_defaults(self, registry):
        """Admitting into an empty registry creates the queue."""
        registry.admit(QueueMessage(queue="a", message="x", priority=5))

        assert len(registry) == 1
        state = registry.get("a")
        assert state.delay == 1250
        assert state.priority == 100
        assert state.sent_at == 0
        assert state.size == 1

    def test_appends_to_existing_queue(self, registry):
        registry.configure("a", delay=500, priority=2)
        registry.admit(QueueMessage(queue="a", message="x"))
        registry.admit(QueueMessage(queue="a", message="y"))

        state = registry.get("a")
        assert [m.message for m in state.messages] == ["x", "y"]
        assert state.delay == 500
        assert state.priority == 2

    def test_negative_priority_accepted(self, registry):
        """Admission does not validate priorities."""
        state = registry.admit(QueueMessage(queue="a", priority=-10))
        assert state.messages[0].priority == -10

    def test_custom_defaults(self):
        registry = QueueRegistry(default_delay=10, default_priority=7)
        state = registry.admit(QueueMessage(queue="a"))
        assert state.delay == 10
        assert state.priority == 7

    def test_concurrent_admission(self, registry):
        """Admission from several threads loses no messages."""

        def producer(n):
            for i in range(50):
                registry.admit(QueueMessage(queue=f"q{n % 2}", message=i))

        threads = [threading.Thread(target=producer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert registry.pending_count() == 200
        assert len(registry) == 2


class TestConfigure:
    """Tests for queue configuration."""

    def test_creates_queue_with_defaults(self, registry):
        registry.configure("a")
        state = registry.get("a")
        assert state.delay == 1250
        assert state.priority == 100
        assert state.is_empty()

    def test_creates_queue_with_values(self, registry):
        registry.configure("a", delay=300, priority=4)
        state = registry.get("a")
        assert state.delay == 300
        assert state.priority == 4

    def test_update_only_provided_fields(self, registry):
        """A later call only touches the fields it passes."""
        registry.configure("a")
        registry.configure("a", delay=500)

        state = registry.get("a")
        assert state.delay == 500
        assert state.priority == 100

    def test_zero_leaves_value_unchanged(self, registry):
        """Zero is treated as not provided."""
        registry.configure("a", delay=500, priority=3)
        registry.configure("a", delay=0, priority=0)

        state = registry.get("a")
        assert state.delay == 500
        assert state.priority == 3

    def test_zero_on_creation_falls_back_to_default(self, registry):
        registry.configure("a", delay=0, priority=0)
        state = registry.get("a")
        assert state.delay == 1250
        assert state.priority == 100

    def test_keeps_messages(self, registry):
        registry.admit(QueueMessage(queue="a", message="x"))
        registry.configure("a", priority=1)
        assert registry.get("a").size == 1


class TestRemoveAndPurge:
    """Tests for queue removal and purging."""

    def test_remove_existing(self, registry):
        registry.admit(QueueMessage(queue="a"))
        assert registry.remove("a")
        assert "a" not in registry
        assert len(registry) == 0

    def test_remove_missing(self, registry):
        assert not registry.remove("nope")

    def test_purge_keeps_settings(self, registry):
        registry.configure("a", delay=400, priority=2)
        registry.admit(QueueMessage(queue="a"))
        registry.mark_sent("a", 1234)

        assert registry.purge("a")

        state = registry.get("a")
        assert state.is_empty()
        assert state.delay == 400
        assert state.priority == 2
        assert state.sent_at == 1234

    def test_purge_missing_mutates_nothing(self, registry):
        registry.admit(QueueMessage(queue="b"))

        assert not registry.purge("a")
        assert registry.names() == ["b"]
        assert registry.get("b").size == 1

    def test_clear(self, registry):
        registry.configure("a")
        registry.configure("b")
        assert registry.clear() == 2
        assert len(registry) == 0


class TestRegistryAccess:
    """Tests for registry lookups."""

    def test_insertion_order(self, registry):
        for name in ("c", "a", "b"):
            registry.configure(name)
        assert registry.names() == ["c", "a", "b"]
        assert [q.name for q in registry] == ["c", "a", "b"]

    def test_mark_sent(self, registry):
        registry.configure("a")
        assert registry.mark_sent("a", 99)
        assert registry.get("a").sent_at == 99
        assert not registry.mark_sent("missing", 99)

    def test_size_by_queue(self, registry):
        registry.admit(QueueMessage(queue="a"))
        registry.admit(QueueMessage(queue="a"))
        registry.configure("b")
        assert registry.size_by_queue() == {"a": 2, "b": 0}

    def test_set_replaces_state(self, registry):
        registry.set(MessageQueueState(name="a", priority=1))
        assert registry.get("a").priority == 1
        assert registry.get("missing") is None
