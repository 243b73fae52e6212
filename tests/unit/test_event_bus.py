from enum import Enum

from core.event_bus import EventBus


class _Topic(str, Enum):
    GENERATED = "navmesh.room_generated"


def test_publish_merges_payload_and_keywords():
    bus = EventBus()
    received = []
    bus.subscribe("topic", lambda **kw: received.append(kw))
    bus.publish("topic", {"a": 1, "b": 2}, b=3)
    assert received == [{"a": 1, "b": 3}]


def test_enum_topics_match_their_string_value():
    bus = EventBus()
    received = []
    bus.subscribe(_Topic.GENERATED, lambda **kw: received.append(kw["room"]))
    bus.publish("navmesh.room_generated", room="E0S0")
    assert received == ["E0S0"]


def test_unsubscribe_handle():
    bus = EventBus()
    received = []
    unsubscribe = bus.subscribe("t", lambda **kw: received.append(kw))
    bus.subscribe("t", lambda **kw: None)
    assert len(bus.get_subscribers("t")) == 2
    unsubscribe()
    bus.publish("t", x=1)
    assert received == []
    assert len(bus.get_subscribers("t")) == 1
    bus.clear()
    assert bus.get_subscribers("t") == ()


def test_duplicate_subscriptions_are_ignored():
    bus = EventBus()
    calls = []

    def callback(**kw):
        calls.append(kw)

    bus.subscribe("t", callback)
    bus.subscribe("t", callback)
    bus.publish("t")
    assert calls == [{}]
