"""In-memory publish/subscribe bus used to observe navigation mesh activity."""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, Mapping, MutableMapping, Sequence

__all__ = ["EventBus", "Subscriber", "Topic"]

Topic = str | Enum
Subscriber = Callable[..., None]


class EventBus:
    """Simple synchronous event dispatcher.

    Topics may be plain strings or string-valued enum members.  Payloads are
    passed to subscribers as keyword arguments.  Subscribers run in
    registration order on the caller's stack, so a subscriber that raises
    propagates to the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: MutableMapping[str, list[Subscriber]] = defaultdict(list)

    @staticmethod
    def _normalise_topic(topic: Topic) -> str:
        return str(topic.value) if isinstance(topic, Enum) else str(topic)

    def subscribe(self, topic: Topic, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for ``topic`` and return a function undoing it."""

        key = self._normalise_topic(topic)
        if callback not in self._subscribers[key]:
            self._subscribers[key].append(callback)
        return lambda: self.unsubscribe(topic, callback)

    def unsubscribe(self, topic: Topic, callback: Subscriber) -> None:
        key = self._normalise_topic(topic)
        callbacks = self._subscribers.get(key)
        if not callbacks or callback not in callbacks:
            return
        callbacks.remove(callback)
        if not callbacks:
            del self._subscribers[key]

    def publish(
        self,
        topic: Topic,
        payload: Mapping[str, Any] | None = None,
        /,
        **kwargs: Any,
    ) -> None:
        """Publish ``topic``; keyword values override ``payload`` entries."""

        key = self._normalise_topic(topic)
        merged_payload: Dict[str, Any] = dict(payload or {})
        merged_payload.update(kwargs)

        for callback in list(self._subscribers.get(key, ())):
            callback(**merged_payload)

    def clear(self) -> None:
        self._subscribers.clear()

    def get_subscribers(self, topic: Topic) -> Sequence[Subscriber]:
        return tuple(self._subscribers.get(self._normalise_topic(topic), ()))
