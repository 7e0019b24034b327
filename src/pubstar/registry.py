"""Per-context subscription registries kept outside the owning object."""

from __future__ import annotations

import threading
import weakref
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

Subscriber = Callable[[Any], Any]


class SubscriptionRegistry:
    """Ordered subscriber lists keyed by exact topic string."""

    def __init__(self) -> None:
        self._topics: Dict[str, List[Subscriber]] = {}

    def add(self, topic: str, subscriber: Subscriber) -> bool:
        """Bind ``subscriber`` to ``topic``; returns False if it was already bound."""
        subscribers = self._topics.setdefault(topic, [])
        if _index_of(subscribers, subscriber) >= 0:
            return False
        subscribers.append(subscriber)
        return True

    def discard(self, topic: str, subscriber: Subscriber) -> bool:
        subscribers = self._topics.get(topic)
        if subscribers is None:
            return False
        index = _index_of(subscribers, subscriber)
        if index < 0:
            return False
        del subscribers[index]
        return True

    def drop(self, topic: str) -> bool:
        return self._topics.pop(topic, None) is not None

    def get(self, topic: str) -> Optional[List[Subscriber]]:
        return self._topics.get(topic)

    def subscribers(self, topic: str) -> List[Subscriber]:
        return list(self._topics.get(topic, ()))

    def topics(self) -> List[str]:
        return list(self._topics)

    def __contains__(self, topic: object) -> bool:
        return topic in self._topics

    def __len__(self) -> int:
        return len(self._topics)

    def __iter__(self) -> Iterator[str]:
        return iter(self.topics())


def _index_of(subscribers: List[Subscriber], subscriber: Subscriber) -> int:
    for index, candidate in enumerate(subscribers):
        if candidate == subscriber:
            return index
    return -1


class _ContextTable:
    """Side table mapping context identity to its registry.

    Weakly referenced contexts drop their entry when collected. Contexts that
    cannot be weakly referenced are held strongly so their id stays unique.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entries: Dict[int, Tuple[Any, SubscriptionRegistry]] = {}

    def get(self, context: object) -> Optional[SubscriptionRegistry]:
        entry = self._entries.get(id(context))
        if entry is None:
            return None
        holder, registry = entry
        if _resolve(holder) is not context:
            return None
        return registry

    def get_or_create(self, context: object) -> SubscriptionRegistry:
        with self._lock:
            registry = self.get(context)
            if registry is not None:
                return registry
            key = id(context)
            registry = SubscriptionRegistry()
            try:
                holder: Any = weakref.ref(context, lambda _ref, key=key: self._forget(key, _ref))
            except TypeError:
                holder = context
            self._entries[key] = (holder, registry)
            return registry

    def pop(self, context: object) -> Optional[SubscriptionRegistry]:
        with self._lock:
            registry = self.get(context)
            if registry is not None:
                del self._entries[id(context)]
            return registry

    def _forget(self, key: int, ref: Any) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[0] is ref:
                del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


def _resolve(holder: Any) -> Any:
    if isinstance(holder, weakref.ref):
        return holder()
    return holder


_CONTEXTS = _ContextTable()


def registry_for(context: object, create: bool = False) -> Optional[SubscriptionRegistry]:
    """Return the registry owned by ``context``.

    Without ``create`` a context that never subscribed yields None rather
    than an empty registry.
    """
    if create:
        return ensure_registry(context)
    return _CONTEXTS.get(context)


def ensure_registry(context: object) -> SubscriptionRegistry:
    """Return the registry owned by ``context``, allocating it on first use."""
    return _CONTEXTS.get_or_create(context)


def release(context: object) -> bool:
    """Forget every subscription held by ``context``."""
    return _CONTEXTS.pop(context) is not None
