"""Subscribe, unsubscribe and publish against an owning context.

Every operation takes the context explicitly. The same functions are exposed
as methods of :class:`PubSub`, so any of these gives a private namespace::

    class Grid(PubSub): ...               # subclass
    PubSub.subscribe(owner, "ready", fn)  # explicit receiver
    mix_into(owner)                       # bind onto an arbitrary object

Subscribers are called synchronously with the message as their only
argument; :func:`current_context` returns the publishing context while one
runs. Return values are collected as-is, so subscribers doing asynchronous
work can return coroutines or futures for the caller to gather.
"""

from __future__ import annotations

import contextvars
import types
from typing import Any, Dict, List, Mapping, Optional

from pubstar.debug_log import DebugLogWriter, describe_callable, describe_context
from pubstar.errors import InvalidSubscriberError, InvalidTopicError
from pubstar.matcher import TopicSpec, compile_topics, for_each_topic
from pubstar.registry import Subscriber, SubscriptionRegistry, ensure_registry, registry_for

PUBLISH_CONTEXT: contextvars.ContextVar[Optional[object]] = contextvars.ContextVar(
    "pubstar_publish_context",
    default=None,
)

_debug_log: Optional[DebugLogWriter] = None


def set_debug_log(writer: Optional[DebugLogWriter]) -> None:
    """Route subscription and dispatch diagnostics to ``writer`` (None disables)."""
    global _debug_log
    _debug_log = writer


def get_debug_log() -> Optional[DebugLogWriter]:
    return _debug_log


def current_context() -> Optional[object]:
    """The context whose subscriber is running, or None outside dispatch."""
    return PUBLISH_CONTEXT.get()


def subscribe(context: object, topic: str, subscriber: Subscriber) -> None:
    """Bind ``subscriber`` to ``topic`` in ``context``.

    Binding the same subscriber to the same topic twice has no effect.
    """
    if not isinstance(topic, str):
        raise InvalidTopicError(
            "Expected topic to be a string.",
            received=type(topic).__name__,
        )
    if not callable(subscriber):
        raise InvalidSubscriberError(
            "Expected subscriber to be callable.",
            received=type(subscriber).__name__,
        )

    added = ensure_registry(context).add(topic, subscriber)
    _log(
        context,
        component="registry",
        kind="subscription.added" if added else "subscription.duplicate",
        topic=topic,
        data={"subscriber": describe_callable(subscriber)},
    )


def unsubscribe(context: object, topics: TopicSpec, subscriber: Optional[Subscriber] = None) -> None:
    """Unbind ``subscriber`` (or everyone) from every topic matching ``topics``.

    ``topics`` may contain ``*`` wildcards or be a compiled pattern; patterns
    are not anchored, so begin them with ``^`` and end with ``$`` to match
    whole topics.
    """
    matcher = compile_topics(topics)
    removed: List[str] = []

    def _remove(subscribers: List[Subscriber], topic: str, registry: SubscriptionRegistry) -> None:
        if subscriber is not None:
            if registry.discard(topic, subscriber):
                removed.append(topic)
        elif registry.drop(topic):
            removed.append(topic)

    for_each_topic(registry_for(context), matcher, _remove)
    _log(
        context,
        component="registry",
        kind="subscription.removed" if subscriber is not None else "topic.dropped",
        topic=_spec_text(topics),
        data={
            "subscriber": describe_callable(subscriber) if subscriber is not None else None,
            "topics": removed,
        },
    )


def publish(context: object, topics: TopicSpec, message: Any = None) -> List[Any]:
    """Call every subscriber of every topic matching ``topics`` with ``message``.

    Returns the subscribers' return values in one flat list: topics in the
    order they were first subscribed, subscribers in subscription order. Treat
    that order as incidental; a subscriber whose result must be identified
    should say so in the result itself.

    An exception raised by a subscriber propagates immediately and no further
    subscribers are called.
    """
    matcher = compile_topics(topics)
    results: List[Any] = []
    visited: List[str] = []

    def _dispatch(subscribers: List[Subscriber], topic: str, registry: SubscriptionRegistry) -> None:
        visited.append(topic)
        for subscriber in list(subscribers):
            token = PUBLISH_CONTEXT.set(context)
            try:
                results.append(subscriber(message))
            finally:
                PUBLISH_CONTEXT.reset(token)

    try:
        for_each_topic(registry_for(context), matcher, _dispatch)
    except Exception as exc:
        _log(
            context,
            component="dispatch",
            kind="publish.failed",
            level="error",
            topic=_spec_text(topics),
            data={
                "topics": visited,
                "delivered": len(results),
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        raise

    _log(
        context,
        component="dispatch",
        kind="publish.completed",
        topic=_spec_text(topics),
        data={
            "topics": visited,
            "delivered": len(results),
            "message_type": type(message).__name__,
        },
    )
    return results


class PubSub:
    """Publish/subscribe methods whose receiver is the subscription context."""

    subscribe = subscribe
    unsubscribe = unsubscribe
    publish = publish


class EventsMixin:
    """The same operations under the ``on``/``off``/``trigger`` vocabulary."""

    on = subscribe
    off = unsubscribe
    trigger = publish


METHODS: Mapping[str, Any] = types.MappingProxyType(
    {"subscribe": subscribe, "unsubscribe": unsubscribe, "publish": publish}
)
ALIASES: Mapping[str, Any] = types.MappingProxyType(
    {"on": subscribe, "off": unsubscribe, "trigger": publish}
)


def mix_into(owner: object, names: Optional[Mapping[str, Any]] = None) -> object:
    """Bind the operations onto ``owner`` so it becomes its own context.

    ``names`` maps attribute names to operations; defaults to :data:`METHODS`,
    pass :data:`ALIASES` for ``on``/``off``/``trigger``. Returns ``owner``.
    """
    for name, func in (names if names is not None else METHODS).items():
        setattr(owner, name, types.MethodType(func, owner))
    return owner


def _spec_text(topics: TopicSpec) -> str:
    if isinstance(topics, str):
        return topics
    return "re:{0}".format(topics.pattern)


def _log(
    context: object,
    *,
    component: str,
    kind: str,
    topic: str,
    data: Dict[str, Any],
    level: str = "debug",
) -> None:
    writer = _debug_log
    if writer is None or not writer.enabled:
        return
    writer.write_entry(
        level=level,
        component=component,
        kind=kind,
        context_id=describe_context(context),
        topic=topic,
        message="{0}:{1}".format(kind, topic),
        data={key: value for key, value in data.items() if value is not None},
    )
