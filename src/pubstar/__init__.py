"""In-process publish/subscribe with wildcard and pattern topic matching.

Each context has its own subscription namespace:

1. The package functions use the shared :data:`default` context::

       pubstar.subscribe("ready", on_ready)
       pubstar.publish("re*", payload)

2. Subclass :class:`PubSub` (or call :func:`mix_into`) for a local context::

       class Grid(PubSub): ...
       grid.subscribe("sort", on_sort)

3. Call the methods unbound to name the context explicitly::

       PubSub.subscribe(owner, "sort", on_sort)
"""

from .errors import (
    InvalidArgumentError,
    InvalidSubscriberError,
    InvalidTopicError,
    PubSubError,
    SettingsError,
)
from .matcher import TopicMatcher, compile_topics, for_each_topic
from .pubsub import (
    ALIASES,
    METHODS,
    EventsMixin,
    PubSub,
    current_context,
    get_debug_log,
    mix_into,
    set_debug_log,
)
from .registry import SubscriptionRegistry, registry_for, release

__version__ = "1.0.0"

default = PubSub()

subscribe = default.subscribe
unsubscribe = default.unsubscribe
publish = default.publish

mixin = ALIASES

__all__ = [
    "ALIASES",
    "METHODS",
    "EventsMixin",
    "InvalidArgumentError",
    "InvalidSubscriberError",
    "InvalidTopicError",
    "PubSub",
    "PubSubError",
    "SettingsError",
    "SubscriptionRegistry",
    "TopicMatcher",
    "compile_topics",
    "current_context",
    "default",
    "for_each_topic",
    "get_debug_log",
    "mix_into",
    "mixin",
    "publish",
    "registry_for",
    "release",
    "set_debug_log",
    "subscribe",
    "unsubscribe",
]
