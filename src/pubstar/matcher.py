"""Topic specification compiler and registry iteration.

A topic specification is one of:

* a literal string, matching only the identical topic;
* a string with ``*`` wildcards, each standing for zero or more characters
  and anchored to the whole topic (``\\*`` is a literal asterisk);
* a compiled ``re.Pattern``, applied with ``search`` exactly as given.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple, Union

from pubstar.errors import InvalidTopicError
from pubstar.registry import Subscriber, SubscriptionRegistry

TopicSpec = Union[str, re.Pattern[str]]
TopicVisitor = Callable[[List[Subscriber], str, SubscriptionRegistry], Any]

_WILDCARD = "*"
_ESCAPE = "\\"


@dataclass(frozen=True)
class TopicMatcher:
    """Compiled topic specification.

    ``literal`` is set for specs without wildcards; ``pattern`` otherwise.
    """

    spec: TopicSpec
    literal: Optional[str] = None
    pattern: Optional[re.Pattern[str]] = None
    anchored: bool = True

    @property
    def is_literal(self) -> bool:
        return self.literal is not None

    def matches(self, topic: str) -> bool:
        if self.literal is not None:
            return topic == self.literal
        if self.pattern is None:
            return False
        if self.anchored:
            return self.pattern.fullmatch(topic) is not None
        return self.pattern.search(topic) is not None


def compile_topics(spec: object) -> TopicMatcher:
    if isinstance(spec, re.Pattern):
        if not isinstance(spec.pattern, str):
            raise InvalidTopicError(
                "Expected a str pattern, got a bytes pattern.",
                pattern=spec.pattern,
            )
        return TopicMatcher(spec=spec, pattern=spec, anchored=False)
    if not isinstance(spec, str):
        raise InvalidTopicError(
            'Expected topics to be a string (with optional "*" wildcards) or a compiled pattern.',
            received=type(spec).__name__,
        )

    parts, has_wildcard = _tokenize(spec)
    if not has_wildcard:
        return TopicMatcher(spec=spec, literal="".join(parts))
    regex = "".join(".*" if part is None else re.escape(part) for part in parts)
    return TopicMatcher(spec=spec, pattern=re.compile(regex, re.DOTALL))


def _tokenize(spec: str) -> Tuple[List[Optional[str]], bool]:
    """Split ``spec`` into literal chunks and wildcards (``None``)."""
    parts: List[Optional[str]] = []
    buffer: List[str] = []
    has_wildcard = False
    index = 0
    while index < len(spec):
        char = spec[index]
        if char == _ESCAPE and spec.startswith(_WILDCARD, index + 1):
            buffer.append(_WILDCARD)
            index += 2
            continue
        if char == _WILDCARD:
            if buffer:
                parts.append("".join(buffer))
                buffer = []
            # A run of wildcards is a single wildcard.
            if not parts or parts[-1] is not None:
                parts.append(None)
            has_wildcard = True
            index += 1
            continue
        buffer.append(char)
        index += 1
    if buffer:
        parts.append("".join(buffer))
    return parts, has_wildcard


def for_each_topic(
    registry: Optional[SubscriptionRegistry],
    matcher: TopicMatcher,
    visit: TopicVisitor,
) -> int:
    """Call ``visit(subscribers, topic, registry)`` for every matching topic.

    Topics are visited in insertion order. Returns the number visited.
    """
    if registry is None:
        return 0

    candidates: List[str]
    if matcher.literal is not None:
        candidates = [matcher.literal] if matcher.literal in registry else []
    else:
        candidates = registry.topics()

    visited = 0
    for topic in candidates:
        if not matcher.matches(topic):
            continue
        subscribers = registry.get(topic)
        if subscribers is None:
            continue
        visit(subscribers, topic, registry)
        visited += 1
    return visited
