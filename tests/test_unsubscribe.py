from __future__ import annotations

import re

import pytest

from pubstar import registry_for


class Spy:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, message) -> None:
        self.calls += 1


def test_unsubscribe_rejects_wrong_topic_type(bus):
    with pytest.raises(TypeError):
        bus.unsubscribe(3)


def test_unsubscribe_on_fresh_context_is_a_no_op(bus):
    bus.unsubscribe("*")
    bus.unsubscribe(re.compile("a"), Spy())
    assert registry_for(bus) is None


def test_unsubscribe_specific_subscriber(bus):
    spy = Spy()
    bus.subscribe("a", spy)
    bus.publish("a")
    assert spy.calls == 1

    bus.unsubscribe("a", spy)
    bus.publish("a")
    assert spy.calls == 1


def test_unsubscribe_keeps_other_subscribers_of_topic(bus):
    spy1, spy2 = Spy(), Spy()
    bus.subscribe("b", spy1)
    bus.subscribe("b", spy2)

    bus.unsubscribe("b", spy1)
    bus.publish("b")

    assert spy1.calls == 0
    assert spy2.calls == 1


def test_unsubscribe_leaves_emptied_topic_key(bus):
    spy = Spy()
    bus.subscribe("b", spy)
    bus.unsubscribe("b", spy)

    assert registry_for(bus).topics() == ["b"]
    assert registry_for(bus).subscribers("b") == []


def test_unsubscribe_absent_subscriber_is_ignored(bus):
    spy1, spy2 = Spy(), Spy()
    bus.subscribe("b", spy1)

    bus.unsubscribe("b", spy2)
    bus.publish("b")

    assert spy1.calls == 1


def test_unsubscribe_without_subscriber_drops_topic(bus):
    spy1, spy2 = Spy(), Spy()
    bus.subscribe("c", spy1)
    bus.subscribe("c", spy2)

    bus.unsubscribe("c")
    bus.publish("c")

    assert spy1.calls == 0
    assert spy2.calls == 0
    assert "c" not in registry_for(bus)


def test_unsubscribe_without_subscriber_spares_other_topics(bus):
    spy = Spy()
    bus.subscribe("d", spy)
    bus.subscribe("c", Spy())

    bus.unsubscribe("c")
    bus.publish("d")

    assert spy.calls == 1


def test_unsubscribe_wildcard_specific_subscriber_from_every_topic(bus):
    spy = Spy()
    bus.subscribe("e", spy)
    bus.subscribe("f", spy)

    bus.unsubscribe("*", spy)
    bus.publish("e")
    bus.publish("f")

    assert spy.calls == 0


def test_unsubscribe_wildcard_specific_subscriber_spares_others(bus):
    spy1, spy2 = Spy(), Spy()
    for topic in ("g", "h"):
        bus.subscribe(topic, spy1)
        bus.subscribe(topic, spy2)

    bus.unsubscribe("*", spy1)
    bus.publish("g")
    bus.publish("h")

    assert spy1.calls == 0
    assert spy2.calls == 2


def test_unsubscribe_wildcard_drops_everything(bus):
    spies = [Spy(), Spy(), Spy()]
    bus.subscribe("i", spies[0])
    bus.subscribe("i", spies[1])
    bus.subscribe("j", spies[2])

    bus.unsubscribe("*")
    bus.publish("i")
    bus.publish("j")

    assert [spy.calls for spy in spies] == [0, 0, 0]
    assert len(registry_for(bus)) == 0


def test_unsubscribe_with_pattern(bus):
    spy1, spy2 = Spy(), Spy()
    bus.subscribe("grid.sort", spy1)
    bus.subscribe("grid.filter", spy2)

    bus.unsubscribe(re.compile(r"^grid\.s"))
    bus.publish("grid.*")

    assert spy1.calls == 0
    assert spy2.calls == 1


class Handler:
    def __init__(self) -> None:
        self.calls = []

    def on_ready(self, message) -> None:
        self.calls.append(message)


def test_unsubscribe_bound_method(bus):
    handler = Handler()
    bus.subscribe("ready", handler.on_ready)

    bus.unsubscribe("ready", handler.on_ready)
    bus.publish("ready", 1)

    assert handler.calls == []
    assert registry_for(bus).subscribers("ready") == []


def test_unsubscribe_bound_method_spares_other_owner(bus):
    first, second = Handler(), Handler()
    bus.subscribe("ready", first.on_ready)
    bus.subscribe("ready", second.on_ready)

    bus.unsubscribe("*", first.on_ready)
    bus.publish("ready", 1)

    assert first.calls == []
    assert second.calls == [1]
