from __future__ import annotations

import pytest

import pubstar
from pubstar.pubsub import set_debug_log


@pytest.fixture
def bus() -> pubstar.PubSub:
    return pubstar.PubSub()


@pytest.fixture
def default_context():
    pubstar.release(pubstar.default)
    yield pubstar.default
    pubstar.release(pubstar.default)


@pytest.fixture(autouse=True)
def _no_debug_log():
    set_debug_log(None)
    yield
    set_debug_log(None)
