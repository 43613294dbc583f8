"""Tests for the subscription bus."""

import pytest

from chief_of_staff.subscriptions import SubscriptionBus


def test_notify_in_registration_order():
    bus = SubscriptionBus()
    calls = []
    bus.subscribe(lambda s: calls.append(("a", s)))
    bus.subscribe(lambda s: calls.append(("b", s)))

    bus.notify(1)

    assert calls == [("a", 1), ("b", 1)]


def test_unsubscribe_is_idempotent():
    bus = SubscriptionBus()
    calls = []
    unsubscribe = bus.subscribe(calls.append)
    bus.subscribe(calls.append)

    unsubscribe()
    unsubscribe()
    bus.notify("state")

    assert len(bus) == 1
    assert calls == ["state"]


def test_failing_callback_isolated():
    bus = SubscriptionBus()
    calls = []

    def broken(state):
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(calls.append)
    bus.notify("state")

    assert calls == ["state"]


def test_unsubscribe_during_notify():
    bus = SubscriptionBus()
    calls = []
    handles = {}

    def once(state):
        calls.append(state)
        handles["once"]()

    handles["once"] = bus.subscribe(once)
    bus.notify(1)
    bus.notify(2)

    assert calls == [1]


def test_rejects_non_callable():
    with pytest.raises(TypeError):
        SubscriptionBus().subscribe("not a function")
