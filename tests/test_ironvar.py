import queue

import pytest

from ironbar.ironvar import (
    CHANNEL_CAPACITY,
    InvalidKeyError,
    VariableManager,
    is_valid_key,
)


@pytest.mark.parametrize("key", ["foo", "foo_bar", "foo-bar", "abc123", "ünïcode"])
def test_valid_keys(key):
    assert is_valid_key(key) is True


@pytest.mark.parametrize("key", ["", "foo bar", "foo.bar", "#foo", "a/b"])
def test_invalid_keys(key):
    assert is_valid_key(key) is False


def test_set_then_get():
    manager = VariableManager()
    manager.set("greeting", "hello")
    assert manager.get("greeting") == "hello"
    manager.set("greeting", "bye")
    assert manager.get("greeting") == "bye"


def test_get_missing_is_none():
    assert VariableManager().get("missing") is None


def test_set_invalid_key_raises():
    manager = VariableManager()
    with pytest.raises(InvalidKeyError, match="Invalid key"):
        manager.set("bad key", "value")
    assert manager.get("bad key") is None


def test_subscribe_new_variable_receives_none():
    manager = VariableManager()
    sub = manager.subscribe("fresh")
    assert sub.get_nowait() is None
    assert manager.get("fresh") is None


def test_subscribe_existing_receives_current_value():
    manager = VariableManager()
    manager.set("name", "value")
    sub = manager.subscribe("name")
    assert sub.get(timeout=1) == "value"


def test_set_broadcasts_to_subscribers():
    manager = VariableManager()
    sub = manager.subscribe("name")
    sub.get_nowait()
    manager.set("name", "one")
    manager.set("name", "two")
    assert [sub.get_nowait(), sub.get_nowait()] == ["one", "two"]


def test_new_subscription_resends_to_existing_subscribers():
    manager = VariableManager()
    manager.set("name", "v")
    first = manager.subscribe("name")
    second = manager.subscribe("name")
    assert [first.get_nowait(), first.get_nowait()] == ["v", "v"]
    assert second.get_nowait() == "v"


def test_empty_subscription_raises():
    sub = VariableManager().subscribe("x")
    sub.get_nowait()
    with pytest.raises(queue.Empty):
        sub.get_nowait()
    with pytest.raises(queue.Empty):
        sub.get(timeout=0.01)


def test_full_subscription_drops_oldest():
    manager = VariableManager()
    sub = manager.subscribe("counter")
    for i in range(CHANNEL_CAPACITY):
        manager.set("counter", str(i))
    assert len(sub) == CHANNEL_CAPACITY
    assert sub.get_nowait() == "0"