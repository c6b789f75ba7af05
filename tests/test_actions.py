"""Tests for actions and action creators."""

import pytest

from pyslicex import (
    Action,
    ActionError,
    create_action,
    create_action_with_type,
    create_actions,
    get_action_type,
    is_action_of,
)


class TestAction:
    """Tests for the Action value type."""

    def test_fields(self):
        action = Action("counter/increment", 5)

        assert action.type == "counter/increment"
        assert action.payload == 5

    def test_payload_defaults_to_none(self):
        assert Action("counter/reset").payload is None

    def test_is_immutable(self):
        action = Action("counter/increment", 1)

        with pytest.raises(AttributeError):
            action.payload = 2
        with pytest.raises(AttributeError):
            del action.type

    def test_equality_and_hash(self):
        assert Action("a", 1) == Action("a", 1)
        assert Action("a", 1) != Action("a", 2)
        assert Action("a", 1) != {"type": "a", "payload": 1}
        assert hash(Action("a", 1)) == hash(Action("a", 1))

    def test_rejects_empty_type(self):
        with pytest.raises(ActionError, match="non-empty"):
            Action("")

    def test_repr(self):
        assert repr(Action("todos/add", "milk")) == "Action(type='todos/add', payload='milk')"


class TestCreateAction:
    """Tests for create_action."""

    def test_creator_carries_type(self):
        increment = create_action("counter/increment")

        assert increment.type == "counter/increment"
        assert increment.__name__ == "increment"

    def test_without_arguments(self):
        reset = create_action("counter/reset")

        assert reset() == Action("counter/reset")

    def test_single_payload(self):
        add = create_action("counter/add")

        assert add(5) == Action("counter/add", 5)

    def test_keyword_payload(self):
        login = create_action("auth/login")

        assert login(user="ada", remember=True).payload == {"user": "ada", "remember": True}

    def test_rejects_several_arguments(self):
        add = create_action("counter/add")

        with pytest.raises(ActionError, match="single payload"):
            add(1, 2)

    def test_prepare_fn(self):
        add_todo = create_action("todos/add", lambda text, done=False: {"text": text, "done": done})

        assert add_todo("milk").payload == {"text": "milk", "done": False}
        assert add_todo("eggs", done=True).payload == {"text": "eggs", "done": True}

    def test_rejects_empty_type(self):
        with pytest.raises(ActionError):
            create_action("")


class TestCreateActionWithType:
    """Tests for create_action_with_type."""

    def test_returns_creator_and_type(self):
        creator, action_type = create_action_with_type("todos/clear")

        assert action_type == "todos/clear"
        assert creator().type == "todos/clear"

    def test_named_fields(self):
        pair = create_action_with_type("todos/clear")

        assert pair.type == pair.action_creator.type


class TestCreateActions:
    """Tests for create_actions."""

    def test_creates_each_creator(self):
        actions = create_actions({"load": "users/load", "loaded": "users/loaded"})

        assert set(actions) == {"load", "loaded"}
        assert actions["loaded"]([1, 2]) == Action("users/loaded", [1, 2])


class TestIsActionOf:
    """Tests for is_action_of."""

    def test_matches_creator_type(self):
        increment = create_action("counter/increment")
        decrement = create_action("counter/decrement")
        is_increment = is_action_of(increment)

        assert is_increment(increment())
        assert not is_increment(decrement())

    def test_matches_dict_shaped_action(self):
        is_increment = is_action_of(create_action("counter/increment"))

        assert is_increment({"type": "counter/increment"})

    def test_plain_factory_without_type_attribute(self):
        is_ping = is_action_of(lambda payload: Action("net/ping", payload))

        assert is_ping(Action("net/ping"))


class TestGetActionType:
    """Tests for get_action_type."""

    def test_action(self):
        assert get_action_type(Action("a/b")) == "a/b"

    def test_mapping(self):
        assert get_action_type({"type": "a/b", "payload": 1}) == "a/b"

    def test_object_with_type_attribute(self):
        class Custom:
            type = "custom/event"

        assert get_action_type(Custom()) == "custom/event"

    def test_untyped_values(self):
        assert get_action_type(lambda dispatch, get_state: None) is None
        assert get_action_type({"type": 3}) is None
        assert get_action_type(None) is None
