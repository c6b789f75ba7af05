"""Tests for create_slice."""

import time

import pytest

from pyslicex import (
    Action,
    ConfigurationError,
    DraftError,
    ReducerConfig,
    SliceOptions,
    create_action,
    create_slice,
    create_store,
    get_action_type,
)


def increment(draft):
    draft["value"] += 1


def decrement(draft):
    draft["value"] -= 1


def increment_by_amount(draft, action):
    draft["value"] += action.payload


counter = create_slice(
    name="counter",
    initial_state={"value": 0},
    reducers={
        "increment": increment,
        "decrement": decrement,
        "increment_by_amount": increment_by_amount,
    },
)


class TestSliceActions:
    """Tests for generated action creators."""

    def test_action_types_are_prefixed(self):
        assert counter.actions.increment().type == "counter/increment"
        assert counter.actions["increment_by_amount"](5) == Action("counter/increment_by_amount", 5)

    def test_creator_for_draft_only_handler_takes_no_arguments(self):
        assert counter.actions.increment() == Action("counter/increment")

        with pytest.raises(TypeError):
            counter.actions.increment(1)

    def test_creator_for_action_handler_accepts_payload(self):
        assert counter.actions.increment_by_amount().payload is None
        assert counter.actions.increment_by_amount(3).payload == 3

    def test_actions_mapping(self):
        assert list(counter.actions) == ["increment", "decrement", "increment_by_amount"]
        assert len(counter.actions) == 3

        with pytest.raises(AttributeError):
            counter.actions.missing
        with pytest.raises(AttributeError):
            counter.actions.increment = None

    def test_case_reducers_table(self):
        assert set(counter.case_reducers) == {
            "counter/increment",
            "counter/decrement",
            "counter/increment_by_amount",
        }
        with pytest.raises(TypeError):
            counter.case_reducers["counter/reset"] = increment


class TestSliceReducer:
    """Tests for the generated slice reducer."""

    def test_reducer_config(self):
        assert isinstance(counter.reducer, ReducerConfig)
        assert counter.get_initial_state() == {"value": 0}

    def test_none_state_uses_initial_state(self):
        assert counter.reducer(None, counter.actions.increment()) == {"value": 1}

    def test_counter_scenario(self):
        state = counter.reducer(None, counter.actions.increment())
        state = counter.reducer(state, counter.actions.increment_by_amount(5))

        assert state == {"value": 6}

    def test_decrement(self):
        assert counter.reducer({"value": 0}, counter.actions.decrement()) == {"value": -1}

    def test_unmatched_action_passes_through(self):
        state = {"value": 3}

        assert counter.reducer(state, Action("other/thing")) is state

    def test_does_not_mutate_previous_state(self):
        state = {"value": 3}

        next_state = counter.reducer(state, counter.actions.increment())

        assert next_state == {"value": 4}
        assert state == {"value": 3}

    def test_returned_value_replaces_state(self):
        resettable = create_slice(
            name="resettable",
            initial_state={"value": 5},
            reducers={"reset": lambda draft: {"value": 0}},
        )

        assert resettable.reducer({"value": 9}, resettable.actions.reset()) == {"value": 0}

    def test_handler_that_mutates_and_returns_is_rejected(self):
        todos = create_slice(
            name="todos",
            initial_state={"items": [1, 2, 3]},
            reducers={"pop_last": lambda draft: draft["items"].pop()},
        )
        store = create_store({"todos": todos.reducer})

        with pytest.raises(DraftError):
            store.dispatch(todos.actions.pop_last())

        assert store.state()["todos"] == {"items": [1, 2, 3]}

    def test_dict_shaped_action(self):
        assert counter.reducer({"value": 0}, {"type": "counter/increment"}) == {"value": 1}

    def test_handler_errors_propagate(self):
        def explode(draft):
            raise RuntimeError("handler failed")

        broken = create_slice(name="broken", initial_state={}, reducers={"explode": explode})

        with pytest.raises(RuntimeError, match="handler failed"):
            broken.reducer({}, broken.actions.explode())


class TestComplexState:
    """Tests for slices with nested state."""

    def add_to_history(self, draft, action):
        draft["history"].append(action.payload)
        draft["metadata"]["last_updated"] = time.time()

    def make_slice(self):
        return create_slice(
            name="complex",
            initial_state={
                "history": [],
                "metadata": {"last_updated": None},
                "settings": {"theme": "dark"},
            },
            reducers={
                "add_to_history": self.add_to_history,
                "clear_history": lambda draft: draft["history"].clear(),
            },
        )

    def test_updates_nested_structures(self):
        complex_slice = self.make_slice()
        initial = complex_slice.get_initial_state()

        state = complex_slice.reducer(None, complex_slice.actions.add_to_history("first"))

        assert state["history"] == ["first"]
        assert state["metadata"]["last_updated"] is not None
        assert state["settings"] is initial["settings"]
        assert initial["history"] == []

    def test_clear_history(self):
        complex_slice = self.make_slice()
        state = complex_slice.reducer(None, complex_slice.actions.add_to_history("first"))

        state = complex_slice.reducer(state, complex_slice.actions.clear_history())

        assert state["history"] == []


class TestExtraReducers:
    """Tests for extra cases and the default case."""

    def test_mapping_form(self):
        reset_all = create_action("app/reset_all")
        counter_with_reset = create_slice(
            name="counter",
            initial_state={"value": 0},
            reducers={"increment": increment},
            extra_reducers={reset_all: lambda draft: {"value": 0}},
        )

        assert counter_with_reset.reducer({"value": 4}, reset_all()) == {"value": 0}

    def test_builder_form_with_type_string(self):
        def extra(builder):
            builder.add_case("app/bump", increment)

        bumped = create_slice(name="bumped", initial_state={"value": 0}, extra_reducers=extra)

        assert bumped.reducer(None, Action("app/bump")) == {"value": 1}
        assert "app/bump" in bumped.case_reducers

    def test_extra_case_overrides_own_case(self):
        def extra(builder):
            builder.add_case("counter/increment", lambda draft: {"value": 100})

        overridden = create_slice(
            name="counter",
            initial_state={"value": 0},
            reducers={"increment": increment},
            extra_reducers=extra,
        )

        assert overridden.reducer(None, overridden.actions.increment()) == {"value": 100}

    def test_default_case_runs_for_unmatched_actions(self):
        def track(draft, action):
            draft["last_seen"] = get_action_type(action)

        tracker = create_slice(
            name="tracker",
            initial_state={"last_seen": None},
            extra_reducers=lambda builder: builder.add_default_case(track),
        )

        assert tracker.reducer(None, Action("anything/else")) == {"last_seen": "anything/else"}

    def test_default_case_without_changes_keeps_state(self):
        def rebuild(draft, action):
            return {"value": draft["value"]}

        stable = create_slice(
            name="stable",
            initial_state={"value": 1},
            extra_reducers=lambda builder: builder.add_default_case(rebuild),
        )
        state = {"value": 1}

        assert stable.reducer(state, Action("noise")) is state

    def test_second_default_case_rejected(self):
        def extra(builder):
            builder.add_default_case(increment)
            builder.add_default_case(decrement)

        with pytest.raises(ConfigurationError, match="one default case"):
            create_slice(name="twice", initial_state={"value": 0}, extra_reducers=extra)

    def test_invalid_case_type_rejected(self):
        with pytest.raises(ConfigurationError):
            create_slice(name="bad", initial_state={}, extra_reducers={"": increment})


class TestSliceOptions:
    """Tests for slice option validation."""

    def test_accepts_options_model(self):
        options = SliceOptions(name="counter", initial_state={"value": 0}, reducers={"increment": increment})

        built = create_slice(options)

        assert built.name == "counter"
        assert built.reducer(None, built.actions.increment()) == {"value": 1}

    def test_empty_name_rejected(self):
        with pytest.raises(ConfigurationError, match="non-empty") as exc_info:
            create_slice(name="  ", initial_state={})

        assert exc_info.value.component == "slice"

    def test_missing_name_rejected(self):
        with pytest.raises(ConfigurationError):
            create_slice(initial_state={})

    def test_non_callable_reducer_rejected(self):
        with pytest.raises(ConfigurationError):
            create_slice(name="bad", initial_state={}, reducers={"increment": 42})

    def test_invalid_extra_reducers_rejected(self):
        with pytest.raises(ConfigurationError):
            create_slice(name="bad", initial_state={}, extra_reducers=42)
