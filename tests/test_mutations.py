"""Tests for the mutation adapter (list and dict in-place methods)."""

from collections import deque

from stateify import UNDEFINED, mutating_methods, register_mutators, wrap
from stateify.mutations import changed_keys


def _listen(node, type="change"):
    log = []
    node.add_event_listener(type, log.append)
    return log


class TestListMutators:
    def test_sort_fires_once_at_root(self):
        state = wrap({"drinks": ["coffee", "tea", "milk"]})
        root_log = _listen(state)
        state["drinks"].sort()
        assert state["drinks"].get() == ["coffee", "milk", "tea"]
        assert len(root_log) == 1

    def test_every_changed_index_is_observable(self):
        state = wrap({"drinks": ["coffee", "tea", "milk"]})
        first, second, third = (state["drinks"][i] for i in range(3))
        logs = [_listen(first), _listen(second), _listen(third)]
        state["drinks"].sort()
        assert [len(log) for log in logs] == [0, 1, 1]
        assert logs[1][0].detail.value == "milk"
        assert logs[1][0].detail.old_value == "tea"

    def test_only_last_index_bubbles(self):
        state = wrap({"list": [3, 2, 1]})
        list_log = _listen(state["list"])
        root_log = _listen(state)
        state["list"].reverse()
        assert len(list_log) == 1
        assert len(root_log) == 1
        assert root_log[0].detail.key == "list"
        assert root_log[0].detail.source is state["list"]

    def test_unchanged_emits_nothing_but_returns(self):
        state = wrap({"list": [1, 2, 3]})
        root_log = _listen(state)
        assert state["list"].sort() is None
        assert state["list"].call("count", 2) == 1
        assert root_log == []

    def test_push(self):
        data = wrap({"drinks": ["coffee", "tea", "milk"]})
        root_log = _listen(data)
        data["drinks"].append("water")
        assert data["drinks"][3].get() == "water"
        assert len(root_log) == 1

    def test_pop_reports_removed_index(self):
        state = wrap({"list": ["a", "b"]})
        last = state["list"][1]
        log = _listen(last)
        assert state["list"].pop() == "b"
        assert len(log) == 1
        assert last.free() is False
        assert last.get() is log[0].detail.value

    def test_insert_shifts_every_later_index(self):
        state = wrap(["b", "c"])
        valuechanges = _listen(state[0], "valuechange")
        changes = _listen(state)
        state.insert(0, "a")
        assert state.get() == ["a", "b", "c"]
        assert len(valuechanges) == 1
        assert len(changes) == 1

    def test_wrapped_list_root(self):
        drinks = ["coffee", "tea", "milk"]
        state = wrap(drinks)
        state.sort()
        assert state.get() is drinks
        assert drinks == ["coffee", "milk", "tea"]


class TestDictMutators:
    def test_update(self):
        state = wrap({"a": 1, "b": 2})
        a_log, c_log = _listen(state["a"]), _listen(state["c"])
        root_log = _listen(state)
        state.update({"a": 10, "c": 3})
        assert state.get() == {"a": 10, "b": 2, "c": 3}
        assert len(a_log) == 1
        assert len(c_log) == 1
        assert len(root_log) == 1

    def test_pop_detaches_key(self):
        state = wrap({"a": 1})
        a_log = _listen(state["a"])
        assert state.pop("a") == 1
        assert state["a"].get() is UNDEFINED
        assert len(a_log) == 1

    def test_setdefault_existing_is_silent(self):
        state = wrap({"a": 1})
        root_log = _listen(state)
        assert state.setdefault("a", 5) == 1
        assert root_log == []
        assert state.setdefault("b", 5) == 5
        assert len(root_log) == 1

    def test_clear(self):
        state = wrap({"x": {"a": 1, "b": 2}})
        root_log = _listen(state)
        state["x"].clear()
        assert state["x"].get() == {}
        assert len(root_log) == 1


class TestRegistry:
    def test_defaults(self):
        assert "sort" in mutating_methods([])
        assert "update" in mutating_methods({})
        assert mutating_methods("text") == frozenset()

    def test_register_custom_container(self):
        class Stack(list):
            def push_twice(self, item):
                self.append(item)
                self.append(item)

        register_mutators(Stack, "push_twice")
        state = wrap({"stack": Stack()})
        root_log = _listen(state)
        state["stack"].push_twice("x")
        assert state["stack"].get() == ["x", "x"]
        assert len(root_log) == 1

    def test_register_extends_existing(self):
        register_mutators(deque, "append", "appendleft")
        assert {"append", "appendleft"} <= mutating_methods(deque())


class TestChangedKeys:
    def test_length_change(self):
        assert changed_keys({0: "a"}, {0: "a", 1: "b"}) == [1]

    def test_identity_not_equality(self):
        a, b = [1], [1]
        assert changed_keys({0: a}, {0: b}) == [0]
        assert changed_keys({0: a}, {0: a}) == []

    def test_removed_keys_keep_before_order(self):
        assert changed_keys({"x": 1, "y": 2}, {"z": 3}) == ["x", "y", "z"]
