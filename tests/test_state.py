"""Tests for ListState snapshots and observers."""

import logging

from todo_sync import ChangeType, ListState, TodoRecord


def _todo(record_id: str) -> TodoRecord:
    return TodoRecord(id=record_id, name=f"todo {record_id}", description="d")


class TestListState:
    """Tests for ListState."""

    def test_starts_empty(self):
        state = ListState()
        assert len(state) == 0
        assert state.version == 0
        assert state.records == ()

    def test_replace_keeps_order_and_bumps_version(self):
        state = ListState()
        state.replace([_todo("b"), _todo("a")])

        assert [r.id for r in state] == ["b", "a"]
        assert state.version == 1

    def test_replace_takes_a_snapshot(self):
        """Mutating the input list afterwards does not affect the state."""
        records = [_todo("a")]
        state = ListState()
        state.replace(records)
        records.append(_todo("b"))

        assert len(state) == 1

    def test_remove_by_id(self):
        state = ListState([_todo("a"), _todo("b"), _todo("c")])

        removed = state.remove("b")

        assert removed.id == "b"
        assert [r.id for r in state] == ["a", "c"]
        assert state.version == 1

    def test_remove_unknown_id_is_silent(self):
        state = ListState([_todo("a")])
        changes = []
        state.subscribe(changes.append)

        assert state.remove("zzz") is None
        assert state.version == 0
        assert changes == []

    def test_get(self):
        state = ListState([_todo("a")])
        assert state.get("a").id == "a"
        assert state.get("b") is None


class TestObservers:
    """Tests for change notification."""

    def test_observer_receives_changes(self):
        state = ListState()
        changes = []
        state.subscribe(changes.append)

        state.replace([_todo("a"), _todo("b")])
        state.remove("a")

        assert [c.change_type for c in changes] == [ChangeType.REPLACED, ChangeType.REMOVED]
        assert [c.version for c in changes] == [1, 2]
        assert changes[1].removed.id == "a"
        assert [r.id for r in changes[1].records] == ["b"]

    def test_unsubscribe(self):
        state = ListState()
        changes = []
        unsubscribe = state.subscribe(changes.append)

        unsubscribe()
        unsubscribe()
        state.replace([_todo("a")])

        assert changes == []

    def test_failing_observer_does_not_block_others(self, caplog):
        state = ListState()
        seen = []

        def broken(change):
            raise RuntimeError("observer bug")

        state.subscribe(broken)
        state.subscribe(seen.append)

        with caplog.at_level(logging.ERROR, logger="todo_sync.state"):
            state.replace([_todo("a")])

        assert len(seen) == 1
        assert len(state) == 1
        assert "observer failed" in caplog.text
