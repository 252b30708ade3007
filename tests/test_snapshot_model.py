"""Tests for snapshots and the saved/current store."""
import pytest

from formlock import Field, FieldKind, FieldRegistry, Snapshot, SnapshotStore


@pytest.fixture
def registry():
    return FieldRegistry([Field("a"), Field("b"), Field("go", FieldKind.ACTION)])


class TestSnapshot:

    def test_create_is_registry_complete(self, registry):
        """Missing values are recorded as empty strings, unknown keys dropped."""
        snap = Snapshot.create(registry, {"a": "1", "zzz": "x"})
        assert snap.to_dict() == {"a": "1", "b": "", "go": ""}

    def test_values_normalized_to_strings(self, registry):
        snap = Snapshot.create(registry, {"a": 42, "b": None})
        assert snap.to_dict() == {"a": "42", "b": "", "go": ""}

    def test_action_fields_never_hold_values(self, registry):
        snap = Snapshot.create(registry, {"go": "clicked"})
        assert snap.get("go") == ""

    def test_equality_ignores_metadata(self, registry):
        """Two snapshots with the same values are equal regardless of id/label/time."""
        first = Snapshot.create(registry, {"a": "1"}, label="open", timestamp=1.0)
        second = Snapshot.create(registry, {"a": "1"}, label="commit", timestamp=2.0)
        assert first.id != second.id
        assert first == second

    def test_values_are_read_only(self, registry):
        snap = Snapshot.create(registry, {"a": "1"})
        with pytest.raises(TypeError):
            snap.values["a"] = "2"

    def test_with_values_returns_copy(self, registry):
        snap = Snapshot.create(registry, {"a": "1"})
        updated = snap.with_values({"a": "2", "unknown": "x"})
        assert snap.get("a") == "1"
        assert updated.to_dict() == {"a": "2", "b": "", "go": ""}
        assert snap.diff(updated) == {"a"}


class TestSnapshotStore:

    def test_load_sets_saved_and_current(self, registry):
        store = SnapshotStore(registry)
        store.load({"a": "1"})
        assert store.saved == store.current
        assert store.is_dirty is False

    def test_edit_makes_dirty(self, registry):
        store = SnapshotStore(registry)
        store.load({"a": "1"})
        assert store.set_value("b", "x") is True
        assert store.is_dirty is True
        assert store.dirty_fields() == {"b"}

    def test_restoring_original_value_clears_dirty(self, registry):
        store = SnapshotStore(registry)
        store.load({"a": "1"})
        store.set_value("a", "2")
        store.set_value("a", "1")
        assert store.is_dirty is False

    def test_set_value_ignores_unknown_and_action_fields(self, registry):
        store = SnapshotStore(registry)
        store.load({})
        assert store.set_value("zzz", "x") is False
        assert store.set_value("go", "x") is False
        assert store.is_dirty is False

    def test_commit_copies_current(self, registry):
        store = SnapshotStore(registry, clock=lambda: 100.0)
        store.load({"a": "1"})
        store.set_value("a", "2")
        saved = store.commit()
        assert saved.timestamp == 100.0
        assert saved.get("a") == "2"
        assert store.is_dirty is False

    def test_revert_restores_saved(self, registry):
        store = SnapshotStore(registry)
        store.load({"a": "1", "b": "2"})
        store.set_value("a", "x")
        store.set_value("b", "y")
        assert store.revert() == {"a", "b"}
        assert store.current.to_dict() == {"a": "1", "b": "2", "go": ""}
        assert store.is_dirty is False

    def test_edits_use_store_clock(self, registry):
        """Edit snapshots are stamped by the injected clock, like commit and revert."""
        now = [10.0]
        store = SnapshotStore(registry, clock=lambda: now[0])
        store.load({})
        now[0] = 11.5
        store.set_value("a", "x")
        assert store.current.timestamp == 11.5
        assert store.current.label == "edit a"

    def test_commit_adopts_loaded_values(self, registry):
        store = SnapshotStore(registry)
        store.load({"a": "1"})
        store.set_value("b", "x")
        store.commit("open")
        assert store.saved.to_dict() == {"a": "1", "b": "x", "go": ""}
        assert store.saved.label == "open"
        assert store.is_dirty is False
