"""
Unit tests for the group order store.
"""

import logging

import pytest

from contact_reminder.storage.settings import SettingsStore
from contact_reminder.sync.group import GroupDescriptor
from contact_reminder.sync.group_order import GROUP_ORDER_KEY, GroupOrderStore


@pytest.fixture
def settings(tmp_path):
    return SettingsStore(tmp_path / "settings.json")


@pytest.fixture
def store(settings):
    return GroupOrderStore(settings)


def make_groups(*ids):
    return [GroupDescriptor(f"contactGroups/{gid}", gid.upper()) for gid in ids]


class TestReorder:
    """Tests for persisting the order."""

    def test_reorder_persists_ids(self, store, settings):
        """Test that descriptors are stored by id."""
        store.reorder(make_groups("b", "a"))

        assert settings.get(GROUP_ORDER_KEY) == ["contactGroups/b", "contactGroups/a"]

    def test_reorder_accepts_plain_ids(self, store):
        """Test that string ids are accepted."""
        store.reorder(["contactGroups/x", "contactGroups/y"])

        assert store.stored_order() == ["contactGroups/x", "contactGroups/y"]

    def test_reorder_replaces_previous_order(self, store):
        """Test that the latest order wins."""
        store.reorder(["a", "b"])
        store.reorder(["b"])

        assert store.stored_order() == ["b"]

    def test_write_failure_is_logged_not_raised(self, tmp_path, caplog):
        """Test that a storage failure does not propagate."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = GroupOrderStore(SettingsStore(blocker / "settings.json"))

        with caplog.at_level(logging.ERROR):
            store.reorder(["a"])

        assert "Failed to save group order" in caplog.text


class TestStoredOrder:
    """Tests for reading the order back."""

    def test_nothing_stored(self, store):
        """Test the empty default."""
        assert store.stored_order() == []

    def test_corrupt_file_reads_as_empty(self, settings, store):
        """Test that unreadable settings give no order."""
        settings.path.write_text("{broken")

        assert store.stored_order() == []

    def test_malformed_value_reads_as_empty(self, settings, store):
        """Test that a non-list value is ignored."""
        settings.set(GROUP_ORDER_KEY, "contactGroups/a")

        assert store.stored_order() == []


class TestResolveOrder:
    """Tests for applying the stored order to directory groups."""

    def test_stored_groups_first_then_rest(self, store):
        """Test that [B, A] over {A, B, C} resolves to [B, A, C]."""
        a, b, c = make_groups("a", "b", "c")
        store.reorder([b, a])

        assert store.resolve_order([a, b, c]) == [b, a, c]

    def test_unknown_groups_keep_directory_order(self, store):
        """Test that groups missing from the stored order stay stable."""
        a, b, c, d = make_groups("a", "b", "c", "d")
        store.reorder([c])

        assert store.resolve_order([d, a, c, b]) == [c, d, a, b]

    def test_no_stored_order_keeps_input(self, store):
        """Test that without a stored order nothing moves."""
        groups = make_groups("z", "y", "x")

        assert store.resolve_order(groups) == groups

    def test_stale_ids_are_ignored(self, store):
        """Test that stored ids for deleted groups have no effect."""
        a, b = make_groups("a", "b")
        store.reorder(["contactGroups/gone", b, a])

        assert store.resolve_order([a, b]) == [b, a]

    def test_duplicate_ids_use_first_position(self, store):
        """Test that a repeated id sorts by its first occurrence."""
        a, b = make_groups("a", "b")
        store.reorder([b, a, b])

        assert store.resolve_order([a, b]) == [b, a]

    def test_resolves_plain_ids(self, store):
        """Test ordering a list of id strings."""
        store.reorder(["2", "1"])

        assert store.resolve_order(["1", "2", "3"]) == ["2", "1", "3"]
