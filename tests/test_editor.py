import os
import datetime

import pytest

from keyinfo import config
from keyinfo.editor import ItemEditor, ItemKind, ValidationError
from keyinfo.storage import ItemNotFoundError, PersistenceError, StorageManager


MUTABLE_FIELDS = ("label", "value", "icon_name", "category", "color_name", "is_favorite")


def mutable_fields(item):
    return {name: getattr(item, name) for name in MUTABLE_FIELDS}


def _failing_persist(notify=True):
    raise PersistenceError("disk full")


class TestCreate:
    def test_create_then_delete_scenario(self, store, editor):
        before = datetime.datetime.now()
        item = editor.create("Wifi", "abc123", "wifi", "Home", "orange")

        stored = store.query_all()
        assert len(stored) == 1
        assert (stored[0].label, stored[0].value, stored[0].category) == ("Wifi", "abc123", "Home")
        assert stored[0].is_favorite is False
        assert before <= stored[0].date_created <= datetime.datetime.now()

        editor.delete(item)
        assert store.query_all() == []

    @pytest.mark.parametrize("label,value", [("", "x"), ("   ", "x"), ("Label", ""), ("Label", " \t")])
    def test_blank_label_or_value_is_refused(self, store, editor, label, value):
        with pytest.raises(ValidationError):
            editor.create(label, value, "doc.fill", "General", "blue")
        assert store.query_all() == []
        assert not os.path.exists(store.filepath)

    def test_defaults_without_kind(self, editor):
        item = editor.create("Locker", "0420")
        assert item.category == config.DEFAULT_CATEGORY
        assert item.color_name == config.DEFAULT_COLOR
        assert item.icon_name == config.DEFAULT_ICON

    def test_unknown_color_falls_back(self, editor):
        item = editor.create("Locker", "0420", color_name="magenta")
        assert item.color_name == "blue"

    def test_kind_supplies_defaults(self, editor):
        item = editor.create(value="NL12 3456", kind=ItemKind.BANK_ACCOUNT)
        assert item.label == "Bank Account"
        assert item.icon_name == "banknote.fill"
        assert item.category == "Financial"
        assert item.color_name == "green"

    def test_explicit_fields_override_kind(self, editor):
        item = editor.create("Joint account", "NL99", category="Household", color_name="pink",
                             kind=ItemKind.BANK_ACCOUNT)
        assert item.label == "Joint account"
        assert item.category == "Household"
        assert item.color_name == "pink"
        assert item.icon_name == "banknote.fill"

    def test_custom_kind_still_needs_a_label(self, editor):
        with pytest.raises(ValidationError):
            editor.create(value="x", kind=ItemKind.CUSTOM)

    def test_every_kind_has_a_palette_color(self):
        for kind in ItemKind:
            assert kind.defaults.color_name in config.COLOR_PALETTE

    def test_ids_are_unique(self, editor):
        a = editor.create("a", "1")
        b = editor.create("a", "1")
        assert a.id != b.id


class TestUpdate:
    def test_update_with_same_arguments_matches_create(self, editor):
        created = editor.create("Wifi", "abc123", "wifi", "Home", "orange")
        expected = mutable_fields(created)

        updated = editor.update(created, "Wifi", "abc123", "Home", "orange")
        assert mutable_fields(updated) == expected

    def test_update_keeps_id_and_creation_date(self, store, editor):
        item = editor.create("Wifi", "abc123", category="Home")
        original_id, original_date = item.id, item.date_created

        editor.update(item, "Guest Wifi", "guest!", "Travel", "red")

        reloaded = StorageManager(store.filepath).get(original_id)
        assert reloaded.label == "Guest Wifi"
        assert reloaded.value == "guest!"
        assert reloaded.category == "Travel"
        assert reloaded.color_name == "red"
        assert reloaded.date_created == original_date

    def test_blank_update_is_refused_and_item_untouched(self, editor):
        item = editor.create("Wifi", "abc123")
        with pytest.raises(ValidationError):
            editor.update(item, "", "abc123", "Home", "red")
        assert item.label == "Wifi"
        assert item.color_name == "blue"

    def test_failed_write_rolls_back_fields(self, store, editor, monkeypatch):
        item = editor.create("Wifi", "abc123", category="Home")
        monkeypatch.setattr(store, "persist", _failing_persist)

        with pytest.raises(PersistenceError):
            editor.update(item, "Changed", "changed", "Work", "red")
        assert (item.label, item.value, item.category, item.color_name) == ("Wifi", "abc123", "Home", "blue")

    def test_deleted_item_is_reported_and_untouched(self, store, editor):
        item = editor.create("Wifi", "abc123", category="Home")
        editor.delete(item)

        with pytest.raises(ItemNotFoundError):
            editor.update(item, "Changed", "changed", "Work", "red")
        assert (item.label, item.value, item.category, item.color_name) == ("Wifi", "abc123", "Home", "blue")
        assert store.query_all() == []
        assert StorageManager(store.filepath).query_all() == []


class TestFavorites:
    def test_toggle_twice_restores(self, editor):
        item = editor.create("Visa", "1234")
        editor.toggle_favorite(item)
        assert item.is_favorite is True
        editor.toggle_favorite(item)
        assert item.is_favorite is False

    def test_toggle_is_persisted(self, store, editor):
        item = editor.create("Visa", "1234")
        editor.toggle_favorite(item)
        assert StorageManager(store.filepath).get(item.id).is_favorite is True

    def test_failed_write_restores_flag(self, store, editor, monkeypatch):
        item = editor.create("Visa", "1234")
        monkeypatch.setattr(store, "persist", _failing_persist)
        with pytest.raises(PersistenceError):
            editor.toggle_favorite(item)
        assert item.is_favorite is False

    def test_deleted_item_is_reported_and_flag_restored(self, store, editor):
        item = editor.create("Wifi", "abc")
        editor.delete(item)

        with pytest.raises(ItemNotFoundError) as excinfo:
            editor.toggle_favorite(item)
        assert excinfo.value.item_id == item.id
        assert item.is_favorite is False
        assert store.query_all() == []
        assert StorageManager(store.filepath).query_all() == []


class TestDelete:
    def test_delete_all(self, store, editor):
        editor.create("a", "1")
        editor.create("b", "2")
        assert editor.delete_all() == 2
        assert store.query_all() == []
        assert StorageManager(store.filepath).query_all() == []

    def test_delete_all_on_empty_store(self, editor):
        assert editor.delete_all() == 0

    def test_failed_delete_keeps_item(self, store, editor, monkeypatch):
        item = editor.create("a", "1")
        monkeypatch.setattr(store, "persist", _failing_persist)
        with pytest.raises(PersistenceError):
            editor.delete(item)
        assert store.get(item.id) is item


def test_sample_data(store):
    editor = ItemEditor(store)
    created = editor.add_sample_data()

    assert len(created) == len(config.SAMPLE_ITEMS)
    assert sum(item.is_favorite for item in created) == 2
    # oldest first, so the last sample item is the newest
    assert store.query_all()[0].label == config.SAMPLE_ITEMS[-1][0]
    dates = [item.date_created for item in created]
    assert dates == sorted(dates)
