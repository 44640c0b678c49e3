"""Tests for the recent persons list and its durable storage."""

import json

from suggestion_engine.infrastructure.storage import LocalSettings
from suggestion_engine.services.recent_selection import RecentSelectionCache

KEY = "suggestions.recentPersonIds"


def test_mru_ordering(local_settings):
    recent = RecentSelectionCache(local_settings, key=KEY)

    for person_id in ["A", "B", "A", "C"]:
        recent.record(person_id)

    assert recent.list() == ["C", "A", "B"]


def test_capacity_truncates_oldest(local_settings):
    recent = RecentSelectionCache(local_settings, key=KEY, capacity=3)

    for person_id in ["p1", "p2", "p3", "p4"]:
        recent.record(person_id)

    assert recent.list() == ["p4", "p3", "p2"]


def test_survives_restart(tmp_path):
    path = str(tmp_path / "settings.json")
    RecentSelectionCache(LocalSettings(path=path, namespace="image-search"), key=KEY).record("p1")

    reopened = RecentSelectionCache(LocalSettings(path=path, namespace="image-search"), key=KEY)

    assert reopened.list() == ["p1"]
    with open(path, encoding="utf-8") as f:
        assert json.load(f) == {"image-search.suggestions.recentPersonIds": ["p1"]}


def test_missing_storage_is_empty(tmp_path):
    recent = RecentSelectionCache(LocalSettings(path=str(tmp_path / "absent.json")), key=KEY)

    assert recent.list() == []


def test_corrupt_storage_is_empty(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    recent = RecentSelectionCache(LocalSettings(path=str(path), namespace="image-search"), key=KEY)

    assert recent.list() == []
    recent.record("p2")
    assert recent.list() == ["p2"]


def test_malformed_value_is_ignored(local_settings):
    local_settings.set(KEY, {"not": "a list"})
    recent = RecentSelectionCache(local_settings, key=KEY)

    assert recent.list() == []


def test_junk_entries_are_dropped(local_settings):
    local_settings.set(KEY, ["p1", None, 7, True, "p1", "p2"])
    recent = RecentSelectionCache(local_settings, key=KEY)

    assert recent.list() == ["p1", "7", "p2"]


def test_clear(local_settings):
    recent = RecentSelectionCache(local_settings, key=KEY)
    recent.record("p1")

    recent.clear()

    assert recent.list() == []
    assert not local_settings.has(KEY)


def test_local_settings_namespaces_are_isolated(tmp_path):
    path = str(tmp_path / "settings.json")
    first = LocalSettings(path=path, namespace="one")
    second = LocalSettings(path=path, namespace="two")
    first.set("k", 1)
    second.set("k", 2)

    first.clear_all()

    assert LocalSettings(path=path, namespace="one").get("k", "default") == "default"
    assert LocalSettings(path=path, namespace="two").get("k") == 2


def test_failed_save_leaves_no_temp_file(tmp_path):
    local = LocalSettings(path=str(tmp_path / "settings.json"), namespace="ns")
    local.set("ok", 1)

    local.set("bad", object())

    assert sorted(p.name for p in tmp_path.iterdir()) == ["settings.json"]
    assert json.loads((tmp_path / "settings.json").read_text()) == {"ns.ok": 1}
