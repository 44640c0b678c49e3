"""Tests for the in-memory suggestion collection."""

import pytest

from suggestion_engine.models.domain.suggestion import SuggestionStatus
from suggestion_engine.core.exceptions import AlreadyReviewedError
from suggestion_engine.services.suggestion_store import SuggestionStore


@pytest.fixture
def store(make_suggestion):
    return SuggestionStore([
        make_suggestion(1, "f1", "p1", 0.70),
        make_suggestion(2, "f1", "p2", 0.95),
        make_suggestion(3, "f2", "p1", 0.80),
    ])


def test_ids_are_unique(store, make_suggestion):
    store.upsert(make_suggestion(1, "f1", "p1", 0.75))

    assert len(store) == 3
    assert store.get("1").confidence == 0.75


def test_remove_unknown_is_noop(store):
    version = store.version

    assert store.remove("404") is None
    assert len(store) == 3
    assert store.version == version


def test_remove_returns_record(store):
    removed = store.remove(3)

    assert removed.id == "3"
    assert "3" not in store


def test_list_by_face_highest_confidence_first(store):
    assert [s.id for s in store.list_by_face("f1")] == ["2", "1"]
    assert store.list_by_face("unknown") == []


def test_list_by_face_pending_only(store):
    store.upsert(store.get("2").transition(SuggestionStatus.REJECTED))

    assert [s.id for s in store.list_by_face("f1")] == ["2", "1"]
    assert [s.id for s in store.list_by_face("f1", pending_only=True)] == ["1"]


def test_list_pending_by_person(store):
    assert sorted(s.id for s in store.list_pending("p1")) == ["1", "3"]


def test_snapshot_is_not_changed_by_later_writes(store, make_suggestion):
    before = store.snapshot()

    store.upsert(make_suggestion(4, "f3", "p3"))
    store.remove("1")

    assert set(before) == {"1", "2", "3"}
    assert set(store.snapshot()) == {"2", "3", "4"}
    with pytest.raises(TypeError):
        before["9"] = None


def test_replace_face_keeps_reviewed_and_other_faces(store, make_suggestion):
    store.upsert(store.get("1").transition(SuggestionStatus.ACCEPTED))

    store.replace_face("f1", [make_suggestion(5, "f1", "p5", 0.6)])

    assert set(store.snapshot()) == {"1", "3", "5"}
    assert store.get("1").status == SuggestionStatus.ACCEPTED


def test_restore_puts_back_and_drops(store, make_suggestion):
    original = store.get("1")
    before = dict(store.snapshot())

    store.upsert(original.transition(SuggestionStatus.ACCEPTED))
    store.upsert(make_suggestion(6, "f9", "p9"))
    store.restore({"1": original, "6": None})

    assert dict(store.snapshot()) == before


def test_restore_from_checkpoint_is_exact(store):
    before = store.snapshot()
    checkpoint = store.checkpoint()
    previous = {"1": store.get("1")}

    store.remove("1")
    store.restore(previous, checkpoint)

    assert store.snapshot() is before
    assert list(store.snapshot()) == ["1", "2", "3"]
    assert store.version == checkpoint.version


def test_restore_keeps_concurrent_changes_in_place(store, make_suggestion):
    checkpoint = store.checkpoint()
    previous = {"1": store.get("1")}

    store.remove("1")
    store.upsert(store.get("3").transition(SuggestionStatus.REJECTED))
    store.upsert(make_suggestion(4, "f4", "p4"))
    store.restore(previous, checkpoint)

    assert list(store.snapshot()) == ["1", "2", "3", "4"]
    assert store.get("3").status == SuggestionStatus.REJECTED
    assert store.version > checkpoint.version


def test_transition_of_reviewed_suggestion_fails(store):
    accepted = store.get("1").transition(SuggestionStatus.ACCEPTED)

    with pytest.raises(AlreadyReviewedError):
        accepted.transition(SuggestionStatus.REJECTED)
    assert accepted.reviewed_at is not None


def test_clear(store):
    store.clear()

    assert len(store) == 0
