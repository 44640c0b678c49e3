"""Tests for single-item review and assignment with optimistic updates."""

import asyncio
import json

import httpx
import pytest

from suggestion_engine.core.exceptions import (
    AlreadyReviewedError,
    BusyError,
    DuplicatePersonError,
    NotFoundError,
    SuggestionNotFoundError,
    TransportError,
    ValidationError,
)
from suggestion_engine.models.domain.face import FaceAssignment
from suggestion_engine.models.domain.suggestion import SuggestionStatus

# ============ Fixtures ============


@pytest.fixture
def seeded(engine, make_suggestion, mia):
    """Face f7 with two pending suggestions; Mia is a known person."""
    engine.directory.add(mia)
    engine.store.upsert_many([
        make_suggestion("s42", "f7", "p1", 0.91),
        make_suggestion("s43", "f7", "p2", 0.40),
        make_suggestion("s50", "f8", "p1", 0.88),
    ])
    return engine


def snapshot(engine):
    return dict(engine.store.snapshot()), dict(engine.faces.snapshot())


def gated(response: httpx.Response):
    """Handler that blocks until released; `entered` fires once a request arrives."""
    entered = asyncio.Event()
    release = asyncio.Event()

    async def handler(request):
        entered.set()
        await release.wait()
        return response

    return handler, entered, release


# ============ Accept ============


async def test_accept_assigns_face_and_records_person(seeded, backend, payloads):
    backend.on(
        "POST", "/faces/suggestions/s42/accept",
        json=payloads.suggestion("s42", "f7", "p1", 0.91, status="accepted"),
    )

    result = await seeded.accept("s42")

    assert result.face_id == "f7"
    assert result.person_id == "p1"
    assert result.person_name == "Mia"
    assert result.suggestion_id == "s42"
    assert seeded.faces.get("f7").person_id == "p1"
    assert seeded.faces.get("f7").person_name == "Mia"
    assert "s42" not in [s.id for s in seeded.store.list_pending()]
    assert seeded.store.get("s42").status == SuggestionStatus.ACCEPTED
    assert seeded.recent.list()[0] == "p1"


async def test_accept_reviewed_suggestion_is_rejected_locally(seeded, backend):
    seeded.store.upsert(seeded.store.get("s42").transition(SuggestionStatus.REJECTED))
    before = snapshot(seeded)

    with pytest.raises(AlreadyReviewedError):
        await seeded.accept("s42")
    with pytest.raises(AlreadyReviewedError):
        await seeded.reject("s42")

    assert snapshot(seeded) == before
    assert backend.calls == []


async def test_accept_conflict_from_server_rolls_back(seeded, backend):
    backend.on("POST", "/faces/suggestions/s42/accept", json={"detail": "already reviewed"}, status_code=409)
    before = snapshot(seeded)

    with pytest.raises(AlreadyReviewedError):
        await seeded.accept("s42")

    assert snapshot(seeded) == before
    assert seeded.store.get("s42").is_pending
    assert seeded.recent.list() == []


async def test_accept_unknown_suggestion(seeded, backend):
    with pytest.raises(SuggestionNotFoundError):
        await seeded.accept("nope")
    assert backend.calls == []


async def test_reject_only_changes_status(seeded, backend, payloads):
    backend.on(
        "POST", "/faces/suggestions/s43/reject",
        json=payloads.suggestion("s43", "f7", "p2", 0.40, status="rejected"),
    )

    rejected = await seeded.reject("s43")

    assert rejected.status == SuggestionStatus.REJECTED
    assert seeded.store.get("s43").status == SuggestionStatus.REJECTED
    assert seeded.faces.get("f7") is None
    assert seeded.recent.list() == []


async def test_reject_failure_restores_pending(seeded, backend):
    backend.on("POST", "/faces/suggestions/s43/reject", json={"detail": "down"}, status_code=502)
    before = snapshot(seeded)

    with pytest.raises(TransportError):
        await seeded.reject("s43")

    assert snapshot(seeded) == before


# ============ Assign ============


async def test_assign_to_existing_removes_matching_suggestion(seeded, backend):
    backend.on("POST", "/faces/faces/f7/assign", json={"faceId": "f7", "personId": "p1", "personName": "Mia"})

    result = await seeded.assign_to_existing("f7", "p1")

    assert result.person_name == "Mia"
    assert seeded.faces.get("f7").person_id == "p1"
    assert "s42" not in seeded.store
    assert "s43" in seeded.store
    assert "s50" in seeded.store
    assert json.loads(backend.calls[-1].content) == {"personId": "p1"}
    assert seeded.recent.list() == ["p1"]


async def test_assign_failure_restores_exact_state(seeded, backend):
    seeded.faces.put(FaceAssignment(face_id="f7"))
    backend.on("POST", "/faces/faces/f7/assign", json={"detail": "boom"}, status_code=500)
    before = snapshot(seeded)
    order = [s.id for s in seeded.store.list_pending()]
    version = seeded.store.version

    with pytest.raises(TransportError):
        await seeded.assign_to_existing("f7", "p1")

    assert snapshot(seeded) == before
    assert [s.id for s in seeded.store.list_pending()] == order
    assert seeded.store.version == version
    assert seeded.recent.list() == []
    assert not seeded.assignments.is_busy("f7")


async def test_optimistic_state_is_visible_before_response(seeded, backend):
    handler, entered, release = gated(httpx.Response(200, json={"faceId": "f7", "personId": "p1"}))
    backend.on("POST", "/faces/faces/f7/assign", handler=handler)

    task = asyncio.create_task(seeded.assign_to_existing("f7", "p1"))
    await entered.wait()

    assert seeded.faces.get("f7").person_id == "p1"
    assert "s42" not in seeded.store

    release.set()
    await task


async def test_second_operation_on_same_face_is_busy(seeded, backend):
    handler, entered, release = gated(httpx.Response(200, json={"faceId": "f7", "personId": "p1"}))
    backend.on("POST", "/faces/faces/f7/assign", handler=handler)

    first = asyncio.create_task(seeded.assign_to_existing("f7", "p1"))
    await entered.wait()

    with pytest.raises(BusyError):
        await seeded.assign_to_existing("f7", "p2")
    with pytest.raises(BusyError):
        await seeded.unassign("f7")
    assert len(backend.requests_to("POST", "/faces/faces/f7/assign")) == 1

    release.set()
    await first
    assert not seeded.assignments.is_busy("f7")


async def test_other_faces_are_not_blocked(seeded, backend, payloads):
    handler, entered, release = gated(httpx.Response(200, json={"faceId": "f7", "personId": "p1"}))
    backend.on("POST", "/faces/faces/f7/assign", handler=handler)
    backend.on(
        "POST", "/faces/suggestions/s50/accept",
        json=payloads.suggestion("s50", "f8", "p1", 0.88, status="accepted"),
    )

    first = asyncio.create_task(seeded.assign_to_existing("f7", "p1"))
    await entered.wait()

    result = await seeded.accept("s50")

    assert result.face_id == "f8"
    release.set()
    await first


# ============ Create and assign ============


async def test_create_and_assign(seeded, backend):
    backend.on("POST", "/faces/persons", json={"id": "p9", "name": "Zoe", "status": "active"})
    backend.on("POST", "/faces/faces/f7/assign", json={"faceId": "f7", "personId": "p9", "personName": "Zoe"})

    result = await seeded.create_and_assign("f7", "  Zoe ")

    assert result.person_id == "p9"
    assert seeded.faces.get("f7").person_name == "Zoe"
    assert seeded.directory.name_of("p9") == "Zoe"
    assert json.loads(backend.requests_to("POST", "/faces/persons")[0].content) == {"name": "Zoe"}
    assert seeded.recent.list() == ["p9"]


async def test_created_person_is_kept_when_assignment_fails(seeded, backend):
    backend.on("POST", "/faces/persons", json={"id": "p9", "name": "Zoe"})
    backend.on("POST", "/faces/faces/f7/assign", json={"detail": "Face not found"}, status_code=404)
    before = snapshot(seeded)

    with pytest.raises(NotFoundError) as exc_info:
        await seeded.create_and_assign("f7", "Zoe")

    assert exc_info.value.details["created_person_id"] == "p9"
    assert seeded.directory.get("p9") is not None
    assert snapshot(seeded) == before
    assert seeded.recent.list() == []


@pytest.mark.parametrize("name", ["", "   ", None])
async def test_create_requires_name(seeded, backend, name):
    with pytest.raises(ValidationError):
        await seeded.create_and_assign("f7", name)
    assert backend.calls == []


async def test_create_duplicate_name(seeded, backend):
    backend.on("POST", "/faces/persons", json={"detail": "exists"}, status_code=409)

    with pytest.raises(DuplicatePersonError):
        await seeded.create_and_assign("f7", "Mia")
    assert backend.requests_to("POST", "/faces/faces/f7/assign") == []


# ============ Unassign ============


async def test_unassign_reports_previous_person(seeded, backend):
    seeded.faces.assign("f7", "p1", "Mia")
    backend.on("DELETE", "/faces/faces/f7/person", status_code=204)

    response = await seeded.unassign("f7")

    assert response.previous_person_id == "p1"
    assert response.previous_person_name == "Mia"
    assert not seeded.faces.get("f7").is_assigned


async def test_unassign_failure_restores_face(seeded, backend):
    seeded.faces.assign("f7", "p1", "Mia")
    backend.on("DELETE", "/faces/faces/f7/person", json={"detail": "timeout"}, status_code=504)
    before = snapshot(seeded)

    with pytest.raises(TransportError):
        await seeded.unassign("f7")

    assert snapshot(seeded) == before
