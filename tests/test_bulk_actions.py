"""Tests for batch accept/reject."""

import asyncio
import json

import pytest

from suggestion_engine.core.exceptions import TransportError, ValidationError
from suggestion_engine.models.domain.suggestion import SuggestionStatus
from suggestion_engine.services.job_progress import JobCallbacks


@pytest.fixture
def seeded(engine, make_suggestion, mia):
    engine.directory.add(mia)
    engine.store.upsert_many([
        make_suggestion(1, "f1", "p1", 0.90),
        make_suggestion(2, "f2", "p1", 0.85),
        make_suggestion(3, "f3", "p2", 0.80, person_name="Ana"),
    ])
    return engine


async def test_partial_failure_updates_only_succeeded_ids(seeded, backend):
    backend.on("POST", "/faces/suggestions/bulk-action", json={
        "successCount": 2,
        "failedCount": 1,
        "errors": [{"suggestionId": 2, "reason": "already reviewed"}],
    })

    result = await seeded.bulk_action(["1", "2", "3"], "accept")

    assert result.success_count == 2
    assert result.failed_count == 1
    assert [(e.suggestion_id, e.reason) for e in result.errors] == [("2", "already reviewed")]
    assert result.succeeded_ids == ["1", "3"]
    assert result.is_partial

    assert seeded.store.get("1").status == SuggestionStatus.ACCEPTED
    assert seeded.store.get("2").status == SuggestionStatus.PENDING
    assert seeded.store.get("3").status == SuggestionStatus.ACCEPTED
    assert seeded.faces.get("f1").person_name == "Mia"
    assert seeded.faces.get("f2") is None
    assert seeded.faces.get("f3").person_name == "Ana"
    assert seeded.recent.list() == ["p2", "p1"]


@pytest.mark.parametrize(
    "body",
    [
        {"successCount": 2, "failedCount": 1, "errors": []},
        {"processed": 2, "failed": 1, "errors": ["Suggestion 2: already reviewed"]},
    ],
)
async def test_failures_without_ids_change_nothing(seeded, backend, body):
    backend.on("POST", "/faces/suggestions/bulk-action", json=body)
    before = dict(seeded.store.snapshot())

    result = await seeded.bulk_action(["1", "2", "3"], "accept")

    assert result.success_count == 2
    assert result.unattributed_failures == 1
    assert result.succeeded_ids == []
    assert dict(seeded.store.snapshot()) == before
    assert seeded.faces.snapshot() == {}
    assert seeded.recent.list() == []


async def test_single_request_for_whole_batch(seeded, backend):
    backend.on("POST", "/faces/suggestions/bulk-action", json={"successCount": 3, "failedCount": 0, "errors": []})

    await seeded.bulk_action(["1", "2", "3", "2"], "reject")

    calls = backend.requests_to("POST", "/faces/suggestions/bulk-action")
    assert len(calls) == 1
    assert json.loads(calls[0].content) == {"suggestionIds": [1, 2, 3], "action": "reject"}
    assert [s.status for s in seeded.store.snapshot().values()] == [SuggestionStatus.REJECTED] * 3
    assert seeded.faces.snapshot() == {}
    assert seeded.recent.list() == []


@pytest.mark.parametrize(
    "ids, action, count",
    [
        ([], "accept", None),
        (["1"], "merge", None),
        (["1"], "accept", 0),
    ],
)
async def test_invalid_input_sends_nothing(seeded, backend, ids, action, count):
    with pytest.raises(ValidationError):
        await seeded.bulk_action(ids, action, auto_find_more=True, find_more_prototype_count=count)
    assert backend.calls == []


async def test_request_failure_leaves_store_untouched(seeded, backend):
    backend.on("POST", "/faces/suggestions/bulk-action", json={"detail": "down"}, status_code=503)
    before = dict(seeded.store.snapshot())

    with pytest.raises(TransportError):
        await seeded.bulk_action(["1", "3"], "accept")

    assert dict(seeded.store.snapshot()) == before
    assert seeded.faces.snapshot() == {}


async def test_auto_find_more_flag_only_sent_for_accept(seeded, backend):
    backend.on("POST", "/faces/suggestions/bulk-action", json={"successCount": 1, "failedCount": 0})

    await seeded.bulk_action(["1"], "reject", auto_find_more=True, find_more_prototype_count=3)

    assert json.loads(backend.calls[-1].content) == {"suggestionIds": [1], "action": "reject"}


async def test_auto_find_more_jobs_are_tracked(seeded, backend, payloads):
    seeded.monitor.max_stream_connections = 0
    backend.on("POST", "/faces/suggestions/bulk-action", json={
        "successCount": 2,
        "failedCount": 0,
        "errors": [],
        "findMoreJobs": [{"jobId": "j1", "personId": "p1", "progressKey": "k1"}],
    })
    backend.on("GET", "/job-progress/status", json=payloads.progress("completed", 10, 10, suggestionsCreated=7))
    finished = asyncio.Event()
    completed = []

    def on_complete(progress):
        completed.append(progress)
        finished.set()

    await seeded.bulk_action(
        ["1", "2"], "accept",
        auto_find_more=True,
        find_more_prototype_count=3,
        callbacks=JobCallbacks(on_complete=on_complete),
    )
    body = json.loads(backend.calls[0].content)
    assert body["autoFindMore"] is True
    assert body["findMorePrototypeCount"] == 3

    await asyncio.wait_for(finished.wait(), 1)

    assert completed[0].suggestions_created == 7
    job = seeded.monitor.get_job("j1")
    assert job.person_name == "Mia"
    assert job.finished
    assert not seeded.monitor.has_running_jobs
