"""
Shared fixtures.

HTTP is served by FakeBackend through httpx.MockTransport, so requests go
through the real ApiClient, repositories and SSE parser.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from suggestion_engine.core.config import Settings
from suggestion_engine.core.logging import setup_logging
from suggestion_engine.infrastructure.http_client import ApiClient
from suggestion_engine.infrastructure.storage import LocalSettings
from suggestion_engine.models.domain.person import Person
from suggestion_engine.models.domain.suggestion import Suggestion
from suggestion_engine.services.engine import SuggestionEngine

BASE_URL = "http://backend.test/api/v1"
API_ROOT = "/api/v1"

setup_logging(level="DEBUG", use_colors=False)


class FakeBackend:
    """
    Route table for httpx.MockTransport.

    A route answers with a fixed JSON body, or with a handler returning an
    httpx.Response (sync or async). Unknown routes answer 404.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable] = {}
        self.calls: List[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        json: Any = None,
        status_code: int = 200,
        handler: Optional[Callable] = None,
    ) -> None:
        if handler is None:
            def handler(request, _body=json, _status=status_code):
                if _body is None:
                    return httpx.Response(_status)
                return httpx.Response(_status, json=_body)
        self.routes[(method.upper(), path)] = handler

    def handle(self, request: httpx.Request):
        path = request.url.path[len(API_ROOT):]
        self.calls.append(request)
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, json={"detail": f"No route for {request.method} {path}"})
        return handler(request)

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.calls
            if r.method == method.upper() and r.url.path[len(API_ROOT):] == path
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def suggestion_payload(
    suggestion_id,
    face_id: str,
    person_id: str,
    confidence: float = 0.9,
    status: str = "pending",
    person_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Suggestion as the backend serializes it."""
    return {
        "id": suggestion_id,
        "faceInstanceId": face_id,
        "suggestedPersonId": person_id,
        "confidence": confidence,
        "sourceFaceId": "src-1",
        "status": status,
        "createdAt": "2026-10-01T12:00:00Z",
        "reviewedAt": None,
        "personName": person_name,
        "faceThumbnailUrl": f"/thumbs/{face_id}.jpg",
        "fullImageUrl": f"/images/{face_id}.jpg",
        "bbox": {"x": 10, "y": 20, "w": 64, "h": 64},
    }


def page_payload(items: List[Dict[str, Any]], page: int = 1, page_size: int = 100, total: int = None) -> Dict[str, Any]:
    return {
        "data": items,
        "pagination": {
            "page": page,
            "pageSize": page_size,
            "total": len(items) if total is None else total,
        },
    }


def progress_payload(phase: str, current: int = 0, total: int = 10, **extra) -> Dict[str, Any]:
    payload = {"phase": phase, "current": current, "total": total, "message": f"{phase} {current}/{total}"}
    payload.update(extra)
    return payload


def sse_body(*events: Tuple[str, Dict[str, Any]]) -> bytes:
    chunks = [f"event: {name}\ndata: {json.dumps(data)}\n\n" for name, data in events]
    return "".join(chunks).encode("utf-8")


def sse_response(*events: Tuple[str, Dict[str, Any]]) -> httpx.Response:
    return httpx.Response(
        200,
        headers={"content-type": "text/event-stream"},
        content=sse_body(*events),
    )


# ============ Fixtures ============


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
async def api(backend):
    client = ApiClient(base_url=BASE_URL, timeout=5, token="", transport=backend.transport())
    yield client
    await client.aclose()


@pytest.fixture
def local_settings(tmp_path):
    return LocalSettings(path=str(tmp_path / "local_settings.json"), namespace="image-search")


@pytest.fixture
def config(tmp_path):
    return Settings(
        api_base_url=BASE_URL,
        api_token="",
        job_poll_interval=0.01,
        job_timeout=5,
        max_stream_connections=4,
        stream_reconnect_attempts=2,
        stream_reconnect_delay=0,
        local_settings_path=str(tmp_path / "local_settings.json"),
    )


@pytest.fixture
async def engine(backend, config, local_settings):
    engine = SuggestionEngine(config=config, local_settings=local_settings, transport=backend.transport())
    yield engine
    await engine.close()


@pytest.fixture
def make_suggestion():
    """Factory fixture for Suggestion records."""

    def _create(suggestion_id, face_id: str, person_id: str, confidence: float = 0.9, **kwargs) -> Suggestion:
        return Suggestion.model_validate(
            suggestion_payload(suggestion_id, face_id, person_id, confidence, **kwargs)
        )

    return _create


@pytest.fixture
def mia():
    return Person(id="p1", name="Mia", face_count=12)


@pytest.fixture
def sse():
    return sse_response


@pytest.fixture
def payloads():
    """Backend payload builders."""

    class Payloads:
        suggestion = staticmethod(suggestion_payload)
        page = staticmethod(page_payload)
        progress = staticmethod(progress_payload)

    return Payloads
