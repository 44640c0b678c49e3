"""
Server-sent events parsing.
"""

import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx


@dataclass
class SSEEvent:
    event: str
    data: Dict[str, Any]
    id: Optional[str] = None


@dataclass
class SSEParser:
    """
    Incremental line-based parser.

    Feed lines without their terminators; a blank line dispatches the
    event collected so far.
    """

    _event: str = "message"
    _data: List[str] = field(default_factory=list)
    _id: Optional[str] = None

    def feed(self, line: str) -> Optional[SSEEvent]:
        line = line.rstrip("\r\n")

        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value.strip() or "message"
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            self._id = value
        return None

    def flush(self) -> Optional[SSEEvent]:
        """Dispatch a trailing event the stream did not terminate."""
        return self._dispatch()

    def _dispatch(self) -> Optional[SSEEvent]:
        if not self._data:
            self._event = "message"
            return None

        raw = "\n".join(self._data)
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            payload = {"raw": raw}
        if not isinstance(payload, dict):
            payload = {"raw": payload}

        event = SSEEvent(event=self._event, data=payload, id=self._id)
        self._event = "message"
        self._data = []
        return event


async def iter_sse_events(response: httpx.Response) -> AsyncIterator[SSEEvent]:
    """Yield events from a streaming httpx response until it closes."""
    parser = SSEParser()
    async for line in response.aiter_lines():
        event = parser.feed(line)
        if event is not None:
            yield event
    tail = parser.flush()
    if tail is not None:
        yield tail
