"""
Infrastructure layer - HTTP transport, event streams and local storage.
"""

from suggestion_engine.infrastructure.http_client import ApiClient, raise_for_status
from suggestion_engine.infrastructure.sse import SSEEvent, SSEParser, iter_sse_events
from suggestion_engine.infrastructure.storage import LocalSettings, get_local_settings

__all__ = [
    'ApiClient',
    'raise_for_status',
    'SSEEvent',
    'SSEParser',
    'iter_sse_events',
    'LocalSettings',
    'get_local_settings',
]
