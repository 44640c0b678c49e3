"""
Durable local settings.
A namespaced key/value store persisted as one JSON file.
"""

import json
import os
import tempfile
from typing import Any, Dict, Optional

from suggestion_engine.core.config import settings
from suggestion_engine.core.logging import get_logger

logger = get_logger(__name__)

_MISSING = object()


class LocalSettings:
    """
    Namespaced settings persisted across sessions.

    Keys are stored as "<namespace>.<key>". Reads go through an in-memory
    cache; every write rewrites the file atomically. A missing or corrupt
    file behaves like an empty store.
    """

    def __init__(self, path: str = None, namespace: str = None):
        self.path = path or settings.local_settings_path
        self.namespace = namespace or settings.local_settings_namespace
        self._cache: Dict[str, Any] = {}
        logger.debug(f"LocalSettings at {self.path} (namespace '{self.namespace}')")

    def _storage_key(self, key: str) -> str:
        return f"{self.namespace}.{key}"

    def _read_file(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load local settings from {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring local settings in {self.path}: not a JSON object")
            return {}
        return data

    def _write_file(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".settings-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save local settings to {self.path}: {e}")
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    # ============================================================
    # Public API
    # ============================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value, or `default` if it was never stored.

        Usage:
            page_size = local_settings.get("search.pageSize", 24)
        """
        if key in self._cache:
            return self._cache[key]

        value = self._read_file().get(self._storage_key(key), _MISSING)
        if value is _MISSING:
            return default

        self._cache[key] = value
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a setting value and persist it."""
        self._cache[key] = value
        data = self._read_file()
        data[self._storage_key(key)] = value
        self._write_file(data)

    def remove(self, key: str) -> None:
        self._cache.pop(key, None)
        data = self._read_file()
        if data.pop(self._storage_key(key), _MISSING) is not _MISSING:
            self._write_file(data)

    def has(self, key: str) -> bool:
        """Check if a setting is persisted (not just a default)."""
        return self._storage_key(key) in self._read_file()

    def clear_all(self) -> None:
        """Remove every setting under this namespace."""
        prefix = f"{self.namespace}."
        data = self._read_file()
        kept = {k: v for k, v in data.items() if not k.startswith(prefix)}
        if len(kept) != len(data):
            self._write_file(kept)
        self._cache = {}


# Global instance
_local_settings: Optional[LocalSettings] = None


def get_local_settings() -> LocalSettings:
    """Get singleton LocalSettings instance."""
    global _local_settings
    if _local_settings is None:
        _local_settings = LocalSettings()
    return _local_settings
