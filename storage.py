"""
Key/value persistence used by the shell's collaborators.

Values are JSON-serializable documents stored under string keys. The file
store rewrites the whole document on every write, which is fine for the small
settings and visit-log blobs the shell keeps.
"""
from __future__ import annotations

import copy
import json
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, Optional

from utils.event_logger import get_event_logger


class KeyValueStore(ABC):
    """Minimal key/value contract the engine and its collaborators rely on"""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def keys(self) -> Iterator[str]:
        pass

    def __contains__(self, key: str) -> bool:
        return key in set(self.keys())


class MemoryStore(KeyValueStore):
    """Process-local store, used for incognito sessions and tests"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data.keys()))


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON file.

    A missing or unreadable file starts the store empty; the file is created
    on the first write.
    """

    def __init__(self, path: str):
        self.path = path
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            get_event_logger().system_warning(f"Could not read {self.path}, starting empty: {e}", path=self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _flush(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
        self._flush()

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()

    def keys(self) -> Iterator[str]:
        return iter(list(self._data.keys()))
