"""
Global visit log shared by all tabs, persisted under ``aurora_history``.
"""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Dict, List

from config import MAX_VISIT_LOG_ENTRIES, VISIT_LOG_KEY
from storage import KeyValueStore


@dataclass
class Visit:
    url: str
    title: str
    timestamp: float = field(default_factory=time.time)


class VisitLog:
    """
    Newest-first list of visited pages.

    A visit to the URL already at the top is not recorded again, the log keeps
    at most ``max_entries`` visits, and nothing is recorded in incognito.
    """

    def __init__(self, store: KeyValueStore, incognito: bool = False, max_entries: int = MAX_VISIT_LOG_ENTRIES):
        self.store = store
        self.incognito = incognito
        self.max_entries = max_entries

    def _load(self) -> List[Dict[str, object]]:
        saved = self.store.get(VISIT_LOG_KEY, [])
        return saved if isinstance(saved, list) else []

    def entries(self) -> List[Visit]:
        visits = []
        for raw in self._load():
            if isinstance(raw, dict) and "url" in raw:
                visits.append(Visit(url=raw["url"], title=raw.get("title", ""), timestamp=raw.get("timestamp", 0)))
        return visits

    def record(self, url: str, title: str) -> bool:
        """
        Put a visit at the top of the log.

        Returns:
            True if the visit was stored
        """
        if self.incognito:
            return False
        log = self._load()
        if log and isinstance(log[0], dict) and log[0].get("url") == url:
            return False
        log.insert(0, asdict(Visit(url=url, title=title)))
        self.store.set(VISIT_LOG_KEY, log[: self.max_entries])
        return True

    def clear(self) -> None:
        self.store.set(VISIT_LOG_KEY, [])

    def __len__(self) -> int:
        return len(self._load())
