"""
Offline page cache consulted by the navigation engine while the network is down.

The cache is disabled until something (normally an extension) enables it; a
disabled cache answers every lookup with a miss and refuses writes.
"""
from __future__ import annotations

import asyncio
import re
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

import requests

from config import OFFLINE_PAGES_KEY
from storage import KeyValueStore
from utils.event_logger import get_event_logger


_TITLE_RE = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)


@dataclass
class CachedPage:
    """One stored page"""
    url: str
    title: str
    content: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class ConnectivityMonitor:
    """Tracks whether the shell believes it is online"""

    def __init__(self, online: bool = True):
        self.online = online

    def set_online(self, online: bool) -> None:
        if online != self.online:
            state = "online" if online else "offline"
            get_event_logger().system_info(f"Network is {state}")
        self.online = online


class OfflineCache(ABC):
    """
    Keyed page store queried before network navigation.

    Subclasses implement raw storage; enablement and logging live here.
    """

    def __init__(self, enabled: bool = False, download_timeout: float = 15.0):
        self.enabled = enabled
        self.download_timeout = download_timeout

    def enable(self) -> None:
        self.enabled = True
        get_event_logger().system_info("Offline cache enabled.")

    def disable(self) -> None:
        self.enabled = False
        get_event_logger().system_info("Offline cache disabled.")

    @abstractmethod
    def _read(self, url: str) -> Optional[CachedPage]:
        pass

    @abstractmethod
    def _write(self, page: CachedPage) -> None:
        pass

    @abstractmethod
    def _remove(self, url: str) -> bool:
        pass

    @abstractmethod
    def _pages(self) -> List[CachedPage]:
        pass

    async def has(self, url: str) -> bool:
        if not self.enabled:
            return False
        return self._read(url) is not None

    async def get(self, url: str) -> Optional[CachedPage]:
        if not self.enabled:
            return None
        return self._read(url)

    async def save_page(self, url: str, title: str, content: str) -> bool:
        if not self.enabled:
            return False
        self._write(CachedPage(url=url, title=title, content=content))
        get_event_logger().system_info(f"Page saved for offline: {url}", url=url)
        return True

    async def delete_page(self, url: str) -> bool:
        return self._remove(url)

    async def all_pages(self) -> List[CachedPage]:
        return self._pages()

    async def download_and_save(self, url: str) -> bool:
        """
        Fetch ``url`` over HTTP and store it, titled from its ``<title>``.

        Returns:
            True when the page was stored
        """
        if not self.enabled:
            return False
        try:
            response = await asyncio.to_thread(requests.get, url, timeout=self.download_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            get_event_logger().system_error(f"Offline download failed for {url}", error=e)
            return False

        content = response.text
        title = url
        match = _TITLE_RE.search(content)
        if match and match.group(1).strip():
            title = match.group(1).strip()
        return await self.save_page(url, title, content)


class MemoryOfflineCache(OfflineCache):
    """Cache that lives for the duration of the process"""

    def __init__(self, enabled: bool = False, download_timeout: float = 15.0):
        super().__init__(enabled=enabled, download_timeout=download_timeout)
        self._store: Dict[str, CachedPage] = {}

    def _read(self, url: str) -> Optional[CachedPage]:
        return self._store.get(url)

    def _write(self, page: CachedPage) -> None:
        self._store[page.url] = page

    def _remove(self, url: str) -> bool:
        return self._store.pop(url, None) is not None

    def _pages(self) -> List[CachedPage]:
        return list(self._store.values())


class StoreOfflineCache(OfflineCache):
    """Cache persisted as one document in a KeyValueStore"""

    def __init__(self, store: KeyValueStore, enabled: bool = False, download_timeout: float = 15.0):
        super().__init__(enabled=enabled, download_timeout=download_timeout)
        self.store = store

    def _load(self) -> Dict[str, dict]:
        pages = self.store.get(OFFLINE_PAGES_KEY, {})
        return pages if isinstance(pages, dict) else {}

    def _read(self, url: str) -> Optional[CachedPage]:
        raw = self._load().get(url)
        if not raw:
            return None
        return CachedPage(**raw)

    def _write(self, page: CachedPage) -> None:
        pages = self._load()
        pages[page.url] = page.to_dict()
        self.store.set(OFFLINE_PAGES_KEY, pages)

    def _remove(self, url: str) -> bool:
        pages = self._load()
        if url not in pages:
            return False
        del pages[url]
        self.store.set(OFFLINE_PAGES_KEY, pages)
        return True

    def _pages(self) -> List[CachedPage]:
        return [CachedPage(**raw) for raw in self._load().values()]
