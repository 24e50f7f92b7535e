"""
Unit tests for offline serving and the offline page caches.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from config import HOME_URL, OFFLINE_PAGES_KEY
from navigation_result import NavigationStatus
from offline_cache import ConnectivityMonitor, MemoryOfflineCache, StoreOfflineCache
from storage import MemoryStore
from tab_management import NavState
from utils.event_logger import EventType

from conftest import surface_of


CACHED_HTML = "<html><head><title>Cached A</title></head><body>saved</body></html>"


class TestOfflineNavigation:
    """Test suite for the offline branch of navigate()"""

    @pytest.mark.asyncio
    async def test_cache_hit_serves_cached_page(self, session, offline_cache, fake_transport):
        offline_cache.enable()
        await offline_cache.save_page("https://a.test/", "Cached A", CACHED_HTML)
        session.set_online(False)

        result = await session.navigate("a.test")

        tab = session.active_tab()
        assert result.status == NavigationStatus.OFFLINE_SERVED
        assert tab.url == "https://a.test/"
        assert tab.title == "Cached A (Offline)"
        assert tab.favicon == "💾"
        assert tab.offline
        assert tab.nav_state == NavState.OFFLINE_SERVED
        assert tab.history.entries == [HOME_URL, "https://a.test/"]
        assert surface_of(tab).rendered == [CACHED_HTML]
        assert surface_of(tab).go_calls == []
        assert fake_transport.registered_calls == 0
        assert session.chrome.offline

    @pytest.mark.asyncio
    async def test_load_after_offline_render_keeps_offline_title(self, session, offline_cache):
        offline_cache.enable()
        await offline_cache.save_page("https://a.test/", "Cached A", CACHED_HTML)
        session.set_online(False)
        await session.navigate("https://a.test/")
        tab = session.active_tab()
        surface_of(tab).title = "Cached A"

        await surface_of(tab).emit_load()

        assert tab.title == "Cached A (Offline)"
        assert tab.url == "https://a.test/"
        assert len(tab.history) == 2

    @pytest.mark.asyncio
    async def test_cache_miss_falls_through_to_live(self, session, offline_cache, fake_transport, event_logger):
        offline_cache.enable()
        session.set_online(False)

        result = await session.navigate("https://b.test/")

        assert result.status == NavigationStatus.COMMITTED
        assert fake_transport.registered_calls == 1
        assert not session.active_tab().offline
        misses = event_logger.events_of(EventType.OFFLINE_MISS)
        assert misses[-1].details["url"] == "https://b.test/"

    @pytest.mark.asyncio
    async def test_disabled_cache_is_not_consulted(self, session, offline_cache, event_logger):
        await offline_cache.save_page("https://a.test/", "Cached A", CACHED_HTML)
        session.set_online(False)

        result = await session.navigate("https://a.test/")

        assert result.status == NavigationStatus.COMMITTED
        assert event_logger.events_of(EventType.OFFLINE_MISS) == []

    @pytest.mark.asyncio
    async def test_online_navigation_ignores_cache(self, session, offline_cache):
        offline_cache.enable()
        await offline_cache.save_page("https://a.test/", "Cached A", CACHED_HTML)

        result = await session.navigate("https://a.test/")

        assert result.status == NavigationStatus.COMMITTED
        assert surface_of(session.active_tab()).rendered == []

    @pytest.mark.asyncio
    async def test_poll_after_offline_render_keeps_offline_entry(self, session, offline_cache):
        offline_cache.enable()
        await offline_cache.save_page("https://b.test/", "Cached B", CACHED_HTML)
        await session.navigate("https://a.test/")
        session.set_online(False)
        await session.navigate("https://b.test/")
        tab = session.active_tab()
        assert surface_of(tab).location == "https://a.test/"

        changed = await tab.poller.tick()

        assert not changed
        assert tab.url == "https://b.test/"
        assert tab.offline
        assert tab.nav_state == NavState.OFFLINE_SERVED
        assert tab.history.entries == [HOME_URL, "https://a.test/", "https://b.test/"]

    @pytest.mark.asyncio
    async def test_link_followed_from_offline_page_is_recorded(self, session, offline_cache):
        offline_cache.enable()
        await offline_cache.save_page("https://b.test/", "Cached B", CACHED_HTML)
        await session.navigate("https://a.test/")
        session.set_online(False)
        await session.navigate("https://b.test/")
        tab = session.active_tab()
        surface_of(tab).location = "https://c.test/"

        changed = await tab.poller.tick()

        assert changed
        assert tab.url == "https://c.test/"
        assert not tab.offline
        assert tab.history.entries == [HOME_URL, "https://a.test/", "https://b.test/", "https://c.test/"]

    @pytest.mark.asyncio
    async def test_back_online_clears_offline_flag(self, session, offline_cache):
        offline_cache.enable()
        await offline_cache.save_page("https://a.test/", "Cached A", CACHED_HTML)
        session.set_online(False)
        await session.navigate("https://a.test/")

        session.set_online(True)
        await session.refresh()

        tab = session.active_tab()
        assert not tab.offline
        assert tab.title == "a.test"
        assert tab.favicon == "🌐"
        assert len(tab.history) == 2

    @pytest.mark.asyncio
    async def test_offline_replay_keeps_history(self, session, offline_cache):
        offline_cache.enable()
        await offline_cache.save_page("https://a.test/", "Cached A", CACHED_HTML)
        await session.navigate("https://a.test/")
        await session.navigate("https://b.test/")
        session.set_online(False)

        result = await session.go_back()

        tab = session.active_tab()
        assert result.status == NavigationStatus.OFFLINE_SERVED
        assert tab.history.entries == [HOME_URL, "https://a.test/", "https://b.test/"]
        assert tab.history_index == 1

    @pytest.mark.asyncio
    async def test_internal_pages_work_offline(self, session, offline_cache):
        offline_cache.enable()
        session.set_online(False)

        result = await session.navigate("aurora://settings")

        assert result.status == NavigationStatus.INTERNAL

    @pytest.mark.asyncio
    async def test_cache_read_error_fails_navigation(self, session, offline_cache):
        offline_cache.enable()
        session.set_online(False)
        tab = session.active_tab()
        before = (tab.url, tab.history.entries)

        with patch.object(offline_cache, "_read", side_effect=OSError("disk gone")):
            result = await session.navigate("https://a.test/")

        assert result.status == NavigationStatus.FAILED
        assert (tab.url, tab.history.entries) == before
        assert "OfflineCacheError" in session.error_handler.get_error_summary()["error_counts"]


class TestOfflineCaches:
    """Test suite for cache implementations"""

    @pytest.mark.asyncio
    async def test_disabled_cache_refuses_everything(self):
        cache = MemoryOfflineCache()

        assert not await cache.save_page("https://a.test/", "A", "<html></html>")
        assert await cache.get("https://a.test/") is None
        assert not await cache.has("https://a.test/")

    @pytest.mark.asyncio
    async def test_memory_cache_round_trip(self):
        cache = MemoryOfflineCache(enabled=True)
        await cache.save_page("https://a.test/", "A", "<html></html>")

        page = await cache.get("https://a.test/")
        assert page.title == "A"
        assert await cache.has("https://a.test/")
        assert [p.url for p in await cache.all_pages()] == ["https://a.test/"]

        assert await cache.delete_page("https://a.test/")
        assert not await cache.delete_page("https://a.test/")
        assert await cache.get("https://a.test/") is None

    @pytest.mark.asyncio
    async def test_store_cache_persists_in_store(self):
        store = MemoryStore()
        cache = StoreOfflineCache(store, enabled=True)
        await cache.save_page("https://a.test/", "A", "<p>a</p>")

        assert store.get(OFFLINE_PAGES_KEY)["https://a.test/"]["content"] == "<p>a</p>"
        reopened = StoreOfflineCache(store, enabled=True)
        assert (await reopened.get("https://a.test/")).title == "A"

        await reopened.delete_page("https://a.test/")
        assert store.get(OFFLINE_PAGES_KEY) == {}

    @pytest.mark.asyncio
    async def test_store_cache_ignores_malformed_document(self):
        store = MemoryStore({OFFLINE_PAGES_KEY: ["not", "a", "dict"]})
        cache = StoreOfflineCache(store, enabled=True)

        assert await cache.get("https://a.test/") is None
        assert await cache.all_pages() == []

    @pytest.mark.asyncio
    async def test_download_and_save_uses_document_title(self):
        cache = MemoryOfflineCache(enabled=True)
        response = Mock(text="<html><title> Example Domain </title></html>")

        with patch("offline_cache.requests.get", return_value=response) as get:
            assert await cache.download_and_save("https://example.com/")

        get.assert_called_once_with("https://example.com/", timeout=15.0)
        page = await cache.get("https://example.com/")
        assert page.title == "Example Domain"
        assert page.content == response.text

    @pytest.mark.asyncio
    async def test_download_without_title_uses_url(self):
        cache = MemoryOfflineCache(enabled=True)

        with patch("offline_cache.requests.get", return_value=Mock(text="<p>bare</p>")):
            await cache.download_and_save("https://example.com/bare")

        assert (await cache.get("https://example.com/bare")).title == "https://example.com/bare"

    @pytest.mark.asyncio
    async def test_download_failure_returns_false(self, event_logger):
        cache = MemoryOfflineCache(enabled=True)

        with patch("offline_cache.requests.get", side_effect=requests.ConnectionError("offline")):
            assert not await cache.download_and_save("https://example.com/")

        assert await cache.all_pages() == []
        assert event_logger.events_of(EventType.SYSTEM_ERROR)

    def test_connectivity_monitor_logs_changes(self, event_logger):
        monitor = ConnectivityMonitor()

        monitor.set_online(False)
        monitor.set_online(False)

        assert not monitor.online
        infos = [e.message for e in event_logger.events_of(EventType.SYSTEM_INFO)]
        assert infos.count("Network is offline") == 1
