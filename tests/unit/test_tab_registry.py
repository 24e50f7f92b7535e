"""
Unit tests for TabRegistry lifecycle: create, close, activate.
"""

import pytest

from config import HOME_URL
from tab_management import PERFORMANCE_MODE_NOTICE, Tab, TabRegistry
from utils.event_logger import EventType

from conftest import surface_of


class TestTabRegistry:
    """Test suite for tab lifecycle through a session"""

    @pytest.mark.asyncio
    async def test_init_opens_home_tab(self, session):
        assert len(session.tabs) == 1
        tab = session.active_tab()
        assert tab.url == HOME_URL
        assert tab.title == "Home"
        assert tab.history.entries == [HOME_URL]
        assert tab.history_index == 0
        assert session.chrome.visible_page == "home"

    @pytest.mark.asyncio
    async def test_create_tab_activates_and_navigates(self, session):
        tab_id = await session.create_tab("wikipedia.org")

        assert tab_id.startswith("tab_")
        assert session.active_tab_id == tab_id
        tab = session.get_tab(tab_id)
        assert tab.url == "https://wikipedia.org/"
        assert tab.history.entries == ["wikipedia.org", "https://wikipedia.org/"]
        assert surface_of(tab).go_calls == ["https://wikipedia.org/"]

    @pytest.mark.asyncio
    async def test_create_tab_default_target(self, session):
        tab_id = await session.create_tab()

        tab = session.get_tab(tab_id)
        assert tab.url == HOME_URL
        assert tab.history.entries == [HOME_URL]
        assert tab.surface_session is None

    @pytest.mark.asyncio
    async def test_close_last_tab_opens_replacement(self, session):
        only = session.active_tab_id

        assert await session.close_tab(only) is True

        assert len(session.tabs) == 1
        replacement = session.active_tab()
        assert replacement.tab_id != only
        assert replacement.url == HOME_URL

    @pytest.mark.asyncio
    async def test_close_active_tab_activates_neighbour(self, session):
        first = session.active_tab_id
        second = await session.create_tab()
        third = await session.create_tab()
        await session.activate_tab(second)

        await session.close_tab(second)

        assert [tab.tab_id for tab in session.tabs] == [first, third]
        assert session.active_tab_id == third

    @pytest.mark.asyncio
    async def test_close_last_position_activates_new_last(self, session):
        first = session.active_tab_id
        second = await session.create_tab()

        await session.close_tab(second)

        assert session.active_tab_id == first

    @pytest.mark.asyncio
    async def test_close_inactive_tab_keeps_active(self, session):
        first = session.active_tab_id
        second = await session.create_tab()

        await session.close_tab(first)

        assert session.active_tab_id == second
        assert len(session.tabs) == 1

    @pytest.mark.asyncio
    async def test_close_unknown_tab_is_ignored(self, session):
        before = [tab.tab_id for tab in session.tabs]

        assert await session.close_tab("tab_missing") is False
        assert [tab.tab_id for tab in session.tabs] == before

    @pytest.mark.asyncio
    async def test_close_releases_surface_and_poller(self, session):
        tab_id = await session.create_tab("https://a.test")
        tab = session.get_tab(tab_id)
        surface = surface_of(tab)
        poller = tab.poller
        assert poller.running

        await session.close_tab(tab_id)

        assert surface.closed
        assert not poller.running
        assert tab.surface_session is None

    @pytest.mark.asyncio
    async def test_registry_is_never_empty(self, session):
        for _ in range(3):
            await session.create_tab()
        for tab in list(session.tabs):
            await session.close_tab(tab.tab_id)
            assert len(session.tabs) >= 1

    @pytest.mark.asyncio
    async def test_activate_toggles_surface_visibility(self, session):
        web_id = await session.create_tab("https://a.test")
        web_surface = surface_of(session.get_tab(web_id))
        assert web_surface.active

        home_id = session.tabs[0].tab_id
        await session.activate_tab(home_id)

        assert not web_surface.active
        assert session.chrome.visible_page == "home"

        await session.activate_tab(web_id)
        assert web_surface.active
        assert session.chrome.protocol == "https://"
        assert session.chrome.address_text == "a.test/"

    @pytest.mark.asyncio
    async def test_activate_unknown_tab(self, session):
        active = session.active_tab_id

        assert await session.activate_tab("tab_missing") is False
        assert session.active_tab_id == active

    @pytest.mark.asyncio
    async def test_performance_mode_allows_one_tab(self, session, event_logger):
        session.set_performance_mode(True)

        assert await session.create_tab("https://a.test") is None
        assert len(session.tabs) == 1
        warnings = [e.message for e in event_logger.events_of(EventType.SYSTEM_WARNING)]
        assert PERFORMANCE_MODE_NOTICE in warnings

    @pytest.mark.asyncio
    async def test_lookup_helpers(self, session):
        first = session.active_tab_id
        second = await session.create_tab()
        registry = session.registry

        assert len(registry) == 2
        assert registry.index_of(first) == 0
        assert registry.index_of(second) == 1
        assert registry.index_of("tab_missing") == -1
        assert registry.get_tab(None) is None
        assert registry.active_tab().tab_id == second


class TestTabRegistryStandalone:
    """Registry behaviour without a session"""

    @pytest.mark.asyncio
    async def test_create_tab_uses_navigator(self, event_logger):
        calls = []

        async def navigator(target, tab_id):
            calls.append((target, tab_id))

        registry = TabRegistry(navigator=navigator)
        tab_id = await registry.create_tab("https://a.test", "A")

        assert calls == [("https://a.test", tab_id)]
        assert registry.get_tab(tab_id).title == "A"

    @pytest.mark.asyncio
    async def test_create_tab_without_navigator_fails(self, event_logger):
        registry = TabRegistry()

        with pytest.raises(RuntimeError):
            await registry.create_tab()

    def test_tab_requires_id(self):
        with pytest.raises(ValueError):
            Tab(tab_id="", url=HOME_URL)
