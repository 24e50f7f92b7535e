"""
Unit tests for the extension API and navigation results.
"""

import pytest

from navigation_result import NavigationResult, NavigationStatus


class TestExtensionAPI:
    """Test suite for ExtensionAPI"""

    @pytest.mark.asyncio
    async def test_exposes_session_state(self, session_factory):
        session = session_factory(incognito=True)
        await session.init()
        api = session.extension_api()

        assert api.is_incognito
        assert api.active_tab_id == session.active_tab_id
        assert [tab.tab_id for tab in api.tabs] == [session.active_tab_id]
        assert api.settings is session.settings
        assert api.offline_cache is session.offline_cache
        await session.teardown()

    @pytest.mark.asyncio
    async def test_tab_operations(self, session):
        api = session.extension_api()

        tab_id = await api.create_tab("https://a.test/")
        assert session.get_tab(tab_id).url == "https://a.test/"

        await api.navigate("https://b.test/")
        await api.go_back()
        assert session.get_tab(tab_id).url == "https://a.test/"

        await api.go_forward()
        result = await api.refresh()
        assert result.display_url == "https://b.test/"

        assert await api.close_tab(tab_id)
        assert len(api.tabs) == 1

    @pytest.mark.asyncio
    async def test_create_tab_defaults_to_home(self, session):
        api = session.extension_api()

        tab_id = await api.create_tab()

        assert session.get_tab(tab_id).title == "Home"

    @pytest.mark.asyncio
    async def test_hooks_register_on_session(self, session):
        api = session.extension_api()
        loaded = []

        entry = api.on_before_navigate(lambda url: {"cancel": True})
        api.on_tab_loaded(loaded.append)

        result = await api.navigate("https://a.test/")
        assert result.status == NavigationStatus.CANCELLED
        assert result.metadata["cancelled_by"] == entry.name

        session.interceptors.remove(entry)
        result = await api.navigate("https://a.test/")
        assert result.status == NavigationStatus.COMMITTED

        await session.active_tab().surface_session.surface.emit_load()
        assert loaded == [session.active_tab_id]


class TestNavigationResult:
    """Test suite for NavigationResult"""

    def test_truthiness_follows_status(self):
        assert NavigationResult(NavigationStatus.COMMITTED)
        assert NavigationResult(NavigationStatus.INTERNAL)
        assert NavigationResult(NavigationStatus.OFFLINE_SERVED)
        assert not NavigationResult(NavigationStatus.CANCELLED)
        assert not NavigationResult(NavigationStatus.IGNORED)

    def test_repr_and_dict(self):
        result = NavigationResult(NavigationStatus.FAILED, target="https://a.test/", error="down")

        assert repr(result) == "NavigationResult(❌ failed, target='https://a.test/', error='down')"
        assert result.to_dict()["status"] == "failed"
        assert result.to_dict()["success"] is False
