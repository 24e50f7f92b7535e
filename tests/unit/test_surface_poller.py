"""
Unit tests for SurfaceSyncPoller and drift reconciliation.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from config import HOME_URL
from surface_poller import SurfaceSyncPoller
from tab_management import NavState, Tab
from utils.event_logger import EventType

from conftest import surface_of


class TestDriftReconciliation:
    """Test suite for polling against a live session"""

    @pytest.mark.asyncio
    async def test_in_surface_navigation_is_recorded(self, session, event_logger):
        await session.navigate("https://a.test/")
        tab = session.active_tab()
        surface = surface_of(tab)
        surface.location = "https://a.test/sub"
        surface.title = "Sub page"

        changed = await tab.poller.tick()

        assert changed
        assert tab.url == "https://a.test/sub"
        assert tab.title == "Sub page"
        assert tab.history.entries == [HOME_URL, "https://a.test/", "https://a.test/sub"]
        assert tab.history_index == 2
        assert tab.nav_state == NavState.LOADED
        assert session.chrome.address_text == "a.test/sub"
        drift = event_logger.events_of(EventType.SURFACE_DRIFT)[-1]
        assert drift.details["url_after"] == "https://a.test/sub"

    @pytest.mark.asyncio
    async def test_drift_is_added_to_visit_log(self, session):
        await session.navigate("https://a.test/")
        tab = session.active_tab()
        surface_of(tab).location = "https://a.test/sub"

        await tab.poller.tick()

        assert session.visit_log.entries()[0].url == "https://a.test/sub"

    @pytest.mark.asyncio
    async def test_proxy_location_is_decoded(self, session):
        await session.navigate("https://a.test/")
        tab = session.active_tab()
        surface_of(tab).location = "http://localhost:8080/scramjet/https%3A%2F%2Fb.test%2Fpage%3Fq%3D1"

        await tab.poller.tick()

        assert tab.url == "https://b.test/page?q=1"

    @pytest.mark.asyncio
    async def test_wrapped_location_preferred(self, session):
        await session.navigate("https://a.test/")
        tab = session.active_tab()
        surface = surface_of(tab)
        surface.location = "http://localhost:8080/scramjet/https%3A%2F%2Fa.test%2F"
        surface.wrapped = "https://a.test/wrapped"

        await tab.poller.tick()

        assert tab.url == "https://a.test/wrapped"

    @pytest.mark.asyncio
    async def test_unchanged_location_is_noop(self, session, event_logger):
        await session.navigate("https://a.test/")
        tab = session.active_tab()

        changed = await tab.poller.tick()

        assert not changed
        assert len(tab.history) == 2
        assert event_logger.events_of(EventType.SURFACE_DRIFT) == []

    @pytest.mark.asyncio
    async def test_blank_location_is_ignored(self, session):
        await session.navigate("https://a.test/")
        tab = session.active_tab()
        surface_of(tab).location = "about:blank"

        assert not await tab.poller.tick()
        assert tab.url == "https://a.test/"

    @pytest.mark.asyncio
    async def test_cross_origin_read_is_ignored(self, session):
        await session.navigate("https://a.test/")
        tab = session.active_tab()
        surface = surface_of(tab)
        surface.location = "https://elsewhere.test/"
        surface.cross_origin = True

        assert not await tab.poller.tick()
        assert tab.url == "https://a.test/"

    @pytest.mark.asyncio
    async def test_mapped_alias_is_never_overwritten(self, session):
        await session.navigate("aurora://chat")
        tab = session.active_tab()
        surface_of(tab).location = "https://talkly-vcjh.onrender.com/rooms/1"

        assert not await tab.poller.tick()
        assert tab.url == "aurora://chat"
        assert tab.history.entries == [HOME_URL, "aurora://chat"]

    @pytest.mark.asyncio
    async def test_internal_page_over_live_surface_is_immune(self, session):
        await session.navigate("https://a.test/")
        await session.navigate("aurora://settings")
        tab = session.active_tab()
        surface_of(tab).location = "https://a.test/moved"

        assert not await tab.poller.tick()
        assert tab.url == "aurora://settings"

    @pytest.mark.asyncio
    async def test_skipped_while_navigation_in_flight(self, session):
        await session.navigate("https://a.test/")
        tab = session.active_tab()
        surface_of(tab).location = "https://a.test/next"

        tab.nav_state = NavState.DISPATCHING
        assert not await tab.poller.tick()
        assert tab.url == "https://a.test/"

        tab.nav_state = NavState.LIVE_DISPATCHED
        assert await tab.poller.tick()
        assert tab.url == "https://a.test/next"

    @pytest.mark.asyncio
    async def test_closed_tab_stops_polling(self, session):
        tab_id = await session.create_tab("https://a.test/")
        poller = session.get_tab(tab_id).poller

        await session.close_tab(tab_id)

        assert not poller.running
        assert not await poller.tick()


class TestSurfaceSyncPoller:
    """Test suite for the polling task itself"""

    def make_tab(self, location):
        tab = Tab(tab_id="tab_test", url="https://a.test/")
        tab.surface_session = Mock()
        tab.surface_session.read_location = AsyncMock(return_value=location)
        return tab

    @pytest.mark.asyncio
    async def test_runs_on_interval(self):
        tab = self.make_tab("https://a.test/next")
        reconcile = AsyncMock(return_value=True)
        poller = SurfaceSyncPoller(tab.tab_id, lookup={tab.tab_id: tab}.get, reconcile=reconcile, interval=0.01)

        poller.start()
        await asyncio.sleep(0.05)
        await poller.stop()

        assert poller.ticks >= 1
        reconcile.assert_awaited_with(tab, "https://a.test/next")
        assert not poller.running

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        tab = self.make_tab(None)
        poller = SurfaceSyncPoller(tab.tab_id, lookup={tab.tab_id: tab}.get, reconcile=AsyncMock(), interval=10)

        poller.start()
        task = poller._task
        poller.start()

        assert poller._task is task
        await poller.stop()
        await poller.stop()

    @pytest.mark.asyncio
    async def test_tick_errors_do_not_stop_polling(self, event_logger):
        tab = self.make_tab("https://a.test/next")
        reconcile = AsyncMock(side_effect=RuntimeError("boom"))
        poller = SurfaceSyncPoller(tab.tab_id, lookup={tab.tab_id: tab}.get, reconcile=reconcile, interval=0.01)

        poller.start()
        await asyncio.sleep(0.05)
        assert poller.running
        await poller.stop()

        assert reconcile.await_count >= 2
        assert event_logger.events_of(EventType.SYSTEM_ERROR)

    @pytest.mark.asyncio
    async def test_missing_tab_skips_read(self):
        poller = SurfaceSyncPoller("tab_gone", lookup=lambda tab_id: None, reconcile=AsyncMock())

        assert not await poller.tick()
        assert poller.ticks == 1

    def test_set_interval(self):
        poller = SurfaceSyncPoller("tab_test", lookup=lambda tab_id: None, reconcile=AsyncMock())

        poller.set_interval(5.0)

        assert poller.interval == 5.0

    @pytest.mark.asyncio
    async def test_concurrent_ticks_run_one_at_a_time(self):
        tab = self.make_tab("https://a.test/next")
        release = asyncio.Event()
        active = []
        overlap = []

        async def slow_reconcile(tab, url):
            active.append(url)
            overlap.append(len(active))
            await release.wait()
            active.pop()
            return True

        poller = SurfaceSyncPoller(tab.tab_id, lookup={tab.tab_id: tab}.get, reconcile=slow_reconcile)

        first = asyncio.ensure_future(poller.tick())
        second = asyncio.ensure_future(poller.tick())
        await asyncio.sleep(0.01)
        assert poller.ticks == 1

        release.set()
        assert await asyncio.gather(first, second) == [True, True]
        assert poller.ticks == 2
        assert overlap == [1, 1]
