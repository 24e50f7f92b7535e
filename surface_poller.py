"""
SurfaceSyncPoller - Keeps a tab's display URL in step with its surface.

Pages move on their own (links, redirects, scripts), and the surface does not
report those moves. The poller reads the surface location on a fixed interval
and hands any difference to the navigation engine, which records it as an
in-surface navigation.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from tab_management.tab_info import Tab
from url_resolver import decode_proxy_location
from utils.event_logger import get_event_logger


TabLookup = Callable[[str], Optional[Tab]]
DriftReconciler = Callable[[Tab, str], Awaitable[bool]]


class SurfaceSyncPoller:
    """
    One polling task per tab with a surface.

    A tick is skipped when the tab shows an internal-scheme address (mapped
    pages included) and while a navigation on the tab is resolving or
    dispatching; the surface location is only trusted once a dispatch has
    committed. Ticks hold a per-poller lock, so a tick requested by a load
    event waits for a running one and they never overlap.
    """

    def __init__(
        self,
        tab_id: str,
        lookup: TabLookup,
        reconcile: DriftReconciler,
        interval: float = 2.0,
    ):
        self.tab_id = tab_id
        self.lookup = lookup
        self.reconcile = reconcile
        self.interval = interval
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None
        self._tick_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling on the running loop (no-op when already running)"""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def set_interval(self, interval: float) -> None:
        """Takes effect from the next sleep"""
        self.interval = interval

    def _pollable(self) -> Optional[Tab]:
        tab = self.lookup(self.tab_id)
        if tab is None or tab.is_internal or tab.nav_state.in_flight:
            return None
        if tab.surface_session is None:
            return None
        return tab

    async def tick(self) -> bool:
        """
        Compare the surface location with the tab once.

        Returns:
            True when a drift was reconciled into the tab
        """
        async with self._tick_lock:
            return await self._tick()

    async def _tick(self) -> bool:
        self.ticks += 1
        tab = self._pollable()
        if tab is None:
            return False

        location = await tab.surface_session.read_location()
        if location is None:
            return False
        url = decode_proxy_location(location)

        # the tab may have closed or started navigating during the read
        tab = self._pollable()
        if tab is None or url == tab.url:
            return False
        return await self.reconcile(tab, url)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                get_event_logger().system_error(f"Surface poll failed for {self.tab_id}", error=e)
