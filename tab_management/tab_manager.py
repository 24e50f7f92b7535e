"""
TabRegistry - Owns the session's tabs and their lifecycle.
"""
from __future__ import annotations

import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config import DEFAULT_TAB_TITLE, HOME_URL, INTERNAL_PAGE_MAPPINGS
from url_resolver import is_internal_url, is_mapped_external
from utils.event_logger import get_event_logger

from .tab_info import ChromeState, Tab


Navigator = Callable[[str, str], Awaitable[Any]]

PERFORMANCE_MODE_NOTICE = "Performance mode is active. Only one tab is allowed."


class TabRegistry:
    """
    Manages all browser tabs and their lifecycle.

    Responsibilities:
    - Create, close and activate tabs
    - Keep at least one tab open once initialized
    - Release a tab's surface and poller when it closes
    - Keep the chrome (address bar, back/forward buttons) in sync with the active tab

    Creating a tab navigates it straight away, so the registry needs a
    navigator; the session wires its navigation engine in before first use.
    """

    def __init__(
        self,
        navigator: Optional[Navigator] = None,
        performance_mode: Callable[[], bool] = lambda: False,
        mappings: Optional[Dict[str, str]] = None
    ):
        """
        Initialize TabRegistry.

        Args:
            navigator: ``async (input, tab_id)`` used to load a new tab's first page
            performance_mode: Returns True while the single-tab mode is on
            mappings: Internal page mapping table
        """
        self.navigator = navigator
        self.performance_mode = performance_mode
        self.mappings = dict(INTERNAL_PAGE_MAPPINGS if mappings is None else mappings)
        self.tabs: Dict[str, Tab] = {}  # tab_id -> Tab, in tab-strip order
        self.active_tab_id: Optional[str] = None
        self.chrome = ChromeState()

    def __len__(self) -> int:
        return len(self.tabs)

    def __contains__(self, tab_id: str) -> bool:
        return tab_id in self.tabs

    def get_tab(self, tab_id: Optional[str]) -> Optional[Tab]:
        """
        Get a tab by ID.

        Returns:
            Tab if found, None otherwise
        """
        if tab_id is None:
            return None
        return self.tabs.get(tab_id)

    def list_tabs(self) -> List[Tab]:
        """All tabs in tab-strip order"""
        return list(self.tabs.values())

    def active_tab(self) -> Optional[Tab]:
        """Get the currently active tab"""
        return self.get_tab(self.active_tab_id)

    def index_of(self, tab_id: str) -> int:
        """Position of ``tab_id`` in the tab strip, or -1"""
        for index, existing in enumerate(self.tabs):
            if existing == tab_id:
                return index
        return -1

    def _new_tab(self, target: str, title: str) -> Tab:
        tab = Tab(tab_id=f"tab_{uuid.uuid4().hex[:12]}", url=target, title=title)
        self.tabs[tab.tab_id] = tab
        self.active_tab_id = tab.tab_id
        get_event_logger().tab_created(tab_id=tab.tab_id, url=target)
        return tab

    async def create_tab(self, target: str = HOME_URL, title: str = DEFAULT_TAB_TITLE) -> Optional[str]:
        """
        Open a tab, make it active and navigate it to ``target``.

        Args:
            target: Input the new tab navigates to
            title: Title shown until the first navigation sets one

        Returns:
            New tab ID, or None when performance mode refuses a second tab
        """
        if self.performance_mode() and len(self.tabs) >= 1:
            get_event_logger().system_warning(PERFORMANCE_MODE_NOTICE)
            return None

        tab = self._new_tab(target, title)
        await self.activate_tab(tab.tab_id)
        await self._navigate(target, tab.tab_id)
        return tab.tab_id

    async def _navigate(self, target: str, tab_id: str) -> None:
        if self.navigator is None:
            raise RuntimeError("TabRegistry has no navigator; wire one in before creating tabs")
        await self.navigator(target, tab_id)

    async def close_tab(self, tab_id: str) -> bool:
        """
        Close a tab and release its surface and poller.

        When the active tab closes, the tab now at its position (or the new
        last tab) becomes active. Closing the last tab opens a fresh home tab
        before anything else can observe an empty registry.

        Returns:
            True if a tab was closed, False for unknown IDs
        """
        if tab_id not in self.tabs:
            return False

        index = self.index_of(tab_id)
        tab = self.tabs.pop(tab_id)

        replacement: Optional[Tab] = None
        next_active: Optional[str] = None
        if not self.tabs:
            replacement = self._new_tab(HOME_URL, DEFAULT_TAB_TITLE)
        elif self.active_tab_id == tab_id:
            remaining = list(self.tabs)
            next_active = remaining[min(index, len(remaining) - 1)]
            self.active_tab_id = next_active

        if tab.poller is not None:
            await tab.poller.stop()
            tab.poller = None
        if tab.surface_session is not None:
            await tab.surface_session.close()
            tab.surface_session = None

        get_event_logger().tab_closed(tab_id=tab_id)

        if replacement is not None:
            await self.activate_tab(replacement.tab_id)
            await self._navigate(HOME_URL, replacement.tab_id)
        elif next_active is not None:
            await self.activate_tab(next_active)

        return True

    def shows_internal_page(self, tab: Tab) -> bool:
        """Internal tabs render a built-in view instead of their surface"""
        return is_internal_url(tab.url) and not is_mapped_external(tab.url, self.mappings)

    async def activate_tab(self, tab_id: str) -> bool:
        """
        Make ``tab_id`` the active tab.

        Hides every other tab's surface, shows this tab's surface (or its
        internal page) and re-syncs the chrome from its history.

        Returns:
            True if the tab exists
        """
        tab = self.tabs.get(tab_id)
        if tab is None:
            get_event_logger().system_warning(f"Tab not found: {tab_id}")
            return False

        old_active = self.active_tab_id
        self.active_tab_id = tab_id
        tab.update_access()

        for other in self.list_tabs():
            if other.tab_id != tab_id and other.surface_session is not None:
                await other.surface_session.set_active(False)
        if tab.surface_session is not None:
            await tab.surface_session.set_active(not self.shows_internal_page(tab))

        self.refresh_chrome(tab)

        if old_active != tab_id:
            get_event_logger().tab_switch(tab_id=tab_id, url=tab.url)
        return True

    async def present(self, tab: Tab) -> None:
        """Show what ``tab`` now holds, if it is the active tab"""
        if tab.tab_id != self.active_tab_id:
            return
        if tab.surface_session is not None:
            await tab.surface_session.set_active(not self.shows_internal_page(tab))
        self.refresh_chrome(tab)

    def refresh_chrome(self, tab: Tab) -> None:
        """Re-sync the chrome when ``tab`` is the active tab"""
        if tab.tab_id != self.active_tab_id:
            return
        self.chrome = ChromeState.for_tab(tab, self.mappings)

    async def close_all(self) -> None:
        """Release every tab's resources without opening a replacement (teardown)"""
        for tab in list(self.tabs.values()):
            if tab.poller is not None:
                await tab.poller.stop()
                tab.poller = None
            if tab.surface_session is not None:
                await tab.surface_session.close()
                tab.surface_session = None
        self.tabs.clear()
        self.active_tab_id = None
        self.chrome = ChromeState()
