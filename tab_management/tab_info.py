"""
Tab - State of one browser tab.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from config import DEFAULT_TAB_TITLE, INTERNAL_FAVICON, INTERNAL_SCHEME
from history import HistoryStack
from url_resolver import is_internal_url, is_mapped_external, rendered_page

if TYPE_CHECKING:
    from surface_poller import SurfaceSyncPoller
    from surface_session import RenderSurfaceSession


class NavState(str, Enum):
    """Where a tab is in its navigation lifecycle"""
    IDLE = "idle"
    RESOLVING = "resolving"
    CANCELLED = "cancelled"
    DISPATCHING = "dispatching"
    OFFLINE_SERVED = "offline_served"
    LIVE_DISPATCHED = "live_dispatched"
    LOADED = "loaded"

    @property
    def in_flight(self) -> bool:
        return self in (NavState.RESOLVING, NavState.DISPATCHING)


@dataclass
class Tab:
    """
    State of a browser tab.

    Attributes:
        tab_id: Unique, stable identifier for this tab
        url: Display URL (the alias for mapped-external pages)
        title: Current title of the tab
        favicon: Glyph or icon URL shown next to the title
        history: Per-tab back/forward stack of display URLs
        surface_session: Render surface owner, created on first live navigation
        poller: Location poller bound to the surface
        offline: Whether the current page was served from the offline cache
        nav_state: Navigation lifecycle state
        created_at: Timestamp when tab was created
        last_accessed: Timestamp when tab was last activated
        metadata: Additional context/metadata about the tab
    """
    tab_id: str
    url: str
    title: str = DEFAULT_TAB_TITLE
    favicon: str = INTERNAL_FAVICON
    history: HistoryStack = None
    surface_session: Optional[RenderSurfaceSession] = None
    poller: Optional[SurfaceSyncPoller] = None
    offline: bool = False
    nav_state: NavState = NavState.IDLE
    created_at: float = field(default_factory=time.time)
    last_accessed: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate and initialize tab state"""
        if not self.tab_id:
            raise ValueError("tab_id is required")
        if self.history is None:
            self.history = HistoryStack(self.url)

    @property
    def history_index(self) -> int:
        return self.history.index

    @property
    def is_internal(self) -> bool:
        """True when the display URL is an ``aurora://`` address, mapped or not"""
        return is_internal_url(self.url)

    @property
    def has_surface(self) -> bool:
        return self.surface_session is not None and self.surface_session.surface is not None

    def update_access(self) -> None:
        """Update last_accessed timestamp"""
        self.last_accessed = time.time()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (excluding the surface and poller)"""
        return {
            "tab_id": self.tab_id,
            "url": self.url,
            "title": self.title,
            "favicon": self.favicon,
            "history": self.history.entries,
            "history_index": self.history.index,
            "offline": self.offline,
            "nav_state": self.nav_state.value,
            "created_at": self.created_at,
            "last_accessed": self.last_accessed,
            "metadata": self.metadata,
        }


@dataclass
class ChromeState:
    """
    What the shell chrome shows for the active tab.

    The address bar splits a web URL into a protocol pill and the rest; for
    internal pages the scheme is hidden and only the page name is shown.
    """
    tab_id: Optional[str] = None
    address_text: str = ""
    protocol: Optional[str] = None
    title: str = ""
    favicon: str = ""
    can_go_back: bool = False
    can_go_forward: bool = False
    offline: bool = False
    visible_page: Optional[str] = None
    """Internal page on screen, or None when the tab's surface is shown"""

    @classmethod
    def for_tab(cls, tab: Tab, mappings: Optional[Dict[str, str]] = None) -> ChromeState:
        url = tab.url
        visible_page = None
        if is_internal_url(url):
            address_text = url[len(INTERNAL_SCHEME):]
            protocol = None
            if not is_mapped_external(url, mappings):
                visible_page = rendered_page(url, mappings)
        elif "://" in url:
            scheme = url.split("://", 1)[0]
            protocol = scheme + "://"
            address_text = url[len(protocol):]
        else:
            protocol = None
            address_text = url

        return cls(
            tab_id=tab.tab_id,
            address_text=address_text,
            protocol=protocol,
            title=tab.title,
            favicon=tab.favicon,
            can_go_back=tab.history.can_go_back,
            can_go_forward=tab.history.can_go_forward,
            offline=tab.offline,
            visible_page=visible_page,
        )
