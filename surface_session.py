"""
RenderSurfaceSession - Owns the single render surface of one tab.

The surface is created lazily, on the first navigation that needs one, and
reused for every later dispatch. Load and error events from the surface are
forwarded to the callbacks the navigation engine registers.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urljoin

from config import BLANK_LOCATIONS, SURFACE_PERMISSIONS
from error_handling import CrossOriginBlocked
from surface_provider import RenderSurface, SurfaceProvider
from utils.event_logger import get_event_logger


TabLoadCallback = Callable[[str], Awaitable[None]]
TabErrorCallback = Callable[[str, Exception], Awaitable[None]]


@dataclass
class PageMetadata:
    """Best-effort title and icon read from a loaded document"""
    title: Optional[str] = None
    favicon: Optional[str] = None
    location: Optional[str] = None


class RenderSurfaceSession:
    """
    Surface lifecycle for one tab.

    Example:
        >>> session = RenderSurfaceSession("tab_1234", provider, on_load=engine.handle_load)
        >>> await session.dispatch("https://wikipedia.org/")
        >>> session.dispatch_count
        1
    """

    def __init__(
        self,
        tab_id: str,
        provider: SurfaceProvider,
        permissions: Optional[List[str]] = None,
        on_load: Optional[TabLoadCallback] = None,
        on_error: Optional[TabErrorCallback] = None,
    ):
        self.tab_id = tab_id
        self.provider = provider
        self.permissions = list(SURFACE_PERMISSIONS if permissions is None else permissions)
        self.on_load = on_load
        self.on_error = on_error
        self.surface: Optional[RenderSurface] = None
        self.last_dispatched: Optional[str] = None
        self.offline_baseline: Optional[str] = None  # location left behind by the last offline render
        self.dispatch_count = 0
        self.closed = False
        self._create_lock = asyncio.Lock()

    async def ensure_surface(self) -> RenderSurface:
        """
        Return the tab's surface, creating it on first use.

        Concurrent first navigations share one creation.
        """
        if self.surface is not None:
            return self.surface
        async with self._create_lock:
            if self.surface is not None:
                return self.surface
            surface = await self.provider.create_surface(self.tab_id)
            try:
                await surface.grant_permissions(self.permissions)
            except Exception as e:
                get_event_logger().system_warning(
                    f"Could not grant surface permissions: {e}", tab_id=self.tab_id
                )
            surface.on_load(self._handle_load)
            surface.on_error(self._handle_error)
            self.surface = surface
            get_event_logger().surface_created(tab_id=self.tab_id)
            return surface

    async def dispatch(self, url: str) -> None:
        """
        Hand ``url`` to the surface's navigation primitive.

        Safe to repeat with the same URL: replays reuse the existing surface.
        """
        surface = await self.ensure_surface()
        await surface.go(url)
        self.last_dispatched = url
        self.offline_baseline = None
        self.dispatch_count += 1

    async def render_offline(self, html: str) -> None:
        """Write cached markup into the surface without a network load"""
        surface = await self.ensure_surface()
        await surface.render_content(html)
        self.last_dispatched = None
        # rendering markup does not move the surface, so its old location is not a navigation
        self.offline_baseline = None
        self.offline_baseline = await self.read_location()

    async def read_location(self) -> Optional[str]:
        """
        Current surface address, preferring the proxy's wrapped location.

        Returns None when nothing usable can be read, or when the surface
        still sits where the last offline render left it.
        """
        if self.surface is None:
            return None
        try:
            location = await self.surface.wrapped_location()
        except Exception as e:
            get_event_logger().system_debug(f"Wrapped location unreadable: {e}", tab_id=self.tab_id)
            location = None
        if not location:
            try:
                location = await self.surface.current_location()
            except Exception as e:
                get_event_logger().system_debug(f"Location unreadable: {e}", tab_id=self.tab_id)
                return None
        if location in BLANK_LOCATIONS:
            return None
        if location == self.offline_baseline:
            return None
        return location

    async def read_title(self) -> Optional[str]:
        if self.surface is None:
            return None
        try:
            title = await self.surface.document_title()
        except Exception as e:
            get_event_logger().system_debug(f"Title unreadable: {e}", tab_id=self.tab_id)
            return None
        return title or None

    async def extract_metadata(self) -> PageMetadata:
        """
        Title and favicon of the loaded document.

        The icon is the first ``link[rel*=icon]``, else ``/favicon.ico`` on the
        document's own location. Cross-origin and other read failures leave
        the corresponding field empty.
        """
        metadata = PageMetadata()
        if self.surface is None:
            return metadata

        metadata.title = await self.read_title()
        try:
            metadata.location = await self.surface.current_location()
        except Exception as e:
            get_event_logger().system_debug(f"Location unreadable: {e}", tab_id=self.tab_id)

        try:
            icons = await self.surface.icon_links()
        except CrossOriginBlocked as e:
            get_event_logger().system_debug(f"Cross-origin document, no icons: {e}", tab_id=self.tab_id)
            icons = []
        except Exception as e:
            get_event_logger().system_debug(f"Icons unreadable: {e}", tab_id=self.tab_id)
            icons = []

        if icons:
            metadata.favicon = icons[0]
        elif metadata.location and metadata.location not in BLANK_LOCATIONS:
            try:
                metadata.favicon = urljoin(metadata.location, "/favicon.ico")
            except ValueError:
                metadata.favicon = None
        return metadata

    async def _handle_load(self) -> None:
        if self.closed or self.on_load is None:
            return
        await self.on_load(self.tab_id)

    async def _handle_error(self, error: Exception) -> None:
        if self.closed or self.on_error is None:
            return
        await self.on_error(self.tab_id, error)

    async def set_active(self, active: bool) -> None:
        if self.surface is None:
            return
        try:
            await self.surface.set_active(active)
        except Exception as e:
            get_event_logger().system_warning(f"Could not change surface visibility: {e}", tab_id=self.tab_id)

    async def close(self) -> None:
        """Tear the surface down; events arriving afterwards are dropped"""
        self.closed = True
        surface, self.surface = self.surface, None
        if surface is not None:
            try:
                await surface.close()
            except Exception as e:
                get_event_logger().system_warning(f"Error closing surface: {e}", tab_id=self.tab_id)
