"""
Render surface provider pattern for the Aurora browser shell.

This module provides an abstraction layer between the navigation engine and the
sandboxed content host each tab renders into, enabling dependency injection,
easier testing, and support for a remote rewriting proxy.

Example:
    >>> from surface_provider import PlaywrightSurfaceProvider, SurfaceConfig
    >>> provider = PlaywrightSurfaceProvider(SurfaceConfig(headless=True))
    >>> surface = await provider.create_surface("tab_1234")
    >>> await surface.go("https://example.com/")
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, Set

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)
from playwright_stealth import Stealth
from pydantic import BaseModel, Field

from config import SURFACE_PERMISSIONS
from error_handling import CrossOriginBlocked
from url_resolver import encode_proxy_url


LoadHandler = Callable[[], Awaitable[None]]
SurfaceErrorHandler = Callable[[Exception], Awaitable[None]]

# Capability names Playwright can grant on a browser context
PLAYWRIGHT_PERMISSIONS = {
    "accelerometer",
    "ambient-light-sensor",
    "camera",
    "clipboard-read",
    "clipboard-write",
    "geolocation",
    "gyroscope",
    "magnetometer",
    "microphone",
    "midi",
    "midi-sysex",
    "notifications",
    "payment-handler",
    "storage-access",
}

_WRAPPED_LOCATION_JS = (
    "() => (window.__scramjet$location && window.__scramjet$location.href) || null"
)
_ICON_LINKS_JS = (
    "() => Array.from(document.querySelectorAll(\"link[rel*='icon']\"))"
    ".map(link => link.href).filter(Boolean)"
)


class SurfaceConfig(BaseModel):
    """Configuration for render surface providers."""

    provider_type: str = Field(
        default="playwright",
        description="Surface provider type: 'playwright' or 'mock'"
    )

    # Local browser settings
    headless: bool = Field(
        default=False,
        description="Run the hosting browser in headless mode"
    )
    viewport_width: int = Field(
        default=1280,
        ge=100,
        description="Surface viewport width"
    )
    viewport_height: int = Field(
        default=800,
        ge=100,
        description="Surface viewport height"
    )
    user_data_dir: Optional[str] = Field(
        default=None,
        description="User data directory for a persistent browsing profile"
    )
    channel: Optional[str] = Field(
        default=None,
        description="Browser channel: 'chrome', 'chromium', 'msedge', etc."
    )

    # Proxy settings
    proxy_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the rewriting proxy; surfaces load <base>/scramjet/<quoted url> when set"
    )

    # Stealth settings
    apply_stealth: bool = Field(
        default=True,
        description="Apply stealth patches so proxied pages do not flag the surface as automated"
    )

    permissions: List[str] = Field(
        default_factory=lambda: list(SURFACE_PERMISSIONS),
        description="Capability permissions granted to every surface at creation time"
    )

    extra_args: List[str] = Field(
        default_factory=lambda: [
            "--disable-dev-shm-usage",
            "--disable-blink-features=AutomationControlled",
            "--disable-infobars",
        ],
        description="Additional browser launch arguments"
    )

    class Config:
        arbitrary_types_allowed = True


class RenderSurface(ABC):
    """
    Abstract base class for one tab's sandboxed content host.

    Implementations provide dispatch and introspection; event plumbing for
    load and error notifications lives here. Introspection methods may raise
    CrossOriginBlocked (or anything else); callers treat every failure as
    "nothing known".
    """

    def __init__(self):
        self._load_handlers: List[LoadHandler] = []
        self._error_handlers: List[SurfaceErrorHandler] = []
        self._pending: Set[asyncio.Future] = set()
        self.active = False

    def on_load(self, handler: LoadHandler) -> None:
        self._load_handlers.append(handler)

    def on_error(self, handler: SurfaceErrorHandler) -> None:
        self._error_handlers.append(handler)

    async def emit_load(self) -> None:
        for handler in list(self._load_handlers):
            await handler()

    async def emit_error(self, error: Exception) -> None:
        for handler in list(self._error_handlers):
            await handler(error)

    def _schedule(self, coroutine: Awaitable[Any]) -> None:
        """Run an event delivery on the loop without blocking the caller"""
        future = asyncio.ensure_future(coroutine)
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    @abstractmethod
    async def go(self, url: str) -> None:
        """Hand ``url`` to the surface's navigation primitive."""

    @abstractmethod
    async def render_content(self, html: str) -> None:
        """Replace the surface document with ``html`` without a network load."""

    @abstractmethod
    async def current_location(self) -> Optional[str]:
        """The surface's standard location."""

    async def wrapped_location(self) -> Optional[str]:
        """The proxy's instrumented location, when the surface exposes one."""
        return None

    @abstractmethod
    async def document_title(self) -> Optional[str]:
        pass

    @abstractmethod
    async def icon_links(self) -> List[str]:
        """``href`` of every ``link[rel*=icon]`` in the document, in order."""

    @abstractmethod
    async def grant_permissions(self, permissions: List[str]) -> None:
        pass

    async def set_active(self, active: bool) -> None:
        self.active = active

    @abstractmethod
    async def close(self) -> None:
        pass


class SurfaceProvider(ABC):
    """
    Abstract base class for surface providers.

    Implementations must create one RenderSurface per call and handle cleanup.
    """

    def __init__(self, config: SurfaceConfig):
        self.config = config

    @abstractmethod
    async def create_surface(self, tab_id: str) -> RenderSurface:
        """
        Create a fresh render surface for a tab.

        Returns:
            RenderSurface: surface ready for dispatch
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Cleanup resources (close browser, stop playwright, etc.)
        """
        pass


class PlaywrightSurface(RenderSurface):
    """A render surface backed by one Playwright page."""

    def __init__(self, page: Page, proxy_base_url: Optional[str] = None):
        super().__init__()
        self.page = page
        self.proxy_base_url = proxy_base_url
        page.on("load", self._handle_load)

    def _handle_load(self, _page: Page) -> None:
        self._schedule(self.emit_load())

    async def go(self, url: str) -> None:
        address = encode_proxy_url(self.proxy_base_url, url) if self.proxy_base_url else url
        try:
            await self.page.goto(address, wait_until="commit")
        except PlaywrightError as e:
            self._schedule(self.emit_error(e))

    async def render_content(self, html: str) -> None:
        await self.page.set_content(html)

    async def current_location(self) -> Optional[str]:
        return self.page.url

    async def wrapped_location(self) -> Optional[str]:
        try:
            return await self.page.evaluate(_WRAPPED_LOCATION_JS)
        except PlaywrightError as e:
            raise CrossOriginBlocked(f"Location unavailable: {e}") from e

    async def document_title(self) -> Optional[str]:
        try:
            return await self.page.title()
        except PlaywrightError as e:
            raise CrossOriginBlocked(f"Title unavailable: {e}") from e

    async def icon_links(self) -> List[str]:
        try:
            return await self.page.evaluate(_ICON_LINKS_JS)
        except PlaywrightError as e:
            raise CrossOriginBlocked(f"Document unavailable: {e}") from e

    async def grant_permissions(self, permissions: List[str]) -> None:
        supported = [name for name in permissions if name in PLAYWRIGHT_PERMISSIONS]
        if supported:
            await self.page.context.grant_permissions(supported)

    async def set_active(self, active: bool) -> None:
        await super().set_active(active)
        if active:
            await self.page.bring_to_front()

    async def close(self) -> None:
        if not self.page.is_closed():
            await self.page.close()


class PlaywrightSurfaceProvider(SurfaceProvider):
    """
    Default surface provider: one local Chromium, one page per tab.

    Autoplay and fullscreen have no Playwright permission, so they are enabled
    through launch flags; the rest of the configured permissions are granted
    per surface on the shared context.

    Example:
        >>> config = SurfaceConfig(headless=True, proxy_base_url="http://localhost:8080")
        >>> provider = PlaywrightSurfaceProvider(config)
        >>> surface = await provider.create_surface("tab_1234")
    """

    def __init__(self, config: SurfaceConfig):
        super().__init__(config)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._stealth = Stealth()

    def _launch_args(self) -> List[str]:
        args = self.config.extra_args.copy()
        args.append(f"--window-size={self.config.viewport_width},{self.config.viewport_height}")
        if "autoplay" in self.config.permissions:
            args.append("--autoplay-policy=no-user-gesture-required")
        return args

    async def start(self) -> BrowserContext:
        """Launch the hosting browser once and return its context."""
        if self._context is not None:
            return self._context

        self._playwright = await async_playwright().start()
        viewport = {
            "width": self.config.viewport_width,
            "height": self.config.viewport_height
        }
        launch_kwargs = {
            "headless": self.config.headless,
            "args": self._launch_args(),
        }
        if self.config.channel:
            launch_kwargs["channel"] = self.config.channel

        if self.config.user_data_dir:
            self._context = await self._playwright.chromium.launch_persistent_context(
                self.config.user_data_dir,
                viewport=viewport,
                **launch_kwargs
            )
        else:
            self._browser = await self._playwright.chromium.launch(**launch_kwargs)
            self._context = await self._browser.new_context(viewport=viewport)
        return self._context

    async def create_surface(self, tab_id: str) -> RenderSurface:
        context = await self.start()
        page = await context.new_page()
        if self.config.apply_stealth:
            await self._stealth.apply_stealth_async(page)
        return PlaywrightSurface(page, proxy_base_url=self.config.proxy_base_url)

    async def close(self) -> None:
        """Close browser and cleanup."""
        if self._context is not None:
            try:
                await self._context.close()
            except PlaywrightError:
                pass
            self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError:
                pass
            self._browser = None

        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None


class MockSurfaceProvider(SurfaceProvider):
    """
    Mock surface provider for testing.

    Builds surfaces through a caller-supplied factory instead of a browser.

    Example:
        >>> provider = MockSurfaceProvider(SurfaceConfig(provider_type="mock"), surface_factory=FakeSurface)
        >>> surface = await provider.create_surface("tab_1234")
    """

    def __init__(
        self,
        config: SurfaceConfig,
        surface_factory: Optional[Callable[[], RenderSurface]] = None
    ):
        super().__init__(config)
        self._surface_factory = surface_factory
        self.created: List[RenderSurface] = []

    async def create_surface(self, tab_id: str) -> RenderSurface:
        if self._surface_factory is None:
            raise NotImplementedError(
                "MockSurfaceProvider requires a surface_factory to be provided. "
                "Use: MockSurfaceProvider(config, surface_factory=YourFakeSurface)"
            )
        surface = self._surface_factory()
        self.created.append(surface)
        return surface

    async def close(self) -> None:
        """No-op for mock provider."""
        pass


def create_surface_provider(config: SurfaceConfig) -> SurfaceProvider:
    """
    Factory function to create the appropriate surface provider from config.

    Args:
        config: Surface configuration

    Returns:
        SurfaceProvider: Appropriate provider implementation
    """
    if config.provider_type == "playwright":
        return PlaywrightSurfaceProvider(config)
    elif config.provider_type == "mock":
        return MockSurfaceProvider(config)
    else:
        raise ValueError(
            f"Unknown provider_type: {config.provider_type}. "
            f"Must be one of: playwright, mock"
        )
