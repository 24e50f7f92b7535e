"""
NavigationEngine - Runs every navigation through the shell's pipeline.

    input -> UrlResolver -> InterceptorChain
          -> internal page
           | offline cache (when offline)
           | transport preconditions -> surface dispatch
          -> history update -> chrome / log

In-surface navigations found by the SurfaceSyncPoller come back through
``reconcile_drift`` and use the same history rules.

Every await is a point where the tab may have been closed. After each one
the tab is looked up again by ID and the navigation stops quietly when it is
gone.
"""
from __future__ import annotations

from typing import Callable, List, Optional

from config import INTERNAL_FAVICON, OFFLINE_FAVICON, SURFACE_PERMISSIONS, WEB_FAVICON
from error_handling import (
    ErrorHandler,
    NavigationCancelled,
    OfflineCacheError,
    PreconditionFailed,
    ResolutionAmbiguous,
    SurfaceLoadFailed,
)
from extensions import ExtensionHooks
from middleware import InterceptorChain, NavigationContext
from navigation_result import NavigationResult, NavigationStatus
from offline_cache import ConnectivityMonitor, OfflineCache
from surface_poller import SurfaceSyncPoller
from surface_provider import SurfaceProvider
from surface_session import RenderSurfaceSession
from tab_management import NavState, Tab, TabRegistry
from transport import DirectTransport, TransportCoordinator
from url_resolver import NavigationKind, ResolvedTarget, UrlResolver, page_title_for
from utils.event_logger import get_event_logger
from visit_log import VisitLog


class NavigationEngine:
    """
    Top-level navigation orchestrator.

    Example:
        >>> engine = NavigationEngine(registry, resolver, chain, provider)
        >>> registry.navigator = engine.navigate
        >>> result = await engine.navigate("wikipedia.org")
        >>> result.display_url
        'https://wikipedia.org/'
    """

    def __init__(
        self,
        registry: TabRegistry,
        resolver: UrlResolver,
        interceptors: InterceptorChain,
        surface_provider: SurfaceProvider,
        transport: Optional[TransportCoordinator] = None,
        offline_cache: Optional[OfflineCache] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
        visit_log: Optional[VisitLog] = None,
        hooks: Optional[ExtensionHooks] = None,
        error_handler: Optional[ErrorHandler] = None,
        permissions: Optional[List[str]] = None,
        poll_interval: Callable[[], float] = lambda: 2.0,
    ):
        self.registry = registry
        self.resolver = resolver
        self.interceptors = interceptors
        self.surface_provider = surface_provider
        self.transport = transport or DirectTransport()
        self.offline_cache = offline_cache
        self.connectivity = connectivity or ConnectivityMonitor()
        self.visit_log = visit_log
        self.hooks = hooks or ExtensionHooks(interceptors)
        self.error_handler = error_handler or ErrorHandler()
        self.permissions = list(SURFACE_PERMISSIONS if permissions is None else permissions)
        self.poll_interval = poll_interval

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def navigate(
        self,
        raw_input: str,
        tab_id: Optional[str] = None,
        history: bool = True
    ) -> NavigationResult:
        """
        Navigate a tab to free-form input.

        Args:
            raw_input: URL, internal address, bare host or search text
            tab_id: Target tab (defaults to the active tab)
            history: False replays without touching the tab's history stack

        Returns:
            NavigationResult describing the outcome
        """
        tab_id = tab_id or self.registry.active_tab_id
        tab = self.registry.get_tab(tab_id)
        text = (raw_input or "").strip()
        if tab is None or not text:
            return NavigationResult(NavigationStatus.IGNORED, tab_id=tab_id, input=raw_input or "")

        previous_state = tab.nav_state
        tab.nav_state = NavState.RESOLVING
        resolved = self.resolver.resolve(text)
        if resolved.kind == NavigationKind.SEARCH_QUERY:
            # recorded only; search is the fallback classification
            self.error_handler.handle_error(
                ResolutionAmbiguous(f"Treating input as a search: {text}"), tab_id=tab_id, url=resolved.target
            )

        context = NavigationContext(
            tab_id=tab_id,
            target_url=resolved.target,
            display_url=resolved.display,
            kind=resolved.kind,
            raw_input=text,
            record_history=history,
        )
        get_event_logger().navigation_start(tab_id, resolved.target, kind=resolved.kind.value)

        context = self.interceptors.execute_before(context)
        if not context.should_continue:
            return self._cancelled(tab, context, previous_state)

        if resolved.is_internal:
            return await self._show_internal(tab, resolved, history)

        tab.nav_state = NavState.DISPATCHING

        if not self.connectivity.online and self.offline_cache is not None and self.offline_cache.enabled:
            served = await self._serve_offline(tab_id, context)
            if served is not None:
                return served

        return await self._dispatch_live(tab_id, context)

    async def go_back(self, tab_id: Optional[str] = None) -> NavigationResult:
        """Step the cursor back and replay that entry (no-op at the first entry)"""
        tab = self.registry.get_tab(tab_id or self.registry.active_tab_id)
        if tab is None:
            return NavigationResult(NavigationStatus.IGNORED, tab_id=tab_id)
        url = tab.history.back()
        if url is None:
            return NavigationResult(NavigationStatus.IGNORED, tab_id=tab.tab_id)
        self.registry.refresh_chrome(tab)
        return await self.navigate(url, tab.tab_id, history=False)

    async def go_forward(self, tab_id: Optional[str] = None) -> NavigationResult:
        """Step the cursor forward and replay that entry (no-op at the last entry)"""
        tab = self.registry.get_tab(tab_id or self.registry.active_tab_id)
        if tab is None:
            return NavigationResult(NavigationStatus.IGNORED, tab_id=tab_id)
        url = tab.history.forward()
        if url is None:
            return NavigationResult(NavigationStatus.IGNORED, tab_id=tab.tab_id)
        self.registry.refresh_chrome(tab)
        return await self.navigate(url, tab.tab_id, history=False)

    async def refresh(self, tab_id: Optional[str] = None) -> NavigationResult:
        """Replay the tab's current display URL"""
        tab = self.registry.get_tab(tab_id or self.registry.active_tab_id)
        if tab is None:
            return NavigationResult(NavigationStatus.IGNORED, tab_id=tab_id)
        return await self.navigate(tab.url, tab.tab_id, history=False)

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _cancelled(self, tab: Tab, context: NavigationContext, previous_state: NavState) -> NavigationResult:
        tab.nav_state = previous_state
        error = NavigationCancelled(
            f"Navigation to {context.target_url} blocked by extension.",
            tab_id=tab.tab_id,
            url=context.target_url,
            metadata={"cancelled_by": context.cancelled_by},
        )
        self.error_handler.handle_error(error)
        get_event_logger().navigation_cancelled(tab.tab_id, context.target_url, cancelled_by=context.cancelled_by)
        return NavigationResult(
            NavigationStatus.CANCELLED,
            tab_id=tab.tab_id,
            input=context.raw_input,
            target=context.target_url,
            error=error.message,
            metadata={"cancelled_by": context.cancelled_by},
        )

    async def _show_internal(self, tab: Tab, resolved: ResolvedTarget, history: bool) -> NavigationResult:
        tab.url = resolved.target
        tab.title = page_title_for(resolved.target)
        tab.favicon = INTERNAL_FAVICON
        tab.offline = False
        if history:
            tab.history.push(resolved.target)
        tab.nav_state = NavState.LOADED
        get_event_logger().internal_page(tab.tab_id, resolved.page)

        await self.registry.present(tab)
        if history and self.visit_log is not None:
            self.visit_log.record(tab.url, tab.title)
        return NavigationResult(
            NavigationStatus.INTERNAL,
            tab_id=tab.tab_id,
            input=resolved.raw_input,
            target=resolved.target,
            display_url=tab.url,
        )

    async def _serve_offline(self, tab_id: str, context: NavigationContext) -> Optional[NavigationResult]:
        """
        Serve the target from the offline cache.

        Returns:
            None on a cache miss, so the caller falls through to the live path
        """
        get_event_logger().system_info("Network offline, checking cache...", tab_id=tab_id)
        try:
            page = await self.offline_cache.get(context.target_url)
        except Exception as e:
            return self._failed(
                tab_id, context, OfflineCacheError(f"Offline cache lookup failed: {e}", url=context.target_url)
            )

        tab = self.registry.get_tab(tab_id)
        if tab is None:
            return self._abandoned(tab_id, context)
        if page is None:
            get_event_logger().offline_miss(tab_id, context.target_url)
            return None

        try:
            await self.session_for(tab).render_offline(page.content)
        except Exception as e:
            return self._failed(
                tab_id, context, SurfaceLoadFailed(f"Could not render offline page: {e}", url=context.target_url)
            )

        tab = self.registry.get_tab(tab_id)
        if tab is None:
            return self._abandoned(tab_id, context)

        tab.url = context.display_url
        tab.title = f"{page.title} (Offline)"
        tab.favicon = OFFLINE_FAVICON
        tab.offline = True
        if context.record_history:
            tab.history.push(context.display_url)
        tab.nav_state = NavState.OFFLINE_SERVED

        await self.registry.present(tab)
        if context.record_history and self.visit_log is not None:
            self.visit_log.record(tab.url, tab.title)
        get_event_logger().offline_served(tab_id, tab.url)
        return NavigationResult(
            NavigationStatus.OFFLINE_SERVED,
            tab_id=tab_id,
            input=context.raw_input,
            target=context.target_url,
            display_url=tab.url,
        )

    async def _dispatch_live(self, tab_id: str, context: NavigationContext) -> NavigationResult:
        try:
            await self.transport.ensure_service_registered()
            await self.transport.ensure_transport_configured()
        except PreconditionFailed as e:
            return self._failed(tab_id, context, e)
        except Exception as e:
            failure = PreconditionFailed(
                f"Transport preconditions failed: {type(e).__name__}: {e}", url=context.target_url
            )
            failure.__cause__ = e
            return self._failed(tab_id, context, failure)

        tab = self.registry.get_tab(tab_id)
        if tab is None:
            return self._abandoned(tab_id, context)

        try:
            await self.session_for(tab).dispatch(context.target_url)
        except Exception as e:
            return self._failed(
                tab_id, context, SurfaceLoadFailed(f"Dispatch failed: {e}", url=context.target_url)
            )

        tab = self.registry.get_tab(tab_id)
        if tab is None:
            return self._abandoned(tab_id, context)

        tab.url = context.display_url
        tab.title = page_title_for(context.target_url)
        tab.favicon = WEB_FAVICON
        tab.offline = False
        if context.record_history:
            tab.history.push(context.display_url)
        if tab.nav_state == NavState.DISPATCHING:
            tab.nav_state = NavState.LIVE_DISPATCHED

        await self.registry.present(tab)
        if context.record_history and self.visit_log is not None:
            self.visit_log.record(tab.url, tab.title)
        get_event_logger().navigation_committed(tab_id, tab.url, title=tab.title)
        return NavigationResult(
            NavigationStatus.COMMITTED,
            tab_id=tab_id,
            input=context.raw_input,
            target=context.target_url,
            display_url=tab.url,
        )

    def _failed(self, tab_id: str, context: NavigationContext, error: Exception) -> NavigationResult:
        tab = self.registry.get_tab(tab_id)
        if tab is not None:
            tab.nav_state = NavState.IDLE
        self.error_handler.handle_error(error, tab_id=tab_id, url=context.target_url)
        get_event_logger().navigation_failed(tab_id, context.target_url, error)
        self.interceptors.execute_on_error(context, error)
        return NavigationResult(
            NavigationStatus.FAILED,
            tab_id=tab_id,
            input=context.raw_input,
            target=context.target_url,
            error=str(error),
        )

    def _abandoned(self, tab_id: str, context: NavigationContext) -> NavigationResult:
        get_event_logger().system_debug(f"Tab {tab_id} closed during navigation", url=context.target_url)
        return NavigationResult(
            NavigationStatus.ABANDONED,
            tab_id=tab_id,
            input=context.raw_input,
            target=context.target_url,
        )

    # ------------------------------------------------------------------
    # Surface plumbing
    # ------------------------------------------------------------------

    def session_for(self, tab: Tab) -> RenderSurfaceSession:
        """The tab's surface session, created together with its poller on first use"""
        if tab.surface_session is None:
            tab.surface_session = RenderSurfaceSession(
                tab.tab_id,
                self.surface_provider,
                permissions=self.permissions,
                on_load=self.handle_load,
                on_error=self.handle_surface_error,
            )
            tab.poller = SurfaceSyncPoller(
                tab.tab_id,
                lookup=self.registry.get_tab,
                reconcile=self.reconcile_drift,
                interval=self.poll_interval(),
            )
            tab.poller.start()
        return tab.surface_session

    async def reconcile_drift(self, tab: Tab, url: str) -> bool:
        """
        Record an in-surface navigation to ``url``.

        Returns:
            True when the tab was updated
        """
        tab_id = tab.tab_id
        title = await tab.surface_session.read_title() if tab.surface_session else None

        tab = self.registry.get_tab(tab_id)
        if tab is None or tab.is_internal or tab.nav_state.in_flight or url == tab.url:
            return False

        before = tab.url
        if title:
            tab.title = title
        if tab.history.push(url) and self.visit_log is not None:
            self.visit_log.record(url, tab.title)
        tab.url = url
        tab.offline = False
        tab.nav_state = NavState.LOADED

        self.registry.refresh_chrome(tab)
        get_event_logger().surface_drift(tab_id, before, url)
        return True

    async def handle_load(self, tab_id: str) -> None:
        """Surface finished loading: pick up metadata, notify listeners, sync the URL"""
        tab = self.registry.get_tab(tab_id)
        if tab is None:
            return
        if not tab.nav_state.in_flight:
            tab.nav_state = NavState.LOADED

        if not self.registry.shows_internal_page(tab) and tab.surface_session is not None:
            metadata = await tab.surface_session.extract_metadata()
            tab = self.registry.get_tab(tab_id)
            if tab is None:
                return
            if not tab.offline and not self.registry.shows_internal_page(tab):
                if metadata.title:
                    tab.title = metadata.title
                if metadata.favicon:
                    tab.favicon = metadata.favicon
                self.registry.refresh_chrome(tab)

        await self.hooks.notify_tab_loaded(tab_id)
        self.interceptors.execute_after_load(tab_id, tab.url)

        tab = self.registry.get_tab(tab_id)
        if tab is None:
            return
        if tab.poller is not None:
            await tab.poller.tick()

        tab = self.registry.get_tab(tab_id)
        if tab is not None:
            get_event_logger().page_loaded(tab_id, tab.url)

    async def handle_surface_error(self, tab_id: str, error: Exception) -> None:
        """Surface reported a load failure; the tab keeps its committed state"""
        tab = self.registry.get_tab(tab_id)
        url = tab.url if tab is not None else None
        failure = SurfaceLoadFailed(f"Failed to load: {url}: {error}", tab_id=tab_id, url=url)
        self.error_handler.handle_error(failure)
        get_event_logger().page_load_failed(tab_id, url, error)
        if tab is None:
            return
        if not tab.nav_state.in_flight:
            tab.nav_state = NavState.IDLE
        context = NavigationContext(
            tab_id=tab_id,
            target_url=url,
            display_url=url,
            kind=NavigationKind.LITERAL_URL,
            record_history=False,
        )
        self.interceptors.execute_on_error(context, failure)

    def set_poll_interval(self, interval: float) -> None:
        for tab in self.registry.list_tabs():
            if tab.poller is not None:
                tab.poller.set_interval(interval)
