"""
Extension hooks and the API object handed to extension code.

Extensions can veto navigations (``on_before_navigate``) and react to finished
page loads (``on_tab_loaded``). Every callback runs behind the same
catch-log-continue wrapper, so a broken extension cannot break navigation.
"""
from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from middleware import InterceptorCallback, InterceptorChain, Middleware
from utils.event_logger import get_event_logger

if TYPE_CHECKING:
    from navigation_result import NavigationResult
    from offline_cache import OfflineCache
    from session import BrowserSession
    from shell_config import ShellSettings
    from tab_management import Tab


TabLoadedListener = Callable[[str], Any]


class ExtensionHooks:
    """Registration point for extension callbacks"""

    def __init__(self, interceptors: InterceptorChain):
        self.interceptors = interceptors
        self.tab_loaded_listeners: List[TabLoadedListener] = []

    def on_before_navigate(self, callback: InterceptorCallback) -> Middleware:
        """
        Register ``callback(target_url)``; returning ``{"cancel": True}`` vetoes the navigation.

        Returns:
            The chain entry, usable with ``InterceptorChain.remove``
        """
        return self.interceptors.add_interceptor(callback)

    def on_tab_loaded(self, callback: TabLoadedListener) -> None:
        """Register ``callback(tab_id)``, called once per completed load (may be async)"""
        self.tab_loaded_listeners.append(callback)

    async def notify_tab_loaded(self, tab_id: str) -> None:
        for listener in list(self.tab_loaded_listeners):
            try:
                result = listener(tab_id)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                get_event_logger().listener_error(tab_id, e)


class ExtensionAPI:
    """
    Narrow view of a BrowserSession for third-party extension code.

    Example:
        >>> api = session.extension_api()
        >>> api.on_before_navigate(lambda url: {"cancel": "doubleclick" in url})
        >>> api.on_tab_loaded(lambda tab_id: print("loaded", tab_id))
        >>> await api.navigate("news.ycombinator.com")
    """

    def __init__(self, session: BrowserSession):
        self._session = session

    @property
    def tabs(self) -> List[Tab]:
        return self._session.registry.list_tabs()

    @property
    def active_tab_id(self) -> Optional[str]:
        return self._session.registry.active_tab_id

    @property
    def settings(self) -> ShellSettings:
        return self._session.settings

    @property
    def is_incognito(self) -> bool:
        return self._session.incognito

    @property
    def offline_cache(self) -> Optional[OfflineCache]:
        return self._session.offline_cache

    async def navigate(self, raw_input: str, tab_id: Optional[str] = None, history: bool = True) -> NavigationResult:
        return await self._session.navigate(raw_input, tab_id=tab_id, history=history)

    async def create_tab(self, target: Optional[str] = None, title: Optional[str] = None) -> Optional[str]:
        kwargs: Dict[str, str] = {}
        if target is not None:
            kwargs["target"] = target
        if title is not None:
            kwargs["title"] = title
        return await self._session.create_tab(**kwargs)

    async def close_tab(self, tab_id: str) -> bool:
        return await self._session.close_tab(tab_id)

    async def go_back(self) -> NavigationResult:
        return await self._session.go_back()

    async def go_forward(self) -> NavigationResult:
        return await self._session.go_forward()

    async def refresh(self) -> NavigationResult:
        return await self._session.refresh()

    def on_before_navigate(self, callback: InterceptorCallback) -> Middleware:
        return self._session.on_before_navigate(callback)

    def on_tab_loaded(self, callback: TabLoadedListener) -> None:
        self._session.on_tab_loaded(callback)
