"""
BrowserSession - The shell's single owner of tabs, navigation and extension hooks.

Example:
    >>> async with BrowserSession(ShellConfig.default()) as session:
    ...     await session.navigate("wikipedia.org")
    ...     await session.navigate("aurora://settings")
    ...     await session.go_back()
    ...     session.active_tab().url
    'https://wikipedia.org/'
"""
from __future__ import annotations

from typing import List, Optional

from config import DEFAULT_TAB_TITLE, HOME_URL, SETTINGS_KEY
from error_handling import ErrorHandler
from extensions import ExtensionAPI, ExtensionHooks, TabLoadedListener
from middleware import InterceptorCallback, InterceptorChain, Middleware
from navigation_engine import NavigationEngine
from navigation_result import NavigationResult
from offline_cache import ConnectivityMonitor, MemoryOfflineCache, OfflineCache, StoreOfflineCache
from shell_config import ShellConfig, ShellSettings
from storage import JsonFileStore, KeyValueStore, MemoryStore
from surface_provider import SurfaceProvider, create_surface_provider
from tab_management import ChromeState, Tab, TabRegistry
from transport import TransportCoordinator, create_transport
from url_resolver import UrlResolver
from utils.event_logger import EventLogger, get_event_logger, set_event_logger
from visit_log import VisitLog


class BrowserSession:
    """
    Multi-tab browsing session.

    Collaborators default from the configuration; tests and embedders pass
    their own surface provider, transport, offline cache and store.

    Example:
        >>> session = BrowserSession(
        ...     config=ShellConfig.default().with_proxy("http://localhost:8080"),
        ...     store=JsonFileStore("aurora.json"),
        ... )
        >>> await session.init()
        >>> await session.create_tab("news.ycombinator.com")
        >>> await session.teardown()
    """

    def __init__(
        self,
        config: Optional[ShellConfig] = None,
        surface_provider: Optional[SurfaceProvider] = None,
        transport: Optional[TransportCoordinator] = None,
        offline_cache: Optional[OfflineCache] = None,
        store: Optional[KeyValueStore] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
        incognito: bool = False,
        event_logger: Optional[EventLogger] = None,
    ):
        self.config = config or ShellConfig.default()
        self.incognito = incognito
        self.store = store or MemoryStore()

        if event_logger is None:
            event_logger = EventLogger(
                debug_mode=self.config.logging.debug_mode,
                max_history=self.config.logging.max_event_history,
            )
        set_event_logger(event_logger)
        self.event_logger = event_logger

        self.settings: ShellSettings = self.config.settings
        self.surface_provider = surface_provider or create_surface_provider(self.config.surface)
        self.transport = transport or create_transport(self.config.transport)
        self.offline_cache = offline_cache or self._default_offline_cache()
        self.connectivity = connectivity or ConnectivityMonitor()
        self.error_handler = ErrorHandler()
        self.visit_log = VisitLog(self.store, incognito=incognito)

        self.interceptors = InterceptorChain()
        self.hooks = ExtensionHooks(self.interceptors)
        self.resolver = UrlResolver(search_engine=self.settings.search_engine)
        self.registry = TabRegistry(
            performance_mode=lambda: self.settings.performance_mode,
            mappings=self.resolver.mappings,
        )
        self.engine = NavigationEngine(
            registry=self.registry,
            resolver=self.resolver,
            interceptors=self.interceptors,
            surface_provider=self.surface_provider,
            transport=self.transport,
            offline_cache=self.offline_cache,
            connectivity=self.connectivity,
            visit_log=self.visit_log,
            hooks=self.hooks,
            error_handler=self.error_handler,
            permissions=self.config.surface.permissions,
            poll_interval=lambda: self.config.polling.interval_for(self.settings.performance_mode),
        )
        self.registry.navigator = self.engine.navigate
        self.started = False

    def _default_offline_cache(self) -> OfflineCache:
        offline = self.config.offline
        if offline.cache_path:
            return StoreOfflineCache(
                JsonFileStore(offline.cache_path),
                enabled=offline.enabled,
                download_timeout=offline.download_timeout,
            )
        return MemoryOfflineCache(enabled=offline.enabled, download_timeout=offline.download_timeout)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self, initial_url: str = HOME_URL) -> Optional[str]:
        """
        Load stored settings and open the first tab.

        Returns:
            ID of the first tab
        """
        if self.started:
            return self.registry.active_tab_id
        if SETTINGS_KEY in self.store:
            self.settings = ShellSettings.load(self.store)
            self.resolver.search_engine = self.settings.search_engine
        self.started = True
        get_event_logger().system_info("Browser session started", performance_mode=self.settings.performance_mode)
        return await self.registry.create_tab(initial_url, DEFAULT_TAB_TITLE)

    async def teardown(self) -> None:
        """Stop every poller, close every surface and the provider"""
        await self.registry.close_all()
        await self.surface_provider.close()
        self.started = False
        get_event_logger().system_info("Browser session closed")

    async def __aenter__(self) -> BrowserSession:
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.teardown()

    # ------------------------------------------------------------------
    # Public navigation API
    # ------------------------------------------------------------------

    async def navigate(self, raw_input: str, tab_id: Optional[str] = None, history: bool = True) -> NavigationResult:
        return await self.engine.navigate(raw_input, tab_id=tab_id, history=history)

    async def create_tab(self, target: str = HOME_URL, title: str = DEFAULT_TAB_TITLE) -> Optional[str]:
        return await self.registry.create_tab(target, title)

    async def close_tab(self, tab_id: str) -> bool:
        return await self.registry.close_tab(tab_id)

    async def activate_tab(self, tab_id: str) -> bool:
        return await self.registry.activate_tab(tab_id)

    async def go_back(self) -> NavigationResult:
        return await self.engine.go_back()

    async def go_forward(self) -> NavigationResult:
        return await self.engine.go_forward()

    async def refresh(self) -> NavigationResult:
        return await self.engine.refresh()

    async def navigate_from_address_bar(self, text: str) -> NavigationResult:
        """Address bar entry: bare mapping keys such as ``settings`` open the internal page"""
        return await self.navigate(self.resolver.expand_shorthand(text))

    # ------------------------------------------------------------------
    # Extension hooks
    # ------------------------------------------------------------------

    def on_before_navigate(self, callback: InterceptorCallback) -> Middleware:
        return self.hooks.on_before_navigate(callback)

    def on_tab_loaded(self, callback: TabLoadedListener) -> None:
        self.hooks.on_tab_loaded(callback)

    def use(self, middleware: Middleware) -> Middleware:
        """Add a class-based middleware to the interceptor chain"""
        return self.interceptors.use(middleware)

    def extension_api(self) -> ExtensionAPI:
        return ExtensionAPI(self)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def tabs(self) -> List[Tab]:
        return self.registry.list_tabs()

    @property
    def active_tab_id(self) -> Optional[str]:
        return self.registry.active_tab_id

    def active_tab(self) -> Optional[Tab]:
        return self.registry.active_tab()

    def get_tab(self, tab_id: str) -> Optional[Tab]:
        return self.registry.get_tab(tab_id)

    @property
    def chrome(self) -> ChromeState:
        return self.registry.chrome

    def set_online(self, online: bool) -> None:
        self.connectivity.set_online(online)

    def update_settings(self, **changes) -> ShellSettings:
        """
        Apply and persist setting changes.

        Accepts field names or their stored camelCase aliases.
        """
        data = self.settings.model_dump(by_alias=True)
        for key, value in changes.items():
            field = ShellSettings.model_fields.get(key)
            data[field.alias or key if field else key] = value
        self.settings = ShellSettings.model_validate(data)
        self.settings.save(self.store)
        self.resolver.search_engine = self.settings.search_engine
        self.engine.set_poll_interval(self.config.polling.interval_for(self.settings.performance_mode))
        return self.settings

    def set_performance_mode(self, enabled: bool) -> None:
        self.update_settings(performance_mode=enabled)
        if enabled:
            get_event_logger().system_info("🚀 Performance Mode Enabled: single tab, slower surface polling.")
        else:
            get_event_logger().system_info("Performance Mode Disabled.")
