"""
Public package surface for the Aurora browser shell.

This module re-exports the primary classes and helpers so consumers can simply:

    from aurora_browser import BrowserSession, ShellConfig
"""

# Session
from session import BrowserSession

# Configuration
from shell_config import (
    ShellConfig,
    ShellSettings,
    PollingConfig,
    OfflineConfig,
    TransportConfig,
    DebugConfig,
)

# Render surfaces
from surface_provider import (
    RenderSurface,
    SurfaceProvider,
    PlaywrightSurfaceProvider,
    MockSurfaceProvider,
    create_surface_provider,
    SurfaceConfig,
)

# Navigation
from navigation_engine import NavigationEngine
from navigation_result import NavigationResult, NavigationStatus
from url_resolver import UrlResolver, ResolvedTarget, NavigationKind
from history import HistoryStack
from tab_management import Tab, TabRegistry, NavState, ChromeState

# Extension points
from middleware import InterceptorChain, Middleware, NavigationContext
from extensions import ExtensionAPI, ExtensionHooks
from middlewares import LoggingMiddleware, MetricsMiddleware, BlocklistMiddleware

# Collaborators
from transport import TransportCoordinator, DirectTransport, ProxyTransport, create_transport
from offline_cache import OfflineCache, MemoryOfflineCache, StoreOfflineCache, ConnectivityMonitor
from storage import KeyValueStore, MemoryStore, JsonFileStore

# Errors
from error_handling import (
    ShellError,
    ResolutionAmbiguous,
    NavigationCancelled,
    PreconditionFailed,
    CrossOriginBlocked,
    SurfaceLoadFailed,
    OfflineCacheError,
    ConfigurationError,
    ErrorContext,
    ErrorSeverity,
    RecoveryStrategy,
)

# Utilities
from utils.event_logger import EventLogger, EventType, get_event_logger, set_event_logger

__all__ = [
    "BrowserSession",
    "ShellConfig",
    "ShellSettings",
    "PollingConfig",
    "OfflineConfig",
    "TransportConfig",
    "DebugConfig",
    "RenderSurface",
    "SurfaceProvider",
    "PlaywrightSurfaceProvider",
    "MockSurfaceProvider",
    "create_surface_provider",
    "SurfaceConfig",
    "NavigationEngine",
    "NavigationResult",
    "NavigationStatus",
    "UrlResolver",
    "ResolvedTarget",
    "NavigationKind",
    "HistoryStack",
    "Tab",
    "TabRegistry",
    "NavState",
    "ChromeState",
    "InterceptorChain",
    "Middleware",
    "NavigationContext",
    "ExtensionAPI",
    "ExtensionHooks",
    "LoggingMiddleware",
    "MetricsMiddleware",
    "BlocklistMiddleware",
    "TransportCoordinator",
    "DirectTransport",
    "ProxyTransport",
    "create_transport",
    "OfflineCache",
    "MemoryOfflineCache",
    "StoreOfflineCache",
    "ConnectivityMonitor",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "ShellError",
    "ResolutionAmbiguous",
    "NavigationCancelled",
    "PreconditionFailed",
    "CrossOriginBlocked",
    "SurfaceLoadFailed",
    "OfflineCacheError",
    "ConfigurationError",
    "ErrorContext",
    "ErrorSeverity",
    "RecoveryStrategy",
    "EventLogger",
    "EventType",
    "get_event_logger",
    "set_event_logger",
]
