"""
Configuration models for the Aurora browser shell.

This module provides structured, type-safe configuration using Pydantic models.
Settings are grouped per concern and nested in one ShellConfig object that the
BrowserSession takes at construction.

Example:
    >>> from shell_config import ShellConfig, PollingConfig
    >>> config = ShellConfig(polling=PollingConfig(interval=1.0))
    >>> session = BrowserSession(config=config, surface_provider=provider)
"""
from __future__ import annotations

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ValidationError, field_validator

from config import DEFAULT_SETTINGS, SETTINGS_KEY
from error_handling import ConfigurationError
from storage import KeyValueStore
from surface_provider import SurfaceConfig
from utils.event_logger import get_event_logger


class ShellSettings(BaseModel):
    """
    User settings persisted under ``aurora_settings``.

    Field aliases match the stored document's camelCase keys, so a stored blob
    validates as-is and unknown keys written by other collaborators are kept.
    """

    search_engine: str = Field(
        default=DEFAULT_SETTINGS["searchEngine"],
        alias="searchEngine",
        description="Search URL template; %s is replaced by the percent-encoded query"
    )
    theme: str = Field(
        default=DEFAULT_SETTINGS["theme"],
        description="UI theme id"
    )
    show_bookmarks_bar: bool = Field(
        default=DEFAULT_SETTINGS["showBookmarksBar"],
        alias="showBookmarksBar",
        description="Show the bookmarks bar"
    )
    performance_mode: bool = Field(
        default=DEFAULT_SETTINGS["performanceMode"],
        alias="performanceMode",
        description="Reduced-resource mode: single tab, slower surface polling"
    )

    class Config:
        populate_by_name = True
        extra = "allow"

    @field_validator("search_engine")
    @classmethod
    def _template_has_placeholder(cls, value: str) -> str:
        if "%s" not in value:
            raise ValueError("search engine template must contain %s")
        return value

    @classmethod
    def load(cls, store: KeyValueStore) -> ShellSettings:
        """
        Read the settings blob, merged over defaults.

        A missing or invalid blob yields the defaults.
        """
        saved = store.get(SETTINGS_KEY)
        if not isinstance(saved, dict):
            return cls()
        try:
            return cls.model_validate({**DEFAULT_SETTINGS, **saved})
        except ValidationError as e:
            get_event_logger().system_warning(f"Ignoring invalid stored settings: {e}")
            return cls()

    def save(self, store: KeyValueStore) -> None:
        store.set(SETTINGS_KEY, self.model_dump(by_alias=True))


class PollingConfig(BaseModel):
    """Surface location polling configuration."""

    interval: float = Field(
        default=2.0,
        gt=0.0,
        description="Seconds between location checks"
    )
    reduced_interval: float = Field(
        default=5.0,
        gt=0.0,
        description="Seconds between location checks in performance mode"
    )

    class Config:
        arbitrary_types_allowed = True

    def interval_for(self, performance_mode: bool) -> float:
        return self.reduced_interval if performance_mode else self.interval


class OfflineConfig(BaseModel):
    """Offline cache configuration."""

    enabled: bool = Field(
        default=False,
        description="Serve cached pages while offline (normally switched on by an extension)"
    )
    cache_path: Optional[str] = Field(
        default=None,
        description="JSON file holding cached pages; in-memory cache when unset"
    )
    download_timeout: float = Field(
        default=15.0,
        gt=0.0,
        description="Timeout in seconds for download_and_save requests"
    )

    class Config:
        arbitrary_types_allowed = True


class TransportConfig(BaseModel):
    """Rewriting proxy transport configuration."""

    proxy_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the rewriting proxy; direct transport when unset"
    )
    health_path: str = Field(
        default="/",
        description="Path probed to confirm the proxy service is up"
    )
    transport_path: str = Field(
        default="/epoxy/index.mjs",
        description="Transport module the proxy should route through"
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Timeout in seconds for the service health probe"
    )

    class Config:
        arbitrary_types_allowed = True


class DebugConfig(BaseModel):
    """Debugging and logging configuration."""

    debug_mode: bool = Field(
        default=True,
        description="Print every shell event to the console"
    )
    max_event_history: int = Field(
        default=1000,
        ge=1,
        description="Number of events kept in memory"
    )

    class Config:
        arbitrary_types_allowed = True


class ShellConfig(BaseModel):
    """
    Main configuration object for the browser shell.

    Example:
        >>> config = ShellConfig(
        ...     surface=SurfaceConfig(headless=True),
        ...     offline=OfflineConfig(enabled=True)
        ... )
    """

    settings: ShellSettings = Field(
        default_factory=ShellSettings,
        description="Persisted user settings (replaced by the stored blob on init)"
    )
    surface: SurfaceConfig = Field(
        default_factory=SurfaceConfig,
        description="Render surface configuration"
    )
    polling: PollingConfig = Field(
        default_factory=PollingConfig,
        description="Surface polling configuration"
    )
    offline: OfflineConfig = Field(
        default_factory=OfflineConfig,
        description="Offline cache configuration"
    )
    transport: TransportConfig = Field(
        default_factory=TransportConfig,
        description="Proxy transport configuration"
    )
    logging: DebugConfig = Field(
        default_factory=DebugConfig,
        description="Debug and logging configuration"
    )

    class Config:
        arbitrary_types_allowed = True

    @property
    def poll_interval(self) -> float:
        return self.polling.interval_for(self.settings.performance_mode)

    def with_proxy(self, proxy_base_url: str) -> ShellConfig:
        """Point both the transport and the surfaces at one rewriting proxy"""
        if not proxy_base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Proxy base URL must be http(s): {proxy_base_url}")
        updated = self.model_copy(deep=True)
        updated.transport.proxy_base_url = proxy_base_url
        updated.surface.proxy_base_url = proxy_base_url
        return updated

    @classmethod
    def default(cls) -> ShellConfig:
        """
        Create a configuration with all default settings.
        """
        return cls()

    @classmethod
    def performance(cls) -> ShellConfig:
        """
        Create a reduced-resource configuration.

        Returns:
            ShellConfig with performance mode on (single tab, slow polling)
        """
        return cls(
            settings=ShellSettings(performance_mode=True),
            logging=DebugConfig(debug_mode=False)
        )

    @classmethod
    def debug(cls) -> ShellConfig:
        """
        Create a configuration optimized for debugging.

        Returns:
            ShellConfig with console event output and fast polling
        """
        return cls(
            polling=PollingConfig(interval=0.5, reduced_interval=2.0),
            logging=DebugConfig(debug_mode=True)
        )

    def describe(self) -> Dict[str, Any]:
        """Flat summary for the CLI's config view"""
        return {
            "search_engine": self.settings.search_engine,
            "performance_mode": self.settings.performance_mode,
            "poll_interval": self.poll_interval,
            "offline_enabled": self.offline.enabled,
            "proxy": self.transport.proxy_base_url or "direct",
            "headless": self.surface.headless,
        }
