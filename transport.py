"""
Transport preconditions for live navigation.

Before a surface may load a live page through the rewriting proxy, the proxy
service has to be reachable and the transport it routes through has to be
selected. Both steps are idempotent and cached after the first success.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import urlsplit

import requests

from error_handling import PreconditionFailed
from shell_config import TransportConfig
from utils.event_logger import get_event_logger


class TransportCoordinator(ABC):
    """Two async preconditions that must succeed before a live dispatch"""

    @abstractmethod
    async def ensure_service_registered(self) -> None:
        """Raise PreconditionFailed when the proxy service cannot be used."""

    @abstractmethod
    async def ensure_transport_configured(self, force: bool = False) -> None:
        """Raise PreconditionFailed when the transport cannot be selected."""


class DirectTransport(TransportCoordinator):
    """No proxy: surfaces load pages directly, so there is nothing to prepare."""

    async def ensure_service_registered(self) -> None:
        return None

    async def ensure_transport_configured(self, force: bool = False) -> None:
        return None


class ProxyTransport(TransportCoordinator):
    """
    Transport through a rewriting proxy server.

    Service registration probes the proxy's health endpoint once; transport
    configuration selects the transport module and the wisp endpoint derived
    from the proxy address.

    Surfaces reach pages through proxy-encoded HTTP addresses, and the proxy
    server itself relays them over its wisp endpoint. ``current_transport``
    and ``wisp_url`` are therefore selection bookkeeping: they record which
    transport is in force so repeat calls are no-ops until ``force=True``,
    and they are reported in the transport event. No surface reads them.

    Example:
        >>> transport = ProxyTransport(TransportConfig(proxy_base_url="http://localhost:8080"))
        >>> await transport.ensure_service_registered()
        >>> await transport.ensure_transport_configured()
        >>> transport.wisp_url
        'ws://localhost:8080/wisp/'
    """

    def __init__(self, config: TransportConfig, session: Optional[requests.Session] = None):
        if not config.proxy_base_url:
            raise ValueError("proxy_base_url is required for ProxyTransport")
        self.config = config
        self.http = session or requests.Session()
        self.registered = False
        self.current_transport: Optional[str] = None
        self.wisp_url: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def health_url(self) -> str:
        return self.config.proxy_base_url.rstrip("/") + self.config.health_path

    def _derive_wisp_url(self) -> str:
        parts = urlsplit(self.config.proxy_base_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        return f"{scheme}://{parts.netloc}/wisp/"

    async def ensure_service_registered(self) -> None:
        if self.registered:
            return
        async with self._lock:
            if self.registered:
                return
            try:
                response = await asyncio.to_thread(
                    self.http.get, self.health_url, timeout=self.config.request_timeout
                )
                response.raise_for_status()
            except requests.RequestException as e:
                raise PreconditionFailed(
                    f"Failed to register proxy service: {e}",
                    url=self.health_url,
                ) from e
            self.registered = True
            get_event_logger().system_info(f"Proxy service ready at {self.config.proxy_base_url}")

    async def ensure_transport_configured(self, force: bool = False) -> None:
        if not force and self.current_transport == self.config.transport_path:
            return
        try:
            wisp_url = self._derive_wisp_url()
        except ValueError as e:
            raise PreconditionFailed(f"Failed to configure transport: {e}") from e
        self.wisp_url = wisp_url
        self.current_transport = self.config.transport_path
        get_event_logger().system_debug(
            f"Transport set to {self.current_transport}", wisp_url=wisp_url
        )


def create_transport(config: TransportConfig) -> TransportCoordinator:
    if config.proxy_base_url:
        return ProxyTransport(config)
    return DirectTransport()
