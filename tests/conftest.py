"""
Shared pytest fixtures for all tests.
"""
from typing import Awaitable, Callable, List, Optional

import pytest
import pytest_asyncio

from error_handling import CrossOriginBlocked, PreconditionFailed
from offline_cache import MemoryOfflineCache
from session import BrowserSession
from shell_config import DebugConfig, ShellConfig
from storage import MemoryStore
from surface_provider import MockSurfaceProvider, RenderSurface, SurfaceConfig
from transport import TransportCoordinator
from utils.event_logger import EventLogger, set_event_logger


class FakeSurface(RenderSurface):
    """In-memory render surface with settable location, title and icons"""

    def __init__(self):
        super().__init__()
        self.location: Optional[str] = None
        self.wrapped: Optional[str] = None
        self.title: Optional[str] = None
        self.icons: List[str] = []
        self.go_calls: List[str] = []
        self.rendered: List[str] = []
        self.granted: List[str] = []
        self.closed = False
        self.cross_origin = False
        self.go_error: Optional[Exception] = None

    def _check_access(self) -> None:
        if self.cross_origin:
            raise CrossOriginBlocked("Blocked a frame from accessing a cross-origin frame")

    async def go(self, url: str) -> None:
        if self.go_error is not None:
            raise self.go_error
        self.go_calls.append(url)
        self.location = url

    async def render_content(self, html: str) -> None:
        self.rendered.append(html)

    async def current_location(self) -> Optional[str]:
        self._check_access()
        return self.location

    async def wrapped_location(self) -> Optional[str]:
        self._check_access()
        return self.wrapped

    async def document_title(self) -> Optional[str]:
        self._check_access()
        return self.title

    async def icon_links(self) -> List[str]:
        self._check_access()
        return list(self.icons)

    async def grant_permissions(self, permissions: List[str]) -> None:
        self.granted = list(permissions)

    async def close(self) -> None:
        self.closed = True


class FakeTransport(TransportCoordinator):
    """Transport whose preconditions can be made to fail or to run a hook"""

    def __init__(self):
        self.registered_calls = 0
        self.configured_calls = 0
        self.fail_registration = False
        self.fail_configuration = False
        self.before_register: Optional[Callable[[], Awaitable[object]]] = None

    async def ensure_service_registered(self) -> None:
        self.registered_calls += 1
        if self.before_register is not None:
            await self.before_register()
        if self.fail_registration:
            raise PreconditionFailed("Failed to register service worker: unreachable")

    async def ensure_transport_configured(self, force: bool = False) -> None:
        self.configured_calls += 1
        if self.fail_configuration:
            raise PreconditionFailed("Failed to configure transport: no connection")


@pytest.fixture
def event_logger():
    """Quiet event logger installed as the process-wide instance"""
    logger = EventLogger(debug_mode=False)
    set_event_logger(logger)
    return logger


@pytest.fixture
def surface_provider():
    return MockSurfaceProvider(SurfaceConfig(provider_type="mock"), surface_factory=FakeSurface)


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def offline_cache():
    return MemoryOfflineCache()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def shell_config():
    return ShellConfig(logging=DebugConfig(debug_mode=False))


@pytest.fixture
def session_factory(shell_config, surface_provider, fake_transport, offline_cache, store, event_logger):
    """Factory for BrowserSession instances wired to the fakes (not yet initialized)"""
    created = []

    def _create(**overrides):
        kwargs = dict(
            config=shell_config,
            surface_provider=surface_provider,
            transport=fake_transport,
            offline_cache=offline_cache,
            store=store,
            event_logger=event_logger,
        )
        kwargs.update(overrides)
        session = BrowserSession(**kwargs)
        created.append(session)
        return session

    _create.created = created
    return _create


@pytest_asyncio.fixture
async def session(session_factory):
    """Initialized session with one home tab"""
    session = session_factory()
    await session.init()
    yield session
    await session.teardown()


def surface_of(tab) -> FakeSurface:
    """The fake surface behind a tab"""
    return tab.surface_session.surface
