"""
Event log for the Aurora browser shell.

Every component reports through one process-wide EventLogger. Events are kept
in a bounded in-memory history (the console panel and tests read it back),
fanned out to subscribers, and echoed to the terminal in debug mode.
Logging never raises into the caller.
"""
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
import time

from rich.console import Console


class EventType(str, Enum):
    """All event types that can be logged"""
    # Navigation events
    NAVIGATION_START = "navigation_start"
    NAVIGATION_CANCELLED = "navigation_cancelled"
    NAVIGATION_COMMITTED = "navigation_committed"
    NAVIGATION_FAILED = "navigation_failed"
    INTERNAL_PAGE = "internal_page"

    # Surface events
    PAGE_LOADED = "page_loaded"
    PAGE_LOAD_FAILED = "page_load_failed"
    SURFACE_CREATED = "surface_created"
    SURFACE_DRIFT = "surface_drift"

    # Offline events
    OFFLINE_SERVED = "offline_served"
    OFFLINE_MISS = "offline_miss"

    # Tab events
    TAB_CREATED = "tab_created"
    TAB_CLOSED = "tab_closed"
    TAB_SWITCH = "tab_switch"

    # Extension events
    INTERCEPTOR_ERROR = "interceptor_error"
    LISTENER_ERROR = "listener_error"

    # System events
    SYSTEM_INFO = "system_info"
    SYSTEM_WARNING = "system_warning"
    SYSTEM_ERROR = "system_error"
    SYSTEM_DEBUG = "system_debug"


EventCallback = Callable[["ShellEvent"], None]

_LEVEL_STYLES = {
    "DEBUG": ("🔍", "dim"),
    "INFO": ("ℹ️", ""),
    "WARNING": ("⚠️", "yellow"),
    "ERROR": ("❌", "red"),
    "SUCCESS": ("✅", "green"),
}


@dataclass
class ShellEvent:
    """One logged event; ``details`` carries tab_id, url and similar fields"""
    event_type: EventType
    message: str
    timestamp: float = field(default_factory=time.time)
    level: str = "INFO"
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def tab_id(self) -> Optional[str]:
        return self.details.get("tab_id")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "level": self.level,
            "message": self.message,
            "at": datetime.fromtimestamp(self.timestamp).isoformat(),
            "details": dict(self.details),
        }


class EventLogger:
    """
    Bounded event history plus subscriber fan-out.

    Debug mode also prints each event (and its simple detail values) to the
    terminal through rich.
    """

    def __init__(self, debug_mode: bool = True, max_history: int = 1000, console: Optional[Console] = None):
        self.debug_mode = debug_mode
        self.console = console or Console(highlight=False)
        self._subscribers: List[EventCallback] = []
        self._events: Deque[ShellEvent] = deque(maxlen=max_history)

    def register_callback(self, callback: EventCallback) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unregister_callback(self, callback: EventCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    @property
    def history(self) -> List[ShellEvent]:
        return list(self._events)

    def events_of(self, event_type: EventType) -> List[ShellEvent]:
        """Recorded events of one type, oldest first"""
        return [event for event in self._events if event.event_type == event_type]

    def events_for_tab(self, tab_id: str) -> List[ShellEvent]:
        return [event for event in self._events if event.tab_id == tab_id]

    def clear_history(self) -> None:
        self._events.clear()

    def _echo(self, event: ShellEvent) -> None:
        emoji, style = _LEVEL_STYLES.get(event.level, ("•", ""))
        prefix = f"[{event.tab_id}] " if event.tab_id else ""
        self.console.print(f"{emoji} {prefix}{event.message}", style=style or None, markup=False)
        for key, value in event.details.items():
            if key != "tab_id" and isinstance(value, (str, int, float, bool)):
                self.console.print(f"   {key}: {value}", style="dim", markup=False)

    def emit(self, event_type: EventType, message: str, level: str = "INFO", **details) -> None:
        """Record and publish one event; never raises"""
        try:
            event = ShellEvent(event_type=event_type, message=message, level=level, details=details)
            self._events.append(event)
        except Exception:
            return

        if self.debug_mode:
            try:
                self._echo(event)
            except Exception:
                pass  # terminal output is best effort

        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                pass  # a broken subscriber must not stop the others

    # Convenience methods - all wrapped in try/except for safety
    def navigation_start(self, tab_id: str, target: str, kind: str = None, **details):
        try:
            msg = f"Navigating {tab_id} to {target}"
            if kind:
                msg += f" [{kind}]"
            self.emit(EventType.NAVIGATION_START, msg, "DEBUG", tab_id=tab_id, target=target, kind=kind, **details)
        except Exception:
            pass

    def navigation_cancelled(self, tab_id: str, target: str, **details):
        try:
            self.emit(EventType.NAVIGATION_CANCELLED, f"Navigation to {target} blocked by extension.", "INFO",
                      tab_id=tab_id, target=target, **details)
        except Exception:
            pass

    def navigation_committed(self, tab_id: str, url: str, title: str = None, **details):
        try:
            self.emit(EventType.NAVIGATION_COMMITTED, f"Navigated {tab_id} to {url}", "INFO",
                      tab_id=tab_id, url=url, title=title, **details)
        except Exception:
            pass

    def navigation_failed(self, tab_id: str, target: str, error: Exception = None, **details):
        try:
            msg = f"Navigation to {target} failed"
            if error:
                msg += f" - {str(error)}"
            self.emit(EventType.NAVIGATION_FAILED, msg, "ERROR", tab_id=tab_id, target=target,
                      error=str(error) if error else None, **details)
        except Exception:
            pass

    def internal_page(self, tab_id: str, page: str, **details):
        try:
            self.emit(EventType.INTERNAL_PAGE, f"Showing internal page: {page}", "DEBUG", tab_id=tab_id, page=page, **details)
        except Exception:
            pass

    def page_loaded(self, tab_id: str, url: str, **details):
        try:
            self.emit(EventType.PAGE_LOADED, f"Page loaded: {url}", "INFO", tab_id=tab_id, url=url, **details)
        except Exception:
            pass

    def page_load_failed(self, tab_id: str, url: str, error: Exception = None, **details):
        try:
            self.emit(EventType.PAGE_LOAD_FAILED, f"Failed to load: {url}", "ERROR", tab_id=tab_id, url=url,
                      error=str(error) if error else None, **details)
        except Exception:
            pass

    def surface_created(self, tab_id: str, **details):
        try:
            self.emit(EventType.SURFACE_CREATED, f"Render surface created for {tab_id}", "DEBUG", tab_id=tab_id, **details)
        except Exception:
            pass

    def surface_drift(self, tab_id: str, url_before: str, url_after: str, **details):
        try:
            self.emit(EventType.SURFACE_DRIFT, f"In-surface navigation: {url_before} -> {url_after}", "INFO",
                      tab_id=tab_id, url_before=url_before, url_after=url_after, **details)
        except Exception:
            pass

    def offline_served(self, tab_id: str, url: str, **details):
        try:
            self.emit(EventType.OFFLINE_SERVED, "Loaded page from offline cache.", "INFO", tab_id=tab_id, url=url, **details)
        except Exception:
            pass

    def offline_miss(self, tab_id: str, url: str, **details):
        try:
            self.emit(EventType.OFFLINE_MISS, "Page not found in offline cache.", "WARNING", tab_id=tab_id, url=url, **details)
        except Exception:
            pass

    def tab_created(self, tab_id: str, url: str = None, **details):
        try:
            msg = f"New tab: {tab_id}"
            if url:
                msg += f" ({url})"
            self.emit(EventType.TAB_CREATED, msg, "INFO", tab_id=tab_id, url=url, **details)
        except Exception:
            pass

    def tab_closed(self, tab_id: str, **details):
        try:
            self.emit(EventType.TAB_CLOSED, f"Closed tab: {tab_id}", "INFO", tab_id=tab_id, **details)
        except Exception:
            pass

    def tab_switch(self, tab_id: str, url: str = None, **details):
        try:
            msg = f"Switched to tab: {tab_id}"
            if url:
                msg += f" ({url})"
            self.emit(EventType.TAB_SWITCH, msg, "INFO", tab_id=tab_id, url=url, **details)
        except Exception:
            pass

    def interceptor_error(self, target: str, error: Exception, **details):
        try:
            self.emit(EventType.INTERCEPTOR_ERROR, f"Interceptor error: {error}", "ERROR",
                      target=target, error=str(error), **details)
        except Exception:
            pass

    def listener_error(self, tab_id: str, error: Exception, **details):
        try:
            self.emit(EventType.LISTENER_ERROR, f"Tab load listener error: {error}", "ERROR",
                      tab_id=tab_id, error=str(error), **details)
        except Exception:
            pass

    def system_info(self, message: str, **details):
        self.emit(EventType.SYSTEM_INFO, message, "INFO", **details)

    def system_warning(self, message: str, **details):
        self.emit(EventType.SYSTEM_WARNING, message, "WARNING", **details)

    def system_error(self, message: str, error: Exception = None, **details):
        if error is not None:
            message = f"{message} - {error}"
            details["error"] = str(error)
        self.emit(EventType.SYSTEM_ERROR, message, "ERROR", **details)

    def system_debug(self, message: str, **details):
        self.emit(EventType.SYSTEM_DEBUG, message, "DEBUG", **details)


_shared_logger: Optional[EventLogger] = None


def get_event_logger() -> EventLogger:
    """The process-wide logger, created in debug mode on first use"""
    global _shared_logger
    if _shared_logger is None:
        _shared_logger = EventLogger(debug_mode=True)
    return _shared_logger


def set_event_logger(logger: EventLogger) -> None:
    """Replace the process-wide logger (sessions and tests install their own)"""
    global _shared_logger
    _shared_logger = logger
