"""
Navigation middleware for the Aurora browser shell.

Provides the interceptor chain every navigation passes through before any
surface or network work happens. Middlewares run in registration order and any
of them may veto the navigation.

Example:
    >>> from middleware import InterceptorChain
    >>> from middlewares import LoggingMiddleware, BlocklistMiddleware
    >>> chain = InterceptorChain()
    >>> chain.use(LoggingMiddleware())
    >>> chain.use(BlocklistMiddleware(["ads.example"]))
    >>> chain.add_interceptor(lambda url: {"cancel": "tracker" in url})
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from url_resolver import NavigationKind
from utils.event_logger import get_event_logger


InterceptorCallback = Callable[[str], Optional[Mapping[str, Any]]]


@dataclass
class NavigationContext:
    """
    Context passed to middleware hooks.

    Contains information about the navigation being attempted and lets
    middleware cancel it.
    """

    tab_id: str
    """Tab the navigation targets"""

    target_url: str
    """Address that will actually be loaded (internal URL for internal pages)"""

    display_url: str
    """Address the tab will show"""

    kind: NavigationKind
    """Classification from the resolver"""

    raw_input: str = ""
    """Input as typed or passed by the caller"""

    record_history: bool = True
    """False for back/forward replay and refresh"""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Metadata that middleware can use to pass data between hooks"""

    should_continue: bool = True
    """If False, the navigation is abandoned"""

    cancelled_by: Optional[str] = None
    """Name of the middleware that vetoed the navigation"""

    def cancel(self, by: Optional[str] = None) -> None:
        self.should_continue = False
        self.cancelled_by = by


class Middleware:
    """
    Base class for navigation middleware.

    Example:
        >>> class NoFacebook(Middleware):
        ...     def before_navigate(self, context):
        ...         if "facebook.com" in context.target_url:
        ...             context.cancel(self.name)
        ...         return context
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    def before_navigate(self, context: NavigationContext) -> NavigationContext:
        """
        Called before any surface or network work.

        Returns:
            Context (set should_continue=False to cancel)
        """
        return context

    def after_load(self, tab_id: str, url: str) -> None:
        """Called once per completed surface load."""
        pass

    def on_error(self, context: NavigationContext, error: Exception) -> None:
        """Called when a navigation that passed the chain fails."""
        pass


class CallbackInterceptor(Middleware):
    """
    Adapts a plain ``(target_url) -> {"cancel": bool} | None`` callback.

    The callback is handed the real target URL; a mapping (or object) with a
    truthy ``cancel`` vetoes the navigation, anything else lets it through.
    """

    def __init__(self, callback: InterceptorCallback):
        self.callback = callback

    @property
    def name(self) -> str:
        return getattr(self.callback, "__name__", "interceptor")

    def before_navigate(self, context: NavigationContext) -> NavigationContext:
        result = self.callback(context.target_url)
        if result is None:
            return context
        if isinstance(result, Mapping):
            cancel = result.get("cancel", False)
        else:
            cancel = getattr(result, "cancel", False)
        if cancel:
            context.cancel(self.name)
        return context


class InterceptorChain:
    """
    Manages the middleware chain.

    Every hook is invoked through the same catch-log-continue wrapper: a
    middleware that raises is logged and treated as a non-cancelling no-op.
    """

    def __init__(self):
        self.middlewares: List[Middleware] = []

    def use(self, middleware: Middleware) -> Middleware:
        """
        Add middleware to the end of the chain.

        Args:
            middleware: Middleware instance to add
        """
        self.middlewares.append(middleware)
        return middleware

    def add_interceptor(self, callback: InterceptorCallback) -> Middleware:
        """Register a plain callback interceptor."""
        return self.use(CallbackInterceptor(callback))

    def remove(self, middleware: Middleware) -> bool:
        if middleware in self.middlewares:
            self.middlewares.remove(middleware)
            return True
        return False

    def __len__(self) -> int:
        return len(self.middlewares)

    def execute_before(self, context: NavigationContext) -> NavigationContext:
        """
        Execute all before_navigate hooks in order.

        Stops at the first middleware that cancels.
        """
        for middleware in list(self.middlewares):
            try:
                result = middleware.before_navigate(context)
            except Exception as e:
                get_event_logger().interceptor_error(context.target_url, e, middleware=middleware.name)
                continue
            if isinstance(result, NavigationContext):
                context = result
            if not context.should_continue:
                if context.cancelled_by is None:
                    context.cancelled_by = middleware.name
                break
        return context

    def execute_after_load(self, tab_id: str, url: str) -> None:
        """Execute all after_load hooks in order."""
        for middleware in list(self.middlewares):
            try:
                middleware.after_load(tab_id, url)
            except Exception as e:
                get_event_logger().interceptor_error(url, e, middleware=middleware.name, tab_id=tab_id)

    def execute_on_error(self, context: NavigationContext, error: Exception) -> None:
        """Execute all on_error hooks."""
        for middleware in list(self.middlewares):
            try:
                middleware.on_error(context, error)
            except Exception as e:
                get_event_logger().interceptor_error(context.target_url, e, middleware=middleware.name)
