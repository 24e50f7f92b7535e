"""Logging middleware for the Aurora browser shell."""

from middleware import Middleware, NavigationContext


class LoggingMiddleware(Middleware):
    """
    Logs every navigation to console.

    Example:
        >>> session.interceptors.use(LoggingMiddleware())
        🔵 Navigating: https://wikipedia.org/
        ✅ Loaded: https://wikipedia.org/
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize logging middleware.

        Args:
            verbose: If True, log detailed information
        """
        self.verbose = verbose

    def before_navigate(self, context: NavigationContext) -> NavigationContext:
        """Log navigation start."""
        if self.verbose:
            print(f"🔵 Navigating: {context.target_url}")
            print(f"   Tab: {context.tab_id} ({context.kind.value})")
            if context.display_url != context.target_url:
                print(f"   Shown as: {context.display_url}")
        else:
            print(f"🔵 {context.target_url}")
        return context

    def after_load(self, tab_id: str, url: str) -> None:
        """Log load completion."""
        if self.verbose:
            print(f"✅ Loaded: {url} ({tab_id})")
        else:
            print(f"✅ {url}")

    def on_error(self, context: NavigationContext, error: Exception) -> None:
        """Log errors."""
        print(f"❌ Error navigating to {context.target_url}: {error}")
