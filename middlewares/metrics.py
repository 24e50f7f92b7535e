"""Metrics collection middleware for the Aurora browser shell."""

import time
from typing import Any, Dict

from middleware import Middleware, NavigationContext
from url_resolver import NavigationKind


class MetricsMiddleware(Middleware):
    """
    Collect navigation metrics.

    Tracks:
    - Number of navigations that passed the chain
    - Number of completed loads
    - Number of errors
    - Time from dispatch to load, per tab

    Internal pages never produce a surface load, so they are not timed. A
    timing that sees no load within ``stale_after`` seconds (cancelled
    further down the chain, or its tab closed) is dropped.

    Example:
        >>> metrics = MetricsMiddleware()
        >>> session.interceptors.use(metrics)
        >>> # ... browse ...
        >>> print(metrics.get_metrics())
    """

    def __init__(self, stale_after: float = 120.0):
        """Initialize metrics middleware."""
        self.stale_after = stale_after
        self._pending: Dict[str, float] = {}
        self.reset()

    def before_navigate(self, context: NavigationContext) -> NavigationContext:
        """Start timing the navigation."""
        self.metrics['navigations'] += 1
        self.metrics['by_kind'][context.kind.value] = self.metrics['by_kind'].get(context.kind.value, 0) + 1
        now = time.time()
        self._drop_stale(now)
        if context.kind == NavigationKind.INTERNAL_PAGE:
            self._pending.pop(context.tab_id, None)
        else:
            self._pending[context.tab_id] = now
        return context

    def _drop_stale(self, now: float) -> None:
        for tab_id, started in list(self._pending.items()):
            if now - started > self.stale_after:
                del self._pending[tab_id]

    def after_load(self, tab_id: str, url: str) -> None:
        """Record load time."""
        self.metrics['loads'] += 1
        started = self._pending.pop(tab_id, None)
        if started is not None:
            elapsed = time.time() - started
            self.metrics['total_load_time'] += elapsed
            self.metrics['load_times'].append(elapsed)

    def on_error(self, context: NavigationContext, error: Exception) -> None:
        """Count errors."""
        self.metrics['errors'] += 1
        self._pending.pop(context.tab_id, None)

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get collected metrics.

        Returns:
            Dictionary with metrics
        """
        timed = len(self.metrics['load_times'])
        avg_time = self.metrics['total_load_time'] / timed if timed > 0 else 0

        return {
            **self.metrics,
            'average_load_time': avg_time
        }

    def print_summary(self) -> None:
        """Print metrics summary."""
        metrics = self.get_metrics()
        print("\n" + "=" * 60)
        print("📊 NAVIGATION METRICS")
        print("=" * 60)
        print(f"Navigations: {metrics['navigations']}")
        print(f"Loads: {metrics['loads']}")
        print(f"Errors: {metrics['errors']}")
        print(f"Average Load Time: {metrics['average_load_time']:.2f}s")
        print("=" * 60 + "\n")

    def reset(self) -> None:
        """Reset all metrics."""
        self.metrics = {
            'navigations': 0,
            'loads': 0,
            'errors': 0,
            'total_load_time': 0.0,
            'load_times': [],
            'by_kind': {},
        }
        self._pending.clear()
