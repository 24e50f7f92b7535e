"""Built-in navigation middlewares for the Aurora browser shell."""

from .logging_middleware import LoggingMiddleware
from .metrics import MetricsMiddleware
from .blocklist import BlocklistMiddleware

__all__ = [
    'LoggingMiddleware',
    'MetricsMiddleware',
    'BlocklistMiddleware',
]
