"""Host blocklist middleware for the Aurora browser shell."""

import re
from typing import Iterable, List, Pattern
from urllib.parse import urlsplit

from middleware import Middleware, NavigationContext


class BlocklistMiddleware(Middleware):
    """
    Cancel navigations whose host matches a blocked pattern.

    Plain entries block the host and all of its subdomains; entries prefixed
    with ``re:`` are matched as regular expressions against the host name.

    Example:
        >>> session.interceptors.use(BlocklistMiddleware(["ads.example", r"re:^track\\d+\\."]))
    """

    def __init__(self, hosts: Iterable[str] = ()):
        self.patterns: List[Pattern[str]] = []
        for host in hosts:
            self.block(host)

    def block(self, host: str) -> None:
        if host.startswith("re:"):
            self.patterns.append(re.compile(host[3:], re.IGNORECASE))
        else:
            escaped = re.escape(host.lower().strip("."))
            self.patterns.append(re.compile(rf"(^|\.){escaped}$", re.IGNORECASE))

    def is_blocked(self, url: str) -> bool:
        try:
            hostname = urlsplit(url).hostname
        except ValueError:
            return False
        if not hostname:
            return False
        return any(pattern.search(hostname) for pattern in self.patterns)

    def before_navigate(self, context: NavigationContext) -> NavigationContext:
        if self.is_blocked(context.target_url):
            context.cancel(self.name)
        return context
