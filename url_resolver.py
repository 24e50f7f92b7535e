"""
UrlResolver - Turns free-form address bar input into a navigable target.

Classification is deterministic and runs in a fixed priority order:

1. ``aurora://<page>``  -> internal page, or mapped-external when the mapping
   table points the page at a real address
2. absolute URL         -> literal URL
3. bare host with a dot -> literal URL (``https://`` prepended)
4. anything else        -> search query through the configured template

The module also owns the proxy codec used by the render surface: the rewriting
proxy serves a real address ``X`` at ``<proxy>/scramjet/<quoted X>``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from config import (
    DEFAULT_SETTINGS,
    INTERNAL_PAGE_MAPPINGS,
    INTERNAL_SCHEME,
    PROXY_PATH_PREFIX,
)


_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")

# Schemes that require a host, mirroring how a WHATWG URL parser treats them
_SPECIAL_SCHEMES = {"http", "https", "ws", "wss", "ftp"}
_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}

# encodeURIComponent leaves these unescaped on top of quote()'s own safe set
_SEARCH_SAFE_CHARS = "!*'()"


class NavigationKind(str, Enum):
    """How a piece of input is going to be navigated"""
    INTERNAL_PAGE = "internal_page"
    MAPPED_EXTERNAL = "mapped_external"
    LITERAL_URL = "literal_url"
    SEARCH_QUERY = "search_query"


@dataclass(frozen=True)
class ResolvedTarget:
    """
    Result of resolving a piece of input.

    Attributes:
        kind: Classification of the input
        target: Address actually loaded (for internal pages, the internal URL)
        raw_input: The trimmed input that was resolved
        display_url: Address shown to the user when it differs from ``target``
        page: Internal page name for internal and mapped-external targets
    """
    kind: NavigationKind
    target: str
    raw_input: str
    display_url: Optional[str] = None
    page: Optional[str] = None

    @property
    def display(self) -> str:
        """The URL the tab shows and records in its history"""
        return self.display_url or self.target

    @property
    def is_internal(self) -> bool:
        return self.kind == NavigationKind.INTERNAL_PAGE

    @property
    def needs_surface(self) -> bool:
        return self.kind != NavigationKind.INTERNAL_PAGE


def is_internal_url(url: Optional[str]) -> bool:
    return bool(url) and url.startswith(INTERNAL_SCHEME)


def internal_page_name(url: str) -> str:
    """``aurora://settings`` -> ``settings``"""
    return url[len(INTERNAL_SCHEME):] if is_internal_url(url) else url


def is_mapped_external(url: Optional[str], mappings: Optional[Dict[str, str]] = None) -> bool:
    """True for an internal alias whose mapping points at a real address"""
    if not is_internal_url(url):
        return False
    mappings = INTERNAL_PAGE_MAPPINGS if mappings is None else mappings
    mapped = mappings.get(internal_page_name(url))
    return bool(mapped) and not mapped.startswith(INTERNAL_SCHEME)


def rendered_page(url: str, mappings: Optional[Dict[str, str]] = None) -> str:
    """Internal view shown for ``url``; unknown page names fall back to the home view"""
    mappings = INTERNAL_PAGE_MAPPINGS if mappings is None else mappings
    page = internal_page_name(url)
    if mappings.get(page) == INTERNAL_SCHEME + page:
        return page
    return "home"


def parse_absolute_url(text: str) -> Optional[str]:
    """
    Parse ``text`` as an absolute URL and return its serialized form.

    Returns None when ``text`` is not an absolute URL. Special schemes need a
    whitespace-free host; scheme and host are lower-cased, default ports are
    dropped and an empty path becomes ``/``.
    """
    try:
        parts = urlsplit(text)
    except ValueError:
        return None

    scheme = parts.scheme
    if not scheme or not _SCHEME_RE.match(scheme):
        return None
    scheme = scheme.lower()

    if scheme not in _SPECIAL_SCHEMES:
        # Opaque URLs such as mailto:, data: or javascript:
        remainder = text.split(":", 1)[1]
        if not remainder:
            return None
        return f"{scheme}:{remainder}"

    if not parts.netloc or any(ch.isspace() for ch in parts.netloc):
        return None
    try:
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        return None
    if not hostname:
        return None

    userinfo = ""
    if "@" in parts.netloc:
        userinfo = parts.netloc.rpartition("@")[0] + "@"
    host = hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    netloc = userinfo + host
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc += f":{port}"

    path = parts.path or "/"
    path = path.replace(" ", "%20")
    return urlunsplit((scheme, netloc, path, parts.query, parts.fragment))


def page_title_for(url: str) -> str:
    """Provisional tab title: the host name, or the URL itself when it has none"""
    if is_internal_url(url):
        name = internal_page_name(url)
        return name[:1].upper() + name[1:]
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return url
    return hostname or url


def encode_proxy_url(proxy_base_url: str, url: str) -> str:
    """Address the rewriting proxy serves ``url`` at"""
    return proxy_base_url.rstrip("/") + PROXY_PATH_PREFIX + quote(url, safe="")


def decode_proxy_location(location: str) -> str:
    """
    Recover the real address from a proxy-encoded location.

    Locations without the proxy prefix, and prefixes whose payload cannot be
    decoded, are returned unchanged.
    """
    if PROXY_PATH_PREFIX not in location:
        return location
    encoded = location.split(PROXY_PATH_PREFIX, 1)[1]
    if not encoded:
        return location
    try:
        return unquote(encoded, errors="strict")
    except UnicodeDecodeError:
        return location


class UrlResolver:
    """
    Classifies raw input into internal, mapped-external, literal or search targets.

    Example:
        >>> resolver = UrlResolver()
        >>> resolver.resolve("wikipedia.org").target
        'https://wikipedia.org/'
        >>> resolver.resolve("aurora://chat").display
        'aurora://chat'
    """

    def __init__(
        self,
        search_engine: str = DEFAULT_SETTINGS["searchEngine"],
        mappings: Optional[Dict[str, str]] = None,
    ):
        self.search_engine = search_engine
        self.mappings = dict(INTERNAL_PAGE_MAPPINGS if mappings is None else mappings)

    def resolve(self, raw_input: str) -> ResolvedTarget:
        text = raw_input.strip()

        if is_internal_url(text):
            page = internal_page_name(text)
            mapped = self.mappings.get(page)
            if mapped and not mapped.startswith(INTERNAL_SCHEME):
                return ResolvedTarget(
                    kind=NavigationKind.MAPPED_EXTERNAL,
                    target=mapped,
                    raw_input=text,
                    display_url=text,
                    page=page,
                )
            return ResolvedTarget(
                kind=NavigationKind.INTERNAL_PAGE,
                target=text,
                raw_input=text,
                page=page,
            )

        literal = parse_absolute_url(text)
        if literal is not None:
            return ResolvedTarget(kind=NavigationKind.LITERAL_URL, target=literal, raw_input=text)

        promoted = parse_absolute_url(f"https://{text}") if text else None
        if promoted is not None and "." in (urlsplit(promoted).hostname or ""):
            return ResolvedTarget(kind=NavigationKind.LITERAL_URL, target=promoted, raw_input=text)

        return ResolvedTarget(
            kind=NavigationKind.SEARCH_QUERY,
            target=self.search_url(text),
            raw_input=text,
        )

    def search_url(self, query: str) -> str:
        return self.search_engine.replace("%s", quote(query, safe=_SEARCH_SAFE_CHARS))

    def expand_shorthand(self, raw_input: str) -> str:
        """Address bar shorthand: a bare mapping key such as ``settings`` means ``aurora://settings``"""
        text = raw_input.strip()
        if "://" not in text and "." not in text and text in self.mappings:
            return INTERNAL_SCHEME + text
        return text

    def is_mapped_external(self, url: Optional[str]) -> bool:
        return is_mapped_external(url, self.mappings)
