#!/usr/bin/env python3
"""
Static configuration for the Aurora browser shell.

This file contains the compile-time tables the navigation engine relies on:
the internal scheme, the internal page mapping table, default settings and the
storage keys persisted by the shell's collaborators.
"""

from typing import Dict, Any, List

# Reserved prefix for built-in (non-networked) pages
INTERNAL_SCHEME = "aurora://"

HOME_URL = INTERNAL_SCHEME + "home"
DEFAULT_TAB_TITLE = "New Tab"

# Page name -> target. A target outside the internal scheme makes the page a
# mapped-external alias: the tab keeps showing the alias while the surface
# loads the mapped address.
INTERNAL_PAGE_MAPPINGS: Dict[str, str] = {
    "chat": "https://talkly-vcjh.onrender.com/",
    "post": "https://uni-post.onrender.com/",
    "home": INTERNAL_SCHEME + "home",
    "settings": INTERNAL_SCHEME + "settings",
    "history": INTERNAL_SCHEME + "history",
    "bookmarks": INTERNAL_SCHEME + "bookmarks",
    "extensions": INTERNAL_SCHEME + "extensions",
}

DEFAULT_SETTINGS: Dict[str, Any] = {
    "searchEngine": "https://www.google.com/search?q=%s",
    "theme": "dark",
    "showBookmarksBar": True,
    "performanceMode": False,
}

# Persisted keys owned by collaborators
SETTINGS_KEY = "aurora_settings"
VISIT_LOG_KEY = "aurora_history"
OFFLINE_PAGES_KEY = "aurora_offline_pages"

MAX_VISIT_LOG_ENTRIES = 1000

# Prefix the rewriting proxy puts in front of the encoded real address
PROXY_PATH_PREFIX = "/scramjet/"

BLANK_LOCATIONS: List[str] = ["", "about:blank"]

# Tab favicon markers used before a real icon is known
INTERNAL_FAVICON = "🌌"
WEB_FAVICON = "🌐"
OFFLINE_FAVICON = "💾"

# Capability permissions granted to every render surface at creation time
SURFACE_PERMISSIONS: List[str] = [
    "accelerometer",
    "autoplay",
    "clipboard-write",
    "encrypted-media",
    "gyroscope",
    "picture-in-picture",
    "web-share",
    "fullscreen",
    "camera",
    "microphone",
    "midi",
    "gamepad",
]
