"""
Tab Management

Provides the tab model and the registry that owns tab lifecycle for the shell.
"""
from .tab_info import ChromeState, NavState, Tab
from .tab_manager import PERFORMANCE_MODE_NOTICE, TabRegistry

__all__ = ["Tab", "NavState", "ChromeState", "TabRegistry", "PERFORMANCE_MODE_NOTICE"]
