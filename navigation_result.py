"""
NavigationResult - Structured return type for navigation operations.

Provides consistent return type with outcome, resolved target and error info.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class NavigationStatus(str, Enum):
    """Outcome of one navigation attempt"""
    COMMITTED = "committed"            # live dispatch committed to the tab
    INTERNAL = "internal"              # internal page shown
    OFFLINE_SERVED = "offline_served"  # served from the offline cache
    CANCELLED = "cancelled"            # vetoed by an interceptor
    FAILED = "failed"                  # precondition or dispatch failure
    ABANDONED = "abandoned"            # tab closed while in flight
    IGNORED = "ignored"                # unknown tab, blank input or nothing to do


_SUCCESS = {NavigationStatus.COMMITTED, NavigationStatus.INTERNAL, NavigationStatus.OFFLINE_SERVED}


@dataclass
class NavigationResult:
    """
    Structured result for navigate(), go_back(), go_forward() and refresh().

    Attributes:
        status: What happened
        tab_id: Tab the navigation targeted
        input: Input as passed by the caller
        target: Address that was (or would have been) loaded
        display_url: Address the tab shows after a successful navigation
        error: Error message if the navigation failed
        metadata: Additional metadata about the operation

    Example:
        >>> result = await session.navigate("wikipedia.org")
        >>> if result:
        ...     print(f"Now showing {result.display_url}")
    """
    status: NavigationStatus
    tab_id: Optional[str] = None
    input: str = ""
    target: Optional[str] = None
    display_url: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status in _SUCCESS

    def __bool__(self) -> bool:
        """
        Allow truthiness check.

        Enables: if result: ...
        """
        return self.success

    def __repr__(self) -> str:
        """String representation for debugging"""
        status = "✅" if self.success else "❌"
        error_info = f", error='{self.error}'" if self.error else ""
        return f"NavigationResult({status} {self.status.value}, target='{self.target}'{error_info})"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for serialization.

        Returns:
            Dict containing all result fields
        """
        return {
            "status": self.status.value,
            "success": self.success,
            "tab_id": self.tab_id,
            "input": self.input,
            "target": self.target,
            "display_url": self.display_url,
            "error": self.error,
            "metadata": self.metadata,
        }
