"""
Structured error handling for the Aurora browser shell.

Provides the navigation error taxonomy, error context, and an error recorder.
None of these errors is fatal to the process: the engine records them and
keeps the tab at its last committed state.
"""
from __future__ import annotations

import traceback as traceback_module
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(Enum):
    """How much of the shell an error affects."""
    LOW = "low"            # cosmetic, nothing to report to the user
    MEDIUM = "medium"
    HIGH = "high"          # the navigation did not happen
    CRITICAL = "critical"  # the shell cannot start as configured


class RecoveryStrategy(Enum):
    """What the engine does after recording an error."""
    SKIP = "skip"          # drop the event, keep the tab as it is
    ABORT = "abort"        # stop the navigation, tab stays at its last commit
    FALLBACK = "fallback"  # continue down the next path (search, live network)
    IGNORE = "ignore"      # treat as "nothing known"


@dataclass
class ErrorContext:
    """
    What was known when an error was recorded.

    ``tab_id`` and ``url`` are filled in by whoever raises the error or by the
    ErrorHandler when it records one.
    """

    error_type: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    tab_id: Optional[str] = None
    url: Optional[str] = None
    traceback: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class ShellError(Exception):
    """
    Base class of the navigation error taxonomy.

    Keyword arguments naming an ErrorContext field (``tab_id``, ``url``,
    ``metadata``) are copied onto the context; anything else is ignored.
    """

    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    recovery_strategy: RecoveryStrategy = RecoveryStrategy.ABORT

    def __init__(self, message: str, context: Optional[ErrorContext] = None, **fields):
        super().__init__(message)
        self.message = message
        if context is None:
            context = ErrorContext(error_type=type(self).__name__, message=message)
        for name, value in fields.items():
            if name in ErrorContext.__dataclass_fields__:
                setattr(context, name, value)
        self.context = context


class ResolutionAmbiguous(ShellError):
    """Input could only be classified as a search query. Used as a fallback marker, never raised to callers."""
    severity = ErrorSeverity.LOW
    recovery_strategy = RecoveryStrategy.FALLBACK


class NavigationCancelled(ShellError):
    """An interceptor vetoed the navigation."""
    severity = ErrorSeverity.LOW
    recovery_strategy = RecoveryStrategy.SKIP


class PreconditionFailed(ShellError):
    """Service registration or transport configuration failed."""
    severity = ErrorSeverity.HIGH
    recovery_strategy = RecoveryStrategy.ABORT


class CrossOriginBlocked(ShellError):
    """Introspection of the render surface was refused."""
    severity = ErrorSeverity.LOW
    recovery_strategy = RecoveryStrategy.IGNORE


class SurfaceLoadFailed(ShellError):
    """The render surface reported a load error."""
    severity = ErrorSeverity.HIGH
    recovery_strategy = RecoveryStrategy.SKIP


class OfflineCacheError(ShellError):
    """The offline cache could not be read or written."""
    severity = ErrorSeverity.MEDIUM
    recovery_strategy = RecoveryStrategy.FALLBACK


class ConfigurationError(ShellError):
    """Invalid configuration."""
    severity = ErrorSeverity.CRITICAL
    recovery_strategy = RecoveryStrategy.ABORT


@dataclass
class ErrorHandler:
    """
    Bounded record of every error the shell has seen, newest last.
    """

    max_errors: int = 200
    errors: List[ErrorContext] = field(default_factory=list)

    def handle_error(
        self,
        error: Exception,
        tab_id: Optional[str] = None,
        url: Optional[str] = None,
    ) -> RecoveryStrategy:
        """
        Record an error and determine its recovery strategy.

        Args:
            error: The exception that occurred
            tab_id: Tab the failed operation belonged to
            url: Target of the failed operation

        Returns:
            The error's RecoveryStrategy (ABORT for exceptions outside the taxonomy)
        """
        if isinstance(error, ShellError):
            context = error.context
            strategy = error.recovery_strategy
        else:
            context = ErrorContext(error_type=type(error).__name__, message=str(error))
            strategy = RecoveryStrategy.ABORT

        context.tab_id = tab_id if tab_id is not None else context.tab_id
        context.url = url if url is not None else context.url
        if context.traceback is None and error.__traceback__ is not None:
            context.traceback = "".join(traceback_module.format_exception(type(error), error, error.__traceback__))

        self.errors.append(context)
        del self.errors[:-self.max_errors]
        return strategy

    def errors_for(self, tab_id: str) -> List[ErrorContext]:
        return [context for context in self.errors if context.tab_id == tab_id]

    def last_error(self, tab_id: Optional[str] = None) -> Optional[ErrorContext]:
        errors = self.errors if tab_id is None else self.errors_for(tab_id)
        return errors[-1] if errors else None

    def get_error_summary(self) -> Dict[str, Any]:
        return {
            'total_errors': len(self.errors),
            'error_counts': dict(Counter(context.error_type for context in self.errors)),
            'by_tab': dict(Counter(context.tab_id for context in self.errors if context.tab_id)),
            'recent_errors': [context.to_dict() for context in self.errors[-5:]],
        }

    def clear_errors(self) -> None:
        self.errors.clear()
