"""
Unit tests for the error taxonomy and ErrorHandler.
"""

from error_handling import (
    CrossOriginBlocked,
    ErrorHandler,
    ErrorSeverity,
    NavigationCancelled,
    PreconditionFailed,
    RecoveryStrategy,
    ResolutionAmbiguous,
    ShellError,
)


class TestShellErrors:
    """Test suite for ShellError subclasses"""

    def test_context_defaults_from_class(self):
        error = PreconditionFailed("proxy unreachable", tab_id="tab_1", url="https://a.test/")

        assert isinstance(error, ShellError)
        assert error.context.error_type == "PreconditionFailed"
        assert error.context.tab_id == "tab_1"
        assert error.context.url == "https://a.test/"
        assert str(error) == "proxy unreachable"
        assert error.severity == ErrorSeverity.HIGH

    def test_unknown_overrides_are_ignored(self):
        error = NavigationCancelled("blocked", not_a_field=1)

        assert not hasattr(error.context, "not_a_field")

    def test_recovery_strategies(self):
        assert ResolutionAmbiguous("x").recovery_strategy == RecoveryStrategy.FALLBACK
        assert CrossOriginBlocked("x").recovery_strategy == RecoveryStrategy.IGNORE
        assert NavigationCancelled("x").recovery_strategy == RecoveryStrategy.SKIP


class TestErrorHandler:
    """Test suite for ErrorHandler"""

    def test_records_shell_errors(self):
        handler = ErrorHandler()

        strategy = handler.handle_error(PreconditionFailed("down"), tab_id="tab_1", url="https://a.test/")

        assert strategy == RecoveryStrategy.ABORT
        recorded = handler.errors[-1]
        assert recorded.tab_id == "tab_1"
        assert recorded.url == "https://a.test/"

    def test_plain_exceptions_abort(self):
        handler = ErrorHandler()

        try:
            raise ValueError("bad value")
        except ValueError as e:
            strategy = handler.handle_error(e)

        assert strategy == RecoveryStrategy.ABORT
        assert handler.errors[-1].error_type == "ValueError"
        assert "bad value" in handler.errors[-1].traceback

    def test_summary_counts_by_type(self):
        handler = ErrorHandler()
        handler.handle_error(NavigationCancelled("a"))
        handler.handle_error(NavigationCancelled("b"))
        handler.handle_error(PreconditionFailed("c"))

        summary = handler.get_error_summary()

        assert summary["total_errors"] == 3
        assert summary["error_counts"] == {"NavigationCancelled": 2, "PreconditionFailed": 1}
        assert summary["recent_errors"][-1]["message"] == "c"

    def test_history_is_capped(self):
        handler = ErrorHandler(max_errors=2)
        for index in range(4):
            handler.handle_error(NavigationCancelled(str(index)))

        assert [e.message for e in handler.errors] == ["2", "3"]

        handler.clear_errors()
        assert handler.errors == []

    def test_lookup_by_tab(self):
        handler = ErrorHandler()
        handler.handle_error(PreconditionFailed("a"), tab_id="tab_1")
        handler.handle_error(NavigationCancelled("b"), tab_id="tab_2")
        handler.handle_error(NavigationCancelled("c"), tab_id="tab_1")

        assert [e.message for e in handler.errors_for("tab_1")] == ["a", "c"]
        assert handler.last_error("tab_2").message == "b"
        assert handler.last_error().message == "c"
        assert handler.last_error("tab_9") is None
        assert handler.get_error_summary()["by_tab"] == {"tab_1": 2, "tab_2": 1}
