"""
ErrorHandler snackbars and the ErrorBoundary around gateway calls.
"""

import pytest

import voxen.error_handler as error_module
from voxen.error_handler import (
    ErrorBoundary,
    ErrorHandler,
    Notice,
    ValidationError,
    handle_error,
    init_error_handler,
    show_success,
)
from voxen.gateway import GatewayError


@pytest.fixture
def reset_global():
    yield
    error_module._error_handler = None


class TestErrorHandler:
    def test_without_page_only_logs(self):
        handler = ErrorHandler(None)
        message = handler.handle_api_error(GatewayError("boom"), "test", "Failed to load")
        assert message == "Failed to load: Please try again"
        assert handler.error_count == 1

    def test_snackbar_goes_on_overlay(self, handler, page, snacks):
        handler.show_success_snackbar("Saved")
        assert snacks() == ["Saved"]
        assert page.overlay[0].open
        page.update.assert_called()

    def test_keeps_last_ten_errors(self, handler):
        for i in range(12):
            handler.log_error(ValueError(f"error {i}"), "loop")

        assert handler.error_count == 12
        assert len(handler.last_errors) == 10
        assert handler.last_errors[0]["message"] == "error 2"

        summary = handler.get_error_summary()
        assert summary["total_errors"] == 12
        assert len(summary["recent_errors"]) == 5
        assert summary["error_types"] == ["ValueError"]

    def test_gateway_detail_stays_out_of_the_notice(self, handler, snacks):
        handler.handle_api_error(GatewayError("row 42 violates constraint"), "create")
        assert snacks() == ["Something went wrong: Please try again"]
        assert "row 42" in handler.last_errors[0]["message"]

    def test_validation_message(self, handler, snacks):
        handler.show_validation_error(ValidationError("File too large", "Files must be under 600 MB"))
        handler.show_validation_error(ValidationError("Name required"))
        assert snacks() == ["File too large: Files must be under 600 MB", "Name required"]


class TestErrorBoundary:
    @pytest.mark.asyncio
    async def test_success_passes_result_through(self, boundary, snacks):
        async def action():
            return 42

        assert await boundary.run(action, context="ok") == (True, 42)
        assert snacks() == []

    @pytest.mark.asyncio
    async def test_validation_error_is_not_logged_as_failure(self, boundary, handler, snacks):
        async def action():
            raise ValidationError("Server name required", "Please enter a server name")

        ok, result = await boundary.run(action, context="create", failure=Notice("Failed to create server"))

        assert (ok, result) == (False, None)
        assert handler.error_count == 0
        assert snacks() == ["Server name required: Please enter a server name"]

    @pytest.mark.asyncio
    async def test_failure_uses_notice_title(self, boundary, handler, snacks):
        async def action():
            raise GatewayError("connection reset", status_code=503)

        ok, _ = await boundary.run(action, context="send", failure=Notice("Failed to send message"))

        assert not ok
        assert handler.error_count == 1
        assert snacks() == ["Failed to send message: Please try again"]

    @pytest.mark.asyncio
    async def test_silent_failure_still_logs(self, boundary, handler, snacks):
        async def action():
            raise RuntimeError("offline")

        ok, _ = await boundary.run(action, context="load", notify=False)

        assert not ok
        assert handler.error_count == 1
        assert snacks() == []


class TestGlobalHelpers:
    def test_helpers_use_initialized_handler(self, page, snacks, reset_global):
        handler = init_error_handler(page)

        show_success("Done")
        message = handle_error(RuntimeError("x"), "ctx")

        assert error_module.get_error_handler() is handler
        assert message == "Something went wrong: Please try again"
        assert snacks() == ["Done", message]

    def test_helpers_without_handler(self, reset_global):
        error_module._error_handler = None
        assert handle_error(RuntimeError("plain"), "ctx") == "plain"
        show_success("nobody listening")


class TestBoundaryWithoutPage:
    @pytest.mark.asyncio
    async def test_runs_headless(self):
        boundary = ErrorBoundary(ErrorHandler())

        async def action():
            raise GatewayError("down")

        assert await boundary.run(action, context="headless") == (False, None)
