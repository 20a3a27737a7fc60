"""
Error handling utilities for the Voxen client.
Provides centralized error logging, the gateway-call failure boundary and snackbar feedback.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

import flet as ft

logger = logging.getLogger("voxen.errors")

R = TypeVar("R")

GENERIC_FAILURE = "Please try again"


class ValidationError(Exception):
    """Rejected before any gateway call; carries a user-facing title and description"""

    def __init__(self, title: str, description: str = ""):
        super().__init__(f"{title}: {description}" if description else title)
        self.title = title
        self.description = description


@dataclass
class Notice:
    title: str
    description: str = GENERIC_FAILURE


class ErrorHandler:
    """Centralized error handler for the application"""

    MAX_RECENT = 10

    def __init__(self, page: Optional[ft.Page] = None):
        self.page = page
        self.error_count = 0
        self.last_errors = []  # Keep track of recent errors

    def log_error(self, error: Exception, context: str = ""):
        """Log error with context and timestamp"""
        error_info = {
            "timestamp": datetime.now().isoformat(),
            "context": context,
            "type": type(error).__name__,
            "message": str(error),
            "traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }

        self.last_errors.append(error_info)
        if len(self.last_errors) > self.MAX_RECENT:
            self.last_errors.pop(0)

        self.error_count += 1
        logger.error(f"[ERROR] {context}: {type(error).__name__}: {error}", exc_info=error)

    def _show_snackbar(self, message: str, icon: str, bgcolor: str, duration: int):
        if self.page is None:
            logger.info(f"[NOTICE] {message}")
            return
        snack = ft.SnackBar(
            content=ft.Row([
                ft.Icon(icon, color=ft.Colors.WHITE, size=20),
                ft.Text(message, color=ft.Colors.WHITE, size=14)
            ], spacing=8),
            bgcolor=bgcolor,
            duration=duration
        )
        self.page.overlay.append(snack)
        snack.open = True
        self.page.update()

    def show_error_snackbar(self, message: str, duration: int = 3000):
        """Show error message as snackbar"""
        self._show_snackbar(message, ft.Icons.ERROR_OUTLINE, ft.Colors.RED_600, duration)

    def show_success_snackbar(self, message: str, duration: int = 2000):
        """Show success message as snackbar"""
        self._show_snackbar(message, ft.Icons.CHECK_CIRCLE, ft.Colors.GREEN_600, duration)

    def show_info_snackbar(self, message: str, duration: int = 2000):
        """Show info message as snackbar"""
        self._show_snackbar(message, ft.Icons.INFO_OUTLINE, ft.Colors.BLUE_600, duration)

    def show_validation_error(self, error: ValidationError):
        logger.info(f"[VALIDATION] {error}")
        message = f"{error.title}: {error.description}" if error.description else error.title
        self.show_error_snackbar(message)

    def handle_api_error(self, error: Exception, context: str = "", title: str = "Something went wrong") -> str:
        """Log a gateway failure and surface the generic message.

        All gateway failures collapse to one notice; the detail only goes to the log.
        """
        self.log_error(error, context)
        message = f"{title}: {GENERIC_FAILURE}"
        self.show_error_snackbar(message)
        return message

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of recent errors for debugging"""
        return {
            "total_errors": self.error_count,
            "recent_errors": self.last_errors[-5:],
            "error_types": sorted(set(err["type"] for err in self.last_errors))
        }


class ErrorBoundary:
    """Wraps every gateway call: logs, notifies, never retries, never re-raises"""

    def __init__(self, handler: ErrorHandler):
        self.handler = handler

    async def run(self, action: Callable[[], Awaitable[R]], *, context: str,
                  failure: Optional[Notice] = None, notify: bool = True) -> Tuple[bool, Optional[R]]:
        try:
            return True, await action()
        except ValidationError as e:
            if notify:
                self.handler.show_validation_error(e)
            return False, None
        except Exception as e:
            notice = failure or Notice("Something went wrong")
            if notify:
                self.handler.handle_api_error(e, context, notice.title)
            else:
                self.handler.log_error(e, context)
            return False, None

    def success(self, message: str):
        self.handler.show_success_snackbar(message)


# Global error handler instance
_error_handler: Optional[ErrorHandler] = None


def init_error_handler(page: Optional[ft.Page]) -> ErrorHandler:
    """Initialize the global error handler"""
    global _error_handler
    _error_handler = ErrorHandler(page)
    return _error_handler


def get_error_handler() -> Optional[ErrorHandler]:
    """Get the global error handler"""
    return _error_handler


def handle_error(error: Exception, context: str = "") -> str:
    """Convenience function to handle errors"""
    if _error_handler:
        return _error_handler.handle_api_error(error, context)
    logger.error(f"[ERROR] {context}: {error}")
    return str(error)


def show_success(message: str, duration: int = 2000):
    """Convenience function to show success message"""
    if _error_handler:
        _error_handler.show_success_snackbar(message, duration)


def show_info(message: str, duration: int = 2000):
    """Convenience function to show info message"""
    if _error_handler:
        _error_handler.show_info_snackbar(message, duration)
