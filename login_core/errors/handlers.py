# =============================================================================
# login_core/errors/handlers.py
# Error Handling Utilities for the Login Core
# =============================================================================

from __future__ import annotations
import traceback
from typing import Optional

from login_core.logging import get_logger
from .exceptions import LoginCoreError

logger = get_logger(__name__)


def handle_error(
    error: Exception,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> str:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        log_error: Whether to log the error
        user_message: Custom message for the user (uses error message if None)

    Returns:
        The message that should be shown to the user
    """
    if isinstance(error, LoginCoreError):
        message = user_message or error.message
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        message = user_message or str(error)
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    if log_error:
        logger.error(
            f"[{code}] {message}",
            extra={"details": details},
            exc_info=error,
        )

    if not recoverable:
        return f"Critical Error: {message}. Please contact support."
    return message


class ErrorContext:
    """
    Context manager for error handling with automatic logging.

    Recoverable errors are logged and suppressed, which makes it suitable
    around fire-and-forget background work.

    Usage:
        with ErrorContext("Startup sync"):
            await sync_service.sync_if_pending()
    """

    def __init__(self, operation: str, recoverable: bool = True):
        self.operation = operation
        self.recoverable = recoverable
        self.error: Optional[BaseException] = None

    def __enter__(self) -> ErrorContext:
        logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            logger.info(f"Completed: {self.operation}")
            return False

        if not issubclass(exc_type, Exception):
            return False

        self.error = exc_val
        handle_error(exc_val, user_message=f"Error during: {self.operation}")

        if isinstance(exc_val, LoginCoreError) and not exc_val.recoverable:
            return False
        return self.recoverable
