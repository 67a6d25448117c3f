# =============================================================================
# login_core/services/base_service.py
# Base Service Class with Common Functionality
# =============================================================================

from __future__ import annotations
from abc import ABC
from typing import Optional, Dict, Any, Callable
from dataclasses import dataclass

from login_core.logging import get_logger, LogContext
from login_core.errors import handle_error, LoginCoreError


@dataclass
class ServiceResult:
    """
    Standard result container for service operations.

    Provides consistent structure for all service method returns.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, data: Any = None, metadata: Dict[str, Any] = None, **kwargs) -> ServiceResult:
        """Create a successful result"""
        return cls(success=True, data=data, metadata=metadata, **kwargs)

    @classmethod
    def fail(
        cls,
        error: str,
        error_code: str = "UNKNOWN",
        metadata: Dict[str, Any] = None,
        **kwargs,
    ) -> ServiceResult:
        """Create a failed result"""
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            metadata=metadata,
            **kwargs,
        )

    @classmethod
    def from_exception(cls, e: Exception, **kwargs) -> ServiceResult:
        """Create a failed result from an exception"""
        if isinstance(e, LoginCoreError):
            return cls(
                success=False,
                error=e.message,
                error_code=e.code,
                metadata=e.details,
                **kwargs,
            )
        return cls(
            success=False,
            error=str(e),
            error_code="EXCEPTION",
            **kwargs,
        )

    @property
    def message(self) -> str:
        """User-facing message: the error on failure, metadata message on success."""
        if not self.success:
            return self.error or ""
        return (self.metadata or {}).get("message", "")


class BaseService(ABC):
    """
    Abstract base class for all services.

    Provides common functionality:
    - Logging
    - Error handling
    - Result standardization

    Usage:
        class MyService(BaseService):
            async def do_something(self) -> ServiceResult:
                with self.log_operation("Doing something"):
                    result = ...
                    return ServiceResult.ok(result)
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def log_operation(self, operation: str) -> LogContext:
        """
        Create a logging context for an operation.

        Usage:
            with self.log_operation("Uploading users"):
                await upload()
        """
        return LogContext(self.logger, operation)

    async def safe_execute(
        self,
        operation: str,
        func: Callable[..., Any],
        *args,
        **kwargs
    ) -> ServiceResult:
        """
        Await a coroutine function with error handling and logging.

        Args:
            operation: Description of the operation
            func: Coroutine function to execute
            *args, **kwargs: Arguments to pass to func

        Returns:
            ServiceResult with success/failure status
        """
        with self.log_operation(operation):
            try:
                result = await func(*args, **kwargs)
                return ServiceResult.ok(result)
            except LoginCoreError as e:
                handle_error(e)
                return ServiceResult.from_exception(e)
            except Exception as e:
                self.logger.error(f"{operation} failed: {e}", exc_info=True)
                return ServiceResult.fail(str(e))
