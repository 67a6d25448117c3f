# =============================================================================
# login_core/errors/exceptions.py
# Custom Exception Hierarchy for the Login Core
# =============================================================================

from typing import Optional, Dict, Any


class LoginCoreError(Exception):
    """
    Base exception for all login core errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "STORE_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "LC_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# LOCAL STORE EXCEPTIONS
# =============================================================================

class StorageError(LoginCoreError):
    """Raised when the local database fails (I/O, schema, driver errors)"""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            code=kwargs.pop("code", "STORE_001"),
            details=details,
            **kwargs,
        )


class ConflictError(LoginCoreError):
    """Raised on unique constraint violations (duplicate email, role name)"""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        field: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if field:
            details["field"] = field

        super().__init__(
            message=message,
            code="STORE_002",
            details=details,
            **kwargs,
        )


# =============================================================================
# REMOTE STORE EXCEPTIONS
# =============================================================================

class RemoteStoreError(LoginCoreError):
    """Raised when the remote backing service rejects an operation"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            code=kwargs.pop("code", "REMOTE_000"),
            details=details,
            **kwargs,
        )


class RemoteUnavailable(RemoteStoreError):
    """Raised when the remote service is unreachable or times out"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code="REMOTE_001", **kwargs)


class RemoteAuthError(RemoteStoreError):
    """
    Raised on authentication failures: wrong password, unknown or disabled
    account, account already exists.
    """

    ALREADY_EXISTS = "already_exists"
    INVALID_CREDENTIALS = "invalid_credentials"
    USER_NOT_FOUND = "user_not_found"
    WEAK_PASSWORD = "weak_password"
    DISABLED = "disabled"
    UNKNOWN = "unknown"

    def __init__(self, message: str, reason: str = UNKNOWN, **kwargs):
        details = kwargs.pop("details", {})
        details["reason"] = reason
        super().__init__(message, code="REMOTE_002", details=details, **kwargs)
        self.reason = reason

    @property
    def account_exists(self) -> bool:
        return self.reason == self.ALREADY_EXISTS


class RemoteAuthorizationError(RemoteStoreError):
    """Raised when an authenticated call is not allowed (missing/expired token, row security)"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code="REMOTE_003", **kwargs)


# =============================================================================
# INPUT / AUTHENTICATION EXCEPTIONS
# =============================================================================

class ValidationError(LoginCoreError):
    """Raised when user input fails validation before any storage call"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field

        super().__init__(
            message=message,
            code="VALID_001",
            details=details,
            **kwargs,
        )
        self.field = field


class InvalidCredentialsError(LoginCoreError):
    """Raised when neither store accepts the supplied credentials"""

    def __init__(self, message: str = "Invalid email or password.", **kwargs):
        super().__init__(message=message, code="AUTH_001", **kwargs)


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(LoginCoreError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
