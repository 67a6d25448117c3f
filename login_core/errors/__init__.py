# =============================================================================
# login_core/errors/__init__.py
# Centralized Error Handling for the Login Core
# =============================================================================

from .exceptions import (
    LoginCoreError,
    StorageError,
    ConflictError,
    RemoteStoreError,
    RemoteUnavailable,
    RemoteAuthError,
    RemoteAuthorizationError,
    ValidationError,
    InvalidCredentialsError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    ErrorContext,
)

__all__ = [
    # Exceptions
    "LoginCoreError",
    "StorageError",
    "ConflictError",
    "RemoteStoreError",
    "RemoteUnavailable",
    "RemoteAuthError",
    "RemoteAuthorizationError",
    "ValidationError",
    "InvalidCredentialsError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "ErrorContext",
]
