# =============================================================================
# login_core/models/results.py
# Registration and Password Change Results
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from login_core.services.base_service import ServiceResult


class RegistrationMode(Enum):
    """Where a new account ended up."""
    REMOTE = "remote"
    LOCAL_ONLY = "local_only"
    FAILED = "failed"


@dataclass
class RegistrationResult(ServiceResult):
    """Registration outcome. `data` carries the stored UserRecord."""
    mode: RegistrationMode = RegistrationMode.FAILED

    @property
    def is_offline(self) -> bool:
        return self.mode == RegistrationMode.LOCAL_ONLY


@dataclass
class PasswordChangeResult(ServiceResult):
    """Password change or reconciliation outcome."""
    is_offline_change: bool = False

    @classmethod
    def online_success(cls, message: str = "Password changed successfully.") -> PasswordChangeResult:
        return cls.ok(metadata={"message": message})

    @classmethod
    def offline_success(cls, message: Optional[str] = None) -> PasswordChangeResult:
        return cls.ok(
            metadata={"message": message or "Password changed locally. It will be synced when you are back online."},
            is_offline_change=True,
        )

    @classmethod
    def failure(cls, error: str, error_code: str = "PASSWORD_CHANGE_FAILED") -> PasswordChangeResult:
        return cls.fail(error, error_code=error_code)
