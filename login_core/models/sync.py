# =============================================================================
# login_core/models/sync.py
# Sync Run Value Objects
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class SyncState(Enum):
    """Lifecycle of one SyncService instance."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SyncOperationResult:
    """Outcome of a single directional pass."""
    name: str
    success: bool = True
    count: int = 0
    error_message: Optional[str] = None

    @classmethod
    def failed(cls, name: str, error_message: str) -> SyncOperationResult:
        return cls(name=name, success=False, error_message=error_message)


@dataclass
class SyncProgress:
    """Progress notification fired before each pass."""
    message: str
    current: int
    total: int

    @property
    def percentage(self) -> int:
        return int(self.current * 100 / self.total) if self.total else 0


@dataclass
class SyncResult:
    """Aggregated outcome of one sync run. Never persisted."""
    success: bool = False
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    users_uploaded: int = 0
    users_downloaded: int = 0
    roles_uploaded: int = 0
    roles_downloaded: int = 0
    error_message: Optional[str] = None
    passes: List[SyncOperationResult] = field(default_factory=list)

    @property
    def duration(self) -> float:
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    @property
    def total_synced(self) -> int:
        return (
            self.users_uploaded + self.users_downloaded
            + self.roles_uploaded + self.roles_downloaded
        )

    @classmethod
    def rejected(cls, error_message: str) -> SyncResult:
        """Result for a run that never started (offline, already running)."""
        now = datetime.now()
        return cls(success=False, start_time=now, end_time=now, error_message=error_message)

    def summary(self) -> str:
        if not self.success:
            return f"Sync failed: {self.error_message or 'unknown error'}"
        return (
            f"Users: {self.users_uploaded} uploaded, {self.users_downloaded} downloaded; "
            f"Roles: {self.roles_uploaded} uploaded, {self.roles_downloaded} downloaded"
        )
