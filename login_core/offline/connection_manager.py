# =============================================================================
# login_core/offline/connection_manager.py
# Connectivity Detection and Monitoring
# =============================================================================
"""
ConnectivityMonitor - Detects and monitors internet/Supabase connectivity.

Features:
- Cached `is_online` flag for best-effort routing decisions
- Fresh `check_connectivity()` for decisions that must not lag (sign-in, sign-up)
- Background asyncio monitoring with status-dependent poll interval
- Edge-triggered `changed` event carrying the new online flag
"""

from __future__ import annotations
import asyncio
import socket
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple
import logging

import requests

from login_core.config import Settings, DEFAULT_CHECK_HOSTS
from .events import EventChannel

logger = logging.getLogger(__name__)


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"           # Internet + Supabase reachable
    OFFLINE = "offline"         # No connectivity
    DEGRADED = "degraded"       # Internet OK but Supabase unavailable or not configured
    UNKNOWN = "unknown"         # No check yet


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    internet_available: bool = False
    supabase_available: bool = False
    last_check: Optional[datetime] = None
    last_online: Optional[datetime] = None
    consecutive_failures: int = 0


StatusCheck = Callable[[], ConnectionStatus]


class ConnectivityMonitor:
    """
    Reachability monitor.

    Usage:
        monitor = ConnectivityMonitor(settings)
        monitor.changed.subscribe(on_change)     # called with True/False
        await monitor.check_connectivity_async()
        monitor.start_monitoring()
        if monitor.is_online:
            ...
    """

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        check_hosts: Sequence[Tuple[str, int]] = DEFAULT_CHECK_HOSTS,
        check_timeout: float = 5.0,
        check_interval_online: float = 30.0,
        check_interval_offline: float = 10.0,
        status_check: Optional[StatusCheck] = None,
    ):
        self.supabase_url = supabase_url
        self.check_hosts = tuple(check_hosts)
        self.check_timeout = check_timeout
        self.check_interval_online = check_interval_online
        self.check_interval_offline = check_interval_offline
        self._status_check = status_check or self._check_network

        self._state = ConnectionState()
        self._established = False
        self._monitor_task: Optional[asyncio.Task] = None
        self.changed: EventChannel[bool] = EventChannel("connectivity.changed")

    @classmethod
    def from_settings(cls, settings: Settings, status_check: Optional[StatusCheck] = None) -> ConnectivityMonitor:
        return cls(
            supabase_url=settings.supabase_url,
            check_hosts=settings.check_hosts,
            check_timeout=settings.check_timeout,
            check_interval_online=settings.check_interval_online,
            check_interval_offline=settings.check_interval_offline,
            status_check=status_check,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def is_online(self) -> bool:
        """Cached flag. May lag the real state by one poll interval."""
        return self._state.status == ConnectionStatus.ONLINE

    @property
    def is_monitoring(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()

    # =========================================================================
    # CHECKS
    # =========================================================================

    def check_connectivity(self) -> bool:
        """Run a fresh check (blocking) and return the online flag."""
        self._apply(self._safe_status_check())
        return self.is_online

    async def check_connectivity_async(self) -> bool:
        """Fresh check on a worker thread; state update and events on the loop."""
        status = await asyncio.to_thread(self._safe_status_check)
        self._apply(status)
        return self.is_online

    def _safe_status_check(self) -> ConnectionStatus:
        try:
            return self._status_check()
        except Exception as e:
            logger.debug(f"Connectivity check failed: {e}")
            return ConnectionStatus.OFFLINE

    def _apply(self, status: ConnectionStatus) -> None:
        was_online = self.is_online
        old_status = self._state.status
        now = datetime.now()

        self._state.status = status
        self._state.last_check = now
        self._state.internet_available = status in (ConnectionStatus.ONLINE, ConnectionStatus.DEGRADED)
        self._state.supabase_available = status == ConnectionStatus.ONLINE
        if status == ConnectionStatus.ONLINE:
            self._state.last_online = now
            self._state.consecutive_failures = 0
        else:
            self._state.consecutive_failures += 1

        if old_status != status:
            logger.info(f"Connection status changed: {old_status.value} -> {status.value}")

        if not self._established:
            # First check only establishes the baseline
            self._established = True
            return

        if was_online != self.is_online:
            self.changed.publish(self.is_online)

    def _check_network(self) -> ConnectionStatus:
        if not self._check_internet():
            return ConnectionStatus.OFFLINE
        if not self.supabase_url:
            # No remote configured: local-only mode
            return ConnectionStatus.DEGRADED
        if self._check_supabase():
            return ConnectionStatus.ONLINE
        return ConnectionStatus.DEGRADED

    def _check_internet(self) -> bool:
        """Try a TCP connect to well-known DNS resolvers."""
        for host, port in self.check_hosts:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.settimeout(self.check_timeout)
            try:
                if sock.connect_ex((host, port)) == 0:
                    return True
            except OSError:
                continue
            finally:
                sock.close()
        return False

    def _check_supabase(self) -> bool:
        """Any HTTP response from the project URL counts as reachable."""
        try:
            requests.head(self.supabase_url, timeout=self.check_timeout, allow_redirects=False)
            return True
        except requests.RequestException as e:
            logger.debug(f"Supabase check failed: {e}")
            return False

    # =========================================================================
    # MONITORING
    # =========================================================================

    def start_monitoring(self) -> None:
        """Start the background polling task on the running loop."""
        if self.is_monitoring:
            return
        self._monitor_task = asyncio.get_running_loop().create_task(
            self._monitoring_loop(), name="ConnectivityMonitor"
        )
        logger.debug("Connection monitoring started")

    async def stop_monitoring(self) -> None:
        task, self._monitor_task = self._monitor_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Connection monitoring stopped")

    async def _monitoring_loop(self) -> None:
        while True:
            interval = (
                self.check_interval_online
                if self.is_online
                else self.check_interval_offline
            )
            await asyncio.sleep(interval)
            try:
                await self.check_connectivity_async()
            except Exception as e:
                logger.error(f"Error in connection check: {e}")

    def force_offline(self) -> None:
        """Force offline mode (for testing or user preference)."""
        self._established = True
        was_online = self.is_online
        self._state.status = ConnectionStatus.OFFLINE
        self._state.internet_available = False
        self._state.supabase_available = False
        logger.info("Forced offline mode")
        if was_online:
            self.changed.publish(False)

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        return {
            "status": self._state.status.value,
            "is_online": self.is_online,
            "internet": self._state.internet_available,
            "supabase": self._state.supabase_available,
            "last_check": self._state.last_check.isoformat() if self._state.last_check else None,
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "failures": self._state.consecutive_failures,
        }
