# =============================================================================
# login_core/config/settings.py
# Application Settings (TOML file + environment overrides)
# =============================================================================
"""
Settings loader.

Expected settings.toml format:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [local]
    db_path = "local_data/security.db"

    [connectivity]
    check_timeout = 5
    check_interval_online = 30
    check_interval_offline = 10

    [remote]
    timeout = 10

    [logging]
    level = "INFO"
    log_to_file = true

Environment variables SUPABASE_URL, SUPABASE_KEY, LOGIN_DB_PATH and
LOGIN_LOG_LEVEL take precedence over the file.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import toml

from login_core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path("config") / "settings.toml"
DEFAULT_DB_PATH = Path("local_data") / "security.db"

DEFAULT_CHECK_HOSTS: Tuple[Tuple[str, int], ...] = (
    ("8.8.8.8", 53),        # Google DNS
    ("1.1.1.1", 53),        # Cloudflare DNS
    ("208.67.222.222", 53), # OpenDNS
)


@dataclass
class Settings:
    """Runtime configuration for the login core."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    db_path: Path = DEFAULT_DB_PATH
    check_hosts: Tuple[Tuple[str, int], ...] = DEFAULT_CHECK_HOSTS
    check_timeout: float = 5.0
    check_interval_online: float = 30.0
    check_interval_offline: float = 10.0
    remote_timeout: float = 10.0
    log_level: int = logging.INFO
    log_to_file: bool = True

    @property
    def remote_configured(self) -> bool:
        """Whether Supabase credentials are available."""
        return bool(self.supabase_url and self.supabase_key)


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ConfigurationError(f"Section [{name}] must be a table", config_key=name)
    return value


def _number(section: Dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"'{key}' must be a number", config_key=key)
    if number <= 0:
        raise ConfigurationError(f"'{key}' must be positive", config_key=key)
    return number


def _log_level(value: Any) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {value}", config_key="logging.level")
    return level


def load_settings(path: Optional[Path] = None, env: Optional[Dict[str, str]] = None) -> Settings:
    """
    Load settings from a TOML file with environment overrides.

    Args:
        path: Settings file (default: config/settings.toml). A missing file
            means defaults.
        env: Environment mapping (default: os.environ)

    Returns:
        Settings instance

    Raises:
        ConfigurationError: if the file cannot be parsed or holds invalid values
    """
    env = os.environ if env is None else env
    settings_path = Path(path) if path else DEFAULT_SETTINGS_PATH

    data: Dict[str, Any] = {}
    if settings_path.exists():
        try:
            data = toml.load(settings_path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigurationError(
                f"Could not read settings file {settings_path}: {e}",
                config_key=str(settings_path),
            )
        logger.debug(f"Loaded settings from {settings_path}")
    else:
        logger.debug(f"No settings file at {settings_path}, using defaults")

    supabase = _section(data, "supabase")
    local = _section(data, "local")
    connectivity = _section(data, "connectivity")
    remote = _section(data, "remote")
    logging_section = _section(data, "logging")

    db_path = env.get("LOGIN_DB_PATH") or local.get("db_path") or DEFAULT_DB_PATH

    return Settings(
        supabase_url=env.get("SUPABASE_URL") or supabase.get("url"),
        supabase_key=env.get("SUPABASE_KEY") or supabase.get("key"),
        db_path=Path(db_path),
        check_timeout=_number(connectivity, "check_timeout", 5.0),
        check_interval_online=_number(connectivity, "check_interval_online", 30.0),
        check_interval_offline=_number(connectivity, "check_interval_offline", 10.0),
        remote_timeout=_number(remote, "timeout", 10.0),
        log_level=_log_level(env.get("LOGIN_LOG_LEVEL") or logging_section.get("level", "INFO")),
        log_to_file=bool(logging_section.get("log_to_file", True)),
    )
