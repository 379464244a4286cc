"""Dashboard configuration loading and validation.

Reads an optional ``pushboard.toml``, resolves ``${VAR}`` references against
the environment and returns a validated :class:`DashboardConfig`.

Database connection parameters are not part of the file; they come from
``DATABASE_URL`` / ``POSTGRES_*`` (see :class:`pushboard.db.ConnectionParams`).
"""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pushboard.analytics import parse_zone

# Environment variable pointing at the config file when --config is not given.
CONFIG_ENV_VAR = "PUSHBOARD_CONFIG"
DEFAULT_CONFIG_FILE = Path("pushboard.toml")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 40300
DEFAULT_CORS_ORIGINS: tuple[str, ...] = ("http://localhost:5173",)

# ${VAR_NAME} references; names are letters, digits and underscores.
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ConfigError(Exception):
    """Raised when dashboard configuration is missing, malformed, or invalid."""


@dataclass
class LoggingConfig:
    """Logging configuration from [dashboard.logging] section."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"
    log_root: str | None = None


@dataclass
class PushConfig:
    """Web push settings from [dashboard.push] section."""

    vapid_public_key: str | None = None


@dataclass
class DashboardConfig:
    """Parsed and validated dashboard configuration."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    static_dir: str | None = None
    default_range_days: int = 7
    timezone: str | None = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    push: PushConfig = field(default_factory=PushConfig)

    def display_zone(self, override: str | None = None) -> tzinfo | None:
        """Zone used for calendar days: *override*, else ``timezone``.

        None selects the process local zone. Raises ``ValueError`` for an
        unknown zone name.
        """
        return parse_zone(override or self.timezone)


def resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${VAR_NAME}`` references in config values.

    Walks dicts, lists, and strings.  Non-string leaf values (int, bool,
    float, None) are returned unchanged.

    Raises
    ------
    ConfigError
        If a referenced environment variable is not set.
    """
    if isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [resolve_env_vars(item) for item in value]

    if isinstance(value, str):
        return _resolve_string(value)

    return value


def _resolve_string(s: str) -> str:
    """Replace all ``${VAR_NAME}`` occurrences in *s* with env var values.

    Collects all missing variable names and reports them in a single error.
    """
    missing: list[str] = []

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            missing.append(var_name)
            return match.group(0)
        return env_value

    result = _ENV_VAR_PATTERN.sub(_replace, s)

    if missing:
        vars_str = ", ".join(missing)
        raise ConfigError(
            f"Unresolved environment variable(s) in config value: {vars_str} (original: {s!r})"
        )

    return result


def _parse_logging(section: Any) -> LoggingConfig:
    if not isinstance(section, dict):
        raise ConfigError("[dashboard.logging] must be a table")
    level = str(section.get("level", "INFO")).upper()
    fmt = str(section.get("format", "text")).lower()
    if fmt not in ("text", "json"):
        raise ConfigError(f"dashboard.logging.format must be 'text' or 'json', got {fmt!r}")
    log_root = section.get("log_root")
    return LoggingConfig(
        level=level,
        format=fmt,
        log_root=str(log_root) if log_root is not None else None,
    )


def _parse_push(section: Any) -> PushConfig:
    if not isinstance(section, dict):
        raise ConfigError("[dashboard.push] must be a table")
    key = section.get("vapid_public_key")
    if key is not None and not isinstance(key, str):
        raise ConfigError("dashboard.push.vapid_public_key must be a string when set")
    return PushConfig(vapid_public_key=key or None)


def parse_config(data: dict[str, Any]) -> DashboardConfig:
    """Validate an already-decoded TOML document."""
    data = resolve_env_vars(data)

    section = data.get("dashboard", {})
    if not isinstance(section, dict):
        raise ConfigError("[dashboard] must be a table")

    port = section.get("port", DEFAULT_PORT)
    if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
        raise ConfigError(f"dashboard.port must be an integer in 1..65535, got {port!r}")

    origins = section.get("cors_origins", list(DEFAULT_CORS_ORIGINS))
    if not isinstance(origins, list) or not all(isinstance(o, str) for o in origins):
        raise ConfigError("dashboard.cors_origins must be a list of strings")

    range_days = section.get("default_range_days", 7)
    if not isinstance(range_days, int) or isinstance(range_days, bool) or range_days < 0:
        raise ConfigError(
            f"dashboard.default_range_days must be a non-negative integer, got {range_days!r}"
        )

    tz_name = section.get("timezone")
    if tz_name is not None:
        try:
            ZoneInfo(str(tz_name))
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"Unknown dashboard.timezone: {tz_name!r}") from exc

    static_dir = section.get("static_dir")

    return DashboardConfig(
        host=str(section.get("host", DEFAULT_HOST)),
        port=port,
        cors_origins=list(origins),
        static_dir=str(static_dir) if static_dir is not None else None,
        default_range_days=range_days,
        timezone=str(tz_name) if tz_name is not None else None,
        logging=_parse_logging(section.get("logging", {})),
        push=_parse_push(section.get("push", {})),
    )


def load_config(path: Path | None = None) -> DashboardConfig:
    """Load and validate the dashboard config.

    Parameters
    ----------
    path:
        Explicit config file.  Falls back to ``$PUSHBOARD_CONFIG`` and then to
        ``./pushboard.toml``.  When no explicit path is given and the default
        file does not exist, built-in defaults are returned.

    Raises
    ------
    ConfigError
        If an explicitly requested file is missing, or any file contains
        invalid TOML or invalid values.
    """
    explicit = path is not None or CONFIG_ENV_VAR in os.environ
    if path is None:
        path = Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return DashboardConfig()

    raw_bytes = path.read_bytes()
    try:
        data = tomllib.loads(raw_bytes.decode())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    return parse_config(data)
