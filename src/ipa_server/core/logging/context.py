"""
Request Context and Logging Configuration State.

The request id lives in a ContextVar so that every log line emitted while
serving one request (including from threadpool workers, which copy the
context) carries the same id. Configuration state is module-level and
shared by the whole process.

Environment Variables:
    - IPA_SERVER_LOG_LEVEL: Log level (1-4 or name)
    - IPA_SERVER_LOG_DIR: Directory for the JSONL log file
    - IPA_SERVER_JSONL_FILE: JSONL log filename
    - IPA_SERVER_LOG_ROTATE_BYTES: Max file size before rotation
    - IPA_SERVER_LOG_ROTATE_BACKUP: Number of rotated files to keep
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

# "-" outside of a request
_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Get the request id of the current context, or "-"."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Set the request id for log correlation in the current context."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    """Current level as a name ("MINIMAL", "NORMAL", ...)."""
    return LEVEL_NAMES.get(int(_current_level), "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def _int_env(cfg: Dict[str, Any], key: str, env: str) -> None:
    value = os.getenv(env)
    if not value:
        return
    try:
        cfg[key] = int(value)
    except ValueError:
        pass  # ignore malformed override, keep file/default value


def read_logging_config() -> Dict[str, Any]:
    """
    Read the logging section from the settings file and apply env overrides.

    The settings file is read directly with PyYAML rather than through
    core.config so that logging can be configured before anything else
    is imported. A missing or unreadable file yields defaults.
    """
    cfg: Dict[str, Any] = {}

    settings_path = os.getenv("IPA_SERVER_SETTINGS", "config/settings.yaml")
    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        cfg.update(raw.get("logging", {}) or {})
    except (OSError, yaml.YAMLError):
        pass

    if os.getenv("IPA_SERVER_LOG_LEVEL"):
        cfg["level"] = os.environ["IPA_SERVER_LOG_LEVEL"]
    if os.getenv("IPA_SERVER_LOG_DIR"):
        cfg["log_dir"] = os.environ["IPA_SERVER_LOG_DIR"]
    if os.getenv("IPA_SERVER_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["IPA_SERVER_JSONL_FILE"]
    _int_env(cfg, "rotate_max_bytes", "IPA_SERVER_LOG_ROTATE_BYTES")
    _int_env(cfg, "rotate_backup_count", "IPA_SERVER_LOG_ROTATE_BACKUP")

    return cfg
