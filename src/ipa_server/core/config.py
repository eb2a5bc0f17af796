"""
Configuration Management for ipa-server.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration objects
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (AWS_REGION, IPA_SERVER_RATE_LIMIT, etc.)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

Example settings.yaml:
    provider:
      region: eu-west-2
      output_format: ogg_vorbis

    rate_limit:
      per_hour: 100

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List
import os
import yaml


DEFAULT_SETTINGS_PATH = "config/settings.yaml"


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    This exception is thrown when a configuration value is outside
    acceptable bounds or of the wrong type.
    """
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Provider: Polly region, engine tier, audio format, timeouts
        - IPA: Accepted transcription length
        - Rate limit: Per-client hourly quota
        - CORS: Trusted origin prefixes
        - Logging: Log level
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Provider (Amazon Polly)
    # ─────────────────────────────────────────────────────────────────────────
    PROVIDER_REGION = "eu-west-2"
    PROVIDER_ENGINE = "standard"            # Only the baseline tier is supported
    PROVIDER_OUTPUT_FORMAT = "ogg_vorbis"   # Compressed, streams well in browsers
    PROVIDER_CONNECT_TIMEOUT_S = 5.0
    PROVIDER_READ_TIMEOUT_S = 30.0
    PROVIDER_MAX_ATTEMPTS = 2
    PROVIDER_CHUNK_SIZE = 4096              # Bytes per relayed audio chunk

    # ─────────────────────────────────────────────────────────────────────────
    # IPA input bounds (inclusive, in characters)
    # ─────────────────────────────────────────────────────────────────────────
    IPA_MIN_LENGTH = 1
    IPA_MAX_LENGTH = 50

    # ─────────────────────────────────────────────────────────────────────────
    # Rate limiting
    # ─────────────────────────────────────────────────────────────────────────
    RATE_LIMIT_ENABLED = True
    RATE_LIMIT_PER_HOUR = 100
    RATE_LIMIT_WINDOW_SECONDS = 3600
    RATE_LIMIT_IP_HEADER = "X-Real-IP"
    RATE_LIMIT_MAX_CLIENTS = 10000          # Sweep threshold for expired windows

    # ─────────────────────────────────────────────────────────────────────────
    # CORS
    # ─────────────────────────────────────────────────────────────────────────
    CORS_TRUSTED_ORIGIN_PREFIXES = ("chrome-extension://",)

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_LEVEL = 2                       # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


@dataclass
class ProviderConfig:
    """
    Amazon Polly client configuration.

    Credentials are not configured here; boto3 resolves them through its
    usual chain (environment, shared config, instance role).
    """
    region: str = Defaults.PROVIDER_REGION
    engine: str = Defaults.PROVIDER_ENGINE
    output_format: str = Defaults.PROVIDER_OUTPUT_FORMAT
    connect_timeout_s: float = Defaults.PROVIDER_CONNECT_TIMEOUT_S
    read_timeout_s: float = Defaults.PROVIDER_READ_TIMEOUT_S
    max_attempts: int = Defaults.PROVIDER_MAX_ATTEMPTS
    chunk_size: int = Defaults.PROVIDER_CHUNK_SIZE


@dataclass
class IPAConfig:
    """Inclusive length bounds for submitted transcriptions."""
    min_length: int = Defaults.IPA_MIN_LENGTH
    max_length: int = Defaults.IPA_MAX_LENGTH


@dataclass
class RateLimitConfig:
    """
    Per-client rate limiting configuration.

    Clients are identified by the value of ip_header when present
    (set by a reverse proxy), otherwise by the socket peer address.
    """
    enabled: bool = Defaults.RATE_LIMIT_ENABLED
    per_hour: int = Defaults.RATE_LIMIT_PER_HOUR
    window_seconds: int = Defaults.RATE_LIMIT_WINDOW_SECONDS
    ip_header: str = Defaults.RATE_LIMIT_IP_HEADER
    max_clients: int = Defaults.RATE_LIMIT_MAX_CLIENTS


@dataclass
class CorsConfig:
    """Origins starting with one of these prefixes are echoed back."""
    trusted_origin_prefixes: List[str] = field(
        default_factory=lambda: list(Defaults.CORS_TRUSTED_ORIGIN_PREFIXES)
    )


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, critical errors only
        2 = NORMAL: Request lifecycle (default)
        3 = VERBOSE: Detailed flow
        4 = DEBUG: Internal state, full tracing
    """
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class ServiceConfig:
    """
    Validated configuration for the speech service and HTTP layer.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = ServiceConfig.from_settings(settings)
        print(config.rate_limit.per_hour)  # Typed access
    """
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    ipa: IPAConfig = field(default_factory=IPAConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ServiceConfig":
        """
        Create ServiceConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated ServiceConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Provider configuration
        # ─────────────────────────────────────────────────────────────────────
        provider_raw = raw.get("provider", {}) or {}
        provider = ProviderConfig(
            region=str(provider_raw.get("region", Defaults.PROVIDER_REGION)),
            engine=str(provider_raw.get("engine", Defaults.PROVIDER_ENGINE)).lower(),
            output_format=str(provider_raw.get("output_format", Defaults.PROVIDER_OUTPUT_FORMAT)),
            connect_timeout_s=float(provider_raw.get("connect_timeout_s", Defaults.PROVIDER_CONNECT_TIMEOUT_S)),
            read_timeout_s=float(provider_raw.get("read_timeout_s", Defaults.PROVIDER_READ_TIMEOUT_S)),
            max_attempts=int(provider_raw.get("max_attempts", Defaults.PROVIDER_MAX_ATTEMPTS)),
            chunk_size=int(provider_raw.get("chunk_size", Defaults.PROVIDER_CHUNK_SIZE)),
        )
        if not provider.region:
            raise ConfigValidationError("provider.region must not be empty")
        cls._validate_positive("provider.connect_timeout_s", provider.connect_timeout_s)
        cls._validate_positive("provider.read_timeout_s", provider.read_timeout_s)
        cls._validate_positive("provider.max_attempts", provider.max_attempts)
        cls._validate_positive("provider.chunk_size", provider.chunk_size)

        # ─────────────────────────────────────────────────────────────────────
        # IPA bounds
        # ─────────────────────────────────────────────────────────────────────
        ipa_raw = raw.get("ipa", {}) or {}
        ipa = IPAConfig(
            min_length=int(ipa_raw.get("min_length", Defaults.IPA_MIN_LENGTH)),
            max_length=int(ipa_raw.get("max_length", Defaults.IPA_MAX_LENGTH)),
        )
        cls._validate_positive("ipa.min_length", ipa.min_length)
        if ipa.max_length < ipa.min_length:
            raise ConfigValidationError(
                f"ipa.max_length must be >= ipa.min_length, got {ipa.max_length} < {ipa.min_length}"
            )

        # ─────────────────────────────────────────────────────────────────────
        # Rate limit configuration (per_hour overridable from environment)
        # ─────────────────────────────────────────────────────────────────────
        rl_raw = raw.get("rate_limit", {}) or {}
        per_hour_env = os.getenv("IPA_SERVER_RATE_LIMIT")
        rate_limit = RateLimitConfig(
            enabled=cls._parse_bool("rate_limit.enabled", rl_raw.get("enabled", Defaults.RATE_LIMIT_ENABLED)),
            per_hour=int(per_hour_env) if per_hour_env
                else int(rl_raw.get("per_hour", Defaults.RATE_LIMIT_PER_HOUR)),
            window_seconds=int(rl_raw.get("window_seconds", Defaults.RATE_LIMIT_WINDOW_SECONDS)),
            ip_header=str(rl_raw.get("ip_header", Defaults.RATE_LIMIT_IP_HEADER) or ""),
            max_clients=int(rl_raw.get("max_clients", Defaults.RATE_LIMIT_MAX_CLIENTS)),
        )
        cls._validate_positive("rate_limit.per_hour", rate_limit.per_hour)
        cls._validate_positive("rate_limit.window_seconds", rate_limit.window_seconds)
        cls._validate_positive("rate_limit.max_clients", rate_limit.max_clients)

        # ─────────────────────────────────────────────────────────────────────
        # CORS configuration
        # ─────────────────────────────────────────────────────────────────────
        cors_raw = raw.get("cors", {}) or {}
        prefixes = cors_raw.get("trusted_origin_prefixes", list(Defaults.CORS_TRUSTED_ORIGIN_PREFIXES))
        if isinstance(prefixes, str):
            prefixes = [prefixes]
        cors = CorsConfig(trusted_origin_prefixes=[str(p) for p in prefixes if p])

        # ─────────────────────────────────────────────────────────────────────
        # Logging configuration
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # Handle string log levels (e.g., "INFO", "DEBUG")
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(level=log_level)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            provider=provider,
            ipa=ipa,
            rate_limit=rate_limit,
            cors=cors,
            logging=logging_cfg,
        )

    @staticmethod
    def _parse_bool(name: str, value: Any) -> bool:
        """Accept YAML booleans and the usual string spellings ("false", "0", "no")."""
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off"):
            return False
        raise ConfigValidationError(f"{name} must be a boolean, got {value!r}")

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_service_config() to get a validated ServiceConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    @property
    def region(self) -> str:
        """Get the Polly region."""
        return str((self.raw.get("provider", {}) or {}).get("region", Defaults.PROVIDER_REGION))

    def get_service_config(self) -> ServiceConfig:
        """
        Get validated ServiceConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return ServiceConfig.from_settings(self)


def load_settings(path: str = DEFAULT_SETTINGS_PATH) -> Settings:
    """
    Load settings from a YAML configuration file.

    Environment variable overrides:
        - AWS_REGION: Override provider.region

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If the settings file doesn't exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    region = os.getenv("AWS_REGION")
    if region:
        # an empty "provider:" section loads as None
        raw["provider"] = {**(raw.get("provider") or {}), "region": region}

    return Settings(raw=raw)


def load_settings_or_defaults(path: str | None = None) -> Settings:
    """
    Load settings from IPA_SERVER_SETTINGS (or path), falling back to defaults.

    Used by the HTTP app and CLI so that a missing settings file is not
    fatal; only a malformed one is.
    """
    path = path or os.getenv("IPA_SERVER_SETTINGS", DEFAULT_SETTINGS_PATH)
    if Path(path).exists():
        return load_settings(path)

    raw: Dict[str, Any] = {}
    region = os.getenv("AWS_REGION")
    if region:
        raw["provider"] = {"region": region}
    return Settings(raw=raw)
