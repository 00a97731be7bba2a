"""
Ledger configuration management.

Configuration is loaded from multiple sources with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/agritrace.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The
LedgerConfig dataclass provides typed access to all settings.

Usage:
    from agritrace.config import config

    print(config.server.port)
    print(config.database.absolute_path)

Environment Variable Mapping:
    AGRITRACE_HOST          -> server.host
    AGRITRACE_PORT          -> server.port
    AGRITRACE_SERVER_URL    -> server.public_url
    AGRITRACE_CORS_ORIGINS  -> security.cors_origins
    AGRITRACE_DB_PATH       -> database.path
    AGRITRACE_ADMIN         -> ledger.admin_identity
    AGRITRACE_LOG_LEVEL     -> logging.level
"""

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "agritrace.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "agritrace.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """HTTP server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    public_url: str = "http://localhost:8000"


@dataclass
class SecuritySettings:
    """CORS configuration for the HTTP surface."""

    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    cors_allow_methods: list[str] = field(default_factory=lambda: ["GET", "POST"])
    cors_allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class DatabaseSettings:
    """Database configuration."""

    path: str = "data/agritrace.db"

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to database file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class LedgerSettings:
    """Bootstrap settings for the traceability ledger."""

    admin_identity: str = ""


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "detailed"


@dataclass
class LedgerConfig:
    """
    Complete application configuration.

    Aggregates all settings sections. Access via the module-level `config`
    singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated string to list, stripping whitespace."""
    if not value or value.strip() == "":
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_from_ini(parser: configparser.ConfigParser, cfg: LedgerConfig) -> None:
    """Load configuration from parsed INI file into LedgerConfig."""
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")
        if parser.has_option("server", "public_url"):
            cfg.server.public_url = parser.get("server", "public_url")

    if parser.has_section("security"):
        if parser.has_option("security", "cors_origins"):
            cfg.security.cors_origins = _parse_list(parser.get("security", "cors_origins"))
        if parser.has_option("security", "cors_allow_methods"):
            cfg.security.cors_allow_methods = _parse_list(
                parser.get("security", "cors_allow_methods")
            )
        if parser.has_option("security", "cors_allow_headers"):
            cfg.security.cors_allow_headers = _parse_list(
                parser.get("security", "cors_allow_headers")
            )

    if parser.has_section("database"):
        if parser.has_option("database", "path"):
            cfg.database.path = parser.get("database", "path")

    if parser.has_section("ledger"):
        if parser.has_option("ledger", "admin_identity"):
            cfg.ledger.admin_identity = parser.get("ledger", "admin_identity").strip()

    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: LedgerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    if env_host := os.getenv("AGRITRACE_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("AGRITRACE_PORT"):
        cfg.server.port = int(env_port)
    if env_url := os.getenv("AGRITRACE_SERVER_URL"):
        cfg.server.public_url = env_url

    if env_cors := os.getenv("AGRITRACE_CORS_ORIGINS"):
        cfg.security.cors_origins = _parse_list(env_cors)

    if env_db := os.getenv("AGRITRACE_DB_PATH"):
        cfg.database.path = env_db

    if env_admin := os.getenv("AGRITRACE_ADMIN"):
        cfg.ledger.admin_identity = env_admin.strip()

    if env_log := os.getenv("AGRITRACE_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config() -> LedgerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/agritrace.ini
        3. config/agritrace.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        LedgerConfig: Fully populated configuration object.
    """
    cfg = LedgerConfig()

    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# LOGGING
# =============================================================================

LOG_FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
}


def configure_logging() -> None:
    """Configure the root logger from the ``[logging]`` section."""
    logging.basicConfig(
        level=getattr(logging, config.logging.level, logging.INFO),
        format=LOG_FORMATS[config.logging.format],
    )


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_database:
    """
    Context manager for using a temporary test database.

    Usage:
        from agritrace.config import use_test_database

        def test_something(tmp_path):
            with use_test_database(tmp_path / "test.db"):
                TraceabilityLedger.initialize("0xadmin")

    Args:
        db_path: Path to the test database file
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.original_path: str | None = None

    def __enter__(self) -> Path:
        """Set up test database path."""
        self.original_path = config.database.path
        config.database.path = str(self.db_path)
        return self.db_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original database path."""
        if self.original_path is not None:
            config.database.path = self.original_path
        return None
