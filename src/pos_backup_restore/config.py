"""
Configuration management for POS data export, import and reset operations.

This module provides dataclasses for managing configuration settings,
environment variable loading, and the static schema tables that decide which
Firestore collections are exported, restored and wiped.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


# Snapshot format
SUPPORTED_VERSION = "1.0"

# Records per atomic import batch
BATCH_LIMIT = 400

# Hard ceiling of writes Firestore accepts in one batch commit
MAX_BATCH_WRITES = 500

# Phrase the operator must type before a factory reset
RESET_CONFIRMATION_PHRASE = "DELETE ALL DATA"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class BackupConfig:
    """Configuration for export operations."""

    # Firestore Configuration
    project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIRESTORE_PROJECT_ID"))
    credentials_file: Optional[str] = field(default_factory=lambda: os.getenv("GOOGLE_APPLICATION_CREDENTIALS"))

    # Export Settings
    output_dir: Path = field(default_factory=lambda: Path(os.getenv("BACKUP_OUTPUT_DIR", "./backups")))
    app_prefix: str = field(default_factory=lambda: os.getenv("POS_APP_PREFIX", "pos"))

    # Rate Limiting
    requests_per_second: float = field(default_factory=lambda: float(os.getenv("RATE_LIMIT_REQUESTS_PER_SECOND", "10")))
    burst_size: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_BURST_SIZE", "20")))
    window_size: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_WINDOW_SIZE", "10")))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))
    log_max_size: int = field(default_factory=lambda: int(os.getenv("LOG_MAX_SIZE", "10485760")))  # 10MB
    log_backup_count: int = field(default_factory=lambda: int(os.getenv("LOG_BACKUP_COUNT", "5")))

    # Development
    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", "false"))
    verbose: bool = field(default_factory=lambda: _env_flag("VERBOSE", "false"))

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.output_dir = Path(self.output_dir)
        self.validate()

    def validate(self) -> None:
        """Validate configuration settings."""
        _validate_common(self)

        if not self.app_prefix:
            raise ValueError("POS_APP_PREFIX must not be empty")


@dataclass
class RestoreConfig:
    """Configuration for import operations."""

    # Firestore Configuration
    project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIRESTORE_PROJECT_ID"))
    credentials_file: Optional[str] = field(default_factory=lambda: os.getenv("GOOGLE_APPLICATION_CREDENTIALS"))

    # Import Settings
    batch_limit: int = field(default_factory=lambda: int(os.getenv("IMPORT_BATCH_LIMIT", str(BATCH_LIMIT))))
    max_batch_writes: int = MAX_BATCH_WRITES

    # Rate Limiting (same as backup)
    requests_per_second: float = field(default_factory=lambda: float(os.getenv("RATE_LIMIT_REQUESTS_PER_SECOND", "10")))
    burst_size: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_BURST_SIZE", "20")))
    window_size: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_WINDOW_SIZE", "10")))

    # Logging (same as backup)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))
    log_max_size: int = field(default_factory=lambda: int(os.getenv("LOG_MAX_SIZE", "10485760")))
    log_backup_count: int = field(default_factory=lambda: int(os.getenv("LOG_BACKUP_COUNT", "5")))

    # Development (same as backup)
    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", "false"))
    verbose: bool = field(default_factory=lambda: _env_flag("VERBOSE", "false"))

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration settings."""
        _validate_common(self)

        if self.batch_limit <= 0:
            raise ValueError("IMPORT_BATCH_LIMIT must be positive")

        if self.batch_limit > self.max_batch_writes:
            raise ValueError(
                f"IMPORT_BATCH_LIMIT must not exceed {self.max_batch_writes} (Firestore batch limit)"
            )


@dataclass
class ResetConfig:
    """Configuration for factory reset operations."""

    # Firestore Configuration
    project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIRESTORE_PROJECT_ID"))
    credentials_file: Optional[str] = field(default_factory=lambda: os.getenv("GOOGLE_APPLICATION_CREDENTIALS"))

    # Emergency backup settings
    output_dir: Path = field(default_factory=lambda: Path(os.getenv("BACKUP_OUTPUT_DIR", "./backups")))
    app_prefix: str = field(default_factory=lambda: os.getenv("POS_APP_PREFIX", "pos"))
    verify_backup: bool = field(default_factory=lambda: _env_flag("RESET_VERIFY_BACKUP", "true"))

    # Rate Limiting (same as backup)
    requests_per_second: float = field(default_factory=lambda: float(os.getenv("RATE_LIMIT_REQUESTS_PER_SECOND", "10")))
    burst_size: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_BURST_SIZE", "20")))
    window_size: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_WINDOW_SIZE", "10")))

    # Logging (same as backup)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))
    log_max_size: int = field(default_factory=lambda: int(os.getenv("LOG_MAX_SIZE", "10485760")))
    log_backup_count: int = field(default_factory=lambda: int(os.getenv("LOG_BACKUP_COUNT", "5")))

    # Development (same as backup)
    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", "false"))
    verbose: bool = field(default_factory=lambda: _env_flag("VERBOSE", "false"))

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.output_dir = Path(self.output_dir)
        self.validate()

    def validate(self) -> None:
        """Validate configuration settings."""
        _validate_common(self)

        if not self.app_prefix:
            raise ValueError("POS_APP_PREFIX must not be empty")


def _validate_common(config) -> None:
    """Checks shared by every config dataclass."""
    if config.credentials_file and not Path(config.credentials_file).exists():
        raise ValueError(f"Credentials file does not exist: {config.credentials_file}")

    if config.requests_per_second <= 0:
        raise ValueError("RATE_LIMIT_REQUESTS_PER_SECOND must be positive")

    if config.burst_size <= 0:
        raise ValueError("RATE_LIMIT_BURST_SIZE must be positive")

    if config.window_size <= 0:
        raise ValueError("RATE_LIMIT_WINDOW_SIZE must be positive")


def _apply_overrides(config, overrides: Dict) -> None:
    for key, value in overrides.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown configuration key: {key}")

    # Overrides bypass __post_init__, so re-run the checks
    config.__post_init__()


def get_backup_config(**overrides) -> BackupConfig:
    """
    Get backup configuration with optional overrides.

    Args:
        **overrides: Configuration values to override

    Returns:
        BackupConfig instance
    """
    config = BackupConfig()
    _apply_overrides(config, overrides)
    return config


def get_restore_config(**overrides) -> RestoreConfig:
    """
    Get restore configuration with optional overrides.

    Args:
        **overrides: Configuration values to override

    Returns:
        RestoreConfig instance
    """
    config = RestoreConfig()
    _apply_overrides(config, overrides)
    return config


def get_reset_config(**overrides) -> ResetConfig:
    """Get reset configuration with optional overrides."""
    config = ResetConfig()
    _apply_overrides(config, overrides)
    return config


# Store schema
@dataclass(frozen=True)
class ChildCollection:
    """A child collection stored under each document of a parent collection."""
    name: str
    reserved_key: str


# Export and import order
EXPORT_COLLECTIONS: List[str] = [
    "tables",            # Active tables
    "history",           # Sales history
    "menuItems",         # Menu
    "inventory_items",   # Inventory
    "purchase_records",
    "usage_logs",
    "waste_entries",
    "recipes",
    "shifts",            # Cash register shifts (payouts live in a child collection)
    "daily_metrics",
    "settings",          # Store settings (payment methods)
]

# Parent collection -> child collection carried inline under a reserved key
CHILD_COLLECTIONS: Dict[str, ChildCollection] = {
    "shifts": ChildCollection(name="payouts", reserved_key="_payouts_subcollection"),
}

# Wiped by a factory reset. Open tables, the menu and settings survive.
DESTRUCTIBLE_COLLECTIONS: List[str] = [
    "history",
    "inventory_items",
    "purchase_records",
    "usage_logs",
    "waste_entries",
    "recipes",
    "shifts",
    "daily_metrics",
]
