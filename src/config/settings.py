"""
Settings management for ME1 Save Utilities.
Handles loading, saving, and managing application settings.
"""

import json
import os
import traceback
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

from constants import BACKUP_SUFFIX, CONFIG_FILE, DATA_DIR, DEFAULT_SAVES_DIR


@dataclass
class Settings:
    """Application settings with default values."""

    work_dir: str = ""
    saves_dir: str = ""
    extract_dir: str = ""
    backup_enabled: bool = True  # Copy the target aside before overwriting it
    backup_suffix: str = BACKUP_SUFFIX
    verify_after_write: bool = True  # Encoded bytes must decode before anything is written
    log_timings: bool = False

    def __post_init__(self):
        """Set default paths if not specified."""
        if not self.work_dir:
            self.work_dir = DATA_DIR
        if not self.saves_dir:
            self.saves_dir = DEFAULT_SAVES_DIR
        if not self.extract_dir:
            self.extract_dir = os.path.join(self.work_dir, "extracted")

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create Settings from dictionary."""
        # Filter out unknown keys
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered_data)


def get_default_settings() -> Dict[str, Any]:
    """Get default settings as a dictionary."""
    return Settings().to_dict()


def load_settings(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from config file.

    Args:
        config_file: Optional override of the config path

    Returns:
        Dictionary of settings with defaults for missing values
    """
    config_file = config_file or CONFIG_FILE
    default_settings = get_default_settings()

    try:
        if os.path.exists(config_file):
            with open(config_file, "r") as f:
                loaded_settings = json.load(f)
                # Merge with defaults to handle new settings
                default_settings.update(loaded_settings)
        else:
            # Create config file with defaults
            save_settings(default_settings, config_file)
    except (OSError, ValueError) as e:
        from utils.logging import log_error

        log_error(
            "Failed to load settings, using defaults",
            type(e).__name__,
            traceback.format_exc(),
        )

    return default_settings


def save_settings(settings_to_save: Dict[str, Any], config_file: Optional[str] = None) -> bool:
    """
    Save settings to config file.

    Args:
        settings_to_save: Dictionary of settings to save
        config_file: Optional override of the config path

    Returns:
        True if successful, False otherwise
    """
    config_file = config_file or CONFIG_FILE
    try:
        # Create directory if it doesn't exist
        config_dir = os.path.dirname(config_file)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_file, "w") as f:
            json.dump(settings_to_save, f, indent=2)
        return True
    except OSError as e:
        from utils.logging import log_error

        log_error("Failed to save settings", type(e).__name__, traceback.format_exc())
        return False
