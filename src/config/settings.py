"""
Settings management for the Drop Table Editor.
Handles loading, saving, and managing application settings.
"""

import json
import os
import traceback
from dataclasses import dataclass, asdict
from typing import Dict, Any

from constants import CONFIG_FILE


@dataclass
class Settings:
    """Application settings with default values."""

    last_data_path: str = ""  # 3DDATA folder chosen last time
    backup_on_save: bool = False  # Copy the old file to <path>.bak before overwriting

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


def load_settings(config_file: str = CONFIG_FILE) -> Dict[str, Any]:
    """
    Load settings from config file.

    Args:
        config_file: Path of the JSON settings file

    Returns:
        Dictionary of settings with defaults for missing values
    """
    default_settings = get_default_settings()

    try:
        if os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
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


def save_settings(settings_to_save: Dict[str, Any], config_file: str = CONFIG_FILE) -> bool:
    """
    Save settings to config file.

    Args:
        settings_to_save: Dictionary of settings to save
        config_file: Path of the JSON settings file

    Returns:
        True if successful, False otherwise
    """
    try:
        # Create directory if it doesn't exist
        config_dir = os.path.dirname(config_file)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(settings_to_save, f, indent=2)
        return True
    except (OSError, TypeError) as e:
        from utils.logging import log_error

        log_error("Failed to save settings", type(e).__name__, traceback.format_exc())
        return False
