"""
Configuration management for the Drop Table Editor.
"""

from .settings import (
    load_settings,
    save_settings,
    get_default_settings,
    Settings,
)

__all__ = [
    'load_settings',
    'save_settings',
    'get_default_settings',
    'Settings',
]
