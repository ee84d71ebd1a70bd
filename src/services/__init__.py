"""
Services layer for the Drop Table Editor.
Handles STB/STL table loading and saving and the registry of loaded tables.
"""

from .file_manager import (
    FileManager,
    validate_data_path,
)

__all__ = [
    "FileManager",
    "validate_data_path",
]
