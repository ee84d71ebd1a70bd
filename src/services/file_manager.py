"""
Registry of loaded STB and STL tables.

A FileManager is owned by the caller (the app session) and passed to whatever
needs table lookups; there is no module-level registry.
"""

import os
import shutil
from typing import Dict, Optional

from constants import (
    DROP_TABLE_FILE,
    REQUIRED_STB_TABLES,
    REQUIRED_STL_TABLES,
    STB_FOLDER,
)
from config.settings import Settings
from utils.logging import log_error, log_event, log_message

from .rose_tables import (
    DataTable,
    MissingFile,
    StringTable,
    load_stb,
    load_stl,
    save_stb,
    save_stl,
)


def validate_data_path(data_path: str) -> Optional[str]:
    """
    Check that a folder looks like a client 3DDATA folder.

    Args:
        data_path: Folder selected by the user

    Returns:
        An error message, or None if the folder is usable
    """
    if not data_path or not os.path.isdir(data_path):
        return f"Error: folder not found: {data_path}"

    stb_path = os.path.join(data_path, STB_FOLDER)
    if not os.path.isdir(stb_path):
        return "Error: STB folder not found in the selected directory."

    if not os.path.isfile(os.path.join(stb_path, DROP_TABLE_FILE)):
        return f"Error: {DROP_TABLE_FILE} not found. Please select a valid 3DDATA folder."

    return None


class FileManager:
    """Loaded tables by key: generic tables in ``stbs``, string tables in ``stls``."""

    def __init__(self, backup_on_save: bool = False):
        self.stbs: Dict[str, DataTable] = {}
        self.stls: Dict[str, StringTable] = {}
        self.data_path: str = ""
        self.backup_on_save = backup_on_save

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileManager":
        return cls(backup_on_save=settings.backup_on_save)

    def initialize(self, data_path: str) -> None:
        """Load every table the drop table editor needs from ``data_path``/STB.

        Raises:
            MissingFile: A required table is absent; nothing after it is loaded.
        """
        self.reset()
        self.data_path = data_path
        stb_path = os.path.join(data_path, STB_FOLDER)

        log_event("Loading STB files")
        for key in REQUIRED_STB_TABLES:
            self.add(key, os.path.join(stb_path, f"{key}.STB"))

        log_event("Loading STL files")
        for key in REQUIRED_STL_TABLES:
            self.add(key, os.path.join(stb_path, f"{key}.STL"))

        log_event("File loading complete")

    def add(self, key: str, file_path: str) -> None:
        """Load ``file_path`` under ``key``, choosing the codec by extension.

        Raises:
            MissingFile: The file does not exist.
            ValueError: The extension is neither .STB nor .STL.
        """
        if not os.path.isfile(file_path):
            log_error(f"Missing file: {file_path}")
            raise MissingFile(file_path)

        extension = os.path.splitext(file_path)[1].upper()
        if extension == ".STB":
            log_message(f"- Loading {file_path} [{key}]")
            self.stbs[key] = load_stb(file_path)
        elif extension == ".STL":
            log_message(f"- Loading {file_path} [{key}]")
            self.stls[key] = load_stl(file_path)
        else:
            raise ValueError(f"Unsupported file type: {extension}")

    def reset(self) -> None:
        """Forget all loaded tables."""
        self.stbs.clear()
        self.stls.clear()
        self.data_path = ""

    def save(self, key: str) -> str:
        """Write the table registered under ``key`` back to its origin path.

        Returns:
            The path written.
        """
        if key in self.stbs:
            table = self.stbs[key]
            self._backup(table.file_path)
            return save_stb(table)
        if key in self.stls:
            table = self.stls[key]
            self._backup(table.file_path)
            return save_stl(table)
        raise KeyError(f"No table loaded under key {key!r}")

    def lookup(self, stl_key: str, string_id: str) -> str:
        """Display text for ``string_id`` in string table ``stl_key``."""
        table = self.stls.get(stl_key)
        if table is None:
            return string_id
        return table.search(string_id)

    def _backup(self, path: str) -> None:
        if self.backup_on_save and path and os.path.exists(path):
            shutil.copy2(path, path + ".bak")
