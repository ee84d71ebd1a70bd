"""
Drop Table Editor data layer - command-line entry point.

Loads a client 3DDATA folder into a FileManager, reports what was loaded,
and optionally resolves a string id through one of the loaded STL tables.
"""

import argparse
import traceback
from typing import List, Optional

from config.settings import Settings, load_settings, save_settings
from services.file_manager import FileManager, validate_data_path
from services.rose_tables import MissingFile
from utils.logging import init_log_file, log_error


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Load STB/STL tables from a 3DDATA folder."
    )
    parser.add_argument(
        "data_path",
        nargs="?",
        help="3DDATA folder (defaults to the last folder used)",
    )
    parser.add_argument(
        "--lookup",
        nargs=2,
        metavar=("STL_KEY", "STRING_ID"),
        help="Print the display text of STRING_ID from table STL_KEY",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace, settings: Settings) -> int:
    data_path = args.data_path or settings.last_data_path
    error = validate_data_path(data_path)
    if error:
        print(error)
        return 1

    manager = FileManager.from_settings(settings)
    try:
        manager.initialize(data_path)
    except MissingFile as e:
        print(f"Error: {e}")
        return 1

    print(f"Loaded {len(manager.stbs)} STB tables and {len(manager.stls)} STL tables")
    for key, table in manager.stbs.items():
        print(f"  {key}: {max(table.row_count - 1, 0)} rows")
    for key, table in manager.stls.items():
        print(f"  {key}: {len(table.entries)} entries, {table.language_count} languages")

    if args.lookup:
        stl_key, string_id = args.lookup
        print(manager.lookup(stl_key, string_id))

    settings.last_data_path = data_path
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the application."""
    init_log_file()
    args = _parse_args(argv)
    settings = Settings.from_dict(load_settings())
    try:
        status = run(args, settings)
    except Exception as e:
        log_error(f"Application error: {e}", type(e).__name__, traceback.format_exc())
        raise
    if status == 0:
        save_settings(settings.to_dict())
    return status


if __name__ == "__main__":
    raise SystemExit(main())
