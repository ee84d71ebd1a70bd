import os
import sys

import pytest

# Add src to path so we can import the modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from utils import logging as app_logging  # noqa: E402


@pytest.fixture(autouse=True)
def log_file(tmp_path):
    """Send log output to a per-test file and return its path."""
    path = str(tmp_path / "test.log")
    previous = app_logging.get_log_file()
    app_logging.set_log_file(path)
    yield path
    app_logging.set_log_file(previous)


def read_log(path: str) -> str:
    if not os.path.exists(path):
        return ""
    with open(path, encoding="utf-8") as f:
        return f.read()
