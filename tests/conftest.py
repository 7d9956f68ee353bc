"""
Pytest configuration and shared fixtures for linestream tests.
"""

import logging
import sys
from pathlib import Path
from typing import Generator

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def restore_root_logging() -> Generator[None, None, None]:
    """Undo setup_logging changes to the root logger after a test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def text_file(tmp_path: Path):
    """Write bytes to a temporary file and return its path."""
    def factory(data: bytes, name: str = "input.txt") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return factory
