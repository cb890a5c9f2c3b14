"""
Pytest configuration and fixtures for Lunchbox tests.
"""

import os
import sys

import pytest

# Keep developer environment variables out of the configuration under test
for _key in list(os.environ):
    if _key.startswith('LUNCHBOX_'):
        del os.environ[_key]

# Allow Qt widget tests to run without a display
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import AppConfig
from lunchbox.core.context import BootContext
from lunchbox.core.status import StatusSink


class MemoryStore:
    """In-memory stand-in for the settings store."""

    def __init__(self, data=None, load_error=None, save_error=None):
        self.data = data
        self.load_error = load_error
        self.save_error = save_error
        self.saved = []

    def load(self):
        if self.load_error is not None:
            raise self.load_error
        return self.data

    def save(self, data):
        if self.save_error is not None:
            raise self.save_error
        self.saved.append(data)
        self.data = data


@pytest.fixture
def sink():
    """Provide an empty status sink."""
    return StatusSink()


@pytest.fixture
def store():
    """Provide an empty in-memory settings store."""
    return MemoryStore()


@pytest.fixture
def app_config(tmp_path):
    """Configuration with user data under a temp directory."""
    return AppConfig(user_data_dir=tmp_path / 'userdata')


@pytest.fixture
def ctx(sink, store, app_config):
    """Boot context wired to the in-memory store."""
    return BootContext(sink=sink, store=store, config=app_config)
