"""Test bootstrap: ensure package root is on sys.path.

This allows absolute imports like `modules.navmesh` and `core.pathfinding`
which assume the working directory is the repository root.
"""
import sys, os

import pytest

PACKAGE_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if PACKAGE_ROOT not in sys.path:
    sys.path.insert(0, PACKAGE_ROOT)

from tests.helpers.bus import LoggedEventBus  # noqa: E402


@pytest.fixture
def event_bus() -> LoggedEventBus:
    return LoggedEventBus()
