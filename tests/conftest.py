"""Root test configuration: session-level cleanup of runtime artifacts"""

from pathlib import Path

import pytest


_PROJECT_ROOT = Path(__file__).parent.parent

# Databases a stray CLI run can leave behind in the project root.
_CLEANUP_FILES = ["entryimport.db", "test.db"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove database files created in the project root during the test session."""
    yield
    for name in _CLEANUP_FILES:
        (_PROJECT_ROOT / name).unlink(missing_ok=True)
