"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from quizstate.review.priority import MS_PER_DAY  # noqa: E402
from quizstate.sync.auth import AuthObserver  # noqa: E402
from quizstate.sync.local_storage import MemoryLocalStorage  # noqa: E402
from quizstate.sync.remote_store import MemoryDocumentStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def local():
    """Empty in-memory local storage."""
    return MemoryLocalStorage()


@pytest.fixture
def remote():
    """In-memory remote document store with synchronous push delivery."""
    return MemoryDocumentStore()


@pytest.fixture
def auth():
    """Auth observer starting anonymous."""
    return AuthObserver()


@pytest.fixture
def now_ms():
    """Fixed clock: 2024-03-01 00:00 UTC in epoch ms."""
    return 1709251200000


@pytest.fixture
def days_ago(now_ms):
    """Epoch ms n days before the fixed clock."""

    def _days_ago(n: float) -> int:
        return int(now_ms - n * MS_PER_DAY)

    return _days_ago


@pytest.fixture
def fixed_now():
    """Fixed wall clock for mission and history timestamps."""
    return datetime(2024, 3, 1, 9, 30)


@pytest.fixture
def sample_question():
    """Provide a sample exam question for testing."""
    return {
        "id": 101,
        "subjects": ["CIV_01_02"],
        "question": "다음 중 법률행위에 관한 설명으로 옳은 것은?",
        "options": ["보기 1", "보기 2", "보기 3", "보기 4", "보기 5"],
        "answer": 3,
        "examInfo": {"category": "민사법", "round": "1회"},
    }


@pytest.fixture
def master_codes():
    """Provide a small code universe."""
    return {
        "CIV_01": {"subject": "민법", "path": "총칙"},
        "CIV_01_02": {"subject": "민법", "path": "총칙 > 법률행위"},
        "CIV_01_02_01": {"subject": "민법", "path": "총칙 > 법률행위 > 의사표시"},
        "CIV_01_03": {"subject": "민법", "path": "총칙 > 대리"},
        "CIV_02": {"subject": "민법", "path": "물권"},
        "CON_01": {"subject": "헌법", "path": "헌법총론"},
    }
