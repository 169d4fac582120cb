"""
Pytest configuration and fixtures.
"""

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from azcopy_orchestrator.config.settings import Settings, get_settings
from azcopy_orchestrator.services.job_store import JobRecord

FAKE_AZCOPY_SCRIPT = Path(__file__).parent / "fixtures" / "fake_azcopy.py"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read settings fresh from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Get test settings with short intervals."""
    return Settings(
        progress_update_interval_ms=0,
        poll_interval_seconds=0.01,
        cancel_timeout_seconds=1.0,
        token_refresh_interval_seconds=0.01,
    )


@pytest.fixture
def fake_azcopy(tmp_path):
    """Executable wrapper that runs the fake AzCopy script with this interpreter."""
    if sys.platform == "win32":
        pytest.skip("fake AzCopy wrapper is a POSIX shell script")
    wrapper = tmp_path / "azcopy"
    wrapper.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{FAKE_AZCOPY_SCRIPT}" "$@"\n')
    os.chmod(wrapper, 0o755)
    return str(wrapper)


@pytest.fixture
def mock_process():
    """Mock of an asyncio subprocess with a writable stdin."""
    process = MagicMock()
    process.pid = 4242
    process.returncode = None
    process.stdin = MagicMock()
    process.stdin.is_closing.return_value = False
    process.stdin.drain = AsyncMock()
    process.wait = AsyncMock(return_value=0)
    return process


@pytest.fixture
def job_record(mock_process):
    """Job record backed by a mock process."""
    return JobRecord(id="job-1", process=mock_process, command="./azcopy copy;\n")
