"""Shared test fixtures for the duocontrol test suite.

Provides fake driver script directories, a mock Bridge and sample
status snapshots used across the unit tests.
"""

from __future__ import annotations

import stat
from datetime import datetime
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock

import pytest

from duocontrol.bridge.base import Bridge
from duocontrol.domain.models import OperationResult, StatusSnapshot


# ---------------------------------------------------------------------------
# Script Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scripts_dir(tmp_path: Path) -> Path:
    """An empty driver scripts directory."""
    path = tmp_path / "asus_drivers"
    path.mkdir()
    return path


@pytest.fixture
def make_script(scripts_dir: Path) -> Callable[[str, str], Path]:
    """Factory writing an executable /bin/sh script into ``scripts_dir``."""

    def _make(name: str, body: str) -> Path:
        script = scripts_dir / name
        script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


# ---------------------------------------------------------------------------
# Status Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_snapshot() -> StatusSnapshot:
    """A snapshot of a running machine: level 2, brightness 117, touch present."""
    return StatusSnapshot(
        keyboard_level=2,
        screenpad_brightness=117,
        touch_device_connected=True,
        taken_at=datetime(2025, 1, 1, 12, 0, 0),
    )


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_bridge(sample_snapshot: StatusSnapshot) -> AsyncMock:
    """A mock Bridge whose operations all succeed."""
    bridge = AsyncMock(spec=Bridge)
    bridge.execute_command.return_value = OperationResult.ok()
    bridge.get_system_status.return_value = sample_snapshot
    bridge.open_terminal.return_value = OperationResult.ok()
    bridge.write_file.return_value = OperationResult.ok()
    return bridge
