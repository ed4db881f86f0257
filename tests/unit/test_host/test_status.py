"""Tests for the status poller."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from duocontrol.domain.models import ErrorKind, OperationResult, StatusSnapshot
from duocontrol.host.runner import CommandRunner
from duocontrol.host.status import StatusPoller, parse_level

XINPUT_OUTPUT = """\
⎡ Virtual core pointer                    	id=2	[master pointer  (3)]
⎜   ↳ ELAN9009:00 04F3:2C1B                  	id=11	[slave  pointer  (2)]
⎣ Virtual core keyboard                   	id=3	[master keyboard (2)]
"""


@pytest.fixture
def sysfs(tmp_path: Path) -> tuple[Path, Path]:
    keyboard = tmp_path / "kbd_backlight" / "brightness"
    screenpad = tmp_path / "asus_screenpad" / "brightness"
    keyboard.parent.mkdir()
    screenpad.parent.mkdir()
    keyboard.write_text("2\n")
    screenpad.write_text("117\n")
    return keyboard, screenpad


@pytest.fixture
def mock_runner() -> AsyncMock:
    runner = AsyncMock(spec=CommandRunner)
    runner.run.return_value = OperationResult.ok(XINPUT_OUTPUT)
    return runner


def _poller(runner, keyboard: Path, screenpad: Path, **kwargs) -> StatusPoller:
    return StatusPoller(runner, keyboard_path=keyboard, screenpad_path=screenpad, **kwargs)


class TestParseLevel:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("2\n", 2), (" 3 ", 3), ("", 0), ("abc", 0), ("1.5", 0), ("4", 0), ("-1", 0)],
    )
    def test_parse(self, text: str, expected: int) -> None:
        assert parse_level(text, 3) == expected


class TestStatusPoller:
    @pytest.mark.asyncio
    async def test_all_probes_succeed(self, sysfs, mock_runner: AsyncMock) -> None:
        snapshot = await _poller(mock_runner, *sysfs).poll()
        assert snapshot.keyboard_level == 2
        assert snapshot.screenpad_brightness == 117
        assert snapshot.touch_device_connected is True
        mock_runner.run.assert_awaited_once()
        assert mock_runner.run.await_args.args[0] == ["xinput", "list"]

    @pytest.mark.asyncio
    async def test_touch_keyword_absent(self, sysfs, mock_runner: AsyncMock) -> None:
        mock_runner.run.return_value = OperationResult.ok("⎡ Virtual core pointer id=2\n")
        snapshot = await _poller(mock_runner, *sysfs).poll()
        assert snapshot.touch_device_connected is False
        assert snapshot.keyboard_level == 2

    @pytest.mark.asyncio
    async def test_custom_keyword(self, sysfs, mock_runner: AsyncMock) -> None:
        snapshot = await _poller(mock_runner, *sysfs, touch_keyword="WACOM").poll()
        assert snapshot.touch_device_connected is False

    @pytest.mark.asyncio
    async def test_one_probe_failure_does_not_fail_snapshot(
        self, sysfs, mock_runner: AsyncMock
    ) -> None:
        keyboard, screenpad = sysfs
        keyboard.unlink()
        snapshot = await _poller(mock_runner, keyboard, screenpad).poll()
        assert snapshot.keyboard_level == 0
        assert snapshot.screenpad_brightness == 117
        assert snapshot.touch_device_connected is True

    @pytest.mark.asyncio
    async def test_garbage_text_defaults_to_zero(self, sysfs, mock_runner: AsyncMock) -> None:
        keyboard, screenpad = sysfs
        screenpad.write_text("not a number")
        snapshot = await _poller(mock_runner, keyboard, screenpad).poll()
        assert snapshot.screenpad_brightness == 0
        assert snapshot.keyboard_level == 2

    @pytest.mark.asyncio
    async def test_all_probes_fail(self, tmp_path: Path, mock_runner: AsyncMock) -> None:
        mock_runner.run.return_value = OperationResult.failure(
            ErrorKind.SUBPROCESS_FAILURE, "Failed to launch xinput"
        )
        snapshot = await _poller(mock_runner, tmp_path / "a", tmp_path / "b").poll()
        assert (
            snapshot.keyboard_level,
            snapshot.screenpad_brightness,
            snapshot.touch_device_connected,
        ) == (0, 0, False)

    @pytest.mark.asyncio
    async def test_runner_exception_defaults(self, sysfs, mock_runner: AsyncMock) -> None:
        mock_runner.run.side_effect = OSError("no display")
        snapshot = await _poller(mock_runner, *sysfs).poll()
        assert snapshot.touch_device_connected is False
        assert snapshot.keyboard_level == 2

    @pytest.mark.asyncio
    async def test_stalled_probe_is_bounded(self, sysfs, mock_runner: AsyncMock) -> None:
        async def hang(*args, **kwargs):
            await asyncio.sleep(30)

        mock_runner.run.side_effect = hang
        snapshot = await asyncio.wait_for(
            _poller(mock_runner, *sysfs, probe_timeout=0.2).poll(), timeout=5
        )
        assert snapshot.touch_device_connected is False
        assert snapshot.screenpad_brightness == 117

    @pytest.mark.asyncio
    async def test_each_poll_is_a_new_snapshot(self, sysfs, mock_runner: AsyncMock) -> None:
        poller = _poller(mock_runner, *sysfs)
        first = await poller.poll()
        sysfs[0].write_text("0\n")
        second = await poller.poll()
        assert isinstance(second, StatusSnapshot)
        assert first is not second
        assert first.keyboard_level == 2
        assert second.keyboard_level == 0

    @pytest.mark.asyncio
    async def test_stalled_xinput_is_killed(
        self, sysfs, make_script, scripts_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        pid_file = scripts_dir / "xinput.pid"
        make_script("xinput", f"echo $$ > {pid_file}; exec sleep 30")
        monkeypatch.setenv("PATH", f"{scripts_dir}{os.pathsep}{os.environ['PATH']}")

        snapshot = await asyncio.wait_for(
            _poller(CommandRunner(), *sysfs, probe_timeout=0.5).poll(), timeout=10
        )

        assert snapshot.touch_device_connected is False
        assert snapshot.keyboard_level == 2
        pid = int(pid_file.read_text().strip())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)
