"""Status poller for the Host.

Reads the keyboard and ScreenPad brightness files and looks for the touch
device in ``xinput list``. The three probes run concurrently and each one
falls back to its default on failure, so a single bad read never fails
the whole snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from duocontrol.domain.models import (
    KEYBOARD_LEVEL_MAX,
    SCREENPAD_BRIGHTNESS_MAX,
    StatusSnapshot,
)
from duocontrol.host.runner import CommandRunner

logger = logging.getLogger(__name__)

DEFAULT_KEYBOARD_PATH = Path("/sys/class/leds/asus::kbd_backlight/brightness")
DEFAULT_SCREENPAD_PATH = Path("/sys/class/backlight/asus_screenpad/brightness")
DEFAULT_TOUCH_KEYWORD = "ELAN9009"
KILL_MARGIN = 2.0


def parse_level(text: str, maximum: int, name: str = "value") -> int:
    """Parse a sysfs integer, returning 0 for anything unexpected."""
    try:
        value = int(text.strip())
    except ValueError:
        logger.debug("Unparseable %s %r, using 0", name, text)
        return 0
    if not 0 <= value <= maximum:
        logger.debug("%s %d outside 0-%d, using 0", name, value, maximum)
        return 0
    return value


class StatusPoller:
    """Builds a fresh StatusSnapshot from three independent probes."""

    def __init__(
        self,
        runner: CommandRunner,
        keyboard_path: Path = DEFAULT_KEYBOARD_PATH,
        screenpad_path: Path = DEFAULT_SCREENPAD_PATH,
        touch_keyword: str = DEFAULT_TOUCH_KEYWORD,
        probe_timeout: float = 5.0,
    ) -> None:
        self._runner = runner
        self._keyboard_path = keyboard_path
        self._screenpad_path = screenpad_path
        self._touch_keyword = touch_keyword
        self._probe_timeout = probe_timeout

    async def poll(self) -> StatusSnapshot:
        keyboard, screenpad, touch = await asyncio.gather(
            self._guard(self._read_level(self._keyboard_path, KEYBOARD_LEVEL_MAX), 0, "keyboard"),
            self._guard(
                self._read_level(self._screenpad_path, SCREENPAD_BRIGHTNESS_MAX), 0, "screenpad"
            ),
            # The runner enforces probe_timeout itself; the margin leaves it
            # time to kill and reap a stalled xinput.
            self._guard(
                self._touch_connected(), False, "touch",
                timeout=self._probe_timeout + KILL_MARGIN,
            ),
        )
        snapshot = StatusSnapshot(
            keyboard_level=keyboard,
            screenpad_brightness=screenpad,
            touch_device_connected=touch,
        )
        logger.debug(
            "Status: keyboard=%d screenpad=%d touch=%s",
            snapshot.keyboard_level, snapshot.screenpad_brightness,
            snapshot.touch_device_connected,
        )
        return snapshot

    async def _guard(self, probe, default, name: str, timeout: float | None = None):
        """Await ``probe`` and substitute ``default`` if it fails or stalls."""
        limit = self._probe_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(probe, timeout=limit)
        except asyncio.TimeoutError:
            logger.debug("%s probe timed out", name)
        except Exception as e:
            logger.debug("%s probe failed: %s", name, e)
        return default

    async def _read_level(self, path: Path, maximum: int) -> int:
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return parse_level(text, maximum, name=path.parent.name)

    async def _touch_connected(self) -> bool:
        result = await self._runner.run(["xinput", "list"], timeout=self._probe_timeout)
        if not result.success:
            raise RuntimeError(result.error)
        return any(self._touch_keyword in line for line in result.stdout.splitlines())
