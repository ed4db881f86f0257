"""Display controller for the control center.

Maps each user gesture to one Bridge call and turns the result into a
state transition. On success the affected status field is replaced and a
success entry is logged; on failure only an error entry is logged and the
displayed status stays as it was.
"""

from __future__ import annotations

import asyncio
import json
import logging

from duocontrol.bridge.base import Bridge, BridgeError
from duocontrol.domain.models import (
    KEYBOARD_LEVEL_MAX,
    SCREENPAD_BRIGHTNESS_MAX,
    DialogOptions,
    ErrorKind,
    Operation,
    OperationResult,
    Severity,
    StatusSnapshot,
    brightness_percent,
)
from duocontrol.panel.log import DEFAULT_CAPACITY, LogBuffer

logger = logging.getLogger(__name__)

LEVEL_NAMES = ("OFF", "DIM", "MEDIUM", "BRIGHT")

DIAGNOSTICS = (
    (Operation.TOUCH_TEST, "Touch device diagnostics"),
    (Operation.LIST_MONITORS, "Display configuration check"),
    (Operation.RGB_LIST, "RGB device detection"),
)

MAX_OUTPUT_LENGTH = 100


class ControlCenter:
    """State and actions behind the control panel window.

    Holds only a Bridge reference; every effect on the machine goes
    through it. ``snapshot`` is an immutable value replaced as a whole.
    """

    def __init__(
        self,
        bridge: Bridge,
        log_capacity: int = DEFAULT_CAPACITY,
        diagnostics_delay: float = 0.5,
        reload_refresh_delay: float = 1.0,
        confirm_reload: bool = True,
    ) -> None:
        self._bridge = bridge
        self._log = LogBuffer(log_capacity)
        self._snapshot = StatusSnapshot()
        self._touch_status = "Unknown"
        self._diagnostics_delay = diagnostics_delay
        self._reload_refresh_delay = reload_refresh_delay
        self._confirm_reload = confirm_reload
        self._pending: set[asyncio.Task] = set()

    @property
    def snapshot(self) -> StatusSnapshot:
        return self._snapshot

    @property
    def log(self) -> LogBuffer:
        return self._log

    @property
    def touch_status(self) -> str:
        return self._touch_status

    @property
    def keyboard_status(self) -> str:
        return f"Keyboard backlight at level {self._snapshot.keyboard_level}/{KEYBOARD_LEVEL_MAX}"

    @property
    def screenpad_status(self) -> str:
        return f"ScreenPad brightness at {self._snapshot.screenpad_percent}%"

    # ------------------------------------------------------------------
    # Core dispatch
    # ------------------------------------------------------------------

    async def run_operation(
        self,
        operation: Operation,
        argument: int | str | None = None,
        description: str = "",
    ) -> OperationResult:
        """Run one operation and log its outcome."""
        self._log.add(description or f"Executing: {operation.value}", Severity.INFO)
        try:
            result = await self._bridge.execute_command(operation, argument)
        except BridgeError as e:
            self._log.add(f"Execution error: {e}", Severity.ERROR)
            return OperationResult.failure(ErrorKind.SUBPROCESS_FAILURE, str(e))

        if result.success:
            self._log.add("Command completed successfully", Severity.SUCCESS)
            output = result.stdout.strip()
            if output and "password" not in output and len(output) < MAX_OUTPUT_LENGTH:
                self._log.add(f"Output: {output}", Severity.INFO)
        else:
            self._log.add(f"Command failed: {result.error}", Severity.ERROR)
            if result.stderr:
                logger.debug("%s stderr: %s", operation.value, result.stderr.strip())
        return result

    def _update(self, **fields: object) -> None:
        self._snapshot = self._snapshot.model_copy(update=fields)

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    async def set_keyboard_level(self, level: int) -> OperationResult:
        if not 0 <= level <= KEYBOARD_LEVEL_MAX:
            return self._reject(f"Keyboard level {level} is outside 0-{KEYBOARD_LEVEL_MAX}")
        name = LEVEL_NAMES[level]
        result = await self.run_operation(
            Operation.KEYBOARD_LEVEL, level, f"Setting keyboard backlight to {name}"
        )
        if result.success:
            self._update(keyboard_level=level)
            self._log.add(f"Keyboard backlight set to {name}", Severity.SUCCESS)
        return result

    async def set_rgb_mode(self, mode: str) -> OperationResult:
        result = await self.run_operation(
            Operation.RGB_MODE, mode, f"Setting RGB mode to {mode.upper()}"
        )
        if result.success:
            self._log.add(f"RGB mode set to {mode.upper()}", Severity.SUCCESS)
        return result

    async def set_custom_color(self, color: str) -> OperationResult:
        result = await self.run_operation(
            Operation.RGB_COLOR, color.lstrip("#"), f"Setting custom RGB color to {color}"
        )
        if result.success:
            self._log.add(f"Custom RGB color set to {color}", Severity.SUCCESS)
        return result

    # ------------------------------------------------------------------
    # ScreenPad
    # ------------------------------------------------------------------

    async def set_brightness(self, value: int) -> OperationResult:
        if not 0 <= value <= SCREENPAD_BRIGHTNESS_MAX:
            return self._reject(
                f"ScreenPad brightness {value} is outside 0-{SCREENPAD_BRIGHTNESS_MAX}"
            )
        percent = brightness_percent(value)
        result = await self.run_operation(
            Operation.SCREENPAD_BRIGHTNESS, value, f"Setting ScreenPad brightness to {percent}%"
        )
        if result.success:
            self._update(screenpad_brightness=value)
            self._log.add(f"ScreenPad brightness set to {percent}%", Severity.SUCCESS)
        return result

    async def toggle_screenpad(self) -> OperationResult:
        return await self._simple(
            Operation.SCREENPAD_TOGGLE, "Toggling ScreenPad display", "ScreenPad display toggled"
        )

    async def show_display_info(self) -> OperationResult:
        return await self._simple(
            Operation.SCREENPAD_INFO,
            "Retrieving display information",
            "Display information retrieved",
        )

    # ------------------------------------------------------------------
    # Touch
    # ------------------------------------------------------------------

    async def reset_touch(self) -> OperationResult:
        result = await self._simple(
            Operation.TOUCH_RESET, "Resetting touch input device", "Touch input device reset"
        )
        if result.success:
            self._touch_status = "Touch device reset - Testing recommended"
        return result

    async def fix_touch(self) -> OperationResult:
        result = await self._simple(
            Operation.TOUCH_FIX,
            "Applying touch configuration update",
            "Touch configuration refreshed",
        )
        if result.success:
            self._touch_status = "Touch settings refreshed"
        return result

    async def show_touch_info(self) -> OperationResult:
        return await self._simple(
            Operation.TOUCH_TEST,
            "Retrieving touch device information",
            "Touch device information retrieved",
        )

    async def test_touch(self) -> OperationResult:
        return await self._simple(
            Operation.TOUCH_TEST,
            "Running touch functionality test",
            "Touch functionality test completed",
        )

    async def launch_browser(self) -> OperationResult:
        return await self._simple(
            Operation.LAUNCH_BROWSER,
            "Launching touch-optimized browser",
            "Touch-optimized browser launched",
        )

    # ------------------------------------------------------------------
    # System
    # ------------------------------------------------------------------

    async def refresh_status(self) -> bool:
        """Replace the snapshot with a fresh one from the Host."""
        self._log.add("Refreshing system status...", Severity.INFO)
        try:
            snapshot = await self._bridge.get_system_status()
        except BridgeError as e:
            self._log.add(f"Failed to refresh status: {e}", Severity.ERROR)
            return False
        self._snapshot = snapshot
        self._touch_status = f"Touch device {snapshot.touch_device_label}"
        self._log.add("System status refreshed successfully", Severity.SUCCESS)
        return True

    async def run_polling(self, interval: float = 30.0) -> None:
        """Refresh status every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            await self.refresh_status()

    async def run_diagnostics(self) -> list[OperationResult]:
        self._log.add("Running comprehensive system diagnostics...", Severity.INFO)
        results = []
        for operation, description in DIAGNOSTICS:
            self._log.add(f"Running: {description}", Severity.INFO)
            results.append(await self.run_operation(operation))
            await asyncio.sleep(self._diagnostics_delay)
        self._log.add("System diagnostics completed", Severity.SUCCESS)
        return results

    async def reload_drivers(self) -> OperationResult | None:
        """Reload the drivers, asking for confirmation first if configured.

        Returns None when the user declines.
        """
        if self._confirm_reload and not await self._confirm(
            "Reload drivers",
            "Reload the ASUS drivers and touch configuration?",
            "The ScreenPad may flicker while drivers restart.",
        ):
            self._log.add("Driver reload cancelled", Severity.INFO)
            return None

        result = await self.run_operation(
            Operation.RELOAD_DRIVERS, description="Reloading ASUS drivers and touch optimization"
        )
        if result.success:
            self._log.add("Drivers reloaded successfully", Severity.SUCCESS)
            task = asyncio.create_task(self._delayed_refresh(self._reload_refresh_delay))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return result

    async def open_terminal(self) -> OperationResult:
        try:
            result = await self._bridge.open_terminal()
        except BridgeError as e:
            self._log.add(f"Terminal error: {e}", Severity.ERROR)
            return OperationResult.failure(ErrorKind.SUBPROCESS_FAILURE, str(e))
        if result.success:
            self._log.add("Terminal opened in driver directory", Severity.SUCCESS)
        else:
            self._log.add(f"Failed to open terminal: {result.error}", Severity.ERROR)
        return result

    def clear_logs(self) -> None:
        self._log.clear()
        self._log.add("Logs cleared", Severity.INFO)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def save_profile(self, path: str) -> bool:
        """Save the current keyboard level and brightness as JSON."""
        data = {
            "keyboard_level": self._snapshot.keyboard_level,
            "screenpad_brightness": self._snapshot.screenpad_brightness,
        }
        try:
            result = await self._bridge.write_file(path, json.dumps(data, indent=2))
        except BridgeError as e:
            self._log.add(f"Failed to save profile: {e}", Severity.ERROR)
            return False
        if not result.success:
            self._log.add(f"Failed to save profile: {result.error}", Severity.ERROR)
            return False
        self._log.add(f"Profile saved to {path}", Severity.SUCCESS)
        return True

    async def load_profile(self, path: str) -> bool:
        """Load a saved profile and apply it through the normal gestures."""
        try:
            result = await self._bridge.read_file(path)
        except BridgeError as e:
            self._log.add(f"Failed to load profile: {e}", Severity.ERROR)
            return False
        if not result.success:
            self._log.add(f"Failed to load profile: {result.error}", Severity.ERROR)
            return False
        try:
            data = json.loads(result.content or "")
            level = int(data["keyboard_level"])
            brightness = int(data["screenpad_brightness"])
        except (ValueError, KeyError, TypeError) as e:
            self._log.add(f"Invalid profile {path}: {e}", Severity.ERROR)
            return False

        self._log.add(f"Applying profile {path}", Severity.INFO)
        keyboard = await self.set_keyboard_level(level)
        screenpad = await self.set_brightness(brightness)
        return keyboard.success and screenpad.success

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _simple(self, operation: Operation, description: str, done: str) -> OperationResult:
        result = await self.run_operation(operation, description=description)
        if result.success:
            self._log.add(done, Severity.SUCCESS)
        return result

    def _reject(self, message: str) -> OperationResult:
        self._log.add(message, Severity.ERROR)
        return OperationResult.failure(ErrorKind.INVALID_ARGUMENT, message)

    async def _confirm(self, title: str, message: str, detail: str) -> bool:
        options = DialogOptions(
            type="question", title=title, message=message, detail=detail,
            buttons=["Reload", "Cancel"],
        )
        try:
            answer = await self._bridge.show_dialog(options)
        except BridgeError as e:
            self._log.add(f"Dialog error: {e}", Severity.ERROR)
            return False
        return answer.response == 0

    async def _delayed_refresh(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.refresh_status()
