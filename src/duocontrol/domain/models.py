"""Core domain models for the duocontrol system.

These models are the values that cross the Bridge: operation requests
from the Display Layer, structured results from the Host, device status
snapshots, dialog options, and the entries of the on-screen log.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

KEYBOARD_LEVEL_MAX = 3
SCREENPAD_BRIGHTNESS_MAX = 235


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Operation(str, enum.Enum):
    """The closed set of operations the Host agrees to run."""

    KEYBOARD_LEVEL = "keyboard_level"
    RGB_MODE = "rgb_mode"
    RGB_COLOR = "rgb_color"
    RGB_LIST = "rgb_list"
    SCREENPAD_BRIGHTNESS = "screenpad_brightness"
    SCREENPAD_TOGGLE = "screenpad_toggle"
    SCREENPAD_INFO = "screenpad_info"
    TOUCH_RESET = "touch_reset"
    TOUCH_FIX = "touch_fix"
    TOUCH_TEST = "touch_test"
    RELOAD_DRIVERS = "reload_drivers"
    LAUNCH_BROWSER = "launch_browser"
    LIST_MONITORS = "list_monitors"


class ErrorKind(str, enum.Enum):
    """Why an operation failed."""

    UNKNOWN_OPERATION = "unknown_operation"
    INVALID_ARGUMENT = "invalid_argument"
    TIMEOUT = "timeout"
    SUBPROCESS_FAILURE = "subprocess_failure"
    PATH_DENIED = "path_denied"
    IO_ERROR = "io_error"


class Severity(str, enum.Enum):
    """Severity of a log panel entry."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Requests / results
# ---------------------------------------------------------------------------


class OperationRequest(BaseModel):
    """A request to run one whitelisted operation.

    ``operation`` stays a plain string on the wire so that names outside
    the whitelist reach the dispatcher and come back as structured
    ``unknown_operation`` failures.
    """

    model_config = ConfigDict(frozen=True)

    operation: str = Field(description="Operation name, e.g. 'keyboard_level'")
    argument: int | str | None = Field(default=None, description="Optional argument")


class OperationResult(BaseModel):
    """Outcome of a single Host operation. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    success: bool
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    error_kind: ErrorKind | None = None
    exit_code: int | None = None
    duration: float = Field(default=0.0, ge=0)

    @classmethod
    def ok(cls, stdout: str = "", stderr: str = "", **kwargs: object) -> OperationResult:
        return cls(success=True, stdout=stdout, stderr=stderr, **kwargs)

    @classmethod
    def failure(
        cls, kind: ErrorKind, error: str, stdout: str = "", stderr: str = "", **kwargs: object
    ) -> OperationResult:
        return cls(
            success=False, error=error, error_kind=kind, stdout=stdout, stderr=stderr, **kwargs
        )


class FileResult(OperationResult):
    """Result of a file read; ``content`` is set on success."""

    content: str | None = None


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


def brightness_percent(value: int) -> int:
    """Convert a raw ScreenPad brightness (0-235) to a rounded percentage.

    Halves round up, so 117.5 / 235 displays as 50%.
    """
    return int(value * 100 / SCREENPAD_BRIGHTNESS_MAX + 0.5)


class StatusSnapshot(BaseModel):
    """A complete point-in-time read of device status.

    Rebuilt from scratch on every poll; fields that could not be read
    hold their defaults.
    """

    model_config = ConfigDict(frozen=True)

    keyboard_level: int = Field(default=0, ge=0, le=KEYBOARD_LEVEL_MAX)
    screenpad_brightness: int = Field(default=0, ge=0, le=SCREENPAD_BRIGHTNESS_MAX)
    touch_device_connected: bool = False
    taken_at: datetime = Field(default_factory=datetime.now)

    @property
    def screenpad_percent(self) -> int:
        return brightness_percent(self.screenpad_brightness)

    @property
    def touch_device_label(self) -> str:
        return "Connected" if self.touch_device_connected else "Disconnected"


# ---------------------------------------------------------------------------
# Dialogs
# ---------------------------------------------------------------------------


class DialogOptions(BaseModel):
    """Native message box options."""

    model_config = ConfigDict(frozen=True)

    type: Literal["none", "info", "error", "question", "warning"] = "none"
    title: str = ""
    message: str
    detail: str = ""
    buttons: list[str] = Field(default_factory=list, max_length=2)


class DialogResult(BaseModel):
    """Index of the clicked button, or -1 if no choice was made."""

    model_config = ConfigDict(frozen=True)

    response: int = -1
    error: str | None = None


# ---------------------------------------------------------------------------
# Log
# ---------------------------------------------------------------------------


class LogEntry(BaseModel):
    """One line of the control center log panel."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=datetime.now)
    severity: Severity = Severity.INFO
    message: str
