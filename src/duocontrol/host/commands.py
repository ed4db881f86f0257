"""Whitelisted command table for the Host.

Every operation the Display Layer may request maps to exactly one argv
template here. Arguments are validated before lookup and then appended
as separate argv items; nothing is ever passed through a shell.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from duocontrol.domain.models import (
    KEYBOARD_LEVEL_MAX,
    SCREENPAD_BRIGHTNESS_MAX,
    Operation,
    OperationRequest,
)

RGB_MODE_PATTERN = re.compile(r"[a-z][a-z0-9_-]{0,31}")
HEX_COLOR_PATTERN = re.compile(r"#?([0-9a-fA-F]{6})")

# Marker for the configurable browser launcher script.
BROWSER_SCRIPT = "<browser-script>"


class CommandError(Exception):
    """Raised when a request cannot be turned into a command line."""

    def __init__(self, message: str, operation: str = "") -> None:
        super().__init__(message)
        self.operation = operation


class UnknownOperationError(CommandError):
    """The requested operation is not in the whitelist."""


class InvalidArgumentError(CommandError):
    """The argument is missing, superfluous, malformed or out of range."""


def _int_in_range(low: int, high: int) -> Callable[[int | str | None], str]:
    def validate(value: int | str | None) -> str:
        if isinstance(value, bool):
            raise ValueError(f"expected an integer, got {value!r}")
        if isinstance(value, str) and re.fullmatch(r"\d+", value.strip()):
            value = int(value.strip())
        if not isinstance(value, int):
            raise ValueError(f"expected an integer, got {value!r}")
        if not low <= value <= high:
            raise ValueError(f"{value} is outside {low}-{high}")
        return str(value)

    return validate


def _rgb_mode(value: int | str | None) -> str:
    if not isinstance(value, str) or not RGB_MODE_PATTERN.fullmatch(value):
        raise ValueError(f"invalid RGB mode {value!r}")
    return value


def _hex_color(value: int | str | None) -> str:
    match = HEX_COLOR_PATTERN.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"invalid color {value!r}, expected RRGGBB")
    return match.group(1).upper()


@dataclass(frozen=True)
class CommandSpec:
    """argv template for one operation.

    ``program`` is relative to the scripts directory when it starts with
    ``./``. If ``validate`` is set the operation requires an argument,
    which is appended after ``args``.
    """

    program: str
    args: tuple[str, ...] = ()
    validate: Callable[[int | str | None], str] | None = None


COMMANDS: dict[Operation, CommandSpec] = {
    Operation.KEYBOARD_LEVEL: CommandSpec(
        "./rgb_control.sh", ("basic",), _int_in_range(0, KEYBOARD_LEVEL_MAX)
    ),
    Operation.RGB_MODE: CommandSpec("./rgb_control.sh", ("mode",), _rgb_mode),
    Operation.RGB_COLOR: CommandSpec("./rgb_control.sh", ("color",), _hex_color),
    Operation.RGB_LIST: CommandSpec("./rgb_control.sh", ("list",)),
    Operation.SCREENPAD_BRIGHTNESS: CommandSpec(
        "./screenpad_control.sh",
        ("brightness", "set"),
        _int_in_range(0, SCREENPAD_BRIGHTNESS_MAX),
    ),
    Operation.SCREENPAD_TOGGLE: CommandSpec("./screenpad_control.sh", ("display", "toggle")),
    Operation.SCREENPAD_INFO: CommandSpec("./screenpad_control.sh", ("display", "status")),
    Operation.TOUCH_RESET: CommandSpec("./screenpad_control.sh", ("touch", "reset")),
    Operation.TOUCH_FIX: CommandSpec("./fix_touch.sh"),
    Operation.TOUCH_TEST: CommandSpec("./test_touch.sh"),
    Operation.RELOAD_DRIVERS: CommandSpec("./immediate_touch_fix.sh"),
    Operation.LAUNCH_BROWSER: CommandSpec(BROWSER_SCRIPT),
    Operation.LIST_MONITORS: CommandSpec("xrandr", ("--listmonitors",)),
}


def resolve_operation(name: str) -> Operation:
    """Look up an operation by name, raising UnknownOperationError."""
    try:
        return Operation(name)
    except ValueError:
        raise UnknownOperationError(f"Unknown operation: {name!r}", operation=name) from None


def build_command(
    request: OperationRequest,
    scripts_dir: Path,
    browser_script: Path,
) -> list[str]:
    """Turn a request into an argv list.

    Raises:
        UnknownOperationError: The operation is not whitelisted.
        InvalidArgumentError: The argument failed validation.
    """
    operation = resolve_operation(request.operation)
    spec = COMMANDS[operation]

    argv = [_resolve_program(spec.program, scripts_dir, browser_script), *spec.args]
    if spec.validate is None:
        if request.argument is not None:
            raise InvalidArgumentError(
                f"{operation.value} takes no argument", operation=operation.value
            )
        return argv

    if request.argument is None:
        raise InvalidArgumentError(
            f"{operation.value} requires an argument", operation=operation.value
        )
    try:
        argv.append(spec.validate(request.argument))
    except ValueError as e:
        raise InvalidArgumentError(f"{operation.value}: {e}", operation=operation.value) from e
    return argv


def _resolve_program(program: str, scripts_dir: Path, browser_script: Path) -> str:
    if program == BROWSER_SCRIPT:
        return str(browser_script.expanduser())
    if program.startswith("./"):
        return str(scripts_dir.expanduser() / program[2:])
    return program
