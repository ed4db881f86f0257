"""Desktop integration for the Host: native dialogs and the terminal."""

from __future__ import annotations

import logging
from pathlib import Path

from duocontrol.domain.models import DialogOptions, DialogResult, OperationResult
from duocontrol.host.runner import CommandRunner

logger = logging.getLogger(__name__)

ZENITY_KINDS = {
    "none": "--info",
    "question": "--question",
    "info": "--info",
    "warning": "--warning",
    "error": "--error",
}


def build_dialog_command(options: DialogOptions, program: str = "zenity") -> list[str]:
    """Translate message box options to a zenity argv."""
    kind = ZENITY_KINDS[options.type]
    text = options.message
    if options.detail:
        text = f"{text}\n\n{options.detail}"
    argv = [program, kind, f"--text={text}", "--no-markup"]
    if options.title:
        argv.append(f"--title={options.title}")
    if options.buttons:
        argv.append(f"--ok-label={options.buttons[0]}")
    if kind == "--question" and len(options.buttons) > 1:
        argv.append(f"--cancel-label={options.buttons[1]}")
    return argv


class DialogService:
    """Shows native message boxes through zenity."""

    def __init__(self, runner: CommandRunner, timeout: float = 300.0, program: str = "zenity") -> None:
        self._runner = runner
        self._timeout = timeout
        self._program = program

    async def show(self, options: DialogOptions) -> DialogResult:
        argv = build_dialog_command(options, self._program)
        result = await self._runner.run(argv, timeout=self._timeout)
        if result.success:
            return DialogResult(response=0)
        # zenity exits 1 for Cancel/No, which is only meaningful for questions
        if result.exit_code == 1 and argv[1] == "--question":
            return DialogResult(response=1)
        logger.warning("Dialog %r not answered: %s", options.title, result.error)
        return DialogResult(response=-1, error=result.error)


class TerminalLauncher:
    """Opens a terminal window in the driver scripts directory."""

    def __init__(
        self,
        runner: CommandRunner,
        working_directory: Path,
        terminal_command: str = "gnome-terminal",
    ) -> None:
        self._runner = runner
        self._working_directory = working_directory.expanduser()
        self._terminal_command = terminal_command

    def build_command(self) -> list[str]:
        return [self._terminal_command, f"--working-directory={self._working_directory}"]

    async def open(self) -> OperationResult:
        return await self._runner.spawn_detached(self.build_command())
