"""Host dispatcher: operation request in, structured result out."""

from __future__ import annotations

import logging
from pathlib import Path

from duocontrol.domain.models import ErrorKind, OperationRequest, OperationResult
from duocontrol.host.commands import (
    InvalidArgumentError,
    UnknownOperationError,
    build_command,
)
from duocontrol.host.runner import CommandRunner

logger = logging.getLogger(__name__)


class Dispatcher:
    """Resolves requests against the command table and runs them.

    Each accepted request spawns exactly one subprocess. Rejected requests
    spawn nothing. ``execute`` never raises; every failure path becomes a
    failure result so nothing escapes across the Host boundary.
    """

    def __init__(
        self,
        runner: CommandRunner,
        scripts_dir: Path,
        browser_script: Path,
    ) -> None:
        self._runner = runner
        self._scripts_dir = scripts_dir.expanduser()
        self._browser_script = browser_script

    @property
    def scripts_dir(self) -> Path:
        return self._scripts_dir

    async def execute(self, request: OperationRequest) -> OperationResult:
        try:
            argv = build_command(request, self._scripts_dir, self._browser_script)
        except UnknownOperationError as e:
            logger.warning("Rejected request: %s", e)
            return OperationResult.failure(ErrorKind.UNKNOWN_OPERATION, str(e))
        except InvalidArgumentError as e:
            logger.warning("Rejected request: %s", e)
            return OperationResult.failure(ErrorKind.INVALID_ARGUMENT, str(e))

        logger.info("Dispatching %s: %s", request.operation, " ".join(argv))
        try:
            result = await self._runner.run(argv, cwd=self._scripts_dir)
        except Exception as e:
            logger.exception("Unexpected error running %s", request.operation)
            return OperationResult.failure(
                ErrorKind.SUBPROCESS_FAILURE, f"{request.operation} failed: {e}"
            )

        if not result.success:
            logger.warning("%s failed: %s", request.operation, result.error)
        return result
