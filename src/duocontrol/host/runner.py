"""Subprocess runner for Host operations.

Runs one argv per call with a hard timeout and reports the outcome as an
OperationResult. Children start in their own session so that a timeout
can kill the script together with anything it spawned.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from pathlib import Path

from duocontrol.domain.models import ErrorKind, OperationResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class CommandRunner:
    """Spawns whitelisted commands and captures their output."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    async def run(
        self,
        argv: list[str],
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> OperationResult:
        """Run ``argv`` to completion and return its result.

        Never raises for operational failures: launch errors, non-zero
        exits and timeouts all come back as failure results.
        """
        limit = self._timeout if timeout is None else timeout
        program = Path(argv[0]).name
        started = time.monotonic()

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd) if cwd is not None else None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning("Failed to launch %s: %s", program, e)
            return OperationResult.failure(
                ErrorKind.SUBPROCESS_FAILURE,
                f"Failed to launch {program}: {e}",
                duration=time.monotonic() - started,
            )

        try:
            out, err = await asyncio.wait_for(process.communicate(), timeout=limit)
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.warning("%s timed out after %.1fs (pid=%d)", program, limit, process.pid)
            return OperationResult.failure(
                ErrorKind.TIMEOUT,
                f"{program} timed out after {limit:g}s",
                duration=time.monotonic() - started,
            )
        except BaseException:
            # Cancelled by the caller: the child must not outlive the call.
            if process.returncode is None:
                await self._kill(process)
            raise

        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")
        duration = time.monotonic() - started
        code = process.returncode

        if code != 0:
            detail = stderr.strip() or stdout.strip()
            message = f"{program} exited with status {code}"
            if detail:
                message = f"{message}: {detail}"
            return OperationResult.failure(
                ErrorKind.SUBPROCESS_FAILURE,
                message,
                stdout=stdout,
                stderr=stderr,
                exit_code=code,
                duration=duration,
            )

        logger.debug("%s finished in %.2fs", program, duration)
        return OperationResult.ok(stdout, stderr, exit_code=code, duration=duration)

    async def spawn_detached(self, argv: list[str], cwd: Path | None = None) -> OperationResult:
        """Start ``argv`` without waiting for it (e.g. a terminal window)."""
        program = Path(argv[0]).name
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd) if cwd is not None else None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning("Failed to launch %s: %s", program, e)
            return OperationResult.failure(
                ErrorKind.SUBPROCESS_FAILURE, f"Failed to launch {program}: {e}"
            )
        logger.info("Started %s (pid=%d)", program, process.pid)
        return OperationResult.ok()

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        """Kill the process group of ``process`` and reap the child."""
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except PermissionError:
            process.kill()
        await process.wait()
