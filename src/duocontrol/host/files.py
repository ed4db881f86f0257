"""File read/write pass-through, confined to one root directory."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from duocontrol.domain.models import ErrorKind, FileResult, OperationResult

logger = logging.getLogger(__name__)


class PathDeniedError(Exception):
    """Raised when a path resolves outside the store root."""


class FileStore:
    """Reads and writes UTF-8 text files below ``root``.

    Relative paths are taken relative to ``root``. Absolute paths are
    accepted only if they resolve inside it.
    """

    def __init__(self, root: Path) -> None:
        self._root = root.expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> Path:
        candidate = (self._root / Path(path).expanduser()).resolve()
        if not candidate.is_relative_to(self._root):
            raise PathDeniedError(f"{path} is outside {self._root}")
        return candidate

    async def read(self, path: str) -> FileResult:
        try:
            target = self.resolve(path)
            content = await asyncio.to_thread(target.read_text, encoding="utf-8")
        except PathDeniedError as e:
            logger.warning("Refused read: %s", e)
            return FileResult(success=False, error=str(e), error_kind=ErrorKind.PATH_DENIED)
        except (OSError, UnicodeDecodeError) as e:
            return FileResult(success=False, error=str(e), error_kind=ErrorKind.IO_ERROR)
        return FileResult(success=True, content=content)

    async def write(self, path: str, content: str) -> OperationResult:
        try:
            target = self.resolve(path)
            await asyncio.to_thread(self._write, target, content)
        except PathDeniedError as e:
            logger.warning("Refused write: %s", e)
            return OperationResult.failure(ErrorKind.PATH_DENIED, str(e))
        except OSError as e:
            return OperationResult.failure(ErrorKind.IO_ERROR, str(e))
        logger.info("Wrote %d characters to %s", len(content), target)
        return OperationResult.ok()

    @staticmethod
    def _write(target: Path, content: str) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
