"""Abstract Bridge between the Display Layer and the Host.

The Display Layer holds a Bridge and nothing else. The interface is
deliberately closed: six operations, no generic "run anything" call and
no raw filesystem or subprocess handle, so a compromised or extended
display cannot reach beyond what is declared here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from duocontrol.domain.models import (
    DialogOptions,
    DialogResult,
    FileResult,
    Operation,
    OperationResult,
    StatusSnapshot,
)

logger = logging.getLogger(__name__)


class Bridge(ABC):
    """Capability-restricted interface to the privileged Host.

    Example usage::

        async with HttpBridge(base_url="http://127.0.0.1:8765") as bridge:
            result = await bridge.execute_command(Operation.KEYBOARD_LEVEL, 2)
            status = await bridge.get_system_status()
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish the connection to the Host.

        Raises:
            BridgeError: If the Host cannot be reached.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the connection. Safe to call more than once."""
        ...

    @abstractmethod
    async def execute_command(
        self, operation: Operation | str, argument: int | str | None = None
    ) -> OperationResult:
        """Run one whitelisted operation on the Host.

        Operation failures (unknown name, bad argument, non-zero exit,
        timeout) come back as failure results, not exceptions.

        Raises:
            BridgeError: If the request could not be delivered.
        """
        ...

    @abstractmethod
    async def get_system_status(self) -> StatusSnapshot:
        """Fetch a fresh status snapshot."""
        ...

    @abstractmethod
    async def show_dialog(self, options: DialogOptions) -> DialogResult:
        """Show a native message box and wait for the answer."""
        ...

    @abstractmethod
    async def open_terminal(self) -> OperationResult:
        """Open a terminal window in the driver scripts directory."""
        ...

    @abstractmethod
    async def read_file(self, path: str) -> FileResult:
        """Read a text file below the Host's files root."""
        ...

    @abstractmethod
    async def write_file(self, path: str, content: str) -> OperationResult:
        """Write a text file below the Host's files root."""
        ...

    async def __aenter__(self) -> Bridge:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()


class BridgeError(Exception):
    """Raised when a Bridge call cannot reach the Host."""

    def __init__(self, message: str, operation: str = "") -> None:
        super().__init__(message)
        self.operation = operation
