"""HTTP Bridge backend.

Forwards each Bridge operation to the matching Host route.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from duocontrol.bridge.base import Bridge, BridgeError
from duocontrol.domain.models import (
    DialogOptions,
    DialogResult,
    FileResult,
    Operation,
    OperationResult,
    StatusSnapshot,
)

logger = logging.getLogger(__name__)


class HttpBridge(Bridge):
    """Talks to the Host's HTTP API."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8765",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the HTTP client and verify the Host is up."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        try:
            resp = await self._client.get("/health")
            resp.raise_for_status()
            logger.info("Connected to Host at %s", self._base_url)
        except Exception as e:
            await self._client.aclose()
            self._client = None
            raise BridgeError(f"Failed to connect to Host: {e}", operation="connect") from e

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Host")

    async def execute_command(
        self, operation: Operation | str, argument: int | str | None = None
    ) -> OperationResult:
        name = operation.value if isinstance(operation, Operation) else operation
        resp = await self._request("POST", "/execute", {"operation": name, "argument": argument})
        logger.debug("Executed %s(%r)", name, argument)
        return self._parse(OperationResult, resp, "/execute")

    async def get_system_status(self) -> StatusSnapshot:
        resp = await self._request("GET", "/status")
        return self._parse(StatusSnapshot, resp, "/status")

    async def show_dialog(self, options: DialogOptions) -> DialogResult:
        # The user may take minutes to answer; the Host bounds the wait with
        # its dialog timeout, so only connecting and writing are limited here.
        timeout = httpx.Timeout(self._timeout, read=None)
        resp = await self._request("POST", "/dialog", options.model_dump(), timeout=timeout)
        return self._parse(DialogResult, resp, "/dialog")

    async def open_terminal(self) -> OperationResult:
        resp = await self._request("POST", "/terminal")
        return self._parse(OperationResult, resp, "/terminal")

    async def read_file(self, path: str) -> FileResult:
        resp = await self._request("POST", "/files/read", {"path": path})
        return self._parse(FileResult, resp, "/files/read")

    async def write_file(self, path: str, content: str) -> OperationResult:
        resp = await self._request("POST", "/files/write", {"path": path, "content": content})
        return self._parse(OperationResult, resp, "/files/write")

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> httpx.Response:
        """Send a request to the Host, optionally overriding the client timeout."""
        if self._client is None:
            raise BridgeError("Not connected to Host", operation=path)
        kwargs = {"json": payload}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.HTTPError as e:
            raise BridgeError(f"HTTP request to {path} failed: {e}", operation=path) from e

    @staticmethod
    def _parse(model, resp: httpx.Response, path: str):
        try:
            return model.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise BridgeError(f"Malformed response from {path}: {e}", operation=path) from e
