"""Tests for the HttpBridge backend."""

from __future__ import annotations

import asyncio
import json
import socket
import threading
import time
from pathlib import Path
from typing import Callable, Iterator
from unittest.mock import AsyncMock

import httpx
import pytest
import uvicorn

from duocontrol.bridge.base import Bridge, BridgeError
from duocontrol.bridge.http_backend import HttpBridge
from duocontrol.config.settings import HostConfig, ProbeConfig, Settings
from duocontrol.domain.models import (
    DialogOptions,
    DialogResult,
    ErrorKind,
    Operation,
    OperationResult,
    StatusSnapshot,
)
from duocontrol.host.desktop import DialogService
from duocontrol.host.dispatcher import Dispatcher
from duocontrol.host.server import create_app
from duocontrol.host.status import StatusPoller
from duocontrol.panel.controller import ControlCenter


def _mock_transport(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
    def wrapped(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/health":
            return httpx.Response(200, json={"status": "ok"})
        return handler(request)

    return httpx.MockTransport(wrapped)


class TestHttpBridgeInit:
    def test_init_defaults(self) -> None:
        bridge = HttpBridge()
        assert bridge._base_url == "http://127.0.0.1:8765"
        assert bridge._timeout == 15.0

    def test_init_custom_url(self) -> None:
        bridge = HttpBridge(base_url="http://localhost:9999/")
        assert bridge._base_url == "http://localhost:9999"

    def test_is_a_bridge(self) -> None:
        assert isinstance(HttpBridge(), Bridge)


class TestHttpBridgeRequests:
    @pytest.mark.asyncio
    async def test_execute_payload(self) -> None:
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "stdout": "ok\n"})

        async with HttpBridge(transport=_mock_transport(handler)) as bridge:
            result = await bridge.execute_command(Operation.KEYBOARD_LEVEL, 2)

        assert seen == [{"operation": "keyboard_level", "argument": 2}]
        assert result.success
        assert result.stdout == "ok\n"

    @pytest.mark.asyncio
    async def test_server_error_raises(self) -> None:
        transport = _mock_transport(lambda request: httpx.Response(500, text="boom"))
        async with HttpBridge(transport=transport) as bridge:
            with pytest.raises(BridgeError, match="/status"):
                await bridge.get_system_status()

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self) -> None:
        transport = _mock_transport(lambda request: httpx.Response(200, text="not json"))
        async with HttpBridge(transport=transport) as bridge:
            with pytest.raises(BridgeError, match="Malformed response"):
                await bridge.open_terminal()

    @pytest.mark.asyncio
    async def test_not_connected(self) -> None:
        with pytest.raises(BridgeError, match="Not connected"):
            await HttpBridge().get_system_status()

    @pytest.mark.asyncio
    async def test_connect_failure(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        bridge = HttpBridge(transport=httpx.MockTransport(refuse))
        with pytest.raises(BridgeError, match="Failed to connect"):
            await bridge.connect()
        assert bridge._client is None

    @pytest.mark.asyncio
    async def test_disconnect_twice(self) -> None:
        bridge = HttpBridge(transport=_mock_transport(lambda r: httpx.Response(404)))
        await bridge.connect()
        await bridge.disconnect()
        await bridge.disconnect()


class TestHttpBridgeAgainstHost:
    """HttpBridge wired to an in-process Host over ASGI."""

    @pytest.fixture
    def settings(self, scripts_dir: Path, tmp_path: Path) -> Settings:
        keyboard = tmp_path / "kbd"
        keyboard.write_text("3\n")
        return Settings(
            host=HostConfig(scripts_dir=scripts_dir, files_root=tmp_path / "files"),
            probes=ProbeConfig(
                keyboard_brightness_path=keyboard,
                screenpad_brightness_path=tmp_path / "missing",
                touch_device_keyword="NO_SUCH_DEVICE_KEYWORD",
            ),
        )

    @pytest.fixture
    def bridge(self, settings: Settings) -> HttpBridge:
        transport = httpx.ASGITransport(app=create_app(settings))
        return HttpBridge(base_url="http://host", transport=transport)

    @pytest.mark.asyncio
    async def test_execute_real_script(self, bridge: HttpBridge, make_script: Callable) -> None:
        make_script("screenpad_control.sh", 'echo "$@"')
        async with bridge:
            result = await bridge.execute_command("screenpad_brightness", 117)
        assert result.success
        assert result.stdout == "brightness set 117\n"

    @pytest.mark.asyncio
    async def test_permission_denied(self, bridge: HttpBridge, make_script: Callable) -> None:
        make_script("fix_touch.sh", "echo 'permission denied' >&2; exit 1")
        async with bridge:
            result = await bridge.execute_command(Operation.TOUCH_FIX)
        assert not result.success
        assert result.error_kind is ErrorKind.SUBPROCESS_FAILURE
        assert "permission denied" in result.error

    @pytest.mark.asyncio
    async def test_unknown_operation(self, bridge: HttpBridge) -> None:
        async with bridge:
            result = await bridge.execute_command("format_disk", "/dev/sda")
        assert result.error_kind is ErrorKind.UNKNOWN_OPERATION

    @pytest.mark.asyncio
    async def test_status_degrades_missing_probes(self, bridge: HttpBridge) -> None:
        async with bridge:
            snapshot = await bridge.get_system_status()
        assert snapshot.keyboard_level == 3
        assert snapshot.screenpad_brightness == 0
        assert snapshot.touch_device_connected is False

    @pytest.mark.asyncio
    async def test_file_round_trip(self, bridge: HttpBridge) -> None:
        async with bridge:
            written = await bridge.write_file("profile.json", '{"a": 1}')
            read = await bridge.read_file("profile.json")
            denied = await bridge.read_file("../../etc/passwd")
        assert written.success
        assert read.content == '{"a": 1}'
        assert denied.error_kind is ErrorKind.PATH_DENIED

    @pytest.mark.asyncio
    async def test_dialog_without_display(self, settings: Settings) -> None:
        dialogs = AsyncMock(spec=DialogService)
        dialogs.show.return_value = DialogResult(response=1)
        transport = httpx.ASGITransport(app=create_app(settings, dialogs=dialogs))
        async with HttpBridge(base_url="http://host", transport=transport) as bridge:
            result = await bridge.show_dialog(DialogOptions(type="question", message="?"))
        assert result.response == 1


class TestHttpBridgeOverNetwork:
    """HttpBridge against a Host served by uvicorn on a loopback port."""

    DIALOG_DELAY = 1.0

    @pytest.fixture
    def host_url(self, tmp_path: Path) -> Iterator[str]:
        async def answer_slowly(options: DialogOptions) -> DialogResult:
            await asyncio.sleep(self.DIALOG_DELAY)
            return DialogResult(response=0)

        dialogs = AsyncMock(spec=DialogService)
        dialogs.show.side_effect = answer_slowly
        dispatcher = AsyncMock(spec=Dispatcher)
        dispatcher.scripts_dir = tmp_path
        dispatcher.execute.return_value = OperationResult.ok("reloaded\n")
        poller = AsyncMock(spec=StatusPoller)
        poller.poll.return_value = StatusSnapshot(keyboard_level=1)
        settings = Settings(host=HostConfig(scripts_dir=tmp_path, files_root=tmp_path / "files"))
        app = create_app(settings, dispatcher=dispatcher, poller=poller, dialogs=dialogs)

        with socket.socket() as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]
        server = uvicorn.Server(
            uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning")
        )
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        deadline = time.monotonic() + 10
        while not server.started:
            if time.monotonic() > deadline:
                raise RuntimeError("Host did not start")
            time.sleep(0.05)

        yield f"http://127.0.0.1:{port}"

        server.should_exit = True
        thread.join(timeout=5)

    @pytest.mark.asyncio
    async def test_slow_dialog_outlasts_request_timeout(self, host_url: str) -> None:
        async with HttpBridge(base_url=host_url, timeout=0.3) as bridge:
            result = await bridge.show_dialog(DialogOptions(type="question", message="?"))
        assert result.response == 0

    @pytest.mark.asyncio
    async def test_other_requests_keep_client_timeout(self, host_url: str) -> None:
        bridge = HttpBridge(base_url=host_url, timeout=0.3)
        async with bridge:
            assert bridge._client.timeout.read == 0.3

    @pytest.mark.asyncio
    async def test_confirmed_reload_runs_after_slow_answer(self, host_url: str) -> None:
        async with HttpBridge(base_url=host_url, timeout=0.3) as bridge:
            controller = ControlCenter(bridge, reload_refresh_delay=0)
            result = await controller.reload_drivers()
            await asyncio.sleep(0.2)

        assert result is not None
        assert result.success
        assert controller.snapshot.keyboard_level == 1
        messages = [entry.message for entry in controller.log.entries()]
        assert "Drivers reloaded successfully" in messages
        assert not any(m.startswith("Dialog error") for m in messages)
