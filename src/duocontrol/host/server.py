"""FastAPI HTTP server for the privileged Host.

Exposes the six Bridge operations and nothing else:

    GET  /health        -> {"status": "ok", ...}
    POST /execute       <- {"operation": "keyboard_level", "argument": 2}
    GET  /status        -> StatusSnapshot
    POST /dialog        <- DialogOptions
    POST /terminal      -> OperationResult
    POST /files/read    <- {"path": "profile.json"}
    POST /files/write   <- {"path": "profile.json", "content": "..."}

Operation failures are reported in the response body with HTTP 200;
only malformed request bodies are rejected (422).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from pydantic import BaseModel, Field

from duocontrol import __version__
from duocontrol.config.settings import Settings, load_settings
from duocontrol.domain.models import (
    DialogOptions,
    DialogResult,
    FileResult,
    OperationRequest,
    OperationResult,
    StatusSnapshot,
)
from duocontrol.host.desktop import DialogService, TerminalLauncher
from duocontrol.host.dispatcher import Dispatcher
from duocontrol.host.files import FileStore
from duocontrol.host.runner import CommandRunner
from duocontrol.host.status import StatusPoller
from duocontrol.utils.logging import setup_logging

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------

class ReadFileRequest(BaseModel):
    path: str = Field(description="Path relative to the Host's files root")


class WriteFileRequest(BaseModel):
    path: str = Field(description="Path relative to the Host's files root")
    content: str = Field(description="UTF-8 text to write")


class HostHealth(BaseModel):
    status: str = "ok"
    version: str = __version__
    scripts_dir: str = ""
    scripts_dir_exists: bool = False


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(
    settings: Settings | None = None,
    dispatcher: Dispatcher | None = None,
    poller: StatusPoller | None = None,
    dialogs: DialogService | None = None,
    terminal: TerminalLauncher | None = None,
    files: FileStore | None = None,
) -> FastAPI:
    """Create the Host application.

    Args:
        settings: Configuration used to build any component not injected.
        dispatcher: Optional pre-configured Dispatcher (for testing).
        poller: Optional pre-configured StatusPoller (for testing).
        dialogs: Optional pre-configured DialogService (for testing).
        terminal: Optional pre-configured TerminalLauncher (for testing).
        files: Optional pre-configured FileStore (for testing).
    """
    settings = settings or Settings()
    host = settings.host
    probes = settings.probes
    runner = CommandRunner(timeout=host.command_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        d: Dispatcher = app.state.dispatcher
        if not d.scripts_dir.is_dir():
            logger.warning(
                "Scripts directory %s not found; operations will fail until it exists.",
                d.scripts_dir,
            )
        logger.info("Host started (scripts=%s, files=%s)", d.scripts_dir, app.state.files.root)
        yield
        logger.info("Host stopped")

    app = FastAPI(
        title="duocontrol Host",
        description="Privileged command host for the duocontrol panel",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.dispatcher = dispatcher or Dispatcher(
        runner, scripts_dir=host.scripts_dir, browser_script=host.browser_script
    )
    app.state.poller = poller or StatusPoller(
        runner,
        keyboard_path=probes.keyboard_brightness_path,
        screenpad_path=probes.screenpad_brightness_path,
        touch_keyword=probes.touch_device_keyword,
        probe_timeout=probes.probe_timeout,
    )
    app.state.dialogs = dialogs or DialogService(runner, timeout=host.dialog_timeout)
    app.state.terminal = terminal or TerminalLauncher(
        runner, working_directory=host.scripts_dir, terminal_command=host.terminal_command
    )
    app.state.files = files or FileStore(host.files_root)

    @app.get("/health")
    async def health_check() -> HostHealth:
        scripts_dir = app.state.dispatcher.scripts_dir
        return HostHealth(scripts_dir=str(scripts_dir), scripts_dir_exists=scripts_dir.is_dir())

    @app.post("/execute")
    async def execute_command(request: OperationRequest) -> OperationResult:
        return await app.state.dispatcher.execute(request)

    @app.get("/status")
    async def get_system_status() -> StatusSnapshot:
        return await app.state.poller.poll()

    @app.post("/dialog")
    async def show_dialog(options: DialogOptions) -> DialogResult:
        return await app.state.dialogs.show(options)

    @app.post("/terminal")
    async def open_terminal() -> OperationResult:
        return await app.state.terminal.open()

    @app.post("/files/read")
    async def read_file(request: ReadFileRequest) -> FileResult:
        return await app.state.files.read(request.path)

    @app.post("/files/write")
    async def write_file(request: WriteFileRequest) -> OperationResult:
        return await app.state.files.write(request.path, request.content)

    return app


def main(config_path: Path | str | None = None) -> None:
    """Entry point for running the Host standalone."""
    settings = load_settings(config_path)
    setup_logging(settings.logging)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host.bind_host, port=settings.host.port)


if __name__ == "__main__":
    main()
