"""Command-line interface for duocontrol.

Starts the privileged Host, opens the control panel, or runs a single
operation against a running Host.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="duocontrol",
        description="ASUS Zephyrus Duo control center",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/duocontrol.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("host", help="Start the privileged Host server")
    subparsers.add_parser("panel", help="Open the control panel window")
    subparsers.add_parser("status", help="Print the current device status as JSON")

    exec_parser = subparsers.add_parser("exec", help="Run one operation through the Host")
    exec_parser.add_argument("operation", help="Operation name, e.g. keyboard_level")
    exec_parser.add_argument("argument", nargs="?", default=None, help="Optional argument")

    return parser.parse_args(argv)


def _make_bridge(settings):
    from duocontrol.bridge.http_backend import HttpBridge

    return HttpBridge(base_url=settings.bridge.base_url, timeout=settings.bridge.timeout)


async def _run_panel(settings) -> None:
    """Connect to the Host and run the panel until its window closes."""
    from duocontrol.panel.controller import ControlCenter
    from duocontrol.panel.window import ControlPanel

    panel_cfg = settings.panel
    async with _make_bridge(settings) as bridge:
        controller = ControlCenter(
            bridge,
            log_capacity=panel_cfg.log_capacity,
            diagnostics_delay=panel_cfg.diagnostics_delay,
            reload_refresh_delay=panel_cfg.reload_refresh_delay,
            confirm_reload=panel_cfg.confirm_reload,
        )
        controller.log.add("ASUS Zephyrus Duo Control Center initialized")
        await controller.refresh_status()

        poll_task = asyncio.create_task(controller.run_polling(panel_cfg.poll_interval))
        controller.log.add("Background monitoring started")

        panel = ControlPanel(
            controller,
            asyncio.get_running_loop(),
            width=panel_cfg.width,
            height=panel_cfg.height,
            font_size=panel_cfg.font_size,
        )
        panel.start()
        try:
            while panel.is_active:
                await asyncio.sleep(0.2)
        finally:
            controller.log.add("Control Center shutting down...")
            poll_task.cancel()
            try:
                await poll_task
            except asyncio.CancelledError:
                pass
            panel.stop()


async def _print_status(settings) -> None:
    async with _make_bridge(settings) as bridge:
        snapshot = await bridge.get_system_status()
    print(snapshot.model_dump_json(indent=2))


async def _exec(settings, operation: str, argument: str | None) -> bool:
    async with _make_bridge(settings) as bridge:
        result = await bridge.execute_command(operation, argument)
    if result.stdout:
        print(result.stdout, end="" if result.stdout.endswith("\n") else "\n")
    if not result.success:
        print(f"Error ({result.error_kind.value}): {result.error}", file=sys.stderr)
    return result.success


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the duocontrol CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from duocontrol.bridge.base import BridgeError
    from duocontrol.config.settings import load_settings
    from duocontrol.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    try:
        if args.command == "host":
            logger.info("Starting Host server")
            from duocontrol.host.server import create_app
            import uvicorn
            app = create_app(settings)
            uvicorn.run(app, host=settings.host.bind_host, port=settings.host.port)

        elif args.command == "panel":
            logger.info("Starting control panel")
            asyncio.run(_run_panel(settings))

        elif args.command == "status":
            asyncio.run(_print_status(settings))

        elif args.command == "exec":
            if not asyncio.run(_exec(settings, args.operation, args.argument)):
                sys.exit(1)
    except BridgeError as e:
        logger.error("%s", e)
        sys.exit(2)


if __name__ == "__main__":
    main()
