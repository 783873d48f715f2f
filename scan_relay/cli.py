"""Scan relay CLI: feed decoded payloads and manage the local history."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import subprocess
import sys
from typing import Sequence, TextIO

from . import __version__
from .config import Settings, constants, get_settings
from .pipeline import PipelineController
from .runtime import build_controller, build_sync_client
from .share import ClipboardUnavailable, SystemClipboard, write_export
from .storage import History, PersistenceFailure

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _history_records(history: History) -> list[dict]:
    return [record.to_dict() for record in history]


def _emit_history(history: History, stream: TextIO | None = None) -> None:
    target = stream or sys.stdout
    payload = {"count": len(history), "records": _history_records(history)}
    target.write(json.dumps(payload, indent=2) + "\n")


async def _pump_lines(
    controller: PipelineController, stream: TextIO, interval: float
) -> int:
    """Feed each stdin line to the pipeline until EOF; returns accepted count."""

    accepted = 0
    while True:
        line = await asyncio.to_thread(stream.readline)
        if not line:
            break
        if controller.on_payload_detected(line.rstrip("\r\n")) is not None:
            accepted += 1
        if interval > 0:
            await asyncio.sleep(interval)
    return accepted


async def _feed(
    settings: Settings,
    payloads: Sequence[str],
    interval: float,
    stream: TextIO,
) -> int:
    sync_client = build_sync_client(settings)
    controller = build_controller(settings, sync_client=sync_client)
    controller.load()
    accepted = 0
    try:
        if payloads:
            for payload in payloads:
                if controller.on_payload_detected(payload) is not None:
                    accepted += 1
                await asyncio.sleep(interval)
        else:
            if hasattr(stream, "reconfigure"):
                # Decoders may emit raw bytes that are not valid UTF-8.
                stream.reconfigure(errors="replace")
            accepted = await _pump_lines(controller, stream, interval)
        await controller.drain()
    finally:
        if sync_client is not None:
            await sync_client.aclose()
    logger.info("feed finished: %s payload(s) accepted", accepted)
    _emit_history(controller.history)
    return 0


def _export(settings: Settings, output: str | None, clipboard: bool) -> int:
    controller = build_controller(settings)
    controller.load()
    text = controller.export_history()
    if text is None:
        return 1
    if clipboard:
        try:
            SystemClipboard().write_text(text)
        except (ClipboardUnavailable, subprocess.CalledProcessError) as exc:
            logger.error("clipboard access failed: %s", exc)
            return 1
        logger.info("copied %s records to clipboard", len(controller.history))
        return 0
    write_export(text, output)
    return 0


def _clear(settings: Settings) -> int:
    controller = build_controller(settings)
    try:
        asyncio.run(controller.clear_history())
    except PersistenceFailure as exc:
        logger.error("clear failed: %s", exc)
        return 1
    return 0


def _serve(settings: Settings) -> int:
    import uvicorn

    from .api import get_app

    uvicorn.run(get_app(settings), host=settings.api_host, port=settings.api_port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = argparse.ArgumentParser(prog="scan-relay")
    parser.add_argument(
        "--version",
        action="version",
        version=f"scan_relay {__version__}",
        help="Show version",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=False)

    feed_parser = subparsers.add_parser(
        "feed", help="Push decoded payloads (arguments or stdin lines) through the pipeline"
    )
    feed_parser.add_argument(
        "--payload",
        action="append",
        default=[],
        help="Payload to inject; repeatable. Reads stdin when omitted.",
    )
    feed_parser.add_argument(
        "--interval",
        type=float,
        default=0.0,
        help="Seconds to wait between injected payloads",
    )
    feed_parser.add_argument(
        "--debounce",
        choices=constants.DEBOUNCE_MODES,
        help="Override SCAN_DEBOUNCE_MODE",
    )

    subparsers.add_parser("history", help="Print the stored history as JSON")

    export_parser = subparsers.add_parser("export", help="Render history as shareable text")
    export_parser.add_argument("--output", help="Write to this file instead of stdout")
    export_parser.add_argument(
        "--clipboard", action="store_true", help="Copy to the system clipboard"
    )

    subparsers.add_parser("clear", help="Delete the stored history")
    subparsers.add_parser("serve", help="Run the HTTP API")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    _configure_logging(args.verbose)
    settings = get_settings()

    if args.command == "feed":
        if args.debounce:
            settings = dataclasses.replace(settings, debounce_mode=args.debounce)
        try:
            return asyncio.run(_feed(settings, args.payload, args.interval, sys.stdin))
        except KeyboardInterrupt:
            logger.info("feed interrupted")
            return 0
    if args.command == "history":
        controller = build_controller(settings)
        _emit_history(controller.load())
        return 0
    if args.command == "export":
        return _export(settings, args.output, args.clipboard)
    if args.command == "clear":
        return _clear(settings)
    return _serve(settings)


if __name__ == "__main__":
    raise SystemExit(main())
