# src/mouse_autopilot/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _start_input_thread(
    loop: asyncio.AbstractEventLoop,
    lines: asyncio.Queue[str | None],
    ready: threading.Event,
) -> threading.Thread:
    """
    Read stdin in a daemon thread and hand lines to the loop.

    The thread waits for `ready` before each prompt so output of the previous
    command is printed first. None is queued on EOF / Ctrl+C.
    """

    def _reader() -> None:
        while True:
            ready.wait()
            ready.clear()
            try:
                line: str | None = input(">>> ")
            except (EOFError, KeyboardInterrupt):
                line = None
            try:
                loop.call_soon_threadsafe(lines.put_nowait, line)
            except RuntimeError:
                # loop already closed
                return
            if line is None:
                return

    thread = threading.Thread(target=_reader, name="console-input", daemon=True)
    thread.start()
    return thread


async def run_console_loop(state: AppState) -> None:
    """Interactive REPL on top of the command registry; timers keep firing while it waits."""
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    lines: asyncio.Queue[str | None] = asyncio.Queue()
    ready = threading.Event()
    _start_input_thread(asyncio.get_running_loop(), lines, ready)

    while True:
        ready.set()
        raw = await lines.get()
        if raw is None:
            logger.info("Console EOF received, exiting.")
            break

        user_input = raw.strip()
        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = await command_registry.handle(state, user_input, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            response = "Not a command. Use /help to list available commands."
        _print_ts(response)

    logger.info("Console connector finished.")
