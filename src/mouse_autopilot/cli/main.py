# src/mouse_autopilot/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the task engine (restores saved
tasks, re-arms timers, starts autosave), then runs the console REPL or simply
waits for a signal when the console is disabled.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await state.controller.shutdown()
    except Exception:
        logger.exception("Controller shutdown failed.")


async def run(settings) -> None:
    state = create_initial_state(settings=settings)
    await state.controller.start()

    stop_main = asyncio.Event()

    def _handle_signal(signum: int) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _handle_signal, signum)
        except (NotImplementedError, RuntimeError):
            # Some platforms (Windows) do not support loop signal handlers.
            pass

    try:
        if settings.console_enabled:
            console = asyncio.create_task(run_console_loop(state))
            stopper = asyncio.create_task(stop_main.wait())
            await asyncio.wait({console, stopper}, return_when=asyncio.FIRST_COMPLETED)
            stopper.cancel()
            if not console.done():
                console.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await console
        else:
            logger.info("Console disabled. Running scheduled tasks only. Press Ctrl+C to stop.")
            await stop_main.wait()
    finally:
        await _shutdown(state)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (pointer backend: %s)...", settings.app_name, settings.pointer_backend)

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        pass

    logger.info("Bye.")


if __name__ == "__main__":
    main()
