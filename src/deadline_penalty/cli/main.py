# src/deadline_penalty/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the deadline sweeper on the
event loop, then runs the console REPL (or just sweeps until a signal when
the console is disabled).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.shutdown()
    except Exception:
        logger.exception("Shutdown failed.")


async def run_app(state: AppState) -> None:
    loop = asyncio.get_running_loop()
    stop_main = asyncio.Event()

    def _handle_signal(signum: int) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not every platform lets the loop own signal handlers (e.g. Windows).
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, _handle_signal, sig)

    state.sweeper.start()
    try:
        if state.settings.console_enabled:
            console = asyncio.create_task(run_console_loop(state))
            stopper = asyncio.create_task(stop_main.wait())
            await asyncio.wait({console, stopper}, return_when=asyncio.FIRST_COMPLETED)
            stopper.cancel()
            if not console.done():
                console.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await console
        else:
            logger.info("Console disabled. Sweeping only. Press Ctrl+C to stop.")
            await stop_main.wait()
    finally:
        _shutdown(state)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_path = setup_logging(log_path=settings.log_path, console_level=console_level)

    logger.info("Starting %s (log file %s)...", settings.app_name, log_path)

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(run_app(state))
    except KeyboardInterrupt:
        _shutdown(state)

    logger.info("Bye.")


if __name__ == "__main__":
    main()
