# src/deadline_penalty/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_api import format_money
from ..tasks.task_models import StoreSnapshot, TaskStatus

logger = logging.getLogger(__name__)

PROMPT = ">>> "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleRenderer:
    """
    Render hook for the console.

    The store pushes a snapshot after every mutation. Mutations the user typed
    are already answered by the command reply, so the only thing worth
    printing here is what changed on its own: tasks the sweeper failed.
    """

    def __init__(self, state: AppState) -> None:
        self._state = state
        self._seen_failed: set[int] = {
            t.id for t in state.store.history if t.status == TaskStatus.FAILED
        }

    def __call__(self, snap: StoreSnapshot) -> None:
        symbol = str(getattr(self._state.settings, "currency_symbol", "¥"))
        fresh = [
            t for t in snap.history
            if t.status == TaskStatus.FAILED and t.id not in self._seen_failed
        ]
        self._seen_failed = {t.id for t in snap.history if t.status == TaskStatus.FAILED}
        if not fresh:
            return

        # Newest first in history; report in the order they were scanned.
        for t in reversed(fresh):
            _print_ts(f"[DEADLINE] {t.name} failed: -{format_money(t.penalty, symbol)}")
        _print_ts(f"[DEADLINE] Total penalty: {format_money(snap.total_penalty, symbol)}")


def _start_stdin_reader(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[str | None]) -> None:
    """
    Feed input() lines into the queue from a daemon thread; None means EOF.

    A daemon thread (not the loop's executor) so that a pending input() never
    holds up interpreter shutdown.
    """

    def _reader() -> None:
        while True:
            try:
                line: str | None = input(PROMPT)
            except (EOFError, KeyboardInterrupt):
                line = None
            except Exception:
                logger.exception("Console reader failed.")
                line = None
            try:
                loop.call_soon_threadsafe(queue.put_nowait, line)
            except RuntimeError:
                # Loop already closed.
                return
            if line is None:
                return

    threading.Thread(target=_reader, name="console-stdin", daemon=True).start()


async def run_console_loop(state: AppState) -> None:
    """
    Read commands until /exit or EOF.

    input() blocks, so it runs in a reader thread; the command it returns is
    applied back on the event loop, where the sweeper ticks too. That keeps
    every mutation on one thread.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type /help for commands. Use /exit to quit.")

    queue: asyncio.Queue[str | None] = asyncio.Queue()
    _start_stdin_reader(asyncio.get_running_loop(), queue)

    unsubscribe = state.store.subscribe(ConsoleRenderer(state))
    try:
        while True:
            line = await queue.get()
            if line is None:
                logger.info("Console EOF received, exiting.")
                break

            user_input = line.strip()
            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                reply = command_registry.handle(state, user_input, emit=_print_ts)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is None:
                reply = "Commands start with '/'. Use /help to list them."
            _print_ts(reply)
    finally:
        unsubscribe()

    logger.info("Console connector finished.")
