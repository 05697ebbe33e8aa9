# src/deadline_penalty/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.state import AppState
from ..tasks.task_api import (
    Urgency,
    format_clock,
    format_countdown,
    format_datetime,
    format_money,
    parse_deadline,
    parse_penalty,
    urgency,
)
from ..tasks.task_models import StoreSnapshot, TaskStatus, ValidationError

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _symbol(state: AppState) -> str:
    return str(getattr(state.settings, "currency_symbol", "¥"))


def render_active(state: AppState, snap: StoreSnapshot, now_ts: int) -> str:
    if not snap.tasks:
        return "No active tasks."

    tz = state.store.tz
    threshold_ms = int(getattr(state.settings, "urgent_threshold_seconds", 3600)) * 1000
    lines = ["Active tasks:"]
    for t in snap.tasks:
        remaining = t.remaining_ms(now_ts)
        level = urgency(remaining, urgent_threshold_ms=threshold_ms)
        mark = "" if level == Urgency.NORMAL else f" [{level.value.upper()}]"
        lines.append(
            f"  #{t.id} {t.name}  {format_money(t.penalty, _symbol(state))}"
            f"  due {format_datetime(t.deadline, tz=tz)} ({format_countdown(remaining)}){mark}"
        )
    return "\n".join(lines)


def render_history(state: AppState, snap: StoreSnapshot) -> str:
    if not snap.history:
        return "History is empty."

    tz = state.store.tz
    lines = ["History (newest first):"]
    for i, t in enumerate(snap.history, start=1):
        if t.status == TaskStatus.COMPLETED:
            outcome = "done"
        else:
            outcome = f"FAILED (-{format_money(t.penalty, _symbol(state))})"
        lines.append(f"  {i}. {t.name}  {outcome}  deadline {format_datetime(t.deadline, tz=tz)}")
    return "\n".join(lines)


def _parse_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0].lstrip("#"))
    except ValueError:
        return None


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add 2026-10-20 18:00 500 Write the report
         (date, time, penalty, then the task name)
    """
    if len(args) < 4:
        return "Usage: /add YYYY-MM-DD HH:MM <penalty> <name>"

    try:
        deadline = parse_deadline(f"{args[0]} {args[1]}", tz=state.store.tz)
        penalty = parse_penalty(args[2])
        task = state.store.add_task(" ".join(args[3:]), deadline, penalty)
    except ValidationError as e:
        return f"Cannot add task: {e}"

    return (
        f"Added #{task.id} {task.name} "
        f"(due {format_datetime(task.deadline, tz=state.store.tz)}, "
        f"penalty {format_money(task.penalty, _symbol(state))})"
    )


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /done <id>"
    task = state.store.complete_task(task_id)
    if task is None:
        return f"No active task #{task_id}."
    return f"Completed #{task.id} {task.name}."


def cmd_del(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /del <id>"
    task = state.store.delete_task(task_id)
    if task is None:
        return f"No active task #{task_id}."
    return f"Deleted #{task.id} {task.name}."


def cmd_list(state: AppState, args: list[str]) -> str:
    return render_active(state, state.store.snapshot(), state.store.clock())


def cmd_history(state: AppState, args: list[str]) -> str:
    return render_history(state, state.store.snapshot())


def cmd_rmhist(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/rmhist <n>, where n is the 1-based position shown by /history."""
    pos = _parse_id(args)
    if pos is None:
        return "Usage: /rmhist <n>"

    try:
        entry = state.store.delete_history_item(pos - 1)
    except IndexError:
        logger.debug("History delete out of range pos=%s", pos)
        return f"No history entry {pos}."

    if emit is not None and entry.status == TaskStatus.FAILED:
        emit(f"Penalty {format_money(entry.penalty, _symbol(state))} reversed.")
    return f"Removed {entry.name} from history."


def cmd_total(state: AppState, args: list[str]) -> str:
    return f"Total penalty: {format_money(state.store.total_penalty, _symbol(state))}"


def cmd_now(state: AppState, args: list[str]) -> str:
    return format_clock(state.store.clock(), tz=state.store.tz)


def cmd_status(state: AppState, args: list[str]) -> str:
    s = state.settings
    sweeping = "ON" if state.sweeper.running else "OFF"
    return (
        "Status:\n"
        f"  Storage: {getattr(s, 'storage_backend', '?')} (key={state.gateway.key})\n"
        f"  Sweeper: {sweeping} every {state.sweeper.interval_seconds:g}s\n"
        f"  Active: {len(state.store.tasks)}  History: {len(state.store.history)}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task: /add YYYY-MM-DD HH:MM <penalty> <name>.")
registry.register("done", cmd_done, help_text="Complete an active task: /done <id>.")
registry.register("del", cmd_del, help_text="Delete an active task (no penalty): /del <id>.")
registry.register("list", cmd_list, help_text="Show active tasks with countdowns.", aliases=["ls"])
registry.register("history", cmd_history, help_text="Show resolved tasks.", aliases=["hist"])
registry.register(
    "rmhist", cmd_rmhist, help_text="Delete a history entry (reverses its penalty): /rmhist <n>."
)
registry.register("total", cmd_total, help_text="Show the accumulated penalty.")
registry.register("now", cmd_now, help_text="Show the current time.")
registry.register("status", cmd_status, help_text="Show storage and sweeper settings.")
