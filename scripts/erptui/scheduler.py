"""
Command scheduler.

Turns the engine's commands into side effects: each Dispatch runs its task
on a separate thread and delivers the resulting message, After delivers a
message once a timer fires, Quit calls the host's quit hook. No retries and
no deduplication; completion order is whatever the network gives us.
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable

from erptui.log import get_logger
from erptui.messages import After, Command, Dispatch, Message, Quit, Task, TaskFailed

logger = get_logger(__name__)

Deliver = Callable[[Message], None]
Spawn = Callable[[Callable[[], None]], None]
Timer = Callable[[float, Callable[[], None]], None]


def thread_spawn(work: Callable[[], None]) -> None:
    threading.Thread(target=work, daemon=True, name="erptui-task").start()


def thread_timer(delay: float, callback: Callable[[], None]) -> None:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


class CommandScheduler:
    """Executes commands for one engine.

    Args:
        deliver: puts a message on the engine's queue; must be thread-safe.
        spawn: runs a callable off the event loop (default: daemon thread).
        timer: schedules a callback after a delay (default: threading.Timer).
        on_quit: called for a Quit command.
    """

    def __init__(
        self,
        deliver: Deliver,
        spawn: Spawn | None = None,
        timer: Timer | None = None,
        on_quit: Callable[[], None] | None = None,
    ) -> None:
        self._deliver = deliver
        self._spawn = spawn or thread_spawn
        self._timer = timer or thread_timer
        self._on_quit = on_quit

    def dispatch(self, task: Task) -> None:
        self._spawn(lambda: self._run(task))

    def _run(self, task: Task) -> None:
        try:
            message = task()
        except Exception as exc:
            logger.exception("Background task crashed")
            message = TaskFailed(f"Unexpected error: {exc}")
        self._deliver(message)

    def execute(self, commands: Iterable[Command]) -> None:
        for command in commands:
            if isinstance(command, Dispatch):
                self.dispatch(command.task)
            elif isinstance(command, After):
                self._timer(command.delay, lambda m=command.message: self._deliver(m))
            elif isinstance(command, Quit):
                if self._on_quit is not None:
                    self._on_quit()
            else:
                logger.warning("Ignoring unknown command %r", command)
