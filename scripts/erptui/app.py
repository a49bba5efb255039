"""
ERP terminal application.

Hosts the engine inside Textual: every event becomes a Message, the engine
returns the next model plus commands, the scheduler carries the commands
out and the shell screen repaints. Background results come back from
worker threads through ``post_message``.
"""

from __future__ import annotations

from typing import Callable

from textual.app import App
from textual.binding import Binding
from textual.message import Message as TextualMessage

from erptui.config import Config
from erptui.dashboard import DashboardAggregator
from erptui.engine import Engine
from erptui.gateway import Gateway
from erptui.log import get_logger
from erptui.messages import Message
from erptui.model import Model, initial_model
from erptui.providers import DocumentGateway
from erptui.scheduler import CommandScheduler
from erptui.views.shell import ShellScreen

logger = get_logger(__name__)


class EngineEvent(TextualMessage):
    """Carries one engine message onto the Textual event loop."""

    def __init__(self, payload: Message) -> None:
        super().__init__()
        self.payload = payload


class ErpApp(App):
    """Keyboard-driven ERPNext client."""

    TITLE = "ERPNext"

    CSS = """
    Screen {
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(self, gateway: DocumentGateway, brand: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.engine = Engine(gateway, DashboardAggregator(gateway))
        self.model: Model = initial_model()
        self.scheduler = CommandScheduler(
            self.deliver,
            spawn=self._spawn,
            timer=self._timer,
            on_quit=self.exit,
        )
        self.shell = ShellScreen(self.handle, brand)

    def get_default_screen(self) -> ShellScreen:
        return self.shell

    def on_mount(self) -> None:
        """Start the connectivity probe and the spinner."""
        self.shell.show(self.model)
        self.scheduler.execute(self.engine.startup())

    def deliver(self, message: Message) -> None:
        """Thread-safe entry for task results and timers."""
        self.post_message(EngineEvent(message))

    def on_engine_event(self, event: EngineEvent) -> None:
        self.handle(event.payload)

    def handle(self, message: Message) -> None:
        model, commands = self.engine.apply(self.model, message)
        changed = model is not self.model
        self.model = model
        self.scheduler.execute(commands)
        if changed:
            self.shell.show(model)

    def _spawn(self, work: Callable[[], None]) -> None:
        self.run_worker(work, thread=True, group="tasks", exit_on_error=False)

    def _timer(self, delay: float, callback: Callable[[], None]) -> None:
        self.set_timer(delay, callback)


def run(config: Config) -> None:
    """Run the TUI against the backend described by ``config``."""
    gateway = Gateway(config)
    logger.info("Starting TUI against %s", config.url)
    app = ErpApp(gateway, config.brand)
    app.run()
