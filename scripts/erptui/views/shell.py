"""The one screen the application ever shows."""

from __future__ import annotations

from typing import Callable

from textual import events
from textual.app import ComposeResult
from textual.screen import Screen

from erptui.messages import KeyPressed, Message, WindowResized
from erptui.model import Model
from erptui.views.widgets import BodyPanel, BreadcrumbBar, HelpLine, NotificationBar, StatusBar


class ShellScreen(Screen, inherit_bindings=False):
    """Renders model snapshots and feeds keys and resizes to the engine.

    Navigation lives in the engine, so this screen never pushes or pops
    other screens and claims every key before Textual's own bindings.
    """

    def __init__(self, feed: Callable[[Message], None], brand: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._feed = feed
        self._brand = brand
        self._model: Model | None = None

    def compose(self) -> ComposeResult:
        yield StatusBar(id="status")
        yield BreadcrumbBar(id="crumbs")
        yield NotificationBar(id="notice")
        yield BodyPanel(id="body")
        yield HelpLine(id="help")

    def on_mount(self) -> None:
        self._paint()

    def show(self, model: Model) -> None:
        self._model = model
        if self.is_mounted:
            self._paint()

    def _paint(self) -> None:
        if self._model is None:
            return
        self.query_one(StatusBar).show(self._model, self._brand)
        self.query_one(BreadcrumbBar).show(self._model)
        self.query_one(NotificationBar).show(self._model)
        self.query_one(BodyPanel).show(self._model)
        self.query_one(HelpLine).show(self._model)

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self._feed(KeyPressed(event.key, event.character))

    def on_resize(self, event: events.Resize) -> None:
        self._feed(WindowResized(event.size.width, event.size.height))
