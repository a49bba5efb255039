"""Panels that make up the single application screen."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from erptui.model import Model
from erptui.views.render import (
    Line,
    body_lines,
    breadcrumb_text,
    help_text,
    notice_line,
    status_text,
)

# line style name -> Rich style
STYLES = {
    "title": "bold",
    "header": "bold underline",
    "selected": "bold reverse",
    "focused": "bold",
    "label": "bold",
    "muted": "dim",
    "warning": "yellow",
    "error": "red",
    "success": "green",
}


def to_text(lines: list[Line]) -> Text:
    text = Text()
    for index, (content, style) in enumerate(lines):
        if index:
            text.append("\n")
        text.append(content, style=STYLES.get(style, ""))
    return text


class StatusBar(Static):
    """Brand, connection mode and backend URL."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        background: $primary;
        color: $text;
        padding: 0 1;
    }
    """

    def show(self, model: Model, brand: str) -> None:
        self.update(Text(status_text(model, brand), style="bold"))


class BreadcrumbBar(Static):
    """Current navigation trail."""

    DEFAULT_CSS = """
    BreadcrumbBar {
        height: 1;
        padding: 0 1;
        color: $accent;
    }
    """

    def show(self, model: Model) -> None:
        self.update(Text(breadcrumb_text(model)))


class NotificationBar(Static):
    """One-line success or error notice; blank when there is none."""

    DEFAULT_CSS = """
    NotificationBar {
        height: 1;
        padding: 0 1;
    }

    NotificationBar.success {
        color: $success;
    }

    NotificationBar.error {
        color: $error;
        text-style: bold;
    }
    """

    def show(self, model: Model) -> None:
        line = notice_line(model)
        self.set_class(line is not None and line[1] == "success", "success")
        self.set_class(line is not None and line[1] == "error", "error")
        self.update(Text(line[0] if line else ""))


class BodyPanel(Static):
    """Screen-specific content: menus, lists, details, forms, dashboard."""

    DEFAULT_CSS = """
    BodyPanel {
        height: 1fr;
        border: solid $primary;
        padding: 0 1;
    }
    """

    def show(self, model: Model) -> None:
        self.update(to_text(body_lines(model)))


class HelpLine(Static):
    """Key hints for the current screen."""

    DEFAULT_CSS = """
    HelpLine {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }
    """

    def show(self, model: Model) -> None:
        self.update(Text(help_text(model)))
