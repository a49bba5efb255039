"""
Messages consumed by the engine and commands it returns.

Messages are immutable events. Commands describe side effects for the host
to perform; the engine itself never performs them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from erptui.model import Screen
from erptui.providers import Connection, DashboardSummary, Document, Row


@dataclass(frozen=True)
class KeyPressed:
    key: str
    character: str | None = None


@dataclass(frozen=True)
class WindowResized:
    width: int
    height: int


@dataclass(frozen=True)
class ConnectivityProbed:
    connection: Connection
    error: str = ""


@dataclass(frozen=True)
class ListFetched:
    screen: Screen
    rows: tuple[Row, ...] = ()
    error: str = ""


@dataclass(frozen=True)
class DetailFetched:
    screen: Screen
    key: str
    document: Document | None = None
    error: str = ""


@dataclass(frozen=True)
class ActionCompleted:
    """Result of a confirmed delete/submit/cancel."""

    success: bool
    text: str
    origin: Screen
    return_to: Screen
    target: str = ""


@dataclass(frozen=True)
class FormSubmitted:
    success: bool
    text: str
    form: str = ""
    context: str = ""


@dataclass(frozen=True)
class DashboardFetched:
    summary: DashboardSummary


@dataclass(frozen=True)
class NotificationExpired:
    serial: int


@dataclass(frozen=True)
class SpinnerTick:
    pass


@dataclass(frozen=True)
class TaskFailed:
    """A background task raised instead of returning its message."""

    text: str


Message = Union[
    KeyPressed,
    WindowResized,
    ConnectivityProbed,
    ListFetched,
    DetailFetched,
    ActionCompleted,
    FormSubmitted,
    DashboardFetched,
    NotificationExpired,
    SpinnerTick,
    TaskFailed,
]

Task = Callable[[], Message]

# Messages that terminate a dispatched task.
TASK_RESULTS = (
    ConnectivityProbed,
    ListFetched,
    DetailFetched,
    ActionCompleted,
    FormSubmitted,
    DashboardFetched,
    TaskFailed,
)


@dataclass(frozen=True)
class Dispatch:
    """Run ``task`` off the event loop and deliver its message."""

    task: Task


@dataclass(frozen=True)
class After:
    """Deliver ``message`` after ``delay`` seconds."""

    delay: float
    message: Message


@dataclass(frozen=True)
class Quit:
    pass


Command = Union[Dispatch, After, Quit]
