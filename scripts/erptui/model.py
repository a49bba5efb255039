"""
Application state.

The Model is a frozen snapshot; the engine produces a new one for every
message and nothing else mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from erptui.providers import Connection, DashboardSummary, Document, Row

ROOT_LABEL = "Main"
NOTICE_ERROR = "error"
NOTICE_SUCCESS = "success"


class ScreenKind(str, Enum):
    ROOT = "root"
    CATEGORY_MENU = "category"
    LIST = "list"
    DETAIL = "detail"
    FORM = "form"
    CONFIRMATION = "confirmation"
    DASHBOARD = "dashboard"


@dataclass(frozen=True)
class Screen:
    """One state of the view machine.

    ``target`` names the category (menus), document kind (list/detail) or
    form (form screens); it is empty for the others.
    """

    kind: ScreenKind
    target: str = ""


ROOT = Screen(ScreenKind.ROOT)


class SortMode(Enum):
    NEWEST = "↓Date"
    OLDEST = "↑Date"
    NAME = "Name"
    TOTAL = "↓Total"

    @property
    def label(self) -> str:
        return self.value

    def next(self) -> SortMode:
        modes = list(SortMode)
        return modes[(modes.index(self) + 1) % len(modes)]


@dataclass(frozen=True)
class FieldState:
    label: str
    value: str = ""
    focused: bool = False


@dataclass(frozen=True)
class Confirmation:
    """An irreversible action waiting for y/n."""

    action: str  # delete | submit | cancel
    prompt: str
    target: str
    kind: str
    return_to: Screen


@dataclass(frozen=True)
class Notice:
    text: str
    kind: str  # NOTICE_ERROR | NOTICE_SUCCESS
    serial: int

    @property
    def is_error(self) -> bool:
        return self.kind == NOTICE_ERROR


@dataclass(frozen=True)
class Model:
    screen: Screen = ROOT
    previous_screen: Screen | None = None
    breadcrumbs: tuple[str, ...] = (ROOT_LABEL,)
    selection: str = ""
    rows: tuple[Row, ...] = ()
    detail: Document | None = None
    fields: tuple[FieldState, ...] = ()
    focus_index: int = 0
    form_context: str = ""
    confirmation: Confirmation | None = None
    notice: Notice | None = None
    in_flight: int = 0
    sort_mode: SortMode = SortMode.NEWEST
    cursor: int = 0
    width: int = 80
    height: int = 24
    spinner_frame: int = 0
    connection: Connection | None = None
    dashboard: DashboardSummary | None = None
    notice_serial: int = 0

    @property
    def is_loading(self) -> bool:
        return self.in_flight > 0


def initial_model() -> Model:
    """State at process start: root screen, connectivity probe in flight."""
    return Model(in_flight=1)
