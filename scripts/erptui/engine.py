"""
View state machine.

``Engine.apply(model, message)`` returns the next Model plus the commands the
host should run. It never performs I/O itself: backend work leaves as a
Dispatch of a task built in tasks.py, timers leave as After.

Key handling is a table from screen kind to handler. A handler returns None
for keys that mean nothing on its screen; such keys leave the model
untouched, including any notice.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional

from erptui import forms
from erptui import navigation as nav
from erptui import tasks
from erptui.catalog import (
    CATEGORIES,
    DASHBOARD,
    DASHBOARD_LABEL,
    FORMS,
    KINDS,
    ROOT_MENU,
    DocumentKind,
    is_draft,
    is_submitted,
)
from erptui.dashboard import DashboardAggregator
from erptui.log import get_logger
from erptui.messages import (
    TASK_RESULTS,
    ActionCompleted,
    After,
    Command,
    ConnectivityProbed,
    DashboardFetched,
    DetailFetched,
    Dispatch,
    FormSubmitted,
    KeyPressed,
    ListFetched,
    Message,
    NotificationExpired,
    Quit,
    SpinnerTick,
    Task,
    TaskFailed,
    WindowResized,
)
from erptui.model import (
    NOTICE_ERROR,
    NOTICE_SUCCESS,
    ROOT,
    Confirmation,
    Model,
    Notice,
    Screen,
    ScreenKind,
)
from erptui.providers import DocumentGateway

logger = get_logger(__name__)

SPINNER_INTERVAL = 0.1
NOTICE_TIMEOUT = 3.0
SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
CONFIRM_LABEL = "Confirm"

UP_KEYS = ("up", "k")
DOWN_KEYS = ("down", "j")

# Screens that keep the selected entity and its detail snapshot.
ENTITY_SCREENS = (ScreenKind.DETAIL, ScreenKind.FORM, ScreenKind.CONFIRMATION)

Result = tuple[Model, list[Command]]
KeyHandler = Callable[[Model, KeyPressed], Optional[Result]]

PROMPTS = {
    tasks.ACTION_DELETE: "Delete {doctype} '{key}'?",
    tasks.ACTION_SUBMIT: "Submit {doctype} '{key}'?",
    tasks.ACTION_CANCEL: "Cancel {doctype} '{key}'?",
}


# model helpers


def goto(model: Model, screen: Screen, breadcrumbs: tuple[str, ...], **changes) -> Model:
    """Transition to ``screen``, dropping state the new screen cannot use."""
    if screen.kind not in ENTITY_SCREENS:
        changes.setdefault("selection", "")
        changes.setdefault("detail", None)
    if screen.kind != ScreenKind.FORM:
        changes.setdefault("fields", ())
        changes.setdefault("focus_index", 0)
        changes.setdefault("form_context", "")
    if screen.kind != ScreenKind.CONFIRMATION:
        changes.setdefault("confirmation", None)
    return replace(
        model,
        screen=screen,
        previous_screen=model.screen,
        breadcrumbs=breadcrumbs,
        **changes,
    )


def dispatch(model: Model, task: Task) -> tuple[Model, Command]:
    return replace(model, in_flight=model.in_flight + 1), Dispatch(task)


def notify(model: Model, text: str, kind: str) -> Result:
    """Show a notice; success notices expire after NOTICE_TIMEOUT."""
    serial = model.notice_serial + 1
    model = replace(model, notice=Notice(text, kind, serial), notice_serial=serial)
    if kind == NOTICE_SUCCESS:
        return model, [After(NOTICE_TIMEOUT, NotificationExpired(serial))]
    return model, []


def move_cursor(model: Model, key: str, count: int) -> Model | None:
    if key in UP_KEYS:
        return replace(model, cursor=max(0, model.cursor - 1))
    if key in DOWN_KEYS:
        return replace(model, cursor=max(0, min(count - 1, model.cursor + 1)))
    return None


def root_index(target: str) -> int:
    return next(i for i, entry in enumerate(ROOT_MENU) if entry[2] == target)


class Engine:
    """Applies messages to the model.

    Args:
        gateway: backend used by the tasks this engine builds.
        aggregator: dashboard fan-out; defaults to one over ``gateway``.
    """

    def __init__(self, gateway: DocumentGateway, aggregator: DashboardAggregator | None = None) -> None:
        self.gateway = gateway
        self.aggregator = aggregator or DashboardAggregator(gateway)
        self._message_handlers: dict[type, Callable[[Model, Message], Result]] = {
            KeyPressed: self._on_key,
            WindowResized: self._on_resize,
            ConnectivityProbed: self._on_probed,
            ListFetched: self._on_list,
            DetailFetched: self._on_detail,
            ActionCompleted: self._on_action,
            FormSubmitted: self._on_form_submitted,
            DashboardFetched: self._on_dashboard,
            NotificationExpired: self._on_expired,
            SpinnerTick: self._on_spinner,
            TaskFailed: self._on_task_failed,
        }
        self._key_handlers: dict[ScreenKind, KeyHandler] = {
            ScreenKind.ROOT: self._root_key,
            ScreenKind.CATEGORY_MENU: self._menu_key,
            ScreenKind.LIST: self._list_key,
            ScreenKind.DETAIL: self._detail_key,
            ScreenKind.FORM: self._form_key,
            ScreenKind.CONFIRMATION: self._confirm_key,
            ScreenKind.DASHBOARD: self._dashboard_key,
        }

    def startup(self) -> list[Command]:
        """Commands for process start; ``initial_model`` already counts the probe."""
        return [Dispatch(tasks.probe(self.gateway)), After(SPINNER_INTERVAL, SpinnerTick())]

    def apply(self, model: Model, message: Message) -> Result:
        handler = self._message_handlers.get(type(message))
        if handler is None:
            logger.debug("Ignoring unknown message %r", message)
            return model, []
        if isinstance(message, TASK_RESULTS):
            model = replace(model, in_flight=max(0, model.in_flight - 1))
        return handler(model, message)

    # loads

    def _load_list(self, model: Model, kind: DocumentKind) -> Result:
        screen = Screen(ScreenKind.LIST, kind.key)
        model, command = dispatch(model, tasks.fetch_list(self.gateway, kind, screen, model.sort_mode))
        return model, [command]

    def _load_detail(self, model: Model, kind: DocumentKind, key: str) -> Result:
        screen = Screen(ScreenKind.DETAIL, kind.key)
        model, command = dispatch(model, tasks.fetch_detail(self.gateway, kind, screen, key))
        return model, [command]

    def _load_dashboard(self, model: Model) -> Result:
        model, command = dispatch(model, self.aggregator.collect())
        return model, [command]

    # keys

    def _on_key(self, model: Model, msg: KeyPressed) -> Result:
        if msg.key == "ctrl+c":
            return model, [Quit()]

        # Any key that does something clears a pending error.
        candidate = model
        if model.notice is not None and model.notice.is_error:
            candidate = replace(model, notice=None)

        if msg.key == "escape" and model.screen.kind != ScreenKind.CONFIRMATION:
            result = self._cancel(candidate)
        else:
            result = self._key_handlers[model.screen.kind](candidate, msg)

        if result is None:
            return model, []
        new_model, commands = result
        if not commands and new_model == candidate:
            return model, []
        return new_model, commands

    def _cancel(self, model: Model) -> Result | None:
        screen = model.screen
        crumbs = nav.pop(model.breadcrumbs)

        if screen.kind == ScreenKind.ROOT:
            return None
        if screen.kind == ScreenKind.CATEGORY_MENU:
            return goto(model, ROOT, crumbs, cursor=root_index(screen.target), rows=()), []
        if screen.kind == ScreenKind.DASHBOARD:
            return goto(model, ROOT, crumbs, cursor=root_index(DASHBOARD)), []
        if screen.kind == ScreenKind.LIST:
            kind = KINDS[screen.target]
            category = CATEGORIES[kind.category]
            menu = Screen(ScreenKind.CATEGORY_MENU, category.key)
            return goto(model, menu, crumbs, cursor=category.kinds.index(kind.key), rows=()), []
        if screen.kind == ScreenKind.DETAIL:
            return goto(model, Screen(ScreenKind.LIST, screen.target), crumbs), []

        # form or confirmation: discard edits and return where we came from
        back = model.previous_screen
        if back is None and screen.kind == ScreenKind.FORM:
            back = FORMS[screen.target].parent
        elif back is None and model.confirmation is not None:
            back = model.confirmation.return_to
        return goto(model, back or ROOT, crumbs), []

    def _root_key(self, model: Model, msg: KeyPressed) -> Result | None:
        moved = move_cursor(model, msg.key, len(ROOT_MENU))
        if moved is not None:
            return moved, []
        if msg.key == "q":
            return model, [Quit()]
        if msg.key != "enter":
            return None

        label, _, target = ROOT_MENU[model.cursor]
        crumbs = nav.push(model.breadcrumbs, label)
        if target == DASHBOARD:
            return self._load_dashboard(goto(model, Screen(ScreenKind.DASHBOARD), crumbs, cursor=0))
        return goto(model, Screen(ScreenKind.CATEGORY_MENU, target), crumbs, cursor=0), []

    def _menu_key(self, model: Model, msg: KeyPressed) -> Result | None:
        entries = CATEGORIES[model.screen.target].kinds
        moved = move_cursor(model, msg.key, len(entries))
        if moved is not None:
            return moved, []
        if msg.key != "enter":
            return None

        kind = KINDS[entries[model.cursor]]
        screen = Screen(ScreenKind.LIST, kind.key)
        model = goto(model, screen, nav.push(model.breadcrumbs, kind.label), cursor=0, rows=())
        return self._load_list(model, kind)

    def _list_key(self, model: Model, msg: KeyPressed) -> Result | None:
        kind = KINDS[model.screen.target]
        key = msg.key
        moved = move_cursor(model, key, len(model.rows))
        if moved is not None:
            return moved, []

        row = model.rows[model.cursor] if 0 <= model.cursor < len(model.rows) else None
        if key == "enter":
            if row is None or not kind.has_detail:
                return None
            screen = Screen(ScreenKind.DETAIL, kind.key)
            model = goto(model, screen, nav.push(model.breadcrumbs, row.key), selection=row.key, detail=None)
            return self._load_detail(model, kind, row.key)

        binding = kind.binding(key, "list")
        if binding is not None:
            entity = row.key if row is not None and binding.with_entity else ""
            return self._open_form(model, binding.form, entity)
        if key == "n" and kind.create_form:
            return self._open_form(model, kind.create_form, "")
        if key == "d" and kind.deletable and row is not None:
            return self._confirm(model, kind, tasks.ACTION_DELETE, row.key, model.screen)
        if key == "o" and kind.sortable:
            return self._load_list(replace(model, sort_mode=model.sort_mode.next(), cursor=0), kind)
        if key == "r":
            return self._load_list(model, kind)
        return None

    def _detail_key(self, model: Model, msg: KeyPressed) -> Result | None:
        kind = KINDS[model.screen.target]
        key = msg.key
        document = model.detail

        binding = kind.binding(key, "detail", document)
        if binding is not None:
            return self._open_form(model, binding.form, model.selection)
        if key == "d" and kind.deletable:
            back = Screen(ScreenKind.LIST, kind.key)
            return self._confirm(model, kind, tasks.ACTION_DELETE, model.selection, back)
        if key == "s" and kind.submittable and is_draft(document):
            return self._confirm(model, kind, tasks.ACTION_SUBMIT, model.selection, model.screen)
        if key == "x" and kind.submittable and is_submitted(document):
            return self._confirm(model, kind, tasks.ACTION_CANCEL, model.selection, model.screen)
        if key == "r":
            return self._load_detail(model, kind, model.selection)
        return None

    def _dashboard_key(self, model: Model, msg: KeyPressed) -> Result | None:
        if msg.key == "r":
            return self._load_dashboard(model)
        return None

    # forms

    def _open_form(self, model: Model, form_key: str, entity: str) -> Result:
        spec = FORMS[form_key]
        fields = forms.initialize(spec, entity if spec.prefill else "", model.detail)
        model = goto(
            model,
            Screen(ScreenKind.FORM, form_key),
            nav.push(model.breadcrumbs, spec.title),
            fields=fields,
            focus_index=forms.initial_focus(fields),
            form_context=entity,
            selection=entity,
        )
        return model, []

    def _form_key(self, model: Model, msg: KeyPressed) -> Result | None:
        key = msg.key
        if key in ("tab", "down"):
            fields, index = forms.advance_focus(model.fields, model.focus_index, forms.NEXT)
            return replace(model, fields=fields, focus_index=index), []
        if key in ("shift+tab", "up"):
            fields, index = forms.advance_focus(model.fields, model.focus_index, forms.PREV)
            return replace(model, fields=fields, focus_index=index), []
        if key == "enter":
            return self._submit_form(model)

        fields = forms.update_focused_field(model.fields, model.focus_index, key, msg.character)
        if fields is model.fields:
            return None
        return replace(model, fields=fields), []

    def _submit_form(self, model: Model) -> Result:
        spec = FORMS[model.screen.target]
        try:
            task = forms.submit(spec, model.fields, self.gateway, model.form_context, model.detail)
        except forms.ValidationError as exc:
            return notify(model, str(exc), NOTICE_ERROR)
        model, command = dispatch(model, task)
        return model, [command]

    def _on_form_submitted(self, model: Model, msg: FormSubmitted) -> Result:
        if not msg.success:
            return notify(model, msg.text, NOTICE_ERROR)
        spec = FORMS.get(msg.form)
        if spec is None or model.screen != Screen(ScreenKind.FORM, msg.form):
            return notify(model, msg.text, NOTICE_SUCCESS)
        return self._land(model, spec.parent, msg.context, msg.text)

    # confirmation

    def _confirm(self, model: Model, kind: DocumentKind, action: str, key: str, return_to: Screen) -> Result:
        prompt = PROMPTS[action].format(doctype=kind.doctype, key=key)
        confirmation = Confirmation(action, prompt, key, kind.key, return_to)
        model = goto(
            model,
            Screen(ScreenKind.CONFIRMATION),
            nav.push(model.breadcrumbs, CONFIRM_LABEL),
            confirmation=confirmation,
            selection=key,
        )
        return model, []

    def _confirm_key(self, model: Model, msg: KeyPressed) -> Result | None:
        if msg.key in ("n", "escape"):
            return self._cancel(model)
        if msg.key != "y" or model.confirmation is None:
            return None

        pending = model.confirmation
        origin = model.previous_screen or pending.return_to
        model = goto(model, origin, nav.pop(model.breadcrumbs))
        task = tasks.perform_action(
            self.gateway, KINDS[pending.kind], pending.action, pending.target, origin, pending.return_to
        )
        model, command = dispatch(model, task)
        return model, [command]

    def _on_action(self, model: Model, msg: ActionCompleted) -> Result:
        if not msg.success:
            return notify(model, msg.text, NOTICE_ERROR)
        if model.screen != msg.origin:
            return notify(model, msg.text, NOTICE_SUCCESS)
        return self._land(model, msg.return_to, msg.target, msg.text)

    def _land(self, model: Model, screen: Screen, key: str, text: str) -> Result:
        """Go to a list or detail after a successful write and refetch it."""
        kind = KINDS[screen.target]
        if screen.kind == ScreenKind.DETAIL and not key:
            screen = Screen(ScreenKind.LIST, kind.key)

        if screen.kind == ScreenKind.DETAIL:
            detail = model.detail if model.selection == key else None
            model = goto(model, screen, nav.trail(screen, key), selection=key, detail=detail)
            model, commands = self._load_detail(model, kind, key)
        else:
            same_kind = model.screen.target == kind.key and model.screen.kind in (ScreenKind.LIST, ScreenKind.DETAIL)
            rows = model.rows if same_kind else ()
            cursor = model.cursor if same_kind else 0
            model = goto(model, screen, nav.trail(screen), rows=rows, cursor=cursor)
            model, commands = self._load_list(model, kind)

        model, notices = notify(model, text, NOTICE_SUCCESS)
        return model, commands + notices

    # results

    def _on_probed(self, model: Model, msg: ConnectivityProbed) -> Result:
        model = replace(model, connection=msg.connection)
        if msg.error:
            return notify(model, msg.error, NOTICE_ERROR)
        return model, []

    def _on_list(self, model: Model, msg: ListFetched) -> Result:
        if msg.screen != model.screen:
            logger.debug("Dropping stale list for %s", msg.screen)
            return model, []
        if msg.error:
            return notify(model, msg.error, NOTICE_ERROR)
        cursor = min(model.cursor, max(0, len(msg.rows) - 1))
        return replace(model, rows=msg.rows, cursor=cursor), []

    def _on_detail(self, model: Model, msg: DetailFetched) -> Result:
        if msg.screen != model.screen or msg.key != model.selection:
            logger.debug("Dropping stale detail for %s %s", msg.screen, msg.key)
            return model, []
        if msg.error:
            return notify(model, msg.error, NOTICE_ERROR)
        return replace(model, detail=msg.document), []

    def _on_dashboard(self, model: Model, msg: DashboardFetched) -> Result:
        return replace(model, dashboard=msg.summary), []

    def _on_task_failed(self, model: Model, msg: TaskFailed) -> Result:
        return notify(model, msg.text, NOTICE_ERROR)

    # ambient

    def _on_resize(self, model: Model, msg: WindowResized) -> Result:
        return replace(model, width=msg.width, height=msg.height), []

    def _on_expired(self, model: Model, msg: NotificationExpired) -> Result:
        if model.notice is not None and model.notice.serial == msg.serial:
            return replace(model, notice=None), []
        return model, []

    def _on_spinner(self, model: Model, msg: SpinnerTick) -> Result:
        if model.is_loading:
            model = replace(model, spinner_frame=(model.spinner_frame + 1) % len(SPINNER_FRAMES))
        return model, [After(SPINNER_INTERVAL, SpinnerTick())]
