"""
Form input controller.

A form is an ordered tuple of FieldState values plus a focus index. All
operations are pure and return new tuples; the engine stores them in the
Model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from erptui.gateway import GatewayError
from erptui.messages import FormSubmitted, Task
from erptui.model import FieldState, Screen

if TYPE_CHECKING:
    from erptui.providers import Document, DocumentGateway

NEXT = 1
PREV = -1


class ValidationError(Exception):
    """Local form validation failed; nothing was sent to the backend."""


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    required: bool = False
    numeric: bool = False

    @property
    def placeholder(self) -> str:
        return self.label if self.required else f"{self.label} (optional)"


Writer = Callable[["DocumentGateway", dict[str, str], str], str]
FieldSource = Callable[["Document | None"], tuple[FieldSpec, ...]]


@dataclass(frozen=True)
class FormSpec:
    """Declarative form.

    ``write(gateway, values, context)`` performs the backend call and returns
    the success text. ``parent`` is where the engine lands after success.
    With ``prefill`` set, the entity the form was opened for is copied into
    the first field. With ``field_source`` set, the fields are derived from
    the detail document the form was opened on instead of ``fields``.
    """

    key: str
    title: str
    fields: tuple[FieldSpec, ...]
    parent: Screen
    write: Writer
    prefill: bool = False
    hint: str = ""
    field_source: FieldSource | None = None

    def fields_for(self, document: Document | None = None) -> tuple[FieldSpec, ...]:
        if self.field_source is None:
            return self.fields
        return self.field_source(document)


def initialize(
    spec: FormSpec, prefill: str = "", document: Document | None = None
) -> tuple[FieldState, ...]:
    """Fresh field states; ``prefill`` goes into the first field."""
    states = [FieldState(label=f.placeholder) for f in spec.fields_for(document)]
    if prefill and states:
        states[0] = FieldState(label=states[0].label, value=prefill)
    return _with_focus(tuple(states), initial_focus(tuple(states)))


def initial_focus(fields: tuple[FieldState, ...]) -> int:
    """Index of the first empty field, else 0."""
    for index, state in enumerate(fields):
        if not state.value:
            return index
    return 0


def _with_focus(fields: tuple[FieldState, ...], index: int) -> tuple[FieldState, ...]:
    return tuple(
        FieldState(label=f.label, value=f.value, focused=(i == index))
        for i, f in enumerate(fields)
    )


def advance_focus(
    fields: tuple[FieldState, ...], focus_index: int, direction: int = NEXT
) -> tuple[tuple[FieldState, ...], int]:
    """Move focus one step, wrapping at both ends."""
    if not fields:
        return fields, 0
    index = (focus_index + direction) % len(fields)
    return _with_focus(fields, index), index


def update_focused_field(
    fields: tuple[FieldState, ...], focus_index: int, key: str, character: str | None
) -> tuple[FieldState, ...]:
    """Apply one keystroke to the focused field only.

    Backspace drops the last character; a printable character is appended;
    anything else leaves the fields untouched.
    """
    if not fields or not 0 <= focus_index < len(fields):
        return fields
    target = fields[focus_index]
    if key == "backspace":
        value = target.value[:-1]
    elif character is not None and len(character) == 1 and character.isprintable():
        value = target.value + character
    else:
        return fields
    if value == target.value:
        return fields
    updated = FieldState(label=target.label, value=value, focused=target.focused)
    return fields[:focus_index] + (updated,) + fields[focus_index + 1:]


def is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def validate(
    spec: FormSpec, fields: tuple[FieldState, ...], document: Document | None = None
) -> dict[str, str]:
    """Check required and numeric fields, returning values keyed by field name.

    Raises:
        ValidationError: a required field is empty or a number does not parse.
    """
    specs = spec.fields_for(document)
    values = {f.name: state.value.strip() for f, state in zip(specs, fields)}

    missing = [f.label for f in specs if f.required and not values.get(f.name)]
    if len(missing) == 1:
        raise ValidationError(f"{missing[0]} is required")
    if missing:
        raise ValidationError(f"{', '.join(missing)} are required")

    for f in specs:
        value = values.get(f.name, "")
        if f.numeric and value and not is_number(value):
            raise ValidationError(f"Invalid {f.label.lower()}")
    return values


def submit(
    spec: FormSpec,
    fields: tuple[FieldState, ...],
    gateway: DocumentGateway,
    context: str = "",
    document: Document | None = None,
) -> Task:
    """Validate locally and return the backend-write task.

    Raises:
        ValidationError: see ``validate``; no task is created.
    """
    values = validate(spec, fields, document)

    def task() -> FormSubmitted:
        try:
            text = spec.write(gateway, values, context)
        except (GatewayError, ValidationError) as exc:
            return FormSubmitted(False, str(exc), spec.key, context)
        return FormSubmitted(True, text, spec.key, context)

    return task
