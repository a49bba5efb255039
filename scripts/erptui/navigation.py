"""Breadcrumb stack. Breadcrumbs are immutable tuples; every operation returns a new one."""

from __future__ import annotations

from erptui.catalog import CATEGORIES, DASHBOARD_LABEL, KINDS
from erptui.model import ROOT_LABEL, Screen, ScreenKind

Breadcrumbs = tuple[str, ...]

# Root, category, list, detail, form/confirmation
MAX_DEPTH = 5


def push(crumbs: Breadcrumbs, label: str) -> Breadcrumbs:
    return crumbs + (label,)


def truncate_to(crumbs: Breadcrumbs, depth: int) -> Breadcrumbs:
    """Keep the first ``depth`` labels. The root label is never dropped."""
    if depth < 1:
        raise ValueError(f"breadcrumb depth must be >= 1, got {depth}")
    return crumbs[:depth]


def pop(crumbs: Breadcrumbs) -> Breadcrumbs:
    return truncate_to(crumbs, max(1, len(crumbs) - 1))


def current(crumbs: Breadcrumbs) -> Breadcrumbs:
    return crumbs


def trail(screen: Screen, selection: str = "") -> Breadcrumbs:
    """Canonical breadcrumbs for a menu, list or detail screen."""
    crumbs: Breadcrumbs = (ROOT_LABEL,)
    if screen.kind == ScreenKind.DASHBOARD:
        return push(crumbs, DASHBOARD_LABEL)
    if screen.kind == ScreenKind.CATEGORY_MENU:
        return push(crumbs, CATEGORIES[screen.target].label)
    if screen.kind in (ScreenKind.LIST, ScreenKind.DETAIL):
        kind = KINDS[screen.target]
        crumbs = push(push(crumbs, CATEGORIES[kind.category].label), kind.label)
        if screen.kind == ScreenKind.DETAIL:
            crumbs = push(crumbs, selection)
    return crumbs
