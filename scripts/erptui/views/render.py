"""
Pure rendering helpers.

Everything here maps a Model to plain ``(text, style)`` lines so it can be
tested without a terminal. The widgets turn the style names into Rich
styles.
"""

from __future__ import annotations

from erptui.catalog import CATEGORIES, FORMS, KINDS, ROOT_MENU, DocumentKind
from erptui.engine import SPINNER_FRAMES
from erptui.model import Model, ScreenKind
from erptui.providers import DashboardSummary, Document, Row, as_text, docstatus

Line = tuple[str, str]

CHROME_ROWS = 8
MIN_VISIBLE_ROWS = 3
KEY_WIDTH = 24
LABEL_WIDTH = 16
DOCSTATUS_LABELS = {0: "Draft", 1: "Submitted", 2: "Cancelled"}

# footer status -> noun, first match wins
FOOTER_STATUSES = (("Draft", "draft"), ("Unpaid", "unpaid"), ("To Receive and Bill", "pending"))


def format_amount(value: float, currency: str = "") -> str:
    text = f"{value:,.2f}"
    return f"{currency} {text}" if currency else text


def visible_rows(height: int) -> int:
    """List rows that fit under the chrome for a terminal ``height``."""
    return max(MIN_VISIBLE_ROWS, height - CHROME_ROWS)


def window(cursor: int, count: int, size: int) -> tuple[int, int]:
    """Slice ``[start, end)`` of ``count`` rows that keeps ``cursor`` in view."""
    if count <= size:
        return 0, count
    start = min(max(0, cursor - size + 1), count - size)
    return start, start + size


def status_text(model: Model, brand: str) -> str:
    parts = [brand]
    if model.connection is None:
        parts.append("Connecting...")
    else:
        mode = "VPN" if model.connection.mode == "vpn" else "Internet"
        parts.append(f"{mode} {model.connection.url}")
        if model.connection.user:
            parts.append(model.connection.user)
    if model.is_loading:
        parts.append(SPINNER_FRAMES[model.spinner_frame % len(SPINNER_FRAMES)])
    return " │ ".join(parts)


def breadcrumb_text(model: Model) -> str:
    return " > ".join(model.breadcrumbs)


def notice_line(model: Model) -> Line | None:
    notice = model.notice
    if notice is None:
        return None
    if notice.is_error:
        return f"Error: {notice.text}", "error"
    return f"✓ {notice.text}", "success"


def loading_line(model: Model) -> Line:
    return f"{SPINNER_FRAMES[model.spinner_frame % len(SPINNER_FRAMES)]} Loading...", "muted"


def list_title(kind: DocumentKind, model: Model) -> str:
    if kind.sortable:
        return f"{kind.label} ({model.sort_mode.label})"
    return kind.label


def list_footer(rows: tuple[Row, ...], currency: str = "") -> str:
    """Row count, summed amount and the most relevant status count."""
    if not rows:
        return ""
    parts = [f"{len(rows)} items", f"Total: {format_amount(sum(r.amount for r in rows), currency)}"]
    for status, noun in FOOTER_STATUSES:
        count = sum(1 for r in rows if r.status == status)
        if count:
            parts.append(f"{count} {noun}")
            break
    return " │ ".join(parts)


# help line


def _list_help(kind: DocumentKind) -> list[str]:
    parts = ["↑/↓ navigate"]
    if kind.has_detail:
        parts.append("enter view")
    if kind.create_form:
        parts.append("n new")
    for binding in kind.bindings:
        if binding.where == "list":
            parts.append(f"{binding.key} {FORMS[binding.form].title.lower()}")
    if kind.deletable:
        parts.append("d delete")
    if kind.sortable:
        parts.append("o sort")
    if kind.binding("r", "list") is None:
        parts.append("r refresh")
    return parts


def _detail_help(kind: DocumentKind, document: Document | None) -> list[str]:
    parts = []
    for binding in kind.bindings:
        if binding.where == "detail" and binding.allows(document):
            parts.append(f"{binding.key} {FORMS[binding.form].title.lower()}")
    if kind.submittable and docstatus(document) == 0:
        parts.append("s submit")
    if kind.submittable and docstatus(document) == 1:
        parts.append("x cancel")
    if kind.deletable:
        parts.append("d delete")
    if kind.binding("r", "detail", document) is None:
        parts.append("r refresh")
    return parts


def help_text(model: Model) -> str:
    screen = model.screen
    if screen.kind == ScreenKind.ROOT:
        parts = ["↑/↓ navigate", "enter select", "q quit"]
    elif screen.kind == ScreenKind.CATEGORY_MENU:
        parts = ["↑/↓ navigate", "enter select", "esc back"]
    elif screen.kind == ScreenKind.LIST:
        parts = _list_help(KINDS[screen.target]) + ["esc back"]
    elif screen.kind == ScreenKind.DETAIL:
        parts = _detail_help(KINDS[screen.target], model.detail) + ["esc back"]
    elif screen.kind == ScreenKind.FORM:
        parts = ["tab/↓ next", "shift+tab/↑ prev", "enter submit", "esc cancel"]
    elif screen.kind == ScreenKind.CONFIRMATION:
        parts = ["y confirm", "n cancel"]
    else:
        parts = ["r refresh", "esc back"]
    return " • ".join(parts)


# bodies


def _menu(entries: list[tuple[str, str]], cursor: int) -> list[Line]:
    lines = []
    for index, (label, description) in enumerate(entries):
        marker = "▸" if index == cursor else " "
        style = "selected" if index == cursor else "entry"
        lines.append((f"{marker} {label:<14} {description}".rstrip(), style))
    return lines


def _root_body(model: Model) -> list[Line]:
    return [("Main Menu", "title"), ("", "")] + _menu([(label, desc) for label, desc, _ in ROOT_MENU], model.cursor)


def _category_body(model: Model) -> list[Line]:
    category = CATEGORIES[model.screen.target]
    entries = [(KINDS[k].label, "") for k in category.kinds]
    return [(category.label, "title"), ("", "")] + _menu(entries, model.cursor)


def _list_body(model: Model) -> list[Line]:
    kind = KINDS[model.screen.target]
    lines: list[Line] = [(list_title(kind, model), "title"), ("", "")]
    if not model.rows:
        lines.append(loading_line(model) if model.is_loading else ("No records", "muted"))
        return lines

    start, end = window(model.cursor, len(model.rows), visible_rows(model.height))
    for index in range(start, end):
        row = model.rows[index]
        marker = "▸" if index == model.cursor else " "
        style = "selected" if index == model.cursor else "entry"
        lines.append((f"{marker} {row.key:<{KEY_WIDTH}} {row.display_text}", style))

    if kind.sortable:
        currency = model.dashboard.currency if model.dashboard else ""
        lines += [("─" * 40, "muted"), (list_footer(model.rows, currency), "muted")]
    return lines


def _value(value) -> str:
    if isinstance(value, float):
        return format_amount(value) if not value.is_integer() or abs(value) >= 1000 else as_text(value)
    return as_text(value)


def _table(document: Document, kind: DocumentKind) -> list[Line]:
    records = document.get(kind.detail_table)
    if not isinstance(records, list) or not kind.detail_columns:
        return []
    widths = [max(10, len(label)) for label, _ in kind.detail_columns]
    header = "  ".join(f"{label:<{w}}" for (label, _), w in zip(kind.detail_columns, widths))
    lines: list[Line] = [("", ""), (header.rstrip(), "header")]
    for record in records:
        if not isinstance(record, dict):
            continue
        cells = [f"{_value(record.get(field)):<{w}}" for (_, field), w in zip(kind.detail_columns, widths)]
        lines.append(("  ".join(cells).rstrip(), "entry"))
    if len(lines) == 2:
        lines.append(("No lines", "muted"))
    return lines


def _detail_body(model: Model) -> list[Line]:
    kind = KINDS[model.screen.target]
    lines: list[Line] = [(f"{kind.doctype}: {model.selection}", "title"), ("", "")]
    document = model.detail
    if document is None:
        lines.append(loading_line(model) if model.is_loading else ("No data", "muted"))
        return lines

    status = docstatus(document)
    if status in DOCSTATUS_LABELS:
        lines.append((f"{'Document':<{LABEL_WIDTH}} {DOCSTATUS_LABELS[status]}", "field"))
    for label, field in kind.detail_fields:
        value = document.get(field)
        if value not in (None, ""):
            lines.append((f"{label:<{LABEL_WIDTH}} {_value(value)}", "field"))
    return lines + _table(document, kind)


def _form_body(model: Model) -> list[Line]:
    spec = FORMS[model.screen.target]
    title = spec.title
    if model.form_context and not spec.prefill:
        title = f"{title}: {model.form_context}"
    lines: list[Line] = [(title, "title"), ("", "")]
    for state in model.fields:
        lines.append((f"  {state.label}:", "label"))
        if state.focused:
            lines.append((f"> {state.value}█", "focused"))
        else:
            lines.append((f"  {state.value}", "entry"))
        lines.append(("", ""))
    if spec.hint:
        lines.append((spec.hint, "muted"))
    return lines


def _confirmation_body(model: Model) -> list[Line]:
    prompt = model.confirmation.prompt if model.confirmation else ""
    return [
        (prompt, "title"),
        ("", ""),
        ("This action may be irreversible.", "warning"),
        ("", ""),
        ("[y] Yes, proceed    [n] No, cancel", "entry"),
    ]


def dashboard_lines(summary: DashboardSummary) -> list[Line]:
    cur = summary.currency
    lines: list[Line] = [
        ("STOCK", "header"),
        (f"  Total Items:        {summary.total_items}", "entry"),
        (f"  Inventory Value:    {format_amount(summary.stock_value, cur)}", "entry"),
        (f"  Zero Stock Items:   {summary.zero_stock_bins}", "warning" if summary.zero_stock_bins else "entry"),
        ("", ""),
        ("PURCHASES", "header"),
        (f"  Draft POs:          {summary.draft_pos} ({format_amount(summary.draft_po_value, cur)})", "entry"),
        (f"  Pending POs:        {summary.pending_pos} ({format_amount(summary.pending_po_value, cur)})", "entry"),
        (
            f"  Unpaid Invoices:    {summary.unpaid_purchase_invoices}"
            f" ({format_amount(summary.unpaid_purchase_value, cur)})",
            "warning" if summary.unpaid_purchase_invoices else "entry",
        ),
    ]
    if summary.top_suppliers:
        lines.append(("  Top Suppliers:", "entry"))
        for rank, stat in enumerate(summary.top_suppliers, 1):
            name = stat.name if len(stat.name) <= 25 else stat.name[:22] + "..."
            lines.append((f"    {rank}. {name:<25} {stat.po_count:>3} POs", "entry"))
    lines += [
        ("", ""),
        ("SALES", "header"),
        (f"  Draft Orders:       {summary.draft_sales_orders}", "entry"),
        (f"  Open Orders:        {summary.open_sales_orders} ({format_amount(summary.open_sales_value, cur)})", "entry"),
        (
            f"  Unpaid Invoices:    {summary.unpaid_sales_invoices}"
            f" ({format_amount(summary.unpaid_sales_value, cur)})",
            "warning" if summary.unpaid_sales_invoices else "entry",
        ),
        ("", ""),
        ("PAYMENTS", "header"),
        (
            f"  Received:           {summary.payments_received}"
            f" ({format_amount(summary.payments_received_value, cur)})",
            "entry",
        ),
        (f"  Paid:               {summary.payments_paid} ({format_amount(summary.payments_paid_value, cur)})", "entry"),
        (f"  Drafts:             {summary.draft_payments}", "entry"),
        ("", ""),
        ("SYSTEM", "header"),
        (f"  Suppliers:    {summary.total_suppliers}", "entry"),
        (f"  Customers:    {summary.total_customers}", "entry"),
        (f"  Warehouses:   {summary.total_warehouses}", "entry"),
        (f"  Item Groups:  {summary.total_groups}", "entry"),
    ]
    if summary.notices:
        lines += [("", ""), ("Warnings:", "error")]
        lines += [(f"  - {notice}", "error") for notice in summary.notices]
    return lines


def _dashboard_body(model: Model) -> list[Line]:
    lines: list[Line] = [("ERPNEXT DASHBOARD", "title"), ("", "")]
    if model.dashboard is None:
        lines.append(loading_line(model) if model.is_loading else ("No data available", "muted"))
        return lines
    if model.is_loading:
        lines.append(loading_line(model))
    return lines + dashboard_lines(model.dashboard)


BODIES = {
    ScreenKind.ROOT: _root_body,
    ScreenKind.CATEGORY_MENU: _category_body,
    ScreenKind.LIST: _list_body,
    ScreenKind.DETAIL: _detail_body,
    ScreenKind.FORM: _form_body,
    ScreenKind.CONFIRMATION: _confirmation_body,
    ScreenKind.DASHBOARD: _dashboard_body,
}


def body_lines(model: Model) -> list[Line]:
    return BODIES[model.screen.kind](model)
