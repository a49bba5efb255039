"""
Dashboard aggregation.

Five independent sections query the backend concurrently. Each section owns
a disjoint set of DashboardSummary fields and writes them through a shared
builder guarded by one lock, so the merged result is the same whatever
order the sections finish in. A failed fetch leaves its fields at zero and
adds a notice instead of failing the whole dashboard.
"""

from __future__ import annotations

import threading
from collections import Counter, defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from erptui.gateway import GatewayError
from erptui.log import get_logger
from erptui.messages import DashboardFetched, Task
from erptui.providers import DashboardSummary, Document, DocumentGateway, SupplierStat, as_number, as_text

logger = get_logger(__name__)

TOP_SUPPLIERS = 5
PENDING_PO_STATUSES = ["To Receive and Bill", "To Receive"]
OPEN_SO_STATUSES = ["To Deliver and Bill", "To Bill", "To Deliver"]


class SummaryBuilder:
    """Thread-safe accumulator for one DashboardSummary."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._fields: dict[str, Any] = {}
        self._notices: list[tuple[int, str]] = []

    def set(self, **fields: Any) -> None:
        with self._lock:
            self._fields.update(fields)

    def fail(self, section: int, text: str) -> None:
        with self._lock:
            self._notices.append((section, text))

    def build(self) -> DashboardSummary:
        with self._lock:
            # section order, not completion order
            notices = tuple(text for _, text in sorted(self._notices, key=lambda n: n[0]))
            return DashboardSummary(**self._fields, notices=notices)


class _Section:
    """Runs one section's fetches, reporting failures to the builder."""

    def __init__(self, gateway: DocumentGateway, builder: SummaryBuilder, index: int) -> None:
        self.gateway = gateway
        self.builder = builder
        self.index = index

    def fetch(self, what: str, doctype: str, fields: list[str], filters: list | None = None) -> list[Document] | None:
        try:
            return self.gateway.list_resource(doctype, fields, filters=filters)
        except GatewayError as exc:
            logger.warning("Dashboard fetch of %s failed: %s", what, exc)
            self.builder.fail(self.index, f"Failed to fetch {what}")
            return None


def _total(records: list[Document], field: str) -> float:
    return sum(as_number(r.get(field)) for r in records)


def stock_section(s: _Section) -> None:
    items = s.fetch("items", "Item", ["name"])
    if items is not None:
        s.builder.set(total_items=len(items))

    bins = s.fetch("stock data", "Bin", ["stock_value", "actual_qty"])
    if bins is not None:
        s.builder.set(
            stock_value=_total(bins, "stock_value"),
            zero_stock_bins=sum(1 for b in bins if as_number(b.get("actual_qty")) == 0),
        )


def purchasing_section(s: _Section) -> None:
    drafts = s.fetch("draft POs", "Purchase Order", ["name", "grand_total"], [["docstatus", "=", 0]])
    if drafts is not None:
        s.builder.set(draft_pos=len(drafts), draft_po_value=_total(drafts, "grand_total"))

    pending = s.fetch(
        "pending POs", "Purchase Order", ["name", "grand_total"],
        [["docstatus", "=", 1], ["status", "in", PENDING_PO_STATUSES]],
    )
    if pending is not None:
        s.builder.set(pending_pos=len(pending), pending_po_value=_total(pending, "grand_total"))

    submitted = s.fetch("supplier stats", "Purchase Order", ["supplier", "grand_total"], [["docstatus", "=", 1]])
    if submitted is not None:
        counts: Counter[str] = Counter()
        values: dict[str, float] = defaultdict(float)
        for po in submitted:
            supplier = as_text(po.get("supplier"))
            if supplier:
                counts[supplier] += 1
                values[supplier] += as_number(po.get("grand_total"))
        ranked = sorted(counts, key=lambda name: (-counts[name], name))[:TOP_SUPPLIERS]
        s.builder.set(top_suppliers=tuple(SupplierStat(n, counts[n], values[n]) for n in ranked))

    unpaid = s.fetch(
        "purchase invoices", "Purchase Invoice", ["name", "outstanding_amount"],
        [["docstatus", "=", 1], ["outstanding_amount", ">", 0]],
    )
    if unpaid is not None:
        s.builder.set(
            unpaid_purchase_invoices=len(unpaid),
            unpaid_purchase_value=_total(unpaid, "outstanding_amount"),
        )


def sales_section(s: _Section) -> None:
    drafts = s.fetch("draft sales orders", "Sales Order", ["name"], [["docstatus", "=", 0]])
    if drafts is not None:
        s.builder.set(draft_sales_orders=len(drafts))

    open_orders = s.fetch(
        "open sales orders", "Sales Order", ["name", "grand_total"],
        [["docstatus", "=", 1], ["status", "in", OPEN_SO_STATUSES]],
    )
    if open_orders is not None:
        s.builder.set(open_sales_orders=len(open_orders), open_sales_value=_total(open_orders, "grand_total"))

    unpaid = s.fetch(
        "sales invoices", "Sales Invoice", ["name", "outstanding_amount"],
        [["docstatus", "=", 1], ["outstanding_amount", ">", 0]],
    )
    if unpaid is not None:
        s.builder.set(unpaid_sales_invoices=len(unpaid), unpaid_sales_value=_total(unpaid, "outstanding_amount"))


def payments_section(s: _Section) -> None:
    entries = s.fetch("payments", "Payment Entry", ["payment_type", "paid_amount"], [["docstatus", "=", 1]])
    if entries is not None:
        received = [e for e in entries if e.get("payment_type") == "Receive"]
        paid = [e for e in entries if e.get("payment_type") == "Pay"]
        s.builder.set(
            payments_received=len(received),
            payments_received_value=_total(received, "paid_amount"),
            payments_paid=len(paid),
            payments_paid_value=_total(paid, "paid_amount"),
        )

    drafts = s.fetch("draft payments", "Payment Entry", ["name"], [["docstatus", "=", 0]])
    if drafts is not None:
        s.builder.set(draft_payments=len(drafts))


def system_section(s: _Section) -> None:
    for what, doctype, field in (
        ("suppliers", "Supplier", "total_suppliers"),
        ("customers", "Customer", "total_customers"),
        ("warehouses", "Warehouse", "total_warehouses"),
        ("item groups", "Item Group", "total_groups"),
    ):
        records = s.fetch(what, doctype, ["name"])
        if records is not None:
            s.builder.set(**{field: len(records)})

    try:
        s.builder.set(currency=s.gateway.get_currency())
    except GatewayError as exc:
        logger.warning("Dashboard currency lookup failed: %s", exc)
        s.builder.fail(s.index, "Failed to fetch currency")


SECTIONS: tuple[tuple[str, Callable[[_Section], None]], ...] = (
    ("stock", stock_section),
    ("purchasing", purchasing_section),
    ("sales", sales_section),
    ("payments", payments_section),
    ("system", system_section),
)
SECTION_INDEX = {name: index for index, (name, _) in enumerate(SECTIONS)}


class DashboardAggregator:
    """Fans out the dashboard sections and joins them into one summary."""

    def __init__(self, gateway: DocumentGateway, max_workers: int = len(SECTIONS)) -> None:
        self.gateway = gateway
        self.max_workers = max_workers

    def run_section(self, builder: SummaryBuilder, name: str) -> None:
        index = SECTION_INDEX[name]
        SECTIONS[index][1](_Section(self.gateway, builder, index))

    def gather(self) -> DashboardSummary:
        """Run every section on the pool and wait for all of them."""
        builder = SummaryBuilder()
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="erptui-dash") as pool:
            futures = {pool.submit(self.run_section, builder, name): name for name, _ in SECTIONS}
        for future, name in futures.items():
            exc = future.exception()
            if exc is not None:
                logger.error("Dashboard section %s crashed: %s", name, exc)
                builder.fail(SECTION_INDEX[name], f"Failed to fetch {name} metrics")
        return builder.build()

    def collect(self) -> Task:
        def task() -> DashboardFetched:
            return DashboardFetched(self.gather())

        return task
