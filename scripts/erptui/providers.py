"""
Data providers for the TUI.

Protocols define the backend interface; implementations can be swapped
for testing. Snapshot records are immutable so they can cross from worker
threads into the message loop without copying.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

Document = dict[str, Any]


@dataclass(frozen=True)
class Row:
    """One line of a list screen."""

    key: str
    display_text: str
    amount: float = 0.0
    status: str = ""


@dataclass(frozen=True)
class Connection:
    """Result of the connectivity probe."""

    mode: str
    url: str
    user: str = ""


@dataclass(frozen=True)
class SupplierStat:
    name: str
    po_count: int
    value: float


@dataclass(frozen=True)
class DashboardSummary:
    """Merged dashboard record. Each section owns a disjoint set of fields."""

    # stock
    total_items: int = 0
    stock_value: float = 0.0
    zero_stock_bins: int = 0
    # purchasing
    draft_pos: int = 0
    draft_po_value: float = 0.0
    pending_pos: int = 0
    pending_po_value: float = 0.0
    unpaid_purchase_invoices: int = 0
    unpaid_purchase_value: float = 0.0
    top_suppliers: tuple[SupplierStat, ...] = ()
    # sales
    draft_sales_orders: int = 0
    open_sales_orders: int = 0
    open_sales_value: float = 0.0
    unpaid_sales_invoices: int = 0
    unpaid_sales_value: float = 0.0
    # payments
    payments_received: int = 0
    payments_received_value: float = 0.0
    payments_paid: int = 0
    payments_paid_value: float = 0.0
    draft_payments: int = 0
    # system
    total_suppliers: int = 0
    total_customers: int = 0
    total_warehouses: int = 0
    total_groups: int = 0
    currency: str = ""
    notices: tuple[str, ...] = ()


class DocumentGateway(Protocol):
    """Protocol for the request/response backend."""

    mode: str
    active_url: str

    def detect_connection(self) -> Connection:
        """Pick VPN or internet endpoint and identify the logged-in user."""
        ...

    def request(
        self,
        method: str,
        resource: str,
        body: Document | None = None,
        params: dict[str, str] | None = None,
    ) -> Document:
        """Call ``/api/resource/<resource>``; raises GatewayError on failure."""
        ...

    def call(self, method_path: str, body: Document | None = None, method: str = "POST") -> Document:
        """Call ``/api/method/<method_path>``; raises GatewayError on failure."""
        ...

    def list_resource(
        self,
        doctype: str,
        fields: list[str],
        filters: list[list[Any]] | None = None,
        order_by: str = "",
        limit: int = 0,
    ) -> list[Document]:
        ...

    def get_document(self, doctype: str, name: str) -> Document:
        ...

    def submit_document(self, doctype: str, name: str) -> None:
        ...

    def cancel_document(self, doctype: str, name: str) -> None:
        ...

    def get_company(self) -> str:
        ...

    def get_currency(self) -> str:
        ...


# Narrowing helpers for loosely-typed backend documents.


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def as_records(value: Any) -> list[Document]:
    """Keep only the dict entries of a list value."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def data_records(result: Document) -> list[Document]:
    """``result["data"]`` as a list of records."""
    return as_records(result.get("data"))


def data_document(result: Document) -> Document | None:
    """``result["data"]`` when it is a single record."""
    data = result.get("data")
    return data if isinstance(data, dict) else None


def docstatus(document: Document | None) -> int | None:
    """0 draft, 1 submitted, 2 cancelled; None when unknown."""
    if not document or "docstatus" not in document:
        return None
    value = document.get("docstatus")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)
