"""
Document catalog.

Every list/detail/form screen is described here as data: which doctype it
shows, how a record becomes a list row, which keys it accepts and which form
each key opens. The engine looks things up here instead of switching on the
document type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from erptui import writers
from erptui.forms import FieldSpec, FormSpec
from erptui.model import Screen, ScreenKind, SortMode
from erptui.providers import Document, DocumentGateway, Row, as_number, as_records, as_text, docstatus

DASHBOARD = "dashboard"
DASHBOARD_LABEL = "Dashboard"

DRAFT = 0
SUBMITTED = 1

LIST_LIMIT = 100


@dataclass(frozen=True)
class Category:
    key: str
    label: str
    description: str
    kinds: tuple[str, ...]


@dataclass(frozen=True)
class KeyBinding:
    """Command key that opens a form, optionally guarded on the detail document."""

    key: str
    form: str
    where: str  # "list" | "detail"
    guard: Callable[[Document | None], bool] | None = None
    with_entity: bool = True  # pass the highlighted row key to the form

    def allows(self, document: Document | None) -> bool:
        return self.guard is None or self.guard(document)


@dataclass(frozen=True)
class DocumentKind:
    key: str
    label: str
    doctype: str
    category: str
    fields: tuple[str, ...]
    row: Callable[[Document], Row]
    filters: tuple[tuple, ...] = ()
    detail_fields: tuple[tuple[str, str], ...] = ()
    detail_table: str = ""
    detail_columns: tuple[tuple[str, str], ...] = ()
    detail_loader: Callable[[DocumentGateway, str], Document] | None = None
    has_detail: bool = True
    sortable: bool = False
    amount_field: str = "grand_total"
    default_order: str = ""
    limit: int = 0
    deletable: bool = False
    submittable: bool = False
    create_form: str = ""
    bindings: tuple[KeyBinding, ...] = ()

    def binding(self, key: str, where: str, document: Document | None = None) -> KeyBinding | None:
        for binding in self.bindings:
            if binding.key == key and binding.where == where and binding.allows(document):
                return binding
        return None


def order_by(kind: DocumentKind, mode: SortMode) -> str:
    """Server-side ordering for the next fetch of ``kind``."""
    if not kind.sortable:
        return kind.default_order
    return {
        SortMode.NEWEST: "creation desc",
        SortMode.OLDEST: "creation asc",
        SortMode.NAME: "name asc",
        SortMode.TOTAL: f"{kind.amount_field} desc",
    }[mode]


# guards


def is_draft(document: Document | None) -> bool:
    return docstatus(document) == DRAFT


def is_submitted(document: Document | None) -> bool:
    return docstatus(document) == SUBMITTED


def has_outstanding(document: Document | None) -> bool:
    return is_submitted(document) and as_number((document or {}).get("outstanding_amount")) > 0


def variant_fields(document: Document | None) -> tuple[FieldSpec, ...]:
    """One required field per attribute of a template item."""
    names = [as_text(row.get("attribute")) for row in as_records((document or {}).get("attributes"))]
    return tuple(FieldSpec(name, f"{name} value", required=True) for name in names if name)


def has_attributes(document: Document | None) -> bool:
    return bool(variant_fields(document))


# row builders


def _simple(detail: str) -> Callable[[Document], Row]:
    def build(record: Document) -> Row:
        return Row(key=as_text(record.get("name")), display_text=detail)

    return build


def _item_row(record: Document) -> Row:
    name = as_text(record.get("name"))
    item_name = as_text(record.get("item_name"))
    group = as_text(record.get("item_group"))
    text = item_name if item_name and item_name != name else "Item"
    return Row(key=name, display_text=f"{text} ({group})" if group else text)


def _template_row(record: Document) -> Row:
    return Row(key=as_text(record.get("name")), display_text="Template")


def _group_row(record: Document) -> Row:
    parent = as_text(record.get("parent_item_group"))
    text = "Group" if not parent else f"Group (parent: {parent})"
    return Row(key=as_text(record.get("name")), display_text=text)


def _attribute_row(record: Document) -> Row:
    numeric = as_number(record.get("numeric_values")) == 1
    return Row(key=as_text(record.get("name")), display_text="Numeric" if numeric else "Attribute")


def _warehouse_row(record: Document) -> Row:
    text = "Group" if as_number(record.get("is_group")) == 1 else "Warehouse"
    parent = as_text(record.get("parent_warehouse"))
    if parent:
        text += f" (parent: {parent})"
    return Row(key=as_text(record.get("name")), display_text=text)


def _stock_row(record: Document) -> Row:
    text = f"{as_text(record.get('item_name'))} ({as_text(record.get('stock_uom'))})"
    return Row(key=as_text(record.get("name")), display_text=text)


def _serial_row(record: Document) -> Row:
    status = as_text(record.get("status"))
    text = f"{as_text(record.get('item_code'))} | {status}"
    return Row(key=as_text(record.get("name")), display_text=text, status=status)


def _party_row(group_field: str) -> Callable[[Document], Row]:
    def build(record: Document) -> Row:
        text = as_text(record.get(group_field))
        if as_number(record.get("disabled")) == 1:
            text += " [disabled]"
        return Row(key=as_text(record.get("name")), display_text=text)

    return build


def _transaction_row(party_field: str) -> Callable[[Document], Row]:
    def build(record: Document) -> Row:
        status = as_text(record.get("status"))
        total = as_number(record.get("grand_total"))
        text = f"{as_text(record.get(party_field))} | {status} | {total:,.2f}"
        return Row(key=as_text(record.get("name")), display_text=text, amount=total, status=status)

    return build


def _payment_row(record: Document) -> Row:
    status = as_text(record.get("status"))
    amount = as_number(record.get("paid_amount"))
    arrow = "↑" if record.get("payment_type") == "Pay" else "↓"
    text = f"{arrow} {as_text(record.get('party'))} | {status} | {amount:,.2f}"
    return Row(key=as_text(record.get("name")), display_text=text, amount=amount, status=status)


def load_stock_levels(gateway: DocumentGateway, item_code: str) -> Document:
    """Per-warehouse bins for one item, shaped as a detail document."""
    bins = gateway.list_resource(
        "Bin",
        ["warehouse", "actual_qty", "reserved_qty", "ordered_qty", "stock_value"],
        filters=[["item_code", "=", item_code]],
    )
    return {
        "name": item_code,
        "bins": bins,
        "total_qty": sum(as_number(b.get("actual_qty")) for b in bins),
        "total_value": sum(as_number(b.get("stock_value")) for b in bins),
    }


# catalog

ITEM_LINES = (("Item", "item_code"), ("Qty", "qty"), ("Rate", "rate"), ("Amount", "amount"))

_STOCK_KEYS = (
    KeyBinding("r", "receive_stock", "list"),
    KeyBinding("t", "transfer_stock", "list"),
    KeyBinding("i", "issue_stock", "list"),
    KeyBinding("r", "receive_stock", "detail"),
    KeyBinding("t", "transfer_stock", "detail"),
    KeyBinding("i", "issue_stock", "detail"),
)


def _transaction(
    key: str,
    label: str,
    doctype: str,
    category: str,
    party_field: str,
    date_field: str,
    more_fields: tuple[tuple[str, str], ...] = (),
    **extra,
) -> DocumentKind:
    return DocumentKind(
        key=key,
        label=label,
        doctype=doctype,
        category=category,
        fields=("name", party_field, date_field, "status", "grand_total", "docstatus"),
        row=_transaction_row(party_field),
        detail_fields=(
            ("Party", party_field),
            ("Date", date_field),
            ("Status", "status"),
            ("Total", "grand_total"),
        ) + more_fields,
        detail_table="items",
        detail_columns=ITEM_LINES,
        sortable=True,
        limit=LIST_LIMIT,
        submittable=True,
        **extra,
    )


KINDS: dict[str, DocumentKind] = {kind.key: kind for kind in (
    # inventory
    DocumentKind(
        key="items", label="Items", doctype="Item", category="inventory",
        fields=("name", "item_name", "item_group"),
        filters=(("has_variants", "=", 0),),
        row=_item_row,
        detail_fields=(("Name", "item_name"), ("Group", "item_group"), ("UOM", "stock_uom"),
                       ("Brand", "brand"), ("Variant Of", "variant_of"), ("Description", "description")),
        deletable=True,
    ),
    DocumentKind(
        key="templates", label="Templates", doctype="Item", category="inventory",
        fields=("name",),
        filters=(("has_variants", "=", 1),),
        row=_template_row,
        detail_fields=(("Name", "item_name"), ("Group", "item_group"), ("UOM", "stock_uom")),
        detail_table="attributes",
        detail_columns=(("Attribute", "attribute"),),
        deletable=True,
        bindings=(KeyBinding("v", "create_variant", "detail", has_attributes),),
    ),
    DocumentKind(
        key="groups", label="Groups", doctype="Item Group", category="inventory",
        fields=("name", "parent_item_group"),
        row=_group_row,
        detail_fields=(("Parent", "parent_item_group"), ("Is Group", "is_group")),
        deletable=True, create_form="create_item_group",
    ),
    DocumentKind(
        key="brands", label="Brands", doctype="Brand", category="inventory",
        fields=("name",),
        row=_simple("Brand"),
        detail_fields=(("Brand", "brand"), ("Description", "description")),
        deletable=True, create_form="create_brand",
    ),
    DocumentKind(
        key="attributes", label="Attributes", doctype="Item Attribute", category="inventory",
        fields=("name", "numeric_values"),
        row=_attribute_row,
        detail_fields=(("Numeric", "numeric_values"), ("From", "from_range"),
                       ("To", "to_range"), ("Increment", "increment")),
        detail_table="item_attribute_values",
        detail_columns=(("Value", "attribute_value"), ("Abbr", "abbr")),
        deletable=True, create_form="create_attribute",
    ),
    # stock
    DocumentKind(
        key="warehouses", label="Warehouses", doctype="Warehouse", category="stock",
        fields=("name", "warehouse_name", "is_group", "parent_warehouse"),
        row=_warehouse_row,
        has_detail=False, create_form="create_warehouse",
    ),
    DocumentKind(
        key="stock", label="Stock Levels", doctype="Item", category="stock",
        fields=("name", "item_name", "stock_uom"),
        row=_stock_row,
        detail_fields=(("Total Qty", "total_qty"), ("Total Value", "total_value")),
        detail_table="bins",
        detail_columns=(("Warehouse", "warehouse"), ("Actual", "actual_qty"), ("Reserved", "reserved_qty"),
                        ("Ordered", "ordered_qty"), ("Value", "stock_value")),
        detail_loader=load_stock_levels,
        bindings=_STOCK_KEYS,
    ),
    DocumentKind(
        key="serials", label="Serial Numbers", doctype="Serial No", category="stock",
        fields=("name", "item_code", "warehouse", "status"),
        row=_serial_row,
        detail_fields=(("Item", "item_code"), ("Warehouse", "warehouse"), ("Status", "status"),
                       ("Supplier", "supplier"), ("Purchase Date", "purchase_date")),
        default_order="creation desc", limit=LIST_LIMIT,
        deletable=True, create_form="create_serial",
    ),
    # sales
    DocumentKind(
        key="customers", label="Customers", doctype="Customer", category="sales",
        fields=("name", "customer_name", "customer_group", "disabled"),
        row=_party_row("customer_group"),
        detail_fields=(("Name", "customer_name"), ("Group", "customer_group"),
                       ("Territory", "territory"), ("Type", "customer_type")),
        deletable=True, create_form="create_customer",
    ),
    _transaction(
        "quotations", "Quotations", "Quotation", "sales", "party_name", "transaction_date",
        create_form="create_quotation",
        bindings=(
            KeyBinding("a", "add_quotation_item", "detail", is_draft),
            KeyBinding("o", "sales_order_from_quotation", "detail", is_submitted),
        ),
    ),
    _transaction(
        "sales_orders", "Sales Orders", "Sales Order", "sales", "customer", "transaction_date",
        more_fields=(("Delivery", "delivery_date"),),
        create_form="create_sales_order",
        bindings=(
            KeyBinding("q", "sales_order_from_quotation", "list", with_entity=False),
            KeyBinding("a", "add_sales_order_item", "detail", is_draft),
            KeyBinding("i", "sales_invoice_from_so", "detail", is_submitted),
            KeyBinding("g", "delivery_note_from_so", "detail", is_submitted),
        ),
    ),
    _transaction(
        "sales_invoices", "Sales Invoices", "Sales Invoice", "sales", "customer", "posting_date",
        more_fields=(("Outstanding", "outstanding_amount"),),
        create_form="create_sales_invoice",
        bindings=(KeyBinding("p", "receive_payment", "detail", has_outstanding),),
    ),
    _transaction(
        "delivery_notes", "Delivery Notes", "Delivery Note", "sales", "customer", "posting_date",
        create_form="create_delivery_note",
    ),
    # purchasing
    DocumentKind(
        key="suppliers", label="Suppliers", doctype="Supplier", category="purchasing",
        fields=("name", "supplier_name", "supplier_group", "disabled"),
        row=_party_row("supplier_group"),
        detail_fields=(("Name", "supplier_name"), ("Group", "supplier_group"),
                       ("Country", "country"), ("Type", "supplier_type")),
        deletable=True, create_form="create_supplier",
    ),
    _transaction(
        "purchase_orders", "Purchase Orders", "Purchase Order", "purchasing", "supplier", "transaction_date",
        more_fields=(("Required By", "schedule_date"),),
        create_form="create_purchase_order",
        bindings=(
            KeyBinding("a", "add_purchase_order_item", "detail", is_draft),
            KeyBinding("i", "purchase_invoice_from_po", "detail", is_submitted),
            KeyBinding("g", "purchase_receipt_from_po", "detail", is_submitted),
        ),
    ),
    _transaction(
        "purchase_invoices", "Purchase Invoices", "Purchase Invoice", "purchasing", "supplier", "posting_date",
        more_fields=(("Outstanding", "outstanding_amount"),),
        create_form="create_purchase_invoice",
        bindings=(KeyBinding("p", "make_payment", "detail", has_outstanding),),
    ),
    _transaction(
        "purchase_receipts", "Purchase Receipts", "Purchase Receipt", "purchasing", "supplier", "posting_date",
        create_form="create_purchase_receipt",
    ),
    # payments
    DocumentKind(
        key="payments", label="All Payments", doctype="Payment Entry", category="payments",
        fields=("name", "payment_type", "party_type", "party", "paid_amount", "posting_date", "status", "docstatus"),
        row=_payment_row,
        detail_fields=(("Type", "payment_type"), ("Party Type", "party_type"), ("Party", "party"),
                       ("Amount", "paid_amount"), ("Date", "posting_date"), ("Status", "status")),
        detail_table="references",
        detail_columns=(("Reference", "reference_name"), ("Type", "reference_doctype"),
                        ("Allocated", "allocated_amount")),
        sortable=True, amount_field="paid_amount", limit=LIST_LIMIT, submittable=True,
    ),
)}


CATEGORIES: dict[str, Category] = {c.key: c for c in (
    Category("inventory", "Inventory", "Items, Templates, Groups, Brands, Attributes",
             ("items", "templates", "groups", "brands", "attributes")),
    Category("stock", "Stock", "Warehouses, Stock Levels, Serial Numbers",
             ("warehouses", "stock", "serials")),
    Category("sales", "Sales", "Customers, Quotations, Orders, Invoices, Delivery",
             ("customers", "quotations", "sales_orders", "sales_invoices", "delivery_notes")),
    Category("purchasing", "Purchasing", "Suppliers, Orders, Invoices, Receipts",
             ("suppliers", "purchase_orders", "purchase_invoices", "purchase_receipts")),
    Category("payments", "Payments", "Payment entries",
             ("payments",)),
)}

# (label, description, target) where target is DASHBOARD or a category key
ROOT_MENU: tuple[tuple[str, str, str], ...] = (
    (DASHBOARD_LABEL, "KPIs across stock, purchasing, sales and payments", DASHBOARD),
) + tuple((c.label, c.description, c.key) for c in CATEGORIES.values())


# forms


def _list(kind: str) -> Screen:
    return Screen(ScreenKind.LIST, kind)


def _detail(kind: str) -> Screen:
    return Screen(ScreenKind.DETAIL, kind)


NAME = FieldSpec("name", "Name", required=True)
ITEM_CODE = FieldSpec("item_code", "Item Code", required=True)
QTY = FieldSpec("qty", "Quantity", required=True, numeric=True)
RATE = FieldSpec("rate", "Rate", numeric=True)
PO = FieldSpec("purchase_order", "Purchase Order", required=True)
SO = FieldSpec("sales_order", "Sales Order", required=True)

FORMS: dict[str, FormSpec] = {spec.key: spec for spec in (
    FormSpec("create_supplier", "Create Supplier",
             (NAME, FieldSpec("group", "Group"), FieldSpec("country", "Country")),
             _list("suppliers"), writers.create_supplier),
    FormSpec("create_customer", "Create Customer",
             (NAME, FieldSpec("group", "Group"), FieldSpec("territory", "Territory")),
             _list("customers"), writers.create_customer),
    FormSpec("create_item_group", "Create Item Group",
             (NAME, FieldSpec("parent", "Parent Group")),
             _list("groups"), writers.create_item_group),
    FormSpec("create_brand", "Create Brand", (NAME,), _list("brands"), writers.create_brand),
    FormSpec("create_warehouse", "Create Warehouse",
             (NAME, FieldSpec("parent", "Parent Warehouse")),
             _list("warehouses"), writers.create_warehouse),
    FormSpec("create_attribute", "Create Attribute",
             (NAME, FieldSpec("values", "Values (comma separated)")),
             _list("attributes"), writers.create_attribute),
    FormSpec("create_serial", "Create Serial Number",
             (FieldSpec("serial_no", "Serial Number", required=True), ITEM_CODE, FieldSpec("supplier", "Supplier")),
             _list("serials"), writers.create_serial),
    FormSpec("create_variant", "Create Variant", (), _detail("templates"), writers.create_variant,
             field_source=variant_fields, hint="Enter a value for each template attribute"),
    FormSpec("receive_stock", "Receive Stock",
             (ITEM_CODE, QTY, FieldSpec("warehouse", "Warehouse", required=True), RATE),
             _list("stock"), writers.receive_stock, prefill=True),
    FormSpec("transfer_stock", "Transfer Stock",
             (ITEM_CODE, QTY, FieldSpec("from_warehouse", "From Warehouse", required=True),
              FieldSpec("to_warehouse", "To Warehouse", required=True)),
             _list("stock"), writers.transfer_stock, prefill=True),
    FormSpec("issue_stock", "Issue Stock",
             (ITEM_CODE, QTY, FieldSpec("warehouse", "Warehouse", required=True)),
             _list("stock"), writers.issue_stock, prefill=True),
    FormSpec("create_purchase_order", "Create Purchase Order",
             (FieldSpec("supplier", "Supplier", required=True),),
             _list("purchase_orders"), writers.create_purchase_order),
    FormSpec("add_purchase_order_item", "Add Item to PO", (ITEM_CODE, QTY, RATE),
             _detail("purchase_orders"), writers.add_purchase_order_item),
    FormSpec("create_quotation", "Create Quotation",
             (FieldSpec("customer", "Customer", required=True),),
             _list("quotations"), writers.create_quotation),
    FormSpec("add_quotation_item", "Add Item to Quotation", (ITEM_CODE, QTY, RATE),
             _detail("quotations"), writers.add_quotation_item),
    FormSpec("create_sales_order", "Create Sales Order",
             (FieldSpec("customer", "Customer", required=True), FieldSpec("delivery_date", "Delivery Date")),
             _list("sales_orders"), writers.create_sales_order),
    FormSpec("add_sales_order_item", "Add Item to SO", (ITEM_CODE, QTY, RATE),
             _detail("sales_orders"), writers.add_sales_order_item),
    FormSpec("sales_order_from_quotation", "Sales Order from Quotation",
             (FieldSpec("quotation", "Quotation", required=True),),
             _list("sales_orders"), writers.sales_order_from_quotation, prefill=True),
    FormSpec("purchase_invoice_from_po", "Create Invoice from PO", (PO,),
             _detail("purchase_orders"), writers.purchase_invoice_from_po, prefill=True),
    FormSpec("create_purchase_invoice", "Create Purchase Invoice", (PO,),
             _list("purchase_invoices"), writers.purchase_invoice_from_po),
    FormSpec("purchase_receipt_from_po", "Create Receipt from PO", (PO,),
             _detail("purchase_orders"), writers.purchase_receipt_from_po, prefill=True),
    FormSpec("create_purchase_receipt", "Create Purchase Receipt", (PO,),
             _list("purchase_receipts"), writers.purchase_receipt_from_po),
    FormSpec("sales_invoice_from_so", "Create Invoice from SO", (SO,),
             _detail("sales_orders"), writers.sales_invoice_from_so, prefill=True),
    FormSpec("create_sales_invoice", "Create Sales Invoice", (SO,),
             _list("sales_invoices"), writers.sales_invoice_from_so),
    FormSpec("delivery_note_from_so", "Create Delivery Note from SO", (SO,),
             _detail("sales_orders"), writers.delivery_note_from_so, prefill=True),
    FormSpec("create_delivery_note", "Create Delivery Note", (SO,),
             _list("delivery_notes"), writers.delivery_note_from_so),
    FormSpec("receive_payment", "Create Payment (Receive)",
             (FieldSpec("invoice", "Sales Invoice", required=True), FieldSpec("amount", "Amount", numeric=True)),
             _list("payments"), writers.receive_payment, prefill=True,
             hint="Leave amount empty to pay the full outstanding balance"),
    FormSpec("make_payment", "Create Payment (Pay)",
             (FieldSpec("invoice", "Purchase Invoice", required=True), FieldSpec("amount", "Amount", numeric=True)),
             _list("payments"), writers.make_payment, prefill=True,
             hint="Leave amount empty to pay the full outstanding balance"),
)}
