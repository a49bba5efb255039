"""
Backend writes behind the forms.

Each writer takes ``(gateway, values, context)`` and returns the success
text, raising GatewayError or ValidationError otherwise. ``values`` are the
validated form values keyed by field name; ``context`` is the entity the form
was opened for, if any.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from erptui.forms import ValidationError
from erptui.gateway import GatewayError, quote_name
from erptui.providers import Document, DocumentGateway, as_number, as_records, as_text, data_document, docstatus

STOCK_RECEIPT = "Material Receipt"
STOCK_TRANSFER = "Material Transfer"
STOCK_ISSUE = "Material Issue"


def _today() -> str:
    return date.today().isoformat()


def _created(result: Document, what: str) -> str:
    document = data_document(result)
    if document is None:
        raise GatewayError(f"Failed to create {what.lower()}")
    return as_text(document.get("name"))


def _optional(body: dict[str, Any], **fields: str) -> dict[str, Any]:
    body.update({k: v for k, v in fields.items() if v})
    return body


# master data


def create_supplier(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    body = _optional(
        {"supplier_name": values["name"]},
        supplier_group=values.get("group", ""),
        country=values.get("country", ""),
    )
    return f"Supplier created: {_created(gateway.request('POST', 'Supplier', body), 'supplier')}"


def create_customer(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    body = _optional(
        {"customer_name": values["name"]},
        customer_group=values.get("group", ""),
        territory=values.get("territory", ""),
    )
    return f"Customer created: {_created(gateway.request('POST', 'Customer', body), 'customer')}"


def create_item_group(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    body = _optional({"item_group_name": values["name"]}, parent_item_group=values.get("parent", ""))
    return f"Group created: {_created(gateway.request('POST', quote_name('Item Group'), body), 'group')}"


def create_brand(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    body = {"brand": values["name"]}
    return f"Brand created: {_created(gateway.request('POST', 'Brand', body), 'brand')}"


def create_warehouse(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    body = _optional(
        {"warehouse_name": values["name"], "company": gateway.get_company()},
        parent_warehouse=values.get("parent", ""),
    )
    return f"Warehouse created: {_created(gateway.request('POST', 'Warehouse', body), 'warehouse')}"


def attribute_values(raw: str) -> list[dict[str, str]]:
    """``"Red, Green"`` -> attribute value rows with 3-letter abbreviations."""
    rows = []
    for value in raw.split(","):
        value = value.strip()
        if value:
            rows.append({"attribute_value": value, "abbr": value[:3].upper()})
    return rows


def create_attribute(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    body: dict[str, Any] = {"attribute_name": values["name"]}
    rows = attribute_values(values.get("values", ""))
    if values.get("values") and not rows:
        raise ValidationError("At least one value is required")
    if rows:
        body["item_attribute_values"] = rows
    return f"Attribute created: {_created(gateway.request('POST', quote_name('Item Attribute'), body), 'attribute')}"


def create_serial(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    body = _optional(
        {"serial_no": values["serial_no"], "item_code": values["item_code"]},
        supplier=values.get("supplier", ""),
    )
    gateway.request("POST", quote_name("Serial No"), body)
    return f"Serial number created: {values['serial_no']}"


def create_variant(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    """Item variant of template ``context``; ``values`` maps attribute -> value."""
    if not values:
        raise ValidationError("Template has no attributes defined")
    body = {
        "template": context,
        "attributes": [{"attribute": name, "attribute_value": value} for name, value in values.items()],
    }
    return f"Variant created: {_created(gateway.request('POST', 'Item', body), 'variant')}"


# stock movements


def _stock_entry(gateway: DocumentGateway, entry_type: str, line: dict[str, Any]) -> str:
    body = {
        "stock_entry_type": entry_type,
        "company": gateway.get_company(),
        "items": [line],
    }
    name = _created(gateway.request("POST", quote_name("Stock Entry"), body), "stock entry")
    gateway.submit_document("Stock Entry", name)
    return name


def receive_stock(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    line: dict[str, Any] = {
        "item_code": values["item_code"],
        "qty": float(values["qty"]),
        "t_warehouse": values["warehouse"],
    }
    if values.get("rate") and float(values["rate"]) > 0:
        line["basic_rate"] = float(values["rate"])
    return f"Stock received: {_stock_entry(gateway, STOCK_RECEIPT, line)}"


def transfer_stock(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    line = {
        "item_code": values["item_code"],
        "qty": float(values["qty"]),
        "s_warehouse": values["from_warehouse"],
        "t_warehouse": values["to_warehouse"],
    }
    return f"Stock transferred: {_stock_entry(gateway, STOCK_TRANSFER, line)}"


def issue_stock(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    line = {
        "item_code": values["item_code"],
        "qty": float(values["qty"]),
        "s_warehouse": values["warehouse"],
    }
    return f"Stock issued: {_stock_entry(gateway, STOCK_ISSUE, line)}"


# transactions


def create_purchase_order(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    today = _today()
    body = {
        "supplier": values["supplier"],
        "transaction_date": today,
        "schedule_date": today,
        "company": gateway.get_company(),
        "items": [],
    }
    return f"PO created: {_created(gateway.request('POST', quote_name('Purchase Order'), body), 'PO')}"


def create_quotation(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    body = {
        "party_name": values["customer"],
        "quotation_to": "Customer",
        "transaction_date": _today(),
        "company": gateway.get_company(),
        "items": [],
    }
    return f"Quotation created: {_created(gateway.request('POST', 'Quotation', body), 'quotation')}"


def create_sales_order(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    today = _today()
    body = {
        "customer": values["customer"],
        "transaction_date": today,
        "delivery_date": values.get("delivery_date") or today,
        "company": gateway.get_company(),
        "items": [],
    }
    return f"SO created: {_created(gateway.request('POST', quote_name('Sales Order'), body), 'SO')}"


def _draft(gateway: DocumentGateway, doctype: str, name: str) -> Document:
    document = gateway.get_document(doctype, name)
    if docstatus(document) != 0:
        raise ValidationError(f"Cannot add items to submitted/cancelled {doctype}")
    return document


def _submitted(gateway: DocumentGateway, doctype: str, name: str) -> Document:
    document = gateway.get_document(doctype, name)
    if docstatus(document) != 1:
        raise ValidationError(f"{doctype} must be submitted first")
    return document


def _append_line(doctype: str, date_field: str):
    """Writer that appends one item line to a draft document."""

    def write(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
        document = _draft(gateway, doctype, context)
        line: dict[str, Any] = {"item_code": values["item_code"], "qty": float(values["qty"])}
        if date_field:
            line[date_field] = document.get(date_field) or _today()
        if values.get("rate") and float(values["rate"]) > 0:
            line["rate"] = float(values["rate"])
        items = as_records(document.get("items")) + [line]
        gateway.request("PUT", f"{quote_name(doctype)}/{quote_name(context)}", {"items": items})
        return f"Item added to {doctype}: {context}"

    return write


add_purchase_order_item = _append_line("Purchase Order", "schedule_date")
add_quotation_item = _append_line("Quotation", "")
add_sales_order_item = _append_line("Sales Order", "delivery_date")


def _copy_lines(source: Document, what: str, **links: str) -> list[dict[str, Any]]:
    """Item lines of ``source`` with link fields set.

    Each link value is either a literal or ``"@name"`` for the source line's
    own name.
    """
    lines = []
    for item in as_records(source.get("items")):
        line = {"item_code": item.get("item_code"), "qty": item.get("qty"), "rate": item.get("rate")}
        for field, value in links.items():
            line[field] = item.get("name") if value == "@name" else value
        lines.append(line)
    if not lines:
        raise ValidationError(f"No items found in {what}")
    return lines


def sales_order_from_quotation(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    quotation = values["quotation"]
    source = _submitted(gateway, "Quotation", quotation)
    today = _today()
    lines = _copy_lines(
        source, "quotation", delivery_date=today, prevdoc_docname=quotation, quotation_item="@name"
    )
    body = {
        "customer": source.get("party_name"),
        "transaction_date": today,
        "delivery_date": today,
        "company": gateway.get_company(),
        "items": lines,
    }
    name = _created(gateway.request("POST", quote_name("Sales Order"), body), "SO")
    return f"SO created: {name} (from {quotation})"


def purchase_invoice_from_po(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    po = values["purchase_order"]
    source = _submitted(gateway, "Purchase Order", po)
    body = {
        "supplier": source.get("supplier"),
        "posting_date": _today(),
        "company": gateway.get_company(),
        "items": _copy_lines(source, "purchase order", purchase_order=po, po_detail="@name"),
    }
    name = _created(gateway.request("POST", quote_name("Purchase Invoice"), body), "invoice")
    return f"Invoice created: {name}"


def purchase_receipt_from_po(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    po = values["purchase_order"]
    source = _submitted(gateway, "Purchase Order", po)
    body = {
        "supplier": source.get("supplier"),
        "posting_date": _today(),
        "company": gateway.get_company(),
        "items": _copy_lines(source, "purchase order", purchase_order=po, purchase_order_item="@name"),
    }
    name = _created(gateway.request("POST", quote_name("Purchase Receipt"), body), "receipt")
    return f"Purchase Receipt created: {name}"


def sales_invoice_from_so(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    so = values["sales_order"]
    source = _submitted(gateway, "Sales Order", so)
    body = {
        "customer": source.get("customer"),
        "posting_date": _today(),
        "company": gateway.get_company(),
        "items": _copy_lines(source, "sales order", sales_order=so, so_detail="@name"),
    }
    name = _created(gateway.request("POST", quote_name("Sales Invoice"), body), "invoice")
    return f"Invoice created: {name}"


def delivery_note_from_so(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
    so = values["sales_order"]
    source = _submitted(gateway, "Sales Order", so)
    body = {
        "customer": source.get("customer"),
        "posting_date": _today(),
        "company": gateway.get_company(),
        "items": _copy_lines(source, "sales order", against_sales_order=so, so_detail="@name"),
    }
    name = _created(gateway.request("POST", quote_name("Delivery Note"), body), "delivery note")
    return f"Delivery Note created: {name}"


# payments


def _payment(payment_type: str, invoice_doctype: str, party_type: str, party_field: str):
    def write(gateway: DocumentGateway, values: dict[str, str], context: str = "") -> str:
        invoice_name = values["invoice"]
        invoice = _submitted(gateway, invoice_doctype, invoice_name)

        outstanding = as_number(invoice.get("outstanding_amount"))
        if outstanding <= 0:
            raise ValidationError(f"{invoice_doctype} has no outstanding amount")

        paid = outstanding
        requested = float(values["amount"]) if values.get("amount") else 0.0
        if requested > 0:
            if requested > outstanding:
                raise ValidationError(f"Amount exceeds outstanding balance of {outstanding:,.2f}")
            paid = requested

        body = {
            "payment_type": payment_type,
            "party_type": party_type,
            "party": as_text(invoice.get(party_field)),
            "paid_amount": paid,
            "received_amount": paid,
            "posting_date": _today(),
            "company": gateway.get_company(),
            "references": [{
                "reference_doctype": invoice_doctype,
                "reference_name": invoice_name,
                "total_amount": as_number(invoice.get("grand_total")),
                "outstanding_amount": outstanding,
                "allocated_amount": paid,
            }],
        }
        name = _created(gateway.request("POST", quote_name("Payment Entry"), body), "payment")
        return f"Payment created: {name}"

    return write


receive_payment = _payment("Receive", "Sales Invoice", "Customer", "customer")
make_payment = _payment("Pay", "Purchase Invoice", "Supplier", "supplier")
