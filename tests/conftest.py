"""Shared fixtures: an in-memory stand-in for the ERPNext backend."""

import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))
from erptui.gateway import GatewayError  # noqa: E402
from erptui.providers import Connection, as_number  # noqa: E402


def _matches(record: dict, filters: list | None) -> bool:
    for field, op, value in filters or []:
        actual = record.get(field)
        if op == "=" and actual != value:
            return False
        if op == "in" and actual not in value:
            return False
        if op == ">" and not as_number(actual) > value:
            return False
    return True


class FakeGateway:
    """DocumentGateway over dicts. Doctypes listed in ``failing`` raise."""

    def __init__(self) -> None:
        self.mode = "internet"
        self.active_url = "https://erp.test"
        self.lists: dict[str, list[dict[str, Any]]] = {}
        self.documents: dict[tuple[str, str], dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple] = []
        self.company = "Acme"
        self.currency = "EUR"
        self.created = 0

    def _check(self, what: str) -> None:
        if what in self.failing:
            raise GatewayError(f"{what} unavailable", 500)

    def detect_connection(self) -> Connection:
        self.calls.append(("detect",))
        self._check("connection")
        return Connection("internet", self.active_url, "admin@example.com")

    def request(self, method: str, resource: str, body=None, params=None) -> dict:
        self.calls.append((method, resource, body))
        self._check(resource.split("/")[0])
        if method == "POST":
            self.created += 1
            return {"data": {"name": f"NEW-{self.created:04d}", **(body or {})}}
        return {"data": {}}

    def call(self, method_path: str, body=None, method: str = "POST") -> dict:
        self.calls.append(("call", method_path, body))
        self._check(method_path)
        return {"message": "ok"}

    def list_resource(self, doctype, fields, filters=None, order_by="", limit=0) -> list[dict]:
        self.calls.append(("list", doctype, order_by))
        self._check(doctype)
        return [dict(r) for r in self.lists.get(doctype, []) if _matches(r, filters)]

    def get_document(self, doctype: str, name: str) -> dict:
        self.calls.append(("get", doctype, name))
        self._check(doctype)
        try:
            return dict(self.documents[(doctype, name)])
        except KeyError:
            raise GatewayError(f"{doctype} {name} not found", 404) from None

    def submit_document(self, doctype: str, name: str) -> None:
        self.calls.append(("submit", doctype, name))
        self._check(doctype)

    def cancel_document(self, doctype: str, name: str) -> None:
        self.calls.append(("cancel", doctype, name))
        self._check(doctype)

    def get_company(self) -> str:
        return self.company

    def get_currency(self) -> str:
        self._check("currency")
        return self.currency


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
