"""
HTTP gateway to the ERPNext REST API.

Every call either returns the parsed JSON document or raises GatewayError.
One ``requests.Session`` is shared by all background tasks.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

import requests

from erptui.config import Config
from erptui.log import get_logger
from erptui.providers import Connection, Document, as_text, data_document, data_records

logger = get_logger(__name__)

MODE_VPN = "vpn"
MODE_INTERNET = "internet"
LOGGED_USER_METHOD = "frappe.auth.get_logged_user"


class GatewayError(Exception):
    """A backend call failed.

    Attributes:
        status: HTTP status code, or None for transport failures.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def encode_filters(filters: list[list[Any]] | None) -> str:
    """Serialize ``[[field, op, value], ...]`` into the API's filter string."""
    if not filters:
        return ""
    return json.dumps(filters, separators=(",", ":"))


def quote_name(name: str) -> str:
    """Escape a document name for use as a path segment."""
    return quote(name, safe="")


def _error_text(result: Document) -> str:
    """Best human message from an error body."""
    for key in ("exception", "message", "exc_type"):
        value = result.get(key)
        if isinstance(value, str) and value:
            return value
    raw = result.get("_server_messages")
    if isinstance(raw, str) and raw:
        try:
            messages = json.loads(raw)
            if messages:
                inner = json.loads(messages[0])
                return as_text(inner.get("message")) or raw
        except (ValueError, TypeError, AttributeError):
            return raw
    return ""


class Gateway:
    """ERPNext backend client.

    ``detect_connection`` chooses the endpoint; until it runs the internet URL
    is used.
    """

    def __init__(self, config: Config, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"token {config.api_key}:{config.api_secret}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        })
        self.mode = MODE_INTERNET
        self.active_url = config.url.rstrip("/")
        self._currency: str | None = None
        self._company: str | None = config.company or None

    # connection

    def detect_connection(self) -> Connection:
        """Try the VPN endpoint first with a short timeout, else the internet URL.

        Raises:
            GatewayError: the selected endpoint does not authenticate us.
        """
        vpn = self.config.vpn_url.rstrip("/")
        if vpn:
            try:
                resp = self.session.get(
                    f"{vpn}/api/method/{LOGGED_USER_METHOD}",
                    timeout=self.config.probe_timeout,
                )
                if resp.status_code == 200:
                    self.mode = MODE_VPN
                    self.active_url = vpn
                    logger.info("Using VPN endpoint %s", vpn)
                    return Connection(MODE_VPN, vpn, self._user_from(resp))
            except requests.RequestException as exc:
                logger.debug("VPN probe failed: %s", exc)

        self.mode = MODE_INTERNET
        self.active_url = self.config.url.rstrip("/")
        logger.info("Using internet endpoint %s", self.active_url)
        result = self.call(LOGGED_USER_METHOD, method="GET")
        return Connection(MODE_INTERNET, self.active_url, as_text(result.get("message")))

    @staticmethod
    def _user_from(resp: requests.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return ""
        return as_text(body.get("message")) if isinstance(body, dict) else ""

    # raw calls

    def _cookies(self) -> dict[str, str] | None:
        if self.mode == MODE_INTERNET and self.config.proxy_cookie:
            return {self.config.proxy_cookie_name: self.config.proxy_cookie}
        return None

    def _send(
        self,
        method: str,
        url: str,
        body: Document | None = None,
        params: dict[str, str] | None = None,
    ) -> Document:
        logger.debug("%s %s params=%s", method, url, params)
        try:
            resp = self.session.request(
                method,
                url,
                json=body,
                params=params,
                cookies=self._cookies(),
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise GatewayError(f"request failed: {exc}") from exc

        try:
            result = resp.json()
        except ValueError as exc:
            text = resp.text[:200]
            logger.warning("%s %s returned non-JSON (HTTP %s)", method, url, resp.status_code)
            raise GatewayError(f"failed to parse response: {text}", resp.status_code) from exc

        if not isinstance(result, dict):
            raise GatewayError("unexpected response shape", resp.status_code)

        if "exception" in result:
            logger.warning("%s %s raised %s", method, url, result["exception"])
            raise GatewayError(f"API error: {result['exception']}", resp.status_code)

        if not resp.ok:
            detail = _error_text(result) or resp.reason or "request rejected"
            logger.warning("%s %s -> HTTP %s: %s", method, url, resp.status_code, detail)
            raise GatewayError(f"HTTP {resp.status_code}: {detail}", resp.status_code)

        return result

    def request(
        self,
        method: str,
        resource: str,
        body: Document | None = None,
        params: dict[str, str] | None = None,
    ) -> Document:
        """Call ``/api/resource/<resource>``."""
        return self._send(method, f"{self.active_url}/api/resource/{resource}", body, params)

    def call(self, method_path: str, body: Document | None = None, method: str = "POST") -> Document:
        """Call a whitelisted server method under ``/api/method/``."""
        return self._send(method, f"{self.active_url}/api/method/{method_path}", body)

    # helpers

    def list_resource(
        self,
        doctype: str,
        fields: list[str],
        filters: list[list[Any]] | None = None,
        order_by: str = "",
        limit: int = 0,
    ) -> list[Document]:
        """GET a doctype listing and return its records."""
        params = {"fields": json.dumps(fields)}
        if filters:
            params["filters"] = encode_filters(filters)
        if order_by:
            params["order_by"] = order_by
        params["limit_page_length"] = str(limit)
        return data_records(self.request("GET", quote_name(doctype), params=params))

    def get_document(self, doctype: str, name: str) -> Document:
        result = self.request("GET", f"{quote_name(doctype)}/{quote_name(name)}")
        document = data_document(result)
        if document is None:
            raise GatewayError(f"{doctype} {name} not found")
        return document

    def submit_document(self, doctype: str, name: str) -> None:
        """Move a draft document to submitted (docstatus 1)."""
        document = self.get_document(doctype, name)
        self.call("frappe.client.submit", {"doc": {**document, "doctype": doctype, "name": name}})

    def cancel_document(self, doctype: str, name: str) -> None:
        """Move a submitted document to cancelled (docstatus 2)."""
        self.call("frappe.client.cancel", {"doctype": doctype, "name": name})

    def get_company(self) -> str:
        """Configured company, else the first Company on the backend."""
        if self._company:
            return self._company
        records = self.list_resource("Company", ["name"], limit=1)
        if not records:
            raise GatewayError("no company found")
        self._company = as_text(records[0].get("name"))
        return self._company

    def get_currency(self) -> str:
        """Default currency of the company; cached after the first lookup."""
        if self._currency is None:
            document = self.get_document("Company", self.get_company())
            self._currency = as_text(document.get("default_currency")) or "USD"
        return self._currency
