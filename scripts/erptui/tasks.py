"""
Background tasks.

Each factory returns a zero-argument callable that talks to the gateway and
returns exactly one message. Backend failures become the error variant of
that message; nothing here touches the Model.
"""

from __future__ import annotations

from erptui.catalog import DocumentKind, order_by
from erptui.gateway import GatewayError, quote_name
from erptui.log import get_logger
from erptui.messages import ActionCompleted, ConnectivityProbed, DetailFetched, ListFetched, Task
from erptui.model import Screen, SortMode
from erptui.providers import Connection, DocumentGateway

logger = get_logger(__name__)

ACTION_DELETE = "delete"
ACTION_SUBMIT = "submit"
ACTION_CANCEL = "cancel"


def probe(gateway: DocumentGateway) -> Task:
    def task() -> ConnectivityProbed:
        try:
            return ConnectivityProbed(gateway.detect_connection())
        except GatewayError as exc:
            connection = Connection(gateway.mode, gateway.active_url)
            return ConnectivityProbed(connection, f"Connection failed: {exc}")

    return task


def fetch_list(gateway: DocumentGateway, kind: DocumentKind, screen: Screen, mode: SortMode) -> Task:
    def task() -> ListFetched:
        try:
            records = gateway.list_resource(
                kind.doctype,
                list(kind.fields),
                filters=[list(f) for f in kind.filters],
                order_by=order_by(kind, mode),
                limit=kind.limit,
            )
        except GatewayError as exc:
            return ListFetched(screen, error=str(exc))
        return ListFetched(screen, tuple(kind.row(record) for record in records))

    return task


def fetch_detail(gateway: DocumentGateway, kind: DocumentKind, screen: Screen, key: str) -> Task:
    def task() -> DetailFetched:
        try:
            if kind.detail_loader is not None:
                document = kind.detail_loader(gateway, key)
            else:
                document = gateway.get_document(kind.doctype, key)
        except GatewayError as exc:
            return DetailFetched(screen, key, error=str(exc))
        return DetailFetched(screen, key, document)

    return task


def perform_action(
    gateway: DocumentGateway,
    kind: DocumentKind,
    action: str,
    key: str,
    origin: Screen,
    return_to: Screen,
) -> Task:
    """Delete, submit or cancel one document."""

    def task() -> ActionCompleted:
        try:
            if action == ACTION_DELETE:
                gateway.request("DELETE", f"{quote_name(kind.doctype)}/{quote_name(key)}")
                text = f"Deleted: {key}"
            elif action == ACTION_SUBMIT:
                gateway.submit_document(kind.doctype, key)
                text = f"{kind.doctype} submitted: {key}"
            elif action == ACTION_CANCEL:
                gateway.cancel_document(kind.doctype, key)
                text = f"{kind.doctype} cancelled: {key}"
            else:
                raise ValueError(f"unknown action: {action}")
        except GatewayError as exc:
            logger.warning("%s %s %s failed: %s", action, kind.doctype, key, exc)
            return ActionCompleted(False, str(exc), origin, return_to, key)
        return ActionCompleted(True, text, origin, return_to, key)

    return task
