"""Unit tests for the engine state machine."""

from dataclasses import replace
from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))
from erptui.engine import NOTICE_TIMEOUT, SPINNER_INTERVAL, Engine
from erptui.navigation import MAX_DEPTH
from erptui.messages import (
    ActionCompleted,
    After,
    ConnectivityProbed,
    DashboardFetched,
    DetailFetched,
    Dispatch,
    FormSubmitted,
    KeyPressed,
    ListFetched,
    NotificationExpired,
    Quit,
    SpinnerTick,
    TaskFailed,
    WindowResized,
)
from erptui.model import (
    NOTICE_ERROR,
    NOTICE_SUCCESS,
    ROOT,
    ROOT_LABEL,
    Model,
    Notice,
    Screen,
    ScreenKind,
    SortMode,
    initial_model,
)
from erptui.providers import Connection, DashboardSummary, Row


def key(name: str) -> KeyPressed:
    return KeyPressed(name, name if len(name) == 1 else None)


def press(engine: Engine, model: Model, *names: str):
    commands: list = []
    for name in names:
        model, commands = engine.apply(model, key(name))
    return model, commands


def dispatches(commands: list) -> list[Dispatch]:
    return [c for c in commands if isinstance(c, Dispatch)]


def settle(engine: Engine, model: Model, commands: list) -> Model:
    """Run every dispatched task inline and apply its result."""
    pending = dispatches(commands)
    while pending:
        model, more = engine.apply(model, pending.pop(0).task())
        pending += dispatches(more)
    return model


LIST_SUPPLIERS = Screen(ScreenKind.LIST, "suppliers")
LIST_POS = Screen(ScreenKind.LIST, "purchase_orders")
DETAIL_POS = Screen(ScreenKind.DETAIL, "purchase_orders")


@pytest.fixture
def engine(gateway) -> Engine:
    return Engine(gateway)


@pytest.fixture
def suppliers(gateway, engine):
    """Model sitting on a loaded Suppliers list."""
    gateway.lists["Supplier"] = [
        {"name": "SUP-A", "supplier_group": "Raw"},
        {"name": "SUP-B", "supplier_group": "Services"},
    ]
    model, commands = press(engine, Model(), "down", "down", "down", "down", "enter", "enter")
    return settle(engine, model, commands)


@pytest.fixture
def purchase_orders(gateway, engine):
    """Model sitting on a loaded Purchase Orders list."""
    gateway.lists["Purchase Order"] = [
        {"name": "PO-1", "supplier": "SUP-A", "status": "Draft", "grand_total": 100.0, "docstatus": 0},
        {"name": "PO-2", "supplier": "SUP-B", "status": "To Receive and Bill", "grand_total": 250.0, "docstatus": 1},
    ]
    gateway.documents[("Purchase Order", "PO-1")] = {"name": "PO-1", "docstatus": 0, "items": []}
    gateway.documents[("Purchase Order", "PO-2")] = {"name": "PO-2", "docstatus": 1, "items": []}
    model, commands = press(engine, Model(), "down", "down", "down", "down", "enter", "down", "enter")
    return settle(engine, model, commands)


class TestStartup:
    """Tests for process start."""

    def test_initial_model_counts_probe(self, engine: Engine) -> None:
        model = initial_model()
        commands = engine.startup()

        assert model.screen == ROOT
        assert model.breadcrumbs == ("Main",)
        assert model.is_loading
        assert len(dispatches(commands)) == 1
        assert After(SPINNER_INTERVAL, SpinnerTick()) in commands

    def test_probe_sets_connection(self, engine: Engine) -> None:
        model = settle(engine, initial_model(), engine.startup())

        assert model.connection == Connection("internet", "https://erp.test", "admin@example.com")
        assert not model.is_loading
        assert model.notice is None

    def test_probe_failure_shows_error(self, gateway, engine: Engine) -> None:
        gateway.failing.add("connection")

        model = settle(engine, initial_model(), engine.startup())

        assert model.connection == Connection("internet", "https://erp.test")
        assert model.notice.is_error
        assert model.notice.text.startswith("Connection failed:")


class TestNavigation:
    """Tests for menu navigation and back-navigation."""

    def test_cursor_moves_and_clamps(self, engine: Engine) -> None:
        model, _ = press(engine, Model(), "up")
        assert model.cursor == 0

        model, _ = press(engine, model, "down", "j", "k")
        assert model.cursor == 1

    def test_root_opens_category(self, engine: Engine) -> None:
        model, commands = press(engine, Model(), "down", "enter")

        assert model.screen == Screen(ScreenKind.CATEGORY_MENU, "inventory")
        assert model.breadcrumbs == ("Main", "Inventory")
        assert commands == []

    def test_category_opens_list_and_fetches(self, engine: Engine) -> None:
        model, commands = press(engine, Model(), "down", "enter", "enter")

        assert model.screen == Screen(ScreenKind.LIST, "items")
        assert model.breadcrumbs == ("Main", "Inventory", "Items")
        assert len(dispatches(commands)) == 1
        assert model.in_flight == 1

    def test_list_result_populates_rows(self, suppliers: Model) -> None:
        assert suppliers.screen == LIST_SUPPLIERS
        assert [r.key for r in suppliers.rows] == ["SUP-A", "SUP-B"]
        assert suppliers.in_flight == 0

    def test_round_trip_restores_breadcrumbs(self, engine: Engine, suppliers: Model) -> None:
        model, _ = press(engine, suppliers, "down")
        model = settle(engine, *engine.apply(model, key("enter")))
        assert model.screen == Screen(ScreenKind.DETAIL, "suppliers")
        assert model.breadcrumbs == ("Main", "Purchasing", "Suppliers", "SUP-B")

        model, _ = press(engine, model, "escape")
        assert model.screen == LIST_SUPPLIERS
        assert model.breadcrumbs == ("Main", "Purchasing", "Suppliers")
        assert model.cursor == 1
        assert model.rows == suppliers.rows
        assert model.selection == ""

        model, _ = press(engine, model, "escape")
        assert model.screen == Screen(ScreenKind.CATEGORY_MENU, "purchasing")
        assert model.breadcrumbs == ("Main", "Purchasing")
        assert model.cursor == 0

        model, _ = press(engine, model, "escape")
        assert model.screen == ROOT
        assert model.breadcrumbs == ("Main",)
        assert model.cursor == 4

    def test_escape_at_root_is_noop(self, engine: Engine) -> None:
        model = Model(cursor=2)
        assert engine.apply(model, key("escape")) == (model, [])

    def test_enter_on_empty_list_is_noop(self, engine: Engine) -> None:
        model, commands = press(engine, Model(), "down", "enter", "enter")
        model = settle(engine, model, commands)
        assert model.rows == ()

        assert engine.apply(model, key("enter")) == (model, [])

    def test_list_without_detail_ignores_enter(self, gateway, engine: Engine) -> None:
        gateway.lists["Warehouse"] = [{"name": "Stores - A"}]
        model, commands = press(engine, Model(), "down", "down", "enter", "enter")
        model = settle(engine, model, commands)

        assert engine.apply(model, key("enter")) == (model, [])

    def test_dashboard_loads_summary(self, engine: Engine) -> None:
        model, commands = press(engine, Model(), "enter")
        assert model.screen == Screen(ScreenKind.DASHBOARD)
        assert model.breadcrumbs == ("Main", "Dashboard")

        model = settle(engine, model, commands)

        assert model.dashboard is not None
        assert model.dashboard.currency == "EUR"

        model, _ = press(engine, model, "escape")
        assert model.screen == ROOT
        assert model.cursor == 0


class TestKeys:
    """Tests for quit, no-op keys and notice clearing."""

    def test_q_quits_at_root(self, engine: Engine) -> None:
        _, commands = press(engine, Model(), "q")
        assert commands == [Quit()]

    def test_ctrl_c_quits_anywhere(self, engine: Engine, suppliers: Model) -> None:
        _, commands = press(engine, suppliers, "ctrl+c")
        assert commands == [Quit()]

    def test_unknown_key_keeps_error_notice(self, engine: Engine) -> None:
        model = Model(notice=Notice("boom", NOTICE_ERROR, 1), notice_serial=1)

        assert engine.apply(model, key("z")) == (model, [])

    def test_effective_key_clears_error_notice(self, engine: Engine) -> None:
        model = Model(notice=Notice("boom", NOTICE_ERROR, 1), notice_serial=1)

        model, _ = press(engine, model, "down")

        assert model.notice is None
        assert model.cursor == 1

    def test_effective_key_keeps_success_notice(self, engine: Engine) -> None:
        notice = Notice("saved", NOTICE_SUCCESS, 1)
        model, _ = press(engine, Model(notice=notice, notice_serial=1), "down")

        assert model.notice == notice


class TestStaleResults:
    """Tests for results that arrive after the user moved on."""

    def test_detail_for_left_screen_is_discarded(self, engine: Engine, suppliers: Model) -> None:
        model, commands = press(engine, suppliers, "enter")
        result = dispatches(commands)[0].task()
        model, _ = press(engine, model, "escape")
        before = model

        model, commands = engine.apply(model, result)

        assert commands == []
        assert model == replace(before, in_flight=before.in_flight - 1)

    def test_list_error_for_left_screen_is_discarded(self, engine: Engine, suppliers: Model) -> None:
        stale = ListFetched(Screen(ScreenKind.LIST, "customers"), error="HTTP 500: boom")

        model, commands = engine.apply(suppliers, stale)

        assert commands == []
        assert model.notice is None
        assert model.rows == suppliers.rows

    def test_detail_for_other_key_is_discarded(self, engine: Engine, suppliers: Model) -> None:
        model, _ = press(engine, suppliers, "enter")
        stale = DetailFetched(Screen(ScreenKind.DETAIL, "suppliers"), "SUP-B", {"name": "SUP-B"})

        model, _ = engine.apply(model, stale)

        assert model.detail is None

    def test_last_arrival_wins(self, engine: Engine, suppliers: Model) -> None:
        model, _ = press(engine, suppliers, "r")
        model, _ = press(engine, model, "r")
        assert model.in_flight == 2

        older = ListFetched(LIST_SUPPLIERS, (Row("OLD", "old"),))
        newer = ListFetched(LIST_SUPPLIERS, (Row("NEW", "new"),))
        model, _ = engine.apply(model, newer)
        model, _ = engine.apply(model, older)

        assert [r.key for r in model.rows] == ["OLD"]
        assert model.in_flight == 0

    def test_list_error_shows_notice(self, engine: Engine, suppliers: Model) -> None:
        model, _ = engine.apply(suppliers, ListFetched(LIST_SUPPLIERS, error="HTTP 500: boom"))

        assert model.notice.is_error
        assert model.rows == suppliers.rows

    def test_cursor_clamped_to_new_rows(self, engine: Engine, suppliers: Model) -> None:
        model, _ = press(engine, suppliers, "down")

        model, _ = engine.apply(model, ListFetched(LIST_SUPPLIERS, (Row("ONLY", "x"),)))

        assert model.cursor == 0


class TestForms:
    """Tests for form screens driven through the engine."""

    def test_create_form_opens_empty(self, engine: Engine, suppliers: Model) -> None:
        model, commands = press(engine, suppliers, "n")

        assert commands == []
        assert model.screen == Screen(ScreenKind.FORM, "create_supplier")
        assert model.breadcrumbs == ("Main", "Purchasing", "Suppliers", "Create Supplier")
        assert [f.value for f in model.fields] == ["", "", ""]
        assert model.fields[0].focused

    def test_empty_submit_sets_error_without_dispatch(self, engine: Engine, suppliers: Model) -> None:
        model, commands = press(engine, suppliers, "n", "enter")

        assert commands == []
        assert model.screen == Screen(ScreenKind.FORM, "create_supplier")
        assert model.notice.is_error
        assert model.notice.text == "Name is required"

    def test_typing_goes_to_focused_field(self, engine: Engine, suppliers: Model) -> None:
        model, _ = press(engine, suppliers, "n", "a", "b", "tab", "q", "shift+tab", "backspace")

        assert [f.value for f in model.fields] == ["a", "q", ""]
        assert model.focus_index == 0

    def test_escape_discards_form(self, engine: Engine, suppliers: Model) -> None:
        model, _ = press(engine, suppliers, "n", "x", "escape")

        assert model.screen == LIST_SUPPLIERS
        assert model.fields == ()
        assert model.breadcrumbs == ("Main", "Purchasing", "Suppliers")
        assert model.rows == suppliers.rows

    def test_successful_submit_returns_to_parent_and_refetches(
        self, gateway, engine: Engine, suppliers: Model
    ) -> None:
        model, commands = press(engine, suppliers, "n", "a", "c", "m", "e", "enter")
        assert len(dispatches(commands)) == 1

        result = dispatches(commands)[0].task()
        assert result == FormSubmitted(True, "Supplier created: NEW-0001", "create_supplier", "")

        model, commands = engine.apply(model, result)

        assert model.screen == LIST_SUPPLIERS
        assert model.breadcrumbs == ("Main", "Purchasing", "Suppliers")
        assert len(dispatches(commands)) == 1
        assert model.notice.text == "Supplier created: NEW-0001"
        assert ("POST", "Supplier", {"supplier_name": "acme"}) in gateway.calls

    def test_failed_submit_stays_on_form(self, gateway, engine: Engine, suppliers: Model) -> None:
        gateway.failing.add("Supplier")
        model, commands = press(engine, suppliers, "n", "a", "enter")

        model = settle(engine, model, commands)

        assert model.screen == Screen(ScreenKind.FORM, "create_supplier")
        assert model.fields[0].value == "a"
        assert model.notice.is_error

    def test_stale_form_result_only_notifies(self, engine: Engine, suppliers: Model) -> None:
        result = FormSubmitted(True, "Supplier created: X", "create_supplier")

        model, commands = engine.apply(suppliers, result)

        assert model.screen == LIST_SUPPLIERS
        assert model.notice.text == "Supplier created: X"
        assert dispatches(commands) == []

    def test_detail_binding_prefills_entity(self, engine: Engine, purchase_orders: Model) -> None:
        model, _ = press(engine, purchase_orders, "down")
        model = settle(engine, *engine.apply(model, key("enter")))
        assert model.detail["docstatus"] == 1

        model, _ = press(engine, model, "i")

        assert model.screen == Screen(ScreenKind.FORM, "purchase_invoice_from_po")
        assert model.fields[0].value == "PO-2"
        assert model.form_context == "PO-2"

    def test_detail_binding_respects_docstatus(self, engine: Engine, purchase_orders: Model) -> None:
        model, _ = press(engine, purchase_orders, "down")
        model = settle(engine, *engine.apply(model, key("enter")))

        assert engine.apply(model, key("a")) == (model, [])

    def test_add_item_lands_on_detail(self, gateway, engine: Engine, purchase_orders: Model) -> None:
        model = settle(engine, *engine.apply(purchase_orders, key("enter")))
        model, commands = press(engine, model, "a", "i", "t", "tab", "2", "enter")

        model, commands = engine.apply(model, dispatches(commands)[0].task())

        assert model.screen == DETAIL_POS
        assert model.selection == "PO-1"
        assert model.breadcrumbs == ("Main", "Purchasing", "Purchase Orders", "PO-1")
        assert len(dispatches(commands)) == 1
        assert model.notice.text == "Item added to Purchase Order: PO-1"

    def test_quotation_shortcut_opens_empty(self, gateway, engine: Engine) -> None:
        gateway.lists["Sales Order"] = [{"name": "SO-1", "customer": "C", "docstatus": 0}]
        model, commands = press(engine, Model(), "down", "down", "down", "enter", "down", "down", "enter")
        model = settle(engine, model, commands)

        model, _ = press(engine, model, "q")

        assert model.screen == Screen(ScreenKind.FORM, "sales_order_from_quotation")
        assert model.fields[0].value == ""

    def test_goods_key_opens_receipt_form(self, engine: Engine, purchase_orders: Model) -> None:
        model, _ = press(engine, purchase_orders, "down")
        model = settle(engine, *engine.apply(model, key("enter")))

        model, _ = press(engine, model, "g")

        assert model.screen == Screen(ScreenKind.FORM, "purchase_receipt_from_po")
        assert model.fields[0].value == "PO-2"

    def test_r_refreshes_submitted_order(self, gateway, engine: Engine, purchase_orders: Model) -> None:
        model, _ = press(engine, purchase_orders, "down")
        model = settle(engine, *engine.apply(model, key("enter")))

        model, commands = press(engine, model, "r")

        assert model.screen == DETAIL_POS
        assert len(dispatches(commands)) == 1
        settle(engine, model, commands)
        assert gateway.calls[-1] == ("get", "Purchase Order", "PO-2")


class TestConfirmation:
    """Tests for destructive actions."""

    def test_delete_asks_first(self, engine: Engine, suppliers: Model) -> None:
        model, commands = press(engine, suppliers, "d")

        assert commands == []
        assert model.screen.kind == ScreenKind.CONFIRMATION
        assert model.confirmation.prompt == "Delete Supplier 'SUP-A'?"
        assert model.breadcrumbs[-1] == "Confirm"

    def test_no_returns_without_dispatch(self, engine: Engine, suppliers: Model) -> None:
        for answer in ("n", "escape"):
            model, commands = press(engine, suppliers, "d", answer)

            assert commands == []
            assert model.screen == LIST_SUPPLIERS
            assert model.confirmation is None
            assert model.breadcrumbs == ("Main", "Purchasing", "Suppliers")

    def test_other_keys_ignored(self, engine: Engine, suppliers: Model) -> None:
        model, _ = press(engine, suppliers, "d")
        assert engine.apply(model, key("z")) == (model, [])

    def test_yes_dispatches_once_and_notice_expires(self, gateway, engine: Engine, suppliers: Model) -> None:
        model, commands = press(engine, suppliers, "d", "y")

        assert model.screen == LIST_SUPPLIERS
        assert len(dispatches(commands)) == 1

        model, commands = engine.apply(model, dispatches(commands)[0].task())

        assert ("DELETE", "Supplier/SUP-A", None) in gateway.calls
        assert model.screen == LIST_SUPPLIERS
        assert model.notice.text == "Deleted: SUP-A"
        assert not model.notice.is_error
        assert len(dispatches(commands)) == 1
        expiry = [c for c in commands if isinstance(c, After)]
        assert expiry == [After(NOTICE_TIMEOUT, NotificationExpired(model.notice.serial))]

        model, _ = engine.apply(model, expiry[0].message)
        assert model.notice is None

    def test_failed_action_keeps_screen(self, gateway, engine: Engine, suppliers: Model) -> None:
        gateway.failing.add("Supplier")
        model, commands = press(engine, suppliers, "d", "y")

        model, commands = engine.apply(model, dispatches(commands)[0].task())

        assert model.screen == LIST_SUPPLIERS
        assert model.notice.is_error
        assert commands == []

    def test_submit_from_detail(self, gateway, engine: Engine, purchase_orders: Model) -> None:
        model = settle(engine, *engine.apply(purchase_orders, key("enter")))

        model, _ = press(engine, model, "s")
        assert model.confirmation.prompt == "Submit Purchase Order 'PO-1'?"

        model, commands = press(engine, model, "y")
        assert model.screen == DETAIL_POS

        model, commands = engine.apply(model, dispatches(commands)[0].task())
        assert ("submit", "Purchase Order", "PO-1") in gateway.calls
        assert model.screen == DETAIL_POS
        assert model.notice.text == "Purchase Order submitted: PO-1"

    def test_cancel_needs_submitted(self, engine: Engine, purchase_orders: Model) -> None:
        model = settle(engine, *engine.apply(purchase_orders, key("enter")))

        assert engine.apply(model, key("x")) == (model, [])

    def test_stale_action_result_only_notifies(self, engine: Engine, suppliers: Model) -> None:
        result = ActionCompleted(True, "Deleted: X", LIST_POS, LIST_POS, "X")

        model, commands = engine.apply(suppliers, result)

        assert model.screen == LIST_SUPPLIERS
        assert model.notice.text == "Deleted: X"
        assert dispatches(commands) == []


class TestSorting:
    """Tests for sort cycling on transactional lists."""

    def test_sort_cycles_and_refetches(self, gateway, engine: Engine, purchase_orders: Model) -> None:
        model, commands = press(engine, purchase_orders, "o")

        assert model.sort_mode == SortMode.OLDEST
        settle(engine, model, commands)
        assert gateway.calls[-1] == ("list", "Purchase Order", "creation asc")

    def test_sort_ignored_on_master_data(self, engine: Engine, suppliers: Model) -> None:
        assert engine.apply(suppliers, key("o")) == (suppliers, [])


class TestAmbientMessages:
    """Tests for timers, resizes and crashes."""

    def test_spinner_advances_only_while_loading(self, engine: Engine) -> None:
        idle, commands = engine.apply(Model(), SpinnerTick())
        assert idle.spinner_frame == 0
        assert commands == [After(SPINNER_INTERVAL, SpinnerTick())]

        busy, _ = engine.apply(Model(in_flight=1), SpinnerTick())
        assert busy.spinner_frame == 1

    def test_expiry_ignores_newer_notice(self, engine: Engine) -> None:
        model = Model(notice=Notice("second", NOTICE_SUCCESS, 2), notice_serial=2)

        model, _ = engine.apply(model, NotificationExpired(1))

        assert model.notice.text == "second"

    def test_resize(self, engine: Engine) -> None:
        model, _ = engine.apply(Model(), WindowResized(120, 40))
        assert (model.width, model.height) == (120, 40)

    def test_task_failure_becomes_error(self, engine: Engine) -> None:
        model, _ = engine.apply(Model(in_flight=1), TaskFailed("Unexpected error: boom"))

        assert model.notice.is_error
        assert model.in_flight == 0

    def test_dashboard_result_stored(self, engine: Engine) -> None:
        summary = DashboardSummary(total_items=3)
        model, _ = engine.apply(Model(in_flight=1), DashboardFetched(summary))

        assert model.dashboard == summary

    def test_probe_result_message(self, engine: Engine) -> None:
        connection = Connection("vpn", "http://10.0.0.5")
        model, _ = engine.apply(Model(in_flight=1), ConnectivityProbed(connection))

        assert model.connection == connection
        assert not model.is_loading


def assert_crumbs(model: Model) -> None:
    assert 1 <= len(model.breadcrumbs) <= MAX_DEPTH
    assert model.breadcrumbs[0] == ROOT_LABEL


def walk(engine: Engine, model: Model, *names: str) -> Model:
    """Press keys one at a time, running tasks and checking breadcrumbs after every step."""
    assert_crumbs(model)
    for name in names:
        model, commands = engine.apply(model, key(name))
        assert_crumbs(model)
        model = settle(engine, model, commands)
        assert_crumbs(model)
    return model


@pytest.fixture
def templates(gateway, engine):
    """Model sitting on a loaded template detail with two attributes."""
    gateway.lists["Item"] = [{"name": "TSHIRT", "has_variants": 1}]
    gateway.documents[("Item", "TSHIRT")] = {
        "name": "TSHIRT",
        "has_variants": 1,
        "attributes": [{"attribute": "Color"}, {"attribute": "Size"}],
    }
    return walk(engine, Model(), "down", "enter", "down", "enter", "enter")


class TestVariantForm:
    """Tests for the per-attribute variant form."""

    def test_one_field_per_attribute(self, engine: Engine, templates: Model) -> None:
        assert templates.screen == Screen(ScreenKind.DETAIL, "templates")

        model, _ = press(engine, templates, "v")

        assert model.screen == Screen(ScreenKind.FORM, "create_variant")
        assert [f.label for f in model.fields] == ["Color value", "Size value"]
        assert model.form_context == "TSHIRT"

    def test_missing_value_blocks_submit(self, engine: Engine, templates: Model) -> None:
        model, commands = press(engine, templates, "v", "R", "enter")

        assert commands == []
        assert model.notice.text == "Size value is required"

    def test_submit_posts_variant_and_returns_to_template(
        self, gateway, engine: Engine, templates: Model
    ) -> None:
        model = walk(engine, templates, "v", "R", "e", "d", "tab", "L", "enter")

        assert ("POST", "Item", {
            "template": "TSHIRT",
            "attributes": [
                {"attribute": "Color", "attribute_value": "Red"},
                {"attribute": "Size", "attribute_value": "L"},
            ],
        }) in gateway.calls
        assert model.screen == Screen(ScreenKind.DETAIL, "templates")
        assert model.breadcrumbs == ("Main", "Inventory", "Templates", "TSHIRT")
        assert model.notice.text == "Variant created: NEW-0001"

    def test_template_without_attributes_ignores_v(self, gateway, engine: Engine) -> None:
        gateway.lists["Item"] = [{"name": "PLAIN", "has_variants": 1}]
        gateway.documents[("Item", "PLAIN")] = {"name": "PLAIN", "has_variants": 1, "attributes": []}
        model = walk(engine, Model(), "down", "enter", "down", "enter", "enter")

        assert engine.apply(model, key("v")) == (model, [])


class TestBreadcrumbDepth:
    """Breadcrumbs stay within the nesting depth on the deepest screens."""

    def test_detail_form_and_confirmation(self, gateway, engine: Engine, purchase_orders: Model) -> None:
        model = walk(engine, Model(), "down", "down", "down", "down", "enter", "down", "enter", "enter", "a")
        assert model.screen == Screen(ScreenKind.FORM, "add_purchase_order_item")
        assert len(model.breadcrumbs) == MAX_DEPTH

        model = walk(engine, model, "escape", "s")
        assert model.screen.kind == ScreenKind.CONFIRMATION
        assert len(model.breadcrumbs) == MAX_DEPTH

        model = walk(engine, model, "y")
        assert model.screen == DETAIL_POS

    def test_stock_forms(self, gateway, engine: Engine) -> None:
        gateway.lists["Item"] = [{"name": "BOLT", "item_name": "Bolt", "stock_uom": "Nos"}]

        model = walk(engine, Model(), "down", "down", "enter", "down", "enter", "r")
        assert model.screen == Screen(ScreenKind.FORM, "receive_stock")
        assert model.fields[0].value == "BOLT"

        model = walk(engine, model, "escape", "enter", "t")
        assert model.screen == Screen(ScreenKind.FORM, "transfer_stock")
        assert len(model.breadcrumbs) == MAX_DEPTH

    def test_variant_form(self, engine: Engine, templates: Model) -> None:
        model = walk(engine, templates, "v")

        assert len(model.breadcrumbs) == MAX_DEPTH
