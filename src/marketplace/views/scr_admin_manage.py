from __future__ import annotations

import dataclasses
from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, Select, TabbedContent, TabPane

from marketplace.db.models import Brand, Category, OrderStatus, Product, UserRole
from marketplace.utils.pure import format_money
from marketplace.viewmodels import AdminState, AdminViewModel
from marketplace.views.base_screen import BaseScreen
from marketplace.views.modal_dialog import DialogModal


class AdminManageScreen(BaseScreen):
    """
    Admins manage products, orders, users, categories and brands.
    Every table is live; actions apply to the highlighted row.
    """

    def __init__(self) -> None:
        super().__init__()
        self.vm: AdminViewModel | None = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-admin"):
            with TabPane("Products", id="tab-admin-products"):
                with Vertical():
                    yield DataTable(id="table-admin-products")
                    with Horizontal(id="hort-controls"):
                        with Vertical():
                            yield Label("Name:")
                            yield Input(placeholder="new product name", id="input-prod-name")
                        with Vertical():
                            yield Label("Price ($):")
                            yield Input(
                                placeholder="0.00",
                                id="input-price",
                                type="number",
                                validators=[Number(minimum=0.0)],
                            )
                        with Vertical():
                            yield Label("Stock:")
                            yield Input(
                                placeholder="0",
                                id="input-stock",
                                type="integer",
                                validators=[Number(minimum=0)],
                            )
                        with Vertical():
                            yield Label("Category:")
                            yield Select([], prompt="None", id="select-prod-category")
                    with Horizontal(classes="div-buttons"):
                        yield Button("Add", id="btn-prod-add", variant="success")
                        yield Button("Update Price/Stock", id="btn-prod-update", variant="primary")
                        yield Button("Toggle Availability", id="btn-prod-toggle")
                        yield Button("Delete", id="btn-prod-delete", variant="error")
            with TabPane("Orders", id="tab-admin-orders"):
                with Vertical():
                    yield DataTable(id="table-admin-orders")
                    with Horizontal(classes="div-buttons"):
                        yield Select(
                            [(s.value.title(), s) for s in OrderStatus],
                            prompt="New status",
                            id="select-order-status",
                        )
                        yield Button("Apply", id="btn-order-apply", variant="primary")
                        yield Button("Cancel Order", id="btn-order-cancel", variant="error")
            with TabPane("Users", id="tab-admin-users"):
                with Vertical():
                    yield DataTable(id="table-admin-users")
                    with Horizontal(classes="div-buttons"):
                        yield Select(
                            [(r.value.title(), r) for r in UserRole],
                            prompt="Role",
                            id="select-user-role",
                        )
                        yield Button("Set Role", id="btn-user-role", variant="primary")
                        yield Button("Deactivate", id="btn-user-deactivate", variant="warning")
                        yield Button("Delete", id="btn-user-delete", variant="error")
            with TabPane("Categories & Brands", id="tab-admin-catalog"):
                with Horizontal():
                    with Vertical():
                        yield DataTable(id="table-admin-categories")
                        yield Input(placeholder="category name", id="input-category")
                        with Horizontal(classes="div-buttons"):
                            yield Button("Add", id="btn-category-add", variant="success")
                            yield Button("Rename", id="btn-category-rename")
                            yield Button("Delete", id="btn-category-delete", variant="error")
                    with Vertical():
                        yield DataTable(id="table-admin-brands")
                        yield Input(placeholder="brand name", id="input-brand")
                        with Horizontal(classes="div-buttons"):
                            yield Button("Add", id="btn-brand-add", variant="success")
                            yield Button("Rename", id="btn-brand-rename")
                            yield Button("Delete", id="btn-brand-delete", variant="error")

    def on_mount(self) -> None:
        columns = {
            "#table-admin-products": ("Name", "Price", "Discount", "Stock", "Available"),
            "#table-admin-orders": ("Order No", "Customer", "Status", "Items", "Total"),
            "#table-admin-users": ("Name", "Email", "Role", "Active"),
            "#table-admin-categories": ("Category",),
            "#table-admin-brands": ("Brand",),
        }
        for selector, cols in columns.items():
            table = self.query_one(selector, DataTable)
            table.cursor_type = "row"
            table.zebra_stripes = True
            table.add_columns(*cols)

    async def bind_view_models(self) -> None:
        c = self.container
        self.vm = self.own(
            AdminViewModel(
                c.products, c.orders, c.users, c.add_product, c.update_product, c.update_order_status
            )
        )
        self.vm.observe(self.render_state)
        await self.vm.start()

    def _fill(self, selector: str, rows) -> None:
        table = self.query_one(selector, DataTable)
        cursor = table.cursor_row
        table.clear()
        for key, *cells in rows:
            table.add_row(*cells, key=key)
        if table.row_count:
            table.move_cursor(row=min(cursor, table.row_count - 1))

    def render_state(self, state: AdminState) -> None:
        if state.error:
            self.notify(state.error, severity="error")
            self.vm.clear_error()

        self._fill(
            "#table-admin-products",
            (
                (p.id, p.name, format_money(p.price), format_money(p.discount_price),
                 p.stock, "yes" if p.is_available else "no")
                for p in state.products
            ),
        )
        self._fill(
            "#table-admin-orders",
            (
                (o.id, o.id[:8], o.user_id[:8], o.status.value.title(),
                 o.total_items, format_money(o.total))
                for o in state.orders
            ),
        )
        self._fill(
            "#table-admin-users",
            (
                (u.id, u.name, u.email, u.role.value.title(), "yes" if u.is_active else "no")
                for u in state.users
            ),
        )
        self._fill("#table-admin-categories", ((c.id, c.name) for c in state.categories))
        self._fill("#table-admin-brands", ((b.id, b.name) for b in state.brands))

        select = self.query_one("#select-prod-category", Select)
        current = select.value
        select.set_options([(c.name, c.id) for c in state.categories])
        if current != Select.BLANK and any(c.id == current for c in state.categories):
            select.value = current

    def _highlighted(self, selector: str) -> Optional[str]:
        table = self.query_one(selector, DataTable)
        if not table.row_count:
            self.notify("Nothing selected.", severity="warning")
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value

    async def _confirm(self, question: str) -> bool:
        return await self.app.push_screen_wait(
            DialogModal(question, primary_text="Yes", secondary_text="No", tone="error")
        )

    def _read_number(self, selector: str, cast):
        field = self.query_one(selector, Input)
        if not field.value or not field.is_valid:
            field.focus()
            field.add_class("-invalid")
            return None
        field.remove_class("-invalid")
        return cast(field.value)

    # products

    @on(Button.Pressed, "#btn-prod-add")
    @work(exclusive=True)
    async def handle_product_add(self) -> None:
        name = self.query_one("#input-prod-name", Input).value.strip()
        price = self._read_number("#input-price", float)
        stock = self._read_number("#input-stock", int)
        if price is None or stock is None:
            return
        category = self.query_one("#select-prod-category", Select).value
        product = Product(
            id="",
            name=name,
            price=price,
            stock=stock,
            category="" if category == Select.BLANK else category,
            seller_id=self.app.state.uid or "",
        )
        if await self.vm.add_product(product):
            self.query_one("#input-prod-name", Input).value = ""
            self.notify(f"Product {name} added.")

    @on(DataTable.RowHighlighted, "#table-admin-products")
    def handle_product_highlight(self, event: DataTable.RowHighlighted) -> None:
        # prefill inputs with current values for convenience
        if event.row_key is None or self.vm is None:
            return
        for p in self.vm.state.products:
            if p.id == event.row_key.value:
                self.query_one("#input-price", Input).value = f"{p.price:.2f}"
                self.query_one("#input-stock", Input).value = str(p.stock)

    @on(Button.Pressed, "#btn-prod-update")
    @work(exclusive=True)
    async def handle_product_update(self) -> None:
        pid = self._highlighted("#table-admin-products")
        price = self._read_number("#input-price", float)
        stock = self._read_number("#input-stock", int)
        if pid is None or price is None or stock is None:
            return
        if await self.vm.update_product(pid, price=price, stock=stock):
            self.notify("Product updated successfully.")

    @on(Button.Pressed, "#btn-prod-toggle")
    @work(exclusive=True)
    async def handle_product_toggle(self) -> None:
        pid = self._highlighted("#table-admin-products")
        product = next((p for p in self.vm.state.products if p.id == pid), None)
        if product is not None:
            await self.vm.update_product(pid, is_available=not product.is_available)

    @on(Button.Pressed, "#btn-prod-delete")
    @work(exclusive=True)
    async def handle_product_delete(self) -> None:
        pid = self._highlighted("#table-admin-products")
        if pid and await self._confirm("Delete this product?"):
            if await self.vm.delete_product(pid):
                self.notify("Product deleted.")

    # orders

    @on(Button.Pressed, "#btn-order-apply")
    @work(exclusive=True)
    async def handle_order_status(self) -> None:
        oid = self._highlighted("#table-admin-orders")
        status = self.query_one("#select-order-status", Select).value
        if oid is None:
            return
        if status == Select.BLANK:
            self.notify("Choose a status first.", severity="warning")
            return
        if await self.vm.update_order_status(oid, status):
            self.notify(f"Order #{oid[:8]} is now {status.value.title()}.")

    @on(Button.Pressed, "#btn-order-cancel")
    @work(exclusive=True)
    async def handle_order_cancel(self) -> None:
        oid = self._highlighted("#table-admin-orders")
        if oid and await self._confirm(f"Cancel order #{oid[:8]}?"):
            if await self.vm.cancel_order(oid):
                self.notify("Order cancelled.")

    # users

    @on(Button.Pressed, "#btn-user-role")
    @work(exclusive=True)
    async def handle_user_role(self) -> None:
        uid = self._highlighted("#table-admin-users")
        role = self.query_one("#select-user-role", Select).value
        if uid is None:
            return
        if role == Select.BLANK:
            self.notify("Choose a role first.", severity="warning")
            return
        await self.vm.set_user_role(uid, role)

    @on(Button.Pressed, "#btn-user-deactivate")
    @work(exclusive=True)
    async def handle_user_deactivate(self) -> None:
        uid = self._highlighted("#table-admin-users")
        if uid == self.app.state.uid:
            self.notify("You cannot deactivate yourself.", severity="warning")
            return
        if uid and await self._confirm("Deactivate this user?"):
            await self.vm.deactivate_user(uid)

    @on(Button.Pressed, "#btn-user-delete")
    @work(exclusive=True)
    async def handle_user_delete(self) -> None:
        uid = self._highlighted("#table-admin-users")
        if uid == self.app.state.uid:
            self.notify("Delete your own account from the profile screen.", severity="warning")
            return
        if uid and await self._confirm("Delete this user's profile?"):
            await self.vm.delete_user(uid)

    # categories & brands

    def _take_name(self, selector: str) -> Optional[str]:
        field = self.query_one(selector, Input)
        name = field.value.strip()
        if not name:
            field.focus()
            field.add_class("-invalid")
            return None
        field.remove_class("-invalid")
        field.value = ""
        return name

    @on(Button.Pressed, "#btn-category-add")
    @work(exclusive=True)
    async def handle_category_add(self) -> None:
        if name := self._take_name("#input-category"):
            await self.vm.add_category(Category(id="", name=name))

    @on(Button.Pressed, "#btn-category-rename")
    @work(exclusive=True)
    async def handle_category_rename(self) -> None:
        cid = self._highlighted("#table-admin-categories")
        category = next((c for c in self.vm.state.categories if c.id == cid), None)
        if category is not None and (name := self._take_name("#input-category")):
            await self.vm.update_category(dataclasses.replace(category, name=name))

    @on(Button.Pressed, "#btn-category-delete")
    @work(exclusive=True)
    async def handle_category_delete(self) -> None:
        cid = self._highlighted("#table-admin-categories")
        if cid and await self._confirm("Delete this category?"):
            await self.vm.delete_category(cid)

    @on(Button.Pressed, "#btn-brand-add")
    @work(exclusive=True)
    async def handle_brand_add(self) -> None:
        if name := self._take_name("#input-brand"):
            await self.vm.add_brand(Brand(id="", name=name))

    @on(Button.Pressed, "#btn-brand-rename")
    @work(exclusive=True)
    async def handle_brand_rename(self) -> None:
        bid = self._highlighted("#table-admin-brands")
        brand = next((b for b in self.vm.state.brands if b.id == bid), None)
        if brand is not None and (name := self._take_name("#input-brand")):
            await self.vm.update_brand(dataclasses.replace(brand, name=name))

    @on(Button.Pressed, "#btn-brand-delete")
    @work(exclusive=True)
    async def handle_brand_delete(self) -> None:
        bid = self._highlighted("#table-admin-brands")
        if bid and await self._confirm("Delete this brand?"):
            await self.vm.delete_brand(bid)
