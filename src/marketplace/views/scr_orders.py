from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, MarkdownViewer, Select

from marketplace.db.models import Order, OrderStatus
from marketplace.utils.pure import format_money, generate_markdown_table
from marketplace.viewmodels import OrderState, OrderViewModel
from marketplace.views.base_screen import BaseScreen
from marketplace.views.modal_dialog import DialogModal


def order_markdown(order: Order | None) -> str:
    if order is None:
        return "### Select an order to view its details."

    header = (
        f"### Order #{order.id}\n"
        f"Status: **{order.status.value.title()}**  \n"
        f"Ship To: {order.shipping_address.one_line()}  \n"
        f"Payment: {order.payment_method.type.value if order.payment_method.type else '-'}\n\n"
    )
    rows = [
        [i.name, i.quantity, format_money(i.price), format_money(i.subtotal)]
        for i in order.items
    ]
    table = generate_markdown_table(
        ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
    )
    footer = (
        f"\n\nSubtotal: {format_money(order.subtotal)}  \n"
        f"Shipping: {format_money(order.shipping)}  \n"
        f"Tax: {format_money(order.tax)}  \n"
        f"**Grand Total:** {format_money(order.total)}"
    )
    return header + table + footer


class OrdersScreen(BaseScreen):
    """
    Customers browse their orders (newest first), optionally filtered by
    status, and can cancel anything not yet delivered.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below.
    """

    # Show some hints in footer
    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.vm: OrderViewModel | None = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Select(
                [(s.value.title(), s) for s in OrderStatus],
                prompt="All statuses",
                id="select-status",
            )
            yield Button("Cancel Order", id="btn-cancel", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Status", "Items", "Total")

    async def bind_view_models(self) -> None:
        c = self.container
        self.vm = self.own(
            OrderViewModel(
                self.app.state.uid,
                c.orders,
                c.get_orders,
                c.create_order,
                c.update_order_status,
                c.cancel_order,
            )
        )
        self.vm.observe(self.render_state)
        await self.vm.start()

    def render_state(self, state: OrderState) -> None:
        if state.error:
            self.notify(state.error, severity="error")
            self.vm.clear_error()

        table = self.query_one(DataTable)
        cursor = table.cursor_row
        table.clear()
        for o in state.orders:
            table.add_row(
                o.id[:8], o.status.value.title(), o.total_items, format_money(o.total), key=o.id
            )
        if state.orders:
            table.move_cursor(row=min(cursor, len(state.orders) - 1))
        self.render_detail(state.selected)

    @work(exclusive=True, group="detail")
    async def render_detail(self, order: Order | None) -> None:
        await self.query_one("#md-order-detail", MarkdownViewer).document.update(
            order_markdown(order)
        )
        self.query_one("#btn-cancel", Button).disabled = (
            order is None or order.status.is_terminal
        )

    @on(DataTable.RowHighlighted)
    @work(exclusive=True, group="select")
    async def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is not None and self.vm is not None:
            await self.vm.select(event.row_key.value)

    @on(Select.Changed, "#select-status")
    @work(exclusive=True, group="filter")
    async def handle_status_filter(self, event: Select.Changed) -> None:
        if self.vm is not None:
            await self.vm.set_status_filter(None if event.value == Select.BLANK else event.value)

    @on(Button.Pressed, "#btn-cancel")
    @work(exclusive=True)
    async def handle_cancel(self) -> None:
        order = self.vm.state.selected
        if order is None:
            return
        if await self.app.push_screen_wait(
            DialogModal(
                f"Cancel order #{order.id[:8]}?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            await self.vm.cancel(order.id)
