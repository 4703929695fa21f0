from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Button, DataTable, Label, Rule

from marketplace.utils.messages import OrderPlacedMessage
from marketplace.utils.pure import format_money
from marketplace.viewmodels import CartState, CartViewModel
from marketplace.views.base_screen import BaseScreen
from marketplace.views.modal_checkout import CheckoutModal
from marketplace.views.modal_dialog import DialogModal


class CartScreen(BaseScreen):
    """
    Live view of the signed-in user's cart.
    """

    BINDINGS = [
        Binding("plus", "increment", "+1", show=True),
        Binding("minus", "decrement", "-1", show=True),
        Binding("delete", "remove", "Remove", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.vm: CartViewModel | None = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-cart")
        yield Label("Subtotal: $0.00", id="label-cart-subtotal")
        yield Label("Total: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Unit Price", "Quantity", "Line Total")

    async def bind_view_models(self) -> None:
        c = self.container
        self.vm = self.own(
            CartViewModel(self.app.state.uid, c.carts, c.get_cart, c.update_cart_item)
        )
        self.vm.observe(self.render_state)
        await self.vm.start()

    def render_state(self, state: CartState) -> None:
        if state.error:
            self.notify(state.error, severity="error")
            self.vm.clear_error()
        if state.confirm_clear:
            self.confirm_clear()

        cart = state.cart
        table = self.query_one(DataTable)
        cursor = table.cursor_row
        table.clear()
        if cart is None:
            return
        for item in cart.items:
            table.add_row(
                item.name,
                format_money(item.price),
                item.quantity,
                format_money(item.subtotal),
                key=item.product_id,
            )
        if cart.items:
            table.move_cursor(row=min(cursor, len(cart.items) - 1))

        self.query_one("#label-cart-subtotal", Label).update(
            f"Subtotal: {format_money(cart.subtotal)}  "
            f"Shipping: {format_money(cart.shipping)}  Tax: {format_money(cart.tax)}"
        )
        self.query_one("#label-cart-total", Label).update(
            f"Total ({cart.total_items} items): {format_money(cart.total)}"
        )
        self.query_one("#btn-checkout", Button).disabled = cart.is_empty

    def _highlighted_product(self) -> str | None:
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value

    @work(exclusive=True, group="cart")
    async def action_increment(self) -> None:
        if pid := self._highlighted_product():
            await self.vm.increment(pid)

    @work(exclusive=True, group="cart")
    async def action_decrement(self) -> None:
        if pid := self._highlighted_product():
            await self.vm.decrement(pid)

    @work(exclusive=True, group="cart")
    async def action_remove(self) -> None:
        pid = self._highlighted_product()
        if pid is None:
            return
        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove this item from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            await self.vm.remove(pid)
            self.notify("Item removed from cart.", severity="information")

    @on(Button.Pressed, "#btn-clear-cart")
    def handle_clear_cart(self) -> None:
        if self.vm.state.cart is None or self.vm.state.cart.is_empty:
            self.app.notify("Cart is empty.", severity="warning")
            return
        self.vm.request_clear()

    @work(exclusive=True, group="clear")
    async def confirm_clear(self) -> None:
        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            await self.vm.confirm_clear()
        else:
            self.vm.dismiss_clear()

    @on(Button.Pressed, "#btn-checkout")
    @work(exclusive=True, group="checkout")
    async def handle_checkout(self) -> None:
        order_id = await self.app.push_screen_wait(CheckoutModal())
        if order_id:
            self.app.post_message(OrderPlacedMessage(order_id))
