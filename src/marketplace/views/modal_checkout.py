from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer, Select

from marketplace.db.models import Address, PaymentMethod, PaymentType
from marketplace.utils.pure import format_money, generate_markdown_table
from marketplace.viewmodels import CartState, CartViewModel, OrderViewModel
from marketplace.views.modal_dialog import DialogModal

ADDRESS_FIELDS = {
    "street": ("Street", "123 Main St"),
    "city": ("City", "Anytown"),
    "state": ("State", "ST"),
    "zip_code": ("Zip Code", "00000"),
    "country": ("Country", "USA"),
}


class CheckoutModal(ModalScreen[str]):
    """
    Order summary, shipping address and payment method.
    Returns the new order id on success, "" otherwise.
    """

    def __init__(self):
        super().__init__()
        self.cart_vm: CartViewModel | None = None
        self.order_vm: OrderViewModel | None = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label("Shipping Address")
            for name, (label, placeholder) in ADDRESS_FIELDS.items():
                yield Input(placeholder=f"{label}: {placeholder}", id=f"input-{name}")
            yield Label("Payment Method")
            yield Select(
                [(p.value.replace("_", " ").title(), p) for p in PaymentType],
                prompt="Choose a payment method",
                id="select-payment",
            )
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        c = self.app.container
        uid = self.app.state.uid
        self.cart_vm = CartViewModel(uid, c.carts, c.get_cart, c.update_cart_item)
        self.order_vm = OrderViewModel(
            uid, c.orders, c.get_orders, c.create_order, c.update_order_status, c.cancel_order
        )
        self.cart_vm.observe(self.render_summary)
        await self.cart_vm.start()

        user = self.app.state.user
        if user is not None and user.address:
            self.query_one("#input-street", Input).value = user.address
        self.query_one("#input-street").focus()

    def on_unmount(self) -> None:
        for vm in (self.cart_vm, self.order_vm):
            if vm is not None:
                vm.close()

    @work(exclusive=True, group="summary")
    async def render_summary(self, state: CartState) -> None:
        cart = state.cart
        if cart is None:
            return
        headers = ["Product Name", "Unit Price", "Quantity", "Total Price"]
        rows = [
            [i.name, format_money(i.price), i.quantity, format_money(i.subtotal)]
            for i in cart.items
        ]
        md = "### Order Summary\n\n"
        md += generate_markdown_table(headers, rows, ["l", "c", "c", "c"])
        md += f"\n\n**Subtotal:** {format_money(cart.subtotal)}  "
        md += f"\n**Shipping:** {format_money(cart.shipping)}  "
        md += f"\n**Tax:** {format_money(cart.tax)}  "
        md += f"\n**Total:** {format_money(cart.total)}"
        await self.query_one(MarkdownViewer).document.update(md)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss("")

    def _address(self) -> Address:
        return Address(
            **{
                name: self.query_one(f"#input-{name}", Input).value.strip()
                for name in ADDRESS_FIELDS
            }
        )

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        address = self._address()
        for name in address.blank_fields():
            self.query_one(f"#input-{name}", Input).add_class("-invalid")
        payment = self.query_one("#select-payment", Select).value
        payment_type = None if payment == Select.BLANK else payment

        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        order = await self.order_vm.checkout(address, PaymentMethod(type=payment_type))
        if order is None:
            self.notify(self.order_vm.state.error, severity="error")
            self.order_vm.clear_error()
            return
        self.notify(f"Order placed. Your order number is {order.id}.")
        self.dismiss(order.id)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss("")
