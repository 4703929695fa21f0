from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from marketplace.db.models import Product
from marketplace.utils.pure import format_money, generate_markdown_table
from marketplace.viewmodels import ProductState, ProductViewModel


class ProdDetailModal(ModalScreen[bool]):
    """
    Product detail plus adding to the cart.
    Returns True if the cart changed.
    """

    order_qty = reactive(1)

    def __init__(self, product_id: str) -> None:
        super().__init__()
        self._product_id = product_id
        self.vm: ProductViewModel | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("Order Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        c = self.app.container
        self.vm = ProductViewModel(c.products, c.get_products, c.add_to_cart)
        self.vm.observe(self.render_state)
        await self.vm.select(self._product_id)
        self.query_one("#input-order-qty").focus()

    def on_unmount(self) -> None:
        if self.vm is not None:
            self.vm.close()

    @property
    def product(self) -> Product | None:
        return self.vm.state.selected if self.vm else None

    @work(exclusive=True, group="render")
    async def render_state(self, state: ProductState) -> None:
        if state.error:
            self.notify(state.error, severity="error")
            self.vm.clear_error()
        prod = state.selected
        if prod is None:
            return

        table_rows = [
            ["Name", prod.name],
            ["Description", prod.description],
            ["Price", format_money(prod.price)],
            ["Your price", format_money(prod.effective_price)],
            ["Rating", f"{prod.rating:.1f} ({prod.reviews} reviews)"],
            ["In stock", prod.stock],
        ]
        md_table_str = generate_markdown_table(["Attribute", "Value"], table_rows, ["l", "l"])
        header_md = f"### Product Detail: {prod.name}\n\n"
        await self.query_one(MarkdownViewer).document.update(header_md + md_table_str)

        if prod.stock < 1 or not prod.is_available:
            order_btn = self.query_one("#btn-addcart", Button)
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(prod.stock, 1))
        ]

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and message.value
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def watch_order_qty(self, qty: int):
        stock = self.product.stock if self.product else qty
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        self.query_one("#btn-add-qty").disabled = qty >= stock
        self.query_one("#input-order-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        if await self.vm.add_to_cart(self.app.state.uid, self._product_id, self.order_qty):
            self.app.notify("Item added to cart successfully.")
            self.dismiss(True)
