from textual import work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import MarkdownViewer

from marketplace.db.models import OrderStatus
from marketplace.utils.pure import format_money, generate_markdown_table
from marketplace.viewmodels import AdminState, AdminViewModel
from marketplace.views.base_screen import BaseScreen


class AdminDashboardScreen(BaseScreen):
    """
    Store overview: totals, revenue, order status breakdown, low stock and
    recent activity. Updates live.
    """

    LOW_STOCK = 5

    def __init__(self) -> None:
        super().__init__()
        self.vm: AdminViewModel | None = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-dashboard", show_table_of_contents=False)

    async def bind_view_models(self) -> None:
        c = self.container
        self.vm = self.own(
            AdminViewModel(
                c.products, c.orders, c.users, c.add_product, c.update_product, c.update_order_status
            )
        )
        self.vm.observe(self.render_state)
        await self.vm.start()

    @work(exclusive=True, group="render")
    async def render_state(self, state: AdminState) -> None:
        if state.error:
            self.notify(state.error, severity="error")
            self.vm.clear_error()
        stats = state.stats

        summary_md = (
            "### Store Summary\n\n"
            f"- Products: {stats.total_products}\n"
            f"- Users: {stats.total_users}\n"
            f"- Orders: {stats.total_orders} ({stats.pending_orders} pending)\n"
            f"- Revenue (excluding cancelled): {format_money(stats.revenue)}\n\n"
        )

        by_status = [
            [s.value.title(), sum(1 for o in state.orders if o.status == s)]
            for s in OrderStatus
        ]
        status_md = "### Orders by Status\n\n" + generate_markdown_table(
            ["Status", "Orders"], by_status, ["l", "r"]
        )

        low_stock = [[p.name, p.stock] for p in state.products if p.stock <= self.LOW_STOCK]
        low_md = "\n\n### Low Stock\n\n" + (
            generate_markdown_table(["Product", "Stock"], low_stock, ["l", "r"])
            if low_stock
            else "Nothing below the threshold."
        )

        activity_md = "\n\n### Recent Activity\n\n" + "\n".join(
            f"- {line}" for line in stats.recent_activity
        )

        await self.query_one("#md-dashboard", MarkdownViewer).document.update(
            summary_md + status_md + low_md + activity_md
        )
