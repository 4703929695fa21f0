from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from marketplace.container import AppContainer
from marketplace.utils.logger import get_logger
from marketplace.utils.messages import (
    ModeSwitchedMessage,
    OrderPlacedMessage,
    QuitRequestedMessage,
    UserLogoutMessage,
)
from marketplace.utils.state import GlobalState
from marketplace.views.scr_admin_dashboard import AdminDashboardScreen
from marketplace.views.scr_admin_manage import AdminManageScreen
from marketplace.views.scr_cart import CartScreen
from marketplace.views.scr_catalog import CatalogScreen
from marketplace.views.scr_login import LoginScreen
from marketplace.views.scr_orders import OrdersScreen
from marketplace.views.scr_profile import ProfileScreen

_logger = get_logger(__name__)


class MarketplaceApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
        "profile": ProfileScreen,
        "dashboard": AdminDashboardScreen,
        "manage": AdminManageScreen,
    }

    ADMIN_MODES = {
        "dashboard": "Admin Dashboard",
        "manage": "Store Management",
        "profile": "Profile",
    }
    CUSTOMER_MODES = {
        "catalog": "Browse Products",
        "cart": "Cart",
        "orders": "My Orders",
        "profile": "Profile",
    }

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/catalog.tcss",
        "styles/cart.tcss",
        "styles/orders.tcss",
        "styles/profile.tcss",
        "styles/admin.tcss",
    ]

    state: GlobalState
    container: AppContainer

    def __init__(self, container: AppContainer | None = None):
        super().__init__()
        self.container = container or AppContainer()
        self.state = GlobalState()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        result = await self.container.auth.sign_out()
        if not result.ok:
            self.notify(result.message, severity="error")
            return
        self.state.clear()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        if self.state.uid:
            await self.container.auth.sign_out()
        self.exit()

    @on(OrderPlacedMessage)
    async def handle_order_placed(self, message: OrderPlacedMessage):
        _logger.info(f"Order {message.order_id} placed, showing orders")
        if self.current_mode != "orders":
            self.post_message(ModeSwitchedMessage(self.current_mode, "orders"))
            await self.switch_mode("orders")

    @on(ModeSwitchedMessage)
    def handle_mode_switched(self, message: ModeSwitchedMessage):
        _logger.debug(f"Mode {message.old_mode} -> {message.new_mode}")

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        target = "dashboard" if self.state.is_admin else "catalog"
        self.post_message(ModeSwitchedMessage(self.current_mode, target))
        await self.switch_mode(target)


def run() -> None:
    MarketplaceApp().run()


if __name__ == "__main__":
    run()
