import unittest

from marketplace.db.models import Order, OrderStatus, Product, User
from marketplace.db.products import ProductSort
from marketplace.viewmodels import (
    AdminViewModel,
    AuthViewModel,
    CartViewModel,
    HomeViewModel,
    OrderViewModel,
    ProductViewModel,
    SearchViewModel,
    UserViewModel,
)
from marketplace.viewmodels.admin import dashboard_stats
from marketplace.viewmodels.search import HISTORY_LIMIT
from tests.support import MarketplaceTestCase, sample_address, sample_payment


class DashboardStatsTestCase(unittest.TestCase):
    def test_revenue_excludes_cancelled_orders(self):
        orders = (
            Order(id="o1", user_id="u1", total=10.0, status=OrderStatus.PENDING, created_at=1),
            Order(id="o2", user_id="u1", total=25.0, status=OrderStatus.DELIVERED, created_at=2),
            Order(id="o3", user_id="u2", total=99.0, status=OrderStatus.CANCELLED, created_at=3),
        )
        users = (User(id="u1", name="Ann", created_at=5), User(id="u2", name="Ben", created_at=6))
        products = (Product(id="p1", name="Pen", created_at=7),)

        stats = dashboard_stats(products, orders, users)

        self.assertEqual(stats.revenue, 35.0)
        self.assertEqual(stats.total_orders, 3)
        self.assertEqual(stats.pending_orders, 1)
        self.assertEqual(stats.total_users, 2)
        self.assertEqual(stats.total_products, 1)
        self.assertTrue(stats.recent_activity[0].startswith("Order #o3"))
        self.assertIn("New user registered: Ben", stats.recent_activity)
        self.assertIn("New product added: Pen", stats.recent_activity)

    def test_empty_dashboard(self):
        stats = dashboard_stats((), (), ())
        self.assertEqual((stats.revenue, stats.total_orders, stats.recent_activity), (0, 0, ()))


class SearchViewModelTestCase(MarketplaceTestCase):
    async def asyncSetUp(self):
        for name, price in [("Mouse", 20.0), ("Monitor", 200.0), ("Mousepad", 8.0)]:
            await self.make_product(name=name, price=price)
        self.vm = SearchViewModel(self.container.products, debounce=0.01)

    async def asyncTearDown(self):
        self.vm.close()

    async def test_debounce_runs_only_last_query(self):
        first = self.vm.set_query("Mo")
        second = self.vm.set_query("Mous")
        await second

        self.assertTrue(first.cancelled())
        self.assertEqual(sorted(p.name for p in self.vm.state.results), ["Mouse", "Mousepad"])
        self.assertEqual(self.vm.state.history, ("Mous",))

    async def test_history_most_recent_first_and_capped(self):
        for i in range(HISTORY_LIMIT + 2):
            self.vm._update(query=f"q{i}")
            await self.vm.search()
        self.vm._update(query="q5")
        await self.vm.search()

        history = self.vm.state.history
        self.assertEqual(len(history), HISTORY_LIMIT)
        self.assertEqual(history[0], "q5")
        self.assertEqual(history.count("q5"), 1)
        self.assertNotIn("q0", history)

        self.vm.remove_from_history("q5")
        self.assertNotIn("q5", self.vm.state.history)
        self.vm.clear_history()
        self.assertEqual(self.vm.state.history, ())

    async def test_empty_query_clears_results(self):
        await self.vm.set_query("Mo")
        self.assertEqual(len(self.vm.state.results), 3)
        await self.vm.set_query("  ")
        self.assertEqual(self.vm.state.results, ())

    async def test_filters_and_sort(self):
        await self.vm.set_query("Mo")
        await self.vm.set_sort(ProductSort.PRICE_ASC)
        self.assertEqual([p.name for p in self.vm.state.results], ["Mousepad", "Mouse", "Monitor"])

        await self.vm.set_filters(max_price=50.0)
        self.assertEqual([p.name for p in self.vm.state.results], ["Mousepad", "Mouse"])

        await self.vm.set_filters(min_price=30.0, max_price=10.0)
        self.assertIsNotNone(self.vm.state.error)
        self.assertEqual(len(self.vm.state.results), 2)

        await self.vm.clear_filters()
        self.assertEqual(self.vm.state.sort, ProductSort.RELEVANCE)
        self.assertEqual(len(self.vm.state.results), 3)


class CartViewModelTestCase(MarketplaceTestCase):
    async def asyncSetUp(self):
        c = self.container
        self.product = await self.make_product(price=4.0)
        self.vm = CartViewModel("u1", c.carts, c.get_cart, c.update_cart_item)
        await self.vm.start()

    async def test_live_cart_and_quantity_controls(self):
        self.assertFalse(self.vm.state.is_loading)
        self.assertTrue(self.vm.state.cart.is_empty)

        await self.container.add_to_cart("u1", self.product.id, 1)
        self.assertEqual(self.vm.state.cart.total_items, 1)

        await self.vm.increment(self.product.id)
        self.assertEqual(self.vm.state.cart.total_items, 2)
        await self.vm.decrement(self.product.id)
        await self.vm.decrement(self.product.id)
        self.assertTrue(self.vm.state.cart.is_empty)

        await self.vm.set_quantity("missing", 2)
        self.assertIsNotNone(self.vm.state.error)
        self.vm.clear_error()
        self.assertIsNone(self.vm.state.error)

    async def test_clear_needs_confirmation(self):
        await self.container.add_to_cart("u1", self.product.id, 3)
        self.vm.request_clear()
        self.assertTrue(self.vm.state.confirm_clear)
        self.vm.dismiss_clear()
        self.assertEqual(self.vm.state.cart.total_items, 3)

        self.vm.request_clear()
        await self.vm.confirm_clear()
        self.assertFalse(self.vm.state.confirm_clear)
        self.assertTrue(self.vm.state.cart.is_empty)

    async def test_close_releases_listeners_once(self):
        self.assertEqual(self.store.listener_count("carts"), 1)
        self.vm.close()
        self.assertTrue(self.vm.closed)
        self.assertEqual(self.store.listener_count("carts"), 0)
        self.vm.close()
        self.assertEqual(self.store.listener_count(), 0)

        # a closed view model no longer follows the store
        await self.container.add_to_cart("u1", self.product.id, 1)
        self.assertTrue(self.vm.state.cart.is_empty)


class OrderViewModelTestCase(MarketplaceTestCase):
    async def asyncSetUp(self):
        c = self.container
        self.product = await self.make_product(price=5.0)
        self.vm = OrderViewModel(
            "u1", c.orders, c.get_orders, c.create_order, c.update_order_status, c.cancel_order
        )
        await self.vm.start()

    async def asyncTearDown(self):
        self.vm.close()

    async def test_checkout_cancel_and_filter(self):
        self.assertIsNone(await self.vm.checkout(sample_address(), sample_payment()))
        self.assertIsNotNone(self.vm.state.error)

        await self.container.add_to_cart("u1", self.product.id, 2)
        order = await self.vm.checkout(sample_address(), sample_payment())
        self.assertIsNotNone(order)
        self.assertEqual(self.vm.state.placed_order, order)
        self.assertEqual([o.id for o in self.vm.state.orders], [order.id])

        await self.vm.select(order.id)
        await self.vm.cancel(order.id)
        self.assertEqual(self.vm.state.selected.status, OrderStatus.CANCELLED)

        await self.vm.set_status_filter(OrderStatus.PENDING)
        self.assertEqual(self.vm.state.orders, ())
        self.assertEqual(self.store.listener_count("orders"), 1)

    async def test_invalid_transition_sets_error(self):
        await self.container.add_to_cart("u1", self.product.id, 1)
        order = await self.vm.checkout(sample_address(), sample_payment())
        await self.vm.update_status(order.id, OrderStatus.DELIVERED)
        await self.vm.update_status(order.id, OrderStatus.SHIPPED)
        self.assertIn("Cannot move order", self.vm.state.error)


class AuthAndUserViewModelTestCase(MarketplaceTestCase):
    async def test_login_failure_then_success(self):
        c = self.container
        await self.sign_up("ivy@example.com", "secret1", "Ivy")
        await c.auth.sign_out()

        vm = AuthViewModel(c.auth, c.login, c.register)
        await vm.start()
        self.assertFalse(vm.state.is_authenticated)

        self.assertFalse(await vm.login("ivy@example.com", "nope!!"))
        self.assertEqual(vm.state.error, "Invalid email or password.")
        self.assertTrue(await vm.login("ivy@example.com", "secret1"))
        self.assertTrue(vm.state.is_authenticated)

        await vm.logout()
        self.assertFalse(vm.state.is_authenticated)
        vm.close()

    async def test_profile_and_people(self):
        c = self.container
        other = await self.sign_up("jo@example.com", "secret1", "Jo")
        me = await self.sign_up("kim@example.com", "secret1", "Kim")

        vm = UserViewModel(c.users, c.get_current_user, c.update_user_profile, c.search_users)
        await vm.start()
        self.assertEqual(vm.state.user.id, me.id)

        await vm.update_profile(phone="555-0199")
        self.assertTrue(vm.state.profile_saved)
        self.assertEqual(vm.state.user.phone, "555-0199")

        await vm.update_profile(name="")
        self.assertFalse(vm.state.profile_saved)
        self.assertIsNotNone(vm.state.error)

        await vm.search("J")
        self.assertEqual([u.id for u in vm.state.search_results], [other.id])
        await vm.toggle_favorite(other.id)
        self.assertEqual(vm.state.user.favorites, [other.id])
        await vm.toggle_favorite(other.id)
        self.assertEqual(vm.state.user.favorites, [])
        vm.close()


class CatalogViewModelTestCase(MarketplaceTestCase):
    SEED = True

    async def test_home_and_product_listing_from_seed(self):
        c = self.container
        home = HomeViewModel(c.products, limit=2)
        await home.start()
        self.assertEqual(len(home.state.featured), 2)
        self.assertEqual(home.state.featured[0].name, "Mechanical Keyboard")
        self.assertEqual(len(home.state.categories), 3)
        home.close()

        vm = ProductViewModel(c.products, c.get_products, c.add_to_cart)
        await vm.start()
        self.assertEqual(len(vm.state.products), 5)
        self.assertEqual(len(vm.state.brands), 2)

        await vm.filter_by_category("cat-audio")
        self.assertEqual({p.id for p in vm.state.products}, {"prod-headphones", "prod-speaker"})
        self.assertEqual(self.store.listener_count("products"), 1)

        await vm.select("prod-mouse")
        self.assertEqual(vm.state.selected.name, "Mouse")
        self.assertTrue(await vm.add_to_cart("u1", "prod-mouse", 2))
        cart = (await c.carts.get_cart("u1")).unwrap()
        self.assertEqual(cart.subtotal, 39.98)
        vm.close()


class AdminViewModelTestCase(MarketplaceTestCase):
    async def test_management_actions(self):
        c = self.container
        buyer = await self.sign_up()
        vm = AdminViewModel(
            c.products, c.orders, c.users, c.add_product, c.update_product, c.update_order_status
        )
        await vm.start()

        self.assertTrue(await vm.add_product(Product(id="", name="Lamp", price=30.0, stock=2)))
        lamp = vm.state.products[0]
        self.assertEqual(vm.state.stats.total_products, 1)
        self.assertTrue(await vm.update_product(lamp.id, stock=9))
        self.assertEqual(vm.state.products[0].stock, 9)
        self.assertFalse(await vm.add_product(Product(id="", name="")))
        self.assertIsNotNone(vm.state.error)

        await c.add_to_cart(buyer.id, lamp.id, 1)
        order = (await c.create_order(buyer.id, sample_address(), sample_payment())).unwrap()
        self.assertEqual(vm.state.stats.revenue, 30.0)
        self.assertTrue(await vm.update_order_status(order.id, OrderStatus.CONFIRMED))
        self.assertTrue(await vm.cancel_order(order.id))
        self.assertEqual(vm.state.stats.revenue, 0.0)

        self.assertTrue(await vm.deactivate_user(buyer.id))
        self.assertFalse(vm.state.users[0].is_active)

        vm.close()
        self.assertEqual(self.store.listener_count(), 0)
