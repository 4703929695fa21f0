from unittest.mock import patch

from marketplace.db.models import Address, Order, OrderItem, OrderStatus, PaymentMethod
from marketplace.db.orders import order_total, validate_order
from marketplace.errors import InvalidTransitionError, NotFoundError, OrderValidationError
from tests.support import MarketplaceTestCase, sample_address, sample_payment


def make_order(user_id="u1", **overrides) -> Order:
    item = OrderItem(id="p1", product_id="p1", name="Widget", price=10.0, quantity=2, subtotal=20.0)
    fields = dict(
        id="",
        user_id=user_id,
        items=(item,),
        shipping_address=sample_address(),
        payment_method=sample_payment(),
        subtotal=20.0,
        shipping=3.0,
        tax=1.0,
        total=24.0,
    )
    fields.update(overrides)
    return Order(**fields)


class OrderValidationTestCase(MarketplaceTestCase):
    def test_validate_order(self):
        validate_order(make_order())
        with self.assertRaises(OrderValidationError):
            validate_order(make_order(items=()))
        with self.assertRaises(OrderValidationError):
            validate_order(make_order(shipping_address=Address(street="1 Main St")))
        with self.assertRaises(OrderValidationError):
            validate_order(make_order(payment_method=PaymentMethod(type=None)))

    def test_order_total(self):
        self.assertEqual(order_total(make_order()), 24.0)

    async def test_invalid_order_writes_nothing(self):
        orders = self.container.orders
        result = await orders.create_order(make_order(items=()))
        self.assertIsInstance(result.error, OrderValidationError)
        self.assertEqual((await orders.get_all_orders()).unwrap(), [])


class OrderLifecycleTestCase(MarketplaceTestCase):
    @property
    def orders(self):
        return self.container.orders

    async def test_create_sets_id_status_and_timestamps(self):
        order = (await self.orders.create_order(make_order(status=OrderStatus.SHIPPED))).unwrap()
        self.assertTrue(order.id)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertGreater(order.created_at, 0)
        self.assertEqual(order.created_at, order.updated_at)

        stored = (await self.orders.get_order(order.id)).unwrap()
        self.assertEqual(stored, order)

    async def test_user_orders_newest_first_and_filtered(self):
        with patch("marketplace.db.orders.now_ms", side_effect=[1000, 2000, 3000]):
            older = (await self.orders.create_order(make_order())).unwrap()
            newer = (await self.orders.create_order(make_order())).unwrap()
            await self.orders.create_order(make_order(user_id="u2"))

        mine = (await self.orders.get_user_orders("u1")).unwrap()
        self.assertEqual([o.id for o in mine], [newer.id, older.id])

        await self.orders.cancel_order(older.id)
        cancelled = (await self.orders.get_user_orders("u1", OrderStatus.CANCELLED)).unwrap()
        self.assertEqual([o.id for o in cancelled], [older.id])
        self.assertEqual(len((await self.orders.get_all_orders()).unwrap()), 3)
        self.assertEqual(len((await self.orders.get_recent_orders(2)).unwrap()), 2)

    async def test_forward_transitions_only(self):
        order = (await self.orders.create_order(make_order())).unwrap()

        shipped = (await self.orders.update_status(order.id, OrderStatus.SHIPPED)).unwrap()
        self.assertEqual(shipped.status, OrderStatus.SHIPPED)

        result = await self.orders.update_status(order.id, OrderStatus.CONFIRMED)
        self.assertIsInstance(result.error, InvalidTransitionError)

        await self.orders.update_status(order.id, OrderStatus.DELIVERED)
        result = await self.orders.update_status(order.id, OrderStatus.PROCESSING)
        self.assertIsInstance(result.error, InvalidTransitionError)
        self.assertEqual(
            (await self.orders.get_order(order.id)).unwrap().status, OrderStatus.DELIVERED
        )

    async def test_cancel_rules(self):
        pending = (await self.orders.create_order(make_order())).unwrap()
        cancelled = (await self.orders.cancel_order(pending.id)).unwrap()
        self.assertEqual(cancelled.status, OrderStatus.CANCELLED)
        self.assertGreaterEqual(cancelled.updated_at, pending.updated_at)

        delivered = (await self.orders.create_order(make_order())).unwrap()
        await self.orders.update_status(delivered.id, OrderStatus.DELIVERED)
        result = await self.orders.cancel_order(delivered.id)
        self.assertIsInstance(result.error, InvalidTransitionError)

    async def test_missing_order(self):
        self.assertIsInstance((await self.orders.get_order("nope")).error, NotFoundError)
        result = await self.orders.update_status("nope", OrderStatus.CONFIRMED)
        self.assertIsInstance(result.error, NotFoundError)
        self.assertIsInstance((await self.orders.delete_order("nope")).error, NotFoundError)

    async def test_watch_user_orders(self):
        seen = []
        sub = await self.orders.watch_user_orders("u1", seen.append, OrderStatus.PENDING)
        order = (await self.orders.create_order(make_order())).unwrap()
        await self.orders.update_status(order.id, OrderStatus.CONFIRMED)
        sub.cancel()

        self.assertEqual([[o.id for o in batch] for batch in seen], [[], [order.id], []])

