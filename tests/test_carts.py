import asyncio

from marketplace.db.models import CartItem
from marketplace.errors import NotFoundError, ValidationError
from tests.support import MarketplaceTestCase


def line(product_id="p1", price=10.0, quantity=1, name="Widget") -> CartItem:
    return CartItem(id=product_id, product_id=product_id, name=name, price=price, quantity=quantity)


class CartTestCase(MarketplaceTestCase):
    SHIPPING = 5.0
    TAX = 2.0

    @property
    def carts(self):
        return self.container.carts

    async def test_missing_cart_reads_as_empty(self):
        cart = (await self.carts.get_cart("u1")).unwrap()
        self.assertTrue(cart.is_empty)
        self.assertEqual(cart.user_id, "u1")
        self.assertEqual(cart.total, 7.0)

    async def test_add_same_product_merges_lines(self):
        await self.carts.add_to_cart("u1", line(quantity=1))
        cart = (await self.carts.add_to_cart("u1", line(quantity=2))).unwrap()

        self.assertEqual(len(cart.items), 1)
        self.assertEqual(cart.items[0].quantity, 3)
        self.assertEqual(cart.items[0].subtotal, 30.0)
        self.assertEqual(cart.total_items, 3)
        self.assertEqual(cart.subtotal, 30.0)
        self.assertEqual(cart.total, 37.0)

    async def test_existing_line_keeps_captured_price(self):
        await self.carts.add_to_cart("u1", line(price=10.0, quantity=1))
        cart = (await self.carts.add_to_cart("u1", line(price=12.0, quantity=1))).unwrap()
        self.assertEqual(cart.items[0].price, 10.0)
        self.assertEqual(cart.subtotal, 20.0)

    async def test_add_rejects_non_positive_quantity(self):
        for qty in (0, -1):
            result = await self.carts.add_to_cart("u1", line(quantity=qty))
            self.assertIsInstance(result.error, ValidationError)
        snap = await self.store.collection("carts").document("u1").get()
        self.assertFalse(snap.exists)

    async def test_update_quantity(self):
        await self.carts.add_to_cart("u1", line("p1", quantity=1))
        await self.carts.add_to_cart("u1", line("p2", price=4.0, quantity=1))

        cart = (await self.carts.update_quantity("u1", "p2", 5)).unwrap()
        self.assertEqual(cart.find("p2").quantity, 5)
        self.assertEqual(cart.subtotal, 30.0)

        cart = (await self.carts.update_quantity("u1", "p2", 0)).unwrap()
        self.assertIsNone(cart.find("p2"))
        self.assertEqual(cart.total_items, 1)

        result = await self.carts.update_quantity("u1", "p1", -2)
        self.assertIsInstance(result.error, ValidationError)

        result = await self.carts.update_quantity("u1", "nope", 1)
        self.assertIsInstance(result.error, NotFoundError)

    async def test_update_without_cart_fails(self):
        result = await self.carts.update_cart_item("ghost", line(quantity=2))
        self.assertIsInstance(result.error, NotFoundError)
        result = await self.carts.remove_from_cart("ghost", "p1")
        self.assertIsInstance(result.error, NotFoundError)

    async def test_remove_and_clear(self):
        await self.carts.add_to_cart("u1", line("p1"))
        await self.carts.add_to_cart("u1", line("p2"))

        cart = (await self.carts.remove_from_cart("u1", "p1")).unwrap()
        self.assertEqual([i.product_id for i in cart.items], ["p2"])

        cart = (await self.carts.clear_cart("u1")).unwrap()
        self.assertTrue(cart.is_empty)
        self.assertEqual((cart.total_items, cart.subtotal, cart.total), (0, 0.0, 7.0))
        snap = await self.store.collection("carts").document("u1").get()
        self.assertTrue(snap.exists)

    async def test_concurrent_adds_are_not_lost(self):
        await asyncio.gather(*(self.carts.add_to_cart("u1", line(quantity=1)) for _ in range(8)))
        cart = (await self.carts.get_cart("u1")).unwrap()
        self.assertEqual(cart.items[0].quantity, 8)
        self.assertEqual(cart.subtotal, 80.0)

    async def test_watch_cart(self):
        seen = []
        sub = await self.carts.watch_cart("u1", seen.append)
        await self.carts.add_to_cart("u1", line(quantity=2))
        sub.cancel()
        await self.carts.clear_cart("u1")

        self.assertEqual(len(seen), 2)
        self.assertTrue(seen[0].is_empty)
        self.assertEqual(seen[1].total_items, 2)
