import unittest

from marketplace.db.models import (
    Cart,
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    PushNotification,
)
from marketplace.utils.pure import cart_totals, format_money, generate_markdown_table


class PureTestCase(unittest.TestCase):
    def test_cart_totals(self):
        items = [
            CartItem(id="p1", product_id="p1", price=10.0, quantity=3),
            CartItem(id="p2", product_id="p2", price=2.5, quantity=2),
        ]
        self.assertEqual(cart_totals(items, 5.0, 1.0), (5, 35.0, 41.0))
        self.assertEqual(cart_totals([], 5.0, 1.0), (0, 0.0, 6.0))

    def test_format_money(self):
        self.assertEqual(format_money(1234.5), "$1,234.50")
        self.assertEqual(format_money(0), "$0.00")

    def test_generate_markdown_table(self):
        md = generate_markdown_table(["A", "B"], [[1, "x"]], ["l", "r"])
        self.assertEqual(md, "| A | B |\n| :--- | ---: |\n| 1 | x |")
        self.assertEqual(generate_markdown_table(["A"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [[1, 2]], ["l"])


class ModelTestCase(unittest.TestCase):
    def test_effective_price(self):
        self.assertEqual(Product(id="p", name="p", price=10.0, discount_price=8.0).effective_price, 8.0)
        self.assertEqual(Product(id="p", name="p", price=10.0, discount_price=0.0).effective_price, 10.0)
        # a "discount" above the list price is ignored
        self.assertEqual(Product(id="p", name="p", price=10.0, discount_price=12.0).effective_price, 10.0)

    def test_cart_with_items_keeps_totals_consistent(self):
        cart = Cart.empty("u1", shipping=4.0, tax=1.0)
        self.assertEqual((cart.total_items, cart.subtotal, cart.total), (0, 0.0, 5.0))

        line = CartItem(id="p1", product_id="p1", price=10.0).with_quantity(3)
        self.assertEqual(line.subtotal, 30.0)
        cart = cart.with_items([line])
        self.assertEqual((cart.total_items, cart.subtotal, cart.total), (3, 30.0, 35.0))
        self.assertIs(cart.find("p1"), line)
        self.assertIsNone(cart.find("p2"))

    def test_cart_document_mapping(self):
        cart = Cart.empty("u1", 2.0, 0.5).with_items(
            [CartItem.for_product(Product(id="p1", name="Pen", price=1.5), 2)]
        )
        self.assertEqual(Cart.from_dict("u1", cart.to_dict()), cart)

    def test_status_transitions(self):
        S = OrderStatus
        self.assertTrue(S.PENDING.can_transition_to(S.CONFIRMED))
        self.assertTrue(S.PENDING.can_transition_to(S.SHIPPED))
        self.assertTrue(S.SHIPPED.can_transition_to(S.CANCELLED))
        self.assertFalse(S.SHIPPED.can_transition_to(S.CONFIRMED))
        self.assertFalse(S.DELIVERED.can_transition_to(S.CANCELLED))
        self.assertFalse(S.CANCELLED.can_transition_to(S.PENDING))
        self.assertTrue(S.DELIVERED.is_terminal)
        self.assertFalse(S.PROCESSING.is_terminal)

    def test_push_notification_payload(self):
        order = Order(
            id="o1",
            user_id="u1",
            status=OrderStatus.SHIPPED,
            items=(OrderItem(id="p1", product_id="p1", image_url="pic.png", quantity=1),),
        )
        payload = PushNotification.for_order_status(order, "token-1").to_dict()

        self.assertEqual(set(payload), {"to", "notification", "data"})
        self.assertEqual(payload["to"], "token-1")
        self.assertEqual(set(payload["notification"]), {"title", "body", "image"})
        self.assertEqual(payload["notification"]["image"], "pic.png")
        self.assertEqual(
            payload["data"], {"type": "ORDER_STATUS", "orderId": "o1", "status": "SHIPPED"}
        )
        self.assertEqual(PushNotification.from_dict(payload).to_dict(), payload)


if __name__ == "__main__":
    unittest.main()
