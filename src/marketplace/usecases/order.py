from __future__ import annotations

from typing import Callable, List, Optional

from marketplace.db.carts import CartRepository
from marketplace.db.models import (
    Address,
    Order,
    OrderStatus,
    PaymentMethod,
    PushNotification,
)
from marketplace.db.notifications import NotificationRepository
from marketplace.db.orders import OrderRepository
from marketplace.db.store import ErrorCallback
from marketplace.db.users import UserRepository
from marketplace.utils.logger import get_logger
from marketplace.utils.result import Result
from marketplace.utils.subscription import Subscription

_logger = get_logger(__name__)

PUSH_TOKEN_KEY = "pushToken"


class CreateOrderUseCase:
    """
    Checkout: read the cart, place the order, then empty the cart.

    The steps are independent writes. When the order is stored but the cart
    cannot be cleared the order is still returned and the cart keeps its
    lines.
    """

    def __init__(self, carts: CartRepository, orders: OrderRepository) -> None:
        self.carts = carts
        self.orders = orders

    async def __call__(
        self, user_id: str, shipping_address: Address, payment_method: PaymentMethod
    ) -> Result[Order]:
        cart = await self.carts.get_cart(user_id)
        if not cart.ok:
            return Result.failure(cart.error)

        created = await self.orders.create_order(
            Order.from_cart(cart.value, shipping_address, payment_method)
        )
        if not created.ok:
            return created

        cleared = await self.carts.clear_cart(user_id)
        if not cleared.ok:
            _logger.warning(
                f"Order {created.value.id} placed but cart {user_id} was not cleared: "
                f"{cleared.message}"
            )
        return created


class GetOrdersUseCase:
    def __init__(self, orders: OrderRepository) -> None:
        self.orders = orders

    async def __call__(
        self,
        user_id: str,
        callback: Callable[[List[Order]], object],
        status: Optional[OrderStatus] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self.orders.watch_user_orders(user_id, callback, status, on_error)


class UpdateOrderStatusUseCase:
    """Move an order along its lifecycle and queue a push to the buyer."""

    def __init__(
        self,
        orders: OrderRepository,
        users: UserRepository,
        notifications: NotificationRepository,
    ) -> None:
        self.orders = orders
        self.users = users
        self.notifications = notifications

    async def __call__(self, order_id: str, status: OrderStatus) -> Result[Order]:
        updated = await self.orders.update_status(order_id, status)
        if updated.ok:
            await self._notify(updated.value)
        return updated

    async def _notify(self, order: Order) -> None:
        buyer = await self.users.get_user(order.user_id)
        token = buyer.value.preferences.get(PUSH_TOKEN_KEY) if buyer.ok else None
        if not token:
            return
        queued = await self.notifications.queue_push(
            PushNotification.for_order_status(order, str(token))
        )
        if not queued.ok:
            _logger.warning(f"No push for order {order.id}: {queued.message}")


class CancelOrderUseCase:
    def __init__(self, orders: OrderRepository) -> None:
        self.orders = orders

    async def __call__(self, order_id: str) -> Result[Order]:
        return await self.orders.cancel_order(order_id)
