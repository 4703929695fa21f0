# orders collection: creation from a cart snapshot and the status lifecycle
from __future__ import annotations

import dataclasses
from typing import Callable, List, Optional

from marketplace.db.models import Order, OrderStatus
from marketplace.db.store import DocumentSnapshot, DocumentStore, ErrorCallback, Query, now_ms
from marketplace.errors import InvalidTransitionError, NotFoundError, OrderValidationError
from marketplace.utils.logger import get_logger
from marketplace.utils.result import returns_result
from marketplace.utils.subscription import Subscription

_logger = get_logger(__name__)

OrdersCallback = Callable[[List[Order]], object]


def _orders(snapshots: List[DocumentSnapshot]) -> List[Order]:
    return [Order.from_dict(s.id, s.data) for s in snapshots]


def validate_order(order: Order) -> None:
    """Raise OrderValidationError if the order cannot be placed."""
    if not order.items:
        raise OrderValidationError("Order has no items.")
    blank = order.shipping_address.blank_fields()
    if blank:
        raise OrderValidationError(f"Shipping address is missing: {', '.join(blank)}.")
    if order.payment_method.type is None:
        raise OrderValidationError("Payment method is required.")


def order_total(order: Order) -> float:
    return sum(i.subtotal for i in order.items) + order.shipping + order.tax


class OrderRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._orders = store.collection("orders")

    def _query(self, user_id: Optional[str] = None, status: Optional[OrderStatus] = None) -> Query:
        q: Query = self._orders
        if user_id is not None:
            q = q.where("userId", "==", user_id)
        if status is not None:
            q = q.where("status", "==", status)
        return q.order_by("createdAt", descending=True)

    # ---------------------------
    # Reads
    # ---------------------------

    async def watch_user_orders(
        self,
        user_id: str,
        callback: OrdersCallback,
        status: Optional[OrderStatus] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self._query(user_id, status).listen(
            lambda s: callback(_orders(s)), on_error
        )

    @returns_result
    async def get_user_orders(
        self, user_id: str, status: Optional[OrderStatus] = None
    ) -> List[Order]:
        return _orders(await self._query(user_id, status).get())

    async def watch_all_orders(
        self,
        callback: OrdersCallback,
        status: Optional[OrderStatus] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self._query(status=status).listen(
            lambda s: callback(_orders(s)), on_error
        )

    @returns_result
    async def get_all_orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        return _orders(await self._query(status=status).get())

    @returns_result
    async def get_recent_orders(self, limit: int) -> List[Order]:
        return _orders(await self._query().limit(limit).get())

    async def watch_order(
        self,
        order_id: str,
        callback: Callable[[Optional[Order]], object],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        def deliver(snap: DocumentSnapshot):
            return callback(Order.from_dict(snap.id, snap.data) if snap.exists else None)

        return await self._orders.document(order_id).listen(deliver, on_error)

    @returns_result
    async def get_order(self, order_id: str) -> Order:
        snap = await self._orders.document(order_id).get()
        if not snap.exists:
            raise NotFoundError(f"Order {order_id} not found.")
        return Order.from_dict(snap.id, snap.data)

    # ---------------------------
    # Writes
    # ---------------------------

    @returns_result
    async def create_order(self, order: Order) -> Order:
        """
        Validate and store a new order.

        Nothing is written when validation fails. The stored order gets a
        fresh id, PENDING status and creation timestamps.
        """
        validate_order(order)
        ref = self._orders.document()
        ts = now_ms()
        order = dataclasses.replace(
            order, id=ref.id, status=OrderStatus.PENDING, created_at=ts, updated_at=ts
        )
        await ref.set(order.to_dict(), expected_version=0)
        _logger.info(f"Created order {order.id} for {order.user_id} ({order.total:.2f})")
        return order

    async def _transition(self, order_id: str, check: Callable[[OrderStatus], OrderStatus]) -> Order:
        def mutate(data):
            if data is None:
                raise NotFoundError(f"Order {order_id} not found.")
            order = Order.from_dict(order_id, data)
            status = check(order.status)
            return dataclasses.replace(order, status=status, updated_at=now_ms()).to_dict()

        snap = await self._orders.document(order_id).update(mutate)
        order = Order.from_dict(order_id, snap.data)
        _logger.info(f"Order {order_id} is now {order.status.value}")
        return order

    @returns_result
    async def update_status(self, order_id: str, status: OrderStatus) -> Order:
        def check(current: OrderStatus) -> OrderStatus:
            if not current.can_transition_to(status):
                raise InvalidTransitionError(
                    f"Cannot move order from {current.value} to {status.value}."
                )
            return status

        return await self._transition(order_id, check)

    @returns_result
    async def cancel_order(self, order_id: str) -> Order:
        def check(current: OrderStatus) -> OrderStatus:
            if current == OrderStatus.DELIVERED:
                raise InvalidTransitionError("Delivered orders cannot be cancelled.")
            return OrderStatus.CANCELLED

        return await self._transition(order_id, check)

    @returns_result
    async def delete_order(self, order_id: str) -> None:
        if not await self._orders.document(order_id).delete():
            raise NotFoundError(f"Order {order_id} not found.")
