from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from marketplace.db.models import Address, Order, OrderStatus, PaymentMethod
from marketplace.db.orders import OrderRepository
from marketplace.usecases import (
    CancelOrderUseCase,
    CreateOrderUseCase,
    GetOrdersUseCase,
    UpdateOrderStatusUseCase,
)
from marketplace.utils.result import Result
from marketplace.utils.subscription import Subscription
from marketplace.viewmodels.base import ViewModel


@dataclass(frozen=True)
class OrderState:
    is_loading: bool = True
    error: Optional[str] = None
    orders: Tuple[Order, ...] = ()
    status_filter: Optional[OrderStatus] = None
    selected: Optional[Order] = None
    placed_order: Optional[Order] = None


class OrderViewModel(ViewModel[OrderState]):
    def __init__(
        self,
        user_id: str,
        orders: OrderRepository,
        get_orders: GetOrdersUseCase,
        create_order: CreateOrderUseCase,
        update_order_status: UpdateOrderStatusUseCase,
        cancel_order: CancelOrderUseCase,
    ) -> None:
        super().__init__(OrderState())
        self.user_id = user_id
        self.orders = orders
        self._get_orders = get_orders
        self._create_order = create_order
        self._update_order_status = update_order_status
        self._cancel_order = cancel_order
        self._listing: Optional[Subscription] = None

    async def start(self, status: Optional[OrderStatus] = None) -> None:
        if self._listing is not None:
            self._listing.cancel()
        self._update(is_loading=True, status_filter=status)
        self._listing = self._track(
            await self._get_orders(
                self.user_id,
                self._on_orders,
                status,
                self._on_listen_error,
            )
        )

    def _on_orders(self, orders) -> None:
        selected = self.state.selected
        if selected is not None:
            selected = next((o for o in orders if o.id == selected.id), selected)
        self._update(is_loading=False, orders=tuple(orders), selected=selected)

    async def set_status_filter(self, status: Optional[OrderStatus]) -> None:
        await self.start(status)

    async def select(self, order_id: str) -> None:
        result = await self.orders.get_order(order_id)
        if not result.ok:
            self._fail(result)
            return
        self._update(selected=result.value)

    async def checkout(self, address: Address, payment: PaymentMethod) -> Optional[Order]:
        self._update(is_loading=True, error=None, placed_order=None)
        result = await self._create_order(self.user_id, address, payment)
        if not result.ok:
            self._fail(result)
            return None
        self._update(is_loading=False, placed_order=result.value)
        return result.value

    def _apply(self, result: Result[Order]) -> None:
        if not result.ok:
            self._fail(result)
            return
        selected = self.state.selected
        if selected is not None and selected.id == result.value.id:
            self._update(selected=result.value, error=None)
        else:
            self._update(error=None)

    async def cancel(self, order_id: str) -> None:
        self._apply(await self._cancel_order(order_id))

    async def update_status(self, order_id: str, status: OrderStatus) -> None:
        self._apply(await self._update_order_status(order_id, status))
