from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from marketplace.db.models import (
    Brand,
    Category,
    Order,
    OrderStatus,
    Product,
    User,
    UserRole,
)
from marketplace.db.orders import OrderRepository
from marketplace.db.products import ProductRepository
from marketplace.db.users import UserRepository
from marketplace.usecases import AddProductUseCase, UpdateOrderStatusUseCase, UpdateProductUseCase
from marketplace.utils.pure import format_money
from marketplace.utils.result import Result
from marketplace.viewmodels.base import ViewModel

ACTIVITY_PER_KIND = 5


@dataclass(frozen=True)
class DashboardStats:
    total_orders: int = 0
    total_users: int = 0
    total_products: int = 0
    pending_orders: int = 0
    revenue: float = 0.0
    recent_activity: Tuple[str, ...] = ()


def dashboard_stats(
    products: Tuple[Product, ...], orders: Tuple[Order, ...], users: Tuple[User, ...]
) -> DashboardStats:
    """Counts, revenue of orders that were not cancelled, and activity lines."""
    revenue = sum(o.total for o in orders if o.status != OrderStatus.CANCELLED)
    newest_orders = sorted(orders, key=lambda o: o.created_at, reverse=True)
    newest_users = sorted(users, key=lambda u: u.created_at, reverse=True)
    newest_products = sorted(products, key=lambda p: p.created_at, reverse=True)

    activity = [
        f"Order #{o.id} placed by {o.user_id} ({format_money(o.total)})"
        for o in newest_orders[:ACTIVITY_PER_KIND]
    ]
    activity += [f"New user registered: {u.name}" for u in newest_users[:ACTIVITY_PER_KIND]]
    activity += [
        f"New product added: {p.name}" for p in newest_products[:ACTIVITY_PER_KIND]
    ]
    return DashboardStats(
        total_orders=len(orders),
        total_users=len(users),
        total_products=len(products),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        revenue=revenue,
        recent_activity=tuple(activity),
    )


@dataclass(frozen=True)
class AdminState:
    is_loading: bool = True
    error: Optional[str] = None
    stats: DashboardStats = DashboardStats()
    products: Tuple[Product, ...] = ()
    orders: Tuple[Order, ...] = ()
    users: Tuple[User, ...] = ()
    categories: Tuple[Category, ...] = ()
    brands: Tuple[Brand, ...] = ()


class AdminViewModel(ViewModel[AdminState]):
    """Live catalog, orders and users plus the management actions on them."""

    def __init__(
        self,
        products: ProductRepository,
        orders: OrderRepository,
        users: UserRepository,
        add_product: AddProductUseCase,
        update_product: UpdateProductUseCase,
        update_order_status: UpdateOrderStatusUseCase,
    ) -> None:
        super().__init__(AdminState())
        self.products = products
        self.orders = orders
        self.users = users
        self._add_product = add_product
        self._update_product = update_product
        self._update_order_status = update_order_status

    def _refresh(self, **changes) -> None:
        self._update(**changes)
        s = self.state
        self._update(stats=dashboard_stats(s.products, s.orders, s.users))

    async def start(self) -> None:
        err = self._on_listen_error
        self._track(
            await self.products.watch_products(
                lambda items: self._refresh(products=tuple(items)), err
            )
        )
        self._track(
            await self.orders.watch_all_orders(
                lambda items: self._refresh(orders=tuple(items)), on_error=err
            )
        )
        self._track(
            await self.users.watch_users(lambda items: self._refresh(users=tuple(items)), err)
        )
        self._track(
            await self.products.watch_categories(
                lambda items: self._update(categories=tuple(items)), err
            )
        )
        self._track(
            await self.products.watch_brands(
                lambda items: self._update(brands=tuple(items)), err
            )
        )
        self._update(is_loading=False)

    def _check(self, result: Result) -> bool:
        if not result.ok:
            self._fail(result)
            return False
        self._update(error=None)
        return True

    # products
    async def add_product(self, product: Product) -> bool:
        return self._check(await self._add_product(product))

    async def update_product(self, product_id: str, **changes: Any) -> bool:
        return self._check(await self._update_product(product_id, **changes))

    async def delete_product(self, product_id: str) -> bool:
        return self._check(await self.products.delete_product(product_id))

    # orders
    async def update_order_status(self, order_id: str, status: OrderStatus) -> bool:
        return self._check(await self._update_order_status(order_id, status))

    async def cancel_order(self, order_id: str) -> bool:
        return self._check(await self.orders.cancel_order(order_id))

    # users
    async def set_user_role(self, user_id: str, role: UserRole) -> bool:
        return self._check(await self.users.set_role(user_id, role))

    async def deactivate_user(self, user_id: str) -> bool:
        return self._check(await self.users.deactivate(user_id))

    async def delete_user(self, user_id: str) -> bool:
        return self._check(await self.users.delete_user(user_id))

    # categories & brands
    async def add_category(self, category: Category) -> bool:
        return self._check(await self.products.add_category(category))

    async def update_category(self, category: Category) -> bool:
        return self._check(await self.products.update_category(category))

    async def delete_category(self, category_id: str) -> bool:
        return self._check(await self.products.delete_category(category_id))

    async def add_brand(self, brand: Brand) -> bool:
        return self._check(await self.products.add_brand(brand))

    async def update_brand(self, brand: Brand) -> bool:
        return self._check(await self.products.update_brand(brand))

    async def delete_brand(self, brand_id: str) -> bool:
        return self._check(await self.products.delete_brand(brand_id))
