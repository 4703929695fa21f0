# builds the service graph: database -> store/auth -> repositories -> use cases
from __future__ import annotations

from functools import cached_property
from typing import Optional

from marketplace import usecases
from marketplace.db.accounts import AuthRepository
from marketplace.db.auth import AuthService
from marketplace.db.carts import CartRepository
from marketplace.db.database import Database
from marketplace.db.notifications import NotificationRepository
from marketplace.db.orders import OrderRepository
from marketplace.db.products import ProductRepository
from marketplace.db.store import DocumentStore
from marketplace.db.users import UserRepository
from marketplace.settings import Settings, settings as default_settings


class AppContainer:
    """
    Owns one instance of every service handle, created on first access.

    Each container is independent; tests build their own against a
    temporary database.

    Usage:
        container = AppContainer()
        cart = await container.carts.get_cart(uid)
    """

    def __init__(
        self, config: Optional[Settings] = None, database: Optional[Database] = None
    ) -> None:
        self.config = config or default_settings
        self._database = database

    # =========================================================================
    # SERVICES
    # =========================================================================

    @cached_property
    def database(self) -> Database:
        return self._database or Database(self.config.db_path, seed=self.config.seed_catalog)

    @cached_property
    def store(self) -> DocumentStore:
        return DocumentStore(self.database)

    @cached_property
    def auth_service(self) -> AuthService:
        return AuthService(self.database)

    # =========================================================================
    # REPOSITORIES
    # =========================================================================

    @cached_property
    def auth(self) -> AuthRepository:
        return AuthRepository(self.auth_service, self.store, self.config.admin_emails)

    @cached_property
    def users(self) -> UserRepository:
        return UserRepository(self.store, self.auth_service)

    @cached_property
    def products(self) -> ProductRepository:
        return ProductRepository(self.store)

    @cached_property
    def carts(self) -> CartRepository:
        return CartRepository(
            self.store, shipping=self.config.shipping_fee, tax=self.config.flat_tax
        )

    @cached_property
    def orders(self) -> OrderRepository:
        return OrderRepository(self.store)

    @cached_property
    def notifications(self) -> NotificationRepository:
        return NotificationRepository(self.store)

    # =========================================================================
    # USE CASES
    # =========================================================================

    @cached_property
    def login(self) -> usecases.LoginUseCase:
        return usecases.LoginUseCase(self.auth)

    @cached_property
    def register(self) -> usecases.RegisterUseCase:
        return usecases.RegisterUseCase(self.auth)

    @cached_property
    def add_to_cart(self) -> usecases.AddToCartUseCase:
        return usecases.AddToCartUseCase(self.products, self.carts)

    @cached_property
    def get_cart(self) -> usecases.GetCartUseCase:
        return usecases.GetCartUseCase(self.carts)

    @cached_property
    def update_cart_item(self) -> usecases.UpdateCartItemUseCase:
        return usecases.UpdateCartItemUseCase(self.carts)

    @cached_property
    def create_order(self) -> usecases.CreateOrderUseCase:
        return usecases.CreateOrderUseCase(self.carts, self.orders)

    @cached_property
    def get_orders(self) -> usecases.GetOrdersUseCase:
        return usecases.GetOrdersUseCase(self.orders)

    @cached_property
    def update_order_status(self) -> usecases.UpdateOrderStatusUseCase:
        return usecases.UpdateOrderStatusUseCase(self.orders, self.users, self.notifications)

    @cached_property
    def cancel_order(self) -> usecases.CancelOrderUseCase:
        return usecases.CancelOrderUseCase(self.orders)

    @cached_property
    def add_product(self) -> usecases.AddProductUseCase:
        return usecases.AddProductUseCase(self.products)

    @cached_property
    def get_products(self) -> usecases.GetProductsUseCase:
        return usecases.GetProductsUseCase(self.products)

    @cached_property
    def update_product(self) -> usecases.UpdateProductUseCase:
        return usecases.UpdateProductUseCase(self.products)

    @cached_property
    def get_current_user(self) -> usecases.GetCurrentUserUseCase:
        return usecases.GetCurrentUserUseCase(self.users)

    @cached_property
    def search_users(self) -> usecases.SearchUsersUseCase:
        return usecases.SearchUsersUseCase(self.users)

    @cached_property
    def update_user_profile(self) -> usecases.UpdateUserProfileUseCase:
        return usecases.UpdateUserProfileUseCase(self.users)
