from marketplace.usecases.auth import LoginUseCase, RegisterUseCase
from marketplace.usecases.cart import AddToCartUseCase, GetCartUseCase, UpdateCartItemUseCase
from marketplace.usecases.order import (
    CancelOrderUseCase,
    CreateOrderUseCase,
    GetOrdersUseCase,
    UpdateOrderStatusUseCase,
)
from marketplace.usecases.product import (
    AddProductUseCase,
    GetProductsUseCase,
    UpdateProductUseCase,
)
from marketplace.usecases.user import (
    GetCurrentUserUseCase,
    SearchUsersUseCase,
    UpdateUserProfileUseCase,
)

__all__ = [
    "AddProductUseCase",
    "AddToCartUseCase",
    "CancelOrderUseCase",
    "CreateOrderUseCase",
    "GetCartUseCase",
    "GetCurrentUserUseCase",
    "GetOrdersUseCase",
    "GetProductsUseCase",
    "LoginUseCase",
    "RegisterUseCase",
    "SearchUsersUseCase",
    "UpdateCartItemUseCase",
    "UpdateOrderStatusUseCase",
    "UpdateProductUseCase",
    "UpdateUserProfileUseCase",
]
