from __future__ import annotations

from typing import Callable, Optional

from marketplace.db.carts import CartRepository
from marketplace.db.models import Cart, CartItem
from marketplace.db.products import ProductRepository
from marketplace.db.store import ErrorCallback
from marketplace.errors import ValidationError
from marketplace.utils.result import Result, returns_result
from marketplace.utils.subscription import Subscription


class AddToCartUseCase:
    """Snapshot the product's current price, name and image into the cart."""

    def __init__(self, products: ProductRepository, carts: CartRepository) -> None:
        self.products = products
        self.carts = carts

    @returns_result
    async def __call__(self, user_id: str, product_id: str, quantity: int = 1) -> Cart:
        product = (await self.products.get_product(product_id)).unwrap()
        if not product.is_available or product.stock <= 0:
            raise ValidationError(f"{product.name} is not available.")
        item = CartItem.for_product(product, quantity)
        return (await self.carts.add_to_cart(user_id, item)).unwrap()


class GetCartUseCase:
    def __init__(self, carts: CartRepository) -> None:
        self.carts = carts

    async def __call__(
        self,
        user_id: str,
        callback: Callable[[Cart], object],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self.carts.watch_cart(user_id, callback, on_error)


class UpdateCartItemUseCase:
    def __init__(self, carts: CartRepository) -> None:
        self.carts = carts

    async def __call__(self, user_id: str, product_id: str, quantity: int) -> Result[Cart]:
        return await self.carts.update_quantity(user_id, product_id, quantity)
