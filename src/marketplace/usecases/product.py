from __future__ import annotations

from typing import Callable, List, Optional

from marketplace.db.models import Product
from marketplace.db.products import ProductFilter, ProductRepository
from marketplace.db.store import ErrorCallback
from marketplace.utils.result import Result
from marketplace.utils.subscription import Subscription


class AddProductUseCase:
    def __init__(self, products: ProductRepository) -> None:
        self.products = products

    async def __call__(self, product: Product) -> Result[Product]:
        return await self.products.add_product(product)


class GetProductsUseCase:
    def __init__(self, products: ProductRepository) -> None:
        self.products = products

    async def __call__(self, product_filter: ProductFilter = ProductFilter()) -> Result[List[Product]]:
        return await self.products.get_filtered_products(product_filter)

    async def watch(
        self,
        product_filter: ProductFilter,
        callback: Callable[[List[Product]], object],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self.products.watch_filtered_products(product_filter, callback, on_error)


class UpdateProductUseCase:
    """Change selected fields of a product, e.g. ``price=9.5, stock=3``."""

    def __init__(self, products: ProductRepository) -> None:
        self.products = products

    async def __call__(self, product_id: str, **changes) -> Result[Product]:
        return await self.products.patch_product(product_id, changes)
