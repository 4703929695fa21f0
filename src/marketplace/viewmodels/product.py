from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional, Tuple

from marketplace.db.models import Brand, Category, Product
from marketplace.db.products import ProductFilter, ProductRepository
from marketplace.usecases import AddToCartUseCase, GetProductsUseCase
from marketplace.utils.subscription import Subscription
from marketplace.viewmodels.base import ViewModel


@dataclass(frozen=True)
class ProductState:
    is_loading: bool = True
    error: Optional[str] = None
    products: Tuple[Product, ...] = ()
    product_filter: ProductFilter = ProductFilter()
    selected: Optional[Product] = None
    categories: Tuple[Category, ...] = ()
    brands: Tuple[Brand, ...] = ()
    added_to_cart: Optional[str] = None  # product id of the last successful add


class ProductViewModel(ViewModel[ProductState]):
    """Filtered product listing plus a detail selection."""

    def __init__(
        self,
        products: ProductRepository,
        get_products: GetProductsUseCase,
        add_to_cart: AddToCartUseCase,
    ) -> None:
        super().__init__(ProductState())
        self.products = products
        self._get_products = get_products
        self._add_to_cart = add_to_cart
        self._listing: Optional[Subscription] = None

    async def start(self, product_filter: Optional[ProductFilter] = None) -> None:
        categories = await self.products.get_categories()
        brands = await self.products.get_brands()
        if categories.ok and brands.ok:
            self._update(categories=tuple(categories.value), brands=tuple(brands.value))
        else:
            self._fail(categories if not categories.ok else brands)
        await self.apply_filter(product_filter or self.state.product_filter)

    async def apply_filter(self, product_filter: ProductFilter) -> None:
        """Swap the live listing for one matching ``product_filter``."""
        if self._listing is not None:
            self._listing.cancel()
        self._update(is_loading=True, product_filter=product_filter)
        self._listing = self._track(
            await self._get_products.watch(
                product_filter,
                lambda items: self._update(is_loading=False, products=tuple(items)),
                self._on_listen_error,
            )
        )

    async def filter_by_category(self, category_id: Optional[str]) -> None:
        await self.apply_filter(
            dataclasses.replace(self.state.product_filter, category=category_id)
        )

    async def select(self, product_id: str) -> None:
        result = await self.products.get_product(product_id)
        if not result.ok:
            self._fail(result)
            return
        self._update(selected=result.value)

    def clear_selection(self) -> None:
        self._update(selected=None)

    async def add_to_cart(self, user_id: str, product_id: str, quantity: int = 1) -> bool:
        result = await self._add_to_cart(user_id, product_id, quantity)
        if not result.ok:
            self._fail(result)
            return False
        self._update(added_to_cart=product_id, error=None)
        return True
