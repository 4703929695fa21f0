from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from marketplace.db.models import Category, Product
from marketplace.db.products import ProductRepository
from marketplace.viewmodels.base import ViewModel


@dataclass(frozen=True)
class HomeState:
    is_loading: bool = True
    error: Optional[str] = None
    featured: Tuple[Product, ...] = ()
    recent: Tuple[Product, ...] = ()
    categories: Tuple[Category, ...] = ()


class HomeViewModel(ViewModel[HomeState]):
    def __init__(self, products: ProductRepository, limit: int = 10) -> None:
        super().__init__(HomeState())
        self.products = products
        self.limit = limit

    async def start(self) -> None:
        self._track(
            await self.products.watch_featured_products(
                self.limit,
                lambda items: self._update(featured=tuple(items)),
                self._on_listen_error,
            )
        )
        self._track(
            await self.products.watch_recent_products(
                self.limit,
                lambda items: self._update(recent=tuple(items)),
                self._on_listen_error,
            )
        )
        self._track(
            await self.products.watch_categories(
                lambda cats: self._update(categories=tuple(cats)),
                self._on_listen_error,
            )
        )
        self._update(is_loading=False)
