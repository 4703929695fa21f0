from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Tuple

from marketplace.db.models import Product
from marketplace.db.products import ProductFilter, ProductRepository, ProductSort
from marketplace.viewmodels.base import ViewModel

SEARCH_DEBOUNCE = 0.3
HISTORY_LIMIT = 10

SORT_OPTIONS = {
    "Relevance": ProductSort.RELEVANCE,
    "Price: Low to High": ProductSort.PRICE_ASC,
    "Price: High to Low": ProductSort.PRICE_DESC,
    "Newest First": ProductSort.NEWEST,
}


@dataclass(frozen=True)
class SearchState:
    is_loading: bool = False
    error: Optional[str] = None
    query: str = ""
    results: Tuple[Product, ...] = ()
    history: Tuple[str, ...] = ()  # most recent first
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    sort: ProductSort = ProductSort.RELEVANCE

    def to_filter(self) -> ProductFilter:
        return ProductFilter(
            query=self.query.strip(),
            category=self.category,
            min_price=self.min_price,
            max_price=self.max_price,
            sort=self.sort,
        )


class SearchViewModel(ViewModel[SearchState]):
    """
    Typing goes through ``set_query``, which waits for a pause of
    ``debounce`` seconds before searching; only the last keystroke's search
    runs. Searches that returned are recorded in the session history.
    """

    def __init__(self, products: ProductRepository, debounce: float = SEARCH_DEBOUNCE) -> None:
        super().__init__(SearchState())
        self.products = products
        self.debounce = debounce
        self._pending: Optional[asyncio.Task] = None

    def set_query(self, query: str) -> asyncio.Task:
        self._update(query=query)
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._spawn(self._debounced())
        return self._pending

    async def _debounced(self) -> None:
        await asyncio.sleep(self.debounce)
        await self.search()

    async def search(self) -> None:
        state = self.state
        if not state.query.strip() and state.category is None:
            self._update(results=(), is_loading=False)
            return
        self._update(is_loading=True, error=None)
        result = await self.products.get_filtered_products(state.to_filter())
        if not result.ok:
            self._fail(result)
            return
        self._update(is_loading=False, results=tuple(result.value))
        self._remember(state.query.strip())

    def _remember(self, query: str) -> None:
        if not query:
            return
        history = (query, *(h for h in self.state.history if h != query))
        self._update(history=history[:HISTORY_LIMIT])

    def remove_from_history(self, query: str) -> None:
        self._update(history=tuple(h for h in self.state.history if h != query))

    def clear_history(self) -> None:
        self._update(history=())

    async def set_filters(
        self,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> None:
        if min_price is not None and max_price is not None and min_price > max_price:
            self._fail("Minimum price cannot exceed maximum price.")
            return
        self._update(category=category, min_price=min_price, max_price=max_price)
        await self.search()

    async def set_sort(self, sort: ProductSort) -> None:
        self._update(sort=sort)
        await self.search()

    async def clear_filters(self) -> None:
        self._update(category=None, min_price=None, max_price=None, sort=ProductSort.RELEVANCE)
        await self.search()
