# catalog collections: products, categories and brands
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from marketplace.db.models import Brand, Category, Product
from marketplace.db.store import (
    PREFIX_END,
    DocumentSnapshot,
    DocumentStore,
    ErrorCallback,
    Query,
    now_ms,
)
from marketplace.errors import NotFoundError, ValidationError
from marketplace.utils.logger import get_logger
from marketplace.utils.result import returns_result
from marketplace.utils.subscription import Subscription

_logger = get_logger(__name__)

ProductsCallback = Callable[[List[Product]], object]


class ProductSort(str, Enum):
    RELEVANCE = "RELEVANCE"  # best rated first
    PRICE_ASC = "PRICE_ASC"
    PRICE_DESC = "PRICE_DESC"
    NEWEST = "NEWEST"


@dataclass(frozen=True)
class ProductFilter:
    query: str = ""
    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    sort: ProductSort = ProductSort.RELEVANCE
    available_only: bool = False


_SORT_ORDER = {
    ProductSort.RELEVANCE: ("rating", True),
    ProductSort.PRICE_ASC: ("effectivePrice", False),
    ProductSort.PRICE_DESC: ("effectivePrice", True),
    ProductSort.NEWEST: ("createdAt", True),
}


def _products(snapshots: List[DocumentSnapshot]) -> List[Product]:
    return [Product.from_dict(s.id, s.data) for s in snapshots]


def _validate_product(product: Product) -> None:
    if not product.name.strip():
        raise ValidationError("Product name is required.")
    if product.price < 0:
        raise ValidationError("Price cannot be negative.")
    if product.discount_price < 0:
        raise ValidationError("Discount price cannot be negative.")
    if product.stock < 0:
        raise ValidationError("Stock cannot be negative.")


def _validate_name(kind: str, name: str) -> None:
    if not name.strip():
        raise ValidationError(f"{kind} name is required.")


class ProductRepository:
    """Product, category and brand reads and admin writes."""

    def __init__(self, store: DocumentStore) -> None:
        self._products = store.collection("products")
        self._categories = store.collection("categories")
        self._brands = store.collection("brands")

    # ---------------------------
    # Product queries
    # ---------------------------

    def _newest(self) -> Query:
        return self._products.order_by("createdAt", descending=True)

    def _filtered(self, f: ProductFilter) -> Query:
        q: Query = self._products
        if f.query:
            q = q.where("name", ">=", f.query).where("name", "<=", f.query + PREFIX_END)
        if f.category:
            q = q.where("category", "==", f.category)
        if f.brand:
            q = q.where("brand", "==", f.brand)
        if f.min_price is not None:
            q = q.where("effectivePrice", ">=", f.min_price)
        if f.max_price is not None:
            q = q.where("effectivePrice", "<=", f.max_price)
        if f.available_only:
            q = q.where("isAvailable", "==", True)
        field, descending = _SORT_ORDER[f.sort]
        return q.order_by(field, descending=descending)

    async def watch_products(
        self, callback: ProductsCallback, on_error: Optional[ErrorCallback] = None
    ) -> Subscription:
        return await self._newest().listen(lambda s: callback(_products(s)), on_error)

    @returns_result
    async def get_products(self) -> List[Product]:
        return _products(await self._newest().get())

    async def watch_products_by_category(
        self,
        category_id: str,
        callback: ProductsCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        q = self._newest().where("category", "==", category_id)
        return await q.listen(lambda s: callback(_products(s)), on_error)

    @returns_result
    async def get_products_by_category(self, category_id: str) -> List[Product]:
        return _products(await self._newest().where("category", "==", category_id).get())

    @returns_result
    async def get_products_by_brand(self, brand_id: str) -> List[Product]:
        return _products(await self._newest().where("brand", "==", brand_id).get())

    async def watch_product(
        self,
        product_id: str,
        callback: Callable[[Optional[Product]], object],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        def deliver(snap: DocumentSnapshot):
            return callback(Product.from_dict(snap.id, snap.data) if snap.exists else None)

        return await self._products.document(product_id).listen(deliver, on_error)

    @returns_result
    async def get_product(self, product_id: str) -> Product:
        snap = await self._products.document(product_id).get()
        if not snap.exists:
            raise NotFoundError(f"Product {product_id} not found.")
        return Product.from_dict(snap.id, snap.data)

    @returns_result
    async def search_products(self, query: str) -> List[Product]:
        """Prefix match on the product name, ordered by name."""
        if not query:
            return []
        return _products(await self._products.starts_with("name", query).get())

    async def watch_filtered_products(
        self,
        product_filter: ProductFilter,
        callback: ProductsCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self._filtered(product_filter).listen(
            lambda s: callback(_products(s)), on_error
        )

    @returns_result
    async def get_filtered_products(self, product_filter: ProductFilter) -> List[Product]:
        return _products(await self._filtered(product_filter).get())

    async def watch_featured_products(
        self, limit: int, callback: ProductsCallback, on_error: Optional[ErrorCallback] = None
    ) -> Subscription:
        q = self._products.order_by("rating", descending=True).limit(limit)
        return await q.listen(lambda s: callback(_products(s)), on_error)

    @returns_result
    async def get_featured_products(self, limit: int) -> List[Product]:
        q = self._products.order_by("rating", descending=True).limit(limit)
        return _products(await q.get())

    async def watch_recent_products(
        self, limit: int, callback: ProductsCallback, on_error: Optional[ErrorCallback] = None
    ) -> Subscription:
        return await self._newest().limit(limit).listen(
            lambda s: callback(_products(s)), on_error
        )

    @returns_result
    async def get_recent_products(self, limit: int) -> List[Product]:
        return _products(await self._newest().limit(limit).get())

    # ---------------------------
    # Product writes
    # ---------------------------

    @returns_result
    async def add_product(self, product: Product) -> Product:
        _validate_product(product)
        ref = self._products.document(product.id or None)
        product = dataclasses.replace(
            product, id=ref.id, created_at=product.created_at or now_ms()
        )
        await ref.set(product.to_dict(), expected_version=0)
        _logger.info(f"Added product {product.id} ({product.name})")
        return product

    @returns_result
    async def update_product(self, product: Product) -> Product:
        _validate_product(product)

        def mutate(data):
            if data is None:
                raise NotFoundError(f"Product {product.id} not found.")
            return product.to_dict()

        await self._products.document(product.id).update(mutate)
        return product

    @returns_result
    async def patch_product(self, product_id: str, changes: Dict[str, Any]) -> Product:
        """Replace only the named fields (dataclass field names)."""
        allowed = {f.name for f in dataclasses.fields(Product)} - {"id"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Unknown product fields: {', '.join(sorted(unknown))}")
        updated: List[Product] = []

        def mutate(data):
            if data is None:
                raise NotFoundError(f"Product {product_id} not found.")
            product = dataclasses.replace(Product.from_dict(product_id, data), **changes)
            _validate_product(product)
            updated.append(product)
            return product.to_dict()

        await self._products.document(product_id).update(mutate)
        return updated[0]

    @returns_result
    async def delete_product(self, product_id: str) -> None:
        if not await self._products.document(product_id).delete():
            raise NotFoundError(f"Product {product_id} not found.")
        _logger.info(f"Deleted product {product_id}")

    # ---------------------------
    # Categories & brands
    # ---------------------------

    async def watch_categories(
        self,
        callback: Callable[[List[Category]], object],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self._categories.order_by("name").listen(
            lambda s: callback([Category.from_dict(d.id, d.data) for d in s]), on_error
        )

    @returns_result
    async def get_categories(self) -> List[Category]:
        snaps = await self._categories.order_by("name").get()
        return [Category.from_dict(s.id, s.data) for s in snaps]

    @returns_result
    async def get_category(self, category_id: str) -> Category:
        snap = await self._categories.document(category_id).get()
        if not snap.exists:
            raise NotFoundError(f"Category {category_id} not found.")
        return Category.from_dict(snap.id, snap.data)

    @returns_result
    async def add_category(self, category: Category) -> Category:
        _validate_name("Category", category.name)
        ref = self._categories.document(category.id or None)
        category = dataclasses.replace(category, id=ref.id)
        await ref.set(category.to_dict(), expected_version=0)
        return category

    @returns_result
    async def update_category(self, category: Category) -> Category:
        _validate_name("Category", category.name)
        await self._replace_existing(self._categories, category.id, category.to_dict(), "Category")
        return category

    @returns_result
    async def delete_category(self, category_id: str) -> None:
        if not await self._categories.document(category_id).delete():
            raise NotFoundError(f"Category {category_id} not found.")

    async def watch_brands(
        self,
        callback: Callable[[List[Brand]], object],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self._brands.order_by("name").listen(
            lambda s: callback([Brand.from_dict(d.id, d.data) for d in s]), on_error
        )

    @returns_result
    async def get_brands(self) -> List[Brand]:
        snaps = await self._brands.order_by("name").get()
        return [Brand.from_dict(s.id, s.data) for s in snaps]

    @returns_result
    async def get_brand(self, brand_id: str) -> Brand:
        snap = await self._brands.document(brand_id).get()
        if not snap.exists:
            raise NotFoundError(f"Brand {brand_id} not found.")
        return Brand.from_dict(snap.id, snap.data)

    @returns_result
    async def add_brand(self, brand: Brand) -> Brand:
        _validate_name("Brand", brand.name)
        ref = self._brands.document(brand.id or None)
        brand = dataclasses.replace(brand, id=ref.id)
        await ref.set(brand.to_dict(), expected_version=0)
        return brand

    @returns_result
    async def update_brand(self, brand: Brand) -> Brand:
        _validate_name("Brand", brand.name)
        await self._replace_existing(self._brands, brand.id, brand.to_dict(), "Brand")
        return brand

    @returns_result
    async def delete_brand(self, brand_id: str) -> None:
        if not await self._brands.document(brand_id).delete():
            raise NotFoundError(f"Brand {brand_id} not found.")

    @staticmethod
    async def _replace_existing(collection, doc_id: str, data: Dict[str, Any], kind: str) -> None:
        def mutate(current):
            if current is None:
                raise NotFoundError(f"{kind} {doc_id} not found.")
            return data

        await collection.document(doc_id).update(mutate)
