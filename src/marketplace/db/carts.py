# carts collection: one document per user, rewritten whole on every change
from __future__ import annotations

from typing import Callable, Optional

from marketplace.db.models import Cart, CartItem
from marketplace.db.store import DocumentSnapshot, DocumentStore, ErrorCallback, now_ms
from marketplace.errors import NotFoundError, ValidationError
from marketplace.utils.logger import get_logger
from marketplace.utils.result import returns_result
from marketplace.utils.subscription import Subscription

_logger = get_logger(__name__)


class CartRepository:
    """
    Every mutation recomputes the derived totals through ``Cart.with_items``
    and stores the whole cart in a single read-modify-write transaction, so
    concurrent changes to one cart are applied one after another.
    """

    def __init__(self, store: DocumentStore, shipping: float = 0.0, tax: float = 0.0) -> None:
        self._carts = store.collection("carts")
        self.shipping = shipping
        self.tax = tax

    def _from_snapshot(self, user_id: str, snap: DocumentSnapshot) -> Cart:
        if not snap.exists:
            return Cart.empty(user_id, self.shipping, self.tax)
        return Cart.from_dict(snap.id, snap.data)

    async def _mutate(
        self, user_id: str, change: Callable[[Cart], Cart], create: bool = True
    ) -> Cart:
        def mutate(data):
            if data is None:
                if not create:
                    raise NotFoundError(f"No cart for user {user_id}.")
                cart = Cart.empty(user_id, self.shipping, self.tax)
            else:
                cart = Cart.from_dict(user_id, data)
            updated = change(cart)
            return updated.with_items(updated.items, updated_at=now_ms()).to_dict()

        snap = await self._carts.document(user_id).update(mutate)
        return Cart.from_dict(user_id, snap.data)

    async def watch_cart(
        self,
        user_id: str,
        callback: Callable[[Cart], object],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """Deliver the user's cart (an empty one while no document exists)."""
        return await self._carts.document(user_id).listen(
            lambda snap: callback(self._from_snapshot(user_id, snap)), on_error
        )

    @returns_result
    async def get_cart(self, user_id: str) -> Cart:
        return self._from_snapshot(user_id, await self._carts.document(user_id).get())

    @returns_result
    async def add_to_cart(self, user_id: str, item: CartItem) -> Cart:
        """
        Add ``item`` to the cart, merging it into the existing line for the
        same product. The existing line keeps its captured price.
        """
        if item.quantity <= 0:
            raise ValidationError("Quantity must be at least 1.")

        def change(cart: Cart) -> Cart:
            existing = cart.find(item.product_id)
            if existing is None:
                line = item.with_quantity(item.quantity)
                return cart.with_items([*cart.items, line])
            merged = existing.with_quantity(existing.quantity + item.quantity)
            return cart.with_items(
                merged if i.product_id == item.product_id else i for i in cart.items
            )

        cart = await self._mutate(user_id, change)
        _logger.debug(f"Cart {user_id}: +{item.quantity} x {item.product_id}")
        return cart

    @returns_result
    async def update_cart_item(self, user_id: str, item: CartItem) -> Cart:
        """Replace the line for ``item.product_id``; quantity 0 removes it."""
        if item.quantity < 0:
            raise ValidationError("Quantity cannot be negative.")
        return await self._mutate(
            user_id,
            lambda cart: _replace_line(cart, item.product_id, item.quantity, item),
            create=False,
        )

    @returns_result
    async def update_quantity(self, user_id: str, product_id: str, quantity: int) -> Cart:
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative.")
        return await self._mutate(
            user_id,
            lambda cart: _replace_line(cart, product_id, quantity),
            create=False,
        )

    @returns_result
    async def remove_from_cart(self, user_id: str, product_id: str) -> Cart:
        return await self._mutate(
            user_id, lambda cart: _replace_line(cart, product_id, 0), create=False
        )

    @returns_result
    async def clear_cart(self, user_id: str) -> Cart:
        """Empty the cart; the document and its shipping/tax stay."""
        cart = await self._mutate(user_id, lambda cart: cart.with_items(()))
        _logger.debug(f"Cleared cart {user_id}")
        return cart


def _replace_line(
    cart: Cart, product_id: str, quantity: int, item: Optional[CartItem] = None
) -> Cart:
    existing = cart.find(product_id)
    if existing is None:
        raise NotFoundError(f"Product {product_id} is not in the cart.")
    if quantity == 0:
        return cart.with_items(i for i in cart.items if i.product_id != product_id)
    line = (item or existing).with_quantity(quantity)
    return cart.with_items(line if i.product_id == product_id else i for i in cart.items)
