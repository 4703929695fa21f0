from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from marketplace.db.carts import CartRepository
from marketplace.db.models import Cart
from marketplace.usecases import GetCartUseCase, UpdateCartItemUseCase
from marketplace.utils.result import Result
from marketplace.viewmodels.base import ViewModel


@dataclass(frozen=True)
class CartState:
    is_loading: bool = True
    error: Optional[str] = None
    cart: Optional[Cart] = None
    confirm_clear: bool = False


class CartViewModel(ViewModel[CartState]):
    def __init__(
        self,
        user_id: str,
        carts: CartRepository,
        get_cart: GetCartUseCase,
        update_cart_item: UpdateCartItemUseCase,
    ) -> None:
        super().__init__(CartState())
        self.user_id = user_id
        self.carts = carts
        self._get_cart = get_cart
        self._update_cart_item = update_cart_item

    async def start(self) -> None:
        self._track(
            await self._get_cart(
                self.user_id,
                lambda cart: self._update(is_loading=False, cart=cart),
                self._on_listen_error,
            )
        )

    def _apply(self, result: Result[Cart]) -> None:
        if not result.ok:
            self._fail(result)
        else:
            self._update(cart=result.value, error=None)

    async def set_quantity(self, product_id: str, quantity: int) -> None:
        self._apply(await self._update_cart_item(self.user_id, product_id, quantity))

    async def increment(self, product_id: str) -> None:
        line = self.state.cart.find(product_id) if self.state.cart else None
        if line is not None:
            await self.set_quantity(product_id, line.quantity + 1)

    async def decrement(self, product_id: str) -> None:
        """One less; the line goes away at zero."""
        line = self.state.cart.find(product_id) if self.state.cart else None
        if line is not None:
            await self.set_quantity(product_id, line.quantity - 1)

    async def remove(self, product_id: str) -> None:
        self._apply(await self.carts.remove_from_cart(self.user_id, product_id))

    def request_clear(self) -> None:
        self._update(confirm_clear=True)

    def dismiss_clear(self) -> None:
        self._update(confirm_clear=False)

    async def confirm_clear(self) -> None:
        self._update(confirm_clear=False)
        self._apply(await self.carts.clear_cart(self.user_id))
