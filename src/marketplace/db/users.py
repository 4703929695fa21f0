# users collection: profiles, roles, favorites and blocking
from __future__ import annotations

import dataclasses
from typing import Any, Callable, Dict, List, Optional

from marketplace.db.auth import AuthService, AuthUser
from marketplace.db.models import User, UserRole
from marketplace.db.store import DocumentSnapshot, DocumentStore, ErrorCallback, maybe_await, now_ms
from marketplace.errors import NotFoundError, ValidationError
from marketplace.utils.logger import get_logger
from marketplace.utils.result import returns_result
from marketplace.utils.subscription import Subscription

_logger = get_logger(__name__)

UserCallback = Callable[[Optional[User]], object]
UsersCallback = Callable[[List[User]], object]


def _user(snapshot: DocumentSnapshot) -> Optional[User]:
    if not snapshot.exists:
        return None
    return User.from_dict(snapshot.id, snapshot.data)


def _users(snapshots: List[DocumentSnapshot]) -> List[User]:
    return [User.from_dict(s.id, s.data) for s in snapshots]


class UserRepository:
    def __init__(self, store: DocumentStore, auth: AuthService) -> None:
        self.auth = auth
        self._users = store.collection("users")

    # ---------------------------
    # Reads
    # ---------------------------

    async def watch_current_user(
        self, callback: UserCallback, on_error: Optional[ErrorCallback] = None
    ) -> Subscription:
        """
        Follow the signed-in account's profile document.

        The inner document listener is swapped whenever the auth state
        changes; ``callback(None)`` is delivered while signed out.
        """
        doc_subscription: Optional[Subscription] = None

        async def on_auth(account: Optional[AuthUser]) -> None:
            nonlocal doc_subscription
            if doc_subscription is not None:
                doc_subscription.cancel()
                doc_subscription = None
            if account is None:
                await maybe_await(callback(None))
                return
            doc_subscription = await self._users.document(account.uid).listen(
                lambda snap: callback(_user(snap)), on_error
            )

        auth_subscription = await self.auth.listen(on_auth)

        def release() -> None:
            auth_subscription.cancel()
            if doc_subscription is not None:
                doc_subscription.cancel()

        return Subscription(release)

    @returns_result
    async def get_current_user(self) -> Optional[User]:
        account = self.auth.current_user
        if account is None:
            return None
        return _user(await self._users.document(account.uid).get())

    async def watch_user(
        self, user_id: str, callback: UserCallback, on_error: Optional[ErrorCallback] = None
    ) -> Subscription:
        return await self._users.document(user_id).listen(
            lambda snap: callback(_user(snap)), on_error
        )

    @returns_result
    async def get_user(self, user_id: str) -> User:
        user = _user(await self._users.document(user_id).get())
        if user is None:
            raise NotFoundError(f"User {user_id} not found.")
        return user

    async def watch_users(
        self, callback: UsersCallback, on_error: Optional[ErrorCallback] = None
    ) -> Subscription:
        return await self._users.order_by("name").listen(
            lambda snaps: callback(_users(snaps)), on_error
        )

    @returns_result
    async def get_users(self) -> List[User]:
        return _users(await self._users.order_by("name").get())

    @returns_result
    async def search_users(self, query: str) -> List[User]:
        """Name prefix search; an empty query returns nothing."""
        if not query:
            return []
        return _users(await self._users.starts_with("name", query).get())

    @returns_result
    async def get_users_by_role(self, role: UserRole) -> List[User]:
        return _users(await self._users.where("role", "==", role).order_by("name").get())

    # ---------------------------
    # Writes
    # ---------------------------

    @returns_result
    async def create_user(self, user: User) -> User:
        if not user.id:
            raise ValidationError("User id is required.")
        ts = now_ms()
        user = dataclasses.replace(
            user, created_at=user.created_at or ts, updated_at=ts
        )
        await self._users.document(user.id).set(user.to_dict())
        return user

    @returns_result
    async def update_user(self, user: User) -> User:
        return await self._patch(user.id, lambda _: user)

    @returns_result
    async def delete_user(self, user_id: str) -> None:
        if not await self._users.document(user_id).delete():
            raise NotFoundError(f"User {user_id} not found.")

    @returns_result
    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> User:
        """Change the given contact fields; None keeps the stored value."""
        changes = {
            k: v
            for k, v in (("name", name), ("email", email), ("phone", phone), ("address", address))
            if v is not None
        }
        return await self._patch(user_id, lambda u: dataclasses.replace(u, **changes))

    @returns_result
    async def update_preferences(self, user_id: str, preferences: Dict[str, Any]) -> User:
        return await self._patch(
            user_id, lambda u: dataclasses.replace(u, preferences=dict(preferences))
        )

    @returns_result
    async def add_favorite(self, user_id: str, favorite_id: str) -> User:
        def change(u: User) -> User:
            if favorite_id in u.favorites:
                return u
            return dataclasses.replace(u, favorites=[*u.favorites, favorite_id])

        return await self._patch(user_id, change)

    @returns_result
    async def remove_favorite(self, user_id: str, favorite_id: str) -> User:
        return await self._patch(
            user_id,
            lambda u: dataclasses.replace(
                u, favorites=[f for f in u.favorites if f != favorite_id]
            ),
        )

    @returns_result
    async def block_user(self, user_id: str, blocked_id: str) -> User:
        if user_id == blocked_id:
            raise ValidationError("Users cannot block themselves.")

        def change(u: User) -> User:
            if blocked_id in u.blocked_users:
                return u
            return dataclasses.replace(u, blocked_users=[*u.blocked_users, blocked_id])

        return await self._patch(user_id, change)

    @returns_result
    async def unblock_user(self, user_id: str, blocked_id: str) -> User:
        return await self._patch(
            user_id,
            lambda u: dataclasses.replace(
                u, blocked_users=[b for b in u.blocked_users if b != blocked_id]
            ),
        )

    @returns_result
    async def set_role(self, user_id: str, role: UserRole) -> User:
        return await self._patch(user_id, lambda u: dataclasses.replace(u, role=role))

    @returns_result
    async def deactivate(self, user_id: str) -> User:
        return await self._patch(user_id, lambda u: dataclasses.replace(u, is_active=False))

    async def _patch(self, user_id: str, change: Callable[[User], User]) -> User:
        def mutate(data):
            if data is None:
                raise NotFoundError(f"User {user_id} not found.")
            user = change(User.from_dict(user_id, data))
            return dataclasses.replace(user, id=user_id, updated_at=now_ms()).to_dict()

        snapshot = await self._users.document(user_id).update(mutate)
        _logger.debug(f"Updated user {user_id}")
        return User.from_dict(user_id, snapshot.data)
