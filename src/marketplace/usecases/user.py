from __future__ import annotations

from typing import Callable, List, Optional

from marketplace.db.models import User
from marketplace.db.store import ErrorCallback
from marketplace.db.users import UserRepository
from marketplace.errors import ValidationError
from marketplace.utils.result import Result, returns_result
from marketplace.utils.subscription import Subscription


class GetCurrentUserUseCase:
    def __init__(self, users: UserRepository) -> None:
        self.users = users

    async def __call__(
        self,
        callback: Callable[[Optional[User]], object],
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        return await self.users.watch_current_user(callback, on_error)


class SearchUsersUseCase:
    def __init__(self, users: UserRepository) -> None:
        self.users = users

    async def __call__(self, query: str) -> Result[List[User]]:
        return await self.users.search_users(query.strip())


class UpdateUserProfileUseCase:
    def __init__(self, users: UserRepository) -> None:
        self.users = users

    @returns_result
    async def __call__(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> User:
        if name is not None and not name.strip():
            raise ValidationError("Name cannot be empty.")
        if email is not None and "@" not in email:
            raise ValidationError("Invalid email address.")
        return (
            await self.users.update_profile(user_id, name, email, phone, address)
        ).unwrap()
