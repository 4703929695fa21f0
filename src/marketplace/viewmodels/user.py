from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from marketplace.db.models import User
from marketplace.db.users import UserRepository
from marketplace.usecases import (
    GetCurrentUserUseCase,
    SearchUsersUseCase,
    UpdateUserProfileUseCase,
)
from marketplace.utils.result import Result
from marketplace.viewmodels.base import ViewModel


@dataclass(frozen=True)
class UserState:
    is_loading: bool = True
    error: Optional[str] = None
    user: Optional[User] = None
    search_results: Tuple[User, ...] = ()
    profile_saved: bool = False


class UserViewModel(ViewModel[UserState]):
    def __init__(
        self,
        users: UserRepository,
        get_current_user: GetCurrentUserUseCase,
        update_user_profile: UpdateUserProfileUseCase,
        search_users: SearchUsersUseCase,
    ) -> None:
        super().__init__(UserState())
        self.users = users
        self._get_current_user = get_current_user
        self._update_user_profile = update_user_profile
        self._search_users = search_users

    async def start(self) -> None:
        self._track(
            await self._get_current_user(
                lambda user: self._update(is_loading=False, user=user),
                self._on_listen_error,
            )
        )

    def _require_user(self) -> Optional[User]:
        if self.state.user is None:
            self._fail("Not signed in.")
        return self.state.user

    def _apply(self, result: Result[User], **extra) -> None:
        if not result.ok:
            self._fail(result)
        else:
            self._update(user=result.value, error=None, **extra)

    async def update_profile(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        user = self._require_user()
        if user is None:
            return
        self._update(profile_saved=False)
        result = await self._update_user_profile(user.id, name, email, phone, address)
        self._apply(result, profile_saved=result.ok)

    async def update_preferences(self, preferences: Dict[str, Any]) -> None:
        user = self._require_user()
        if user is not None:
            self._apply(await self.users.update_preferences(user.id, preferences))

    async def toggle_favorite(self, other_id: str) -> None:
        user = self._require_user()
        if user is None:
            return
        if other_id in user.favorites:
            self._apply(await self.users.remove_favorite(user.id, other_id))
        else:
            self._apply(await self.users.add_favorite(user.id, other_id))

    async def toggle_block(self, other_id: str) -> None:
        user = self._require_user()
        if user is None:
            return
        if other_id in user.blocked_users:
            self._apply(await self.users.unblock_user(user.id, other_id))
        else:
            self._apply(await self.users.block_user(user.id, other_id))

    async def search(self, query: str) -> None:
        result = await self._search_users(query)
        if not result.ok:
            self._fail(result)
            return
        self._update(search_results=tuple(result.value))
