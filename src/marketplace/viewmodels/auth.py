from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from marketplace.db.accounts import AuthRepository
from marketplace.db.auth import AuthUser
from marketplace.usecases import LoginUseCase, RegisterUseCase
from marketplace.viewmodels.base import ViewModel


@dataclass(frozen=True)
class AuthState:
    is_loading: bool = False
    error: Optional[str] = None
    user: Optional[AuthUser] = None
    reset_token_sent: bool = False
    password_updated: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


class AuthViewModel(ViewModel[AuthState]):
    def __init__(
        self, auth: AuthRepository, login: LoginUseCase, register: RegisterUseCase
    ) -> None:
        super().__init__(AuthState())
        self.auth = auth
        self._login = login
        self._register = register

    async def start(self) -> None:
        self._track(
            await self.auth.watch_auth_state(lambda user: self._update(user=user))
        )

    async def login(self, email: str, password: str) -> bool:
        self._update(is_loading=True, error=None)
        result = await self._login(email, password)
        if not result.ok:
            self._fail(result)
            return False
        self._update(is_loading=False, user=result.value)
        return True

    async def register(
        self, email: str, password: str, name: str, phone: str = "", address: str = ""
    ) -> bool:
        self._update(is_loading=True, error=None)
        result = await self._register(email, password, name, phone, address)
        if not result.ok:
            self._fail(result)
            return False
        self._update(is_loading=False)
        return True

    async def logout(self) -> None:
        result = await self.auth.sign_out()
        if not result.ok:
            self._fail(result)

    async def send_password_reset(self, email: str) -> None:
        self._update(is_loading=True, error=None, reset_token_sent=False)
        result = await self.auth.send_password_reset(email)
        if not result.ok:
            self._fail(result)
            return
        self._update(is_loading=False, reset_token_sent=True)

    async def update_password(self, current_password: str, new_password: str) -> None:
        self._update(is_loading=True, error=None, password_updated=False)
        result = await self.auth.update_password(current_password, new_password)
        if not result.ok:
            self._fail(result)
            return
        self._update(is_loading=False, password_updated=True)

    async def delete_account(self, password: str) -> bool:
        result = await self.auth.delete_account(password)
        if not result.ok:
            self._fail(result)
            return False
        return True
