from __future__ import annotations

from marketplace.db.accounts import AuthRepository
from marketplace.db.auth import AuthUser
from marketplace.db.models import User
from marketplace.errors import ValidationError
from marketplace.utils.result import Result, returns_result


class LoginUseCase:
    def __init__(self, auth: AuthRepository) -> None:
        self.auth = auth

    async def __call__(self, email: str, password: str) -> Result[AuthUser]:
        return await self.auth.sign_in(email, password)


class RegisterUseCase:
    def __init__(self, auth: AuthRepository) -> None:
        self.auth = auth

    @returns_result
    async def __call__(
        self,
        email: str,
        password: str,
        name: str,
        phone: str = "",
        address: str = "",
    ) -> User:
        if not name.strip():
            raise ValidationError("Name is required.")
        return (
            await self.auth.sign_up(email, password, name.strip(), phone.strip(), address.strip())
        ).unwrap()
