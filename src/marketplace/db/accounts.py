# sign-in/sign-up on top of the account store, keeping the users collection in step
from __future__ import annotations

from typing import Callable, Iterable, Optional

from marketplace.db.auth import AuthService, AuthUser
from marketplace.db.models import User, UserRole
from marketplace.db.store import DocumentStore, now_ms
from marketplace.utils.logger import get_logger
from marketplace.utils.result import returns_result
from marketplace.utils.subscription import Subscription

_logger = get_logger(__name__)


class AuthRepository:
    def __init__(
        self, auth: AuthService, store: DocumentStore, admin_emails: Iterable[str] = ()
    ) -> None:
        self.auth = auth
        self._users = store.collection("users")
        # accounts registered with these addresses start as admins
        self._admin_emails = {e.strip().lower() for e in admin_emails}

    @property
    def current_user_id(self) -> Optional[str]:
        user = self.auth.current_user
        return user.uid if user else None

    async def watch_auth_state(
        self, callback: Callable[[Optional[AuthUser]], object]
    ) -> Subscription:
        return await self.auth.listen(callback)

    @returns_result
    async def sign_in(self, email: str, password: str) -> AuthUser:
        return await self.auth.sign_in(email, password)

    @returns_result
    async def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        phone: str = "",
        address: str = "",
    ) -> User:
        """Create the account, then its profile document under the same id."""
        account = await self.auth.create_user(email, password, display_name=name)
        ts = now_ms()
        user = User(
            id=account.uid,
            email=account.email,
            name=name,
            phone=phone,
            address=address,
            role=(
                UserRole.ADMIN if account.email in self._admin_emails else UserRole.CUSTOMER
            ),
            created_at=ts,
            updated_at=ts,
        )
        await self._users.document(user.id).set(user.to_dict())
        return user

    @returns_result
    async def sign_out(self) -> None:
        await self.auth.sign_out()

    @returns_result
    async def send_password_reset(self, email: str) -> str:
        return await self.auth.send_password_reset(email)

    @returns_result
    async def reset_password(self, token: str, new_password: str) -> None:
        await self.auth.confirm_password_reset(token, new_password)

    @returns_result
    async def update_password(self, current_password: str, new_password: str) -> None:
        await self.auth.reauthenticate(current_password)
        await self.auth.update_password(new_password)

    @returns_result
    async def delete_account(self, password: str) -> None:
        await self.auth.reauthenticate(password)
        uid = self.auth.current_user.uid
        await self._users.document(uid).delete()
        await self.auth.delete_current_user()
        _logger.info(f"Removed profile {uid}")
