# email/password account store with an auth-state listener
from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from marketplace.db.database import Database
from marketplace.db.store import maybe_await, now_ms
from marketplace.errors import AuthError
from marketplace.utils.logger import get_logger
from marketplace.utils.subscription import Subscription

_logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class AuthUser:
    uid: str
    email: str
    display_name: str = ""


def _check_email(email: str) -> str:
    email = (email or "").strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise AuthError("Invalid email address.")
    return email


def _check_password(password: str) -> str:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    return password


class AuthService:
    """
    Accounts live in the ``accounts`` table; the signed-in account is held in
    memory for the lifetime of the service.
    """

    def __init__(self, database: Database) -> None:
        self.database = database
        self._current: Optional[AuthUser] = None
        self._listeners: List[Callable[[Optional[AuthUser]], object]] = []

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._current

    def _require_user(self) -> AuthUser:
        if self._current is None:
            raise AuthError("No user logged in.")
        return self._current

    async def _set_current(self, user: Optional[AuthUser]) -> None:
        self._current = user
        for listener in list(self._listeners):
            await maybe_await(listener(user))

    async def listen(self, callback: Callable[[Optional[AuthUser]], object]) -> Subscription:
        """Call ``callback`` with the current account now and on every change."""
        self._listeners.append(callback)
        subscription = Subscription(lambda: self._listeners.remove(callback))
        await maybe_await(callback(self._current))
        return subscription

    async def _find(self, email: str):
        async with self.database.connect() as conn:
            cur = await conn.execute(
                "SELECT uid, email, pwd_hash, display_name FROM accounts WHERE email = ?;",
                (email,),
            )
            row = await cur.fetchone()
            await cur.close()
        return row

    async def sign_in(self, email: str, password: str) -> AuthUser:
        row = await self._find(_check_email(email))
        if not row or not check_password_hash(row[2], password or ""):
            raise AuthError("Invalid email or password.")
        user = AuthUser(uid=row[0], email=row[1], display_name=row[3])
        await self._set_current(user)
        _logger.info(f"Signed in {user.email}")
        return user

    async def create_user(
        self, email: str, password: str, display_name: str = ""
    ) -> AuthUser:
        """Register a new account and sign it in."""
        email = _check_email(email)
        _check_password(password)
        uid = uuid.uuid4().hex
        async with self.database.connect() as conn:
            cur = await conn.execute(
                "SELECT 1 FROM accounts WHERE email = ? LIMIT 1;", (email,)
            )
            taken = await cur.fetchone()
            await cur.close()
            if taken:
                raise AuthError("Email already registered.")
            await conn.execute(
                "INSERT INTO accounts(uid, email, pwd_hash, display_name, created_at) VALUES (?, ?, ?, ?, ?);",
                (uid, email, generate_password_hash(password), display_name, now_ms()),
            )
            await conn.commit()
        user = AuthUser(uid=uid, email=email, display_name=display_name)
        await self._set_current(user)
        _logger.info(f"Registered {email}")
        return user

    async def sign_out(self) -> None:
        if self._current is not None:
            _logger.info(f"Signed out {self._current.email}")
        await self._set_current(None)

    async def send_password_reset(self, email: str) -> str:
        """Record a reset token for the account and return it for delivery."""
        row = await self._find(_check_email(email))
        if not row:
            raise AuthError("No account for this email.")
        token = secrets.token_urlsafe(24)
        async with self.database.connect() as conn:
            await conn.execute(
                "INSERT INTO password_resets(token, uid, created_at) VALUES (?, ?, ?);",
                (token, row[0], now_ms()),
            )
            await conn.commit()
        return token

    async def confirm_password_reset(self, token: str, new_password: str) -> None:
        _check_password(new_password)
        async with self.database.connect() as conn:
            cur = await conn.execute(
                "SELECT uid FROM password_resets WHERE token = ?;", (token,)
            )
            row = await cur.fetchone()
            await cur.close()
            if not row:
                raise AuthError("Invalid or used reset token.")
            await conn.execute(
                "UPDATE accounts SET pwd_hash = ? WHERE uid = ?;",
                (generate_password_hash(new_password), row[0]),
            )
            await conn.execute("DELETE FROM password_resets WHERE uid = ?;", (row[0],))
            await conn.commit()

    async def reauthenticate(self, password: str) -> None:
        user = self._require_user()
        row = await self._find(user.email)
        if not row or not check_password_hash(row[2], password or ""):
            raise AuthError("Current password is incorrect.")

    async def update_password(self, new_password: str) -> None:
        user = self._require_user()
        _check_password(new_password)
        async with self.database.connect() as conn:
            await conn.execute(
                "UPDATE accounts SET pwd_hash = ? WHERE uid = ?;",
                (generate_password_hash(new_password), user.uid),
            )
            await conn.commit()

    async def update_display_name(self, display_name: str) -> AuthUser:
        user = self._require_user()
        async with self.database.connect() as conn:
            await conn.execute(
                "UPDATE accounts SET display_name = ? WHERE uid = ?;",
                (display_name, user.uid),
            )
            await conn.commit()
        updated = AuthUser(uid=user.uid, email=user.email, display_name=display_name)
        await self._set_current(updated)
        return updated

    async def delete_current_user(self) -> None:
        user = self._require_user()
        async with self.database.connect() as conn:
            await conn.execute("DELETE FROM password_resets WHERE uid = ?;", (user.uid,))
            await conn.execute("DELETE FROM accounts WHERE uid = ?;", (user.uid,))
            await conn.commit()
        _logger.info(f"Deleted account {user.email}")
        await self._set_current(None)
