from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from marketplace.db.models import User
from marketplace.db.users import UserRepository


@dataclass
class GlobalState:
    """
    Signed-in user shared by screens.

    Fields:
      - user: profile document of the signed-in account, None when signed out
    """

    user: Optional[User] = None

    @property
    def uid(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin()

    async def load(self, users: UserRepository) -> Optional[User]:
        """Fetch the profile of whoever is signed in now."""
        result = await users.get_current_user()
        self.user = result.value if result.ok else None
        return self.user

    def clear(self) -> None:
        self.user = None
