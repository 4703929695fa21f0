from marketplace.db.models import User, UserRole
from marketplace.errors import NotFoundError, ValidationError
from tests.support import MarketplaceTestCase


class UserTestCase(MarketplaceTestCase):
    @property
    def users(self):
        return self.container.users

    async def asyncSetUp(self):
        for uid, name in [("u1", "Alice"), ("u2", "Albert"), ("u3", "Bob")]:
            (await self.users.create_user(User(id=uid, email=f"{uid}@example.com", name=name))).unwrap()

    async def test_create_and_read(self):
        alice = (await self.users.get_user("u1")).unwrap()
        self.assertEqual(alice.name, "Alice")
        self.assertEqual(alice.role, UserRole.CUSTOMER)
        self.assertGreater(alice.created_at, 0)

        self.assertIsInstance((await self.users.get_user("zz")).error, NotFoundError)
        self.assertIsInstance((await self.users.create_user(User(id=""))).error, ValidationError)

        everyone = (await self.users.get_users()).unwrap()
        self.assertEqual([u.name for u in everyone], ["Albert", "Alice", "Bob"])

    async def test_search_users(self):
        hits = (await self.container.search_users(" Al ")).unwrap()
        self.assertEqual([u.name for u in hits], ["Albert", "Alice"])
        self.assertEqual((await self.container.search_users("")).unwrap(), [])

    async def test_update_profile_keeps_unset_fields(self):
        user = (await self.container.update_user_profile("u1", phone="555-0100")).unwrap()
        self.assertEqual(user.phone, "555-0100")
        self.assertEqual(user.name, "Alice")
        self.assertEqual(user.email, "u1@example.com")

        self.assertIsInstance(
            (await self.container.update_user_profile("u1", name=" ")).error, ValidationError
        )
        self.assertIsInstance(
            (await self.container.update_user_profile("u1", email="nope")).error, ValidationError
        )
        self.assertIsInstance(
            (await self.container.update_user_profile("zz", phone="1")).error, NotFoundError
        )

    async def test_favorites_and_blocks(self):
        await self.users.add_favorite("u1", "u2")
        user = (await self.users.add_favorite("u1", "u2")).unwrap()
        self.assertEqual(user.favorites, ["u2"])
        user = (await self.users.remove_favorite("u1", "u2")).unwrap()
        self.assertEqual(user.favorites, [])

        user = (await self.users.block_user("u1", "u3")).unwrap()
        self.assertEqual(user.blocked_users, ["u3"])
        self.assertIsInstance((await self.users.block_user("u1", "u1")).error, ValidationError)
        user = (await self.users.unblock_user("u1", "u3")).unwrap()
        self.assertEqual(user.blocked_users, [])

    async def test_admin_user_management(self):
        (await self.users.set_role("u2", UserRole.EMPLOYEE)).unwrap()
        employees = (await self.users.get_users_by_role(UserRole.EMPLOYEE)).unwrap()
        self.assertEqual([u.id for u in employees], ["u2"])

        self.assertFalse((await self.users.deactivate("u3")).unwrap().is_active)

        (await self.users.delete_user("u3")).unwrap()
        self.assertIsInstance((await self.users.delete_user("u3")).error, NotFoundError)

    async def test_watch_current_user_follows_sign_in(self):
        seen = []
        sub = await self.container.get_current_user(seen.append)
        buyer = await self.sign_up("zed@example.com", "secret1", "Zed")
        await self.users.update_profile(buyer.id, name="Zed Z")
        await self.container.auth.sign_out()
        sub.cancel()

        self.assertIsNone(seen[0])
        names = [u.name if u else None for u in seen]
        self.assertIn("Zed", names)
        self.assertIn("Zed Z", names)
        self.assertIsNone(seen[-1])

        self.assertIsNone((await self.users.get_current_user()).unwrap())
