import os
import tempfile
import unittest

from marketplace.container import AppContainer
from marketplace.db.database import Database
from marketplace.db.models import Address, PaymentMethod, PaymentType, Product
from marketplace.settings import Settings

ADMIN_EMAIL = "admin@example.com"


def sample_address() -> Address:
    return Address(
        street="1 Main St", city="Springfield", state="IL", country="USA", zip_code="62701"
    )


def sample_payment() -> PaymentMethod:
    return PaymentMethod(type=PaymentType.CASH)


class MarketplaceTestCase(unittest.IsolatedAsyncioTestCase):
    """
    Gives every test a container wired to a fresh sqlite file.
    """

    SEED = False
    SHIPPING = 0.0
    TAX = 0.0

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self.config = Settings(
            db_path=self.db_path,
            seed_catalog=self.SEED,
            shipping_fee=self.SHIPPING,
            flat_tax=self.TAX,
            recent_limit=3,
            admin_emails=(ADMIN_EMAIL,),
            debug=False,
        )
        self.container = AppContainer(self.config, Database(self.db_path, seed=self.SEED))

    def tearDown(self):
        self.temp_dir.cleanup()

    @property
    def store(self):
        return self.container.store

    async def make_product(self, **fields) -> Product:
        fields.setdefault("id", "")
        fields.setdefault("name", "Widget")
        fields.setdefault("price", 10.0)
        fields.setdefault("stock", 5)
        return (await self.container.products.add_product(Product(**fields))).unwrap()

    async def sign_up(self, email="buyer@example.com", password="secret1", name="Buyer"):
        return (await self.container.auth.sign_up(email, password, name)).unwrap()
