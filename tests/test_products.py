from marketplace.db.models import Brand, Category, Product
from marketplace.db.products import ProductFilter, ProductSort
from marketplace.errors import NotFoundError, ValidationError
from tests.support import MarketplaceTestCase


class ProductTestCase(MarketplaceTestCase):
    @property
    def products(self):
        return self.container.products

    async def _catalog(self):
        specs = [
            ("Mouse", 25.0, 20.0, "input", "acme", 4.1, 1000),
            ("Monitor", 200.0, 0.0, "display", "acme", 4.7, 2000),
            ("Keyboard", 90.0, 0.0, "input", "nimbus", 4.8, 3000),
            ("Mousepad", 8.0, 0.0, "input", "nimbus", 3.2, 4000),
        ]
        made = {}
        for name, price, discount, category, brand, rating, created in specs:
            made[name] = await self.make_product(
                name=name,
                price=price,
                discount_price=discount,
                category=category,
                brand=brand,
                rating=rating,
                created_at=created,
            )
        return made

    # ---------- Writes ----------

    async def test_add_assigns_id_and_validates(self):
        product = await self.make_product(name="Lamp")
        self.assertTrue(product.id)
        self.assertGreater(product.created_at, 0)
        self.assertEqual((await self.products.get_product(product.id)).unwrap(), product)

        for bad in (
            Product(id="", name="  "),
            Product(id="", name="X", price=-1.0),
            Product(id="", name="X", stock=-1),
            Product(id="", name="X", discount_price=-2.0),
        ):
            self.assertIsInstance((await self.products.add_product(bad)).error, ValidationError)

    async def test_update_patch_and_delete(self):
        product = await self.make_product(name="Lamp", price=10.0, stock=2)

        patched = (await self.container.update_product(product.id, price=12.0, stock=7)).unwrap()
        self.assertEqual((patched.price, patched.stock, patched.name), (12.0, 7, "Lamp"))

        self.assertIsInstance(
            (await self.container.update_product(product.id, colour="red")).error, ValidationError
        )
        self.assertIsInstance(
            (await self.container.update_product(product.id, stock=-3)).error, ValidationError
        )
        self.assertIsInstance(
            (await self.container.update_product("missing", stock=1)).error, NotFoundError
        )

        renamed = Product(id=product.id, name="Desk Lamp", price=15.0)
        self.assertEqual((await self.products.update_product(renamed)).unwrap(), renamed)

        (await self.products.delete_product(product.id)).unwrap()
        self.assertIsInstance((await self.products.get_product(product.id)).error, NotFoundError)
        self.assertIsInstance((await self.products.delete_product(product.id)).error, NotFoundError)

    # ---------- Reads ----------

    async def test_listing_queries(self):
        await self._catalog()

        newest = (await self.products.get_products()).unwrap()
        self.assertEqual([p.name for p in newest], ["Mousepad", "Keyboard", "Monitor", "Mouse"])

        by_category = (await self.products.get_products_by_category("input")).unwrap()
        self.assertEqual({p.name for p in by_category}, {"Mouse", "Keyboard", "Mousepad"})
        by_brand = (await self.products.get_products_by_brand("acme")).unwrap()
        self.assertEqual({p.name for p in by_brand}, {"Mouse", "Monitor"})

        featured = (await self.products.get_featured_products(2)).unwrap()
        self.assertEqual([p.name for p in featured], ["Keyboard", "Monitor"])
        recent = (await self.products.get_recent_products(1)).unwrap()
        self.assertEqual([p.name for p in recent], ["Mousepad"])

    async def test_search_by_name_prefix(self):
        await self._catalog()
        hits = (await self.products.search_products("Mo")).unwrap()
        self.assertEqual([p.name for p in hits], ["Monitor", "Mouse", "Mousepad"])
        self.assertEqual((await self.products.search_products("")).unwrap(), [])

    async def test_filtered_products(self):
        await self._catalog()

        def names(result):
            return [p.name for p in result.unwrap()]

        # discounted Mouse counts at 20.0
        cheap = await self.container.get_products(
            ProductFilter(max_price=20.0, sort=ProductSort.PRICE_ASC)
        )
        self.assertEqual(names(cheap), ["Mousepad", "Mouse"])

        result = await self.container.get_products(
            ProductFilter(query="Mouse", category="input", sort=ProductSort.PRICE_DESC)
        )
        self.assertEqual(names(result), ["Mouse", "Mousepad"])

        result = await self.container.get_products(
            ProductFilter(min_price=50.0, sort=ProductSort.NEWEST)
        )
        self.assertEqual(names(result), ["Keyboard", "Monitor"])

        result = await self.container.get_products(ProductFilter(brand="nimbus"))
        self.assertEqual(names(result), ["Keyboard", "Mousepad"])

    async def test_filtered_listing_updates_live(self):
        seen = []
        sub = await self.container.get_products.watch(ProductFilter(category="input"), seen.append)
        await self.make_product(name="Trackball", category="input")
        await self.make_product(name="Speaker", category="audio")
        sub.cancel()

        self.assertEqual([[p.name for p in batch] for batch in seen], [[], ["Trackball"]])

    async def test_unavailable_products_filtered_out(self):
        made = await self._catalog()
        await self.container.update_product(made["Monitor"].id, is_available=False)
        result = await self.products.get_filtered_products(ProductFilter(available_only=True))
        self.assertNotIn("Monitor", [p.name for p in result.unwrap()])

    # ---------- Categories & brands ----------

    async def test_categories_and_brands(self):
        audio = (await self.products.add_category(Category(id="", name="Audio"))).unwrap()
        await self.products.add_category(Category(id="cables", name="Cables"))
        self.assertIsInstance(
            (await self.products.add_category(Category(id="", name=" "))).error, ValidationError
        )

        names = [c.name for c in (await self.products.get_categories()).unwrap()]
        self.assertEqual(names, ["Audio", "Cables"])

        renamed = Category(id=audio.id, name="Sound")
        (await self.products.update_category(renamed)).unwrap()
        self.assertEqual((await self.products.get_category(audio.id)).unwrap().name, "Sound")
        self.assertIsInstance(
            (await self.products.update_category(Category(id="nope", name="X"))).error,
            NotFoundError,
        )

        (await self.products.delete_category("cables")).unwrap()
        self.assertIsInstance((await self.products.get_category("cables")).error, NotFoundError)

        acme = (await self.products.add_brand(Brand(id="", name="Acme"))).unwrap()
        seen = []
        sub = await self.products.watch_brands(seen.append)
        (await self.products.delete_brand(acme.id)).unwrap()
        sub.cancel()
        self.assertEqual([[b.name for b in batch] for batch in seen], [["Acme"], []])
