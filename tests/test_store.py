from marketplace.errors import ConflictError, ValidationError
from tests.support import MarketplaceTestCase


class StoreTestCase(MarketplaceTestCase):
    # ---------- Documents ----------

    async def test_set_get_and_versions(self):
        ref = self.store.collection("things").document("a")
        self.assertFalse((await ref.get()).exists)

        first = await ref.set({"n": 1})
        second = await ref.set({"n": 2})
        self.assertEqual(first.version, 1)
        self.assertEqual(second.version, 2)

        snap = await ref.get()
        self.assertEqual(snap.data, {"n": 2})
        self.assertEqual(snap.version, 2)

    async def test_expected_version_conflict_writes_nothing(self):
        ref = self.store.collection("things").document("a")
        await ref.set({"n": 1}, expected_version=0)

        with self.assertRaises(ConflictError):
            await ref.set({"n": 99}, expected_version=0)
        with self.assertRaises(ConflictError):
            await ref.set({"n": 99}, expected_version=5)

        await ref.set({"n": 2}, expected_version=1)
        self.assertEqual((await ref.get()).data, {"n": 2})

    async def test_update_is_read_modify_write(self):
        ref = self.store.collection("counters").document("c")
        await ref.update(lambda data: {"n": (data or {"n": 0})["n"] + 1})
        await ref.update(lambda data: {"n": data["n"] + 1})
        self.assertEqual((await ref.get()).data, {"n": 2})

        # returning None leaves the document alone
        snap = await ref.update(lambda data: None)
        self.assertEqual(snap.version, 2)

    async def test_update_mutator_error_aborts(self):
        ref = self.store.collection("counters").document("c")
        await ref.set({"n": 1})

        def explode(data):
            raise ValidationError("nope")

        with self.assertRaises(ValidationError):
            await ref.update(explode)
        snap = await ref.get()
        self.assertEqual(snap.data, {"n": 1})
        self.assertEqual(snap.version, 1)

    async def test_delete(self):
        things = self.store.collection("things")
        await things.document("a").set({"n": 1})
        self.assertTrue(await things.document("a").delete())
        self.assertFalse(await things.document("a").delete())

    async def test_add_generates_ids(self):
        things = self.store.collection("things")
        a = await things.add({"n": 1})
        b = await things.add({"n": 2})
        self.assertNotEqual(a.id, b.id)
        self.assertEqual(len(await things.get()), 2)

    async def test_invalid_query_rejected(self):
        with self.assertRaises(ValueError):
            self.store.collection("things").where("bad field", "==", 1)
        with self.assertRaises(ValueError):
            self.store.collection("things").where("n", "~", 1)

    # ---------- Queries ----------

    async def _fill(self):
        things = self.store.collection("things")
        for doc_id, name, price, tag in [
            ("1", "apple", 3.0, "fruit"),
            ("2", "apricot", 8.0, "fruit"),
            ("3", "banana", 1.5, "fruit"),
            ("4", "bread", 4.0, "bakery"),
        ]:
            await things.document(doc_id).set(
                {"name": name, "price": price, "meta": {"tag": tag}}
            )
        return things

    async def test_where_order_and_limit(self):
        things = await self._fill()

        cheap_first = await things.where("price", ">=", 2.0).order_by("price").get()
        self.assertEqual([s.data["name"] for s in cheap_first], ["apple", "bread", "apricot"])

        top = await things.order_by("price", descending=True).limit(2).get()
        self.assertEqual([s.id for s in top], ["2", "4"])

        fruit = await things.where("meta.tag", "==", "fruit").get()
        self.assertEqual({s.id for s in fruit}, {"1", "2", "3"})

    async def test_starts_with(self):
        things = await self._fill()
        hits = await things.starts_with("name", "ap").get()
        self.assertEqual([s.data["name"] for s in hits], ["apple", "apricot"])
        self.assertEqual(await things.starts_with("name", "zz").get(), [])

    # ---------- Listeners ----------

    async def test_listener_delivers_initial_and_changes_only(self):
        things = self.store.collection("things")
        await things.document("a").set({"kind": "x"})
        seen = []

        sub = await things.where("kind", "==", "x").listen(seen.append)
        self.assertEqual(len(seen), 1)
        self.assertEqual([s.id for s in seen[0]], ["a"])

        await things.document("b").set({"kind": "x"})
        self.assertEqual(len(seen), 2)
        self.assertEqual([s.id for s in seen[1]], ["a", "b"])

        # writes that do not change the result are not delivered
        await things.document("c").set({"kind": "y"})
        await self.store.collection("other").document("a").set({"kind": "x"})
        self.assertEqual(len(seen), 2)

        sub.cancel()
        await things.document("d").set({"kind": "x"})
        self.assertEqual(len(seen), 2)

    async def test_cancel_exactly_once(self):
        things = self.store.collection("things")
        sub = await things.listen(lambda _: None)
        other = await things.document("a").listen(lambda _: None)
        self.assertEqual(self.store.listener_count("things"), 2)

        self.assertTrue(sub.cancel())
        self.assertFalse(sub.cancel())
        self.assertEqual(self.store.listener_count("things"), 1)

        with other:
            pass
        self.assertEqual(self.store.listener_count(), 0)
        self.assertFalse(other.active)

    async def test_document_listener_sees_missing_then_created(self):
        ref = self.store.collection("things").document("a")
        seen = []
        sub = await ref.listen(seen.append)
        await ref.set({"n": 1})
        await ref.delete()
        sub.cancel()

        self.assertEqual([s.exists for s in seen], [False, True, False])

    async def test_failing_callback_does_not_break_writer(self):
        things = self.store.collection("things")
        calls = []

        def callback(snaps):
            calls.append(len(snaps))
            if len(calls) > 1:
                raise RuntimeError("observer bug")

        sub = await things.listen(callback)
        await things.document("a").set({"n": 1})
        self.assertEqual((await things.document("a").get()).data, {"n": 1})
        self.assertEqual(calls, [0, 1])
        sub.cancel()

    async def test_async_callbacks_are_awaited(self):
        things = self.store.collection("things")
        seen = []

        async def callback(snaps):
            seen.append([s.id for s in snaps])

        sub = await things.listen(callback)
        await things.document("a").set({})
        self.assertEqual(seen, [[], ["a"]])
        sub.cancel()

    async def test_stream_releases_listener_when_closed(self):
        ref = self.store.collection("things").document("a")
        stream = ref.stream()

        first = await anext(stream)
        self.assertFalse(first.exists)
        await ref.set({"n": 1})
        second = await anext(stream)
        self.assertEqual(second.data, {"n": 1})

        await stream.aclose()
        self.assertEqual(self.store.listener_count("things"), 0)
