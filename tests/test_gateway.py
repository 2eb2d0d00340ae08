"""Tests for the request gateway — dispatch table and envelopes."""

from __future__ import annotations

import asyncio
import tempfile
import time
import unittest
from pathlib import Path

from mdnotes.db.article_repo import ArticleRepository
from mdnotes.db.database import Database
from mdnotes.errors import StatementError
from mdnotes.gateway import Envelope, ErrorKind, Gateway


class _SlowRepo(ArticleRepository):
    def list_all(self, *args, **kwargs):
        time.sleep(0.5)
        return []


class _SlowCreateRepo(ArticleRepository):
    def create(self, *args, **kwargs):
        time.sleep(0.3)
        return super().create(*args, **kwargs)


class _BrokenRepo(ArticleRepository):
    def list_tags(self):
        raise RuntimeError("disk on fire")

    def search(self, *args, **kwargs):
        raise StatementError("no such column: nope")


class TestEnvelope(unittest.TestCase):
    def test_ok_shape(self):
        self.assertEqual(Envelope.ok([1]).to_dict(), {"success": True, "data": [1]})

    def test_fail_shape(self):
        env = Envelope.fail(ErrorKind.NOT_FOUND, "Article not found: x")
        self.assertEqual(
            env.to_dict(),
            {"success": False, "error": "Article not found: x", "kind": "not_found"},
        )


class TestGateway(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db = Database(path=Path(self._tmp.name) / "notes.db", timeout=5)
        self.db.init()
        self.gw = Gateway.from_database(self.db)

    def tearDown(self):
        self.db.close()
        self._tmp.cleanup()

    def _ok(self, operation, payload=None):
        env = self.gw.dispatch(operation, payload)
        self.assertTrue(env.success, env.error)
        return env.data

    def _create(self, title="Doc", content=""):
        return self._ok("articles:create", {"title": title, "content": content})

    def test_catalogue(self):
        self.assertEqual(
            self.gw.operations(),
            [
                "articles:list", "articles:getByUuid", "articles:create",
                "articles:update", "articles:delete", "tags:list",
                "articles:addTag", "articles:removeTag", "articles:getTags",
                "articles:searchByTag", "articles:search",
            ],
        )

    def test_create_returns_wire_article(self):
        data = self._create("Doc", "# A")
        self.assertEqual(
            set(data),
            {"id", "uuid", "title", "content", "viewCount", "createdAt", "updatedAt"},
        )
        self.assertEqual(data["viewCount"], 0)

    def test_get_by_uuid_counts_views(self):
        uuid = self._create()["uuid"]
        self.assertEqual(self._ok("articles:getByUuid", uuid)["viewCount"], 0)
        self.assertEqual(self._ok("articles:getByUuid", uuid)["viewCount"], 1)

    def test_get_by_uuid_missing_is_null_success(self):
        self.assertIsNone(self._ok("articles:getByUuid", "no-such-uuid"))

    def test_list_defaults_and_options(self):
        for i in range(5):
            self._create(f"n{i}")
        self.assertEqual(len(self._ok("articles:list")), 5)
        self.assertEqual(len(self._ok("articles:list", {})), 5)
        page = self._ok("articles:list", {"limit": 2, "offset": 2})
        self.assertEqual(len(page), 2)
        titles = [a["title"] for a in self._ok("articles:list", {"sortBy": "title", "order": "ASC"})]
        self.assertEqual(titles, sorted(titles))

    def test_list_with_hostile_sort(self):
        self._create("a")
        hostile = self._ok("articles:list", {"sortBy": "'; DROP TABLE articles; --"})
        self.assertEqual(hostile, self._ok("articles:list"))

    def test_update_echoes(self):
        uuid = self._create()["uuid"]
        data = self._ok("articles:update", {"uuid": uuid, "title": "T", "content": "C"})
        self.assertEqual(data, {"uuid": uuid, "title": "T", "content": "C"})

    def test_delete_acks(self):
        uuid = self._create()["uuid"]
        env = self.gw.dispatch("articles:delete", uuid)
        self.assertEqual(env.to_dict(), {"success": True, "data": None})

    def test_tag_flow(self):
        uuid = self._create("Doc A", "# A")["uuid"]
        added = self._ok("articles:addTag", {"uuid": uuid, "tagName": "ops"})
        self.assertEqual(added["tagName"], "ops")
        self._ok("articles:addTag", {"uuid": uuid, "tagName": "ops"})
        self.assertEqual([t["name"] for t in self._ok("tags:list")], ["ops"])
        self.assertEqual([t["name"] for t in self._ok("articles:getTags", uuid)], ["ops"])

        found = self._ok("articles:searchByTag", {"tagName": "ops"})
        self.assertEqual([a["title"] for a in found], ["Doc A"])

        self._ok("articles:removeTag", {"uuid": uuid, "tagId": added["tagId"]})
        self.assertEqual(self._ok("articles:getTags", uuid), [])

        self._ok("articles:addTag", {"uuid": uuid, "tagName": "ops"})
        self._ok("articles:delete", uuid)
        self.assertEqual(self._ok("articles:searchByTag", {"tagName": "ops"}), [])
        env = self.gw.dispatch("articles:getTags", uuid)
        self.assertFalse(env.success)
        self.assertEqual(env.kind, ErrorKind.NOT_FOUND)

    def test_search(self):
        self._create("Hello World")
        self._create("Goodbye")
        found = self._ok("articles:search", {"keyword": "hello"})
        self.assertEqual([a["title"] for a in found], ["Hello World"])
        self.assertEqual(len(self._ok("articles:search", {"keyword": ""})), 2)

    def test_search_with_numeric_keyword(self):
        self._create("Room 123")
        self._create("Lobby")
        found = self._ok("articles:search", {"keyword": 123})
        self.assertEqual([a["title"] for a in found], ["Room 123"])

    def test_null_tag_name_is_validation_failure(self):
        uuid = self._create()["uuid"]
        for tag_name in (None, 7, ["ops"]):
            with self.subTest(tag_name=tag_name):
                env = self.gw.dispatch("articles:addTag", {"uuid": uuid, "tagName": tag_name})
                self.assertEqual(env.kind, ErrorKind.VALIDATION)
        self.assertEqual(self._ok("tags:list"), [])

    def test_not_found_is_failure_envelope(self):
        env = self.gw.dispatch("articles:addTag", {"uuid": "nope", "tagName": "x"})
        self.assertFalse(env.success)
        self.assertEqual(env.kind, ErrorKind.NOT_FOUND)
        self.assertTrue(env.error)

        env = self.gw.dispatch("articles:removeTag", {"uuid": "nope", "tagId": 1})
        self.assertEqual(env.kind, ErrorKind.NOT_FOUND)

    def test_missing_fields_are_validation_failures(self):
        cases = [
            ("articles:create", {"content": "no title"}),
            ("articles:create", "not an object"),
            ("articles:update", {"uuid": "x", "title": "t"}),
            ("articles:addTag", {"uuid": "x"}),
            ("articles:removeTag", {"tagId": 1}),
            ("articles:searchByTag", {}),
            ("articles:getByUuid", None),
            ("articles:delete", {"uuid": "x"}),
        ]
        for operation, payload in cases:
            with self.subTest(operation=operation, payload=payload):
                env = self.gw.dispatch(operation, payload)
                self.assertFalse(env.success)
                self.assertEqual(env.kind, ErrorKind.VALIDATION)

    def test_statement_error_is_failure_envelope(self):
        env = self.gw.dispatch("articles:list", {"limit": "lots"})
        self.assertFalse(env.success)
        self.assertEqual(env.kind, ErrorKind.STATEMENT)

    def test_unknown_operation(self):
        env = self.gw.dispatch("articles:explode", {})
        self.assertFalse(env.success)
        self.assertEqual(env.kind, ErrorKind.UNKNOWN_OPERATION)

    def test_unexpected_error_is_internal_and_opaque(self):
        gw = Gateway(_BrokenRepo(self.db))
        env = gw.dispatch("tags:list")
        self.assertFalse(env.success)
        self.assertEqual(env.kind, ErrorKind.INTERNAL)
        self.assertNotIn("disk on fire", env.error)

        env = gw.dispatch("articles:search", {"keyword": "x"})
        self.assertEqual(env.kind, ErrorKind.STATEMENT)


class TestGatewayInvoke(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db = Database(path=Path(self._tmp.name) / "notes.db", timeout=5)
        self.db.init()

    def tearDown(self):
        self.db.close()
        self._tmp.cleanup()

    def test_invoke_returns_envelope(self):
        gw = Gateway.from_database(self.db)
        env = asyncio.run(gw.invoke("articles:create", {"title": "Async", "content": ""}))
        self.assertTrue(env.success)
        self.assertEqual(env.data["title"], "Async")

    def test_invoke_times_out(self):
        gw = Gateway(_SlowRepo(self.db), timeout=0.05)
        env = asyncio.run(gw.invoke("articles:list", {}))
        self.assertFalse(env.success)
        self.assertEqual(env.kind, ErrorKind.TIMEOUT)

    def test_timed_out_write_is_rolled_back(self):
        gw = Gateway(_SlowCreateRepo(self.db), timeout=0.05)
        env = asyncio.run(gw.invoke("articles:create", {"title": "Late"}))
        self.assertEqual(env.kind, ErrorKind.TIMEOUT)
        self.assertIn("no changes were saved", env.error)
        self.assertEqual(ArticleRepository(self.db).count(), 0)

    def test_store_usable_after_timeout(self):
        asyncio.run(Gateway(_SlowCreateRepo(self.db), timeout=0.05).invoke(
            "articles:create", {"title": "Late"}
        ))
        env = asyncio.run(Gateway.from_database(self.db).invoke("articles:create", {"title": "On time"}))
        self.assertTrue(env.success, env.error)
        self.assertEqual([a.title for a in ArticleRepository(self.db).list_all()], ["On time"])


if __name__ == "__main__":
    unittest.main()
