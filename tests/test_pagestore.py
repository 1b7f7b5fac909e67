# Tests for the SQLite page store
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextengine import PageStore, Parser, Title


class PageStoreTests(unittest.TestCase):
    def setUp(self):
        self.store = PageStore()
        self.parser = Parser(page_store=self.store, quiet=True)
        self.title = Title.new_from_text("Test")

    def tearDown(self):
        self.store.close()

    def test_add_and_get(self):
        self.store.add_page("Template:Foo", "F")
        page = self.store.get_page(Title.new_from_text("Template:Foo"))
        self.assertEqual(page.title, "Foo")
        self.assertEqual(page.namespace_id, 10)
        self.assertEqual(page.body, "F")
        self.assertIsNone(page.redirect_to)
        self.assertIsNone(self.store.get_page(Title.new_from_text("Foo")))

    def test_namespace_argument(self):
        self.store.add_page("Foo", "F", namespace_id=10)
        self.assertTrue(self.store.page_exists("Template:Foo"))
        self.assertTrue(self.store.page_exists("Foo", 10))
        self.assertFalse(self.store.page_exists("Foo"))

    def test_overwrite(self):
        title = Title.new_from_text("Foo")
        self.store.add_page("Foo", "a")
        self.assertEqual(self.store.get_page(title).body, "a")
        self.store.add_page("Foo", "b")
        self.assertEqual(self.store.get_page(title).body, "b")

    def test_invalid_title(self):
        with self.assertRaises(ValueError):
            self.store.add_page("a[b", "x")

    def test_resolve_redirect(self):
        self.store.add_page("Foo", "target")
        self.store.add_page("R", redirect_to="Foo")
        r = Title.new_from_text("R")
        self.assertEqual(self.store.get_page(r).redirect_to, "Foo")
        self.assertEqual(self.store.get_page(r, True).body, "target")

    def test_parser_default_source(self):
        self.store.add_page("Template:Foo", "F")
        self.assertEqual(self.parser.preprocess("a{{foo}}", self.title), "aF")
        out = self.parser.parse("{{Foo}}", self.title)
        self.assertEqual(out.text, "<p>F\n</p>")
        self.assertEqual(
            [t.full_text for t in out.templates], ["Template:Foo"]
        )

    def test_redirect_dependencies(self):
        self.store.add_page("Template:Old", redirect_to="New")
        self.store.add_page("Template:New", "N")
        out = self.parser.parse("{{Old}}", self.title)
        self.assertEqual(out.text, "<p>N\n</p>")
        self.assertEqual(
            [t.full_text for t in out.templates],
            ["Template:Old", "Template:New"],
        )

    def test_redirect_to_missing(self):
        self.store.add_page("Template:Old", redirect_to="Template:Gone")
        self.assertEqual(
            self.parser.preprocess("{{Old}}", self.title),
            "[[:Template:Old]]",
        )
        out = self.parser.parse("{{Old}}", self.title)
        self.assertEqual(
            [t.full_text for t in out.templates],
            ["Template:Old", "Template:Gone"],
        )

    def test_file_exists(self):
        self.store.add_page("File:A.png", "description")
        for text, exists in (
            ("File:A.png", True),
            ("Media:A.png", True),
            ("Template:A.png", False),
            ("File:B.png", False),
        ):
            with self.subTest(text=text):
                title = Title.new_from_text(text)
                self.assertEqual(self.store.file_exists(title), exists)
        out = self.parser.parse("[[File:A.png]] [[File:B.png]]", self.title)
        self.assertIn('class="image"', out.text)
        self.assertIn('class="new"', out.text)
        self.assertEqual(out.category_links, ["Pages_with_broken_file_links"])
