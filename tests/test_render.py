# Tests for HTML rendering
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import unittest

from wikitextengine import Parser, ParserOptions, Title
from wikitextengine.render import do_block_levels, do_quotes


class RenderTests(unittest.TestCase):
    def setUp(self):
        self.parser = Parser(quiet=True)
        self.title = Title.new_from_text("Test")

    def parse(self, text, options=None):
        return self.parser.parse(text, self.title, options)

    def html(self, text, options=None):
        return self.parse(text, options).text

    def test_quotes(self):
        self.assertEqual(do_quotes("''a'' '''b'''"), "<i>a</i> <b>b</b>")
        self.assertEqual(do_quotes("'''''x'''''"), "<i><b>x</b></i>")
        self.assertEqual(do_quotes("'''''x'' y'''"), "<b><i>x</i> y</b>")
        self.assertEqual(do_quotes("''a"), "<i>a</i>")
        self.assertEqual(do_quotes("no quotes"), "no quotes")

    def test_quotes_apostrophe(self):
        self.assertEqual(do_quotes("l'''amour''"), "l'<i>amour</i>")
        self.assertEqual(do_quotes("''''b'''"), "'<b>b</b>")

    def test_block_levels(self):
        self.assertEqual(do_block_levels(""), "")
        self.assertEqual(do_block_levels("a\n"), "<p>a\n</p>")
        self.assertEqual(
            do_block_levels("<div>x</div>\ny"), "<div>x</div>\n<p>y\n</p>"
        )

    def test_paragraphs(self):
        self.assertEqual(self.html("a\nb\n\nc"), "<p>a\nb\n</p>\n<p>c\n</p>")

    def test_heading(self):
        self.assertEqual(
            self.html("== A b ==\ntext"),
            '<h2><span class="mw-headline" id="A_b">A b</span></h2>\n'
            "<p>text\n</p>",
        )

    def test_heading_with_comment(self):
        self.assertEqual(
            self.html("== A b == <!-- c -->\ntext"),
            '<h2><span class="mw-headline" id="A_b">A b</span></h2>\n'
            "<p>text\n</p>",
        )

    def test_heading_long_marks(self):
        html = self.html("=======X=======")
        self.assertTrue(html.startswith("<h6>"), html)
        self.assertIn(">=X=</span></h6>", html)

    def test_hr(self):
        self.assertEqual(self.html("----"), "<hr />\n")

    def test_internal_links(self):
        self.assertEqual(
            self.html("[[Foo bar|baz]]"),
            '<p><a href="/wiki/Foo_bar" title="Foo bar">baz</a>\n</p>',
        )
        self.assertEqual(
            self.html("[[foo]]"),
            '<p><a href="/wiki/Foo" title="Foo">foo</a>\n</p>',
        )
        self.assertEqual(
            self.html("[[Foo#Sec one]]"),
            '<p><a href="/wiki/Foo#Sec_one" title="Foo">Foo#Sec one</a>\n</p>',
        )

    def test_invalid_link_kept(self):
        self.assertEqual(self.html("[[a<b]]"), "<p>[[a<b]]\n</p>")

    def test_category(self):
        out = self.parse("[[Category:Some cat|Key]]x[[category:Other]]")
        self.assertEqual(out.text, "<p>x\n</p>")
        self.assertEqual(out.categories, {"Some_cat": "Key", "Other": ""})
        self.assertEqual(out.category_links, ["Some_cat", "Other"])

    def test_colon_category_link(self):
        out = self.parse("[[:Category:Foo]]")
        self.assertEqual(
            out.text,
            '<p><a href="/wiki/Category:Foo" title="Category:Foo">'
            "Category:Foo</a>\n</p>",
        )
        self.assertEqual(out.category_links, [])

    def test_external_links(self):
        self.assertEqual(
            self.html("[http://example.com Example]"),
            '<p><a rel="nofollow" class="external text" '
            'href="http://example.com">Example</a>\n</p>',
        )
        self.assertEqual(
            self.html("[http://a.org] [http://b.org]"),
            '<p><a rel="nofollow" class="external autonumber" '
            'href="http://a.org">[1]</a> '
            '<a rel="nofollow" class="external autonumber" '
            'href="http://b.org">[2]</a>\n</p>',
        )

    def test_behavior_switches(self):
        out = self.parse("a __NOTOC__ b__noeditsection__")
        self.assertEqual(out.text, "<p>a  b\n</p>")
        self.assertEqual(out.properties, {"notoc": "", "noeditsection": ""})

    def test_case_sensitive_switch(self):
        out = self.parse("__noindex__")
        self.assertEqual(out.text, "<p>__noindex__\n</p>")
        self.assertEqual(out.properties, {})

    def test_nowiki(self):
        self.assertEqual(
            self.html("<nowiki>''x''</nowiki>"),
            "<p>&apos;&apos;x&apos;&apos;\n</p>",
        )

    def test_comments_removed(self):
        self.assertEqual(self.html("a<!-- c -->b"), "<p>ab\n</p>")

    def test_broken_file(self):
        out = self.parse("[[File:Missing.png]]")
        self.assertEqual(
            out.text,
            '<p><a href="/wiki/Special:Upload?wpDestFile=Missing.png" '
            'class="new" title="File:Missing.png">File:Missing.png</a>\n</p>',
        )
        self.assertEqual(out.category_links, ["Pages_with_broken_file_links"])

    def test_existing_file(self):
        options = ParserOptions(file_exists_fn=lambda title: True)
        out = self.parse("[[File:A.png|thumb|Cap]]", options)
        self.assertEqual(
            out.text,
            '<p><a href="/wiki/File:A.png" class="image" title="Cap">'
            '<img alt="Cap" src="/wiki/Special:FilePath/A.png" /></a>\n</p>',
        )
        self.assertEqual(out.category_links, [])

    def test_media_link(self):
        out = self.parse("[[Media:Missing.png]]")
        self.assertIn('title="File:Missing.png"', out.text)

    def test_tracking_category_message(self):
        options = ParserOptions(
            message_fn=lambda key: "Broken"
            if key == "broken-file-category"
            else None
        )
        out = self.parse("[[File:Missing.png]]", options)
        self.assertEqual(out.category_links, ["Broken"])

    def test_tracking_category_disabled(self):
        options = ParserOptions(message_fn=lambda key: "-")
        out = self.parse("[[File:Missing.png]]", options)
        self.assertEqual(out.category_links, [])
        self.assertEqual(out.tracking_categories, [])
        self.assertIn('class="new"', out.text)

    def test_article_path(self):
        options = ParserOptions(article_path="/w/index.php?title=$1")
        self.assertEqual(
            self.html("[[Foo]]", options),
            '<p><a href="/w/index.php?title=Foo" title="Foo">Foo</a>\n</p>',
        )
