# Tests for template expansion
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import datetime
import unittest

from wikitextengine import (
    Parser,
    ParserOptions,
    TemplateFetchError,
    TemplateFetchResult,
    Title,
)


class ExpanderTests(unittest.TestCase):
    def setUp(self):
        self.templates = {
            "Template:Greet": "Hello {{{1}}} and {{{name|nobody}}}",
            "Template:Foo": "F",
            "Template:Outer": "[{{Inner|{{{1}}}}}]",
            "Template:Inner": "<{{{1}}}>",
            "Template:Echo": "[{{{1}}}]",
        }
        self.calls = []
        self.options = ParserOptions(
            template_callback=self.fetch,
            timestamp=datetime.datetime(
                2023, 5, 6, 7, 8, 9, tzinfo=datetime.timezone.utc
            ),
        )
        self.parser = Parser(self.options)
        self.title = Title.new_from_text("Tt")

    def fetch(self, title, parser):
        self.assertIs(parser, self.parser)
        self.calls.append(title.full_text)
        body = self.templates.get(title.full_text)
        if body is None:
            return None
        return TemplateFetchResult(body, title)

    def preprocess(self, text, options=None):
        return self.parser.preprocess(text, self.title, options)

    def pst(self, text, options=None):
        return self.parser.pre_save_transform(text, self.title, None, options)

    def test_arguments(self):
        self.assertEqual(
            self.preprocess("{{Greet|World}}"), "Hello World and nobody"
        )
        self.assertEqual(
            self.preprocess("{{Greet|World|name = Bob }}"),
            "Hello World and Bob",
        )

    def test_positional_whitespace_kept(self):
        self.assertEqual(
            self.preprocess("{{Greet| World }}"), "Hello  World  and nobody"
        )

    def test_named_overrides_positional(self):
        self.assertEqual(
            self.preprocess("{{Greet|a|1=b}}"), "Hello b and nobody"
        )

    def test_missing_argument(self):
        self.assertEqual(
            self.preprocess("{{Greet}}"), "Hello {{{1}}} and nobody"
        )

    def test_nested(self):
        self.assertEqual(self.preprocess("{{Outer|x}}"), "[<x>]")

    def test_pipe_in_link_argument(self):
        self.assertEqual(
            self.preprocess("{{Echo|[[Page|label]]}}"), "[[[Page|label]]]"
        )
        self.assertEqual(
            self.preprocess("{{Greet|[[A|b]]|name=[[C|d=e]]}}"),
            "Hello [[A|b]] and [[C|d=e]]",
        )
        self.assertEqual(
            self.pst("{{subst:Echo|[[Page|label]]}}"), "[[[Page|label]]]"
        )

    def test_argument_default_from_caller(self):
        self.templates["Template:P"] = "{{Greet|{{{1|zz}}}}}"
        self.assertEqual(self.preprocess("{{P}}"), "Hello zz and nobody")
        self.assertEqual(self.preprocess("{{P|yy}}"), "Hello yy and nobody")

    def test_missing_template(self):
        self.assertEqual(self.preprocess("{{Nope}}"), "[[:Template:Nope]]")
        self.assertEqual(
            self.preprocess("a {{Nope}} b"), "a [[:Template:Nope]] b"
        )

    def test_missing_template_fn(self):
        options = self.options.copy(
            missing_template_fn=lambda t: "MISSING " + t.text
        )
        self.assertEqual(self.preprocess("{{Nope}}", options), "MISSING Nope")

    def test_main_namespace_transclusion(self):
        self.templates["Main page"] = "main"
        self.assertEqual(self.preprocess("{{:Main page}}"), "main")

    def test_other_namespace_transclusion(self):
        self.templates["Help:Page"] = "help"
        self.assertEqual(self.preprocess("{{Help:Page}}"), "help")

    def test_fetched_once(self):
        self.assertEqual(self.preprocess("{{Foo}}{{Foo}}{{ foo }}"), "FFF")
        self.assertEqual(self.calls, ["Template:Foo"])

    def test_missing_fetched_once(self):
        self.preprocess("{{Nope}}{{Nope}}")
        self.assertEqual(self.calls, ["Template:Nope"])

    def test_dependencies(self):
        out = self.parser.parse("{{Foo}}{{Greet|x}}{{Foo}}{{Nope}}", self.title)
        self.assertEqual(
            [t.full_text for t in out.templates],
            ["Template:Foo", "Template:Greet"],
        )

    def test_dependencies_from_callback(self):
        real = Title.new_from_text("Template:Real")
        dep = Title.new_from_text("Template:Dep")

        def fetch(title, parser):
            return TemplateFetchResult("r", real, [dep])

        options = self.options.copy(template_callback=fetch)
        out = self.parser.parse("{{Alias}}", self.title, options)
        self.assertEqual(
            [t.full_text for t in out.templates],
            ["Template:Alias", "Template:Real", "Template:Dep"],
        )

    def test_partial_result(self):
        def fetch(title, parser):
            return TemplateFetchResult(None, title)

        options = self.options.copy(template_callback=fetch)
        out = self.parser.parse("{{Gone}}", self.title, options)
        self.assertIn("Template:Gone", out.text)
        self.assertEqual(
            [t.full_text for t in out.templates], ["Template:Gone"]
        )

    def test_fetch_error(self):
        def fetch(title, parser):
            raise TemplateFetchError("database unavailable")

        options = self.options.copy(template_callback=fetch)
        out = self.parser.parse("{{Foo}}", self.title, options)
        self.assertIn('title="Template:Foo"', out.text)
        self.assertEqual(len(out.warnings), 1)
        self.assertIn("database unavailable", out.warnings[0]["msg"])
        self.assertEqual(out.templates, [])

    def test_other_callback_errors_propagate(self):
        def fetch(title, parser):
            raise KeyError(title.full_text)

        options = self.options.copy(template_callback=fetch)
        with self.assertRaises(KeyError):
            self.preprocess("{{Foo}}", options)

    def test_template_loop(self):
        self.templates["Template:Loop"] = "a{{Loop}}"
        out = self.parser.parse("{{Loop}} after", self.title)
        self.assertIn(
            '<strong class="error">Template loop detected: ', out.text
        )
        self.assertTrue(out.text.endswith(" after\n</p>"))
        self.assertEqual(out.tracking_categories, ["template-loop-category"])
        self.assertEqual(out.category_links, ["Pages_with_template_loops"])
        self.assertEqual(len(out.errors), 1)
        self.assertEqual(
            out.errors[0]["path"], ("Tt", "Template:Loop")
        )

    def test_template_loop_preprocess(self):
        self.templates["Template:Loop"] = "a{{Loop}}"
        self.assertEqual(
            self.preprocess("{{Loop}}"),
            'a<strong class="error">Template loop detected: '
            "[[:Template:Loop]]</strong>",
        )

    def test_mutual_loop(self):
        self.templates["Template:A"] = "a{{B}}"
        self.templates["Template:B"] = "b{{A}}"
        self.assertEqual(
            self.preprocess("{{A}}"),
            'ab<strong class="error">Template loop detected: '
            "[[:Template:A]]</strong>",
        )

    def test_same_template_twice_is_not_a_loop(self):
        self.templates["Template:Two"] = "{{Foo}}{{Foo}}"
        self.assertEqual(self.preprocess("{{Two}}"), "FF")

    def test_template_depth(self):
        for i in range(10):
            self.templates["Template:L{}".format(i)] = "{{{{L{}}}}}".format(
                i + 1
            )
        self.templates["Template:L10"] = "end"
        options = self.options.copy(max_template_depth=5)
        out = self.parser.parse("{{L0}}", self.title, options)
        self.assertIn(
            '<strong class="error">Template recursion depth limit exceeded '
            "(5)</strong>",
            out.text,
        )
        self.assertEqual(
            out.tracking_categories, ["expansion-depth-exceeded-category"]
        )
        self.assertEqual(self.preprocess("{{L0}}"), "end")

    def test_subst_outside_pst(self):
        self.assertEqual(self.preprocess("{{subst:Foo}}"), "{{subst:Foo}}")
        self.assertEqual(self.calls, [])

    def test_safesubst_transcludes(self):
        self.assertEqual(self.preprocess("{{safesubst:Foo}}"), "F")

    def test_pst_subst(self):
        self.assertEqual(
            self.pst("{{subst:Greet|A}} {{Greet|B}}"),
            "Hello A and nobody {{Greet|B}}",
        )

    def test_pst_safesubst(self):
        self.assertEqual(self.pst("{{safesubst:Foo}}"), "F")

    def test_pst_subst_does_not_expand_body(self):
        self.templates["Template:Wrap"] = "<{{Greet|{{{1}}}}}>"
        self.assertEqual(self.pst("{{subst:Wrap|x}}"), "<{{Greet|x}}>")
        self.assertEqual(self.calls, ["Template:Wrap"])

    def test_pst_subst_missing(self):
        self.assertEqual(self.pst("{{subst:Nope}}"), "{{subst:Nope}}")

    def test_pst_subst_keeps_noinclude_out(self):
        self.templates["Template:Doc"] = (
            "body<noinclude>[[Category:T]]</noinclude>"
        )
        self.assertEqual(self.pst("{{subst:Doc}}"), "body")

    def test_pst_keeps_other_markup(self):
        text = "a<!-- c -->{{{1|x}}}<nowiki>{{subst:Foo}}</nowiki>"
        self.assertEqual(self.pst(text), text)

    def test_comments(self):
        self.assertEqual(self.preprocess("a<!-- c -->b"), "a<!-- c -->b")
        self.templates["Template:C"] = "x<!-- hidden -->y"
        self.assertEqual(self.preprocess("{{C}}"), "xy")

    def test_inclusion_tags_in_template(self):
        self.templates["Template:T"] = (
            "<noinclude>doc</noinclude>body<includeonly> inc</includeonly>"
        )
        self.assertEqual(self.preprocess("{{T}}"), "body inc")

    def test_onlyinclude_in_template(self):
        self.templates["Template:O"] = "pre<onlyinclude>only</onlyinclude>post"
        self.assertEqual(self.preprocess("{{O}}"), "only")

    def test_inclusion_tags_on_page(self):
        self.assertEqual(
            self.preprocess(
                "a<includeonly>x</includeonly><noinclude>b</noinclude>"
            ),
            "ab",
        )

    def test_newline_before_list(self):
        self.templates["Template:List"] = "* item"
        self.assertEqual(self.preprocess("a{{List}}"), "a\n* item")

    def test_nowiki(self):
        self.assertEqual(
            self.preprocess("<nowiki>{{Foo}}</nowiki>"),
            "<nowiki>{{Foo}}</nowiki>",
        )
        self.assertEqual(self.calls, [])

    def test_unclosed(self):
        self.assertEqual(self.preprocess("{{Foo"), "{{Foo")
        self.assertEqual(self.preprocess("{{Foo|{{Foo}}"), "{{Foo|F")

    def test_leftover_braces(self):
        self.assertEqual(self.preprocess("{{{{Foo}}"), "{{F")
        self.assertEqual(self.preprocess("{{Foo}}}}"), "F}}")

    def test_page_level_argument(self):
        self.assertEqual(self.preprocess("{{{1|def}}}"), "def")
        self.assertEqual(self.preprocess("{{{1}}}"), "{{{1}}}")

    def test_template_name_from_template(self):
        self.templates["Template:Name"] = "Greet"
        self.assertEqual(
            self.preprocess("{{{{Name}}|Z}}"), "Hello Z and nobody"
        )

    def test_invalid_name(self):
        self.assertEqual(self.preprocess("{{a[b}}"), "{{a[b}}")
        self.assertEqual(self.calls, [])

    def test_arguments_evaluated_lazily(self):
        self.preprocess("{{Foo|{{Nope}}}}")
        self.assertEqual(self.calls, ["Template:Foo"])
