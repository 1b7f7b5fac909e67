# Template expansion: transclusion, substitution, template arguments,
# parser functions and magic variables
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from collections.abc import Sequence
from typing import Optional

from .common import (
    NS_TEMPLATE,
    RecursionLimitError,
    TemplateLoopError,
    add_newline_to_expansion,
    nowiki_quote,
)
from .nodes import ArgNode, Node, TemplateNode, build_tree, split_named
from .options import TemplateFetchResult
from .parserfns import call_parser_function
from .preload import filter_tokens
from .scanner import Token, TokenKind, scan
from .state import OutputType, ParseState
from .title import Title


class Frame:
    """Arguments of one template invocation.  Argument values are expanded
    lazily in the caller's frame, at most once each."""

    __slots__ = ("title", "parent", "args", "cache")

    def __init__(self, title: Title, parent: Optional["Frame"]) -> None:
        self.title = title
        self.parent = parent
        # Argument name -> (value nodes, whether the argument was named)
        self.args: dict[str, tuple[list[Node], bool]] = {}
        self.cache: dict[str, str] = {}

    def __repr__(self) -> str:
        return "<Frame {} {}>".format(self.title, sorted(self.args))


class Expander:
    """Expands the templates in wikitext for one parse.  What is produced
    depends on the output type of the parse state: in HTML and PREPROCESS
    mode templates are transcluded and subst: is left alone, in WIKI mode
    (pre-save transform) only subst: and safesubst: are expanded."""

    def __init__(self, state: ParseState) -> None:
        assert isinstance(state, ParseState)
        self.state = state
        self.magic_words = state.magic_words
        # Number of nested expand() calls in progress
        self.depth = 0
        # Non-zero while the body of a substituted template is expanded;
        # templates in it are then copied, not expanded
        self.substituting = 0

    def expand_text(self, text: str) -> str:
        """Expands the wikitext of the page being parsed."""
        assert isinstance(text, str)
        tokens = scan(text, headings=False)
        if self.state.output_type != OutputType.WIKI:
            tokens = iter(filter_tokens(tokens, for_inclusion=False))
        return self.expand(build_tree(tokens), None)

    def expand(self, nodes: Sequence[Node], frame: Optional[Frame]) -> str:
        """Expands a list of nodes.  ``frame`` has the arguments of the
        template whose body is being expanded (None for page text)."""
        self.depth += 1
        try:
            if self.depth > self.state.options.max_expand_depth:
                raise RecursionLimitError(
                    self.state.expand_stack[-1],
                    self.state.options.max_expand_depth,
                )
            parts: list[str] = []
            for node in nodes:
                if isinstance(node, str):
                    parts.append(node)
                elif isinstance(node, Token):
                    parts.append(self.expand_token(node))
                else:
                    try:
                        if isinstance(node, TemplateNode):
                            parts.append(self.expand_template(node, frame))
                        else:
                            parts.append(self.expand_arg(node, frame))
                    except RecursionLimitError as e:
                        parts.append(self.recursion_error(e))
            return "".join(parts)
        finally:
            self.depth -= 1

    def expand_token(self, token: Token) -> str:
        if self.state.output_type != OutputType.HTML:
            return token.text
        if token.kind == TokenKind.COMMENT:
            return ""
        if token.kind == TokenKind.TEXT:
            # Content of <nowiki> or similar tags
            return nowiki_quote(token.text)
        if token.kind == TokenKind.TAG and token.name == "nowiki":
            return ""
        return token.text

    def literal(
        self,
        node: TemplateNode,
        frame: Optional[Frame],
        name: Optional[str] = None,
    ) -> str:
        """Reproduces a template reference as wikitext.  Its parts are
        expanded, so arguments inside it are still substituted."""
        if name is None:
            name = self.expand(node.parts[0], frame)
        parts = [name]
        parts.extend(self.expand(part, frame) for part in node.parts[1:])
        return "{{" + "|".join(parts) + "}}"

    def expand_arg(self, node: ArgNode, frame: Optional[Frame]) -> str:
        name = self.expand(node.name, frame).strip()
        if frame is not None:
            value = self.frame_arg(frame, name)
            if value is not None:
                return value
        elif self.state.output_type == OutputType.WIKI:
            # Arguments outside templates are kept when saving
            parts = [name]
            parts.extend(self.expand(part, frame) for part in node.parts[1:])
            return "{{{" + "|".join(parts) + "}}}"
        default = node.default
        if default is not None:
            return self.expand(default, frame)
        return "{{{" + name + "}}}"

    def frame_arg(self, frame: Frame, name: str) -> Optional[str]:
        """Returns the value of argument ``name`` of ``frame`` or None if the
        template was not given that argument."""
        if name in frame.cache:
            return frame.cache[name]
        entry = frame.args.get(name)
        if entry is None:
            return None
        nodes, named = entry
        value = self.expand(nodes, frame.parent)
        if named:
            # Whitespace around named argument values is not significant
            value = value.strip()
        frame.cache[name] = value
        return value

    def make_frame(
        self, title: Title, node: TemplateNode, parent: Optional[Frame]
    ) -> Frame:
        frame = Frame(title, parent)
        num = 1
        for part in node.parts[1:]:
            split = split_named(part)
            if split is None:
                frame.args[str(num)] = (part, False)
                num += 1
            else:
                k, v = split
                frame.args[self.expand(k, parent).strip()] = (v, True)
        return frame

    def expand_template(
        self, node: TemplateNode, frame: Optional[Frame]
    ) -> str:
        state = self.state
        if state.output_type == OutputType.WIKI and self.substituting:
            return self.literal(node, frame)
        name = self.expand(node.parts[0], frame)
        subst = self.magic_words.get("subst").match_start_and_remove(name)
        safesubst: Optional[str] = None
        if subst is None:
            safesubst = self.magic_words.get(
                "safesubst"
            ).match_start_and_remove(name)

        if state.output_type == OutputType.WIKI:
            if subst is not None:
                return self.substitute(node, subst, frame, name)
            if safesubst is not None:
                return self.substitute(node, safesubst, frame, name)
            return self.literal(node, frame, name)

        if subst is not None:
            # subst: only has an effect when the page is saved
            return self.literal(node, frame, name)
        if safesubst is not None:
            name = safesubst
        return self.transclude(node, name, frame)

    def call_function(
        self, node: TemplateNode, name: str, frame: Optional[Frame]
    ) -> Optional[str]:
        """Calls the parser function or magic variable ``name`` refers to.
        Returns None if it is neither."""

        def expander(nodes: Sequence[Node]) -> str:
            return self.expand(nodes, frame)

        fn = self.magic_words.match_function(name)
        if fn is not None:
            fn_id, first = fn
            args: list[list[Node]] = [[first]]
            args.extend(node.parts[1:])
            return call_parser_function(self.state, fn_id, args, expander)
        var_id = self.magic_words.match_variable(name)
        if var_id is not None:
            return call_parser_function(self.state, var_id, [], expander)
        return None

    def transclude(
        self, node: TemplateNode, name: str, frame: Optional[Frame]
    ) -> str:
        state = self.state
        ret = self.call_function(node, name, frame)
        if ret is not None:
            return ret
        title = Title.new_from_text(
            name, NS_TEMPLATE, state.options.lang_code
        )
        if title is None or title.is_special_context():
            return self.literal(node, frame, name)
        # Raises TemplateLoopError or RecursionLimitError; the caller turns
        # them into an error message in the output
        state.push_template(title)
        try:
            result = state.fetch_template(title)
            if result is None or result.text is None:
                return self.missing_template(title)
            body = self.template_body(title, result, False)
            new_frame = self.make_frame(title, node, frame)
            return add_newline_to_expansion(self.expand(body, new_frame))
        finally:
            state.pop_template()

    def substitute(
        self,
        node: TemplateNode,
        name: str,
        frame: Optional[Frame],
        orig_name: str,
    ) -> str:
        """Replaces a subst: reference by the template body with the
        arguments substituted.  Templates in the body are not expanded.
        Unknown templates are left as they are."""
        state = self.state
        ret = self.call_function(node, name, frame)
        if ret is not None:
            return ret
        title = Title.new_from_text(
            name, NS_TEMPLATE, state.options.lang_code
        )
        if title is None:
            return self.literal(node, frame, orig_name)
        result = state.fetch_template(title)
        if result is None or result.text is None:
            state.debug(
                "cannot substitute missing template {}".format(title),
                sortid="expander/subst-missing",
            )
            return self.literal(node, frame, orig_name)
        body = self.template_body(title, result, True)
        new_frame = self.make_frame(title, node, frame)
        self.substituting += 1
        try:
            return self.expand(body, new_frame)
        finally:
            self.substituting -= 1

    def template_body(
        self, title: Title, result: TemplateFetchResult, keep_comments: bool
    ) -> list[Node]:
        """Returns the parsed transcludable part of a template.  Bodies are
        parsed once per parse."""
        assert result.text is not None
        key = (title, keep_comments)
        nodes = self.state.body_cache.get(key)
        if nodes is None:
            tokens = filter_tokens(
                scan(result.text, headings=False), True, keep_comments
            )
            nodes = build_tree(tokens)
            self.state.body_cache[key] = nodes
        return nodes

    def missing_template(self, title: Title) -> str:
        self.state.debug(
            "template {} not found".format(title),
            sortid="expander/missing",
        )
        fn = self.state.options.missing_template_fn
        if fn is not None:
            return fn(title)
        return "[[:{}]]".format(title.full_text)

    def recursion_error(self, e: RecursionLimitError) -> str:
        state = self.state
        state.error(str(e), sortid="expander/recursion")
        if isinstance(e, TemplateLoopError):
            state.add_tracking_category("template-loop-category")
            return (
                '<strong class="error">Template loop detected: '
                "[[:{}]]</strong>".format(e.title)
            )
        state.add_tracking_category("expansion-depth-exceeded-category")
        return (
            '<strong class="error">Template recursion depth limit exceeded '
            "({})</strong>".format(e.depth)
        )
