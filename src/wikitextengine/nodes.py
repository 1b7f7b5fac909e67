# Brace-matched tree of templates and template arguments
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from collections.abc import Iterable, Sequence
from typing import Optional, Union

from .scanner import Token, TokenKind


class TemplateNode:
    """A template call or parser function invocation {{name|arg|...}}.
    ``parts`` holds the pipe-separated parts, each a list of nodes; the
    first part is the name."""

    __slots__ = ("parts",)

    def __init__(self, parts: list[list["Node"]]) -> None:
        self.parts = parts

    def __repr__(self) -> str:
        return "<TEMPLATE {!r}>".format(self.parts)


class ArgNode:
    """A template argument reference {{{name|default}}}."""

    __slots__ = ("parts",)

    def __init__(self, parts: list[list["Node"]]) -> None:
        self.parts = parts

    @property
    def name(self) -> list["Node"]:
        return self.parts[0]

    @property
    def default(self) -> Optional[list["Node"]]:
        if len(self.parts) >= 2:
            return self.parts[1]
        return None

    def __repr__(self) -> str:
        return "<ARG {!r}>".format(self.parts)


# Plain text is kept as str.  Comments, tags and the content of <nowiki>
# and similar tags remain tokens.
Node = Union[str, Token, TemplateNode, ArgNode]


class _Piece:
    """An open brace run waiting for its closing braces.  ``links`` counts
    the "[[" opened in the current part and not yet closed."""

    __slots__ = ("count", "parts", "links")

    def __init__(self, count: int) -> None:
        self.count = count
        self.parts: list[list[Node]] = [[]]
        self.links = 0


def build_tree(tokens: Iterable[Token]) -> list[Node]:
    """Matches template braces in the token stream and returns the list of
    top-level nodes.  Runs of "{" are matched against runs of "}" like the
    MediaWiki preprocessor does: three matched braces make a template
    argument, two a template, and whatever is left over is text.  Unclosed
    constructs become text.  This is iterative, so deeply nested input
    cannot exhaust the Python stack here.  A "|" inside [[...]] belongs to
    the link and does not start a new part."""
    root: list[Node] = []
    stack: list[_Piece] = []

    def current() -> list[Node]:
        if stack:
            return stack[-1].parts[-1]
        return root

    for t in tokens:
        kind = t.kind
        if kind == TokenKind.TEXT and not t.name:
            current().append(t.text)
        elif kind == TokenKind.HEADING:
            current().append(t.text)
        elif kind == TokenKind.LINK_OPEN:
            if stack:
                stack[-1].links += 1
            current().append(t.text)
        elif kind == TokenKind.LINK_CLOSE:
            if stack and stack[-1].links:
                stack[-1].links -= 1
            current().append(t.text)
        elif kind == TokenKind.PIPE:
            if stack and stack[-1].links:
                current().append("|")
            elif stack:
                stack[-1].parts.append([])
            else:
                root.append("|")
        elif kind == TokenKind.TEMPLATE_OPEN:
            stack.append(_Piece(t.level))
        elif kind == TokenKind.TEMPLATE_CLOSE:
            count = t.level
            while count >= 2 and stack:
                piece = stack[-1]
                if piece.count >= 3 and count >= 3:
                    matched = 3
                    node: Node = ArgNode(piece.parts)
                else:
                    matched = 2
                    node = TemplateNode(piece.parts)
                count -= matched
                piece.count -= matched
                if piece.count >= 2:
                    # Remaining braces open a construct around this one
                    piece.parts = [[node]]
                    piece.links = 0
                else:
                    stack.pop()
                    target = current()
                    if piece.count == 1:
                        target.append("{")
                    target.append(node)
            if count:
                current().append("}" * count)
        else:
            current().append(t)

    # Each unclosed piece sits at the end of the one below it, so their
    # text can be appended to the root in stack order
    for piece in stack:
        root.append("{" * piece.count)
        for i, part in enumerate(piece.parts):
            if i > 0:
                root.append("|")
            root.extend(part)
    return root


def split_named(
    part: Sequence[Node],
) -> Optional[tuple[list[Node], list[Node]]]:
    """Splits a template argument at its first top-level "=" into name and
    value.  An "=" inside [[...]] does not count.  Returns None for unnamed
    arguments."""
    links = 0
    for i, node in enumerate(part):
        if node == "[[":
            links += 1
        elif node == "]]" and links:
            links -= 1
        elif not links and isinstance(node, str) and "=" in node:
            ofs = node.index("=")
            name = list(part[:i])
            if ofs > 0:
                name.append(node[:ofs])
            value: list[Node] = []
            if ofs + 1 < len(node):
                value.append(node[ofs + 1 :])
            value.extend(part[i + 1 :])
            return name, value
    return None


def to_wikitext(nodes: Union[Node, Sequence[Node]]) -> str:
    """Converts nodes back to the wikitext they were built from."""
    if isinstance(nodes, str):
        return nodes
    if isinstance(nodes, Token):
        return nodes.text
    if isinstance(nodes, TemplateNode):
        return "{{" + "|".join(to_wikitext(p) for p in nodes.parts) + "}}"
    if isinstance(nodes, ArgNode):
        return "{{{" + "|".join(to_wikitext(p) for p in nodes.parts) + "}}}"
    if isinstance(nodes, (list, tuple)):
        return "".join(to_wikitext(x) for x in nodes)
    raise RuntimeError("invalid node: {!r}".format(nodes))
