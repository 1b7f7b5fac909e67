# Tokenizer for wikitext preprocessing
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import enum
import re
from collections.abc import Iterator

from .common import RAW_CONTENT_TAGS


@enum.unique
class TokenKind(enum.Enum):
    """Token types produced by scan()."""

    # Run of text without any markup recognized by the preprocessor.
    # Content of <nowiki> and similar tags has the tag name in ``name``.
    TEXT = enum.auto()

    # A whole heading line, such as "== Foo ==" (without the newline).
    # ``level`` is the number of "=" on each side and ``name`` the heading
    # text with surrounding whitespace stripped.
    HEADING = enum.auto()

    # A run of two or more "{".  ``level`` is the number of braces.
    TEMPLATE_OPEN = enum.auto()

    # A run of two or more "}".  ``level`` is the number of braces.
    TEMPLATE_CLOSE = enum.auto()

    # A single "|".
    PIPE = enum.auto()

    # "[[" and "]]".  Pipes inside a link do not separate template
    # arguments.
    LINK_OPEN = enum.auto()
    LINK_CLOSE = enum.auto()

    # An HTML-like tag.  ``name`` is the lowercased tag name, ``attrs`` the
    # raw attribute text.
    TAG = enum.auto()

    # A <!-- ... --> comment.  An unterminated comment runs to the end of
    # the text.
    COMMENT = enum.auto()


class Token:
    """A token of wikitext.  ``text`` is the exact source text of the
    token and ``start`` its offset in the scanned string."""

    __slots__ = (
        "kind",
        "text",
        "start",
        "level",
        "name",
        "attrs",
        "closing",
        "self_closing",
    )

    def __init__(self, kind: TokenKind, text: str, start: int) -> None:
        self.kind = kind
        self.text = text
        self.start = start
        self.level = 0
        self.name = ""
        self.attrs = ""
        self.closing = False
        self.self_closing = False

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return all(
            getattr(self, k) == getattr(other, k) for k in self.__slots__
        )

    def __repr__(self) -> str:
        return "<{} {!r}@{}>".format(self.kind.name, self.text, self.start)


# Headings must have the same number of "=" on both sides.  The heading
# text cannot start or end with "=", which rejects mismatched runs such as
# "=== Foo ==" instead of reinterpreting them as a shallower heading.
# Longer runs are level 6 headings whose text keeps the extra "=".
# Whitespace and comments may follow the closing run.
HEADING_PATTERN = (
    r"^(?:(?P<hmark>={1,6})(?!=)(?P<htext>[^\n]*?[^=\n])(?P=hmark)"
    r"|======(?P<htext6>=[^\n]*?=)======)"
    r"(?:[ \t]|<!--(?:(?!-->)[^\n])*-->)*$"
)
HEADING_RE = re.compile(HEADING_PATTERN, re.M)

_common_tokens = (
    r"(?P<comment><!--.*?(?:-->|\Z))",
    r"(?P<open>\{\{+)",
    r"(?P<close>\}\}+)",
    r"(?P<pipe>\|)",
    r"(?P<lopen>\[\[)",
    r"(?P<lclose>\]\])",
    r"(?P<tag><(?P<tclose>/?)(?P<tname>[a-zA-Z][-a-zA-Z0-9]*)"
    r"(?P<tattrs>(?:\s[^<>]*?)?)(?P<tself>/?)>)",
)

# Each alternative starts with a fixed character (or the start of a line),
# so the search never backtracks over plain text.  A run of a million
# digits is scanned once.
TOKEN_RE = re.compile("|".join(_common_tokens), re.S)
TOKEN_RE_WITH_HEADINGS = re.compile(
    "|".join((HEADING_PATTERN,) + _common_tokens), re.S | re.M
)


def _raw_end_re(name: str) -> re.Pattern[str]:
    return re.compile(r"(?i)</{}\s*>".format(re.escape(name)))


def scan(text: str, headings: bool = True) -> Iterator[Token]:
    """Tokenizes ``text`` lazily.  Plain text between recognized markup is
    yielded as a single TEXT token, so the cost is linear in the length of
    the input.  Scanning the same text again yields identical tokens.  If
    ``headings`` is False, heading lines are returned as plain text (the
    template expander does not care about them)."""
    assert isinstance(text, str)
    token_re = TOKEN_RE_WITH_HEADINGS if headings else TOKEN_RE
    pos = 0
    length = len(text)
    while pos < length:
        m = token_re.search(text, pos)
        if m is None:
            yield Token(TokenKind.TEXT, text[pos:], pos)
            return
        start = m.start()
        if start > pos:
            yield Token(TokenKind.TEXT, text[pos:start], pos)
        pos = m.end()
        if m.group("comment") is not None:
            yield Token(TokenKind.COMMENT, m.group(0), start)
        elif m.group("open") is not None:
            token = Token(TokenKind.TEMPLATE_OPEN, m.group(0), start)
            token.level = len(m.group(0))
            yield token
        elif m.group("close") is not None:
            token = Token(TokenKind.TEMPLATE_CLOSE, m.group(0), start)
            token.level = len(m.group(0))
            yield token
        elif m.group("pipe") is not None:
            yield Token(TokenKind.PIPE, "|", start)
        elif m.group("lopen") is not None:
            yield Token(TokenKind.LINK_OPEN, "[[", start)
        elif m.group("lclose") is not None:
            yield Token(TokenKind.LINK_CLOSE, "]]", start)
        elif m.group("tag") is not None:
            token = Token(TokenKind.TAG, m.group(0), start)
            token.name = m.group("tname").lower()
            token.attrs = m.group("tattrs").strip()
            token.closing = m.group("tclose") == "/"
            token.self_closing = m.group("tself") == "/"
            yield token
            if (
                token.name in RAW_CONTENT_TAGS
                and not token.closing
                and not token.self_closing
            ):
                # The content is not interpreted; find the end tag directly.
                # Without an end tag the start tag is an ordinary tag.
                end_m = _raw_end_re(token.name).search(text, pos)
                if end_m is not None:
                    if end_m.start() > pos:
                        content = Token(
                            TokenKind.TEXT, text[pos : end_m.start()], pos
                        )
                        content.name = token.name
                        yield content
                    end_token = Token(
                        TokenKind.TAG, end_m.group(0), end_m.start()
                    )
                    end_token.name = token.name
                    end_token.closing = True
                    yield end_token
                    pos = end_m.end()
        else:
            token = Token(TokenKind.HEADING, m.group(0), start)
            if m.group("hmark") is not None:
                token.level = len(m.group("hmark"))
                token.name = m.group("htext").strip()
            else:
                token.level = 6
                token.name = m.group("htext6").strip()
            yield token


def tokens_to_text(tokens: Iterator[Token]) -> str:
    """Concatenates the source text of tokens."""
    return "".join(t.text for t in tokens)
