# Some definitions used for both Wikitext expansion and rendering
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re

# Mappings performed for text inside <nowiki>...</nowiki>
_nowiki_map: dict[str, str] = {
    "=": "&equals;",
    "<": "&lt;",
    ">": "&gt;",
    "*": "&ast;",
    "#": "&num;",
    ":": "&colon;",
    "!": "&excl;",
    "|": "&vert;",
    "[": "&lsqb;",
    "]": "&rsqb;",
    "{": "&lbrace;",
    "}": "&rbrace;",
    '"': "&quot;",
    "'": "&apos;",
    "~": "&#126;",  # signature tildes
    "_": "&#95;",  # wikitext __MAGIC_WORDS__
}
_nowiki_re: re.Pattern[str] = re.compile(
    "|".join(re.escape(x) for x in _nowiki_map.keys())
)

# Tags whose content is never interpreted as wikitext
RAW_CONTENT_TAGS: frozenset[str] = frozenset(
    ["nowiki", "pre", "math", "syntaxhighlight", "source"]
)

# Tags that control which parts of a page are transcluded
INCLUSION_TAGS: frozenset[str] = frozenset(
    ["noinclude", "includeonly", "onlyinclude"]
)

# Namespace ids that the engine itself needs to know about
NS_MEDIA = -2
NS_SPECIAL = -1
NS_MAIN = 0
NS_USER = 2
NS_USER_TALK = 3
NS_FILE = 6
NS_TEMPLATE = 10
NS_CATEGORY = 14


class RecursionLimitError(Exception):
    """Raised when template expansion would go deeper than allowed.  The
    expansion site converts this into inline error text."""

    def __init__(self, title: str, depth: int) -> None:
        super().__init__(title, depth)
        self.title = title
        self.depth = depth

    def __str__(self) -> str:
        return "template recursion depth limit exceeded ({}) at {}".format(
            self.depth, self.title
        )


class TemplateLoopError(RecursionLimitError):
    """Raised when a template transcludes itself, directly or through
    other templates."""

    def __str__(self) -> str:
        return "template loop detected: {}".format(self.title)


class TemplateFetchError(Exception):
    """Template callbacks may raise this to signal that fetching failed.
    The reference is then rendered like a missing template."""


def nowiki_quote(text: str) -> str:
    """Quote text inside <nowiki>...</nowiki> by escaping certain characters."""

    def _nowiki_repl(m: re.Match[str]) -> str:
        return _nowiki_map[m.group(0)]

    return re.sub(_nowiki_re, _nowiki_repl, text)


def add_newline_to_expansion(text: str) -> str:
    """https://meta.wikimedia.org/wiki/Help:Newlines_and_spaces#Automatic_newline
    When templates (and parserfunctions) are expanded, we should check for
    these special characters at the start and insert a newline if detected."""
    if isinstance(text, str) and text.startswith(("*", ";", ":", "#", "{|")):
        return "\n" + text
    return text
