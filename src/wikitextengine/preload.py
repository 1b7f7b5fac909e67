# Handling of <noinclude>, <includeonly> and <onlyinclude>
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from collections.abc import Iterable

from .common import INCLUSION_TAGS
from .scanner import Token, TokenKind, scan, tokens_to_text


def filter_tokens(
    tokens: Iterable[Token], for_inclusion: bool, keep_comments: bool = True
) -> list[Token]:
    """Drops the tokens that are not visible in the given context.

    When ``for_inclusion`` is True (transclusion and preload), text inside
    <noinclude> is removed, including everything after an unclosed
    <noinclude>; if the text has any <onlyinclude>, only the text inside
    such tags is kept; <includeonly> tags are removed but their content
    kept.  When False (viewing the page itself), <includeonly> content is
    removed and the other two tags are removed with their content kept.
    Tags inside comments or <nowiki> are never seen here because the
    scanner does not produce them as tags."""
    tokens = list(tokens)
    only_mode = for_inclusion and any(
        t.kind == TokenKind.TAG
        and t.name == "onlyinclude"
        and not t.closing
        and not t.self_closing
        for t in tokens
    )
    hidden = "noinclude" if for_inclusion else "includeonly"
    in_hidden = False
    in_only = not only_mode
    ret: list[Token] = []
    for t in tokens:
        if t.kind == TokenKind.TAG and t.name in INCLUSION_TAGS:
            if t.self_closing:
                continue
            if t.name == hidden:
                in_hidden = not t.closing
            elif t.name == "onlyinclude" and only_mode:
                in_only = not t.closing
            continue
        if in_hidden or not in_only:
            continue
        if t.kind == TokenKind.COMMENT and not keep_comments:
            continue
        ret.append(t)
    return ret


def get_preload_text(text: str) -> str:
    """Returns the text used when ``text`` is preloaded into an edit form.
    Templates and comments are left untouched."""
    assert isinstance(text, str)
    return tokens_to_text(filter_tokens(scan(text, headings=False), True))
