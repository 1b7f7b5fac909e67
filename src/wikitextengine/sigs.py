# Signature cleaning and tilde expansion for the pre-save transform
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import datetime
import re
from typing import Optional

from .common import NS_USER, NS_USER_TALK
from .magicwords import MagicWordCache
from .messages import get_message
from .options import MessageCallable, User
from .parserfns import format_time
from .scanner import TokenKind, scan
from .title import Title

# Runs of three to five tildes are signatures.  A run of six is a
# signature followed by a literal tilde.
TILDE_RE = re.compile(r"~{3,5}")

# Longest first, so that ~~~~~ is not taken as ~~~~ followed by a tilde
SIG_TILDES_RE = re.compile(r"~~~~~|~~~~|~~~")


def clean_sig_in_sig(text: str) -> str:
    """Removes tilde runs that would expand into nested signatures."""
    assert isinstance(text, str)
    return TILDE_RE.sub("", text)


def clean_sig(
    text: str, magic_words: MagicWordCache, enabled: bool = True
) -> str:
    """Makes a user's custom signature safe to insert into pages: templates
    are substituted when saving instead of being left for every page view,
    and tildes that would expand recursively are removed.  Does nothing if
    ``enabled`` is False."""
    assert isinstance(text, str)
    if not enabled:
        return text
    subst_mw = magic_words.get("subst")
    safesubst_mw = magic_words.get("safesubst")
    subst = subst_mw.synonym(0)
    tokens = list(scan(text, headings=False))
    parts: list[str] = []
    for i, t in enumerate(tokens):
        if t.kind != TokenKind.TEMPLATE_OPEN:
            parts.append(t.text)
            continue
        # Every "{{" of the run, taken left to right, opens a template.
        # Only a pair ending the run can already be followed by subst:.
        pairs, odd = divmod(t.level, 2)
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        has_subst = (
            not odd
            and nxt is not None
            and nxt.kind == TokenKind.TEXT
            and (
                subst_mw.match_start_and_remove(nxt.text) is not None
                or safesubst_mw.match_start_and_remove(nxt.text) is not None
            )
        )
        for j in range(pairs):
            parts.append("{{")
            if j < pairs - 1 or not has_subst:
                parts.append(subst)
        if odd:
            parts.append("{")
    return clean_sig_in_sig("".join(parts))


def signature_timestamp(
    t: datetime.datetime,
    lang_code: str = "en",
    message_fn: Optional[MessageCallable] = None,
) -> str:
    fmt = get_message("signature-timestamp-format", lang_code, message_fn)
    return format_time(fmt or "H:i, j F Y (T)", t)


def get_user_sig(
    user: User,
    magic_words: MagicWordCache,
    clean_signatures: bool = True,
    lang_code: str = "en",
    message_fn: Optional[MessageCallable] = None,
) -> str:
    """Returns the signature of ``user`` without the timestamp."""
    assert isinstance(user, User)
    if user.fancy_sig and user.nickname:
        return clean_sig(user.nickname, magic_words, clean_signatures)
    user_page = Title.make_title_safe(NS_USER, user.name, lang_code)
    talk_page = Title.make_title_safe(NS_USER_TALK, user.name, lang_code)
    if user_page is None or talk_page is None:
        raise ValueError("invalid user name {!r}".format(user.name))
    nick = clean_sig_in_sig(user.nickname or user.name)
    talk = get_message("talkpagelinktext", lang_code, message_fn) or "talk"
    return "[[{}|{}]] ([[{}|{}]])".format(
        user_page.full_text, nick, talk_page.full_text, talk
    )


def expand_tildes(text: str, signature: str, timestamp: str) -> str:
    """Replaces ~~~ with the signature, ~~~~ with the signature and the
    timestamp, and ~~~~~ with the timestamp alone.  Tildes in comments and
    <nowiki> are left alone."""
    assert isinstance(text, str)

    def repl(m: re.Match[str]) -> str:
        n = len(m.group(0))
        if n == 5:
            return timestamp
        if n == 4:
            return signature + " " + timestamp
        return signature

    parts: list[str] = []
    for t in scan(text, headings=False):
        if t.kind == TokenKind.TEXT and not t.name:
            parts.append(SIG_TILDES_RE.sub(repl, t.text))
        else:
            parts.append(t.text)
    return "".join(parts)
