# Conversion of expanded wikitext into HTML: behavior switches, links,
# categories, headings, bold/italic and paragraphs
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import html
import re
import urllib.parse
from typing import Optional

from .common import NS_CATEGORY, NS_FILE, NS_MAIN, NS_MEDIA, NS_SPECIAL
from .magicwords import DOUBLE_UNDERSCORE_IDS
from .scanner import HEADING_RE
from .state import ParseState
from .title import Title

# All of these are linear: every repetition is over a character class
# that cannot match the text following it.
INTERNAL_LINK_RE = re.compile(r"\[\[([^\[\]|\n]+)(?:\|([^\[\]\n]*))?\]\]")
EXTERNAL_LINK_RE = re.compile(
    r"\[((?:https?|ftp)://[^\s\[\]<>\"]+)(?:[ \t]+([^\]\n]*))?\]"
)
HR_RE = re.compile(r"^-{4,}", re.M)
QUOTE_SPLIT_RE = re.compile(r"('{2,})")

# Lines starting with these are not wrapped in paragraphs
BLOCK_RE = re.compile(
    r"^<(?:h[1-6]|hr|pre|div|table|ul|ol|dl|blockquote|p)\b", re.I
)


def article_url(state: ParseState, title: Title) -> str:
    path = urllib.parse.quote(title.prefixed_db_key, safe=":/")
    return state.options.article_path.replace("$1", path)


def anchor_id(text: str) -> str:
    return html.escape(re.sub(r"\s+", "_", text.strip()))


def file_exists(state: ParseState, title: Title) -> bool:
    fn = state.options.file_exists_fn
    if fn is None:
        fn = state.parser.default_file_exists_fn
    if fn is None:
        return False
    return fn(title)


def do_behavior_switches(state: ParseState, text: str) -> str:
    """Removes __NOTOC__ and similar words from the text and records them
    as page properties."""
    magic_words = state.magic_words
    regex = magic_words.double_underscore_re()

    def repl(m: re.Match[str]) -> str:
        word_id = magic_words.match(DOUBLE_UNDERSCORE_IDS, m.group(0))
        if word_id is not None:
            state.output.properties[word_id] = ""
        return ""

    return regex.sub(repl, text)


def render_file_link(
    state: ParseState, title: Title, label: Optional[str]
) -> str:
    """Renders an image or other file link.  Links to files that do not
    exist point to the upload form and put the page in the broken file
    links tracking category."""
    lang_code = state.options.lang_code
    if title.namespace_id == NS_MEDIA:
        file_title = Title.make_title_safe(NS_FILE, title.text, lang_code)
        assert file_title is not None
        title = file_title
    # The last parameter of a file link is its caption
    caption = label.split("|")[-1] if label else ""
    text = caption or title.full_text
    if not file_exists(state, title):
        state.add_tracking_category("broken-file-category")
        upload = Title.make_title_safe(NS_SPECIAL, "Upload", lang_code)
        assert upload is not None
        href = "{}?wpDestFile={}".format(
            article_url(state, upload), urllib.parse.quote(title.db_key)
        )
        return '<a href="{}" class="new" title="{}">{}</a>'.format(
            html.escape(href), html.escape(title.full_text), text
        )
    filepath = Title.make_title_safe(
        NS_SPECIAL, "FilePath/" + title.text, lang_code
    )
    assert filepath is not None
    return (
        '<a href="{}" class="image" title="{}">'
        '<img alt="{}" src="{}" /></a>'.format(
            html.escape(article_url(state, title)),
            html.escape(caption or title.full_text),
            html.escape(caption or title.text),
            html.escape(article_url(state, filepath)),
        )
    )


def do_internal_links(state: ParseState, text: str) -> str:
    """Renders [[...]] links.  Category links are removed from the text
    and added to the page's categories."""
    lang_code = state.options.lang_code

    def repl(m: re.Match[str]) -> str:
        target = m.group(1).strip()
        label = m.group(2)
        colon = target.startswith(":")
        title = Title.new_from_text(target, NS_MAIN, lang_code)
        if title is None:
            return m.group(0)
        if not colon and title.namespace_id == NS_CATEGORY:
            state.output.add_category(title.db_key, label or "")
            return ""
        if not colon and title.namespace_id in (NS_FILE, NS_MEDIA):
            return render_file_link(state, title, label)
        href = article_url(state, title)
        if "#" in target:
            href += "#" + anchor_id(target.split("#", 1)[1])
        if not label:
            label = target[1:] if colon else target
        return '<a href="{}" title="{}">{}</a>'.format(
            html.escape(href), html.escape(title.full_text), label
        )

    return INTERNAL_LINK_RE.sub(repl, text)


def do_external_links(text: str) -> str:
    """Renders [http://... label] links.  Links without a label are
    numbered."""
    counter = 0

    def repl(m: re.Match[str]) -> str:
        nonlocal counter
        url, label = m.group(1), m.group(2)
        if label:
            cls = "external text"
        else:
            counter += 1
            cls = "external autonumber"
            label = "[{}]".format(counter)
        return '<a rel="nofollow" class="{}" href="{}">{}</a>'.format(
            cls, html.escape(url), label
        )

    return EXTERNAL_LINK_RE.sub(repl, text)


def do_headings(text: str) -> str:
    def repl(m: re.Match[str]) -> str:
        if m.group("hmark") is not None:
            level = len(m.group("hmark"))
            heading = m.group("htext").strip()
        else:
            level = 6
            heading = m.group("htext6").strip()
        fmt = '<h{0}><span class="mw-headline" id="{1}">{2}</span></h{0}>'
        return fmt.format(level, anchor_id(heading), heading)

    text = HEADING_RE.sub(repl, text)
    return HR_RE.sub("<hr />", text)


def do_quotes(line: str) -> str:
    """Converts '' and ''' in one line into <i> and <b>.  Unclosed
    formatting is closed at the end of the line."""
    arr = QUOTE_SPLIT_RE.split(line)
    if len(arr) == 1:
        return line

    # Runs of four are an apostrophe and bold; more than five are
    # apostrophes and bold italic
    numitalics = 0
    numbold = 0
    for i in range(1, len(arr), 2):
        n = len(arr[i])
        if n == 4:
            arr[i - 1] += "'"
            arr[i] = "'''"
        elif n > 5:
            arr[i - 1] += "'" * (n - 5)
            arr[i] = "'''''"
        n = len(arr[i])
        if n == 2:
            numitalics += 1
        elif n == 3:
            numbold += 1
        elif n == 5:
            numitalics += 1
            numbold += 1

    # With an odd number of both, one of the bolds is probably an
    # apostrophe followed by italics, as in l'''amour''
    if numitalics % 2 == 1 and numbold % 2 == 1:
        first_single = first_multi = first_space = -1
        for i in range(1, len(arr), 2):
            if len(arr[i]) != 3:
                continue
            x1 = arr[i - 1][-1:]
            x2 = arr[i - 1][-2:-1]
            if x1 == " ":
                if first_space == -1:
                    first_space = i
            elif x2 == " ":
                first_single = i
                break
            elif first_multi == -1:
                first_multi = i
        for i in (first_single, first_multi, first_space):
            if i != -1:
                arr[i] = "''"
                arr[i - 1] += "'"
                break

    # State is the open tags, innermost last; "both" means ''''' was seen
    # and it is not yet known which one closes first
    out: list[str] = []
    buf: list[str] = []
    state = ""
    for i, r in enumerate(arr):
        if i % 2 == 0:
            if state == "both":
                buf.append(r)
            else:
                out.append(r)
            continue
        n = len(r)
        if n == 2:
            if state == "i":
                out.append("</i>")
                state = ""
            elif state == "bi":
                out.append("</i>")
                state = "b"
            elif state == "ib":
                out.append("</b></i><b>")
                state = "b"
            elif state == "both":
                out.append("<b><i>" + "".join(buf) + "</i>")
                state = "b"
            else:
                out.append("<i>")
                state += "i"
        elif n == 3:
            if state == "b":
                out.append("</b>")
                state = ""
            elif state == "bi":
                out.append("</i></b><i>")
                state = "i"
            elif state == "ib":
                out.append("</b>")
                state = "i"
            elif state == "both":
                out.append("<i><b>" + "".join(buf) + "</b>")
                state = "i"
            else:
                out.append("<b>")
                state += "b"
        else:
            if state == "b":
                out.append("</b><i>")
                state = "i"
            elif state == "i":
                out.append("</i><b>")
                state = "b"
            elif state == "bi":
                out.append("</i></b>")
                state = ""
            elif state == "ib":
                out.append("</b></i>")
                state = ""
            elif state == "both":
                out.append("<i><b>" + "".join(buf) + "</b></i>")
                state = ""
            else:
                buf = []
                state = "both"

    if state in ("b", "ib"):
        out.append("</b>")
    if state in ("i", "bi", "ib"):
        out.append("</i>")
    if state == "bi":
        out.append("</b>")
    if state == "both" and buf:
        out.append("<b><i>" + "".join(buf) + "</i></b>")
    return "".join(out)


def do_block_levels(text: str) -> str:
    """Wraps runs of text lines into paragraphs.  Blank lines end a
    paragraph, as do lines starting with block level HTML such as
    headings."""
    if text.endswith("\n"):
        text = text[:-1]
    out: list[str] = []
    in_para = False
    for line in text.split("\n"):
        if not line.strip():
            if in_para:
                out.append("</p>\n")
                in_para = False
            continue
        if BLOCK_RE.match(line):
            if in_para:
                out.append("</p>\n")
                in_para = False
            out.append(line + "\n")
            continue
        if not in_para:
            out.append("<p>")
            in_para = True
        out.append(line + "\n")
    if in_para:
        out.append("</p>")
    return "".join(out)


def render_html(state: ParseState, text: str) -> str:
    """Converts wikitext with templates already expanded into HTML."""
    assert isinstance(text, str)
    text = do_behavior_switches(state, text)
    text = do_internal_links(state, text)
    text = do_external_links(text)
    text = do_headings(text)
    text = "\n".join(do_quotes(line) for line in text.split("\n"))
    return do_block_levels(text)
