# Section extraction and replacement
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from dataclasses import dataclass

from .scanner import TokenKind, scan


@dataclass
class Section:
    """A section of a page.  Section 0 is the text before the first heading
    and has level 0.  ``end`` is exclusive."""

    index: int
    level: int
    heading: str
    start: int
    end: int
    line: str

    def text(self, page_text: str) -> str:
        return page_text[self.start : self.end]


def split_sections(text: str) -> list[Section]:
    """Returns the flat list of sections of ``text``.  The list always has
    section 0, which may be empty.  Headings inside comments and <nowiki>
    are ignored."""
    assert isinstance(text, str)
    headings = [t for t in scan(text) if t.kind == TokenKind.HEADING]
    first = headings[0].start if headings else len(text)
    sections = [Section(0, 0, "", 0, first, "")]
    # Sections still waiting for a heading of the same or higher level
    open_sections: list[Section] = []
    for i, t in enumerate(headings):
        while open_sections and open_sections[-1].level >= t.level:
            open_sections.pop().end = t.start
        section = Section(i + 1, t.level, t.name, t.start, len(text), t.text)
        open_sections.append(section)
        sections.append(section)
    return sections


def _trim(text: str, rtrim: bool) -> str:
    if rtrim:
        return text.rstrip()
    return text.removesuffix("\n")


def get_section(text: str, index: int, rtrim: bool = True) -> str:
    """Returns section ``index`` of ``text``: its heading line and body,
    including subsections.  Trailing whitespace is removed; with
    ``rtrim=False`` only one trailing newline is.  Returns "" if there is
    no such section."""
    assert isinstance(index, int)
    sections = split_sections(text)
    if index < 0 or index >= len(sections):
        return ""
    return _trim(sections[index].text(text), rtrim)


def replace_section(
    text: str, index: int, new_text: str, rtrim: bool = True
) -> str:
    """Replaces section ``index`` of ``text`` (including its subsections)
    with ``new_text``.  Text before the section is kept byte for byte, and
    exactly one blank line separates the new text from the following
    content.  With the default ``rtrim`` the result has no trailing
    whitespace.  Out of range indexes leave the text unchanged."""
    assert isinstance(index, int)
    assert isinstance(new_text, str)
    sections = split_sections(text)
    if index < 0 or index >= len(sections):
        return text
    section = sections[index]
    prefix = text[: section.start]
    suffix = text[section.end :]
    new_text = new_text.rstrip("\n")
    if suffix:
        ret = prefix + new_text + "\n\n" + suffix
    else:
        # Nothing follows: keep the whitespace that ended the old section
        old = section.text(text)
        ret = prefix + new_text + old[len(old.rstrip()) :]
    if rtrim:
        ret = ret.rstrip()
    return ret
