# Parser options and the data types exchanged with the embedding application
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import datetime
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Optional, Union

import dateparser

from .title import Title

if TYPE_CHECKING:
    from .core import Parser


@dataclass
class TemplateFetchResult:
    """What a template callback returns for a found page.  ``text`` may be
    None if the title resolved but has no usable text; the title is still
    recorded as a dependency."""

    text: Optional[str]
    final_title: Optional[Title] = None
    dependencies: list[Title] = field(default_factory=list)


@dataclass(frozen=True)
class User:
    """The user on whose behalf a pre-save transform is done."""

    name: str
    nickname: Optional[str] = None
    # A fancy nickname is raw wikitext; otherwise it is used as link text
    fancy_sig: bool = False


TemplateCallback = Callable[
    [
        Title,  # the template being fetched
        "Parser",  # the calling parser
    ],
    Optional[TemplateFetchResult],  # None if not found
]
FileExistsCallable = Callable[[Title], bool]
MessageCallable = Callable[[str], Optional[str]]
MissingTemplateCallable = Callable[[Title], str]

Timestamp = Union[None, str, datetime.datetime]


@dataclass
class ParserOptions:
    """Options for one parse.  The engine reads these but never changes
    them."""

    template_callback: Optional[TemplateCallback] = None
    user: Optional[User] = None
    lang_code: str = "en"
    # Makes clean_sig() turn templates into substs and remove tildes
    clean_signatures: bool = True
    max_template_depth: int = 40
    # Limit on nested constructs being expanded at the same time
    max_expand_depth: int = 100
    # Time used for signatures and time-related magic words.  None means
    # the current time; strings are parsed with dateparser.
    timestamp: Timestamp = None
    article_path: str = "/wiki/$1"
    file_exists_fn: Optional[FileExistsCallable] = None
    message_fn: Optional[MessageCallable] = None
    missing_template_fn: Optional[MissingTemplateCallable] = None

    def copy(self, **changes) -> "ParserOptions":
        return replace(self, **changes)

    def get_timestamp(self) -> datetime.datetime:
        """Returns the timestamp for this parse as an aware datetime."""
        ts = self.timestamp
        if ts is None:
            return datetime.datetime.now(datetime.timezone.utc)
        if isinstance(ts, str):
            settings: dateparser._Settings = {
                "RETURN_AS_TIMEZONE_AWARE": True,
                "TIMEZONE": "UTC",
            }
            t = dateparser.parse(ts, settings=settings)
            if t is None:
                raise ValueError("unrecognized timestamp {!r}".format(ts))
            ts = t
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=datetime.timezone.utc)
        return ts.astimezone(datetime.timezone.utc)
