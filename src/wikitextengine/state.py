# Per-parse state: expansion stack, fetch cache, output and messages
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import datetime
import enum
from typing import TYPE_CHECKING, Optional

from .common import (
    NS_CATEGORY,
    RecursionLimitError,
    TemplateFetchError,
    TemplateLoopError,
)
from .logging_utils import logger
from .messages import get_message
from .nodes import Node
from .options import ParserOptions, TemplateFetchResult
from .output import ErrorMessageData, ParserOutput
from .title import Title

if TYPE_CHECKING:
    from .core import Parser


@enum.unique
class OutputType(enum.Enum):
    """What the expander produces."""

    # Text to be rendered as HTML; comments are removed
    HTML = enum.auto()
    # Expanded wikitext; comments and <nowiki> are kept
    PREPROCESS = enum.auto()
    # Pre-save transform; only subst: is expanded
    WIKI = enum.auto()


class ParseState:
    """Everything that lives for the duration of one parse call.  A new
    state is created for each call, so the Parser itself can be shared."""

    __slots__ = (
        "parser",
        "title",
        "options",
        "output_type",
        "output",
        "magic_words",
        "timestamp",
        "expand_stack",
        "fetch_cache",
        "body_cache",
    )

    def __init__(
        self,
        parser: "Parser",
        title: Title,
        options: ParserOptions,
        output_type: OutputType,
    ) -> None:
        assert isinstance(title, Title)
        assert isinstance(options, ParserOptions)
        self.parser = parser
        self.title = title
        self.options = options
        self.output_type = output_type
        self.output = ParserOutput()
        self.magic_words = parser.magic_words
        self.timestamp: datetime.datetime = options.get_timestamp()
        # Titles of the page and of the templates being expanded
        self.expand_stack: list[str] = [title.full_text]
        self.fetch_cache: dict[Title, Optional[TemplateFetchResult]] = {}
        # Parsed template bodies, keyed by title and whether comments
        # were kept
        self.body_cache: dict[tuple[Title, bool], list[Node]] = {}

    @property
    def depth(self) -> int:
        return len(self.expand_stack) - 1

    def push_template(self, title: Title) -> None:
        """Marks ``title`` as being expanded.  Raises TemplateLoopError if it
        already is, and RecursionLimitError if the template nesting would
        get too deep."""
        name = title.full_text
        if name in self.expand_stack:
            raise TemplateLoopError(name, self.depth)
        if len(self.expand_stack) > self.options.max_template_depth:
            raise RecursionLimitError(name, self.options.max_template_depth)
        self.expand_stack.append(name)

    def pop_template(self) -> None:
        assert len(self.expand_stack) > 1
        self.expand_stack.pop()

    def fetch_template(self, title: Title) -> Optional[TemplateFetchResult]:
        """Fetches a template through the template callback.  Each title is
        fetched at most once per parse.  Found titles, and the titles the
        callback reports as used, are recorded as dependencies."""
        if title in self.fetch_cache:
            return self.fetch_cache[title]
        callback = self.options.template_callback
        if callback is None:
            callback = self.parser.default_template_callback
        result: Optional[TemplateFetchResult] = None
        if callback is not None:
            try:
                result = callback(title, self.parser)
            except TemplateFetchError as e:
                self.warning(
                    "fetching {} failed: {}".format(title, e),
                    sortid="state/fetch",
                )
        if result is not None:
            self.output.add_template(title)
            if result.final_title is not None:
                self.output.add_template(result.final_title)
            for dep in result.dependencies:
                self.output.add_template(dep)
        self.fetch_cache[title] = result
        return result

    def add_tracking_category(self, msg_key: str) -> bool:
        """Adds the category named by message ``msg_key`` to the page.
        Special pages get no tracking categories.  Returns True if the
        category was added."""
        if self.title.is_special_context():
            self.debug(
                "not adding tracking category {} to special page".format(
                    msg_key
                ),
                sortid="state/tracking-special",
            )
            return False
        if msg_key in self.output.tracking_categories:
            return False
        name = get_message(
            msg_key, self.options.lang_code, self.options.message_fn
        )
        if name is None or name == "-":
            # "-" disables the category
            return False
        cat = Title.make_title_safe(NS_CATEGORY, name, self.options.lang_code)
        if cat is None:
            self.warning(
                "invalid tracking category name {!r} for {}".format(
                    name, msg_key
                ),
                sortid="state/tracking-invalid",
            )
            return False
        self.output.tracking_categories.append(msg_key)
        self.output.add_category(cat.db_key)
        return True

    def _message(
        self, msg: str, trace: Optional[str], sortid: str
    ) -> ErrorMessageData:
        # sortid should be a static string only used to sort
        # messages into buckets based on where they have been called.
        return {
            "msg": msg,
            "trace": trace or "",
            "title": self.title.full_text,
            "called_from": sortid,
            "path": tuple(self.expand_stack),
        }

    def _fmt_errmsg(self, msg: str, trace: Optional[str]) -> str:
        if len(self.expand_stack) > 1:
            msg += " at {}".format(self.expand_stack)
        if trace:
            msg += "\n" + trace
        return "{}: {}".format(self.title.full_text, msg)

    def error(
        self, msg: str, trace: Optional[str] = None, sortid: str = "XYZunsorted"
    ) -> None:
        """Logs an error message.  The error is also saved in the output's
        errors."""
        assert isinstance(msg, str)
        assert isinstance(trace, (str, type(None)))
        assert isinstance(sortid, str)
        self.output.errors.append(self._message(msg, trace, sortid))
        logger.error(self._fmt_errmsg(msg, trace))

    def warning(
        self, msg: str, trace: Optional[str] = None, sortid: str = "XYZunsorted"
    ) -> None:
        """Logs a warning message.  The warning is also saved in the
        output's warnings."""
        assert isinstance(msg, str)
        assert isinstance(trace, (str, type(None)))
        assert isinstance(sortid, str)
        self.output.warnings.append(self._message(msg, trace, sortid))
        logger.warning(self._fmt_errmsg(msg, trace))

    def debug(
        self, msg: str, trace: Optional[str] = None, sortid: str = "XYZunsorted"
    ) -> None:
        """Logs a debug message.  The message is also saved in the output's
        debugs."""
        assert isinstance(msg, str)
        assert isinstance(trace, (str, type(None)))
        assert isinstance(sortid, str)
        self.output.debugs.append(self._message(msg, trace, sortid))
        logger.debug(self._fmt_errmsg(msg, trace))
