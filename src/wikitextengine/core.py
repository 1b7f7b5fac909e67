# Definition of the Parser, the entry point for parsing, preprocessing,
# pre-save transform and section handling of wikitext.
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import logging
from typing import Optional

from .expander import Expander
from .logging_utils import logger
from .magicwords import MagicWordCache
from .options import (
    FileExistsCallable,
    ParserOptions,
    TemplateCallback,
    User,
)
from .output import ParserOutput
from .pagestore import PageStore
from .preload import get_preload_text
from .render import render_html
from .sections import Section, get_section, replace_section, split_sections
from .sigs import (
    clean_sig,
    clean_sig_in_sig,
    expand_tildes,
    get_user_sig,
    signature_timestamp,
)
from .state import OutputType, ParseState
from .title import Title


class Parser:
    """Wikitext parser.  The intended usage pattern is to create the parser
    once and use it for any number of pages.  The parser keeps no state
    between calls; everything related to one call lives in a ParseState,
    so a parser may be used from several threads at once."""

    __slots__ = (
        "options",  # Default ParserOptions
        "lang_code",
        "magic_words",  # MagicWordCache, may be shared between parsers
        "page_store",  # Optional PageStore for templates and files
    )

    def __init__(
        self,
        options: Optional[ParserOptions] = None,
        lang_code: str = "en",
        magic_words: Optional[MagicWordCache] = None,
        page_store: Optional[PageStore] = None,
        quiet: bool = False,
    ) -> None:
        assert isinstance(options, (ParserOptions, type(None)))
        if options is None:
            options = ParserOptions(lang_code=lang_code)
        self.options = options
        self.lang_code = lang_code
        if magic_words is None:
            magic_words = MagicWordCache(lang_code)
        self.magic_words = magic_words
        self.page_store = page_store
        if not quiet:
            logger.setLevel(logging.DEBUG)

    @property
    def default_template_callback(self) -> Optional[TemplateCallback]:
        """Template source used when the options have no callback."""
        if self.page_store is None:
            return None
        return self.page_store.fetch_template

    @property
    def default_file_exists_fn(self) -> Optional[FileExistsCallable]:
        if self.page_store is None:
            return None
        return self.page_store.file_exists

    def _new_state(
        self,
        title: Title,
        options: Optional[ParserOptions],
        output_type: OutputType,
    ) -> ParseState:
        assert isinstance(title, Title)
        if options is None:
            options = self.options
        return ParseState(self, title, options, output_type)

    def parse(
        self,
        text: str,
        title: Title,
        options: Optional[ParserOptions] = None,
    ) -> ParserOutput:
        """Expands templates in ``text`` and converts it to HTML.  Returns a
        ParserOutput with the HTML and the categories, templates and other
        information collected from the page."""
        assert isinstance(text, str)
        state = self._new_state(title, options, OutputType.HTML)
        state.debug("parsing", sortid="core/parse")
        expanded = Expander(state).expand_text(text)
        state.output.text = render_html(state, expanded)
        return state.output

    def preprocess(
        self,
        text: str,
        title: Title,
        options: Optional[ParserOptions] = None,
    ) -> str:
        """Expands templates in ``text`` and returns the resulting
        wikitext."""
        assert isinstance(text, str)
        state = self._new_state(title, options, OutputType.PREPROCESS)
        return Expander(state).expand_text(text)

    def pre_save_transform(
        self,
        text: str,
        title: Title,
        user: Optional[User] = None,
        options: Optional[ParserOptions] = None,
    ) -> str:
        """Transforms ``text`` the way it is done when a page is saved:
        normalizes line endings, substitutes subst: templates and then
        expands signatures of ``user``, including tildes that came from
        substituted templates.  The result is wikitext."""
        assert isinstance(text, str)
        assert isinstance(user, (User, type(None)))
        state = self._new_state(title, options, OutputType.WIKI)
        options = state.options
        if user is None:
            user = options.user
        text = text.replace("\r\n", "\n")
        text = Expander(state).expand_text(text)
        if user is not None:
            sig = self.get_user_sig(user, options)
            ts = signature_timestamp(
                state.timestamp, options.lang_code, options.message_fn
            )
            text = expand_tildes(text, sig, ts)
        return text.rstrip()

    def get_user_sig(
        self, user: User, options: Optional[ParserOptions] = None
    ) -> str:
        """Returns the signature of ``user``, without timestamp."""
        if options is None:
            options = self.options
        return get_user_sig(
            user,
            self.magic_words,
            options.clean_signatures,
            options.lang_code,
            options.message_fn,
        )

    def clean_sig(
        self, text: str, options: Optional[ParserOptions] = None
    ) -> str:
        """Cleans a custom signature if signature cleaning is enabled in the
        options."""
        if options is None:
            options = self.options
        return clean_sig(text, self.magic_words, options.clean_signatures)

    @staticmethod
    def clean_sig_in_sig(text: str) -> str:
        return clean_sig_in_sig(text)

    def get_preload_text(
        self,
        text: str,
        title: Title,
        options: Optional[ParserOptions] = None,
    ) -> str:
        """Returns ``text`` as it is inserted into the edit form when used
        as preload text."""
        assert isinstance(title, Title)
        return get_preload_text(text)

    def split_sections(self, text: str) -> list[Section]:
        return split_sections(text)

    def get_section(self, text: str, index: int, rtrim: bool = True) -> str:
        return get_section(text, index, rtrim)

    def replace_section(
        self, text: str, index: int, new_text: str, rtrim: bool = True
    ) -> str:
        return replace_section(text, index, new_text, rtrim)
