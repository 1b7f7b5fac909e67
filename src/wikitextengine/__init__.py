from .common import (
    RecursionLimitError,
    TemplateFetchError,
    TemplateLoopError,
    add_newline_to_expansion,
    nowiki_quote,
)
from .core import Parser
from .magicwords import MagicWord, MagicWordCache
from .options import ParserOptions, TemplateFetchResult, User
from .output import ParserOutput
from .pagestore import Page, PageStore
from .scanner import Token, TokenKind, scan
from .sections import Section
from .state import OutputType, ParseState
from .title import Title

__all__ = (
    "MagicWord",
    "MagicWordCache",
    "OutputType",
    "Page",
    "PageStore",
    "ParseState",
    "Parser",
    "ParserOptions",
    "ParserOutput",
    "RecursionLimitError",
    "Section",
    "TemplateFetchError",
    "TemplateFetchResult",
    "TemplateLoopError",
    "Title",
    "Token",
    "TokenKind",
    "User",
    "add_newline_to_expansion",
    "nowiki_quote",
    "scan",
)
