# Magic words (subst:, variables, parser function names, behavior switches)
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import json
import re
from collections.abc import Iterable, Sequence
from functools import lru_cache
from importlib.resources import files
from typing import Optional

from lru import LRU

# Behavior switches.  These are removed from rendered output and recorded
# as page properties.
# https://www.mediawiki.org/wiki/Help:Magic_words#Behavior_switches
DOUBLE_UNDERSCORE_IDS: tuple[str, ...] = (
    "notoc",
    "forcetoc",
    "toc",
    "noeditsection",
    "nogallery",
    "hiddencat",
    "index",
    "noindex",
    "staticredirect",
)

# Magic words used as variables, such as {{PAGENAME}}
VARIABLE_IDS: tuple[str, ...] = (
    "pagename",
    "fullpagename",
    "namespace",
    "namespacenumber",
    "currentyear",
    "currentmonth",
    "currentday",
    "currentday2",
    "currenttime",
    "currenttimestamp",
    "!",
)

# Parser function names (the part before the colon)
FUNCTION_IDS: tuple[str, ...] = (
    "if",
    "ifeq",
    "switch",
    "time",
    "lc",
    "uc",
    "lcfirst",
    "ucfirst",
    "ns",
)


@lru_cache(maxsize=None)
def load_magic_word_data(lang_code: str) -> dict[str, list]:
    """Loads magic word definitions: id -> [case_sensitive, synonym, ...]."""
    data_folder = files("wikitextengine") / "data" / lang_code
    with data_folder.joinpath("magicwords.json").open(encoding="utf-8") as f:
        return json.load(f)


class MagicWord:
    """A magic word with its synonyms.  Case-insensitive words match
    synonyms in any case."""

    __slots__ = ("id", "case_sensitive", "synonyms", "start_re", "exact")

    def __init__(
        self, word_id: str, case_sensitive: bool, synonyms: Sequence[str]
    ) -> None:
        assert synonyms
        self.id = word_id
        self.case_sensitive = case_sensitive
        self.synonyms = tuple(synonyms)
        flags = 0 if case_sensitive else re.I
        self.start_re = re.compile(r"\s*(?:{})".format(self.base_regex), flags)
        if case_sensitive:
            self.exact = frozenset(self.synonyms)
        else:
            self.exact = frozenset(s.lower() for s in self.synonyms)

    @property
    def base_regex(self) -> str:
        # Longest synonyms first so that alternation prefers them
        syns = sorted(self.synonyms, key=len, reverse=True)
        return "|".join(re.escape(s) for s in syns)

    def synonym(self, i: int) -> str:
        return self.synonyms[i]

    def matches(self, text: str) -> bool:
        """Checks if ``text`` is exactly one of the synonyms."""
        text = text.strip()
        if not self.case_sensitive:
            text = text.lower()
        return text in self.exact

    def match_start_and_remove(self, text: str) -> Optional[str]:
        """If ``text`` starts with a synonym, returns the rest of the text,
        otherwise None."""
        m = self.start_re.match(text)
        if m is None:
            return None
        return text[m.end() :]

    def __repr__(self) -> str:
        return "MagicWord({!r}, {!r})".format(self.id, self.synonyms)


class MagicWordCache:
    """Cache of compiled magic words.  The embedding application owns the
    cache and may share it between parsers; ``clear()`` drops everything
    compiled so far and must not be called while a parse is running."""

    def __init__(self, lang_code: str = "en", size: int = 1000) -> None:
        self.lang_code = lang_code
        self.definitions = load_magic_word_data(lang_code)
        self.cache: LRU = LRU(size)

    def get(self, word_id: str) -> MagicWord:
        mw = self.cache.get(word_id)
        if mw is None:
            data = self.definitions.get(word_id)
            if data is None:
                raise KeyError("unknown magic word {!r}".format(word_id))
            mw = MagicWord(word_id, bool(data[0]), data[1:])
            self.cache[word_id] = mw
        return mw

    def match(self, word_ids: Iterable[str], text: str) -> Optional[str]:
        """Returns the id of the first magic word in ``word_ids`` that
        ``text`` is a synonym of, or None."""
        for word_id in word_ids:
            if word_id in self.definitions and self.get(word_id).matches(text):
                return word_id
        return None

    def match_variable(self, name: str) -> Optional[str]:
        return self.match(VARIABLE_IDS, name)

    def match_function(self, name: str) -> Optional[tuple[str, str]]:
        """Checks if ``name`` is a parser function call "fn:arg".  Returns
        the function id and the text after the colon, or None."""
        ofs = name.find(":")
        if ofs <= 0:
            return None
        fn_id = self.match(FUNCTION_IDS, name[:ofs])
        if fn_id is None:
            return None
        return fn_id, name[ofs + 1 :]

    def double_underscore_re(self) -> re.Pattern[str]:
        """Returns a regexp matching any behavior switch."""
        key = ("__regex__", DOUBLE_UNDERSCORE_IDS)
        regex = self.cache.get(key)
        if regex is None:
            alts = []
            for word_id in DOUBLE_UNDERSCORE_IDS:
                mw = self.get(word_id)
                alt = mw.base_regex
                if not mw.case_sensitive:
                    alt = "(?i:{})".format(alt)
                alts.append(alt)
            regex = re.compile("|".join(alts))
            self.cache[key] = regex
        return regex

    def clear(self) -> None:
        self.cache.clear()

    def __len__(self) -> int:
        return len(self.cache)
