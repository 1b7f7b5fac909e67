# Page titles and namespaces
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from importlib.resources import files
from typing import Optional, TypedDict

from .common import NS_MAIN, NS_SPECIAL

NamespaceDataEntry = TypedDict(
    "NamespaceDataEntry",
    {
        "aliases": list[str],
        "content": bool,
        "id": int,
        "issubject": bool,
        "istalk": bool,
        "name": str,
    },
    total=True,  # fields are obligatory
)

# Characters that can never appear in a title
ILLEGAL_TITLE_RE = re.compile(r"[\[\]{}|<>\n\t\x00-\x1f\x7f]")


class NamespaceTable:
    """Namespace names and aliases for one language, loaded from
    ``data/<lang_code>/namespaces.json``."""

    def __init__(self, lang_code: str) -> None:
        self.lang_code = lang_code
        data_folder = files("wikitextengine") / "data" / lang_code
        with data_folder.joinpath("namespaces.json").open(
            encoding="utf-8"
        ) as f:
            self.NAMESPACE_DATA: dict[str, NamespaceDataEntry] = json.load(f)
        self.LOCAL_NS_NAME_BY_ID: dict[int, str] = {
            data["id"]: data["name"] for data in self.NAMESPACE_DATA.values()
        }
        # Lowercased local names, canonical names and aliases -> id
        self.NS_ID_BY_PREFIX: dict[str, int] = {}
        for canonical, data in self.NAMESPACE_DATA.items():
            for name in [canonical, data["name"]] + data["aliases"]:
                if name and data["id"] != NS_MAIN:
                    self.NS_ID_BY_PREFIX[name.lower()] = data["id"]

    def name(self, ns_id: int) -> str:
        return self.LOCAL_NS_NAME_BY_ID.get(ns_id, "")

    def id_for_prefix(self, prefix: str) -> Optional[int]:
        prefix = re.sub(r"[\s_]+", " ", prefix).strip().lower()
        return self.NS_ID_BY_PREFIX.get(prefix)

    def is_content(self, ns_id: int) -> bool:
        for data in self.NAMESPACE_DATA.values():
            if data["id"] == ns_id:
                return data["content"]
        return False


@lru_cache(maxsize=None)
def get_namespace_table(lang_code: str = "en") -> NamespaceTable:
    return NamespaceTable(lang_code)


@dataclass(frozen=True)
class Title:
    """An immutable, normalized page title.  Titles compare equal when they
    name the same page."""

    namespace_id: int
    text: str
    namespace_name: str = ""

    @property
    def full_text(self) -> str:
        if self.namespace_name:
            return self.namespace_name + ":" + self.text
        return self.text

    @property
    def db_key(self) -> str:
        return self.text.replace(" ", "_")

    @property
    def prefixed_db_key(self) -> str:
        return self.full_text.replace(" ", "_")

    def is_special_context(self) -> bool:
        return self.namespace_id == NS_SPECIAL

    def __str__(self) -> str:
        return self.full_text

    @classmethod
    def new_from_text(
        cls,
        text: str,
        default_namespace: int = NS_MAIN,
        lang_code: str = "en",
    ) -> Optional["Title"]:
        """Parses ``text`` into a title.  A namespace prefix (name or alias,
        any case) selects that namespace; a leading colon forces the main
        namespace.  Returns None for empty or illegal titles."""
        assert isinstance(text, str)
        table = get_namespace_table(lang_code)
        text = re.sub(r"[\s_]+", " ", text).strip()
        ns_id = default_namespace
        if text.startswith(":"):
            ns_id = NS_MAIN
            text = text[1:].lstrip()
        ofs = text.find(":")
        if ofs > 0:
            prefix_id = table.id_for_prefix(text[:ofs])
            if prefix_id is not None:
                ns_id = prefix_id
                text = text[ofs + 1 :].strip()
        # The fragment is not part of the page name
        text = text.split("#", 1)[0].rstrip()
        return cls.make_title_safe(ns_id, text, lang_code)

    @classmethod
    def make_title_safe(
        cls, namespace_id: int, text: str, lang_code: str = "en"
    ) -> Optional["Title"]:
        """Returns the title ``text`` in namespace ``namespace_id``, or None
        if it is not a valid title."""
        table = get_namespace_table(lang_code)
        text = re.sub(r"[\s_]+", " ", text).strip()
        if not text or ILLEGAL_TITLE_RE.search(text) or "#" in text:
            return None
        if namespace_id not in table.LOCAL_NS_NAME_BY_ID:
            return None
        # page title is case-sensitive except the first character
        # https://www.mediawiki.org/wiki/Manual:Page_title#Naming_restrictions
        text = text[0].upper() + text[1:]
        return cls(namespace_id, text, table.name(namespace_id))
