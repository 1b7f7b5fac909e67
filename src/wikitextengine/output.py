# Result of parsing a page
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from typing import TypedDict

from .title import Title


class ErrorMessageData(TypedDict):
    msg: str
    trace: str
    title: str
    called_from: str
    path: tuple[str, ...]


class ParserOutput:
    """Rendered text and the metadata collected while parsing.  The parser
    keeps no reference to this object after returning it."""

    __slots__ = (
        "text",
        "categories",
        "tracking_categories",
        "_templates",
        "properties",
        "errors",
        "warnings",
        "debugs",
    )

    def __init__(self) -> None:
        self.text = ""
        # Category DB key -> sort key, in order of first appearance
        self.categories: dict[str, str] = {}
        # Message keys of emitted tracking categories
        self.tracking_categories: list[str] = []
        self._templates: dict[Title, None] = {}
        # Behavior switches seen on the page, e.g. {"notoc": ""}
        self.properties: dict[str, str] = {}
        self.errors: list[ErrorMessageData] = []
        self.warnings: list[ErrorMessageData] = []
        self.debugs: list[ErrorMessageData] = []

    @property
    def category_links(self) -> list[str]:
        return list(self.categories.keys())

    @property
    def templates(self) -> list[Title]:
        return list(self._templates.keys())

    def add_category(self, db_key: str, sort_key: str = "") -> None:
        if db_key not in self.categories:
            self.categories[db_key] = sort_key

    def add_template(self, title: Title) -> None:
        self._templates[title] = None

    def __repr__(self) -> str:
        return "ParserOutput(text={!r}, categories={!r})".format(
            self.text[:50], self.category_links
        )
