# SQLite page storage usable as the template source of a Parser
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import sqlite3
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from .common import NS_FILE, NS_MEDIA, NS_TEMPLATE
from .logging_utils import logger
from .options import TemplateFetchResult
from .title import Title

if TYPE_CHECKING:
    from .core import Parser


@dataclass
class Page:
    title: str
    namespace_id: int
    redirect_to: Optional[str] = None
    body: Optional[str] = None


class PageStore:
    """Pages kept in a SQLite database.  Without ``db_path`` a temporary
    database file is created and removed again by close()."""

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        lang_code: str = "en",
    ) -> None:
        if isinstance(db_path, str):
            self.db_path: Optional[Path] = Path(db_path)
        else:
            self.db_path = db_path
        self.lang_code = lang_code
        self.create_db()

    def create_db(self) -> None:
        if self.db_path is None:
            temp_file = tempfile.NamedTemporaryFile(
                prefix="wikitextengine_tempdb", delete=False
            )
            self.db_path = Path(temp_file.name)
            temp_file.close()

        self.db_conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.db_conn.executescript(
            """
        CREATE TABLE IF NOT EXISTS pages (
        title TEXT,
        namespace_id INTEGER,
        redirect_to TEXT,
        body TEXT,
        PRIMARY KEY(title, namespace_id));

        PRAGMA journal_mode = WAL;
        """
        )

    def close(self) -> None:
        assert self.db_path
        self.db_conn.close()
        if self.db_path.parent.samefile(Path(tempfile.gettempdir())):
            for path in self.db_path.parent.glob(self.db_path.name + "*"):
                # also remove SQLite -wal and -shm file
                path.unlink(True)

    def _title(self, title: Union[str, Title], namespace_id: int) -> Title:
        if isinstance(title, Title):
            return title
        t = Title.new_from_text(title, namespace_id, self.lang_code)
        if t is None:
            raise ValueError("invalid page title {!r}".format(title))
        return t

    def add_page(
        self,
        title: Union[str, Title],
        body: Optional[str] = None,
        redirect_to: Optional[str] = None,
        namespace_id: int = 0,
    ) -> None:
        """Saves a page.  String titles are parsed with ``namespace_id`` as
        the default namespace, so "Template:Foo" and ("Foo", 10) name the
        same page."""
        t = self._title(title, namespace_id)
        self.db_conn.execute(
            """INSERT INTO pages (title, namespace_id, body, redirect_to)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(title, namespace_id) DO UPDATE SET
        body=excluded.body, redirect_to=excluded.redirect_to""",
            (t.text, t.namespace_id, body, redirect_to),
        )
        self.get_page.cache_clear()

    @lru_cache(maxsize=1000)
    def get_page(
        self, title: Title, resolve_redirect: bool = False
    ) -> Optional[Page]:
        """Returns the page or None if it does not exist.  With
        ``resolve_redirect`` a redirect page is replaced by its target (one
        level only)."""
        assert isinstance(title, Title)
        page: Optional[Page] = None
        try:
            for result in self.db_conn.execute(
                """SELECT title, namespace_id, redirect_to, body
            FROM pages WHERE title = ? AND namespace_id = ? LIMIT 1""",
                (title.text, title.namespace_id),
            ):
                page = Page(
                    title=result[0],
                    namespace_id=result[1],
                    redirect_to=result[2],
                    body=result[3],
                )
        except sqlite3.ProgrammingError as e:
            raise sqlite3.ProgrammingError(
                f"{' '.join(e.args)}"
                f" Current database file path: {self.db_path}"
            ) from e
        if page is not None and resolve_redirect and page.redirect_to:
            target = Title.new_from_text(
                page.redirect_to, lang_code=self.lang_code
            )
            if target is None:
                logger.warning(
                    "{}: invalid redirect target {!r}".format(
                        title, page.redirect_to
                    )
                )
                return None
            return self.get_page(target, False)
        return page

    def page_exists(
        self, title: Union[str, Title], namespace_id: int = 0
    ) -> bool:
        return self.get_page(self._title(title, namespace_id)) is not None

    def fetch_template(
        self, title: Title, parser: "Parser"
    ) -> Optional[TemplateFetchResult]:
        """Template callback for Parser.  A redirect is followed once; the
        redirect page is then reported as a dependency together with the
        target."""
        page = self.get_page(title)
        if page is None:
            return None
        if not page.redirect_to:
            return TemplateFetchResult(page.body, title)
        target = Title.new_from_text(
            page.redirect_to, NS_TEMPLATE, self.lang_code
        )
        if target is None:
            return None
        target_page = self.get_page(target)
        if target_page is None or target_page.redirect_to:
            # Known title without usable text
            return TemplateFetchResult(None, target, [title])
        return TemplateFetchResult(target_page.body, target, [title])

    def file_exists(self, title: Title) -> bool:
        """Checks if the description page of a file exists."""
        if title.namespace_id not in (NS_FILE, NS_MEDIA):
            return False
        file_title = Title.make_title_safe(NS_FILE, title.text, self.lang_code)
        return file_title is not None and self.get_page(file_title) is not None
