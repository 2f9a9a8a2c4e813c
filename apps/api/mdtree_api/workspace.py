from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from .config import Settings
from .domain.entities import Folder, Note
from .domain.results import OperationResult
from .hugo import generate_blog_post, slugify
from .paths import PathGuard
from .search import DEFAULT_CONTEXT_LINES, DEFAULT_MAX_RESULTS, SearchEngine
from .storage.file_store import DEFAULT_MAX_FILE_BYTES, FileStore
from .tree import ContentTree

logger = logging.getLogger("mdtree.workspace")


class Workspace:
    """Everything bound to one notes root: guard, store, tree and search."""

    def __init__(
        self,
        root: Path,
        *,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        show_hidden: bool = False,
        search_max_results: int = DEFAULT_MAX_RESULTS,
        search_context_lines: int = DEFAULT_CONTEXT_LINES,
    ) -> None:
        self.guard = PathGuard(root)
        self.store = FileStore(self.guard, max_file_bytes=max_file_bytes, show_hidden=show_hidden)
        self.tree = ContentTree(self.store)
        self.search = SearchEngine(
            self.tree,
            self.store,
            max_results=search_max_results,
            context_lines=search_context_lines,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> Workspace:
        settings.notes_dir.mkdir(parents=True, exist_ok=True)
        return cls(
            settings.notes_dir,
            max_file_bytes=settings.max_file_bytes,
            show_hidden=settings.show_hidden,
            search_max_results=settings.search_max_results,
            search_context_lines=settings.search_context_lines,
        )

    @property
    def root(self) -> Path:
        return self.guard.root

    def note(self, path: str | None) -> Note:
        return Note(path, store=self.store, tree=self.tree)

    def folder(self, path: str | None) -> Folder:
        return Folder(path, store=self.store, tree=self.tree)

    def find_note(self, path: str) -> Note:
        return Note.find(path, store=self.store, tree=self.tree)

    def find_folder(self, path: str) -> Folder:
        return Folder.find(path, store=self.store, tree=self.tree)

    def create_blog_post(
        self,
        title: str,
        parent: str | None = None,
        *,
        now: datetime | None = None,
    ) -> tuple[Note, OperationResult]:
        if not slugify(title or ""):
            note = self.note(None)
            result = OperationResult()
            result.add_field("title", "invalid_title", "must contain at least one letter or digit")
            note.errors = result.errors
            return note, result
        post = generate_blog_post(title, parent, now=now)
        note = self.note(post.path)
        result = note.create(post.content)
        if result.ok:
            logger.info("blog_post_create", extra={"path": note.path})
        return note, result
