from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from mdtree_api.domain.exceptions import ConflictError, ContentError, InvalidPathError, NotFoundError
from mdtree_api.domain.ports import ContentStore
from mdtree_api.domain.results import OperationError, OperationResult
from mdtree_api.hugo import slugify, update_frontmatter_slug
from mdtree_api.parsing import FrontmatterParse, extract_title, parse_frontmatter
from mdtree_api.paths import normalize_note_path, normalize_path, parent_path, path_name
from mdtree_api.util import content_hash

if TYPE_CHECKING:
    from mdtree_api.storage.file_store import FileStat
    from mdtree_api.tree import ContentTree, TreeNode

logger = logging.getLogger("mdtree.entities")

_MESSAGES = {
    "not_found": "{noun} not found",
    "already_exists": "{noun} already exists",
    "directory_not_empty": "Folder is not empty",
    "permission_denied": "Permission denied",
    "parent_not_found": "Parent folder not found",
    "conflict": "{noun} was changed since it was loaded",
    "file_too_large": "{noun} is too large",
    "io_error": "Could not access the {lower}",
}


class _Entity:
    noun = "Item"
    _normalize: Callable[[str | None], str] = staticmethod(normalize_path)

    def __init__(self, path: str | None, *, store: ContentStore, tree: ContentTree) -> None:
        self.store = store
        self.tree = tree
        self.errors: list[OperationError] = []
        try:
            self.path = self._normalize(path)
        except InvalidPathError:
            # Kept as given; validate() reports it as a field error.
            self.path = path or ""

    @property
    def name(self) -> str:
        return path_name(self.path)

    @property
    def parent_path(self) -> str | None:
        return parent_path(self.path)

    def to_param(self) -> str:
        return self.path

    def persisted(self) -> bool:
        return self.exists()

    def exists(self) -> bool:
        raise NotImplementedError

    def validate(self) -> OperationResult:
        result = OperationResult()
        self._checked_path(result, self.path)
        return self._finish(result)

    def valid(self) -> bool:
        return self.validate().ok

    def _checked_path(self, result: OperationResult, value: str | None) -> str | None:
        try:
            return self._normalize(value)
        except InvalidPathError as e:
            result.add_field("path", e.kind, e.message)
            return None

    def _message(self, kind: str) -> str:
        template = _MESSAGES.get(kind, _MESSAGES["io_error"])
        return template.format(noun=self.noun, lower=self.noun.lower())

    def _fail(self, result: OperationResult, exc: ContentError) -> OperationResult:
        if isinstance(exc, InvalidPathError):
            result.add_field("path", exc.kind, exc.message)
        else:
            result.add_base(exc.kind, self._message(exc.kind))
        logger.debug(
            f"{self.noun.lower()}_error",
            extra={"path": self.path, "kind": exc.kind, "detail": exc.message},
        )
        return self._finish(result)

    def _finish(self, result: OperationResult) -> OperationResult:
        self.errors = result.errors
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self.path!r})"


class Folder(_Entity):
    noun = "Folder"

    @classmethod
    def find(cls, path: str, *, store: ContentStore, tree: ContentTree) -> Folder:
        folder = cls(path, store=store, tree=tree)
        if not folder.exists():
            raise NotFoundError(f"Folder not found: {path}", path=path)
        return folder

    def exists(self) -> bool:
        try:
            return self.store.is_directory(self.path)
        except ContentError:
            return False

    def children(self) -> list[TreeNode]:
        node = self.tree.find_node(self.path)
        if node is None or node.type != "folder":
            return []
        return list(node.children or [])

    def create(self) -> OperationResult:
        result = OperationResult()
        path = self._checked_path(result, self.path)
        if path is None:
            return self._finish(result)
        if self.exists():
            result.add_base("already_exists", self._message("already_exists"))
            return self._finish(result)
        try:
            self.store.make_directory(path)
        except ContentError as e:
            return self._fail(result, e)
        finally:
            self.tree.invalidate()
        logger.debug("folder_create", extra={"path": path})
        return self._finish(result)

    def destroy(self) -> OperationResult:
        """Remove the folder if it is empty. Contents are never deleted."""
        result = OperationResult()
        path = self._checked_path(result, self.path)
        if path is None:
            return self._finish(result)
        try:
            if not self.store.is_directory(path):
                raise NotFoundError(f"Folder not found: {path}", path=path)
            self.store.delete(path)
        except ContentError as e:
            return self._fail(result, e)
        finally:
            self.tree.invalidate()
        logger.debug("folder_destroy", extra={"path": path})
        return self._finish(result)

    def rename(self, new_path: str | None) -> OperationResult:
        result = OperationResult()
        old = self._checked_path(result, self.path)
        new = self._checked_path(result, new_path)
        if old is None or new is None:
            return self._finish(result)
        try:
            if not self.store.is_directory(old):
                raise NotFoundError(f"Folder not found: {old}", path=old)
            self.store.move(old, new)
        except ContentError as e:
            return self._fail(result, e)
        finally:
            self.tree.invalidate()

        self.path = new
        logger.debug("folder_rename", extra={"path": old, "dest": new})
        self._update_hugo_index_slug(new)
        return self._finish(result)

    def _update_hugo_index_slug(self, folder_path: str) -> None:
        index_path = f"{folder_path}/index.md"
        try:
            if not self.store.is_file(index_path):
                return
            content = self.store.read(index_path)
            updated = update_frontmatter_slug(content, slugify(path_name(folder_path)))
            if updated is None:
                return
            self.store.write(index_path, updated)
            logger.debug("hugo_slug_update", extra={"path": index_path})
        except Exception:
            # The rename has already succeeded; a failed slug sync is only logged.
            logger.warning("hugo_slug_update_failed", extra={"path": index_path}, exc_info=True)


class Note(_Entity):
    noun = "Note"
    _normalize = staticmethod(normalize_note_path)

    def __init__(self, path: str | None, *, store: ContentStore, tree: ContentTree) -> None:
        super().__init__(path, store=store, tree=tree)
        self._content: str | None = None

    @classmethod
    def find(cls, path: str, *, store: ContentStore, tree: ContentTree) -> Note:
        note = cls(path, store=store, tree=tree)
        if not note.exists():
            raise NotFoundError(f"Note not found: {path}", path=path)
        return note

    def exists(self) -> bool:
        try:
            return self.store.is_file(self.path)
        except ContentError:
            return False

    @property
    def content(self) -> str:
        if self._content is None:
            self._content = self.store.read(self.path)
        return self._content

    def reload(self) -> None:
        self._content = None

    def load(self) -> OperationResult:
        result = OperationResult()
        if self._checked_path(result, self.path) is None:
            return self._finish(result)
        self.reload()
        try:
            _ = self.content
        except ContentError as e:
            return self._fail(result, e)
        return self._finish(result)

    def stat(self) -> FileStat:
        return self.store.stat(self.path)

    @property
    def size(self) -> int:
        return self.stat().size

    @property
    def mtime(self) -> float:
        return self.stat().mtime

    @property
    def content_hash(self) -> str:
        return content_hash(self.content)

    @property
    def parsed(self) -> FrontmatterParse:
        return parse_frontmatter(self.content)

    @property
    def frontmatter(self) -> dict:
        return self.parsed.frontmatter

    @property
    def title(self) -> str:
        return extract_title(self.frontmatter, self.path)

    def create(self, content: str = "") -> OperationResult:
        result = OperationResult()
        path = self._checked_path(result, self.path)
        if path is None:
            return self._finish(result)
        try:
            if self.store.exists(path):
                result.add_base("already_exists", self._message("already_exists"))
                return self._finish(result)
            self.store.write(path, content)
        except ContentError as e:
            return self._fail(result, e)
        finally:
            self.tree.invalidate()
        self._content = content
        logger.debug("note_create", extra={"path": path, "bytes": len(content)})
        return self._finish(result)

    def write(self, content: str, expected_hash: str | None = None) -> OperationResult:
        """Replace the note's content, creating the file when it is missing.

        With `expected_hash`, the write is refused if the file on disk no
        longer hashes to it. Without it, the last writer wins.
        """
        result = OperationResult()
        path = self._checked_path(result, self.path)
        if path is None:
            return self._finish(result)
        created = False
        try:
            if expected_hash is not None:
                current = content_hash(self.store.read(path))
                if current != expected_hash:
                    raise ConflictError(f"{path} changed on disk", path=path)
            created = not self.store.exists(path)
            self.store.write(path, content)
        except ContentError as e:
            return self._fail(result, e)
        finally:
            if created:
                self.tree.invalidate()
        self._content = content
        logger.debug("note_write", extra={"path": path, "bytes": len(content), "new_file": created})
        return self._finish(result)

    def destroy(self) -> OperationResult:
        result = OperationResult()
        path = self._checked_path(result, self.path)
        if path is None:
            return self._finish(result)
        try:
            if not self.store.is_file(path):
                raise NotFoundError(f"Note not found: {path}", path=path)
            self.store.delete(path)
        except ContentError as e:
            return self._fail(result, e)
        finally:
            self.tree.invalidate()
        self._content = None
        logger.debug("note_destroy", extra={"path": path})
        return self._finish(result)

    def rename(self, new_path: str | None) -> OperationResult:
        result = OperationResult()
        old = self._checked_path(result, self.path)
        new = self._checked_path(result, new_path)
        if old is None or new is None:
            return self._finish(result)
        try:
            if not self.store.is_file(old):
                raise NotFoundError(f"Note not found: {old}", path=old)
            self.store.move(old, new)
        except ContentError as e:
            return self._fail(result, e)
        finally:
            self.tree.invalidate()
        self.path = new
        logger.debug("note_rename", extra={"path": old, "dest": new})
        return self._finish(result)
