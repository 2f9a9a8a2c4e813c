from __future__ import annotations

import errno
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Literal

from ..domain.exceptions import (
    AlreadyExistsError,
    ContentError,
    DirectoryNotEmptyError,
    FileTooLargeError,
    InvalidPathError,
    NotFoundError,
    ParentNotFoundError,
    PermissionDeniedError,
    StorageIOError,
)
from ..paths import PathGuard, is_within
from ..util import atomic_write_bytes, rfc3339_from_timestamp

logger = logging.getLogger("mdtree.store")

DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024

EntryType = Literal["folder", "file"]


@dataclass(frozen=True)
class DirEntry:
    name: str
    path: str
    type: EntryType


@dataclass(frozen=True)
class FileStat:
    size: int
    mtime: float
    is_directory: bool

    @property
    def updated_at(self) -> str:
        return rfc3339_from_timestamp(self.mtime)


@contextmanager
def translate_os_errors(path: str, op: str) -> Iterator[None]:
    """Re-raise OS failures as ContentError subclasses.

    Errors that are already classified pass through untouched.
    """
    try:
        yield
    except ContentError:
        raise
    except (FileNotFoundError, NotADirectoryError) as e:
        raise NotFoundError(f"{path} not found", path=path) from e
    except FileExistsError as e:
        raise AlreadyExistsError(f"{path} already exists", path=path) from e
    except PermissionError as e:
        raise PermissionDeniedError("Permission denied", path=path) from e
    except OSError as e:
        if e.errno == errno.ENOTEMPTY:
            raise DirectoryNotEmptyError(f"{path} is not empty", path=path) from e
        if e.errno in (errno.EACCES, errno.EPERM, errno.EROFS):
            raise PermissionDeniedError("Permission denied", path=path) from e
        logger.warning("os_error", extra={"op": op, "path": path, "errno": e.errno})
        raise StorageIOError(f"{op} failed: {e.strerror or e}", path=path) from e


class FileStore:
    """Filesystem operations confined to one root directory.

    Every call re-checks the disk; nothing is cached here, so entries that
    were changed by other programs are seen as they are now.
    """

    def __init__(
        self,
        guard: PathGuard,
        *,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        show_hidden: bool = False,
    ) -> None:
        self.guard = guard
        self.max_file_bytes = max_file_bytes
        self.show_hidden = show_hidden

    @property
    def root(self) -> Path:
        return self.guard.root

    def _resolve(self, path: str) -> tuple[str, Path]:
        rel = self.guard.normalize(path)
        return rel, self.guard.absolute(rel)

    def exists(self, path: str) -> bool:
        rel, abs_path = self._resolve(path)
        with translate_os_errors(rel, "exists"):
            return os.path.lexists(abs_path)

    def is_directory(self, path: str) -> bool:
        rel, abs_path = self._resolve(path)
        with translate_os_errors(rel, "is_directory"):
            return abs_path.is_dir()

    def is_file(self, path: str) -> bool:
        rel, abs_path = self._resolve(path)
        with translate_os_errors(rel, "is_file"):
            return abs_path.is_file()

    def stat(self, path: str) -> FileStat:
        rel, abs_path = self._resolve(path)
        with translate_os_errors(rel, "stat"):
            st = abs_path.stat()
            return FileStat(size=st.st_size, mtime=st.st_mtime, is_directory=abs_path.is_dir())

    def read_bytes(self, path: str) -> bytes:
        rel, abs_path = self._resolve(path)
        with translate_os_errors(rel, "read"):
            if abs_path.is_dir():
                raise NotFoundError(f"{rel} is a folder", path=rel)
            size = abs_path.stat().st_size
            if size > self.max_file_bytes:
                raise FileTooLargeError(f"{rel} is larger than {self.max_file_bytes} bytes", path=rel)
            return abs_path.read_bytes()

    def read(self, path: str) -> str:
        data = self.read_bytes(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StorageIOError(f"{path} is not valid UTF-8 text", path=path) from e

    def write(self, path: str, content: str | bytes) -> None:
        rel, abs_path = self._resolve(path)
        data = content.encode("utf-8") if isinstance(content, str) else content
        if len(data) > self.max_file_bytes:
            raise FileTooLargeError(f"{rel} is larger than {self.max_file_bytes} bytes", path=rel)
        with translate_os_errors(rel, "write"):
            if abs_path.is_dir():
                raise AlreadyExistsError(f"{rel} is a folder", path=rel)
            self._make_parents(rel, abs_path)
            atomic_write_bytes(abs_path, data)
        logger.debug("write", extra={"path": rel, "bytes": len(data)})

    def make_directory(self, path: str) -> None:
        rel, abs_path = self._resolve(path)
        with translate_os_errors(rel, "mkdir"):
            try:
                abs_path.mkdir(parents=True, exist_ok=False)
            except (FileNotFoundError, NotADirectoryError) as e:
                # An ancestor vanished mid-create, or is a file.
                raise ParentNotFoundError(f"parent of {rel} not found", path=rel) from e
        logger.debug("mkdir", extra={"path": rel})

    def delete(self, path: str) -> None:
        """Remove a file, or a directory only when it is empty."""
        rel, abs_path = self._resolve(path)
        with translate_os_errors(rel, "delete"):
            if abs_path.is_dir() and not abs_path.is_symlink():
                try:
                    os.rmdir(abs_path)
                except OSError as e:
                    if e.errno in (errno.ENOTEMPTY, errno.EEXIST):
                        raise DirectoryNotEmptyError(f"{rel} is not empty", path=rel) from e
                    raise
            else:
                os.unlink(abs_path)
        logger.debug("delete", extra={"path": rel})

    def move(self, src: str, dest: str) -> None:
        src_rel, src_abs = self._resolve(src)
        dest_rel, dest_abs = self._resolve(dest)
        if src_rel == dest_rel:
            raise AlreadyExistsError(f"{dest_rel} already exists", path=dest_rel)
        if is_within(dest_rel, src_rel):
            raise InvalidPathError("move_into_self", path=dest_rel)

        with translate_os_errors(src_rel, "move"):
            if not os.path.lexists(src_abs):
                raise NotFoundError(f"{src_rel} not found", path=src_rel)
            if os.path.lexists(dest_abs) and not self._same_entry(src_abs, dest_abs):
                raise AlreadyExistsError(f"{dest_rel} already exists", path=dest_rel)
        with translate_os_errors(dest_rel, "move"):
            self._make_parents(dest_rel, dest_abs)
        with translate_os_errors(src_rel, "move"):
            os.rename(src_abs, dest_abs)
        logger.debug("move", extra={"path": src_rel, "dest": dest_rel})

    def list(self, path: str | None = None) -> list[DirEntry]:
        """Direct children of `path` (the root when omitted), sorted by name."""
        if path is None:
            rel, abs_path = "", self.root
        else:
            rel, abs_path = self._resolve(path)
        entries: list[DirEntry] = []
        with translate_os_errors(rel or "/", "list"):
            with os.scandir(abs_path) as it:
                for entry in it:
                    if not self.show_hidden and entry.name.startswith("."):
                        continue
                    try:
                        is_dir = entry.is_dir()
                    except OSError:
                        # Vanished or unreadable between scandir and the type check.
                        continue
                    child = f"{rel}/{entry.name}" if rel else entry.name
                    entries.append(DirEntry(name=entry.name, path=child, type="folder" if is_dir else "file"))
        entries.sort(key=lambda e: e.name)
        return entries

    def _make_parents(self, rel: str, abs_path: Path) -> None:
        try:
            abs_path.parent.mkdir(parents=True, exist_ok=True)
        except FileExistsError as e:
            raise ParentNotFoundError(f"parent of {rel} is not a folder", path=rel) from e

    @staticmethod
    def _same_entry(a: Path, b: Path) -> bool:
        # Case-only renames on case-insensitive filesystems see the source as the destination.
        try:
            return os.path.samefile(a, b)
        except OSError:
            return False
