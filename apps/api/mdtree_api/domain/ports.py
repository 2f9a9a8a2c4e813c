from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mdtree_api.storage.file_store import DirEntry, FileStat


@runtime_checkable
class ContentStore(Protocol):
    def exists(self, path: str) -> bool:
        ...

    def is_directory(self, path: str) -> bool:
        ...

    def is_file(self, path: str) -> bool:
        ...

    def stat(self, path: str) -> FileStat:
        ...

    def read(self, path: str) -> str:
        ...

    def write(self, path: str, content: str | bytes) -> None:
        ...

    def make_directory(self, path: str) -> None:
        ...

    def delete(self, path: str) -> None:
        ...

    def move(self, src: str, dest: str) -> None:
        ...

    def list(self, path: str | None = None) -> list[DirEntry]:
        ...
