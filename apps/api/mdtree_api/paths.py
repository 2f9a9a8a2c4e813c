from __future__ import annotations

from pathlib import Path, PurePosixPath
from urllib.parse import unquote

from .domain.exceptions import InvalidPathError

NOTE_SUFFIX = ".md"


def _segments(raw: str) -> list[str]:
    return raw.replace("\\", "/").split("/")


def _has_traversal(raw: str) -> bool:
    # Percent-decoding twice also catches double-encoded "%252e%252e".
    candidates = {raw, unquote(raw), unquote(unquote(raw))}
    return any(".." in (seg.strip() for seg in _segments(c)) for c in candidates)


def normalize_path(path: str | None) -> str:
    """Validate a caller-supplied path and return its canonical relative form.

    Pure string validation: nothing here touches the filesystem.
    """
    if path is None or not path.strip():
        raise InvalidPathError("presence", path=path)
    if "\x00" in path:
        raise InvalidPathError("nul", path=path)
    if _has_traversal(path):
        raise InvalidPathError("traversal", path=path)

    cleaned = path.strip().replace("\\", "/")
    p = PurePosixPath(cleaned)
    if p.is_absolute() or (len(cleaned) > 1 and cleaned[1] == ":"):
        raise InvalidPathError("absolute", path=path)

    parts = [part for part in p.parts if part not in ("", ".")]
    if not parts:
        raise InvalidPathError("presence", path=path)
    return PurePosixPath(*parts).as_posix()


def normalize_note_path(path: str | None) -> str:
    p = PurePosixPath(normalize_path(path))
    if p.suffix.lower() != NOTE_SUFFIX:
        p = p.with_name(p.name + NOTE_SUFFIX)
    return p.as_posix()


def path_name(path: str) -> str:
    return PurePosixPath(path).name


def parent_path(path: str) -> str | None:
    parent = PurePosixPath(path).parent.as_posix()
    return None if parent == "." else parent


def is_within(path: str, ancestor: str) -> bool:
    return path == ancestor or path.startswith(ancestor.rstrip("/") + "/")


class PathGuard:
    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()

    def normalize(self, path: str | None) -> str:
        return normalize_path(path)

    def absolute(self, path: str | None) -> Path:
        rel = self.normalize(path)
        abs_path = self.root / PurePosixPath(rel)
        # Containment is checked on the resolved path; callers act on the unresolved one
        # so a symlink is moved or removed itself rather than its target.
        self._ensure_under_root(abs_path.resolve(), rel)
        return abs_path

    def relative(self, abs_path: Path) -> str:
        return abs_path.relative_to(self.root).as_posix()

    def _ensure_under_root(self, abs_path: Path, rel: str) -> None:
        if self.root not in abs_path.parents and abs_path != self.root:
            raise InvalidPathError("outside_root", path=rel)
