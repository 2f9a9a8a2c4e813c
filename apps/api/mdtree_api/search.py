from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field

from .domain.exceptions import ContentError, InvalidQueryError
from .domain.ports import ContentStore
from .tree import ContentTree, iter_nodes

logger = logging.getLogger("mdtree.search")

DEFAULT_MAX_RESULTS = 200
DEFAULT_CONTEXT_LINES = 2


@dataclass(frozen=True)
class FileMatch:
    path: str
    name: str
    type: str


@dataclass(frozen=True)
class ContentMatch:
    path: str
    line_number: int
    line: str
    context_before: list[str] = field(default_factory=list)
    context_after: list[str] = field(default_factory=list)


def compile_query(query: str, *, regex: bool = False) -> re.Pattern[str] | None:
    needle = query.strip()
    if not needle:
        return None
    if not regex:
        return re.compile(re.escape(needle), re.IGNORECASE)
    try:
        return re.compile(needle, re.IGNORECASE)
    except re.error as e:
        raise InvalidQueryError(f"invalid regular expression: {e}") from e


def _editor_lines(text: str) -> list[str]:
    # Lines end at \n only; a trailing \r is dropped.
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class SearchEngine:
    """Filename and full-text search over the notes in a ContentTree.

    Patterns are matched line by line with no timeout; a catastrophic
    regex can still stall a request.
    """

    def __init__(
        self,
        tree: ContentTree,
        store: ContentStore,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        context_lines: int = DEFAULT_CONTEXT_LINES,
    ) -> None:
        self.tree = tree
        self.store = store
        self.max_results = max_results
        self.context_lines = context_lines

    def search_files(self, query: str, *, regex: bool = False, limit: int | None = None) -> list[FileMatch]:
        pattern = compile_query(query, regex=regex)
        if pattern is None:
            return []
        cap = self._cap(limit)

        out: list[FileMatch] = []
        for node in iter_nodes(self.tree.list_tree()):
            if pattern.search(node.name):
                out.append(FileMatch(path=node.path, name=node.name, type=node.type))
                if len(out) >= cap:
                    break
        return out

    def search_content(
        self,
        query: str,
        *,
        regex: bool = False,
        limit: int | None = None,
        context_lines: int | None = None,
    ) -> list[ContentMatch]:
        pattern = compile_query(query, regex=regex)
        if pattern is None:
            return []
        cap = self._cap(limit)
        ctx = self.context_lines if context_lines is None else max(0, context_lines)

        start = time.perf_counter()
        scanned = 0
        out: list[ContentMatch] = []
        for node in self.tree.notes():
            try:
                text = self.store.read(node.path)
            except ContentError as e:
                # Vanished, too large, or not UTF-8: none of these stop the search.
                logger.debug("search_skip", extra={"path": node.path, "kind": e.kind})
                continue
            scanned += 1
            lines = _editor_lines(text)
            for idx, line in enumerate(lines):
                if not pattern.search(line):
                    continue
                out.append(
                    ContentMatch(
                        path=node.path,
                        line_number=idx + 1,
                        line=line,
                        context_before=lines[max(0, idx - ctx) : idx],
                        context_after=lines[idx + 1 : idx + 1 + ctx],
                    )
                )
                if len(out) >= cap:
                    break
            if len(out) >= cap:
                break

        dt_ms = (time.perf_counter() - start) * 1000.0
        logger.info("search_content", extra={"files": scanned, "matches": len(out), "ms": dt_ms})
        return out

    def _cap(self, limit: int | None) -> int:
        if limit is None or limit <= 0:
            return self.max_results
        return min(limit, self.max_results)
