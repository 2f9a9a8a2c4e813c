from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Iterator, Literal

from .domain.exceptions import ContentError, InvalidPathError, NotFoundError
from .domain.ports import ContentStore
from .paths import NOTE_SUFFIX, normalize_path

logger = logging.getLogger("mdtree.tree")

NodeType = Literal["folder", "note"]


@dataclass
class TreeNode:
    path: str
    name: str
    type: NodeType
    children: list[TreeNode] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"path": self.path, "name": self.name, "type": self.type}
        if self.children is not None:
            out["children"] = [c.to_dict() for c in self.children]
        return out


def _sort_key(node: TreeNode) -> tuple[int, str, str]:
    return (0 if node.type == "folder" else 1, node.name.casefold(), node.name)


def find_in_tree(nodes: list[TreeNode], target: str) -> TreeNode | None:
    for node in nodes:
        if node.path == target:
            return node
        if node.type == "folder" and node.children:
            found = find_in_tree(node.children, target)
            if found is not None:
                return found
    return None


def iter_nodes(nodes: list[TreeNode]) -> Iterator[TreeNode]:
    for node in nodes:
        yield node
        if node.children:
            yield from iter_nodes(node.children)


class ContentTree:
    """Memoized folder/note listing of the store's root.

    The whole tree is rebuilt after any invalidation instead of being
    patched in place.
    """

    def __init__(self, store: ContentStore) -> None:
        self.store = store
        self._lock = threading.Lock()
        self._generation = 0
        self._cached: list[TreeNode] | None = None

    def invalidate(self) -> None:
        with self._lock:
            self._generation += 1
            self._cached = None

    def list_tree(self) -> list[TreeNode]:
        with self._lock:
            if self._cached is not None:
                return self._cached
            generation = self._generation

        start = time.perf_counter()
        nodes = self._build(None)
        dt_ms = (time.perf_counter() - start) * 1000.0

        with self._lock:
            # An invalidation during the build means the result may already be stale.
            if generation == self._generation:
                self._cached = nodes
        logger.debug("tree_rebuild", extra={"nodes": sum(1 for _ in iter_nodes(nodes)), "ms": dt_ms})
        return nodes

    def find_node(self, path: str | None) -> TreeNode | None:
        try:
            target = normalize_path(path)
        except InvalidPathError:
            return None
        return find_in_tree(self.list_tree(), target)

    def notes(self) -> list[TreeNode]:
        return [n for n in iter_nodes(self.list_tree()) if n.type == "note"]

    def _build(self, path: str | None) -> list[TreeNode]:
        try:
            entries = self.store.list(path)
        except NotFoundError:
            # Removed by another program while we were walking.
            return []
        except ContentError as e:
            if path is None:
                raise
            # Symlinks leaving the root and unreadable folders are listed empty.
            logger.debug("tree_skip", extra={"path": path, "kind": e.kind})
            return []

        nodes: list[TreeNode] = []
        for entry in entries:
            if entry.type == "folder":
                nodes.append(
                    TreeNode(path=entry.path, name=entry.name, type="folder", children=self._build(entry.path))
                )
            elif entry.name.lower().endswith(NOTE_SUFFIX):
                nodes.append(TreeNode(path=entry.path, name=entry.name, type="note"))
        nodes.sort(key=_sort_key)
        return nodes
