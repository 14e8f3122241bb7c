"""Virtual file system — the in-memory tree of files and folders.

Nodes live in a flat table keyed by normalised path (``""`` is the root
folder).  Folders store the ordered names of their children, files store
their content.  Every mutation builds a new table value and swaps it in,
touching only the affected entries, so a table captured by ``snapshot()``
before a write never changes afterwards.

The nested ``FileSystemTree`` view (see ``webide.contracts``) is built on
demand for observers and accepted for seeding.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Union

from pydantic import TypeAdapter

from webide.contracts import (
    FileNode,
    FileSystemNode,
    FileSystemTree,
    FolderNode,
    NodeInfo,
    NodeKind,
)
from webide.errors import InvalidOperation, PathNotFound

logger = logging.getLogger(__name__)

ROOT = ""

_TREE_ADAPTER: TypeAdapter[FileSystemTree] = TypeAdapter(FileSystemTree)


# ---------------------------------------------------------------------------
# Table entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileEntry:
    content: str = ""


@dataclass(frozen=True)
class FolderEntry:
    children: tuple[str, ...] = ()


Entry = Union[FileEntry, FolderEntry]


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def normalise_path(path: str) -> str:
    """Collapse *path* to its ``/``-joined non-empty segments."""
    return "/".join(part for part in path.split("/") if part)


def split_path(path: str) -> tuple[str, str]:
    """Return ``(parent, name)`` for a normalised *path*."""
    parent, _, name = path.rpartition("/")
    return parent, name


def join_path(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def is_under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def _table_from_tree(tree: Mapping[str, Any]) -> dict[str, Entry]:
    validated = _TREE_ADAPTER.validate_python(dict(tree))
    table: dict[str, Entry] = {}

    def _add(parent: str, children: Mapping[str, FileSystemNode]) -> tuple[str, ...]:
        for name, node in children.items():
            if not name or "/" in name:
                raise InvalidOperation("seed", f"Invalid node name {name!r}", path=parent)
            path = join_path(parent, name)
            if isinstance(node, FileNode):
                table[path] = FileEntry(node.content)
            else:
                table[path] = FolderEntry(_add(path, node.children))
        return tuple(children)

    table[ROOT] = FolderEntry(_add(ROOT, validated))
    return table


# ---------------------------------------------------------------------------
# VirtualFileSystem
# ---------------------------------------------------------------------------


class VirtualFileSystem:
    """Hierarchical file store with whole-value mutation."""

    def __init__(self, tree: Mapping[str, Any] | None = None) -> None:
        self._table: dict[str, Entry] = _table_from_tree(tree or {})

    @classmethod
    def from_snapshot(cls, table: Mapping[str, Entry]) -> VirtualFileSystem:
        vfs = cls()
        vfs._table = dict(table)
        return vfs

    # -- reads -------------------------------------------------------------

    def snapshot(self) -> Mapping[str, Entry]:
        """Read-only view of the current table (stable across later writes)."""
        return MappingProxyType(self._table)

    def kind(self, path: str) -> NodeKind | None:
        entry = self._table.get(normalise_path(path))
        if entry is None:
            return None
        return "file" if isinstance(entry, FileEntry) else "folder"

    def exists(self, path: str) -> bool:
        return normalise_path(path) in self._table

    def resolve(self, path: str) -> FileNode | FolderNode | None:
        """Return the node at *path*, or ``None`` when it does not resolve.

        Empty segments are skipped; the empty path is the root folder.
        """
        key = normalise_path(path)
        if key not in self._table:
            return None
        return self._build_node(key)

    def read_content(self, path: str) -> str | None:
        entry = self._table.get(normalise_path(path))
        if isinstance(entry, FileEntry):
            return entry.content
        return None

    def list_children(self, path: str = ROOT) -> list[NodeInfo] | None:
        """Children of the folder at *path* in storage (insertion) order."""
        key = normalise_path(path)
        entry = self._table.get(key)
        if not isinstance(entry, FolderEntry):
            return None
        infos = []
        for name in entry.children:
            child = join_path(key, name)
            kind: NodeKind = "file" if isinstance(self._table[child], FileEntry) else "folder"
            infos.append(NodeInfo(name=name, path=child, kind=kind))
        return infos

    def sorted_children(self, path: str = ROOT) -> list[NodeInfo] | None:
        """Children in display order: folders first, then by name."""
        children = self.list_children(path)
        if children is None:
            return None
        return sorted(children, key=lambda info: (info.kind != "folder", info.name))

    def walk_files(self, path: str = ROOT) -> Iterator[tuple[str, str]]:
        """Yield ``(path, content)`` for every file under *path*, depth first."""
        key = normalise_path(path)
        entry = self._table.get(key)
        if isinstance(entry, FileEntry):
            yield key, entry.content
        elif isinstance(entry, FolderEntry):
            for name in entry.children:
                yield from self.walk_files(join_path(key, name))

    def to_tree(self) -> FileSystemTree:
        root = self._build_node(ROOT)
        assert isinstance(root, FolderNode)
        return dict(root.children)

    # -- writes ------------------------------------------------------------

    def write_content(self, path: str, content: str) -> bool:
        """Replace a file's content.  No-op (``False``) unless *path* is a file."""
        key = normalise_path(path)
        if not isinstance(self._table.get(key), FileEntry):
            logger.debug("write_content ignored, not a file: %r", path)
            return False
        table = dict(self._table)
        table[key] = FileEntry(content)
        self._table = table
        return True

    def create_file(self, path: str, content: str = "") -> str:
        return self._insert(path, FileEntry(content), "create_file")

    def create_folder(self, path: str) -> str:
        return self._insert(path, FolderEntry(), "create_folder")

    def rename(self, path: str, new_name: str) -> str:
        """Rename the node at *path* within its parent and return the new path.

        Empty *new_name* or the current name leaves everything untouched.
        Descendants move with the node; its position among siblings is kept.
        """
        key = normalise_path(path)
        if not key or key not in self._table:
            raise PathNotFound(path)
        parent, name = split_path(key)
        if not new_name or new_name == name:
            return key
        if "/" in new_name:
            raise InvalidOperation("rename", f"Invalid name '{new_name}'", path=key)

        parent_entry = self._table[parent]
        assert isinstance(parent_entry, FolderEntry)
        if new_name in parent_entry.children:
            raise InvalidOperation(
                "rename", f"'{new_name}' already exists in '{parent or '/'}'", path=key
            )

        new_key = join_path(parent, new_name)
        table: dict[str, Entry] = {}
        for existing, entry in self._table.items():
            if is_under(existing, key):
                table[new_key + existing[len(key):]] = entry
            else:
                table[existing] = entry
        table[parent] = FolderEntry(
            tuple(new_name if child == name else child for child in parent_entry.children)
        )
        self._table = table
        logger.debug("Renamed %s -> %s", key, new_key)
        return new_key

    def delete(self, path: str) -> list[str]:
        """Remove the node and its subtree; return every removed path."""
        key = normalise_path(path)
        if not key or key not in self._table:
            raise PathNotFound(path)
        parent, name = split_path(key)
        removed = [existing for existing in self._table if is_under(existing, key)]
        table = {k: v for k, v in self._table.items() if not is_under(k, key)}
        parent_entry = table[parent]
        assert isinstance(parent_entry, FolderEntry)
        table[parent] = FolderEntry(
            tuple(child for child in parent_entry.children if child != name)
        )
        self._table = table
        logger.debug("Deleted %s (%d nodes)", key, len(removed))
        return removed

    # -- internals ---------------------------------------------------------

    def _insert(self, path: str, entry: Entry, operation: str) -> str:
        key = normalise_path(path)
        parent, name = split_path(key)
        if not name:
            raise InvalidOperation(operation, "A name is required", path=path)
        parent_entry = self._table.get(parent)
        if not isinstance(parent_entry, FolderEntry):
            raise PathNotFound(parent, expected="folder")
        if name in parent_entry.children:
            raise InvalidOperation(operation, f"'{key}' already exists", path=key)

        table = dict(self._table)
        table[parent] = FolderEntry(parent_entry.children + (name,))
        table[key] = entry
        self._table = table
        logger.debug("%s %s", operation, key)
        return key

    def _build_node(self, key: str) -> FileNode | FolderNode:
        entry = self._table[key]
        if isinstance(entry, FileEntry):
            return FileNode(content=entry.content)
        return FolderNode(
            children={name: self._build_node(join_path(key, name)) for name in entry.children}
        )
