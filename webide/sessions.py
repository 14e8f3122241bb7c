"""Editor session manager — open tabs, the active tab, dirty tracking.

A tab's ``is_dirty`` flag is always recomputed against the file system's
*current* content for its path, never against the content the tab was
opened with, so an external change to the file moves the baseline.

Decoration ids (editor-widget annotations tied to buffer positions) are
kept per tab and dropped whenever the tab's content changes or the tab
closes: positions computed against old content are never carried over.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from webide.changes import ChangeTracker
from webide.contracts import EditorTab
from webide.filesystem import VirtualFileSystem, is_under, normalise_path, split_path

logger = logging.getLogger(__name__)


class EditorSessionManager:
    """Ordered open tabs plus the active-tab pointer.

    Reads and writes file content through *vfs* and reports saved paths
    to *changes*.
    """

    def __init__(self, vfs: VirtualFileSystem, changes: ChangeTracker) -> None:
        self._vfs = vfs
        self._changes = changes
        self._tabs: tuple[EditorTab, ...] = ()
        self._active_tab_id: str | None = None
        self._decorations: dict[str, tuple[str, ...]] = {}

    # -- views -------------------------------------------------------------

    @property
    def tabs(self) -> tuple[EditorTab, ...]:
        return self._tabs

    @property
    def active_tab_id(self) -> str | None:
        return self._active_tab_id

    @property
    def active_tab(self) -> EditorTab | None:
        return self.get(self._active_tab_id) if self._active_tab_id else None

    def get(self, tab_id: str) -> EditorTab | None:
        for tab in self._tabs:
            if tab.id == tab_id:
                return tab
        return None

    def decorations(self, tab_id: str) -> tuple[str, ...]:
        return self._decorations.get(tab_id, ())

    # -- lifecycle ---------------------------------------------------------

    def open_file(self, path: str, name: str | None = None) -> EditorTab | None:
        """Open *path* in a tab (or focus its existing tab).

        Returns ``None`` without creating a tab when *path* is not a file.
        """
        existing = self.get(path)
        if existing is not None:
            self._active_tab_id = path
            return existing

        content = self._vfs.read_content(path)
        if content is None:
            logger.debug("open_file: %r is not a file", path)
            return None

        tab = EditorTab(
            id=path,
            name=name or split_path(normalise_path(path))[1] or path,
            content=content,
        )
        self._tabs = self._tabs + (tab,)
        self._active_tab_id = path
        return tab

    def close_tab(self, tab_id: str) -> bool:
        """Close *tab_id*; when it was active, focus the last remaining tab."""
        self._decorations.pop(tab_id, None)
        remaining = tuple(tab for tab in self._tabs if tab.id != tab_id)
        if len(remaining) == len(self._tabs):
            return False
        self._tabs = remaining
        if self._active_tab_id == tab_id:
            self._active_tab_id = remaining[-1].id if remaining else None
        return True

    def set_active(self, tab_id: str) -> None:
        self._active_tab_id = tab_id

    # -- content -----------------------------------------------------------

    def update_content(self, tab_id: str, content: str) -> EditorTab | None:
        """Replace a tab's buffer and recompute its dirty flag."""
        tab = self.get(tab_id)
        if tab is None:
            return None
        self.clear_decorations(tab_id)
        persisted = self._vfs.read_content(tab_id) or ""
        updated = tab.model_copy(update={"content": content, "is_dirty": content != persisted})
        self._replace(updated)
        return updated

    def save(self, tab_id: str) -> bool:
        """Persist a dirty tab and mark its path unstaged.

        A path already staged from an earlier save keeps its staged state.
        """
        tab = self.get(tab_id)
        if tab is None or not tab.is_dirty:
            return False
        if not self._vfs.write_content(tab.id, tab.content):
            logger.warning("Save skipped, %r no longer resolves to a file", tab.id)
            return False
        self._replace(tab.model_copy(update={"is_dirty": False}))
        self._changes.mark_unstaged(tab.id)
        logger.info("Saved %s", tab.id)
        return True

    def save_active(self) -> bool:
        if self._active_tab_id is None:
            return False
        return self.save(self._active_tab_id)

    def refresh_dirty(self) -> None:
        """Recompute every tab's dirty flag against the file system."""
        refreshed = []
        for tab in self._tabs:
            persisted = self._vfs.read_content(tab.id) or ""
            refreshed.append(tab.model_copy(update={"is_dirty": tab.content != persisted}))
        self._tabs = tuple(refreshed)

    # -- decorations -------------------------------------------------------

    def attach_decorations(self, tab_id: str, ids: Iterable[str]) -> None:
        if self.get(tab_id) is None:
            return
        self._decorations[tab_id] = self.decorations(tab_id) + tuple(ids)

    def clear_decorations(self, tab_id: str) -> tuple[str, ...]:
        """Forget the tab's decorations and return the dropped ids."""
        return self._decorations.pop(tab_id, ())

    # -- file-system bookkeeping -------------------------------------------

    def retarget(self, old_path: str, new_path: str) -> None:
        """Follow a rename: tabs under *old_path* move to *new_path*."""
        if not any(is_under(tab.id, old_path) for tab in self._tabs):
            return
        tabs = []
        for tab in self._tabs:
            if is_under(tab.id, old_path):
                new_id = new_path + tab.id[len(old_path):]
                if tab.id in self._decorations:
                    self._decorations[new_id] = self._decorations.pop(tab.id)
                tabs.append(tab.model_copy(update={"id": new_id, "name": split_path(new_id)[1]}))
            else:
                tabs.append(tab)
        self._tabs = tuple(tabs)
        if self._active_tab_id and is_under(self._active_tab_id, old_path):
            self._active_tab_id = new_path + self._active_tab_id[len(old_path):]

    def drop_under(self, path: str) -> list[str]:
        """Close every tab at or below *path*; return the closed ids."""
        closed = [tab.id for tab in self._tabs if is_under(tab.id, path)]
        for tab_id in closed:
            self.close_tab(tab_id)
        return closed

    # -- internals ---------------------------------------------------------

    def _replace(self, updated: EditorTab) -> None:
        self._tabs = tuple(updated if tab.id == updated.id else tab for tab in self._tabs)
