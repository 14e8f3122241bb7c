"""Workspace contracts — Pydantic models for the values collaborators see.

Everything handed out of the workspace is a value: frozen models, tuples
and plain dicts built fresh for each snapshot.  Collaborators never hold a
mutable reference into the live state.

Also contains the editor-widget protocol the workspace talks to for
selection, edits and decorations.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Protocol, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# File-system tree (nested view)
# ---------------------------------------------------------------------------


class FileNode(BaseModel):
    """A file holding text content."""

    model_config = ConfigDict(frozen=True)

    type: Literal["file"] = "file"
    content: str = ""


class FolderNode(BaseModel):
    """A folder mapping unique child names to nodes."""

    model_config = ConfigDict(frozen=True)

    type: Literal["folder"] = "folder"
    children: dict[str, FileSystemNode] = Field(default_factory=dict)


FileSystemNode = Annotated[Union[FileNode, FolderNode], Field(discriminator="type")]

# Root of the nested view: top-level names to nodes (no single root node).
FileSystemTree = dict[str, FileSystemNode]

FolderNode.model_rebuild()

NodeKind = Literal["file", "folder"]


class NodeInfo(BaseModel):
    """One entry of a folder listing."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    kind: NodeKind


# ---------------------------------------------------------------------------
# Editor session
# ---------------------------------------------------------------------------


class EditorTab(BaseModel):
    """One open editing session, identified by the file's path."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Path of the open file")
    name: str
    content: str
    is_dirty: bool = False


class CursorPosition(BaseModel):
    """1-based cursor location reported by the editor widget."""

    model_config = ConfigDict(frozen=True)

    line_number: int = Field(default=1, ge=1)
    column: int = Field(default=1, ge=1)


class SelectionRange(BaseModel):
    """Inclusive-start, exclusive-end selection inside the editor buffer."""

    model_config = ConfigDict(frozen=True)

    start_line: int = Field(..., ge=1)
    start_column: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)
    end_column: int = Field(..., ge=1)

    @property
    def is_empty(self) -> bool:
        return (self.start_line, self.start_column) == (self.end_line, self.end_column)


class Decoration(BaseModel):
    """A hover annotation the editor widget renders over a range."""

    model_config = ConfigDict(frozen=True)

    range: SelectionRange
    hover_message: str
    is_whole_line: bool = True
    class_name: str = "explained-code"
    glyph_hover_message: str = "AI Explanation Available"


# ---------------------------------------------------------------------------
# Source control
# ---------------------------------------------------------------------------


class ChangeState(str, enum.Enum):
    """Pending-commit state of a path."""

    UNMODIFIED = "unmodified"
    UNSTAGED = "unstaged"
    STAGED = "staged"


class CommitResult(BaseModel):
    """Transient outcome of a (mocked) commit, never stored."""

    model_config = ConfigDict(frozen=True)

    message: str
    paths: tuple[str, ...]


# ---------------------------------------------------------------------------
# Assistant transcript
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    """One entry of the assistant chat transcript."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    text: str = ""
    is_loading: bool = False
    exchange_id: str | None = None


# ---------------------------------------------------------------------------
# Operation outcomes
# ---------------------------------------------------------------------------


class Notice(BaseModel):
    """A user-facing message raised by an operation."""

    model_config = ConfigDict(frozen=True)

    level: Literal["info", "warning", "error"] = "info"
    message: str


class OperationResult(BaseModel):
    """Structured result from a workspace operation.

    Use the ``ok`` / ``fail`` factory class methods for clean construction.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    data: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None) -> OperationResult:
        """Create a successful result."""
        return cls(success=True, data=data or {})

    @classmethod
    def fail(cls, error: str, *, data: dict[str, Any] | None = None) -> OperationResult:
        """Create a failure result."""
        return cls(success=False, error=error, data=data or {})


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class WorkspaceSnapshot(BaseModel):
    """Consistent view of the whole workspace after one transition."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(..., ge=0)
    file_system: FileSystemTree
    open_tabs: tuple[EditorTab, ...] = ()
    active_tab_id: str | None = None
    unstaged: tuple[str, ...] = ()
    staged: tuple[str, ...] = ()
    commit_message: str = ""
    chat_history: tuple[ChatMessage, ...] = ()
    is_ai_loading: bool = False
    cursor_position: CursorPosition = Field(default_factory=CursorPosition)
    notices: tuple[Notice, ...] = ()

    @property
    def active_tab(self) -> EditorTab | None:
        for tab in self.open_tabs:
            if tab.id == self.active_tab_id:
                return tab
        return None


# ---------------------------------------------------------------------------
# Editor widget protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class EditorWidget(Protocol):
    """The rich editor component, as seen from the workspace.

    The workspace never renders text; it reads the buffer and selection
    and forwards edits and decorations.
    """

    def get_value(self) -> str: ...

    def get_selection(self) -> SelectionRange | None: ...

    def get_text_in_range(self, selection: SelectionRange) -> str: ...

    def apply_edit(self, selection: SelectionRange, text: str) -> None: ...

    def delta_decorations(
        self, old_ids: list[str], decorations: list[Decoration]
    ) -> list[str]: ...
