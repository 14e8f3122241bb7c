"""In-memory workspace model for a web code editor.

Public API
----------
Facade::

    Workspace  — the observable state container collaborators talk to

Components::

    VirtualFileSystem, EditorSessionManager, ChangeTracker

Contracts (Pydantic models)::

    FileNode, FolderNode, FileSystemNode, FileSystemTree, NodeInfo,
    EditorTab, CursorPosition, SelectionRange, Decoration,
    ChangeState, CommitResult, ChatMessage, Notice,
    OperationResult, WorkspaceSnapshot, EditorWidget

Errors::

    WorkspaceError, PathNotFound, InvalidOperation,
    NothingToCommit, CollaboratorFailure

Diff::

    generate_diff, file_diff, multi_file_diff

Terminal::

    Terminal, TerminalOutput

Assistant::

    CodeCommand, LLMClient, HTTPLLMClient
"""

from webide.assistant import CodeCommand
from webide.changes import ChangeTracker
from webide.contracts import (
    ChangeState,
    ChatMessage,
    CommitResult,
    CursorPosition,
    Decoration,
    EditorTab,
    EditorWidget,
    FileNode,
    FileSystemNode,
    FileSystemTree,
    FolderNode,
    NodeInfo,
    Notice,
    OperationResult,
    SelectionRange,
    WorkspaceSnapshot,
)
from webide.diff_generator import file_diff, generate_diff, multi_file_diff
from webide.errors import (
    CollaboratorFailure,
    InvalidOperation,
    NothingToCommit,
    PathNotFound,
    WorkspaceError,
)
from webide.filesystem import VirtualFileSystem
from webide.llm_client import HTTPLLMClient, LLMClient
from webide.sessions import EditorSessionManager
from webide.terminal import Terminal, TerminalOutput
from webide.workspace import Workspace

__all__ = [
    # Facade
    "Workspace",
    # Components
    "VirtualFileSystem",
    "EditorSessionManager",
    "ChangeTracker",
    # Contracts
    "FileNode",
    "FolderNode",
    "FileSystemNode",
    "FileSystemTree",
    "NodeInfo",
    "EditorTab",
    "CursorPosition",
    "SelectionRange",
    "Decoration",
    "ChangeState",
    "CommitResult",
    "ChatMessage",
    "Notice",
    "OperationResult",
    "WorkspaceSnapshot",
    "EditorWidget",
    # Errors
    "WorkspaceError",
    "PathNotFound",
    "InvalidOperation",
    "NothingToCommit",
    "CollaboratorFailure",
    # Diff
    "generate_diff",
    "file_diff",
    "multi_file_diff",
    # Terminal
    "Terminal",
    "TerminalOutput",
    # Assistant
    "CodeCommand",
    "LLMClient",
    "HTTPLLMClient",
]
