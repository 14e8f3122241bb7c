"""Workspace error hierarchy.

Every error carries typed fields (not just a message string),
supports ``to_dict()`` for serialisation into ``OperationResult.error``
and notices, and has a readable ``__str__`` for logging.

None of these are fatal: the facade catches them at its boundary and
turns them into user-facing notices with the state left unchanged.
"""

from __future__ import annotations


class WorkspaceError(Exception):
    """Base error for all workspace model failures."""

    def __init__(self, message: str, *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": self.message, **self.detail}

    def __str__(self) -> str:
        return self.message


class PathNotFound(WorkspaceError):
    """Path does not resolve, or resolves to the wrong kind of node."""

    def __init__(self, path: str, *, expected: str | None = None) -> None:
        self.path = path
        self.expected = expected or ""

        if expected:
            msg = f"{path}: No such {expected}"
        else:
            msg = f"{path}: No such file or directory"

        detail: dict = {"path": path}
        if expected:
            detail["expected"] = expected
        super().__init__(msg, detail=detail)


class InvalidOperation(WorkspaceError):
    """Operation rejected as a no-op (duplicate name, empty name, ...)."""

    def __init__(self, operation: str, reason: str, *, path: str | None = None) -> None:
        self.operation = operation
        self.reason = reason
        self.path = path or ""

        detail: dict = {"operation": operation, "reason": reason}
        if path:
            detail["path"] = path
        super().__init__(reason, detail=detail)


class NothingToCommit(InvalidOperation):
    """Commit requested with no staged paths or a blank message."""

    def __init__(self, staged_count: int, has_message: bool) -> None:
        self.staged_count = staged_count
        self.has_message = has_message
        super().__init__(
            "commit",
            "Nothing to commit. Stage changes and enter a commit message.",
        )
        self.detail.update(staged_count=staged_count, has_message=has_message)


class CollaboratorFailure(WorkspaceError):
    """An external collaborator (LLM service, editor widget) failed."""

    def __init__(self, collaborator: str, reason: str) -> None:
        self.collaborator = collaborator
        self.reason = reason
        super().__init__(
            f"{collaborator} failed: {reason}",
            detail={"collaborator": collaborator, "reason": reason},
        )
