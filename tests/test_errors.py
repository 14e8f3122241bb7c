"""Tests for webide.errors — the workspace error hierarchy."""

import pytest

from webide.errors import (
    CollaboratorFailure,
    InvalidOperation,
    NothingToCommit,
    PathNotFound,
    WorkspaceError,
)


# ---------------------------------------------------------------------------
# WorkspaceError (base)
# ---------------------------------------------------------------------------


class TestWorkspaceError:
    def test_basic_construction(self):
        err = WorkspaceError("something broke")
        assert str(err) == "something broke"
        assert err.message == "something broke"
        assert err.detail == {}

    def test_to_dict(self):
        err = WorkspaceError("fail", detail={"x": 1})
        d = err.to_dict()
        assert d["error"] == "WorkspaceError"
        assert d["message"] == "fail"
        assert d["x"] == 1

    def test_is_exception(self):
        with pytest.raises(WorkspaceError):
            raise WorkspaceError("boom")


# ---------------------------------------------------------------------------
# PathNotFound
# ---------------------------------------------------------------------------


class TestPathNotFound:
    def test_default_message(self):
        err = PathNotFound("src/missing.py")
        assert err.path == "src/missing.py"
        assert str(err) == "src/missing.py: No such file or directory"

    def test_expected_kind(self):
        err = PathNotFound("README.md", expected="folder")
        assert str(err) == "README.md: No such folder"
        assert err.to_dict()["expected"] == "folder"

    def test_is_workspace_error(self):
        assert issubclass(PathNotFound, WorkspaceError)


# ---------------------------------------------------------------------------
# InvalidOperation / NothingToCommit
# ---------------------------------------------------------------------------


class TestInvalidOperation:
    def test_fields(self):
        err = InvalidOperation("rename", "'a' already exists", path="src/b")
        assert err.operation == "rename"
        assert err.reason == "'a' already exists"
        d = err.to_dict()
        assert d["error"] == "InvalidOperation"
        assert d["path"] == "src/b"

    def test_nothing_to_commit(self):
        err = NothingToCommit(0, True)
        assert isinstance(err, InvalidOperation)
        assert "Nothing to commit" in str(err)
        d = err.to_dict()
        assert d["staged_count"] == 0
        assert d["has_message"] is True
        assert d["operation"] == "commit"


# ---------------------------------------------------------------------------
# CollaboratorFailure
# ---------------------------------------------------------------------------


class TestCollaboratorFailure:
    def test_message(self):
        err = CollaboratorFailure("anthropic", "rate limited")
        assert str(err) == "anthropic failed: rate limited"
        assert err.to_dict()["collaborator"] == "anthropic"
