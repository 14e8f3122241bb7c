"""Change tracker — the staging workflow behind the source-control view.

Each tracked path maps to a single ``ChangeState``; ``unstaged`` and
``staged`` are views over that mapping, so a path can never sit in both.
Moving a path (stage/unstage) re-inserts it at the end of the ordering,
which is the order the views and the staged diff use.

Commit is a mock: it clears the staged paths and the message and hands
back a ``CommitResult`` that nothing stores.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from webide.contracts import ChangeState, CommitResult
from webide.diff_generator import multi_file_diff
from webide.errors import NothingToCommit
from webide.filesystem import is_under

logger = logging.getLogger(__name__)

PUSH_NOTICE = "Pushing changes... (mocked)"

ContentLookup = Callable[[str], str | None]


class ChangeTracker:
    """Path → ``ChangeState`` mapping plus the pending commit message."""

    def __init__(self) -> None:
        self._states: dict[str, ChangeState] = {}
        self._commit_message = ""

    # -- views -------------------------------------------------------------

    @property
    def unstaged(self) -> tuple[str, ...]:
        return self._paths_in(ChangeState.UNSTAGED)

    @property
    def staged(self) -> tuple[str, ...]:
        return self._paths_in(ChangeState.STAGED)

    @property
    def commit_message(self) -> str:
        return self._commit_message

    def state_of(self, path: str) -> ChangeState:
        return self._states.get(path, ChangeState.UNMODIFIED)

    # -- transitions -------------------------------------------------------

    def mark_unstaged(self, path: str) -> bool:
        """Record a saved path as unstaged unless it is already staged."""
        if self.state_of(path) is not ChangeState.UNMODIFIED:
            return False
        self._move([path], ChangeState.UNSTAGED)
        return True

    def stage(self, path: str) -> bool:
        if self.state_of(path) is not ChangeState.UNSTAGED:
            return False
        self._move([path], ChangeState.STAGED)
        return True

    def unstage(self, path: str) -> bool:
        if self.state_of(path) is not ChangeState.STAGED:
            return False
        self._move([path], ChangeState.UNSTAGED)
        return True

    def stage_all(self) -> int:
        paths = self.unstaged
        self._move(paths, ChangeState.STAGED)
        return len(paths)

    def unstage_all(self) -> int:
        paths = self.staged
        self._move(paths, ChangeState.UNSTAGED)
        return len(paths)

    def set_commit_message(self, message: str) -> None:
        self._commit_message = message

    def commit(self, message: str | None = None) -> CommitResult:
        """Clear the staged paths and the message.

        Uses the stored message when *message* is ``None``.  Raises
        ``NothingToCommit`` (state untouched) when nothing is staged or the
        message is blank.
        """
        text = self._commit_message if message is None else message
        staged = self.staged
        if not staged or not text.strip():
            raise NothingToCommit(len(staged), bool(text.strip()))

        self._states = {
            path: state
            for path, state in self._states.items()
            if state is not ChangeState.STAGED
        }
        self._commit_message = ""
        logger.info("Committed %d path(s): %s", len(staged), text.strip().splitlines()[0])
        return CommitResult(message=text, paths=staged)

    def push(self) -> str:
        logger.info("Push requested (mocked)")
        return PUSH_NOTICE

    # -- bookkeeping after file-system changes -----------------------------

    def rename_path(self, old_path: str, new_path: str) -> None:
        """Carry tracked states of *old_path* (and descendants) to *new_path*."""
        if not any(is_under(path, old_path) for path in self._states):
            return
        self._states = {
            (new_path + path[len(old_path):] if is_under(path, old_path) else path): state
            for path, state in self._states.items()
        }

    def forget(self, paths: Iterable[str]) -> None:
        gone = set(paths)
        self._states = {p: s for p, s in self._states.items() if p not in gone}

    # -- diff --------------------------------------------------------------

    def staged_diff(self, baseline: ContentLookup, current: ContentLookup) -> str:
        """Positional diff of every staged path, baseline against current.

        Missing content on either side diffs as the empty string.
        """
        return multi_file_diff(
            (path, baseline(path) or "", current(path) or "") for path in self.staged
        )

    # -- internals ---------------------------------------------------------

    def _paths_in(self, state: ChangeState) -> tuple[str, ...]:
        return tuple(path for path, s in self._states.items() if s is state)

    def _move(self, paths: Iterable[str], state: ChangeState) -> None:
        moving = list(paths)
        if not moving:
            return
        states = {p: s for p, s in self._states.items() if p not in moving}
        for path in moving:
            states[path] = state
        self._states = states
