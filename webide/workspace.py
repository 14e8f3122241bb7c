"""Workspace — the single state container behind the editor UI.

Composes the virtual file system, the editor sessions, the change tracker
and the assistant state, and is the only object collaborators (UI,
terminal, AI glue) talk to.  Reads hand out values; mutations go through
the named operations below.

Each operation applies all of its component changes first and then
publishes exactly one ``WorkspaceSnapshot`` to subscribers, so nobody
observes a saved file without its tab's dirty flag cleared, or a tab list
without the matching active pointer.  Streaming chat publishes once per
received chunk.

Failures never escape: ``PathNotFound`` / ``InvalidOperation`` become
notices with the state unchanged, and AI-service failures are surfaced
inline (chat transcript, commit message field, notice).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from webide.assistant import (
    CHAT_SYSTEM_INSTRUCTION,
    COMMIT_MESSAGE_ERROR,
    GENERATING_COMMIT_MESSAGE,
    NO_STAGED_CHANGES,
    SELECT_CODE_FIRST,
    ChatTranscript,
    CodeCommand,
    RequestTracker,
    build_chat_prompt,
    build_code_prompt,
    build_commit_prompt,
)
from webide.changes import ChangeTracker
from webide.config import Settings, settings as default_settings
from webide.contracts import (
    ChatMessage,
    CursorPosition,
    Decoration,
    EditorTab,
    EditorWidget,
    FileNode,
    FileSystemTree,
    FolderNode,
    NodeInfo,
    NodeKind,
    Notice,
    OperationResult,
    WorkspaceSnapshot,
)
from webide.defaults import INITIAL_FILE_SYSTEM
from webide.diff_generator import count_changes
from webide.errors import WorkspaceError
from webide.filesystem import VirtualFileSystem, normalise_path
from webide.llm_client import HTTPLLMClient, LLMClient
from webide.response_parser import clean_code_reply
from webide.sessions import EditorSessionManager

logger = logging.getLogger(__name__)

Subscriber = Callable[[WorkspaceSnapshot], None]


class Workspace:
    """Observable workspace state with a fixed set of operations.

    *initial_tree* seeds the file system (the demo project by default) and
    doubles as the baseline staged diffs are computed against.
    """

    def __init__(
        self,
        initial_tree: Mapping[str, Any] | None = None,
        *,
        llm: LLMClient | None = None,
        config: Settings | None = None,
    ) -> None:
        self.config = config or default_settings
        self._vfs = VirtualFileSystem(INITIAL_FILE_SYSTEM if initial_tree is None else initial_tree)
        self._baseline = VirtualFileSystem.from_snapshot(self._vfs.snapshot())
        self._changes = ChangeTracker()
        self._sessions = EditorSessionManager(self._vfs, self._changes)
        self._transcript = ChatTranscript()
        self._requests = RequestTracker()
        self._cursor = CursorPosition()
        self._notices: tuple[Notice, ...] = ()
        self._editor: EditorWidget | None = None
        self._llm = llm
        self._subscribers: list[Subscriber] = []
        self._version = 0
        self._snapshot = self._build_snapshot()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> WorkspaceSnapshot:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call *callback* with every new snapshot; returns an unsubscribe hook."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    @property
    def file_system(self) -> FileSystemTree:
        return self._snapshot.file_system

    @property
    def open_tabs(self) -> tuple[EditorTab, ...]:
        return self._sessions.tabs

    @property
    def active_tab_id(self) -> str | None:
        return self._sessions.active_tab_id

    @property
    def active_tab(self) -> EditorTab | None:
        return self._sessions.active_tab

    @property
    def unstaged(self) -> tuple[str, ...]:
        return self._changes.unstaged

    @property
    def staged(self) -> tuple[str, ...]:
        return self._changes.staged

    @property
    def commit_message(self) -> str:
        return self._changes.commit_message

    @property
    def chat_history(self) -> tuple[ChatMessage, ...]:
        return self._transcript.messages

    @property
    def is_ai_loading(self) -> bool:
        return self._requests.is_loading

    @property
    def cursor_position(self) -> CursorPosition:
        return self._cursor

    @property
    def notices(self) -> tuple[Notice, ...]:
        return self._notices

    def decorations(self, tab_id: str) -> tuple[str, ...]:
        return self._sessions.decorations(tab_id)

    # ------------------------------------------------------------------
    # File system
    # ------------------------------------------------------------------

    def resolve(self, path: str) -> FileNode | FolderNode | None:
        return self._vfs.resolve(path)

    def node_kind(self, path: str) -> NodeKind | None:
        return self._vfs.kind(path)

    def read_file(self, path: str) -> str | None:
        return self._vfs.read_content(path)

    def baseline_content(self, path: str) -> str | None:
        """Content *path* had when the workspace was created."""
        return self._baseline.read_content(path)

    def list_directory(self, path: str = "", *, display_order: bool = False) -> list[NodeInfo] | None:
        if display_order:
            return self._vfs.sorted_children(path)
        return self._vfs.list_children(path)

    def create_file(self, path: str, content: str = "") -> OperationResult:
        try:
            created = self._vfs.create_file(path, content)
        except WorkspaceError as exc:
            return self._reject(exc)
        self._publish()
        return OperationResult.ok({"path": created})

    def create_folder(self, path: str) -> OperationResult:
        try:
            created = self._vfs.create_folder(path)
        except WorkspaceError as exc:
            return self._reject(exc)
        self._publish()
        return OperationResult.ok({"path": created})

    def rename(self, path: str, new_name: str) -> OperationResult:
        """Rename a node; open tabs and tracked changes follow the new path."""
        try:
            old_path = normalise_path(path)
            new_path = self._vfs.rename(path, new_name)
        except WorkspaceError as exc:
            return self._reject(exc)
        if new_path != old_path:
            self._sessions.retarget(old_path, new_path)
            self._changes.rename_path(old_path, new_path)
            self._publish()
        return OperationResult.ok({"path": new_path})

    def delete(self, path: str) -> OperationResult:
        """Delete a node and its subtree; tabs showing removed files close.

        Irreversible; confirmation is the caller's business.
        """
        try:
            removed = self._vfs.delete(path)
        except WorkspaceError as exc:
            return self._reject(exc)
        closed = self._sessions.drop_under(normalise_path(path))
        self._changes.forget(removed)
        self._publish()
        return OperationResult.ok({"removed": removed, "closed_tabs": closed})

    def write_file(self, path: str, content: str) -> bool:
        """Persist *content* outside any tab (e.g. a tool writing a file).

        Open tabs re-derive their dirty flag against the new content and
        the path is recorded as an unstaged change.
        """
        if not self._vfs.write_content(path, content):
            return False
        self._sessions.refresh_dirty()
        self._changes.mark_unstaged(normalise_path(path))
        self._publish()
        return True

    # ------------------------------------------------------------------
    # Editor sessions
    # ------------------------------------------------------------------

    def attach_editor(self, editor: EditorWidget | None) -> None:
        self._editor = editor

    def open_file(self, path: str, name: str | None = None) -> EditorTab | None:
        tab = self._sessions.open_file(normalise_path(path), name)
        if tab is not None:
            self._publish()
        return tab

    def close_tab(self, tab_id: str) -> bool:
        closed = self._sessions.close_tab(tab_id)
        if closed:
            self._publish()
        return closed

    def set_active_tab(self, tab_id: str) -> None:
        self._sessions.set_active(tab_id)
        self._publish()

    def update_tab_content(self, tab_id: str, content: str) -> EditorTab | None:
        """Apply an edit from the editor widget and recompute dirtiness."""
        tab = self._apply_tab_content(tab_id, content)
        if tab is not None:
            self._publish()
        return tab

    def save_file(self, tab_id: str) -> bool:
        saved = self._sessions.save(tab_id)
        if saved:
            self._publish()
        return saved

    def save_active_file(self) -> bool:
        saved = self._sessions.save_active()
        if saved:
            self._publish()
        return saved

    def set_cursor_position(self, line_number: int, column: int) -> None:
        self._cursor = CursorPosition(line_number=line_number, column=column)
        self._publish()

    # ------------------------------------------------------------------
    # Source control
    # ------------------------------------------------------------------

    def stage(self, path: str) -> bool:
        return self._publish_if(self._changes.stage(normalise_path(path)))

    def unstage(self, path: str) -> bool:
        return self._publish_if(self._changes.unstage(normalise_path(path)))

    def stage_all(self) -> int:
        moved = self._changes.stage_all()
        self._publish_if(moved > 0)
        return moved

    def unstage_all(self) -> int:
        moved = self._changes.unstage_all()
        self._publish_if(moved > 0)
        return moved

    def set_commit_message(self, message: str) -> None:
        self._changes.set_commit_message(message)
        self._publish()

    def commit(self, message: str | None = None) -> OperationResult:
        """Commit the staged paths (mocked: nothing is recorded)."""
        try:
            result = self._changes.commit(message)
        except WorkspaceError as exc:
            return self._reject(exc)
        self._notify("info", "Changes committed!")
        self._publish()
        return OperationResult.ok({"message": result.message, "paths": list(result.paths)})

    def push(self) -> OperationResult:
        self._notify("info", self._changes.push())
        self._publish()
        return OperationResult.ok()

    def staged_diff(self) -> str:
        """Diff of every staged path against the workspace baseline."""
        return self._changes.staged_diff(self._baseline.read_content, self._vfs.read_content)

    # ------------------------------------------------------------------
    # Assistant (the only suspending operations)
    # ------------------------------------------------------------------

    async def send_chat_message(self, message: str) -> None:
        """Stream the assistant's reply to *message* into the transcript."""
        token = self._requests.begin("chat")
        self._transcript.add_user(message, token.id)
        prompt = build_chat_prompt(message, self._sessions.active_tab)
        self._publish()

        stream = None
        try:
            stream = self._client().stream_chat(prompt, CHAT_SYSTEM_INSTRUCTION)
            self._transcript.open_reply(token.id)
            self._publish()
            async for chunk in stream:
                if token.cancelled:
                    break
                self._transcript.append_chunk(token.id, chunk)
                self._publish()
            if token.live:
                self._transcript.finish(token.id)
        except Exception as exc:
            logger.warning("Chat request %s failed: %s", token.id, exc)
            if token.live:
                self._transcript.fail(token.id, str(exc))
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
            self._requests.end(token)
            self._publish()

    async def generate_commit_message(self) -> OperationResult:
        """Ask the assistant for a conventional commit message for the staged diff."""
        if not self._changes.staged:
            self._notify("warning", NO_STAGED_CHANGES)
            self._publish()
            return OperationResult.fail(NO_STAGED_CHANGES)

        token = self._requests.begin("commit-message")
        diff = self.staged_diff()
        self._changes.set_commit_message(GENERATING_COMMIT_MESSAGE)
        self._publish()
        insertions, deletions = count_changes(diff)
        logger.debug("Commit message requested (+%d/-%d)", insertions, deletions)

        try:
            reply = await self._client().complete(build_commit_prompt(diff))
            if token.cancelled:
                return OperationResult.fail("cancelled")
            message = reply.strip()
            self._changes.set_commit_message(message)
            return OperationResult.ok({"message": message})
        except Exception as exc:
            logger.warning("Commit message generation failed: %s", exc)
            if token.live:
                self._changes.set_commit_message(COMMIT_MESSAGE_ERROR)
            return OperationResult.fail(str(exc))
        finally:
            self._requests.end(token)
            self._publish()

    async def run_code_command(self, command: CodeCommand | str) -> OperationResult:
        """Run explain / refactor / add-comments over the editor selection.

        explain attaches the answer as a hover decoration; the other two
        replace the selection and write the buffer back to the active tab.
        """
        command = CodeCommand(command)
        editor = self._editor
        tab = self._sessions.active_tab
        if editor is None or tab is None:
            return OperationResult.fail("No active editor")

        selection = editor.get_selection()
        if selection is None or selection.is_empty:
            self._notify("warning", SELECT_CODE_FIRST)
            self._publish()
            return OperationResult.fail(SELECT_CODE_FIRST)
        selected_text = editor.get_text_in_range(selection)

        token = self._requests.begin(command.value)
        self._publish()
        try:
            reply = await self._client().complete(build_code_prompt(command, selected_text))
            if token.cancelled:
                return OperationResult.fail("cancelled")

            if command is CodeCommand.EXPLAIN:
                explanation = reply.strip()
                ids = editor.delta_decorations(
                    [], [Decoration(range=selection, hover_message=explanation)]
                )
                self._sessions.attach_decorations(tab.id, ids)
                return OperationResult.ok({"explanation": explanation, "decorations": list(ids)})

            new_code = clean_code_reply(reply)
            editor.apply_edit(selection, new_code)
            self._apply_tab_content(tab.id, editor.get_value())
            return OperationResult.ok({"code": new_code})
        except Exception as exc:
            logger.warning("AI command %s failed: %s", command.value, exc)
            self._notify("error", f"An error occurred: {exc}")
            return OperationResult.fail(str(exc))
        finally:
            self._requests.end(token)
            self._publish()

    def cancel_pending_requests(self) -> int:
        """Invalidate every in-flight AI request; late replies are discarded."""
        pending = self._requests.pending
        cancelled = self._requests.cancel_all()
        for token in pending:
            if token.kind == "chat":
                self._transcript.finish(token.id)
            elif (
                token.kind == "commit-message"
                and self._changes.commit_message == GENERATING_COMMIT_MESSAGE
            ):
                self._changes.set_commit_message("")
        self._publish_if(cancelled > 0)
        return cancelled

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------

    def dismiss_notices(self) -> None:
        self._notices = ()
        self._publish()

    def clear_chat(self) -> None:
        """Empty the chat transcript; replies still in flight are cancelled."""
        for token in self._requests.pending:
            if token.kind == "chat":
                token.cancel()
                self._requests.end(token)
        self._transcript.clear()
        self._publish()

    async def aclose(self) -> None:
        """Release the AI client's pooled HTTP connections."""
        aclose = getattr(self._llm, "aclose", None)
        if aclose is not None:
            await aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply_tab_content(self, tab_id: str, content: str) -> EditorTab | None:
        # Decorations point into the old buffer: drop them on the widget too.
        stale = self._sessions.clear_decorations(tab_id)
        if stale and self._editor is not None:
            self._editor.delta_decorations(list(stale), [])
        return self._sessions.update_content(tab_id, content)

    def _client(self) -> LLMClient:
        if self._llm is None:
            self._llm = HTTPLLMClient(self.config)
        return self._llm

    def _notify(self, level: str, message: str) -> None:
        notices = self._notices + (Notice(level=level, message=message),)
        self._notices = notices[-self.config.MAX_NOTICES:]

    def _reject(self, exc: WorkspaceError) -> OperationResult:
        logger.info("Rejected: %s", exc)
        self._notify("warning", exc.message)
        self._publish()
        return OperationResult.fail(exc.message, data=exc.to_dict())

    def _publish_if(self, changed: bool) -> bool:
        if changed:
            self._publish()
        return changed

    def _build_snapshot(self) -> WorkspaceSnapshot:
        return WorkspaceSnapshot(
            version=self._version,
            file_system=self._vfs.to_tree(),
            open_tabs=self._sessions.tabs,
            active_tab_id=self._sessions.active_tab_id,
            unstaged=self._changes.unstaged,
            staged=self._changes.staged,
            commit_message=self._changes.commit_message,
            chat_history=self._transcript.messages,
            is_ai_loading=self._requests.is_loading,
            cursor_position=self._cursor,
            notices=self._notices,
        )

    def _publish(self) -> None:
        self._version += 1
        self._snapshot = self._build_snapshot()
        for callback in list(self._subscribers):
            try:
                callback(self._snapshot)
            except Exception:
                logger.exception("Workspace subscriber %r failed", callback)
