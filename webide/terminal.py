"""Terminal interpreter — shell-like commands over the virtual file system.

The terminal widget owns keystrokes and rendering; this module only turns
a submitted command line into output lines plus the two panel requests
(clear the screen, hide the panel).  Everything but ``code`` is
read-only; ``code`` asks the workspace to open a file.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from webide.contracts import NodeKind
from webide.filesystem import normalise_path, split_path
from webide.workspace import Workspace

logger = logging.getLogger(__name__)

NO_SUCH_FILE = "No such file or directory"

HELP_LINES: tuple[str, ...] = (
    "Available commands:",
    "  ls [path]   - List directory contents",
    "  cat [file]  - Display file content",
    "  code [file] - Open file in editor",
    "  echo [text] - Display a line of text",
    "  clear       - Clear the terminal screen",
    "  exit        - Close the terminal",
)


class TerminalOutput(BaseModel):
    """What the widget should do after a command ran."""

    model_config = ConfigDict(frozen=True)

    lines: tuple[str, ...] = ()
    clear: bool = False
    exit_requested: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class Terminal:
    """Interprets command lines against a ``Workspace``."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace
        self._commands: dict[str, Callable[[list[str]], TerminalOutput]] = {
            "help": self._help,
            "ls": self._ls,
            "cat": self._cat,
            "code": self._code,
            "echo": self._echo,
            "clear": self._clear,
            "exit": self._exit,
        }

    @property
    def commands(self) -> tuple[str, ...]:
        return tuple(self._commands)

    def execute(self, command_line: str) -> TerminalOutput:
        parts = command_line.split()
        if not parts:
            return TerminalOutput()
        cmd, args = parts[0], parts[1:]
        handler = self._commands.get(cmd)
        if handler is None:
            return TerminalOutput(lines=(f"command not found: {cmd}",))
        logger.debug("terminal: %s %s", cmd, args)
        return handler(args)

    # -- commands ----------------------------------------------------------

    def _help(self, args: list[str]) -> TerminalOutput:
        return TerminalOutput(lines=HELP_LINES)

    def _ls(self, args: list[str]) -> TerminalOutput:
        target = args[0] if args else ""
        kind = self._kind(target)
        if kind is None:
            return TerminalOutput(lines=(f"ls: cannot access '{target}': {NO_SUCH_FILE}",))
        if kind == "file":
            return TerminalOutput(lines=(target,))
        children = self.workspace.list_directory(target) or []
        listing = "  ".join(
            f"{child.name}/" if child.kind == "folder" else child.name for child in children
        )
        return TerminalOutput(lines=(listing,))

    def _cat(self, args: list[str]) -> TerminalOutput:
        if not args:
            return TerminalOutput(lines=("usage: cat [file]",))
        content = self.workspace.read_file(args[0]) if self._kind(args[0]) else None
        if content is None:
            return TerminalOutput(lines=(f"cat: {args[0]}: {NO_SUCH_FILE}",))
        return TerminalOutput(lines=tuple(content.split("\n")))

    def _code(self, args: list[str]) -> TerminalOutput:
        if not args:
            return TerminalOutput(lines=("usage: code [file]",))
        path = args[0]
        if self._kind(path) != "file":
            return TerminalOutput(lines=(f"code: {path}: {NO_SUCH_FILE}",))
        self.workspace.open_file(path, split_path(normalise_path(path))[1])
        return TerminalOutput(lines=(f"Opening {path}...",))

    def _echo(self, args: list[str]) -> TerminalOutput:
        return TerminalOutput(lines=(" ".join(args),))

    def _clear(self, args: list[str]) -> TerminalOutput:
        return TerminalOutput(clear=True)

    def _exit(self, args: list[str]) -> TerminalOutput:
        return TerminalOutput(exit_requested=True)

    # -- helpers -----------------------------------------------------------

    def _kind(self, path: str) -> NodeKind | None:
        return self.workspace.node_kind(path)
