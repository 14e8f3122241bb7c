"""Package entry point — ``python -m webide`` opens a terminal REPL
over a workspace seeded with the demo project."""

from __future__ import annotations

import argparse
import sys

from webide.config import VERSION, settings
from webide.logging_setup import configure_logging
from webide.terminal import Terminal
from webide.workspace import Workspace

PROMPT = "user@webide:~$ "


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="webide", description="Workspace terminal")
    parser.add_argument("-c", "--command", help="run one command line and exit")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    terminal = Terminal(Workspace())

    if args.command is not None:
        output = terminal.execute(args.command)
        if output.lines:
            print(output.text)
        return 0

    print("Welcome to the web IDE terminal! Type 'help' for commands.")
    while True:
        try:
            line = input(PROMPT)
        except (EOFError, KeyboardInterrupt):
            print()
            return 0
        output = terminal.execute(line)
        if output.clear:
            print("\033[2J\033[H", end="")
        if output.lines:
            print(output.text)
        if output.exit_requested:
            return 0


if __name__ == "__main__":
    sys.exit(main())
