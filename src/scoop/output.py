"""
user-facing output for the scoop cli.

human-readable messages go to stderr through a rich console; json envelopes
go to stdout as a single document so they can be piped.
"""

from __future__ import annotations

import json
import sys
from typing import Any, TextIO

from rich.console import Console
from rich.markup import escape

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def format_size(size_bytes: int) -> str:
    """
    render a byte count with a binary unit.

    arguments:
        `size_bytes: int`
            number of bytes

    returns: `str`
        e.g. '512 B', '1.5 KB', '12.0 MB'
    """
    size = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if size < 1024:
            return f"{int(size)} B" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} {_SIZE_UNITS[-1]}"


def stdin_is_tty() -> bool:
    """whether standard input is a terminal that prompts can read from."""
    return sys.stdin is not None and sys.stdin.isatty()


class Output:
    """
    output handler shared by every cli command.

    attributes:
        `quiet: bool`
            suppress informational messages (warnings and errors still show)
        `no_color: bool`
            disable colour in human-readable output
        `json: bool`
            machine-readable mode; human-readable messages are suppressed
        `console: Console`
            console for human-readable messages
    """

    quiet: bool
    no_color: bool
    json: bool
    console: Console

    def __init__(
        self,
        quiet: bool = False,
        no_color: bool = False,
        json: bool = False,
        console: Console | None = None,
    ) -> None:
        self.quiet = quiet
        self.no_color = no_color
        self.json = json
        self.console = console or Console(stderr=True, no_color=no_color, highlight=False)

    def _emit(self, message: str, prefix: str = "", style: str = "") -> None:
        text = escape(message)
        if prefix:
            text = f"[{style}]{prefix}[/{style}] {text}" if style else f"{prefix} {text}"
        self.console.print(text)

    def info(self, message: str) -> None:
        if self.quiet or self.json:
            return
        self._emit(message)

    def success(self, message: str) -> None:
        if self.quiet or self.json:
            return
        self._emit(message, "✓", "green")

    def warn(self, message: str) -> None:
        if self.json:
            return
        self._emit(message, "⚠", "yellow")

    def error(self, message: str) -> None:
        if self.json:
            return
        self._emit(message, "error:", "bold red")

    def json_success(self, command: str, data: Any, stream: TextIO | None = None) -> None:
        """write a success envelope to stdout."""
        self._write_json({"status": "success", "command": command, "data": data}, stream)

    def json_error(
        self,
        command: str,
        code: str,
        message: str,
        stream: TextIO | None = None,
    ) -> None:
        """write an error envelope to stdout."""
        envelope = {
            "status": "error",
            "command": command,
            "error": {"code": code, "message": message},
        }
        self._write_json(envelope, stream)

    @staticmethod
    def _write_json(envelope: dict[str, Any], stream: TextIO | None) -> None:
        print(json.dumps(envelope, indent=2), file=stream or sys.stdout)
