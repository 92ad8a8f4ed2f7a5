"""Output formatting for the console session."""

from __future__ import annotations

from typing import IO, Iterable

from rich.console import Console
from rich.text import Text

from ..core.errors import CommandResult, Outcome

ERROR_PREFIX = {
    Outcome.PARSE_ERROR: "Command parsing error: ",
    Outcome.EXECUTION_ERROR: "Execution error: ",
}


def make_console(stream: IO[str]) -> Console:
    """Console writing to stream; plain text unless stream is a terminal."""
    return Console(file=stream, highlight=False, soft_wrap=True, emoji=False)


def print_result_error(console: Console, result: CommandResult) -> None:
    prefix = ERROR_PREFIX.get(result.outcome, "")
    console.print(Text.assemble((prefix, "bold red"), result.message))


def print_notice(console: Console, message: str) -> None:
    console.print(Text(message, style="yellow"))


def format_history(lines: Iterable[str], start: int = 1) -> str:
    """Number history lines for display."""
    return "\n".join(f"{i:>4}  {line}" for i, line in enumerate(lines, start))


def truncate(text: str, max_len: int = 60) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
