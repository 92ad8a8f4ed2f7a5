"""Session: the read-eval loop over interactive input and nested scripts.

States:
- interactive: no script frames, lines come from the input stream
- scripted: lines come from the top script frame
- done: quit, end of input, or an error with error_is_done set
"""

from __future__ import annotations

import logging
import sys
from collections import deque
from dataclasses import dataclass, field
from typing import IO, Optional

from rich.console import Console

from ..core.capability import CapabilityRegistry, capabilities
from ..core.config import DEFAULT_HISTORY_SIZE, DEFAULT_PROMPT
from ..core.errors import (
    ERR_AMBIGUOUS_COMMAND,
    ERR_UNKNOWN_COMMAND,
    CommandResult,
    ConsoleError,
    from_collaborator_error,
)
from ..core.languages import SearchPaths, spec_paths
from ..core.workspace import Workspace
from .display import make_console, print_notice, print_result_error
from .registry import AMBIGUOUS, NOT_FOUND, CommandRegistry, TokenStream

logger = logging.getLogger(__name__)

INTERACTIVE = "interactive"
SCRIPTED = "scripted"
DONE = "done"


@dataclass
class ConsoleContext:
    """State shared by every command of one session."""

    out: IO[str] = field(default_factory=lambda: sys.stdout)
    capabilities: CapabilityRegistry = field(default_factory=lambda: capabilities)
    search_paths: SearchPaths = field(default_factory=lambda: spec_paths)
    workspace: Optional[Workspace] = None
    # Shared by save and restore
    last_path: str = ""
    experimental_file: Optional[str] = None
    session: Optional["Session"] = None
    _saved_out: list[IO[str]] = field(default_factory=list)
    _console: Optional[Console] = field(default=None, repr=False)

    @property
    def console(self) -> Console:
        """Rich console bound to the current sink, rebuilt after a redirect."""
        if self._console is None or self._console.file is not self.out:
            self._console = make_console(self.out)
        return self._console

    def write(self, text: str) -> None:
        self.out.write(text + "\n")

    def clear_workspace(self) -> None:
        if self.workspace is not None:
            logger.debug("Clearing workspace %s", self.workspace.filename)
        self.workspace = None

    def redirect_output(self, stream: IO[str]) -> None:
        self._saved_out.append(self.out)
        self.out = stream

    def restore_output(self) -> bool:
        """Close the redirected sink. Returns False if output was not redirected."""
        if not self._saved_out:
            return False
        self.out.close()
        self.out = self._saved_out.pop()
        return True


class ScriptFrame:
    """An open script with its own prompt and line cursor."""

    def __init__(self, stream: IO[str], prompt: str, path: str | None = None) -> None:
        self.stream = stream
        self.prompt = prompt
        self.path = path
        self.line_no = 0

    def readline(self) -> Optional[str]:
        line = self.stream.readline()
        if line == "":
            return None
        self.line_no += 1
        return line.rstrip("\r\n")

    def close(self) -> None:
        self.stream.close()


class Session:
    def __init__(
        self,
        registry: CommandRegistry,
        context: ConsoleContext,
        input_stream: Optional[IO[str]] = None,
        prompt: str = DEFAULT_PROMPT,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self.registry = registry
        self.context = context
        context.session = self
        self.input = input_stream
        self.prompt = prompt
        self.scripts: list[ScriptFrame] = []
        self.history: deque[str] = deque(maxlen=history_size)
        self.error_is_done = False
        self.done = False
        self.in_error = False

    @property
    def state(self) -> str:
        if self.done:
            return DONE
        return SCRIPTED if self.scripts else INTERACTIVE

    @property
    def depth(self) -> int:
        return len(self.scripts)

    @property
    def current_prompt(self) -> str:
        return self.scripts[-1].prompt if self.scripts else self.prompt

    def push_script(self, path: str, prompt: str) -> None:
        try:
            stream = open(path, "r", encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ConsoleError(f"Unable to open script file: {path}") from exc
        self.push_stream(stream, prompt, path)

    def push_stream(self, stream: IO[str], prompt: str, path: str | None = None) -> None:
        self.scripts.append(ScriptFrame(stream, prompt, path))
        logger.debug("Pushed script %s (depth %d)", path or "<stream>", self.depth)

    def pop_script(self) -> None:
        frame = self.scripts.pop()
        frame.close()
        logger.debug("Popped script %s (depth %d)", frame.path or "<stream>", self.depth)

    def _next_line(self) -> Optional[str]:
        while self.scripts:
            frame = self.scripts[-1]
            line = frame.readline()
            if line is not None:
                self.context.write(f"{frame.prompt}{line}")
                return line
            self.pop_script()

        if self.input is None:
            return None
        if self.input.isatty():
            self.context.out.write(self.prompt)
            self.context.out.flush()
        line = self.input.readline()
        if line == "":
            return None
        return line.rstrip("\r\n")

    def run(self) -> int:
        """Run until done. Returns the process exit status."""
        while not self.done:
            line = self._next_line()
            if line is None:
                self.done = True
                break
            self.run_line(line)
        while self.scripts:
            self.pop_script()
        while self.context.restore_output():
            pass
        return 1 if self.in_error else 0

    def run_line(self, line: str) -> CommandResult:
        text = line.strip()
        if not text or text.startswith("#"):
            return CommandResult.ok()
        self.history.append(text)
        result = self.execute(text)
        if result.is_error:
            print_result_error(self.context.console, result)
            self._evaluate_error()
        return result

    def execute(self, text: str) -> CommandResult:
        # Whitespace only; quotes and backslashes are ordinary characters
        tokens = text.split()
        resolution = self.registry.resolve(tokens)
        if resolution.status == NOT_FOUND:
            return CommandResult.parse_error("Unknown command", code=ERR_UNKNOWN_COMMAND)
        if resolution.status == AMBIGUOUS:
            options = ", ".join(" ".join(w) for w in resolution.candidates)
            return CommandResult.parse_error(
                f"Command is ambiguous: {options}", code=ERR_AMBIGUOUS_COMMAND
            )

        try:
            return resolution.command.execute(self.context, TokenStream(resolution.args))
        except ConsoleError as err:
            return from_collaborator_error(err)

    def _evaluate_error(self) -> None:
        if self.error_is_done:
            print_notice(self.context.console, "Aborting process")
            self.in_error = True
            self.done = True
