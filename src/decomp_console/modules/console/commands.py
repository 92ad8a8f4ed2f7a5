"""Built-in session commands: quit, echo, history, source, openfile, closefile."""

from __future__ import annotations

from ..core.errors import (
    ERR_CANNOT_OPEN_FILE,
    ERR_MISSING_ARGUMENT,
    ERR_MISSING_FILE_NAME,
    CommandResult,
    ConsoleError,
)
from .display import format_history
from .registry import Command, CommandRegistry, TokenStream
from .session import ConsoleContext


class QuitCommand(Command):
    help = "End the session"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        if context.session is not None:
            context.session.done = True
        return CommandResult.ok()


class EchoCommand(Command):
    help = "Print the rest of the line"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        text = " ".join(args.rest())
        context.write(text)
        return CommandResult.ok(value=text)


class HistoryCommand(Command):
    help = "List recently executed lines"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        count = 10
        tok = args.next()
        if tok is not None:
            try:
                count = int(tok)
            except ValueError:
                return CommandResult.parse_error(f"Bad history count: {tok}", ERR_MISSING_ARGUMENT)
        if context.session is None:
            return CommandResult.ok(value=[])
        # The history command itself is the newest entry
        lines = list(context.session.history)[:-1]
        shown = lines[-count:] if count > 0 else []
        if shown:
            context.write(format_history(shown, start=len(lines) - len(shown) + 1))
        return CommandResult.ok(value=shown)


class SourceCommand(Command):
    help = "Run commands from a script file"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        path = args.next()
        if path is None:
            return CommandResult.parse_error("Missing script file name", ERR_MISSING_FILE_NAME)
        if context.session is None:
            return CommandResult.execution_error("No session to run scripts", ERR_CANNOT_OPEN_FILE)
        try:
            context.session.push_script(path, f"{path}> ")
        except ConsoleError as err:
            return CommandResult.execution_error(err.explain, ERR_CANNOT_OPEN_FILE)
        return CommandResult.ok()


class OpenfileCommand(Command):
    help = "Send output to a file"

    def __init__(self, append: bool = False) -> None:
        self.append = append

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        path = args.next()
        if path is None:
            return CommandResult.parse_error("Missing file name", ERR_MISSING_FILE_NAME)
        try:
            stream = open(path, "a" if self.append else "w")
        except OSError:
            return CommandResult.execution_error(f"Unable to open file: {path}", ERR_CANNOT_OPEN_FILE)
        context.redirect_output(stream)
        return CommandResult.ok()


class ClosefileCommand(Command):
    help = "Send output back to the console"

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        if not context.restore_output():
            return CommandResult.execution_error("Output is not redirected", ERR_CANNOT_OPEN_FILE)
        return CommandResult.ok()


def register_builtin_commands(registry: CommandRegistry) -> None:
    registry.register(QuitCommand(), "quit")
    registry.register(EchoCommand(), "echo")
    registry.register(HistoryCommand(), "history")
    registry.register(SourceCommand(), "source")
    registry.register(OpenfileCommand(), "openfile")
    registry.register(OpenfileCommand(append=True), "openfile", "append")
    registry.register(ClosefileCommand(), "closefile")
