"""Command registry with prefix-based resolution of command words."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from ..core.errors import CommandResult

if TYPE_CHECKING:
    from .session import ConsoleContext

FOUND = "found"
AMBIGUOUS = "ambiguous"
NOT_FOUND = "not_found"


class TokenStream:
    """Whitespace-tokenized arguments left over after the command words."""

    def __init__(self, tokens: Iterable[str] = ()) -> None:
        self._tokens = list(tokens)
        self._pos = 0

    def next(self) -> Optional[str]:
        if self._pos >= len(self._tokens):
            return None
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def peek(self) -> Optional[str]:
        if self._pos >= len(self._tokens):
            return None
        return self._tokens[self._pos]

    @property
    def eof(self) -> bool:
        return self._pos >= len(self._tokens)

    def rest(self) -> list[str]:
        tokens = self._tokens[self._pos:]
        self._pos = len(self._tokens)
        return tokens


class Command:
    """A named unit of work run by the session."""

    help = ""

    def execute(self, context: ConsoleContext, args: TokenStream) -> CommandResult:
        raise NotImplementedError


@dataclass
class Resolution:
    status: str
    command: Optional[Command] = None
    words: tuple[str, ...] = ()
    args: list[str] = field(default_factory=list)
    candidates: list[tuple[str, ...]] = field(default_factory=list)


class CommandRegistry:
    """Maps one- or two-word command names to Command objects."""

    def __init__(self) -> None:
        self._commands: dict[tuple[str, ...], Command] = {}

    def register(self, command: Command, name: str, sub_name: str | None = None) -> None:
        # Re-registering a name replaces the earlier command
        words = (name,) if sub_name is None else (name, sub_name)
        self._commands[words] = command

    def get(self, *words: str) -> Optional[Command]:
        return self._commands.get(tuple(words))

    def names(self) -> list[str]:
        return [" ".join(w) for w in sorted(self._commands)]

    def __len__(self) -> int:
        return len(self._commands)

    def _found(self, words: tuple[str, ...], args: list[str]) -> Resolution:
        return Resolution(FOUND, command=self._commands[words], words=words, args=args)

    def _same_command(self, candidates: list[tuple[str, ...]]) -> bool:
        return len({id(self._commands[w]) for w in candidates}) == 1

    def resolve(self, tokens: Iterable[str]) -> Resolution:
        """
        Match leading tokens against command words.

        Each token may abbreviate the word at the same position, but an exact
        word beats a longer one it prefixes. Resolution stops as soon as a
        single command remains with all of its words matched; the remaining
        tokens are its arguments.
        """
        tokens = list(tokens)
        if not tokens:
            return Resolution(NOT_FOUND)

        candidates = sorted(self._commands)
        pos = 0
        while True:
            if len(candidates) == 1 and len(candidates[0]) <= pos:
                return self._found(candidates[0], tokens[pos:])

            complete = [w for w in candidates if len(w) == pos]
            if pos == len(tokens):
                if len(complete) == 1:
                    return self._found(complete[0], [])
                if candidates and self._same_command(candidates):
                    # Missing trailing words are filled in
                    return self._found(candidates[0], [])
                return Resolution(AMBIGUOUS, candidates=candidates)

            tok = tokens[pos]
            narrowed = [w for w in candidates if len(w) > pos and w[pos].startswith(tok)]
            exact = [w for w in narrowed if w[pos] == tok]
            if exact:
                narrowed = exact

            if not narrowed:
                # The token is an argument of a command whose words are all used
                if len(complete) == 1 or (complete and self._same_command(complete)):
                    return self._found(complete[0], tokens[pos:])
                if complete:
                    return Resolution(AMBIGUOUS, candidates=complete)
                return Resolution(NOT_FOUND, candidates=candidates if pos else [])

            candidates = narrowed
            pos += 1
