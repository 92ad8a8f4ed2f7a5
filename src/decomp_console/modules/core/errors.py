"""
Console error codes and command results.

Commands never raise into the session loop. They return a CommandResult
tagged with one of three outcomes:
- OK: the command ran to completion
- PARSE_ERROR: the invocation was malformed (missing required argument)
- EXECUTION_ERROR: a precondition was violated or an underlying step failed

Collaborators (document store, workspace) raise DocumentError or
LowlevelError; the lifecycle commands convert those into results.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


# Error codes
ERR_ALREADY_LOADED = "DECOMP_ERR_ALREADY_LOADED"
ERR_UNRECOGNIZED_FORMAT = "DECOMP_ERR_UNRECOGNIZED_FORMAT"
ERR_NO_WORKSPACE = "DECOMP_ERR_NO_WORKSPACE"
ERR_MISSING_FILE_NAME = "DECOMP_ERR_MISSING_FILE_NAME"
ERR_CANNOT_OPEN_FILE = "DECOMP_ERR_CANNOT_OPEN_FILE"
ERR_MISSING_PATH = "DECOMP_ERR_MISSING_PATH"
ERR_MISSING_ARGUMENT = "DECOMP_ERR_MISSING_ARGUMENT"
ERR_DOCUMENT = "DECOMP_ERR_DOCUMENT"
ERR_LOWLEVEL = "DECOMP_ERR_LOWLEVEL"
ERR_UNKNOWN_COMMAND = "DECOMP_ERR_UNKNOWN_COMMAND"
ERR_AMBIGUOUS_COMMAND = "DECOMP_ERR_AMBIGUOUS_COMMAND"


class ConsoleError(Exception):
    """Base class for errors raised by console collaborators."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.explain = message


class DocumentError(ConsoleError):
    """A structured document could not be read or has the wrong shape."""


class LowlevelError(ConsoleError):
    """Workspace construction or restoration failed."""


class Outcome(str, Enum):
    OK = "ok"
    PARSE_ERROR = "parse_error"
    EXECUTION_ERROR = "execution_error"


@dataclass
class CommandResult:
    """Outcome of a single command execution."""

    outcome: Outcome
    message: str = ""
    code: str | None = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any = None, message: str = "") -> "CommandResult":
        return cls(Outcome.OK, message=message, value=value)

    @classmethod
    def parse_error(
        cls, message: str, code: str = ERR_MISSING_ARGUMENT
    ) -> "CommandResult":
        return cls(Outcome.PARSE_ERROR, message=message, code=code)

    @classmethod
    def execution_error(cls, message: str, code: str) -> "CommandResult":
        return cls(Outcome.EXECUTION_ERROR, message=message, code=code)

    @property
    def is_error(self) -> bool:
        return self.outcome is not Outcome.OK

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "error": self.is_error,
            "outcome": self.outcome.value,
            "code": self.code,
            "message": self.message,
        }


def from_collaborator_error(err: ConsoleError) -> CommandResult:
    """Turn a DocumentError or LowlevelError into an execution error."""
    code = ERR_DOCUMENT if isinstance(err, DocumentError) else ERR_LOWLEVEL
    logger.debug("collaborator failure (%s): %s", code, err.explain)
    return CommandResult.execution_error(err.explain, code=code)
