"""
Console: command registry, session loop and the workspace lifecycle commands.
"""

from .commands import register_builtin_commands
from .lifecycle import register_domain_commands, register_lifecycle_commands
from .registry import Command, CommandRegistry, Resolution, TokenStream
from .session import ConsoleContext, ScriptFrame, Session


def build_registry() -> CommandRegistry:
    """Registry with built-in, domain and lifecycle commands, in that order."""
    registry = CommandRegistry()
    register_builtin_commands(registry)
    register_domain_commands(registry)
    register_lifecycle_commands(registry)
    return registry


__all__ = [
    "build_registry",
    "register_builtin_commands",
    "register_domain_commands",
    "register_lifecycle_commands",
    "Command",
    "CommandRegistry",
    "Resolution",
    "TokenStream",
    "ConsoleContext",
    "ScriptFrame",
    "Session",
]
