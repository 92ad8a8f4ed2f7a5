"""Core: workspace model, format capabilities, documents and configuration."""

from .capability import CapabilityRegistry, FormatCapability, capabilities
from .config import ConsoleConfig, load_console_config
from .document import DocumentStore
from .errors import CommandResult, ConsoleError, DocumentError, LowlevelError, Outcome
from .languages import LanguageDescription, SearchPaths, spec_paths
from .library import shutdown_library, start_library
from .workspace import Workspace

__all__ = [
    "CapabilityRegistry",
    "FormatCapability",
    "capabilities",
    "ConsoleConfig",
    "load_console_config",
    "DocumentStore",
    "CommandResult",
    "ConsoleError",
    "DocumentError",
    "LowlevelError",
    "Outcome",
    "LanguageDescription",
    "SearchPaths",
    "spec_paths",
    "shutdown_library",
    "start_library",
    "Workspace",
]
