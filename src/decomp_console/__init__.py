"""
decomp-console: interactive console for analysis workspaces.

Loads a workspace from an image file, saves it to a structured document and
restores it again, driven by commands typed interactively or read from
nested scripts.

Modules:
- core: workspace model, format capabilities, documents, configuration
- console: command registry, session loop, lifecycle commands
"""

try:
    from importlib.metadata import version
    __version__ = version("decomp-console")
except Exception:
    __version__ = "0.1.0"

from . import modules

__all__ = ["modules", "__version__"]
