"""decomp-console modules.

Modules:
- core: workspace model, format capabilities, documents, configuration
- console: command registry, session loop, lifecycle commands
"""

# Lazy imports to keep `import decomp_console` cheap
def __getattr__(name: str):
    if name == "core":
        from . import core
        return core
    elif name == "console":
        from . import console
        return console
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = ["core", "console"]
