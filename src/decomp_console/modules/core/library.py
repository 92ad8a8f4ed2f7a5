"""Process-wide startup and shutdown of the format library."""

from __future__ import annotations

import logging
from pathlib import Path

from .capability import capabilities
from .formats import register_builtin_formats
from .languages import spec_paths

logger = logging.getLogger(__name__)


def start_library(root: str, extra_paths: list[str] | None = None) -> None:
    """Seed the search paths and register the built-in formats.

    Language directories are found under <root>/Processors/*/data/languages.
    """
    if root:
        processors = Path(root) / "Processors"
        if processors.is_dir():
            for lang_dir in sorted(processors.glob("*/data/languages")):
                spec_paths.add_dir(str(lang_dir))
        else:
            logger.info("No Processors directory under %s", root)
    for path in extra_paths or []:
        spec_paths.add_dir(path)

    if len(capabilities) == 0:
        register_builtin_formats(capabilities)
    logger.debug("Library started: formats=%s paths=%s", capabilities.names(), spec_paths.dirs)


def shutdown_library() -> None:
    capabilities.clear()
    spec_paths.clear()
