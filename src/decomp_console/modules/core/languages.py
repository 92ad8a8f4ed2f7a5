"""
Resource search paths and language definitions.

Language definitions live in *.ldefs documents found on the search paths:

    <language_definitions>
      <language processor="x86" endian="little" size="32"
                variant="default" id="x86:LE:32:default">
        <description>Intel/AMD 32-bit x86</description>
      </language>
    </language_definitions>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .document import DocumentStore
from .errors import DocumentError, LowlevelError

logger = logging.getLogger(__name__)

LDEFS_SUFFIX = ".ldefs"


class SearchPaths:
    """Ordered list of directories searched for format resources."""

    def __init__(self, dirs: list[str] | None = None) -> None:
        self._dirs: list[str] = []
        for d in dirs or []:
            self.add_dir(d)

    def add_dir(self, path: str) -> None:
        # No existence check: a path may be added before it is populated
        if path not in self._dirs:
            self._dirs.append(path)

    def clear(self) -> None:
        self._dirs.clear()

    @property
    def dirs(self) -> list[str]:
        return list(self._dirs)

    def find_files(self, suffix: str) -> Iterator[Path]:
        for d in self._dirs:
            root = Path(d)
            if not root.is_dir():
                continue
            yield from sorted(root.rglob(f"*{suffix}"))

    def __len__(self) -> int:
        return len(self._dirs)


# Process-wide paths extended by the addpath command
spec_paths = SearchPaths()


@dataclass(frozen=True)
class LanguageDescription:
    id: str
    processor: str
    endian: str
    size: int
    variant: str = "default"
    description: str = ""


def _parse_language(element) -> LanguageDescription:
    lang_id = element.get("id")
    if not lang_id:
        raise DocumentError("language element is missing its id attribute")
    desc = element.find("description")
    return LanguageDescription(
        id=lang_id,
        processor=element.get("processor", lang_id.split(":")[0]),
        endian=element.get("endian", "little"),
        size=int(element.get("size", "0") or 0),
        variant=element.get("variant", "default"),
        description=(desc.text or "").strip() if desc is not None else "",
    )


def load_language_definitions(paths: SearchPaths) -> list[LanguageDescription]:
    """Collect every language declared in *.ldefs files on the paths."""
    languages: list[LanguageDescription] = []
    for ldefs in paths.find_files(LDEFS_SUFFIX):
        try:
            root = DocumentStore().open_document(ldefs)
            if root.tag != "language_definitions":
                logger.warning("Skipping %s: root tag is <%s>", ldefs, root.tag)
                continue
            for element in root.iter("language"):
                languages.append(_parse_language(element))
        except (DocumentError, ValueError) as exc:
            logger.warning("Skipping language definitions %s: %s", ldefs, exc)
    return languages


def resolve_language(target: str, paths: SearchPaths) -> LanguageDescription:
    """
    Find the language for a target id.

    An exact id wins; otherwise a partial id such as "x86:LE:32" matches the
    first language whose leading id components are equal.
    """
    languages = load_language_definitions(paths)
    for lang in languages:
        if lang.id == target:
            return lang

    wanted = target.split(":")
    for lang in languages:
        if lang.id.split(":")[: len(wanted)] == wanted:
            return lang
    raise LowlevelError(f"No language definition for {target}")
