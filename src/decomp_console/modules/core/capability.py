"""Format capabilities and the registry that resolves them."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import IO, Iterator, Optional

from .languages import SearchPaths
from .workspace import Workspace

logger = logging.getLogger(__name__)


class FormatCapability:
    """Recognizes one input format and builds a Workspace from it."""

    name: str = ""
    savefile_tag: str = ""

    def is_file_match(self, filename: str) -> bool:
        raise NotImplementedError

    def is_document_match(self, root: ET.Element) -> bool:
        return root.tag == self.savefile_tag

    def build_workspace(
        self,
        filename: str,
        target: str,
        out: Optional[IO[str]] = None,
        paths: Optional[SearchPaths] = None,
    ) -> Workspace:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class CapabilityRegistry:
    """Insertion-ordered capabilities; the first match wins."""

    def __init__(self) -> None:
        self._capabilities: list[FormatCapability] = []

    def register(self, capability: FormatCapability) -> None:
        self._capabilities.append(capability)

    def clear(self) -> None:
        self._capabilities.clear()

    def names(self) -> list[str]:
        return [c.name for c in self._capabilities]

    def __iter__(self) -> Iterator[FormatCapability]:
        return iter(self._capabilities)

    def __len__(self) -> int:
        return len(self._capabilities)

    def find_capability(self, filename: str) -> Optional[FormatCapability]:
        for capa in self._capabilities:
            if capa.is_file_match(filename):
                logger.debug("%s recognized by %s", filename, capa.name)
                return capa
        return None

    def find_capability_for_document(self, root: ET.Element) -> Optional[FormatCapability]:
        for capa in self._capabilities:
            if capa.is_document_match(root):
                logger.debug("<%s> recognized by %s", root.tag, capa.name)
                return capa
        return None


# Populated once by start_library(), read-only afterwards
capabilities = CapabilityRegistry()
