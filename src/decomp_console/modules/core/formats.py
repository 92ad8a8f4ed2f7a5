"""Built-in format capabilities: xml, elf and raw images."""

from __future__ import annotations

from pathlib import Path
from typing import IO, Optional

from .capability import CapabilityRegistry, FormatCapability
from .document import peek_root_tag
from .languages import SearchPaths
from .workspace import ELF_MAGIC, ElfWorkspace, RawWorkspace, Workspace, XmlWorkspace


class XmlCapability(FormatCapability):
    """Images written as a <binaryimage> document."""

    name = "xml"
    savefile_tag = XmlWorkspace.savefile_tag

    def is_file_match(self, filename: str) -> bool:
        return peek_root_tag(filename) == "binaryimage"

    def build_workspace(
        self,
        filename: str,
        target: str,
        out: Optional[IO[str]] = None,
        paths: Optional[SearchPaths] = None,
    ) -> Workspace:
        return XmlWorkspace(filename, target, out, paths)


class ElfCapability(FormatCapability):
    name = "elf"
    savefile_tag = ElfWorkspace.savefile_tag

    def is_file_match(self, filename: str) -> bool:
        try:
            with open(filename, "rb") as f:
                return f.read(len(ELF_MAGIC)) == ELF_MAGIC
        except OSError:
            return False

    def build_workspace(
        self,
        filename: str,
        target: str,
        out: Optional[IO[str]] = None,
        paths: Optional[SearchPaths] = None,
    ) -> Workspace:
        return ElfWorkspace(filename, target, out, paths)


class RawCapability(FormatCapability):
    """Catch-all for any readable file. Register it last."""

    name = "raw"
    savefile_tag = RawWorkspace.savefile_tag

    def is_file_match(self, filename: str) -> bool:
        return Path(filename).is_file()

    def build_workspace(
        self,
        filename: str,
        target: str,
        out: Optional[IO[str]] = None,
        paths: Optional[SearchPaths] = None,
    ) -> Workspace:
        return RawWorkspace(filename, target, out, paths)


def register_builtin_formats(registry: CapabilityRegistry) -> None:
    registry.register(XmlCapability())
    registry.register(ElfCapability())
    registry.register(RawCapability())
