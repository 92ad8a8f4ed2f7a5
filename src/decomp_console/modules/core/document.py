"""Structured document storage backed by xml.etree.ElementTree."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO, Optional

from .errors import DocumentError


class DocumentStore:
    """Holds parsed documents and top-level tags registered by name."""

    def __init__(self) -> None:
        self._documents: list[ET.Element] = []
        self._tags: dict[str, ET.Element] = {}

    def open_document(self, path: str | Path) -> ET.Element:
        """Parse the document at path and return its root element."""
        try:
            with open(path, "rb") as f:
                return self.parse_document(f)
        except OSError as exc:
            raise DocumentError(f"Unable to open xml document {path}: {exc.strerror}") from exc

    def parse_document(self, stream: IO) -> ET.Element:
        try:
            root = ET.parse(stream).getroot()
        except ET.ParseError as exc:
            raise DocumentError(f"XML parse error: {exc}") from exc
        self._documents.append(root)
        return root

    def register_tag(self, element: ET.Element) -> None:
        """Make element retrievable by its tag name."""
        self._tags[element.tag] = element

    def get_tag(self, name: str) -> Optional[ET.Element]:
        return self._tags.get(name)


def peek_root_tag(path: str | Path) -> Optional[str]:
    """Return the tag of the first element in path, or None if it is not XML."""
    parser = ET.XMLPullParser(events=("start",))
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(4096)
                if not chunk:
                    return None
                parser.feed(chunk)
                for _event, element in parser.read_events():
                    return element.tag
    except (ET.ParseError, OSError):
        return None


def write_document(root: ET.Element, stream: IO[str]) -> None:
    """Serialize an element tree to a text stream."""
    ET.indent(root)
    stream.write(ET.tostring(root, encoding="unicode"))
    stream.write("\n")
