"""
Workspace: the live analysis configuration managed by the console.

A Workspace is built in two steps. The constructor only records where the
image lives and which target was asked for; init() (fresh image) or
restore_xml() (saved document) does the real work and raises DocumentError
or LowlevelError when the input is unusable. Callers keep a Workspace out of
sight until one of those steps has succeeded.
"""

from __future__ import annotations

import struct
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO, Optional

from .document import DocumentStore, write_document
from .errors import LowlevelError
from .languages import LanguageDescription, SearchPaths, resolve_language, spec_paths

GLOBAL_NAMESPACE = "::"
DEFAULT_TARGET = "default"
EXPERIMENTAL_RULES_TAG = "experimental_rules"


def _parse_int(text: Optional[str], what: str) -> int:
    if text is None:
        raise LowlevelError(f"Missing {what}")
    try:
        return int(text, 0)
    except ValueError as exc:
        raise LowlevelError(f"Bad {what}: {text}") from exc


class Workspace:
    """Base workspace. Subclasses supply the image format hooks."""

    format_name = "unknown"
    savefile_tag = "unknown_savefile"

    def __init__(
        self,
        filename: str,
        target: str,
        out: Optional[IO[str]] = None,
        paths: Optional[SearchPaths] = None,
    ) -> None:
        self.filename = filename
        self.target = target
        self.out = out
        self.paths = paths if paths is not None else spec_paths
        self.language: Optional[LanguageDescription] = None
        self.chunks: list[tuple[int, bytes]] = []
        self.symbols: dict[str, dict[str, int]] = {}
        self.rules: list[str] = []
        self._loader_symbols: list[tuple[str, int]] = []

    @property
    def description(self) -> str:
        lang = self.language.id if self.language else self.target
        return f"{lang} ({self.format_name})"

    @property
    def image_size(self) -> int:
        return sum(len(data) for _, data in self.chunks)

    # --- Construction -------------------------------------------------

    def init(self, store: DocumentStore) -> None:
        """Read the image, resolve its language and pick up extra rules."""
        self._load_image()
        target = self.target
        if not target or target == DEFAULT_TARGET:
            target = self._default_target()
        self.language = resolve_language(target, self.paths)
        self._apply_experimental_rules(store)

    def _load_image(self) -> None:
        raise NotImplementedError

    def _default_target(self) -> str:
        raise LowlevelError(
            f"No default language for {self.format_name} image {self.filename}; "
            "specify a target"
        )

    def _apply_experimental_rules(self, store: DocumentStore) -> None:
        el = store.get_tag(EXPERIMENTAL_RULES_TAG)
        if el is None:
            return
        for rule in el.iter("rule"):
            name = rule.get("name")
            if name and name not in self.rules:
                self.rules.append(name)
        if self.out is not None and self.rules:
            self.out.write(f"Registered {len(self.rules)} experimental rule(s)\n")

    def read_loader_symbols(self, namespace: str = GLOBAL_NAMESPACE) -> int:
        """Copy symbols declared by the image into the given namespace."""
        scope = self.symbols.setdefault(namespace, {})
        for name, offset in self._loader_symbols:
            scope[name] = offset
        return len(self._loader_symbols)

    def _read_file_bytes(self) -> bytes:
        try:
            return Path(self.filename).read_bytes()
        except OSError as exc:
            raise LowlevelError(f"Unable to read image {self.filename}: {exc.strerror}") from exc

    # --- Persistence --------------------------------------------------

    def save_xml(self, stream: IO[str]) -> None:
        root = ET.Element(self.savefile_tag)
        root.set("name", self.filename)
        root.set("target", self.language.id if self.language else self.target)
        self._save_image(root)

        table = ET.SubElement(root, "symbol_table")
        for namespace, scope in sorted(self.symbols.items()):
            scope_el = ET.SubElement(table, "scope", name=namespace)
            for name, offset in sorted(scope.items()):
                ET.SubElement(scope_el, "symbol", name=name, offset=hex(offset))

        if self.rules:
            rules_el = ET.SubElement(root, EXPERIMENTAL_RULES_TAG)
            for rule in self.rules:
                ET.SubElement(rules_el, "rule", name=rule)

        write_document(root, stream)

    def _save_image(self, root: ET.Element) -> None:
        ET.SubElement(root, "image_ref", name=self.filename)

    def restore_xml(self, store: DocumentStore) -> None:
        """Rebuild from the savefile tag registered in store."""
        el = store.get_tag(self.savefile_tag)
        if el is None:
            raise LowlevelError(f"Could not find <{self.savefile_tag}> tag")
        self.filename = el.get("name", "")
        self.target = el.get("target", "")
        if not self.target:
            raise LowlevelError(f"<{self.savefile_tag}> is missing its target attribute")
        self._restore_image(el)
        self.language = resolve_language(self.target, self.paths)

        self.symbols = {}
        table = el.find("symbol_table")
        if table is not None:
            for scope_el in table.findall("scope"):
                scope = self.symbols.setdefault(scope_el.get("name", GLOBAL_NAMESPACE), {})
                for sym in scope_el.findall("symbol"):
                    scope[sym.get("name", "")] = _parse_int(sym.get("offset"), "symbol offset")

        self.rules = []
        rules_el = el.find(EXPERIMENTAL_RULES_TAG)
        if rules_el is not None:
            self.rules = [r.get("name") for r in rules_el.iter("rule") if r.get("name")]

    def _restore_image(self, el: ET.Element) -> None:
        if not self.filename:
            raise LowlevelError(f"<{self.savefile_tag}> does not name its image")
        self._load_image()


class XmlWorkspace(Workspace):
    """Image described by a <binaryimage> document.

    The document carries the bytes itself, so a saved workspace does not
    depend on the original file.
    """

    format_name = "xml"
    savefile_tag = "xml_savefile"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._arch: Optional[str] = None

    def _load_image(self) -> None:
        root = DocumentStore().open_document(self.filename)
        self._read_binaryimage(root)

    def _read_binaryimage(self, root: ET.Element) -> None:
        if root.tag != "binaryimage":
            raise LowlevelError(f"Expected <binaryimage>, found <{root.tag}>")
        self._arch = root.get("arch")
        self.chunks = []
        for chunk in root.findall("bytechunk"):
            offset = _parse_int(chunk.get("offset"), "bytechunk offset")
            text = "".join((chunk.text or "").split())
            try:
                self.chunks.append((offset, bytes.fromhex(text)))
            except ValueError as exc:
                raise LowlevelError(f"Bad bytechunk at {hex(offset)}") from exc
        self._loader_symbols = [
            (sym.get("name", ""), _parse_int(sym.get("offset"), "symbol offset"))
            for sym in root.findall("symbol")
        ]

    def _default_target(self) -> str:
        if not self._arch:
            raise LowlevelError(f"No arch attribute in {self.filename}")
        return self._arch

    def _save_image(self, root: ET.Element) -> None:
        image = ET.SubElement(root, "binaryimage")
        if self.language is not None:
            image.set("arch", self.language.id)
        for offset, data in self.chunks:
            chunk = ET.SubElement(image, "bytechunk", space="ram", offset=hex(offset))
            chunk.text = data.hex()
        for name, offset in self._loader_symbols:
            ET.SubElement(image, "symbol", space="ram", offset=hex(offset), name=name)

    def _restore_image(self, el: ET.Element) -> None:
        image = el.find("binaryimage")
        if image is None:
            raise LowlevelError("Saved xml workspace has no <binaryimage>")
        self._read_binaryimage(image)


class RawWorkspace(Workspace):
    """Flat binary image loaded at address zero."""

    format_name = "raw"
    savefile_tag = "raw_savefile"

    def _load_image(self) -> None:
        self.chunks = [(0, self._read_file_bytes())]


# e_machine -> processor name
ELF_MACHINES = {
    3: "x86",
    8: "MIPS",
    20: "PowerPC",
    40: "ARM",
    62: "x86",
    183: "AARCH64",
    243: "RISCV",
}

ELF_MAGIC = b"\x7fELF"


class ElfWorkspace(Workspace):
    """ELF image; the header decides the default language."""

    format_name = "elf"
    savefile_tag = "bfd_savefile"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._header_target: Optional[str] = None
        self._machine: Optional[int] = None

    def _load_image(self) -> None:
        data = self._read_file_bytes()
        if len(data) < 20 or not data.startswith(ELF_MAGIC):
            raise LowlevelError(f"{self.filename} is not an ELF image")
        bits = {1: 32, 2: 64}.get(data[4])
        endian = {1: "LE", 2: "BE"}.get(data[5])
        if bits is None or endian is None:
            raise LowlevelError(f"Unsupported ELF class/encoding in {self.filename}")
        (machine,) = struct.unpack("<H" if endian == "LE" else ">H", data[18:20])
        self._machine = machine
        processor = ELF_MACHINES.get(machine)
        self._header_target = f"{processor}:{endian}:{bits}" if processor else None
        self.chunks = [(0, data)]

    def _default_target(self) -> str:
        if self._header_target is None:
            raise LowlevelError(
                f"Unknown ELF machine {self._machine} in {self.filename}"
            )
        return self._header_target
