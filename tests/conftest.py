"""Shared fixtures: language definitions, sample images and a wired session."""

import io
import struct
from pathlib import Path

import pytest

from decomp_console.modules.console import ConsoleContext, Session, build_registry
from decomp_console.modules.core.capability import CapabilityRegistry
from decomp_console.modules.core.formats import register_builtin_formats
from decomp_console.modules.core.languages import SearchPaths

LDEFS = """<language_definitions>
  <language processor="x86" endian="little" size="32" variant="default" id="x86:LE:32:default">
    <description>Intel/AMD 32-bit x86</description>
  </language>
  <language processor="x86" endian="little" size="64" variant="default" id="x86:LE:64:default">
    <description>Intel/AMD 64-bit x86</description>
  </language>
  <language processor="ARM" endian="little" size="32" variant="v8" id="ARM:LE:32:v8">
    <description>ARM v8 little endian</description>
  </language>
</language_definitions>
"""

XML_IMAGE = """<binaryimage arch="x86:LE:32:default">
  <bytechunk space="ram" offset="0x1000">5589e5c3</bytechunk>
  <symbol space="ram" offset="0x1000" name="main"/>
</binaryimage>
"""


def make_elf_header(machine: int = 3, elf_class: int = 1, data: int = 1) -> bytes:
    ident = b"\x7fELF" + bytes([elf_class, data, 1]) + b"\x00" * 9
    fmt = "<HH" if data == 1 else ">HH"
    return ident + struct.pack(fmt, 2, machine) + b"\x00" * 44


@pytest.fixture
def lang_dir(tmp_path: Path) -> Path:
    d = tmp_path / "languages"
    d.mkdir()
    (d / "x86.ldefs").write_text(LDEFS)
    return d


@pytest.fixture
def paths(lang_dir: Path) -> SearchPaths:
    return SearchPaths([str(lang_dir)])


@pytest.fixture
def formats() -> CapabilityRegistry:
    registry = CapabilityRegistry()
    register_builtin_formats(registry)
    return registry


@pytest.fixture
def xml_image(tmp_path: Path) -> Path:
    p = tmp_path / "image.xml"
    p.write_text(XML_IMAGE)
    return p


@pytest.fixture
def raw_image(tmp_path: Path) -> Path:
    p = tmp_path / "image.bin"
    p.write_bytes(b"\x55\x89\xe5\xc3" * 4)
    return p


@pytest.fixture
def elf_image(tmp_path: Path) -> Path:
    p = tmp_path / "image.elf"
    p.write_bytes(make_elf_header())
    return p


@pytest.fixture
def context(paths: SearchPaths, formats: CapabilityRegistry) -> ConsoleContext:
    return ConsoleContext(out=io.StringIO(), capabilities=formats, search_paths=paths)


@pytest.fixture
def session(context: ConsoleContext) -> Session:
    return Session(build_registry(), context, input_stream=io.StringIO(""))
