"""Workspace lifecycle: load, save, restore and addpath through the session."""

from pathlib import Path

from decomp_console.modules.core.errors import (
    ERR_ALREADY_LOADED,
    ERR_CANNOT_OPEN_FILE,
    ERR_DOCUMENT,
    ERR_LOWLEVEL,
    ERR_MISSING_FILE_NAME,
    ERR_MISSING_PATH,
    ERR_NO_WORKSPACE,
    ERR_UNRECOGNIZED_FORMAT,
    Outcome,
)


def test_load_xml_image(session, context, xml_image: Path) -> None:
    result = session.run_line(f"load {xml_image}")

    assert result.outcome is Outcome.OK
    ws = context.workspace
    assert ws is not None
    assert ws.language.id == "x86:LE:32:default"
    assert ws.symbols["::"] == {"main": 0x1000}
    assert "successfully loaded: x86:LE:32:default (xml)" in context.out.getvalue()


def test_second_load_fails_and_keeps_original(session, context, xml_image, raw_image) -> None:
    session.run_line(f"load {xml_image}")
    original = context.workspace

    result = session.run_line(f"load x86:LE:32:default {raw_image}")

    assert result.outcome is Outcome.EXECUTION_ERROR
    assert result.code == ERR_ALREADY_LOADED
    assert context.workspace is original
    assert "Execution error: Load image already present" in context.out.getvalue()


def test_load_unrecognized_then_valid(session, context, tmp_path, xml_image) -> None:
    missing = tmp_path / "nowhere.bin"
    result = session.run_line(f"load {missing}")

    assert result.code == ERR_UNRECOGNIZED_FORMAT
    assert context.workspace is None
    assert f"Unable to recognize imagefile {missing}" in context.out.getvalue()

    assert session.run_line(f"load {xml_image}").outcome is Outcome.OK
    assert context.workspace is not None


def test_failed_init_rolls_back_softly(session, context, raw_image) -> None:
    # A raw image has no default language
    for _ in range(2):
        result = session.run_line(f"load {raw_image}")
        assert result.outcome is Outcome.OK
        assert context.workspace is None
        assert not session.done

    out = context.out.getvalue()
    assert out.count("Could not create workspace") == 2
    assert "No default language for raw image" in out


def test_load_with_unknown_target_rolls_back(session, context, raw_image) -> None:
    session.run_line(f"load mips:BE:64:default {raw_image}")
    assert context.workspace is None
    assert "No language definition for mips:BE:64:default" in context.out.getvalue()


def test_load_raw_with_target(session, context, raw_image) -> None:
    assert session.run_line(f"load x86:LE:64 {raw_image}").outcome is Outcome.OK
    assert context.workspace.language.id == "x86:LE:64:default"
    assert context.workspace.image_size == 16


def test_load_file_name_with_quote(session, context, tmp_path) -> None:
    image = tmp_path / "it's.bin"
    image.write_bytes(b"\x90" * 8)
    assert session.run_line(f"load x86:LE:32 {image}").outcome is Outcome.OK
    assert context.workspace.filename == str(image)


def test_load_file_name_with_backslash(session, context, tmp_path) -> None:
    image = tmp_path / "a\\b.bin"
    image.write_bytes(b"\x90" * 8)
    assert session.run_line(f"load x86:LE:32 {image}").outcome is Outcome.OK
    assert context.workspace.filename == str(image)


def test_experimental_rules_missing_name(session) -> None:
    result = session.run_line("experimental rules")
    assert result.outcome is Outcome.PARSE_ERROR
    assert result.code == ERR_MISSING_FILE_NAME


def test_load_elf_uses_header_language(session, context, elf_image) -> None:
    session.run_line(f"load {elf_image}")
    assert context.workspace is not None
    assert context.workspace.description == "x86:LE:32:default (elf)"


def test_load_missing_file_name_is_parse_error(session) -> None:
    result = session.run_line("load")
    assert result.outcome is Outcome.PARSE_ERROR
    assert result.code == ERR_MISSING_FILE_NAME


def test_save_without_workspace(session, tmp_path) -> None:
    result = session.run_line(f"save {tmp_path / 'out.xml'}")
    assert result.code == ERR_NO_WORKSPACE
    assert not (tmp_path / "out.xml").exists()


def test_save_remembers_file_name(session, context, xml_image, tmp_path) -> None:
    session.run_line(f"load {xml_image}")

    result = session.run_line("save")
    assert result.outcome is Outcome.PARSE_ERROR
    assert result.code == ERR_MISSING_FILE_NAME

    target = tmp_path / "saved.xml"
    assert session.run_line(f"save {target}").outcome is Outcome.OK
    assert target.read_text().startswith("<xml_savefile")

    target.unlink()
    assert session.run_line("save").outcome is Outcome.OK
    assert target.exists()
    assert context.last_path == str(target)


def test_save_unopenable_file(session, xml_image, tmp_path) -> None:
    session.run_line(f"load {xml_image}")
    result = session.run_line(f"save {tmp_path / 'missing-dir' / 'out.xml'}")
    assert result.code == ERR_CANNOT_OPEN_FILE


def test_restore_replaces_existing_workspace(session, context, xml_image, tmp_path) -> None:
    saved = tmp_path / "saved.xml"
    session.run_line(f"load {xml_image}")
    session.run_line(f"save {saved}")
    first = context.workspace

    result = session.run_line(f"restore {saved}")

    assert result.outcome is Outcome.OK
    assert context.workspace is not None
    assert context.workspace is not first
    assert context.workspace.symbols == first.symbols
    assert context.workspace.chunks == first.chunks


def test_restore_without_prior_save(session, context, xml_image, tmp_path) -> None:
    saved = tmp_path / "saved.xml"
    session.run_line(f"load {xml_image}")
    session.run_line(f"save {saved}")
    context.workspace = None
    context.last_path = ""

    assert session.run_line(f"restore {saved}").outcome is Outcome.OK
    assert context.workspace.description == "x86:LE:32:default (xml)"
    # restore shares the remembered name with save
    assert context.last_path == str(saved)


def test_restore_failure_is_execution_error(session, context, xml_image, tmp_path) -> None:
    bad = tmp_path / "bad.xml"
    bad.write_text('<raw_savefile name="gone.bin" target="x86:LE:32:default"/>')
    session.run_line(f"load {xml_image}")

    result = session.run_line(f"restore {bad}")

    assert result.outcome is Outcome.EXECUTION_ERROR
    assert result.code == ERR_LOWLEVEL
    assert context.workspace is None
    assert not session.done


def test_restore_unknown_root_tag(session, context, tmp_path) -> None:
    doc = tmp_path / "other.xml"
    doc.write_text("<something_else/>")
    result = session.run_line(f"restore {doc}")
    assert result.code == ERR_UNRECOGNIZED_FORMAT
    assert context.workspace is None


def test_restore_parse_failure_keeps_workspace(session, context, xml_image, tmp_path) -> None:
    doc = tmp_path / "broken.xml"
    doc.write_text("<xml_savefile")
    session.run_line(f"load {xml_image}")
    original = context.workspace

    result = session.run_line(f"restore {doc}")

    assert result.code == ERR_DOCUMENT
    assert context.workspace is original


def test_restore_missing_name(session) -> None:
    result = session.run_line("restore")
    assert result.outcome is Outcome.PARSE_ERROR
    assert result.code == ERR_MISSING_FILE_NAME


def test_addpath_extends_search_paths(session, context, tmp_path, raw_image) -> None:
    assert session.run_line("addpath").code == ERR_MISSING_PATH

    extra = tmp_path / "more"
    session.run_line(f"addpath {extra}")
    assert str(extra) in context.search_paths.dirs

    # Populated after being added
    extra.mkdir()
    (extra / "z80.ldefs").write_text(
        '<language_definitions><language processor="z80" endian="little" size="16" '
        'id="z80:LE:16:default"/></language_definitions>'
    )
    session.run_line(f"load z80:LE:16:default {raw_image}")
    assert context.workspace.language.id == "z80:LE:16:default"


def test_experimental_rules_registered_on_load(session, context, xml_image, tmp_path) -> None:
    rules = tmp_path / "rules.xml"
    rules.write_text('<experimental_rules><rule name="collapse_casts"/></experimental_rules>')

    session.run_line(f"experimental rules {rules}")
    session.run_line(f"load {xml_image}")

    assert context.workspace.rules == ["collapse_casts"]


def test_bad_experimental_rules_are_skipped(session, context, xml_image, tmp_path) -> None:
    rules = tmp_path / "rules.xml"
    rules.write_text("<experimental_rules>")
    context.experimental_file = str(rules)

    session.run_line(f"load {xml_image}")

    assert context.workspace is not None
    assert context.workspace.rules == []
    assert "Skipping experimental rules" in context.out.getvalue()


def test_clear_then_load_again(session, context, xml_image) -> None:
    session.run_line(f"load {xml_image}")
    session.run_line("clear workspace")
    assert context.workspace is None
    assert session.run_line(f"load {xml_image}").outcome is Outcome.OK


def test_show_workspace(session, context, xml_image) -> None:
    session.run_line("show workspace")
    assert "No workspace loaded" in context.out.getvalue()
    session.run_line(f"load {xml_image}")
    result = session.run_line("show workspace")
    assert result.value == "x86:LE:32:default (xml)"
    assert "symbols in ::: 1" in context.out.getvalue()
