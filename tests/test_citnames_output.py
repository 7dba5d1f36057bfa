from __future__ import annotations

import json
from pathlib import Path

import pytest

from ccdb.citnames.output import (
    Entry,
    deduplicate,
    filter_entries,
    read_database,
    render_entry,
    write_database,
)
from ccdb.config import ContentConfig, FormatConfig
from ccdb.exceptions import CitnamesError


def _entry(file: str, *, output: str | None = None, arguments: list[str] | None = None) -> Entry:
    return Entry(
        directory="/src",
        file=file,
        arguments=arguments or ["cc", "-c", file],
        output=output,
    )


def test_filter_by_include_and_exclude_prefixes() -> None:
    entries = [_entry("/src/a.c"), _entry("/src/vendor/b.c"), _entry("/other/c.c")]
    content = ContentConfig(
        paths_to_include=[Path("/src")],
        paths_to_exclude=[Path("/src/vendor/")],
    )
    assert [entry.file for entry in filter_entries(entries, content)] == ["/src/a.c"]


def test_prefix_match_respects_path_boundaries() -> None:
    entries = [_entry("/src/a.c"), _entry("/srcgen/b.c")]
    content = ContentConfig(paths_to_exclude=[Path("/src")])
    assert [entry.file for entry in filter_entries(entries, content)] == ["/srcgen/b.c"]


def test_existence_check_drops_missing_sources(tmp_path: Path) -> None:
    present = tmp_path / "present.c"
    present.write_text("int x;\n", encoding="utf-8")
    entries = [_entry(str(present)), _entry(str(tmp_path / "gone.c"))]
    kept = filter_entries(entries, ContentConfig(), check_sources=True)
    assert [entry.file for entry in kept] == [str(present)]
    assert len(filter_entries(entries, ContentConfig())) == 2
    configured = ContentConfig(include_only_existing_source=True)
    assert len(filter_entries(entries, configured)) == 1


@pytest.mark.parametrize(
    ("fields", "expected"),
    [("file", 1), ("file_output", 2), ("all", 3)],
)
def test_deduplicate_by_configured_fields(fields: str, expected: int) -> None:
    entries = [
        _entry("/src/a.c", output="/src/a.o"),
        _entry("/src/a.c", output="/src/a.o", arguments=["cc", "-O2", "-c", "/src/a.c"]),
        _entry("/src/a.c", output="/src/a.pic.o"),
        _entry("/src/a.c", output="/src/a.o"),
    ]
    assert len(deduplicate(entries, fields)) == expected


def test_render_entry_formats() -> None:
    entry = _entry("/src/my file.c", output="/src/a.o", arguments=["cc", "-c", "my file.c"])
    as_array = render_entry(entry, FormatConfig())
    assert as_array == {
        "directory": "/src",
        "file": "/src/my file.c",
        "arguments": ["cc", "-c", "my file.c"],
        "output": "/src/a.o",
    }
    as_command = render_entry(entry, FormatConfig(command_as_array=False, drop_output_field=True))
    assert as_command == {
        "directory": "/src",
        "file": "/src/my file.c",
        "command": "cc -c 'my file.c'",
    }


def test_write_then_read_database(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "compile_commands.json"
    write_database(path, [_entry("/src/a.c")], FormatConfig(command_as_array=False))
    assert json.loads(path.read_text(encoding="utf-8"))[0]["command"] == "cc -c /src/a.c"
    assert read_database(path) == [_entry("/src/a.c")]
    assert not (path.parent / ".compile_commands.json.tmp").exists()


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '{"directory": "/src"}',
        '[{"directory": "/src", "file": "a.c"}]',
    ],
)
def test_read_database_rejects_invalid_content(tmp_path: Path, payload: str) -> None:
    path = tmp_path / "compile_commands.json"
    path.write_text(payload, encoding="utf-8")
    with pytest.raises(CitnamesError):
        read_database(path)


def test_failed_write_leaves_no_temporary_file(tmp_path: Path) -> None:
    path = tmp_path / "compile_commands.json"
    path.mkdir()
    (path / "occupied").write_text("x", encoding="utf-8")

    with pytest.raises(CitnamesError):
        write_database(path, [_entry("/src/a.c")], FormatConfig())

    assert not (tmp_path / ".compile_commands.json.tmp").exists()
    assert path.is_dir()
