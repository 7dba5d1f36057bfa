from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import shlex
from typing import Iterable, List, Optional

from pydantic import BaseModel, ValidationError, model_validator

from ccdb.command import remove_artifact
from ccdb.config import ContentConfig, FormatConfig
from ccdb.exceptions import CitnamesError

logger = logging.getLogger(__name__)


class Entry(BaseModel):
    """One compilation database record."""

    directory: str
    file: str
    arguments: List[str]
    output: Optional[str] = None


class EntryDTO(BaseModel):
    """Record as found on disk; either ``arguments`` or ``command`` is set."""

    directory: str
    file: str
    arguments: Optional[List[str]] = None
    command: Optional[str] = None
    output: Optional[str] = None

    @model_validator(mode="after")
    def _has_command(self) -> "EntryDTO":
        if self.arguments is None and self.command is None:
            raise ValueError("entry needs either 'arguments' or 'command'")
        return self

    def to_entry(self) -> Entry:
        arguments = self.arguments if self.arguments is not None else shlex.split(self.command or "")
        return Entry(
            directory=self.directory,
            file=self.file,
            arguments=list(arguments),
            output=self.output,
        )


def _under(path: str, prefixes: Iterable[Path]) -> bool:
    return any(
        path == str(prefix) or path.startswith(str(prefix).rstrip(os.sep) + os.sep)
        for prefix in prefixes
    )


def filter_entries(
    entries: Iterable[Entry], content: ContentConfig, *, check_sources: bool = False
) -> list[Entry]:
    check = check_sources or content.include_only_existing_source
    kept: list[Entry] = []
    for entry in entries:
        if content.paths_to_include and not _under(entry.file, content.paths_to_include):
            continue
        if _under(entry.file, content.paths_to_exclude):
            continue
        if check and not Path(entry.file).is_file():
            logger.debug("source file missing, dropping entry: %s", entry.file)
            continue
        kept.append(entry)
    return kept


def _duplicate_key(entry: Entry, fields: str) -> tuple:
    if fields == "file":
        return (entry.file,)
    if fields == "file_output":
        return (entry.file, entry.output)
    return (entry.directory, entry.file, entry.output, tuple(entry.arguments))


def deduplicate(entries: Iterable[Entry], fields: str) -> list[Entry]:
    seen: set[tuple] = set()
    unique: list[Entry] = []
    for entry in entries:
        key = _duplicate_key(entry, fields)
        if key in seen:
            continue
        seen.add(key)
        unique.append(entry)
    return unique


def read_database(path: Path) -> list[Entry]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeError, json.JSONDecodeError) as exc:
        raise CitnamesError(f"cannot read compilation database {path}: {exc}") from exc
    if not isinstance(payload, list):
        raise CitnamesError(f"compilation database {path} is not a JSON array")
    try:
        return [EntryDTO.model_validate(item).to_entry() for item in payload]
    except ValidationError as exc:
        raise CitnamesError(f"invalid compilation database {path}: {exc}") from exc


def render_entry(entry: Entry, fmt: FormatConfig) -> dict[str, object]:
    rendered: dict[str, object] = {
        "directory": entry.directory,
        "file": entry.file,
    }
    if fmt.command_as_array:
        rendered["arguments"] = list(entry.arguments)
    else:
        rendered["command"] = shlex.join(entry.arguments)
    if entry.output is not None and not fmt.drop_output_field:
        rendered["output"] = entry.output
    return rendered


def write_database(path: Path, entries: Iterable[Entry], fmt: FormatConfig) -> None:
    payload = [render_entry(entry, fmt) for entry in entries]
    text = json.dumps(payload, indent=2) + "\n"
    # write next to the target then rename, so readers never see a partial file
    temporary = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temporary.write_text(text, encoding="utf-8")
        os.replace(temporary, path)
    except OSError as exc:
        remove_artifact(temporary)
        raise CitnamesError(f"cannot write compilation database {path}: {exc}") from exc
