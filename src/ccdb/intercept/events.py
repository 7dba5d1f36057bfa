from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import os
from pathlib import Path
from typing import Iterator, List

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class ExecutionDTO(BaseModel):
    executable: str
    arguments: List[str]
    working_dir: str


class EventDTO(BaseModel):
    pid: int
    started: str
    execution: ExecutionDTO


def make_event(
    executable: str,
    arguments: List[str],
    *,
    working_dir: str | None = None,
    pid: int | None = None,
) -> EventDTO:
    return EventDTO(
        pid=os.getpid() if pid is None else pid,
        started=datetime.now(timezone.utc).isoformat(),
        execution=ExecutionDTO(
            executable=executable,
            arguments=list(arguments),
            working_dir=working_dir if working_dir is not None else os.getcwd(),
        ),
    )


def append_event(path: Path, event: EventDTO) -> None:
    """Append one JSON line.

    Single ``write`` on an ``O_APPEND`` descriptor, so concurrent compiler
    processes do not interleave their lines.
    """
    line = (json.dumps(event.model_dump(), ensure_ascii=True) + "\n").encode("ascii")
    fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
    try:
        os.write(fd, line)
    finally:
        os.close(fd)


def read_events(path: Path) -> Iterator[EventDTO]:
    # undecodable bytes in arguments survive as lone surrogates
    with path.open(encoding="utf-8", errors="surrogateescape") as handle:
        for number, line in enumerate(handle, start=1):
            text = line.strip()
            if not text:
                continue
            try:
                yield EventDTO.model_validate(json.loads(text))
            except (json.JSONDecodeError, ValidationError) as exc:
                logger.warning("%s:%d: skipping malformed event: %s", path, number, exc)
