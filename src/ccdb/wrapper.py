"""Compiler wrapper installed under compiler names in the wrapper directory.

Each invocation records one event for the interception stage and then runs
the real compiler found further down ``PATH``.
"""

from __future__ import annotations

import os
from pathlib import Path
import subprocess
import sys
from typing import Callable, Mapping, Sequence

from ccdb.intercept.command import exit_code_of
from ccdb.intercept.events import append_event, make_event
from ccdb.intercept.session import DESTINATION_ENV, WRAPPER_DIR_ENV

_NOT_FOUND_EXIT = 127


def _same_file(left: Path, right: Path) -> bool:
    try:
        return left.samefile(right)
    except OSError:
        return False


def find_real_executable(
    name: str,
    *,
    path: str,
    skip_dirs: Sequence[Path] = (),
    self_path: Path | None = None,
) -> Path | None:
    for entry in path.split(os.pathsep):
        if not entry:
            continue
        directory = Path(entry)
        if any(_same_file(directory, skipped) for skipped in skip_dirs):
            continue
        candidate = directory / name
        if not candidate.is_file() or not os.access(candidate, os.X_OK):
            continue
        if self_path is not None and _same_file(candidate, self_path):
            continue
        return candidate
    return None


def run_wrapped(
    argv: Sequence[str],
    env: Mapping[str, str],
    *,
    run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    report: Callable[[Path, object], None] = append_event,
) -> int:
    name = Path(argv[0]).name
    skip_dirs = [Path(env[WRAPPER_DIR_ENV])] if env.get(WRAPPER_DIR_ENV) else []
    real = find_real_executable(
        name,
        path=env.get("PATH", ""),
        skip_dirs=skip_dirs,
        self_path=Path(argv[0]),
    )
    if real is None:
        print(f"ccdb-wrapper: {name}: real executable not found", file=sys.stderr)
        return _NOT_FOUND_EXIT

    destination = env.get(DESTINATION_ENV)
    if destination:
        try:
            event = make_event(str(real), [str(real), *argv[1:]])
            report(Path(destination), event)
        except (OSError, ValueError) as exc:
            print(f"ccdb-wrapper: cannot report to {destination}: {exc}", file=sys.stderr)

    completed = run([str(real), *argv[1:]], env=dict(env), check=False)
    return exit_code_of(completed.returncode)


def main() -> None:
    sys.exit(run_wrapped(sys.argv, os.environ))


if __name__ == "__main__":
    main()
