from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import subprocess
from typing import Callable, Mapping

from ccdb.exceptions import InterceptError
from ccdb.intercept.session import AnySession
from ccdb.result import Err, Ok, Result

logger = logging.getLogger(__name__)

RunCommand = Callable[..., subprocess.CompletedProcess]


def exit_code_of(returncode: int) -> int:
    # negative return codes are signals; report them the way a shell does
    if returncode < 0:
        return 128 - returncode
    return returncode


@dataclass(frozen=True)
class InterceptCommand:
    command: tuple[str, ...]
    output: Path
    session: AnySession
    run: RunCommand = subprocess.run
    base_environment: Mapping[str, str] | None = field(default=None, compare=False)

    def execute(self) -> Result[int]:
        destination = self.output.absolute()
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.unlink(missing_ok=True)
        except OSError as exc:
            return Err(InterceptError(f"cannot prepare {destination}: {exc}"))

        base = dict(os.environ if self.base_environment is None else self.base_environment)
        try:
            with self.session.environment(base, destination) as env:
                logger.info("running %s", " ".join(self.command))
                completed = self.run(list(self.command), env=env, check=False)
        except OSError as exc:
            # covers the wrapper directory setup as well as the spawn
            return Err(InterceptError(f"failed to execute {self.command[0]}: {exc}"))
        code = exit_code_of(completed.returncode)
        logger.debug("build finished with exit code %d", code)
        return Ok(code)
