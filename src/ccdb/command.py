from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Protocol

from ccdb.result import Err, Result

logger = logging.getLogger(__name__)


class Command(Protocol):
    def execute(self) -> Result[int]: ...


def artifact_exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError:
        return False


def remove_artifact(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.debug("could not remove %s: %s", path, exc)


def _translate(command: Command) -> None:
    # the outcome never replaces the build result
    try:
        translated = command.execute()
    except Exception as exc:
        logger.warning("translation failed: %s", exc)
        logger.debug("translation traceback", exc_info=True)
        return
    if isinstance(translated, Err):
        logger.warning("translation failed: %s", translated.error)


@dataclass(frozen=True)
class ComposedCommand:
    """Interception followed by translation of what it recorded.

    Construction failures of either stage are held in the handles and
    reported before anything runs. The result is always interception's: the
    translation runs for its side effect only, and the intermediate file is
    removed whenever interception left one behind.
    """

    intercept: Result[Command]
    citnames: Result[Command]
    output: Path

    def execute(self) -> Result[int]:
        if isinstance(self.intercept, Err):
            return self.intercept
        if isinstance(self.citnames, Err):
            return self.citnames

        result = self.intercept.and_then(lambda cmd: cmd.execute())
        if artifact_exists(self.output):
            try:
                self.citnames.on_success(_translate)
            finally:
                remove_artifact(self.output)
        else:
            logger.debug("no events recorded at %s, skipping translation", self.output)
        return result
