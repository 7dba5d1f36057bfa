from __future__ import annotations

from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
import logging
import os
from pathlib import Path
import shutil
import tempfile
from typing import Iterator, Mapping, Union

from ccdb.config import InterceptConfig
from ccdb.exceptions import InterceptError
from ccdb.flags import WRAPPER_EXECUTABLE

logger = logging.getLogger(__name__)

DESTINATION_ENV = "CCDB_REPORT_DESTINATION"
WRAPPER_DIR_ENV = "CCDB_WRAPPER_DIR"
PRELOAD_ENV = "LD_PRELOAD"


@dataclass(frozen=True)
class PreloadSession:
    library: Path

    @contextmanager
    def environment(
        self, base: Mapping[str, str], destination: Path
    ) -> Iterator[dict[str, str]]:
        env = dict(base)
        env[DESTINATION_ENV] = str(destination)
        existing = env.get(PRELOAD_ENV, "").strip()
        library = str(self.library)
        if existing and library not in existing.split(":"):
            env[PRELOAD_ENV] = f"{library}:{existing}"
        else:
            env[PRELOAD_ENV] = existing or library
        yield env


def populate_wrapper_dir(directory: Path, wrapper: Path, compilers: tuple[str, ...]) -> None:
    for name in compilers:
        link = directory / name
        if link.exists() or link.is_symlink():
            continue
        link.symlink_to(wrapper)


@dataclass(frozen=True)
class WrapperSession:
    wrapper: Path
    wrapper_dir: Path | None
    compilers: tuple[str, ...]

    @contextmanager
    def environment(
        self, base: Mapping[str, str], destination: Path
    ) -> Iterator[dict[str, str]]:
        with ExitStack() as stack:
            directory = self.wrapper_dir
            if directory is None:
                directory = Path(
                    stack.enter_context(tempfile.TemporaryDirectory(prefix="ccdb-wrappers-"))
                )
                populate_wrapper_dir(directory, self.wrapper, self.compilers)
                logger.debug("wrapper directory %s", directory)
            env = dict(base)
            env[DESTINATION_ENV] = str(destination)
            env[WRAPPER_DIR_ENV] = str(directory)
            path = env.get("PATH", "")
            env["PATH"] = os.pathsep.join([str(directory), path]) if path else str(directory)
            yield env


AnySession = Union[PreloadSession, WrapperSession]


def _resolve_wrapper(config: InterceptConfig) -> Path:
    if config.wrapper is not None:
        if not config.wrapper.is_file():
            raise InterceptError(f"wrapper executable not found: {config.wrapper}")
        return config.wrapper.resolve()
    located = shutil.which(WRAPPER_EXECUTABLE)
    if located is None:
        raise InterceptError(f"wrapper executable not found: {WRAPPER_EXECUTABLE}")
    return Path(located).resolve()


def select_session(config: InterceptConfig) -> AnySession:
    if config.force_preload and config.force_wrapper:
        raise InterceptError("--force-preload and --force-wrapper are mutually exclusive")
    if config.force_preload:
        if not config.library.is_file():
            raise InterceptError(f"preload library not found: {config.library}")
        return PreloadSession(library=config.library.resolve())
    if not config.force_wrapper and config.library.is_file():
        return PreloadSession(library=config.library.resolve())
    if config.wrapper_dir is not None and not config.wrapper_dir.is_dir():
        raise InterceptError(f"wrapper directory not found: {config.wrapper_dir}")
    return WrapperSession(
        wrapper=_resolve_wrapper(config),
        wrapper_dir=config.wrapper_dir,
        compilers=tuple(config.compilers),
    )
