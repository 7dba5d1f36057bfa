"""Recognize compiler calls among recorded executions.

Only the gcc/clang command line dialect is understood. A call yields one
entry per source file it compiles; preprocess-only, dependency-only, query
and pure link calls yield nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path, PurePath
import re
from typing import Iterable, Iterator

from ccdb.citnames.output import Entry
from ccdb.config import CompilationConfig, CompilerConfig
from ccdb.intercept.events import EventDTO

logger = logging.getLogger(__name__)

_COMPILER_RE = re.compile(
    r"^(?:[\w.]+-)*(?:cc|c\+\+|gcc|g\+\+|clang|clang\+\+)(?:-\d+(?:\.\d+)*)?$"
)
_WRAPPER_NAMES = frozenset({"ccache", "distcc"})

SOURCE_EXTENSIONS = frozenset(
    {
        ".c", ".i",
        ".cc", ".cp", ".cxx", ".cpp", ".c++", ".C", ".ii",
        ".m", ".mi", ".mm", ".M", ".mii",
        ".s", ".S", ".sx", ".asm",
        ".f", ".for", ".ftn", ".F", ".FOR", ".fpp", ".FPP", ".FTN",
        ".f90", ".f95", ".f03", ".f08", ".F90", ".F95", ".F03", ".F08",
        ".cu", ".cuh",
    }
)

# options whose value is the following argument when not attached
_OPTIONS_WITH_VALUE = frozenset(
    {
        "-o", "-x", "-I", "-D", "-U", "-L", "-l",
        "-include", "-imacros", "-isystem", "-iquote", "-idirafter",
        "-iprefix", "-iwithprefix", "-iwithprefixbefore", "-isysroot",
        "-MF", "-MT", "-MQ",
        "-Xlinker", "-Xpreprocessor", "-Xassembler", "-Xclang",
        "-arch", "-target", "-aux-info", "-T", "-u", "-z", "-F",
        "-framework", "-gcc-toolchain", "--param",
    }
)
_LINKER_OPTIONS = frozenset({"-L", "-l", "-Xlinker", "-T", "-u", "-z", "-framework"})
_LINKER_PREFIXES = ("-Wl,", "-L", "-l")
_STOP_OPTIONS = frozenset({"-E", "-M", "-MM"})
_QUERY_OPTIONS = frozenset(
    {"--version", "-v", "--help", "-###", "-dumpversion", "-dumpmachine", "-dumpspecs"}
)
_OBJECT_EXTENSIONS = frozenset({".o", ".obj", ".a", ".so", ".dylib", ".lib", ".dll"})


@dataclass(frozen=True)
class CompilerCall:
    compiler: str
    flags: tuple[str, ...]
    sources: tuple[str, ...]
    output: str | None


def is_source(argument: str) -> bool:
    return PurePath(argument).suffix in SOURCE_EXTENSIONS


def _is_query(arguments: Iterable[str]) -> bool:
    args = list(arguments)
    if not args:
        return True
    return any(arg in _QUERY_OPTIONS or arg.startswith("-print-") for arg in args) and not any(
        is_source(arg) for arg in args
    )


def parse_arguments(compiler: str, arguments: Iterable[str]) -> CompilerCall | None:
    """Split a gcc-style argument list; ``None`` when nothing gets compiled."""
    args = list(arguments)
    if _is_query(args):
        return None
    flags: list[str] = []
    sources: list[str] = []
    output: str | None = None
    language_given = False
    index = 0
    while index < len(args):
        arg = args[index]
        value: str | None = None
        if arg in _OPTIONS_WITH_VALUE and index + 1 < len(args):
            value = args[index + 1]
            index += 1
        index += 1

        if arg in _STOP_OPTIONS:
            return None
        if arg == "-o":
            output = value
            continue
        if arg.startswith("-o") and len(arg) > 2:
            output = arg[2:]
            continue
        if arg == "-c":
            continue
        if arg == "-x" or (arg.startswith("-x") and len(arg) > 2):
            language_given = True
        if arg in _LINKER_OPTIONS or arg.startswith(_LINKER_PREFIXES):
            continue
        if arg.startswith("-"):
            flags.append(arg)
            if value is not None:
                flags.append(value)
            continue
        if is_source(arg) or (language_given and PurePath(arg).suffix not in _OBJECT_EXTENSIONS):
            sources.append(arg)
            continue
        # object files and libraries are link inputs
    if not sources:
        return None
    return CompilerCall(
        compiler=compiler,
        flags=tuple(flags),
        sources=tuple(sources),
        output=output,
    )


class Recognizer:
    def __init__(self, config: CompilationConfig) -> None:
        self._extra: dict[str, CompilerConfig] = {
            str(compiler.executable): compiler for compiler in config.compilers_to_recognize
        }
        self._excluded = {str(path) for path in config.compilers_to_exclude}

    def _configured(self, executable: str) -> CompilerConfig | None:
        if executable in self._extra:
            return self._extra[executable]
        return self._extra.get(PurePath(executable).name)

    def _excluded_executable(self, executable: str) -> bool:
        return executable in self._excluded or PurePath(executable).name in self._excluded

    def recognize(self, executable: str, arguments: list[str]) -> tuple[str, list[str], CompilerConfig | None] | None:
        if self._excluded_executable(executable):
            return None
        configured = self._configured(executable)
        if configured is not None:
            return executable, arguments[1:], configured
        name = PurePath(executable).name
        if name in _WRAPPER_NAMES and len(arguments) > 1:
            inner = arguments[1]
            if inner.startswith("-"):
                return None
            return self.recognize(inner, arguments[1:])
        if _COMPILER_RE.match(name):
            return executable, arguments[1:], None
        return None

    def entries(self, event: EventDTO) -> Iterator[Entry]:
        execution = event.execution
        recognized = self.recognize(execution.executable, list(execution.arguments))
        if recognized is None:
            logger.debug("not a compiler call: %s", execution.executable)
            return
        compiler, arguments, configured = recognized
        if configured is not None:
            removed = set(configured.flags_to_remove)
            arguments = [arg for arg in arguments if arg not in removed]
        call = parse_arguments(compiler, arguments)
        if call is None:
            return
        directory = Path(execution.working_dir)
        single = len(call.sources) == 1
        output = _absolute(directory, call.output) if call.output and single else None
        extra = list(configured.flags_to_add) if configured is not None else []
        for source in call.sources:
            command = [compiler, "-c", *extra, *call.flags]
            if output is not None:
                command.extend(["-o", str(call.output)])
            command.append(source)
            yield Entry(
                directory=str(directory),
                file=_absolute(directory, source),
                arguments=command,
                output=output,
            )


def _absolute(directory: Path, path: str) -> str:
    if os.path.isabs(path):
        return os.path.normpath(path)
    return os.path.normpath(str(directory / path))


def recognize_events(events: Iterable[EventDTO], config: CompilationConfig) -> list[Entry]:
    recognizer = Recognizer(config)
    entries: list[Entry] = []
    for event in events:
        entries.extend(recognizer.entries(event))
    return entries
