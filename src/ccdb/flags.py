from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

INTERCEPT_SUBCOMMAND = "intercept"
CITNAMES_SUBCOMMAND = "citnames"
SUBCOMMANDS: tuple[str, ...] = (INTERCEPT_SUBCOMMAND, CITNAMES_SUBCOMMAND)

FLAG_VERBOSE = "verbose"
FLAG_OUTPUT = "output"
FLAG_INPUT = "input"
FLAG_CONFIG = "config"
FLAG_APPEND = "append"
FLAG_RUN_CHECKS = "run_checks"
FLAG_FORCE_PRELOAD = "force_preload"
FLAG_FORCE_WRAPPER = "force_wrapper"
FLAG_LIBRARY = "library"
FLAG_WRAPPER = "wrapper"
FLAG_WRAPPER_DIR = "wrapper_dir"
FLAG_COMMAND = "command"

INTERCEPT_DEFAULT_OUTPUT = Path("events.json")
CITNAMES_DEFAULT_OUTPUT = Path("compile_commands.json")
DEFAULT_LIBRARY = Path("/usr/local/lib/ccdb/libexec.so")
WRAPPER_EXECUTABLE = "ccdb-wrapper"
EVENTS_SUFFIX = ".events.json"


@dataclass(frozen=True)
class Arguments:
    """Parsed command line.

    ``subcommand`` is the name given as first word (``None`` for the combined
    form). A value of ``None`` in ``values`` means the flag was not given, so
    configuration file values win.
    """

    subcommand: str | None = None
    values: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def as_string(self, key: str) -> str | None:
        value = self.values.get(key)
        if value is None:
            return None
        return str(value)

    def as_path(self, key: str) -> Path | None:
        value = self.as_string(key)
        return Path(value) if value else None

    def as_bool(self, key: str) -> bool | None:
        value = self.values.get(key)
        if value is None:
            return None
        return bool(value)

    def as_list(self, key: str) -> list[str]:
        value = self.values.get(key)
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value]  # type: ignore[union-attr]

    def verbosity(self) -> int:
        value = self.values.get(FLAG_VERBOSE)
        return int(value) if isinstance(value, int) else 0


def events_path_for(output: Path) -> Path:
    """Intermediate events artifact next to the final output.

    ``build/compile_commands.json`` -> ``build/compile_commands.events.json``.
    """
    if not output.name:
        return output / f"compile_commands{EVENTS_SUFFIX}"
    return output.with_suffix(EVENTS_SUFFIX)
