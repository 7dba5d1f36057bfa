from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional, Tuple
import tomllib

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ccdb.exceptions import ConfigurationError
from ccdb.flags import (
    CITNAMES_DEFAULT_OUTPUT,
    DEFAULT_LIBRARY,
    FLAG_CONFIG,
    INTERCEPT_DEFAULT_OUTPUT,
    Arguments,
)
from ccdb.result import Result, capture

DEFAULT_CONFIG_NAME = "ccdb.toml"

DEFAULT_COMPILERS: Tuple[str, ...] = (
    "cc",
    "c++",
    "gcc",
    "g++",
    "clang",
    "clang++",
)


class _ConfigModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class InterceptConfig(_ConfigModel):
    output_file: Path = INTERCEPT_DEFAULT_OUTPUT
    library: Path = DEFAULT_LIBRARY
    wrapper: Optional[Path] = None
    wrapper_dir: Optional[Path] = None
    force_preload: bool = False
    force_wrapper: bool = False
    compilers: Tuple[str, ...] = DEFAULT_COMPILERS
    command: Tuple[str, ...] = ()


class CompilerConfig(_ConfigModel):
    executable: Path
    flags_to_add: List[str] = []
    flags_to_remove: List[str] = []


class CompilationConfig(_ConfigModel):
    compilers_to_recognize: List[CompilerConfig] = []
    compilers_to_exclude: List[Path] = []


class ContentConfig(_ConfigModel):
    include_only_existing_source: bool = False
    paths_to_include: List[Path] = []
    paths_to_exclude: List[Path] = []
    duplicate_filter_fields: Literal["all", "file", "file_output"] = "file_output"


class FormatConfig(_ConfigModel):
    command_as_array: bool = True
    drop_output_field: bool = False


class OutputConfig(_ConfigModel):
    content: ContentConfig = ContentConfig()
    format: FormatConfig = FormatConfig()


class CitnamesConfig(_ConfigModel):
    input_file: Path = INTERCEPT_DEFAULT_OUTPUT
    output_file: Path = CITNAMES_DEFAULT_OUTPUT
    append: bool = False
    run_checks: bool = False
    compilation: CompilationConfig = CompilationConfig()
    output: OutputConfig = OutputConfig()


class Configuration(_ConfigModel):
    intercept: InterceptConfig = Field(default_factory=InterceptConfig)
    citnames: CitnamesConfig = Field(default_factory=CitnamesConfig)


def _load_toml(path: Path) -> dict:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"invalid config file {path}: {exc}") from exc
    return data


def resolve_config_path(
    explicit: Path | None, *, root: Path | None = None
) -> Path | None:
    if explicit is not None:
        return explicit
    base = root if root is not None else Path.cwd()
    candidate = base / DEFAULT_CONFIG_NAME
    return candidate if candidate.is_file() else None


def load_config(config_path: Path | None) -> Configuration:
    if config_path is None:
        return Configuration()
    data = _load_toml(config_path)
    try:
        return Configuration.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid config file {config_path}: {exc}") from exc


def load_configuration(
    args: Arguments, *, root: Path | None = None
) -> Result[Configuration]:
    """Configuration for this invocation.

    An explicit ``--config`` must exist; the default ``ccdb.toml`` is optional.
    """
    return capture(
        lambda: load_config(resolve_config_path(args.as_path(FLAG_CONFIG), root=root)),
        ConfigurationError,
    )
