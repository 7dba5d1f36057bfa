from __future__ import annotations

from ccdb.citnames.command import CitnamesCommand
from ccdb.config import CitnamesConfig
from ccdb.exceptions import CitnamesError
from ccdb.flags import (
    CITNAMES_SUBCOMMAND,
    FLAG_APPEND,
    FLAG_INPUT,
    FLAG_OUTPUT,
    FLAG_RUN_CHECKS,
    Arguments,
)
from ccdb.result import Err, Ok, Result


class Citnames:
    """Factory for the translation stage."""

    def __init__(self, config: CitnamesConfig) -> None:
        self.config = config

    def matches(self, args: Arguments) -> bool:
        return args.subcommand == CITNAMES_SUBCOMMAND

    def configure(self, args: Arguments) -> CitnamesConfig:
        update: dict[str, object] = {}
        input_file = args.as_path(FLAG_INPUT)
        if input_file is not None:
            update["input_file"] = input_file
        output_file = args.as_path(FLAG_OUTPUT)
        if output_file is not None:
            update["output_file"] = output_file
        if args.as_bool(FLAG_APPEND):
            update["append"] = True
        if args.as_bool(FLAG_RUN_CHECKS):
            update["run_checks"] = True
        return self.config.model_copy(update=update)

    def load_config(self, config: CitnamesConfig) -> None:
        self.config = config

    def subcommand(self, args: Arguments) -> Result[CitnamesCommand]:
        self.load_config(self.configure(args))
        return self.build()

    def build(self) -> Result[CitnamesCommand]:
        config = self.config
        if config.input_file.absolute() == config.output_file.absolute():
            return Err(CitnamesError(f"input and output are the same file: {config.output_file}"))
        return Ok(CitnamesCommand(config=config))


__all__ = ["Citnames", "CitnamesCommand"]
