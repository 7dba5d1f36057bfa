from __future__ import annotations

from ccdb.config import InterceptConfig
from ccdb.exceptions import InterceptError
from ccdb.flags import (
    FLAG_COMMAND,
    FLAG_FORCE_PRELOAD,
    FLAG_FORCE_WRAPPER,
    FLAG_LIBRARY,
    FLAG_OUTPUT,
    FLAG_WRAPPER,
    FLAG_WRAPPER_DIR,
    INTERCEPT_SUBCOMMAND,
    Arguments,
)
from ccdb.intercept.command import InterceptCommand
from ccdb.intercept.session import select_session
from ccdb.result import Err, Result, capture


class Intercept:
    """Factory for the interception stage."""

    def __init__(self, config: InterceptConfig) -> None:
        self.config = config

    def matches(self, args: Arguments) -> bool:
        return args.subcommand == INTERCEPT_SUBCOMMAND

    def configure(self, args: Arguments) -> InterceptConfig:
        """Stage configuration with the flags given on the command line applied."""
        update: dict[str, object] = {}
        for flag in (FLAG_OUTPUT, FLAG_LIBRARY, FLAG_WRAPPER, FLAG_WRAPPER_DIR):
            path = args.as_path(flag)
            if path is not None:
                update["output_file" if flag == FLAG_OUTPUT else flag] = path
        for flag in (FLAG_FORCE_PRELOAD, FLAG_FORCE_WRAPPER):
            if args.as_bool(flag):
                update[flag] = True
        command = args.as_list(FLAG_COMMAND)
        if command:
            update["command"] = tuple(command)
        return self.config.model_copy(update=update)

    def load_config(self, config: InterceptConfig) -> None:
        self.config = config

    def subcommand(self, args: Arguments) -> Result[InterceptCommand]:
        self.load_config(self.configure(args))
        return self.build()

    def build(self) -> Result[InterceptCommand]:
        config = self.config
        if not config.command:
            return Err(InterceptError("missing command to execute"))
        return capture(lambda: select_session(config), InterceptError).map(
            lambda session: InterceptCommand(
                command=tuple(config.command),
                output=config.output_file,
                session=session,
            )
        )


__all__ = ["Intercept", "InterceptCommand"]
