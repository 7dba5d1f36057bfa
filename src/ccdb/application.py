from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

from ccdb.citnames import Citnames
from ccdb.command import Command, ComposedCommand
from ccdb.config import CitnamesConfig, Configuration, InterceptConfig, load_configuration
from ccdb.exceptions import InvalidSubcommand
from ccdb.flags import CITNAMES_DEFAULT_OUTPUT, FLAG_OUTPUT, Arguments, events_path_for
from ccdb.intercept import Intercept
from ccdb.log import configure_logging
from ccdb.result import Err, Ok, Result

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1

ConfigLoader = Callable[[Arguments], Result[Configuration]]


@dataclass
class Application:
    load_config: ConfigLoader = load_configuration
    intercept_factory: Callable[[InterceptConfig], Intercept] = Intercept
    citnames_factory: Callable[[CitnamesConfig], Citnames] = Citnames

    def command(self, args: Arguments) -> Result[Command]:
        """Pick the mode the arguments ask for and build its command.

        Stage construction failures stay inside the returned handles; only a
        configuration failure or an unknown subcommand fails here.
        """
        configuration = self.load_config(args)
        if isinstance(configuration, Err):
            return configuration
        return self._select(args, configuration.value)

    def _select(self, args: Arguments, configuration: Configuration) -> Result[Command]:
        citnames = self.citnames_factory(configuration.citnames)
        intercept = self.intercept_factory(configuration.intercept)

        if citnames.matches(args):
            return citnames.subcommand(args)
        if intercept.matches(args):
            return intercept.subcommand(args)
        if args.subcommand is not None:
            return Err(InvalidSubcommand(args.subcommand))

        output = args.as_path(FLAG_OUTPUT) or CITNAMES_DEFAULT_OUTPUT
        events = events_path_for(output)

        intercept.load_config(
            intercept.configure(args).model_copy(update={"output_file": events})
        )
        intercept_cmd = intercept.build()

        citnames.load_config(
            citnames.configure(args).model_copy(
                update={"output_file": output, "input_file": events}
            )
        )
        citnames_cmd = citnames.build()

        return Ok(ComposedCommand(intercept=intercept_cmd, citnames=citnames_cmd, output=events))

    def run(self, args: Arguments) -> int:
        configure_logging(args.verbosity())
        logger.debug("arguments: %s %s", args.subcommand, dict(args.values))
        result = self.command(args).and_then(lambda cmd: cmd.execute())
        if isinstance(result, Err):
            logger.error("%s", result.error)
            return EXIT_FAILURE
        return int(result.value)
