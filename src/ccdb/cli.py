from __future__ import annotations

from pathlib import Path
import sys
from typing import List, Mapping, Optional, Sequence

import typer

from ccdb import __version__
from ccdb.application import Application
from ccdb.flags import (
    CITNAMES_SUBCOMMAND,
    FLAG_APPEND,
    FLAG_COMMAND,
    FLAG_CONFIG,
    FLAG_FORCE_PRELOAD,
    FLAG_FORCE_WRAPPER,
    FLAG_INPUT,
    FLAG_LIBRARY,
    FLAG_OUTPUT,
    FLAG_RUN_CHECKS,
    FLAG_VERBOSE,
    FLAG_WRAPPER,
    FLAG_WRAPPER_DIR,
    INTERCEPT_SUBCOMMAND,
    SUBCOMMANDS,
    Arguments,
)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    help=(
        "Generate a compilation database for clang tooling.\n\n"
        "Run a build under interception and translate the recorded compiler "
        "calls: ccdb [OPTIONS] -- BUILD COMMAND"
    ),
)

COMBINED_COMMAND = "build"
_ADVANCED_PANEL = "Advanced options"
_DEVELOPER_PANEL = "Developer options"
_ROOT_TOKENS = frozenset({"-h", "--help", "--version"})


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ccdb {__version__}")
        raise typer.Exit()


@app.callback()
def root(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the version and exit.",
    ),
) -> None:
    """Generate a compilation database for clang tooling."""


def _context_application(ctx: typer.Context) -> Application:
    obj = ctx.obj
    if isinstance(obj, Mapping):
        candidate = obj.get("application")
        if isinstance(candidate, Application):
            return candidate
    return Application()


def _flag(value: bool) -> bool | None:
    return True if value else None


def _text(value: Path | None) -> str | None:
    return str(value) if value is not None else None


def _run(ctx: typer.Context, args: Arguments) -> None:
    raise typer.Exit(code=_context_application(ctx).run(args))


@app.command(INTERCEPT_SUBCOMMAND)
def intercept(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Path of the result file.  [default: events.json]"
    ),
    force_preload: bool = typer.Option(
        False, "--force-preload", help="Force to use library preload."
    ),
    force_wrapper: bool = typer.Option(
        False, "--force-wrapper", help="Force to use compiler wrappers."
    ),
    library: Optional[Path] = typer.Option(
        None, "--library", help="Path to the preload library.", rich_help_panel=_DEVELOPER_PANEL
    ),
    wrapper: Optional[Path] = typer.Option(
        None, "--wrapper", help="Path to the wrapper executable.", rich_help_panel=_DEVELOPER_PANEL
    ),
    wrapper_dir: Optional[Path] = typer.Option(
        None, "--wrapper-dir", help="Path to the wrapper directory.", rich_help_panel=_DEVELOPER_PANEL
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Run in verbose mode."),
    command: Optional[List[str]] = typer.Argument(None, help="Command to execute."),
) -> None:
    """Run a build and record the compiler calls it makes."""
    _run(
        ctx,
        Arguments(
            subcommand=INTERCEPT_SUBCOMMAND,
            values={
                FLAG_OUTPUT: _text(output),
                FLAG_FORCE_PRELOAD: _flag(force_preload),
                FLAG_FORCE_WRAPPER: _flag(force_wrapper),
                FLAG_LIBRARY: _text(library),
                FLAG_WRAPPER: _text(wrapper),
                FLAG_WRAPPER_DIR: _text(wrapper_dir),
                FLAG_VERBOSE: verbose,
                FLAG_COMMAND: list(command or []),
            },
        ),
    )


@app.command(CITNAMES_SUBCOMMAND)
def citnames(
    ctx: typer.Context,
    input_file: Optional[Path] = typer.Option(
        None, "--input", "-i", help="Path of the input file.  [default: events.json]"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path of the result file.  [default: compile_commands.json]",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path of the config file."),
    append: bool = typer.Option(
        False, "--append", help="Append to output, instead of overwrite it."
    ),
    run_checks: bool = typer.Option(
        False, "--run-checks", help="Can run checks on the current host."
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Run in verbose mode."),
) -> None:
    """Translate recorded compiler calls into a compilation database."""
    _run(
        ctx,
        Arguments(
            subcommand=CITNAMES_SUBCOMMAND,
            values={
                FLAG_INPUT: _text(input_file),
                FLAG_OUTPUT: _text(output),
                FLAG_CONFIG: _text(config),
                FLAG_APPEND: _flag(append),
                FLAG_RUN_CHECKS: _flag(run_checks),
                FLAG_VERBOSE: verbose,
            },
        ),
    )


@app.command(COMBINED_COMMAND, hidden=True)
def build(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path of the result file.  [default: compile_commands.json]",
    ),
    append: bool = typer.Option(
        False,
        "--append",
        help="Append result to an existing output file.",
        rich_help_panel=_ADVANCED_PANEL,
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", help="Path of the config file.", rich_help_panel=_ADVANCED_PANEL
    ),
    force_preload: bool = typer.Option(
        False,
        "--force-preload",
        help="Force to use library preload.",
        rich_help_panel=_ADVANCED_PANEL,
    ),
    force_wrapper: bool = typer.Option(
        False,
        "--force-wrapper",
        help="Force to use compiler wrappers.",
        rich_help_panel=_ADVANCED_PANEL,
    ),
    library: Optional[Path] = typer.Option(
        None, "--library", help="Path to the preload library.", rich_help_panel=_DEVELOPER_PANEL
    ),
    wrapper: Optional[Path] = typer.Option(
        None, "--wrapper", help="Path to the wrapper executable.", rich_help_panel=_DEVELOPER_PANEL
    ),
    wrapper_dir: Optional[Path] = typer.Option(
        None, "--wrapper-dir", help="Path to the wrapper directory.", rich_help_panel=_DEVELOPER_PANEL
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Run in verbose mode."),
    command: Optional[List[str]] = typer.Argument(None, help="Command to execute."),
) -> None:
    """Run a build and write its compilation database."""
    _run(
        ctx,
        Arguments(
            subcommand=None,
            values={
                FLAG_OUTPUT: _text(output),
                FLAG_APPEND: _flag(append),
                FLAG_CONFIG: _text(config),
                FLAG_FORCE_PRELOAD: _flag(force_preload),
                FLAG_FORCE_WRAPPER: _flag(force_wrapper),
                FLAG_LIBRARY: _text(library),
                FLAG_WRAPPER: _text(wrapper),
                FLAG_WRAPPER_DIR: _text(wrapper_dir),
                FLAG_VERBOSE: verbose,
                FLAG_COMMAND: list(command or []),
            },
        ),
    )


def route_arguments(argv: Sequence[str]) -> list[str]:
    """Send the option-first combined form to the combined command.

    A leading bare word stays where it is, so click either dispatches a
    subcommand or rejects it as unknown.
    """
    args = list(argv)
    if not args:
        return args
    first = args[0]
    if first in SUBCOMMANDS or first in _ROOT_TOKENS or first == COMBINED_COMMAND:
        return args
    if first != "--" and not first.startswith("-"):
        return args
    return [COMBINED_COMMAND, *args]


def main(argv: Sequence[str] | None = None) -> None:
    app(args=route_arguments(sys.argv[1:] if argv is None else argv), prog_name="ccdb")


if __name__ == "__main__":
    main()
