"""Error types carried in ``Err`` results."""

from __future__ import annotations


class CcdbError(RuntimeError):
    """Base class for every failure ccdb reports to the user."""


class ConfigurationError(CcdbError):
    """The configuration file could not be read or did not validate."""


class InvalidSubcommand(CcdbError):
    def __init__(self, name: str | None = None) -> None:
        message = "Invalid subcommand"
        if name:
            message = f"{message}: {name}"
        super().__init__(message)
        self.name = name


class InterceptError(CcdbError):
    """The interception stage could not be built or could not run the build."""


class CitnamesError(CcdbError):
    """The translation stage could not be built or could not read its input."""
