from __future__ import annotations

import json
from pathlib import Path

import pytest

from ccdb.application import EXIT_FAILURE, Application
from ccdb.citnames import Citnames, CitnamesCommand
from ccdb.command import ComposedCommand
from ccdb.config import CitnamesConfig, Configuration, InterceptConfig
from ccdb.exceptions import ConfigurationError, InterceptError, InvalidSubcommand
from ccdb.flags import Arguments
from ccdb.intercept import Intercept, InterceptCommand
from ccdb.intercept.session import PreloadSession
from ccdb.result import Err, Ok


def _spy(base, name: str, calls: list[str]):
    class _Spy(base):
        def build(self):
            calls.append(name)
            return super().build()

    return _Spy


@pytest.fixture
def preload_library(tmp_path: Path) -> Path:
    library = tmp_path / "libexec.so"
    library.write_bytes(b"\x7fELF")
    return library


def _application(configuration: Configuration, calls: list[str]) -> Application:
    return Application(
        load_config=lambda _args: Ok(configuration),
        intercept_factory=_spy(Intercept, "intercept", calls),
        citnames_factory=_spy(Citnames, "citnames", calls),
    )


def test_citnames_arguments_never_build_interception(tmp_path: Path) -> None:
    calls: list[str] = []
    args = Arguments(
        subcommand="citnames",
        values={"input": str(tmp_path / "in.json"), "output": str(tmp_path / "out.json")},
    )

    result = _application(Configuration(), calls).command(args)

    assert isinstance(result, Ok)
    assert isinstance(result.value, CitnamesCommand)
    assert result.value.config.input_file == tmp_path / "in.json"
    assert result.value.config.output_file == tmp_path / "out.json"
    assert calls == ["citnames"]


def test_intercept_arguments_build_only_interception(preload_library: Path) -> None:
    calls: list[str] = []
    configuration = Configuration(intercept=InterceptConfig(library=preload_library))
    args = Arguments(
        subcommand="intercept",
        values={"output": "trace.json", "command": ["make", "-j4"]},
    )

    result = _application(configuration, calls).command(args)

    assert isinstance(result, Ok)
    command = result.value
    assert isinstance(command, InterceptCommand)
    assert command.output == Path("trace.json")
    assert command.command == ("make", "-j4")
    assert isinstance(command.session, PreloadSession)
    assert calls == ["intercept"]


def test_unknown_subcommand_is_rejected() -> None:
    calls: list[str] = []
    result = _application(Configuration(), calls).command(
        Arguments(subcommand="frobnicate", values={"command": ["make"]})
    )
    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidSubcommand)
    assert "Invalid subcommand" in str(result.error)
    assert calls == []


def test_trailing_command_selects_combined_mode_with_default_output(
    preload_library: Path,
) -> None:
    calls: list[str] = []
    configuration = Configuration(intercept=InterceptConfig(library=preload_library))

    result = _application(configuration, calls).command(
        Arguments(values={"command": ["make"]})
    )

    assert isinstance(result, Ok)
    composed = result.value
    assert isinstance(composed, ComposedCommand)
    events = Path("compile_commands.events.json")
    assert composed.output == events
    assert isinstance(composed.intercept, Ok)
    assert composed.intercept.value.output == events
    assert isinstance(composed.citnames, Ok)
    assert composed.citnames.value.config.input_file == events
    assert composed.citnames.value.config.output_file == Path("compile_commands.json")
    assert calls == ["intercept", "citnames"]


def test_combined_mode_derives_events_path_from_output(preload_library: Path) -> None:
    configuration = Configuration(intercept=InterceptConfig(library=preload_library))
    result = _application(configuration, []).command(
        Arguments(values={"output": "build/compile_commands.json", "command": ["ninja"]})
    )

    composed = result.unwrap()
    assert composed.output == Path("build/compile_commands.events.json")
    assert composed.citnames.unwrap().config.output_file == Path("build/compile_commands.json")
    assert composed.intercept.unwrap().output == Path("build/compile_commands.events.json")


def test_combined_mode_keeps_config_file_values(preload_library: Path) -> None:
    configuration = Configuration(
        intercept=InterceptConfig(library=preload_library),
        citnames=CitnamesConfig(append=True, run_checks=True),
    )
    composed = _application(configuration, []).command(
        Arguments(values={"command": ["make"]})
    ).unwrap()
    citnames_config = composed.citnames.unwrap().config
    assert citnames_config.append is True
    assert citnames_config.run_checks is True


def test_combined_mode_retains_construction_failure(tmp_path: Path) -> None:
    calls: list[str] = []
    configuration = Configuration(
        intercept=InterceptConfig(library=tmp_path / "missing.so", force_preload=True)
    )

    result = _application(configuration, calls).command(
        Arguments(values={"command": ["make"]})
    )

    composed = result.unwrap()
    assert isinstance(composed.intercept, Err)
    assert isinstance(composed.intercept.error, InterceptError)
    assert calls == ["intercept", "citnames"]
    executed = composed.execute()
    assert isinstance(executed, Err)
    assert executed.error is composed.intercept.error


def test_configuration_failure_short_circuits() -> None:
    calls: list[str] = []
    failure = ConfigurationError("invalid config file")
    application = Application(
        load_config=lambda _args: Err(failure),
        intercept_factory=_spy(Intercept, "intercept", calls),
        citnames_factory=_spy(Citnames, "citnames", calls),
    )

    result = application.command(Arguments(values={"command": ["make"]}))

    assert isinstance(result, Err)
    assert result.error is failure
    assert calls == []


def test_run_maps_results_to_exit_codes(tmp_path: Path, write_events, compile_execution) -> None:
    events = write_events(tmp_path / "events.json", [compile_execution("-c", "main.c")])
    output = tmp_path / "compile_commands.json"
    application = Application(load_config=lambda _args: Ok(Configuration()))

    code = application.run(
        Arguments(subcommand="citnames", values={"input": str(events), "output": str(output)})
    )

    assert code == 0
    entries = json.loads(output.read_text(encoding="utf-8"))
    assert [entry["file"] for entry in entries] == ["/src/main.c"]
    assert application.run(Arguments(subcommand="frobnicate")) == EXIT_FAILURE
