from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from ccdb.log import LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_package_logger():
    # configure_logging binds a handler to the current stderr and turns
    # propagation off; caplog needs the defaults back
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def write_events():
    def _write(path: Path, executions: list[dict[str, object]]) -> Path:
        lines = [
            json.dumps(
                {
                    "pid": 100 + index,
                    "started": "2024-01-01T00:00:00+00:00",
                    "execution": execution,
                }
            )
            for index, execution in enumerate(executions)
        ]
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def compile_execution():
    def _make(
        *arguments: str,
        executable: str = "/usr/bin/cc",
        working_dir: str = "/src",
    ) -> dict[str, object]:
        return {
            "executable": executable,
            "arguments": [executable, *arguments],
            "working_dir": working_dir,
        }

    return _make
