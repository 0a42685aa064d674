import os
from typing import Dict, List, Sequence, Tuple

import pytest

from procdriver.driver import Driver
from procdriver.errors import CommandFailed
from procdriver.executors import Executor
from procdriver.models import ExecutionResult
from procdriver.settings import DriverSettings


class ScriptedExecutor(Executor):
    """
    In-memory executor that replays canned responses.

    Commands without a scripted response succeed with empty output. Every
    argument vector is recorded in ``calls`` so tests can assert on exact argv.
    """

    def __init__(self) -> None:
        self.responses: Dict[Tuple[str, ...], Tuple[int, str, str]] = {}
        self.calls: List[List[str]] = []

    def respond(
        self,
        command: Sequence[str],
        stdout: str = "",
        *,
        exit_code: int = 0,
        stderr: str = "",
    ) -> None:
        self.responses[tuple(command)] = (exit_code, stdout, stderr)

    def commands_starting_with(self, *prefix: str) -> List[List[str]]:
        return [call for call in self.calls if tuple(call[: len(prefix)]) == prefix]

    def execute(
        self,
        command: Sequence[str],
        on_output_line=None,
    ) -> ExecutionResult:
        argv = list(command)
        self.calls.append(argv)
        exit_code, stdout, stderr = self.responses.get(tuple(argv), (0, "", ""))
        if on_output_line is not None:
            for line in stdout.splitlines():
                on_output_line(line)
        if exit_code != 0:
            raise CommandFailed(argv, exit_code, stderr, stdout)
        return ExecutionResult(
            command=argv, exit_code=exit_code, stdout=stdout, stderr=stderr
        )


# --- Core Fixtures ---


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """
    Removes PROCDRIVER_* variables so settings always start from defaults.
    """
    for name in list(os.environ):
        if name.startswith("PROCDRIVER_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> DriverSettings:
    return DriverSettings()


@pytest.fixture
def executor() -> ScriptedExecutor:
    return ScriptedExecutor()


@pytest.fixture
def make_executor():
    return ScriptedExecutor


@pytest.fixture
def driver(executor: ScriptedExecutor, settings: DriverSettings) -> Driver:
    """A Driver wired to the scripted executor with default settings."""
    return Driver(executor=executor, settings=settings)


@pytest.fixture
def inspect_json() -> str:
    return (
        '[{"Id": "abc123", "Name": "/web", "Image": "sha256:img",'
        ' "State": {"Status": "running"}, "HostConfig": {"Privileged": true}}]'
    )


def ids(*values: str, trailing_newline: bool = True) -> str:
    """Render ids the way ``ps -q`` / ``images -q`` print them."""
    text = "\n".join(values)
    return text + "\n" if trailing_newline and values else text


@pytest.fixture
def listing():
    return ids
