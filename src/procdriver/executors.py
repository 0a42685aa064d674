"""
procdriver Executors Module

Executors are the only place where procdriver touches the operating system.
A `Driver` owns exactly one executor and hands it fully assembled argument
vectors; the executor runs them and returns what the process printed.

Key features include:
-   **Abstract Interface (`Executor`)**: `execute(command, on_output_line)`
    returning an `ExecutionResult`, raising `CommandFailed` on non-zero exit.
-   **Local execution (`LocalExecutor`)**: spawns a child process on this host,
    streaming stdout line by line to an optional callback.
-   **Delegated execution (`SSHExecutor`)**: runs the same argument vector on
    another host over ssh, quoting each argument so the remote shell never
    reinterprets it.

Arguments are always passed as a literal argv. Nothing here ever builds a
shell string from untrusted pieces without quoting them.
"""

import abc
import logging
import os
import shlex
import subprocess
import threading
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from procdriver.errors import CommandFailed
from procdriver.models import ExecutionResult

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], None]

# Exit status reported when the executable itself cannot be found, matching POSIX shells.
COMMAND_NOT_FOUND_EXIT_CODE = 127


class Executor(abc.ABC):
    @abc.abstractmethod
    def execute(
        self,
        command: Sequence[str],
        on_output_line: Optional[OutputCallback] = None,
    ) -> ExecutionResult:
        """
        Run ``command`` to completion and return its captured output.

        Parameters
        ----------
        command : Sequence[str]
            Program followed by its arguments. Each element reaches the program
            as exactly one argument.
        on_output_line : Optional[Callable[[str], None]], optional
            Called synchronously with every stdout line (without its line
            terminator) as soon as the process writes it. The full output is
            still returned once the process exits.

        Returns
        -------
        ExecutionResult
            Exit code, stdout and stderr of a successful (exit code 0) run.

        Raises
        ------
        CommandFailed
            If the process exits with a non-zero status. The error message
            contains stderr verbatim.
        """
        pass


class LocalExecutor(Executor):
    """
    Runs commands as child processes of the current interpreter.

    stdout is read line by line on the calling thread so progress can be
    streamed; stderr is drained on a helper thread so a chatty process can never
    block on a full pipe.

    Attributes
    ----------
    env : Optional[Dict[str, str]]
        Extra environment variables layered over ``os.environ`` for every command.
    cwd : Optional[str]
        Working directory for every command. Defaults to the current one.
    """

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> None:
        self.env: Optional[Dict[str, str]] = dict(env) if env else None
        self.cwd = cwd

    def _process_env(self) -> Optional[Dict[str, str]]:
        if not self.env:
            return None
        process_env = os.environ.copy()
        process_env.update(self.env)
        return process_env

    def execute(
        self,
        command: Sequence[str],
        on_output_line: Optional[OutputCallback] = None,
    ) -> ExecutionResult:
        argv = [str(arg) for arg in command]
        if not argv:
            raise ValueError("Cannot execute an empty command.")

        logger.debug("[executor.local] running %s", argv)
        try:
            process = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=self._process_env(),
                cwd=self.cwd,
            )
        except FileNotFoundError as e:
            logger.debug("[executor.local] executable not found: %s", argv[0])
            raise CommandFailed(argv, COMMAND_NOT_FOUND_EXIT_CODE, str(e)) from e

        stderr_chunks: List[str] = []
        stderr_reader = threading.Thread(
            target=lambda: stderr_chunks.append(process.stderr.read()),
            daemon=True,
        )
        stderr_reader.start()

        stdout_lines: List[str] = []
        try:
            for line in process.stdout:
                stdout_lines.append(line)
                if on_output_line is not None:
                    on_output_line(line.rstrip("\r\n"))
        finally:
            process.stdout.close()
            exit_code = process.wait()
            stderr_reader.join()
            process.stderr.close()

        stdout = "".join(stdout_lines)
        stderr = "".join(stderr_chunks)

        if exit_code != 0:
            logger.debug("[executor.local] %s exited with %d", argv[0], exit_code)
            raise CommandFailed(argv, exit_code, stderr, stdout)
        return ExecutionResult(
            command=argv, exit_code=exit_code, stdout=stdout, stderr=stderr
        )


class SSHExecutor(Executor):
    """
    Runs commands on another host through the ``ssh`` client.

    ssh joins its trailing arguments into one string that the remote login
    shell parses, so every argument is ``shlex.quote``d first. A volume spec
    such as ``/data;rm -rf /`` therefore arrives on the remote side as a single
    literal argument.

    Attributes
    ----------
    host : str
        Destination in any form ``ssh`` accepts (``user@host``, an alias...).
    ssh_command : List[str]
        The ssh client invocation, e.g. ``["ssh"]`` or ``["ssh", "-F", "cfg"]``.
    options : List[str]
        Additional ``-o`` style options placed before the host.
    transport : Executor
        Executor used to run the ssh client itself; a `LocalExecutor` by default.
    """

    def __init__(
        self,
        host: str,
        ssh_command: Sequence[str] = ("ssh",),
        options: Sequence[str] = (),
        transport: Optional[Executor] = None,
    ) -> None:
        if not host:
            raise ValueError("SSHExecutor requires a host.")
        self.host = host
        self.ssh_command = list(ssh_command)
        self.options = list(options)
        self.transport = transport or LocalExecutor()

    def wrap(self, command: Sequence[str]) -> List[str]:
        """Return the local argv that runs ``command`` on the remote host."""
        remote = " ".join(shlex.quote(str(arg)) for arg in command)
        return [*self.ssh_command, *self.options, self.host, "--", remote]

    def execute(
        self,
        command: Sequence[str],
        on_output_line: Optional[OutputCallback] = None,
    ) -> ExecutionResult:
        argv = [str(arg) for arg in command]
        if not argv:
            raise ValueError("Cannot execute an empty command.")
        logger.debug("[executor.ssh] running %s on %s", argv, self.host)
        try:
            result = self.transport.execute(self.wrap(argv), on_output_line)
        except CommandFailed as e:
            # Report the command the caller asked for, not the ssh wrapper.
            raise CommandFailed(argv, e.exit_code, e.stderr, e.stdout) from e
        return ExecutionResult(
            command=argv,
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
        )
