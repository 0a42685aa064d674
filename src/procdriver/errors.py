"""
Exception types raised by procdriver.

The external runtime only reports failures as text, so every error keeps the
raw output it was derived from. Callers pattern-match on these attributes (and
on the message, which always embeds stderr verbatim) rather than on exit codes.
"""

from typing import Optional, Sequence


class DriverError(RuntimeError):
    """Base class for every error raised by the driver and its executors."""


class CommandFailed(DriverError):
    """An external command exited with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        exit_code: int,
        stderr: str = "",
        stdout: str = "",
    ) -> None:
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        self.stdout = stdout
        message = f"Command {self.command!r} failed with exit code {exit_code}"
        if stderr:
            message = f"{message}: {stderr}"
        super().__init__(message)


class BuildOutputUnparseable(DriverError, ValueError):
    """The build command succeeded but printed no recognizable image id."""

    def __init__(self, raw_output: str) -> None:
        self.raw_output = raw_output
        super().__init__(
            "Build finished but no 'Successfully built <id>' line was found in its output."
        )


class InspectOutputUnparseable(DriverError, ValueError):
    """The inspect command produced something other than a non-empty JSON array."""

    def __init__(self, raw_output: str, reason: str) -> None:
        self.raw_output = raw_output
        super().__init__(f"Could not parse inspect output: {reason}")


class BridgeAddressUnavailable(DriverError):
    """The interface query ran but reported no global IPv4 address."""

    def __init__(self, interface: Optional[str] = None, raw_output: str = "") -> None:
        self.interface = interface
        self.raw_output = raw_output
        target = f"'{interface}'" if interface else "the bridge interface"
        super().__init__(f"Unable to determine the IPv4 address of {target}.")
