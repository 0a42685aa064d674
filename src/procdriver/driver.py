"""
procdriver Driver Module

The `Driver` translates container operations into runtime CLI invocations.
Every operation follows the same shape: assemble an argument vector, hand it
to the owned `Executor`, and parse what comes back with `procdriver.parsing`.

The driver is synchronous. Each call blocks until the external process exits;
the only concurrency surface is the optional ``on_output_line`` callback,
which runs on the caller's thread while output arrives.
"""

import logging
from typing import Any, Dict, List, Optional

from procdriver.cache import InspectionCache
from procdriver.errors import CommandFailed
from procdriver.executors import Executor, LocalExecutor, OutputCallback
from procdriver.models import ContainerSpec, ContainerState
from procdriver.parsing import (
    RemoveImageFailure,
    classify_remove_image_failure,
    output_contains_line,
    parse_bridge_address,
    parse_build_image_id,
    parse_inspect_record,
    split_ids,
)
from procdriver.settings import DriverSettings

logger = logging.getLogger(__name__)


class Driver:
    """
    Issues commands to a pre-existing container runtime and interprets the results.

    Attributes
    ----------
    settings : DriverSettings
        Runtime binary, interface names and timeouts.
    cache : InspectionCache
        Inspection records keyed by container id.
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        settings: Optional[DriverSettings] = None,
        cache: Optional[InspectionCache] = None,
    ) -> None:
        self._executor = executor if executor is not None else LocalExecutor()
        self.settings = settings if settings is not None else DriverSettings.from_env()
        self.cache = cache if cache is not None else InspectionCache()

    @property
    def executor(self) -> Executor:
        return self._executor

    @executor.setter
    def executor(self, executor: Executor) -> None:
        if not isinstance(executor, Executor):
            raise TypeError(f"Expected an Executor, got {type(executor).__name__}")
        self._executor = executor

    def _cli(self, *args: str) -> List[str]:
        return [self.settings.runtime_cli, *args]

    def execute(
        self, *command: str, on_output_line: Optional[OutputCallback] = None
    ) -> str:
        """Run ``command`` through the executor and return its stdout."""
        return self._executor.execute(list(command), on_output_line).stdout

    # --- Images ---

    def build(
        self,
        build_context_dir: str,
        on_output_line: Optional[OutputCallback] = None,
        *,
        tag: Optional[str] = None,
        dockerfile: Optional[str] = None,
        build_args: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Build an image from ``build_context_dir`` and return its id.

        Raises
        ------
        CommandFailed
            If the build command exits non-zero.
        BuildOutputUnparseable
            If the build succeeded but its output names no image id.
        """
        cmd = self._cli("build")
        if tag:
            cmd += ["-t", tag]
        if dockerfile:
            cmd += ["-f", str(dockerfile)]
        for key, value in (build_args or {}).items():
            cmd += ["--build-arg", f"{key}={value}"]
        cmd.append(str(build_context_dir))

        output = self.execute(*cmd, on_output_line=on_output_line)
        image_id = parse_build_image_id(output)
        logger.debug("[driver.build] built image %s", image_id)
        return image_id

    def image_exists(self, image_id: str) -> bool:
        return output_contains_line(self.execute(*self._cli("images", "-q")), image_id)

    def remove_image(self, image_id: str) -> bool:
        """
        Remove an image.

        Returns
        -------
        bool
            True if the image is gone afterwards (removed now or already
            missing), False if a container still uses it.

        Raises
        ------
        CommandFailed
            For any failure other than "in use" or "no such image".
        """
        try:
            self.execute(*self._cli("rmi", image_id))
        except CommandFailed as e:
            outcome = classify_remove_image_failure(e.stderr or str(e))
            if outcome is RemoveImageFailure.BUSY:
                logger.info("[driver.rmi] image %s is still in use", image_id)
                return False
            if outcome is RemoveImageFailure.NOT_FOUND:
                logger.info("[driver.rmi] image %s was already removed", image_id)
                return True
            raise
        return True

    # --- Containers ---

    def run_arguments(self, spec: ContainerSpec) -> List[str]:
        """Return the full ``run`` argument vector for ``spec``."""
        cmd = self._cli("run", "--name", spec.name)
        if spec.detach:
            cmd.append("-d")
        for key, value in spec.environment.items():
            cmd += ["-e", f"{key}={value}"]
        for port in spec.exposed_ports:
            cmd += ["--expose", str(port)]
        for alias, target in spec.links.items():
            cmd += ["--link", f"{alias}:{target}"]
        for port in spec.ports:
            cmd += ["-p", str(port)]
        for volume in spec.volumes:
            cmd += ["-v", str(volume)]
        if spec.privileged:
            cmd.append("--privileged")
        if spec.hostname:
            cmd += ["-h", spec.hostname]
        cmd += list(spec.extra_args)
        cmd.append(spec.image)
        cmd += list(spec.command)
        return cmd

    def create(
        self, spec: ContainerSpec, on_output_line: Optional[OutputCallback] = None
    ) -> str:
        """
        Create and start a container, returning what the runtime printed
        (the container id when ``spec.detach`` is set).

        ``on_output_line`` receives the runtime's output while it is produced,
        which lets provisioning UIs show progress such as image pulls.
        """
        output = self.execute(*self.run_arguments(spec), on_output_line=on_output_line)
        container_id = output.rstrip("\r\n")
        logger.debug("[driver.create] created %s as %s", spec.name, container_id)
        return container_id

    def list_containers(self) -> List[str]:
        return split_ids(self.execute(*self._cli("ps", "-a", "-q", "--no-trunc")))

    def exists(self, container_id: str) -> bool:
        output = self.execute(*self._cli("ps", "-a", "-q", "--no-trunc"))
        return output_contains_line(output, container_id)

    def is_running(self, container_id: str) -> bool:
        output = self.execute(*self._cli("ps", "-q", "--no-trunc"))
        return output_contains_line(output, container_id)

    def state(self, container_id: str) -> ContainerState:
        # Running implies existing, so the running check has to come first.
        if self.is_running(container_id):
            return ContainerState.RUNNING
        if self.exists(container_id):
            return ContainerState.STOPPED
        return ContainerState.NOT_CREATED

    def start(self, container_id: str) -> None:
        if self.is_running(container_id):
            return
        self.execute(*self._cli("start", container_id))
        # Configuration can change across restarts (e.g. a reload).
        if self.settings.inspect_cache_coarse_invalidation:
            self.cache.clear()
        else:
            self.cache.invalidate(container_id)

    def stop(self, container_id: str) -> None:
        if not self.is_running(container_id):
            return
        timeout = str(self.settings.stop_timeout)
        self.execute(*self._cli("stop", "-t", timeout, container_id))

    def remove(self, container_id: str) -> None:
        if not self.exists(container_id):
            return
        self.execute(*self._cli("rm", "-v", container_id))
        self.cache.invalidate(container_id)

    # --- Inspection ---

    def _load_inspection(self, container_id: str) -> Dict[str, Any]:
        return parse_inspect_record(self.execute(*self._cli("inspect", container_id)))

    def inspect(self, container_id: str) -> Dict[str, Any]:
        """Return the (cached) inspection document for ``container_id``."""
        return self.cache.get_or_load(container_id, self._load_inspection)

    def is_privileged(self, container_id: str) -> bool:
        return bool(self.inspect(container_id)["HostConfig"]["Privileged"])

    def bridge_network_address(self) -> str:
        """
        Return the host's IPv4 address on the runtime's bridge interface.

        This queries the host, not a container, and is never cached.

        Raises
        ------
        BridgeAddressUnavailable
            If the interface reports no global IPv4 address.
        """
        interface = self.settings.bridge_interface
        output = self.execute(
            self.settings.ip_cli, "-4", "addr", "show", "scope", "global", interface
        )
        return parse_bridge_address(output, interface)
