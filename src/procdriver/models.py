import shlex
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator


class ContainerState(str, Enum):
    """Lifecycle state of a container as seen through the runtime's listings."""

    RUNNING = "running"
    STOPPED = "stopped"
    NOT_CREATED = "not_created"


@dataclass
class ExecutionResult:
    """Captured outcome of one external command."""

    command: List[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""


class ContainerSpec(BaseModel):
    """
    Everything needed to create (``run``) a container.

    The model is frozen and its collections are immutable: sequences are
    stored as tuples and mappings as read-only views, so a spec cannot change
    after it has been handed to ``Driver.create``. Mapping fields keep
    insertion order, which is the order their flags are emitted in.
    """

    model_config = ConfigDict(frozen=True, validate_default=True)

    image: str
    name: str
    links: Mapping[str, str] = {}
    ports: Tuple[str, ...] = ()
    volumes: Tuple[str, ...] = ()
    command: Tuple[str, ...] = ()
    environment: Mapping[str, str] = {}
    exposed_ports: Tuple[int, ...] = ()

    privileged: bool = False
    detach: bool = False
    hostname: Optional[str] = None
    extra_args: Tuple[str, ...] = ()

    @field_validator("command", mode="before")
    @classmethod
    def _split_command(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            return shlex.split(value)
        return value

    @field_validator("links", "environment", mode="after")
    @classmethod
    def _read_only_mapping(cls, value):
        return MappingProxyType(dict(value))
