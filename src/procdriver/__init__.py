"""
procdriver: drive an external container runtime CLI through pluggable executors.

This package exposes the `Driver`, the executors it runs commands with, the
value types it accepts and returns, and the errors it raises.
"""

# Models
from procdriver.models import ContainerSpec, ContainerState, ExecutionResult

# Core
from procdriver.cache import InspectionCache
from procdriver.driver import Driver
from procdriver.executors import Executor, LocalExecutor, SSHExecutor
from procdriver.settings import DriverSettings

# Parsing
from procdriver.parsing import RemoveImageFailure, classify_remove_image_failure

# Errors
from procdriver.errors import (
    BridgeAddressUnavailable,
    BuildOutputUnparseable,
    CommandFailed,
    DriverError,
    InspectOutputUnparseable,
)

__all__ = [
    # Core objects
    "Driver",
    "DriverSettings",
    "InspectionCache",
    # Executors
    "Executor",
    "LocalExecutor",
    "SSHExecutor",
    # Value types
    "ContainerSpec",
    "ContainerState",
    "ExecutionResult",
    "RemoveImageFailure",
    "classify_remove_image_failure",
    # Errors
    "DriverError",
    "CommandFailed",
    "BuildOutputUnparseable",
    "InspectOutputUnparseable",
    "BridgeAddressUnavailable",
]
