from __future__ import annotations

import os
from dataclasses import dataclass


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name, "")
    if raw.strip() == "":
        return default
    return raw.strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "")
    if raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if raw == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True)
class DriverSettings:
    runtime_cli: str = "docker"
    ip_cli: str = "/sbin/ip"
    bridge_interface: str = "docker0"
    stop_timeout: int = 1
    # Clear every cached inspection record on start instead of only the started one.
    inspect_cache_coarse_invalidation: bool = False

    @classmethod
    def from_env(cls) -> "DriverSettings":
        return cls(
            runtime_cli=_env_str("PROCDRIVER_RUNTIME_CLI", "docker"),
            ip_cli=_env_str("PROCDRIVER_IP_CLI", "/sbin/ip"),
            bridge_interface=_env_str("PROCDRIVER_BRIDGE_INTERFACE", "docker0"),
            stop_timeout=_env_int("PROCDRIVER_STOP_TIMEOUT", 1),
            inspect_cache_coarse_invalidation=_env_bool(
                "PROCDRIVER_INSPECT_CACHE_COARSE", False
            ),
        )
