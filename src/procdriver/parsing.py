"""
Stateless parsers that turn raw runtime output into typed values.

The runtime offers no structured error codes and only partially structured
output, so everything here is pattern matching on text. Each pattern lives in
exactly one function so it can be swapped if the runtime's wording changes.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from typing import Any, Dict, List

from procdriver.errors import (
    BridgeAddressUnavailable,
    BuildOutputUnparseable,
    InspectOutputUnparseable,
)

logger = logging.getLogger(__name__)

BUILD_SUCCESS_PATTERN = re.compile(
    r"Successfully built (.+)$", re.IGNORECASE | re.MULTILINE
)
BRIDGE_ADDRESS_PATTERN = re.compile(r"^\s+inet ([0-9.]+)/[0-9]+\s+", re.MULTILINE)

IMAGE_BUSY_MARKER = "is using it"
IMAGE_MISSING_MARKER = "No such image"


class RemoveImageFailure(str, Enum):
    """How a failed image removal should be treated."""

    BUSY = "busy"  # still referenced by a container
    NOT_FOUND = "not_found"  # already gone
    OTHER = "other"


def parse_build_image_id(output: str) -> str:
    """
    Extract the image id from ``build`` output.

    Raises
    ------
    BuildOutputUnparseable
        If no ``Successfully built <id>`` line is present.
    """
    match = BUILD_SUCCESS_PATTERN.search(output or "")
    if not match:
        logger.warning("[parsing.build] no success marker in build output")
        raise BuildOutputUnparseable(output or "")
    return match.group(1).strip()


def output_contains_line(output: str, value: str) -> bool:
    """True if ``value`` appears as a complete line of ``output``."""
    if not value:
        return False
    pattern = re.compile(rf"^{re.escape(value)}$", re.MULTILINE)
    return pattern.search((output or "").replace("\r\n", "\n")) is not None


def split_ids(output: str) -> List[str]:
    """Split a ``-q`` style listing into its ids, dropping blank lines."""
    return [line.strip() for line in (output or "").splitlines() if line.strip()]


def parse_inspect_record(output: str) -> Dict[str, Any]:
    """
    Return the first document of ``inspect`` output.

    The runtime prints a JSON array with one document per inspected object.

    Raises
    ------
    InspectOutputUnparseable
        If the output is not JSON, not an array, or the array is empty.
    """
    try:
        documents = json.loads(output)
    except (TypeError, ValueError) as e:
        raise InspectOutputUnparseable(output or "", f"invalid JSON ({e})") from e
    if not isinstance(documents, list):
        raise InspectOutputUnparseable(output, "expected a JSON array")
    if not documents:
        raise InspectOutputUnparseable(output, "empty JSON array")
    record = documents[0]
    if not isinstance(record, dict):
        raise InspectOutputUnparseable(output, "first element is not an object")
    return record


def parse_bridge_address(output: str, interface: str | None = None) -> str:
    """
    Extract the IPv4 address from ``ip -4 addr show`` output.

    Raises
    ------
    BridgeAddressUnavailable
        If no ``inet <ip>/<prefix>`` line is present.
    """
    match = BRIDGE_ADDRESS_PATTERN.search(output or "")
    if not match:
        raise BridgeAddressUnavailable(interface, output or "")
    return match.group(1)


def classify_remove_image_failure(stderr: str) -> RemoveImageFailure:
    text = stderr or ""
    if IMAGE_BUSY_MARKER in text:
        return RemoveImageFailure.BUSY
    if IMAGE_MISSING_MARKER in text:
        return RemoveImageFailure.NOT_FOUND
    return RemoveImageFailure.OTHER
