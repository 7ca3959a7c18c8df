"""Data types for helm command results.

This module contains the dataclasses returned by the helm command layer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

__all__ = [
    "CommandResult",
    "HelmReleaseSummary",
    "parse_release_list",
]


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    timed_out: bool = False


@dataclass
class HelmReleaseSummary:
    """A release as listed by ``helm list``.

    Attributes:
        name: Release name
        namespace: Kubernetes namespace
        status: Release status (deployed, failed, uninstalled, ...)
        revision: Release revision number
        chart: Chart name and version
    """

    name: str
    namespace: str
    status: str
    revision: str
    chart: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> HelmReleaseSummary:
        """Create from a ``helm list -o json`` entry."""
        return cls(
            name=str(data.get("name", "")),
            namespace=str(data.get("namespace", "")),
            status=str(data.get("status", "")),
            revision=str(data.get("revision", "")),
            chart=str(data.get("chart", "")),
        )


def parse_release_list(stdout: str) -> list[HelmReleaseSummary]:
    """Parse ``helm list -o json`` output.

    Raises:
        ValueError: If the output is not a JSON list
    """
    if not stdout.strip():
        return []
    data = json.loads(stdout)
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON list, got {type(data).__name__}")
    return [HelmReleaseSummary.from_json(r) for r in data]
