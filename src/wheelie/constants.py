"""Reconciliation constants and configuration.

This module centralizes default values, binary names, and environment
lookups used throughout the reconciliation process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class WheelieConstants:
    """Constants for release reconciliation.

    All attributes are class-level and immutable.
    """

    # Input defaults
    DEFAULT_NAMESPACE: str = "default"
    DEFAULT_BACKEND_NAMESPACE: str = "kube-system"
    DEFAULT_TIMEOUT_SECONDS: int = 300
    DEFAULT_CONNECT_TIMEOUT_SECONDS: int = 300

    # Binaries
    HELM_BINARY: str = "helm"
    KUBECTL_BINARY: str = "kubectl"

    # Extra seconds granted to a helm subprocess beyond its own --timeout
    SUBPROCESS_GRACE_SECONDS: int = 30

    # Tunnel
    TUNNEL_BIND_ADDRESS: str = "127.0.0.1"
    TUNNEL_STARTUP_SECONDS: float = 10.0
    TUNNEL_SHUTDOWN_SECONDS: float = 5.0

    # Hook events that never take part in a release diff
    TEST_HOOK_EVENTS: frozenset[str] = frozenset(
        {"test", "test-success", "test-failure"}
    )

    # Number of context lines in the human diff; -1 prints whole documents
    DIFF_CONTEXT_LINES: int = -1


DEFAULT_CONSTANTS = WheelieConstants()


def get_helm_binary() -> str:
    """Get the helm executable from the environment or default."""
    return os.environ.get("WHEELIE_HELM_BIN", DEFAULT_CONSTANTS.HELM_BINARY)


def get_kubectl_binary() -> str:
    """Get the kubectl executable from the environment or default."""
    return os.environ.get("WHEELIE_KUBECTL_BIN", DEFAULT_CONSTANTS.KUBECTL_BINARY)


def get_diff_context() -> int:
    """Get the number of diff context lines from the environment or default."""
    raw = os.environ.get("WHEELIE_DIFF_CONTEXT")
    if raw is None or not raw.strip():
        return DEFAULT_CONSTANTS.DIFF_CONTEXT_LINES
    try:
        return int(raw)
    except ValueError:
        return DEFAULT_CONSTANTS.DIFF_CONTEXT_LINES
