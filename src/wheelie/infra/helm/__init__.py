"""Helm CLI backend for release reconciliation.

This package drives the helm binary:

- runner: subprocess execution with deadlines
- commands: helm command lines (list, status, install, upgrade, uninstall)
- backend: ``ReleaseBackend`` implementation over those commands
- chart: local chart loading and validation

Usage:
    from wheelie.infra.helm import CommandRunner, HelmBackend, HelmCommands

    backend = HelmBackend(HelmCommands(CommandRunner(), connection))
    record = backend.read_release("web", "default")
"""

from .backend import HelmBackend
from .chart import load_chart
from .commands import HelmCommands
from .runner import CommandRunner
from .types import CommandResult, HelmReleaseSummary, parse_release_list

__all__ = [
    "CommandResult",
    "CommandRunner",
    "HelmBackend",
    "HelmCommands",
    "HelmReleaseSummary",
    "load_chart",
    "parse_release_list",
]
