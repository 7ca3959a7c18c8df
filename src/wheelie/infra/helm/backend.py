"""Helm-based implementation of ReleaseBackend.

Reads release state and performs trials and mutations through the helm
CLI, interpreting its JSON output.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from wheelie.core.backend import LoadedChart, ReleaseBackend
from wheelie.core.records import ReleaseRecord
from wheelie.core.spec import ReleaseSpec
from wheelie.errors import (
    BackendOperationError,
    ConfigurationError,
    ReleaseNotFoundError,
)

from .commands import HelmCommands
from .types import CommandResult, parse_release_list


def _failure_details(result: CommandResult) -> str:
    return result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"


class HelmBackend(ReleaseBackend):
    """Release backend driving the helm CLI.

    Release presence is decided from ``helm list`` output rather than from
    helm's error text.
    """

    def __init__(self, commands: HelmCommands) -> None:
        """Initialize the helm backend.

        Args:
            commands: Helm command builder bound to a cluster connection
        """
        self.commands = commands

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _check(result: CommandResult, operation: str) -> CommandResult:
        if not result.success:
            message = f"helm {operation} timed out" if result.timed_out else f"helm {operation} failed"
            raise BackendOperationError(message, details=_failure_details(result))
        return result

    @staticmethod
    def _parse_json(result: CommandResult, operation: str) -> dict[str, Any]:
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise BackendOperationError(
                f"helm {operation} returned invalid JSON", details=str(e)
            ) from e
        if not isinstance(data, dict):
            raise BackendOperationError(
                f"helm {operation} returned unexpected output",
                details=f"expected a JSON object, got {type(data).__name__}",
            )
        return data

    @staticmethod
    @contextmanager
    def _values_file(values: dict[str, Any]) -> Generator[Path]:
        """Write values to a temporary YAML file, removed on exit."""
        try:
            content = yaml.safe_dump(values, default_flow_style=False)
        except yaml.YAMLError as e:
            raise ConfigurationError("values cannot be serialized", details=str(e)) from e

        fd, name = tempfile.mkstemp(suffix=".yaml", prefix="wheelie-values-")
        path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            yield path
        finally:
            path.unlink(missing_ok=True)

    def _upgrade(
        self,
        spec: ReleaseSpec,
        chart: LoadedChart,
        *,
        dry_run: bool,
    ) -> dict[str, Any]:
        operation = "upgrade --dry-run" if dry_run else "upgrade"
        with self._values_file(spec.values) as values_file:
            result = self.commands.upgrade(
                spec.release_name,
                chart.path,
                spec.namespace,
                values_file=values_file,
                disable_hooks=spec.hooks.disable_hooks,
                # The trial only renders; waiting applies to real upgrades
                wait=spec.wait and not dry_run,
                dry_run=dry_run,
                timeout_seconds=spec.timeout_seconds,
            )
        return self._parse_json(self._check(result, operation), operation)

    def _install(self, spec: ReleaseSpec, chart: LoadedChart, *, replace: bool) -> str:
        operation = "install --replace" if replace else "install"
        with self._values_file(spec.values) as values_file:
            result = self.commands.install(
                spec.release_name,
                chart.path,
                spec.namespace,
                values_file=values_file,
                disable_hooks=spec.hooks.disable_hooks,
                skip_crds=spec.hooks.disable_crd_hook,
                wait=spec.wait,
                replace=replace,
                timeout_seconds=spec.timeout_seconds,
            )
        data = self._parse_json(self._check(result, operation), operation)
        return ReleaseRecord.from_json(data).description

    # =========================================================================
    # Release State
    # =========================================================================

    def read_release(self, release_name: str, namespace: str) -> ReleaseRecord:
        """Read a release's status, manifest and hooks.

        Raises:
            ReleaseNotFoundError: If no release with this name is listed
            BackendOperationError: If helm fails or its output is unreadable
        """
        listing = self._check(
            self.commands.list_releases(namespace, release_name=release_name), "list"
        )
        try:
            releases = parse_release_list(listing.stdout)
        except ValueError as e:
            raise BackendOperationError(
                "helm list returned unexpected output", details=str(e)
            ) from e

        if not any(r.name == release_name for r in releases):
            raise ReleaseNotFoundError(release_name)

        status = self._check(self.commands.status(release_name, namespace), "status")
        record = ReleaseRecord.from_json(self._parse_json(status, "status"))
        if not record.namespace:
            record.namespace = namespace
        logger.debug(
            f"Release {release_name} revision {record.revision} is {record.status.value}"
        )
        return record

    # =========================================================================
    # Trial
    # =========================================================================

    def try_upgrade(self, spec: ReleaseSpec, chart: LoadedChart) -> ReleaseRecord:
        data = self._upgrade(spec, chart, dry_run=True)
        record = ReleaseRecord.from_json(data)
        if not record.namespace:
            record.namespace = spec.namespace
        return record

    # =========================================================================
    # Mutations
    # =========================================================================

    def install(self, spec: ReleaseSpec, chart: LoadedChart) -> str:
        return self._install(spec, chart, replace=False)

    def upgrade(
        self,
        spec: ReleaseSpec,
        chart: LoadedChart,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> str:
        """Upgrade a release.

        Helm refuses to upgrade a release whose history has no deployed
        revision, so a forced upgrade of a deleted release reinstalls it
        under the same name with ``install --replace``.

        Raises:
            ValueError: If both ``force`` and ``dry_run`` are set
            BackendOperationError: If helm fails
        """
        if force:
            if dry_run:
                raise ValueError("a forced upgrade cannot be a dry run")
            return self._install(spec, chart, replace=True)
        data = self._upgrade(spec, chart, dry_run=dry_run)
        return ReleaseRecord.from_json(data).description

    def delete(self, spec: ReleaseSpec, *, purge: bool) -> str:
        result = self.commands.uninstall(
            spec.release_name,
            spec.namespace,
            keep_history=not purge,
            disable_hooks=spec.hooks.disable_hooks,
            timeout_seconds=spec.timeout_seconds,
        )
        return self._check(result, "uninstall").stdout.strip()
