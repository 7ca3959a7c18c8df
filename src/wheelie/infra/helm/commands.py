"""Helm command abstractions.

This module builds the helm command lines used for release management:
listing, status queries, install, upgrade (including dry-run trials), and
uninstall. Every method returns the raw ``CommandResult``; interpreting
output is left to ``HelmBackend``.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from wheelie.constants import DEFAULT_CONSTANTS, get_helm_binary

from .types import CommandResult

if TYPE_CHECKING:
    from wheelie.infra.k8s.connection import ConnectionHandle

    from .runner import CommandRunner


class HelmCommands:
    """Helm-related shell commands.

    Provides operations for:
    - Status queries (list releases, release status)
    - Release management (install, upgrade, uninstall)
    """

    def __init__(
        self,
        runner: CommandRunner,
        connection: ConnectionHandle | None = None,
        *,
        helm_binary: str | None = None,
    ) -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
            connection: Cluster connection whose flags are added to every call
            helm_binary: Helm executable (defaults to ``WHEELIE_HELM_BIN`` or helm)
        """
        self._runner = runner
        self._connection = connection
        self._helm = helm_binary or get_helm_binary()

    @property
    def connect_timeout(self) -> float | None:
        if self._connection is None:
            return None
        return float(self._connection.connect_timeout_seconds)

    def _command(self, *args: str) -> list[str]:
        cmd = [self._helm, *args]
        conn = self._connection
        if conn is not None:
            if conn.kube_context:
                cmd.extend(["--kube-context", conn.kube_context])
            if conn.kubeconfig:
                cmd.extend(["--kubeconfig", conn.kubeconfig])
            if conn.endpoint:
                cmd.extend(["--kube-apiserver", conn.endpoint])
        return cmd

    @staticmethod
    def _deadline(timeout_seconds: int) -> float:
        return float(timeout_seconds + DEFAULT_CONSTANTS.SUBPROCESS_GRACE_SECONDS)

    # =========================================================================
    # Status Queries
    # =========================================================================

    def list_releases(
        self,
        namespace: str,
        *,
        release_name: str | None = None,
    ) -> CommandResult:
        """List releases in every state, optionally filtered to one name.

        Args:
            namespace: Kubernetes namespace to query
            release_name: Exact release name to match

        Returns:
            CommandResult whose stdout is a JSON list
        """
        args = ["list", "-n", namespace, "--all", "-o", "json"]
        if release_name:
            args.extend(["--filter", f"^{re.escape(release_name)}$"])
        return self._runner.run(self._command(*args), timeout=self.connect_timeout)

    def status(self, release_name: str, namespace: str) -> CommandResult:
        """Get the full release document, including manifest and hooks."""
        return self._runner.run(
            self._command("status", release_name, "-n", namespace, "-o", "json"),
            timeout=self.connect_timeout,
        )

    # =========================================================================
    # Release Management
    # =========================================================================

    def install(
        self,
        release_name: str,
        chart_path: Path,
        namespace: str,
        *,
        values_file: Path | None = None,
        disable_hooks: bool = False,
        skip_crds: bool = False,
        wait: bool = False,
        replace: bool = False,
        timeout_seconds: int = DEFAULT_CONSTANTS.DEFAULT_TIMEOUT_SECONDS,
    ) -> CommandResult:
        """Install a new release, or reuse the name of a deleted one.

        Args:
            release_name: Name for the release
            chart_path: Chart directory or archive
            namespace: Namespace to install into
            values_file: Values override file
            disable_hooks: Skip lifecycle hooks
            skip_crds: Do not install CRDs bundled with the chart
            wait: Wait until resources are ready
            replace: Reuse the name of a release uninstalled with history kept
            timeout_seconds: Helm operation timeout

        Returns:
            CommandResult whose stdout is the JSON release document
        """
        args = [
            "install",
            release_name,
            str(chart_path),
            "-n",
            namespace,
            "-o",
            "json",
            "--timeout",
            f"{timeout_seconds}s",
        ]
        if values_file is not None:
            args.extend(["-f", str(values_file)])
        if disable_hooks:
            args.append("--no-hooks")
        if skip_crds:
            args.append("--skip-crds")
        if replace:
            args.append("--replace")
        if wait:
            args.append("--wait")
        return self._runner.run(
            self._command(*args), timeout=self._deadline(timeout_seconds)
        )

    def upgrade(
        self,
        release_name: str,
        chart_path: Path,
        namespace: str,
        *,
        values_file: Path | None = None,
        disable_hooks: bool = False,
        wait: bool = False,
        dry_run: bool = False,
        timeout_seconds: int = DEFAULT_CONSTANTS.DEFAULT_TIMEOUT_SECONDS,
    ) -> CommandResult:
        """Upgrade a release, or render the upgrade when ``dry_run`` is set.

        Args:
            release_name: Name of the release
            chart_path: Chart directory or archive
            namespace: Namespace of the release
            values_file: Values override file
            disable_hooks: Skip lifecycle hooks
            wait: Wait until resources are ready
            dry_run: Render without committing
            timeout_seconds: Helm operation timeout

        Returns:
            CommandResult whose stdout is the JSON release document
        """
        args = [
            "upgrade",
            release_name,
            str(chart_path),
            "-n",
            namespace,
            "-o",
            "json",
            "--timeout",
            f"{timeout_seconds}s",
        ]
        if values_file is not None:
            args.extend(["-f", str(values_file)])
        if disable_hooks:
            args.append("--no-hooks")
        if dry_run:
            args.append("--dry-run")
        if wait:
            args.append("--wait")
        return self._runner.run(
            self._command(*args), timeout=self._deadline(timeout_seconds)
        )

    def uninstall(
        self,
        release_name: str,
        namespace: str,
        *,
        keep_history: bool = False,
        disable_hooks: bool = False,
        timeout_seconds: int = DEFAULT_CONSTANTS.DEFAULT_TIMEOUT_SECONDS,
    ) -> CommandResult:
        """Uninstall a release.

        Args:
            release_name: Name of the release to uninstall
            namespace: Kubernetes namespace
            keep_history: Keep the release record (status ``uninstalled``)
            disable_hooks: Skip deletion hooks
            timeout_seconds: Helm operation timeout

        Returns:
            CommandResult with uninstall status
        """
        args = [
            "uninstall",
            release_name,
            "-n",
            namespace,
            "--timeout",
            f"{timeout_seconds}s",
        ]
        if keep_history:
            args.append("--keep-history")
        if disable_hooks:
            args.append("--no-hooks")
        return self._runner.run(
            self._command(*args), timeout=self._deadline(timeout_seconds)
        )
