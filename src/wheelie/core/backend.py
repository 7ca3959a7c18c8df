"""Abstract release backend interface.

Defines the contract the reconciler needs from a release-management
backend: reading release state, running a non-committing trial, and the
mutating install/upgrade/delete operations. Implemented by
``wheelie.infra.helm.HelmBackend``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from .records import ReleaseRecord
from .spec import ReleaseSpec


@dataclass(frozen=True)
class LoadedChart:
    """A chart that was loaded and validated from its source.

    Attributes:
        path: Chart directory or archive on disk
        name: Chart name from Chart.yaml
        version: Chart version from Chart.yaml
    """

    path: Path
    name: str
    version: str


class ReleaseBackend(ABC):
    """Abstract base class for release-management operations.

    Mutating methods return the backend's description of what it did and
    raise ``BackendOperationError`` on failure.
    """

    # =========================================================================
    # Release State
    # =========================================================================

    @abstractmethod
    def read_release(self, release_name: str, namespace: str) -> ReleaseRecord:
        """Read the current state of a release.

        Args:
            release_name: Name of the release
            namespace: Namespace the release is tracked in

        Returns:
            ReleaseRecord with status and rendered manifest

        Raises:
            ReleaseNotFoundError: If the release has no record
            BackendOperationError: If the backend query fails
        """
        ...

    # =========================================================================
    # Trial
    # =========================================================================

    @abstractmethod
    def try_upgrade(self, spec: ReleaseSpec, chart: LoadedChart) -> ReleaseRecord:
        """Render an upgrade without committing it.

        Must not mutate backend state.

        Returns:
            ReleaseRecord describing the release the upgrade would produce
        """
        ...

    # =========================================================================
    # Mutations
    # =========================================================================

    @abstractmethod
    def install(self, spec: ReleaseSpec, chart: LoadedChart) -> str:
        """Install a new release."""
        ...

    @abstractmethod
    def upgrade(
        self,
        spec: ReleaseSpec,
        chart: LoadedChart,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> str:
        """Upgrade an existing release; ``force`` also revives a deleted one."""
        ...

    @abstractmethod
    def delete(self, spec: ReleaseSpec, *, purge: bool) -> str:
        """Delete a release, purging its history when ``purge`` is set."""
        ...
