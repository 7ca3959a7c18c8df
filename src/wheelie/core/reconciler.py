"""Release reconciliation.

The reconciler compares the desired ``ReleaseSpec`` with the release's
current record and performs at most one mutating backend call:

- present, release not found: install
- present, release deleted: forced upgrade
- present, release exists: trial upgrade, diff against the current
  rendering, and upgrade only if resources would change
- absent/purged, release not found: nothing
- absent, release deleted: nothing
- otherwise: delete (purging history for ``purged``)

Failures propagate as ``WheelieError`` subclasses; nothing is retried.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TextIO

from loguru import logger

from wheelie.errors import ConfigurationError, ReleaseNotFoundError
from wheelie.infra.helm.chart import load_chart
from wheelie.infra.manifest import (
    MappingResult,
    diff_manifests,
    parse_manifest,
    parse_release,
)

from .backend import LoadedChart, ReleaseBackend
from .records import Action, ReconciliationResult, ReleaseRecord
from .spec import LifecycleGoal, PackageSource, ReleaseSpec

ChartLoader = Callable[[PackageSource], LoadedChart]
ManifestDiffer = Callable[..., bool]


class Reconciler:
    """Converges one release to its desired lifecycle state."""

    def __init__(
        self,
        backend: ReleaseBackend,
        *,
        chart_loader: ChartLoader = load_chart,
        differ: ManifestDiffer = diff_manifests,
        diff_output: TextIO | None = None,
        suppressed_kinds: Iterable[str] = (),
    ) -> None:
        """Initialize the reconciler.

        Args:
            backend: Release backend bound to a provisioned connection
            chart_loader: Loads the chart named by the spec
            differ: Compares two parsed renderings; True means they differ
            diff_output: Stream for the human-readable diff (stderr if None)
            suppressed_kinds: Resource kinds whose diff content is hidden
        """
        self.backend = backend
        self.chart_loader = chart_loader
        self.differ = differ
        self.diff_output = diff_output
        self.suppressed_kinds = tuple(suppressed_kinds)

    def reconcile(self, spec: ReleaseSpec) -> ReconciliationResult:
        """Converge the release described by ``spec``.

        Raises:
            ConfigurationError: If the spec carries an unknown goal
            WheelieError: If loading, reading, diffing or mutating fails
        """
        logger.info(
            f"Reconciling release {spec.release_name!r} in {spec.namespace!r} "
            f"to {spec.goal.value!r}"
        )
        if spec.goal is LifecycleGoal.PRESENT:
            return self.ensure_present(spec)
        if spec.goal is LifecycleGoal.ABSENT:
            return self.ensure_absent(spec, purge=False)
        if spec.goal is LifecycleGoal.PURGED:
            return self.ensure_absent(spec, purge=True)
        raise ConfigurationError(f"unsupported goal {spec.goal!r}")

    def _read(self, spec: ReleaseSpec) -> ReleaseRecord:
        try:
            return self.backend.read_release(spec.release_name, spec.namespace)
        except ReleaseNotFoundError:
            return ReleaseRecord.not_found(spec.release_name)

    # =========================================================================
    # Present
    # =========================================================================

    def ensure_present(self, spec: ReleaseSpec) -> ReconciliationResult:
        """Install, force-upgrade, or conditionally upgrade the release."""
        chart = self.chart_loader(spec.package)
        current = self._read(spec)

        if not current.found:
            logger.info(f"Release {spec.release_name!r} not found, installing")
            description = self.backend.install(spec, chart)
            return ReconciliationResult.mutated(Action.INSTALL, description)

        if current.status.is_deleted:
            # A plain upgrade is refused over a deleted release
            logger.info(f"Release {spec.release_name!r} is deleted, forcing upgrade")
            description = self.backend.upgrade(spec, chart, force=True)
            return ReconciliationResult.mutated(Action.FORCE_UPGRADE, description)

        return self._conditional_upgrade(spec, chart, current)

    def _conditional_upgrade(
        self,
        spec: ReleaseSpec,
        chart: LoadedChart,
        current: ReleaseRecord,
    ) -> ReconciliationResult:
        proposed = self.backend.try_upgrade(spec, chart)

        has_changes = self.differ(
            self._index(current, spec),
            self._index(proposed, spec),
            suppressed_kinds=self.suppressed_kinds,
            output=self.diff_output,
        )
        if not has_changes:
            logger.info(f"Release {spec.release_name!r} is up to date")
            return ReconciliationResult.unchanged()

        logger.info(f"Release {spec.release_name!r} has drifted, upgrading")
        description = self.backend.upgrade(spec, chart)
        return ReconciliationResult.mutated(Action.UPGRADE, description)

    @staticmethod
    def _index(record: ReleaseRecord, spec: ReleaseSpec) -> Mapping[str, MappingResult]:
        """Parse a record for comparison, including hooks unless they are disabled."""
        if spec.hooks.disable_hooks:
            return parse_manifest(
                record.manifest,
                record.namespace or spec.namespace,
                source=f"release {record.name or spec.release_name}",
            )
        return parse_release(record, spec.namespace)

    # =========================================================================
    # Absent / Purged
    # =========================================================================

    def ensure_absent(self, spec: ReleaseSpec, *, purge: bool) -> ReconciliationResult:
        """Delete the release unless it is already gone."""
        current = self._read(spec)

        if not current.found:
            logger.info(f"Release {spec.release_name!r} not found, nothing to delete")
            return ReconciliationResult.unchanged()

        if current.status.is_deleted and not purge:
            logger.info(f"Release {spec.release_name!r} is already deleted")
            return ReconciliationResult.unchanged()

        logger.info(
            f"{'Purging' if purge else 'Deleting'} release {spec.release_name!r}"
        )
        self.backend.delete(spec, purge=purge)
        return ReconciliationResult.mutated(
            Action.DELETE, f"release {spec.release_name} deleted"
        )
