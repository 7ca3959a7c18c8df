"""One reconciliation invocation, end to end.

Normalizes raw input, validates it, provisions a cluster connection, runs
the reconciler, and folds any failure into the result.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import TextIO

from loguru import logger

from wheelie.errors import WheelieError
from wheelie.infra.helm import CommandRunner, HelmBackend, HelmCommands
from wheelie.infra.k8s import ConnectionHandle, open_connection

from .backend import ReleaseBackend
from .records import ReconciliationResult
from .reconciler import Reconciler
from .spec import ConnectionSettings, ReleaseInput, build_release_spec

Connector = Callable[[ConnectionSettings], AbstractContextManager[ConnectionHandle]]
BackendFactory = Callable[[ConnectionHandle], ReleaseBackend]


def helm_backend_factory(connection: ConnectionHandle) -> ReleaseBackend:
    """Build the helm CLI backend for a connection."""
    return HelmBackend(HelmCommands(CommandRunner(), connection))


def run_reconciliation(
    raw: ReleaseInput,
    *,
    connect: Connector = open_connection,
    backend_factory: BackendFactory = helm_backend_factory,
    diff_output: TextIO | None = None,
) -> ReconciliationResult:
    """Reconcile the release described by raw caller input.

    Input is validated before any connection is opened, so a bad state
    never reaches the cluster.

    Args:
        raw: Caller-supplied fields, any of which may be missing
        connect: Connection provisioner (context manager factory)
        backend_factory: Builds the release backend for a connection
        diff_output: Stream for the human-readable diff

    Returns:
        ReconciliationResult; ``error`` is set if anything failed
    """
    try:
        spec, settings = build_release_spec(raw)
        with connect(settings) as connection:
            reconciler = Reconciler(backend_factory(connection), diff_output=diff_output)
            result = reconciler.reconcile(spec)
    except WheelieError as e:
        logger.error(f"Reconciliation failed: {e}")
        return ReconciliationResult.failure(str(e))

    logger.info(
        f"Reconciliation finished: action={result.action.value} changed={result.changed}"
    )
    return result
