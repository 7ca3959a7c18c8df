"""Reconciliation core: desired state, observed state, and the backend contract.

The decision procedure lives in ``wheelie.core.reconciler`` and the
per-invocation entry point in ``wheelie.core.service``.

Example:
    from wheelie.core import ReleaseInput
    from wheelie.core.service import run_reconciliation

    result = run_reconciliation(ReleaseInput(release="web", chart="./charts/web"))
    print(result.changed, result.message)
"""

from .backend import LoadedChart, ReleaseBackend
from .records import (
    Action,
    ReconciliationResult,
    ReleaseHook,
    ReleaseRecord,
    ReleaseStatus,
)
from .spec import (
    ConnectionSettings,
    HookPolicy,
    LifecycleGoal,
    PackageSource,
    ReleaseInput,
    ReleaseSpec,
    build_release_spec,
    normalize_input,
)

__all__ = [
    "Action",
    "ConnectionSettings",
    "HookPolicy",
    "LifecycleGoal",
    "LoadedChart",
    "PackageSource",
    "ReconciliationResult",
    "ReleaseBackend",
    "ReleaseHook",
    "ReleaseInput",
    "ReleaseRecord",
    "ReleaseSpec",
    "ReleaseStatus",
    "build_release_spec",
    "normalize_input",
]
