"""Desired-state models and input normalization.

Raw caller input arrives as a ``ReleaseInput`` in which every field may be
missing. ``normalize_input`` fills in defaults and cannot fail.
``build_release_spec`` validates the normalized input and splits it into two
values: the immutable ``ReleaseSpec`` describing the release, and the
``ConnectionSettings`` used to reach the cluster.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from wheelie.constants import DEFAULT_CONSTANTS
from wheelie.errors import ConfigurationError


class LifecycleGoal(str, Enum):
    """Desired lifecycle state of a release.

    - PRESENT: installed and matching the chart and values
    - ABSENT: deleted, history kept
    - PURGED: deleted together with its history
    """

    PRESENT = "present"
    ABSENT = "absent"
    PURGED = "purged"


class ReleaseInput(BaseModel):
    """Raw reconciliation input as supplied by a caller.

    Field names follow the module input document. ``tiller_namespace`` is
    accepted as an alias of ``backend_namespace``.
    """

    model_config = ConfigDict(extra="ignore")

    release: str | None = None
    chart: str | None = None
    chart_version: str | None = None
    values: dict[str, Any] | None = None
    no_hooks: bool | None = False
    no_crd_hook: bool | None = False
    timeout: int | None = None
    namespace: str | None = None
    state: str | None = None
    wait: bool | None = False
    backend_namespace: str | None = Field(
        default=None,
        validation_alias=AliasChoices("backend_namespace", "tiller_namespace"),
    )
    kubeconfig: str | None = None
    kube_context: str | None = None
    connect_timeout: int | None = None
    tunnel: bool | None = True


def normalize_input(raw: ReleaseInput) -> ReleaseInput:
    """Apply defaults to raw input.

    Each default is applied independently; normalizing an already
    normalized input returns an equal value.
    """
    updates: dict[str, Any] = {}
    if not raw.state:
        updates["state"] = LifecycleGoal.PRESENT.value
    if not raw.namespace:
        updates["namespace"] = DEFAULT_CONSTANTS.DEFAULT_NAMESPACE
    if not raw.timeout:
        updates["timeout"] = DEFAULT_CONSTANTS.DEFAULT_TIMEOUT_SECONDS
    if raw.values is None:
        updates["values"] = {}
    if not raw.backend_namespace:
        updates["backend_namespace"] = DEFAULT_CONSTANTS.DEFAULT_BACKEND_NAMESPACE
    if not raw.connect_timeout:
        updates["connect_timeout"] = DEFAULT_CONSTANTS.DEFAULT_CONNECT_TIMEOUT_SECONDS
    # An explicit null switch means the switch was not given
    for switch in ("no_hooks", "no_crd_hook", "wait"):
        if getattr(raw, switch) is None:
            updates[switch] = False
    if raw.tunnel is None:
        updates["tunnel"] = True
    if not updates:
        return raw
    return raw.model_copy(update=updates)


class HookPolicy(BaseModel):
    """Lifecycle hook switches."""

    model_config = ConfigDict(frozen=True)

    disable_hooks: bool = False
    disable_crd_hook: bool = False


class PackageSource(BaseModel):
    """Location of the chart to deploy."""

    model_config = ConfigDict(frozen=True)

    path: str
    version: str | None = None


class ReleaseSpec(BaseModel):
    """Desired state of one release for one reconciliation call."""

    model_config = ConfigDict(frozen=True)

    release_name: str
    package: PackageSource
    values: dict[str, Any] = Field(default_factory=dict)
    namespace: str = DEFAULT_CONSTANTS.DEFAULT_NAMESPACE
    goal: LifecycleGoal = LifecycleGoal.PRESENT
    hooks: HookPolicy = Field(default_factory=HookPolicy)
    timeout_seconds: int = DEFAULT_CONSTANTS.DEFAULT_TIMEOUT_SECONDS
    wait: bool = False

    @classmethod
    def from_input(cls, raw: ReleaseInput) -> ReleaseSpec:
        """Build a spec from normalized input.

        Raises:
            ConfigurationError: If the state is not a known goal, or the
                release name or chart (when required) is missing
        """
        goal = parse_goal(raw.state)

        if not raw.release:
            raise ConfigurationError("release name is required")
        # Deleting a release does not need its chart
        if goal is LifecycleGoal.PRESENT and not raw.chart:
            raise ConfigurationError("chart is required when state is 'present'")

        return cls(
            release_name=raw.release,
            package=PackageSource(path=raw.chart or "", version=raw.chart_version or None),
            values=dict(raw.values or {}),
            namespace=raw.namespace or DEFAULT_CONSTANTS.DEFAULT_NAMESPACE,
            goal=goal,
            hooks=HookPolicy(
                disable_hooks=bool(raw.no_hooks),
                disable_crd_hook=bool(raw.no_crd_hook),
            ),
            timeout_seconds=raw.timeout or DEFAULT_CONSTANTS.DEFAULT_TIMEOUT_SECONDS,
            wait=bool(raw.wait),
        )


class ConnectionSettings(BaseModel):
    """How to reach the cluster and its release-management backend."""

    model_config = ConfigDict(frozen=True)

    kubeconfig: str | None = None
    kube_context: str | None = None
    backend_namespace: str = DEFAULT_CONSTANTS.DEFAULT_BACKEND_NAMESPACE
    connect_timeout_seconds: int = DEFAULT_CONSTANTS.DEFAULT_CONNECT_TIMEOUT_SECONDS
    tunnel: bool = True

    @classmethod
    def from_input(cls, raw: ReleaseInput) -> ConnectionSettings:
        return cls(
            kubeconfig=raw.kubeconfig or None,
            kube_context=raw.kube_context or None,
            backend_namespace=raw.backend_namespace
            or DEFAULT_CONSTANTS.DEFAULT_BACKEND_NAMESPACE,
            connect_timeout_seconds=raw.connect_timeout
            or DEFAULT_CONSTANTS.DEFAULT_CONNECT_TIMEOUT_SECONDS,
            tunnel=raw.tunnel is not False,
        )


def parse_goal(state: str | None) -> LifecycleGoal:
    """Convert a state string into a ``LifecycleGoal``.

    Raises:
        ConfigurationError: If the state is not one of the recognized goals
    """
    try:
        return LifecycleGoal(state)
    except ValueError:
        allowed = ", ".join(f"'{goal.value}'" for goal in LifecycleGoal)
        raise ConfigurationError(
            f"state must be one of {allowed}", details=f"got {state!r}"
        ) from None


def build_release_spec(raw: ReleaseInput) -> tuple[ReleaseSpec, ConnectionSettings]:
    """Normalize and validate raw input.

    Returns:
        The release spec and the connection settings

    Raises:
        ConfigurationError: If the input is invalid
    """
    normalized = normalize_input(raw)
    return ReleaseSpec.from_input(normalized), ConnectionSettings.from_input(normalized)
