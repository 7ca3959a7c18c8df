"""Observed release state and reconciliation results.

This module contains the dataclasses passed between the release backend
and the reconciler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ReleaseStatus(str, Enum):
    """Lifecycle status of a release as reported by Helm."""

    UNKNOWN = "unknown"
    DEPLOYED = "deployed"
    UNINSTALLED = "uninstalled"
    SUPERSEDED = "superseded"
    FAILED = "failed"
    UNINSTALLING = "uninstalling"
    PENDING_INSTALL = "pending-install"
    PENDING_UPGRADE = "pending-upgrade"
    PENDING_ROLLBACK = "pending-rollback"

    @classmethod
    def parse(cls, value: str | None) -> ReleaseStatus:
        """Parse a status string, mapping unrecognized values to UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        normalized = value.strip().lower()
        # Helm 2 reported deleted releases as "DELETED"
        if normalized == "deleted":
            return cls.UNINSTALLED
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_deleted(self) -> bool:
        """Whether the release was deleted but its history kept."""
        return self is ReleaseStatus.UNINSTALLED


@dataclass
class ReleaseHook:
    """A hook resource rendered for a release.

    Attributes:
        name: Hook resource name
        kind: Kubernetes kind of the hook resource
        path: Template path inside the chart
        manifest: Rendered YAML of the hook
        events: Events the hook fires on (pre-install, test, ...)
    """

    name: str
    kind: str
    path: str
    manifest: str
    events: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ReleaseHook:
        return cls(
            name=str(data.get("name", "")),
            kind=str(data.get("kind", "")),
            path=str(data.get("path", "")),
            manifest=str(data.get("manifest", "")),
            events=[str(e) for e in data.get("events") or []],
        )


@dataclass
class ReleaseRecord:
    """State of a named release as known to the backend.

    Attributes:
        name: Release name
        found: Whether a release with this name exists in backend history
        status: Lifecycle status
        manifest: Last-rendered resources as multi-document YAML
        namespace: Namespace the release's resources live in
        hooks: Rendered hook resources
        description: Backend description of the last operation
        revision: Release revision number
    """

    name: str
    found: bool = True
    status: ReleaseStatus = ReleaseStatus.UNKNOWN
    manifest: str = ""
    namespace: str = ""
    hooks: list[ReleaseHook] = field(default_factory=list)
    description: str = ""
    revision: int = 0

    @classmethod
    def not_found(cls, name: str) -> ReleaseRecord:
        """Record for a release that does not exist."""
        return cls(name=name, found=False)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ReleaseRecord:
        """Create a record from a ``helm status -o json`` release document."""
        info = data.get("info") or {}
        return cls(
            name=str(data.get("name", "")),
            found=True,
            status=ReleaseStatus.parse(info.get("status")),
            manifest=str(data.get("manifest") or ""),
            namespace=str(data.get("namespace") or ""),
            hooks=[ReleaseHook.from_json(h) for h in data.get("hooks") or []],
            description=str(info.get("description") or ""),
            revision=int(data.get("version") or 0),
        )


class Action(str, Enum):
    """Action class selected by a reconciliation."""

    NONE = "none"
    INSTALL = "install"
    FORCE_UPGRADE = "force-upgrade"
    UPGRADE = "upgrade"
    NO_OP = "no-op"
    DELETE = "delete"


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of one reconciliation.

    Attributes:
        message: What was done; empty when nothing was
        changed: True only when a mutating call ran and succeeded
        error: Failure text; set only when the reconciliation did not complete
        action: Selected action class
    """

    message: str = ""
    changed: bool = False
    error: str | None = None
    action: Action = Action.NONE

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def unchanged(cls) -> ReconciliationResult:
        return cls(action=Action.NO_OP)

    @classmethod
    def mutated(cls, action: Action, message: str) -> ReconciliationResult:
        return cls(message=message, changed=True, action=action)

    @classmethod
    def failure(cls, error: str) -> ReconciliationResult:
        return cls(error=error)
