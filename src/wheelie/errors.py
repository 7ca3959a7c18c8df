"""Error taxonomy for release reconciliation.

Every failure that aborts an invocation derives from ``WheelieError`` and
carries a short ``message`` plus optional ``details`` for display.
``ReleaseNotFoundError`` is the exception: it is a normal branch value raised
by the release reader and caught by the reconciler.
"""

from __future__ import annotations


class WheelieError(Exception):
    """Raised when a reconciliation cannot complete."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(WheelieError):
    """Invalid caller input, detected before any backend interaction."""


class ConnectivityError(WheelieError):
    """Cluster credentials invalid, API unreachable, or tunnel setup failed."""


class BackendOperationError(WheelieError):
    """A helm install/upgrade/delete/trial/read call failed."""


class ChartLoadError(WheelieError):
    """The chart could not be loaded from its source."""


class DiffError(WheelieError):
    """Manifest content is malformed and cannot be compared."""


class ReleaseNotFoundError(Exception):
    """The named release has no record in the backend."""

    def __init__(self, release_name: str):
        self.release_name = release_name
        super().__init__(f"release: {release_name!r} not found")
