"""Cluster connection provisioning.

Verifies that the configured credentials reach the Kubernetes API and the
release-management backend namespace, then optionally opens a local API
tunnel. The resulting ``ConnectionHandle`` is passed explicitly to the helm
layer and discarded when the invocation ends.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass

import kr8s
from kr8s.objects import Namespace
from loguru import logger
from rich.console import Console

from wheelie.core.spec import ConnectionSettings
from wheelie.errors import ConnectivityError

from .tunnel import api_server_tunnel


@dataclass(frozen=True)
class ConnectionHandle:
    """A provisioned cluster connection.

    Attributes:
        kubeconfig: Kubeconfig file, or None for the default lookup
        kube_context: Kubeconfig context, or None for the current one
        backend_namespace: Namespace of the release-management backend
        connect_timeout_seconds: Deadline for read-only backend queries
        endpoint: Local tunnel endpoint, or None when talking to the API directly
    """

    kubeconfig: str | None
    kube_context: str | None
    backend_namespace: str
    connect_timeout_seconds: int
    endpoint: str | None = None

    @classmethod
    def from_settings(
        cls, settings: ConnectionSettings, endpoint: str | None = None
    ) -> ConnectionHandle:
        return cls(
            kubeconfig=settings.kubeconfig,
            kube_context=settings.kube_context,
            backend_namespace=settings.backend_namespace,
            connect_timeout_seconds=settings.connect_timeout_seconds,
            endpoint=endpoint,
        )


def _status_code(error: kr8s.ServerError) -> int | None:
    return getattr(error.response, "status_code", None)


def verify_cluster_access(settings: ConnectionSettings) -> None:
    """Check that the cluster API answers and the backend namespace exists.

    Reachability is proven with the version endpoint, which any
    authenticated user may read. Credentials that cannot read namespaces
    skip the backend namespace check with a warning.

    Raises:
        ConnectivityError: If the kubeconfig is unusable, the API is
            unreachable, or the backend namespace does not exist
    """
    namespace = settings.backend_namespace
    context = settings.kube_context or "current context"
    try:
        api = kr8s.api(kubeconfig=settings.kubeconfig, context=settings.kube_context)
        api.timeout = settings.connect_timeout_seconds
        api.version()
    except Exception as e:
        raise ConnectivityError(
            f"Could not reach Kubernetes API for {context}", details=str(e)
        ) from e

    try:
        Namespace.get(namespace, api=api)
    except kr8s.NotFoundError as e:
        raise ConnectivityError(
            f"Backend namespace {namespace!r} not found", details=str(e)
        ) from e
    except kr8s.ServerError as e:
        if _status_code(e) != 403:
            raise ConnectivityError(
                f"Could not read backend namespace {namespace!r}", details=str(e)
            ) from e
        logger.warning(
            f"Not allowed to read namespace {namespace!r} in {context}; "
            "skipping the backend namespace check"
        )
        return
    except Exception as e:
        raise ConnectivityError(
            f"Could not reach Kubernetes API for {context}", details=str(e)
        ) from e
    logger.debug(f"Cluster reachable; backend namespace {namespace!r} exists")


@contextmanager
def open_connection(
    settings: ConnectionSettings,
    console: Console | None = None,
) -> Generator[ConnectionHandle]:
    """Provision a connection for one reconciliation.

    Args:
        settings: Connection inputs
        console: Rich console for output

    Yields:
        ConnectionHandle, valid until the context exits

    Raises:
        ConnectivityError: If the cluster cannot be reached or the tunnel fails
    """
    verify_cluster_access(settings)

    if not settings.tunnel:
        yield ConnectionHandle.from_settings(settings)
        return

    with api_server_tunnel(
        kubeconfig=settings.kubeconfig,
        kube_context=settings.kube_context,
        console=console,
    ) as endpoint:
        yield ConnectionHandle.from_settings(settings, endpoint=endpoint)
