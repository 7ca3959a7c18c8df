"""Kubernetes connection layer.

Example:
    from wheelie.infra.k8s import open_connection

    with open_connection(settings) as connection:
        backend = HelmBackend(HelmCommands(CommandRunner(), connection))
"""

from .connection import ConnectionHandle, open_connection, verify_cluster_access
from .tunnel import api_server_tunnel, build_proxy_command, parse_endpoint

__all__ = [
    "ConnectionHandle",
    "api_server_tunnel",
    "build_proxy_command",
    "open_connection",
    "parse_endpoint",
    "verify_cluster_access",
]
