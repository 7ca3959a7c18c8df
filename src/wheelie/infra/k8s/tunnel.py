"""Kubernetes API tunnel context manager.

Runs ``kubectl proxy`` on an ephemeral local port so that helm reaches the
cluster through a local endpoint scoped to one invocation.
"""

from __future__ import annotations

import re
import selectors
import subprocess
import time
from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from rich.console import Console

from wheelie.constants import DEFAULT_CONSTANTS, get_kubectl_binary
from wheelie.errors import ConnectivityError

_SERVING_PATTERN = re.compile(r"Starting to serve on (?P<host>[^\s:]+):(?P<port>\d+)")


def build_proxy_command(
    *,
    kubeconfig: str | None = None,
    kube_context: str | None = None,
    bind_address: str = DEFAULT_CONSTANTS.TUNNEL_BIND_ADDRESS,
    kubectl_binary: str | None = None,
) -> list[str]:
    """Build the ``kubectl proxy`` command line for an ephemeral port."""
    cmd = [
        kubectl_binary or get_kubectl_binary(),
        "proxy",
        "--port=0",
        f"--address={bind_address}",
    ]
    if kubeconfig:
        cmd.append(f"--kubeconfig={kubeconfig}")
    if kube_context:
        cmd.append(f"--context={kube_context}")
    return cmd


def parse_endpoint(line: str) -> str | None:
    """Extract the local endpoint from a ``kubectl proxy`` banner line."""
    match = _SERVING_PATTERN.search(line)
    if match is None:
        return None
    return f"http://{match.group('host')}:{match.group('port')}"


def _wait_for_endpoint(process: subprocess.Popen[str], startup_timeout: float) -> str:
    """Read proxy output until it reports its listening address."""
    assert process.stdout is not None
    deadline = time.monotonic() + startup_timeout

    with selectors.DefaultSelector() as selector:
        selector.register(process.stdout, selectors.EVENT_READ)
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ConnectivityError(
                    "API tunnel did not start",
                    details=f"no listening address after {startup_timeout}s",
                )
            if not selector.select(timeout=remaining):
                continue
            line = process.stdout.readline()
            if not line:
                # EOF: the proxy exited
                process.wait()
                stderr = process.stderr.read() if process.stderr else ""
                raise ConnectivityError(
                    "API tunnel failed to start",
                    details=stderr.strip() or f"exit code {process.returncode}",
                )
            endpoint = parse_endpoint(line)
            if endpoint:
                return endpoint


def _stop(process: subprocess.Popen[str], shutdown_timeout: float) -> None:
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=shutdown_timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


@contextmanager
def api_server_tunnel(
    *,
    kubeconfig: str | None = None,
    kube_context: str | None = None,
    console: Console | None = None,
    bind_address: str = DEFAULT_CONSTANTS.TUNNEL_BIND_ADDRESS,
    startup_timeout: float = DEFAULT_CONSTANTS.TUNNEL_STARTUP_SECONDS,
    shutdown_timeout: float = DEFAULT_CONSTANTS.TUNNEL_SHUTDOWN_SECONDS,
    kubectl_binary: str | None = None,
) -> Generator[str]:
    """Context manager for a local tunnel to the Kubernetes API server.

    Args:
        kubeconfig: Kubeconfig file passed to kubectl
        kube_context: Kubeconfig context passed to kubectl
        console: Rich console for output
        bind_address: Local address to listen on
        startup_timeout: Seconds to wait for the proxy to report its port
        shutdown_timeout: Seconds to wait after terminate before killing
        kubectl_binary: kubectl executable (defaults to ``WHEELIE_KUBECTL_BIN``)

    Yields:
        Local endpoint URL, e.g. ``http://127.0.0.1:41234``

    Raises:
        ConnectivityError: If the proxy cannot be started

    Example:
        >>> with api_server_tunnel(kube_context="prod") as endpoint:
        ...     run_helm("--kube-apiserver", endpoint, "list")
    """
    cmd = build_proxy_command(
        kubeconfig=kubeconfig,
        kube_context=kube_context,
        bind_address=bind_address,
        kubectl_binary=kubectl_binary,
    )
    logger.debug(f"Starting API tunnel: {' '.join(cmd)}")

    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError as e:
        raise ConnectivityError(
            "API tunnel failed to start", details=f"executable not found: {cmd[0]}"
        ) from e

    try:
        endpoint = _wait_for_endpoint(process, startup_timeout)
    except BaseException:
        _stop(process, shutdown_timeout)
        raise

    logger.info(f"API tunnel active on {endpoint}")
    if console:
        console.print(f"[dim]API tunnel active: {endpoint}[/dim]")

    try:
        yield endpoint
    finally:
        _stop(process, shutdown_timeout)
        logger.debug("API tunnel stopped")
        if console:
            console.print("[dim]API tunnel stopped[/dim]")
