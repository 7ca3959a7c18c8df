"""Main CLI application module.

Command Groups:
- reconcile: converge one Helm release to present/absent/purged
- module: run from a JSON argument file and print a JSON result document
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from dotenv import load_dotenv

from wheelie.core.records import ReconciliationResult
from wheelie.core.service import run_reconciliation
from wheelie.core.spec import ReleaseInput
from wheelie.errors import ConfigurationError
from wheelie.infra.k8s import open_connection
from wheelie.log import configure_logging

from .console import CLIConsole, console, with_error_handling
from .module import HelmModule

app = typer.Typer(
    help="🛞  wheelie - keep a Helm release present, absent, or purged",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def _main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log helm commands and decisions"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only log warnings and errors"),
    ] = False,
    env_file: Annotated[
        Path,
        typer.Option("--env-file", help="Environment file with WHEELIE_* settings"),
    ] = Path(".env"),
) -> None:
    """Reconcile a Helm release against a Kubernetes cluster."""
    load_dotenv(env_file, override=False)
    configure_logging(verbose, quiet=quiet)


def _merge_values(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two values mappings; ``override`` wins."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_values(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_values_files(files: list[Path]) -> dict[str, Any] | None:
    """Load and deep-merge YAML values files in order.

    Raises:
        ConfigurationError: If a file is unreadable or not a YAML mapping
    """
    if not files:
        return None
    values: dict[str, Any] = {}
    for path in files:
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot load values file {path}", details=str(e)) from e
        if loaded is None:
            continue
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Cannot load values file {path}", details="top level must be a mapping"
            )
        values = _merge_values(values, loaded)
    return values


def report_result(result: ReconciliationResult, out: CLIConsole) -> None:
    """Print a reconciliation result, exiting non-zero on failure."""
    if result.error is not None:
        out.handle_error("Reconciliation failed", result.error)
    if result.changed:
        out.ok(f"[bold]{result.action.value}[/bold]: {result.message}")
    else:
        out.info("No changes")


@app.command()
@with_error_handling
def reconcile(
    release: Annotated[str, typer.Argument(help="Release name")],
    chart: Annotated[
        str | None,
        typer.Argument(help="Chart directory or .tgz archive (required for present)"),
    ] = None,
    state: Annotated[
        str | None,
        typer.Option("--state", "-s", help="present, absent or purged [default: present]"),
    ] = None,
    namespace: Annotated[
        str | None,
        typer.Option("--namespace", "-n", help="Target namespace [default: default]"),
    ] = None,
    chart_version: Annotated[
        str | None,
        typer.Option("--chart-version", help="Required chart version"),
    ] = None,
    values_files: Annotated[
        list[Path] | None,
        typer.Option("--values", "-f", help="YAML values file (repeatable)"),
    ] = None,
    no_hooks: Annotated[
        bool, typer.Option("--no-hooks", help="Disable lifecycle hooks")
    ] = False,
    no_crd_hook: Annotated[
        bool, typer.Option("--no-crd-hook", help="Do not install bundled CRDs")
    ] = False,
    timeout: Annotated[
        int,
        typer.Option("--timeout", help="Operation timeout in seconds [default: 300]"),
    ] = 0,
    wait: Annotated[
        bool, typer.Option("--wait", help="Wait until resources are ready")
    ] = False,
    backend_namespace: Annotated[
        str | None,
        typer.Option(
            "--backend-namespace",
            help="Namespace of the release-management backend [default: kube-system]",
        ),
    ] = None,
    kubeconfig: Annotated[
        str | None, typer.Option("--kubeconfig", help="Kubeconfig file")
    ] = None,
    kube_context: Annotated[
        str | None, typer.Option("--kube-context", help="Kubeconfig context")
    ] = None,
    tunnel: Annotated[
        bool,
        typer.Option("--tunnel/--no-tunnel", help="Reach the API through a local proxy"),
    ] = True,
) -> None:
    """Install, upgrade, or delete a release only when needed.

    Examples:
        wheelie reconcile web ./charts/web -n web -f values.yaml
        wheelie reconcile web --state purged
    """
    raw = ReleaseInput(
        release=release,
        chart=chart,
        chart_version=chart_version,
        values=load_values_files(values_files or []),
        no_hooks=no_hooks,
        no_crd_hook=no_crd_hook,
        timeout=timeout,
        namespace=namespace,
        state=state,
        wait=wait,
        backend_namespace=backend_namespace,
        kubeconfig=kubeconfig,
        kube_context=kube_context,
        tunnel=tunnel,
    )
    console.print_header(f"Reconciling release {release}")
    result = run_reconciliation(
        raw, connect=partial(open_connection, console=console.console)
    )
    report_result(result, console)


@app.command()
def module(
    args_file: Annotated[
        Path, typer.Argument(help="JSON file with the module arguments")
    ],
) -> None:
    """Run from a module argument file and print a JSON result document."""
    raise typer.Exit(HelmModule().run(args_file))


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
