import pytest
import typer

from wheelie.cli.console import with_error_handling
from wheelie.errors import BackendOperationError


def test_with_error_handling_handles_wheelie_error():
    @with_error_handling
    def _command() -> None:
        raise BackendOperationError("helm upgrade failed", details="extra")

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 1


def test_with_error_handling_handles_keyboard_interrupt():
    @with_error_handling
    def _command() -> None:
        raise KeyboardInterrupt

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 130


def test_with_error_handling_lets_other_errors_through():
    @with_error_handling
    def _command() -> None:
        raise ValueError("bug")

    with pytest.raises(ValueError):
        _command()


def test_report_result_prints_change_and_no_change():
    from rich.console import Console

    from wheelie.cli import report_result
    from wheelie.cli.console import CLIConsole
    from wheelie.core.records import Action, ReconciliationResult

    out = CLIConsole(Console(record=True, width=120))

    report_result(ReconciliationResult.mutated(Action.UPGRADE, "Upgrade complete"), out)
    report_result(ReconciliationResult.unchanged(), out)

    text = out.console.export_text()
    assert "upgrade: Upgrade complete" in text
    assert "No changes" in text
    assert not hasattr(out, "warn")
    assert not hasattr(out, "status")


def test_report_result_exits_on_failure():
    from rich.console import Console

    from wheelie.cli import report_result
    from wheelie.cli.console import CLIConsole
    from wheelie.core.records import ReconciliationResult

    out = CLIConsole(Console(record=True, width=120))

    with pytest.raises(typer.Exit) as excinfo:
        report_result(ReconciliationResult.failure("helm list failed"), out)

    assert excinfo.value.exit_code == 1
    assert "helm list failed" in out.console.export_text()
