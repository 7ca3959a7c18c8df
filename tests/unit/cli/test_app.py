"""Tests for the command line application."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from wheelie.cli import app, load_values_files
from wheelie.core.records import Action, ReconciliationResult
from wheelie.errors import ConfigurationError

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_logging_setup():
    """Leave loguru sinks alone while invoking the app."""
    with patch("wheelie.cli.configure_logging"):
        yield


class TestReconcileCommand:
    """Tests for `wheelie reconcile`."""

    @patch("wheelie.cli.run_reconciliation")
    def test_builds_input_from_options(self, mock_run: MagicMock, tmp_path: Path) -> None:
        values = tmp_path / "values.yaml"
        values.write_text("replicas: 3\n")
        mock_run.return_value = ReconciliationResult.mutated(Action.UPGRADE, "Upgrade complete")

        result = runner.invoke(
            app,
            [
                "reconcile",
                "web",
                "./charts/web",
                "-n",
                "apps",
                "-f",
                str(values),
                "--no-hooks",
                "--wait",
                "--kube-context",
                "prod",
                "--no-tunnel",
            ],
        )

        assert result.exit_code == 0
        raw = mock_run.call_args[0][0]
        assert raw.release == "web"
        assert raw.chart == "./charts/web"
        assert raw.namespace == "apps"
        assert raw.values == {"replicas": 3}
        assert raw.no_hooks
        assert raw.wait
        assert raw.kube_context == "prod"
        assert raw.tunnel is False
        # Defaults are left to normalization
        assert raw.state is None
        assert raw.timeout == 0

    @patch("wheelie.cli.run_reconciliation")
    def test_failure_exits_non_zero(self, mock_run: MagicMock) -> None:
        mock_run.return_value = ReconciliationResult.failure("helm list failed")

        result = runner.invoke(app, ["reconcile", "web", "--state", "absent"])

        assert result.exit_code == 1

    @patch("wheelie.cli.run_reconciliation")
    def test_bad_values_file_exits_before_reconciling(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        values = tmp_path / "values.yaml"
        values.write_text("- a\n- b\n")

        result = runner.invoke(app, ["reconcile", "web", "./web", "-f", str(values)])

        assert result.exit_code == 1
        mock_run.assert_not_called()


class TestModuleCommand:
    """Tests for `wheelie module`."""

    def test_missing_args_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["module", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        document = json.loads(result.stdout.strip().splitlines()[-1])
        assert document["failed"] is True
        assert document["msg"].startswith("error reading input")


class TestLoadValuesFiles:
    """Tests for values file merging."""

    def test_no_files(self) -> None:
        assert load_values_files([]) is None

    def test_later_files_win(self, tmp_path: Path) -> None:
        base = tmp_path / "base.yaml"
        base.write_text("image:\n  repository: web\n  tag: '1.0'\nreplicas: 1\n")
        prod = tmp_path / "prod.yaml"
        prod.write_text("image:\n  tag: '2.0'\n")
        empty = tmp_path / "empty.yaml"
        empty.write_text("")

        values = load_values_files([base, prod, empty])

        assert values == {"image": {"repository": "web", "tag": "2.0"}, "replicas": 1}

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "values.yaml"
        path.write_text("just a string\n")

        with pytest.raises(ConfigurationError, match="Cannot load values file"):
            load_values_files([path])

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_values_files([tmp_path / "missing.yaml"])
