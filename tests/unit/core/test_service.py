"""Tests for the end-to-end reconciliation entry point."""

from contextlib import contextmanager
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from wheelie.core.backend import ReleaseBackend
from wheelie.core.records import Action, ReleaseRecord, ReleaseStatus
from wheelie.core.service import helm_backend_factory, run_reconciliation
from wheelie.core.spec import ConnectionSettings, ReleaseInput
from wheelie.errors import ConnectivityError, ReleaseNotFoundError
from wheelie.infra.helm import HelmBackend
from wheelie.infra.k8s import ConnectionHandle


def _fake_connect(calls: list[ConnectionSettings]):
    @contextmanager
    def connect(settings: ConnectionSettings):
        calls.append(settings)
        yield ConnectionHandle.from_settings(settings)

    return connect


class TestRunReconciliation:
    """Tests for run_reconciliation."""

    @pytest.fixture
    def chart_dir(self, tmp_path: Path) -> Path:
        chart = tmp_path / "web"
        chart.mkdir()
        (chart / "Chart.yaml").write_text("name: web\nversion: 1.0.0\n")
        return chart

    @pytest.fixture
    def backend(self) -> MagicMock:
        return MagicMock(spec=ReleaseBackend)

    def test_invalid_state_never_connects(self, backend: MagicMock) -> None:
        """Input errors should be reported before the cluster is contacted."""
        calls: list[ConnectionSettings] = []

        result = run_reconciliation(
            ReleaseInput(release="web", chart="./web", state="bogus"),
            connect=_fake_connect(calls),
            backend_factory=lambda _: backend,
        )

        assert result.failed
        assert not result.changed
        assert "state must be one of" in (result.error or "")
        assert calls == []
        assert backend.mock_calls == []

    def test_installs_through_backend(self, backend: MagicMock, chart_dir: Path) -> None:
        """A missing release should be installed using the provisioned connection."""
        calls: list[ConnectionSettings] = []
        backend.read_release.side_effect = ReleaseNotFoundError("web")
        backend.install.return_value = "Install complete"
        factory = MagicMock(return_value=backend)

        result = run_reconciliation(
            ReleaseInput(release="web", chart=str(chart_dir), kube_context="prod"),
            connect=_fake_connect(calls),
            backend_factory=factory,
        )

        assert result.changed
        assert result.action is Action.INSTALL
        assert result.message == "Install complete"
        assert calls[0].kube_context == "prod"
        assert calls[0].backend_namespace == "kube-system"
        connection = factory.call_args[0][0]
        assert connection.kube_context == "prod"

    def test_connectivity_failure_is_folded(self, backend: MagicMock) -> None:
        """Connection errors should become a failed result."""

        @contextmanager
        def connect(settings: ConnectionSettings):
            raise ConnectivityError("Could not reach Kubernetes API for prod", details="refused")
            yield  # pragma: no cover

        result = run_reconciliation(
            ReleaseInput(release="web", state="absent"),
            connect=connect,
            backend_factory=lambda _: backend,
        )

        assert result.failed
        assert result.error == "Could not reach Kubernetes API for prod: refused"
        assert backend.mock_calls == []

    def test_chart_failure_is_folded(self, backend: MagicMock, tmp_path: Path) -> None:
        result = run_reconciliation(
            ReleaseInput(release="web", chart=str(tmp_path / "missing")),
            connect=_fake_connect([]),
            backend_factory=lambda _: backend,
        )

        assert result.failed
        assert "Chart not found" in (result.error or "")
        backend.install.assert_not_called()

    def test_malformed_manifest_is_folded(
        self, backend: MagicMock, chart_dir: Path
    ) -> None:
        """A manifest that cannot be compared should become a failed result."""
        backend.read_release.return_value = ReleaseRecord(
            name="web",
            status=ReleaseStatus.DEPLOYED,
            manifest="apiVersion: v1\nkind: ConfigMap\nmetadata: oops\n",
        )
        backend.try_upgrade.return_value = ReleaseRecord(name="web", manifest="")

        result = run_reconciliation(
            ReleaseInput(release="web", chart=str(chart_dir)),
            connect=_fake_connect([]),
            backend_factory=lambda _: backend,
        )

        assert result.failed
        assert (result.error or "").startswith("Malformed manifest")
        backend.upgrade.assert_not_called()

    def test_connection_is_released_after_run(self, backend: MagicMock) -> None:
        """The connection context should exit once reconciliation ends."""
        events: list[str] = []
        backend.read_release.side_effect = ReleaseNotFoundError("web")

        @contextmanager
        def connect(settings: ConnectionSettings):
            events.append("open")
            try:
                yield ConnectionHandle.from_settings(settings)
            finally:
                events.append("close")

        run_reconciliation(
            ReleaseInput(release="web", state="purged"),
            connect=connect,
            backend_factory=lambda _: backend,
        )

        assert events == ["open", "close"]


def test_helm_backend_factory_binds_connection() -> None:
    """The helm backend should carry the connection's flags."""
    connection = ConnectionHandle(
        kubeconfig=None,
        kube_context="prod",
        backend_namespace="kube-system",
        connect_timeout_seconds=30,
        endpoint="http://127.0.0.1:8001",
    )

    with patch("wheelie.core.service.CommandRunner") as runner_cls:
        backend = helm_backend_factory(connection)

    assert isinstance(backend, HelmBackend)
    assert backend.commands._runner is runner_cls.return_value
    assert backend.commands._connection is connection
