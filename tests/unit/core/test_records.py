"""Tests for release records and reconciliation results."""

import pytest

from wheelie.core.records import (
    Action,
    ReconciliationResult,
    ReleaseRecord,
    ReleaseStatus,
)


class TestReleaseStatus:
    """Tests for status parsing."""

    @pytest.mark.parametrize(
        ("raw", "status"),
        [
            ("deployed", ReleaseStatus.DEPLOYED),
            ("DEPLOYED", ReleaseStatus.DEPLOYED),
            ("uninstalled", ReleaseStatus.UNINSTALLED),
            ("DELETED", ReleaseStatus.UNINSTALLED),
            ("pending-upgrade", ReleaseStatus.PENDING_UPGRADE),
            ("something-new", ReleaseStatus.UNKNOWN),
            (None, ReleaseStatus.UNKNOWN),
            ("", ReleaseStatus.UNKNOWN),
        ],
    )
    def test_parse(self, raw: str | None, status: ReleaseStatus) -> None:
        assert ReleaseStatus.parse(raw) is status

    def test_only_uninstalled_counts_as_deleted(self) -> None:
        deleted = [s for s in ReleaseStatus if s.is_deleted]

        assert deleted == [ReleaseStatus.UNINSTALLED]


class TestReleaseRecord:
    """Tests for record construction."""

    def test_from_status_json(self) -> None:
        """A helm status document should map onto a record."""
        record = ReleaseRecord.from_json(
            {
                "name": "web",
                "namespace": "apps",
                "version": 4,
                "manifest": "---\nkind: Service\n",
                "info": {"status": "deployed", "description": "Upgrade complete"},
                "hooks": [
                    {
                        "name": "web-test",
                        "kind": "Pod",
                        "path": "web/templates/tests/test.yaml",
                        "manifest": "kind: Pod\n",
                        "events": ["test"],
                    }
                ],
            }
        )

        assert record.found
        assert record.name == "web"
        assert record.namespace == "apps"
        assert record.revision == 4
        assert record.status is ReleaseStatus.DEPLOYED
        assert record.description == "Upgrade complete"
        assert record.hooks[0].events == ["test"]

    def test_from_minimal_json(self) -> None:
        """Missing fields should fall back to empty values."""
        record = ReleaseRecord.from_json({"name": "web"})

        assert record.manifest == ""
        assert record.hooks == []
        assert record.status is ReleaseStatus.UNKNOWN

    def test_not_found(self) -> None:
        record = ReleaseRecord.not_found("web")

        assert not record.found
        assert record.name == "web"


class TestReconciliationResult:
    """Tests for result constructors."""

    def test_unchanged(self) -> None:
        result = ReconciliationResult.unchanged()

        assert not result.changed
        assert not result.failed
        assert result.message == ""
        assert result.action is Action.NO_OP

    def test_mutated(self) -> None:
        result = ReconciliationResult.mutated(Action.INSTALL, "Install complete")

        assert result.changed
        assert result.message == "Install complete"
        assert result.error is None

    def test_failure_never_reports_change(self) -> None:
        result = ReconciliationResult.failure("helm upgrade failed")

        assert result.failed
        assert not result.changed
        assert result.action is Action.NONE
