"""Tests for resource-level manifest comparison."""

import io

import pytest

from wheelie.infra.manifest.differ import diff_manifests
from wheelie.infra.manifest.parser import parse_manifest

DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
spec:
  replicas: {replicas}
  template:
    spec:
      containers:
      - image: web:1.0
        name: web
"""

SECRET = """\
apiVersion: v1
kind: Secret
metadata:
  name: creds
data:
  password: {password}
"""


class TestDiffManifests:
    """Tests for diff_manifests."""

    @pytest.fixture
    def output(self) -> io.StringIO:
        return io.StringIO()

    def test_identical_renderings(self, output: io.StringIO) -> None:
        index = parse_manifest(DEPLOYMENT.format(replicas=2), "apps")

        assert diff_manifests(index, dict(index), output=output) is False
        assert output.getvalue() == ""

    def test_changed_resource(self, output: io.StringIO) -> None:
        old = parse_manifest(DEPLOYMENT.format(replicas=2), "apps")
        new = parse_manifest(DEPLOYMENT.format(replicas=3), "apps")

        assert diff_manifests(old, new, output=output) is True

        text = output.getvalue()
        assert text.startswith("apps, web, Deployment (apps) has changed:\n")
        assert "-  replicas: 2\n" in text
        assert "+  replicas: 3\n" in text
        assert "---" not in text
        # Whole documents are printed by default
        assert "   name: web\n" in text

    def test_context_limits_unchanged_lines(self, output: io.StringIO) -> None:
        old = parse_manifest(DEPLOYMENT.format(replicas=2), "apps")
        new = parse_manifest(DEPLOYMENT.format(replicas=3), "apps")

        diff_manifests(old, new, context=0, output=output)

        text = output.getvalue()
        assert "+  replicas: 3\n" in text
        assert "image: web:1.0" not in text

    def test_context_from_environment(
        self, output: io.StringIO, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("WHEELIE_DIFF_CONTEXT", "0")
        old = parse_manifest(DEPLOYMENT.format(replicas=2), "apps")
        new = parse_manifest(DEPLOYMENT.format(replicas=3), "apps")

        diff_manifests(old, new, output=output)

        assert "image: web:1.0" not in output.getvalue()

    def test_added_and_removed(self, output: io.StringIO) -> None:
        old = parse_manifest("apiVersion: v1\nkind: Service\nmetadata:\n  name: old\n", "apps")
        new = parse_manifest("apiVersion: v1\nkind: Service\nmetadata:\n  name: new\n", "apps")

        assert diff_manifests(old, new, output=output) is True

        text = output.getvalue()
        assert "apps, new, Service (v1) has been added:" in text
        assert "apps, old, Service (v1) has been removed:" in text
        assert "+  name: new" in text
        assert "-  name: old" in text

    def test_suppressed_kind_hides_content(self, output: io.StringIO) -> None:
        """Suppressed kinds should report the change without its content."""
        old = parse_manifest(SECRET.format(password="b2xk"), "apps")
        new = parse_manifest(SECRET.format(password="bmV3"), "apps")

        assert diff_manifests(old, new, suppressed_kinds=["Secret"], output=output) is True

        text = output.getvalue()
        assert "apps, creds, Secret (v1) has changed:" in text
        assert "+ Changes suppressed on sensitive content" in text
        assert "bmV3" not in text
        assert "b2xk" not in text

    def test_empty_against_empty(self, output: io.StringIO) -> None:
        assert diff_manifests({}, {}, output=output) is False
