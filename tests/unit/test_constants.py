import pytest

from wheelie.constants import get_diff_context, get_helm_binary, get_kubectl_binary
from wheelie.errors import ConfigurationError, ReleaseNotFoundError, WheelieError


def test_binaries_default():
    assert get_helm_binary() == "helm"
    assert get_kubectl_binary() == "kubectl"


@pytest.mark.parametrize(("raw", "expected"), [("5", 5), ("", -1), ("many", -1)])
def test_diff_context(monkeypatch: pytest.MonkeyPatch, raw: str, expected: int):
    monkeypatch.setenv("WHEELIE_DIFF_CONTEXT", raw)

    assert get_diff_context() == expected


def test_error_text_includes_details():
    error = ConfigurationError("chart is required", details="state is 'present'")

    assert isinstance(error, WheelieError)
    assert str(error) == "chart is required: state is 'present'"
    assert str(ConfigurationError("release name is required")) == "release name is required"


def test_release_not_found_is_not_a_failure():
    """The not-found error is a branch value, not part of the failure taxonomy."""
    error = ReleaseNotFoundError("web")

    assert not isinstance(error, WheelieError)
    assert error.release_name == "web"
