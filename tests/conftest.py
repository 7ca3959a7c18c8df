import pytest
from loguru import logger

from wheelie.core.spec import HookPolicy, PackageSource, ReleaseSpec


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tool overrides from the developer's shell out of the tests."""
    for name in ("WHEELIE_HELM_BIN", "WHEELIE_KUBECTL_BIN", "WHEELIE_DIFF_CONTEXT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def loguru_messages():
    """Capture loguru records emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def release_spec() -> ReleaseSpec:
    """A present-goal release spec with default settings."""
    return ReleaseSpec(
        release_name="web",
        package=PackageSource(path="/charts/web"),
        values={"replicas": 2},
        namespace="apps",
        hooks=HookPolicy(),
        timeout_seconds=300,
    )
