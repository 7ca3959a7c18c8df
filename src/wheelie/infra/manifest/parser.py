"""Rendered manifest parsing.

Splits multi-document YAML manifests into individual resources keyed by
namespace, name, kind and API group, so that two renderings of the same
release can be compared resource by resource.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import yaml
from loguru import logger

from wheelie.constants import DEFAULT_CONSTANTS
from wheelie.errors import DiffError

if TYPE_CHECKING:
    from wheelie.core.records import ReleaseRecord


@dataclass(frozen=True)
class MappingResult:
    """A single parsed resource.

    Attributes:
        name: Resource key, ``"<namespace>, <name>, <kind> (<api group>)"``
        kind: Kubernetes kind
        content: Resource serialized as YAML with sorted keys
    """

    name: str
    kind: str
    content: str


def resource_key(resource: dict[str, Any], default_namespace: str) -> str:
    """Build the comparison key for a resource."""
    metadata = resource.get("metadata") or {}
    namespace = metadata.get("namespace") or default_namespace
    api_version = str(resource.get("apiVersion", ""))
    # "apps/v1" -> "apps"; core "v1" stays "v1"
    api_group = api_version.rsplit("/", 1)[0] if "/" in api_version else api_version
    return f"{namespace}, {metadata.get('name', '')}, {resource.get('kind', '')} ({api_group})"


def _iter_resources(document: Any, source: str) -> list[dict[str, Any]]:
    if not isinstance(document, dict):
        raise DiffError(
            "Malformed manifest",
            details=f"{source}: expected a mapping, got {type(document).__name__}",
        )
    kind = str(document.get("kind", ""))
    if kind.endswith("List") and isinstance(document.get("items"), list):
        resources: list[dict[str, Any]] = []
        for item in document["items"]:
            resources.extend(_iter_resources(item, source))
        return resources
    metadata = document.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        raise DiffError(
            "Malformed manifest",
            details=f"{source}: metadata of {kind or 'resource'} must be a mapping, "
            f"got {type(metadata).__name__}",
        )
    return [document]


def parse_manifest(
    manifest: str,
    default_namespace: str,
    *,
    source: str = "manifest",
) -> dict[str, MappingResult]:
    """Parse a multi-document manifest into keyed resources.

    Args:
        manifest: Rendered YAML, documents separated by ``---``
        default_namespace: Namespace for resources that do not declare one
        source: Label used in error messages

    Returns:
        Mapping of resource key to parsed resource

    Raises:
        DiffError: If the manifest is not valid YAML or a document is not a
            mapping
    """
    try:
        documents = list(yaml.safe_load_all(manifest or ""))
    except yaml.YAMLError as e:
        raise DiffError("Malformed manifest", details=f"{source}: {e}") from e

    results: dict[str, MappingResult] = {}
    for document in documents:
        if document is None:
            continue
        for resource in _iter_resources(document, source):
            key = resource_key(resource, default_namespace)
            if key in results:
                logger.warning(f"Duplicate resource {key!r} in {source}")
            results[key] = MappingResult(
                name=key,
                kind=str(resource.get("kind", "")),
                content=yaml.safe_dump(resource, sort_keys=True, default_flow_style=False),
            )
    return results


def is_test_hook(events: list[str]) -> bool:
    """Whether a hook only exists to run chart tests."""
    return any(event in DEFAULT_CONSTANTS.TEST_HOOK_EVENTS for event in events)


def parse_release(record: ReleaseRecord, default_namespace: str = "") -> dict[str, MappingResult]:
    """Parse a release's manifest together with its non-test hooks."""
    namespace = record.namespace or default_namespace
    results = parse_manifest(
        record.manifest, namespace, source=f"release {record.name}"
    )
    for hook in record.hooks:
        if is_test_hook(hook.events):
            continue
        results.update(
            parse_manifest(
                hook.manifest, namespace, source=f"hook {hook.path or hook.name}"
            )
        )
    return results
