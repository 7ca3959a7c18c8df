"""Manifest parsing and comparison.

Example:
    from wheelie.infra.manifest import diff_manifests, parse_release

    changed = diff_manifests(parse_release(current), parse_release(proposed))
"""

from .differ import diff_manifests
from .parser import (
    MappingResult,
    is_test_hook,
    parse_manifest,
    parse_release,
    resource_key,
)

__all__ = [
    "MappingResult",
    "diff_manifests",
    "is_test_hook",
    "parse_manifest",
    "parse_release",
    "resource_key",
]
