"""Resource-level manifest comparison.

Compares two parsed renderings of a release and writes a human-readable
unified diff of every added, removed or changed resource to a diagnostic
stream.
"""

from __future__ import annotations

import difflib
import sys
from collections.abc import Iterable, Mapping
from typing import TextIO

from wheelie.constants import get_diff_context

from .parser import MappingResult


def _write_diff(
    output: TextIO,
    header: str,
    old: str,
    new: str,
    *,
    context: int,
    suppressed: bool,
) -> None:
    output.write(f"{header}\n")
    if suppressed:
        output.write("+ Changes suppressed on sensitive content\n\n")
        return

    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    # Negative context prints whole documents
    n = context if context >= 0 else max(len(old_lines), len(new_lines))
    for line in difflib.unified_diff(old_lines, new_lines, n=n):
        if line.startswith(("---", "+++")):
            continue
        output.write(line if line.endswith("\n") else f"{line}\n")
    output.write("\n")


def diff_manifests(
    old_index: Mapping[str, MappingResult],
    new_index: Mapping[str, MappingResult],
    *,
    suppressed_kinds: Iterable[str] = (),
    context: int | None = None,
    output: TextIO | None = None,
) -> bool:
    """Compare two parsed renderings.

    Args:
        old_index: Resources currently deployed
        new_index: Resources the proposed release would deploy
        suppressed_kinds: Kinds whose content is never printed (e.g. Secret)
        context: Lines of context around changes; -1 prints whole documents.
            Defaults to ``WHEELIE_DIFF_CONTEXT`` or -1.
        output: Stream for the human-readable diff; defaults to stderr

    Returns:
        True if any resource was added, removed or changed
    """
    out = output if output is not None else sys.stderr
    n = get_diff_context() if context is None else context
    suppressed = set(suppressed_kinds)
    has_changes = False

    for key in sorted(set(old_index) | set(new_index)):
        old = old_index.get(key)
        new = new_index.get(key)

        if old is not None and new is not None:
            if old.content == new.content:
                continue
            header = f"{key} has changed:"
            kind = new.kind
        elif new is not None:
            header = f"{key} has been added:"
            kind = new.kind
        else:
            assert old is not None
            header = f"{key} has been removed:"
            kind = old.kind

        has_changes = True
        _write_diff(
            out,
            header,
            old.content if old else "",
            new.content if new else "",
            context=n,
            suppressed=kind in suppressed,
        )

    return has_changes
