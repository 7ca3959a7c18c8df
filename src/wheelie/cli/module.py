"""Module adapter: JSON argument file in, JSON result document out.

The adapter reads the module arguments from a JSON file, runs one
reconciliation, and prints a single JSON document to stdout::

    {"msg": "...", "changed": true, "failed": false,
     "invocation": {"module_args": {...}}}
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, TextIO

from pydantic import BaseModel, Field, ValidationError

from wheelie.core.records import ReconciliationResult
from wheelie.core.spec import ReleaseInput, normalize_input
from wheelie.core.service import run_reconciliation


class ModuleOutput(BaseModel):
    """Result document printed by the module."""

    msg: str | None = None
    changed: bool = False
    failed: bool = False
    invocation: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        # An empty message is left out of the document
        return self.model_dump_json(exclude_none=True)


class HelmModule:
    """Runs one reconciliation from a module argument file."""

    def __init__(
        self,
        reconcile: Callable[[ReleaseInput], ReconciliationResult] = run_reconciliation,
        stdout: TextIO | None = None,
    ) -> None:
        """Initialize the module.

        Args:
            reconcile: Reconciliation entry point
            stdout: Stream for the result document (defaults to sys.stdout)
        """
        self._reconcile = reconcile
        self._stdout = stdout
        self.module_args: dict[str, Any] = {}

    def run(self, args_file: Path) -> int:
        """Execute the module.

        Returns:
            Process exit status: 0 on success, 1 on failure
        """
        try:
            text = args_file.read_text(encoding="utf-8")
        except OSError as e:
            return self.fail(f"error reading input: {e}")

        try:
            raw = ReleaseInput.model_validate_json(text)
        except ValidationError as e:
            return self.fail(f"unable to parse input: {e}")

        self.module_args = normalize_input(raw).model_dump(mode="json")

        result = self._reconcile(raw)
        if result.error is not None:
            return self.fail(result.error)
        return self.succeed(result.message, result.changed)

    def succeed(self, msg: str, changed: bool) -> int:
        self._respond(ModuleOutput(msg=msg or None, changed=changed))
        return 0

    def fail(self, msg: str) -> int:
        self._respond(ModuleOutput(msg=msg, failed=True))
        return 1

    def _respond(self, output: ModuleOutput) -> None:
        output.invocation = {"module_args": self.module_args}
        out = self._stdout if self._stdout is not None else sys.stdout
        out.write(output.to_json() + "\n")
        out.flush()
