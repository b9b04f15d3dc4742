from __future__ import annotations

import shlex
from typing import Sequence


class BarbsError(RuntimeError):
    """Base class for every error raised by the provisioning run."""


class ManifestUnavailable(BarbsError):
    pass


class PrerequisiteInstallFailed(BarbsError):
    """A package the rest of the run depends on could not be installed."""

    def __init__(self, package: str, reason: str = "") -> None:
        self.package = package
        msg = f"Failed to install required package {package!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class EntryInstallFailed(BarbsError):
    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        super().__init__(f"{identifier}: {reason}")


class SyncFailed(BarbsError):
    pass


class ExecutionFailed(BarbsError):
    def __init__(self, returncode: int, argv: Sequence[str], stderr: str = "") -> None:
        self.returncode = returncode
        self.argv = list(argv)
        self.stderr = stderr
        msg = f"Command failed ({returncode}): {shlex.join(self.argv)}"
        if stderr.strip():
            msg += f"\n{stderr.rstrip()}"
        super().__init__(msg)
