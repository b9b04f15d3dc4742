from __future__ import annotations

import logging
from dataclasses import dataclass, field

from barbs_setup.util import ROOT, CommandRunner, RunResult


def _names(output: str) -> frozenset[str]:
    return frozenset(line.strip() for line in output.splitlines() if line.strip())


@dataclass(frozen=True)
class InstalledSetSnapshot:
    """Installed package names, captured once before the installation loop."""

    native: frozenset[str] = field(default_factory=frozenset)
    foreign: frozenset[str] = field(default_factory=frozenset)

    def has_native(self, package: str) -> bool:
        return package in self.native

    def has_foreign(self, package: str) -> bool:
        return package in self.foreign


@dataclass(frozen=True)
class PacmanBackend:
    runner: CommandRunner
    logger: logging.Logger

    def is_installed(self, package: str) -> bool:
        # pacman -Qq exits 0 if installed
        res = self.runner.run(["pacman", "-Qq", package], check=False)
        return res.returncode == 0

    def install(self, package: str, *, needed: bool = True) -> RunResult:
        args = ["pacman", "--noconfirm"]
        if needed:
            args.append("--needed")
        args += ["-S", package]
        return self.runner.run(args, identity=ROOT, check=False)

    def snapshot(self) -> InstalledSetSnapshot:
        # Both queries exit 1 when nothing matches, so only stdout is meaningful.
        native = self.runner.run(["pacman", "-Qqn"], check=False)
        foreign = self.runner.run(["pacman", "-Qqm"], check=False)
        snap = InstalledSetSnapshot(native=_names(native.stdout), foreign=_names(foreign.stdout))
        self.logger.debug(
            "Installed-set snapshot: %d native, %d foreign packages",
            len(snap.native),
            len(snap.foreign),
        )
        return snap
