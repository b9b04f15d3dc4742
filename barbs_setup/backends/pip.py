from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from typing import Sequence

from barbs_setup.util import ROOT, CommandRunner, RunResult


@dataclass(frozen=True)
class PipBackend:
    runner: CommandRunner
    logger: logging.Logger
    executable: str = "pip"
    # Distro package that provides the executable.
    provider: str = "python-pip"

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def install(self, package: str, *, extra_args: Sequence[str] = ()) -> RunResult:
        return self.runner.run(
            [self.executable, "install", *extra_args, package],
            identity=ROOT,
            check=False,
        )
