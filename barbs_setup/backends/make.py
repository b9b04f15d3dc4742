from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from barbs_setup.util import ROOT, CommandRunner


@dataclass(frozen=True)
class MakeBackend:
    runner: CommandRunner
    logger: logging.Logger

    def build_and_install(self, project_dir: Path) -> bool:
        # Artifacts are installed system-wide, so both steps run as root.
        if not self.runner.run(["make"], identity=ROOT, cwd=project_dir, check=False).ok:
            self.logger.debug("Build step failed in %s", project_dir)
            return False
        if not self.runner.run(["make", "install"], identity=ROOT, cwd=project_dir, check=False).ok:
            self.logger.debug("Install step failed in %s", project_dir)
            return False
        return True
