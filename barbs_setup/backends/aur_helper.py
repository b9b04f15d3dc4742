from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from barbs_setup.backends.git import GitBackend
from barbs_setup.backends.pacman import PacmanBackend
from barbs_setup.errors import PrerequisiteInstallFailed
from barbs_setup.util import CommandRunner, Identity, RunResult


@dataclass(frozen=True)
class AurHelperBackend:
    runner: CommandRunner
    logger: logging.Logger
    helper: str = "yay"
    aur_url: str = "https://aur.archlinux.org"

    @property
    def repo_url(self) -> str:
        return f"{self.aur_url.rstrip('/')}/{self.helper}.git"

    def install(self, package: str, *, identity: Identity) -> RunResult:
        # The helper escalates by itself where it needs to; it must never run as root.
        if identity.is_root:
            raise ValueError(f"{self.helper} must not be invoked as root")
        return self.runner.run(
            [self.helper, "-S", "--noconfirm", package],
            identity=identity,
            check=False,
        )

    def bootstrap(self, *, src_dir: Path, identity: Identity, branch: str) -> str:
        """
        Build and install the helper itself from its AUR git repository.

        Raises PrerequisiteInstallFailed: nothing tagged for the AUR can be
        installed without the helper.
        """
        if identity.is_root:
            raise ValueError("the AUR helper must be built as an unprivileged user")

        pacman = PacmanBackend(runner=self.runner, logger=self.logger)
        if pacman.is_installed(self.helper):
            return f"{self.helper} is already installed."

        git = GitBackend(runner=self.runner, logger=self.logger)
        dest = src_dir / self.helper
        if git.clone_or_pull(self.repo_url, dest, identity=identity, branch=branch) is None:
            raise PrerequisiteInstallFailed(self.helper, f"could not clone or update {self.repo_url}")

        res = self.runner.run(
            ["makepkg", "--noconfirm", "-si"],
            identity=identity,
            cwd=dest,
            check=False,
        )
        if not res.ok:
            raise PrerequisiteInstallFailed(self.helper, f"makepkg exited with {res.returncode}")
        return f"Installed {self.helper} from {self.repo_url}."
