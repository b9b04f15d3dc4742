from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from barbs_setup.backends.git import GitBackend
from barbs_setup.config_loader import DEFAULT_PRUNE
from barbs_setup.core import ensure_owned_dir
from barbs_setup.errors import SyncFailed
from barbs_setup.util import CommandRunner, Identity, TargetUser, repo_name


@dataclass(frozen=True)
class DotfilesSynchronizer:
    runner: CommandRunner
    logger: logging.Logger
    user: TargetUser
    staging_root: Path

    def staging_dir(self, url: str) -> Path:
        return self.staging_root / repo_name(url)

    def sync(self, url: str, dest: Path, branch: str) -> str:
        """
        Bring `dest` up to date with the repository's files.

        Files the repository has overwrite those in `dest`; anything else in
        `dest` is left alone. Version-control metadata is copied too, so
        callers normally follow up with prune().
        """
        identity = Identity(self.user)
        try:
            ensure_owned_dir(dest, self.user, dry_run=self.runner.dry_run)
        except OSError as e:
            raise SyncFailed(f"Cannot prepare {dest}: {e}") from e

        staging = self.staging_dir(url)
        git = GitBackend(runner=self.runner, logger=self.logger)
        how = git.clone_or_pull(
            url,
            staging,
            identity=identity,
            branch=branch,
            clone_branch=branch,
            recursive=True,
        )
        if how is None:
            raise SyncFailed(f"Could not clone or update {url} (branch {branch}) in {staging}")

        res = self.runner.run(["cp", "-rfT", str(staging), str(dest)], identity=identity, check=False)
        if not res.ok:
            raise SyncFailed(f"Could not copy {staging} into {dest} (exit {res.returncode})")
        return f"Synced dotfiles from {url} ({how}) into {dest}."

    def prune(self, dest: Path, names: Iterable[str] = DEFAULT_PRUNE) -> list[str]:
        removed: list[str] = []
        for name in names:
            target = dest / name
            if self.runner.dry_run:
                self.logger.debug("Would remove %s", target)
                continue
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            elif target.exists() or target.is_symlink():
                target.unlink()
            else:
                continue
            removed.append(name)
        return removed
