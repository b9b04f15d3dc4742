from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from barbs_setup.util import CommandRunner, Identity


@dataclass(frozen=True)
class GitBackend:
    runner: CommandRunner
    logger: logging.Logger

    def is_checkout(self, dest: Path) -> bool:
        return (dest / ".git").exists()

    def clone(
        self,
        url: str,
        dest: Path,
        *,
        identity: Identity,
        branch: str | None = None,
        recursive: bool = False,
    ) -> bool:
        args = ["git", "-C", str(dest.parent), "clone", "--depth", "1", "--single-branch", "--no-tags", "-q"]
        if branch is not None:
            args += ["-b", branch]
        if recursive:
            args += ["--recursive", "--recurse-submodules"]
        args += [url, str(dest)]
        return self.runner.run(args, identity=identity, check=False).ok

    def force_pull(self, dest: Path, *, identity: Identity, branch: str) -> bool:
        res = self.runner.run(
            ["git", "pull", "--force", "origin", branch],
            identity=identity,
            cwd=dest,
            check=False,
        )
        return res.ok

    def clone_or_pull(
        self,
        url: str,
        dest: Path,
        *,
        identity: Identity,
        branch: str,
        clone_branch: str | None = None,
        recursive: bool = False,
    ) -> str | None:
        """
        Shallow-clone `url` into `dest`, or update an existing checkout there.

        Returns "cloned" or "pulled", or None when neither path worked (e.g. the
        clone failed and there is no directory to pull in).
        """
        if not self.is_checkout(dest):
            if self.clone(url, dest, identity=identity, branch=clone_branch, recursive=recursive):
                return "cloned"
            self.logger.debug("Clone of %s failed; falling back to pull in %s", url, dest)

        if not self.runner.dry_run and not dest.is_dir():
            self.logger.debug("Cannot pull: %s does not exist", dest)
            return None
        if self.force_pull(dest, identity=identity, branch=branch):
            return "pulled"
        return None
