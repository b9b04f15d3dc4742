from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from barbs_setup.backends.pacman import InstalledSetSnapshot
from barbs_setup.util import CommandRunner, Identity, TargetUser


@dataclass(frozen=True)
class Options:
    dry_run: bool
    branch: str = "master"  # used by every forced-pull fallback
    aur_helper: str = "yay"
    aur_url: str = "https://aur.archlinux.org"
    pip_args: tuple[str, ...] = ("--no-input",)


@dataclass(frozen=True)
class Context:
    logger: logging.Logger
    runner: CommandRunner
    options: Options
    user: TargetUser
    src_dir: Path

    @property
    def user_identity(self) -> Identity:
        return Identity(self.user)


@dataclass
class InstallContext:
    """Per-run installation state threaded through every strategy call."""

    total: int
    snapshot: InstalledSetSnapshot = field(default_factory=InstalledSetSnapshot)
    progress: int = 0

    def advance(self) -> int:
        self.progress += 1
        return self.progress

    @property
    def label(self) -> str:
        return f"{self.progress} of {self.total}"


def ensure_owned_dir(path: Path, user: TargetUser, *, dry_run: bool) -> None:
    if dry_run:
        return
    path.mkdir(parents=True, exist_ok=True)
    os.chown(path, user.uid, user.gid)


def build_context(
    *,
    user: TargetUser,
    src_dir: Path | None,
    options: Options,
    logger: logging.Logger,
) -> Context:
    runner = CommandRunner(dry_run=options.dry_run, logger=logger)
    if src_dir is None:
        src_dir = user.home / ".local" / "src"

    return Context(
        logger=logger,
        runner=runner,
        options=options,
        user=user,
        src_dir=src_dir,
    )
