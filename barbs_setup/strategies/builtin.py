from __future__ import annotations

import shutil
from dataclasses import dataclass

from barbs_setup.backends.aur_helper import AurHelperBackend
from barbs_setup.backends.git import GitBackend
from barbs_setup.backends.make import MakeBackend
from barbs_setup.backends.pacman import PacmanBackend
from barbs_setup.backends.pip import PipBackend
from barbs_setup.core import Context, InstallContext
from barbs_setup.manifest import ManifestEntry, Tag
from barbs_setup.strategies.api import InstallOutcome, InstallStrategy


def _which_all(ctx: Context, *tools: str) -> tuple[bool, str | None]:
    if ctx.runner.dry_run:
        return True, None
    for tool in tools:
        if shutil.which(tool) is None:
            return False, f"`{tool}` not found on PATH"
    return True, None


@dataclass(frozen=True)
class RepositoryStrategy:
    name: str = "builtin.repository.pacman"
    tag: Tag = Tag.REPOSITORY

    def is_available(self, ctx: Context) -> tuple[bool, str | None]:
        return _which_all(ctx, "pacman")

    def install(self, entry: ManifestEntry, ctx: Context, state: InstallContext) -> InstallOutcome:
        if state.snapshot.has_native(entry.identifier):
            return InstallOutcome.SKIPPED
        backend = PacmanBackend(runner=ctx.runner, logger=ctx.logger)
        if backend.install(entry.identifier).ok:
            return InstallOutcome.INSTALLED
        return InstallOutcome.FAILED


@dataclass(frozen=True)
class ForeignStrategy:
    name: str = "builtin.foreign.aur-helper"
    tag: Tag = Tag.FOREIGN

    def is_available(self, ctx: Context) -> tuple[bool, str | None]:
        return _which_all(ctx, ctx.options.aur_helper)

    def install(self, entry: ManifestEntry, ctx: Context, state: InstallContext) -> InstallOutcome:
        if state.snapshot.has_foreign(entry.identifier):
            return InstallOutcome.SKIPPED
        backend = AurHelperBackend(runner=ctx.runner, logger=ctx.logger, helper=ctx.options.aur_helper)
        if backend.install(entry.identifier, identity=ctx.user_identity).ok:
            return InstallOutcome.INSTALLED
        return InstallOutcome.FAILED


@dataclass(frozen=True)
class SourceBuildStrategy:
    name: str = "builtin.source-build.git-make"
    tag: Tag = Tag.SOURCE_BUILD

    def is_available(self, ctx: Context) -> tuple[bool, str | None]:
        return _which_all(ctx, "git", "make")

    def install(self, entry: ManifestEntry, ctx: Context, state: InstallContext) -> InstallOutcome:
        dest = ctx.src_dir / entry.name
        git = GitBackend(runner=ctx.runner, logger=ctx.logger)
        how = git.clone_or_pull(
            entry.identifier,
            dest,
            identity=ctx.user_identity,
            branch=ctx.options.branch,
        )
        if how is None:
            ctx.logger.debug("No checkout available for %s at %s", entry.identifier, dest)
            return InstallOutcome.FAILED

        make = MakeBackend(runner=ctx.runner, logger=ctx.logger)
        if make.build_and_install(dest):
            return InstallOutcome.INSTALLED
        return InstallOutcome.FAILED


@dataclass(frozen=True)
class LanguagePackageStrategy:
    name: str = "builtin.language-package.pip"
    tag: Tag = Tag.LANGUAGE_PACKAGE

    def is_available(self, ctx: Context) -> tuple[bool, str | None]:
        # pip itself is bootstrapped on demand; only pacman must be there.
        return _which_all(ctx, "pacman")

    def install(self, entry: ManifestEntry, ctx: Context, state: InstallContext) -> InstallOutcome:
        pip = PipBackend(runner=ctx.runner, logger=ctx.logger)
        if not ctx.runner.dry_run and not pip.is_available():
            ctx.logger.debug("%s not found; installing %s first", pip.executable, pip.provider)
            pacman = PacmanBackend(runner=ctx.runner, logger=ctx.logger)
            if not pacman.install(pip.provider).ok:
                return InstallOutcome.FAILED
        if pip.install(entry.identifier, extra_args=ctx.options.pip_args).ok:
            return InstallOutcome.INSTALLED
        return InstallOutcome.FAILED


def builtin_strategies() -> list[InstallStrategy]:
    # Keep ordering stable for predictable behavior and logging.
    return [
        RepositoryStrategy(),
        ForeignStrategy(),
        SourceBuildStrategy(),
        LanguagePackageStrategy(),
    ]
