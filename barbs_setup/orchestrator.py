from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from barbs_setup.backends.aur_helper import AurHelperBackend
from barbs_setup.backends.pacman import InstalledSetSnapshot, PacmanBackend
from barbs_setup.config_loader import ProvisionConfig
from barbs_setup.core import Context, InstallContext, ensure_owned_dir
from barbs_setup.dotfiles import DotfilesSynchronizer
from barbs_setup.errors import BarbsError, EntryInstallFailed, PrerequisiteInstallFailed
from barbs_setup.manifest import ManifestEntry, Tag, load_manifest
from barbs_setup.strategies import InstallOutcome, InstallStrategy, StrategyFactory, builtin_strategies

_VIA = {
    Tag.REPOSITORY: "from the repositories",
    Tag.FOREIGN: "from the AUR",
    Tag.SOURCE_BUILD: "via git and make",
    Tag.LANGUAGE_PACKAGE: "as a Python package",
}


@dataclass(frozen=True)
class EntryResult:
    entry: ManifestEntry
    outcome: InstallOutcome
    reason: str | None = None


@dataclass
class RunReport:
    results: list[EntryResult] = field(default_factory=list)

    def _with(self, outcome: InstallOutcome) -> list[ManifestEntry]:
        return [r.entry for r in self.results if r.outcome is outcome]

    @property
    def installed(self) -> list[ManifestEntry]:
        return self._with(InstallOutcome.INSTALLED)

    @property
    def skipped(self) -> list[ManifestEntry]:
        return self._with(InstallOutcome.SKIPPED)

    @property
    def failed(self) -> list[ManifestEntry]:
        return self._with(InstallOutcome.FAILED)


class Orchestrator:
    def __init__(self, ctx: Context, factory: StrategyFactory | None = None) -> None:
        self.ctx = ctx
        self.factory = factory or StrategyFactory(builtin_strategies())
        self._pacman = PacmanBackend(runner=ctx.runner, logger=ctx.logger)

    # Fatal stages ----------------------------------------------------------

    def refresh_keyring(self, package: str) -> str:
        # No --needed: an outdated keyring must be reinstalled.
        if not self._pacman.install(package, needed=False).ok:
            raise PrerequisiteInstallFailed(package, "keyring refresh failed")
        return f"Refreshed {package}."

    def install_prerequisites(self, packages: Sequence[str]) -> None:
        log = self.ctx.logger
        for i, package in enumerate(packages, start=1):
            log.info("Installing `%s`, required to install and configure other programs.", package)
            if not self._pacman.install(package).ok:
                raise PrerequisiteInstallFailed(package)
            log.info("%s Installed %s.", "└─" if i == len(packages) else "├─", package)

    def prepare_src_dir(self) -> None:
        try:
            ensure_owned_dir(self.ctx.src_dir, self.ctx.user, dry_run=self.ctx.runner.dry_run)
        except OSError as e:
            raise BarbsError(f"Cannot prepare source directory {self.ctx.src_dir}: {e}") from e

    def bootstrap_aur_helper(self) -> str:
        opts = self.ctx.options
        backend = AurHelperBackend(
            runner=self.ctx.runner,
            logger=self.ctx.logger,
            helper=opts.aur_helper,
            aur_url=opts.aur_url,
        )
        return backend.bootstrap(src_dir=self.ctx.src_dir, identity=self.ctx.user_identity, branch=opts.branch)

    # Manifest loop ---------------------------------------------------------

    def snapshot(self) -> InstalledSetSnapshot:
        return self._pacman.snapshot()

    def _install_one(self, strategy: InstallStrategy, entry: ManifestEntry, state: InstallContext) -> EntryResult:
        try:
            ok, reason = strategy.is_available(self.ctx)
            if not ok:
                raise EntryInstallFailed(entry.identifier, reason or f"{strategy.name} is unavailable")
            outcome = strategy.install(entry, self.ctx, state)
        except (BarbsError, OSError, ValueError) as e:
            self.ctx.logger.debug("Installing %s raised: %s", entry.identifier, e)
            return EntryResult(entry, InstallOutcome.FAILED, str(e))
        return EntryResult(entry, outcome)

    def install_entries(self, entries: Sequence[ManifestEntry], state: InstallContext | None = None) -> RunReport:
        log = self.ctx.logger
        if state is None:
            state = InstallContext(total=len(entries))
        report = RunReport()

        for entry in entries:
            state.advance()
            strategy = self.factory.for_tag(entry.tag)
            note = f" {entry.note}" if entry.note else ""
            log.info("Installing `%s` (%s) %s.%s", entry.name, state.label, _VIA[strategy.tag], note)

            result = self._install_one(strategy, entry, state)
            report.results.append(result)

            if result.outcome is InstallOutcome.SKIPPED:
                log.info("└─ `%s` is already installed.", entry.name)
            elif result.outcome is InstallOutcome.INSTALLED:
                log.info("└─ Installed `%s`.", entry.name)
            else:
                detail = f": {result.reason}" if result.reason else ""
                log.warning("└─ Failed to install `%s`%s", entry.name, detail)

        return report

    def summarize(self, report: RunReport) -> None:
        log = self.ctx.logger
        log.info(
            "Installed %d, skipped %d (already present), failed %d of %d entries.",
            len(report.installed),
            len(report.skipped),
            len(report.failed),
            len(report.results),
        )
        if report.failed:
            log.warning("Failed entries: %s", ", ".join(e.identifier for e in report.failed))

    # Full run --------------------------------------------------------------

    def provision(self, config: ProvisionConfig) -> RunReport:
        """
        Run every stage in order. Fatal stages raise a BarbsError subclass;
        failed manifest entries only show up in the returned report.
        """
        log = self.ctx.logger

        if config.keyring:
            log.info("=== Refreshing keyring ===")
            log.info("└─ %s", self.refresh_keyring(config.keyring))

        log.info("=== Installing required packages ===")
        self.install_prerequisites(config.prerequisites)

        self.prepare_src_dir()
        log.info("=== Installing AUR helper ===")
        log.info("└─ %s", self.bootstrap_aur_helper())

        entries = load_manifest(config.manifest, logger=log)
        log.info("=== Installing %d programs from %s ===", len(entries), config.manifest)
        state = InstallContext(total=len(entries), snapshot=self.snapshot())
        report = self.install_entries(entries, state)
        self.summarize(report)

        if config.dotfiles_repo:
            log.info("=== Installing dotfiles ===")
            sync = DotfilesSynchronizer(
                runner=self.ctx.runner,
                logger=log,
                user=self.ctx.user,
                staging_root=self.ctx.src_dir,
            )
            dest = self.ctx.user.home
            log.info("├─ %s", sync.sync(config.dotfiles_repo, dest, config.dotfiles_branch or self.ctx.options.branch))
            removed = sync.prune(dest, config.dotfiles_prune)
            log.info("└─ Removed %s from %s.", ", ".join(removed) or "nothing", dest)

        return report
