from __future__ import annotations

import argparse
import logging
from pathlib import Path

from barbs_setup.config_loader import ProvisionConfig, load_config_file
from barbs_setup.core import Options, build_context
from barbs_setup.errors import BarbsError
from barbs_setup.orchestrator import Orchestrator
from barbs_setup.util import expand_path, resolve_user


def _setup_logger(verbose: bool) -> logging.Logger:
    logger = logging.getLogger("barbs-setup")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="barbs-setup",
        description="Install a manifest of programs and a user's dotfiles on a fresh Arch-based system.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Provisioning config file. Supported: *.json, *.toml, *.yaml, *.yml",
    )
    parser.add_argument("--user", help="Unprivileged user that owns checkouts and runs builds.")
    parser.add_argument(
        "--manifest",
        help="Programs CSV (tag,identifier,note): a local path or an http(s) URL.",
    )
    parser.add_argument("--src-dir", help="Checkout root for source builds (default: ~USER/.local/src).")
    parser.add_argument("--branch", help="Branch pulled when a checkout already exists (default: master).")
    parser.add_argument("--aur-helper", help="AUR helper to bootstrap and use (default: yay).")
    parser.add_argument("--dotfiles-repo", help="Git repository with the user's dotfiles.")
    parser.add_argument("--dotfiles-branch", help="Branch of the dotfiles repository.")
    parser.add_argument(
        "--no-dotfiles",
        action="store_true",
        help="Skip the dotfiles stage.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log actions but do not change the system.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose logs (every external command and its stderr on failure).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logger = _setup_logger(args.verbose)

    config = ProvisionConfig()
    if args.config is not None:
        if not args.config.exists():
            logger.error("Config file not found: %s", args.config)
            return 2
        try:
            config = load_config_file(args.config)
        except (OSError, ValueError) as e:
            logger.error("Failed to load config @ %s: %s", args.config, e)
            return 2

    config = config.with_overrides(
        {
            "user": args.user,
            "manifest": args.manifest,
            "src_dir": args.src_dir,
            "branch": args.branch,
            "aur_helper": args.aur_helper,
            "dotfiles_repo": "" if args.no_dotfiles else args.dotfiles_repo,
            "dotfiles_branch": args.dotfiles_branch,
        }
    )
    if not config.user:
        logger.error("No target user given (use --user or 'user' in the config file)")
        return 2
    try:
        user = resolve_user(config.user)
    except ValueError as e:
        logger.error("%s", e)
        return 2

    options = Options(
        dry_run=bool(args.dry_run),
        branch=config.branch,
        aur_helper=config.aur_helper,
        aur_url=config.aur_url,
        pip_args=config.pip_args,
    )
    ctx = build_context(
        user=user,
        src_dir=expand_path(config.src_dir) if config.src_dir else None,
        options=options,
        logger=logger,
    )
    orchestrator = Orchestrator(ctx)
    logger.debug("Strategies: %s", "; ".join(orchestrator.factory.registered))

    try:
        orchestrator.provision(config)
    except BarbsError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1

    logger.info("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
